"""Document request and output models."""

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field


class DocumentType(str, Enum):
    """Kind of financial document. The value is used in filenames."""

    RECEIPT = "receipt"
    INVOICE = "invoice"
    REFUND_RECEIPT = "refund"


class DocumentFormat(str, Enum):
    TEXT = "txt"
    PDF = "pdf"


class DocumentRequest(BaseModel):
    """What to render on top of the snapshot."""

    document_type: DocumentType
    notes: str | None = Field(None, max_length=2000)
    include_breakdown: bool = True
    issued_on: date | None = None
    locale: str | None = None


class RenderedDocument(BaseModel):
    """A finished file ready to download."""

    filename: str
    media_type: str
    content: bytes
    page_count: int = Field(..., ge=1)
