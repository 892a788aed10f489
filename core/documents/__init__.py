"""Receipts and invoices rendered from ledger snapshots."""

from core.documents.models import DocumentFormat, DocumentRequest, DocumentType, RenderedDocument
from core.documents.renderer import DocumentRenderer

__all__ = [
    "DocumentFormat", "DocumentRequest", "DocumentType", "RenderedDocument",
    "DocumentRenderer",
]
