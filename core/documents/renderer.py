"""
Document renderer.

Turns a LedgerSnapshot into a receipt, invoice or refund receipt. Reads only
the snapshot, so it needs no lock and the same snapshot and request always
produce the same bytes.
"""

import logging

from core.config import LedgerConfig
from core.documents.layout import build_layout
from core.documents.models import DocumentFormat, DocumentRequest, RenderedDocument
from core.documents.pdf import write_pdf
from core.documents.text import write_text
from core.exceptions import RenderError
from core.models.ledger_snapshot import LedgerSnapshot

logger = logging.getLogger(__name__)

MEDIA_TYPES = {
    DocumentFormat.TEXT: "text/plain; charset=utf-8",
    DocumentFormat.PDF: "application/pdf",
}


class DocumentRenderer:
    """
    Usage:
        renderer = DocumentRenderer(config)
        doc = renderer.render(snapshot, DocumentRequest(document_type="receipt"))
        response = Response(doc.content, media_type=doc.media_type)
    """

    def __init__(self, config: LedgerConfig | None = None):
        self.config = config or LedgerConfig()

    def render(
        self,
        snapshot: LedgerSnapshot | None,
        request: DocumentRequest,
        format: DocumentFormat | str = DocumentFormat.PDF,
    ) -> RenderedDocument:
        """
        Render a document.

        issued_on defaults to the snapshot's date, locale to the configured
        default.

        Raises:
            RenderError: MISSING_SNAPSHOT when snapshot is None
            ValueError: Unknown format
        """
        if snapshot is None:
            raise RenderError("No ledger snapshot to render", RenderError.MISSING_SNAPSHOT)

        format = DocumentFormat(format)
        issued_on = request.issued_on or snapshot.taken_at.date()
        locale = request.locale or self.config.default_locale

        layout = build_layout(
            snapshot,
            request,
            business_name=self.config.business_name,
            issued_on=issued_on,
            locale=locale,
        )

        if format == DocumentFormat.PDF:
            content, page_count = write_pdf(layout)
        else:
            content, page_count = write_text(layout, self.config.rows_per_page)

        filename = (
            f"{request.document_type.value.upper()}_{snapshot.reservation_id}_"
            f"{issued_on.isoformat()}.{format.value}"
        )
        logger.info(f"Rendered {filename} ({page_count} page(s))")

        return RenderedDocument(
            filename=filename,
            media_type=MEDIA_TYPES[format],
            content=content,
            page_count=page_count,
        )
