"""GET /api/documents/{reservation_id}: receipt and invoice download."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, Request
from starlette.responses import Response

from api.errors import unwrap
from core.documents import DocumentFormat, DocumentRequest, DocumentType


def create_documents_router(services: dict) -> APIRouter:
    router = APIRouter()

    ledger_svc = services["ledger"]
    renderer = services["renderer"]

    @router.get("/documents/{reservation_id}")
    def download_document(
        request: Request,
        reservation_id: UUID,
        type: DocumentType = Query(DocumentType.RECEIPT),
        format: DocumentFormat = Query(DocumentFormat.PDF),
        notes: str | None = Query(None, max_length=2000),
        include_breakdown: bool = Query(True),
        issued_on: date | None = Query(None),
        locale: str | None = Query(None),
    ):
        snapshot = unwrap(ledger_svc.get_snapshot(reservation_id))
        document = renderer.render(
            snapshot,
            DocumentRequest(
                document_type=type,
                notes=notes,
                include_breakdown=include_breakdown,
                issued_on=issued_on,
                locale=locale,
            ),
            format,
        )
        return Response(
            content=document.content,
            media_type=document.media_type,
            headers={
                "Content-Disposition": f'attachment; filename="{document.filename}"',
                "X-Page-Count": str(document.page_count),
            },
        )

    return router
