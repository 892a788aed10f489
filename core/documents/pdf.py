"""
PDF writer using reportlab.

Built twice: the first pass counts pages so every footer can say
"Page n of m". invariant=1 fixes the timestamps and document id, so the
same layout always gives the same bytes.
"""

from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from core.documents.layout import DocumentLayout, KeyValueBlock, TableBlock, TextBlock

_HEADER_BLUE = colors.HexColor("#2F5597")


def _key_value_table(rows) -> Table:
    table = Table([list(row) for row in rows], hAlign="LEFT", colWidths=[140, None])
    table.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 2),
        ("TOPPADDING", (0, 0), (-1, -1), 2),
    ]))
    return table


def _entries_table(block: TableBlock) -> Table:
    data = [list(block.header)] + [list(row) for row in block.rows]
    table = Table(data, repeatRows=1, hAlign="LEFT")
    style = [
        ("BACKGROUND", (0, 0), (-1, 0), _HEADER_BLUE),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("ALIGN", (0, 0), (-1, -1), "LEFT"),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 8),
        ("BOTTOMPADDING", (0, 0), (-1, 0), 6),
        ("BACKGROUND", (0, 1), (-1, -1), colors.whitesmoke),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
    ]
    for column in sorted(block.right_aligned):
        style.append(("ALIGN", (column, 1), (column, -1), "RIGHT"))
    table.setStyle(TableStyle(style))
    return table


def _flowables(layout: DocumentLayout) -> list:
    styles = getSampleStyleSheet()
    elements = [
        Paragraph(escape(layout.business_name.upper()), styles["Heading3"]),
        Paragraph(escape(layout.title), styles["Title"]),
        Paragraph(escape(f"Status: {layout.status_label}"), styles["Normal"]),
        Spacer(1, 8),
        _key_value_table(layout.reference_rows),
    ]

    for block in layout.blocks:
        elements.append(Spacer(1, 10))
        if block.title:
            elements.append(Paragraph(escape(block.title), styles["Heading4"]))
        if isinstance(block, KeyValueBlock):
            elements.append(_key_value_table(block.rows))
        elif isinstance(block, TableBlock):
            elements.append(_entries_table(block))
        elif isinstance(block, TextBlock):
            for paragraph in block.paragraphs:
                elements.append(Paragraph(escape(paragraph), styles["Normal"]))
    return elements


def _build(layout: DocumentLayout, total_pages: int | None) -> tuple[bytes, int]:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer, pagesize=A4, rightMargin=36,
        leftMargin=36, topMargin=36, bottomMargin=48,
        title=f"{layout.title} {layout.issued_on.isoformat()}",
        author=layout.business_name,
        creator=layout.business_name,
        invariant=1,
    )

    def footer(canvas, document):
        if total_pages is None:
            return
        canvas.saveState()
        canvas.setFont("Helvetica", 8)
        canvas.drawRightString(
            A4[0] - 36, 24, f"Page {canvas.getPageNumber()} of {total_pages}"
        )
        canvas.restoreState()

    doc.build(_flowables(layout), onFirstPage=footer, onLaterPages=footer)
    return buffer.getvalue(), doc.page


def write_pdf(layout: DocumentLayout) -> tuple[bytes, int]:
    """
    Render to PDF bytes.

    Returns:
        (content, page_count)
    """
    _, page_count = _build(layout, None)
    content, _ = _build(layout, page_count)
    return content, page_count
