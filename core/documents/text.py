"""Plain-text writer: fixed-width lines paginated with a page footer."""

import textwrap

from core.documents.layout import DocumentLayout, KeyValueBlock, TableBlock, TextBlock

WIDTH = 78
PAGE_BREAK = "\f"


def _key_value_lines(rows) -> list[str]:
    label_width = max(len(label) for label, _ in rows) + 2
    return [f"  {label + ':':<{label_width}}{value}" for label, value in rows]


def _table_lines(block: TableBlock) -> list[str]:
    widths = [len(h) for h in block.header]
    for row in block.rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def line(cells) -> str:
        parts = []
        for i, cell in enumerate(cells):
            if i in block.right_aligned:
                parts.append(cell.rjust(widths[i]))
            else:
                parts.append(cell.ljust(widths[i]))
        return ("  " + "  ".join(parts)).rstrip()

    rule = "  " + "  ".join("-" * w for w in widths)
    return [line(block.header), rule] + [line(row) for row in block.rows]


def layout_lines(layout: DocumentLayout) -> list[str]:
    """The document as unpaginated lines."""
    lines = [
        layout.business_name.upper().center(WIDTH).rstrip(),
        layout.title.center(WIDTH).rstrip(),
        f"Status: {layout.status_label}".center(WIDTH).rstrip(),
        "=" * WIDTH,
    ]
    lines += _key_value_lines(layout.reference_rows)

    for block in layout.blocks:
        lines.append("")
        if block.title:
            lines.append(f"{block.title}:")
        if isinstance(block, KeyValueBlock):
            lines += _key_value_lines(block.rows)
        elif isinstance(block, TableBlock):
            lines += _table_lines(block)
        elif isinstance(block, TextBlock):
            for paragraph in block.paragraphs:
                lines += textwrap.wrap(paragraph, WIDTH - 2, initial_indent="  ",
                                       subsequent_indent="  ") or [""]
    return lines


def paginate(lines: list[str], rows_per_page: int) -> list[list[str]]:
    """Split lines into pages of rows_per_page; always at least one page."""
    pages = [lines[i:i + rows_per_page] for i in range(0, len(lines), rows_per_page)]
    return pages or [[]]


def write_text(layout: DocumentLayout, rows_per_page: int) -> tuple[bytes, int]:
    """
    Render to UTF-8 text.

    Returns:
        (content, page_count). Pages are separated by a form feed and each
        ends with a "Page n of m" footer.
    """
    pages = paginate(layout_lines(layout), rows_per_page)
    total = len(pages)
    rendered = []
    for number, page in enumerate(pages, start=1):
        footer = f"Page {number} of {total}".rjust(WIDTH)
        rendered.append("\n".join(page + ["", footer]) + "\n")
    return PAGE_BREAK.join(rendered).encode("utf-8"), total
