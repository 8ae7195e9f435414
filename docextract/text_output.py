"""Plain-text and CSV rendering of joined content."""

from __future__ import annotations

from docextract.document import Block, Document, Paragraph, Table


def _char_text(ucs: int) -> str:
    try:
        return chr(ucs)
    except (ValueError, OverflowError):
        return "\ufffd"


def paragraph_to_text(paragraph: Paragraph) -> str:
    """Return the paragraph's characters followed by a newline."""
    text = "".join(
        _char_text(char.ucs) for span in paragraph.iter_spans() for char in span.chars
    )
    return text + "\n"


def content_to_text(content: list) -> str:
    """Return the text of every paragraph, including those inside blocks."""
    parts = []
    for item in content:
        if isinstance(item, Paragraph):
            parts.append(paragraph_to_text(item))
        elif isinstance(item, Block):
            parts.extend(paragraph_to_text(paragraph) for paragraph in item.paragraphs)
    return "".join(parts)


def document_to_text(document: Document) -> str:
    """Return the text of every subpage of the document in order."""
    return "".join(content_to_text(subpage.content) for subpage in document.iter_subpages())


def table_to_csv(table: Table) -> str:
    """Return the table as CSV, one quoted field per cell and one row per line."""
    rows = []
    for y in range(table.cells_num_y):
        fields = []
        for x in range(table.cells_num_x):
            text = content_to_text(table.cell(x, y).content)
            if text.endswith(" "):
                text = text[:-1]
            fields.append(f'"{text}"')
        rows.append(",".join(fields) + "\n")
    return "".join(rows)