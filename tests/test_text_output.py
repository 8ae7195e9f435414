from docextract.document import (
    Block,
    Cell,
    Char,
    Document,
    Image,
    Line,
    Page,
    Paragraph,
    Span,
    Subpage,
    Table,
)
from docextract.text_output import (
    content_to_text,
    document_to_text,
    paragraph_to_text,
    table_to_csv,
)


def make_span(text):
    return Span(font_name="F", chars=[Char(ucs=ord(ch)) for ch in text])


def make_paragraph(*texts):
    return Paragraph(lines=[Line(spans=[make_span(t)]) for t in texts])


def test_paragraph_to_text_joins_lines_and_ends_with_newline():
    paragraph = Paragraph(lines=[Line(spans=[make_span("ab"), make_span("cd")]), Line(spans=[make_span("ef")])])
    assert paragraph_to_text(paragraph) == "abcdef\n"


def test_content_to_text_includes_blocks_and_skips_images():
    content = [
        make_paragraph("ab"),
        Image(type="png"),
        Block(paragraphs=[make_paragraph("cd"), make_paragraph("ef")]),
    ]
    assert content_to_text(content) == "ab\ncd\nef\n"


def test_content_to_text_empty():
    assert content_to_text([]) == ""


def test_document_to_text_covers_all_pages():
    document = Document(
        pages=[
            Page(subpages=[Subpage(content=[make_paragraph("one")])]),
            Page(subpages=[Subpage(content=[make_paragraph("two")])]),
        ]
    )
    assert document_to_text(document) == "one\ntwo\n"


def test_table_to_csv_rows_and_fields():
    cells = [
        Cell(content=[make_paragraph("ab")]),
        Cell(content=[]),
        Cell(content=[make_paragraph("cd")]),
        Cell(content=[make_paragraph("ef")]),
    ]
    table = Table(cells=cells, cells_num_x=2, cells_num_y=2)
    csv = table_to_csv(table)
    assert csv == '"ab\n",""\n"cd\n","ef\n"\n'


def test_table_to_csv_empty_table():
    assert table_to_csv(Table()) == ""


def test_table_to_csv_row_count_matches_table():
    cells = [Cell(content=[]) for _ in range(6)]
    table = Table(cells=cells, cells_num_x=3, cells_num_y=2)
    rows = table_to_csv(table).splitlines()
    assert len(rows) == 2
    assert all(row == '"","",""' for row in rows)