import math

import pytest

from docextract.document import (
    Block,
    Char,
    Document,
    Line,
    Page,
    Paragraph,
    Span,
    StructType,
    Structure,
    Subpage,
    Table,
    Cell,
)
from docextract.geometry import Matrix4, Point, Rect, rect_empty


def _span(text, x=10.0, y=20.0, adv=5.0, wmode=0, ctm=None):
    span = Span(font_name="Helvetica", ctm=ctm or Matrix4(), wmode=wmode)
    span.font_bbox = Rect(Point(0, 0), Point(1, 1))
    for i, ch in enumerate(text):
        char = span.append_char(ord(ch))
        char.x = x + i * adv
        char.y = y
        char.adv = adv
        char.bbox = Rect(Point(char.x, y), Point(char.x + adv, y + adv))
    return span


def test_append_char_sets_ucs_and_empty_bbox():
    span = Span()
    char = span.append_char(65)
    assert char.ucs == 65
    assert char.bbox == rect_empty()
    assert span.chars == [char]


def test_first_and_last_char_on_empty_span_raise():
    span = Span()
    with pytest.raises(IndexError):
        span.first_char()
    with pytest.raises(IndexError):
        span.last_char()


def test_first_and_last_char():
    span = _span("abc")
    assert span.first_char().ucs == ord("a")
    assert span.last_char().ucs == ord("c")


def test_last_char_with_advance_skips_zero_advances():
    span = _span("ab")
    extra = span.append_char(32)
    assert extra.adv == 0
    assert span.last_char_with_advance() is span.chars[1]


def test_last_char_with_advance_none_when_all_zero():
    span = Span()
    span.append_char(32)
    assert span.last_char_with_advance() is None


def test_predicted_end_horizontal_and_vertical():
    span = _span("a", x=3.0, y=4.0, adv=2.0)
    assert span.predicted_end_of_char(span.chars[0]) == Point(5.0, 4.0)
    vspan = _span("a", x=3.0, y=4.0, adv=2.0, wmode=1)
    assert vspan.predicted_end_of_char(vspan.chars[0]) == Point(3.0, 6.0)


def test_end_point_matches_last_char_prediction():
    span = _span("hello")
    assert span.end_point() == span.predicted_end_of_char(span.last_char())


def test_rect_is_union_of_char_boxes():
    span = _span("ab", x=0.0, y=0.0, adv=5.0)
    rect = span.rect()
    assert rect == span.chars[0].bbox.union(span.chars[1].bbox)
    assert Span().rect() == rect_empty()


def test_describe_contains_font_and_text():
    span = _span("hi")
    text = span.describe()
    assert text.startswith("span ctm=")
    assert "font=Helvetica" in text
    assert text.endswith(': "hi"')


def test_line_and_paragraph_accessors():
    s1, s2, s3 = _span("a"), _span("b"), _span("c")
    line1 = Line(spans=[s1, s2])
    line2 = Line(spans=[s3])
    assert line1.first_span() is s1
    assert line1.last_span() is s2
    paragraph = Paragraph(lines=[line1, line2])
    assert paragraph.first_line() is line1
    assert paragraph.last_line() is line2
    assert list(paragraph.iter_spans()) == [s1, s2, s3]
    with pytest.raises(IndexError):
        Line().first_span()
    with pytest.raises(IndexError):
        Paragraph().last_line()


def test_table_cell_indexing_is_row_major():
    cells = [Cell() for _ in range(6)]
    table = Table(cells=cells, cells_num_x=3, cells_num_y=2)
    assert table.cell(0, 0) is cells[0]
    assert table.cell(2, 1) is cells[5]
    assert table.cell(1, 1) is cells[4]
    with pytest.raises(IndexError):
        table.cell(3, 0)


def test_structure_path():
    root = Structure(StructType.DOCUMENT)
    child = Structure(StructType.P, uid=3, parent=root)
    assert root.path() == "DOCUMENT"
    assert child.path() == "DOCUMENT\\P[3]"


def test_document_struct_nesting():
    doc = Document()
    top = doc.begin_struct(StructType.DOCUMENT, 0, 0)
    inner = doc.begin_struct(StructType.P, 1, 0)
    assert doc.structure is top
    assert doc.current is inner
    assert top.children == [inner]
    assert inner.parent is top
    doc.end_struct()
    assert doc.current is top
    doc.end_struct()
    assert doc.current is None
    doc.end_struct()
    assert doc.current is None


def test_iter_subpages_in_order():
    a, b, c = Subpage(), Subpage(), Subpage()
    doc = Document(pages=[Page(subpages=[a, b]), Page(subpages=[c])])
    assert list(doc.iter_subpages()) == [a, b, c]


def test_pre_rotation_bounds_unrotated_spans_text():
    span = _span("abc", x=10.0, y=20.0, adv=5.0)
    block = Block(paragraphs=[Paragraph(lines=[Line(spans=[span])])])
    box = block.pre_rotation_bounds(0.0)
    assert box.min.x == pytest.approx(span.first_char().x)
    assert box.max.x == pytest.approx(span.end_point().x)
    assert box.min.y < box.max.y


def test_pre_rotation_bounds_rotated_box_is_valid():
    span = _span("abc", x=10.0, y=20.0, adv=5.0)
    block = Block(paragraphs=[Paragraph(lines=[Line(spans=[span])])])
    box = block.pre_rotation_bounds(math.pi / 4)
    assert box.min.x <= box.max.x
    assert box.min.y < box.max.y


def test_char_defaults():
    char = Char()
    assert (char.x, char.y, char.ucs, char.adv) == (0.0, 0.0, 0, 0.0)
    assert char.bbox == rect_empty()