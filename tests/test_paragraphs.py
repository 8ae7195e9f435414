import pytest

from docextract.document import Image, Line, Paragraph, Span
from docextract.geometry import Matrix4, Point, Rect
from docextract.paragraphs import (
    calculate_line_height,
    font_size_from_ctm,
    make_paragraphs,
    paragraphs_compare,
)


def make_span(text, x, y, adv=1.0, ctm=None, wmode=0, bbox=None):
    span = Span(
        font_name="Helvetica",
        ctm=ctm or Matrix4(),
        wmode=wmode,
        font_bbox=bbox or Rect(Point(0, -0.2), Point(1, 0.8)),
    )
    for i, ch in enumerate(text):
        char = span.append_char(ord(ch))
        char.x = x + i * adv
        char.y = y
        char.adv = adv
    return span


def make_line(text, x, y, **kwargs):
    return Line(spans=[make_span(text, x, y, **kwargs)])


def paragraph_text(paragraph):
    return "".join(chr(c.ucs) for s in paragraph.iter_spans() for c in s.chars)


def test_font_size_from_ctm():
    assert font_size_from_ctm(Matrix4(2, 0, 0, 2)) == 2
    assert font_size_from_ctm(Matrix4(-4, 0, 0, 4)) == 4
    assert font_size_from_ctm(Matrix4(0, -3, 3, 0)) == 3
    assert font_size_from_ctm(Matrix4(3, 4, -4, 3)) == pytest.approx(5)


def test_calculate_line_height_takes_extremes():
    line = Line(
        spans=[
            make_span("a", 0, 0, bbox=Rect(Point(0, -1), Point(1, 2))),
            make_span("b", 1, 0, bbox=Rect(Point(0, -0.5), Point(1, 5))),
        ]
    )
    calculate_line_height(line)
    assert line.ascender == 5
    assert line.descender == -1


def test_calculate_line_height_clamps_positive_descender():
    line = make_line("a", 0, 0, bbox=Rect(Point(0, 1), Point(1, 2)))
    calculate_line_height(line)
    assert line.descender == 0
    assert line.ascender == 2


def test_compare_non_paragraph_is_zero():
    paragraph = Paragraph(lines=[make_line("a", 0, 0)])
    assert paragraphs_compare(paragraph, Image()) == 0
    assert paragraphs_compare(Image(), paragraph) == 0


def test_compare_orders_down_the_page():
    top = Paragraph(lines=[make_line("a", 0, 0)])
    below = Paragraph(lines=[make_line("b", 0, 10)])
    assert paragraphs_compare(top, below) < 0
    assert paragraphs_compare(below, top) == -paragraphs_compare(top, below)
    assert paragraphs_compare(top, top) == 0


def test_compare_wmode_first():
    vertical = Paragraph(lines=[make_line("a", 0, 0, wmode=1)])
    horizontal = Paragraph(lines=[make_line("b", 0, 10)])
    assert paragraphs_compare(vertical, horizontal) > 0
    assert paragraphs_compare(horizontal, vertical) < 0


def test_compare_incompatible_matrices_uses_matrix_order():
    a_ctm = Matrix4(0, 1, -1, 0)
    a = Paragraph(lines=[make_line("a", 0, 0, ctm=a_ctm)])
    b = Paragraph(lines=[make_line("b", 0, 10)])
    assert paragraphs_compare(a, b) == a_ctm.compare(Matrix4())


def test_close_lines_join_with_space():
    result = make_paragraphs([make_line("ab", 0, 0), make_line("cd", 0, 1.2)])
    assert len(result) == 1
    assert len(result[0].lines) == 2
    assert paragraph_text(result[0]) == "ab cd"


def test_trailing_hyphen_is_removed():
    result = make_paragraphs([make_line("ab-", 0, 0), make_line("cd", 0, 1.2)])
    assert len(result) == 1
    assert paragraph_text(result[0]) == "abcd"


def test_hyphen_only_line_is_dropped():
    result = make_paragraphs([make_line("-", 0, 0), make_line("cd", 0, 1.2)])
    assert len(result) == 1
    assert len(result[0].lines) == 1
    assert paragraph_text(result[0]) == "cd"


def test_trailing_slash_gets_no_space():
    result = make_paragraphs([make_line("a/", 0, 0), make_line("cd", 0, 1.2)])
    assert paragraph_text(result[0]) == "a/cd"


def test_reverse_order_is_joined():
    result = make_paragraphs([make_line("cd", 0, 1.2), make_line("ab", 0, 0)])
    assert len(result) == 1
    assert paragraph_text(result[0]) == "ab cd"


def test_distant_lines_stay_apart_and_are_sorted():
    low = make_line("cd", 0, 10)
    high = make_line("ab", 0, 0)
    result = make_paragraphs([low, high])
    assert len(result) == 2
    assert result[0].lines[0] is high
    assert result[1].lines[0] is low
    assert high.ascender - high.descender == pytest.approx(1.0)