import pytest

from docextract.document import Char, Image, Span, Subpage, TableLine
from docextract.geometry import Point, Rect
from docextract.tables import find_table, find_tables, overlap, spans_within_rect
from docextract.text_output import content_to_text


def _char(x, y, ucs):
    return Char(x=x, y=y, ucs=ord(ucs), adv=1.0, bbox=Rect(Point(x, y), Point(x + 1, y + 1)))


def _span(*chars):
    return Span(
        font_name="Helvetica",
        font_bbox=Rect(Point(0, 0), Point(1, 1)),
        chars=[_char(x, y, c) for x, y, c in chars],
    )


def _hline(y, x0, x1, color=0.0):
    return TableLine(Rect(Point(x0, y), Point(x1, y + 0.2)), color)


def _vline(x, y0, y1):
    return TableLine(Rect(Point(x, y0), Point(x + 0.2, y1)), 0.0)


def _grid(top=0.0):
    return (
        [_hline(top + y, 0, 20) for y in (0, 10, 20)],
        [_vline(x, top, top + 20) for x in (0, 10, 20)],
    )


def test_overlap_full_cover():
    assert overlap(0, 10, 0, 10) is True
    assert overlap(0, 10, -5, 50) is True


def test_overlap_small_cover():
    assert overlap(0, 10, 9, 20) is False
    assert overlap(0, 10, 20, 30) is False


def test_overlap_rejects_empty_ranges():
    with pytest.raises(ValueError):
        overlap(5, 5, 0, 1)
    with pytest.raises(ValueError):
        overlap(0, 1, 3, 2)


def test_spans_within_rect_moves_inside_chars():
    span = _span((1, 1, "a"), (5, 1, "b"))
    content = [span]
    subset = spans_within_rect(content, Rect(Point(0, 0), Point(3, 3)))
    assert [c.ucs for s in subset for c in s.chars] == [ord("a")]
    assert subset[0].font_name == span.font_name
    assert content == [span]
    assert [c.ucs for c in span.chars] == [ord("b")]


def test_spans_within_rect_removes_emptied_spans_and_keeps_others():
    span = _span((1, 1, "a"), (2, 2, "b"))
    image = Image(type="png")
    content = [span, image]
    subset = spans_within_rect(content, Rect(Point(0, 0), Point(3, 3)))
    assert content == [image]
    assert "".join(chr(c.ucs) for c in subset[0].chars) == "ab"


def test_spans_within_rect_max_edge_is_exclusive():
    content = [_span((3, 1, "a"))]
    subset = spans_within_rect(content, Rect(Point(0, 0), Point(3, 3)))
    assert subset == []
    assert len(content) == 1


def test_find_table_grid_cells_get_text():
    subpage = Subpage()
    subpage.tablelines_horizontal, subpage.tablelines_vertical = _grid()
    subpage.content = [_span((2, 5, "A"), (12, 5, "B"), (2, 15, "C"))]
    table = find_table(subpage, -1, 21, 0.5)
    assert subpage.tables == [table]
    assert len(table.cells) == table.cells_num_x * table.cells_num_y
    assert table.pos == Point(0, 0)
    assert content_to_text(table.cell(0, 0).content) == "A\n"
    assert content_to_text(table.cell(1, 0).content) == "B\n"
    assert content_to_text(table.cell(0, 1).content) == "C\n"
    assert content_to_text(table.cell(1, 1).content) == ""
    assert subpage.content == []


def test_find_table_all_cells_are_bounded():
    subpage = Subpage()
    subpage.tablelines_horizontal, subpage.tablelines_vertical = _grid()
    table = find_table(subpage, -1, 21, 0.5)
    assert all(cell.above and cell.left for cell in table.cells)
    assert all(cell.extend_right == 1 and cell.extend_down == 1 for cell in table.cells)


def test_find_table_extends_over_missing_divider():
    subpage = Subpage()
    subpage.tablelines_horizontal = [_hline(y, 0, 20) for y in (0, 10, 20)]
    subpage.tablelines_vertical = [_vline(0, 0, 20), _vline(10, 0, 10), _vline(20, 0, 20)]
    table = find_table(subpage, -1, 21, 0.5)
    merged = table.cell(0, 1)
    assert merged.extend_right == 2
    assert merged.rect.max.x == 20
    covered = table.cell(1, 1)
    assert covered.above is False and covered.left is False


def test_find_table_without_lines_returns_none():
    subpage = Subpage()
    assert find_table(subpage, -1, 21, 0.5) is None
    assert subpage.tables == []


def test_find_table_ignores_lines_outside_range():
    subpage = Subpage()
    subpage.tablelines_horizontal, subpage.tablelines_vertical = _grid(top=100)
    assert find_table(subpage, -1, 21, 0.5) is None


def test_find_tables_separates_distant_tables():
    subpage = Subpage()
    h1, v1 = _grid()
    h2, v2 = _grid(top=100)
    subpage.tablelines_horizontal = h2 + h1
    subpage.tablelines_vertical = v1 + v2
    tables = find_tables(subpage, 0.5)
    assert [t.pos for t in tables] == [Point(0, 0), Point(0, 100)]
    for table in tables:
        assert len(table.cells) == table.cells_num_x * table.cells_num_y


def test_find_tables_on_empty_subpage():
    subpage = Subpage()
    assert find_tables(subpage, 0.5) == []


def test_find_tables_sorts_lines_by_y():
    subpage = Subpage()
    h, v = _grid()
    subpage.tablelines_horizontal = list(reversed(h))
    subpage.tablelines_vertical = v
    find_tables(subpage, 0.5)
    ys = [line.rect.min.y for line in subpage.tablelines_horizontal]
    assert ys == sorted(ys)