"""Finding ruled tables on a subpage and moving the text inside them into cells."""

from __future__ import annotations

import logging
import sys
from dataclasses import replace
from typing import Optional

from docextract.analysis import join_content
from docextract.document import Cell, Char, Span, Subpage, Table, TableLine
from docextract.geometry import Point, Rect

_log = logging.getLogger(__name__)

_BIG = sys.float_info.max
_MARGIN = 1.0
_ROW_GAP = 5.0
_COLUMN_GAP = 0.5
_WHITE = 1.0


def overlap(a_min: float, a_max: float, b_min: float, b_max: float) -> bool:
    """Return True if ``b_min..b_max`` covers more than 80% of ``a_min..a_max``."""
    if not a_min < a_max:
        raise ValueError(f"empty range a={a_min}..{a_max}")
    if not b_min < b_max:
        raise ValueError(f"empty range b={b_min}..{b_max}")
    b_min = max(b_min, a_min)
    b_max = min(b_max, a_max)
    if b_max < b_min:
        b_max = b_min
    return (b_max - b_min) / (a_max - a_min) > 0.8


def _inside(char: Char, rect: Rect) -> bool:
    return rect.min.x <= char.x < rect.max.x and rect.min.y <= char.y < rect.max.y


def spans_within_rect(content: list, rect: Rect) -> list:
    """Move characters whose origin lies in ``rect`` out of the spans in
    ``content`` and return them as new spans.

    Spans left without characters are removed from ``content``.
    """
    subset: list = []
    for candidate in [item for item in content if isinstance(item, Span)]:
        if not candidate.chars:
            continue
        inside: list[Char] = []
        outside: list[Char] = []
        for char in candidate.chars:
            (inside if _inside(char, rect) else outside).append(char)
        if inside:
            subset.append(replace(candidate, chars=inside))
        candidate.chars = outside
        if not candidate.chars:
            content.remove(candidate)
    return subset


def _lines_in_range(lines: list[TableLine], y_min: float, y_max: float) -> list[TableLine]:
    found = []
    for line in lines:
        if y_min <= line.rect.min.y < y_max:
            found.append(line)
        else:
            _log.debug(
                "Excluding line because outside y=%f..%f: %s",
                y_min,
                y_max,
                line.rect.describe(),
            )
    return found


def _next_group(lines: list[TableLine], start: int, gap: float, along_y: bool) -> int:
    """Return the index after the run of lines that sit at one coordinate."""
    base = lines[start].rect.min.y if along_y else lines[start].rect.min.x
    index = start + 1
    while index < len(lines):
        value = lines[index].rect.min.y if along_y else lines[index].rect.min.x
        if value - base > gap:
            break
        index += 1
    return index


def _build_cells(
    tl_h: list[TableLine], tl_v: list[TableLine]
) -> tuple[list[Cell], int, int]:
    cells: list[Cell] = []
    num_x = 0
    num_y = 0
    i = 0
    while i < len(tl_h):
        i_next = _next_group(tl_h, i, _ROW_GAP, along_y=True)
        if i_next == len(tl_h):
            # The last row of lines only closes the cells above it.
            break
        num_y += 1
        j = 0
        while j < len(tl_v):
            j_next = _next_group(tl_v, j, _COLUMN_GAP, along_y=False)
            if j_next == len(tl_v):
                break
            rect = Rect(
                Point(tl_v[j].rect.min.x, tl_h[i].rect.min.y),
                Point(tl_v[j_next].rect.min.x, tl_h[i_next].rect.min.y),
            )
            cell = Cell(
                rect=rect,
                above=(i == 0),
                left=(j == 0),
                extend_right=1,
                extend_down=1,
            )
            if any(
                overlap(rect.min.x, rect.max.x, h.rect.min.x, h.rect.max.x)
                for h in tl_h[i:i_next]
            ):
                cell.above = True
            if any(
                overlap(rect.min.y, rect.max.y, v.rect.min.y, v.rect.max.y)
                for v in tl_v[j:j_next]
            ):
                cell.left = True
            cells.append(cell)
            if i == 0:
                num_x += 1
            j = j_next
        i = i_next
    return cells, num_x, num_y


def _remove_empty_columns(
    cells: list[Cell], num_x: int, num_y: int
) -> tuple[list[Cell], int]:
    x = 0
    while x < num_x:
        has_cells = any(
            cells[y * num_x + x].above and cells[y * num_x + x].left
            for y in range(num_y)
        )
        if not has_cells:
            _log.debug("Removing column %i", x)
            cells = [cell for index, cell in enumerate(cells) if index % num_x != x]
            num_x -= 1
        # The column that moved into position x is not examined again.
        x += 1
    return cells, num_x


def _find_extend(cells: list[Cell], num_x: int, num_y: int) -> None:
    """Grow each cell right and down over neighbours that have no dividing line,
    clearing the flags of the cells it swallows."""
    for y in range(num_y):
        for x in range(num_x):
            cell = cells[y * num_x + x]
            if not (cell.left and cell.above):
                continue
            xx = x + 1
            while xx < num_x and not cells[y * num_x + xx].left:
                xx += 1
            cell.extend_right = xx - x
            max_x = cells[y * num_x + xx - 1].rect.max.x
            yy = y + 1
            while yy < num_y and not cells[yy * num_x + x].above:
                yy += 1
            cell.extend_down = yy - y
            max_y = cells[(yy - 1) * num_x + x].rect.max.y
            cell.rect = Rect(cell.rect.min, Point(max_x, max_y))

            for cx in range(x, x + cell.extend_right):
                for cy in range(y, y + cell.extend_down):
                    if cx == x and cy == y:
                        continue
                    other = cells[cy * num_x + cx]
                    if cx == x:
                        other.extend_right = cell.extend_right
                    other.above = False
                    other.left = cx == x


def find_table(
    subpage: Subpage, y_min: float, y_max: float, space_guess: float
) -> Optional[Table]:
    """Build one table from the ruling lines whose y lies in ``y_min..y_max``.

    Text inside the table's cells is moved out of the subpage's content and
    the table is appended to ``subpage.tables``. Returns the table, or None
    if the lines make no cells.
    """
    tl_h = _lines_in_range(subpage.tablelines_horizontal, y_min, y_max)
    tl_v = _lines_in_range(subpage.tablelines_vertical, y_min, y_max)
    tl_v.sort(key=lambda line: (line.rect.min.x, line.rect.min.y))

    cells, num_x, num_y = _build_cells(tl_h, tl_v)
    cells, num_x = _remove_empty_columns(cells, num_x, num_y)
    if not cells:
        return None

    _find_extend(cells, num_x, num_y)

    for cell in cells:
        if not (cell.above and cell.left):
            continue
        spans = spans_within_rect(subpage.content, cell.rect)
        cell.content = join_content(spans, space_guess)

    table = Table(
        pos=Point(cells[0].rect.min.x, cells[0].rect.min.y),
        cells=cells,
        cells_num_x=num_x,
        cells_num_y=num_y,
    )
    subpage.tables.append(table)
    return table


def find_tables(subpage: Subpage, space_guess: float) -> list[Table]:
    """Find every table on ``subpage`` from vertically separate groups of lines."""
    subpage.tablelines_horizontal.sort(key=lambda line: (line.rect.min.y, line.rect.min.x))
    subpage.tablelines_vertical.sort(key=lambda line: (line.rect.min.y, line.rect.min.x))
    horizontal = subpage.tablelines_horizontal
    vertical = subpage.tablelines_vertical

    max_y = -_BIG
    min_y = -_BIG
    iv = 0
    ih = 0
    while True:
        tlv = vertical[iv] if iv < len(vertical) else None
        # White horizontal lines do not separate tables.
        while ih < len(horizontal) and horizontal[ih].color == _WHITE:
            ih += 1
        tlh = horizontal[ih] if ih < len(horizontal) else None

        if tlv is not None and tlh is not None:
            line = tlv if tlv.rect.min.y < tlh.rect.min.y else tlh
        elif tlv is not None:
            line = tlv
        elif tlh is not None:
            line = tlh
        else:
            break
        if line is tlv:
            iv += 1
        else:
            ih += 1

        if line.rect.min.y > max_y + _MARGIN:
            if max_y > min_y:
                _log.debug("New table. maxy=%f miny=%f", max_y, min_y)
                find_table(subpage, min_y - _MARGIN, max_y + _MARGIN, space_guess)
            min_y = line.rect.min.y
        if line.rect.max.y > max_y:
            max_y = line.rect.max.y

    find_table(subpage, min_y - _MARGIN, max_y + _MARGIN, space_guess)
    return subpage.tables