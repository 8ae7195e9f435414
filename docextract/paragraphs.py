"""Joining lines into paragraphs and ordering paragraphs on a page."""

from __future__ import annotations

import math
from functools import cmp_to_key
from typing import Optional

from docextract.document import Line, Paragraph
from docextract.geometry import Matrix4, Point
from docextract.lines import lines_are_compatible, matrices_are_compatible

_SPACE = 0x20
_HYPHEN = 0x2D
_MINUS = 0x2212
_SLASH = 0x2F


def _div(num: float, den: float) -> float:
    """Divide with IEEE semantics instead of raising on a zero divisor."""
    if den == 0:
        if num == 0 or math.isnan(num):
            return math.nan
        return math.copysign(math.inf, num)
    return num / den


def font_size_from_ctm(ctm: Matrix4) -> float:
    """Return the font size implied by the baseline row of ``ctm``."""
    if ctm.b == 0:
        return abs(ctm.a)
    if ctm.a == 0:
        return abs(ctm.b)
    return math.sqrt(ctm.a * ctm.a + ctm.b * ctm.b)


def calculate_line_height(line: Line) -> None:
    """Set the line's ascender and descender from its spans' font boxes."""
    ascender = 0.0
    descender = 0.0
    for span in line.spans:
        size = font_size_from_ctm(span.ctm)
        min_y = span.font_bbox.min.y * size
        max_y = span.font_bbox.max.y * size
        if min_y < descender:
            descender = min_y
        if max_y > ascender:
            ascender = max_y
    line.ascender = ascender
    line.descender = descender


def paragraphs_compare(a: object, b: object) -> int:
    """Order paragraphs by wmode, then matrix, then position down the page."""
    if not isinstance(a, Paragraph) or not isinstance(b, Paragraph):
        return 0
    span_a = a.first_line().first_span()
    span_b = b.first_line().first_span()

    if span_a.wmode != span_b.wmode:
        return span_a.wmode - span_b.wmode

    if not matrices_are_compatible(span_a.ctm, span_b.ctm, span_a.wmode):
        return span_a.ctm.compare(span_b.ctm)

    tdir = span_a.ctm.transform(Point(1 - span_a.wmode, span_a.wmode))
    dx = span_a.chars[0].x - span_b.chars[0].x
    dy = span_a.chars[0].y - span_b.chars[0].y
    perp = dx * tdir.y - dy * tdir.x
    if perp < 0:
        return 1
    if perp > 0:
        return -1
    return 0


def _nearest_paragraph(
    content: list, paragraph_a: Paragraph, line_a: Line
) -> Optional[tuple[int, float]]:
    """Find the closest paragraph below ``line_a`` that overlaps it sideways."""
    span_a = line_a.last_span()
    wmode = span_a.wmode
    direction = Point(1 - wmode, wmode)
    ctm = span_a.ctm
    if wmode:
        scale = math.sqrt(ctm.c * ctm.c + ctm.d * ctm.d)
    else:
        scale = math.sqrt(ctm.a * ctm.a + ctm.b * ctm.b)

    first_a = line_a.first_span().first_char()
    last_a = span_a.last_char()
    tdir_a = span_a.ctm.transform(direction)
    end_a = Point(last_a.x + last_a.adv * tdir_a.x, last_a.y + last_a.adv * tdir_a.y)
    dot_saea = (end_a.x - first_a.x) * tdir_a.x + (end_a.y - first_a.y) * tdir_a.y

    best: Optional[tuple[int, float]] = None
    for index, paragraph_b in enumerate(content):
        if not isinstance(paragraph_b, Paragraph) or paragraph_b is paragraph_a:
            continue
        line_b = paragraph_b.first_line()
        if not lines_are_compatible(line_a, line_b):
            continue

        first_b = line_b.first_span().first_char()
        last_span_b = line_b.last_span()
        last_b = last_span_b.last_char()
        tdir_b = last_span_b.ctm.transform(direction)
        end_b = Point(
            last_b.x + last_b.adv * tdir_b.x, last_b.y + last_b.adv * tdir_b.y
        )

        sdx = first_b.x - first_a.x
        sdy = first_b.y - first_a.y
        perp = _div(sdx * tdir_a.y - sdy * tdir_a.x, scale)
        score = -perp

        dot_sasb = sdx * tdir_a.x + sdy * tdir_a.y
        dot_saeb = (end_b.x - first_a.x) * tdir_a.x + (end_b.y - first_a.y) * tdir_a.y

        # line_b starts right of where line_a ends, or ends left of its start.
        if dot_sasb > dot_saea:
            continue
        if dot_saeb < 0:
            continue

        if score >= 0 and (best is None or score < best[1]):
            best = (index, score)
    return best


def _prepare_join(paragraph: Paragraph, line: Line) -> None:
    """Tidy the end of ``line`` before the next paragraph's lines follow it."""
    span = line.last_span()
    last = span.last_char()
    if last.ucs in (_HYPHEN, _MINUS):
        span.chars.pop()
        if not span.chars:
            line.spans.remove(span)
            if not line.spans:
                paragraph.lines.remove(line)
    elif last.ucs in (_SPACE, _SLASH):
        pass
    else:
        space = span.append_char(_SPACE)
        space.x = last.x + last.adv * span.ctm.a
        space.y = last.y + last.adv * span.ctm.c


def make_paragraphs(lines: list) -> list:
    """Wrap each line in a paragraph, join close paragraphs, and sort them."""
    content: list = []
    for item in lines:
        if isinstance(item, Line):
            calculate_line_height(item)
            content.append(Paragraph(lines=[item]))
        else:
            content.append(item)

    index = 0
    while index < len(content):
        paragraph_a = content[index]
        if not isinstance(paragraph_a, Paragraph):
            index += 1
            continue
        line_a = paragraph_a.last_line()
        found = _nearest_paragraph(content, paragraph_a, line_a)
        if found is None:
            index += 1
            continue

        other, score = found
        nearest = content[other]
        line_b = nearest.first_line()
        height_a = line_a.ascender - line_a.descender
        height_b = line_b.ascender - line_b.descender
        expected_height = (height_a + height_b) / 2
        if not (0 < score < 2 * expected_height):
            index += 1
            continue

        _prepare_join(paragraph_a, line_a)
        paragraph_a.lines.extend(nearest.lines)
        del content[other]
        # The index stays: either the grown paragraph is checked again, or
        # the next item has moved down into this slot.

    content.sort(key=cmp_to_key(paragraphs_compare))
    return content