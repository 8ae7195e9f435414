"""Joining spans that share a baseline into lines."""

from __future__ import annotations

import math
from typing import Optional

from docextract.document import Line, Span
from docextract.geometry import Matrix4, Point

_SPACE = 0x20


def _div(num: float, den: float) -> float:
    """Divide with IEEE semantics instead of raising on a zero divisor."""
    if den == 0:
        if num == 0 or math.isnan(num):
            return math.nan
        return math.copysign(math.inf, num)
    return num / den


def matrices_are_compatible(ctm_a: Matrix4, ctm_b: Matrix4, wmode: int) -> bool:
    """Return True if both matrices map the writing direction onto parallel,
    same-sense baselines."""
    if wmode:
        dot = ctm_a.c * ctm_b.c + ctm_a.d * ctm_b.d
        pdot = ctm_a.c * ctm_b.d - ctm_a.d * ctm_b.c
    else:
        dot = ctm_a.a * ctm_b.a + ctm_a.b * ctm_b.b
        pdot = ctm_a.a * ctm_b.b - ctm_a.b * ctm_b.a
    if dot <= 0:
        return False
    return abs(pdot / dot) < 0.1


def lines_are_compatible(a: Line, b: Line) -> bool:
    """Return True if two distinct lines share wmode and baseline direction."""
    if a is b:
        return False
    if not a.spans or not b.spans:
        return False
    span_a = a.spans[0]
    span_b = b.spans[0]
    if span_a.wmode != span_b.wmode:
        return False
    return matrices_are_compatible(span_a.ctm, span_b.ctm, span_a.wmode)


def _nearest_line(
    content: list, line_a: Line, master_space_guess: float
) -> Optional[tuple[int, float, float]]:
    """Find the best line to append to ``line_a``.

    Returns its index, the colinear gap and the space guess used, or None.
    """
    span_a = line_a.last_span()
    last_a = span_a.last_char_with_advance()
    if last_a is None:
        return None
    wmode = span_a.wmode
    ctm = span_a.ctm
    tdir = ctm.transform(Point(1 - wmode, wmode))
    end = Point(last_a.x + tdir.x * last_a.adv, last_a.y + tdir.y * last_a.adv)
    if wmode:
        scale_squared = ctm.c * ctm.c + ctm.d * ctm.d
    else:
        scale_squared = ctm.a * ctm.a + ctm.b * ctm.b

    best: Optional[tuple[int, float, float, float]] = None
    for index, line_b in enumerate(content):
        if not isinstance(line_b, Line) or line_b is line_a:
            continue
        if not lines_are_compatible(line_a, line_b):
            continue
        first_b = line_b.first_span().first_char()
        dx = first_b.x - end.x
        dy = first_b.y - end.y
        colinear = _div(dx * tdir.x + dy * tdir.y, scale_squared)
        perp = _div(dx * tdir.y - dy * tdir.x, scale_squared)
        space_guess = (last_a.adv + first_b.adv) / 2 * master_space_guess

        if abs(perp) > 3 * space_guess / 2 or abs(colinear) > space_guess * 4:
            continue

        # Perpendicular distance matters much more than distance along the line.
        score = abs(colinear)
        if score < abs(perp) * 10:
            score = abs(perp) * 10

        if best is None or score < best[1]:
            best = (index, score, colinear, space_guess)

    if best is None:
        return None
    return best[0], best[2], best[3]


def make_lines(spans: list, space_guess: float) -> list:
    """Wrap each span in a line, then join lines that continue one another.

    Items that are not spans keep their place in the returned list.
    """
    content = [Line(spans=[item]) if isinstance(item, Span) else item for item in spans]

    index = 0
    while index < len(content):
        line_a = content[index]
        if not isinstance(line_a, Line):
            index += 1
            continue
        found = _nearest_line(content, line_a, space_guess)
        if found is None:
            index += 1
            continue

        other, colinear, guess = found
        nearest = content[other]
        span_a = line_a.last_span()
        span_b = nearest.first_span()
        if (
            span_a.last_char().ucs != _SPACE
            and span_b.first_char().ucs != _SPACE
            and colinear > 2 * guess / 3
        ):
            previous = span_a.last_char()
            space = span_a.append_char(_SPACE)
            space.x = previous.x
            space.y = previous.y

        line_a.spans.extend(nearest.spans)
        del content[other]
        # If the removed line came after line_a, the grown line is checked
        # again at the same index; if it came before, the next item has
        # moved down into this index. Either way the index stays.
    return content