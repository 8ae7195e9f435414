"""Layout analysis of paragraphs, grouping of rotated text, and the joining pass."""

from __future__ import annotations

import math

from docextract.document import Block, Char, Paragraph, ParagraphFlag, Span
from docextract.geometry import Matrix4, Point
from docextract.lines import make_lines, matrices_are_compatible
from docextract.paragraphs import make_paragraphs

_SPACE = 0x20


def _last_non_space_char(span: Span) -> Char:
    """Return the last non-space character, or the first one if all are spaces."""
    return next(
        (char for char in reversed(span.chars[1:]) if char.ucs != _SPACE),
        span.chars[0],
    )


def _along(point: Point, wmode: int) -> float:
    return point.y if wmode else point.x


def _paragraph_bounds(paragraph: Paragraph) -> tuple[Matrix4, float, float, float]:
    """Return the inverse of the first span's matrix, the space guess, and the
    left and right bounds of the paragraph in that unrotated space."""
    inverse = Matrix4()
    space_guess = 0.0
    para_l = para_r = 0.0
    first = True
    for span in paragraph.iter_spans():
        lc = span.chars[0]
        rc = _last_non_space_char(span)
        tdir = span.ctm.transform(Point(rc.adv * (1 - span.wmode), rc.adv * span.wmode))
        if first:
            inverse = span.ctm.invert()
            space_guess = (span.font_bbox.max.x - span.font_bbox.min.x) / 2
        left = inverse.transform(Point(lc.x, lc.y))
        right = inverse.transform(Point(rc.x + tdir.x, rc.y + tdir.y))
        l = _along(left, span.wmode)
        r = _along(right, span.wmode)
        if first or l < para_l:
            para_l = l
        if first or r > para_r:
            para_r = r
        first = False
    return inverse, space_guess, para_l, para_r


def _analyse_paragraph(paragraph: Paragraph) -> None:
    inverse, space_guess, para_l, para_r = _paragraph_bounds(paragraph)

    previous_flags = None
    previous_spare = 0.0
    for line_no, line in enumerate(paragraph.lines):
        line_l = line_r = 0.0
        first_span = True
        first_word = line_no > 0
        word_end = None
        word_wmode = 0

        for span in line.spans:
            lc = span.chars[0]
            rc = _last_non_space_char(span)
            tdir = span.ctm.transform(Point(1 - span.wmode, span.wmode))
            left = Point(lc.x, lc.y)
            right = Point(rc.x + tdir.x * rc.adv, rc.y + tdir.y * rc.adv)

            # Measure the first word of every line but the first.
            if first_word:
                count = next(
                    (i for i, char in enumerate(span.chars) if char.ucs == _SPACE),
                    len(span.chars),
                )
                if count > 0:
                    last = span.chars[count - 1]
                    word_end = Point(last.x + last.adv * tdir.x, last.y + last.adv * tdir.y)
                    word_wmode = span.wmode
                    if count < len(span.chars):
                        first_word = False

            l = _along(inverse.transform(left), span.wmode)
            r = _along(inverse.transform(right), span.wmode)
            if first_span or l < line_l:
                line_l = l
            if first_span or r < line_r:
                line_r = r
            first_span = False

        if word_end is not None:
            width = _along(inverse.transform(word_end), word_wmode) - line_l
            # The previous line had room for this word, so the break was not
            # forced by the line filling up.
            if previous_spare > width + space_guess:
                paragraph.line_flags |= ParagraphFlag.BREAKS_STRANGELY

        if previous_flags is not None:
            paragraph.line_flags |= previous_flags
        previous_flags = ParagraphFlag.NONE
        if line_l > para_l + space_guess:
            previous_flags |= ParagraphFlag.NOT_ALIGNED_LEFT
        if line_r < para_r - space_guess:
            previous_flags |= ParagraphFlag.NOT_ALIGNED_RIGHT

        gap_l = line_l - para_l
        gap_r = para_r - line_r
        if abs(gap_l - gap_r) > space_guess / 2:
            paragraph.line_flags |= ParagraphFlag.NOT_CENTRED
        if gap_l > space_guess / 2:
            paragraph.line_flags |= ParagraphFlag.NOT_FULLY_JUSTIFIED
        if gap_r > space_guess / 2:
            previous_flags |= ParagraphFlag.NOT_FULLY_JUSTIFIED
        previous_spare = para_r - line_r + line_l - para_l

    if previous_flags is not None:
        paragraph.line_flags |= previous_flags & ParagraphFlag.NOT_ALIGNED_LEFT


def analyse_paragraphs(paragraphs: list) -> list:
    """Set alignment flags on every paragraph in ``paragraphs``; returns the list."""
    for item in paragraphs:
        if isinstance(item, Paragraph):
            _analyse_paragraph(item)
    return paragraphs


def spot_rotated_blocks(content: list) -> list:
    """Gather runs of paragraphs sharing one non-zero rotation into blocks."""
    result: list = []
    run: list = []
    run_ctm = Matrix4()
    run_wmode = 0

    for item in content:
        starts_run = False
        flush = False
        if isinstance(item, Paragraph):
            span = item.first_line().first_span()
            if math.atan2(span.ctm.b, span.ctm.a) == 0:
                flush = True
            else:
                starts_run = True
            if run and (
                span.wmode != run_wmode
                or not matrices_are_compatible(span.ctm, run_ctm, run_wmode)
            ):
                flush = True
        else:
            flush = True

        if flush and run:
            result.append(Block(paragraphs=run))
            run = []

        if starts_run and not run:
            run = [item]
            run_ctm = span.ctm
            run_wmode = span.wmode
        elif run:
            run.append(item)
        else:
            result.append(item)

    if run:
        result.append(Block(paragraphs=run))
    return result


def join_content(spans: list, space_guess: float) -> list:
    """Turn a list of spans into analysed paragraphs and rotated blocks."""
    lines = make_lines(spans, space_guess)
    paragraphs = make_paragraphs(lines)
    analyse_paragraphs(paragraphs)
    return spot_rotated_blocks(paragraphs)