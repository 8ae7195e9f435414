"""Rendering a joined document as JSON elements of text runs and images."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Optional

from docextract.document import (
    Block,
    Document,
    Image,
    Line,
    Paragraph,
    Span,
    Structure,
    Subpage,
)
from docextract.geometry import Point, Rect, rect_empty

_NO_CHAR = (-1, 0xFFFFFFFF)

_XML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&apos;",
}


def _xml_char(ucs: int) -> str:
    try:
        char = chr(ucs)
    except (ValueError, OverflowError):
        char = "\ufffd"
    return _XML_ESCAPES.get(char, char)


def image_rect(image: Image) -> Rect:
    """Return the box an image covers, from its origin and matrix."""
    return Rect(
        Point(image.x, image.y),
        Point(image.x + image.a + image.c, image.y + image.b + image.d),
    )


def structure_path(structure: Optional[Structure]) -> str:
    """Return the ``"Path"`` member for ``structure``, or "" when there is none."""
    if structure is None:
        return ""
    return f',\n"Path" : "{structure.path()}"'


def _walk(items: Iterable) -> Iterator[object]:
    for item in items:
        yield item
        if isinstance(item, Line):
            yield from item.spans
        elif isinstance(item, Paragraph):
            yield from _walk(item.lines)
        elif isinstance(item, Block):
            yield from _walk(item.paragraphs)


def _bounds(rect: Rect) -> str:
    return (
        f'"Bounds": [ {rect.min.x:f}, {rect.min.y:f}, '
        f"{rect.max.x:f}, {rect.max.y:f} ]"
    )


@dataclass
class _PendingText:
    """Text gathered from consecutive spans that share font and structure."""

    span: Optional[Span] = None
    structure: Optional[Structure] = None
    text: list[str] = field(default_factory=list)
    bbox: Rect = field(default_factory=rect_empty)

    def flush(self, elements: list[str]) -> None:
        if self.span is None:
            return
        text = "".join(self.text)
        elements.append(
            "{\n"
            + _bounds(self.bbox)
            + f',\n"Text": "{text}",\n'
            + f'"Font": {{ "family_name": "{self.span.font_name}" }},\n'
            + f'"TextSize": {self.span.ctm.font_size():g}'
            + structure_path(self.structure)
            + "\n}"
        )
        self.text = []
        self.bbox = rect_empty()

    def breaks_with(self, span: Span) -> bool:
        last = self.span
        return last is not None and (
            self.structure is not span.structure
            or last.font_bold != span.font_bold
            or last.font_italic != span.font_italic
            or last.wmode != span.wmode
            or last.font_name != span.font_name
        )


def _subpage_elements(subpage: Subpage, elements: list[str]) -> None:
    pending = _PendingText()
    for item in _walk(subpage.content):
        if isinstance(item, Span):
            if not item.chars:
                continue
            if pending.breaks_with(item):
                pending.flush(elements)
            chars = [char for char in item.chars if char.ucs not in _NO_CHAR]
            span_bbox = rect_empty()
            for char in chars:
                span_bbox = span_bbox.union(char.bbox)
            pending.span = item
            pending.structure = item.structure
            pending.text.extend(_xml_char(char.ucs) for char in chars)
            pending.bbox = pending.bbox.union(span_bbox)
        elif isinstance(item, Image):
            pending.flush(elements)
            pending.span = None
            elements.append(
                "{\n"
                + _bounds(image_rect(item))
                + ',\n"Image": true'
                + structure_path(pending.structure)
                + "\n}"
            )
    pending.flush(elements)


def document_to_json(document: Document) -> str:
    """Return the comma-separated JSON elements for every subpage."""
    elements: list[str] = []
    for subpage in document.iter_subpages():
        _subpage_elements(subpage, elements)
    return ",\n".join(elements)