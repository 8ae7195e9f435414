"""The document model: characters, spans, lines, paragraphs, tables and pages."""

from __future__ import annotations

import enum
import logging
import math
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Optional, Union

from docextract.geometry import Matrix4, Point, Rect, rect_empty

_log = logging.getLogger(__name__)


class StructType(enum.IntEnum):
    """Kinds of structure element that can enclose content."""

    INVALID = -1
    UNDEFINED = 0
    DOCUMENT = enum.auto()
    PART = enum.auto()
    ART = enum.auto()
    SECT = enum.auto()
    DIV = enum.auto()
    BLOCKQUOTE = enum.auto()
    CAPTION = enum.auto()
    TOC = enum.auto()
    TOCI = enum.auto()
    INDEX = enum.auto()
    NONSTRUCT = enum.auto()
    PRIVATE = enum.auto()
    DOCUMENTFRAGMENT = enum.auto()
    ASIDE = enum.auto()
    TITLE = enum.auto()
    FENOTE = enum.auto()
    SUB = enum.auto()
    P = enum.auto()
    H = enum.auto()
    H1 = enum.auto()
    H2 = enum.auto()
    H3 = enum.auto()
    H4 = enum.auto()
    H5 = enum.auto()
    H6 = enum.auto()
    LIST = enum.auto()
    LISTITEM = enum.auto()
    LABEL = enum.auto()
    LISTBODY = enum.auto()
    TABLE = enum.auto()
    TR = enum.auto()
    TH = enum.auto()
    TD = enum.auto()
    THEAD = enum.auto()
    TBODY = enum.auto()
    TFOOT = enum.auto()
    SPAN = enum.auto()
    QUOTE = enum.auto()
    NOTE = enum.auto()
    REFERENCE = enum.auto()
    BIBENTRY = enum.auto()
    CODE = enum.auto()
    LINK = enum.auto()
    ANNOT = enum.auto()
    EM = enum.auto()
    STRONG = enum.auto()
    RUBY = enum.auto()
    RB = enum.auto()
    RT = enum.auto()
    RP = enum.auto()
    WARICHU = enum.auto()
    WT = enum.auto()
    WP = enum.auto()
    FIGURE = enum.auto()
    FORMULA = enum.auto()
    FORM = enum.auto()
    ARTIFACT = enum.auto()
    ABSTRACT = enum.auto()
    EQUATION = enum.auto()
    AUTHOR = enum.auto()
    DATE = enum.auto()
    COLUMN = enum.auto()
    ROW = enum.auto()
    COLUMN_HEADER = enum.auto()
    PROJECTED_ROW_HEADER = enum.auto()
    SPANNING_CELL = enum.auto()


class ParagraphFlag(enum.IntFlag):
    """Observations about how the lines of a paragraph are laid out."""

    NONE = 0
    NOT_ALIGNED_LEFT = 1
    NOT_ALIGNED_RIGHT = 2
    NOT_CENTRED = 4
    NOT_FULLY_JUSTIFIED = 8
    BREAKS_STRANGELY = 16


@dataclass
class Structure:
    """A node in the tree of structure elements."""

    type: StructType
    uid: int = 0
    score: int = 0
    parent: Optional[Structure] = field(default=None, repr=False)
    children: list[Structure] = field(default_factory=list, repr=False)

    def path(self) -> str:
        """Return the backslash-separated path from the root to this node."""
        parts = []
        node: Optional[Structure] = self
        while node is not None:
            name = StructType(node.type).name
            parts.append(f"{name}[{node.uid}]" if node.uid != 0 else name)
            node = node.parent
        return "\\".join(reversed(parts))


@dataclass
class Char:
    """One glyph: its origin, unicode value, advance and bounding box."""

    x: float = 0.0
    y: float = 0.0
    ucs: int = 0
    adv: float = 0.0
    bbox: Rect = field(default_factory=rect_empty)


@dataclass(eq=False)
class Span:
    """A run of characters sharing one font and transform."""

    font_name: str = ""
    ctm: Matrix4 = field(default_factory=Matrix4)
    font_bold: bool = False
    font_italic: bool = False
    wmode: int = 0
    font_bbox: Rect = field(default_factory=rect_empty)
    chars: list[Char] = field(default_factory=list)
    structure: Optional[Structure] = None

    def append_char(self, ucs: int) -> Char:
        """Append a new character with value ``ucs`` and return it."""
        char = Char(ucs=ucs)
        self.chars.append(char)
        return char

    def first_char(self) -> Char:
        """Return the first character; the span must not be empty."""
        if not self.chars:
            raise IndexError("span has no characters")
        return self.chars[0]

    def last_char(self) -> Char:
        """Return the last character; the span must not be empty."""
        if not self.chars:
            raise IndexError("span has no characters")
        return self.chars[-1]

    def last_char_with_advance(self) -> Optional[Char]:
        """Return the last character with a non-zero advance, if any."""
        for char in reversed(self.chars):
            if char.adv != 0:
                return char
        return None

    def predicted_end_of_char(self, char: Char) -> Point:
        """Return where ``char`` ends once its advance is applied."""
        direction = Point(char.adv * (1 - self.wmode), char.adv * self.wmode)
        moved = self.ctm.transform(direction)
        return Point(moved.x + char.x, moved.y + char.y)

    def end_point(self) -> Point:
        """Return the predicted end of the last character."""
        return self.predicted_end_of_char(self.last_char())

    def rect(self) -> Rect:
        """Return the union of the characters' bounding boxes."""
        result = rect_empty()
        for char in self.chars:
            result = result.union(char.bbox)
        return result

    def describe(self) -> str:
        """Return a diagnostic string for the span."""
        c0 = c1 = 0
        x0 = y0 = x1 = y1 = 0.0
        if self.chars:
            first, last = self.chars[0], self.chars[-1]
            c0, x0, y0 = first.ucs, first.x, first.y
            c1, x1, y1 = last.ucs, last.x, last.y
        count = len(self.chars)
        parts = [
            f"span ctm={self.ctm.describe()} chars_num={count} "
            f"({chr(c0)}:{x0:f},{y0:f})..({chr(c1)}:{x1:f},{y1:f}) "
            f"font={self.font_name}:({self.ctm.font_size():f}) "
            f"wmode={self.wmode} chars_num={count}: "
        ]
        parts.extend(
            f" i={i} {{x={char.x:f} y={char.y:f} ucs={char.ucs} adv={char.adv:f}}}"
            for i, char in enumerate(self.chars)
        )
        text = "".join(chr(char.ucs) for char in self.chars)
        parts.append(f': "{text}"')
        return "".join(parts)


@dataclass(eq=False)
class Line:
    """Spans that lie on one baseline."""

    spans: list[Span] = field(default_factory=list)
    ascender: float = 0.0
    descender: float = 0.0

    def first_span(self) -> Span:
        """Return the first span; the line must not be empty."""
        if not self.spans:
            raise IndexError("line has no spans")
        return self.spans[0]

    def last_span(self) -> Span:
        """Return the last span; the line must not be empty."""
        if not self.spans:
            raise IndexError("line has no spans")
        return self.spans[-1]


@dataclass(eq=False)
class Paragraph:
    """Lines that belong together."""

    lines: list[Line] = field(default_factory=list)
    line_flags: ParagraphFlag = ParagraphFlag.NONE

    def first_line(self) -> Line:
        """Return the first line; the paragraph must not be empty."""
        if not self.lines:
            raise IndexError("paragraph has no lines")
        return self.lines[0]

    def last_line(self) -> Line:
        """Return the last line; the paragraph must not be empty."""
        if not self.lines:
            raise IndexError("paragraph has no lines")
        return self.lines[-1]

    def iter_spans(self) -> Iterator[Span]:
        """Yield every span of every line in order."""
        for line in self.lines:
            yield from line.spans


@dataclass(eq=False)
class Block:
    """A run of paragraphs that share one rotation."""

    paragraphs: list[Paragraph] = field(default_factory=list)

    def pre_rotation_bounds(self, angle: float) -> Rect:
        """Return the unrotated box that, rotated about its centre by ``angle``,
        covers the block, with its height doubled downwards for safety."""
        cos_a, sin_a = math.cos(angle), math.sin(angle)
        unrotate = Matrix4(cos_a, -sin_a, sin_a, cos_a)
        rotate = Matrix4(cos_a, sin_a, -sin_a, cos_a)

        box = rect_empty()
        for paragraph in self.paragraphs:
            for line in paragraph.lines:
                span0 = line.first_span()
                span1 = line.last_span()
                first = span0.first_char()
                start = unrotate.transform(Point(first.x, first.y))
                end = unrotate.transform(span1.end_point())
                bottom = span0.font_bbox.min.y if span0.font_bbox.min.y < 0 else 0
                hoff = span0.font_bbox.max.y - bottom
                hoff *= math.sqrt(span0.ctm.c ** 2 + span0.ctm.d ** 2)
                if start.y < end.y:
                    start = Point(start.x, start.y - hoff)
                else:
                    end = Point(end.x, end.y - hoff)
                box = box.union_point(start).union_point(end)

        centre = Point((box.min.x + box.max.x) / 2, (box.min.y + box.max.y) / 2)
        trans_centre = rotate.transform(centre)
        dx = centre.x - trans_centre.x
        dy = centre.y - trans_centre.y
        min_x, min_y = box.min.x - dx, box.min.y - dy
        max_x, max_y = box.max.x - dx, box.max.y - dy

        extra = max_y - min_y
        offset = Point(0.0, extra / 2)
        max_y += extra
        toffset = rotate.transform(offset)
        shift_x = toffset.x - offset.x
        shift_y = toffset.y - offset.y
        return Rect(
            Point(min_x + shift_x, min_y + shift_y),
            Point(max_x + shift_x, max_y + shift_y),
        )


@dataclass(eq=False)
class Image:
    """An image placed on a page, with its encoded data."""

    type: str = ""
    a: float = 0.0
    b: float = 0.0
    c: float = 0.0
    d: float = 0.0
    x: float = 0.0
    y: float = 0.0
    w: float = 0.0
    h: float = 0.0
    data: bytes = b""
    id: str = ""
    name: str = ""
    structure: Optional[Structure] = None


ContentItem = Union[Span, Line, Paragraph, Block, Image]


@dataclass(eq=False)
class Cell:
    """One cell of a table and the content found inside it."""

    rect: Rect = field(default_factory=lambda: Rect(Point(), Point()))
    above: bool = False
    left: bool = False
    extend_right: int = 0
    extend_down: int = 0
    content: list = field(default_factory=list)


@dataclass(eq=False)
class Table:
    """A grid of cells stored row by row."""

    pos: Point = field(default_factory=Point)
    cells: list[Cell] = field(default_factory=list)
    cells_num_x: int = 0
    cells_num_y: int = 0

    def cell(self, x: int, y: int) -> Cell:
        """Return the cell in column ``x`` and row ``y``."""
        if not (0 <= x < self.cells_num_x and 0 <= y < self.cells_num_y):
            raise IndexError(f"cell ({x}, {y}) outside table")
        return self.cells[y * self.cells_num_x + x]


@dataclass
class TableLine:
    """A thin filled or stroked rectangle that may divide table cells."""

    rect: Rect
    color: float = 0.0


@dataclass(eq=False)
class Subpage:
    """A region of a page with its own content, tables and ruling lines."""

    mediabox: Rect = field(default_factory=rect_empty)
    content: list = field(default_factory=list)
    tables: list[Table] = field(default_factory=list)
    tablelines_horizontal: list[TableLine] = field(default_factory=list)
    tablelines_vertical: list[TableLine] = field(default_factory=list)
    images_num: int = 0


@dataclass(eq=False)
class Page:
    """A page made of one or more subpages."""

    mediabox: Rect = field(default_factory=rect_empty)
    subpages: list[Subpage] = field(default_factory=list)
    split: object = None


@dataclass(eq=False)
class Document:
    """All pages plus the structure tree being built."""

    pages: list[Page] = field(default_factory=list)
    structure: Optional[Structure] = None
    current: Optional[Structure] = None

    def begin_struct(self, type: StructType, uid: int, score: int) -> Structure:
        """Open a structure element inside the current one and make it current."""
        structure = Structure(type=type, uid=uid, score=score, parent=self.current)
        if self.current is None:
            self.structure = structure
        else:
            self.current.children.append(structure)
        self.current = structure
        return structure

    def end_struct(self) -> None:
        """Close the current structure element."""
        if self.current is None:
            _log.warning("Unbalanced end struct!")
            return
        self.current = self.current.parent

    def iter_subpages(self) -> Iterator[Subpage]:
        """Yield every subpage of every page in order."""
        for page in self.pages:
            yield from page.subpages