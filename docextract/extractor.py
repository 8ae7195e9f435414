"""The extraction session: collects pages, spans, images and ruling lines,
joins them into paragraphs and tables, and writes the result."""

from __future__ import annotations

import enum
import io
import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import Optional, Union

from docextract.analysis import join_content
from docextract.document import (
    Document,
    Image,
    Page,
    Span,
    StructType,
    Structure,
    Subpage,
    TableLine,
)
from docextract.geometry import Matrix, Point, Rect
from docextract.json_output import document_to_json
from docextract.tables import find_tables
from docextract.text_output import document_to_text, table_to_csv

_log = logging.getLogger(__name__)

_SPACE = 0x20
_FIRST_IMAGE_NUMBER = 10


class OutputFormat(enum.Enum):
    """Formats the extractor can produce."""

    TEXT = "text"
    JSON = "json"


def _div(num: float, den: float) -> float:
    """Divide with IEEE semantics instead of raising on a zero divisor."""
    if den == 0:
        if num == 0 or math.isnan(num):
            return math.nan
        return math.copysign(math.inf, num)
    return num / den


def _as_point(value: Union[Point, Iterable[float]]) -> Point:
    if isinstance(value, Point):
        return value
    x, y = value
    return Point(float(x), float(y))


def join_document(document: Document, space_guess: float) -> Document:
    """Find tables and join spans into lines and paragraphs on every subpage."""
    for page_no, page in enumerate(document.pages):
        for sub_no, subpage in enumerate(page.subpages):
            _log.debug("processing page %i, subpage %i", page_no, sub_no)
            # Tables first, so text inside them is not also output as paragraphs.
            find_tables(subpage, space_guess)
            subpage.content = join_content(subpage.content, space_guess)
    return document


@dataclass
class _Fill:
    ctm: Matrix
    color: float
    # None once the path has shown it is not a simple four-point shape.
    points: Optional[list[Point]] = field(default_factory=list)


@dataclass
class _Stroke:
    ctm: Matrix
    color: float
    width: float
    point0: Optional[Point] = None
    point: Optional[Point] = None


class Extractor:
    """Receives page content piece by piece and turns it into structured output."""

    def __init__(
        self,
        format: Union[OutputFormat, str] = OutputFormat.TEXT,
        space_guess: float = 0.5,
        tables_csv_format: Optional[str] = None,
    ) -> None:
        try:
            self.format = OutputFormat(format)
        except ValueError:
            raise ValueError(f"Invalid format={format!r}") from None
        self.space_guess = space_guess
        self.tables_csv_format = tables_csv_format
        self.tables_csv_i = 0
        self.document = Document()
        self.contents: list[str] = []
        self.images: list[Image] = []
        self.imagetypes: list[str] = []
        self.num_spans_autosplit = 0
        self._image_n = _FIRST_IMAGE_NUMBER
        self._path: Union[_Fill, _Stroke, None] = None

    # Pages -----------------------------------------------------------------

    def _page(self) -> Page:
        if not self.document.pages:
            raise RuntimeError("no page has been started")
        return self.document.pages[-1]

    def _subpage(self) -> Subpage:
        return self._page().subpages[-1]

    def page_begin(self, x0: float, y0: float, x1: float, y1: float) -> Page:
        """Start a new page with the given media box."""
        mediabox = Rect(Point(x0, y0), Point(x1, y1))
        page = Page(mediabox=mediabox, subpages=[Subpage(mediabox=mediabox)])
        self.document.pages.append(page)
        return page

    def page_end(self) -> None:
        """Finish the current page."""
        self._page()

    # Text ------------------------------------------------------------------

    def span_begin(
        self,
        font_name: str,
        font_bold: bool,
        font_italic: bool,
        wmode: int,
        ctm_a: float,
        ctm_b: float,
        ctm_c: float,
        ctm_d: float,
        bbox_x0: float,
        bbox_y0: float,
        bbox_x1: float,
        bbox_y1: float,
    ) -> Span:
        """Start a new span of characters in one font and transform."""
        subpage = self._subpage()
        _, plus, rest = font_name.partition("+")
        span = Span(
            font_name=rest if plus else font_name,
            ctm=_matrix4(ctm_a, ctm_b, ctm_c, ctm_d),
            font_bold=bool(font_bold),
            font_italic=bool(font_italic),
            wmode=1 if wmode else 0,
            font_bbox=Rect(Point(bbox_x0, bbox_y0), Point(bbox_x1, bbox_y1)),
            structure=self.document.current,
        )
        subpage.content.append(span)
        return span

    @staticmethod
    def _last_span(content: list) -> Span:
        for item in reversed(content):
            if isinstance(item, Span):
                return item
        raise RuntimeError("no span has been started")

    @staticmethod
    def _previous_non_space_char(content: list) -> tuple[Optional[Span], int, bool]:
        """Return the last non-space character's span and index, unless a span
        starts with a space, in which case that one is taken; also whether
        spaces were skipped on the way."""
        intervening_space = False
        for item in reversed(content):
            if not isinstance(item, Span):
                continue
            for index in range(len(item.chars) - 1, -1, -1):
                if item.chars[index].ucs != _SPACE or index == 0:
                    return item, index, intervening_space
                intervening_space = True
        return None, 0, intervening_space

    def add_char(
        self,
        x: float,
        y: float,
        ucs: int,
        adv: float,
        x0: float,
        y0: float,
        x1: float,
        y1: float,
    ):
        """Add a character to the current span, splitting the span or adding
        or removing spaces where the position suggests it."""
        content = self._subpage().content
        span = self._last_span(content)
        ctm = span.ctm
        if span.wmode:
            direction = Point(0.0, 1.0)
            scale_squared = ctm.c * ctm.c + ctm.d * ctm.d
        else:
            direction = Point(1.0, 0.0)
            scale_squared = ctm.a * ctm.a + ctm.b * ctm.b
        direction = ctm.transform(direction)

        span0, index0, intervening_space = self._previous_non_space_char(content)
        # Spans do not continue across structure elements.
        if span0 is not None and span0.structure is not self.document.current:
            span0 = None

        if span0 is not None:
            char_prev = span0.chars[index0]
            predicted = span0.predicted_end_of_char(char_prev)
            # A space is usually between a half and a whole character wide.
            space_guess = (char_prev.adv + adv) / 2 * self.space_guess
            dx = x - predicted.x
            dy = y - predicted.y
            dist = _div(dx * direction.x + dy * direction.y, scale_squared)
            perp = _div(dx * direction.y - dy * direction.x, scale_squared)

            if abs(perp) > 3 * space_guess / 2 or abs(dist) > space_guess * 4:
                if span.chars:
                    self.num_spans_autosplit += 1
                    span = replace(span, chars=[])
                    content.append(span)
            elif intervening_space:
                # A space whose room is not used is a stray one: drop it.
                if dist < space_guess / 3:
                    if span.chars:
                        span.chars.pop()
                    else:
                        self._drop_trailing_space(content, span)
            elif dist > 2 * space_guess / 3:
                space = span.append_char(_SPACE)
                space.x = predicted.x
                space.y = predicted.y

        char = span.append_char(ucs)
        char.x = x
        char.y = y
        char.adv = adv
        char.bbox = Rect(Point(x0, y0), Point(x1, y1))
        return char

    @staticmethod
    def _drop_trailing_space(content: list, span: Span) -> None:
        position = next(i for i, item in enumerate(content) if item is span)
        for item in reversed(content[:position]):
            if isinstance(item, Span):
                if item.chars:
                    item.chars.pop()
                if not item.chars:
                    content.remove(item)
                return

    def span_end(self) -> None:
        """Finish the current span, discarding it if it holds no characters."""
        content = self._subpage().content
        span = self._last_span(content)
        if not span.chars:
            content.remove(span)

    # Images ----------------------------------------------------------------

    def add_image(
        self,
        type: str,
        a: float,
        b: float,
        c: float,
        d: float,
        x: float,
        y: float,
        w: float,
        h: float,
        data: bytes,
    ) -> Image:
        """Place an image of the given type on the current page."""
        subpage = self._subpage()
        self._image_n += 1
        image = Image(
            type=type,
            a=a,
            b=b,
            c=c,
            d=d,
            x=x,
            y=y,
            w=w,
            h=h,
            data=bytes(data),
            id=f"rId{self._image_n}",
            name=f"image{self._image_n}.{type}",
        )
        subpage.content.append(image)
        subpage.images_num += 1
        return image

    # Ruling lines ----------------------------------------------------------

    def add_path4(
        self,
        ctm: Matrix,
        points: Iterable[Union[Point, Iterable[float]]],
        color: float,
    ) -> Optional[TableLine]:
        """Record a filled four-point path if it is a thin axis-aligned rectangle."""
        subpage = self._subpage()
        pts = [ctm.transform(p.x, p.y) for p in map(_as_point, points)]
        if len(pts) != 4:
            raise ValueError(f"expected four points, got {len(pts)}")

        for i in range(4):
            if pts[(i + 1) % 4].x > pts[i].x:
                break
        else:
            return None
        min_x = pts[i].x
        max_x = pts[(i + 1) % 4].x
        if pts[(i + 2) % 4].x != max_x or pts[(i + 3) % 4].x != min_x:
            return None
        y0 = pts[(i + 1) % 4].y
        y1 = pts[(i + 2) % 4].y
        if y0 == y1:
            return None
        if pts[(i + 3) % 4].y != y1 or pts[i].y != y0:
            return None
        rect = Rect(Point(min_x, min(y0, y1)), Point(max_x, max(y0, y1)))

        dx = rect.max.x - rect.min.x
        dy = rect.max.y - rect.min.y
        line = TableLine(rect=rect, color=float(color))
        if dx / dy > 5:
            _log.debug("have found horizontal line: %s", rect.describe())
            subpage.tablelines_horizontal.append(line)
            return line
        if dy / dx > 5:
            _log.debug("have found vertical line: %s", rect.describe())
            subpage.tablelines_vertical.append(line)
            return line
        return None

    def add_line(
        self,
        ctm: Matrix,
        width: float,
        x0: float,
        y0: float,
        x1: float,
        y1: float,
        color: float,
    ) -> Optional[TableLine]:
        """Record a stroked segment if it is horizontal or vertical."""
        subpage = self._subpage()
        p0 = ctm.transform(x0, y0)
        p1 = ctm.transform(x1, y1)
        half = width * math.sqrt(abs(ctm.a * ctm.d - ctm.b * ctm.c)) / 2
        min_x, max_x = min(p0.x, p1.x), max(p0.x, p1.x)
        min_y, max_y = min(p0.y, p1.y), max(p0.y, p1.y)

        if min_x == max_x and min_y == max_y:
            return None
        if min_x == max_x:
            rect = Rect(Point(min_x - half, min_y), Point(max_x + half, max_y))
            line = TableLine(rect=rect, color=float(color))
            subpage.tablelines_vertical.append(line)
            return line
        if min_y == max_y:
            rect = Rect(Point(min_x, min_y - half), Point(max_x, max_y + half))
            line = TableLine(rect=rect, color=float(color))
            subpage.tablelines_horizontal.append(line)
            return line
        return None

    def fill_begin(self, ctm: Matrix, color: float) -> None:
        """Start a filled path."""
        if self._path is not None:
            raise RuntimeError("a path is already open")
        self._path = _Fill(ctm=ctm, color=color)

    def stroke_begin(self, ctm: Matrix, line_width: float, color: float) -> None:
        """Start a stroked path."""
        if self._path is not None:
            raise RuntimeError("a path is already open")
        self._path = _Stroke(ctm=ctm, color=color, width=line_width)

    def moveto(self, x: float, y: float) -> None:
        """Move the current point of the open path."""
        path = self._path
        if isinstance(path, _Fill):
            if path.points is None:
                return
            if path.points:
                path.points = None
                return
            path.points.append(Point(x, y))
        elif isinstance(path, _Stroke):
            path.point = Point(x, y)
            if path.point0 is None:
                path.point0 = path.point
        else:
            raise RuntimeError("no path is open")

    def lineto(self, x: float, y: float) -> None:
        """Draw a segment to ``(x, y)`` in the open path."""
        path = self._path
        if isinstance(path, _Fill):
            if path.points is None:
                return
            if not path.points or len(path.points) >= 4:
                path.points = None
                return
            path.points.append(Point(x, y))
        elif isinstance(path, _Stroke):
            if path.point is not None:
                self.add_line(
                    path.ctm, path.width, path.point.x, path.point.y, x, y, path.color
                )
            path.point = Point(x, y)
            if path.point0 is None:
                path.point0 = path.point
        else:
            raise RuntimeError("no path is open")

    def closepath(self) -> None:
        """Close the current subpath of the open path."""
        path = self._path
        if isinstance(path, _Fill):
            if path.points is not None and len(path.points) == 4:
                # A closed four-point fill may be a thin rectangle in a table.
                self.add_path4(path.ctm, path.points, path.color)
            path.points = []
        elif isinstance(path, _Stroke):
            if path.point0 is not None and path.point is not None:
                self.add_line(
                    path.ctm,
                    path.width,
                    path.point.x,
                    path.point.y,
                    path.point0.x,
                    path.point0.y,
                    path.color,
                )
                return
            path.point = path.point0
        else:
            raise RuntimeError("no path is open")

    def fill_end(self) -> None:
        """Finish the filled path."""
        if not isinstance(self._path, _Fill):
            raise RuntimeError("no filled path is open")
        self._path = None

    def stroke_end(self) -> None:
        """Finish the stroked path."""
        if not isinstance(self._path, _Stroke):
            raise RuntimeError("no stroked path is open")
        self._path = None

    # Structure -------------------------------------------------------------

    def begin_struct(self, type: Union[StructType, int], uid: int, score: int) -> Structure:
        """Open a structure element; new spans belong to it."""
        return self.document.begin_struct(StructType(type), uid, score)

    def end_struct(self) -> None:
        """Close the current structure element."""
        self.document.end_struct()

    def classify_region(self, x0: float, y0: float, x1: float, y1: float) -> None:
        """Assign the current structure to spans mostly inside the region."""
        structure = self.document.current
        for subpage in self._page().subpages:
            _classify(subpage.content, structure, x0, y0, x1, y1)

    # Output ----------------------------------------------------------------

    def process(self) -> str:
        """Join the pages gathered so far, render them, and start afresh.

        Returns the content rendered for these pages.
        """
        join_document(self.document, self.space_guess)
        if self.format is OutputFormat.JSON:
            text = document_to_json(self.document)
        else:
            text = document_to_text(self.document)
        self.contents.append(text)
        self._collect_images()
        if self.tables_csv_format:
            self._write_tables_csv()
        self.document.pages = []
        return text

    def _collect_images(self) -> None:
        for subpage in self.document.iter_subpages():
            images = [item for item in subpage.content if isinstance(item, Image)]
            subpage.content = [item for item in subpage.content if not isinstance(item, Image)]
            for image in images:
                self.images.append(image)
                if image.type not in self.imagetypes:
                    self.imagetypes.append(image.type)

    def _write_tables_csv(self) -> None:
        for subpage in self.document.iter_subpages():
            for table in subpage.tables:
                path = self.tables_csv_format % self.tables_csv_i
                self.tables_csv_i += 1
                _log.debug("Writing table to: %s", path)
                try:
                    with open(path, "w", encoding="utf-8", newline="") as handle:
                        handle.write(table_to_csv(table))
                except OSError as error:
                    _log.warning("cannot write table to %s: %s", path, error)
                    return

    def write(self, stream) -> None:
        """Write the complete output document to ``stream``."""
        if self.format is OutputFormat.JSON:
            parts = ['{\n"elements" : [\n']
            first = True
            for content in self.contents:
                if not first:
                    parts.append(",\n")
                if content:
                    first = False
                parts.append(content)
            parts.append("]\n\n}\n")
            _emit(stream, "".join(parts))
        else:
            _emit(stream, "".join(self.contents))

    def write_content(self, stream) -> None:
        """Write the rendered content alone, without any enclosing document."""
        _emit(stream, "".join(self.contents))


def _matrix4(a: float, b: float, c: float, d: float):
    from docextract.geometry import Matrix4

    return Matrix4(a, b, c, d)


def _emit(stream, text: str) -> None:
    if isinstance(stream, (io.RawIOBase, io.BufferedIOBase)):
        stream.write(text.encode("utf-8"))
    else:
        stream.write(text)


def _classify(
    content: list,
    structure: Optional[Structure],
    x0: float,
    y0: float,
    x1: float,
    y1: float,
) -> None:
    from docextract.document import Paragraph

    for item in content:
        if isinstance(item, Paragraph):
            _classify(item.lines, structure, x0, y0, x1, y1)
        elif isinstance(item, Span):
            rect = item.rect()
            ix0 = max(rect.min.x, x0)
            iy0 = max(rect.min.y, y0)
            ix1 = min(rect.max.x, x1)
            iy1 = min(rect.max.y, y1)
            if ix0 < ix1 and iy0 < iy1:
                inner = (ix1 - ix0) * (iy1 - iy0)
                area = (rect.max.x - rect.min.x) * (rect.max.y - rect.min.y)
                if inner / area > 0.8:
                    item.structure = structure