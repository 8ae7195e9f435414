"""Points, rectangles and the affine matrices used to place glyphs on a page."""

from __future__ import annotations

import logging
import math
import sys
from dataclasses import dataclass

_log = logging.getLogger(__name__)

_BIG = sys.float_info.max


def _sign(value: float) -> int:
    if value < 0:
        return -1
    if value > 0:
        return 1
    return 0


@dataclass(frozen=True)
class Point:
    """A point in page space."""

    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class Rect:
    """An axis-aligned rectangle given by its minimum and maximum corners."""

    min: Point
    max: Point

    def union(self, other: Rect) -> Rect:
        """Return the smallest rectangle holding both rectangles."""
        return Rect(
            Point(min(self.min.x, other.min.x), min(self.min.y, other.min.y)),
            Point(max(self.max.x, other.max.x), max(self.max.y, other.max.y)),
        )

    def union_point(self, point: Point) -> Rect:
        """Return the smallest rectangle holding this rectangle and ``point``."""
        return Rect(
            Point(min(self.min.x, point.x), min(self.min.y, point.y)),
            Point(max(self.max.x, point.x), max(self.max.y, point.y)),
        )

    def describe(self) -> str:
        """Return a diagnostic string for the rectangle."""
        return (
            f"(({self.min.x:f} {self.min.y:f}) "
            f"({self.max.x:f} {self.max.y:f}))"
        )


def rect_infinite() -> Rect:
    """Return a rectangle that covers everything."""
    return Rect(Point(-_BIG, -_BIG), Point(_BIG, _BIG))


def rect_empty() -> Rect:
    """Return an inverted rectangle that any union replaces."""
    return Rect(Point(_BIG, _BIG), Point(-_BIG, -_BIG))


@dataclass(frozen=True)
class Matrix4:
    """The linear part of an affine transform: ``[[a, b], [c, d]]``."""

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0

    def transform(self, point: Point) -> Point:
        """Apply the matrix to ``point`` (no translation)."""
        return Point(
            self.a * point.x + self.c * point.y,
            self.b * point.x + self.d * point.y,
        )

    def invert(self) -> Matrix4:
        """Return the inverse, or the identity if the matrix is singular."""
        det = self.a * self.d - self.b * self.c
        if det == 0:
            _log.debug(
                "cannot invert ctm=(%f %f %f %f)", self.a, self.b, self.c, self.d
            )
            return Matrix4()
        return Matrix4(self.d / det, -self.b / det, -self.c / det, self.a / det)

    def expansion(self) -> float:
        """Return the square root of the absolute determinant."""
        return math.sqrt(abs(self.a * self.d - self.b * self.c))

    def multiply(self, other: Matrix4) -> Matrix4:
        """Return ``self`` followed by ``other``."""
        return Matrix4(
            self.a * other.a + self.b * other.c,
            self.a * other.b + self.b * other.d,
            self.c * other.a + self.d * other.c,
            self.c * other.b + self.d * other.d,
        )

    def compare(self, other: Matrix4) -> int:
        """Order matrices by a, b, c then d; returns -1, 0 or +1."""
        for lhs, rhs in (
            (self.a, other.a),
            (self.b, other.b),
            (self.c, other.c),
            (self.d, other.d),
        ):
            result = _sign(lhs - rhs)
            if result:
                return result
        return 0

    def baseline_angle(self) -> float:
        """Return the angle of the text baseline in radians."""
        return math.atan2(self.b, self.a)

    def font_size(self) -> float:
        """Return the scale of the matrix rounded to the nearest 0.01."""
        return int(self.expansion() * 100.0 + 0.5) / 100.0

    def describe(self) -> str:
        """Return a diagnostic string for the matrix."""
        return f"{{{self.a:f} {self.b:f} {self.c:f} {self.d:f}}}"


@dataclass(frozen=True)
class Matrix:
    """A full affine transform with translation ``e``, ``f``."""

    a: float = 1.0
    b: float = 0.0
    c: float = 0.0
    d: float = 1.0
    e: float = 0.0
    f: float = 0.0

    def multiply(self, other: Matrix) -> Matrix:
        """Return ``self`` followed by ``other``."""
        return Matrix(
            self.a * other.a + self.b * other.c,
            self.a * other.b + self.b * other.d,
            self.c * other.a + self.d * other.c,
            self.c * other.b + self.d * other.d,
            self.e * other.a + self.f * other.c + other.e,
            self.e * other.b + self.f * other.d + other.f,
        )

    def transform(self, x: float, y: float) -> Point:
        """Map ``(x, y)`` the way path coordinates are mapped onto the page."""
        return Point(
            self.a * x + self.b * y + self.e,
            self.c * x + self.d * y + self.f,
        )

    def describe(self) -> str:
        """Return a diagnostic string for the matrix."""
        return (
            f"{{{self.a:f} {self.b:f} {self.c:f} "
            f"{self.d:f} {self.e:f} {self.f:f}}}"
        )