"""Axis-aligned rectangles and the rectangle match score."""

from __future__ import annotations

import math
from dataclasses import dataclass

_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1


def _divide(numerator: float, denominator: float) -> float:
    """Divide with floating-point semantics for a zero denominator."""
    if denominator == 0:
        if numerator == 0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)
    return numerator / denominator


def _to_int(value: float) -> int:
    if math.isnan(value):
        return 0
    if math.isinf(value):
        return _INT_MAX if value > 0 else _INT_MIN
    return max(_INT_MIN, min(_INT_MAX, round(value)))


@dataclass(frozen=True)
class Rect:
    """A rectangle given by its top-left corner, width and height."""

    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0

    @classmethod
    def from_roi(cls, roi) -> Rect:
        return cls(roi.x_offset, roi.y_offset, roi.width, roi.height)

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def area(self):
        return self.width * self.height

    def intersect(self, other: Rect) -> Rect:
        """Overlap of two rectangles; an empty rectangle if they do not overlap."""
        if self.is_empty() or other.is_empty():
            return Rect()
        x1 = max(self.x, other.x)
        y1 = max(self.y, other.y)
        width = min(self.x + self.width, other.x + other.width) - x1
        height = min(self.y + self.height, other.y + other.height) - y1
        if width <= 0 or height <= 0:
            return Rect()
        return Rect(x1, y1, width, height)

    def union(self, other: Rect) -> Rect:
        """Smallest rectangle holding both; an empty side yields the other."""
        if self.is_empty():
            return other
        if other.is_empty():
            return self
        x1 = min(self.x, other.x)
        y1 = min(self.y, other.y)
        width = max(self.x + self.width, other.x + other.width) - x1
        height = max(self.y + self.height, other.y + other.height) - y1
        return Rect(x1, y1, width, height)

    __and__ = intersect
    __or__ = union

    def to_int(self) -> Rect:
        """The rectangle with each field rounded to the nearest integer."""
        return Rect(_to_int(self.x), _to_int(self.y), _to_int(self.width), _to_int(self.height))

    def center(self) -> tuple[int, int]:
        """Integer pixel centre of the rounded rectangle."""
        r = self.to_int()
        return r.x + (r.width >> 1), r.y + (r.height >> 1)


def get_match(r1: Rect, r2: Rect) -> float:
    """Match score: overlap rate times 100 divided by the distance between centres."""
    a, b = r1.to_int(), r2.to_int()
    c1, c2 = a.center(), b.center()
    a1 = float(a.area())
    a2 = float(b.area())
    a0 = float(a.intersect(b).area())
    overlap = _divide(a0, a1 + a2 - a0)
    deviate = math.hypot(c1[0] - c2[0], c1[1] - c2[1])
    return _divide(overlap * 100, deviate)