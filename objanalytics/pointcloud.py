"""Point clouds and the per-axis and pixel-projection queries over them."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import TypeVar

import numpy as np

from .messages import RegionOfInterest


@dataclass(frozen=True)
class Point:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @property
    def xyz(self) -> tuple[float, float, float]:
        return self.x, self.y, self.z


@dataclass(frozen=True)
class PixelPoint:
    """A point carrying the pixel it came from in an organized cloud."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    pixel_x: int = 0
    pixel_y: int = 0

    @property
    def xyz(self) -> tuple[float, float, float]:
        return self.x, self.y, self.z


@dataclass
class PointCloud:
    """Points stored row by row; ``width`` is the row length of an organized cloud."""

    points: list[Point] = field(default_factory=list)
    width: int | None = None
    height: int = 1

    def __post_init__(self) -> None:
        self.points = list(self.points)
        if self.width is None:
            self.width = len(self.points)

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self) -> Iterator[Point]:
        return iter(self.points)

    def __getitem__(self, index: int) -> Point:
        return self.points[index]

    def select(self, indices: Iterable[int]) -> PointCloud:
        """A flat cloud holding the points at ``indices``, in that order."""
        chosen = [self.points[i] for i in indices]
        return PointCloud(chosen, width=len(chosen), height=1)

    def to_array(self) -> np.ndarray:
        """The coordinates as an N x 3 float array."""
        return np.array([p.xyz for p in self.points], dtype=float).reshape(-1, 3)


def copy_point_cloud(cloud: PointCloud, indices: Iterable[int]) -> list[PixelPoint]:
    """Copy the points at ``indices``, tagging each with its pixel position."""
    width = cloud.width
    if not width:
        raise ValueError("point cloud has no width")
    return [
        PixelPoint(p.x, p.y, p.z, idx % width, idx // width)
        for idx in indices
        for p in (cloud.points[idx],)
    ]


_P = TypeVar("_P")


def _min_max(points: Iterable[_P], key: Callable[[_P], float]) -> tuple[_P, _P]:
    """First smallest and last largest element by ``key``."""
    it = iter(points)
    try:
        lo = hi = next(it)
    except StopIteration:
        raise ValueError("point set is empty") from None
    lo_key = hi_key = key(lo)
    for p in it:
        k = key(p)
        if k < lo_key:
            lo, lo_key = p, k
        if not k < hi_key:
            hi, hi_key = p, k
    return lo, hi


def min_max_points_x(points: Iterable[_P]) -> tuple[_P, _P]:
    return _min_max(points, lambda p: p.x)


def min_max_points_y(points: Iterable[_P]) -> tuple[_P, _P]:
    return _min_max(points, lambda p: p.y)


def min_max_points_z(points: Iterable[_P]) -> tuple[_P, _P]:
    return _min_max(points, lambda p: p.z)


def projected_roi(points: Sequence[PixelPoint]) -> RegionOfInterest:
    """Bounding box of the pixel positions; width and height are max minus min."""
    lo_x, hi_x = _min_max(points, lambda p: p.pixel_x)
    lo_y, hi_y = _min_max(points, lambda p: p.pixel_y)
    return RegionOfInterest(
        x_offset=lo_x.pixel_x,
        y_offset=lo_y.pixel_y,
        width=hi_x.pixel_x - lo_x.pixel_x,
        height=hi_y.pixel_y - lo_y.pixel_y,
    )