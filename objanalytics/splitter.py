"""Splitting a coloured point cloud into an image and a geometry-only cloud."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any

from .messages import Header
from .pointcloud import Point, PointCloud


@dataclass
class Image:
    """A raw image: rows of ``step`` bytes in the given encoding."""

    header: Header = field(default_factory=Header)
    height: int = 0
    width: int = 0
    encoding: str = ""
    is_bigendian: bool = False
    step: int = 0
    data: bytes = b""


def _header_of(cloud: Any) -> Header:
    header = getattr(cloud, "header", None)
    return copy.deepcopy(header) if header is not None else Header()


def split(cloud: Any) -> Image:
    """The colour plane of an organized cloud as a ``bgr8`` image.

    ``cloud`` has ``points`` carrying ``r``, ``g`` and ``b``, a ``width`` and a
    ``height``, and optionally a ``header`` and ``is_bigendian``.
    """
    width, height = cloud.width, cloud.height
    if width == 0 and height == 0:
        raise ValueError("Needs to be a dense like cloud")
    points = list(cloud.points)
    if len(points) != width * height:
        raise ValueError("The width and height do not match the cloud size")
    data = bytearray()
    for p in points:
        try:
            data += bytes((p.b, p.g, p.r))
        except AttributeError:
            raise ValueError("No rgb field") from None
    return Image(
        header=_header_of(cloud),
        height=height,
        width=width,
        encoding="bgr8",
        is_bigendian=bool(getattr(cloud, "is_bigendian", False)),
        step=width * 3,
        data=bytes(data),
    )


def split_points_to_xyz(cloud: Any) -> PointCloud:
    """The coordinates of an organized cloud, keeping its shape."""
    width, height = cloud.width, cloud.height
    points = list(cloud.points)
    count = width * height
    if len(points) < count:
        raise ValueError("The width and height do not match the cloud size")
    return PointCloud(
        [Point(p.x, p.y, p.z) for p in points[:count]], width=width, height=height
    )