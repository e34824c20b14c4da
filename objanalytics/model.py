"""2D detections and 3D localized objects, and helpers that relate them."""

from __future__ import annotations

import copy
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from .messages import (
    ObjectInBox,
    ObjectInBox3D,
    ObjectInfo,
    ObjectsInBoxes,
    ObjectsInBoxes3D,
    Point32,
    RegionOfInterest,
)
from .pointcloud import (
    PointCloud,
    copy_point_cloud,
    min_max_points_x,
    min_max_points_y,
    min_max_points_z,
    projected_roi,
)


def _num(value: float) -> str:
    return f"{value:g}"


@dataclass
class Object2D:
    """A detected object and its region in the image."""

    roi: RegionOfInterest = field(default_factory=RegionOfInterest)
    object: ObjectInfo = field(default_factory=ObjectInfo)

    @classmethod
    def from_message(cls, oib: ObjectInBox) -> Object2D:
        return cls(copy.copy(oib.roi), copy.copy(oib.object))

    def __str__(self) -> str:
        r = self.roi
        return (
            f"Object2D[{self.object.object_name}, @({r.x_offset}, {r.y_offset})"
            f", width={r.width}, height={r.height}]"
        )


@dataclass
class Object3D:
    """A localized object: its image region and its 3D bounding corners."""

    roi: RegionOfInterest = field(default_factory=RegionOfInterest)
    min: Point32 = field(default_factory=Point32)
    max: Point32 = field(default_factory=Point32)
    object: ObjectInfo = field(default_factory=ObjectInfo)

    @classmethod
    def from_cloud(cls, cloud: PointCloud, indices: Iterable[int]) -> Object3D:
        """Bound the points at ``indices`` and project them back onto the image."""
        seg = copy_point_cloud(cloud, indices)
        x_min, x_max = min_max_points_x(seg)
        y_min, y_max = min_max_points_y(seg)
        z_min, z_max = min_max_points_z(seg)
        return cls(
            roi=projected_roi(seg),
            min=Point32(x_min.x, y_min.y, z_min.z),
            max=Point32(x_max.x, y_max.y, z_max.z),
        )

    @classmethod
    def from_message(cls, msg: ObjectInBox3D) -> Object3D:
        return cls(
            copy.copy(msg.roi), copy.copy(msg.min), copy.copy(msg.max), copy.copy(msg.object)
        )

    def __str__(self) -> str:
        lo, hi, r = self.min, self.max, self.roi
        return (
            f"Object3D[min={_num(lo.x)},{_num(lo.y)},{_num(lo.z)}"
            f" max={_num(hi.x)},{_num(hi.y)},{_num(hi.z)}"
            f", roi={r.x_offset},{r.y_offset},{r.width},{r.height}]"
        )


def fill_2d_objects(objects_in_boxes: ObjectsInBoxes) -> list[Object2D]:
    return [Object2D.from_message(item) for item in objects_in_boxes.objects_vector]


def fill_3d_objects(objects_in_boxes3d: ObjectsInBoxes3D) -> list[Object3D]:
    return [Object3D.from_message(item) for item in objects_in_boxes3d.objects_in_boxes]


def find_max_intersection_relationships(
    objects2d: Sequence[Object2D], objects3d: Sequence[Object3D]
) -> list[tuple[Object2D, Object3D]]:
    """Pair 2D and 3D objects by position; no pairs when the counts differ."""
    if len(objects2d) != len(objects3d):
        return []
    return list(zip(objects2d, objects3d))