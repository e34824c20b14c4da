"""Message types exchanged between the analytics stages, and their topic names."""

from __future__ import annotations

from dataclasses import dataclass, field

_NANOS_PER_SECOND = 1_000_000_000


class Topics:
    """Topic names used by the analytics pipeline."""

    REGISTERED_PC2 = "/object_analytics/registered_points"
    PC2 = "/object_analytics/pointcloud"
    SEGMENTATION = "/object_analytics/segmentation"
    RGB = "/object_analytics/rgb"
    DETECTION = "/object_analytics/detected_objects"
    LOCALIZATION = "/object_analytics/localization"
    TRACKING = "/object_analytics/tracking"


@dataclass(frozen=True, order=True)
class Time:
    """A timestamp made of whole seconds and nanoseconds; ordered by (sec, nanosec)."""

    sec: int = 0
    nanosec: int = 0

    @property
    def nanoseconds(self) -> int:
        return self.sec * _NANOS_PER_SECOND + self.nanosec

    @classmethod
    def from_nanoseconds(cls, nanoseconds: int) -> Time:
        sec, nanosec = divmod(nanoseconds, _NANOS_PER_SECOND)
        return cls(sec, nanosec)


@dataclass
class Header:
    stamp: Time = field(default_factory=Time)
    frame_id: str = ""


@dataclass
class RegionOfInterest:
    x_offset: int = 0
    y_offset: int = 0
    width: int = 0
    height: int = 0
    do_rectify: bool = False


@dataclass
class ObjectInfo:
    object_name: str = ""
    probability: float = 0.0


@dataclass
class ObjectInBox:
    object: ObjectInfo = field(default_factory=ObjectInfo)
    roi: RegionOfInterest = field(default_factory=RegionOfInterest)


@dataclass
class ObjectsInBoxes:
    header: Header = field(default_factory=Header)
    objects_vector: list[ObjectInBox] = field(default_factory=list)
    inference_time_ms: float = 0.0


@dataclass
class Point32:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass
class ObjectInBox3D:
    object: ObjectInfo = field(default_factory=ObjectInfo)
    roi: RegionOfInterest = field(default_factory=RegionOfInterest)
    min: Point32 = field(default_factory=Point32)
    max: Point32 = field(default_factory=Point32)


@dataclass
class ObjectsInBoxes3D:
    header: Header = field(default_factory=Header)
    objects_in_boxes: list[ObjectInBox3D] = field(default_factory=list)


@dataclass
class TrackedObject:
    id: int = 0
    object: ObjectInfo = field(default_factory=ObjectInfo)
    roi: RegionOfInterest = field(default_factory=RegionOfInterest)


@dataclass
class TrackedObjects:
    header: Header = field(default_factory=Header)
    tracked_objects: list[TrackedObject] = field(default_factory=list)