"""Frames of a visualized stream and the objects annotated on them."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from .geometry import Rect


def timestamp_ms() -> int:
    """Milliseconds since the epoch, from the system clock."""
    return time.time_ns() // 1_000_000


@dataclass
class FrameObject:
    """An object seen on a frame: identity, box, confidence and distribution."""

    object_idx: int = 0
    bound_box: Rect = field(default_factory=Rect)
    confidence: float = 0.0
    mean: Any = None
    covariance: Any = None


class Frame:
    """An image with the time it was captured; frames compare by timestamp."""

    def __init__(self, image: Any = None) -> None:
        self.image: Any = None
        self.stamp: int = 0
        if image is not None:
            self.gen_frame(image)

    def gen_frame(self, image: Any) -> None:
        self.image = image
        self.stamp = timestamp_ms()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Frame):
            return NotImplemented
        return self.stamp == other.stamp

    __hash__ = None  # type: ignore[assignment]


class FrameObjs(Frame):
    """A frame with its index in the stream, and its detections and tracks."""

    def __init__(self, image: Any = None) -> None:
        self.frame_idx: int = -1
        self.dets: list[FrameObject] = []
        self.tracks: list[FrameObject] = []
        super().__init__(image)

    def gen_frame(self, image: Any, idx: int | None = None) -> None:
        if idx is not None:
            self.frame_idx = idx
        super().gen_frame(image)

    def add_detection(self, detection: FrameObject) -> None:
        self.dets.append(detection)

    def add_track(self, track: FrameObject) -> None:
        self.tracks.append(track)