"""Tracking stage: pairs video frames with detections and publishes tracked objects."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from .geometry import Rect
from .messages import Header, ObjectsInBoxes, Time, TrackedObjects
from .tracking import ALGORITHMS
from .tracking_manager import TrackingManager

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 20
_PRECISION_THRESHOLD = 0.7
_PROBABILITY_THRESHOLD = 0.8


@dataclass
class StampedImage:
    """A ``bgr8`` image with the header of the frame it belongs to."""

    header: Header = field(default_factory=Header)
    image: Any = None


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return math.inf if numerator > 0 else math.nan
    return numerator / denominator


class TrackingNode:
    """Feeds frames and detections to a tracking manager, publishing its results.

    ``publish`` is called with every non-empty set of tracked objects.
    """

    def __init__(
        self,
        publish: Callable[[TrackedObjects], None] | None = None,
        manager: TrackingManager | None = None,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ) -> None:
        if queue_size < 1:
            raise ValueError("queue size must be at least 1")
        self._publish = publish
        self.manager = manager if manager is not None else TrackingManager()
        self.queue_size = queue_size
        self._images: list[StampedImage] = []
        self._tracks: list[TrackedObjects] = []
        self.last_detection = Time()
        self.this_detection = Time()
        self.last_objects: ObjectsInBoxes | None = None
        self.this_objects: ObjectsInBoxes | None = None

    @property
    def images(self) -> list[StampedImage]:
        """Frames waiting to be matched with a detection, oldest first."""
        return list(self._images)

    @property
    def tracks(self) -> list[TrackedObjects]:
        """Recently produced tracking results, oldest first."""
        return list(self._tracks)

    def on_image(self, image: StampedImage) -> TrackedObjects | None:
        """Handle a frame; returns the tracked objects published for it, if any."""
        published = None
        if self.this_detection != self.last_detection:
            stamp = image.header.stamp
            if self.this_detection == stamp and self.this_objects is not None:
                logger.debug("rectify on frame arrival")
                self.manager.detect(image.image, self.this_objects)
            else:
                self.manager.track(image.image, stamp)
            published = self._publish_tracking(image.header)

        self._images.append(image)
        del self._images[: -self.queue_size]
        return published

    def on_objects(self, objs: ObjectsInBoxes) -> None:
        """Handle detections: drop older frames and rectify on the matching one."""
        self.last_detection = self.this_detection
        self.this_detection = objs.header.stamp
        self.last_objects = self.this_objects
        self.this_objects = objs

        if not objs.objects_vector:
            return

        remaining: list[StampedImage] = []
        for i, rgb in enumerate(self._images):
            stamp = rgb.header.stamp
            if stamp < self.this_detection:
                logger.debug("slower, dropped")
                continue
            if stamp == self.this_detection:
                self.manager.detect(rgb.image, objs)
                remaining.extend(self._images[i:])
                break
            remaining.append(rgb)
        self._images = remaining

    def check_rectify(self, objs: ObjectsInBoxes) -> bool:
        """Whether the detections differ enough from tracking to need rectifying.

        Tracking results older than the detections are discarded.
        """
        detect_frame = objs.header.stamp
        kept: list[TrackedObjects] = []
        match: TrackedObjects | None = None
        for i, track in enumerate(self._tracks):
            stamp = track.header.stamp
            if stamp < detect_frame:
                continue
            if stamp == detect_frame:
                match = track
                kept.extend(self._tracks[i:])
                break
            kept.append(track)
        self._tracks = kept

        if match is None:
            return True

        for item in objs.objects_vector:
            name = item.object.object_name
            detected = Rect.from_roi(item.roi)
            tobj = next(
                (t for t in match.tracked_objects if t.object.object_name == name), None
            )
            if tobj is None:
                return True
            tracked = Rect.from_roi(tobj.roi)
            precision = _ratio(
                float(tracked.union(detected).area()), float(tracked.intersect(detected).area())
            )
            if precision > _PRECISION_THRESHOLD and item.object.probability < _PROBABILITY_THRESHOLD:
                logger.debug("Tracked correct, no need to rectify")
            else:
                return True
        return False

    def set_algo(self, algo: str) -> bool:
        """Choose the algorithm for new trackings; an unknown name gives False."""
        if algo in ALGORITHMS:
            self.manager.algo = algo
            return True
        return False

    def _publish_tracking(self, header: Header) -> TrackedObjects | None:
        msg = self.manager.tracked_objects(header)
        self._tracks.append(msg)
        del self._tracks[: -self.queue_size]
        if msg.tracked_objects:
            if self._publish is not None:
                self._publish(msg)
            return msg
        logger.warning("No objects to publish!")
        return None