"""Keeps the set of trackings in step with detections and video frames."""

from __future__ import annotations

import copy
import itertools
import logging
from collections.abc import Iterator
from typing import Any

import numpy as np

from .geometry import Rect, get_match
from .messages import (
    Header,
    ObjectInfo,
    ObjectsInBoxes,
    RegionOfInterest,
    Time,
    TrackedObject,
    TrackedObjects,
)
from .tracking import Tracking

logger = logging.getLogger(__name__)

MATCH_THRESHOLD = 0.3
PROBABILITY_THRESHOLD = 0.8


def validate_roi(image: Any, roi: RegionOfInterest) -> bool:
    """True when the region lies entirely inside the image."""
    rows, cols = np.shape(image)[:2]
    return (
        roi.x_offset < cols
        and roi.y_offset < rows
        and roi.x_offset + roi.width <= cols
        and roi.y_offset + roi.height <= rows
    )


def _clamp_roi(image: Any, roi: RegionOfInterest) -> RegionOfInterest:
    rows, cols = np.shape(image)[:2]
    x = cols - 1 if roi.x_offset >= cols else roi.x_offset
    y = rows - 1 if roi.y_offset >= rows else roi.y_offset
    width = cols - x if x + roi.width > cols else roi.width
    height = rows - y if y + roi.height > rows else roi.height
    return RegionOfInterest(x, y, width, height, roi.do_rectify)


class TrackingManager:
    """Matches detections to trackings, creates new ones and drops stale ones."""

    _shared_ids: Iterator[int] = itertools.count()

    def __init__(self, ids: Iterator[int] | None = None, algo: str = "MEDIAN_FLOW") -> None:
        self._ids = ids if ids is not None else TrackingManager._shared_ids
        self.algo = algo
        self.trackings: list[Tracking] = []

    def track(self, image: Any, stamp: Time) -> None:
        """Advance every tracking by one frame."""
        for t in self.trackings:
            if t.update_tracker(image, stamp):
                logger.debug("Tracking[%d][%s] updated", t.tracking_id, t.name)
            else:
                logger.warning(
                    "Tracking[%d][%s] failed, may need remove!", t.tracking_id, t.name
                )

    def detect(self, image: Any, objs: ObjectsInBoxes) -> None:
        """Rectify trackings with confident detections, then drop inactive ones."""
        stamp = objs.header.stamp
        for t in self.trackings:
            t.clear_detected()

        logger.debug("detected objects: %d", len(objs.objects_vector))
        for item in objs.objects_vector:
            dobj = item.object
            if dobj.probability < PROBABILITY_THRESHOLD:
                continue
            droi = item.roi
            detected_rect = Rect.from_roi(droi)
            if not validate_roi(image, droi):
                rows, cols = np.shape(image)[:2]
                logger.warning(
                    "unexpected ROI [%d %d %d %d] against image size [%d %d]",
                    droi.x_offset, droi.y_offset, droi.width, droi.height, cols, rows,
                )
                droi = _clamp_roi(image, droi)
            tracked_rect = Rect.from_roi(droi)
            t = self.get_tracking(dobj.object_name, tracked_rect, dobj.probability, stamp)
            if t is not None:
                t.set_detected()
                t.rectify_tracker(image, tracked_rect, detected_rect, stamp)

        self.clean_trackings()

    def tracked_objects(self, header: Header) -> TrackedObjects:
        """The current trackings as a message carrying ``header``."""
        msg = TrackedObjects(header=copy.deepcopy(header))
        for t in self.trackings:
            r = t.tracked_rect
            if not t.detected:
                logger.debug("Not detected %s [%s]", t.name, r)
            msg.tracked_objects.append(
                TrackedObject(
                    id=t.tracking_id,
                    object=ObjectInfo(t.name, t.probability),
                    roi=RegionOfInterest(int(r.x), int(r.y), int(r.width), int(r.height)),
                )
            )
        return msg

    def add_tracking(self, name: str, probability: float, rect: Rect) -> Tracking:
        t = Tracking(next(self._ids), name, probability, rect)
        logger.debug("addTracking[%d] +++", t.tracking_id)
        t.set_algo(self.algo)
        self.trackings.append(t)
        return t

    def clean_trackings(self) -> None:
        kept = []
        for t in self.trackings:
            if t.is_active():
                kept.append(t)
            else:
                logger.debug("removeTracking[%d] ---", t.tracking_id)
        self.trackings = kept

    def get_tracking(
        self, obj_name: str, rect: Rect, probability: float, stamp: Time
    ) -> Tracking | None:
        """The best-matching undetected tracking of the same name, or a new one.

        None when trackings exist but none has a frame at or before ``stamp``.
        """
        match = 0.0
        in_timezone = False
        tracking: Tracking | None = None
        for t in self.trackings:
            if not t.check_time_zone(stamp):
                logger.debug("Not match tracker(%s)", t.name)
                continue
            in_timezone = True
            if not t.detected and obj_name == t.name:
                m = get_match(t.tracked_rect, rect)
                if m > match:
                    tracking = t
                    match = m
        if match > MATCH_THRESHOLD:
            return tracking
        if not self.trackings or in_timezone:
            return self.add_tracking(obj_name, probability, rect)
        return None