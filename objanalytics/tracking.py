"""Single-object trackers and the per-object tracking state kept between detections."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import Any

import numpy as np
from scipy.signal import fftconvolve

from .geometry import Rect
from .messages import Time

logger = logging.getLogger(__name__)

ALGORITHMS = frozenset({"KCF", "TLD", "BOOSTING", "MEDIAN_FLOW", "MIL", "GOTURN"})
AGEING_THRESHOLD = 60
_DETECT_MISS_LIMIT = -30
_HISTORY_SIZE = 30


def _as_channels(image: Any) -> np.ndarray:
    arr = np.asarray(image, dtype=float)
    if arr.ndim == 2:
        arr = arr[..., np.newaxis]
    if arr.ndim != 3:
        raise ValueError("image must be two or three dimensional")
    return arr


class Tracker(ABC):
    """Follows one image region from frame to frame."""

    @abstractmethod
    def init(self, image: Any, rect: Rect) -> None:
        """Start following ``rect`` in ``image``."""

    @abstractmethod
    def update(self, image: Any) -> Rect | None:
        """The region's new position in ``image``, or None when it is lost."""


class TemplateTracker(Tracker):
    """Tracks by finding the best sum-of-squared-differences match of the initial patch."""

    def __init__(self) -> None:
        self._template: np.ndarray | None = None
        self._rect: Rect | None = None

    def init(self, image: Any, rect: Rect) -> None:
        arr = _as_channels(image)
        r = rect.to_int()
        height, width = arr.shape[:2]
        x0, y0 = max(0, r.x), max(0, r.y)
        x1, y1 = min(width, r.x + r.width), min(height, r.y + r.height)
        if x1 <= x0 or y1 <= y0:
            raise ValueError("tracked rectangle does not cover the image")
        self._template = arr[y0:y1, x0:x1].copy()
        self._rect = Rect(x0, y0, x1 - x0, y1 - y0)

    def update(self, image: Any) -> Rect | None:
        if self._template is None or self._rect is None:
            raise RuntimeError("tracker is not initialized")
        arr = _as_channels(image)
        template = self._template
        if arr.shape[2] != template.shape[2]:
            raise ValueError("image channels differ from the tracked patch")
        th, tw = template.shape[:2]
        height, width = arr.shape[:2]
        x, y = int(self._rect.x), int(self._rect.y)
        sx0, sy0 = max(0, x - tw), max(0, y - th)
        sx1, sy1 = min(width, x + 2 * tw), min(height, y + 2 * th)
        if sx1 - sx0 < tw or sy1 - sy0 < th:
            return None
        ssd = self._ssd(arr[sy0:sy1, sx0:sx1], template)

        iy, ix = np.unravel_index(int(np.argmin(ssd)), ssd.shape)
        best = ssd[iy, ix]
        cy, cx = y - sy0, x - sx0
        if 0 <= cy < ssd.shape[0] and 0 <= cx < ssd.shape[1]:
            tolerance = 1e-6 * max(1.0, float(np.abs(ssd).max()))
            if ssd[cy, cx] <= best + tolerance:
                iy, ix = cy, cx
        self._rect = Rect(int(sx0 + ix), int(sy0 + iy), tw, th)
        return self._rect

    @staticmethod
    def _ssd(region: np.ndarray, template: np.ndarray) -> np.ndarray:
        th, tw = template.shape[:2]
        ones = np.ones((th, tw))
        total = np.zeros((region.shape[0] - th + 1, region.shape[1] - tw + 1))
        for channel in range(template.shape[2]):
            reg = region[..., channel]
            tpl = template[..., channel]
            total += (
                fftconvolve(reg * reg, ones, mode="valid")
                - 2.0 * fftconvolve(reg, tpl[::-1, ::-1], mode="valid")
                + float((tpl * tpl).sum())
            )
        return total


def create_tracker(algo: str) -> Tracker:
    """A tracker for the named algorithm."""
    if algo not in ALGORITHMS:
        raise ValueError(f"Invalid tracking algorithm name: {algo!r}")
    return TemplateTracker()


class Tracking:
    """One tracked object: its tracker, rectangles, detection state and history."""

    def __init__(self, tracking_id: int, name: str, probability: float, rect: Rect) -> None:
        self._tracking_id = tracking_id
        self._name = name
        self._probability = probability
        self._tracked_rect = rect
        self._detected_rect = Rect()
        self._detected = False
        self._detect_mis = 0
        self._ageing = 0
        self._algo = "MEDIAN_FLOW"
        self._tracker: Tracker | None = None
        self._history: deque[tuple[Time, Rect]] = deque(maxlen=_HISTORY_SIZE)

    @property
    def tracking_id(self) -> int:
        return self._tracking_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def probability(self) -> float:
        return self._probability

    @property
    def tracked_rect(self) -> Rect:
        return self._tracked_rect

    @property
    def detected_rect(self) -> Rect:
        return self._detected_rect

    @property
    def detected(self) -> bool:
        return self._detected

    @property
    def algo(self) -> str:
        return self._algo

    @property
    def history(self) -> list[tuple[Time, Rect]]:
        return list(self._history)

    def rectify_tracker(self, image: Any, t_rect: Rect, d_rect: Rect, stamp: Time) -> None:
        """Restart the tracker on ``t_rect``, forgetting the history."""
        self._history.clear()
        tracker = create_tracker(self._algo)
        tracker.init(image, t_rect)
        self._tracker = tracker
        self._tracked_rect = t_rect
        self._detected_rect = d_rect
        self._history.append((stamp, t_rect))

    def update_tracker(self, image: Any, stamp: Time) -> bool:
        """Advance the tracker by one frame; True when the object was found."""
        if self._tracker is None:
            raise RuntimeError("tracking has not been rectified")
        rect = self._tracker.update(image)
        if rect is not None:
            self._tracked_rect = rect
            self._history.append((stamp, rect))
        self._ageing += 1
        return rect is not None

    def historical_rect(self, stamp: Time) -> Rect | None:
        """The rectangle recorded for ``stamp``, if any."""
        for when, rect in self._history:
            if when == stamp:
                return rect
        logger.debug("no tracked rectangle among %d records", len(self._history))
        return None

    def is_active(self) -> bool:
        return self._ageing < AGEING_THRESHOLD or self._detect_mis > _DETECT_MISS_LIMIT

    def set_detected(self) -> None:
        self._ageing = 0
        self._detected = True
        self._detect_mis = 0

    def clear_detected(self) -> None:
        self._detected = False
        self._detect_mis -= 1

    def set_algo(self, algo: str) -> bool:
        """Choose the tracking algorithm; an unknown name is ignored and gives False."""
        if algo in ALGORITHMS:
            self._algo = algo
            return True
        return False

    def check_time_zone(self, stamp: Time) -> bool:
        """True when some recorded frame is not later than ``stamp``."""
        return any(when <= stamp for when, _ in self._history)