"""Point-cloud clustering algorithms and the provider that hands them out."""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, TypeVar

import numpy as np
from scipy.spatial import cKDTree

from .pointcloud import PointCloud

_T = TypeVar("_T")

_COMPARATORS = frozenset(
    {
        "PlaneCoefficientComparator",
        "EuclideanPlaneCoefficientComparator",
        "EdgeAwarePlaneComaprator",
    }
)


class AlgorithmConfig:
    """Named tuning values; a missing key falls back to the caller's default."""

    def __init__(self, values: Mapping[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = dict(values or {})

    def get(self, key: str, default: _T) -> _T:
        """The value for ``key`` converted to the type of ``default``."""
        if key not in self._values:
            return default
        value = self._values[key]
        try:
            return type(default)(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"bad value for {key}: {value!r}") from exc


class Algorithm(ABC):
    """Splits a point cloud into clusters of point indices."""

    @abstractmethod
    def segment(self, cloud: PointCloud) -> list[list[int]]:
        """Clusters of indices into ``cloud``."""


class EuclideanClusterSegmenter(Algorithm):
    """Euclidean cluster extraction over a k-d tree, bounded by cluster size."""

    def __init__(self, config: AlgorithmConfig | None = None) -> None:
        self.config = config if config is not None else AlgorithmConfig()
        self.comparator: str | None = None
        self.apply_config()

    def apply_config(self) -> None:
        """Read the tuning values from the configuration."""
        conf = self.config
        self.plane_minimum_points = conf.get("PLANE_MINIMUM_POINTS", 2000)
        self.object_minimum_points = conf.get("OBJECT_MINIMUM_POINTS", 60)
        self.object_maximum_points = conf.get("OBJECT_MAXIMUM_POINTS", 150000)
        self.object_distance_threshold = conf.get("OBJECT_DISTANCE_THRESHOLD", 0.07)

        self.normal_max_depth_change = conf.get("NORMAL_MAX_DEPTH_CHANGE", 0.02)
        self.normal_smooth_size = conf.get("NORMAL_SMOOTH_SIZE", 30.0)
        self.euclidean_distance_threshold = conf.get("EUCLIDEAN_DISTANCE_THRESHOLD", 0.02)
        self.min_plane_inliers = conf.get("MIN_PLANE_INLIERS", 1000)
        self.normal_angle_threshold = math.radians(conf.get("NORMAL_ANGLE_THRESHOLD", 2.0))
        self.normal_distance_threshold = conf.get("NORMAL_DISTANCE_THRESHOLD", 0.02)

        comparator = conf.get("COMPARATOR", "PlaneCoefficientComparator")
        if comparator in _COMPARATORS:
            self.comparator = comparator

    def segment(self, cloud: PointCloud) -> list[list[int]]:
        """Clusters of nearby points, largest first, each with sorted indices."""
        coords = cloud.to_array()
        finite = np.flatnonzero(np.isfinite(coords).all(axis=1))
        if finite.size == 0:
            return []
        points = coords[finite]
        tree = cKDTree(points)
        processed = np.zeros(len(points), dtype=bool)

        clusters: list[list[int]] = []
        for seed in range(len(points)):
            if processed[seed]:
                continue
            processed[seed] = True
            queue = [seed]
            for current in queue:
                for neighbour in tree.query_ball_point(
                    points[current], self.object_distance_threshold
                ):
                    if not processed[neighbour]:
                        processed[neighbour] = True
                        queue.append(neighbour)
            if self.object_minimum_points <= len(queue) <= self.object_maximum_points:
                clusters.append(sorted(int(i) for i in finite[queue]))

        clusters.sort(key=len, reverse=True)
        return [c for c in clusters if len(c) >= self.object_minimum_points]


class AlgorithmProvider(ABC):
    """Source of the segmentation algorithm to use."""

    @abstractmethod
    def get(self) -> Algorithm:
        """The algorithm to segment with."""


class DefaultAlgorithmProvider(AlgorithmProvider):
    """Provides the Euclidean cluster segmenter."""

    _DEFAULT = "OrganizedMultiPlaneSegmentation"

    def __init__(self) -> None:
        self._algorithms: dict[str, Algorithm] = {self._DEFAULT: EuclideanClusterSegmenter()}

    def get(self) -> Algorithm:
        return self._algorithms[self._DEFAULT]