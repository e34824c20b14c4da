"""Localization of 2D detections in a registered point cloud."""

from __future__ import annotations

import copy
import logging
import math

from .algorithm import AlgorithmProvider
from .messages import ObjectInBox3D, ObjectsInBoxes, ObjectsInBoxes3D
from .model import Object2D, Object3D, fill_2d_objects
from .pointcloud import PointCloud, copy_point_cloud

logger = logging.getLogger(__name__)


class Segmenter:
    """Finds the 3D extent of each detected object from the points in its region."""

    def __init__(self, provider: AlgorithmProvider, sampling_step: int = 1) -> None:
        self.provider = provider
        self.sampling_step = sampling_step

    @property
    def sampling_step(self) -> int:
        return self._sampling_step

    @sampling_step.setter
    def sampling_step(self, step: int) -> None:
        if step < 1:
            raise ValueError("sampling step must be at least 1")
        self._sampling_step = step

    def segment(self, objects2d: ObjectsInBoxes, cloud: PointCloud) -> ObjectsInBoxes3D:
        """Localize every detection; the result carries the detections' header."""
        result = ObjectsInBoxes3D(header=copy.deepcopy(objects2d.header))
        for obj2d, obj3d in self._relations(objects2d, cloud):
            result.objects_in_boxes.append(
                ObjectInBox3D(
                    object=copy.copy(obj2d.object),
                    roi=copy.copy(obj2d.roi),
                    min=copy.copy(obj3d.min),
                    max=copy.copy(obj3d.max),
                )
            )
        return result

    def _relations(
        self, objects2d: ObjectsInBoxes, cloud: PointCloud
    ) -> list[tuple[Object2D, Object3D]]:
        algorithm = self.provider.get()
        relations: list[tuple[Object2D, Object3D]] = []
        try:
            for obj2d in fill_2d_objects(objects2d):
                roi_cloud = self.roi_point_cloud(cloud, obj2d)
                largest: list[int] = []
                for indices in algorithm.segment(roi_cloud):
                    if len(indices) > len(largest):
                        largest = list(indices)
                if largest:
                    obj3d = Object3D.from_cloud(roi_cloud, largest)
                    obj3d.roi = copy.copy(obj2d.roi)
                    relations.append((obj2d, obj3d))
        except (IndexError, ValueError) as exc:
            logger.error("segmentation stopped: %s", exc)
        return relations

    def roi_point_cloud(self, cloud: PointCloud, obj2d: Object2D) -> PointCloud:
        """Finite points sampled from the detection's region, as a flat cloud."""
        roi = obj2d.roi
        step = self.sampling_step
        indices = [
            idx
            for x in range(roi.x_offset, roi.x_offset + roi.width, step)
            for y in range(roi.y_offset, roi.y_offset + roi.height, step)
            for idx in (x + y * cloud.width,)
            if math.isfinite(cloud.points[idx].x)
        ]
        return cloud.select(indices)

    def roi_point_cloud_by_pixels(
        self, cloud: PointCloud, pixel_points: PointCloud, obj2d: Object2D
    ) -> PointCloud:
        """Points whose pixel position lies in the region, shaped as the region."""
        roi = obj2d.roi
        x_end = roi.x_offset + roi.width
        y_end = roi.y_offset + roi.height
        indices = [
            i
            for i, p in enumerate(pixel_points)
            if roi.x_offset <= p.pixel_x < x_end and roi.y_offset <= p.pixel_y < y_end
        ]
        selected = [cloud.points[i] for i in indices]
        return PointCloud(selected, width=roi.width, height=roi.height)


def pixel_point_cloud(cloud: PointCloud) -> PointCloud:
    """The whole cloud with each point tagged by its pixel position."""
    if not len(cloud):
        return PointCloud([], width=cloud.width, height=cloud.height)
    pixels = copy_point_cloud(cloud, range(len(cloud)))
    return PointCloud(pixels, width=cloud.width, height=cloud.height)