import math

import pytest

from objanalytics.algorithm import Algorithm, AlgorithmConfig, AlgorithmProvider
from objanalytics.messages import (
    Header,
    ObjectInBox,
    ObjectInfo,
    ObjectsInBoxes,
    RegionOfInterest,
    Time,
)
from objanalytics.model import Object2D
from objanalytics.pointcloud import Point, PointCloud
from objanalytics.segmenter import Segmenter, pixel_point_cloud


class _AllPoints(Algorithm):
    def segment(self, cloud):
        return [list(range(len(cloud)))]


class _Nothing(Algorithm):
    def segment(self, cloud):
        return []


class _Provider(AlgorithmProvider):
    def __init__(self, algo):
        self.algo = algo

    def get(self):
        return self.algo


def _object_in_box(x, y, w, h, name, probability):
    return ObjectInBox(
        object=ObjectInfo(name, probability),
        roi=RegionOfInterest(x_offset=x, y_offset=y, width=w, height=h),
    )


def _grid_cloud(width=10, height=10):
    points = [Point(i + 0.1, i + 0.2, i + 0.3) for i in range(width * height)]
    return PointCloud(points, width=width, height=height)


def test_segmenter_localizes_object():
    header = Header(Time(), "camera_rgb_optical_frame")
    objs = ObjectsInBoxes(header=header)
    objs.objects_vector.append(_object_in_box(0, 0, 5, 5, "person", 0.99))
    result = Segmenter(_Provider(_AllPoints())).segment(objs, _grid_cloud())

    assert len(result.objects_in_boxes) == 1
    obj3d = result.objects_in_boxes[0]
    assert (obj3d.min.x, obj3d.min.y, obj3d.min.z) == pytest.approx((0.1, 0.2, 0.3))
    assert (obj3d.max.x, obj3d.max.y, obj3d.max.z) == pytest.approx((44.1, 44.2, 44.3))
    assert obj3d.roi == RegionOfInterest(x_offset=0, y_offset=0, width=5, height=5)
    assert obj3d.object.object_name == "person"
    assert result.header == header


def test_no_cluster_means_no_object():
    objs = ObjectsInBoxes()
    objs.objects_vector.append(_object_in_box(0, 0, 5, 5, "person", 0.99))
    result = Segmenter(_Provider(_Nothing())).segment(objs, _grid_cloud())
    assert result.objects_in_boxes == []


def test_out_of_range_roi_keeps_earlier_results():
    objs = ObjectsInBoxes()
    objs.objects_vector.append(_object_in_box(0, 0, 2, 2, "cup", 0.9))
    objs.objects_vector.append(_object_in_box(8, 8, 5, 5, "box", 0.9))
    result = Segmenter(_Provider(_AllPoints())).segment(objs, _grid_cloud())
    assert [o.object.object_name for o in result.objects_in_boxes] == ["cup"]


def test_roi_point_cloud_samples_column_major_and_skips_nan():
    cloud = _grid_cloud(4, 4)
    cloud.points[5] = Point(math.nan, 0.0, 0.0)
    obj2d = Object2D(RegionOfInterest(x_offset=0, y_offset=0, width=2, height=2))
    roi = Segmenter(_Provider(_AllPoints())).roi_point_cloud(cloud, obj2d)
    assert roi.points == [cloud.points[0], cloud.points[4], cloud.points[1]]
    assert (roi.width, roi.height) == (3, 1)


def test_roi_point_cloud_with_sampling_step():
    cloud = _grid_cloud(10, 10)
    obj2d = Object2D(RegionOfInterest(x_offset=0, y_offset=0, width=5, height=5))
    seg = Segmenter(_Provider(_AllPoints()), sampling_step=2)
    roi = seg.roi_point_cloud(cloud, obj2d)
    expected = [cloud.points[x + y * 10] for x in (0, 2, 4) for y in (0, 2, 4)]
    assert roi.points == expected


def test_sampling_step_must_be_positive():
    with pytest.raises(ValueError):
        Segmenter(_Provider(_AllPoints()), sampling_step=0)


def test_pixel_point_cloud_tags_positions():
    cloud = _grid_cloud(3, 2)
    pixels = pixel_point_cloud(cloud)
    assert (pixels.width, pixels.height) == (3, 2)
    assert [(p.pixel_x, p.pixel_y) for p in pixels] == [
        (0, 0), (1, 0), (2, 0), (0, 1), (1, 1), (2, 1)
    ]


def test_pixel_point_cloud_of_empty_cloud():
    pixels = pixel_point_cloud(PointCloud())
    assert len(pixels) == 0


def test_roi_point_cloud_by_pixels():
    cloud = _grid_cloud(4, 4)
    pixels = pixel_point_cloud(cloud)
    obj2d = Object2D(RegionOfInterest(x_offset=1, y_offset=1, width=2, height=2))
    roi = Segmenter(_Provider(_AllPoints())).roi_point_cloud_by_pixels(cloud, pixels, obj2d)
    assert roi.points == [cloud.points[i] for i in (5, 6, 9, 10)]
    assert (roi.width, roi.height) == (2, 2)


def test_default_segmenter_config_is_used_by_provider():
    algo = _AllPoints()
    assert Segmenter(_Provider(algo)).provider.get() is algo
    assert AlgorithmConfig().get("X", 3) == 3