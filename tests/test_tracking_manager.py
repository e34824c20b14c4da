import itertools

import numpy as np
import pytest

from objanalytics.geometry import Rect
from objanalytics.messages import (
    Header,
    ObjectInBox,
    ObjectInfo,
    ObjectsInBoxes,
    RegionOfInterest,
    Time,
)
from objanalytics.tracking_manager import TrackingManager, validate_roi


def _oib(x, y, w, h, name, prob):
    return ObjectInBox(ObjectInfo(name, prob), RegionOfInterest(x, y, w, h))


def _image():
    return np.zeros((320, 480, 3), dtype=np.uint8)


def _run(boxes, first_id):
    objs = ObjectsInBoxes(objects_vector=boxes)
    tm = TrackingManager(ids=itertools.count(first_id))
    tm.detect(_image(), objs)
    assert len(objs.objects_vector) == 3
    return tm.tracked_objects(Header())


def _rois(msg):
    return {
        (o.roi.x_offset, o.roi.y_offset, o.roi.width, o.roi.height)
        for o in msg.tracked_objects
    }


def test_first_within():
    msg = _run(
        [
            _oib(50, 50, 100, 100, "person", 0.8),
            _oib(100, 100, 50, 50, "chair", 0.9),
            _oib(320, 480, 1, 1, "key", 0.1),
        ],
        0,
    )
    assert len(msg.tracked_objects) == 2
    assert [o.id for o in msg.tracked_objects] == [0, 1]
    assert _rois(msg) == {(50, 50, 100, 100), (100, 100, 50, 50)}


def test_first_without():
    msg = _run(
        [
            _oib(400, 50, 600, 200, "person", 0.8),
            _oib(100, 100, 50, 50, "chair", 0.9),
            _oib(320, 480, 1, 1, "key", 0.1),
        ],
        2,
    )
    assert len(msg.tracked_objects) == 2
    assert [o.id for o in msg.tracked_objects] == [2, 3]
    assert _rois(msg) == {(400, 50, 80, 200), (100, 100, 50, 50)}


def test_first_partial_within_other_within():
    msg = _run(
        [
            _oib(200, 100, 300, 100, "person", 0.8),
            _oib(50, 100, 240, 100, "chair", 0.9),
            _oib(320, 480, 1, 1, "key", 0.1),
        ],
        4,
    )
    assert len(msg.tracked_objects) == 2
    assert [o.id for o in msg.tracked_objects] == [4, 5]
    assert _rois(msg) == {(50, 100, 240, 100), (200, 100, 280, 100)}


def test_first_partial_within_other_partial_within():
    msg = _run(
        [
            _oib(200, 100, 300, 100, "person", 0.8),
            _oib(50, 100, 540, 100, "chair", 0.9),
            _oib(320, 480, 1, 1, "key", 0.1),
        ],
        6,
    )
    assert len(msg.tracked_objects) == 2
    assert [o.id for o in msg.tracked_objects] == [6, 7]
    assert _rois(msg) == {(50, 100, 430, 100), (200, 100, 280, 100)}


def test_tracked_objects_carries_header_and_names():
    tm = TrackingManager(ids=itertools.count(0))
    tm.detect(_image(), ObjectsInBoxes(objects_vector=[_oib(10, 10, 20, 20, "cup", 0.95)]))
    msg = tm.tracked_objects(Header(Time(1, 2), "cam"))
    assert msg.header == Header(Time(1, 2), "cam")
    assert msg.tracked_objects[0].object.object_name == "cup"
    assert msg.tracked_objects[0].object.probability == pytest.approx(0.95)


@pytest.mark.parametrize(
    "roi, expected",
    [
        (RegionOfInterest(0, 0, 480, 320), True),
        (RegionOfInterest(479, 319, 1, 1), True),
        (RegionOfInterest(480, 0, 1, 1), False),
        (RegionOfInterest(0, 0, 481, 10), False),
        (RegionOfInterest(0, 10, 10, 311), False),
    ],
)
def test_validate_roi(roi, expected):
    assert validate_roi(_image(), roi) is expected


def test_repeated_detection_reuses_tracking():
    tm = TrackingManager(ids=itertools.count(0))
    objs = ObjectsInBoxes(
        header=Header(Time(0, 1)), objects_vector=[_oib(10, 10, 20, 20, "cup", 0.9)]
    )
    tm.detect(_image(), objs)
    objs2 = ObjectsInBoxes(
        header=Header(Time(0, 2)), objects_vector=[_oib(12, 10, 20, 20, "cup", 0.9)]
    )
    tm.detect(_image(), objs2)
    assert [t.tracking_id for t in tm.trackings] == [0]
    assert tm.trackings[0].tracked_rect == Rect(12, 10, 20, 20)


def test_get_tracking_matches_existing():
    tm = TrackingManager(ids=itertools.count(0))
    t = tm.add_tracking("cat", 0.9, Rect(0, 0, 10, 10))
    t.rectify_tracker(_image(), Rect(0, 0, 10, 10), Rect(0, 0, 10, 10), Time(1, 0))
    assert tm.get_tracking("cat", Rect(0, 0, 10, 10), 0.9, Time(2, 0)) is t
    assert len(tm.trackings) == 1


def test_get_tracking_out_of_time_zone_returns_none():
    tm = TrackingManager(ids=itertools.count(0))
    t = tm.add_tracking("cat", 0.9, Rect(0, 0, 10, 10))
    t.rectify_tracker(_image(), Rect(0, 0, 10, 10), Rect(0, 0, 10, 10), Time(5, 0))
    assert tm.get_tracking("cat", Rect(0, 0, 10, 10), 0.9, Time(1, 0)) is None
    assert len(tm.trackings) == 1


def test_get_tracking_other_name_adds_new():
    tm = TrackingManager(ids=itertools.count(0))
    t = tm.add_tracking("cat", 0.9, Rect(0, 0, 10, 10))
    t.rectify_tracker(_image(), Rect(0, 0, 10, 10), Rect(0, 0, 10, 10), Time(1, 0))
    new = tm.get_tracking("dog", Rect(0, 0, 10, 10), 0.9, Time(2, 0))
    assert new.tracking_id == 1
    assert new.name == "dog"
    assert len(tm.trackings) == 2


def test_add_tracking_uses_manager_algo():
    tm = TrackingManager(ids=itertools.count(0), algo="KCF")
    assert tm.add_tracking("cat", 0.9, Rect(0, 0, 5, 5)).algo == "KCF"


def test_clean_trackings_removes_inactive():
    tm = TrackingManager(ids=itertools.count(0))
    img = _image()
    tm.detect(img, ObjectsInBoxes(objects_vector=[_oib(10, 10, 20, 20, "cup", 0.9)]))
    for n in range(60):
        tm.track(img, Time(0, n + 1))
    for _ in range(30):
        tm.trackings[0].clear_detected()
    tm.clean_trackings()
    assert tm.trackings == []


def test_track_moves_tracking():
    tm = TrackingManager(ids=itertools.count(0))
    img = np.zeros((100, 100), dtype=np.uint8)
    img[20:30, 20:30] = 255
    tm.detect(img, ObjectsInBoxes(objects_vector=[_oib(20, 20, 10, 10, "ball", 0.9)]))
    moved = np.zeros((100, 100), dtype=np.uint8)
    moved[22:32, 26:36] = 255
    tm.track(moved, Time(0, 5))
    assert tm.trackings[0].tracked_rect == Rect(26, 22, 10, 10)
    assert tm.trackings[0].historical_rect(Time(0, 5)) == Rect(26, 22, 10, 10)