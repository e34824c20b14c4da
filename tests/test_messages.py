import dataclasses

import pytest

from objanalytics.messages import (
    Header,
    ObjectInBox,
    ObjectInBox3D,
    ObjectsInBoxes,
    ObjectsInBoxes3D,
    RegionOfInterest,
    Time,
    TrackedObjects,
)


def test_time_orders_by_seconds_first():
    assert Time(1, 999) < Time(2, 0)
    assert not Time(2, 0) < Time(1, 999)


def test_time_orders_by_nanoseconds_within_second():
    assert Time(3, 5) < Time(3, 6)
    assert Time(3, 6) > Time(3, 5)
    assert Time(3, 5) == Time(3, 5)


@pytest.mark.parametrize("stamp", [Time(), Time(0, 7), Time(12, 999_999_999), Time(4, 1)])
def test_time_nanoseconds_round_trip(stamp):
    assert Time.from_nanoseconds(stamp.nanoseconds) == stamp


def test_time_is_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        Time(1, 2).sec = 5


def test_header_default_stamp_is_zero_time():
    assert Header().stamp == Time()
    assert Header().frame_id == ""


def test_default_lists_are_not_shared():
    first = ObjectsInBoxes()
    second = ObjectsInBoxes()
    first.objects_vector.append(ObjectInBox())
    assert len(second.objects_vector) == 0
    third = ObjectsInBoxes3D()
    third.objects_in_boxes.append(ObjectInBox3D())
    assert ObjectsInBoxes3D().objects_in_boxes == []
    tracked = TrackedObjects()
    assert tracked.tracked_objects == []


def test_region_of_interest_equality_compares_fields():
    assert RegionOfInterest(1, 2, 3, 4) == RegionOfInterest(1, 2, 3, 4)
    assert not RegionOfInterest(1, 2, 3, 4) == RegionOfInterest(1, 2, 3, 5)