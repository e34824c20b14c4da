import numpy as np
import pytest

from objanalytics.geometry import Rect
from objanalytics.messages import Time
from objanalytics.tracking import TemplateTracker, Tracking, create_tracker


def _square_image(x, y, size=10, shape=(100, 100)):
    img = np.zeros(shape, dtype=np.uint8)
    img[y : y + size, x : x + size] = 255
    return img


@pytest.mark.parametrize("name", ["cat", ""])
def test_tracking_normal(name):
    t = Tracking(2, name, 0.7, Rect(100, 100, 200, 300))
    assert t.name == name
    assert t.tracking_id == 2
    assert t.probability == pytest.approx(0.7, abs=1e-6)
    assert t.tracked_rect.x == 100
    assert t.tracked_rect.y == 100
    assert t.tracked_rect.height == 300
    assert t.tracked_rect.width == 200
    assert t.detected is False
    t.set_detected()
    assert t.detected is True
    t.clear_detected()
    assert t.detected is False


def test_set_algo():
    t = Tracking(0, "cat", 0.9, Rect(0, 0, 10, 10))
    assert t.algo == "MEDIAN_FLOW"
    assert t.set_algo("KCF") is True
    assert t.algo == "KCF"
    assert t.set_algo("UNKNOWN") is False
    assert t.algo == "KCF"


def test_create_tracker_rejects_unknown():
    with pytest.raises(ValueError):
        create_tracker("NOPE")


def test_template_tracker_follows_square():
    tracker = TemplateTracker()
    tracker.init(_square_image(20, 20), Rect(20, 20, 10, 10))
    assert tracker.update(_square_image(25, 23)) == Rect(25, 23, 10, 10)


def test_template_tracker_stays_put_on_uniform_image():
    tracker = TemplateTracker()
    img = np.zeros((50, 50, 3), dtype=np.uint8)
    tracker.init(img, Rect(10, 10, 5, 5))
    assert tracker.update(img) == Rect(10, 10, 5, 5)


def test_template_tracker_requires_init():
    with pytest.raises(RuntimeError):
        TemplateTracker().update(np.zeros((10, 10)))


def test_update_before_rectify_raises():
    t = Tracking(0, "cat", 0.9, Rect(0, 0, 10, 10))
    with pytest.raises(RuntimeError):
        t.update_tracker(np.zeros((10, 10)), Time(0, 1))


def test_rectify_and_update_record_history():
    t = Tracking(0, "cat", 0.9, Rect(0, 0, 10, 10))
    t.rectify_tracker(_square_image(20, 20), Rect(20, 20, 10, 10), Rect(19, 19, 12, 12), Time(0, 1))
    assert t.detected_rect == Rect(19, 19, 12, 12)
    assert t.update_tracker(_square_image(24, 20), Time(0, 2)) is True
    assert t.tracked_rect == Rect(24, 20, 10, 10)
    assert t.historical_rect(Time(0, 1)) == Rect(20, 20, 10, 10)
    assert t.historical_rect(Time(0, 2)) == Rect(24, 20, 10, 10)
    assert t.historical_rect(Time(0, 3)) is None


def test_history_keeps_last_thirty():
    img = _square_image(20, 20)
    t = Tracking(0, "cat", 0.9, Rect(20, 20, 10, 10))
    t.rectify_tracker(img, Rect(20, 20, 10, 10), Rect(20, 20, 10, 10), Time(0, 0))
    for n in range(1, 40):
        t.update_tracker(img, Time(0, n))
    stamps = [when for when, _ in t.history]
    assert len(stamps) == 30
    assert stamps[0] == Time(0, 10)
    assert stamps[-1] == Time(0, 39)


def test_check_time_zone():
    t = Tracking(0, "cat", 0.9, Rect(0, 0, 10, 10))
    assert t.check_time_zone(Time(5, 0)) is False
    t.rectify_tracker(_square_image(0, 0), Rect(0, 0, 10, 10), Rect(0, 0, 10, 10), Time(2, 500))
    assert t.check_time_zone(Time(2, 500)) is True
    assert t.check_time_zone(Time(2, 600)) is True
    assert t.check_time_zone(Time(3, 0)) is True
    assert t.check_time_zone(Time(2, 400)) is False
    assert t.check_time_zone(Time(1, 999)) is False


def test_becomes_inactive_after_ageing_and_misses():
    img = _square_image(20, 20)
    t = Tracking(0, "cat", 0.9, Rect(20, 20, 10, 10))
    t.rectify_tracker(img, Rect(20, 20, 10, 10), Rect(20, 20, 10, 10), Time(0, 0))
    for n in range(60):
        t.update_tracker(img, Time(0, n + 1))
    assert t.is_active() is True
    for _ in range(30):
        t.clear_detected()
    assert t.is_active() is False
    t.set_detected()
    assert t.is_active() is True