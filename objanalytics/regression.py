"""Regression run of the tracking stage against a dataset with ground truth.

Frames of the dataset are fed to a tracking node one by one. Every fourth
frame, a detection taken from the ground truth of an earlier frame is fed
as well. Each tracked box is then scored against the ground truth of its
frame.
"""

from __future__ import annotations

import itertools
import math
import sys
from dataclasses import dataclass
from typing import Any

import numpy as np

from .datasets import DatasetType, TrackDataset, create_dataset
from .geometry import Rect
from .messages import (
    Header,
    ObjectInBox,
    ObjectInfo,
    ObjectsInBoxes,
    RegionOfInterest,
    Time,
    TrackedObjects,
)
from .tracking_manager import TrackingManager
from .tracking_node import StampedImage, TrackingNode

DETECTION_NAME = "test_traj"
DETECTION_PROBABILITY = 95
DETECTION_PERIOD = 4
DETECTION_DELAY = 2
OVERLAP_THRESHOLD = 0.7

_USAGE = """\
Usage for tracker_regression:
tracker_regression [-a algorithm] [-p dataset_path] [-t dataset_type] [-n dataset_name] [-h]
options:
-h : Print this help function.
-a algorithm_name : Specify the tracking algorithm in the tracker.
   supported algorithms: KCF,TLD,BOOSTING,MEDIAN_FLOW,MIL,GOTURN
-p dataset_path : Specify the tracking datasets location.
-t dataset_type : Specify the dataset type: video,image.
-n dataset_name : Specify the dataset name.
"""


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return math.nan if numerator == 0 else math.copysign(math.inf, numerator)
    return numerator / denominator


@dataclass
class RegressionStats:
    """Counts gathered over a regression run."""

    present: int = 0
    responses: int = 0
    correct: int = 0
    correct_threshold: int = 0

    def record(self, tracked: Rect, ground_truth: Rect) -> float:
        """Score one tracked box against the ground truth; returns the overlap."""
        intersect_area = float(ground_truth.intersect(tracked).area())
        union_area = float(ground_truth.union(tracked).area())
        overlap = intersect_area / union_area if union_area > 0 else 0.0
        if overlap > 0:
            self.correct += 1
        if overlap > OVERLAP_THRESHOLD:
            self.correct_threshold += 1
        return overlap

    def precision(self) -> float:
        """Well-overlapping boxes per tracking response."""
        return _ratio(self.correct_threshold, self.responses)

    def recall(self) -> float:
        """Well-overlapping boxes per frame presented."""
        return _ratio(self.correct_threshold, self.present)

    def report(self) -> str:
        return (
            "---------------------Overall status report-----------------------\n"
            f"Overlap > 0 count({self.correct})\n"
            f"Overlap > 0.5 count({self.correct_threshold})\n"
            f"present NUM({self.present}), response NUM({self.responses})\n"
            f"Precision({self.precision():f}), recall({self.recall():f})\n"
            "------------------------------End----------------------------------\n"
        )


def encoding_for(image: Any) -> str:
    """The image encoding name for an array; empty when unsupported."""
    arr = np.asarray(image)
    channels = 1 if arr.ndim == 2 else (arr.shape[2] if arr.ndim == 3 else 0)
    if arr.dtype == np.uint8:
        return {1: "mono8", 3: "bgr8", 4: "rgba8"}.get(channels, "")
    if arr.dtype == np.int16 and channels == 1:
        return "mono16"
    return ""


def _detection_for(dataset: TrackDataset, frame_id: int) -> ObjectsInBoxes:
    gt = dataset.ground_truth_at(frame_id)
    box = ObjectInBox(
        object=ObjectInfo(DETECTION_NAME, DETECTION_PROBABILITY),
        roi=RegionOfInterest(int(gt.x), int(gt.y), int(gt.width), int(gt.height)),
    )
    return ObjectsInBoxes(
        header=Header(stamp=Time(0, frame_id), frame_id=str(frame_id)),
        objects_vector=[box],
        inference_time_ms=10,
    )


def run_regression(dataset: TrackDataset, algo: str = "") -> RegressionStats:
    """Play an initialized dataset through a tracking node and score its output."""
    stats = RegressionStats()

    def on_tracked(objs: TrackedObjects) -> None:
        frame_id = int(objs.header.frame_id)
        if objs.tracked_objects:
            stats.responses += 1
        for tracked in objs.tracked_objects:
            stats.record(Rect.from_roi(tracked.roi), dataset.ground_truth_at(frame_id))

    node = TrackingNode(publish=on_tracked, manager=TrackingManager(ids=itertools.count()))
    node.set_algo(algo)

    while (frame := dataset.next_frame()) is not None:
        idx = dataset.frame_idx
        header = Header(stamp=Time(0, idx - 1), frame_id=str(idx - 1))
        node.on_image(StampedImage(header=header, image=frame))
        stats.present += 1
        if idx > 0 and idx % DETECTION_PERIOD == 0:
            node.on_objects(_detection_for(dataset, idx - DETECTION_DELAY))
    return stats


def usage() -> str:
    """The command's help text."""
    return _USAGE


def _option(argv: list[str], name: str) -> str | None:
    """The value following ``name``; empty when it has none, None when absent."""
    if name not in argv:
        return None
    pos = argv.index(name)
    return argv[pos + 1] if pos + 1 < len(argv) else ""


def main(argv: list[str] | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)

    if "-h" in args:
        print(usage(), end="")
        return 0

    algo = _option(args, "-a") or ""
    path = _option(args, "-p") or ""
    kind_name = _option(args, "-t") or ""
    name = _option(args, "-n") or ""

    kind = DatasetType.INVALID
    if _option(args, "-t") is not None:
        if kind_name == "image":
            kind = DatasetType.IMAGE
        elif kind_name == "video":
            kind = DatasetType.VIDEO
        else:
            return 0

    if not path or not name or not kind_name:
        print("Please specify the options below:")
        print(usage(), end="")
        return 0

    try:
        dataset = create_dataset(kind)
        dataset.load(path)
        dataset.init_dataset(name)
    except (ValueError, LookupError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    stats = run_regression(dataset, algo)
    print(stats.report(), end="")
    return 0