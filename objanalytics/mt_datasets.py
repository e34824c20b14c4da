"""Visualizer datasets: image sequences whose frames carry labelled boxes.

Single-target sequences hold one ground-truth box per frame. Multi-target
sequences hold every object of a frame, plus detector output. They are
described by storage files in YAML, JSON or XML.
"""

from __future__ import annotations

import enum
import logging
import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
import yaml
from PIL import Image

from .datasets import TrackDataset, number_to_string, parse_ground_truth_line
from .file_parser import split
from .geometry import Rect

logger = logging.getLogger(__name__)

_STORAGE_ROOT = "opencv_storage"


@dataclass
class LabeledBox:
    """A box on a frame with the object's index and the confidence in it."""

    obj_idx: int = 0
    bb: Rect = field(default_factory=Rect)
    confidence: float = 1.0


class MultiDatasetType(enum.Enum):
    ST_VIDEO = 0
    ST_IMAGE = 1
    MT_VIDEO = 2
    MT_IMAGE = 3
    INVALID = 4


def _scalar(text: str | None) -> Any:
    value = (text or "").strip()
    for convert in (int, float):
        try:
            return convert(value)
        except ValueError:
            pass
    return value


def _xml_node(element: ET.Element) -> Any:
    children = list(element)
    if not children and not element.attrib:
        return _scalar(element.text)
    node: dict[str, Any] = {key: _scalar(value) for key, value in element.attrib.items()}
    for child in children:
        value = _xml_node(child)
        if child.tag in node:
            existing = node[child.tag]
            if isinstance(existing, list):
                existing.append(value)
            else:
                node[child.tag] = [existing, value]
        else:
            node[child.tag] = value
    return node


def read_storage_file(path: str | os.PathLike) -> dict[str, Any]:
    """The top-level mapping of a YAML, JSON or XML storage file.

    Raises OSError when the file cannot be read and ValueError when it does
    not hold a mapping.
    """
    with open(path, encoding="utf-8") as fh:
        text = fh.read()
    stripped = text.lstrip()
    if stripped.startswith("<"):
        try:
            root = ET.fromstring(stripped)
        except ET.ParseError as exc:
            raise ValueError(f"malformed XML in {path}: {exc}") from exc
        content = _xml_node(root)
        if root.tag == _STORAGE_ROOT:
            tree = content if isinstance(content, dict) else {}
        else:
            tree = {root.tag: content}
    else:
        if stripped.startswith("%YAML"):
            stripped = stripped.split("\n", 1)[1] if "\n" in stripped else ""
        try:
            tree = yaml.safe_load(stripped)
        except yaml.YAMLError as exc:
            raise ValueError(f"malformed YAML in {path}: {exc}") from exc
    if not isinstance(tree, dict):
        raise ValueError(f"{path} does not hold a mapping")
    return tree


def _lookup(tree: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(tree, dict):
            return None
        tree = tree.get(key)
    return tree


def _items(node: Any) -> list[Any]:
    if node is None:
        return []
    if isinstance(node, list):
        return node
    return [node]


def _as_float(value: Any) -> float:
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0


def _as_int(value: Any) -> int:
    if isinstance(value, int):
        return int(value)
    return round(_as_float(value))


def _as_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _box(node: Any, obj_idx: int, confidence: float) -> LabeledBox:
    h = _as_float(_lookup(node, "box", "h"))
    w = _as_float(_lookup(node, "box", "w"))
    x = _as_float(_lookup(node, "box", "xc")) - w / 2
    y = _as_float(_lookup(node, "box", "yc")) - h / 2
    return LabeledBox(obj_idx, Rect(x, y, w, h), confidence)


def _frames(tree: dict[str, Any]) -> list[Any]:
    return _items(_lookup(tree, "dataset", "frame"))


def _frame_objects(frame: Any) -> list[Any]:
    return _items(_lookup(frame, "objectlist", "object"))


def _read_lines(path: Path) -> list[str] | None:
    try:
        with open(path, encoding="utf-8", newline="") as fh:
            return split(fh.read(), "\n")
    except OSError:
        return None


def _read_image(path: str) -> np.ndarray | None:
    """The image as a BGR array, or None when it cannot be read."""
    try:
        with Image.open(path) as im:
            rgb = np.asarray(im.convert("RGB"))
    except OSError:
        return None
    return np.ascontiguousarray(rgb[..., ::-1])


@dataclass
class _Sequence:
    name: str
    image_paths: list[str] = field(default_factory=list)
    ground_truth: list[list[LabeledBox]] = field(default_factory=list)
    detections: list[list[LabeledBox]] = field(default_factory=list)
    start_frame: int = 1
    frame_count: int = 0
    count_bytes: int = 0
    prefix: str = ""
    suffix: str = ""
    gt_file: str = ""
    det_file: str = ""


class _SequenceDataset(TrackDataset):
    """Sequences of image files addressed by 1-based frame numbers."""

    def __init__(self) -> None:
        super().__init__()
        self._data: list[_Sequence] = []
        self._active_id: int | None = None

    @property
    def datasets_num(self) -> int:
        return len(self._data)

    @property
    def names(self) -> list[str]:
        return [seq.name for seq in self._data]

    def _length_of(self, dataset_id: int) -> int:
        if not 0 < dataset_id <= len(self._data):
            raise IndexError(
                f"dataset id {dataset_id} out of range; allowed ids are 1~{len(self._data)}"
            )
        return self._data[dataset_id - 1].frame_count

    def _activate(self, name: str) -> None:
        self._frame_idx = 0
        if not self._data:
            raise LookupError("no datasets loaded")
        index = next(
            (i for i, seq in enumerate(self._data) if seq.name == name), len(self._data) - 1
        )
        self._active_id = index + 1

    def _active(self) -> _Sequence:
        if self._active_id is None:
            raise RuntimeError("no dataset initialized")
        return self._data[self._active_id - 1]

    def _read_next(self) -> np.ndarray | None:
        seq = self._active()
        if self._frame_idx >= seq.frame_count:
            return None
        idx = self._frame_idx
        self._frame_idx += 1
        if idx >= len(seq.image_paths):
            return None
        return _read_image(seq.image_paths[idx])

    def _read_at(self, idx: int) -> np.ndarray | None:
        seq = self._active()
        if idx >= seq.frame_count:
            return None
        if idx < 1:
            raise IndexError(f"frame index {idx} out of range")
        if idx - 1 >= len(seq.image_paths):
            return None
        return _read_image(seq.image_paths[idx - 1])

    def _all_ground_truth(self) -> list[list[LabeledBox]]:
        return [list(boxes) for boxes in self._active().ground_truth]

    def _ground_truth_of(self, idx: int) -> list[LabeledBox]:
        if idx < 1:
            raise IndexError(f"frame index {idx} out of range")
        return list(self._active().ground_truth[idx - 1])


class SingleTargetImageDataset(_SequenceDataset):
    """Sequences stored as ``<name>/img/NNNN.jpg`` with ``groundtruth_rect.txt``."""

    def load(self, root_path: str | os.PathLike) -> None:
        root = Path(root_path)
        names = _read_lines(root / "list.txt")
        if names is None:
            logger.error("couldn't find a list.txt in %s", root)
            return

        for name in names:
            gt_path = root / name / "groundtruth_rect.txt"
            gt_lines = _read_lines(gt_path)
            if gt_lines is None:
                logger.error("error opening %s", gt_path)
                continue
            lines = iter(gt_lines)
            seq = _Sequence(name)
            frame_id = 0
            while True:
                frame_id += 1
                full_path = str(root / name / "img" / f"{number_to_string(frame_id)}.jpg")
                if not self.file_exists(full_path):
                    break
                seq.image_paths.append(full_path)
                rect = parse_ground_truth_line(next(lines, ""))
                if rect is None:
                    break
                seq.ground_truth.append([LabeledBox(0, rect, 1.0)])
            # The count is the number at which reading stopped.
            seq.frame_count = frame_id
            seq.start_frame = 1
            self._data.append(seq)

    def dataset_length(self, dataset_id: int) -> int:
        """The frame count of dataset ``dataset_id`` (counted from 1)."""
        return self._length_of(dataset_id)

    def init_dataset(self, name: str) -> None:
        """Activate the sequence named ``name``, or the last one if none matches."""
        self._activate(name)

    def next_frame(self) -> np.ndarray | None:
        """The next frame of the active sequence, or None at its end."""
        return self._read_next()

    def frame_at(self, idx: int) -> np.ndarray | None:
        """Frame number ``idx`` (counted from 1), or None past the end."""
        return self._read_at(idx)

    def ground_truth(self) -> list[list[LabeledBox]]:
        """All ground-truth boxes of the active sequence, frame by frame."""
        return self._all_ground_truth()

    def ground_truth_at(self, idx: int) -> list[LabeledBox]:
        """The ground-truth boxes of frame number ``idx`` (counted from 1)."""
        return self._ground_truth_of(idx)


class MultiTargetImageDataset(_SequenceDataset):
    """Sequences described by ``<name>/<name>.yml`` with ground-truth and detection files.

    The configuration gives ``start``, ``count_bytes``, ``prefix``, ``suffix``,
    ``gt_file`` and ``det_file``; images are ``<name>/img/<prefix>NNN<suffix>``.
    """

    def load(self, root_path: str | os.PathLike) -> None:
        root = Path(root_path)
        names = _read_lines(root / "list.txt")
        if names is None:
            logger.info("couldn't find a list.txt in %s", root)
            return

        for name in names:
            cfg_path = root / name / f"{name}.yml"
            try:
                cfg = read_storage_file(cfg_path)
            except (OSError, ValueError):
                logger.info("error opening %s", cfg_path)
                continue

            seq = _Sequence(
                name,
                start_frame=_as_int(cfg.get("start")),
                count_bytes=_as_int(cfg.get("count_bytes")),
                prefix=_as_str(cfg.get("prefix")),
                suffix=_as_str(cfg.get("suffix")),
                gt_file=_as_str(cfg.get("gt_file")),
                det_file=_as_str(cfg.get("det_file")),
            )
            try:
                gt_tree = read_storage_file(root / name / seq.gt_file)
            except (OSError, ValueError):
                logger.info("error opening ground truth of %s", name)
                continue
            try:
                det_tree = read_storage_file(root / name / seq.det_file)
            except (OSError, ValueError):
                logger.info("error opening detections of %s", name)
                continue

            frame_id = seq.start_frame
            while True:
                file_name = (
                    f"{seq.prefix}{number_to_string(frame_id, seq.count_bytes)}{seq.suffix}"
                )
                full_path = str(root / name / "img" / file_name)
                if not self.file_exists(full_path):
                    break
                if not seq.image_paths:
                    seq.ground_truth = [
                        [_box(obj, _as_int(_lookup(obj, "id")), 1.0) for obj in _frame_objects(f)]
                        for f in _frames(gt_tree)
                    ]
                    seq.detections = [
                        [
                            _box(obj, 0, _as_float(_lookup(obj, "confidence")))
                            for obj in _frame_objects(f)
                        ]
                        for f in _frames(det_tree)
                    ]
                seq.image_paths.append(full_path)
                frame_id += 1

            seq.frame_count = frame_id - seq.start_frame
            self._data.append(seq)

    def dataset_length(self, dataset_id: int) -> int:
        """The frame count of dataset ``dataset_id`` (counted from 1)."""
        return self._length_of(dataset_id)

    def init_dataset(self, name: str) -> None:
        """Activate the sequence named ``name``, or the last one if none matches."""
        self._activate(name)

    def next_frame(self) -> np.ndarray | None:
        """The next frame of the active sequence, or None at its end."""
        return self._read_next()

    def frame_at(self, idx: int) -> np.ndarray | None:
        """Frame number ``idx`` (counted from 1), or None past the end."""
        return self._read_at(idx)

    def ground_truth(self) -> list[list[LabeledBox]]:
        """All ground-truth boxes of the active sequence, frame by frame."""
        return self._all_ground_truth()

    def ground_truth_at(self, idx: int) -> list[LabeledBox]:
        """The ground-truth boxes of frame number ``idx`` (counted from 1)."""
        return self._ground_truth_of(idx)

    def detections(self) -> list[list[LabeledBox]]:
        """All detector boxes of the active sequence, frame by frame."""
        return [list(boxes) for boxes in self._active().detections]


def create_multi_dataset(kind: MultiDatasetType) -> TrackDataset:
    """An empty dataset of the given kind."""
    if kind is MultiDatasetType.ST_IMAGE:
        return SingleTargetImageDataset()
    if kind is MultiDatasetType.MT_IMAGE:
        return MultiTargetImageDataset()
    raise ValueError(f"unsupported dataset type: {kind}")