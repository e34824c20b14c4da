"""Tracking benchmark datasets of numbered images with ground-truth boxes."""

from __future__ import annotations

import enum
import logging
import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
from PIL import Image

from .file_parser import split
from .geometry import Rect

logger = logging.getLogger(__name__)

IMAGE_NUMBER_WIDTH = 4

_FLOAT = re.compile(
    r"\s*([+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan))", re.IGNORECASE
)
_SEPARATOR = re.compile(r"[ \t,]+")


class DatasetType(enum.Enum):
    VIDEO = 0
    IMAGE = 1
    INVALID = 2


def number_to_string(number: int, width: int = IMAGE_NUMBER_WIDTH) -> str:
    """Zero-padded frame number of ``width`` characters.

    At most ``width - 1`` leading digits of the number are kept.
    """
    digits = str(number % 2**32)[: max(width - 1, 0)]
    return digits.rjust(width, "0")


def parse_ground_truth_line(line: str) -> Rect | None:
    """Read ``x y width height`` separated by spaces, tabs or commas.

    Missing trailing fields are zero; None when not even ``x`` can be read.
    """
    values: list[float] = []
    pos = 0
    while len(values) < 4:
        number = _FLOAT.match(line, pos)
        if number is None:
            break
        values.append(float(number.group(1)))
        pos = number.end()
        if len(values) == 4:
            break
        separator = _SEPARATOR.match(line, pos)
        if separator is None:
            break
        pos = separator.end()
    if not values:
        return None
    values.extend([0.0] * (4 - len(values)))
    return Rect(*values)


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
class _ImageSequence:
    name: str
    image_paths: list[str] = field(default_factory=list)
    ground_truth: list[Rect] = field(default_factory=list)
    start_frame: int = 1
    frame_count: int = 0


class TrackDataset(ABC):
    """A collection of named sequences, one of which is active at a time."""

    def __init__(self) -> None:
        self._frame_idx = 0

    @property
    def frame_idx(self) -> int:
        """Index of the next frame to be read."""
        return self._frame_idx

    @property
    @abstractmethod
    def datasets_num(self) -> int:
        """Number of loaded sequences."""

    @staticmethod
    def file_exists(path: str | os.PathLike) -> bool:
        return os.path.exists(path)

    @abstractmethod
    def load(self, root_path: str | os.PathLike) -> None:
        """Load every sequence listed in ``list.txt`` under ``root_path``."""

    @abstractmethod
    def dataset_length(self, dataset_id: int) -> int:
        """Frame count of the sequence with the 1-based ``dataset_id``."""

    @abstractmethod
    def init_dataset(self, name: str) -> None:
        """Make the named sequence the active one."""

    @abstractmethod
    def next_frame(self) -> np.ndarray | None:
        """The next frame of the active sequence, or None at its end."""

    @abstractmethod
    def frame_at(self, idx: int) -> np.ndarray | None:
        """The frame numbered ``idx`` of the active sequence."""

    @abstractmethod
    def ground_truth(self) -> list[Rect]:
        """All ground-truth boxes of the active sequence."""

    @abstractmethod
    def ground_truth_at(self, idx: int) -> Rect:
        """The ground-truth box of frame ``idx``."""


class ImageDataset(TrackDataset):
    """Sequences stored as ``<name>/img/NNNN.jpg`` with ``groundtruth_rect.txt``."""

    def __init__(self) -> None:
        super().__init__()
        self._data: list[_ImageSequence] = []
        self._active_id: int | None = None

    @property
    def datasets_num(self) -> int:
        return len(self._data)

    def load(self, root_path: str | os.PathLike) -> None:
        root = Path(root_path)
        names = _read_lines(root / "list.txt")
        if names is None:
            logger.warning("couldn't find a list.txt in %s", root)
            return

        for name in names:
            gt_path = root / name / "groundtruth_rect.txt"
            gt_lines = _read_lines(gt_path)
            if gt_lines is None:
                logger.debug("error opening %s", gt_path)
                continue
            lines = iter(gt_lines)
            seq = _ImageSequence(name)
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
                seq.ground_truth.append(rect)
            # The count is the number at which reading stopped.
            seq.frame_count = frame_id
            seq.start_frame = 1
            self._data.append(seq)

    def dataset_length(self, dataset_id: int) -> int:
        if not 0 < dataset_id <= len(self._data):
            raise IndexError(
                f"dataset id {dataset_id} out of range; allowed ids are 1~{len(self._data)}"
            )
        return self._data[dataset_id - 1].frame_count

    def init_dataset(self, name: str) -> None:
        """Activate the sequence named ``name``, or the last one if none matches."""
        self._frame_idx = 0
        if not self._data:
            raise LookupError("no datasets loaded")
        index = next(
            (i for i, seq in enumerate(self._data) if seq.name == name), len(self._data) - 1
        )
        self._active_id = index + 1

    def _active(self) -> _ImageSequence:
        if self._active_id is None:
            raise RuntimeError("no dataset initialized")
        return self._data[self._active_id - 1]

    def next_frame(self) -> np.ndarray | None:
        seq = self._active()
        if self._frame_idx >= seq.frame_count:
            return None
        idx = self._frame_idx
        self._frame_idx += 1
        if idx >= len(seq.image_paths):
            return None
        return _read_image(seq.image_paths[idx])

    def frame_at(self, idx: int) -> np.ndarray | None:
        seq = self._active()
        if idx >= seq.frame_count:
            return None
        if idx < 1:
            raise IndexError(f"frame index {idx} out of range")
        if idx - 1 >= len(seq.image_paths):
            return None
        return _read_image(seq.image_paths[idx - 1])

    def ground_truth(self) -> list[Rect]:
        return list(self._active().ground_truth)

    def ground_truth_at(self, idx: int) -> Rect:
        seq = self._active()
        position = idx - seq.start_frame
        if position < 0:
            raise IndexError(f"frame index {idx} out of range")
        return seq.ground_truth[position]


def create_dataset(kind: DatasetType) -> TrackDataset:
    """An empty dataset of the given kind."""
    if kind is DatasetType.IMAGE:
        return ImageDataset()
    raise ValueError(f"unsupported dataset type: {kind}")