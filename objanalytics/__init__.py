"""Object localisation in point clouds, multi-object tracking, tracking datasets and regression."""

__version__ = "0.1.0"