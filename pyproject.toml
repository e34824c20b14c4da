[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "objanalytics"
version = "0.1.0"
description = "Object analytics on RGB-D data: 3D localisation of detected objects, multi-object tracking, tracking datasets and a tracking regression runner."
requires-python = ">=3.10"
keywords = [
    "object detection",
    "object tracking",
    "point cloud",
    "segmentation",
    "localization",
    "computer vision",
    "tracking dataset",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Image Recognition",
    "Typing :: Typed",
]
dependencies = [
    "numpy",
    "scipy",
    "pillow",
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
objanalytics-regression = "objanalytics.regression:main"

[tool.hatch.build.targets.wheel]
packages = ["objanalytics"]

[tool.hatch.build.targets.sdist]
include = [
    "objanalytics",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
