# objanalytics

Object analytics for RGB-D camera data. Its input is 2D detections (labelled
boxes in an image) and a registered point cloud. From these it works out:

- **where each detected object is in 3D**. The finite points inside each box
  are clustered, and the largest cluster gives the object's bounding corners.
- **how objects move between detections**. Each confident detection gets a
  tracking. Later detections rectify the trackings, and trackings that have
  gone too long without a detection are removed.

The package also has loaders for tracking datasets, and a regression runner
that scores tracked boxes against ground truth.

## Installation

```
pip install objanalytics
```

To run the test suite as well:

```
pip install "objanalytics[test]"
pytest
```

## Modules

| Module | What it provides |
| --- | --- |
| `objanalytics.messages` | Plain message dataclasses: `Time`, `Header`, `RegionOfInterest`, `ObjectInfo`, `ObjectInBox`, `ObjectsInBoxes`, `Point32`, `ObjectInBox3D`, `ObjectsInBoxes3D`, `TrackedObject`, `TrackedObjects`. The pipeline's topic names are in `Topics`. |
| `objanalytics.geometry` | `Rect`, with `area`, `intersect` (`&`), `union` (`\|`), `to_int` and `center`. Also `get_match`, which scores two boxes as their overlap rate times 100 divided by the distance between their centres. |
| `objanalytics.pointcloud` | `Point`, `PixelPoint` and a row-ordered `PointCloud`. Also `copy_point_cloud`, which tags points with their pixel position; `min_max_points_x`, `min_max_points_y` and `min_max_points_z`; and `projected_roi`. |
| `objanalytics.model` | `Object2D` and `Object3D`, together with `fill_2d_objects`, `fill_3d_objects` and `find_max_intersection_relationships`. |
| `objanalytics.algorithm` | `AlgorithmConfig`. `EuclideanClusterSegmenter`, a k-d tree Euclidean clustering with minimum and maximum cluster sizes. The `AlgorithmProvider` interface and `DefaultAlgorithmProvider`. |
| `objanalytics.segmenter` | `Segmenter`, which turns `ObjectsInBoxes` and a `PointCloud` into `ObjectsInBoxes3D`. Also `pixel_point_cloud`. |
| `objanalytics.splitter` | `split`, which takes a `bgr8` `Image` from a coloured organized cloud, and `split_points_to_xyz`. |
| `objanalytics.tracking` | `Tracking`, one tracked object with its detection state and a history of up to 30 stamped boxes. Also the `Tracker` interface, `TemplateTracker` and `create_tracker`. |
| `objanalytics.tracking_manager` | `TrackingManager`, which matches detections to trackings by name and `get_match` score, creates and cleans up trackings, and reports them as `TrackedObjects`. Also `validate_roi`. |
| `objanalytics.tracking_node` | `TrackingNode`. It buffers `StampedImage` frames and detections, lines them up by timestamp, and hands non-empty results to a `publish` callback. |
| `objanalytics.datasets` | `ImageDataset` for single-target image sequences, with `create_dataset`, `number_to_string` and `parse_ground_truth_line`. |
| `objanalytics.mt_datasets` | `SingleTargetImageDataset` and `MultiTargetImageDataset`, which hold per-frame lists of `LabeledBox`. Also `create_multi_dataset`, and `read_storage_file`, which reads YAML, JSON or XML storage files. |
| `objanalytics.regression` | `RegressionStats`, `run_regression`, `encoding_for`, `usage` and the `main` command. |
| `objanalytics.file_parser` | `split`, which splits a string on a delimiter and can drop empty fields. |

## Quick examples

Scoring how well two boxes match:

```python
from objanalytics.geometry import Rect, get_match

origin = Rect(50, 50, 100, 100)
print(get_match(origin, Rect(50, 50, 100, 100)) > get_match(origin, Rect(40, 40, 110, 110)))
```

Splitting a line of text:

```python
from objanalytics.file_parser import split

print(split("a,,b,c", ",", True))   # ['a', 'b', 'c']
```

Localising detections in a point cloud:

```python
from objanalytics.algorithm import DefaultAlgorithmProvider
from objanalytics.segmenter import Segmenter

segmenter = Segmenter(DefaultAlgorithmProvider(), sampling_step=1)
result = segmenter.segment(objects_in_boxes, cloud)  # ObjectsInBoxes3D
```

## Tracking regression

The `objanalytics-regression` command plays an image dataset through a
`TrackingNode`. Every fourth frame it also feeds in a detection built from
the ground truth of the frame two before it. Each tracked box is scored
against the ground truth of its frame. The report gives the number of boxes
with any overlap, the number with overlap above 0.7, the number of frames
presented and responses received, and the precision and recall.

An image dataset is a directory that holds a `list.txt` with one sequence
name per line. Each sequence directory holds:

- `groundtruth_rect.txt`, with one `x y width height` box per line, the
  values separated by spaces, tabs or commas;
- an `img/` directory with frames named `0001.jpg`, `0002.jpg`, and so on.

```
objanalytics-regression -a MEDIAN_FLOW -p /data/tracking -t image -n Basketball
```

Options:

- `-h` prints the usage text.
- `-a ALGORITHM` names the tracking algorithm. Accepted names are `KCF`,
  `TLD`, `BOOSTING`, `MEDIAN_FLOW`, `MIL` and `GOTURN`. An unknown name is
  ignored.
- `-p PATH` is the root directory of the datasets.
- `-t TYPE` is the dataset type. Only `image` can be run: `video` is accepted
  by the parser but ends with an error, and any other value makes the command
  exit without doing anything.
- `-n NAME` is the name of the sequence to run. If no sequence has that name,
  the last loaded sequence is used.

If the path, the type or the name is missing, the command prints the usage
text and exits.

## What the package does not do

- **No real tracking algorithms.** Every accepted algorithm name gives the
  same `TemplateTracker`, which finds the best sum-of-squared-differences match
  of the initial patch near its last position.
- **No plane segmentation.** `EuclideanClusterSegmenter` reads the plane,
  normal and comparator settings from its configuration, but clustering uses
  only the distance threshold and the cluster size limits.
- **No video datasets.** Only image sequences can be loaded. Asking
  `create_dataset` or `create_multi_dataset` for a video type raises
  `ValueError`.
- **No messaging runtime, display or visualizer.** Results come back as
  return values, or through the `publish` callback you give `TrackingNode`.
  Nothing is published on the topics in `Topics`, and no window is drawn.