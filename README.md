# camdetect

Post-processing building blocks for a YOLO-style camera obstacle detector,
together with readers for camera intrinsics, pose files and a sensor registry.
The package takes the decoded box and score outputs of a model and turns them
into filtered obstacles in image coordinates.

## Modules

### `camdetect.geometry`

- `NormalizedBBox`: a box in normalized coordinates (`xmin`, `ymin`, `xmax`,
  `ymax`, `label`, `score`, `size`, `mask`). Unset coordinates default to `-1`.
- `intersect_bbox(bbox1, bbox2)`: the overlap box. If the boxes are disjoint,
  the result has all four coordinates set to zero.
- `bbox_size(bbox)`: the area of a box.
  - An invalid box gives `0`.
  - A stored non-negative `size` is returned as it is.
- `jaccard_overlap(bbox1, bbox2)`: intersection over union.
- `max_score_index(scores, threshold, top_k)`: the `(score, index)` pairs above
  the threshold, best first, cut to `top_k`.
  - Pairs with equal scores stay in their original order.
  - A negative `top_k` keeps every pair.
- `apply_nms_fast(bboxes, scores, score_threshold, nms_threshold, eta, top_k)`:
  greedy non-maximum suppression. The threshold adapts by `eta` while it stays
  above 0.5. Returns the kept indices.
- `apply_softnms_fast(bboxes, scores, score_threshold, nms_threshold, top_k, is_linear, sigma)`:
  soft-NMS with linear or Gaussian decay. Returns `(indices, decayed_scores)`.
- `apply_boxvoting_fast(bboxes, scores, conf_threshold, nms_threshold, sigma)`:
  box voting. Returns `(indices, voted_boxes, new_scores)` and leaves the
  inputs unchanged.

Each of the three suppression functions raises `ValueError` when `bboxes` and
`scores` differ in length.

The strategy names are also defined as constants: `NORMAL_NMS`,
`LINEAR_SOFT_NMS`, `GAUSSIAN_SOFT_NMS` and `BOX_VOTE`.

### `camdetect.objects`

- Records for detected obstacles:
  - `DetectedObject`: `size` holds length, width, height.
  - `CameraSupplement`: box, front and back boxes, alpha, truncation,
    visible and cut-off ratios, area id.
  - `CarLight`.
- `BBox2D` and `Rect`. `Rect.intersection` can also be written `rect_a & rect_b`.
- `MinDims`: the minimum sizes an object must reach to be kept.
- `ObjectMaintainer.add(idx, obj)`: keeps one object per index.
  - Returns `True` for a new index.
  - Otherwise it returns `False`. Before that, if the new object's sub-type
    probability is higher, the stored object takes over the new object's
    contents.

### `camdetect.postprocess`

- Fill functions copy a row of model output into an object:
  - `fill_base`
  - `fill_bbox3d`
  - `fill_frbox`
  - `fill_lights`
  - `fill_ratios`
  - `fill_area_id`

  Apart from `fill_base`, each one takes a flag first and does nothing when
  the flag is false.
- `filter_bbox(min_dims, objects)` returns the objects that meet the minimum
  dimensions, in their original order. A 3D minimum that is not positive is
  ignored.
- `recover_bbox(roi_w, roi_h, offset_y, objects)` works in place. It maps
  normalized boxes to pixels, clips them to the image and sets the truncation
  flags.
- `get_area_id(visible_ratios)` takes four face ratios and returns
  `(area_id, renormalized_ratios)`.
- The constants `BOX_BLOCK_SIZE` (32) and `MAX_OBJ_SIZE` (1000) are defined
  here.

### `camdetect.detector`

- `ModelParam`: model settings. `ModelParam.from_dict` builds it from a
  mapping, with nested `min_dims` and `nms_param` mappings. It raises
  `ValueError` on unknown keys.
- `NMSParam`: NMS settings. Its default type is `"BoxVote"`.
- `compute_input_shape(model_param, image_width, image_height)` returns an
  `InputShape`: crop offset, aligned network width and height, and ROI ratio.
- `YoloDetectorConfig.from_model_param(model_param, image_width, image_height)`
  derives the detector settings. The 2D minimum height becomes a fraction of
  the network input height.
- `YoloDetectorConfig.postprocess(objects, src_width, src_height, image_cols)`
  runs these steps and returns the kept objects:
  1. filtering;
  2. box recovery;
  3. alpha rescaling by `ori_cycle`;
  4. area id derivation, when `num_areas` is 0;
  5. clearing cut-off ratios away from the image borders.

### `camdetect.io_util`

- `read_pose_file(filename)` reads `frame_id timestamp tx ty tz qx qy qz qw`
  and returns a `Pose`. `Pose.rotation` gives a 3x3 matrix and `Pose.matrix`
  a 4x4 matrix, both as numpy arrays.
- `load_brown_camera_intrinsic(yaml_file)` reads `width`, `height`, `K` (9
  values) and `D` (8 values) into `BrownCameraIntrinsics`. That class provides
  `k_matrix` and `distortion`.
- `load_omnidirectional_camera_intrinsics(yaml_file)` reads an ocam-style
  YAML file into `OmnidirectionalCameraIntrinsics`. Its `params` property gives
  the flat parameter layout.
- `get_file_list(path, suffix)` lists every file and directory below `path`,
  at any depth, whose path ends with `suffix`.

Missing files raise `FileNotFoundError`. Malformed content raises `ValueError`.

### `camdetect.sensor_manager`

- `SensorType`, `SensorOrientation`, `SensorInfo` and `SensorMeta`.
- `load_sensor_meta_file(path)` reads a text-format list of
  `sensor_meta { name: "..." type: ... orientation: ... is_main_sensor: ... }`
  entries. This is a block syntax, not YAML. Enum values may be given by name
  or by number.
- `SensorManager(sensor_metas, intrinsic_path)` registers each sensor.
  - For every camera it loads `<intrinsic_path>/<name>_intrinsics.yaml`
    with `load_brown_camera_intrinsic`.
  - A duplicate name raises `ValueError`.
- Queries:
  - `is_sensor_exist`
  - `get_sensor_info`, which raises `KeyError` for an unknown name
  - `get_intrinsics`
  - `is_main_sensor`
  - `get_frame_id`
  - the type checks `is_hd_lidar`, `is_ld_lidar`, `is_lidar`, `is_radar`,
    `is_camera` and `is_ultrasonic`, which accept a sensor name or a
    `SensorType`

## Example

```python
from camdetect.geometry import NormalizedBBox, apply_nms_fast

boxes = [
    NormalizedBBox(xmin=0.1, ymin=0.1, xmax=0.5, ymax=0.5),
    NormalizedBBox(xmin=0.12, ymin=0.1, xmax=0.52, ymax=0.5),
    NormalizedBBox(xmin=0.6, ymin=0.6, xmax=0.9, ymax=0.9),
]
scores = [0.9, 0.8, 0.7]
kept = apply_nms_fast(boxes, scores, score_threshold=0.5,
                      nms_threshold=0.5, eta=1.0, top_k=-1)
print(kept)  # [0, 2]
```

## What it does not do

- It does not run a neural network or load model weights.
- It does not decode images or camera messages.
- It does not decode raw network output tensors into boxes.
- It provides no command-line program and no messaging component. Callers
  supply decoded detections and use the functions above as a library.

## Installation and tests

```
pip install .[test]
pytest
```