"""Post-processing of decoded detections: filling, filtering and recovery."""

from __future__ import annotations

import logging
from typing import Sequence

from camdetect.objects import BBox2D, DetectedObject, MinDims, Rect

logger = logging.getLogger(__name__)

BOX_BLOCK_SIZE = 32
MAX_OBJ_SIZE = 1000


def filter_bbox(min_dims: MinDims, objects: Sequence[DetectedObject]) -> list[DetectedObject]:
    """Keep the objects meeting the minimum 2D height and 3D dimensions, in order.

    A non-positive 3D minimum disables that check.
    """
    kept = [
        obj
        for obj in objects
        if (obj.camera_supplement.box.ymax - obj.camera_supplement.box.ymin)
        >= min_dims.min_2d_height
        and (min_dims.min_3d_height <= 0 or obj.size[2] >= min_dims.min_3d_height)
        and (min_dims.min_3d_width <= 0 or obj.size[1] >= min_dims.min_3d_width)
        and (min_dims.min_3d_length <= 0 or obj.size[0] >= min_dims.min_3d_length)
    ]
    logger.info("%d of %d obstacles kept", len(kept), len(objects))
    return kept


def _scale_box(box: BBox2D, roi_w: int, roi_h: int, offset_y: int) -> None:
    box.xmin *= float(roi_w)
    box.ymin *= float(roi_h)
    box.xmax *= float(roi_w)
    box.ymax *= float(roi_h)
    box.ymin += float(offset_y)
    box.ymax += float(offset_y)


def recover_bbox(
    roi_w: int, roi_h: int, offset_y: int, objects: Sequence[DetectedObject]
) -> None:
    """Map normalized boxes of each object back to image pixels, in place."""
    eps = 1e-2
    image_rect = Rect(0.0, 0.0, float(roi_w), float(roi_h + offset_y))
    for obj in objects:
        sup = obj.camera_supplement
        xmin, ymin, xmax, ymax = sup.box.xmin, sup.box.ymin, sup.box.xmax, sup.box.ymax
        x = int(xmin * roi_w)
        w = int((xmax - xmin) * roi_w)
        y = int(ymin * roi_h) + offset_y
        h = int((ymax - ymin) * roi_h)
        detected = Rect(float(x), float(y), float(w), float(h))
        sup.box = BBox2D.from_rect(detected & image_rect)

        sup.truncated_vertical = 0.5 if (ymin < eps or ymax >= 1.0 - eps) else 0.0
        sup.truncated_horizontal = 0.5 if (xmin < eps or xmax >= 1.0 - eps) else 0.0

        _scale_box(sup.front_box, roi_w, roi_h, offset_y)
        _scale_box(sup.back_box, roi_w, roi_h, offset_y)


def fill_base(obj: DetectedObject, bbox: Sequence[float]) -> None:
    """Set the 2D box from ``bbox[0:4]`` (xmin, ymin, xmax, ymax)."""
    box = obj.camera_supplement.box
    box.xmin, box.ymin, box.xmax, box.ymax = bbox[0], bbox[1], bbox[2], bbox[3]


def fill_bbox3d(with_box3d: bool, obj: DetectedObject, bbox: Sequence[float]) -> None:
    """Set alpha, height, width and length from ``bbox[0:4]`` when enabled."""
    if with_box3d:
        obj.camera_supplement.alpha = bbox[0]
        obj.size[2] = bbox[1]
        obj.size[1] = bbox[2]
        obj.size[0] = bbox[3]


def fill_frbox(with_frbox: bool, obj: DetectedObject, bbox: Sequence[float]) -> None:
    """Set the front box from ``bbox[0:4]`` and the back box from ``bbox[4:8]``."""
    if with_frbox:
        front = obj.camera_supplement.front_box
        back = obj.camera_supplement.back_box
        front.xmin, front.ymin, front.xmax, front.ymax = bbox[0], bbox[1], bbox[2], bbox[3]
        back.xmin, back.ymin, back.xmax, back.ymax = bbox[4], bbox[5], bbox[6], bbox[7]


def fill_lights(with_lights: bool, obj: DetectedObject, bbox: Sequence[float]) -> None:
    """Set the car light attributes from ``bbox[0:6]`` when enabled."""
    if with_lights:
        light = obj.car_light
        light.brake_visible = bbox[0]
        light.brake_switch_on = bbox[1]
        light.left_turn_visible = bbox[2]
        light.left_turn_switch_on = bbox[3]
        light.right_turn_visible = bbox[4]
        light.right_turn_switch_on = bbox[5]


def fill_ratios(with_ratios: bool, obj: DetectedObject, bbox: Sequence[float]) -> None:
    """Set visible ratios from ``bbox[0:4]`` and cut-off ratios from ``bbox[4:8]``."""
    if with_ratios:
        obj.camera_supplement.visible_ratios = [bbox[0], bbox[1], bbox[2], bbox[3]]
        obj.camera_supplement.cut_off_ratios = [bbox[4], bbox[5], bbox[6], bbox[7]]


def fill_area_id(with_flag: bool, obj: DetectedObject, data: Sequence[float]) -> None:
    """Set the area id from ``data[0]`` when enabled."""
    if with_flag:
        obj.camera_supplement.area_id = int(data[0])


def get_area_id(visible_ratios: Sequence[float]) -> tuple[int, list[float]]:
    """Derive the area id from four face visibility ratios.

    Returns the area id and the renormalized ratios, in which only the most
    visible face and at most one neighbour are non-zero.
    """
    if len(visible_ratios) != 4:
        raise ValueError("visible_ratios must hold exactly 4 values")
    max_face = 0
    for face in range(1, 4):
        if visible_ratios[face] > visible_ratios[max_face]:
            max_face = face
    left_face = (max_face + 1) % 4
    right_face = (max_face + 3) % 4
    eps = 1e-3
    max_ratio = visible_ratios[max_face]
    left_ratio = visible_ratios[left_face]
    right_ratio = visible_ratios[right_face]

    ratios = [0.0] * 4
    if left_ratio < eps and right_ratio < eps:
        area_id = max_face * 2 + 1
        ratios[max_face] = 1.0
    elif left_ratio > right_ratio:
        area_id = max_face * 2 + 2
        total = left_ratio + max_ratio
        ratios[max_face] = max_ratio / total
        ratios[left_face] = left_ratio / total
    else:
        area_id = max_face * 2
        if area_id == 0:
            area_id = 8
        total = right_ratio + max_ratio
        ratios[max_face] = max_ratio / total
        ratios[right_face] = right_ratio / total
    return area_id, ratios