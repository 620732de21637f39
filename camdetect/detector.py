"""Configuration and post-processing stages of the YOLO obstacle detector."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, fields
from typing import Any, Mapping, Sequence

from camdetect.geometry import BOX_VOTE
from camdetect.objects import DetectedObject, MinDims
from camdetect.postprocess import MAX_OBJ_SIZE, filter_bbox, get_area_id, recover_bbox

logger = logging.getLogger(__name__)

DETECTOR_NAME = "YoloObstacleDetector"


@dataclass
class NMSParam:
    """Parameters of the non-maximum suppression stage."""

    threshold: float = 0.0
    inter_cls_nms_thresh: float = 0.0
    inter_cls_conf_thresh: float = 0.0
    sigma: float = 0.0
    type: str = BOX_VOTE


def _build(cls: type, data: Mapping[str, Any], what: str) -> Any:
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ValueError(f"unknown {what} field(s): {', '.join(sorted(unknown))}")
    return cls(**dict(data))


@dataclass
class ModelParam:
    """Model settings that drive input shaping and post-processing."""

    offset_ratio: float = 0.0
    cropped_ratio: float = 1.0
    resized_width: int = 0
    aligned_pixel: int = 32
    confidence_threshold: float = 0.0
    light_vis_conf_threshold: float = 0.0
    light_swt_conf_threshold: float = 0.0
    min_dims: MinDims = field(default_factory=MinDims)
    ori_cycle: int = 1
    border_ratio: float = 0.0
    nms_param: NMSParam = field(default_factory=NMSParam)
    num_areas: int = 0
    with_box3d: bool = False
    with_frbox: bool = False
    with_lights: bool = False
    with_ratios: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ModelParam:
        """Build from a mapping; nested ``min_dims`` and ``nms_param`` may be mappings."""
        values = dict(data)
        min_dims = values.get("min_dims")
        if isinstance(min_dims, Mapping):
            values["min_dims"] = _build(MinDims, min_dims, "min_dims")
        nms_param = values.get("nms_param")
        if isinstance(nms_param, Mapping):
            values["nms_param"] = _build(NMSParam, nms_param, "nms_param")
        return _build(cls, values, "model_param")


@dataclass(frozen=True)
class InputShape:
    """Network input geometry derived from the image and model settings."""

    offset_y: int
    width: int
    height: int
    roi_ratio: float


def _round_half_away(value: float) -> int:
    return int(math.floor(abs(value) + 0.5)) * (1 if value >= 0 else -1)


def compute_input_shape(
    model_param: ModelParam, image_width: int, image_height: int
) -> InputShape:
    """Crop offset and aligned network input size for an image."""
    aligned = model_param.aligned_pixel
    if aligned <= 0:
        raise ValueError("aligned_pixel must be positive")
    if image_width <= 0:
        raise ValueError("image_width must be positive")
    half = aligned // 2
    offset_y = _round_half_away(model_param.offset_ratio * image_height)
    roi_ratio = model_param.cropped_ratio * image_height / image_width
    width = (model_param.resized_width + half) // aligned * aligned
    height = int(width * roi_ratio + half) // aligned * aligned
    logger.info(
        "image_height=%d, image_width=%d, roi_ratio=%s", image_height, image_width, roi_ratio
    )
    logger.info("offset_y=%d, height=%d, width=%d", offset_y, height, width)
    return InputShape(offset_y=offset_y, width=width, height=height, roi_ratio=roi_ratio)


@dataclass
class YoloDetectorConfig:
    """Loaded detector settings and the post-processing applied to detections."""

    image_width: int
    image_height: int
    input_shape: InputShape
    min_dims: MinDims
    nms: NMSParam
    confidence_threshold: float
    light_vis_conf_threshold: float
    light_swt_conf_threshold: float
    ori_cycle: int
    border_ratio: float
    num_areas: int
    max_objects: int = MAX_OBJ_SIZE

    @property
    def offset_y(self) -> int:
        return self.input_shape.offset_y

    @classmethod
    def from_model_param(
        cls, model_param: ModelParam, image_width: int, image_height: int
    ) -> YoloDetectorConfig:
        """Derive the detector settings; the 2D minimum height becomes normalized."""
        shape = compute_input_shape(model_param, image_width, image_height)
        if shape.height <= 0:
            raise ValueError("computed network input height is zero")
        if model_param.ori_cycle == 0:
            raise ValueError("ori_cycle must be non-zero")
        src = model_param.min_dims
        min_dims = MinDims(
            min_2d_height=src.min_2d_height / float(shape.height),
            min_3d_height=src.min_3d_height,
            min_3d_length=src.min_3d_length,
            min_3d_width=src.min_3d_width,
        )
        nms = model_param.nms_param
        return cls(
            image_width=image_width,
            image_height=image_height,
            input_shape=shape,
            min_dims=min_dims,
            nms=NMSParam(
                threshold=nms.threshold,
                inter_cls_nms_thresh=nms.inter_cls_nms_thresh,
                inter_cls_conf_thresh=nms.inter_cls_conf_thresh,
                sigma=nms.sigma,
                type=nms.type,
            ),
            confidence_threshold=model_param.confidence_threshold,
            light_vis_conf_threshold=model_param.light_vis_conf_threshold,
            light_swt_conf_threshold=model_param.light_swt_conf_threshold,
            ori_cycle=model_param.ori_cycle,
            border_ratio=model_param.border_ratio,
            num_areas=model_param.num_areas,
        )

    def postprocess(
        self,
        objects: Sequence[DetectedObject],
        src_width: int,
        src_height: int,
        image_cols: int,
    ) -> list[DetectedObject]:
        """Filter, map to pixels and finish the attributes of decoded objects."""
        kept = filter_bbox(self.min_dims, objects)
        recover_bbox(src_width, src_height - self.offset_y, self.offset_y, kept)

        left_boundary = int(self.border_ratio * float(image_cols))
        right_boundary = int((1.0 - self.border_ratio) * float(image_cols))
        for obj in kept:
            sup = obj.camera_supplement
            sup.alpha /= self.ori_cycle
            if self.num_areas == 0:
                sup.area_id, sup.visible_ratios = get_area_id(sup.visible_ratios)
            if sup.box.xmin >= left_boundary:
                sup.cut_off_ratios[2] = 0.0
            if sup.box.xmax <= right_boundary:
                sup.cut_off_ratios[3] = 0.0
        return kept