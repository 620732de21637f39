"""Detected obstacle records and the per-anchor object maintainer."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields


@dataclass
class Rect:
    """A rectangle given by its top-left corner and its extent."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    def intersection(self, other: Rect) -> Rect:
        """Overlap of two rectangles, or an all-zero rectangle if they are disjoint."""
        self_xmax = self.x + self.width
        self_ymax = self.y + self.height
        other_xmax = other.x + other.width
        other_ymax = other.y + other.height
        if (
            other.x <= self_xmax
            and other_xmax >= self.x
            and other.y <= self_ymax
            and other_ymax >= self.y
        ):
            xmin = max(self.x, other.x)
            ymin = max(self.y, other.y)
            xmax = min(self_xmax, other_xmax)
            ymax = min(self_ymax, other_ymax)
            return Rect(xmin, ymin, xmax - xmin, ymax - ymin)
        return Rect()

    def __and__(self, other: Rect) -> Rect:
        return self.intersection(other)


@dataclass
class BBox2D:
    """A box given by its minimum and maximum corners."""

    xmin: float = 0.0
    ymin: float = 0.0
    xmax: float = 0.0
    ymax: float = 0.0

    @classmethod
    def from_rect(cls, rect: Rect) -> BBox2D:
        return cls(rect.x, rect.y, rect.x + rect.width, rect.y + rect.height)


@dataclass
class CameraSupplement:
    """Camera-specific attributes of a detected object."""

    box: BBox2D = field(default_factory=BBox2D)
    front_box: BBox2D = field(default_factory=BBox2D)
    back_box: BBox2D = field(default_factory=BBox2D)
    alpha: float = 0.0
    truncated_horizontal: float = 0.0
    truncated_vertical: float = 0.0
    visible_ratios: list[float] = field(default_factory=lambda: [0.0] * 4)
    cut_off_ratios: list[float] = field(default_factory=lambda: [0.0] * 4)
    area_id: int = 0


@dataclass
class CarLight:
    """Visibility and switch state of a vehicle's lights."""

    brake_visible: float = 0.0
    brake_switch_on: float = 0.0
    left_turn_visible: float = 0.0
    left_turn_switch_on: float = 0.0
    right_turn_visible: float = 0.0
    right_turn_switch_on: float = 0.0


@dataclass
class DetectedObject:
    """An obstacle found in a camera image.

    ``size`` holds length, width and height in that order.
    """

    type: int = 0
    sub_type: int = 0
    type_probs: list[float] = field(default_factory=list)
    sub_type_probs: list[float] = field(default_factory=list)
    confidence: float = 0.0
    size: list[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    camera_supplement: CameraSupplement = field(default_factory=CameraSupplement)
    car_light: CarLight = field(default_factory=CarLight)


@dataclass
class MinDims:
    """Minimum 2D and 3D dimensions an object must reach to be kept."""

    min_2d_height: float = 0.0
    min_3d_height: float = 0.0
    min_3d_length: float = 0.0
    min_3d_width: float = 0.0


class ObjectMaintainer:
    """Keeps one object per index, preferring the most confident sub-type."""

    def __init__(self) -> None:
        self._assigned: dict[int, DetectedObject] = {}

    def add(self, idx: int, obj: DetectedObject) -> bool:
        """Register ``obj`` under ``idx``.

        Returns True when the index was new. Otherwise the stored object takes
        over the contents of ``obj`` if its sub-type probability is higher, and
        False is returned.
        """
        previous = self._assigned.get(idx)
        if previous is None:
            self._assigned[idx] = obj
            return True

        current_prob = obj.sub_type_probs[obj.sub_type]
        previous_prob = previous.sub_type_probs[previous.sub_type]
        if current_prob > previous_prob:
            for f in fields(obj):
                setattr(previous, f.name, copy.deepcopy(getattr(obj, f.name)))
        return False