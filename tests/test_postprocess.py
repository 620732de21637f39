import pytest

from camdetect.objects import BBox2D, DetectedObject, MinDims
from camdetect.postprocess import (
    fill_area_id,
    fill_base,
    fill_bbox3d,
    fill_frbox,
    fill_lights,
    fill_ratios,
    filter_bbox,
    get_area_id,
    recover_bbox,
)


def _obj_with_box(xmin, ymin, xmax, ymax, size=(0.0, 0.0, 0.0)):
    obj = DetectedObject(size=list(size))
    obj.camera_supplement.box = BBox2D(xmin, ymin, xmax, ymax)
    return obj


def test_fill_base_sets_box():
    obj = DetectedObject()
    fill_base(obj, [0.1, 0.2, 0.3, 0.4, 9.0])
    assert obj.camera_supplement.box == BBox2D(0.1, 0.2, 0.3, 0.4)


def test_fill_bbox3d_enabled_and_disabled():
    obj = DetectedObject()
    fill_bbox3d(True, obj, [0.3, 1.5, 1.8, 4.2])
    assert obj.camera_supplement.alpha == 0.3
    assert obj.size == [4.2, 1.8, 1.5]
    other = DetectedObject()
    fill_bbox3d(False, other, [0.3, 1.5, 1.8, 4.2])
    assert other == DetectedObject()


def test_fill_frbox_sets_front_and_back():
    obj = DetectedObject()
    fill_frbox(True, obj, [1, 2, 3, 4, 5, 6, 7, 8])
    assert obj.camera_supplement.front_box == BBox2D(1, 2, 3, 4)
    assert obj.camera_supplement.back_box == BBox2D(5, 6, 7, 8)


def test_fill_frbox_disabled_leaves_object():
    obj = DetectedObject()
    fill_frbox(False, obj, [1, 2, 3, 4, 5, 6, 7, 8])
    assert obj == DetectedObject()


def test_fill_lights():
    obj = DetectedObject()
    fill_lights(True, obj, [0.1, 0.2, 0.3, 0.4, 0.5, 0.6])
    light = obj.car_light
    assert (light.brake_visible, light.brake_switch_on) == (0.1, 0.2)
    assert (light.left_turn_visible, light.left_turn_switch_on) == (0.3, 0.4)
    assert (light.right_turn_visible, light.right_turn_switch_on) == (0.5, 0.6)


def test_fill_ratios():
    obj = DetectedObject()
    fill_ratios(True, obj, [0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8])
    assert obj.camera_supplement.visible_ratios == [0.1, 0.2, 0.3, 0.4]
    assert obj.camera_supplement.cut_off_ratios == [0.5, 0.6, 0.7, 0.8]


def test_fill_area_id():
    obj = DetectedObject()
    fill_area_id(True, obj, [5.0])
    assert obj.camera_supplement.area_id == 5
    other = DetectedObject()
    fill_area_id(False, other, [5.0])
    assert other.camera_supplement.area_id == DetectedObject().camera_supplement.area_id


def test_fill_short_input_raises():
    with pytest.raises(IndexError):
        fill_lights(True, DetectedObject(), [0.1, 0.2])


def test_filter_bbox_by_2d_height_keeps_order():
    tall_a = _obj_with_box(0.0, 0.0, 1.0, 0.5)
    short = _obj_with_box(0.0, 0.0, 1.0, 0.05)
    tall_b = _obj_with_box(0.0, 0.2, 1.0, 0.9)
    kept = filter_bbox(MinDims(min_2d_height=0.1), [tall_a, short, tall_b])
    assert kept == [tall_a, tall_b]
    assert kept[0] is tall_a and kept[1] is tall_b


def test_filter_bbox_3d_checks():
    big = _obj_with_box(0.0, 0.0, 1.0, 1.0, size=(4.0, 2.0, 1.5))
    narrow = _obj_with_box(0.0, 0.0, 1.0, 1.0, size=(4.0, 0.5, 1.5))
    dims = MinDims(min_3d_width=1.0)
    assert filter_bbox(dims, [big, narrow]) == [big]
    # Non-positive 3D limits disable the checks.
    assert filter_bbox(MinDims(), [big, narrow]) == [big, narrow]


def test_recover_bbox_full_frame():
    roi_w, roi_h, offset_y = 100, 50, 20
    obj = _obj_with_box(0.0, 0.0, 1.0, 1.0)
    recover_bbox(roi_w, roi_h, offset_y, [obj])
    sup = obj.camera_supplement
    assert sup.box == BBox2D(0.0, offset_y, roi_w, roi_h + offset_y)
    assert sup.truncated_vertical == 0.5
    assert sup.truncated_horizontal == 0.5


def test_recover_bbox_clips_to_image():
    roi_w, roi_h, offset_y = 100, 50, 0
    obj = _obj_with_box(0.5, 0.2, 1.5, 0.6)
    recover_bbox(roi_w, roi_h, offset_y, [obj])
    box = obj.camera_supplement.box
    assert box.xmax == roi_w
    assert 0 <= box.xmin <= box.xmax
    assert 0 <= box.ymin <= box.ymax <= roi_h + offset_y


def test_recover_bbox_interior_not_truncated():
    obj = _obj_with_box(0.25, 0.25, 0.75, 0.75)
    recover_bbox(200, 100, 10, [obj])
    sup = obj.camera_supplement
    assert sup.truncated_vertical == 0.0
    assert sup.truncated_horizontal == 0.0
    assert sup.box == BBox2D(50.0, 35.0, 150.0, 85.0)


def test_recover_bbox_scales_front_and_back_boxes():
    roi_w, roi_h, offset_y = 80, 40, 12
    obj = _obj_with_box(0.0, 0.0, 1.0, 1.0)
    obj.camera_supplement.front_box = BBox2D(0.0, 0.0, 1.0, 1.0)
    obj.camera_supplement.back_box = BBox2D(0.0, 0.0, 1.0, 1.0)
    recover_bbox(roi_w, roi_h, offset_y, [obj])
    expected = BBox2D(0.0, offset_y, roi_w, roi_h + offset_y)
    assert obj.camera_supplement.front_box == expected
    assert obj.camera_supplement.back_box == expected


def test_get_area_id_single_face():
    area_id, ratios = get_area_id([0.9, 0.0, 0.0, 0.0])
    assert area_id == 1
    assert ratios == [1.0, 0.0, 0.0, 0.0]


def test_get_area_id_left_neighbour():
    area_id, ratios = get_area_id([0.6, 0.3, 0.0, 0.0])
    assert area_id == 2
    assert sum(ratios) == pytest.approx(1.0)
    assert ratios[2] == 0.0 and ratios[3] == 0.0


def test_get_area_id_zero_wraps_to_eight():
    area_id, ratios = get_area_id([0.6, 0.0, 0.0, 0.3])
    assert area_id == 8
    assert sum(ratios) == pytest.approx(1.0)
    assert ratios[1] == 0.0 and ratios[2] == 0.0


@pytest.mark.parametrize(
    "ratios",
    [
        [0.1, 0.7, 0.2, 0.0],
        [0.0, 0.2, 0.5, 0.3],
        [0.3, 0.0, 0.1, 0.6],
        [0.25, 0.25, 0.25, 0.25],
    ],
)
def test_get_area_id_invariants(ratios):
    area_id, normalized = get_area_id(ratios)
    assert 1 <= area_id <= 8
    assert sum(normalized) == pytest.approx(1.0)
    assert sum(1 for r in normalized if r > 0) <= 2


def test_get_area_id_input_not_modified():
    ratios = [0.1, 0.7, 0.2, 0.0]
    get_area_id(ratios)
    assert ratios == [0.1, 0.7, 0.2, 0.0]


def test_get_area_id_wrong_length():
    with pytest.raises(ValueError):
        get_area_id([0.5, 0.5])