import math
import os

import numpy as np
import pytest

from camdetect.io_util import (
    get_file_list,
    load_brown_camera_intrinsic,
    load_omnidirectional_camera_intrinsics,
    read_pose_file,
)

K_VALUES = [2000.0, 0.0, 960.0, 0.0, 2000.0, 540.0, 0.0, 0.0, 1.0]
D_VALUES = [-0.5, 0.3, 0.001, 0.002, -0.1, 0.01, 0.02, 0.03]


def _write(path, text):
    path.write_text(text, encoding="utf-8")
    return path


def _brown_yaml(width=1920, height=1080, k=K_VALUES, d=D_VALUES):
    return (
        f"width: {width}\nheight: {height}\n"
        f"K: [{', '.join(str(v) for v in k)}]\n"
        f"D: [{', '.join(str(v) for v in d)}]\n"
    )


def test_read_pose_identity_rotation(tmp_path):
    path = _write(tmp_path / "pose.txt", "7 12.5 1.0 2.0 3.0 0 0 0 1\n")
    pose = read_pose_file(path)
    assert pose.frame_id == 7
    assert pose.timestamp == 12.5
    assert pose.translation == (1.0, 2.0, 3.0)
    np.testing.assert_allclose(pose.matrix[:3, :3], np.eye(3))
    np.testing.assert_allclose(pose.matrix[:3, 3], [1.0, 2.0, 3.0])
    np.testing.assert_allclose(pose.matrix[3], [0.0, 0.0, 0.0, 1.0])


def test_read_pose_rotation_is_orthonormal(tmp_path):
    s = math.sqrt(0.5)
    path = _write(tmp_path / "pose.txt", f"1 0.0 0 0 0 0 0 {s} {s}")
    rotation = read_pose_file(path).rotation
    np.testing.assert_allclose(rotation @ rotation.T, np.eye(3), atol=1e-12)
    assert np.linalg.det(rotation) == pytest.approx(1.0)
    np.testing.assert_allclose(rotation @ np.array([1.0, 0.0, 0.0]), [0.0, 1.0, 0.0], atol=1e-12)


def test_read_pose_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_pose_file(tmp_path / "absent.txt")


def test_read_pose_truncated(tmp_path):
    path = _write(tmp_path / "pose.txt", "1 2.0 3.0")
    with pytest.raises(ValueError):
        read_pose_file(path)


def test_brown_intrinsics_roundtrip(tmp_path):
    path = _write(tmp_path / "cam.yaml", _brown_yaml())
    intr = load_brown_camera_intrinsic(path)
    assert intr.width == 1920
    assert intr.height == 1080
    assert len(intr.params) == 17
    np.testing.assert_allclose(intr.k_matrix, np.array(K_VALUES).reshape(3, 3))
    assert intr.distortion == tuple(D_VALUES)


def test_brown_intrinsics_short_distortion(tmp_path):
    path = _write(tmp_path / "cam.yaml", _brown_yaml(d=D_VALUES[:5]))
    with pytest.raises(ValueError):
        load_brown_camera_intrinsic(path)


def test_brown_intrinsics_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_brown_camera_intrinsic(tmp_path / "absent.yaml")


def test_brown_intrinsics_empty_file(tmp_path):
    path = _write(tmp_path / "cam.yaml", "")
    with pytest.raises(ValueError):
        load_brown_camera_intrinsic(path)


OMNI_YAML = """\
width: 1280
height: 720
center: {x: 640.5, y: 360.5}
affine: {c: 1.0, d: 0.1, e: 0.2}
focallength: 300.0
principalpoint: {x: 640.0, y: 360.0}
cam2world: [-300.0, 0.0, 0.001]
world2cam: [400.0, 200.0, 10.0, 1.0]
"""


def test_omnidirectional_intrinsics_layout(tmp_path):
    path = _write(tmp_path / "omni.yaml", OMNI_YAML)
    intr = load_omnidirectional_camera_intrinsics(path)
    assert intr.width == 1280
    assert intr.height == 720
    params = intr.params
    assert params[:8] == [640.5, 360.5, 1.0, 0.1, 0.2, 300.0, 640.0, 360.0]
    assert params[8] == float(len(intr.cam2world))
    assert params[9:12] == [-300.0, 0.0, 0.001]
    assert params[12] == float(len(intr.world2cam))
    assert params[13:] == [400.0, 200.0, 10.0, 1.0]
    assert len(params) == 10 + len(intr.cam2world) + len(intr.world2cam)


def test_omnidirectional_missing_key(tmp_path):
    text = "\n".join(line for line in OMNI_YAML.splitlines() if not line.startswith("affine"))
    path = _write(tmp_path / "omni.yaml", text)
    with pytest.raises(ValueError):
        load_omnidirectional_camera_intrinsics(path)


def test_omnidirectional_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_omnidirectional_camera_intrinsics(tmp_path / "absent.yaml")


def test_get_file_list_recursive(tmp_path):
    (tmp_path / "sub").mkdir()
    _write(tmp_path / "a.txt", "a")
    _write(tmp_path / "sub" / "b.txt", "b")
    _write(tmp_path / "c.log", "c")
    result = get_file_list(str(tmp_path), ".txt")
    expected = [os.path.join(str(tmp_path), "a.txt"), os.path.join(str(tmp_path), "sub", "b.txt")]
    assert sorted(result) == sorted(expected)


def test_get_file_list_missing_path(tmp_path):
    with pytest.raises(FileNotFoundError):
        get_file_list(str(tmp_path / "absent"), ".txt")