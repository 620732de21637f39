"""Readers for pose files, camera intrinsics files and directory listings."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

import numpy as np
import yaml

logger = logging.getLogger(__name__)

_BROWN_K_SIZE = 9
_BROWN_D_SIZE = 8
_OMNI_REQUIRED_KEYS = (
    "width",
    "height",
    "center",
    "affine",
    "cam2world",
    "world2cam",
    "focallength",
    "principalpoint",
)


@dataclass(frozen=True)
class Pose:
    """A timestamped sensor pose: translation plus rotation quaternion (x, y, z, w)."""

    frame_id: int
    timestamp: float
    translation: tuple[float, float, float]
    quaternion: tuple[float, float, float, float]

    @property
    def rotation(self) -> np.ndarray:
        """3x3 rotation matrix of the quaternion, taken as given (not renormalized)."""
        x, y, z, w = self.quaternion
        tx, ty, tz = 2.0 * x, 2.0 * y, 2.0 * z
        twx, twy, twz = tx * w, ty * w, tz * w
        txx, txy, txz = tx * x, ty * x, tz * x
        tyy, tyz, tzz = ty * y, tz * y, tz * z
        return np.array(
            [
                [1.0 - (tyy + tzz), txy - twz, txz + twy],
                [txy + twz, 1.0 - (txx + tzz), tyz - twx],
                [txz - twy, tyz + twx, 1.0 - (txx + tyy)],
            ]
        )

    @property
    def matrix(self) -> np.ndarray:
        """4x4 homogeneous transform: rotate first, then translate."""
        transform = np.eye(4)
        transform[:3, :3] = self.rotation
        transform[:3, 3] = self.translation
        return transform


def read_pose_file(filename: str | os.PathLike[str]) -> Pose:
    """Read ``frame_id timestamp tx ty tz qx qy qz qw`` from a text file."""
    with open(filename, encoding="utf-8") as handle:
        tokens = handle.read().split()
    if len(tokens) < 9:
        raise ValueError(f"pose file {filename} holds {len(tokens)} values, expected 9")
    try:
        frame_id = int(tokens[0])
        values = [float(token) for token in tokens[1:9]]
    except ValueError as exc:
        raise ValueError(f"malformed pose file {filename}: {exc}") from exc
    timestamp, tx, ty, tz, qx, qy, qz, qw = values
    return Pose(
        frame_id=frame_id,
        timestamp=timestamp,
        translation=(tx, ty, tz),
        quaternion=(qx, qy, qz, qw),
    )


def _as_float(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError(f"expected a number, got {value!r}")
    if isinstance(value, (int, float, str)):
        return float(value)
    raise ValueError(f"expected a number, got {value!r}")


def _as_int(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"expected an integer, got {value!r}")
    return int(value)


def _load_yaml_mapping(yaml_file: str | os.PathLike[str]) -> dict[str, Any]:
    if not os.path.exists(yaml_file):
        raise FileNotFoundError(f"intrinsics file not found: {yaml_file}")
    with open(yaml_file, encoding="utf-8") as handle:
        try:
            node = yaml.safe_load(handle)
        except yaml.YAMLError as exc:
            raise ValueError(f"cannot parse {yaml_file}: {exc}") from exc
    if node is None:
        raise ValueError(f"Load {yaml_file} failed! please check!")
    if not isinstance(node, dict):
        raise ValueError(f"{yaml_file} does not hold a mapping")
    return node


@dataclass(frozen=True)
class BrownCameraIntrinsics:
    """Pinhole intrinsics with Brown distortion: 9 values of K followed by 8 of D."""

    width: int
    height: int
    params: tuple[float, ...]

    @property
    def k_matrix(self) -> np.ndarray:
        """The 3x3 camera matrix."""
        return np.array(self.params[:_BROWN_K_SIZE]).reshape(3, 3)

    @property
    def distortion(self) -> tuple[float, ...]:
        """Distortion coefficients k1, k2, p1, p2, k3, k4, k5, k6."""
        return self.params[_BROWN_K_SIZE:]


def load_brown_camera_intrinsic(yaml_file: str | os.PathLike[str]) -> BrownCameraIntrinsics:
    """Load ``width``, ``height``, ``K`` (9) and ``D`` (8) from a YAML file."""
    node = _load_yaml_mapping(yaml_file)
    try:
        width = int(_as_float(node["width"]))
        height = int(_as_float(node["height"]))
        k_values = [_as_float(node["K"][i]) for i in range(_BROWN_K_SIZE)]
        d_values = [_as_float(node["D"][i]) for i in range(_BROWN_D_SIZE)]
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        logger.error("load camera intrinsic file %s with error: %s", yaml_file, exc)
        raise ValueError(f"invalid camera intrinsic file {yaml_file}: {exc!r}") from exc
    return BrownCameraIntrinsics(width=width, height=height, params=tuple(k_values + d_values))


@dataclass(frozen=True)
class OmnidirectionalCameraIntrinsics:
    """Omnidirectional (ocam) camera model parameters."""

    width: int
    height: int
    center: tuple[float, float]
    affine: tuple[float, float, float]
    focal_length: float
    principal_point: tuple[float, float]
    cam2world: tuple[float, ...]
    world2cam: tuple[float, ...]

    @property
    def params(self) -> list[float]:
        """Flat layout: center, affine, f, principal point, n, cam2world, m, world2cam."""
        return [
            *self.center,
            *self.affine,
            self.focal_length,
            *self.principal_point,
            float(len(self.cam2world)),
            *self.cam2world,
            float(len(self.world2cam)),
            *self.world2cam,
        ]


def _float_sequence(value: Any) -> tuple[float, ...]:
    if not isinstance(value, list):
        raise ValueError(f"expected a sequence, got {value!r}")
    return tuple(_as_float(item) for item in value)


def load_omnidirectional_camera_intrinsics(
    yaml_file: str | os.PathLike[str],
) -> OmnidirectionalCameraIntrinsics:
    """Load the parameters of an omnidirectional camera from a YAML file."""
    node = _load_yaml_mapping(yaml_file)
    missing = [key for key in _OMNI_REQUIRED_KEYS if key not in node]
    if missing:
        raise ValueError(
            "Invalid intrinsics file for an omnidirectional camera, missing: "
            + ", ".join(missing)
        )
    try:
        return OmnidirectionalCameraIntrinsics(
            width=_as_int(node["width"]),
            height=_as_int(node["height"]),
            center=(_as_float(node["center"]["x"]), _as_float(node["center"]["y"])),
            affine=(
                _as_float(node["affine"]["c"]),
                _as_float(node["affine"]["d"]),
                _as_float(node["affine"]["e"]),
            ),
            focal_length=_as_float(node["focallength"]),
            principal_point=(
                _as_float(node["principalpoint"]["x"]),
                _as_float(node["principalpoint"]["y"]),
            ),
            cam2world=_float_sequence(node["cam2world"]),
            world2cam=_float_sequence(node["world2cam"]),
        )
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        logger.error("load camera intrinsic file %s with error: %s", yaml_file, exc)
        raise ValueError(f"invalid camera intrinsic file {yaml_file}: {exc!r}") from exc


def get_file_list(path: str | os.PathLike[str], suffix: str) -> list[str]:
    """All entries below ``path``, at any depth, whose path ends with ``suffix``."""
    if not os.path.exists(path):
        raise FileNotFoundError(f"{path} not exist.")
    found: list[str] = []
    for root, dirs, files in os.walk(path):
        for name in (*dirs, *files):
            full = os.path.join(root, name)
            if full.endswith(suffix):
                found.append(full)
    return found