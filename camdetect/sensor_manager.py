"""Registry of the vehicle's sensors and their camera intrinsics."""

from __future__ import annotations

import enum
import logging
import os
import re
from dataclasses import dataclass
from typing import Iterable, Union

from camdetect.io_util import BrownCameraIntrinsics, load_brown_camera_intrinsic

logger = logging.getLogger(__name__)


class SensorType(enum.IntEnum):
    """Kinds of sensor mounted on the vehicle."""

    UNKNOWN_SENSOR_TYPE = -1
    VELODYNE_128 = 0
    VELODYNE_64 = 1
    VELODYNE_32 = 2
    VELODYNE_16 = 3
    LDLIDAR_4 = 4
    LDLIDAR_1 = 5
    SHORT_RANGE_RADAR = 6
    LONG_RANGE_RADAR = 7
    MONOCULAR_CAMERA = 8
    STEREO_CAMERA = 9
    ULTRASONIC = 10


class SensorOrientation(enum.IntEnum):
    """Where on the vehicle a sensor faces."""

    FRONT = 0
    LEFT_FORWARD = 1
    LEFT = 2
    LEFT_BACKWARD = 3
    REAR = 4
    RIGHT_BACKWARD = 5
    RIGHT = 6
    RIGHT_FORWARD = 7
    PANORAMIC = 8


_HD_LIDARS = frozenset(
    {SensorType.VELODYNE_128, SensorType.VELODYNE_64, SensorType.VELODYNE_32, SensorType.VELODYNE_16}
)
_LD_LIDARS = frozenset({SensorType.LDLIDAR_4, SensorType.LDLIDAR_1})
_RADARS = frozenset({SensorType.SHORT_RANGE_RADAR, SensorType.LONG_RANGE_RADAR})
_CAMERAS = frozenset({SensorType.MONOCULAR_CAMERA, SensorType.STEREO_CAMERA})


@dataclass(frozen=True)
class SensorInfo:
    """Registered description of one sensor."""

    name: str
    type: SensorType = SensorType.UNKNOWN_SENSOR_TYPE
    orientation: SensorOrientation = SensorOrientation.FRONT
    frame_id: str = ""
    is_main_sensor: bool = False


@dataclass(frozen=True)
class SensorMeta:
    """One entry of the sensor meta configuration."""

    name: str
    type: SensorType = SensorType.UNKNOWN_SENSOR_TYPE
    orientation: SensorOrientation = SensorOrientation.FRONT
    is_main_sensor: bool = False


@dataclass(frozen=True)
class _Scalar:
    text: str
    quoted: bool


_TOKEN_RE = re.compile(
    r"""(?P<skip>\s+|\#[^\n]*)
      |(?P<string>"(?:[^"\\\n]|\\.)*"|'(?:[^'\\\n]|\\.)*')
      |(?P<punct>[{}:;,<>])
      |(?P<atom>[^\s{}:;,<>"'\#]+)""",
    re.VERBOSE,
)
_ESCAPE_RE = re.compile(r"\\(.)")
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}


def _tokenize(text: str) -> list[str | _Scalar]:
    tokens: list[str | _Scalar] = []
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise ValueError(f"unexpected character at offset {pos}: {text[pos]!r}")
        pos = match.end()
        if match.group("skip") is not None:
            continue
        if match.group("string") is not None:
            body = match.group("string")[1:-1]
            body = _ESCAPE_RE.sub(lambda m: _ESCAPES.get(m.group(1), m.group(1)), body)
            tokens.append(_Scalar(body, quoted=True))
        elif match.group("punct") is not None:
            tokens.append(match.group("punct"))
        else:
            tokens.append(_Scalar(match.group("atom"), quoted=False))
    return tokens


_Message = list[tuple[str, Union[_Scalar, "_Message"]]]


def _parse_message(
    tokens: list[str | _Scalar], pos: int, closing: str | None
) -> tuple[_Message, int]:
    fields: _Message = []
    while True:
        if pos >= len(tokens):
            if closing is None:
                return fields, pos
            raise ValueError("unterminated message block")
        token = tokens[pos]
        if token == closing:
            return fields, pos + 1
        if not isinstance(token, _Scalar) or token.quoted:
            raise ValueError(f"expected a field name, got {token!r}")
        name = token.text
        pos += 1
        has_colon = pos < len(tokens) and tokens[pos] == ":"
        if has_colon:
            pos += 1
        if pos >= len(tokens):
            raise ValueError(f"missing value for field {name!r}")
        value = tokens[pos]
        if value in ("{", "<"):
            nested, pos = _parse_message(tokens, pos + 1, "}" if value == "{" else ">")
            fields.append((name, nested))
        elif isinstance(value, _Scalar) and has_colon:
            pos += 1
            fields.append((name, value))
        else:
            raise ValueError(f"malformed value for field {name!r}")
        if pos < len(tokens) and tokens[pos] in (";", ","):
            pos += 1


def _enum_value(enum_cls: type[enum.IntEnum], value: _Scalar) -> enum.IntEnum:
    if value.quoted:
        raise ValueError(f"enum value must not be quoted: {value.text!r}")
    try:
        return enum_cls(int(value.text))
    except ValueError:
        pass
    try:
        return enum_cls[value.text]
    except KeyError as exc:
        raise ValueError(f"unknown {enum_cls.__name__} value {value.text!r}") from exc


def _bool_value(value: _Scalar) -> bool:
    if not value.quoted:
        if value.text in ("true", "True", "t", "1"):
            return True
        if value.text in ("false", "False", "f", "0"):
            return False
    raise ValueError(f"invalid boolean value {value.text!r}")


def _sensor_meta_from_fields(fields: _Message) -> SensorMeta:
    values: dict[str, object] = {}
    for name, value in fields:
        if not isinstance(value, _Scalar):
            raise ValueError(f"field {name!r} of sensor_meta must be a scalar")
        if name == "name":
            if not value.quoted:
                raise ValueError("sensor name must be a quoted string")
            values["name"] = value.text
        elif name == "type":
            values["type"] = _enum_value(SensorType, value)
        elif name == "orientation":
            values["orientation"] = _enum_value(SensorOrientation, value)
        elif name == "is_main_sensor":
            values["is_main_sensor"] = _bool_value(value)
        else:
            raise ValueError(f"unknown sensor_meta field {name!r}")
    return SensorMeta(name=str(values.pop("name", "")), **values)  # type: ignore[arg-type]


def load_sensor_meta_file(path: str | os.PathLike[str]) -> list[SensorMeta]:
    """Read the ``sensor_meta { ... }`` entries of a text-format sensor list."""
    with open(path, encoding="utf-8") as handle:
        text = handle.read()
    try:
        fields, _ = _parse_message(_tokenize(text), 0, None)
        metas = []
        for name, value in fields:
            if name != "sensor_meta" or isinstance(value, _Scalar):
                raise ValueError(f"unexpected top-level field {name!r}")
            metas.append(_sensor_meta_from_fields(value))
    except ValueError as exc:
        raise ValueError(f"Invalid MultiSensorMeta file {path}: {exc}") from exc
    return metas


SensorRef = Union[str, SensorType]


class SensorManager:
    """Looks up sensors by name and holds the intrinsics of every camera."""

    def __init__(
        self, sensor_metas: Iterable[SensorMeta], intrinsic_path: str | os.PathLike[str]
    ) -> None:
        self._intrinsic_path = os.fspath(intrinsic_path)
        self._infos: dict[str, SensorInfo] = {}
        self._intrinsics: dict[str, BrownCameraIntrinsics] = {}
        for meta in sensor_metas:
            self._add_sensor(meta)
        logger.info("Init sensor_manager success.")

    def _intrinsic_file(self, frame_id: str) -> str:
        return os.path.join(self._intrinsic_path, f"{frame_id}_intrinsics.yaml")

    def _add_sensor(self, meta: SensorMeta) -> None:
        if meta.name in self._infos:
            raise ValueError(f"Duplicate sensor name error: {meta.name}")
        info = SensorInfo(
            name=meta.name,
            type=meta.type,
            orientation=meta.orientation,
            frame_id=meta.name,
            is_main_sensor=meta.is_main_sensor,
        )
        if info.type in _CAMERAS:
            self._intrinsics[meta.name] = load_brown_camera_intrinsic(
                self._intrinsic_file(info.frame_id)
            )
        self._infos[meta.name] = info

    def _type_of(self, sensor: SensorRef) -> SensorType | None:
        if isinstance(sensor, SensorType):
            return sensor
        info = self._infos.get(sensor)
        return None if info is None else info.type

    def is_sensor_exist(self, name: str) -> bool:
        return name in self._infos

    def get_sensor_info(self, name: str) -> SensorInfo:
        """Info of the named sensor; raises KeyError for an unknown name."""
        try:
            return self._infos[name]
        except KeyError:
            raise KeyError(f"unknown sensor: {name}") from None

    def get_intrinsics(self, name: str) -> BrownCameraIntrinsics | None:
        """Camera intrinsics of the named sensor, or None if it is not a known camera."""
        return self._intrinsics.get(name)

    def is_hd_lidar(self, sensor: SensorRef) -> bool:
        return self._type_of(sensor) in _HD_LIDARS

    def is_ld_lidar(self, sensor: SensorRef) -> bool:
        return self._type_of(sensor) in _LD_LIDARS

    def is_lidar(self, sensor: SensorRef) -> bool:
        kind = self._type_of(sensor)
        return kind in _HD_LIDARS or kind in _LD_LIDARS

    def is_radar(self, sensor: SensorRef) -> bool:
        return self._type_of(sensor) in _RADARS

    def is_camera(self, sensor: SensorRef) -> bool:
        return self._type_of(sensor) in _CAMERAS

    def is_ultrasonic(self, sensor: SensorRef) -> bool:
        return self._type_of(sensor) == SensorType.ULTRASONIC

    def is_main_sensor(self, name: str) -> bool:
        info = self._infos.get(name)
        return info is not None and info.is_main_sensor

    def get_frame_id(self, name: str) -> str:
        """Frame id of the named sensor, or an empty string if unknown."""
        info = self._infos.get(name)
        return "" if info is None else info.frame_id