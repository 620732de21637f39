"""Camera obstacle detection post-processing: NMS, box recovery, intrinsics and sensor registry."""

__version__ = "0.1.0"
__all__ = [
    "geometry",
    "objects",
    "postprocess",
    "detector",
    "io_util",
    "sensor_manager",
]