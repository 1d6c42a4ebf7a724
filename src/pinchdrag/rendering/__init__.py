"""Overlay rendering: primitives, hand skeleton, OpenCV surface."""
from .primitives import Circle, ImageAt, Line, Text
from .skeleton import HAND_CONNECTIONS, SkeletonRenderer, SkeletonStyle
from .surface import OpenCVSurface, SurfaceConfig, load_icon, snapshot_filename

__all__ = [
    "Circle",
    "ImageAt",
    "Line",
    "Text",
    "HAND_CONNECTIONS",
    "SkeletonRenderer",
    "SkeletonStyle",
    "OpenCVSurface",
    "SurfaceConfig",
    "load_icon",
    "snapshot_filename",
]
