"""Pointer mapping, pinch detection and drag state machine."""
from .coordinate_mapper import CoordinateMapper, CoordinateMapperConfig, map_landmark
from .pinch_detector import PinchDetector, PinchDetectorConfig, is_pinch
from .drag_controller import DragController, DragControllerConfig, hit_test

__all__ = [
    "CoordinateMapper",
    "CoordinateMapperConfig",
    "map_landmark",
    "PinchDetector",
    "PinchDetectorConfig",
    "is_pinch",
    "DragController",
    "DragControllerConfig",
    "hit_test",
]
