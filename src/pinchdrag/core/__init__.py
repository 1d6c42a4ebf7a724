"""Domain types, errors and the per-frame loop."""
from .exceptions import (
    CameraUnavailableError, ClassifierError, LandmarkProviderError,
    MalformedHandError, PinchDragError,
)
from .types import (
    DEFAULT_GESTURE_LABELS, NUM_LANDMARKS, DetectionResult, DragElement,
    DragState, GestureLabel, Hand, HitTestPolicy, Landmark, LandmarkIndex,
    PointerState, Rect,
)

__all__ = [
    "CameraUnavailableError",
    "ClassifierError",
    "LandmarkProviderError",
    "MalformedHandError",
    "PinchDragError",
    "DEFAULT_GESTURE_LABELS",
    "NUM_LANDMARKS",
    "DetectionResult",
    "DragElement",
    "DragState",
    "GestureLabel",
    "Hand",
    "HitTestPolicy",
    "Landmark",
    "LandmarkIndex",
    "PointerState",
    "Rect",
]
