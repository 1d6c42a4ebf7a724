"""Gesture recognition module."""
from .gesture_classifier import (
    GestureClassifierAdapter,
    GestureClassifierConfig,
    TorchGestureModel,
    argmax_label,
)

__all__ = [
    "GestureClassifierAdapter",
    "GestureClassifierConfig",
    "TorchGestureModel",
    "argmax_label",
]
