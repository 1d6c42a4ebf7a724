"""Camera frame acquisition."""
from .camera import Camera, CameraConfig, Frame, monotonic_ms

__all__ = ["Camera", "CameraConfig", "Frame", "monotonic_ms"]
