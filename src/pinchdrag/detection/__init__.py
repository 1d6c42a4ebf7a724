"""Hand detection module using MediaPipe."""
from .hand_detector import HandDetector, HandDetectorConfig, convert_result

__all__ = ["HandDetector", "HandDetectorConfig", "convert_result"]
