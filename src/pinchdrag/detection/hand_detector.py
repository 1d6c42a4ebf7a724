"""
Hand Detection Module - MediaPipe Tasks API
============================================

Landmark provider backed by the MediaPipe HandLandmarker in VIDEO running
mode. Converts MediaPipe results into :class:`DetectionResult` records.
"""

import asyncio
import logging
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import mediapipe as mp
import numpy as np
from mediapipe.tasks import python
from mediapipe.tasks.python import vision

from ..core.exceptions import LandmarkProviderError
from ..core.types import DetectionResult, Hand, Landmark

logger = logging.getLogger(__name__)

# Model download URL
HAND_LANDMARKER_MODEL_URL = "https://storage.googleapis.com/mediapipe-models/hand_landmarker/hand_landmarker/float16/1/hand_landmarker.task"
DEFAULT_MODEL_PATH = Path.home() / ".cache" / "pinchdrag" / "hand_landmarker.task"


@dataclass
class HandDetectorConfig:
    """Configuration for hand detector."""
    model_path: str = ""
    max_num_hands: int = 2
    min_detection_confidence: float = 0.5
    min_tracking_confidence: float = 0.5
    min_presence_confidence: float = 0.5

    @classmethod
    def from_dict(cls, d: dict) -> "HandDetectorConfig":
        """Create config from dictionary."""
        return cls(
            model_path=d.get("model_path", ""),
            max_num_hands=d.get("max_num_hands", 2),
            min_detection_confidence=d.get("min_detection_confidence", 0.5),
            min_tracking_confidence=d.get("min_tracking_confidence", 0.5),
            min_presence_confidence=d.get("min_presence_confidence", 0.5),
        )


def download_model(url: str, save_path: Path) -> bool:
    """Download the hand landmarker model if not present."""
    if save_path.exists():
        logger.info("Model already exists at %s", save_path)
        return True

    try:
        save_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Downloading hand landmarker model to %s...", save_path)
        urllib.request.urlretrieve(url, save_path)
        logger.info("Model download complete!")
        return True
    except OSError as e:
        logger.error("Failed to download model: %s", e)
        if save_path.exists():
            save_path.unlink()
        return False


def convert_result(result, timestamp_ms: int) -> DetectionResult:
    """
    Convert a MediaPipe ``HandLandmarkerResult`` into a DetectionResult.

    A hand with a landmark count other than 21 raises MalformedHandError.
    """
    hands: List[Hand] = []
    handedness_list = getattr(result, "handedness", None) or []

    for i, hand_landmarks in enumerate(getattr(result, "hand_landmarks", None) or []):
        label = "Right"
        score = 0.0
        if i < len(handedness_list) and handedness_list[i]:
            label = handedness_list[i][0].category_name
            score = float(handedness_list[i][0].score)

        hands.append(Hand(
            [Landmark(x=lm.x, y=lm.y, z=lm.z) for lm in hand_landmarks],
            handedness=label,
            confidence=score,
        ))

    return DetectionResult(hands=tuple(hands), timestamp_ms=timestamp_ms)


class HandDetector:
    """
    Landmark provider wrapping the MediaPipe Tasks HandLandmarker.

    Timestamps passed to :meth:`detect` must not decrease; MediaPipe wants
    them strictly increasing, so a repeated timestamp is bumped by 1 ms.

    Example:
        >>> detector = HandDetector(HandDetectorConfig())
        >>> detector.start()
        >>> result = detector.detect(rgb_image, timestamp_ms)  # RGB format!
        >>> detector.stop()
    """

    def __init__(self, config: Optional[HandDetectorConfig] = None):
        self.config = config or HandDetectorConfig()
        self._landmarker: Optional[vision.HandLandmarker] = None
        self._last_timestamp_ms = -1

    @property
    def is_ready(self) -> bool:
        return self._landmarker is not None

    def start(self) -> bool:
        """Initialize the hand landmarker."""
        model_path = Path(self.config.model_path or DEFAULT_MODEL_PATH)

        if not model_path.exists():
            if not download_model(HAND_LANDMARKER_MODEL_URL, model_path):
                logger.error("Could not download hand landmarker model")
                return False

        try:
            options = vision.HandLandmarkerOptions(
                base_options=python.BaseOptions(model_asset_path=str(model_path)),
                running_mode=vision.RunningMode.VIDEO,
                num_hands=self.config.max_num_hands,
                min_hand_detection_confidence=self.config.min_detection_confidence,
                min_hand_presence_confidence=self.config.min_presence_confidence,
                min_tracking_confidence=self.config.min_tracking_confidence,
            )
            self._landmarker = vision.HandLandmarker.create_from_options(options)
        except (RuntimeError, ValueError) as e:
            logger.error("Failed to initialize HandLandmarker: %s", e)
            return False

        self._last_timestamp_ms = -1
        logger.info("HandLandmarker initialized with model: %s", model_path)
        logger.info("Max hands: %d", self.config.max_num_hands)
        return True

    def stop(self) -> None:
        """Release resources."""
        if self._landmarker:
            self._landmarker.close()
            self._landmarker = None
        logger.info("HandLandmarker stopped")

    def detect(self, image: np.ndarray, timestamp_ms: int) -> DetectionResult:
        """
        Detect hands in the given image.

        Args:
            image: RGB image as numpy array (H, W, 3)
            timestamp_ms: Frame timestamp in milliseconds

        Returns:
            DetectionResult, empty if the landmarker is not started

        Raises:
            LandmarkProviderError: inference failed for this frame
            MalformedHandError: a hand did not have 21 landmarks
        """
        if self._landmarker is None:
            logger.debug("HandLandmarker not initialized, frame skipped")
            return DetectionResult.empty(timestamp_ms)

        timestamp_ms = int(timestamp_ms)
        if timestamp_ms <= self._last_timestamp_ms:
            timestamp_ms = self._last_timestamp_ms + 1
        self._last_timestamp_ms = timestamp_ms

        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=np.ascontiguousarray(image))
        try:
            result = self._landmarker.detect_for_video(mp_image, timestamp_ms)
        except (RuntimeError, ValueError) as e:
            raise LandmarkProviderError(f"HandLandmarker failed at {timestamp_ms}ms: {e}") from e

        return convert_result(result, timestamp_ms)

    async def detect_async(self, image: np.ndarray, timestamp_ms: int) -> DetectionResult:
        """Run :meth:`detect` in a worker thread so the loop stays responsive."""
        return await asyncio.to_thread(self.detect, image, timestamp_ms)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
