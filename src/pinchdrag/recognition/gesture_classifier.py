"""
Gesture Classifier
==================

Optional overlay label: an external image classifier returns a probability
vector over a closed label set and the adapter picks the arg-max. The label
is for display only and never feeds back into pinch or drag decisions.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from ..core.exceptions import ClassifierError
from ..core.types import DEFAULT_GESTURE_LABELS, GestureLabel

logger = logging.getLogger(__name__)


@dataclass
class GestureClassifierConfig:
    """Gesture classifier configuration."""
    enabled: bool = False
    model_path: str = ""
    labels: Tuple[str, ...] = field(default=DEFAULT_GESTURE_LABELS)
    input_size: Tuple[int, int] = (224, 224)  # width, height
    interval: int = 1  # classify every N frames

    @classmethod
    def from_dict(cls, config: dict) -> "GestureClassifierConfig":
        """Create config from the ``classifier`` section."""
        return cls(
            enabled=bool(config.get("enabled", False)),
            model_path=config.get("model_path", ""),
            labels=tuple(config.get("labels", DEFAULT_GESTURE_LABELS)),
            input_size=tuple(config.get("input_size", [224, 224])),
            interval=max(1, int(config.get("interval", 1))),
        )


def argmax_label(scores: Sequence[float], labels: Sequence[str]) -> GestureLabel:
    """
    Pick the highest-scoring label. Ties go to the lowest index.

    Raises:
        ClassifierError: if the vector does not match the label set
    """
    probs = np.asarray(scores, dtype=np.float64).ravel()
    if probs.size != len(labels):
        raise ClassifierError(
            f"Classifier returned {probs.size} scores for {len(labels)} labels")
    if probs.size == 0 or not np.all(np.isfinite(probs)):
        raise ClassifierError("Classifier returned no usable scores")

    # np.argmax returns the first maximum
    idx = int(np.argmax(probs))
    return GestureLabel(
        name=labels[idx],
        index=idx,
        confidence=float(probs[idx]),
        scores=tuple(float(p) for p in probs),
    )


class TorchGestureModel:
    """
    TorchScript image classifier.

    Raises RuntimeError when PyTorch is not installed and ClassifierError
    when the model file cannot be loaded.

    Preprocessing: BGR -> RGB, resize to ``input_size``, scale to [0, 1],
    NCHW float tensor. Output logits are turned into probabilities with a
    softmax. PyTorch is imported on construction only, so the rest of the
    package works without it (``pip install pinchdrag[classifier]``).
    """

    def __init__(self, model_path: str, input_size: Tuple[int, int] = (224, 224)):
        try:
            import torch
        except ImportError as e:
            raise RuntimeError(
                "PyTorch is required for the gesture classifier. "
                "Install with: pip install 'pinchdrag[classifier]'"
            ) from e

        self._torch = torch
        self._input_size = (int(input_size[0]), int(input_size[1]))
        try:
            self._model = torch.jit.load(model_path, map_location="cpu")
        except (RuntimeError, ValueError, OSError) as e:
            raise ClassifierError(f"Could not load gesture model {model_path}: {e}") from e
        self._model.eval()
        logger.info("Gesture model loaded from %s (input %dx%d)",
                    model_path, *self._input_size)

    def preprocess(self, image_bgr: np.ndarray) -> np.ndarray:
        rgb = cv2.cvtColor(image_bgr, cv2.COLOR_BGR2RGB)
        resized = cv2.resize(rgb, self._input_size, interpolation=cv2.INTER_AREA)
        chw = resized.astype(np.float32).transpose(2, 0, 1) / 255.0
        return chw[np.newaxis, ...]

    def predict(self, image_bgr: np.ndarray) -> List[float]:
        torch = self._torch
        batch = torch.from_numpy(self.preprocess(image_bgr))
        with torch.no_grad():
            logits = self._model(batch)
            probs = torch.softmax(logits, dim=-1)[0]
        return probs.tolist()


class GestureClassifierAdapter:
    """
    Arg-max adapter around an external classifier model.

    The model only needs ``predict(image) -> sequence of probabilities``
    ordered like ``labels``.

    Example:
        >>> adapter = GestureClassifierAdapter(model, ("FingerUp", "Open", "Grip"))
        >>> label = adapter.classify(frame.image)
        >>> print(label.name, label.confidence)
    """

    def __init__(self, model, labels: Sequence[str] = DEFAULT_GESTURE_LABELS):
        if not labels:
            raise ValueError("label set must not be empty")
        self._model = model
        self.labels: Tuple[str, ...] = tuple(labels)

    @property
    def is_ready(self) -> bool:
        return self._model is not None and getattr(self._model, "is_ready", True)

    def classify(self, image: np.ndarray) -> GestureLabel:
        if not self.is_ready:
            raise ClassifierError("Classifier model not initialized")
        try:
            scores = self._model.predict(image)
        except ClassifierError:
            raise
        except Exception as e:
            raise ClassifierError(f"Classifier failed: {e}") from e
        return argmax_label(scores, self.labels)

    async def classify_async(self, image: np.ndarray) -> GestureLabel:
        """Run :meth:`classify` in a worker thread."""
        return await asyncio.to_thread(self.classify, image)

    @classmethod
    def from_config(cls, config: GestureClassifierConfig) -> Optional["GestureClassifierAdapter"]:
        """Build the adapter from config, or None when disabled."""
        if not config.enabled:
            return None
        if not config.model_path:
            logger.warning("Classifier enabled but no model_path configured; overlay disabled")
            return None
        model = TorchGestureModel(config.model_path, config.input_size)
        return cls(model, config.labels)
