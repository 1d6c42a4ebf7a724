"""
Tests for Gesture Classifier Module
====================================
"""

import asyncio
import sys
from contextlib import nullcontext
from types import SimpleNamespace

import numpy as np
import pytest
from unittest.mock import Mock, patch

from pinchdrag.core.exceptions import ClassifierError
from pinchdrag.recognition.gesture_classifier import (
    GestureClassifierAdapter, GestureClassifierConfig, TorchGestureModel, argmax_label,
)

LABELS = ("FingerUp", "Open", "Grip")


class TestArgmaxLabel:
    """Test suite for arg-max selection."""

    def test_picks_highest(self):
        label = argmax_label([0.2, 0.5, 0.3], LABELS)

        assert label.name == "Open"
        assert label.index == 1
        assert label.confidence == pytest.approx(0.5)

    def test_ties_go_to_lowest_index(self):
        assert argmax_label([0.4, 0.4, 0.2], LABELS).name == "FingerUp"
        assert argmax_label([0.1, 0.45, 0.45], LABELS).name == "Open"

    def test_scores_kept(self):
        label = argmax_label(np.array([0.1, 0.1, 0.8]), LABELS)
        assert label.scores == pytest.approx((0.1, 0.1, 0.8))

    def test_length_mismatch(self):
        with pytest.raises(ClassifierError):
            argmax_label([0.5, 0.5], LABELS)

    def test_non_finite(self):
        with pytest.raises(ClassifierError):
            argmax_label([0.5, float("nan"), 0.1], LABELS)


class TestGestureClassifierAdapter:
    """Test suite for the classifier adapter."""

    @pytest.fixture
    def model(self):
        model = Mock()
        model.is_ready = True
        model.predict.return_value = [0.2, 0.5, 0.3]
        return model

    def test_classify(self, model, blank_image):
        adapter = GestureClassifierAdapter(model, LABELS)
        label = adapter.classify(blank_image)

        assert label.name == "Open"
        model.predict.assert_called_once_with(blank_image)

    def test_model_errors_wrapped(self, model, blank_image):
        model.predict.side_effect = RuntimeError("boom")
        adapter = GestureClassifierAdapter(model, LABELS)

        with pytest.raises(ClassifierError):
            adapter.classify(blank_image)

    def test_not_ready(self, model, blank_image):
        model.is_ready = False
        adapter = GestureClassifierAdapter(model, LABELS)

        assert not adapter.is_ready
        with pytest.raises(ClassifierError):
            adapter.classify(blank_image)

    def test_empty_labels(self, model):
        with pytest.raises(ValueError):
            GestureClassifierAdapter(model, ())

    def test_classify_async(self, model, blank_image):
        adapter = GestureClassifierAdapter(model, LABELS)
        label = asyncio.run(adapter.classify_async(blank_image))

        assert label.name == "Open"

    def test_from_config_disabled(self):
        assert GestureClassifierAdapter.from_config(GestureClassifierConfig(enabled=False)) is None

    def test_from_config_without_model(self):
        config = GestureClassifierConfig(enabled=True, model_path="")
        assert GestureClassifierAdapter.from_config(config) is None


class TestGestureClassifierConfig:

    def test_defaults(self):
        config = GestureClassifierConfig()

        assert not config.enabled
        assert config.labels == LABELS
        assert config.interval == 1

    def test_from_dict(self):
        config = GestureClassifierConfig.from_dict({
            "enabled": True,
            "model_path": "model.pt",
            "labels": ["A", "B"],
            "input_size": [128, 96],
            "interval": 0,
        })

        assert config.enabled
        assert config.labels == ("A", "B")
        assert config.input_size == (128, 96)
        assert config.interval == 1


class TestTorchGestureModel:
    """Test suite for the TorchScript wrapper."""

    @staticmethod
    def bare_model(input_size=(64, 48)):
        model = TorchGestureModel.__new__(TorchGestureModel)
        model._input_size = input_size
        return model

    def test_preprocess_layout(self, blank_image):
        batch = self.bare_model().preprocess(blank_image)

        assert batch.shape == (1, 3, 48, 64)
        assert batch.dtype == np.float32
        assert batch.max() <= 1.0

    def test_predict_softmax(self, blank_image):
        def softmax(x, dim):
            e = np.exp(x - x.max(axis=dim, keepdims=True))
            return e / e.sum(axis=dim, keepdims=True)

        model = self.bare_model()
        model._torch = SimpleNamespace(from_numpy=lambda a: a, no_grad=nullcontext,
                                       softmax=softmax)
        model._model = Mock(return_value=np.array([[1.0, 3.0, 2.0]]))

        probs = model.predict(blank_image)

        assert sum(probs) == pytest.approx(1.0)
        assert probs[1] > probs[2] > probs[0]
        assert argmax_label(probs, LABELS).name == "Open"
        assert model._model.call_args[0][0].shape == (1, 3, 48, 64)

    def test_predict_with_torch(self, blank_image):
        torch = pytest.importorskip("torch")
        model = self.bare_model()
        model._torch = torch
        model._model = lambda batch: torch.tensor([[0.5, -1.0, 2.0]])

        probs = model.predict(blank_image)

        assert sum(probs) == pytest.approx(1.0, abs=1e-6)
        assert argmax_label(probs, LABELS).name == "Grip"

    def test_load_failure_raises_classifier_error(self, tmp_path):
        fake_torch = Mock()
        fake_torch.jit.load.side_effect = ValueError("file does not exist")

        with patch.dict(sys.modules, {"torch": fake_torch}):
            with pytest.raises(ClassifierError):
                TorchGestureModel(str(tmp_path / "model.pt"))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
