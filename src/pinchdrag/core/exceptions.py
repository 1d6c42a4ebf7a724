"""
Error hierarchy shared by the capture, detection and recognition layers.
"""


class PinchDragError(Exception):
    """Base class for all pinchdrag errors."""


class MalformedHandError(PinchDragError, ValueError):
    """A hand arrived with a landmark count other than 21."""


class LandmarkProviderError(PinchDragError):
    """The landmark provider failed to produce a result for a frame."""


class ClassifierError(PinchDragError):
    """The gesture classifier produced no usable output."""


class CameraUnavailableError(PinchDragError):
    """Camera access was denied or no device could be opened."""
