"""
Pinch Drag
==========

Webcam hand pointer with pinch-to-drag and an optional gesture overlay.

Modules:
    - core: landmark model, errors, per-frame loop
    - capture: camera frame acquisition
    - detection: MediaPipe hand landmark provider
    - interaction: pointer mapping, pinch detection, drag state machine
    - rendering: skeleton overlay and OpenCV surface
    - recognition: gesture classifier adapter
    - utils: configuration, logging, performance
"""

__version__ = "1.0.0"
