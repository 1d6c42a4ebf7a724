"""
Pinch Drag - Main Application
==============================

Entry point for the hand-pointer drag-and-drop demo.
Wires camera, MediaPipe landmark provider, interaction core, optional
gesture classifier and the OpenCV window into one frame loop.
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Optional

from .capture.camera import Camera
from .core.exceptions import CameraUnavailableError, ClassifierError
from .core.pipeline import FrameLoop, SessionToken
from .detection.hand_detector import HandDetector
from .interaction.coordinate_mapper import CoordinateMapper
from .interaction.drag_controller import DragController
from .interaction.pinch_detector import PinchDetector
from .recognition.gesture_classifier import GestureClassifierAdapter
from .rendering.skeleton import SkeletonRenderer
from .rendering.surface import OpenCVSurface, load_icon
from .utils.config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from .utils.logger import InteractionLogger, setup_logging
from .utils.performance import PerformanceMonitor

logger = logging.getLogger(__name__)

KEY_ESC = 27


class PinchDragApp:
    """
    Main application.

    Owns the external collaborators (camera, landmarker, window) and the
    session token; everything per-frame happens inside :class:`FrameLoop`.

    Keyboard:
        q / ESC  end the session
        s        save a snapshot of the canvas
        r        reset the drag (drop without moving)
        c        toggle the gesture overlay
        p        print the performance report
    """

    def __init__(self, config: AppConfig):
        self.config = config
        self.token = SessionToken()
        self.events = InteractionLogger()

        self.camera = Camera(config.camera)
        self.detector = HandDetector(config.mediapipe)
        self.surface = OpenCVSurface(config.surface)
        self.performance = PerformanceMonitor(target_fps=config.target_fps)

        self.drag = DragController(config.drag, on_transition=self.events.log_transition)
        self.classifier: Optional[GestureClassifierAdapter] = None
        self.loop: Optional[FrameLoop] = None

    def start(self) -> None:
        """Start camera and landmarker.

        Raises:
            CameraUnavailableError: if the camera cannot be opened
        """
        logger.info("Starting Pinch Drag...")

        if not self.camera.start():
            raise CameraUnavailableError(
                f"Camera {self.config.camera.device_id} is unavailable or access was denied")

        # The loop tolerates a provider that is not ready, so a failed
        # landmarker start only disables tracking.
        if not self.detector.start():
            logger.warning("Hand landmarker unavailable, running without tracking")

        try:
            self.classifier = GestureClassifierAdapter.from_config(self.config.classifier)
        except (ClassifierError, RuntimeError) as e:
            logger.warning("Gesture classifier disabled: %s", e)
            self.classifier = None

        element = self.drag.element
        size = (element.width, element.height)
        try:
            icon = load_icon(self.config.render.icon_path, size)
        except FileNotFoundError as e:
            logger.warning("%s, using the default tile", e)
            icon = load_icon("", size)

        self.loop = FrameLoop(
            source=self.camera,
            provider=self.detector,
            surface=self.surface,
            mapper=CoordinateMapper(self.config.mapper),
            pinch_detector=PinchDetector(self.config.pinch),
            drag_controller=self.drag,
            skeleton=SkeletonRenderer(self.config.skeleton),
            classifier=self.classifier,
            render_config=self.config.render,
            element_image=icon,
            monitor=self.performance,
            token=self.token,
            classify_interval=self.config.classifier.interval,
            on_key=self.handle_key,
            on_label=self.events.log_label,
        )
        self.performance.start()
        logger.info("Pinch Drag started")

    def stop(self) -> None:
        """Stop all components."""
        logger.info("Stopping Pinch Drag...")
        self.token.cancel()
        self.camera.stop()
        self.detector.stop()
        self.surface.close()
        self.performance.stop()
        logger.info("Average capture time: %.2fms", self.camera.avg_capture_time_ms)

    def handle_key(self, key: int) -> None:
        if key in (ord("q"), KEY_ESC):
            self.token.cancel()
        elif key == ord("s"):
            self.surface.snapshot()
        elif key == ord("r"):
            self.drag.reset()
        elif key == ord("c") and self.loop is not None and self.classifier is not None:
            self.loop.classifier_enabled = not self.loop.classifier_enabled
            logger.info("Gesture overlay %s", "on" if self.loop.classifier_enabled else "off")
        elif key == ord("p"):
            print(self.performance.get_report())

    def run(self) -> int:
        """Run the session. Returns a process exit status."""
        try:
            self.start()
        except CameraUnavailableError as e:
            logger.error("%s", e)
            self.stop()
            return 1
        except Exception:
            self.stop()
            raise

        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        try:
            asyncio.run(self.loop.run())
        finally:
            self.stop()
            print("\n" + self.performance.get_report())
        return 0

    def _signal_handler(self, signum, frame) -> None:
        logger.info("Received signal %d, shutting down...", signum)
        self.token.cancel()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pinchdrag",
        description="Hand pointer with pinch-to-drag, driven by your webcam",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Keyboard Controls:
  q/ESC     - Quit
  s         - Save snapshot
  r         - Reset drag
  c         - Toggle gesture overlay
  p         - Print performance report
        """,
    )
    parser.add_argument("--config", "-c", default=DEFAULT_CONFIG_PATH,
                        help="Path to configuration file")
    parser.add_argument("--camera", type=int, default=None, help="Camera index")
    parser.add_argument("--sensitivity", type=float, default=None,
                        help="Pointer gain (> 0)")
    parser.add_argument("--pinch-threshold", type=float, default=None,
                        help="Thumb/index distance that counts as a pinch (normalized)")
    parser.add_argument("--no-classifier", action="store_true",
                        help="Disable the gesture classifier overlay")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    return parser


def apply_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Apply command line overrides on top of the file configuration."""
    if args.camera is not None:
        config.camera.device_id = args.camera
    if args.sensitivity is not None:
        if args.sensitivity <= 0:
            raise ValueError("--sensitivity must be > 0")
        config.mapper.sensitivity = args.sensitivity
    if args.pinch_threshold is not None:
        if args.pinch_threshold <= 0:
            raise ValueError("--pinch-threshold must be > 0")
        config.pinch.threshold = args.pinch_threshold
    if args.no_classifier:
        config.classifier.enabled = False
    return config


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    config = load_config(args.config)
    setup_logging(
        level="DEBUG" if args.debug else config.logging.level,
        log_file=config.logging.file,
        max_size_mb=config.logging.max_size_mb,
        backup_count=config.logging.backup_count,
    )

    try:
        config = apply_overrides(config, args)
    except ValueError as e:
        logger.error("%s", e)
        return 2

    return PinchDragApp(config).run()


if __name__ == "__main__":
    sys.exit(main())
