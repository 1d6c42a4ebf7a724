"""
Logging setup and interaction event logging.
"""

import logging
import logging.handlers
import os
import time


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Configure console (and optional rotating file) logging."""
    console_format = "%(asctime)s  %(levelname)-5s  %(message)s"
    file_format = "%(asctime)s [%(levelname)-7s] %(name)-32s | %(message)s"
    date_format = "%H:%M:%S"

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(root_logger.level)
    console.setFormatter(logging.Formatter(console_format, datefmt=date_format))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt=date_format))
        root_logger.addHandler(file_handler)

    return root_logger


class InteractionLogger:
    """Session log of grab/release and gesture-label changes.

    Kept in memory for the current session only.
    """

    def __init__(self):
        self.logger = logging.getLogger("interaction_events")
        self._history = []
        self._last_label = None

    def log_transition(self, old_state, new_state, element):
        """Drag transition listener (see DragController)."""
        position = element.display_position
        self._history.append({
            "timestamp": time.time(),
            "event": new_state.value,
            "position": position,
        })
        self.logger.info("Drag: %-8s -> %-8s | Element: (%.0f, %.0f)",
                         old_state.value, new_state.value, position[0], position[1])

    def log_label(self, label):
        """Record a gesture label when it differs from the previous one."""
        name = label.name if label is not None else None
        if name == self._last_label:
            return
        self._last_label = name
        if name is None:
            return
        self._history.append({
            "timestamp": time.time(),
            "event": "gesture",
            "label": name,
            "confidence": label.confidence,
        })
        self.logger.info("Gesture: %-10s | Confidence: %.2f", name, label.confidence)

    def get_history(self, last_n=None):
        if last_n:
            return self._history[-last_n:]
        return list(self._history)

    @property
    def total_events(self):
        return len(self._history)

