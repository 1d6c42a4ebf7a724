"""Utility modules for configuration, logging and performance."""
from .logger import InteractionLogger, setup_logging
from .performance import PerformanceMonitor, Timer

__all__ = ["InteractionLogger", "setup_logging", "PerformanceMonitor", "Timer"]
