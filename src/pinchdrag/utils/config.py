"""
Configuration loading.

Reads ``config/config.yaml`` and builds typed section configs with defaults
for every missing key. Type mismatches in well-known fields are logged as
warnings rather than raised.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

import yaml

from ..capture.camera import CameraConfig
from ..detection.hand_detector import HandDetectorConfig
from ..interaction.coordinate_mapper import CoordinateMapperConfig
from ..interaction.drag_controller import DragControllerConfig
from ..interaction.pinch_detector import PinchDetectorConfig
from ..recognition.gesture_classifier import GestureClassifierConfig
from ..rendering.skeleton import SkeletonStyle
from ..rendering.surface import SurfaceConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = os.path.join("config", "config.yaml")

# Schema: sections and the expected types of their critical fields
_CONFIG_SCHEMA = {
    "camera": {
        "device_id": int,
        "width": int,
        "height": int,
        "fps": int,
    },
    "mediapipe": {
        "max_num_hands": int,
        "min_detection_confidence": float,
        "min_tracking_confidence": float,
    },
    "interaction": {
        "sensitivity": float,
        "vertical_offset": float,
        "pinch_threshold": float,
        "hit_test": str,
        "element": dict,
    },
    "rendering": {
        "landmark_radius": int,
        "show_hud": bool,
    },
    "classifier": {
        "enabled": bool,
        "labels": list,
        "interval": int,
    },
}


@dataclass
class RenderConfig:
    """Overlay settings outside the hand skeleton."""
    pointer_radius: int = 10
    pointer_color: tuple = (0, 255, 0)
    show_pointer: bool = True
    show_hud: bool = True
    icon_path: str = ""

    @classmethod
    def from_dict(cls, rendering: dict, interaction: Optional[dict] = None) -> "RenderConfig":
        element = (interaction or {}).get("element", {}) or {}
        return cls(
            pointer_radius=int(rendering.get("pointer_radius", 10)),
            pointer_color=tuple(rendering.get("pointer_color", [0, 255, 0])),
            show_pointer=bool(rendering.get("show_pointer", True)),
            show_hud=bool(rendering.get("show_hud", True)),
            icon_path=element.get("icon_path", ""),
        )


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: Optional[str] = None
    max_size_mb: int = 10
    backup_count: int = 3

    @classmethod
    def from_dict(cls, d: dict) -> "LoggingConfig":
        return cls(
            level=d.get("level", "INFO"),
            file=d.get("file"),
            max_size_mb=d.get("max_size_mb", 10),
            backup_count=d.get("backup_count", 3),
        )


@dataclass
class AppConfig:
    """Application configuration container."""
    camera: CameraConfig = field(default_factory=CameraConfig)
    mediapipe: HandDetectorConfig = field(default_factory=HandDetectorConfig)
    mapper: CoordinateMapperConfig = field(default_factory=CoordinateMapperConfig)
    pinch: PinchDetectorConfig = field(default_factory=PinchDetectorConfig)
    drag: DragControllerConfig = field(default_factory=DragControllerConfig)
    skeleton: SkeletonStyle = field(default_factory=SkeletonStyle)
    render: RenderConfig = field(default_factory=RenderConfig)
    surface: SurfaceConfig = field(default_factory=SurfaceConfig)
    classifier: GestureClassifierConfig = field(default_factory=GestureClassifierConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    target_fps: float = 30.0


def validate_config(data: dict) -> List[str]:
    """Check critical fields against the schema. Returns the warnings."""
    warnings = []
    for section_name, fields in _CONFIG_SCHEMA.items():
        section = data.get(section_name)
        if section is None:
            continue
        if not isinstance(section, dict):
            warnings.append(f"Section '{section_name}' should be a dict, got {type(section).__name__}")
            continue
        for field_name, expected_type in fields.items():
            if field_name not in section:
                continue
            value = section[field_name]
            # Allow int where float is expected
            if expected_type is float and isinstance(value, (int, float)) and not isinstance(value, bool):
                continue
            if not isinstance(value, expected_type):
                warnings.append(
                    f"{section_name}.{field_name}: expected {expected_type.__name__}, "
                    f"got {type(value).__name__} ({value!r})"
                )

    for w in warnings:
        logger.warning("Config validation: %s", w)
    return warnings


def _strip_invalid(data: dict) -> dict:
    """Drop schema fields with the wrong type so their defaults apply."""
    cleaned = {}
    for section_name, section in data.items():
        fields = _CONFIG_SCHEMA.get(section_name)
        if not isinstance(section, dict):
            if fields is None:
                cleaned[section_name] = section
            continue
        if fields is None:
            cleaned[section_name] = section
            continue
        kept = {}
        for key, value in section.items():
            expected = fields.get(key)
            if expected is float and isinstance(value, (int, float)) and not isinstance(value, bool):
                kept[key] = value
            elif expected is None or isinstance(value, expected):
                kept[key] = value
        cleaned[section_name] = kept
    return cleaned


def create_app_config(config_dict: dict) -> AppConfig:
    """Create AppConfig from a parsed configuration dictionary."""
    validate_config(config_dict)
    data = _strip_invalid(config_dict)
    interaction = data.get("interaction", {})
    rendering = data.get("rendering", {})
    return AppConfig(
        camera=CameraConfig.from_dict(data.get("camera", {})),
        mediapipe=HandDetectorConfig.from_dict(data.get("mediapipe", {})),
        mapper=CoordinateMapperConfig.from_dict(interaction),
        pinch=PinchDetectorConfig.from_dict(interaction),
        drag=DragControllerConfig.from_dict(interaction),
        skeleton=SkeletonStyle.from_dict(rendering),
        render=RenderConfig.from_dict(rendering, interaction),
        surface=SurfaceConfig.from_dict(rendering, data.get("snapshot", {})),
        classifier=GestureClassifierConfig.from_dict(data.get("classifier", {})),
        logging=LoggingConfig.from_dict(data.get("logging", {})),
        target_fps=float(data.get("performance", {}).get("target_fps", 30.0)),
    )


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load configuration from YAML; missing file means all defaults."""
    config_path = config_path or DEFAULT_CONFIG_PATH
    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}
        logger.info("Loaded config from %s", config_path)
    except FileNotFoundError:
        logger.warning("Config file not found: %s, using defaults", config_path)
        data = {}

    if not isinstance(data, dict):
        logger.warning("Config root should be a mapping, got %s; using defaults",
                       type(data).__name__)
        data = {}

    return create_app_config(data)
