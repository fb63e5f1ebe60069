import logging
from typing import Any, Dict, Optional

import yaml

from .constraints import MediaStreamConstraints, MediaTrackConstraints

logger = logging.getLogger(__name__)

# Applied to a kind's section before the values read from the config file
DEFAULT_CONSTRAINTS = {
    "video": {"codec_name": "JPEG", "width": 640, "height": 480},
    "audio": {"codec_name": "L16", "sample_rate": 48000},
}


def get_setting(cli_value, config_value, default):
    """Resolve a setting with CLI taking precedence over config, then default."""
    return cli_value if cli_value is not None else (config_value if config_value is not None else default)


def load_config(path: str) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        return {}


def _track_constraints(kind: str, section: Optional[Dict[str, Any]],
                       overrides: Optional[Dict[str, Any]]) -> Optional[MediaTrackConstraints]:
    overrides = {k: v for k, v in (overrides or {}).items() if v is not None}
    if section is None and not overrides:
        return None
    if section is not None and not isinstance(section, dict):
        raise ValueError(f"{kind} section must be a mapping, got {section!r}")
    values = dict(DEFAULT_CONSTRAINTS[kind])
    values["enabled"] = True
    values.update(section or {})
    values.update(overrides)
    return MediaTrackConstraints.from_dict(values)


def load_stream_constraints(config: Dict[str, Any], video_overrides: Optional[Dict[str, Any]] = None,
                            audio_overrides: Optional[Dict[str, Any]] = None) -> MediaStreamConstraints:
    """Build stream constraints from the video/audio config sections; CLI overrides win"""
    constraints = MediaStreamConstraints(
        video=_track_constraints("video", config.get("video"), video_overrides),
        audio=_track_constraints("audio", config.get("audio"), audio_overrides),
    )
    logger.debug(f"Stream constraints: {constraints}")
    return constraints
