"""
Configuration for the Big Blue hand controller.

Defaults live as module constants; ``RemoteConfig`` groups them so they can be
overridden from an optional JSON file and from the command line.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

from bigblue.logging_utils import log_event


# Radio link
PEER_NAME: str = "ESP32_Direction_Control"
BAUD_RATE: int = 9600
READ_TIMEOUT_SEC: float = 1.0
WRITE_TIMEOUT_SEC: float = 1.0
CONNECT_TIMEOUT_SEC: float = 10.0

# Spiral search
SPIRAL_STEP_MS: int = 100        # logical duration of the first leg
SPIRAL_GROWTH: float = 1.5       # each leg is this much longer than the last
SPIRAL_MAX_LEG_MS: int = 20000   # legs stop growing past this

# Operator feedback
HAPTIC_PULSE_MS: int = 50
HAPTIC_INTENSITY: float = 1.0

LOG_LEVEL: str = "INFO"


@dataclass
class RemoteConfig:
    peer_name: str = PEER_NAME
    # Explicit name -> serial port/URL table, consulted before port enumeration
    peers: Dict[str, str] = field(default_factory=dict)
    baud_rate: int = BAUD_RATE
    read_timeout_s: float = READ_TIMEOUT_SEC
    write_timeout_s: float = WRITE_TIMEOUT_SEC
    connect_timeout_s: float = CONNECT_TIMEOUT_SEC
    spiral_step_ms: int = SPIRAL_STEP_MS
    spiral_growth: float = SPIRAL_GROWTH
    spiral_max_leg_ms: int = SPIRAL_MAX_LEG_MS
    haptic_pulse_ms: int = HAPTIC_PULSE_MS
    haptic_intensity: float = HAPTIC_INTENSITY
    log_level: str = LOG_LEVEL

    def validate(self) -> "RemoteConfig":
        """Clamp values that would stall or invert the link and the spiral."""
        self.baud_rate = int(self.baud_rate) if int(self.baud_rate) > 0 else BAUD_RATE
        self.read_timeout_s = max(0.0, float(self.read_timeout_s))
        self.write_timeout_s = max(0.01, float(self.write_timeout_s))
        self.connect_timeout_s = max(0.5, float(self.connect_timeout_s))
        self.spiral_step_ms = max(1, int(self.spiral_step_ms))
        self.spiral_growth = max(1.0, float(self.spiral_growth))
        self.spiral_max_leg_ms = max(self.spiral_step_ms, int(self.spiral_max_leg_ms))
        self.haptic_pulse_ms = max(0, int(self.haptic_pulse_ms))
        self.haptic_intensity = min(1.0, max(0.0, float(self.haptic_intensity)))
        self.peers = {str(name): str(port) for name, port in dict(self.peers).items()}
        return self


def apply_dict_to_config(config: RemoteConfig, data: Dict[str, Any]) -> RemoteConfig:
    """Copy known keys from ``data`` onto ``config``; unknown keys are reported and skipped."""
    known = {f.name for f in fields(RemoteConfig)}
    for key, value in data.items():
        if key not in known:
            log_event("WARNING", "Config", "Ignoring unknown key", key=key)
            continue
        setattr(config, key, value)
    return config


def load_config(path: Optional[Path] = None) -> RemoteConfig:
    """Load config from a JSON file, returning defaults if missing or unreadable."""
    config = RemoteConfig()
    if path is None:
        return config.validate()

    path = Path(path)
    if not path.exists():
        log_event("INFO", "Config", "No config file found, using defaults", path=path)
        return config.validate()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        log_event("WARNING", "Config", "Failed to load, using defaults", path=path, error=e)
        return config.validate()

    if not isinstance(data, dict):
        log_event("WARNING", "Config", "Config root must be an object, using defaults", path=path)
        return config.validate()

    try:
        apply_dict_to_config(config, data)
        config.validate()
    except (TypeError, ValueError) as e:
        log_event("WARNING", "Config", "Invalid value, using defaults", path=path, error=e)
        return RemoteConfig().validate()

    log_event("INFO", "Config", "Loaded", path=path)
    return config


def apply_cli_overrides(config: RemoteConfig, args: Any) -> RemoteConfig:
    """Overlay argparse results (``peer``, ``port``, ``baud``, ``log_level``) onto ``config``."""
    if getattr(args, "peer", None):
        config.peer_name = args.peer
    if getattr(args, "port", None):
        config.peers[config.peer_name] = args.port
    if getattr(args, "baud", None):
        config.baud_rate = args.baud
    if getattr(args, "log_level", None):
        config.log_level = args.log_level
    return config.validate()


__all__ = [
    "RemoteConfig",
    "apply_cli_overrides",
    "apply_dict_to_config",
    "load_config",
]
