"""
Settings — timer constants with an optional JSON override file.

Defaults live in DEFAULT_CONFIG. config/settings.json (if present) is merged
over them on load; TimerSettings is the typed view the core consumes.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "settings.json"

DEFAULT_CONFIG = {
    "session_minutes": 25,
    "base_rest_minutes": 5,
    "bonus_rest_minutes": 5,
    "interruption_threshold_seconds": 120,
    "streak_protection_seconds": 120,
    "encouragement_seconds": 120,
    "daily_quota": 57,
    "min_batch_size": 1,
    "max_batch_size": 8,
    "batch_size": 1,
    "tick_interval_ms": 1000,
}


@dataclass(frozen=True)
class TimerSettings:
    session_minutes: int = 25
    base_rest_minutes: int = 5
    bonus_rest_minutes: int = 5
    interruption_threshold_seconds: int = 120
    streak_protection_seconds: int = 120
    encouragement_seconds: int = 120
    daily_quota: int = 57
    min_batch_size: int = 1
    max_batch_size: int = 8
    batch_size: int = 1
    tick_interval_ms: int = 1000

    @property
    def session_seconds(self) -> int:
        return self.session_minutes * 60

    @classmethod
    def from_config(cls, config: dict) -> "TimerSettings":
        """Build from a config dict, ignoring keys this version doesn't know."""
        known = {k: int(v) for k, v in config.items() if k in DEFAULT_CONFIG}
        return cls(**known)


def load_config(path: Optional[Path] = None) -> dict:
    path = path or CONFIG_PATH
    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                cfg = json.load(f)
            merged = DEFAULT_CONFIG.copy()
            merged.update(cfg)
            return merged
        except (json.JSONDecodeError, TypeError, ValueError):
            logger.warning("Bad settings file %s, using defaults.", path)
    return DEFAULT_CONFIG.copy()


def save_config(config: dict, path: Optional[Path] = None) -> None:
    path = path or CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2)


def load_settings(path: Optional[Path] = None) -> TimerSettings:
    try:
        return TimerSettings.from_config(load_config(path))
    except (TypeError, ValueError):
        logger.warning("Settings contain invalid values, using defaults.")
        return TimerSettings()
