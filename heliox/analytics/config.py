"""
Latency Analytics Configuration
===============================

Tunables for the analytics engine and the HTTP adapter, grouped into
frozen dataclasses and read through the ``Config`` container:

    from heliox.analytics.config import Config

    Config.LATENCY.LOSS_THRESHOLD_PERCENT   # 1.0
    Config.API.MAX_TARGETS                  # 64

Sources
-------
Every field can be set from the environment as ANALYTICS_{GROUP}_{FIELD}:

    ANALYTICS_LATENCY_LOSS_THRESHOLD_PERCENT=2.5
    ANALYTICS_API_MAX_TARGETS=32

or from the ``analytics`` section of the YAML file given to the server
(keys are case-insensitive):

    analytics:
      latency:
        loss_threshold_percent: 2.5
        target_points: 720

File values are exported to the environment before reloading, so both
sources go through the same parsing. A value that does not parse (or a
non-finite float) keeps the field default and logs a warning.

Reloading
---------
reload_config() swaps whole group objects under a lock and bumps
Config.get_version(). Groups are immutable, so a reader holding
Config.LATENCY never sees a half-applied change.
"""

import logging
import math
import os
import threading
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger("Analytics.Config")

_config_lock = threading.RLock()


def _env_value(key: str, default: Any) -> Any:
    """Read ``key`` from the environment, cast to the type of ``default``."""
    raw = os.environ.get(key)
    if raw is None:
        return default
    try:
        value = type(default)(raw)
    except ValueError:
        logger.warning(f"Ignoring {key}={raw!r}: not a valid {type(default).__name__}")
        return default
    if isinstance(value, float) and not math.isfinite(value):
        logger.warning(f"Ignoring {key}={raw!r}: not a finite number")
        return default
    return value


def _group_from_env(cls: type, group: str) -> Any:
    overrides = {
        f.name: _env_value(f"ANALYTICS_{group}_{f.name}", f.default)
        for f in fields(cls)
    }
    return cls(**overrides)


@dataclass(frozen=True)
class LatencyConfig:
    """Loss/latency analysis."""

    # Merged loss percentage at or above which a bucket is anomalous
    LOSS_THRESHOLD_PERCENT: float = 1.0

    # Bucket width assumed for a trailing anomalous sample
    DEFAULT_GRANULARITY_MINUTES: int = 1

    # Approximate number of points per query when choosing granularity
    TARGET_POINTS: int = 1440

    @classmethod
    def from_env(cls) -> "LatencyConfig":
        return _group_from_env(cls, "LATENCY")


@dataclass(frozen=True)
class ZoomConfig:
    """Zoom window bounds, in percent of the loaded timeline."""

    MIN_PERCENT: float = 0.0
    MAX_PERCENT: float = 100.0

    @classmethod
    def from_env(cls) -> "ZoomConfig":
        return _group_from_env(cls, "ZOOM")


@dataclass(frozen=True)
class APIConfig:
    """Analyze request limits."""

    MAX_TARGETS: int = 64
    MAX_POINTS_PER_TARGET: int = 20000

    @classmethod
    def from_env(cls) -> "APIConfig":
        return _group_from_env(cls, "API")


class Config:
    """Current configuration groups, replaced as a whole on reload."""

    LATENCY = LatencyConfig.from_env()
    ZOOM = ZoomConfig.from_env()
    API = APIConfig.from_env()

    _version: int = 0

    @classmethod
    def to_dict(cls) -> Dict[str, Dict[str, Any]]:
        return {
            "latency": asdict(cls.LATENCY),
            "zoom": asdict(cls.ZOOM),
            "api": asdict(cls.API),
            "_version": cls._version,
        }

    @classmethod
    def get_version(cls) -> int:
        return cls._version


def reload_config() -> None:
    """
    Rebuild every group from the environment.

    Example:
        >>> os.environ["ANALYTICS_LATENCY_LOSS_THRESHOLD_PERCENT"] = "5"
        >>> reload_config()
        >>> Config.LATENCY.LOSS_THRESHOLD_PERCENT
        5.0
    """
    global LATENCY, ZOOM, API

    with _config_lock:
        Config.LATENCY = LATENCY = LatencyConfig.from_env()
        Config.ZOOM = ZOOM = ZoomConfig.from_env()
        Config.API = API = APIConfig.from_env()
        Config._version += 1

        logger.info(f"Analytics config v{Config._version} loaded")


def load_config_file(path: Optional[str]) -> Dict[str, Any]:
    """
    Load a YAML config file and apply its ``analytics`` section.

    Args:
        path: Path to YAML file. None or a missing file yields defaults.

    Returns:
        The full parsed config dict (``server`` and ``logging`` sections
        are consumed by heliox.main).
    """
    data: Dict[str, Any] = {}

    if path and os.path.exists(path):
        with open(path, "r") as f:
            loaded = yaml.safe_load(f)
        if isinstance(loaded, dict):
            data = loaded
        elif loaded is not None:
            logger.warning(f"Ignoring config file {path}: top level is not a mapping")
    elif path:
        logger.warning(f"Config file {path} not found, using defaults")

    analytics = data.get("analytics") or {}
    for group, values in analytics.items():
        if not isinstance(values, dict):
            logger.warning(f"Ignoring analytics.{group}: expected a mapping")
            continue
        for name, value in values.items():
            key = f"ANALYTICS_{str(group).upper()}_{str(name).upper()}"
            os.environ[key] = str(value)

    reload_config()
    return data


LATENCY = Config.LATENCY
ZOOM = Config.ZOOM
API = Config.API
