"""
Station configuration: where the measurement programs live and where the
data goes.

Every key is optional; a missing file section falls back to the layout of
the test station the workflow was written for::

    from pmt_max_current.config import load_config

    config = load_config("config/station.yaml")
    print(config.run_root)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

from .constants import (
    DEFAULT_ACQUISITION_BINARY,
    DEFAULT_ACQUISITION_OUTPUT,
    DEFAULT_ANALYSIS_SCRIPT,
    DEFAULT_ARTIFACT_PATTERNS,
    DEFAULT_BASE_DIR,
    DEFAULT_FILTER_SCRIPT,
    DEFAULT_POWER_SUPPLY_SCRIPT,
    DEFAULT_PYTHON,
    DEFAULT_RECORD_FILE,
    DEFAULT_SETTINGS_FILE,
    DEFAULT_SETTLE_SECONDS,
    DEFAULT_TEMPERATURE_SCRIPT,
    DEFAULT_WORK_DIR,
)
from .exceptions import ValidationError

logger = logging.getLogger(__name__)

_STRING_KEYS = (
    "base_dir",
    "work_dir",
    "python",
    "power_supply_script",
    "filter_script",
    "temperature_script",
    "analysis_script",
    "acquisition_binary",
    "acquisition_output",
    "settings_file",
    "record_file",
)
_KNOWN_KEYS = (*_STRING_KEYS, "artifact_patterns", "settle_seconds")


@dataclass(frozen=True)
class StationConfig:
    """Validated station layout.  Defaults match the bench the test was written for."""

    base_dir: str = DEFAULT_BASE_DIR
    work_dir: str = DEFAULT_WORK_DIR
    python: str = DEFAULT_PYTHON
    power_supply_script: str = DEFAULT_POWER_SUPPLY_SCRIPT
    filter_script: str = DEFAULT_FILTER_SCRIPT
    temperature_script: str = DEFAULT_TEMPERATURE_SCRIPT
    analysis_script: str = DEFAULT_ANALYSIS_SCRIPT
    acquisition_binary: str = DEFAULT_ACQUISITION_BINARY
    acquisition_output: str = DEFAULT_ACQUISITION_OUTPUT
    settings_file: str = DEFAULT_SETTINGS_FILE
    artifact_patterns: tuple[str, ...] = DEFAULT_ARTIFACT_PATTERNS
    record_file: str = DEFAULT_RECORD_FILE
    settle_seconds: float = DEFAULT_SETTLE_SECONDS

    @property
    def work_path(self) -> Path:
        """Directory the acquisition binary runs in and writes to."""
        return Path(self.work_dir)

    @property
    def run_root(self) -> Path:
        """Root of all run directories (``base_dir`` resolved against ``work_dir``)."""
        return self.work_path / self.base_dir


def load_config(path: str | Path) -> StationConfig:
    """Load and validate a station configuration from a YAML file.

    Args:
        path: Path to the YAML config file.

    Returns:
        A validated :class:`StationConfig`.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValidationError: If the config is malformed or contains invalid values.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f)

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValidationError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    unknown = sorted(str(key) for key in raw if key not in _KNOWN_KEYS)
    if unknown:
        raise ValidationError(f"Unknown config keys: {', '.join(unknown)}")

    values: dict = {}
    for key in _STRING_KEYS:
        if key in raw:
            values[key] = _require_string(raw, key)

    if "artifact_patterns" in raw:
        patterns = raw["artifact_patterns"]
        if not isinstance(patterns, list) or not all(
            isinstance(p, str) and p for p in patterns
        ):
            raise ValidationError("'artifact_patterns' must be a list of non-empty strings")
        values["artifact_patterns"] = tuple(patterns)

    if "settle_seconds" in raw:
        settle = raw["settle_seconds"]
        if isinstance(settle, bool) or not isinstance(settle, (int, float)) or settle < 0:
            raise ValidationError(
                f"'settle_seconds' must be a non-negative number, got {settle!r}"
            )
        values["settle_seconds"] = float(settle)

    config = StationConfig(**values)
    logger.info("Loaded station config from %s", path)
    return config


def _require_string(data: dict, key: str) -> str:
    val = data.get(key)
    if not isinstance(val, str) or not val:
        raise ValidationError(f"'{key}' must be a non-empty string, got {val!r}")
    return val
