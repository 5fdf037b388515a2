"""YAML config loading with dataclass defaults."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from loguru import logger

DEFAULT_CONFIG_NAME = "nspi.yaml"


@dataclass
class NSPIConfig:
    num_class: int = 4
    min_pixel: int = 20
    cloud_nbh: int = 10
    dn_min: float = 0.0
    dn_max: float = 255.0
    similarity_reference: str = "loop_index"  # or "target"


@dataclass
class ExecutionConfig:
    max_workers: int = 1


@dataclass
class FillConfig:
    nspi: NSPIConfig = field(default_factory=NSPIConfig)
    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    report_dir: Optional[str] = None


def _section(raw: dict, name: str) -> dict:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{name}' must be a mapping, got {type(value).__name__}")
    return value


def load_config(path: Optional[str] = None) -> FillConfig:
    """Load config from YAML, falling back to defaults for missing keys."""
    if path is None:
        # Try default location
        default = Path(DEFAULT_CONFIG_NAME)
        if not default.exists():
            logger.warning("No config file found; using built-in defaults")
            return FillConfig()
        path = str(default)

    logger.info(f"Using config: {path}")
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config file {path} must contain a mapping")

    cfg = FillConfig()

    nspi = _section(raw, "nspi")
    for key in ("num_class", "min_pixel", "cloud_nbh"):
        if nspi.get(key) is not None:
            setattr(cfg.nspi, key, int(nspi[key]))
    for key in ("dn_min", "dn_max"):
        if nspi.get(key) is not None:
            setattr(cfg.nspi, key, float(nspi[key]))
    if nspi.get("similarity_reference"):
        cfg.nspi.similarity_reference = str(nspi["similarity_reference"])

    ex = _section(raw, "execution")
    if ex.get("max_workers") is not None:
        cfg.execution.max_workers = int(ex["max_workers"])

    if raw.get("report_dir"):
        cfg.report_dir = str(raw["report_dir"])

    return cfg
