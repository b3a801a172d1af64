"""YAML configuration for the change-detection pipeline."""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .analysis import DEFAULT_CHANGE_THRESHOLD, LANDSAT_SR_OFFSET, LANDSAT_SR_SCALE
from .data_loader import DEFAULT_BAND_PATTERN

REQUIRED_KEYS = ("earlier_scene", "later_scene", "output_dir")


@dataclass
class BoundaryConfig:
    """Study-area boundary used to crop and mask both scenes."""

    path: Path
    crs: Optional[Any] = None
    column: Optional[str] = None
    values: List[str] = field(default_factory=list)
    mask: bool = True

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any], base_dir: Path) -> "BoundaryConfig":
        if "path" not in cfg:
            raise KeyError("boundary section requires 'path'")
        values = cfg.get("values", [])
        if isinstance(values, str):
            values = [values]
        column = cfg.get("column")
        if values and not column:
            raise KeyError("boundary 'values' given without 'column'")
        return cls(
            path=_resolve(cfg["path"], base_dir),
            crs=cfg.get("crs"),
            column=column,
            values=[str(v) for v in values],
            mask=bool(cfg.get("mask", True)),
        )


@dataclass
class ChangeConfig:
    """Settings for comparing NDVI between an earlier and a later scene."""

    earlier_scene: Path
    later_scene: Path
    output_dir: Path
    band_pattern: str = DEFAULT_BAND_PATTERN
    red_band: str = "B4"
    nir_band: str = "B5"
    scale: float = LANDSAT_SR_SCALE
    offset: float = LANDSAT_SR_OFFSET
    threshold: float = DEFAULT_CHANGE_THRESHOLD
    boundary: Optional[BoundaryConfig] = None
    source: Optional[Path] = None

    def __post_init__(self) -> None:
        self.scale = float(self.scale)
        self.offset = float(self.offset)
        self.threshold = float(self.threshold)
        if not math.isfinite(self.threshold) or self.threshold < 0:
            raise ValueError(f"threshold must be non-negative, got {self.threshold}")
        if not math.isfinite(self.scale) or self.scale == 0:
            raise ValueError(f"scale must be a non-zero number, got {self.scale}")

    @classmethod
    def from_dict(cls, cfg: Dict[str, Any], base_dir: str | Path = ".") -> "ChangeConfig":
        """Build a config from a mapping; relative paths resolve against ``base_dir``."""
        missing = [k for k in REQUIRED_KEYS if k not in cfg]
        if missing:
            raise KeyError(f"Missing required config keys: {missing}")
        base_dir = Path(base_dir)
        boundary = cfg.get("boundary")
        return cls(
            earlier_scene=_resolve(cfg["earlier_scene"], base_dir),
            later_scene=_resolve(cfg["later_scene"], base_dir),
            output_dir=_resolve(cfg["output_dir"], base_dir),
            band_pattern=cfg.get("band_pattern", DEFAULT_BAND_PATTERN),
            red_band=cfg.get("red_band", "B4"),
            nir_band=cfg.get("nir_band", "B5"),
            scale=cfg.get("scale", LANDSAT_SR_SCALE),
            offset=cfg.get("offset", LANDSAT_SR_OFFSET),
            threshold=cfg.get("threshold", DEFAULT_CHANGE_THRESHOLD),
            boundary=BoundaryConfig.from_dict(boundary, base_dir) if boundary else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Plain, JSON-friendly view of the settings."""
        data = asdict(self)
        data.pop("source")
        return _stringify_paths(data)


def _resolve(value: str | Path, base_dir: Path) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else base_dir / path


def _stringify_paths(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _stringify_paths(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_stringify_paths(v) for v in value]
    if isinstance(value, Path):
        return str(value)
    return value


def load_config(path: str | Path) -> ChangeConfig:
    """Load a :class:`ChangeConfig` from a YAML file."""
    path = Path(path)
    with open(path) as f:
        cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, dict):
        raise ValueError(f"Config {path} must be a YAML mapping")
    config = ChangeConfig.from_dict(cfg, base_dir=path.parent)
    config.source = path
    return config
