"""Utility functions for loading and saving raster bands."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, Iterable, Optional

import numpy as np
import rasterio

from .grid import Grid

logger = logging.getLogger(__name__)

DEFAULT_BAND_PATTERN = "*SR_B*.TIF"
DEFAULT_NODATA = -9999.0


def load_band(
    path: str | Path,
    band: int = 1,
    scale: float = 1.0,
    offset: float = 0.0,
    name: Optional[str] = None,
) -> Grid:
    """Read one band from disk, mask its nodata value and rescale it."""
    path = Path(path)
    with rasterio.open(path) as src:
        data = src.read(band).astype("float64")
        nodata = src.nodata
        transform = src.transform
        crs = src.crs
    if nodata is not None and not np.isnan(nodata):
        data[data == nodata] = np.nan
    if scale != 1.0 or offset != 0.0:
        data = data * scale + offset
    logger.debug("Loaded %s band %d (%dx%d)", path.name, band, data.shape[1], data.shape[0])
    return Grid(data, transform, crs, name or path.stem)


def _band_name(path: Path) -> str:
    # LC08_L2SP_137043_20140314_20200911_02_T1_SR_B4.TIF -> B4
    return path.stem.split("SR_")[-1]


def _band_number(name: str) -> int:
    match = re.search(r"(\d+)$", name)
    return int(match.group(1)) if match else 0


def list_scene_bands(scene_dir: str | Path, pattern: str = DEFAULT_BAND_PATTERN) -> Dict[str, Path]:
    """Map short band names (``B1`` ... ``B7``) to the scene's band files."""
    scene_dir = Path(scene_dir)
    files = [p for p in scene_dir.glob(pattern) if p.is_file()]
    if not files:
        raise FileNotFoundError(f"No files matching {pattern!r} found in {scene_dir}")
    bands = {_band_name(p): p for p in files}
    return dict(sorted(bands.items(), key=lambda item: (_band_number(item[0]), item[0])))


def load_scene(
    scene_dir: str | Path,
    bands: Iterable[str] = ("B4", "B5"),
    scale: float = 1.0,
    offset: float = 0.0,
    pattern: str = DEFAULT_BAND_PATTERN,
) -> Dict[str, Grid]:
    """Load the requested bands of a scene directory as grids."""
    available = list_scene_bands(scene_dir, pattern)
    bands = list(bands)
    missing = [b for b in bands if b not in available]
    if missing:
        raise KeyError(
            f"Bands {missing} not found in {scene_dir}; available: {list(available)}"
        )
    return {b: load_band(available[b], scale=scale, offset=offset, name=b) for b in bands}


def save_raster(grid: Grid, path: str | Path, nodata: float = DEFAULT_NODATA) -> Path:
    """Save a grid as a single-band float32 GeoTIFF."""
    path = Path(path)
    meta = {
        "driver": "GTiff",
        "height": grid.height,
        "width": grid.width,
        "count": 1,
        "dtype": "float32",
        "crs": grid.crs,
        "transform": grid.transform,
        "nodata": nodata,
        "compress": "lzw",
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    with rasterio.open(path, "w", **meta) as dst:
        dst.write(np.where(grid.valid_mask(), grid.data, nodata).astype("float32"), 1)
        if grid.name:
            dst.set_band_description(1, grid.name)
    return path
