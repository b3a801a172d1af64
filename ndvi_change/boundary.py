"""Region boundary handling: selection, reprojection, crop and mask."""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any, Iterable, Optional

import geopandas as gpd
import numpy as np
from pyproj import CRS
from rasterio.features import geometry_mask
from rasterio.windows import Window, from_bounds
from rasterio.windows import transform as window_transform

from .grid import Grid

logger = logging.getLogger(__name__)

# Fractional pixel offsets closer than this to an integer are snapped to it.
_PIXEL_PRECISION = 6


def load_boundary(path: str | Path, crs: Optional[Any] = None) -> gpd.GeoDataFrame:
    """Read a boundary layer, assigning ``crs`` when it is given.

    Shapefiles without a ``.prj`` come back with no reference system; pass
    ``crs`` (e.g. ``4326``) to declare it. Assigning does not transform the
    coordinates, use :func:`to_grid_crs` for that.
    """
    frame = gpd.read_file(path)
    if crs is not None:
        crs = CRS.from_user_input(crs)
        if frame.crs is not None and not frame.crs.equals(crs):
            logger.warning("Overriding CRS of %s (%s) with %s", path, frame.crs, crs)
        frame = frame.set_crs(crs, allow_override=True)
    elif frame.crs is None:
        raise ValueError(f"Boundary {path} has no CRS; pass crs= to assign one")
    logger.info("Loaded %d boundary feature(s) from %s", len(frame), path)
    return frame


def select_regions(
    frame: gpd.GeoDataFrame, column: str, values: str | Iterable[str]
) -> gpd.GeoDataFrame:
    """Subset features whose ``column`` equals one of ``values``."""
    if column not in frame.columns:
        raise KeyError(f"Column {column!r} not found; available: {list(frame.columns)}")
    if isinstance(values, str):
        values = [values]
    values = list(values)
    selected = frame[frame[column].isin(values)]
    if selected.empty:
        raise ValueError(f"No features with {column} in {values}")
    return selected


def to_grid_crs(frame: gpd.GeoDataFrame, grid: Grid) -> gpd.GeoDataFrame:
    """Reproject a boundary into the reference system of ``grid``."""
    if grid.crs is None:
        raise ValueError(f"Grid {grid.name!r} has no CRS to reproject into")
    if frame.crs is None:
        raise ValueError("Boundary has no CRS; assign one before reprojecting")
    return frame.to_crs(grid.crs.to_wkt())


def _check_same_crs(frame: gpd.GeoDataFrame, grid: Grid) -> None:
    if frame.crs is None and grid.crs is None:
        return
    if frame.crs is None or grid.crs is None:
        raise ValueError(
            f"Boundary CRS {frame.crs} and grid CRS {grid.crs} cannot be compared; "
            "assign the missing one before cropping or masking"
        )
    if not frame.crs.equals(grid.crs.to_wkt(), ignore_axis_order=True):
        raise ValueError(
            f"Boundary CRS {frame.crs.to_string()} differs from grid CRS "
            f"{grid.crs.to_string()}; reproject it with to_grid_crs()"
        )


def boundary_window(grid: Grid, frame: gpd.GeoDataFrame) -> Window:
    """Pixel window covering the boundary's bounding box, clamped to the grid."""
    _check_same_crs(frame, grid)
    minx, miny, maxx, maxy = frame.total_bounds
    window = from_bounds(minx, miny, maxx, maxy, transform=grid.transform)
    col_off = max(math.floor(round(window.col_off, _PIXEL_PRECISION)), 0)
    row_off = max(math.floor(round(window.row_off, _PIXEL_PRECISION)), 0)
    col_end = min(math.ceil(round(window.col_off + window.width, _PIXEL_PRECISION)), grid.width)
    row_end = min(math.ceil(round(window.row_off + window.height, _PIXEL_PRECISION)), grid.height)
    if col_end <= col_off or row_end <= row_off:
        raise ValueError(f"Boundary does not overlap grid {grid.name!r}")
    return Window(col_off, row_off, col_end - col_off, row_end - row_off)


def crop_to_boundary(grid: Grid, frame: gpd.GeoDataFrame) -> Grid:
    """Crop ``grid`` to the bounding box of ``frame``."""
    window = boundary_window(grid, frame)
    rows, cols = window.toslices()
    logger.debug("Cropping %s to %s", grid.name, window)
    return Grid(
        grid.data[rows, cols],
        window_transform(window, grid.transform),
        grid.crs,
        grid.name,
    )


def mask_to_boundary(grid: Grid, frame: gpd.GeoDataFrame, crop: bool = False) -> Grid:
    """Set cells whose centres fall outside the boundary polygons to no-data."""
    if crop:
        grid = crop_to_boundary(grid, frame)
    else:
        _check_same_crs(frame, grid)
    inside = geometry_mask(
        list(frame.geometry),
        out_shape=grid.shape,
        transform=grid.transform,
        invert=True,
    )
    return grid.with_data(np.where(inside, grid.data, np.nan))


def save_boundary(frame: gpd.GeoDataFrame, path: str | Path) -> Path:
    """Write a boundary layer; the driver follows the file extension."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    frame.to_file(path)
    return path
