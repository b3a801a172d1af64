"""NDVI and change-detection routines over aligned grids."""

from __future__ import annotations

import logging
import math
from typing import Dict, Optional, Sequence

import numpy as np

from .grid import DifferenceGrid, Grid, NdviGrid, ReflectanceGrid, ThresholdedGrid, check_aligned

logger = logging.getLogger(__name__)

# Landsat Collection 2 Level-2 surface reflectance
LANDSAT_SR_SCALE = 0.0000275
LANDSAT_SR_OFFSET = -0.2

DEFAULT_CHANGE_THRESHOLD = 0.2
# A difference of two NDVI grids spans [-2, 2].
HISTOGRAM_EDGES = tuple(np.round(np.arange(-2.0, 2.0001, 0.2), 1))

# NDVI above this is treated as vegetation; below zero as water.
VEGETATION_NDVI = 0.3


def rescale(grid: Grid, scale: float, offset: float = 0.0) -> ReflectanceGrid:
    """Apply ``value * scale + offset`` to every valid cell."""
    return grid.with_data(grid.data * scale + offset)


def compute_ndvi(nir: ReflectanceGrid, red: ReflectanceGrid) -> NdviGrid:
    """Compute the Normalized Difference Vegetation Index (NDVI).

    Cells where either band is no-data, or where ``nir + red == 0``, are
    no-data in the result. Valid cells are clipped to ``[-1, 1]``.
    """
    check_aligned(nir, red)
    with np.errstate(invalid="ignore"):
        numerator = nir.data - red.data
        denominator = nir.data + red.data
    valid = np.isfinite(numerator) & np.isfinite(denominator) & (denominator != 0)

    ndvi = np.full(nir.shape, np.nan)
    ndvi[valid] = np.clip(numerator[valid] / denominator[valid], -1.0, 1.0)

    degenerate = int(np.count_nonzero(np.isfinite(denominator) & (denominator == 0)))
    if degenerate:
        logger.debug("NDVI: %d cells with nir + red == 0 set to no-data", degenerate)
    return nir.with_data(ndvi, name="ndvi")


def ndvi_difference(earlier: NdviGrid, later: NdviGrid) -> DifferenceGrid:
    """Return ``later - earlier``; no-data in either input stays no-data."""
    check_aligned(earlier, later)
    with np.errstate(invalid="ignore"):
        difference = later.data - earlier.data
    return later.with_data(difference, name="ndvi_difference")


def threshold_change(
    difference: DifferenceGrid, threshold: float = DEFAULT_CHANGE_THRESHOLD
) -> ThresholdedGrid:
    """Null out changes with magnitude ``<= threshold``.

    Cells with ``-threshold <= value <= threshold`` become no-data; every
    other cell keeps its sign and magnitude.
    """
    threshold = float(threshold)
    if not math.isfinite(threshold) or threshold < 0:
        raise ValueError(f"threshold must be a non-negative number, got {threshold}")
    data = difference.data
    insignificant = np.abs(data) <= threshold
    out = np.where(insignificant, np.nan, data)
    return difference.with_data(out, name="ndvi_change_thresholded")


def change_histogram(grid: Grid, bins: Sequence[float] = HISTOGRAM_EDGES) -> Dict[str, list]:
    """Histogram of valid cells, returned as plain lists for JSON output."""
    values = grid.data[grid.valid_mask()]
    counts, edges = np.histogram(values, bins=np.asarray(bins, dtype=float))
    return {"counts": counts.astype(int).tolist(), "edges": [float(e) for e in edges]}


def _percentage(count: int, total: int) -> Optional[float]:
    if total == 0:
        return None
    return round(count / total * 100, 2)


def summarize_change(difference: DifferenceGrid, thresholded: ThresholdedGrid) -> Dict[str, object]:
    """Summary statistics of an NDVI difference and its significant cells."""
    check_aligned(difference, thresholded)
    values = difference.data[difference.valid_mask()]
    significant = thresholded.data[thresholded.valid_mask()]
    total = int(values.size)
    gain = int(np.count_nonzero(significant > 0))
    loss = int(np.count_nonzero(significant < 0))

    summary: Dict[str, object] = {
        "valid_pixels": total,
        "nodata_pixels": int(difference.data.size - total),
        "mean_change": float(values.mean()) if total else None,
        "min_change": float(values.min()) if total else None,
        "max_change": float(values.max()) if total else None,
        "gain_pixels": gain,
        "loss_pixels": loss,
        "gain_percentage": _percentage(gain, total),
        "loss_percentage": _percentage(loss, total),
    }
    return summary


def classify_ndvi(ndvi: NdviGrid, vegetation: float = VEGETATION_NDVI) -> Dict[str, Dict[str, object]]:
    """Count water, bare/urban and vegetation cells of an NDVI grid."""
    values = ndvi.data[ndvi.valid_mask()]
    total = int(values.size)
    classes = {
        "water": int(np.count_nonzero(values < 0)),
        "bare_urban": int(np.count_nonzero((values >= 0) & (values <= vegetation))),
        "vegetation": int(np.count_nonzero(values > vegetation)),
    }
    return {
        name: {"count": count, "percentage": _percentage(count, total)}
        for name, count in classes.items()
    }
