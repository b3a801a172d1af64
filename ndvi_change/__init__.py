"""NDVI change detection between two co-registered Landsat scenes."""

from .analysis import (
    change_histogram,
    classify_ndvi,
    compute_ndvi,
    ndvi_difference,
    rescale,
    summarize_change,
    threshold_change,
)
from .boundary import crop_to_boundary, load_boundary, mask_to_boundary, select_regions, to_grid_crs
from .config import ChangeConfig, load_config
from .data_loader import load_band, load_scene, save_raster
from .grid import Grid, ShapeMismatch
from .pipeline import detect_change, run_pipeline

__all__ = [
    "ChangeConfig",
    "Grid",
    "ShapeMismatch",
    "change_histogram",
    "classify_ndvi",
    "compute_ndvi",
    "crop_to_boundary",
    "detect_change",
    "load_band",
    "load_boundary",
    "load_config",
    "load_scene",
    "mask_to_boundary",
    "ndvi_difference",
    "rescale",
    "run_pipeline",
    "save_raster",
    "select_regions",
    "summarize_change",
    "threshold_change",
    "to_grid_crs",
]
