"""NDVI change-detection pipeline between two Landsat scenes."""

from __future__ import annotations

import argparse
import json
import logging
import shutil
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Optional

import geopandas as gpd

from . import analysis, boundary, data_loader
from .config import ChangeConfig, load_config
from .grid import DifferenceGrid, Grid, NdviGrid, ThresholdedGrid

logger = logging.getLogger(__name__)

OUTPUT_FILES = {
    "ndvi_earlier": "ndvi_earlier.tif",
    "ndvi_later": "ndvi_later.tif",
    "difference": "ndvi_difference.tif",
    "thresholded": "ndvi_change_thresholded.tif",
}
SUMMARY_FILE = "change_summary.json"


@dataclass(frozen=True)
class ChangeResult:
    ndvi_earlier: NdviGrid
    ndvi_later: NdviGrid
    difference: DifferenceGrid
    thresholded: ThresholdedGrid
    summary: Dict[str, object]


def detect_change(
    earlier_nir: Grid,
    earlier_red: Grid,
    later_nir: Grid,
    later_red: Grid,
    threshold: float = analysis.DEFAULT_CHANGE_THRESHOLD,
) -> ChangeResult:
    """NDVI for both dates, their difference and the significant changes."""
    ndvi_earlier = analysis.compute_ndvi(earlier_nir, earlier_red)
    ndvi_later = analysis.compute_ndvi(later_nir, later_red)
    difference = analysis.ndvi_difference(ndvi_earlier, ndvi_later)
    thresholded = analysis.threshold_change(difference, threshold)

    summary = analysis.summarize_change(difference, thresholded)
    summary["threshold"] = float(threshold)
    summary["histogram"] = analysis.change_histogram(difference)
    summary["ndvi_classes"] = {
        "earlier": analysis.classify_ndvi(ndvi_earlier),
        "later": analysis.classify_ndvi(ndvi_later),
    }
    return ChangeResult(ndvi_earlier, ndvi_later, difference, thresholded, summary)


def _load_study_area(config: ChangeConfig, reference: Grid) -> Optional[gpd.GeoDataFrame]:
    if config.boundary is None:
        return None
    cfg = config.boundary
    frame = boundary.load_boundary(cfg.path, crs=cfg.crs)
    if cfg.column:
        frame = boundary.select_regions(frame, cfg.column, cfg.values)
    return boundary.to_grid_crs(frame, reference)


def _load_bands(scene_dir: Path, config: ChangeConfig) -> Dict[str, Grid]:
    logger.info("Loading scene %s", scene_dir)
    return data_loader.load_scene(
        scene_dir, bands=(config.red_band, config.nir_band), pattern=config.band_pattern
    )


def _prepare_scene(
    bands: Dict[str, Grid], config: ChangeConfig, area: Optional[gpd.GeoDataFrame]
) -> Dict[str, Grid]:
    if area is not None:
        if config.boundary.mask:
            bands = {k: boundary.mask_to_boundary(g, area, crop=True) for k, g in bands.items()}
        else:
            bands = {k: boundary.crop_to_boundary(g, area) for k, g in bands.items()}
    return {k: analysis.rescale(g, config.scale, config.offset) for k, g in bands.items()}


def run_pipeline(config: ChangeConfig) -> ChangeResult:
    """Run NDVI change detection as described by ``config`` and write the outputs."""
    earlier_raw = _load_bands(config.earlier_scene, config)
    later_raw = _load_bands(config.later_scene, config)
    area = _load_study_area(config, earlier_raw[config.red_band])

    earlier = _prepare_scene(earlier_raw, config, area)
    later = _prepare_scene(later_raw, config, area)

    result = detect_change(
        earlier[config.nir_band],
        earlier[config.red_band],
        later[config.nir_band],
        later[config.red_band],
        threshold=config.threshold,
    )

    out_dir = config.output_dir
    out_dir.mkdir(parents=True, exist_ok=True)
    for attr, filename in OUTPUT_FILES.items():
        data_loader.save_raster(getattr(result, attr), out_dir / filename)

    summary = dict(result.summary)
    summary["config"] = config.to_dict()
    with open(out_dir / SUMMARY_FILE, "w") as f:
        json.dump(summary, f, indent=2)

    if config.source is not None and config.source.exists():
        target = out_dir / config.source.name
        if target.resolve() != config.source.resolve():
            shutil.copy(config.source, target)

    logger.info(
        "Significant change: %d gain / %d loss pixels (threshold %.2f)",
        result.summary["gain_pixels"],
        result.summary["loss_pixels"],
        config.threshold,
    )
    return result


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="NDVI change detection between two scenes")
    parser.add_argument("--config", required=True, help="YAML config file")
    parser.add_argument("--threshold", type=float, help="Override the change threshold")
    parser.add_argument("--output-dir", help="Override the output directory")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    config = load_config(args.config)
    if args.threshold is not None:
        config = replace(config, threshold=args.threshold)
    if args.output_dir:
        config.output_dir = Path(args.output_dir)

    result = run_pipeline(config)
    print(f"Mean NDVI change: {result.summary['mean_change']}")
    print(f"Saved outputs to {config.output_dir}")


if __name__ == "__main__":
    main()
