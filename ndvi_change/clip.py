"""Crop and mask a raster (e.g. elevation) to selected boundary regions."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Iterable, Optional

from . import boundary, data_loader
from .grid import Grid

logger = logging.getLogger(__name__)


def clip_raster(
    raster_path: str | Path,
    boundary_path: str | Path,
    output_path: str | Path,
    column: Optional[str] = None,
    values: Optional[Iterable[str]] = None,
    crs: Optional[Any] = None,
    mask: bool = True,
    boundary_out: Optional[str | Path] = None,
) -> Grid:
    """Clip ``raster_path`` to a boundary and write the result.

    Parameters
    ----------
    raster_path : str or Path
        Single-band raster to clip.
    boundary_path : str or Path
        Vector layer with the region polygons.
    output_path : str or Path
        Destination GeoTIFF.
    column, values : optional
        Attribute filter, e.g. ``column="NAME_2", values=["Narsingdi"]``.
    crs : optional
        Reference system assigned to a boundary that carries none.
    mask : bool
        When ``False`` only the bounding box crop is applied.
    boundary_out : str or Path, optional
        Where to save the selected (unprojected) boundary features.
    """
    grid = data_loader.load_band(raster_path)
    frame = boundary.load_boundary(boundary_path, crs=crs)
    if column:
        if not values:
            raise ValueError(f"No values given to select on column {column!r}")
        frame = boundary.select_regions(frame, column, values)
    if boundary_out:
        boundary.save_boundary(frame, boundary_out)

    area = boundary.to_grid_crs(frame, grid)
    if mask:
        clipped = boundary.mask_to_boundary(grid, area, crop=True)
    else:
        clipped = boundary.crop_to_boundary(grid, area)
    data_loader.save_raster(clipped, output_path)
    logger.info("Clipped %s to %dx%d", grid.name, clipped.width, clipped.height)
    return clipped


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Crop and mask a raster to boundary regions")
    parser.add_argument("raster", help="Path to the raster to clip")
    parser.add_argument("boundary", help="Path to the boundary vector layer")
    parser.add_argument("output", help="Output path for the clipped raster")
    parser.add_argument("--column", help="Attribute column used to select regions")
    parser.add_argument("--values", nargs="+", help="Values of --column to keep")
    parser.add_argument("--crs", help="CRS to assign to a boundary without one, e.g. EPSG:4326")
    parser.add_argument("--crop-only", action="store_true", help="Skip masking outside polygons")
    parser.add_argument("--boundary-out", help="Save the selected boundary features here")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    clip_raster(
        args.raster,
        args.boundary,
        args.output,
        column=args.column,
        values=args.values,
        crs=args.crs,
        mask=not args.crop_only,
        boundary_out=args.boundary_out,
    )
    print(f"Saved clipped raster to {args.output}")


if __name__ == "__main__":
    main()
