"""Georeferenced single-band grids shared by every analysis step."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np
from rasterio.coords import BoundingBox
from rasterio.crs import CRS
from rasterio.transform import Affine, array_bounds


class ShapeMismatch(ValueError):
    """Raised when two grids do not cover the same pixels."""


def _as_crs(value: Any) -> Optional[CRS]:
    if value is None or isinstance(value, CRS):
        return value
    return CRS.from_user_input(value)


def _same_crs(a: Optional[CRS], b: Optional[CRS]) -> bool:
    if a is None or b is None:
        return a is None and b is None
    return a == b


@dataclass(frozen=True, eq=False)
class Grid:
    """A read-only band of float values with its georeferencing.

    No-data cells are stored as ``NaN``. The array is copied to float64 and
    locked on construction, so derived grids never alias their inputs.

    Parameters
    ----------
    data : numpy.ndarray
        2-D array of cell values.
    transform : affine.Affine
        Pixel to map coordinate transform (origin and pixel size).
    crs : rasterio.crs.CRS, optional
        Reference system. Anything ``CRS.from_user_input`` accepts is
        converted, e.g. ``32645`` or ``"EPSG:32645"``.
    name : str, optional
        Label carried through for logging and output file metadata.
    """

    data: np.ndarray
    transform: Affine = field(default_factory=Affine.identity)
    crs: Optional[CRS] = None
    name: Optional[str] = None

    def __post_init__(self) -> None:
        array = np.array(self.data, dtype="float64", copy=True)
        if array.ndim != 2:
            raise ValueError(f"Grid data must be 2-D, got shape {array.shape}")
        array.setflags(write=False)
        transform = self.transform
        if not isinstance(transform, Affine):
            transform = Affine(*tuple(transform)[:6])
        object.__setattr__(self, "data", array)
        object.__setattr__(self, "transform", transform)
        object.__setattr__(self, "crs", _as_crs(self.crs))

    @property
    def height(self) -> int:
        return self.data.shape[0]

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def shape(self) -> tuple[int, int]:
        return self.data.shape

    @property
    def bounds(self) -> BoundingBox:
        west, south, east, north = array_bounds(self.height, self.width, self.transform)
        return BoundingBox(west, south, east, north)

    def valid_mask(self) -> np.ndarray:
        """Return ``True`` where the cell holds data."""
        return ~np.isnan(self.data)

    def with_data(self, data: np.ndarray, name: Optional[str] = None) -> "Grid":
        """Return a new grid with ``data`` on the same georeferencing."""
        return Grid(data, self.transform, self.crs, name if name is not None else self.name)

    def mismatches(self, other: "Grid") -> list[str]:
        """List the georeferencing attributes that differ from ``other``."""
        diffs = []
        if self.width != other.width:
            diffs.append(f"width {self.width} != {other.width}")
        if self.height != other.height:
            diffs.append(f"height {self.height} != {other.height}")
        if self.transform != other.transform:
            diffs.append("transform")
        if not _same_crs(self.crs, other.crs):
            diffs.append(f"crs {self.crs} != {other.crs}")
        return diffs

    def same_footprint(self, other: "Grid") -> bool:
        """Whether both grids share size, transform and reference system."""
        return not self.mismatches(other)

    def __repr__(self) -> str:
        return (
            f"<Grid name={self.name!r} shape={self.shape} "
            f"crs={self.crs.to_string() if self.crs is not None else None}>"
        )


# Role names for the grids flowing through the change-detection steps.
ReflectanceGrid = Grid
NdviGrid = Grid
DifferenceGrid = Grid
ThresholdedGrid = Grid


def check_aligned(a: Grid, b: Grid) -> None:
    """Raise :class:`ShapeMismatch` unless ``a`` and ``b`` are co-registered."""
    diffs = a.mismatches(b)
    if diffs:
        raise ShapeMismatch(
            f"Grids {a.name or 'a'} and {b.name or 'b'} are not aligned: "
            + ", ".join(diffs)
        )
