from pathlib import Path

import numpy as np
import pytest
import rasterio
from rasterio.crs import CRS
from rasterio.transform import from_origin

from ndvi_change.grid import Grid

UTM45N = CRS.from_epsg(32645)
ORIGIN = (500000.0, 2650000.0)
PIXEL = 30.0
TRANSFORM = from_origin(ORIGIN[0], ORIGIN[1], PIXEL, PIXEL)

EARLIER_SCENE = "LC08_L2SP_137043_20140314_20200911_02_T1"
LATER_SCENE = "LC08_L2SP_137043_20220304_20220314_02_T1"


def make_grid(values, transform=TRANSFORM, crs=UTM45N, name=None):
    return Grid(np.asarray(values, dtype=float), transform, crs, name)


def write_tif(path, array, transform=TRANSFORM, crs=UTM45N, nodata=None, dtype="float32"):
    array = np.asarray(array)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    meta = {
        "driver": "GTiff",
        "height": array.shape[0],
        "width": array.shape[1],
        "count": 1,
        "dtype": dtype,
        "crs": crs,
        "transform": transform,
        "nodata": nodata,
    }
    with rasterio.open(path, "w", **meta) as dst:
        dst.write(array.astype(dtype), 1)
    return path


def write_scene(root, scene_id, bands, dtype="float32"):
    """Write ``{"B4": array, ...}`` as Landsat-style SR band files."""
    scene_dir = Path(root) / scene_id
    for band, array in bands.items():
        write_tif(scene_dir / f"{scene_id}_SR_{band}.TIF", array, dtype=dtype)
    return scene_dir


@pytest.fixture
def grid_factory():
    return make_grid


@pytest.fixture
def scenes(tmp_path):
    """Two 4x4 scenes; the later one loses vegetation in two cells."""
    red = np.full((4, 4), 0.1)
    earlier_nir = np.full((4, 4), 0.5)
    later_nir = np.full((4, 4), 0.5)
    later_nir[1, 2] = 0.1
    later_nir[2, 1] = 0.3
    earlier = write_scene(tmp_path / "landsat", EARLIER_SCENE, {"B3": red, "B4": red, "B5": earlier_nir})
    later = write_scene(tmp_path / "landsat", LATER_SCENE, {"B3": red, "B4": red, "B5": later_nir})
    return earlier, later
