import numpy as np
import pytest
from rasterio.transform import from_origin

from conftest import TRANSFORM, UTM45N, make_grid
from ndvi_change.grid import Grid, ShapeMismatch, check_aligned


def test_grid_is_read_only_copy():
    source = np.array([[1.0, 2.0], [3.0, 4.0]])
    grid = make_grid(source)
    source[0, 0] = 99.0
    assert grid.data[0, 0] == 1.0
    with pytest.raises(ValueError):
        grid.data[0, 0] = 5.0


def test_grid_rejects_non_2d_data():
    with pytest.raises(ValueError, match="2-D"):
        Grid(np.zeros((2, 2, 2)), TRANSFORM, UTM45N)


def test_grid_accepts_epsg_code_and_tuple_transform():
    grid = Grid(np.zeros((2, 3)), tuple(TRANSFORM)[:6], 32645)
    assert grid.crs == UTM45N
    assert grid.transform == TRANSFORM
    assert grid.shape == (2, 3)
    assert (grid.width, grid.height) == (3, 2)


def test_bounds_follow_transform():
    grid = make_grid(np.zeros((2, 3)))
    assert grid.bounds.left == 500000.0
    assert grid.bounds.top == 2650000.0
    assert grid.bounds.right == 500090.0
    assert grid.bounds.bottom == 2649940.0


def test_valid_mask_marks_nan_cells():
    grid = make_grid([[1.0, np.nan]])
    assert grid.valid_mask().tolist() == [[True, False]]


def test_with_data_keeps_georeferencing():
    grid = make_grid(np.ones((2, 2)), name="B4")
    derived = grid.with_data(np.zeros((2, 2)))
    assert derived.same_footprint(grid)
    assert derived.name == "B4"
    assert grid.data.sum() == 4.0


@pytest.mark.parametrize(
    "other, reason",
    [
        (make_grid(np.zeros((2, 3))), "width"),
        (make_grid(np.zeros((3, 2))), "height"),
        (make_grid(np.zeros((2, 2)), transform=from_origin(500030.0, 2650000.0, 30.0, 30.0)), "transform"),
        (make_grid(np.zeros((2, 2)), transform=from_origin(500000.0, 2650000.0, 10.0, 10.0)), "transform"),
        (make_grid(np.zeros((2, 2)), crs=4326), "crs"),
        (make_grid(np.zeros((2, 2)), crs=None), "crs"),
    ],
)
def test_check_aligned_reports_mismatch(other, reason):
    grid = make_grid(np.zeros((2, 2)))
    assert not grid.same_footprint(other)
    with pytest.raises(ShapeMismatch, match=reason):
        check_aligned(grid, other)


def test_shape_mismatch_is_value_error():
    assert issubclass(ShapeMismatch, ValueError)


def test_check_aligned_accepts_matching_grids():
    check_aligned(make_grid(np.zeros((2, 2))), make_grid(np.ones((2, 2))))
