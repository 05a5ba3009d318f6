import numpy as np
import pytest

from cascadeview.cube import CUBE_VERTICES, Cube
from cascadeview.geometry import scale, transform_point


def test_model_matrix_is_copied():
    matrix = scale((20.0, 0.5, 20.0))
    cube = Cube(matrix)
    matrix[0, 0] = 1.0
    np.testing.assert_allclose(cube.model_matrix, scale((20.0, 0.5, 20.0)))


def test_model_matrix_stretches_unit_cube_into_base_slab():
    cube = Cube(scale((20.0, 0.5, 20.0)))
    world = np.array([transform_point(cube.model_matrix, p) for p in CUBE_VERTICES[:, :3]])
    np.testing.assert_allclose(world.min(axis=0), (-10.0, -0.25, -10.0))
    np.testing.assert_allclose(world.max(axis=0), (10.0, 0.25, 10.0))


def test_diffuse_color():
    assert Cube(np.identity(4)).diffuse_color == (0.96, 0.96, 0.86)


def test_bad_matrix_shape_raises():
    with pytest.raises(ValueError):
        Cube(np.identity(3))