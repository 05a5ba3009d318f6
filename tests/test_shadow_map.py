import numpy as np
import pytest

from cascadeview.shadow_map import ShadowMap


def test_dimensions_are_kept():
    sm = ShadowMap(1024, 512)
    assert (sm.width, sm.height) == (1024, 512)


@pytest.mark.parametrize("width, height", [(0, 10), (10, 0), (-1, 5)])
def test_non_positive_size_rejected(width, height):
    with pytest.raises(ValueError):
        ShadowMap(width, height)


def test_non_integer_size_rejected():
    with pytest.raises(TypeError):
        ShadowMap(10.5, 10)


def test_polygon_offset_defaults():
    sm = ShadowMap(16, 16)
    assert sm.polygon_offset_factor == 0.25
    assert sm.polygon_offset_units == 100000.0


def test_light_matrices_start_as_identity():
    sm = ShadowMap(16, 16)
    assert np.array_equal(sm.mat_view, np.identity(4))
    assert np.array_equal(sm.mat_proj, np.identity(4))


def test_no_gpu_objects_before_use():
    sm = ShadowMap(16, 16)
    assert sm.depth_texture == 0
    assert sm.fbo == 0


def test_release_before_use_leaves_map_empty():
    sm = ShadowMap(16, 16)
    sm.release()
    assert sm.depth_texture == 0
    assert sm.fbo == 0