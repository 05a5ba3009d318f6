import numpy as np
import pytest

from cascadeview.geometry import translate
from cascadeview.model import Model
from cascadeview.scene import Scene

FLOAT32_MAX = float(np.finfo(np.float32).max)


class RecordingShader:
    def __init__(self):
        self.matrices = []

    def set_mat4(self, name, value):
        self.matrices.append((name, np.array(value)))


@pytest.fixture
def cube_model(tmp_path):
    path = tmp_path / "box.obj"
    path.write_text(
        "v 0 0 0\nv 1 0 0\nv 0 1 0\nv 0 0 1\nv 1 1 1\n"
        "f 1 2 3\nf 1 3 4\nf 2 3 5\n"
    )
    return Model(path)


@pytest.fixture
def empty_model(tmp_path):
    path = tmp_path / "empty.obj"
    path.write_text("v 0 0 0\n")
    return Model(path)


def test_empty_scene_bounds():
    low, high = Scene().calculate_world_aabb()
    np.testing.assert_array_equal(low, [FLOAT32_MAX] * 3)
    np.testing.assert_array_equal(high, [-FLOAT32_MAX] * 3)


def test_single_instance_matches_model(cube_model):
    scene = Scene()
    matrix = translate((4.0, 0.0, -1.0))
    scene.add_model_instance(cube_model, matrix)
    low, high = scene.calculate_world_aabb()
    np.testing.assert_allclose(low, (4.0, 0.0, -1.0))
    np.testing.assert_allclose(high, (5.0, 1.0, 0.0))
    mlow, mhigh = cube_model.calculate_world_aabb(matrix)
    np.testing.assert_allclose(low, mlow)
    np.testing.assert_allclose(high, mhigh)


def test_union_of_instances(cube_model):
    scene = Scene()
    scene.add_model_instance(cube_model, np.identity(4))
    scene.add_model_instance(cube_model, translate((2.0, 0.0, 0.0)))
    low, high = scene.calculate_world_aabb()
    np.testing.assert_allclose(low, (0.0, 0.0, 0.0))
    np.testing.assert_allclose(high, (3.0, 1.0, 1.0))


def test_instance_matrix_is_copied(cube_model):
    scene = Scene()
    matrix = np.identity(4)
    scene.add_model_instance(cube_model, matrix)
    matrix[0, 3] = 10.0
    np.testing.assert_allclose(scene.instances[0].model_matrix, np.identity(4))


def test_draw_passes_each_matrix_in_order(empty_model):
    scene = Scene()
    first = translate((1.0, 0.0, 0.0))
    second = translate((0.0, 1.0, 0.0))
    scene.add_model_instance(empty_model, first)
    scene.add_model_instance(empty_model, second)
    shader = RecordingShader()
    scene.draw(shader)
    assert [name for name, _ in shader.matrices] == ["model", "model"]
    np.testing.assert_allclose(shader.matrices[0][1], first)
    np.testing.assert_allclose(shader.matrices[1][1], second)