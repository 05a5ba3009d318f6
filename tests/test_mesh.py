import numpy as np

from cascadeview.mesh import Mesh, Vertex


def _triangle():
    return [
        Vertex((0, 0, 0), (0, 0, 1), (0, 0)),
        Vertex((1, 0, 0), (0, 0, 1), (1, 0)),
        Vertex((0, 1, 0), (0, 0, 1), (0, 1)),
    ]


def test_vertex_defaults_are_zero():
    v = Vertex()
    assert v.position == (0.0, 0.0, 0.0)
    assert v.normal == (0.0, 0.0, 0.0)
    assert v.tex_coords == (0.0, 0.0)


def test_vertex_data_is_interleaved_float32():
    mesh = Mesh(_triangle(), [0, 1, 2], (1.0, 1.0, 1.0))
    data = mesh.vertex_data()
    assert data.dtype == np.float32
    assert data.shape == (3, 8)
    assert np.allclose(data[1], (1, 0, 0, 0, 0, 1, 1, 0))
    assert np.allclose(data[:, 3:6], (0, 0, 1))


def test_empty_mesh_has_no_rows():
    mesh = Mesh([], [], (0.5, 0.5, 0.5))
    assert mesh.vertex_data().shape == (0, 8)


def test_mesh_without_texture_path_has_no_map():
    mesh = Mesh(_triangle(), (0, 1, 2), (0.2, 0.3, 0.4))
    assert mesh.diffuse_map == 0
    assert mesh.diffuse_map_path == ""
    assert np.allclose(mesh.diffuse_color, (0.2, 0.3, 0.4))


def test_mesh_keeps_indices_and_texture_path():
    mesh = Mesh(_triangle(), np.array([2, 1, 0]), (1, 1, 1), "textures/wall.png")
    assert mesh.indices == [2, 1, 0]
    assert mesh.diffuse_map_path == "textures/wall.png"
    assert mesh.diffuse_map == 0