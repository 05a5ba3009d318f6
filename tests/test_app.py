import numpy as np
import pytest

from cascadeview.app import (
    QUAD_VERTICES,
    MouseTracker,
    directional_shadow_matrices,
    draw_shadow_map,
    main,
)
from cascadeview.geometry import transform_point
from cascadeview.scene import Scene

CUBE_AABB = (np.array([-1.0, -1.0, -1.0]), np.array([1.0, 1.0, 1.0]))


def test_first_mouse_move_produces_no_offset():
    tracker = MouseTracker()
    assert tracker.move(123.0, 456.0) == (0.0, 0.0)


def test_mouse_move_reverses_vertical_offset():
    tracker = MouseTracker()
    tracker.move(100.0, 100.0)
    assert tracker.move(110.0, 90.0) == (10.0, 10.0)
    assert tracker.move(105.0, 95.0) == (-5.0, -5.0)


def test_mouse_tracker_remembers_last_position():
    tracker = MouseTracker()
    tracker.move(7.0, 8.0)
    tracker.move(20.0, 30.0)
    assert (tracker.last_x, tracker.last_y) == (20.0, 30.0)
    assert tracker.first is False


def test_shadow_view_places_scene_centre_ahead_of_light():
    view, _ = directional_shadow_matrices(CUBE_AABB, (0.0, 0.0, 1.0))
    radius = np.linalg.norm(CUBE_AABB[1])
    center_view = transform_point(view, (0.0, 0.0, 0.0))
    np.testing.assert_allclose(center_view, [0.0, 0.0, -radius], atol=1e-9)
    eye_view = transform_point(view, (0.0, 0.0, radius))
    np.testing.assert_allclose(eye_view, [0.0, 0.0, 0.0], atol=1e-9)


def test_shadow_matrices_ignore_light_direction_length():
    short = directional_shadow_matrices(CUBE_AABB, (1.0, 2.0, 3.0))
    long = directional_shadow_matrices(CUBE_AABB, (2.0, 4.0, 6.0))
    np.testing.assert_allclose(short[0], long[0])
    np.testing.assert_allclose(short[1], long[1])


def test_shadow_projection_encloses_scene_box():
    view, proj = directional_shadow_matrices(CUBE_AABB, (-1.0, 0.5, -1.0))
    corners = [(x, y, z) for x in (-1, 1) for y in (-1, 1) for z in (-1, 1)]
    for corner in corners:
        ndc = transform_point(proj @ view, corner)
        np.testing.assert_allclose(ndc, np.clip(ndc, -1.0, 1.0), atol=1e-9)


def test_fullscreen_triangle_covers_screen():
    positions = QUAD_VERTICES[:, :2].astype(float)
    a, b, c = positions

    def inside(p):
        signs = []
        for u, v in ((a, b), (b, c), (c, a)):
            signs.append((v[0] - u[0]) * (p[1] - u[1]) - (v[1] - u[1]) * (p[0] - u[0]))
        return all(s >= 0 for s in signs) or all(s <= 0 for s in signs)

    for corner in ((-1, -1), (1, -1), (1, 1), (-1, 1)):
        assert inside(corner)
    assert QUAD_VERTICES.shape == (3, 4)


class _Recorder:
    def __init__(self):
        self.calls = []
        self.matrices = {}

    def use(self):
        self.calls.append("use")

    def set_mat4(self, name, value):
        self.calls.append(("set_mat4", name))
        self.matrices[name] = np.asarray(value)


class _FakeShadowMap:
    def __init__(self, log):
        self.log = log
        self.mat_view = np.identity(4)
        self.mat_proj = np.identity(4)

    def bind_for_writing(self):
        self.log.append("bind")

    def unbind(self):
        self.log.append("unbind")


class _FakeModel:
    def __init__(self, log):
        self.log = log

    def calculate_world_aabb(self, matrix):
        return CUBE_AABB

    def draw(self, shader, matrix):
        self.log.append("draw")


def test_draw_shadow_map_sets_light_matrices_and_draws():
    log = []
    shader = _Recorder()
    shadow_map = _FakeShadowMap(log)
    scene = Scene()
    scene.add_model_instance(_FakeModel(log), np.identity(4))
    light = (-1.0, 0.5, -1.0)

    draw_shadow_map(shader, shadow_map, scene, light)

    view, proj = directional_shadow_matrices(CUBE_AABB, light)
    np.testing.assert_allclose(shadow_map.mat_view, view)
    np.testing.assert_allclose(shadow_map.mat_proj, proj)
    np.testing.assert_allclose(shader.matrices["ViewProjectionMatrix"], proj @ view)
    assert log == ["bind", "draw", "unbind"]
    assert shader.calls == ["use", ("set_mat4", "ViewProjectionMatrix")]


def test_main_rejects_unknown_shadow_mode():
    with pytest.raises(SystemExit) as info:
        main(["--shadow", "bogus"])
    assert info.value.code == 2


def test_main_reports_missing_model(tmp_path, capsys):
    missing = tmp_path / "missing.obj"
    assert main(["--model", str(missing), "--base", str(missing)]) == 1
    assert "Failed to load obj" in capsys.readouterr().err