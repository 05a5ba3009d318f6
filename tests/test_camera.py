import numpy as np
import pytest

from cascadeview.camera import Camera, CameraMovement
from cascadeview.geometry import transform_point


def test_default_camera_looks_down_negative_z():
    cam = Camera()
    assert np.allclose(cam.front, (0, 0, -1))
    assert np.allclose(cam.up, (0, 1, 0))
    assert np.allclose(cam.position, (0, 0, 3))
    assert cam.zoom == 45.0


def test_basis_is_orthonormal_after_rotation():
    cam = Camera()
    cam.process_mouse_movement(123.0, -57.0)
    basis = np.stack([cam.front, cam.right, cam.up])
    assert np.allclose(basis @ basis.T, np.identity(3))


@pytest.mark.parametrize(
    "forward, backward",
    [
        (CameraMovement.FORWARD, CameraMovement.BACKWARD),
        (CameraMovement.LEFT, CameraMovement.RIGHT),
        (CameraMovement.UP, CameraMovement.DOWN),
    ],
)
def test_opposite_moves_cancel(forward, backward):
    cam = Camera(position=(1.0, 2.0, 3.0))
    cam.process_mouse_movement(40.0, 20.0)
    start = cam.position.copy()
    cam.process_keyboard(forward, 0.3)
    assert not np.allclose(cam.position, start)
    cam.process_keyboard(backward, 0.3)
    assert np.allclose(cam.position, start)


def test_forward_moves_along_front_by_speed_times_time():
    cam = Camera()
    start = cam.position.copy()
    cam.process_keyboard(CameraMovement.FORWARD, 2.0)
    delta = cam.position - start
    assert np.isclose(np.linalg.norm(delta), cam.movement_speed * 2.0)
    assert np.allclose(normalize_vec(delta), cam.front)


def normalize_vec(v):
    return v / np.linalg.norm(v)


def test_up_uses_world_vertical_even_when_pitched():
    cam = Camera()
    cam.process_mouse_movement(0.0, 300.0)
    start = cam.position.copy()
    cam.process_keyboard(CameraMovement.UP, 1.0)
    delta = cam.position - start
    assert np.allclose(delta[[0, 2]], 0.0)
    assert delta[1] > 0


def test_pitch_is_clamped_when_constrained():
    cam = Camera()
    cam.process_mouse_movement(0.0, 10000.0)
    assert cam.pitch == 89.0
    cam.process_mouse_movement(0.0, -50000.0)
    assert cam.pitch == -89.0


def test_pitch_unconstrained_can_exceed_limit():
    cam = Camera()
    cam.process_mouse_movement(0.0, 10000.0, constrain_pitch=False)
    assert cam.pitch > 89.0


def test_scroll_clamps_zoom():
    cam = Camera()
    cam.process_mouse_scroll(-10.0)
    assert cam.zoom == 45.0
    cam.process_mouse_scroll(100.0)
    assert cam.zoom == 1.0


def test_view_matrix_puts_camera_at_origin():
    cam = Camera(position=(4.0, -1.0, 2.0), yaw=30.0, pitch=10.0)
    view = cam.view_matrix()
    assert np.allclose(transform_point(view, cam.position), 0.0)
    ahead = transform_point(view, cam.position + cam.front)
    assert np.allclose(ahead, (0, 0, -1))