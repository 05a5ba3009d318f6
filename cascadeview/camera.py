"""A first-person fly camera driven by keyboard, mouse and scroll input."""

from __future__ import annotations

from enum import Enum, auto

import numpy as np

from cascadeview.geometry import look_at, normalize

_WORLD_Y = np.array([0.0, 1.0, 0.0])


class CameraMovement(Enum):
    FORWARD = auto()
    BACKWARD = auto()
    LEFT = auto()
    RIGHT = auto()
    UP = auto()
    DOWN = auto()


class Camera:
    """Euler-angle camera; angles are in degrees."""

    def __init__(self, position=(0.0, 0.0, 3.0), up=(0.0, 1.0, 0.0), yaw=-90.0, pitch=0.0):
        self.position = np.array(position, dtype=float)
        self.world_up = np.array(up, dtype=float)
        self.yaw = float(yaw)
        self.pitch = float(pitch)
        self.front = np.array([0.0, 0.0, -1.0])
        self.right = np.array([1.0, 0.0, 0.0])
        self.up = np.array(_WORLD_Y)
        self.movement_speed = 2.5
        self.mouse_sensitivity = 0.1
        self.zoom = 45.0
        self._update_vectors()

    def view_matrix(self) -> np.ndarray:
        return look_at(self.position, self.position + self.front, self.up)

    def process_keyboard(self, direction: CameraMovement, delta_time: float) -> None:
        velocity = self.movement_speed * delta_time
        step = {
            CameraMovement.FORWARD: self.front,
            CameraMovement.BACKWARD: -self.front,
            CameraMovement.LEFT: -self.right,
            CameraMovement.RIGHT: self.right,
            CameraMovement.UP: _WORLD_Y,
            CameraMovement.DOWN: -_WORLD_Y,
        }[direction]
        self.position = self.position + step * velocity

    def process_mouse_movement(self, xoffset: float, yoffset: float, constrain_pitch: bool = True) -> None:
        self.yaw += xoffset * self.mouse_sensitivity
        self.pitch += yoffset * self.mouse_sensitivity
        if constrain_pitch:
            self.pitch = min(max(self.pitch, -89.0), 89.0)
        self._update_vectors()

    def process_mouse_scroll(self, yoffset: float) -> None:
        self.zoom = min(max(self.zoom - yoffset, 1.0), 45.0)

    def _update_vectors(self) -> None:
        yaw, pitch = np.radians(self.yaw), np.radians(self.pitch)
        self.front = normalize(
            (np.cos(yaw) * np.cos(pitch), np.sin(pitch), np.sin(yaw) * np.cos(pitch))
        )
        self.right = normalize(np.cross(self.front, self.world_up))
        self.up = normalize(np.cross(self.right, self.front))