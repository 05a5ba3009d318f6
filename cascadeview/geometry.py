"""Vector and matrix helpers, planes and axis-aligned bounding boxes.

Matrices are 4x4 numpy arrays meant to multiply column vectors
(``matrix @ vector``), following the usual OpenGL conventions.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

FLT_MAX = float(np.finfo(np.float32).max)


def _vec3(value) -> np.ndarray:
    arr = np.asarray(value, dtype=float)
    if arr.shape != (3,):
        raise ValueError(f"expected a 3-component vector, got shape {arr.shape}")
    return arr


def normalize(v) -> np.ndarray:
    """Return ``v`` scaled to unit length."""
    arr = np.asarray(v, dtype=float)
    length = float(np.linalg.norm(arr))
    if length == 0.0:
        raise ValueError("cannot normalize a zero-length vector")
    return arr / length


@dataclass
class Plane:
    """A plane ``dot(normal, p) + d = 0``; the normal points to the inside."""

    normal: np.ndarray
    d: float

    def __post_init__(self) -> None:
        self.normal = _vec3(self.normal)
        self.d = float(self.d)

    def is_inside(self, point) -> bool:
        return float(np.dot(self.normal, _vec3(point))) + self.d >= 0.0


@dataclass
class AABB:
    """Axis-aligned bounding box that starts empty and grows with ``expand``."""

    min: np.ndarray = field(default_factory=lambda: np.full(3, FLT_MAX))
    max: np.ndarray = field(default_factory=lambda: np.full(3, -FLT_MAX))

    def __post_init__(self) -> None:
        self.min = _vec3(self.min)
        self.max = _vec3(self.max)

    def expand(self, point) -> None:
        p = _vec3(point)
        self.min = np.minimum(self.min, p)
        self.max = np.maximum(self.max, p)


def look_at(eye, center, up) -> np.ndarray:
    """Right-handed view matrix looking from ``eye`` towards ``center``."""
    eye = _vec3(eye)
    f = normalize(_vec3(center) - eye)
    s = normalize(np.cross(f, _vec3(up)))
    u = np.cross(s, f)
    m = np.identity(4)
    m[0, :3] = s
    m[1, :3] = u
    m[2, :3] = -f
    m[0, 3] = -np.dot(s, eye)
    m[1, 3] = -np.dot(u, eye)
    m[2, 3] = np.dot(f, eye)
    return m


def perspective(fovy, aspect, near, far) -> np.ndarray:
    """Right-handed perspective projection; ``fovy`` is in radians, depth maps to [-1, 1]."""
    if aspect == 0 or near == far:
        raise ValueError("degenerate perspective projection")
    f = 1.0 / np.tan(fovy / 2.0)
    m = np.zeros((4, 4))
    m[0, 0] = f / aspect
    m[1, 1] = f
    m[2, 2] = -(far + near) / (far - near)
    m[2, 3] = -(2.0 * far * near) / (far - near)
    m[3, 2] = -1.0
    return m


def ortho(left, right, bottom, top, near, far) -> np.ndarray:
    """Right-handed orthographic projection; depth maps to [-1, 1]."""
    if left == right or bottom == top or near == far:
        raise ValueError("degenerate orthographic projection")
    m = np.identity(4)
    m[0, 0] = 2.0 / (right - left)
    m[1, 1] = 2.0 / (top - bottom)
    m[2, 2] = -2.0 / (far - near)
    m[0, 3] = -(right + left) / (right - left)
    m[1, 3] = -(top + bottom) / (top - bottom)
    m[2, 3] = -(far + near) / (far - near)
    return m


def translate(offset) -> np.ndarray:
    """Translation matrix by ``offset``."""
    m = np.identity(4)
    m[:3, 3] = _vec3(offset)
    return m


def scale(factors) -> np.ndarray:
    """Scaling matrix; ``factors`` is a scalar or a 3-vector."""
    arr = np.asarray(factors, dtype=float)
    if arr.ndim == 0:
        arr = np.full(3, float(arr))
    m = np.identity(4)
    m[:3, :3] = np.diag(_vec3(arr))
    return m


def transform_point(matrix, point) -> np.ndarray:
    """Apply a 4x4 matrix to a 3D point and divide by the resulting ``w``."""
    p = np.asarray(matrix, dtype=float) @ np.append(_vec3(point), 1.0)
    if p[3] == 0.0:
        raise ValueError("point maps to infinity (w == 0)")
    return p[:3] / p[3]