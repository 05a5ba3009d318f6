"""Cascaded shadow maps for a directional light."""

from __future__ import annotations

import math
import operator

import numpy as np

from cascadeview.geometry import look_at, normalize, ortho, scale, transform_point, translate

# Weight of the logarithmic split scheme against the linear one.
_LOG_WEIGHT = 0.5
_UP = np.array([0.0, 1.0, 0.0])
_BIAS = translate((0.5, 0.5, 0.5)) @ scale(0.5)


def compute_cascade_splits(cascades_count, near_plane, far_plane, blend_ratio):
    """Return ``(near_splits, far_splits)``: the view depth range of each cascade.

    Far splits mix logarithmic and linear spacing; each cascade's near split
    reaches back into the previous cascade by ``blend_ratio`` of its length.
    """
    count = operator.index(cascades_count)
    if count < 1:
        raise ValueError("at least one cascade is required")
    near, far = float(near_plane), float(far_plane)
    if not 0.0 < near < far:
        raise ValueError("planes must satisfy 0 < near_plane < far_plane")
    blend = float(blend_ratio)

    ratio = far / near
    span = far - near
    far_splits = []
    for i in range(1, count + 1):
        p = i / count
        log_split = near * ratio ** p
        linear_split = near + span * p
        far_splits.append(_LOG_WEIGHT * log_split + (1.0 - _LOG_WEIGHT) * linear_split)

    lower = [near] + far_splits[:-1]
    near_splits = [near] + [
        f - blend * (f - lo) for f, lo in zip(far_splits[:-1], lower[:-1])
    ]
    return near_splits, far_splits


def _ndc_depth(projection: np.ndarray, view_z: float) -> float:
    clip = projection @ np.array([0.0, 0.0, view_z, 1.0])
    return clip[2] / clip[3]


_NDC_XY = ((-1.0, -1.0), (-1.0, 1.0), (1.0, -1.0), (1.0, 1.0))


def cascade_light_matrices(cam_view, cam_proj, cam_pos, cam_dir, scene_aabb, light_dir,
                           split_near, split_far, resolution):
    """Fit a light-space orthographic projection around each cascade.

    Returns ``(light_space_matrices, view_proj_matrices)``; the first maps
    world positions to shadow-map texture coordinates in [0, 1], the second
    to the light's clip space.
    """
    if len(split_near) != len(split_far):
        raise ValueError("split_near and split_far must have the same length")
    resolution = operator.index(resolution)
    if resolution <= 0:
        raise ValueError("resolution must be positive")

    view = np.asarray(cam_view, dtype=float)
    proj = np.asarray(cam_proj, dtype=float)
    cam_pos = np.asarray(cam_pos, dtype=float)
    cam_dir = normalize(cam_dir)
    light_dir = np.asarray(light_dir, dtype=float)
    light_unit = normalize(light_dir)

    low, high = (np.asarray(b, dtype=float) for b in scene_aabb)
    aabb_center = (low + high) * 0.5
    model_radius = float(np.linalg.norm(aabb_center - low))

    inv_view_proj = np.linalg.inv(proj @ view)
    light_space, view_proj = [], []
    for near_split, far_split in zip(split_near, split_far):
        z_near, z_far = -float(near_split), -float(far_split)
        depths = (_ndc_depth(proj, z_near), _ndc_depth(proj, z_far))
        corners = np.array([(x, y, z, 1.0) for z in depths for x, y in _NDC_XY])
        world = (inv_view_proj @ corners.T).T
        world = world[:, :3] / world[:, 3:4]

        a2 = float(np.sum((world[3] - world[0]) ** 2))
        b2 = float(np.sum((world[7] - world[4]) ** 2))
        length = z_near - z_far
        near_to_center = length * 0.5 - (a2 - b2) / (8.0 * length)
        sphere_center = cam_pos + cam_dir * (-z_near + near_to_center)
        radius = math.sqrt(near_to_center ** 2 + a2 * 0.25)

        back_dist = float(np.linalg.norm(aabb_center - sphere_center)) + model_radius

        # Snap the centre to whole shadow-map texels to avoid shimmering.
        shadow_view = look_at(np.zeros(3), -light_dir, _UP)
        texel = radius * 2.0 / resolution
        center_ls = transform_point(shadow_view, sphere_center)
        center_ls -= np.array([math.fmod(center_ls[0], texel), math.fmod(center_ls[1], texel), 0.0])
        sphere_center = transform_point(np.linalg.inv(shadow_view), center_ls)

        eye = sphere_center + light_unit * back_dist
        shadow_view = look_at(eye, sphere_center, _UP)
        shadow_proj = ortho(-radius, radius, -radius, radius, 0.0, back_dist * 2.0)

        matrix = shadow_proj @ shadow_view
        view_proj.append(matrix)
        light_space.append(_BIAS @ matrix)
    return light_space, view_proj


class CSM:
    """Cascade splits, per-cascade light matrices and a layered depth texture."""

    def __init__(self, cascades_count, shadow_map_resolution, near_plane, far_plane):
        self.cascades_count = operator.index(cascades_count)
        self.shadow_map_resolution = operator.index(shadow_map_resolution)
        if self.shadow_map_resolution <= 0:
            raise ValueError("shadow map resolution must be positive")
        self.near_plane = float(near_plane)
        self.far_plane = float(far_plane)
        self.blend_ratio = 0.5
        self.polygon_offset_factor = 4.0
        self.polygon_offset_units = 10.0
        self._split_near, self._split_far = compute_cascade_splits(
            self.cascades_count, self.near_plane, self.far_plane, self.blend_ratio
        )
        self._light_space = [np.identity(4) for _ in range(self.cascades_count)]
        self._view_proj = [np.identity(4) for _ in range(self.cascades_count)]
        self._fbo = 0
        self._texture_array = 0

    @property
    def cascade_splits(self) -> list[float]:
        """Far view depth of each cascade."""
        return list(self._split_far)

    @property
    def cascade_near_splits(self) -> list[float]:
        """Near view depth of each cascade, including the blend overlap."""
        return list(self._split_near)

    @property
    def light_space_matrices(self) -> list[np.ndarray]:
        return list(self._light_space)

    @property
    def shadow_view_proj_matrices(self) -> list[np.ndarray]:
        return list(self._view_proj)

    @property
    def shadow_map_array_texture(self) -> int:
        """The depth array texture id, or 0 before the maps have been drawn."""
        return self._texture_array

    @property
    def depth_map_fbo(self) -> int:
        return self._fbo

    def compute_light_space_matrix(self, cam_view, cam_proj, cam_pos, cam_dir, scene, light_dir) -> None:
        """Recompute every cascade's matrices for the current camera and light."""
        self._light_space, self._view_proj = cascade_light_matrices(
            cam_view, cam_proj, cam_pos, cam_dir, scene.calculate_world_aabb(), light_dir,
            self._split_near, self._split_far, self.shadow_map_resolution,
        )

    def _create(self, gl) -> None:
        fbo = gl.GLuint()
        gl.glGenFramebuffers(1, fbo)
        texture = gl.GLuint()
        gl.glGenTextures(1, texture)
        gl.glBindTexture(gl.GL_TEXTURE_2D_ARRAY, texture)
        res = self.shadow_map_resolution
        gl.glTexImage3D(
            gl.GL_TEXTURE_2D_ARRAY, 0, gl.GL_DEPTH_COMPONENT32F, res, res, self.cascades_count,
            0, gl.GL_DEPTH_COMPONENT, gl.GL_FLOAT, None,
        )
        gl.glTexParameteri(gl.GL_TEXTURE_2D_ARRAY, gl.GL_TEXTURE_MIN_FILTER, gl.GL_NEAREST)
        gl.glTexParameteri(gl.GL_TEXTURE_2D_ARRAY, gl.GL_TEXTURE_MAG_FILTER, gl.GL_NEAREST)
        gl.glTexParameteri(gl.GL_TEXTURE_2D_ARRAY, gl.GL_TEXTURE_WRAP_S, gl.GL_CLAMP_TO_BORDER)
        gl.glTexParameteri(gl.GL_TEXTURE_2D_ARRAY, gl.GL_TEXTURE_WRAP_T, gl.GL_CLAMP_TO_BORDER)
        border = (gl.GLfloat * 4)(1.0, 1.0, 1.0, 1.0)
        gl.glTexParameterfv(gl.GL_TEXTURE_2D_ARRAY, gl.GL_TEXTURE_BORDER_COLOR, border)
        self._fbo = fbo.value
        self._texture_array = texture.value

    def draw_shadow_maps(self, shader, scene) -> None:
        """Render the scene's depth into each cascade layer."""
        from pyglet import gl

        if not self._fbo:
            self._create(gl)
        gl.glBindFramebuffer(gl.GL_FRAMEBUFFER, self._fbo)
        res = self.shadow_map_resolution
        for layer, matrix in enumerate(self._view_proj):
            gl.glFramebufferTextureLayer(gl.GL_FRAMEBUFFER, gl.GL_DEPTH_ATTACHMENT,
                                         self._texture_array, 0, layer)
            gl.glViewport(0, 0, res, res)
            gl.glClear(gl.GL_DEPTH_BUFFER_BIT)
            gl.glDrawBuffer(gl.GL_NONE)
            gl.glReadBuffer(gl.GL_NONE)
            shader.use()
            shader.set_mat4("ViewProjectionMatrix", matrix)
            scene.draw(shader)
        gl.glBindFramebuffer(gl.GL_FRAMEBUFFER, 0)
        gl.glDisable(gl.GL_POLYGON_OFFSET_FILL)

    def release(self) -> None:
        """Delete the framebuffer and depth array texture, if they were created."""
        if not self._fbo and not self._texture_array:
            return
        from pyglet import gl

        if self._fbo:
            gl.glDeleteFramebuffers(1, gl.GLuint(self._fbo))
        if self._texture_array:
            gl.glDeleteTextures(1, gl.GLuint(self._texture_array))
        self._fbo = 0
        self._texture_array = 0