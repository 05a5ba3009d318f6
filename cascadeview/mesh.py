"""Indexed triangle meshes with a diffuse colour or diffuse texture."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

import numpy as np

from cascadeview.texture import TextureLoadError, TextureManager

logger = logging.getLogger(__name__)

_textures = TextureManager()

_FLOATS_PER_VERTEX = 8
_FLOAT_SIZE = 4


@dataclass(frozen=True)
class Vertex:
    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    normal: tuple[float, float, float] = (0.0, 0.0, 0.0)
    tex_coords: tuple[float, float] = (0.0, 0.0)


class Mesh:
    """GPU buffers are created and the texture loaded on the first draw."""

    def __init__(self, vertices, indices, diffuse_color, diffuse_map_path=""):
        self.vertices = list(vertices)
        self.indices = [int(i) for i in indices]
        self.diffuse_color = np.asarray(diffuse_color, dtype=float)
        self.diffuse_map_path = os.fspath(diffuse_map_path) if diffuse_map_path else ""
        self.diffuse_map = 0
        self._texture_pending = bool(self.diffuse_map_path)
        self._vao = None
        self._buffers = None

    def vertex_data(self) -> np.ndarray:
        """Interleaved position, normal and texture coordinates, one row per vertex."""
        rows = [(*v.position, *v.normal, *v.tex_coords) for v in self.vertices]
        return np.array(rows, dtype=np.float32).reshape(-1, _FLOATS_PER_VERTEX)

    def draw(self, shader) -> None:
        from pyglet import gl

        self._resolve_texture()
        self._upload()
        if self.diffuse_map:
            gl.glActiveTexture(gl.GL_TEXTURE0)
            gl.glBindTexture(gl.GL_TEXTURE_2D, self.diffuse_map)
            shader.set_int("material_diffuseMap", 0)
            shader.set_bool("hasDiffuseMap", True)
        else:
            shader.set_bool("hasDiffuseMap", False)
            shader.set_vec3("material_diffuseColor", self.diffuse_color)
        gl.glBindVertexArray(self._vao)
        gl.glDrawElements(gl.GL_TRIANGLES, len(self.indices), gl.GL_UNSIGNED_INT, 0)
        gl.glBindVertexArray(0)

    def _resolve_texture(self) -> None:
        if not self._texture_pending:
            return
        self._texture_pending = False
        try:
            self.diffuse_map = _textures.get_or_load(self.diffuse_map_path)
        except TextureLoadError as exc:
            logger.warning("%s", exc)
            self.diffuse_map = 0

    def _upload(self) -> None:
        if self._vao is not None:
            return
        from pyglet import gl

        vertex_array = self.vertex_data()
        index_array = np.asarray(self.indices, dtype=np.uint32)

        vao, vbo, ebo = gl.GLuint(), gl.GLuint(), gl.GLuint()
        gl.glGenVertexArrays(1, vao)
        gl.glGenBuffers(1, vbo)
        gl.glGenBuffers(1, ebo)

        gl.glBindVertexArray(vao)
        gl.glBindBuffer(gl.GL_ARRAY_BUFFER, vbo)
        gl.glBufferData(gl.GL_ARRAY_BUFFER, vertex_array.nbytes,
                        vertex_array.ctypes.data, gl.GL_STATIC_DRAW)
        gl.glBindBuffer(gl.GL_ELEMENT_ARRAY_BUFFER, ebo)
        gl.glBufferData(gl.GL_ELEMENT_ARRAY_BUFFER, index_array.nbytes,
                        index_array.ctypes.data, gl.GL_STATIC_DRAW)

        stride = _FLOATS_PER_VERTEX * _FLOAT_SIZE
        for location, size, offset in ((0, 3, 0), (1, 3, 3), (2, 2, 6)):
            gl.glEnableVertexAttribArray(location)
            gl.glVertexAttribPointer(location, size, gl.GL_FLOAT, gl.GL_FALSE,
                                     stride, offset * _FLOAT_SIZE)
        gl.glBindVertexArray(0)

        self._vao = vao.value
        self._buffers = (vbo.value, ebo.value)