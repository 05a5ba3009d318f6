"""A unit cube centred on the origin, drawn with a flat diffuse colour."""

from __future__ import annotations

import numpy as np

_FACES = [
    # positions, normal, texcoords for each of six corners of two triangles
    [(-0.5, -0.5, -0.5, 0, 0, -1, 0, 0), (0.5, -0.5, -0.5, 0, 0, -1, 1, 0),
     (0.5, 0.5, -0.5, 0, 0, -1, 1, 1), (0.5, 0.5, -0.5, 0, 0, -1, 1, 1),
     (-0.5, 0.5, -0.5, 0, 0, -1, 0, 1), (-0.5, -0.5, -0.5, 0, 0, -1, 0, 0)],
    [(-0.5, -0.5, 0.5, 0, 0, 1, 0, 0), (0.5, -0.5, 0.5, 0, 0, 1, 1, 0),
     (0.5, 0.5, 0.5, 0, 0, 1, 1, 1), (0.5, 0.5, 0.5, 0, 0, 1, 1, 1),
     (-0.5, 0.5, 0.5, 0, 0, 1, 0, 1), (-0.5, -0.5, 0.5, 0, 0, 1, 0, 0)],
    [(-0.5, 0.5, 0.5, -1, 0, 0, 1, 0), (-0.5, 0.5, -0.5, -1, 0, 0, 1, 1),
     (-0.5, -0.5, -0.5, -1, 0, 0, 0, 1), (-0.5, -0.5, -0.5, -1, 0, 0, 0, 1),
     (-0.5, -0.5, 0.5, -1, 0, 0, 0, 0), (-0.5, 0.5, 0.5, -1, 0, 0, 1, 0)],
    [(0.5, 0.5, 0.5, 1, 0, 0, 1, 0), (0.5, 0.5, -0.5, 1, 0, 0, 1, 1),
     (0.5, -0.5, -0.5, 1, 0, 0, 0, 1), (0.5, -0.5, -0.5, 1, 0, 0, 0, 1),
     (0.5, -0.5, 0.5, 1, 0, 0, 0, 0), (0.5, 0.5, 0.5, 1, 0, 0, 1, 0)],
    [(-0.5, -0.5, -0.5, 0, -1, 0, 0, 1), (0.5, -0.5, -0.5, 0, -1, 0, 1, 1),
     (0.5, -0.5, 0.5, 0, -1, 0, 1, 0), (0.5, -0.5, 0.5, 0, -1, 0, 1, 0),
     (-0.5, -0.5, 0.5, 0, -1, 0, 0, 0), (-0.5, -0.5, -0.5, 0, -1, 0, 0, 1)],
    [(-0.5, 0.5, -0.5, 0, 1, 0, 0, 1), (0.5, 0.5, -0.5, 0, 1, 0, 1, 1),
     (0.5, 0.5, 0.5, 0, 1, 0, 1, 0), (0.5, 0.5, 0.5, 0, 1, 0, 1, 0),
     (-0.5, 0.5, 0.5, 0, 1, 0, 0, 0), (-0.5, 0.5, -0.5, 0, 1, 0, 0, 1)],
]

CUBE_VERTICES = np.array([corner for face in _FACES for corner in face], dtype=np.float32)
CUBE_VERTICES.setflags(write=False)

_FLOAT_SIZE = 4


class Cube:
    """GPU buffers are created on the first draw and freed by ``release``."""

    diffuse_color = (0.96, 0.96, 0.86)

    def __init__(self, model_matrix):
        matrix = np.array(model_matrix, dtype=float)
        if matrix.shape != (4, 4):
            raise ValueError(f"expected a 4x4 model matrix, got shape {matrix.shape}")
        self.model_matrix = matrix
        self._vao = None
        self._vbo = None

    def draw(self, shader) -> None:
        shader.use()
        shader.set_bool("hasDiffuseMap", False)
        shader.set_vec3("material_diffuseColor", self.diffuse_color)
        shader.set_mat4("model", self.model_matrix)

        from pyglet import gl

        self._upload(gl)
        gl.glBindVertexArray(self._vao)
        gl.glDrawArrays(gl.GL_TRIANGLES, 0, len(CUBE_VERTICES))
        gl.glBindVertexArray(0)

    def _upload(self, gl) -> None:
        if self._vao is not None:
            return
        data = np.ascontiguousarray(CUBE_VERTICES)
        vao, vbo = gl.GLuint(), gl.GLuint()
        gl.glGenVertexArrays(1, vao)
        gl.glGenBuffers(1, vbo)
        gl.glBindVertexArray(vao)
        gl.glBindBuffer(gl.GL_ARRAY_BUFFER, vbo)
        gl.glBufferData(gl.GL_ARRAY_BUFFER, data.nbytes, data.ctypes.data, gl.GL_STATIC_DRAW)
        stride = data.shape[1] * _FLOAT_SIZE
        for location, size, offset in ((0, 3, 0), (1, 3, 3), (2, 2, 6)):
            gl.glEnableVertexAttribArray(location)
            gl.glVertexAttribPointer(location, size, gl.GL_FLOAT, gl.GL_FALSE,
                                     stride, offset * _FLOAT_SIZE)
        gl.glBindVertexArray(0)
        self._vao, self._vbo = vao.value, vbo.value

    def release(self) -> None:
        """Delete the GPU buffers, if they were created."""
        if self._vao is None:
            return
        from pyglet import gl

        gl.glDeleteVertexArrays(1, gl.GLuint(self._vao))
        gl.glDeleteBuffers(1, gl.GLuint(self._vbo))
        self._vao = None
        self._vbo = None