"""A single depth texture rendered from a light, for classic shadow mapping."""

from __future__ import annotations

import operator

import numpy as np


class FramebufferError(RuntimeError):
    """A framebuffer object could not be completed."""


class ShadowMap:
    """Depth-only render target; GPU objects are created on first use.

    ``mat_view`` and ``mat_proj`` hold the light's view and projection used
    when the map was last rendered.
    """

    def __init__(self, width, height):
        width, height = operator.index(width), operator.index(height)
        if width <= 0 or height <= 0:
            raise ValueError(f"shadow map size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.mat_view = np.identity(4)
        self.mat_proj = np.identity(4)
        self.polygon_offset_factor = 0.25
        self.polygon_offset_units = 100000.0
        self._fbo = 0
        self._depth_texture = 0

    @property
    def depth_texture(self) -> int:
        """The depth texture id, or 0 before the map has been created."""
        return self._depth_texture

    @property
    def fbo(self) -> int:
        """The framebuffer id, or 0 before the map has been created."""
        return self._fbo

    def _create(self, gl) -> None:
        texture = gl.GLuint()
        gl.glGenTextures(1, texture)
        gl.glBindTexture(gl.GL_TEXTURE_2D, texture)
        gl.glTexImage2D(
            gl.GL_TEXTURE_2D, 0, gl.GL_DEPTH_COMPONENT, self.width, self.height, 0,
            gl.GL_DEPTH_COMPONENT, gl.GL_FLOAT, None,
        )
        gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_MIN_FILTER, gl.GL_NEAREST)
        gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_MAG_FILTER, gl.GL_NEAREST)
        gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_WRAP_S, gl.GL_CLAMP_TO_BORDER)
        gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_WRAP_T, gl.GL_CLAMP_TO_BORDER)
        border = (gl.GLfloat * 4)(1.0, 1.0, 1.0, 1.0)
        gl.glTexParameterfv(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_BORDER_COLOR, border)
        # Hardware depth comparison for sampler2DShadow lookups.
        gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_COMPARE_FUNC, gl.GL_LEQUAL)
        gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_COMPARE_MODE,
                           gl.GL_COMPARE_REF_TO_TEXTURE)

        fbo = gl.GLuint()
        gl.glGenFramebuffers(1, fbo)
        gl.glBindFramebuffer(gl.GL_FRAMEBUFFER, fbo)
        gl.glFramebufferTexture2D(gl.GL_FRAMEBUFFER, gl.GL_DEPTH_ATTACHMENT,
                                  gl.GL_TEXTURE_2D, texture, 0)
        gl.glDrawBuffer(gl.GL_NONE)
        gl.glReadBuffer(gl.GL_NONE)

        self._depth_texture = texture.value
        self._fbo = fbo.value
        complete = gl.glCheckFramebufferStatus(gl.GL_FRAMEBUFFER) == gl.GL_FRAMEBUFFER_COMPLETE
        gl.glBindFramebuffer(gl.GL_FRAMEBUFFER, 0)
        if not complete:
            self.release()
            raise FramebufferError("shadow map framebuffer is not complete")

    def bind_for_writing(self) -> None:
        """Make the shadow map the render target and clear its depth."""
        from pyglet import gl

        if not self._fbo:
            self._create(gl)
        gl.glBindFramebuffer(gl.GL_FRAMEBUFFER, self._fbo)
        gl.glViewport(0, 0, self.width, self.height)
        gl.glClear(gl.GL_DEPTH_BUFFER_BIT)
        gl.glEnable(gl.GL_POLYGON_OFFSET_FILL)
        gl.glPolygonOffset(self.polygon_offset_factor, self.polygon_offset_units)

    def unbind(self) -> None:
        """Return to the default framebuffer."""
        from pyglet import gl

        gl.glBindFramebuffer(gl.GL_FRAMEBUFFER, 0)
        gl.glDisable(gl.GL_POLYGON_OFFSET_FILL)

    def release(self) -> None:
        """Delete the framebuffer and depth texture, if they were created."""
        if not self._fbo and not self._depth_texture:
            return
        from pyglet import gl

        if self._fbo:
            gl.glDeleteFramebuffers(1, gl.GLuint(self._fbo))
        if self._depth_texture:
            gl.glDeleteTextures(1, gl.GLuint(self._depth_texture))
        self._fbo = 0
        self._depth_texture = 0