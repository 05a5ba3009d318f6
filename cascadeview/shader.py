"""GLSL program objects built from a vertex and a fragment shader file."""

from __future__ import annotations

import re

import numpy as np

_ARRAY_ELEMENT = re.compile(r"(.+)\[(\d+)\]")


class ShaderError(RuntimeError):
    """A shader failed to compile or a program failed to link."""


def load_shader_code(path) -> str:
    """Read the source text of a shader file."""
    with open(path, encoding="utf-8") as handle:
        return handle.read()


def _array_length(uniform) -> int:
    for attribute in ("count", "size"):
        value = getattr(uniform, attribute, None)
        if isinstance(value, int) and value > 0:
            return value
    return 1


class Shader:
    """A linked GLSL program with helpers for setting uniforms."""

    def __init__(self, vertex_path, fragment_path):
        vertex_code = load_shader_code(vertex_path)
        fragment_code = load_shader_code(fragment_path)

        from pyglet.graphics.shader import Shader as StageShader
        from pyglet.graphics.shader import ShaderException, ShaderProgram

        try:
            vertex_shader = StageShader(vertex_code, "vertex")
        except ShaderException as exc:
            raise ShaderError(f"VERTEX shader failed to compile:\n{exc}") from exc
        try:
            fragment_shader = StageShader(fragment_code, "fragment")
        except ShaderException as exc:
            vertex_shader.delete()
            raise ShaderError(f"FRAGMENT shader failed to compile:\n{exc}") from exc

        try:
            program = ShaderProgram(vertex_shader, fragment_shader)
        except ShaderException as exc:
            raise ShaderError(f"program failed to link:\n{exc}") from exc
        finally:
            vertex_shader.delete()
            fragment_shader.delete()

        self._program = program
        self.id = program.id
        self._arrays: dict[str, dict[int, tuple]] = {}

    def _set(self, name: str, value: tuple) -> None:
        uniforms = self._program.uniforms
        if name in uniforms:
            self._program[name] = value[0] if len(value) == 1 else value
            return

        match = _ARRAY_ELEMENT.fullmatch(name)
        if match is None or match[1] not in uniforms:
            # An unknown uniform is ignored, as a location of -1 would be.
            return
        base, index = match[1], int(match[2])
        elements = self._arrays.setdefault(base, {})
        elements[index] = value
        count = max(_array_length(uniforms[base]), max(elements) + 1)
        filler = (0.0,) * len(value)
        flat = [
            component
            for position in range(count)
            for component in elements.get(position, filler)
        ]
        self._program[base] = flat

    def use(self) -> None:
        self._program.use()

    def set_bool(self, name: str, value: bool) -> None:
        self._set(name, (int(bool(value)),))

    def set_int(self, name: str, value: int) -> None:
        self._set(name, (int(value),))

    def set_float(self, name: str, value: float) -> None:
        self._set(name, (float(value),))

    def set_vec3(self, name: str, value) -> None:
        components = np.asarray(value, dtype=float).reshape(3)
        self._set(name, tuple(float(c) for c in components))

    def set_mat4(self, name: str, value) -> None:
        matrix = np.asarray(value, dtype=float).reshape(4, 4)
        # OpenGL expects column-major storage.
        self._set(name, tuple(float(c) for c in matrix.T.ravel()))