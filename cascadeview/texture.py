"""Loading images into OpenGL textures, with a path-keyed cache."""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np
from PIL import Image


class TextureLoadError(OSError):
    """An image could not be read or decoded."""


@dataclass(frozen=True)
class ImageData:
    """Decoded pixels, rows ordered bottom to top."""

    width: int
    height: int
    components: int
    pixels: bytes

    def rgba(self) -> bytes:
        """The pixels expanded to four 8-bit channels."""
        arr = np.frombuffer(self.pixels, dtype=np.uint8).reshape(-1, self.components)
        if self.components == 4:
            return self.pixels
        out = np.full((arr.shape[0], 4), 255, dtype=np.uint8)
        if self.components in (1, 2):
            out[:, :3] = arr[:, :1]
            if self.components == 2:
                out[:, 3] = arr[:, 1]
        else:
            out[:, :3] = arr[:, :3]
        return out.tobytes()


_NATIVE_MODES = {"L": 1, "LA": 2, "RGB": 3, "RGBA": 4}


def _target_mode(img: Image.Image) -> str:
    mode = img.mode
    if mode in _NATIVE_MODES:
        return mode
    if "A" in mode or "a" in mode or "transparency" in img.info:
        return "RGBA"
    if mode == "1" or mode.startswith("I") or mode == "F":
        return "L"
    return "RGB"


def load_image_data(path) -> ImageData:
    """Decode an image file, flipped vertically to match OpenGL's origin."""
    try:
        with Image.open(path) as img:
            img.load()
            mode = _target_mode(img)
            converted = img if img.mode == mode else img.convert(mode)
            flipped = converted.transpose(Image.Transpose.FLIP_TOP_BOTTOM)
            return ImageData(
                width=flipped.width,
                height=flipped.height,
                components=_NATIVE_MODES[mode],
                pixels=flipped.tobytes(),
            )
    except (OSError, ValueError) as exc:
        raise TextureLoadError(f"failed to load texture: {path}") from exc


def load_texture(path) -> int:
    """Upload an image to a new mipmapped, repeating 2D texture and return its id."""
    from pyglet import gl

    image = load_image_data(path)
    if image.components == 3:
        fmt, pixels = gl.GL_RGB, image.pixels
    else:
        fmt, pixels = gl.GL_RGBA, image.rgba()
    buffer = np.frombuffer(pixels, dtype=np.uint8)

    texture = gl.GLuint()
    gl.glGenTextures(1, texture)
    gl.glBindTexture(gl.GL_TEXTURE_2D, texture)
    gl.glPixelStorei(gl.GL_UNPACK_ALIGNMENT, 1)
    gl.glTexImage2D(
        gl.GL_TEXTURE_2D, 0, fmt, image.width, image.height, 0,
        fmt, gl.GL_UNSIGNED_BYTE, buffer.ctypes.data,
    )
    gl.glGenerateMipmap(gl.GL_TEXTURE_2D)
    gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_WRAP_S, gl.GL_REPEAT)
    gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_WRAP_T, gl.GL_REPEAT)
    gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_MIN_FILTER, gl.GL_LINEAR_MIPMAP_LINEAR)
    gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_MAG_FILTER, gl.GL_LINEAR)
    return texture.value


def _delete_texture(texture_id: int) -> None:
    from pyglet import gl

    gl.glDeleteTextures(1, gl.GLuint(texture_id))


class TextureManager:
    """Caches textures by path so each file is uploaded once."""

    def __init__(
        self,
        loader: Callable[[str], int] = load_texture,
        deleter: Callable[[int], None] = _delete_texture,
    ):
        self._loader = loader
        self._deleter = deleter
        self._cache: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._cache)

    def get_or_load(self, path) -> int:
        """Return the cached texture for ``path``, loading it on first use."""
        key = os.fspath(path)
        if key not in self._cache:
            self._cache[key] = self._loader(key)
        return self._cache[key]

    def cleanup(self) -> None:
        """Delete every cached texture and empty the cache."""
        for texture_id in self._cache.values():
            self._deleter(texture_id)
        self._cache.clear()