"""OBJ model viewer with cascaded shadow maps, a G-buffer and screen-space reflections."""

__version__ = "0.1.0"
__all__ = ["__version__"]