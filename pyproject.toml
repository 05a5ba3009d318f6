[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cascadeview"
version = "0.1.0"
description = "OBJ model viewer with cascaded shadow maps, deferred buffers and screen-space reflections"
requires-python = ">=3.10"
keywords = ["opengl", "shadow-mapping", "cascaded-shadow-maps", "obj", "renderer", "ssr"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: 3D Rendering",
]
dependencies = [
    "numpy",
    "pyglet",
    "pillow",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
cascadeview = "cascadeview.app:main"

[tool.hatch.build.targets.wheel]
packages = ["cascadeview"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
