"""Wavefront OBJ/MTL loading and models made of meshes."""

from __future__ import annotations

import itertools
import logging
import os
from dataclasses import dataclass, field

import numpy as np

from cascadeview.geometry import FLT_MAX
from cascadeview.mesh import Mesh, Vertex

logger = logging.getLogger(__name__)


class ObjError(ValueError):
    """An OBJ or MTL file holds content that cannot be interpreted."""


@dataclass(frozen=True)
class ObjIndex:
    """Zero-based attribute indices of one face corner; -1 means absent."""

    vertex_index: int
    texcoord_index: int = -1
    normal_index: int = -1


@dataclass
class ObjMaterial:
    name: str
    diffuse: tuple[float, float, float] = (0.0, 0.0, 0.0)
    diffuse_texname: str = ""


@dataclass
class ObjShape:
    """Triangulated faces: three indices per triangle and one material id per triangle."""

    name: str = ""
    indices: list[ObjIndex] = field(default_factory=list)
    material_ids: list[int] = field(default_factory=list)


@dataclass
class ObjData:
    vertices: list[tuple[float, float, float]] = field(default_factory=list)
    normals: list[tuple[float, float, float]] = field(default_factory=list)
    texcoords: list[tuple[float, float]] = field(default_factory=list)
    shapes: list[ObjShape] = field(default_factory=list)
    materials: list[ObjMaterial] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def _read_lines(path):
    with open(path, encoding="utf-8", errors="replace") as handle:
        for lineno, raw in enumerate(handle, start=1):
            line = raw.strip()
            if line and not line.startswith("#"):
                yield lineno, line


def _floats(tokens, count: int, where: str) -> tuple[float, ...]:
    try:
        values = [float(t) for t in tokens[:count]]
    except ValueError as exc:
        raise ObjError(f"{where}: invalid number") from exc
    values.extend([0.0] * (count - len(values)))
    return tuple(values)


_OPTION_ARITY = {
    "-blendu": 1, "-blendv": 1, "-clamp": 1, "-cc": 1, "-bm": 1, "-boost": 1,
    "-mm": 2, "-texres": 1, "-imfchan": 1, "-type": 1, "-colorspace": 1,
}
_VECTOR_OPTIONS = {"-o", "-s", "-t"}


def _is_number(token: str) -> bool:
    try:
        float(token)
    except ValueError:
        return False
    return True


def _texture_name(rest: str) -> str:
    tokens = rest.split()
    position = 0
    while position < len(tokens) and tokens[position].startswith("-"):
        option = tokens[position]
        position += 1
        if option in _VECTOR_OPTIONS:
            taken = 0
            while taken < 3 and position < len(tokens) - 1 and _is_number(tokens[position]):
                position += 1
                taken += 1
        else:
            position += _OPTION_ARITY.get(option, 0)
    return " ".join(tokens[position:])


def parse_mtl(path) -> list[ObjMaterial]:
    """Read the materials of an MTL file, in file order."""
    materials: list[ObjMaterial] = []
    current: ObjMaterial | None = None
    for lineno, line in _read_lines(path):
        keyword, _, rest = line.partition(" ")
        rest = rest.strip()
        if keyword == "newmtl":
            current = ObjMaterial(name=rest)
            materials.append(current)
        elif current is None:
            continue
        elif keyword == "Kd":
            current.diffuse = _floats(rest.split(), 3, f"{path}:{lineno}")
        elif keyword == "map_Kd":
            current.diffuse_texname = _texture_name(rest)
    return materials


def _resolve(raw: str, count: int, where: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise ObjError(f"{where}: invalid face index {raw!r}") from exc
    if value == 0:
        raise ObjError(f"{where}: face index 0 is not allowed")
    index = value - 1 if value > 0 else count + value
    if not 0 <= index < count:
        raise ObjError(f"{where}: face index {value} out of range")
    return index


def _parse_corner(token: str, data: ObjData, where: str) -> ObjIndex:
    parts = token.split("/")
    if len(parts) > 3:
        raise ObjError(f"{where}: malformed face element {token!r}")
    parts += [""] * (3 - len(parts))
    vertex = _resolve(parts[0], len(data.vertices), where)
    texcoord = _resolve(parts[1], len(data.texcoords), where) if parts[1] else -1
    normal = _resolve(parts[2], len(data.normals), where) if parts[2] else -1
    return ObjIndex(vertex, texcoord, normal)


def load_obj(path) -> ObjData:
    """Parse an OBJ file, triangulating its faces and loading referenced materials."""
    path = os.fspath(path)
    base_dir = os.path.dirname(path)
    data = ObjData()
    material_ids: dict[str, int] = {}
    current = ObjShape()
    material = -1

    def finish_shape(name: str) -> ObjShape:
        if current.indices:
            data.shapes.append(current)
        return ObjShape(name=name)

    for lineno, line in _read_lines(path):
        where = f"{path}:{lineno}"
        keyword, _, rest = line.partition(" ")
        rest = rest.strip()
        tokens = rest.split()
        if keyword == "v":
            data.vertices.append(_floats(tokens, 3, where))
        elif keyword == "vn":
            data.normals.append(_floats(tokens, 3, where))
        elif keyword == "vt":
            data.texcoords.append(_floats(tokens, 2, where))
        elif keyword == "f":
            corners = [_parse_corner(t, data, where) for t in tokens]
            for second, third in zip(corners[1:], corners[2:]):
                current.indices.extend((corners[0], second, third))
                current.material_ids.append(material)
        elif keyword == "o":
            current = finish_shape(rest)
        elif keyword == "g":
            current = finish_shape(" ".join(tokens))
        elif keyword == "usemtl":
            if rest in material_ids:
                material = material_ids[rest]
            else:
                material = -1
                data.warnings.append(f"material {rest!r} not found")
        elif keyword == "mtllib":
            for name in tokens:
                mtl_path = os.path.join(base_dir, name)
                if os.path.isfile(mtl_path):
                    for entry in parse_mtl(mtl_path):
                        material_ids[entry.name] = len(data.materials)
                        data.materials.append(entry)
                    break
            else:
                data.warnings.append(f"material library not found: {rest}")
    finish_shape("")
    return data


class Model:
    """Meshes loaded from an OBJ file, with their model-space bounds."""

    def __init__(self, path):
        path = os.fspath(path)
        cut = max(path.rfind("/"), path.rfind(os.sep))
        self.directory = path[: cut + 1]
        data = load_obj(path)
        for message in data.warnings:
            logger.warning("obj warning: %s", message)
        self.meshes = [self._process_shape(data, shape) for shape in data.shapes]

        positions = np.array(
            [v.position for mesh in self.meshes for v in mesh.vertices], dtype=float
        ).reshape(-1, 3)
        if len(positions):
            self.min_bound = positions.min(axis=0)
            self.max_bound = positions.max(axis=0)
        else:
            self.min_bound = np.full(3, FLT_MAX)
            self.max_bound = np.full(3, -FLT_MAX)

    def _process_shape(self, data: ObjData, shape: ObjShape) -> Mesh:
        vertices = [
            Vertex(
                position=data.vertices[idx.vertex_index],
                normal=data.normals[idx.normal_index] if idx.normal_index >= 0 else (0.0, 0.0, 0.0),
                tex_coords=data.texcoords[idx.texcoord_index] if idx.texcoord_index >= 0 else (0.0, 0.0),
            )
            for idx in shape.indices
        ]
        indices = list(range(len(vertices)))

        diffuse_color = (1.0, 1.0, 1.0)
        diffuse_map_path = ""
        material_id = shape.material_ids[0] if shape.material_ids else -1
        if 0 <= material_id < len(data.materials):
            material = data.materials[material_id]
            diffuse_color = material.diffuse
            if material.diffuse_texname:
                diffuse_map_path = self.directory + material.diffuse_texname
        return Mesh(vertices, indices, diffuse_color, diffuse_map_path)

    def draw(self, shader, model_matrix) -> None:
        shader.set_mat4("model", model_matrix)
        for mesh in self.meshes:
            mesh.draw(shader)

    def calculate_world_aabb(self, model_matrix) -> tuple[np.ndarray, np.ndarray]:
        """World-space bounds of the eight transformed corners of the model's box."""
        corners = np.array(list(itertools.product(*zip(self.min_bound, self.max_bound))))
        homogeneous = np.hstack([corners, np.ones((8, 1))])
        world = (np.asarray(model_matrix, dtype=float) @ homogeneous.T).T[:, :3]
        return world.min(axis=0), world.max(axis=0)