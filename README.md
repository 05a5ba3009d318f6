# cascadeview

A small real-time viewer that loads Wavefront OBJ models and draws them lit
by a directional light, with shadows. It renders through OpenGL 3.3 (via
pyglet) in several passes: shadow maps (cascaded by default, or a single
map), a G-buffer pass, a forward shading pass, a screen-space reflection pass
and a final combine pass onto the window.

## Installing

```
pip install .
```

To run the tests, install the test extra as well:

```
pip install ".[test]"
pytest
```

## Running the viewer

```
cascadeview
```

Options:

| Option              | Default                                    | Meaning                                   |
|---------------------|--------------------------------------------|-------------------------------------------|
| `--model PATH`      | `assets/rossbaendiger/Rossbaendiger_C.obj` | OBJ file placed three times in the scene  |
| `--base PATH`       | `assets/cube.obj`                          | OBJ file used as the ground slab          |
| `--shaders DIR`     | `shaders`                                  | directory holding the GLSL files          |
| `--shadow {csm,sm}` | `csm`                                      | cascaded shadow maps or one shadow map    |

At start-up the scene's world-space bounding box is printed as two lines
(minimum and maximum corner). While running, the frame rate is printed about
once a second. The command exits with status 1 if a model or a shader
cannot be loaded.

Controls:

| Input        | Action                     |
|--------------|----------------------------|
| `W` / `S`    | move forward / backward    |
| `A` / `D`    | strafe left / right        |
| `E` / `Q`    | move up / down             |
| mouse        | look around                |
| scroll wheel | zoom (field of view 1–45°) |
| `Esc`        | quit                       |

## What is not included

The package holds no GLSL shader files and no models. The viewer reads its
programs from the `--shaders` directory by these names: `default.vert/.frag`,
`depth.vert/.frag`, `csm_shading.vert/.frag`, `gbuffer.vert/.frag`,
`quad.vert` with `quad_combine.frag`, and `ssr.vert/.frag`. You have to
supply them, along with the OBJ files, their MTL files and textures.

## Using the pieces

Much of the math needs no GL context and can be used directly:

```python
import math

from cascadeview.camera import Camera, CameraMovement
from cascadeview.csm import compute_cascade_splits
from cascadeview.geometry import AABB, perspective

camera = Camera()
camera.process_keyboard(CameraMovement.FORWARD, 0.016)
view = camera.view_matrix()
proj = perspective(math.radians(45.0), 800 / 600, 0.1, 30.0)

split_near, split_far = compute_cascade_splits(4, 0.1, 30.0, 0.5)

box = AABB()
box.expand((1.0, 2.0, 3.0))
```

Matrices are 4x4 numpy arrays that multiply column vectors.

- `cascadeview.geometry`: `normalize`, `Plane`, `AABB` and matrix helpers
  (`look_at`, `perspective` with the field of view in radians, `ortho`,
  `translate`, `scale`, `transform_point`).
- `cascadeview.camera`: `Camera`, a fly camera moved by `CameraMovement`,
  mouse offsets and scroll.
- `cascadeview.model`: `load_obj` and `parse_mtl` read OBJ and MTL files
  (faces are triangulated; `ObjError` on bad content), and `Model` groups the
  meshes and computes world-space bounding boxes with `calculate_world_aabb`.
- `cascadeview.mesh`: `Vertex` and `Mesh`; `Mesh.vertex_data()` gives the
  interleaved position, normal and texture-coordinate array.
- `cascadeview.texture`: `load_image_data` decodes and flips an image,
  `load_texture` uploads it, and `TextureManager` caches textures by path.
- `cascadeview.scene`: `Scene`, a list of `ModelInstance` entries that share
  models, each with its own transform.
- `cascadeview.csm`: `compute_cascade_splits`, `cascade_light_matrices` and
  `CSM`, the layered depth texture for the cascades.
- `cascadeview.shadow_map`: `ShadowMap`, a single depth map for a directional
  light.
- `cascadeview.shader`: `Shader`, a linked GLSL program with `set_bool`,
  `set_int`, `set_float`, `set_vec3` and `set_mat4`.
- `cascadeview.cube`: `Cube`, a unit cube drawn with a flat colour.
- `cascadeview.app`: `main`, the viewer, plus `MouseTracker`,
  `directional_shadow_matrices`, `draw_shadow_map` and `render_quad`.

Drawing, shader and texture upload calls need a current OpenGL 3.3 context.