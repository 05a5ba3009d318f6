"""Interactive viewer: deferred normals, shadowed forward pass, SSR and compositing."""

from __future__ import annotations

import argparse
import math
import os
import sys
import time
from dataclasses import dataclass

import numpy as np

from cascadeview.camera import Camera, CameraMovement
from cascadeview.csm import CSM
from cascadeview.geometry import look_at, normalize, ortho, perspective, scale, translate
from cascadeview.model import Model, ObjError
from cascadeview.scene import Scene
from cascadeview.shader import Shader, ShaderError
from cascadeview.shadow_map import ShadowMap

SCR_WIDTH = 800
SCR_HEIGHT = 600
WINDOW_TITLE = "OBJ Model Viewer with Point Light"

DEFAULT_MODEL = "assets/rossbaendiger/Rossbaendiger_C.obj"
DEFAULT_BASE = "assets/cube.obj"
DEFAULT_SHADER_DIR = "shaders"

SHADOW_MAP_RESOLUTION = 1024
CASCADE_COUNT = 4
CAMERA_NEAR = 0.1
CAMERA_FAR = 30.0

_UP = np.array([0.0, 1.0, 0.0])
_SHADOW_BIAS = translate((0.5, 0.5, 0.5)) @ scale(0.5)

# One oversized triangle that covers the whole screen: x, y, u, v per corner.
QUAD_VERTICES = np.array(
    [
        [-1.0, -1.0, 0.0, 0.0],
        [3.0, -1.0, 2.0, 0.0],
        [-1.0, 3.0, 0.0, 2.0],
    ],
    dtype=np.float32,
)
QUAD_VERTICES.setflags(write=False)


@dataclass
class MouseTracker:
    """Turns absolute pointer positions into per-event offsets.

    The first position seen produces no movement. The vertical offset is
    reversed, since window coordinates grow downwards.
    """

    last_x: float = SCR_WIDTH / 2.0
    last_y: float = SCR_HEIGHT / 2.0
    first: bool = True

    def move(self, xpos, ypos) -> tuple[float, float]:
        xpos, ypos = float(xpos), float(ypos)
        if self.first:
            self.last_x, self.last_y = xpos, ypos
            self.first = False
        xoffset = xpos - self.last_x
        yoffset = self.last_y - ypos
        self.last_x, self.last_y = xpos, ypos
        return xoffset, yoffset


def directional_shadow_matrices(scene_aabb, light_dir) -> tuple[np.ndarray, np.ndarray]:
    """Light view and orthographic projection that enclose the scene's bounding sphere."""
    low, high = (np.asarray(b, dtype=float) for b in scene_aabb)
    center = (low + high) * 0.5
    radius = float(np.linalg.norm(center - low))
    eye = center + normalize(light_dir) * radius
    view = look_at(eye, center, _UP)
    proj = ortho(-radius, radius, -radius, radius, 0.1, radius * 2.0)
    return view, proj


def draw_shadow_map(shader, shadow_map, scene, light_dir) -> None:
    """Render the scene's depth from a directional light into ``shadow_map``."""
    shadow_map.bind_for_writing()
    shader.use()
    view, proj = directional_shadow_matrices(scene.calculate_world_aabb(), light_dir)
    shadow_map.mat_view = view
    shadow_map.mat_proj = proj
    shader.set_mat4("ViewProjectionMatrix", proj @ view)
    scene.draw(shader)
    shadow_map.unbind()


class _FullscreenTriangle:
    def __init__(self) -> None:
        self._vao = None
        self._vbo = None

    def draw(self) -> None:
        from pyglet import gl

        if self._vao is None:
            data = np.ascontiguousarray(QUAD_VERTICES)
            vao, vbo = gl.GLuint(), gl.GLuint()
            gl.glGenVertexArrays(1, vao)
            gl.glGenBuffers(1, vbo)
            gl.glBindVertexArray(vao)
            gl.glBindBuffer(gl.GL_ARRAY_BUFFER, vbo)
            gl.glBufferData(gl.GL_ARRAY_BUFFER, data.nbytes, data.ctypes.data, gl.GL_STATIC_DRAW)
            stride = data.shape[1] * 4
            gl.glEnableVertexAttribArray(0)
            gl.glVertexAttribPointer(0, 2, gl.GL_FLOAT, gl.GL_FALSE, stride, 0)
            gl.glEnableVertexAttribArray(1)
            gl.glVertexAttribPointer(1, 2, gl.GL_FLOAT, gl.GL_FALSE, stride, 2 * 4)
            self._vao, self._vbo = vao.value, vbo.value
        gl.glBindVertexArray(self._vao)
        gl.glDrawArrays(gl.GL_TRIANGLES, 0, len(QUAD_VERTICES))
        gl.glBindVertexArray(0)


_quad = _FullscreenTriangle()


def render_quad() -> None:
    """Draw a screen-covering triangle, creating its buffers on first use."""
    _quad.draw()


def _texture(gl, internal_format, fmt, data_type, filtering, clamp=False) -> int:
    texture = gl.GLuint()
    gl.glGenTextures(1, texture)
    gl.glBindTexture(gl.GL_TEXTURE_2D, texture)
    gl.glTexImage2D(gl.GL_TEXTURE_2D, 0, internal_format, SCR_WIDTH, SCR_HEIGHT, 0,
                    fmt, data_type, None)
    gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_MIN_FILTER, filtering)
    gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_MAG_FILTER, filtering)
    if clamp:
        gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_WRAP_S, gl.GL_CLAMP_TO_EDGE)
        gl.glTexParameteri(gl.GL_TEXTURE_2D, gl.GL_TEXTURE_WRAP_T, gl.GL_CLAMP_TO_EDGE)
    return texture.value


def _framebuffer(gl) -> int:
    fbo = gl.GLuint()
    gl.glGenFramebuffers(1, fbo)
    gl.glBindFramebuffer(gl.GL_FRAMEBUFFER, fbo)
    return fbo.value


def _check_complete(gl, label: str) -> None:
    if gl.glCheckFramebufferStatus(gl.GL_FRAMEBUFFER) != gl.GL_FRAMEBUFFER_COMPLETE:
        print(f"{label} is not complete!", file=sys.stderr)


class _RenderTargets:
    """G-buffer, forward-pass and SSR framebuffers sharing one depth texture."""

    def __init__(self, gl) -> None:
        self._gl = gl
        self.g_buffer = _framebuffer(gl)
        self.g_position = _texture(gl, gl.GL_RGB16F, gl.GL_RGB, gl.GL_FLOAT, gl.GL_NEAREST, True)
        gl.glFramebufferTexture2D(gl.GL_FRAMEBUFFER, gl.GL_COLOR_ATTACHMENT0,
                                  gl.GL_TEXTURE_2D, self.g_position, 0)
        self.g_normal = _texture(gl, gl.GL_RGB16F, gl.GL_RGB, gl.GL_FLOAT, gl.GL_NEAREST, True)
        gl.glFramebufferTexture2D(gl.GL_FRAMEBUFFER, gl.GL_COLOR_ATTACHMENT1,
                                  gl.GL_TEXTURE_2D, self.g_normal, 0)
        self.depth = _texture(gl, gl.GL_DEPTH32F_STENCIL8, gl.GL_DEPTH_STENCIL,
                              gl.GL_FLOAT_32_UNSIGNED_INT_24_8_REV, gl.GL_NEAREST)
        gl.glFramebufferTexture2D(gl.GL_FRAMEBUFFER, gl.GL_DEPTH_ATTACHMENT,
                                  gl.GL_TEXTURE_2D, self.depth, 0)
        attachments = (gl.GLenum * 2)(gl.GL_COLOR_ATTACHMENT0, gl.GL_COLOR_ATTACHMENT1)
        gl.glDrawBuffers(2, attachments)

        self.scene_fbo = _framebuffer(gl)
        self.scene_color = _texture(gl, gl.GL_RGB16F, gl.GL_RGB, gl.GL_FLOAT, gl.GL_LINEAR)
        gl.glFramebufferTexture2D(gl.GL_FRAMEBUFFER, gl.GL_COLOR_ATTACHMENT0,
                                  gl.GL_TEXTURE_2D, self.scene_color, 0)
        gl.glFramebufferTexture2D(gl.GL_FRAMEBUFFER, gl.GL_DEPTH_ATTACHMENT,
                                  gl.GL_TEXTURE_2D, self.depth, 0)
        _check_complete(gl, "SceneFBO")

        self.ssr_fbo = _framebuffer(gl)
        self.ssr_color = _texture(gl, gl.GL_RGB16F, gl.GL_RGB, gl.GL_FLOAT, gl.GL_LINEAR)
        gl.glFramebufferTexture2D(gl.GL_FRAMEBUFFER, gl.GL_COLOR_ATTACHMENT0,
                                  gl.GL_TEXTURE_2D, self.ssr_color, 0)
        _check_complete(gl, "SSR FBO")
        gl.glBindFramebuffer(gl.GL_FRAMEBUFFER, 0)

    def release(self) -> None:
        gl = self._gl
        for fbo in (self.g_buffer, self.scene_fbo, self.ssr_fbo):
            gl.glDeleteFramebuffers(1, gl.GLuint(fbo))
        for tex in (self.g_position, self.g_normal, self.depth, self.scene_color, self.ssr_color):
            gl.glDeleteTextures(1, gl.GLuint(tex))


def _bind_texture(gl, unit: int, target, texture: int) -> None:
    gl.glActiveTexture(gl.GL_TEXTURE0 + unit)
    gl.glBindTexture(target, texture)


def _build_scene(model_path: str, base_path: str) -> tuple[Scene, np.ndarray]:
    model = Model(model_path)
    base = Model(base_path)
    mat_model = scale(0.1) @ translate((0.0, 3.0, 0.0))
    mat_base = scale((20.0, 0.5, 20.0))
    scene = Scene()
    scene.add_model_instance(model, mat_model)
    scene.add_model_instance(base, mat_base)
    scene.add_model_instance(model, mat_model @ translate((20.0, 0.0, 0.0)))
    scene.add_model_instance(model, mat_model @ translate((40.0, 0.0, 0.0)))
    return scene, mat_model


def _parse_args(argv):
    parser = argparse.ArgumentParser(prog="cascadeview", description=WINDOW_TITLE)
    parser.add_argument("--model", default=DEFAULT_MODEL, help="OBJ file placed three times")
    parser.add_argument("--base", default=DEFAULT_BASE, help="OBJ file used as the ground slab")
    parser.add_argument("--shaders", default=DEFAULT_SHADER_DIR, help="directory of GLSL files")
    parser.add_argument("--shadow", choices=("csm", "sm"), default="csm",
                        help="cascaded shadow maps or a single shadow map")
    return parser.parse_args(argv)


_MOVEMENT_KEYS = (
    ("W", CameraMovement.FORWARD),
    ("S", CameraMovement.BACKWARD),
    ("A", CameraMovement.LEFT),
    ("D", CameraMovement.RIGHT),
    ("Q", CameraMovement.DOWN),
    ("E", CameraMovement.UP),
)


def main(argv=None) -> int:
    """Open the viewer window and run the render loop until it is closed."""
    args = _parse_args(argv)
    use_csm = args.shadow == "csm"

    try:
        scene, mat_model = _build_scene(args.model, args.base)
    except (OSError, ObjError) as exc:
        print(f"Failed to load obj: {exc}", file=sys.stderr)
        return 1

    low, high = scene.calculate_world_aabb()
    print(" ".join(f"{v:g}" for v in low))
    print(" ".join(f"{v:g}" for v in high))

    import pyglet
    from pyglet import gl
    from pyglet.window import key

    config = gl.Config(major_version=3, minor_version=3, forward_compatible=True,
                       double_buffer=True, depth_size=24)
    try:
        window = pyglet.window.Window(SCR_WIDTH, SCR_HEIGHT, WINDOW_TITLE,
                                      config=config, resizable=True)
    except pyglet.window.NoSuchConfigException:
        print("Failed to create window", file=sys.stderr)
        return 1

    camera = Camera(position=(0.0, 1.0, 3.0))
    tracker = MouseTracker()
    pointer = [SCR_WIDTH / 2.0, SCR_HEIGHT / 2.0]
    keys = key.KeyStateHandler()
    window.push_handlers(keys)
    window.set_exclusive_mouse(True)

    def on_mouse_motion(x, y, dx, dy):
        pointer[0] += dx
        pointer[1] -= dy
        camera.process_mouse_movement(*tracker.move(*pointer))

    def on_mouse_drag(x, y, dx, dy, buttons, modifiers):
        on_mouse_motion(x, y, dx, dy)

    def on_mouse_scroll(x, y, scroll_x, scroll_y):
        camera.process_mouse_scroll(scroll_y)

    def on_resize(width, height):
        gl.glViewport(0, 0, *window.get_framebuffer_size())
        return pyglet.event.EVENT_HANDLED

    window.push_handlers(on_mouse_motion=on_mouse_motion, on_mouse_drag=on_mouse_drag,
                         on_mouse_scroll=on_mouse_scroll, on_resize=on_resize)

    gl.glEnable(gl.GL_DEPTH_TEST)
    targets = _RenderTargets(gl)

    def shader(name_vert: str, name_frag: str) -> Shader:
        return Shader(os.path.join(args.shaders, name_vert), os.path.join(args.shaders, name_frag))

    try:
        shader_default = shader("default.vert", "default.frag")
        shader_depth = shader("depth.vert", "depth.frag")
        shader_csm = shader("csm_shading.vert", "csm_shading.frag")
        shader_gbuffer = shader("gbuffer.vert", "gbuffer.frag")
        shader_combine = shader("quad.vert", "quad_combine.frag")
        shader_ssr = shader("ssr.vert", "ssr.frag")
    except (OSError, ShaderError) as exc:
        print(exc, file=sys.stderr)
        targets.release()
        window.close()
        return 1

    shadow_map = ShadowMap(SHADOW_MAP_RESOLUTION, SHADOW_MAP_RESOLUTION)
    csm = CSM(CASCADE_COUNT, SHADOW_MAP_RESOLUTION, CAMERA_NEAR, CAMERA_FAR)

    light_dir = normalize((-1.0, 0.5, -1.0))
    light_color = np.ones(3)
    start = last_frame = last_print = time.perf_counter()
    frames = 0

    try:
        while not window.has_exit:
            window.dispatch_events()
            if window.has_exit or keys[key.ESCAPE]:
                break

            now = time.perf_counter()
            delta_time = now - last_frame
            last_frame = now
            frames += 1
            if now - last_print >= 1.0 and now > start:
                print(f"FPS: {frames / (now - start):g}")
                last_print = now

            for name, movement in _MOVEMENT_KEYS:
                if keys[getattr(key, name)]:
                    camera.process_keyboard(movement, delta_time)

            view = camera.view_matrix()
            projection = perspective(math.radians(camera.zoom), SCR_WIDTH / SCR_HEIGHT,
                                     CAMERA_NEAR, CAMERA_FAR)

            if use_csm:
                csm.compute_light_space_matrix(view, projection, camera.position,
                                               camera.front, scene, light_dir)
                csm.draw_shadow_maps(shader_depth, scene)
            else:
                draw_shadow_map(shader_depth, shadow_map, scene, light_dir)

            # G-buffer pass.
            gl.glBindFramebuffer(gl.GL_FRAMEBUFFER, targets.g_buffer)
            gl.glViewport(0, 0, SCR_WIDTH, SCR_HEIGHT)
            gl.glClearColor(0.0, 0.0, 0.0, 1.0)
            gl.glClear(gl.GL_COLOR_BUFFER_BIT | gl.GL_DEPTH_BUFFER_BIT)
            shader_gbuffer.use()
            shader_gbuffer.set_mat4("view", view)
            shader_gbuffer.set_mat4("projection", projection)
            shader_gbuffer.set_mat4("model", mat_model)
            scene.draw(shader_gbuffer)

            # Forward shading pass with shadows.
            gl.glBindFramebuffer(gl.GL_FRAMEBUFFER, targets.scene_fbo)
            gl.glViewport(0, 0, SCR_WIDTH, SCR_HEIGHT)
            gl.glClearColor(0.1, 0.15, 0.2, 1.0)
            gl.glClear(gl.GL_COLOR_BUFFER_BIT | gl.GL_DEPTH_BUFFER_BIT)
            if use_csm:
                active = shader_csm
                _bind_texture(gl, 10, gl.GL_TEXTURE_2D_ARRAY, csm.shadow_map_array_texture)
            else:
                active = shader_default
                _bind_texture(gl, 10, gl.GL_TEXTURE_2D, shadow_map.depth_texture)
            active.use()
            active.set_mat4("view", view)
            active.set_mat4("projection", projection)
            active.set_mat4("model", mat_model)
            active.set_vec3("dirLight.dir", light_dir)
            active.set_vec3("dirLight.color", light_color)
            active.set_vec3("viewPos", camera.position)
            if use_csm:
                for i, (split, matrix) in enumerate(zip(csm.cascade_splits,
                                                        csm.light_space_matrices)):
                    active.set_float(f"cascadeSplit[{i}]", split)
                    active.set_mat4(f"lightMatrices[{i}]", matrix)
                active.set_float("nearPlane", CAMERA_NEAR)
                active.set_float("splitBlendRatio", csm.blend_ratio)
                active.set_int("shadowMapResolution", SHADOW_MAP_RESOLUTION)
            else:
                active.set_mat4("lightMatrix",
                                _SHADOW_BIAS @ shadow_map.mat_proj @ shadow_map.mat_view)
            scene.draw(active)

            # Screen-space reflections.
            gl.glBindFramebuffer(gl.GL_FRAMEBUFFER, targets.ssr_fbo)
            gl.glViewport(0, 0, SCR_WIDTH, SCR_HEIGHT)
            gl.glClear(gl.GL_COLOR_BUFFER_BIT)
            shader_ssr.use()
            shader_ssr.set_mat4("invProj", np.linalg.inv(projection))
            shader_ssr.set_mat4("proj", projection)
            shader_ssr.set_mat4("view", view)
            shader_ssr.set_float("thickness", 0.001)
            shader_ssr.set_float("stepSize", 0.05)
            _bind_texture(gl, 0, gl.GL_TEXTURE_2D, targets.scene_color)
            shader_ssr.set_int("sceneColor", 0)
            _bind_texture(gl, 1, gl.GL_TEXTURE_2D, targets.g_normal)
            shader_ssr.set_int("normalTex", 1)
            _bind_texture(gl, 2, gl.GL_TEXTURE_2D, targets.depth)
            shader_ssr.set_int("depthTex", 2)
            render_quad()

            # Composite onto the window.
            gl.glBindFramebuffer(gl.GL_FRAMEBUFFER, 0)
            gl.glViewport(0, 0, SCR_WIDTH, SCR_HEIGHT)
            gl.glClear(gl.GL_COLOR_BUFFER_BIT | gl.GL_DEPTH_BUFFER_BIT)
            shader_combine.use()
            shader_combine.set_float("roughnessScale", 1.0)
            _bind_texture(gl, 0, gl.GL_TEXTURE_2D, targets.scene_color)
            shader_combine.set_int("sceneColor", 0)
            _bind_texture(gl, 1, gl.GL_TEXTURE_2D, targets.ssr_color)
            shader_combine.set_int("ssrTex", 1)
            _bind_texture(gl, 2, gl.GL_TEXTURE_2D, targets.g_normal)
            shader_combine.set_int("normalTex", 2)
            render_quad()

            window.flip()
    finally:
        shadow_map.release()
        csm.release()
        targets.release()
        window.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())