# finch/viewer.py
"""
Minimal interactive viewer: decodes a glTF file, uploads it once and draws
an instanced grid of it every frame.

Controls:
    - Left drag: rotate (orbit around the pivot, or look around)
    - Wheel: zoom (orbit mode)
    - Mouse move: tints the background while not dragging
    - Hold SPACE: show texture coordinates instead of the diffuse pass
    - ESC: quit
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path
from typing import Dict, Optional, Sequence

import moderngl
import pygame

from finch.assets.gltf.errors import GltfLoadError
from finch.assets.importers.gltf import GltfImporter
from finch.assets.importers.texture import TextureImporter
from finch.assets.types import MeshData, TextureData
from finch.camera import (
    CameraUniform,
    InteractiveCamera,
    PointerDelta,
    ScrollDelta,
)
from finch.instances import (
    INSTANCE_ATTRIBUTES,
    INSTANCE_FORMAT,
    Instance,
    instance_grid,
    instances_to_bytes,
)
from finch.settings import CameraMode, CameraSettings, ViewerSettings
from finch.types import Color3

log = logging.getLogger("finch")

VERTEX_SHADER = """
#version 330 core

uniform mat4 u_view_proj;

in vec3 in_pos;
in vec3 in_color;
in vec2 in_uv;
in mat4 i_model;

out vec3 v_color;
out vec2 v_uv;

void main() {
    v_color = in_color;
    v_uv = in_uv;
    gl_Position = u_view_proj * i_model * vec4(in_pos, 1.0);
}
"""

FRAGMENT_SHADER = """
#version 330 core

uniform sampler2D u_diffuse;
uniform bool u_textured;

in vec3 v_color;
in vec2 v_uv;

out vec4 f_color;

void main() {
    vec4 base = u_textured ? texture(u_diffuse, v_uv) : vec4(1.0);
    f_color = vec4(base.rgb * v_color, base.a);
}
"""

UV_FRAGMENT_SHADER = """
#version 330 core

in vec3 v_color;
in vec2 v_uv;

out vec4 f_color;

void main() {
    f_color = vec4(vec3(v_uv, 1.0) * v_color, 1.0);
}
"""


def cursor_clear_color(
    pos: tuple[int, int], size: tuple[int, int], base: Color3
) -> Color3:
    """Red follows the cursor across, blue follows it down."""
    w, h = size
    if w <= 0 or h <= 0:
        return base
    x, y = pos
    return (x / w, base[1], y / h)


class Window:
    """
    Manages the OS Window and OpenGL Context.
    """

    def __init__(self, width: int, height: int, title: str = "finch"):
        if not pygame.get_init():
            pygame.init()

        pygame.display.gl_set_attribute(pygame.GL_CONTEXT_MAJOR_VERSION, 3)
        pygame.display.gl_set_attribute(pygame.GL_CONTEXT_MINOR_VERSION, 3)
        pygame.display.gl_set_attribute(
            pygame.GL_CONTEXT_PROFILE_MASK, pygame.GL_CONTEXT_PROFILE_CORE
        )
        pygame.display.gl_set_attribute(pygame.GL_DEPTH_SIZE, 24)
        pygame.display.gl_set_attribute(pygame.GL_DOUBLEBUFFER, 1)

        self._screen = pygame.display.set_mode(
            (width, height), pygame.OPENGL | pygame.DOUBLEBUF | pygame.RESIZABLE
        )
        pygame.display.set_caption(title)

        self.ctx = moderngl.create_context()
        self.ctx.enable(moderngl.DEPTH_TEST)

        version = self.ctx.version_code
        log.info("OpenGL context created: %d", version)

    @property
    def size(self) -> tuple[int, int]:
        return self._screen.get_size()

    @property
    def aspect_ratio(self) -> float:
        w, h = self.size
        return w / h

    def present(self) -> None:
        pygame.display.flip()

    def destroy(self) -> None:
        pygame.quit()


class GPUMesh:
    """
    Holds the GPU resources for a decoded mesh: VBO, IBO and the instance
    buffer, plus one VAO per shader program.
    """

    def __init__(
        self,
        ctx: moderngl.Context,
        data: MeshData,
        instances: Sequence[Instance],
    ) -> None:
        self._ctx = ctx
        self.layout = data.vertex_layout
        self.index_count = data.index_count
        self.instance_count = len(instances)

        self.vbo = ctx.buffer(data.vertex_bytes())
        self.ibo = ctx.buffer(data.index_bytes())
        self.instance_buffer = ctx.buffer(instances_to_bytes(instances))

        self._vaos: Dict[int, moderngl.VertexArray] = {}

    def vao(self, program: moderngl.Program) -> moderngl.VertexArray:
        if program.glo in self._vaos:
            return self._vaos[program.glo]

        content = [
            (self.vbo, self.layout.format, *self.layout.attributes),
            (self.instance_buffer, INSTANCE_FORMAT, *INSTANCE_ATTRIBUTES),
        ]
        vao = self._ctx.vertex_array(
            program, content, index_buffer=self.ibo, index_element_size=2
        )
        self._vaos[program.glo] = vao
        return vao

    def render(self, program: moderngl.Program) -> None:
        self.vao(program).render(
            moderngl.TRIANGLES,
            vertices=self.index_count,
            instances=self.instance_count,
        )

    def release(self) -> None:
        for vao in self._vaos.values():
            vao.release()
        self._vaos.clear()

        self.vbo.release()
        self.ibo.release()
        self.instance_buffer.release()


class Viewer:
    def __init__(
        self,
        mesh: MeshData,
        settings: ViewerSettings,
        texture: Optional[TextureData] = None,
    ) -> None:
        self.settings = settings
        self.window = Window(*settings.resolution, title=settings.title)
        ctx = self.window.ctx

        self.program = ctx.program(
            vertex_shader=VERTEX_SHADER, fragment_shader=FRAGMENT_SHADER
        )
        self.uv_program = ctx.program(
            vertex_shader=VERTEX_SHADER, fragment_shader=UV_FRAGMENT_SHADER
        )
        self.gpu_mesh = GPUMesh(
            ctx,
            mesh,
            instance_grid(settings.instance_grid, settings.instance_spacing),
        )

        self.texture: Optional[moderngl.Texture] = None
        if texture is not None:
            self.texture = ctx.texture(
                (texture.width, texture.height),
                texture.components,
                texture.data,
            )
            self.texture.use(location=0)
            self.program["u_diffuse"].value = 0
        self.program["u_textured"].value = self.texture is not None

        self.camera = InteractiveCamera.from_settings(
            settings.camera, self.window.aspect_ratio
        )
        self.uniform = CameraUniform()

        self.clear_color = settings.clear_color
        self.show_uvs = False
        self._dragging = False
        self.running = False

    def process_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.running = False
        elif event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE:
            self.running = False
        elif event.type in (pygame.KEYDOWN, pygame.KEYUP) and (
            event.key == pygame.K_SPACE
        ):
            self.show_uvs = event.type == pygame.KEYDOWN
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self._dragging = True
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
            self._dragging = False
        elif event.type == pygame.MOUSEMOTION:
            if self._dragging:
                self.camera.apply_input(PointerDelta(*event.rel))
            else:
                self.clear_color = cursor_clear_color(
                    event.pos, self.window.size, self.clear_color
                )
        elif event.type == pygame.MOUSEWHEEL:
            self.camera.apply_input(ScrollDelta(event.y))
        elif event.type == pygame.VIDEORESIZE:
            w, h = self.window.size
            if w > 0 and h > 0:
                self.window.ctx.viewport = (0, 0, w, h)
                self.camera.camera.aspect_ratio = w / h

    def draw(self) -> None:
        ctx = self.window.ctx
        ctx.clear(*self.clear_color, depth=1.0)

        program = self.uv_program if self.show_uvs else self.program
        self.uniform.update_view_projection(self.camera.camera)
        program["u_view_proj"].write(self.uniform.to_bytes())

        self.gpu_mesh.render(program)

    def run(self) -> None:
        clock = pygame.time.Clock()
        self.running = True
        try:
            while self.running:
                for event in pygame.event.get():
                    self.process_event(event)
                self.draw()
                self.window.present()
                clock.tick(60)
        finally:
            self.gpu_mesh.release()
            if self.texture is not None:
                self.texture.release()
            self.window.destroy()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="finch", description="View a glTF 2.0 mesh."
    )
    parser.add_argument("asset", type=Path, help="path to a .gltf file")
    parser.add_argument(
        "--texture", type=Path, default=None, help="diffuse texture image"
    )
    parser.add_argument(
        "--mode",
        choices=[m.value for m in CameraMode],
        default=CameraMode.ORBIT.value,
    )
    parser.add_argument(
        "--grid", type=int, default=10, help="instances per side"
    )
    parser.add_argument("--log-level", default="INFO")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings = ViewerSettings(
        instance_grid=args.grid,
        log_level=args.log_level.upper(),
        camera=replace(CameraSettings(), mode=CameraMode(args.mode)),
    )
    logging.basicConfig(
        level=settings.log_level,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    try:
        mesh = GltfImporter().import_file(args.asset)
    except GltfLoadError as e:
        log.error("Cannot view %s: %s", args.asset, e)
        return 1

    texture = None
    if args.texture is not None:
        try:
            texture = TextureImporter().import_file(args.texture)
        except ValueError as e:
            log.error("%s", e)
            return 1

    Viewer(mesh, settings, texture).run()
    return 0
