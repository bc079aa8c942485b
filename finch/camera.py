# finch/camera.py
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Union

import numpy as np

from finch.math import (
    DEPTH_REMAP,
    create_look_at,
    create_perspective_projection,
    spherical_direction,
)
from finch.settings import CameraMode, CameraSettings
from finch.types import Vector3

log = logging.getLogger("finch")

# Keeps forward away from the world up axis.
MAX_PITCH = math.radians(89.0)


@dataclass(slots=True)
class Camera:
    """
    Pinhole camera. `forward` and `up` are unit length; the interaction
    modes keep them that way, the camera itself never re-normalizes.
    """

    position: Vector3
    forward: Vector3
    up: Vector3
    aspect_ratio: float
    fov_vertical: float  # degrees
    znear: float
    zfar: float

    def view_matrix(self) -> np.ndarray:
        return create_look_at(
            self.position, self.position + self.forward, self.up
        )

    def projection_matrix(self) -> np.ndarray:
        return create_perspective_projection(
            self.fov_vertical, self.aspect_ratio, self.znear, self.zfar
        )

    def derive_view_projection(self) -> np.ndarray:
        """
        Clip-space transform with [0, 1] depth: remap * projection * view.
        Column-vector convention, so `m @ [x, y, z, 1]` gives clip coords.
        """
        return DEPTH_REMAP @ self.projection_matrix() @ self.view_matrix()


class CameraUniform:
    """
    Per-frame uniform payload. `view_proj[i]` holds column i of the
    view-projection matrix, which is the memory order a shader mat4 reads.
    """

    def __init__(self) -> None:
        self.view_proj = np.eye(4, dtype=np.float32)

    def update_view_projection(self, camera: Camera) -> None:
        self.view_proj = np.ascontiguousarray(
            camera.derive_view_projection().T, dtype=np.float32
        )

    def as_floats(self) -> List[float]:
        return [float(v) for v in self.view_proj.reshape(-1)]

    def to_bytes(self) -> bytes:
        return self.view_proj.astype("<f4", copy=False).tobytes()


@dataclass(frozen=True, slots=True)
class PointerDelta:
    """Cursor travel in screen pixels since the previous event."""

    dx: float
    dy: float


@dataclass(frozen=True, slots=True)
class ScrollDelta:
    """Signed scroll distance in lines."""

    dz: float


InputEvent = Union[PointerDelta, ScrollDelta]


class InteractiveCamera:
    """
    A Camera driven by pointer input in one of two modes, chosen at
    construction:

    FREE_LOOK turns the view direction in place. Position is left to the
    caller.

    ORBIT keeps the camera on a sphere of radius `offset` around `pivot`,
    always facing it. Dragging moves the eye around the pivot, so yaw and
    pitch change with the opposite sign of free-look. Scrolling scales the
    radius by (1 - zoom_rate * dz), never below `min_offset`.
    """

    def __init__(
        self,
        mode: CameraMode,
        camera: Camera,
        yaw: float = 0.0,
        pitch: float = 0.0,
        pivot: Optional[Vector3] = None,
        offset: float = 0.0,
        sensitivity: float = 0.5,
        zoom_rate: float = 0.2,
        min_offset: float = 0.05,
    ) -> None:
        self.mode = CameraMode(mode)
        self.camera = camera
        self.yaw = yaw
        self.pitch = pitch
        self.pivot = pivot if pivot is not None else Vector3.zero()
        self.offset = offset
        self.sensitivity = sensitivity
        self.zoom_rate = zoom_rate
        self.min_offset = min_offset

        self._refresh_forward()
        if self.mode is CameraMode.ORBIT:
            self._refresh_position()

    @classmethod
    def free_look(
        cls, camera: Camera, yaw: float = 0.0, pitch: float = 0.0, **kwargs
    ) -> InteractiveCamera:
        return cls(CameraMode.FREE_LOOK, camera, yaw, pitch, **kwargs)

    @classmethod
    def orbit(
        cls,
        camera: Camera,
        pivot: Vector3,
        offset: float,
        yaw: float = 0.0,
        pitch: float = 0.0,
        **kwargs,
    ) -> InteractiveCamera:
        return cls(
            CameraMode.ORBIT,
            camera,
            yaw,
            pitch,
            pivot=pivot,
            offset=offset,
            **kwargs,
        )

    @classmethod
    def from_settings(
        cls, settings: CameraSettings, aspect_ratio: float
    ) -> InteractiveCamera:
        camera = Camera(
            position=settings.position,
            forward=Vector3(0.0, 0.0, -1.0),
            up=Vector3(0.0, 1.0, 0.0),
            aspect_ratio=aspect_ratio,
            fov_vertical=settings.fov_vertical,
            znear=settings.znear,
            zfar=settings.zfar,
        )
        return cls(
            settings.mode,
            camera,
            yaw=math.radians(settings.yaw),
            pitch=math.radians(settings.pitch),
            pivot=settings.pivot,
            offset=settings.offset,
            sensitivity=settings.sensitivity,
            zoom_rate=settings.zoom_rate,
            min_offset=settings.min_offset,
        )

    def apply_input(self, event: InputEvent) -> None:
        if isinstance(event, PointerDelta):
            self._rotate(event.dx, event.dy)
        elif isinstance(event, ScrollDelta):
            self._zoom(event.dz)
        else:
            raise TypeError(
                f"event must be PointerDelta or ScrollDelta, "
                f"not {type(event).__name__}"
            )

    def update(self, dx: float, dy: float) -> None:
        """Pointer motion for this camera's mode."""
        self.apply_input(PointerDelta(dx, dy))

    def handle_drag(self, dx: float, dy: float) -> None:
        self.apply_input(PointerDelta(dx, dy))

    def handle_scroll(self, dz: float) -> None:
        self.apply_input(ScrollDelta(dz))

    def derive_view_projection(self) -> np.ndarray:
        return self.camera.derive_view_projection()

    def _rotate(self, dx: float, dy: float) -> None:
        step = math.radians(1.0) * self.sensitivity

        if self.mode is CameraMode.FREE_LOOK:
            self.yaw -= dx * step
            self.pitch += dy * step
        else:
            self.yaw += dx * step
            self.pitch -= dy * step

        self._refresh_forward()
        if self.mode is CameraMode.ORBIT:
            self._refresh_position()

    def _zoom(self, dz: float) -> None:
        if self.mode is not CameraMode.ORBIT:
            return

        self.offset = max(
            self.offset - self.offset * self.zoom_rate * dz, self.min_offset
        )
        self._refresh_position()
        log.debug("Orbit offset %.4f", self.offset)

    def _refresh_forward(self) -> None:
        self.pitch = min(max(self.pitch, -MAX_PITCH), MAX_PITCH)
        self.camera.forward = spherical_direction(self.yaw, self.pitch)

    def _refresh_position(self) -> None:
        self.camera.position = self.pivot - self.camera.forward * self.offset
