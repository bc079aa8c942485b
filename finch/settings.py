# finch/settings.py
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from finch.types import Color3, Resolution, Vector3


class CameraMode(str, Enum):
    """Interaction mode of the viewer camera. Fixed for a session."""

    FREE_LOOK = "free_look"
    ORBIT = "orbit"


@dataclass(frozen=True, slots=True)
class CameraSettings:
    """Intrinsics and interaction policy for the viewer camera."""

    mode: CameraMode = CameraMode.ORBIT
    fov_vertical: float = 45.0
    znear: float = 0.1
    zfar: float = 100.0

    # Free-look start position. Orbit places the eye from pivot and offset.
    position: Vector3 = Vector3(0.0, 0.0, 2.0)
    pivot: Vector3 = Vector3(0.0, 0.0, 0.0)
    offset: float = 2.0
    yaw: float = 0.0
    pitch: float = 0.0

    # Degrees of rotation per pixel of pointer travel.
    sensitivity: float = 0.5
    # Fraction of the orbit distance removed per scroll line.
    zoom_rate: float = 0.2
    min_offset: float = 0.05


@dataclass(frozen=True, slots=True)
class ViewerSettings:
    """Window and scene policy for the demo viewer."""

    resolution: Resolution = (1280, 720)
    title: str = "finch"
    clear_color: Color3 = (0.1, 0.2, 0.3)
    instance_grid: int = 10
    instance_spacing: float = 1.0
    log_level: str = "INFO"
    camera: CameraSettings = field(default_factory=CameraSettings)
