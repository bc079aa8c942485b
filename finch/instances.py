# finch/instances.py
import math
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from finch.math import create_translation, quaternion_to_matrix
from finch.types import Quaternion, Vector3

INSTANCE_FORMAT = "16f /i"
INSTANCE_ATTRIBUTES = ["i_model"]


@dataclass(frozen=True, slots=True)
class Instance:
    """One placement of a mesh: translation plus unit quaternion."""

    position: Vector3
    rotation: Quaternion

    def to_matrix(self) -> np.ndarray:
        """T * R, column-vector convention."""
        return create_translation(self.position) @ quaternion_to_matrix(
            self.rotation
        )

    def to_data(self) -> np.ndarray:
        """
        Upload layout: row i of the result is column i of the transform,
        i.e. four vec4 attributes read as a column-major mat4.
        """
        return np.ascontiguousarray(self.to_matrix().T, dtype=np.float32)


def instance_grid(size: int = 10, spacing: float = 1.0) -> List[Instance]:
    """
    size x size instances on the XZ plane, centered on the origin, each
    turned x * z degrees about +Y.
    """
    half = size / 2.0
    axis = Vector3(0.0, 1.0, 0.0)
    instances = []
    for x in range(size):
        for z in range(size):
            position = Vector3((x - half) * spacing, 0.0, (z - half) * spacing)
            rotation = Quaternion.from_axis_angle(axis, math.radians(x * z))
            instances.append(Instance(position, rotation))
    return instances


def instances_to_array(instances: Sequence[Instance]) -> np.ndarray:
    """(N, 4, 4) float32, one to_data() block per instance."""
    if not instances:
        return np.empty((0, 4, 4), dtype=np.float32)
    return np.stack([inst.to_data() for inst in instances])


def instances_to_bytes(instances: Sequence[Instance]) -> bytes:
    return instances_to_array(instances).astype("<f4", copy=False).tobytes()
