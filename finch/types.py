# finch/types.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Tuple, TypeAlias

Scalar: TypeAlias = float

Color3 = Tuple[float, float, float]
Resolution = Tuple[int, int]


@dataclass(frozen=True, slots=True)
class Vector3:
    x: Scalar
    y: Scalar
    z: Scalar

    @staticmethod
    def zero() -> Vector3:
        return Vector3(0.0, 0.0, 0.0)

    def __iter__(self) -> Iterator[Scalar]:
        yield self.x
        yield self.y
        yield self.z

    def __add__(self, other: Vector3) -> Vector3:
        return Vector3(
            self.x + other.x,
            self.y + other.y,
            self.z + other.z,
        )

    def __sub__(self, other: Vector3) -> Vector3:
        return Vector3(
            self.x - other.x,
            self.y - other.y,
            self.z - other.z,
        )

    def __mul__(self, scalar: float) -> Vector3:
        return Vector3(
            self.x * scalar,
            self.y * scalar,
            self.z * scalar,
        )

    def magnitude(self) -> Scalar:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def __getitem__(self, index: int) -> Scalar:
        if isinstance(index, int):
            if index == 0:
                return self.x
            if index == 1:
                return self.y
            if index == 2:
                return self.z
            raise IndexError(index)

        raise TypeError(
            f"indices must be int, not {type(index).__name__}"
        )


@dataclass(frozen=True, slots=True)
class Quaternion:
    x: Scalar
    y: Scalar
    z: Scalar
    w: Scalar

    def __iter__(self) -> Iterator[Scalar]:
        yield self.x
        yield self.y
        yield self.z
        yield self.w

    @staticmethod
    def identity() -> Quaternion:
        return Quaternion(0.0, 0.0, 0.0, 1.0)

    @staticmethod
    def from_axis_angle(axis: Vector3, angle: float) -> Quaternion:
        """
        Rotation of `angle` radians about `axis`.
        The axis is expected to be unit length.
        """
        half = angle * 0.5
        s = math.sin(half)
        return Quaternion(axis.x * s, axis.y * s, axis.z * s, math.cos(half))


@dataclass(frozen=True, slots=True)
class BoundingBox3D:
    min: Vector3
    max: Vector3
