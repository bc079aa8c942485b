# finch/math.py
import math
from typing import Union

import numpy as np

from finch.types import Quaternion, Scalar, Vector3

# Maps OpenGL clip depth [-1, 1] onto the [0, 1] range of the target API.
# z' = 0.5 * z + 0.5 * w
DEPTH_REMAP = np.array(
    [
        [1.0, 0.0, 0.0, 0.0],
        [0.0, 1.0, 0.0, 0.0],
        [0.0, 0.0, 0.5, 0.5],
        [0.0, 0.0, 0.0, 1.0],
    ],
    dtype=np.float64,
)
DEPTH_REMAP.setflags(write=False)


def dot_vec(a: Vector3, b: Vector3) -> Scalar:
    return sum(x * y for x, y in zip(a, b))


def cross_vec3(a: Vector3, b: Vector3) -> Vector3:
    return Vector3(
        a.y * b.z - a.z * b.y,
        a.z * b.x - a.x * b.z,
        a.x * b.y - a.y * b.x,
    )


def norm_vec(v: Vector3) -> Vector3:
    mag = v.magnitude()
    if mag == 0:
        return v
    return v * (1.0 / mag)


def spherical_direction(yaw: Scalar, pitch: Scalar) -> Vector3:
    """
    Unit direction for a yaw/pitch pair (radians).
    yaw = 0, pitch = 0 looks down -Z.
    """
    cos_p = math.cos(pitch)
    return Vector3(
        math.sin(yaw) * cos_p,
        math.sin(pitch),
        -math.cos(yaw) * cos_p,
    )


def quaternion_to_matrix(q: Union[Quaternion, np.ndarray, list]) -> np.ndarray:
    """
    Converts a single quaternion into a 4x4 Rotation Matrix.
    q: Quaternion object (x,y,z,w) or array-like [x,y,z,w].
    """
    if isinstance(q, Quaternion):
        x, y, z, w = q.x, q.y, q.z, q.w
    else:
        x, y, z, w = q[0], q[1], q[2], q[3]

    xx, yy, zz = x * x, y * y, z * z
    xy, xz, yz = x * y, x * z, y * z
    wx, wy, wz = w * x, w * y, w * z

    mat = np.eye(4, dtype=np.float32)

    mat[0, 0] = 1.0 - 2.0 * (yy + zz)
    mat[0, 1] = 2.0 * (xy - wz)
    mat[0, 2] = 2.0 * (xz + wy)

    mat[1, 0] = 2.0 * (xy + wz)
    mat[1, 1] = 1.0 - 2.0 * (xx + zz)
    mat[1, 2] = 2.0 * (yz - wx)

    mat[2, 0] = 2.0 * (xz - wy)
    mat[2, 1] = 2.0 * (yz + wx)
    mat[2, 2] = 1.0 - 2.0 * (xx + yy)

    return mat


def create_translation(pos: Union[Vector3, np.ndarray]) -> np.ndarray:
    mat = np.eye(4, dtype=np.float32)
    mat[0, 3] = pos[0]
    mat[1, 3] = pos[1]
    mat[2, 3] = pos[2]
    return mat


def create_look_at(eye: Vector3, target: Vector3, up: Vector3) -> np.ndarray:
    """
    Right-handed look-at View Matrix (World -> Camera Space).
    Column-vector convention: translation lives in the last column.
    """
    f = norm_vec(target - eye)
    s = norm_vec(cross_vec3(f, up))
    u = cross_vec3(s, f)

    return np.array(
        [
            [s.x, s.y, s.z, -dot_vec(s, eye)],
            [u.x, u.y, u.z, -dot_vec(u, eye)],
            [-f.x, -f.y, -f.z, dot_vec(f, eye)],
            [0.0, 0.0, 0.0, 1.0],
        ],
        dtype=np.float64,
    )


def create_perspective_projection(
    fov_deg: float, aspect: float, near: float, far: float
) -> np.ndarray:
    """
    Creates a standard OpenGL Perspective Projection Matrix.
    fov_deg: Field of View in Degrees (Vertical)
    aspect: Width / Height
    near: Distance to near plane
    far: Distance to far plane
    """
    tan_half_fov = math.tan(math.radians(fov_deg) / 2.0)

    mat = np.zeros((4, 4), dtype=np.float64)

    # Scale X (Width)
    mat[0, 0] = 1.0 / (aspect * tan_half_fov)

    # Scale Y (Height)
    mat[1, 1] = 1.0 / tan_half_fov

    # Remap Z (Depth)
    mat[2, 2] = (far + near) / (near - far)
    mat[2, 3] = (2.0 * far * near) / (near - far)

    # Perspective Division (w = -z)
    mat[3, 2] = -1.0

    return mat
