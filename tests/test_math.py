import math

import numpy as np
import pytest

from finch.math import (
    create_look_at,
    create_perspective_projection,
    cross_vec3,
    norm_vec,
    quaternion_to_matrix,
    spherical_direction,
)
from finch.types import Quaternion, Vector3


def test_spherical_direction_at_rest_looks_down_negative_z():
    assert tuple(spherical_direction(0.0, 0.0)) == pytest.approx(
        (0.0, 0.0, -1.0)
    )


def test_spherical_direction_components():
    yaw, pitch = 0.3, -0.7
    d = spherical_direction(yaw, pitch)

    assert d.x == pytest.approx(math.sin(yaw) * math.cos(pitch))
    assert d.y == pytest.approx(math.sin(pitch))
    assert d.z == pytest.approx(-math.cos(yaw) * math.cos(pitch))
    assert d.magnitude() == pytest.approx(1.0)


def test_cross_is_right_handed():
    x = Vector3(1.0, 0.0, 0.0)
    y = Vector3(0.0, 1.0, 0.0)

    assert cross_vec3(x, y) == Vector3(0.0, 0.0, 1.0)


def test_norm_vec_leaves_zero_vector():
    assert norm_vec(Vector3.zero()) == Vector3.zero()
    assert tuple(norm_vec(Vector3(3.0, 0.0, 4.0))) == pytest.approx(
        (0.6, 0.0, 0.8)
    )


def test_perspective_projection_entries():
    m = create_perspective_projection(90.0, 2.0, 1.0, 3.0)

    assert m[0, 0] == pytest.approx(0.5)
    assert m[1, 1] == pytest.approx(1.0)
    assert m[2, 2] == pytest.approx(-2.0)
    assert m[2, 3] == pytest.approx(-3.0)
    assert m[3, 2] == -1.0


def test_look_at_moves_eye_to_origin():
    eye = Vector3(1.0, 2.0, 3.0)
    view = create_look_at(eye, Vector3(1.0, 2.0, 0.0), Vector3(0.0, 1.0, 0.0))

    np.testing.assert_allclose(
        view @ np.array([1.0, 2.0, 3.0, 1.0]), [0, 0, 0, 1], atol=1e-12
    )
    np.testing.assert_allclose(
        view @ np.array([1.0, 2.0, 0.0, 1.0]), [0, 0, -3, 1]
    )


def test_quaternion_to_matrix_identity():
    np.testing.assert_array_equal(
        quaternion_to_matrix(Quaternion.identity()), np.eye(4)
    )
    np.testing.assert_array_equal(
        quaternion_to_matrix([0.0, 0.0, 0.0, 1.0]), np.eye(4)
    )
