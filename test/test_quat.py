################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################
"""Tests for quaternion conversions."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.typing import NDArray

from space_calibrator.math_utils.linalg import SO3
from space_calibrator.math_utils.quat import Quaternion


def _axis_angle_xyzw(rotvec: NDArray[np.float64]) -> NDArray[np.float64]:
    """Return the expected xyzw components of a rotation vector."""
    angle: float = float(np.linalg.norm(rotvec))
    axis: NDArray[np.float64] = rotvec / angle
    return np.append(axis * np.sin(angle / 2.0), np.cos(angle / 2.0))


def _same_rotation(left: NDArray[np.float64], right: NDArray[np.float64]) -> bool:
    """Compare quaternions up to the sign ambiguity."""
    return bool(
        np.allclose(left, right, atol=1e-8) or np.allclose(left, -right, atol=1e-8)
    )


def test_identity_matrix() -> None:
    """Checks the identity rotation exports with w last."""
    q: Quaternion = Quaternion.from_matrix(np.eye(3))
    assert np.allclose(q.to_xyzw(), [0.0, 0.0, 0.0, 1.0])


def test_from_matrix_every_pivot() -> None:
    """Checks matrix conversion, including rotations near a half turn."""
    for rotvec in (
        np.array([0.1, 0.2, 0.3]),
        np.array([3.0, 0.1, 0.0]),
        np.array([0.0, -3.1, 0.2]),
        np.array([0.1, 0.0, 3.05]),
    ):
        q: Quaternion = Quaternion.from_matrix(SO3.exp(rotvec))
        assert _same_rotation(q.to_xyzw(), _axis_angle_xyzw(rotvec))
        assert np.linalg.norm(q.wxyz) == pytest.approx(1.0)


def test_xyzw_order() -> None:
    """Checks driver-ordered components for a quarter turn about Z."""
    q: Quaternion = Quaternion.from_matrix(
        SO3.about_axis(np.array([0.0, 0.0, 1.0]), np.pi / 2.0)
    )
    half: float = float(np.sqrt(0.5))
    assert _same_rotation(q.to_xyzw(), np.array([0.0, 0.0, half, half]))


def test_from_euler_composes_zyx() -> None:
    """Checks Euler angles compose about Z, then Y, then X."""
    angles_deg: NDArray[np.float64] = np.array([-40.0, 15.0, 120.0])
    a: NDArray[np.float64] = np.deg2rad(angles_deg)
    R: NDArray[np.float64] = (
        SO3.about_axis(np.array([0.0, 0.0, 1.0]), a[0])
        @ SO3.about_axis(np.array([0.0, 1.0, 0.0]), a[1])
        @ SO3.about_axis(np.array([1.0, 0.0, 0.0]), a[2])
    )
    q: Quaternion = Quaternion.from_euler_zyx_deg(angles_deg)
    assert _same_rotation(q.to_xyzw(), Quaternion.from_matrix(R).to_xyzw())


def test_invalid_components() -> None:
    """Checks malformed or zero quaternions are rejected."""
    with pytest.raises(ValueError):
        Quaternion(np.array([1.0, 0.0, 0.0]))
    with pytest.raises(ValueError):
        Quaternion(np.zeros(4)).normalized()
