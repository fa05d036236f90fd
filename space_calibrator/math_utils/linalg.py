################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################
"""Rotation and matrix helpers for rigid-transform estimation."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from .units import Angle
from .units import PhysicalConstants
from .units import assert_finite


# Cosine of the pitch angle below which ZYX Euler extraction is gimbal locked
_GIMBAL_LOCK_EPS: float = 1e-9


class Linalg:
    """General linear algebra helpers."""

    @staticmethod
    def ensure_shape(
        x: NDArray[np.float64], shape: tuple[int, ...], name: str
    ) -> None:
        """Raise ValueError when the array does not have the expected shape."""
        if x.shape != shape:
            raise ValueError(f"{name} must have shape {shape}, got {x.shape}")

    @staticmethod
    def as_vector3(v: NDArray[np.float64], name: str) -> NDArray[np.float64]:
        """Return a finite float64 copy of a 3-vector."""
        vec: NDArray[np.float64] = np.array(v, dtype=float)
        Linalg.ensure_shape(vec, (3,), name)
        assert_finite(vec, name)
        return vec

    @staticmethod
    def as_matrix3(m: NDArray[np.float64], name: str) -> NDArray[np.float64]:
        """Return a finite float64 copy of a 3x3 matrix."""
        mat: NDArray[np.float64] = np.array(m, dtype=float)
        Linalg.ensure_shape(mat, (3, 3), name)
        assert_finite(mat, name)
        return mat


class SO3:
    """SO(3) rotation utilities."""

    @staticmethod
    def hat(w: NDArray[np.float64]) -> NDArray[np.float64]:
        """Return the skew-symmetric matrix for a rotation vector."""
        vec: NDArray[np.float64] = Linalg.as_vector3(w, "w")
        return np.array(
            [
                [0.0, -vec[2], vec[1]],
                [vec[2], 0.0, -vec[0]],
                [-vec[1], vec[0], 0.0],
            ],
            dtype=float,
        )

    @staticmethod
    def exp(w: NDArray[np.float64]) -> NDArray[np.float64]:
        """Exponentiate a rotation vector to a rotation matrix."""
        vec: NDArray[np.float64] = Linalg.as_vector3(w, "w")
        theta: float = float(np.linalg.norm(vec))
        W: NDArray[np.float64] = SO3.hat(vec)
        eye: NDArray[np.float64] = np.eye(3, dtype=float)
        if theta < 1e-8:
            return eye + W + 0.5 * (W @ W)
        A: float = float(np.sin(theta)) / theta
        B: float = (1.0 - float(np.cos(theta))) / (theta * theta)
        return eye + A * W + B * (W @ W)

    @staticmethod
    def about_axis(axis: NDArray[np.float64], angle_rad: float) -> NDArray[np.float64]:
        """Return the rotation of angle_rad about a (not necessarily unit) axis."""
        vec: NDArray[np.float64] = Linalg.as_vector3(axis, "axis")
        norm: float = float(np.linalg.norm(vec))
        if norm < PhysicalConstants.EPS:
            raise ValueError("axis must be non-zero")
        return SO3.exp(vec * (float(angle_rad) / norm))

    @staticmethod
    def axis(R: NDArray[np.float64]) -> NDArray[np.float64]:
        """Return the unnormalized rotation axis of R.

        This is the vector form of the antisymmetric part of R,
        (R21 - R12, R02 - R20, R10 - R01), whose norm is 2 sin(angle).
        """
        mat: NDArray[np.float64] = Linalg.as_matrix3(R, "R")
        return np.array(
            [
                mat[2, 1] - mat[1, 2],
                mat[0, 2] - mat[2, 0],
                mat[1, 0] - mat[0, 1],
            ],
            dtype=float,
        )

    @staticmethod
    def angle(R: NDArray[np.float64]) -> float:
        """Return the rotation angle of a rotation matrix in radians."""
        mat: NDArray[np.float64] = Linalg.as_matrix3(R, "R")
        cos_theta: float = float((np.trace(mat) - 1.0) * 0.5)
        return float(np.arccos(np.clip(cos_theta, -1.0, 1.0)))


class EulerZYX:
    """ZYX intrinsic Euler angles.

    Angles (a0, a1, a2) describe R = Rz(a0) * Ry(a1) * Rx(a2). When reported
    to the operator, a0 is labeled roll, a1 yaw and a2 pitch.
    """

    YAW_INDEX: int = 1
    PITCH_INDEX: int = 2
    ROLL_INDEX: int = 0

    @staticmethod
    def to_matrix(angles_rad: NDArray[np.float64]) -> NDArray[np.float64]:
        """Compose Rz(a0) * Ry(a1) * Rx(a2)."""
        a: NDArray[np.float64] = Linalg.as_vector3(angles_rad, "angles_rad")
        Rz: NDArray[np.float64] = SO3.exp(np.array([0.0, 0.0, a[0]], dtype=float))
        Ry: NDArray[np.float64] = SO3.exp(np.array([0.0, a[1], 0.0], dtype=float))
        Rx: NDArray[np.float64] = SO3.exp(np.array([a[2], 0.0, 0.0], dtype=float))
        return Rz @ Ry @ Rx

    @staticmethod
    def from_matrix(R: NDArray[np.float64]) -> NDArray[np.float64]:
        """Decompose a rotation matrix into (a0, a1, a2) in radians.

        a1 lies in [-pi/2, pi/2]. At gimbal lock a2 is set to zero.
        """
        mat: NDArray[np.float64] = Linalg.as_matrix3(R, "R")
        sin_a1: float = float(np.clip(-mat[2, 0], -1.0, 1.0))
        a1: float = float(np.arcsin(sin_a1))
        cos_a1: float = float(np.hypot(mat[0, 0], mat[1, 0]))
        if cos_a1 > _GIMBAL_LOCK_EPS:
            a0: float = float(np.arctan2(mat[1, 0], mat[0, 0]))
            a2: float = float(np.arctan2(mat[2, 1], mat[2, 2]))
        else:
            a0 = float(np.arctan2(-mat[0, 1], mat[1, 1]))
            a2 = 0.0
        return np.array([a0, a1, a2], dtype=float)

    @staticmethod
    def to_matrix_deg(angles_deg: NDArray[np.float64]) -> NDArray[np.float64]:
        """Compose a rotation from ZYX Euler angles in degrees."""
        return EulerZYX.to_matrix(
            np.asarray(Angle.deg2rad(np.asarray(angles_deg, dtype=float)))
        )

    @staticmethod
    def from_matrix_deg(R: NDArray[np.float64]) -> NDArray[np.float64]:
        """Decompose a rotation matrix into ZYX Euler angles in degrees."""
        return np.asarray(Angle.rad2deg(EulerZYX.from_matrix(R)), dtype=float)
