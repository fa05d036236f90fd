################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Rigid pose captured from a tracking runtime."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from space_calibrator.math_utils.linalg import Linalg
from space_calibrator.math_utils.units import assert_finite


@dataclass(frozen=True)
class Pose:
    """Rotation and translation of a tracked object.

    Attributes:
        rot: 3x3 orthonormal rotation, device to tracking space
        trans: Translation in the tracking runtime's length unit (meters)
    """

    rot: NDArray[np.float64]
    trans: NDArray[np.float64]

    def __post_init__(self) -> None:
        """Coerce and validate pose components."""
        rot: NDArray[np.float64] = Linalg.as_matrix3(self.rot, "rot")
        trans: NDArray[np.float64] = Linalg.as_vector3(self.trans, "trans")
        rot.setflags(write=False)
        trans.setflags(write=False)
        object.__setattr__(self, "rot", rot)
        object.__setattr__(self, "trans", trans)

    @staticmethod
    def identity() -> "Pose":
        """Return the identity pose."""
        return Pose(np.eye(3, dtype=float), np.zeros(3, dtype=float))

    @staticmethod
    def from_matrix34(m: NDArray[np.float64]) -> "Pose":
        """Create a pose from a 3x4 device-to-tracking transform."""
        mat: NDArray[np.float64] = np.asarray(m, dtype=float)
        Linalg.ensure_shape(mat, (3, 4), "m")
        assert_finite(mat, "m")
        return Pose(mat[:, :3], mat[:, 3])

    @staticmethod
    def from_translation(x: float, y: float, z: float) -> "Pose":
        """Create a pose at literal coordinates with identity rotation."""
        return Pose(np.eye(3, dtype=float), np.array([x, y, z], dtype=float))

    def as_matrix34(self) -> NDArray[np.float64]:
        """Return the 3x4 transform representation."""
        return np.hstack([self.rot, self.trans.reshape(3, 1)])

    def rotated(self, R: NDArray[np.float64]) -> "Pose":
        """Return a copy with rotation and translation pre-multiplied by R."""
        R_mat: NDArray[np.float64] = Linalg.as_matrix3(R, "R")
        return Pose(R_mat @ self.rot, R_mat @ self.trans)
