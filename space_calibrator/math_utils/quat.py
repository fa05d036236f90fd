################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################
"""Quaternion utilities using the wxyz convention."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .linalg import EulerZYX
from .linalg import Linalg
from .units import PhysicalConstants
from .units import assert_finite


@dataclass(frozen=True)
class Quaternion:
    """Unit-agnostic quaternion stored in wxyz order."""

    wxyz: NDArray[np.float64]

    def __post_init__(self) -> None:
        """Validate quaternion storage."""
        wxyz: NDArray[np.float64] = np.asarray(self.wxyz, dtype=float)
        Linalg.ensure_shape(wxyz, (4,), "wxyz")
        assert_finite(wxyz, "wxyz")
        object.__setattr__(self, "wxyz", wxyz)

    @staticmethod
    def from_euler_zyx_deg(angles_deg: NDArray[np.float64]) -> "Quaternion":
        """Create a quaternion from ZYX Euler angles in degrees."""
        return Quaternion.from_matrix(EulerZYX.to_matrix_deg(angles_deg))

    @staticmethod
    def from_matrix(R: NDArray[np.float64]) -> "Quaternion":
        """Create a quaternion from a rotation matrix."""
        m: NDArray[np.float64] = Linalg.as_matrix3(R, "R")
        trace: float = float(np.trace(m))
        # Pick the numerically largest component as the pivot
        pivot: int = -1 if trace > 0.0 else int(np.argmax(np.diag(m)))
        if pivot == -1:
            s: float = 2.0 * float(np.sqrt(trace + 1.0))
            q: NDArray[np.float64] = np.array(
                [
                    0.25 * s,
                    (m[2, 1] - m[1, 2]) / s,
                    (m[0, 2] - m[2, 0]) / s,
                    (m[1, 0] - m[0, 1]) / s,
                ],
                dtype=float,
            )
        elif pivot == 0:
            s = 2.0 * float(np.sqrt(1.0 + m[0, 0] - m[1, 1] - m[2, 2]))
            q = np.array(
                [
                    (m[2, 1] - m[1, 2]) / s,
                    0.25 * s,
                    (m[0, 1] + m[1, 0]) / s,
                    (m[0, 2] + m[2, 0]) / s,
                ],
                dtype=float,
            )
        elif pivot == 1:
            s = 2.0 * float(np.sqrt(1.0 + m[1, 1] - m[0, 0] - m[2, 2]))
            q = np.array(
                [
                    (m[0, 2] - m[2, 0]) / s,
                    (m[0, 1] + m[1, 0]) / s,
                    0.25 * s,
                    (m[1, 2] + m[2, 1]) / s,
                ],
                dtype=float,
            )
        else:
            s = 2.0 * float(np.sqrt(1.0 + m[2, 2] - m[0, 0] - m[1, 1]))
            q = np.array(
                [
                    (m[1, 0] - m[0, 1]) / s,
                    (m[0, 2] + m[2, 0]) / s,
                    (m[1, 2] + m[2, 1]) / s,
                    0.25 * s,
                ],
                dtype=float,
            )
        return Quaternion(q).normalized()

    def normalized(self) -> "Quaternion":
        """Return a normalized quaternion."""
        norm: float = float(np.linalg.norm(self.wxyz))
        if norm < PhysicalConstants.EPS:
            raise ValueError("Quaternion norm is too small")
        return Quaternion(self.wxyz / norm)

    def to_xyzw(self) -> NDArray[np.float64]:
        """Return a copy of the components in the driver's xyzw order."""
        return np.array(
            [self.wxyz[1], self.wxyz[2], self.wxyz[3], self.wxyz[0]], dtype=float
        )
