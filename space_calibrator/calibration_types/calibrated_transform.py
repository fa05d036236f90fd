################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Accepted rigid transform in storage units."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from space_calibrator.calibration_types.transform_request import (
    DeviceTransformRequest,
)
from space_calibrator.math_utils.linalg import EulerZYX
from space_calibrator.math_utils.linalg import Linalg
from space_calibrator.math_utils.quat import Quaternion
from space_calibrator.math_utils.units import Length


@dataclass(frozen=True)
class CalibratedTransform:
    """Target-to-reference transform as stored and displayed.

    The rotation is stored as ZYX Euler angles (a0, a1, a2) in degrees with
    R = Rz(a0) Ry(a1) Rx(a2). Labels follow the calibrator log: yaw is a1,
    pitch is a2 and roll is a0.

    Attributes:
        euler_deg: ZYX Euler angles in degrees
        translation_cm: Translation in centimeters
        scale: Uniform scale factor
    """

    euler_deg: NDArray[np.float64]
    translation_cm: NDArray[np.float64]
    scale: float = 1.0

    def __post_init__(self) -> None:
        """Coerce and validate transform fields."""
        object.__setattr__(
            self, "euler_deg", Linalg.as_vector3(self.euler_deg, "euler_deg")
        )
        object.__setattr__(
            self,
            "translation_cm",
            Linalg.as_vector3(self.translation_cm, "translation_cm"),
        )
        if not np.isfinite(self.scale) or self.scale <= 0.0:
            raise ValueError("scale must be positive and finite")
        object.__setattr__(self, "scale", float(self.scale))

    @staticmethod
    def identity() -> "CalibratedTransform":
        """Return the zero offset."""
        return CalibratedTransform(np.zeros(3), np.zeros(3), 1.0)

    @staticmethod
    def from_rotation(
        R: NDArray[np.float64], translation_m: NDArray[np.float64], scale: float = 1.0
    ) -> "CalibratedTransform":
        """Create a transform from a rotation matrix and a translation in meters."""
        return CalibratedTransform(
            euler_deg=EulerZYX.from_matrix_deg(R),
            translation_cm=Length.m_to_cm(Linalg.as_vector3(translation_m, "t")),
            scale=scale,
        )

    @property
    def yaw_deg(self) -> float:
        return float(self.euler_deg[EulerZYX.YAW_INDEX])

    @property
    def pitch_deg(self) -> float:
        return float(self.euler_deg[EulerZYX.PITCH_INDEX])

    @property
    def roll_deg(self) -> float:
        return float(self.euler_deg[EulerZYX.ROLL_INDEX])

    def rotation_matrix(self) -> NDArray[np.float64]:
        """Return the rotation as a 3x3 matrix."""
        return EulerZYX.to_matrix_deg(self.euler_deg)

    def translation_m(self) -> NDArray[np.float64]:
        """Return the translation in meters."""
        return Length.cm_to_m(self.translation_cm)

    def quaternion(self) -> Quaternion:
        """Return the rotation as a unit quaternion."""
        return Quaternion.from_euler_zyx_deg(self.euler_deg)

    def to_request(self, device_id: str) -> DeviceTransformRequest:
        """Return an enabled driver request applying this transform."""
        return DeviceTransformRequest(
            device_id=device_id,
            enabled=True,
            translation=self.translation_m(),
            rotation_xyzw=self.quaternion().to_xyzw(),
            scale=self.scale,
        )
