################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Logical request pushing a device offset to the driver."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field

import numpy as np
from numpy.typing import NDArray

from space_calibrator.math_utils.units import assert_finite


@dataclass(frozen=True)
class DeviceTransformRequest:
    """Offset applied by the driver to one device's reported pose.

    Attributes:
        device_id: Runtime identifier of the device
        enabled: False clears the offset
        translation: Offset translation in meters
        rotation_xyzw: Offset rotation quaternion in (x, y, z, w) order
        scale: Uniform scale factor
    """

    device_id: str
    enabled: bool
    translation: NDArray[np.float64] = field(
        default_factory=lambda: np.zeros(3, dtype=float)
    )
    rotation_xyzw: NDArray[np.float64] = field(
        default_factory=lambda: np.array([0.0, 0.0, 0.0, 1.0], dtype=float)
    )
    scale: float = 1.0

    def __post_init__(self) -> None:
        """Validate request fields."""
        if not isinstance(self.device_id, str) or not self.device_id:
            raise ValueError("device_id must be a non-empty str")
        if not isinstance(self.enabled, bool):
            raise ValueError("enabled must be a bool")
        translation: NDArray[np.float64] = np.array(self.translation, dtype=float)
        rotation_xyzw: NDArray[np.float64] = np.array(self.rotation_xyzw, dtype=float)
        if translation.shape != (3,):
            raise ValueError("translation must have shape (3,)")
        if rotation_xyzw.shape != (4,):
            raise ValueError("rotation_xyzw must have shape (4,)")
        assert_finite(translation, "translation")
        assert_finite(rotation_xyzw, "rotation_xyzw")
        if not np.isfinite(self.scale) or self.scale <= 0.0:
            raise ValueError("scale must be positive and finite")
        object.__setattr__(self, "translation", translation)
        object.__setattr__(self, "rotation_xyzw", rotation_xyzw)
        object.__setattr__(self, "scale", float(self.scale))

    @staticmethod
    def disabled(device_id: str) -> "DeviceTransformRequest":
        """Return a request clearing the device's offset."""
        return DeviceTransformRequest(device_id=device_id, enabled=False)
