################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Durable accepted calibration result."""

from __future__ import annotations

from dataclasses import dataclass

from space_calibrator.calibration_types.boundary import BoundaryGeometry
from space_calibrator.calibration_types.calibrated_transform import (
    CalibratedTransform,
)


@dataclass(frozen=True)
class Profile:
    """Accepted calibration for a reference/target tracking-system pair.

    Attributes:
        reference_tracking_system: Tracking-system name of the reference rig
        target_tracking_system: Tracking-system name of the target rig
        transform: Accepted target-to-reference transform
        enabled: False keeps the profile stored without applying it
        auto_apply_boundary: Reapply boundary geometry after external resets
        boundary: Captured boundary geometry when available
    """

    reference_tracking_system: str
    target_tracking_system: str
    transform: CalibratedTransform
    enabled: bool = True
    auto_apply_boundary: bool = False
    boundary: BoundaryGeometry | None = None

    def __post_init__(self) -> None:
        """Validate profile fields."""
        if not isinstance(self.reference_tracking_system, str):
            raise ValueError("reference_tracking_system must be a str")
        if not isinstance(self.target_tracking_system, str):
            raise ValueError("target_tracking_system must be a str")
        if not isinstance(self.transform, CalibratedTransform):
            raise ValueError("transform must be a CalibratedTransform")
        if not isinstance(self.enabled, bool):
            raise ValueError("enabled must be a bool")
        if not isinstance(self.auto_apply_boundary, bool):
            raise ValueError("auto_apply_boundary must be a bool")
        if self.boundary is not None and not isinstance(
            self.boundary, BoundaryGeometry
        ):
            raise ValueError("boundary must be a BoundaryGeometry or None")
