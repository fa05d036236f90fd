################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Paired reference/target observations and their rotation deltas."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from space_calibrator.calibration_types.pose import Pose
from space_calibrator.math_utils.linalg import Linalg


@dataclass(frozen=True)
class Sample:
    """Reference and target poses observed during the same tick.

    Attributes:
        ref: Pose reported by the reference tracking system
        target: Pose reported by the target tracking system
        valid: False when either pose was untracked at capture time
    """

    ref: Pose
    target: Pose
    valid: bool = True

    def __post_init__(self) -> None:
        """Validate sample fields."""
        if not isinstance(self.ref, Pose) or not isinstance(self.target, Pose):
            raise ValueError("ref and target must be Pose instances")
        if not isinstance(self.valid, bool):
            raise ValueError("valid must be a bool")

    @staticmethod
    def invalid() -> "Sample":
        """Return a placeholder sample that never contributes to estimates."""
        return Sample(ref=Pose.identity(), target=Pose.identity(), valid=False)

    def with_target(self, target: Pose) -> "Sample":
        """Return a copy with the target pose replaced."""
        return Sample(ref=self.ref, target=target, valid=self.valid)


@dataclass(frozen=True)
class DeltaSample:
    """Common rotation axis observed by both devices between two samples.

    Attributes:
        ref_axis: Unit rotation axis of the reference device
        target_axis: Unit rotation axis of the target device
        valid: True when both devices rotated enough to measure the axis
    """

    ref_axis: NDArray[np.float64]
    target_axis: NDArray[np.float64]
    valid: bool

    def __post_init__(self) -> None:
        """Coerce axis arrays."""
        object.__setattr__(
            self, "ref_axis", Linalg.as_vector3(self.ref_axis, "ref_axis")
        )
        object.__setattr__(
            self, "target_axis", Linalg.as_vector3(self.target_axis, "target_axis")
        )
        if not isinstance(self.valid, bool):
            raise ValueError("valid must be a bool")
