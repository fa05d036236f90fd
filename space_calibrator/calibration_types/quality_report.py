################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Diagnostics computed for a candidate calibration."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from space_calibrator.math_utils.linalg import Linalg


@dataclass(frozen=True)
class QualityReport:
    """Quality diagnostics for a candidate transform.

    Attributes:
        sample_count: Number of valid samples evaluated
        anchor_offset: Mean target position in the reference device frame
        rms_error: RMS retargeting error in meters
        sensitivity: RMS change for perturbations about X, Y and Z, meters
        eigenvalues: Ascending eigenvalues of the normalized offset covariance
        axis_spread: Variance along each eigenbasis axis
        degenerate: True when the motion was judged near-coplanar
        rejected: True when the candidate must not be accepted
    """

    sample_count: int
    anchor_offset: NDArray[np.float64]
    rms_error: float
    sensitivity: NDArray[np.float64]
    eigenvalues: NDArray[np.float64]
    axis_spread: NDArray[np.float64]
    degenerate: bool
    rejected: bool

    def __post_init__(self) -> None:
        """Validate report fields."""
        if not isinstance(self.sample_count, int) or isinstance(
            self.sample_count, bool
        ):
            raise ValueError("sample_count must be an int")
        if self.sample_count < 0:
            raise ValueError("sample_count must be non-negative")
        for name in ("anchor_offset", "sensitivity", "eigenvalues", "axis_spread"):
            object.__setattr__(
                self, name, Linalg.as_vector3(getattr(self, name), name)
            )
        if not np.isfinite(self.rms_error) or self.rms_error < 0.0:
            raise ValueError("rms_error must be non-negative and finite")
        object.__setattr__(self, "rms_error", float(self.rms_error))
        if not isinstance(self.degenerate, bool):
            raise ValueError("degenerate must be a bool")
        if not isinstance(self.rejected, bool):
            raise ValueError("rejected must be a bool")

    @property
    def accepted(self) -> bool:
        return not self.rejected
