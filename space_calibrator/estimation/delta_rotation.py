################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Relative rotation axes observed by two rigidly coupled devices.

Two rigidly coupled devices rotate together, so the axis of the rotation
each one underwent between two observations is the same physical axis
expressed in two different frames. Small relative rotations yield
numerically meaningless axes and are rejected.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from space_calibrator.calibration_types import DeltaSample
from space_calibrator.calibration_types import Sample
from space_calibrator.math_utils.linalg import SO3


# Minimum relative rotation of each device between two samples, radians
DEFAULT_MIN_DELTA_ANGLE_RAD: float = 0.4

# Minimum magnitude of the raw (unnormalized) rotation axis, unitless
DEFAULT_MIN_AXIS_NORM: float = 0.01


def relative_rotation(
    R1: NDArray[np.float64], R2: NDArray[np.float64]
) -> NDArray[np.float64]:
    """Return R1 * R2^T, the rotation taking the second pose to the first."""
    return R1 @ R2.T


def extract_delta(
    s1: Sample,
    s2: Sample,
    min_angle_rad: float = DEFAULT_MIN_DELTA_ANGLE_RAD,
    min_axis_norm: float = DEFAULT_MIN_AXIS_NORM,
) -> DeltaSample:
    """Return the common rotation axis between two samples.

    The result is invalid when either sample is invalid, when either device
    rotated by no more than min_angle_rad, or when either raw axis is shorter
    than min_axis_norm. Axes are normalized only for valid results.
    """
    d_ref: NDArray[np.float64] = relative_rotation(s1.ref.rot, s2.ref.rot)
    d_target: NDArray[np.float64] = relative_rotation(s1.target.rot, s2.target.rot)

    ref_axis: NDArray[np.float64] = SO3.axis(d_ref)
    target_axis: NDArray[np.float64] = SO3.axis(d_target)

    if not (s1.valid and s2.valid):
        return DeltaSample(ref_axis, target_axis, valid=False)

    ref_norm: float = float(np.linalg.norm(ref_axis))
    target_norm: float = float(np.linalg.norm(target_axis))

    valid: bool = (
        SO3.angle(d_ref) > min_angle_rad
        and SO3.angle(d_target) > min_angle_rad
        and ref_norm > min_axis_norm
        and target_norm > min_axis_norm
    )
    if not valid:
        return DeltaSample(ref_axis, target_axis, valid=False)

    return DeltaSample(ref_axis / ref_norm, target_axis / target_norm, valid=True)


def pairwise_deltas(
    samples: Sequence[Sample],
    min_angle_rad: float = DEFAULT_MIN_DELTA_ANGLE_RAD,
    min_axis_norm: float = DEFAULT_MIN_AXIS_NORM,
) -> list[DeltaSample]:
    """Return the valid deltas over every unordered pair (i > j) of samples."""
    deltas: list[DeltaSample] = []
    for i in range(len(samples)):
        for j in range(i):
            delta: DeltaSample = extract_delta(
                samples[i], samples[j], min_angle_rad, min_axis_norm
            )
            if delta.valid:
                deltas.append(delta)
    return deltas
