################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Kabsch estimate of the target-to-reference rotation."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from space_calibrator.calibration_types import DeltaSample
from space_calibrator.calibration_types import Sample
from space_calibrator.estimation.delta_rotation import DEFAULT_MIN_AXIS_NORM
from space_calibrator.estimation.delta_rotation import DEFAULT_MIN_DELTA_ANGLE_RAD
from space_calibrator.estimation.delta_rotation import pairwise_deltas
from space_calibrator.estimation.estimation_error import (
    UnderdeterminedEstimationError,
)
from space_calibrator.math_utils.linalg import EulerZYX


# Minimum number of valid delta samples for a rotation estimate
DEFAULT_MIN_VALID_DELTAS: int = 3

# Singular values below this fraction of the largest are treated as zero
_RANK_RTOL: float = 1e-9


@dataclass(frozen=True)
class RotationEstimate:
    """Result of the rotation estimator.

    Attributes:
        rotation: 3x3 rotation mapping target axes onto reference axes
        euler_deg: ZYX Euler angles of the rotation in degrees
        delta_count: Number of valid delta samples used
        singular_values: Singular values of the axis cross-covariance
    """

    rotation: NDArray[np.float64]
    euler_deg: NDArray[np.float64]
    delta_count: int
    singular_values: NDArray[np.float64]


def kabsch(
    ref_axes: NDArray[np.float64], target_axes: NDArray[np.float64]
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Return the rotation aligning target_axes onto ref_axes.

    Both inputs are N x 3 and are mean-centered before forming the
    cross-covariance C = ref^T * target = U S V^T. The returned rotation is
    U D V^T, where D flips the last axis when U V^T is a reflection.

    Returns:
        Tuple of the rotation and the singular values of C
    """
    ref_centered: NDArray[np.float64] = ref_axes - ref_axes.mean(axis=0)
    target_centered: NDArray[np.float64] = target_axes - target_axes.mean(axis=0)

    C: NDArray[np.float64] = ref_centered.T @ target_centered
    U: NDArray[np.float64]
    S: NDArray[np.float64]
    Vt: NDArray[np.float64]
    U, S, Vt = np.linalg.svd(C)

    D: NDArray[np.float64] = np.eye(3, dtype=float)
    if np.linalg.det(U @ Vt) < 0.0:
        D[2, 2] = -1.0

    return U @ D @ Vt, S


def estimate_rotation(
    samples: Sequence[Sample],
    min_delta_angle_rad: float = DEFAULT_MIN_DELTA_ANGLE_RAD,
    min_axis_norm: float = DEFAULT_MIN_AXIS_NORM,
    min_valid_deltas: int = DEFAULT_MIN_VALID_DELTAS,
) -> RotationEstimate:
    """Estimate the rotation taking target coordinates into the reference frame.

    Raises:
        UnderdeterminedEstimationError: Too few valid deltas, or the deltas
            span fewer than two independent directions
    """
    deltas: list[DeltaSample] = pairwise_deltas(
        samples, min_delta_angle_rad, min_axis_norm
    )
    if len(deltas) < min_valid_deltas:
        raise UnderdeterminedEstimationError(
            f"{len(deltas)} valid delta samples, need at least {min_valid_deltas}"
        )

    ref_axes: NDArray[np.float64] = np.vstack([d.ref_axis for d in deltas])
    target_axes: NDArray[np.float64] = np.vstack([d.target_axis for d in deltas])

    rotation: NDArray[np.float64]
    singular_values: NDArray[np.float64]
    rotation, singular_values = kabsch(ref_axes, target_axes)

    rank: int = int(
        np.sum(singular_values > _RANK_RTOL * max(singular_values[0], 1.0))
    )
    if rank < 2:
        raise UnderdeterminedEstimationError(
            f"delta axes have rank {rank}, need rotation about two distinct axes"
        )

    return RotationEstimate(
        rotation=rotation,
        euler_deg=EulerZYX.from_matrix_deg(rotation),
        delta_count=len(deltas),
        singular_values=singular_values,
    )
