################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Quality diagnostics for a candidate calibration transform.

All checks run on the original samples, before target poses are rotated
into the reference-aligned frame.

The anchor offset is the target position expressed in the reference
device's local frame, averaged over samples. For a correct calibration it
is constant, so the RMS distance between the transformed target positions
and the reference positions displaced by the anchor offset scores the fit.

The degeneracy check looks at the principal axes of the world-space
reference-to-target offsets. When the motion did not span enough rotation
the offsets collapse onto a plane and the variance along the smallest
principal axis vanishes.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from space_calibrator.calibration_types import QualityReport
from space_calibrator.calibration_types import Sample
from space_calibrator.math_utils.linalg import SO3
from space_calibrator.math_utils.linalg import Linalg
from space_calibrator.math_utils.units import Angle
from space_calibrator.math_utils.units import PhysicalConstants


# Maximum accepted RMS retargeting error, meters
DEFAULT_MAX_RMS_ERROR_M: float = 0.1

# Rotation applied about each axis for the sensitivity diagnostic, degrees
DEFAULT_SENSITIVITY_PERTURBATION_DEG: float = 10.0

# Minimum variance along the smallest principal axis, normalized units
DEFAULT_COPLANAR_AXIS_THRESHOLD: float = 5e-5

_UNIT_AXES: tuple[NDArray[np.float64], ...] = (
    np.array([1.0, 0.0, 0.0], dtype=float),
    np.array([0.0, 1.0, 0.0], dtype=float),
    np.array([0.0, 0.0, 1.0], dtype=float),
)


class QualityValidatorError(Exception):
    """Raised when quality diagnostics cannot be computed."""


def _valid_samples(samples: Sequence[Sample]) -> list[Sample]:
    """Return only the valid samples."""
    valid: list[Sample] = [sample for sample in samples if sample.valid]
    if not valid:
        raise QualityValidatorError("no valid samples to validate")
    return valid


def _transformed_targets(
    samples: Sequence[Sample], R: NDArray[np.float64], t: NDArray[np.float64]
) -> NDArray[np.float64]:
    """Return R * p_target + t for every sample as an N x 3 array."""
    targets: NDArray[np.float64] = np.vstack([s.target.trans for s in samples])
    return targets @ R.T + t


def anchor_offset(
    samples: Sequence[Sample], R: NDArray[np.float64], t: NDArray[np.float64]
) -> NDArray[np.float64]:
    """Return the mean transformed target position in the reference frame."""
    valid: list[Sample] = _valid_samples(samples)
    predicted: NDArray[np.float64] = _transformed_targets(valid, R, t)
    offsets: list[NDArray[np.float64]] = [
        sample.ref.rot.T @ (point - sample.ref.trans)
        for sample, point in zip(valid, predicted)
    ]
    return np.mean(np.vstack(offsets), axis=0)


def rms_error(
    samples: Sequence[Sample], R: NDArray[np.float64], t: NDArray[np.float64]
) -> float:
    """Return the RMS retargeting error of a candidate transform, meters."""
    R_mat: NDArray[np.float64] = Linalg.as_matrix3(R, "R")
    t_vec: NDArray[np.float64] = Linalg.as_vector3(t, "t")
    valid: list[Sample] = _valid_samples(samples)
    offset: NDArray[np.float64] = anchor_offset(valid, R_mat, t_vec)
    predicted: NDArray[np.float64] = _transformed_targets(valid, R_mat, t_vec)
    anchors: NDArray[np.float64] = np.vstack(
        [sample.ref.rot @ offset + sample.ref.trans for sample in valid]
    )
    errors: NDArray[np.float64] = predicted - anchors
    return float(np.sqrt(np.mean(np.sum(errors * errors, axis=1))))


def rotation_sensitivity(
    samples: Sequence[Sample],
    R: NDArray[np.float64],
    t: NDArray[np.float64],
    perturbation_deg: float = DEFAULT_SENSITIVITY_PERTURBATION_DEG,
) -> NDArray[np.float64]:
    """Return the RMS change when R is perturbed about X, Y and Z."""
    angle_rad: float = float(Angle.deg2rad(perturbation_deg))
    baseline: float = rms_error(samples, R, t)
    deltas: list[float] = []
    for axis in _UNIT_AXES:
        R_perturbed: NDArray[np.float64] = SO3.about_axis(axis, angle_rad) @ R
        deltas.append(rms_error(samples, R_perturbed, t) - baseline)
    return np.array(deltas, dtype=float)


def principal_spread(
    samples: Sequence[Sample], R: NDArray[np.float64], t: NDArray[np.float64]
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Return the principal-axis spread of the world-space offsets.

    Offsets (R * p_target + t) - p_ref are normalized by their mean
    magnitude. Eigenvalues of their covariance are ascending, so index 0
    is the smallest principal axis.

    Returns:
        Tuple of the eigenvalues and the variance along each eigenvector
    """
    valid: list[Sample] = _valid_samples(samples)
    predicted: NDArray[np.float64] = _transformed_targets(valid, R, t)
    refs: NDArray[np.float64] = np.vstack([sample.ref.trans for sample in valid])
    points: NDArray[np.float64] = predicted - refs

    mean_norm: float = float(np.mean(np.linalg.norm(points, axis=1)))
    if mean_norm > PhysicalConstants.EPS:
        points = points / mean_norm

    centered: NDArray[np.float64] = points - points.mean(axis=0)
    covariance: NDArray[np.float64] = centered.T @ centered / len(valid)

    eigenvalues: NDArray[np.float64]
    eigenvectors: NDArray[np.float64]
    eigenvalues, eigenvectors = np.linalg.eigh(covariance)

    projected: NDArray[np.float64] = centered @ eigenvectors
    return eigenvalues, np.var(projected, axis=0)


def validate_quality(
    samples: Sequence[Sample],
    R: NDArray[np.float64],
    t: NDArray[np.float64],
    max_rms_error_m: float = DEFAULT_MAX_RMS_ERROR_M,
    perturbation_deg: float = DEFAULT_SENSITIVITY_PERTURBATION_DEG,
    coplanar_axis_threshold: float = DEFAULT_COPLANAR_AXIS_THRESHOLD,
    reject_on_degenerate: bool = False,
) -> QualityReport:
    """Run every quality check on a candidate transform.

    Args:
        samples: Original samples, target poses not rotated
        R: Candidate rotation, target to reference
        t: Candidate translation in meters
        max_rms_error_m: RMS error above which the candidate is rejected
        perturbation_deg: Perturbation angle of the sensitivity diagnostic
        coplanar_axis_threshold: Minimum variance along the smallest axis
        reject_on_degenerate: Also reject near-coplanar sample sets

    Raises:
        QualityValidatorError: No valid samples were provided
    """
    R_mat: NDArray[np.float64] = Linalg.as_matrix3(R, "R")
    t_vec: NDArray[np.float64] = Linalg.as_vector3(t, "t")
    valid: list[Sample] = _valid_samples(samples)

    rms: float = rms_error(valid, R_mat, t_vec)
    eigenvalues: NDArray[np.float64]
    axis_spread: NDArray[np.float64]
    eigenvalues, axis_spread = principal_spread(valid, R_mat, t_vec)
    degenerate: bool = bool(axis_spread[0] < coplanar_axis_threshold)

    rejected: bool = rms > max_rms_error_m or (degenerate and reject_on_degenerate)

    return QualityReport(
        sample_count=len(valid),
        anchor_offset=anchor_offset(valid, R_mat, t_vec),
        rms_error=rms,
        sensitivity=rotation_sensitivity(valid, R_mat, t_vec, perturbation_deg),
        eigenvalues=eigenvalues,
        axis_spread=axis_spread,
        degenerate=degenerate,
        rejected=rejected,
    )
