################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Estimation and validation of one set of collected samples."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from space_calibrator.calibration_types import CalibratedTransform
from space_calibrator.calibration_types import QualityReport
from space_calibrator.calibration_types import Sample
from space_calibrator.config.calibration_params import CalibrationParams
from space_calibrator.estimation.rotation_estimator import RotationEstimate
from space_calibrator.estimation.rotation_estimator import estimate_rotation
from space_calibrator.estimation.translation_estimator import TranslationEstimate
from space_calibrator.estimation.translation_estimator import estimate_translation
from space_calibrator.validation.quality_validator import validate_quality


@dataclass(frozen=True)
class CalibrationResult:
    """Candidate transform and its diagnostics.

    Attributes:
        rotation: Rotation estimate
        translation: Translation estimate, solved in the aligned frame
        report: Quality diagnostics on the original samples
        transform: Candidate transform in storage units
    """

    rotation: RotationEstimate
    translation: TranslationEstimate
    report: QualityReport
    transform: CalibratedTransform

    @property
    def accepted(self) -> bool:
        return not self.report.rejected


def solve_calibration(
    samples: Sequence[Sample], params: CalibrationParams
) -> CalibrationResult:
    """Estimate the target-to-reference transform and score it.

    Raises:
        UnderdeterminedEstimationError: The samples do not constrain the
            rotation or the translation
    """
    rotation: RotationEstimate = estimate_rotation(
        samples,
        min_delta_angle_rad=params.estimation.min_delta_angle_rad,
        min_axis_norm=params.estimation.min_axis_norm,
        min_valid_deltas=params.estimation.min_valid_deltas,
    )

    # Translation is solved with target poses rotated into the reference frame
    aligned: list[Sample] = [
        sample.with_target(sample.target.rotated(rotation.rotation))
        for sample in samples
    ]
    translation: TranslationEstimate = estimate_translation(
        aligned, min_sample_pairs=params.estimation.min_sample_pairs
    )

    report: QualityReport = validate_quality(
        samples,
        rotation.rotation,
        translation.translation_m,
        max_rms_error_m=params.validation.max_rms_error_m,
        perturbation_deg=params.validation.sensitivity_perturbation_deg,
        coplanar_axis_threshold=params.validation.coplanar_axis_threshold,
        reject_on_degenerate=params.validation.reject_on_degenerate,
    )

    return CalibrationResult(
        rotation=rotation,
        translation=translation,
        report=report,
        transform=CalibratedTransform.from_rotation(
            rotation.rotation, translation.translation_m
        ),
    )
