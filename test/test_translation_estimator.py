################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tests for the pairwise translation estimator."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.typing import NDArray
from sim_rig import RigTruth
from sim_rig import default_truth
from sim_rig import diverse_reference_poses
from sim_rig import make_samples
from sim_rig import noise_pattern
from sim_rig import single_axis_reference_poses

from space_calibrator.calibration_types import Sample
from space_calibrator.estimation.estimation_error import (
    UnderdeterminedEstimationError,
)
from space_calibrator.estimation.translation_estimator import TranslationEstimate
from space_calibrator.estimation.translation_estimator import build_system
from space_calibrator.estimation.translation_estimator import estimate_translation


def _aligned_samples(samples: list[Sample], R: NDArray[np.float64]) -> list[Sample]:
    """Rotate every target pose into the reference-aligned frame."""
    return [sample.with_target(sample.target.rotated(R)) for sample in samples]


def test_build_system_shape() -> None:
    """Each valid pair should contribute two 3-row blocks."""
    truth: RigTruth = default_truth()
    samples: list[Sample] = _aligned_samples(
        make_samples(diverse_reference_poses(4), truth), truth.rotation
    )
    samples.insert(2, Sample.invalid())
    A: NDArray[np.float64]
    b: NDArray[np.float64]
    pair_count: int
    A, b, pair_count = build_system(samples)
    assert pair_count == 6
    assert A.shape == (36, 3)
    assert b.shape == (36,)


def test_recovers_translation() -> None:
    """Noise-free aligned samples should recover the translation."""
    truth: RigTruth = default_truth()
    samples: list[Sample] = _aligned_samples(
        make_samples(diverse_reference_poses(), truth), truth.rotation
    )
    estimate: TranslationEstimate = estimate_translation(samples)
    np.testing.assert_allclose(estimate.translation_m, truth.translation, atol=1e-6)
    np.testing.assert_allclose(
        estimate.translation_cm, 100.0 * truth.translation, atol=1e-4
    )
    assert estimate.residual_rms < 1e-9
    assert estimate.pair_count == 45


def test_too_few_pairs_raise() -> None:
    """A single sample pair should be underdetermined."""
    truth: RigTruth = default_truth()
    samples: list[Sample] = _aligned_samples(
        make_samples(diverse_reference_poses(2), truth), truth.rotation
    )
    with pytest.raises(UnderdeterminedEstimationError):
        estimate_translation(samples)


def test_single_axis_rotation_raises() -> None:
    """Turning about one axis should leave the translation unconstrained."""
    truth: RigTruth = default_truth()
    samples: list[Sample] = _aligned_samples(
        make_samples(single_axis_reference_poses(8), truth), truth.rotation
    )
    with pytest.raises(UnderdeterminedEstimationError):
        estimate_translation(samples)


def test_sample_order_does_not_matter() -> None:
    """Reordering the samples should leave the estimate unchanged."""
    truth: RigTruth = default_truth()
    samples: list[Sample] = _aligned_samples(
        make_samples(
            diverse_reference_poses(),
            truth,
            position_noise=0.01 * noise_pattern(10),
        ),
        truth.rotation,
    )
    interleaved: list[Sample] = samples[::2] + samples[1::2]

    forward: TranslationEstimate = estimate_translation(samples)
    backward: TranslationEstimate = estimate_translation(samples[::-1])
    mixed: TranslationEstimate = estimate_translation(interleaved)

    np.testing.assert_allclose(backward.translation_m, forward.translation_m, atol=1e-9)
    np.testing.assert_allclose(mixed.translation_m, forward.translation_m, atol=1e-9)
    np.testing.assert_allclose(forward.translation_m, truth.translation, atol=0.05)
