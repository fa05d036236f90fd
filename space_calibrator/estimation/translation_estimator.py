################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Least-squares estimate of the target-to-reference translation."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from space_calibrator.calibration_types import Sample
from space_calibrator.estimation.estimation_error import (
    UnderdeterminedEstimationError,
)
from space_calibrator.math_utils.units import Length


# Minimum number of valid sample pairs for a translation estimate
DEFAULT_MIN_SAMPLE_PAIRS: int = 2

# Singular values below this fraction of the largest are treated as zero
_RANK_RTOL: float = 1e-9


@dataclass(frozen=True)
class TranslationEstimate:
    """Result of the translation estimator.

    Attributes:
        translation_m: Translation in meters
        translation_cm: Translation in centimeters
        pair_count: Number of valid sample pairs used
        residual_rms: RMS residual of the stacked linear system, meters
    """

    translation_m: NDArray[np.float64]
    translation_cm: NDArray[np.float64]
    pair_count: int
    residual_rms: float


def _pair_rows(
    Qi: NDArray[np.float64],
    Qj: NDArray[np.float64],
    di: NDArray[np.float64],
    dj: NDArray[np.float64],
) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    """Return (Qj - Qi, Qj dj - Qi di) for one frame of one sample pair."""
    return Qj - Qi, Qj @ dj - Qi @ di


def build_system(
    samples: Sequence[Sample],
) -> tuple[NDArray[np.float64], NDArray[np.float64], int]:
    """Stack the pairwise translation constraints.

    Target poses must already be rotated into the reference-aligned frame.
    Every valid pair (i > j) contributes one 3-row block expressed in the
    reference device frame and one expressed in the target device frame.

    Returns:
        Tuple of the coefficient matrix, the right-hand side and the number
        of sample pairs used
    """
    blocks_A: list[NDArray[np.float64]] = []
    blocks_b: list[NDArray[np.float64]] = []
    pair_count: int = 0
    for i in range(len(samples)):
        si: Sample = samples[i]
        if not si.valid:
            continue
        di: NDArray[np.float64] = si.ref.trans - si.target.trans
        for j in range(i):
            sj: Sample = samples[j]
            if not sj.valid:
                continue
            dj: NDArray[np.float64] = sj.ref.trans - sj.target.trans
            for Qi, Qj in (
                (si.ref.rot.T, sj.ref.rot.T),
                (si.target.rot.T, sj.target.rot.T),
            ):
                A_block: NDArray[np.float64]
                b_block: NDArray[np.float64]
                A_block, b_block = _pair_rows(Qi, Qj, di, dj)
                blocks_A.append(A_block)
                blocks_b.append(b_block)
            pair_count += 1

    if not blocks_A:
        return np.zeros((0, 3), dtype=float), np.zeros(0, dtype=float), 0
    return np.vstack(blocks_A), np.concatenate(blocks_b), pair_count


def estimate_translation(
    samples: Sequence[Sample],
    min_sample_pairs: int = DEFAULT_MIN_SAMPLE_PAIRS,
) -> TranslationEstimate:
    """Solve the stacked pairwise constraints for the translation.

    Raises:
        UnderdeterminedEstimationError: Too few sample pairs, or the
            rotations do not constrain all three translation axes
    """
    A: NDArray[np.float64]
    b: NDArray[np.float64]
    pair_count: int
    A, b, pair_count = build_system(samples)
    if pair_count < min_sample_pairs:
        raise UnderdeterminedEstimationError(
            f"{pair_count} valid sample pairs, need at least {min_sample_pairs}"
        )

    singular_values: NDArray[np.float64] = np.linalg.svd(A, compute_uv=False)
    rank: int = int(
        np.sum(singular_values > _RANK_RTOL * max(singular_values[0], 1.0))
    )
    if rank < 3:
        raise UnderdeterminedEstimationError(
            f"translation system has rank {rank}, need 3"
        )

    x: NDArray[np.float64]
    x, _, _, _ = np.linalg.lstsq(A, b, rcond=None)
    residual: NDArray[np.float64] = A @ x - b
    residual_rms: float = float(np.sqrt(np.mean(residual * residual)))

    return TranslationEstimate(
        translation_m=x,
        translation_cm=Length.m_to_cm(x),
        pair_count=pair_count,
        residual_rms=residual_rms,
    )
