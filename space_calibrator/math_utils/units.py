################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################
"""Unit conversion helpers and numeric constants."""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


class Angle:
    """Angular unit conversions."""

    @staticmethod
    def deg2rad(x: float | NDArray[np.float64]) -> float | NDArray[np.float64]:
        """Convert degrees to radians."""
        result: NDArray[np.float64] = np.deg2rad(np.asarray(x, dtype=float))
        if np.ndim(result) == 0:
            return float(result)
        return result

    @staticmethod
    def rad2deg(x: float | NDArray[np.float64]) -> float | NDArray[np.float64]:
        """Convert radians to degrees."""
        result: NDArray[np.float64] = np.rad2deg(np.asarray(x, dtype=float))
        if np.ndim(result) == 0:
            return float(result)
        return result


class Length:
    """Length conversions between the tracking runtime and stored profiles.

    The tracking runtime reports positions in meters. Calibrated translations
    are stored and displayed in centimeters.
    """

    CM_PER_M: float = 100.0

    @staticmethod
    def m_to_cm(x: NDArray[np.float64]) -> NDArray[np.float64]:
        """Convert meters to centimeters."""
        return np.asarray(x, dtype=float) * Length.CM_PER_M

    @staticmethod
    def cm_to_m(x: NDArray[np.float64]) -> NDArray[np.float64]:
        """Convert centimeters to meters."""
        return np.asarray(x, dtype=float) / Length.CM_PER_M


class PhysicalConstants:
    """Numeric tolerances shared by the math utilities."""

    EPS: float = 1e-12


def assert_finite(x: NDArray[np.float64], name: str) -> None:
    """Raise ValueError when the array contains non-finite values."""
    if not np.all(np.isfinite(x)):
        raise ValueError(f"{name} must be finite")
