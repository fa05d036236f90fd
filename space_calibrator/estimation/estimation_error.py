################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Errors raised by the transform estimators."""

from __future__ import annotations


class EstimationError(Exception):
    """Raised when a calibration transform cannot be estimated."""


class UnderdeterminedEstimationError(EstimationError):
    """Raised when the samples do not constrain the estimate uniquely."""
