################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Human-readable calibration log and progress sink."""

from __future__ import annotations

import logging


_LOG: logging.Logger = logging.getLogger(__name__)


class CalibrationLog:
    """Append-only log lines and sampling progress for presentation.

    Every line is also forwarded to the standard logging module.
    """

    def __init__(self) -> None:
        """Initialize an empty log."""
        self._lines: list[str] = []
        self._progress: tuple[int, int] = (0, 0)

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    @property
    def progress_state(self) -> tuple[int, int]:
        """Return the last reported (current, total) sample progress."""
        return self._progress

    def log(self, line: str) -> None:
        """Append an informational line."""
        self._lines.append(line)
        _LOG.info("%s", line)

    def warn(self, line: str) -> None:
        """Append a warning line."""
        self._lines.append(line)
        _LOG.warning("%s", line)

    def progress(self, current: int, total: int) -> None:
        """Record sampling progress."""
        if current < 0 or total < 0:
            raise ValueError("progress must be non-negative")
        self._progress = (current, total)

    def clear(self) -> None:
        """Drop all lines and reset progress."""
        self._lines.clear()
        self._progress = (0, 0)
