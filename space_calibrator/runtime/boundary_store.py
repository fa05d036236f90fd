################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Interface to the play-space boundary configuration."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

import numpy as np
from numpy.typing import NDArray


class BoundaryStoreError(Exception):
    """Raised when boundary geometry cannot be read or written."""


class BoundaryStore(Protocol):
    """Protocol for the boundary configuration's working copy.

    Reads and writes go through a working copy that is published to the
    live configuration by commit_working_copy().
    """

    def revert_working_copy(self) -> None: ...

    def get_live_quads(self) -> list[NDArray[np.float64]]: ...

    def get_live_quad_count(self) -> int: ...

    def get_working_standing_transform(self) -> NDArray[np.float64]: ...

    def get_working_play_area(self) -> tuple[float, float]: ...

    def set_working_quads(self, quads: Sequence[NDArray[np.float64]]) -> None: ...

    def set_working_standing_transform(
        self, transform: NDArray[np.float64]
    ) -> None: ...

    def set_working_play_area(self, width: float, depth: float) -> None: ...

    def commit_working_copy(self) -> None: ...
