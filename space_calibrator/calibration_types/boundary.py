################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Play-space boundary geometry replicated between tracking systems."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field

import numpy as np
from numpy.typing import NDArray

from space_calibrator.math_utils.linalg import Linalg
from space_calibrator.math_utils.units import assert_finite


@dataclass(frozen=True)
class BoundaryGeometry:
    """Boundary quads plus standing transform and play-area extents.

    Attributes:
        quads: Boundary quads, each a (4, 3) array of corners in meters
        standing_transform: 3x4 standing-zero transform
        play_area: Play-area width and depth in meters
        valid: True once the geometry has been captured
    """

    quads: tuple[NDArray[np.float64], ...] = ()
    standing_transform: NDArray[np.float64] = field(
        default_factory=lambda: np.hstack([np.eye(3), np.zeros((3, 1))])
    )
    play_area: tuple[float, float] = (0.0, 0.0)
    valid: bool = False

    def __post_init__(self) -> None:
        """Coerce and validate boundary fields."""
        quads: list[NDArray[np.float64]] = []
        for index, quad in enumerate(self.quads):
            corners: NDArray[np.float64] = np.array(quad, dtype=float)
            Linalg.ensure_shape(corners, (4, 3), f"quads[{index}]")
            assert_finite(corners, f"quads[{index}]")
            quads.append(corners)
        standing: NDArray[np.float64] = np.array(self.standing_transform, dtype=float)
        Linalg.ensure_shape(standing, (3, 4), "standing_transform")
        assert_finite(standing, "standing_transform")
        if len(self.play_area) != 2:
            raise ValueError("play_area must have two entries")
        width: float = float(self.play_area[0])
        depth: float = float(self.play_area[1])
        if not np.isfinite(width) or not np.isfinite(depth):
            raise ValueError("play_area must be finite")
        if width < 0.0 or depth < 0.0:
            raise ValueError("play_area must be non-negative")
        if not isinstance(self.valid, bool):
            raise ValueError("valid must be a bool")
        object.__setattr__(self, "quads", tuple(quads))
        object.__setattr__(self, "standing_transform", standing)
        object.__setattr__(self, "play_area", (width, depth))

    @property
    def quad_count(self) -> int:
        return len(self.quads)
