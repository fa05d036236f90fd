################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Per-device pose reports from the tracking runtime."""

from __future__ import annotations

import enum
from collections.abc import Iterator
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field

import numpy as np
from numpy.typing import NDArray

from space_calibrator.calibration_types.pose import Pose
from space_calibrator.math_utils.linalg import Linalg


class DeviceClass(enum.Enum):
    """Kinds of tracked devices reported by the runtime.

    Attributes:
        INVALID: No device is present at this identifier
        HMD: Head-mounted display
        CONTROLLER: Hand controller
        GENERIC_TRACKER: Standalone tracker puck
        TRACKING_REFERENCE: Base station or camera
        DISPLAY_REDIRECT: Display redirect device
    """

    INVALID = "invalid"
    HMD = "hmd"
    CONTROLLER = "controller"
    GENERIC_TRACKER = "generic_tracker"
    TRACKING_REFERENCE = "tracking_reference"
    DISPLAY_REDIRECT = "display_redirect"


@dataclass(frozen=True)
class DevicePose:
    """One device's pose report for a single tick.

    Attributes:
        device_id: Runtime identifier of the device
        valid: True when the runtime reports a tracked pose
        transform: 3x4 device-to-tracking transform, meters
        angular_velocity: Angular velocity in rad/s
        linear_velocity: Linear velocity in m/s
    """

    device_id: str
    valid: bool
    transform: NDArray[np.float64] = field(
        default_factory=lambda: np.hstack([np.eye(3), np.zeros((3, 1))])
    )
    angular_velocity: NDArray[np.float64] = field(
        default_factory=lambda: np.zeros(3, dtype=float)
    )
    linear_velocity: NDArray[np.float64] = field(
        default_factory=lambda: np.zeros(3, dtype=float)
    )

    def __post_init__(self) -> None:
        """Validate device pose fields."""
        if not isinstance(self.device_id, str) or not self.device_id:
            raise ValueError("device_id must be a non-empty str")
        if not isinstance(self.valid, bool):
            raise ValueError("valid must be a bool")
        transform: NDArray[np.float64] = np.array(self.transform, dtype=float)
        Linalg.ensure_shape(transform, (3, 4), "transform")
        object.__setattr__(self, "transform", transform)
        object.__setattr__(
            self,
            "angular_velocity",
            np.array(self.angular_velocity, dtype=float).reshape(3),
        )
        object.__setattr__(
            self,
            "linear_velocity",
            np.array(self.linear_velocity, dtype=float).reshape(3),
        )

    @staticmethod
    def untracked(device_id: str) -> "DevicePose":
        """Return an explicit invalid entry for a device."""
        return DevicePose(device_id=device_id, valid=False)

    def pose(self) -> Pose:
        """Return the rigid pose of this report."""
        return Pose.from_matrix34(self.transform)


class PoseSnapshot(Mapping[str, DevicePose]):
    """Immutable device-keyed pose table captured once per tick.

    Lookups of unknown devices return an explicit untracked entry rather
    than raising, so absent and untracked devices are handled alike.
    """

    def __init__(self, poses: Mapping[str, DevicePose] | None = None) -> None:
        """Create a snapshot from a device-keyed mapping."""
        self._poses: dict[str, DevicePose] = dict(poses or {})
        for device_id, device_pose in self._poses.items():
            if device_pose.device_id != device_id:
                raise ValueError(
                    f"pose for {device_id!r} reports id {device_pose.device_id!r}"
                )

    @staticmethod
    def from_reports(reports: list[DevicePose]) -> "PoseSnapshot":
        """Create a snapshot from the provider's list of reports."""
        return PoseSnapshot({report.device_id: report for report in reports})

    def __getitem__(self, device_id: str) -> DevicePose:
        """Return the device's report, or an untracked entry when absent."""
        report: DevicePose | None = self._poses.get(device_id)
        if report is None:
            return DevicePose.untracked(device_id)
        return report

    def __iter__(self) -> Iterator[str]:
        return iter(self._poses)

    def __len__(self) -> int:
        return len(self._poses)

    def __contains__(self, device_id: object) -> bool:
        return device_id in self._poses

    def is_tracking(self, device_id: str | None) -> bool:
        """Return True when the device is present and reports a valid pose."""
        if device_id is None:
            return False
        return self[device_id].valid
