################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Interface to the tracking runtime supplying device poses and metadata."""

from __future__ import annotations

import enum
from typing import Protocol

from space_calibrator.calibration_types import DeviceClass
from space_calibrator.calibration_types import DevicePose
from space_calibrator.calibration_types import PoseSnapshot


# Maximum number of device reports requested per tick
MAX_TRACKED_DEVICE_COUNT: int = 64


class PropertyKind(enum.Enum):
    """
    String properties queried per device

    Attributes:
        SERIAL_NUMBER: Hardware serial number
        TRACKING_SYSTEM_NAME: Name of the tracking system reporting the device
    """

    SERIAL_NUMBER = "serial_number"
    TRACKING_SYSTEM_NAME = "tracking_system_name"


class PropertyQueryError(Exception):
    """Raised when a device property cannot be read."""


class PoseProvider(Protocol):
    """Protocol for the live pose source."""

    def get_poses(self, max_count: int) -> list[DevicePose]: ...

    def get_device_class(self, device_id: str) -> DeviceClass: ...

    def get_string_property(self, device_id: str, kind: PropertyKind) -> str: ...


def capture_snapshot(
    provider: PoseProvider, max_count: int = MAX_TRACKED_DEVICE_COUNT
) -> PoseSnapshot:
    """Capture the poses of every present device for one tick."""
    return PoseSnapshot.from_reports(provider.get_poses(max_count))


def query_property(
    provider: PoseProvider, device_id: str | None, kind: PropertyKind
) -> str | None:
    """Return a device property, or None when it cannot be read."""
    if device_id is None:
        return None
    try:
        return provider.get_string_property(device_id, kind)
    except PropertyQueryError:
        return None
