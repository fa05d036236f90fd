################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Interface to the driver applying per-device offsets."""

from __future__ import annotations

from typing import Protocol

from space_calibrator.calibration_types import DeviceTransformRequest


class DriverTransportError(Exception):
    """Raised when a request cannot be delivered to the driver."""


class DriverTransport(Protocol):
    """Protocol for the blocking request channel to the driver.

    send() returns once the driver acknowledged the request and raises
    DriverTransportError otherwise. Retry and timeout policy belong to the
    implementation.
    """

    def send(self, request: DeviceTransformRequest) -> None: ...
