################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Type definitions for tracking-space calibration."""

from __future__ import annotations

from space_calibrator.calibration_types.boundary import BoundaryGeometry
from space_calibrator.calibration_types.calibrated_transform import (
    CalibratedTransform,
)
from space_calibrator.calibration_types.device_pose import DeviceClass
from space_calibrator.calibration_types.device_pose import DevicePose
from space_calibrator.calibration_types.device_pose import PoseSnapshot
from space_calibrator.calibration_types.pose import Pose
from space_calibrator.calibration_types.profile import Profile
from space_calibrator.calibration_types.quality_report import QualityReport
from space_calibrator.calibration_types.sample import DeltaSample
from space_calibrator.calibration_types.sample import Sample
from space_calibrator.calibration_types.transform_request import (
    DeviceTransformRequest,
)


__all__ = [
    "BoundaryGeometry",
    "CalibratedTransform",
    "DeltaSample",
    "DeviceClass",
    "DevicePose",
    "DeviceTransformRequest",
    "Pose",
    "PoseSnapshot",
    "Profile",
    "QualityReport",
    "Sample",
]
