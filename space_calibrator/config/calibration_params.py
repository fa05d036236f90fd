################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Structured configuration schema for tracking-space calibration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import fields
from dataclasses import replace
from typing import Any

import numpy as np


# Reference device identifier, None until chosen by the operator
DEVICES_REFERENCE_DEVICE_ID: str | None = None
# Target device identifier, None until chosen by the operator
DEVICES_TARGET_DEVICE_ID: str | None = None

# Minimum time between handled ticks in seconds
TIMING_TICK_MIN_INTERVAL_SEC: float = 0.05
# Profile scan-and-apply interval while idle in seconds
TIMING_IDLE_SCAN_INTERVAL_SEC: float = 1.0
# Profile scan-and-apply interval during live preview in seconds
TIMING_LIVE_PREVIEW_SCAN_INTERVAL_SEC: float = 0.1

# Sampling speed preset name
SAMPLING_SPEED: str = "slow"
# Explicit sample count overriding the speed preset
SAMPLING_SAMPLE_COUNT: int | None = None

# Required sample count for each sampling speed preset
SAMPLE_COUNT_PRESETS: dict[str, int] = {
    "fast": 100,
    "slow": 250,
    "very_slow": 500,
}

# Minimum relative rotation for a usable delta sample in radians
ESTIMATION_MIN_DELTA_ANGLE_RAD: float = 0.4
# Minimum raw rotation axis magnitude, unitless
ESTIMATION_MIN_AXIS_NORM: float = 0.01
# Minimum valid delta samples for rotation estimation
ESTIMATION_MIN_VALID_DELTAS: int = 3
# Minimum sample pairs for translation estimation
ESTIMATION_MIN_SAMPLE_PAIRS: int = 2

# Maximum accepted RMS retargeting error in meters
VALIDATION_MAX_RMS_ERROR_M: float = 0.1
# Sensitivity perturbation angle in degrees
VALIDATION_SENSITIVITY_PERTURBATION_DEG: float = 10.0
# Minimum variance along the smallest principal axis, normalized units
VALIDATION_COPLANAR_AXIS_THRESHOLD: float = 5e-5
# Reject near-coplanar sample sets instead of only warning
VALIDATION_REJECT_ON_DEGENERATE: bool = False

# Reapply captured boundary geometry after an external reset
BOUNDARY_AUTO_APPLY: bool = False

# Profile file path, None disables persistence
PROFILE_PATH: str | None = None
# Use atomic write for profile persistence
PROFILE_ATOMIC_WRITE: bool = True


class CalibrationParamsError(Exception):
    """Raised when calibration parameter validation fails."""


def _require_positive(value: float, name: str) -> None:
    """Require a positive finite value."""
    if not np.isfinite(value) or value <= 0.0:
        raise CalibrationParamsError(f"{name} must be positive")


def _require_non_negative(value: float, name: str) -> None:
    """Require a non-negative finite value."""
    if not np.isfinite(value) or value < 0.0:
        raise CalibrationParamsError(f"{name} must be non-negative")


def _require_positive_int(value: int, name: str) -> None:
    """Require a positive integer."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise CalibrationParamsError(f"{name} must be an int")
    if value <= 0:
        raise CalibrationParamsError(f"{name} must be positive")


def _validate_optional_str(value: str | None, name: str) -> None:
    """Validate an optional non-empty string."""
    if value is None:
        return
    if not isinstance(value, str) or not value:
        raise CalibrationParamsError(f"{name} must be a non-empty str or None")


def _require_bool(value: bool, name: str) -> None:
    """Require a bool."""
    if not isinstance(value, bool):
        raise CalibrationParamsError(f"{name} must be a bool")


@dataclass(frozen=True)
class DevicesParams:
    """Devices coupled for calibration."""

    # Reference device identifier
    reference_device_id: str | None = DEVICES_REFERENCE_DEVICE_ID
    # Target device identifier
    target_device_id: str | None = DEVICES_TARGET_DEVICE_ID


@dataclass(frozen=True)
class TimingParams:
    """Tick throttling and scan cadence."""

    # Minimum time between handled ticks in seconds
    tick_min_interval_sec: float = TIMING_TICK_MIN_INTERVAL_SEC
    # Idle scan-and-apply interval in seconds
    idle_scan_interval_sec: float = TIMING_IDLE_SCAN_INTERVAL_SEC
    # Live preview scan-and-apply interval in seconds
    live_preview_scan_interval_sec: float = TIMING_LIVE_PREVIEW_SCAN_INTERVAL_SEC


@dataclass(frozen=True)
class SamplingParams:
    """Sample collection parameters."""

    # Sampling speed preset name
    speed: str = SAMPLING_SPEED
    # Explicit sample count overriding the speed preset
    sample_count: int | None = SAMPLING_SAMPLE_COUNT


@dataclass(frozen=True)
class EstimationParams:
    """Rotation and translation estimator thresholds."""

    # Minimum relative rotation for a usable delta sample in radians
    min_delta_angle_rad: float = ESTIMATION_MIN_DELTA_ANGLE_RAD
    # Minimum raw rotation axis magnitude, unitless
    min_axis_norm: float = ESTIMATION_MIN_AXIS_NORM
    # Minimum valid delta samples for rotation estimation
    min_valid_deltas: int = ESTIMATION_MIN_VALID_DELTAS
    # Minimum sample pairs for translation estimation
    min_sample_pairs: int = ESTIMATION_MIN_SAMPLE_PAIRS


@dataclass(frozen=True)
class ValidationParams:
    """Acceptance thresholds for candidate calibrations."""

    # Maximum accepted RMS retargeting error in meters
    max_rms_error_m: float = VALIDATION_MAX_RMS_ERROR_M
    # Sensitivity perturbation angle in degrees
    sensitivity_perturbation_deg: float = VALIDATION_SENSITIVITY_PERTURBATION_DEG
    # Minimum variance along the smallest principal axis
    coplanar_axis_threshold: float = VALIDATION_COPLANAR_AXIS_THRESHOLD
    # Reject near-coplanar sample sets
    reject_on_degenerate: bool = VALIDATION_REJECT_ON_DEGENERATE


@dataclass(frozen=True)
class BoundaryParams:
    """Boundary geometry replication policy."""

    # Reapply captured geometry after an external reset
    auto_apply: bool = BOUNDARY_AUTO_APPLY


@dataclass(frozen=True)
class ProfileParams:
    """Profile persistence parameters."""

    # Profile file path
    path: str | None = PROFILE_PATH
    # Use atomic write for persistence
    atomic_write: bool = PROFILE_ATOMIC_WRITE


_NAMESPACES: dict[str, type] = {
    "devices": DevicesParams,
    "timing": TimingParams,
    "sampling": SamplingParams,
    "estimation": EstimationParams,
    "validation": ValidationParams,
    "boundary": BoundaryParams,
    "profile": ProfileParams,
}


@dataclass(frozen=True)
class CalibrationParams:
    """Complete configuration tree for tracking-space calibration."""

    devices: DevicesParams
    timing: TimingParams
    sampling: SamplingParams
    estimation: EstimationParams
    validation: ValidationParams
    boundary: BoundaryParams
    profile: ProfileParams

    @classmethod
    def defaults(cls) -> CalibrationParams:
        """Return the default calibration parameter tree."""
        return cls(
            devices=DevicesParams(),
            timing=TimingParams(),
            sampling=SamplingParams(),
            estimation=EstimationParams(),
            validation=ValidationParams(),
            boundary=BoundaryParams(),
            profile=ProfileParams(),
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CalibrationParams:
        """Build parameters from a nested mapping, defaulting missing keys.

        Raises:
            CalibrationParamsError: Unknown namespaces or keys are present
        """
        if not isinstance(data, Mapping):
            raise CalibrationParamsError("configuration must be a mapping")
        unknown: set[str] = set(data) - set(_NAMESPACES)
        if unknown:
            raise CalibrationParamsError(
                f"unknown namespaces: {', '.join(sorted(unknown))}"
            )

        namespaces: dict[str, Any] = {}
        for name, namespace_type in _NAMESPACES.items():
            values: Any = data.get(name) or {}
            if not isinstance(values, Mapping):
                raise CalibrationParamsError(f"{name} must be a mapping")
            allowed: set[str] = {f.name for f in fields(namespace_type)}
            unknown_keys: set[str] = set(values) - allowed
            if unknown_keys:
                raise CalibrationParamsError(
                    f"unknown keys in {name}: {', '.join(sorted(unknown_keys))}"
                )
            namespaces[name] = namespace_type(**values)
        return cls(**namespaces)

    def validate(self) -> None:
        """Validate parameter invariants and constraints."""
        _validate_optional_str(
            self.devices.reference_device_id, "devices.reference_device_id"
        )
        _validate_optional_str(
            self.devices.target_device_id, "devices.target_device_id"
        )

        _require_non_negative(
            self.timing.tick_min_interval_sec, "timing.tick_min_interval_sec"
        )
        _require_positive(
            self.timing.idle_scan_interval_sec, "timing.idle_scan_interval_sec"
        )
        _require_positive(
            self.timing.live_preview_scan_interval_sec,
            "timing.live_preview_scan_interval_sec",
        )

        if self.sampling.speed not in SAMPLE_COUNT_PRESETS:
            raise CalibrationParamsError(
                "sampling.speed must be one of "
                f"{', '.join(sorted(SAMPLE_COUNT_PRESETS))}"
            )
        if self.sampling.sample_count is not None:
            _require_positive_int(self.sampling.sample_count, "sampling.sample_count")

        _require_non_negative(
            self.estimation.min_delta_angle_rad, "estimation.min_delta_angle_rad"
        )
        _require_non_negative(self.estimation.min_axis_norm, "estimation.min_axis_norm")
        _require_positive_int(
            self.estimation.min_valid_deltas, "estimation.min_valid_deltas"
        )
        _require_positive_int(
            self.estimation.min_sample_pairs, "estimation.min_sample_pairs"
        )

        _require_positive(self.validation.max_rms_error_m, "validation.max_rms_error_m")
        _require_positive(
            self.validation.sensitivity_perturbation_deg,
            "validation.sensitivity_perturbation_deg",
        )
        _require_non_negative(
            self.validation.coplanar_axis_threshold,
            "validation.coplanar_axis_threshold",
        )
        _require_bool(
            self.validation.reject_on_degenerate, "validation.reject_on_degenerate"
        )

        _require_bool(self.boundary.auto_apply, "boundary.auto_apply")

        _validate_optional_str(self.profile.path, "profile.path")
        _require_bool(self.profile.atomic_write, "profile.atomic_write")

    def required_sample_count(self) -> int:
        """Return the number of samples collected per session."""
        if self.sampling.sample_count is not None:
            return self.sampling.sample_count
        return SAMPLE_COUNT_PRESETS[self.sampling.speed]

    def replace(self, **namespace_overrides: Any) -> CalibrationParams:
        """Return a modified copy of the parameters."""
        return replace(self, **namespace_overrides)

    def as_nested_dict(self) -> dict[str, Any]:
        """Return a nested dict representation for debugging."""
        return _dataclass_to_dict(self)


def _dataclass_to_dict(value: Any) -> Any:
    """Convert dataclasses into plain Python values."""
    if hasattr(value, "__dataclass_fields__"):
        return {
            field.name: _dataclass_to_dict(getattr(value, field.name))
            for field in fields(value)
        }
    return value
