################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""High-level configuration wrapper for tracking-space calibration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .calibration_params import CalibrationParams
from .calibration_params import CalibrationParamsError
from .calibration_params import DevicesParams


class CalibrationConfigError(Exception):
    """Raised when calibration configuration validation fails."""


@dataclass(frozen=True)
class CalibrationConfig:
    """Convenience wrapper around calibration parameters."""

    params: CalibrationParams

    def __init__(self, params: CalibrationParams) -> None:
        """Initialize the configuration wrapper and validate."""
        object.__setattr__(self, "params", params)
        self.validate()

    @classmethod
    def defaults(cls) -> CalibrationConfig:
        """Return a configuration with default parameters."""
        return cls(CalibrationParams.defaults())

    @classmethod
    def from_yaml_file(cls, path: str | Path) -> CalibrationConfig:
        """Load a configuration from a nested YAML mapping.

        Raises:
            CalibrationConfigError: The file cannot be read or is invalid
        """
        try:
            text: str = Path(path).read_text(encoding="utf-8")
        except OSError as exc:
            raise CalibrationConfigError(f"Failed to read {path}: {exc}") from exc
        try:
            data: Any = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise CalibrationConfigError(f"Invalid YAML in {path}: {exc}") from exc
        try:
            params: CalibrationParams = CalibrationParams.from_dict(data or {})
        except (CalibrationParamsError, TypeError) as exc:
            raise CalibrationConfigError(str(exc)) from exc
        return cls(params)

    def validate(self) -> None:
        """Validate parameter invariants and cross-namespace policies."""
        try:
            self.params.validate()
        except CalibrationParamsError as exc:
            raise CalibrationConfigError(str(exc)) from exc

        devices: DevicesParams = self.params.devices
        if (
            devices.reference_device_id is not None
            and devices.reference_device_id == devices.target_device_id
        ):
            raise CalibrationConfigError(
                "devices.reference_device_id and devices.target_device_id must differ"
            )

        if (
            self.params.timing.live_preview_scan_interval_sec
            > self.params.timing.idle_scan_interval_sec
        ):
            raise CalibrationConfigError(
                "timing.live_preview_scan_interval_sec must not exceed "
                "timing.idle_scan_interval_sec"
            )

        if self.required_sample_count() < 3:
            raise CalibrationConfigError("sampling must collect at least 3 samples")

    def required_sample_count(self) -> int:
        """Return the number of samples collected per session."""
        return self.params.required_sample_count()

    def profile_path(self) -> str | None:
        """Return the configured profile path."""
        return self.params.profile.path
