################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Mutable state owned by one calibration process."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from space_calibrator.calibration_types import BoundaryGeometry
from space_calibrator.calibration_types import CalibratedTransform
from space_calibrator.calibration_types import PoseSnapshot
from space_calibrator.calibration_types import Profile
from space_calibrator.calibration_types import Sample
from space_calibrator.runtime.calibration_log import CalibrationLog


class CalibrationSessionError(Exception):
    """Raised for calibration session contract violations."""


class DeviceNotTrackingError(Exception):
    """Raised when a required device is missing or reports no valid pose."""


class SessionState(enum.Enum):
    """
    States of the calibration controller

    Attributes:
        IDLE: No session, the accepted profile is reapplied periodically
        LIVE_PREVIEW: The accepted profile is reapplied at a fast cadence
        BEGIN: A session was requested and devices are being validated
        SAMPLING: Paired observations are being collected
    """

    IDLE = "idle"
    LIVE_PREVIEW = "live_preview"
    BEGIN = "begin"
    SAMPLING = "sampling"


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of the session for presentation.

    Attributes:
        state: Current controller state
        sample_count: Samples collected in the running session
        required_sample_count: Samples needed to finish a session
        accepted_transform: Last accepted transform
        profile_valid: True once a transform was accepted or loaded
        enabled: True when the accepted transform should be applied
        active: True when the last scan applied the transform
        reference_tracking_system: Tracking system of the reference rig
        target_tracking_system: Tracking system of the target rig
        wanted_update_interval: Preferred tick cadence in seconds
        log_lines: Human-readable log lines
    """

    state: SessionState
    sample_count: int
    required_sample_count: int
    accepted_transform: CalibratedTransform
    profile_valid: bool
    enabled: bool
    active: bool
    reference_tracking_system: str
    target_tracking_system: str
    wanted_update_interval: float
    log_lines: tuple[str, ...]


def collect_sample(
    snapshot: PoseSnapshot, reference_device_id: str, target_device_id: str
) -> Sample:
    """Pair the reference and target poses of one tick.

    Raises:
        DeviceNotTrackingError: Either device has no valid pose
    """
    if not snapshot.is_tracking(reference_device_id):
        raise DeviceNotTrackingError("Reference device is not tracking")
    if not snapshot.is_tracking(target_device_id):
        raise DeviceNotTrackingError("Target device is not tracking")
    return Sample(
        ref=snapshot[reference_device_id].pose(),
        target=snapshot[target_device_id].pose(),
        valid=True,
    )


class CalibrationSession:
    """Sole owner of calibration state, mutated only from the tick entry point.

    The sample buffer is cleared when a session starts and again when it
    finishes, whether the result was accepted or discarded.
    """

    def __init__(
        self,
        *,
        required_sample_count: int,
        reference_device_id: str | None = None,
        target_device_id: str | None = None,
        auto_apply_boundary: bool = False,
        log: CalibrationLog | None = None,
    ) -> None:
        """Initialize an idle session without an accepted profile."""
        if required_sample_count <= 0:
            raise CalibrationSessionError("required_sample_count must be positive")
        self._required_sample_count: int = required_sample_count
        self._reference_device_id: str | None = reference_device_id
        self._target_device_id: str | None = target_device_id
        self._reference_tracking_system: str = ""
        self._target_tracking_system: str = ""

        self._state: SessionState = SessionState.IDLE
        self._samples: list[Sample] = []

        self._accepted: CalibratedTransform = CalibratedTransform.identity()
        self._profile_valid: bool = False
        self._enabled: bool = True
        self._active: bool = False
        self._boundary: BoundaryGeometry = BoundaryGeometry()
        self._auto_apply_boundary: bool = auto_apply_boundary

        self._time_last_tick: float | None = None
        self._time_last_scan: float | None = None
        self._wanted_update_interval: float = 1.0

        self._log: CalibrationLog = log if log is not None else CalibrationLog()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def log(self) -> CalibrationLog:
        return self._log

    @property
    def reference_device_id(self) -> str | None:
        return self._reference_device_id

    @property
    def target_device_id(self) -> str | None:
        return self._target_device_id

    @property
    def reference_tracking_system(self) -> str:
        return self._reference_tracking_system

    @property
    def target_tracking_system(self) -> str:
        return self._target_tracking_system

    @property
    def samples(self) -> tuple[Sample, ...]:
        return tuple(self._samples)

    @property
    def required_sample_count(self) -> int:
        return self._required_sample_count

    @property
    def accepted_transform(self) -> CalibratedTransform:
        return self._accepted

    @property
    def profile_valid(self) -> bool:
        return self._profile_valid

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def active(self) -> bool:
        return self._active

    @property
    def boundary(self) -> BoundaryGeometry:
        return self._boundary

    @property
    def auto_apply_boundary(self) -> bool:
        return self._auto_apply_boundary

    @property
    def time_last_tick(self) -> float | None:
        return self._time_last_tick

    @property
    def time_last_scan(self) -> float | None:
        return self._time_last_scan

    @property
    def wanted_update_interval(self) -> float:
        return self._wanted_update_interval

    def transition(self, state: SessionState) -> None:
        """Move to a new controller state."""
        if not isinstance(state, SessionState):
            raise CalibrationSessionError("state must be a SessionState")
        self._state = state

    def set_devices(
        self, reference_device_id: str | None, target_device_id: str | None
    ) -> None:
        """Select the devices coupled for the next session."""
        if self._state in (SessionState.BEGIN, SessionState.SAMPLING):
            raise CalibrationSessionError("devices cannot change during a session")
        self._reference_device_id = reference_device_id
        self._target_device_id = target_device_id

    def set_tracking_systems(self, reference: str, target: str) -> None:
        """Record the tracking systems the accepted transform applies to."""
        self._reference_tracking_system = reference
        self._target_tracking_system = target

    def append_sample(self, sample: Sample) -> int:
        """Append a sample and return the new buffer size."""
        if not sample.valid:
            raise CalibrationSessionError("invalid samples must not be buffered")
        self._samples.append(sample)
        return len(self._samples)

    def clear_samples(self) -> None:
        """Discard every buffered sample."""
        self._samples.clear()

    def set_accepted_transform(self, transform: CalibratedTransform) -> None:
        """Replace the accepted transform, e.g. during manual tuning."""
        if not isinstance(transform, CalibratedTransform):
            raise CalibrationSessionError("transform must be a CalibratedTransform")
        self._accepted = transform

    def mark_profile_valid(self) -> None:
        """Flag the accepted transform as a usable profile and enable it."""
        self._profile_valid = True
        self._enabled = True

    def set_enabled(self, enabled: bool) -> None:
        """Enable or disable applying the accepted profile."""
        self._enabled = enabled

    def set_active(self, active: bool) -> None:
        """Record whether the last scan applied the accepted transform."""
        self._active = active

    def set_boundary(self, boundary: BoundaryGeometry) -> None:
        """Replace the cached boundary geometry."""
        self._boundary = boundary

    def set_auto_apply_boundary(self, auto_apply: bool) -> None:
        """Enable or disable reapplying boundary geometry after resets."""
        self._auto_apply_boundary = auto_apply

    def mark_tick(self, time_sec: float) -> None:
        """Record the time of a handled tick."""
        self._time_last_tick = time_sec

    def mark_scan(self, time_sec: float) -> None:
        """Record the time of a scan-and-apply pass."""
        self._time_last_scan = time_sec

    def set_wanted_update_interval(self, interval_sec: float) -> None:
        """Advertise the preferred tick cadence."""
        self._wanted_update_interval = interval_sec

    def load_profile(self, profile: Profile) -> None:
        """Pre-populate the session from a stored profile."""
        self._accepted = profile.transform
        self._reference_tracking_system = profile.reference_tracking_system
        self._target_tracking_system = profile.target_tracking_system
        self._enabled = profile.enabled
        self._auto_apply_boundary = profile.auto_apply_boundary
        self._boundary = (
            profile.boundary if profile.boundary is not None else BoundaryGeometry()
        )
        self._profile_valid = True

    def to_profile(self) -> Profile:
        """Return the accepted state as a durable profile."""
        if not self._profile_valid:
            raise CalibrationSessionError("no accepted profile")
        return Profile(
            reference_tracking_system=self._reference_tracking_system,
            target_tracking_system=self._target_tracking_system,
            transform=self._accepted,
            enabled=self._enabled,
            auto_apply_boundary=self._auto_apply_boundary,
            boundary=self._boundary if self._boundary.valid else None,
        )

    def snapshot(self) -> SessionSnapshot:
        """Return a read-only view for presentation."""
        return SessionSnapshot(
            state=self._state,
            sample_count=len(self._samples),
            required_sample_count=self._required_sample_count,
            accepted_transform=self._accepted,
            profile_valid=self._profile_valid,
            enabled=self._enabled,
            active=self._active,
            reference_tracking_system=self._reference_tracking_system,
            target_tracking_system=self._target_tracking_system,
            wanted_update_interval=self._wanted_update_interval,
            log_lines=self._log.lines,
        )
