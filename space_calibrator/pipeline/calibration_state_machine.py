################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tick-driven controller sequencing calibration sessions."""

from __future__ import annotations

import logging

import numpy as np
from numpy.typing import NDArray

from space_calibrator.calibration_types import CalibratedTransform
from space_calibrator.calibration_types import PoseSnapshot
from space_calibrator.calibration_types import Profile
from space_calibrator.calibration_types import QualityReport
from space_calibrator.calibration_types import Sample
from space_calibrator.config.calibration_config import CalibrationConfig
from space_calibrator.config.calibration_params import CalibrationParams
from space_calibrator.estimation.estimation_error import (
    UnderdeterminedEstimationError,
)
from space_calibrator.pipeline.calibration_session import CalibrationSession
from space_calibrator.pipeline.calibration_session import DeviceNotTrackingError
from space_calibrator.pipeline.calibration_session import SessionState
from space_calibrator.pipeline.calibration_session import collect_sample
from space_calibrator.pipeline.calibration_solver import CalibrationResult
from space_calibrator.pipeline.calibration_solver import solve_calibration
from space_calibrator.pipeline.profile_applier import ProfileApplier
from space_calibrator.runtime.boundary_store import BoundaryStore
from space_calibrator.runtime.calibration_log import CalibrationLog
from space_calibrator.runtime.driver_transport import DriverTransport
from space_calibrator.runtime.driver_transport import DriverTransportError
from space_calibrator.runtime.pose_provider import PoseProvider
from space_calibrator.runtime.pose_provider import PropertyKind
from space_calibrator.runtime.pose_provider import capture_snapshot
from space_calibrator.runtime.pose_provider import query_property
from space_calibrator.storage.persistence import ProfilePersistenceError
from space_calibrator.storage.persistence import ProfileStore
from space_calibrator.storage.persistence import YamlProfileStore


_LOG: logging.Logger = logging.getLogger(__name__)

# Preferred tick cadence while a session is running in seconds
_SESSION_UPDATE_INTERVAL_SEC: float = 0.0


class CalibrationStateMachineError(Exception):
    """Raised when a control request is invalid in the current state."""


class CalibrationStateMachine:
    """Periodically ticked controller for calibration sessions.

    States:
        IDLE and LIVE_PREVIEW rescan devices and reapply the accepted
        profile at their own intervals. BEGIN validates both devices and
        clears the target's offset. SAMPLING collects one sample per tick
        and, at the required count, estimates, validates and either commits
        or discards the result. Every abort path returns to IDLE and drops
        the sample buffer.
    """

    def __init__(
        self,
        *,
        config: CalibrationConfig,
        session: CalibrationSession,
        provider: PoseProvider,
        applier: ProfileApplier,
        profile_store: ProfileStore | None = None,
    ) -> None:
        """Initialize the controller with its collaborators."""
        if not isinstance(config, CalibrationConfig):
            raise CalibrationStateMachineError("config must be a CalibrationConfig")
        self._config: CalibrationConfig = config
        self._params: CalibrationParams = config.params
        self._session: CalibrationSession = session
        self._provider: PoseProvider = provider
        self._applier: ProfileApplier = applier
        self._profile_store: ProfileStore | None = profile_store

    @classmethod
    def from_config(
        cls,
        config: CalibrationConfig,
        *,
        provider: PoseProvider,
        transport: DriverTransport,
        boundary_store: BoundaryStore | None = None,
        log: CalibrationLog | None = None,
    ) -> CalibrationStateMachine:
        """Build a controller, its session and its profile store from config."""
        params: CalibrationParams = config.params
        session: CalibrationSession = CalibrationSession(
            required_sample_count=config.required_sample_count(),
            reference_device_id=params.devices.reference_device_id,
            target_device_id=params.devices.target_device_id,
            auto_apply_boundary=params.boundary.auto_apply,
            log=log,
        )
        profile_store: ProfileStore | None = None
        if params.profile.path is not None:
            profile_store = YamlProfileStore(
                params.profile.path, atomic_write=params.profile.atomic_write
            )
        applier: ProfileApplier = ProfileApplier(
            provider=provider, transport=transport, boundary_store=boundary_store
        )
        return cls(
            config=config,
            session=session,
            provider=provider,
            applier=applier,
            profile_store=profile_store,
        )

    @property
    def session(self) -> CalibrationSession:
        return self._session

    @property
    def applier(self) -> ProfileApplier:
        return self._applier

    def load_profile(self) -> bool:
        """Pre-populate the session from the profile store.

        Returns:
            True when a stored profile was loaded
        """
        if self._profile_store is None:
            return False
        try:
            profile: Profile | None = self._profile_store.load()
        except ProfilePersistenceError as exc:
            _LOG.warning("Ignoring unreadable calibration profile: %s", exc)
            return False
        if profile is None:
            return False
        self._session.load_profile(profile)
        _LOG.info(
            "Loaded calibration profile for %s -> %s",
            profile.target_tracking_system,
            profile.reference_tracking_system,
        )
        return True

    def save_profile(self) -> bool:
        """Persist the accepted profile.

        Returns:
            True when the profile was written
        """
        if self._profile_store is None or not self._session.profile_valid:
            return False
        try:
            self._profile_store.save(self._session.to_profile())
        except ProfilePersistenceError as exc:
            self._session.log.warn(f"Failed to save profile: {exc}")
            return False
        return True

    def start_session(self) -> None:
        """Request a new calibration session, whatever the current state."""
        self._session.transition(SessionState.BEGIN)
        self._session.clear_samples()
        self._session.log.clear()
        self._session.set_wanted_update_interval(_SESSION_UPDATE_INTERVAL_SEC)

    def begin_live_preview(self) -> None:
        """Reapply the accepted profile at the fast preview cadence."""
        if self._session.state in (SessionState.BEGIN, SessionState.SAMPLING):
            raise CalibrationStateMachineError(
                "live preview is unavailable during a session"
            )
        self._session.transition(SessionState.LIVE_PREVIEW)
        self._session.set_wanted_update_interval(
            self._params.timing.live_preview_scan_interval_sec
        )

    def end_live_preview(self, *, save: bool = True) -> None:
        """Return to idle, optionally persisting manual profile edits."""
        if self._session.state != SessionState.LIVE_PREVIEW:
            raise CalibrationStateMachineError("live preview is not running")
        self._session.transition(SessionState.IDLE)
        self._session.set_wanted_update_interval(
            self._params.timing.idle_scan_interval_sec
        )
        if save:
            self.save_profile()

    def tick(self, time_sec: float) -> None:
        """Advance the controller.

        Ticks closer than the minimum interval to the previous handled tick
        are ignored entirely. DriverTransportError raised while reapplying
        the profile propagates to the caller.
        """
        last_tick: float | None = self._session.time_last_tick
        if (
            last_tick is not None
            and time_sec - last_tick < self._params.timing.tick_min_interval_sec
        ):
            return
        self._session.mark_tick(time_sec)

        snapshot: PoseSnapshot = capture_snapshot(self._provider)
        state: SessionState = self._session.state

        if state == SessionState.IDLE:
            self._scan(time_sec, snapshot, self._params.timing.idle_scan_interval_sec)
        elif state == SessionState.LIVE_PREVIEW:
            self._scan(
                time_sec,
                snapshot,
                self._params.timing.live_preview_scan_interval_sec,
            )
        elif state == SessionState.BEGIN:
            self._handle_begin(snapshot)
        elif state == SessionState.SAMPLING:
            self._handle_sampling(snapshot)

    def _scan(self, time_sec: float, snapshot: PoseSnapshot, interval: float) -> None:
        """Run the scan-and-apply pass at the state's own interval."""
        self._session.set_wanted_update_interval(interval)
        last_scan: float | None = self._session.time_last_scan
        if last_scan is not None and time_sec - last_scan < interval:
            return
        self._applier.scan_and_apply(self._session, snapshot)
        self._session.mark_scan(time_sec)

    def _handle_begin(self, snapshot: PoseSnapshot) -> None:
        """Validate both devices and prepare for sampling."""
        session: CalibrationSession = self._session
        log: CalibrationLog = session.log
        reference_id: str | None = session.reference_device_id
        target_id: str | None = session.target_device_id

        reference_serial: str | None = query_property(
            self._provider, reference_id, PropertyKind.SERIAL_NUMBER
        )
        target_serial: str | None = query_property(
            self._provider, target_id, PropertyKind.SERIAL_NUMBER
        )
        log.log(f"Reference device ID: {reference_id}, serial: {reference_serial}")
        log.log(f"Target device ID: {target_id}, serial: {target_serial}")

        ok: bool = True
        if reference_id is None or reference_id not in snapshot:
            log.warn("Missing reference device")
            ok = False
        elif not snapshot.is_tracking(reference_id):
            log.warn("Reference device is not tracking")
            ok = False

        if target_id is None or target_id not in snapshot:
            log.warn("Missing target device")
            ok = False
        elif not snapshot.is_tracking(target_id):
            log.warn("Target device is not tracking")
            ok = False

        if not ok or reference_id is None or target_id is None:
            self._abort("Aborting calibration!")
            return

        reference_system: str | None = query_property(
            self._provider, reference_id, PropertyKind.TRACKING_SYSTEM_NAME
        )
        target_system: str | None = query_property(
            self._provider, target_id, PropertyKind.TRACKING_SYSTEM_NAME
        )
        if reference_system is not None and target_system is not None:
            session.set_tracking_systems(reference_system, target_system)
        else:
            log.warn("Tracking system names unavailable, keeping previous ones")

        try:
            self._applier.clear_offset(target_id)
        except DriverTransportError as exc:
            self._abort(f"Transport failure while clearing target offset: {exc}")
            return

        session.transition(SessionState.SAMPLING)
        session.set_wanted_update_interval(_SESSION_UPDATE_INTERVAL_SEC)
        log.log("Starting calibration...")

    def _handle_sampling(self, snapshot: PoseSnapshot) -> None:
        """Collect one sample and finish the session at the required count."""
        session: CalibrationSession = self._session
        reference_id: str | None = session.reference_device_id
        target_id: str | None = session.target_device_id
        if reference_id is None or target_id is None:
            self._abort("Missing device, aborting calibration!")
            return

        try:
            sample: Sample = collect_sample(snapshot, reference_id, target_id)
        except DeviceNotTrackingError as exc:
            session.log.warn(str(exc))
            self._abort("Aborting calibration!")
            return

        count: int = session.append_sample(sample)
        session.log.progress(count, session.required_sample_count)
        if count >= session.required_sample_count:
            self._finish(target_id)

    def _finish(self, target_id: str) -> None:
        """Estimate, validate and commit or discard the collected samples."""
        session: CalibrationSession = self._session
        log: CalibrationLog = session.log
        samples: list[Sample] = list(session.samples)

        try:
            result: CalibrationResult = solve_calibration(samples, self._params)
        except UnderdeterminedEstimationError as exc:
            log.warn(f"Calibration is underdetermined: {exc}")
            self._abort("Aborting calibration!")
            return

        transform: CalibratedTransform = result.transform
        log.log(
            f"Got {len(samples)} samples with "
            f"{result.rotation.delta_count} delta samples"
        )
        log.log(
            f"Calibrated rotation: yaw {transform.yaw_deg:.2f}, "
            f"pitch {transform.pitch_deg:.2f}, roll {transform.roll_deg:.2f}"
        )
        log.log(
            "Calibrated translation (cm): "
            f"({transform.translation_cm[0]:.2f}, {transform.translation_cm[1]:.2f}, "
            f"{transform.translation_cm[2]:.2f})"
        )
        self._log_report(result.report)

        if result.report.rejected:
            self._abort("Rejecting low quality calibration")
            return

        try:
            self._applier.apply_transform(target_id, transform)
        except DriverTransportError as exc:
            self._abort(f"Transport failure, calibration not saved: {exc}")
            return

        session.set_accepted_transform(transform)
        session.mark_profile_valid()
        saved: bool = self.save_profile()

        log.log(
            "Finished calibration, profile saved"
            if saved
            else "Finished calibration, profile not saved"
        )

        session.transition(SessionState.IDLE)
        session.set_wanted_update_interval(self._params.timing.idle_scan_interval_sec)
        session.clear_samples()

    def _log_report(self, report: QualityReport) -> None:
        """Write the quality diagnostics to the session log."""
        log: CalibrationLog = self._session.log
        offset: NDArray[np.float64] = report.anchor_offset
        log.log(
            "Reference to target offset: "
            f"({offset[0]:.2f}, {offset[1]:.2f}, {offset[2]:.2f})"
        )
        log.log(f"Position error (RMS error): {report.rms_error:.4f}")
        for axis_name, delta in zip("XYZ", report.sensitivity):
            log.log(f"Sensitivity rotation {axis_name} (RMS error delta): {delta:.4f}")
        if report.degenerate:
            log.warn("Calibration points are nearly coplanar. Try moving around more?")

    def _abort(self, message: str) -> None:
        """Log, drop the sample buffer and return to idle."""
        self._session.log.warn(message)
        self._session.transition(SessionState.IDLE)
        self._session.set_wanted_update_interval(
            self._params.timing.idle_scan_interval_sec
        )
        self._session.clear_samples()
