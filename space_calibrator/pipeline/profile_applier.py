################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Pushes the accepted profile to every present device."""

from __future__ import annotations

import logging

from space_calibrator.calibration_types import BoundaryGeometry
from space_calibrator.calibration_types import CalibratedTransform
from space_calibrator.calibration_types import DeviceClass
from space_calibrator.calibration_types import DeviceTransformRequest
from space_calibrator.calibration_types import PoseSnapshot
from space_calibrator.pipeline.calibration_session import CalibrationSession
from space_calibrator.runtime.boundary_store import BoundaryStore
from space_calibrator.runtime.driver_transport import DriverTransport
from space_calibrator.runtime.pose_provider import PoseProvider
from space_calibrator.runtime.pose_provider import PropertyKind
from space_calibrator.runtime.pose_provider import PropertyQueryError


_LOG: logging.Logger = logging.getLogger(__name__)


class ProfileApplierError(Exception):
    """Raised when the applier is used without a required collaborator."""


class ProfileApplier:
    """Translates the accepted transform into per-device driver requests.

    Driver failures raise DriverTransportError to the caller.
    """

    def __init__(
        self,
        *,
        provider: PoseProvider,
        transport: DriverTransport,
        boundary_store: BoundaryStore | None = None,
    ) -> None:
        """Initialize the applier with its collaborators."""
        self._provider: PoseProvider = provider
        self._transport: DriverTransport = transport
        self._boundary_store: BoundaryStore | None = boundary_store

    def clear_offset(self, device_id: str) -> None:
        """Disable the device's offset."""
        self._transport.send(DeviceTransformRequest.disabled(device_id))

    def apply_transform(self, device_id: str, transform: CalibratedTransform) -> None:
        """Set the device's offset to a transform."""
        self._transport.send(transform.to_request(device_id))

    def scan_and_apply(
        self, session: CalibrationSession, snapshot: PoseSnapshot
    ) -> None:
        """Apply or clear the offset of every present device.

        The reference device is handled first and never receives an offset.
        When its tracking system differs from the one recorded with the
        profile, the profile is not applied to any device during this pass.
        """
        active: bool = session.profile_valid and session.enabled

        reference_id: str | None = session.reference_device_id
        device_ids: list[str] = [
            device_id for device_id in snapshot if device_id != reference_id
        ]
        if reference_id is not None and reference_id in snapshot:
            device_ids.insert(0, reference_id)

        for device_id in device_ids:
            if self._provider.get_device_class(device_id) == DeviceClass.INVALID:
                continue

            if not active:
                self.clear_offset(device_id)
                continue

            try:
                tracking_system: str = self._provider.get_string_property(
                    device_id, PropertyKind.TRACKING_SYSTEM_NAME
                )
            except PropertyQueryError as exc:
                _LOG.debug("Tracking system of %s unavailable: %s", device_id, exc)
                self.clear_offset(device_id)
                continue

            if device_id == reference_id:
                if tracking_system != session.reference_tracking_system:
                    _LOG.info(
                        "Reference tracking system changed from %s to %s, "
                        "disabling profile",
                        session.reference_tracking_system,
                        tracking_system,
                    )
                    active = False
                self.clear_offset(device_id)
                continue

            if tracking_system != session.target_tracking_system:
                self.clear_offset(device_id)
                continue

            self.apply_transform(device_id, session.accepted_transform)

        session.set_active(active)

        if (
            active
            and self._boundary_store is not None
            and session.boundary.valid
            and session.auto_apply_boundary
        ):
            quad_count: int = self._boundary_store.get_live_quad_count()
            # An external reset replaces the geometry, manual moves keep it
            if quad_count != session.boundary.quad_count:
                _LOG.info(
                    "Boundary quad count %d differs from cached %d, reapplying",
                    quad_count,
                    session.boundary.quad_count,
                )
                self.apply_boundary(session)

    def capture_boundary(self, session: CalibrationSession) -> BoundaryGeometry:
        """Cache the live boundary geometry in the session."""
        store: BoundaryStore = self._require_boundary_store()
        store.revert_working_copy()
        boundary: BoundaryGeometry = BoundaryGeometry(
            quads=tuple(store.get_live_quads()),
            standing_transform=store.get_working_standing_transform(),
            play_area=store.get_working_play_area(),
            valid=True,
        )
        session.set_boundary(boundary)
        return boundary

    def apply_boundary(self, session: CalibrationSession) -> None:
        """Write the cached boundary geometry and commit it to the live config."""
        boundary: BoundaryGeometry = session.boundary
        if not boundary.valid:
            raise ProfileApplierError("no boundary geometry captured")
        store: BoundaryStore = self._require_boundary_store()
        store.revert_working_copy()
        store.set_working_quads(boundary.quads)
        store.set_working_standing_transform(boundary.standing_transform)
        store.set_working_play_area(boundary.play_area[0], boundary.play_area[1])
        store.commit_working_copy()

    def _require_boundary_store(self) -> BoundaryStore:
        """Return the boundary store or raise when none was configured."""
        if self._boundary_store is None:
            raise ProfileApplierError("no boundary store configured")
        return self._boundary_store
