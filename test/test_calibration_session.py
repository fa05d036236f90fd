################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tests for calibration session state."""

from __future__ import annotations

import numpy as np
import pytest

from space_calibrator.calibration_types import BoundaryGeometry
from space_calibrator.calibration_types import CalibratedTransform
from space_calibrator.calibration_types import DevicePose
from space_calibrator.calibration_types import Pose
from space_calibrator.calibration_types import PoseSnapshot
from space_calibrator.calibration_types import Profile
from space_calibrator.calibration_types import Sample
from space_calibrator.pipeline.calibration_session import CalibrationSession
from space_calibrator.pipeline.calibration_session import CalibrationSessionError
from space_calibrator.pipeline.calibration_session import DeviceNotTrackingError
from space_calibrator.pipeline.calibration_session import SessionSnapshot
from space_calibrator.pipeline.calibration_session import SessionState
from space_calibrator.pipeline.calibration_session import collect_sample
from space_calibrator.runtime.calibration_log import CalibrationLog


def _build_session() -> CalibrationSession:
    """Create a session coupling two devices."""
    return CalibrationSession(
        required_sample_count=5,
        reference_device_id="hmd",
        target_device_id="tracker",
    )


def _tracked(device_id: str, x: float) -> DevicePose:
    """Create a tracked report at a literal position."""
    return DevicePose(
        device_id=device_id,
        valid=True,
        transform=Pose.from_translation(x, 1.0, 0.0).as_matrix34(),
    )


def _profiles_match(left: Profile, right: Profile) -> bool:
    """Compare profiles field by field."""
    return (
        left.reference_tracking_system == right.reference_tracking_system
        and left.target_tracking_system == right.target_tracking_system
        and np.allclose(left.transform.euler_deg, right.transform.euler_deg)
        and np.allclose(left.transform.translation_cm, right.transform.translation_cm)
        and left.enabled == right.enabled
        and left.auto_apply_boundary == right.auto_apply_boundary
        and left.boundary is right.boundary
    )


def test_initial_state() -> None:
    """A new session should be idle without an accepted profile."""
    session: CalibrationSession = _build_session()
    assert session.state == SessionState.IDLE
    assert not session.profile_valid
    assert session.enabled
    assert not session.active
    assert session.samples == ()
    np.testing.assert_allclose(session.accepted_transform.euler_deg, np.zeros(3))
    assert session.time_last_tick is None
    with pytest.raises(CalibrationSessionError):
        session.to_profile()


def test_collect_sample() -> None:
    """Samples should pair both devices from one snapshot."""
    snapshot: PoseSnapshot = PoseSnapshot.from_reports(
        [_tracked("hmd", 0.5), _tracked("tracker", -0.5)]
    )
    sample: Sample = collect_sample(snapshot, "hmd", "tracker")
    assert sample.valid
    np.testing.assert_allclose(sample.ref.trans, [0.5, 1.0, 0.0])
    np.testing.assert_allclose(sample.target.trans, [-0.5, 1.0, 0.0])


def test_collect_sample_requires_tracking() -> None:
    """Untracked or absent devices should abort sample collection."""
    snapshot: PoseSnapshot = PoseSnapshot.from_reports(
        [_tracked("hmd", 0.5), DevicePose.untracked("tracker")]
    )
    with pytest.raises(DeviceNotTrackingError, match="Target"):
        collect_sample(snapshot, "hmd", "tracker")
    with pytest.raises(DeviceNotTrackingError, match="Reference"):
        collect_sample(snapshot, "controller", "hmd")


def test_sample_buffer() -> None:
    """The buffer should only hold valid samples until cleared."""
    session: CalibrationSession = _build_session()
    sample: Sample = Sample(ref=Pose.identity(), target=Pose.identity())
    assert session.append_sample(sample) == 1
    with pytest.raises(CalibrationSessionError):
        session.append_sample(Sample.invalid())
    session.clear_samples()
    assert session.samples == ()


def test_devices_locked_during_session() -> None:
    """Devices cannot be changed while a session runs."""
    session: CalibrationSession = _build_session()
    session.set_devices("controller", "tracker")
    assert session.reference_device_id == "controller"
    session.transition(SessionState.SAMPLING)
    with pytest.raises(CalibrationSessionError):
        session.set_devices("hmd", "tracker")


def test_profile_roundtrip() -> None:
    """A loaded profile should be returned unchanged."""
    profile: Profile = Profile(
        reference_tracking_system="lighthouse",
        target_tracking_system="oculus",
        transform=CalibratedTransform(
            euler_deg=np.array([1.0, 2.0, 3.0]),
            translation_cm=np.array([4.0, 5.0, 6.0]),
        ),
        enabled=False,
        auto_apply_boundary=True,
        boundary=BoundaryGeometry(quads=(np.zeros((4, 3)),), valid=True),
    )
    session: CalibrationSession = _build_session()
    session.load_profile(profile)
    assert session.profile_valid
    assert not session.enabled
    assert session.boundary.quad_count == 1
    assert _profiles_match(session.to_profile(), profile)


def test_accepting_enables_profile() -> None:
    """Marking a profile valid should re-enable it."""
    session: CalibrationSession = _build_session()
    session.set_enabled(False)
    session.mark_profile_valid()
    assert session.enabled
    profile: Profile = session.to_profile()
    assert profile.boundary is None


def test_snapshot_reflects_state() -> None:
    """The snapshot should expose the presentation fields."""
    log: CalibrationLog = CalibrationLog()
    session: CalibrationSession = CalibrationSession(required_sample_count=3, log=log)
    log.log("hello")
    session.set_wanted_update_interval(0.25)
    session.transition(SessionState.LIVE_PREVIEW)
    snapshot: SessionSnapshot = session.snapshot()
    assert snapshot.state == SessionState.LIVE_PREVIEW
    assert snapshot.required_sample_count == 3
    assert snapshot.wanted_update_interval == 0.25
    assert snapshot.log_lines == ("hello",)


def test_log_progress() -> None:
    """The log should record lines and progress until cleared."""
    log: CalibrationLog = CalibrationLog()
    log.log("one")
    log.warn("two")
    log.progress(3, 10)
    assert log.lines == ("one", "two")
    assert log.progress_state == (3, 10)
    log.clear()
    assert log.lines == ()
    assert log.progress_state == (0, 0)
    with pytest.raises(ValueError):
        log.progress(-1, 10)
