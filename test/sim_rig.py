################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Simulation helpers for rigidly coupled tracking rigs."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from typing import Sequence

import numpy as np
from numpy.typing import NDArray

from space_calibrator.calibration_types import DeviceClass
from space_calibrator.calibration_types import DevicePose
from space_calibrator.calibration_types import DeviceTransformRequest
from space_calibrator.calibration_types import Pose
from space_calibrator.calibration_types import Profile
from space_calibrator.calibration_types import Sample
from space_calibrator.math_utils.linalg import SO3
from space_calibrator.math_utils.linalg import EulerZYX
from space_calibrator.runtime.driver_transport import DriverTransportError
from space_calibrator.runtime.pose_provider import PropertyKind
from space_calibrator.runtime.pose_provider import PropertyQueryError


# Device identifiers of the simulated rig
REFERENCE_ID: str = "hmd"
TARGET_ID: str = "tracker"

# Tracking system names of the simulated rig
REFERENCE_SYSTEM: str = "lighthouse"
TARGET_SYSTEM: str = "oculus"

# (axis, degrees) reference orientations spanning all three rotation axes
_DIVERSE_ROTATIONS: tuple[tuple[tuple[float, float, float], float], ...] = (
    ((0.0, 0.0, 1.0), 0.0),
    ((0.0, 0.0, 1.0), 90.0),
    ((1.0, 0.0, 0.0), 90.0),
    ((0.0, 1.0, 0.0), 60.0),
    ((1.0, 1.0, 0.0), 120.0),
    ((0.0, 1.0, 1.0), -75.0),
    ((1.0, 0.0, 1.0), 45.0),
    ((1.0, -1.0, 1.0), 150.0),
    ((0.0, 0.0, 1.0), -120.0),
    ((1.0, 2.0, 3.0), 100.0),
)

# m, reference device positions walked around the play space
_DIVERSE_POSITIONS: tuple[tuple[float, float, float], ...] = (
    (0.0, 1.6, 0.0),
    (0.4, 1.5, -0.3),
    (-0.5, 1.7, 0.2),
    (0.2, 1.2, 0.6),
    (-0.3, 1.4, -0.7),
    (0.8, 1.6, 0.1),
    (-0.1, 1.8, 0.4),
    (0.5, 1.1, -0.5),
    (-0.7, 1.5, -0.1),
    (0.3, 1.3, 0.9),
)


@dataclass(frozen=True)
class RigTruth:
    """Ground truth of a simulated calibration.

    Attributes:
        rotation: Target-to-reference rotation
        translation: Target-to-reference translation in meters
        mount_rotation: Orientation of the target device on the rig, in the
            reference device frame
        mount_offset: Position of the target device on the rig, in the
            reference device frame, meters
    """

    rotation: NDArray[np.float64]
    translation: NDArray[np.float64]
    mount_rotation: NDArray[np.float64]
    mount_offset: NDArray[np.float64]


def default_truth() -> RigTruth:
    """Return a rig whose tracking spaces differ on every axis."""
    return RigTruth(
        rotation=EulerZYX.to_matrix_deg(np.array([30.0, -20.0, 45.0], dtype=float)),
        translation=np.array([0.5, -1.2, 0.3], dtype=float),
        mount_rotation=SO3.about_axis(np.array([0.0, 1.0, 0.0]), np.deg2rad(25.0)),
        mount_offset=np.array([0.05, -0.1, 0.12], dtype=float),
    )


def diverse_reference_poses(count: int = len(_DIVERSE_ROTATIONS)) -> list[Pose]:
    """Return reference poses rotated about several distinct axes."""
    if count > len(_DIVERSE_ROTATIONS):
        raise ValueError(f"at most {len(_DIVERSE_ROTATIONS)} diverse poses")
    poses: list[Pose] = []
    for (axis, angle_deg), position in zip(
        _DIVERSE_ROTATIONS[:count], _DIVERSE_POSITIONS[:count]
    ):
        poses.append(
            Pose(
                SO3.about_axis(np.array(axis, dtype=float), np.deg2rad(angle_deg)),
                np.array(position, dtype=float),
            )
        )
    return poses


def single_axis_reference_poses(count: int) -> list[Pose]:
    """Return reference poses turned only about the vertical axis."""
    poses: list[Pose] = []
    for index in range(count):
        angle_rad: float = 2.0 * np.pi * index / count
        poses.append(
            Pose(
                SO3.about_axis(np.array([0.0, 0.0, 1.0]), angle_rad),
                np.array([0.1 * index, 1.5, -0.05 * index], dtype=float),
            )
        )
    return poses


def target_pose(reference: Pose, truth: RigTruth) -> Pose:
    """Return the pose the target tracking system reports for a reference pose.

    The target device sits at mount_offset in the reference device frame, so
    in reference space it is at R_ref * offset + p_ref. Mapping back through
    the inverse calibration gives the target tracking space pose.
    """
    R_inv: NDArray[np.float64] = truth.rotation.T
    rot: NDArray[np.float64] = R_inv @ reference.rot @ truth.mount_rotation
    trans: NDArray[np.float64] = R_inv @ (
        reference.rot @ truth.mount_offset + reference.trans - truth.translation
    )
    return Pose(rot, trans)


def make_samples(
    references: Sequence[Pose],
    truth: RigTruth,
    *,
    position_noise: NDArray[np.float64] | None = None,
    rotation_noise: NDArray[np.float64] | None = None,
) -> list[Sample]:
    """Pair reference poses with the target poses the rig would report.

    Args:
        references: Reference device poses
        truth: Ground truth calibration
        position_noise: Optional N x 3 target position perturbations, meters
        rotation_noise: Optional N x 3 target rotation vectors, radians
    """
    samples: list[Sample] = []
    for index, reference in enumerate(references):
        target: Pose = target_pose(reference, truth)
        rot: NDArray[np.float64] = target.rot
        trans: NDArray[np.float64] = target.trans
        if rotation_noise is not None:
            rot = SO3.exp(rotation_noise[index]) @ rot
        if position_noise is not None:
            trans = trans + position_noise[index]
        samples.append(Sample(ref=reference, target=Pose(rot, trans), valid=True))
    return samples


def noise_pattern(count: int, seed: int = 7) -> NDArray[np.float64]:
    """Return a fixed N x 3 unit-scale noise pattern."""
    rng: np.random.Generator = np.random.default_rng(seed)
    return rng.standard_normal((count, 3))


def rotation_error_rad(
    R_est: NDArray[np.float64], R_true: NDArray[np.float64]
) -> float:
    """Return the angle of the rotation between two estimates."""
    return SO3.angle(R_est.T @ R_true)


def is_proper_rotation(R: NDArray[np.float64], atol: float = 1e-6) -> bool:
    """Return True when R is orthonormal with determinant +1."""
    return bool(
        np.allclose(R.T @ R, np.eye(3), atol=atol)
        and abs(float(np.linalg.det(R)) - 1.0) <= atol
    )


class FakePoseProvider:
    """Scriptable pose source for two coupled devices."""

    def __init__(self) -> None:
        self.reports: dict[str, DevicePose] = {}
        self.device_classes: dict[str, DeviceClass] = {}
        self.properties: dict[tuple[str, PropertyKind], str] = {}

    def add_device(
        self,
        device_id: str,
        *,
        tracking_system: str,
        device_class: DeviceClass = DeviceClass.GENERIC_TRACKER,
        serial: str | None = None,
    ) -> None:
        """Register a present but untracked device."""
        self.reports[device_id] = DevicePose.untracked(device_id)
        self.device_classes[device_id] = device_class
        self.properties[(device_id, PropertyKind.TRACKING_SYSTEM_NAME)] = (
            tracking_system
        )
        self.properties[(device_id, PropertyKind.SERIAL_NUMBER)] = (
            serial if serial is not None else f"SN-{device_id}"
        )

    def set_pose(self, device_id: str, pose: Pose) -> None:
        """Report a tracked pose for the device from now on."""
        self.reports[device_id] = DevicePose(
            device_id=device_id, valid=True, transform=pose.as_matrix34()
        )

    def set_untracked(self, device_id: str) -> None:
        """Report the device as present but untracked."""
        self.reports[device_id] = DevicePose.untracked(device_id)

    def remove_device(self, device_id: str) -> None:
        """Stop reporting the device."""
        self.reports.pop(device_id, None)

    def set_sample(self, sample: Sample) -> None:
        """Report one paired observation of the simulated rig."""
        self.set_pose(REFERENCE_ID, sample.ref)
        self.set_pose(TARGET_ID, sample.target)

    def get_poses(self, max_count: int) -> list[DevicePose]:
        return list(self.reports.values())[:max_count]

    def get_device_class(self, device_id: str) -> DeviceClass:
        return self.device_classes.get(device_id, DeviceClass.INVALID)

    def get_string_property(self, device_id: str, kind: PropertyKind) -> str:
        value: str | None = self.properties.get((device_id, kind))
        if value is None:
            raise PropertyQueryError(f"{kind.value} unavailable for {device_id}")
        return value


def rig_provider() -> FakePoseProvider:
    """Return a provider reporting the simulated reference and target devices."""
    provider: FakePoseProvider = FakePoseProvider()
    provider.add_device(
        REFERENCE_ID, tracking_system=REFERENCE_SYSTEM, device_class=DeviceClass.HMD
    )
    provider.add_device(TARGET_ID, tracking_system=TARGET_SYSTEM)
    return provider


@dataclass
class RecordingTransport:
    """Driver transport recording every request."""

    requests: list[DeviceTransformRequest] = field(default_factory=list)
    fail: bool = False

    def send(self, request: DeviceTransformRequest) -> None:
        if self.fail:
            raise DriverTransportError("driver unavailable")
        self.requests.append(request)

    def last_for(self, device_id: str) -> DeviceTransformRequest | None:
        """Return the most recent request for a device."""
        for request in reversed(self.requests):
            if request.device_id == device_id:
                return request
        return None


class InMemoryBoundaryStore:
    """Boundary store keeping a live and a working copy in memory."""

    def __init__(self, quad_count: int = 4) -> None:
        self.live_quads: list[NDArray[np.float64]] = [
            square_quad(float(index)) for index in range(quad_count)
        ]
        self.live_standing_transform: NDArray[np.float64] = np.hstack(
            [np.eye(3), np.array([[0.0], [0.0], [0.5]])]
        )
        self.live_play_area: tuple[float, float] = (2.0, 1.5)
        self.working_quads: list[NDArray[np.float64]] = list(self.live_quads)
        self.working_standing_transform: NDArray[np.float64] = (
            self.live_standing_transform.copy()
        )
        self.working_play_area: tuple[float, float] = self.live_play_area
        self.commit_count: int = 0

    def revert_working_copy(self) -> None:
        self.working_quads = list(self.live_quads)
        self.working_standing_transform = self.live_standing_transform.copy()
        self.working_play_area = self.live_play_area

    def get_live_quads(self) -> list[NDArray[np.float64]]:
        return list(self.live_quads)

    def get_live_quad_count(self) -> int:
        return len(self.live_quads)

    def get_working_standing_transform(self) -> NDArray[np.float64]:
        return self.working_standing_transform.copy()

    def get_working_play_area(self) -> tuple[float, float]:
        return self.working_play_area

    def set_working_quads(self, quads: Sequence[NDArray[np.float64]]) -> None:
        self.working_quads = [np.array(quad, dtype=float) for quad in quads]

    def set_working_standing_transform(self, transform: NDArray[np.float64]) -> None:
        self.working_standing_transform = np.array(transform, dtype=float)

    def set_working_play_area(self, width: float, depth: float) -> None:
        self.working_play_area = (width, depth)

    def commit_working_copy(self) -> None:
        self.live_quads = list(self.working_quads)
        self.live_standing_transform = self.working_standing_transform.copy()
        self.live_play_area = self.working_play_area
        self.commit_count += 1

    def reset(self, quad_count: int) -> None:
        """Replace the live geometry as an external room setup would."""
        self.live_quads = [square_quad(10.0 + index) for index in range(quad_count)]


def square_quad(x_offset: float) -> NDArray[np.float64]:
    """Return one 1 m wide wall segment starting at x_offset."""
    return np.array(
        [
            [x_offset, 0.0, 0.0],
            [x_offset + 1.0, 0.0, 0.0],
            [x_offset + 1.0, 2.0, 0.0],
            [x_offset, 2.0, 0.0],
        ],
        dtype=float,
    )


@dataclass
class InMemoryProfileStore:
    """Profile store keeping every saved profile."""

    saved: list[Profile] = field(default_factory=list)
    stored: Profile | None = None

    def save(self, profile: Profile) -> None:
        self.saved.append(profile)
        self.stored = profile

    def load(self) -> Profile | None:
        return self.stored
