################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""YAML schema utilities for calibration profiles and recorded samples."""

from __future__ import annotations

import numbers
from typing import Any
from typing import cast

import numpy as np
import yaml

from space_calibrator.calibration_types import BoundaryGeometry
from space_calibrator.calibration_types import CalibratedTransform
from space_calibrator.calibration_types import Pose
from space_calibrator.calibration_types import Profile
from space_calibrator.calibration_types import Sample


# Version written to and required from every YAML document
FORMAT_VERSION: int = 1


class CalibrationYamlError(Exception):
    """Raised when the calibration YAML schema is invalid."""


def profile_to_dict(profile: Profile) -> dict[str, object]:
    """Convert a profile to a YAML-safe dictionary."""
    boundary: dict[str, object] | None = None
    if profile.boundary is not None and profile.boundary.valid:
        boundary = _boundary_to_dict(profile.boundary)
    data: dict[str, object] = {
        "format_version": FORMAT_VERSION,
        "tracking_systems": {
            "reference": profile.reference_tracking_system,
            "target": profile.target_tracking_system,
        },
        "transform": {
            "euler_deg": profile.transform.euler_deg.tolist(),
            "translation_cm": profile.transform.translation_cm.tolist(),
            "scale": profile.transform.scale,
        },
        "flags": {
            "enabled": profile.enabled,
            "auto_apply_boundary": profile.auto_apply_boundary,
        },
        "boundary": boundary,
    }
    return data


def profile_from_dict(data: dict[str, object]) -> Profile:
    """Parse a YAML dictionary into a profile."""
    if not isinstance(data, dict):
        raise CalibrationYamlError("YAML root must be a mapping")
    _require_keys(
        "root",
        data,
        {"format_version", "tracking_systems", "transform", "flags", "boundary"},
    )
    _require_version(data["format_version"])

    systems: dict[str, object] = _require_mapping(
        data["tracking_systems"], "tracking_systems"
    )
    _require_keys("tracking_systems", systems, {"reference", "target"})
    transform_data: dict[str, object] = _require_mapping(
        data["transform"], "transform"
    )
    _require_keys("transform", transform_data, {"euler_deg", "translation_cm", "scale"})
    flags: dict[str, object] = _require_mapping(data["flags"], "flags")
    _require_keys("flags", flags, {"enabled", "auto_apply_boundary"})

    boundary: BoundaryGeometry | None = None
    if data["boundary"] is not None:
        boundary = _boundary_from_dict(_require_mapping(data["boundary"], "boundary"))

    try:
        transform: CalibratedTransform = CalibratedTransform(
            euler_deg=_coerce_array(
                transform_data["euler_deg"], "transform.euler_deg", (3,)
            ),
            translation_cm=_coerce_array(
                transform_data["translation_cm"], "transform.translation_cm", (3,)
            ),
            scale=_require_float(transform_data["scale"], "transform.scale"),
        )
    except ValueError as exc:
        raise CalibrationYamlError(f"transform is invalid: {exc}") from exc

    return Profile(
        reference_tracking_system=_require_str(
            systems["reference"], "tracking_systems.reference"
        ),
        target_tracking_system=_require_str(
            systems["target"], "tracking_systems.target"
        ),
        transform=transform,
        enabled=_require_bool(flags["enabled"], "flags.enabled"),
        auto_apply_boundary=_require_bool(
            flags["auto_apply_boundary"], "flags.auto_apply_boundary"
        ),
        boundary=boundary,
    )


def samples_to_dict(samples: list[Sample]) -> dict[str, object]:
    """Convert recorded samples to a YAML-safe dictionary."""
    return {
        "format_version": FORMAT_VERSION,
        "samples": [
            {
                "ref": sample.ref.as_matrix34().tolist(),
                "target": sample.target.as_matrix34().tolist(),
                "valid": sample.valid,
            }
            for sample in samples
        ],
    }


def samples_from_dict(data: dict[str, object]) -> list[Sample]:
    """Parse recorded samples from a YAML dictionary."""
    if not isinstance(data, dict):
        raise CalibrationYamlError("YAML root must be a mapping")
    _require_keys("root", data, {"format_version", "samples"})
    _require_version(data["format_version"])
    entries: object = data["samples"]
    if not isinstance(entries, list):
        raise CalibrationYamlError("samples must be a list")

    samples: list[Sample] = []
    for index, entry in enumerate(entries):
        scope: str = f"samples[{index}]"
        entry_data: dict[str, object] = _require_mapping(entry, scope)
        _require_keys(scope, entry_data, {"ref", "target", "valid"})
        samples.append(
            Sample(
                ref=Pose.from_matrix34(
                    _coerce_array(entry_data["ref"], f"{scope}.ref", (3, 4))
                ),
                target=Pose.from_matrix34(
                    _coerce_array(entry_data["target"], f"{scope}.target", (3, 4))
                ),
                valid=_require_bool(entry_data["valid"], f"{scope}.valid"),
            )
        )
    return samples


def dumps_yaml(profile: Profile) -> str:
    """Serialize a profile to deterministic YAML."""
    return _safe_dump(profile_to_dict(profile))


def loads_yaml(text: str) -> Profile:
    """Parse a profile from YAML text."""
    return profile_from_dict(_safe_load(text))


def dumps_samples_yaml(samples: list[Sample]) -> str:
    """Serialize recorded samples to deterministic YAML."""
    return _safe_dump(samples_to_dict(samples))


def loads_samples_yaml(text: str) -> list[Sample]:
    """Parse recorded samples from YAML text."""
    return samples_from_dict(_safe_load(text))


def _safe_dump(data: dict[str, object]) -> str:
    """Dump a mapping with stable key order and block style."""
    safe_dump: Any = cast(Any, yaml.safe_dump)
    return safe_dump(
        data,
        sort_keys=False,
        indent=2,
        default_flow_style=False,
    )


def _safe_load(text: str) -> dict[str, object]:
    """Load YAML text whose root must be a mapping."""
    try:
        loaded: Any = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise CalibrationYamlError(f"Invalid YAML: {exc}") from exc
    if not isinstance(loaded, dict):
        raise CalibrationYamlError("YAML root must be a mapping")
    return loaded


def _boundary_to_dict(boundary: BoundaryGeometry) -> dict[str, object]:
    """Convert boundary geometry to a YAML-safe dictionary."""
    return {
        "quads": [quad.tolist() for quad in boundary.quads],
        "standing_transform": boundary.standing_transform.tolist(),
        "play_area": list(boundary.play_area),
    }


def _boundary_from_dict(data: dict[str, object]) -> BoundaryGeometry:
    """Parse boundary geometry from a dictionary."""
    _require_keys("boundary", data, {"quads", "standing_transform", "play_area"})
    quads_data: object = data["quads"]
    if not isinstance(quads_data, list):
        raise CalibrationYamlError("boundary.quads must be a list")
    quads: list[np.ndarray] = [
        _coerce_array(quad, f"boundary.quads[{index}]", (4, 3))
        for index, quad in enumerate(quads_data)
    ]
    play_area: np.ndarray = _coerce_array(data["play_area"], "boundary.play_area", (2,))
    try:
        return BoundaryGeometry(
            quads=tuple(quads),
            standing_transform=_coerce_array(
                data["standing_transform"], "boundary.standing_transform", (3, 4)
            ),
            play_area=(float(play_area[0]), float(play_area[1])),
            valid=True,
        )
    except ValueError as exc:
        raise CalibrationYamlError(f"boundary is invalid: {exc}") from exc


def _require_version(value: object) -> None:
    """Ensure the document carries the supported format version."""
    if _require_int(value, "format_version") != FORMAT_VERSION:
        raise CalibrationYamlError(f"format_version must be {FORMAT_VERSION}")


def _require_keys(scope: str, data: dict[str, object], required: set[str]) -> None:
    """Ensure a mapping has exactly the required keys."""
    unknown: set[str] = {key for key in data.keys() if key not in required}
    if unknown:
        raise CalibrationYamlError(
            f"Unexpected keys in {scope}: {', '.join(sorted(unknown))}"
        )
    missing: set[str] = {key for key in required if key not in data}
    if missing:
        raise CalibrationYamlError(
            f"Missing keys in {scope}: {', '.join(sorted(missing))}"
        )


def _require_mapping(value: object, name: str) -> dict[str, object]:
    """Ensure the value is a dictionary."""
    if not isinstance(value, dict):
        raise CalibrationYamlError(f"{name} must be a mapping")
    return value


def _require_str(value: object, name: str) -> str:
    """Ensure the value is a string."""
    if not isinstance(value, str):
        raise CalibrationYamlError(f"{name} must be a string")
    return value


def _require_bool(value: object, name: str) -> bool:
    """Ensure the value is a boolean."""
    if not isinstance(value, bool):
        raise CalibrationYamlError(f"{name} must be a boolean")
    return value


def _require_int(value: object, name: str) -> int:
    """Ensure the value is an integer."""
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise CalibrationYamlError(f"{name} must be an integer")
    return int(value)


def _require_float(value: object, name: str) -> float:
    """Ensure the value is a float."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise CalibrationYamlError(f"{name} must be a float")
    return float(value)


def _coerce_array(value: object, name: str, shape: tuple[int, ...]) -> np.ndarray:
    """Convert an input to a finite numpy array with the required shape."""
    try:
        array: np.ndarray = np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise CalibrationYamlError(f"{name} must be numeric") from exc
    if array.shape != shape:
        raise CalibrationYamlError(f"{name} must have shape {shape}")
    if not np.all(np.isfinite(array)):
        raise CalibrationYamlError(f"{name} must be finite")
    return array
