################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Persistence helpers for calibration profile YAML files."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Protocol

from space_calibrator.calibration_types import Profile
from space_calibrator.calibration_types import Sample
from space_calibrator.storage.yaml_format import CalibrationYamlError
from space_calibrator.storage.yaml_format import dumps_yaml
from space_calibrator.storage.yaml_format import loads_samples_yaml
from space_calibrator.storage.yaml_format import loads_yaml


_LOG: logging.Logger = logging.getLogger(__name__)


class ProfilePersistenceError(Exception):
    """Raised when loading or saving calibration files fails."""


def is_yaml_path(path: str | os.PathLike[str]) -> bool:
    """Return True if the path has a YAML extension."""
    suffix: str = Path(os.fspath(path)).suffix.lower()
    return suffix in {".yaml", ".yml"}


def save_yaml_profile(
    path: str | os.PathLike[str],
    profile: Profile,
    *,
    atomic_write: bool = True,
) -> None:
    """Save a calibration profile to disk as YAML.

    With atomic_write a failed save leaves any previous file untouched.
    """
    if not is_yaml_path(path):
        raise ProfilePersistenceError("Path must end with .yaml or .yml")

    path_obj: Path = Path(os.fspath(path))
    try:
        path_obj.parent.mkdir(parents=True, exist_ok=True)
        text: str = dumps_yaml(profile)
        if atomic_write:
            tmp_name: str = f".{path_obj.name}.tmp.{os.getpid()}"
            tmp_path: Path = path_obj.with_name(tmp_name)
            with tmp_path.open("w", encoding="utf-8") as handle:
                handle.write(text)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, path_obj)
        else:
            path_obj.write_text(text, encoding="utf-8")
    except (OSError, CalibrationYamlError) as exc:
        raise ProfilePersistenceError(
            f"Failed to save YAML profile to {path_obj}"
        ) from exc


def load_yaml_profile(path: str | os.PathLike[str]) -> Profile:
    """Load a calibration profile from a YAML file."""
    if not is_yaml_path(path):
        raise ProfilePersistenceError("Path must end with .yaml or .yml")

    path_obj: Path = Path(os.fspath(path))
    try:
        text: str = path_obj.read_text(encoding="utf-8")
        return loads_yaml(text)
    except (OSError, CalibrationYamlError) as exc:
        raise ProfilePersistenceError(
            f"Failed to load YAML profile from {path_obj}"
        ) from exc


def load_yaml_samples(path: str | os.PathLike[str]) -> list[Sample]:
    """Load recorded samples from a YAML file."""
    if not is_yaml_path(path):
        raise ProfilePersistenceError("Path must end with .yaml or .yml")

    path_obj: Path = Path(os.fspath(path))
    try:
        text: str = path_obj.read_text(encoding="utf-8")
        return loads_samples_yaml(text)
    except (OSError, CalibrationYamlError) as exc:
        raise ProfilePersistenceError(
            f"Failed to load YAML samples from {path_obj}"
        ) from exc


class YamlProfileStore:
    """Profile store backed by a single YAML file."""

    def __init__(
        self, path: str | os.PathLike[str], *, atomic_write: bool = True
    ) -> None:
        """Initialize the store without touching the filesystem."""
        if not is_yaml_path(path):
            raise ProfilePersistenceError("Path must end with .yaml or .yml")
        self._path: Path = Path(os.fspath(path))
        self._atomic_write: bool = atomic_write

    @property
    def path(self) -> Path:
        return self._path

    def save(self, profile: Profile) -> None:
        """Persist the profile, replacing any previous one."""
        save_yaml_profile(self._path, profile, atomic_write=self._atomic_write)
        _LOG.info("Saved calibration profile to %s", self._path)

    def load(self) -> Profile | None:
        """Return the stored profile, or None when none was saved yet."""
        if not self._path.exists():
            _LOG.debug("No calibration profile at %s", self._path)
            return None
        return load_yaml_profile(self._path)


class ProfileStore(Protocol):
    """Protocol for durable storage of the accepted profile."""

    def save(self, profile: Profile) -> None: ...

    def load(self) -> Profile | None: ...
