################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""Tests for the offline calibration solver CLI."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
from sim_rig import RigTruth
from sim_rig import default_truth
from sim_rig import diverse_reference_poses
from sim_rig import make_samples
from sim_rig import noise_pattern
from sim_rig import single_axis_reference_poses

from space_calibrator.calibration_types import Profile
from space_calibrator.calibration_types import Sample
from space_calibrator.cli.solve_cli import EXIT_ACCEPTED
from space_calibrator.cli.solve_cli import EXIT_INPUT_ERROR
from space_calibrator.cli.solve_cli import EXIT_REJECTED
from space_calibrator.cli.solve_cli import main
from space_calibrator.storage.persistence import load_yaml_profile
from space_calibrator.storage.yaml_format import dumps_samples_yaml


def _write_samples(tmp_path: Path, samples: list[Sample]) -> Path:
    """Record samples to a YAML file."""
    path: Path = tmp_path / "samples.yaml"
    path.write_text(dumps_samples_yaml(samples), encoding="utf-8")
    return path


def test_accepts_clean_samples(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Noise-free samples should be accepted and written out."""
    truth: RigTruth = default_truth()
    samples_path: Path = _write_samples(
        tmp_path, make_samples(diverse_reference_poses(), truth)
    )
    output: Path = tmp_path / "out" / "calibration.yaml"

    status: int = main(
        [
            str(samples_path),
            "--output",
            str(output),
            "--reference-system",
            "lighthouse",
            "--target-system",
            "oculus",
        ]
    )

    assert status == EXIT_ACCEPTED
    assert "Accepted" in capsys.readouterr().out
    profile: Profile = load_yaml_profile(output)
    assert profile.reference_tracking_system == "lighthouse"
    assert profile.target_tracking_system == "oculus"
    np.testing.assert_allclose(
        profile.transform.rotation_matrix(), truth.rotation, atol=1e-6
    )
    np.testing.assert_allclose(
        profile.transform.translation_m(), truth.translation, atol=1e-3
    )


def test_rejects_noisy_samples(tmp_path: Path) -> None:
    """Samples with large position noise should be rejected."""
    samples: list[Sample] = make_samples(
        diverse_reference_poses(),
        default_truth(),
        position_noise=0.5 * noise_pattern(10),
    )
    output: Path = tmp_path / "calibration.yaml"

    samples_path: Path = _write_samples(tmp_path, samples)

    status: int = main([str(samples_path), "--output", str(output)])

    assert status == EXIT_REJECTED
    assert not output.exists()


def test_underdetermined_samples(tmp_path: Path) -> None:
    """Samples turned about one axis should not produce a calibration."""
    samples: list[Sample] = make_samples(
        single_axis_reference_poses(10), default_truth()
    )

    assert main([str(_write_samples(tmp_path, samples))]) == EXIT_REJECTED


def test_config_thresholds(tmp_path: Path) -> None:
    """A configuration file should tighten the acceptance thresholds."""
    samples: list[Sample] = make_samples(
        diverse_reference_poses(),
        default_truth(),
        position_noise=0.01 * noise_pattern(10),
    )
    samples_path: Path = _write_samples(tmp_path, samples)
    config_path: Path = tmp_path / "strict.yaml"
    config_path.write_text(
        "validation:\n  max_rms_error_m: 1.0e-6\n", encoding="utf-8"
    )

    assert main([str(samples_path)]) == EXIT_ACCEPTED
    assert main([str(samples_path), "--config", str(config_path)]) == EXIT_REJECTED


def test_input_errors(tmp_path: Path) -> None:
    """Unreadable inputs should return the input error status."""
    assert main([str(tmp_path / "missing.yaml")]) == EXIT_INPUT_ERROR

    corrupt: Path = tmp_path / "corrupt.yaml"
    corrupt.write_text("samples: 12\n", encoding="utf-8")
    assert main([str(corrupt)]) == EXIT_INPUT_ERROR

    samples_path: Path = _write_samples(
        tmp_path, make_samples(diverse_reference_poses(4), default_truth())
    )
    bad_config: Path = tmp_path / "bad.yaml"
    bad_config.write_text("validation:\n  unknown: 1\n", encoding="utf-8")
    assert main([str(samples_path), "--config", str(bad_config)]) == EXIT_INPUT_ERROR
