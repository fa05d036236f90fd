################################################################################
#
#  Copyright (C) 2026 Garrett Brown
#  This file is part of OASIS - https://github.com/eigendude/OASIS
#
#  SPDX-License-Identifier: Apache-2.0
#  See DOCS/LICENSING.md for more information.
#
################################################################################

"""
Offline entry point solving a calibration from recorded samples.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from space_calibrator.calibration_types import CalibratedTransform
from space_calibrator.calibration_types import Profile
from space_calibrator.calibration_types import QualityReport
from space_calibrator.calibration_types import Sample
from space_calibrator.config.calibration_config import CalibrationConfig
from space_calibrator.config.calibration_config import CalibrationConfigError
from space_calibrator.estimation.estimation_error import (
    UnderdeterminedEstimationError,
)
from space_calibrator.pipeline.calibration_solver import CalibrationResult
from space_calibrator.pipeline.calibration_solver import solve_calibration
from space_calibrator.storage.persistence import ProfilePersistenceError
from space_calibrator.storage.persistence import load_yaml_samples
from space_calibrator.storage.persistence import save_yaml_profile


_LOG: logging.Logger = logging.getLogger(__name__)

# Exit status when the calibration was accepted
EXIT_ACCEPTED: int = 0
# Exit status when the calibration was rejected or underdetermined
EXIT_REJECTED: int = 1
# Exit status when the inputs could not be read
EXIT_INPUT_ERROR: int = 2


################################################################################
# Command line entry point
################################################################################


def _parse_args(args: Optional[list[str]] = None) -> argparse.Namespace:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Solve a tracking-space calibration from recorded samples"
    )
    parser.add_argument(
        "samples",
        type=Path,
        help="YAML file of paired reference/target 3x4 transforms",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Calibration configuration YAML overriding the defaults",
    )
    parser.add_argument(
        "--output",
        type=Path,
        help="Write the accepted calibration profile to this YAML file",
    )
    parser.add_argument(
        "--reference-system",
        default="",
        help="Tracking-system name of the reference rig stored in the profile",
    )
    parser.add_argument(
        "--target-system",
        default="",
        help="Tracking-system name of the target rig stored in the profile",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Logging verbosity",
    )
    return parser.parse_args(args=args)


def _print_result(result: CalibrationResult) -> None:
    """Print the candidate transform and its diagnostics."""
    transform: CalibratedTransform = result.transform
    report: QualityReport = result.report
    print(
        f"Rotation (deg): yaw {transform.yaw_deg:.3f}, "
        f"pitch {transform.pitch_deg:.3f}, roll {transform.roll_deg:.3f}"
    )
    print(
        "Translation (cm): "
        + ", ".join(f"{value:.3f}" for value in transform.translation_cm)
    )
    print(f"Valid delta samples: {result.rotation.delta_count}")
    print(f"Sample pairs: {result.translation.pair_count}")
    print(
        "Reference to target offset: "
        + ", ".join(f"{value:.3f}" for value in report.anchor_offset)
    )
    print(f"Position error (RMS error): {report.rms_error:.4f}")
    for axis_name, delta in zip("XYZ", report.sensitivity):
        print(f"Sensitivity rotation {axis_name} (RMS error delta): {delta:.4f}")
    print(
        "Principal axis spread: "
        + ", ".join(f"{value:.3g}" for value in report.axis_spread)
    )
    if report.degenerate:
        print("Calibration points are nearly coplanar. Try moving around more?")
    print("Accepted" if result.accepted else "Rejecting low quality calibration")


def main(args: Optional[list[str]] = None) -> int:
    options: argparse.Namespace = _parse_args(args=args)
    logging.basicConfig(
        level=getattr(logging, options.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config: CalibrationConfig = (
            CalibrationConfig.from_yaml_file(options.config)
            if options.config is not None
            else CalibrationConfig.defaults()
        )
        samples: list[Sample] = load_yaml_samples(options.samples)
    except (CalibrationConfigError, ProfilePersistenceError) as exc:
        _LOG.error("%s", exc)
        return EXIT_INPUT_ERROR

    _LOG.info("Loaded %d samples from %s", len(samples), options.samples)

    try:
        result: CalibrationResult = solve_calibration(samples, config.params)
    except UnderdeterminedEstimationError as exc:
        _LOG.error("Calibration is underdetermined: %s", exc)
        return EXIT_REJECTED

    _print_result(result)
    if not result.accepted:
        return EXIT_REJECTED

    if options.output is not None:
        profile: Profile = Profile(
            reference_tracking_system=options.reference_system,
            target_tracking_system=options.target_system,
            transform=result.transform,
        )
        try:
            save_yaml_profile(options.output, profile)
        except ProfilePersistenceError as exc:
            _LOG.error("%s", exc)
            return EXIT_INPUT_ERROR
        _LOG.info("Saved calibration profile to %s", options.output)

    return EXIT_ACCEPTED


if __name__ == "__main__":
    sys.exit(main())
