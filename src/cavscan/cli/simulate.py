"""
CLI command for cavity mode and length-scan simulation.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence, Tuple


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def add_cavity_arguments(parser: argparse.ArgumentParser) -> None:
    """Cavity geometry options shared by all commands."""
    parser.add_argument("--r1", type=float, default=50.0, help="Mirror 1 ROC (mm)")
    parser.add_argument("--r2", type=float, default=50.0, help="Mirror 2 ROC (mm)")
    parser.add_argument("--length", type=float, default=40.0, help="Cavity length (mm)")
    parser.add_argument("--wavelength", type=float, default=780.0, help="Vacuum wavelength (nm)")
    parser.add_argument("--n-center", type=float, default=1.0, help="Refractive index inside the cavity")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Simulate two-mirror cavity modes and length scans",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Mode command
    mode_parser = subparsers.add_parser(
        "mode",
        help="Solve the cavity eigenmode",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    add_cavity_arguments(mode_parser)

    # Scan command
    scan_parser = subparsers.add_parser(
        "scan",
        help="Simulate a cavity length scan",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    add_cavity_arguments(scan_parser)
    scan_parser.add_argument("--x-offset", type=float, default=0.0, help="Beam x offset (um)")
    scan_parser.add_argument("--y-offset", type=float, default=0.0, help="Beam y offset (um)")
    scan_parser.add_argument(
        "--scan-range",
        type=float,
        default=2.0,
        help="Scan half-width (FSR)",
    )
    scan_parser.add_argument(
        "--max-order",
        type=int,
        default=10,
        help="Maximum Hermite-Gauss order per axis",
    )
    scan_parser.add_argument(
        "--beam-waist",
        type=float,
        default=None,
        help="Input beam radius (mm); matched to mirror 1 if omitted",
    )
    scan_parser.add_argument(
        "--beam-roc",
        type=float,
        default=None,
        help="Input beam wavefront ROC (mm); matched to mirror 1 if omitted",
    )
    scan_parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Save result arrays to this .npz file",
    )
    scan_parser.add_argument(
        "--image",
        type=str,
        default=None,
        help="Save the normalized camera image as a grayscale PNG",
    )

    # Common arguments
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )

    return parser.parse_args(argv)


def cavity_settings_from_args(args: argparse.Namespace):
    from ..config import CavitySettings

    return CavitySettings(
        r1_mm=args.r1,
        r2_mm=args.r2,
        length_mm=args.length,
        wavelength_nm=args.wavelength,
        n_center=args.n_center,
    ).sanitized()


def log_rows(logger: logging.Logger, rows: List[Tuple[str, str]]) -> None:
    width = max(len(term) for term, _ in rows)
    for term, value in rows:
        logger.info(f"{term:<{width}}  {value}")


def cmd_mode(args: argparse.Namespace) -> int:
    """Solve and summarize the cavity eigenmode."""
    from ..config import FixedSettings
    from ..exceptions import CavityError
    from ..simulation import solve_cavity_mode, stability_label

    logger = logging.getLogger(__name__)
    fixed = FixedSettings()

    cavity = cavity_settings_from_args(args)
    geometry = cavity.to_geometry()

    try:
        mode = solve_cavity_mode(geometry, num_samples=fixed.profile_samples)
    except CavityError as e:
        logger.error(f"Cavity mode unavailable: {e}")
        return 1

    log_rows(
        logger,
        [
            ("R1 / R2", f"{cavity.r1_mm:.0f} / {cavity.r2_mm:.0f} mm"),
            ("Length", f"{cavity.length_mm:.0f} mm"),
            ("Wavelength", f"{cavity.wavelength_nm:.0f} nm"),
            ("n_center", f"{cavity.n_center:.2f}"),
            ("g1 / g2", f"{mode.g1:.4f} / {mode.g2:.4f}"),
            ("g1*g2", f"{mode.g_product:.4f}"),
            ("Status", stability_label(mode.g1, mode.g2)),
            ("Waist", f"{mode.waist * 1e3:.4f} mm"),
            ("Waist position", f"{mode.waist_position * 1e3:.2f} mm"),
            ("Rayleigh range", f"{mode.rayleigh_range * 1e3:.2f} mm"),
            ("w(M1)", f"{mode.w_mirror1 * 1e3:.4f} mm"),
            ("w(M2)", f"{mode.w_mirror2 * 1e3:.4f} mm"),
            ("FSR", f"{geometry.fsr * 1e-9:.4f} GHz"),
        ],
    )
    return 0


def cmd_scan(args: argparse.Namespace) -> int:
    """Run a length scan and save or summarize the detector signals."""
    import numpy as np

    from ..config import FixedSettings, ScanSettings, matched_beam
    from ..exceptions import CavityError
    from ..simulation import finesse, simulate_mode_scan, solve_cavity_mode, stability_label

    logger = logging.getLogger(__name__)
    fixed = FixedSettings()

    cavity = cavity_settings_from_args(args)
    geometry = cavity.to_geometry()

    try:
        mode = solve_cavity_mode(geometry, num_samples=fixed.profile_samples)
    except CavityError:
        mode = None

    scan = ScanSettings(
        x_offset_um=args.x_offset,
        y_offset_um=args.y_offset,
        scan_range_fsr=args.scan_range,
        max_order=args.max_order,
        beam_waist_mm=args.beam_waist,
        beam_roc_mm=args.beam_roc,
    ).sanitized(cavity, mode)

    try:
        result = simulate_mode_scan(geometry, scan.to_inputs(), **fixed.scan_kwargs())
    except CavityError as e:
        logger.error(f"Simulation unavailable: {e}")
        return 1

    matched_waist, matched_roc = matched_beam(cavity, result.mode)
    fov_min, fov_max = result.extent_mm
    log_rows(
        logger,
        [
            ("R1 / R2", f"{cavity.r1_mm:.0f} / {cavity.r2_mm:.0f} mm"),
            ("Length", f"{cavity.length_mm:.0f} mm"),
            ("Wavelength", f"{cavity.wavelength_nm:.0f} nm"),
            ("n_center", f"{cavity.n_center:.2f}"),
            ("Status", stability_label(result.mode.g1, result.mode.g2)),
            ("Finesse", f"{finesse(fixed.mirror_reflectivity):.1f}"),
            ("Matched waist / ROC", f"{matched_waist:.4f} mm / {matched_roc:.0f} mm"),
            ("Beam waist / ROC", f"{scan.beam_waist_mm:.4f} mm / {scan.beam_roc_mm:.0f} mm"),
            ("Offsets x / y", f"{scan.x_offset_um:.0f} / {scan.y_offset_um:.0f} um"),
            ("Scan / Max HG order", f"{scan.scan_range_fsr:.1f} FSR / {scan.max_order}"),
            ("w(M1) / w(M2)", f"{result.mode.w_mirror1 * 1e3:.4f} / {result.mode.w_mirror2 * 1e3:.4f} mm"),
            ("Peak dL", f"{result.peak_detuning_fsr:.3f} FSR"),
            ("Image FOV", f"{fov_max - fov_min:.2f} mm"),
        ],
    )

    if args.output:
        output = Path(args.output)
        output.parent.mkdir(parents=True, exist_ok=True)
        np.savez(
            output,
            detuning=result.detuning,
            detuning_fsr=result.detuning_fsr,
            detector_trace=result.detector_trace,
            trace_peak=result.trace_peak,
            peak_detuning=result.peak_detuning,
            camera_image=result.camera_image,
            camera_peak=result.camera_peak,
            extent=np.asarray(result.extent),
            power_by_order=result.power_by_order,
        )
        logger.info(f"Saved result arrays to {output}")

    if args.image:
        from PIL import Image

        image_path = Path(args.image)
        image_path.parent.mkdir(parents=True, exist_ok=True)
        # Row 0 is the most negative y; flip so +y is up in the file
        img_uint8 = (np.flipud(result.camera_image) * 255).astype(np.uint8)
        Image.fromarray(img_uint8).save(image_path)
        logger.info(f"Saved camera image to {image_path}")

    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.verbose)

    if args.command == "mode":
        return cmd_mode(args)
    elif args.command == "scan":
        return cmd_scan(args)
    else:
        print("Please specify a command: mode or scan")
        print("Use --help for more information")
        return 1


if __name__ == "__main__":
    sys.exit(main())
