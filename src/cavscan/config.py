"""
User-facing settings and their valid ranges.

Settings are expressed in laboratory units (mm, nm, um) and clamped to
the supported ranges here, before any value reaches the simulation core.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, fields
from typing import Dict, Optional, Tuple

from .simulation.cavity import PROFILE_SAMPLES, CavityGeometry, CavityMode
from .simulation.mode_generator import FOV_FACTOR, NUM_PIXELS
from .simulation.mode_scan import ScanInputs
from .simulation.transfer import MIRROR_REFLECTIVITY, NUM_SCAN_POINTS

Limits = Dict[str, Tuple[float, float]]

CAVITY_LIMITS: Limits = {
    "r1_mm": (1.0, 1000.0),
    "r2_mm": (1.0, 1000.0),
    "length_mm": (1.0, 1000.0),
    "wavelength_nm": (400.0, 2000.0),
    "n_center": (1.0, 3.0),
}

SCAN_LIMITS: Limits = {
    "x_offset_um": (0.0, 1000.0),
    "y_offset_um": (0.0, 1000.0),
    "scan_range_fsr": (1.0, 5.0),
    "max_order": (1.0, 15.0),
    "beam_waist_mm": (0.005, 5.0),
    "beam_roc_mm": (1.0, 2000.0),
}

UNMATCHED_WAIST_MM = 0.3


@dataclass(frozen=True)
class FixedSettings:
    """Operating constants that are not user-adjustable."""

    mirror_reflectivity: float = MIRROR_REFLECTIVITY
    num_pixels: int = NUM_PIXELS
    num_scan_points: int = NUM_SCAN_POINTS
    fov_factor: float = FOV_FACTOR
    profile_samples: int = PROFILE_SAMPLES

    def scan_kwargs(self) -> Dict[str, float]:
        """Keyword arguments for simulate_mode_scan."""
        return {
            "reflectivity": self.mirror_reflectivity,
            "num_pixels": self.num_pixels,
            "fov_factor": self.fov_factor,
            "num_scan_points": self.num_scan_points,
            "profile_samples": self.profile_samples,
        }


def clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def sanitize_number(value: object, fallback: float, limits: Tuple[float, float]) -> float:
    """Convert to a finite float clamped to limits, or return fallback."""
    try:
        parsed = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(parsed):
        return fallback
    return clamp(parsed, *limits)


@dataclass(frozen=True)
class CavitySettings:
    """Cavity geometry in laboratory units."""

    r1_mm: float = 50.0
    r2_mm: float = 50.0
    length_mm: float = 40.0
    wavelength_nm: float = 780.0
    n_center: float = 1.0

    def sanitized(self) -> "CavitySettings":
        """Copy with every value finite and inside CAVITY_LIMITS."""
        defaults = CavitySettings()
        return CavitySettings(
            **{
                f.name: sanitize_number(
                    getattr(self, f.name), getattr(defaults, f.name), CAVITY_LIMITS[f.name]
                )
                for f in fields(self)
            }
        )

    def to_geometry(self) -> CavityGeometry:
        return CavityGeometry(
            r1=self.r1_mm * 1e-3,
            r2=self.r2_mm * 1e-3,
            length=self.length_mm * 1e-3,
            wavelength=self.wavelength_nm * 1e-9,
            n_center=self.n_center,
        )


@dataclass(frozen=True)
class ScanSettings:
    """
    Input beam and scan settings in laboratory units.

    ``beam_waist_mm`` and ``beam_roc_mm`` left as None are filled with the
    beam matched to the cavity mode at mirror 1.
    """

    x_offset_um: float = 0.0
    y_offset_um: float = 0.0
    scan_range_fsr: float = 2.0
    max_order: int = 10
    beam_waist_mm: Optional[float] = None
    beam_roc_mm: Optional[float] = None

    def sanitized(
        self,
        cavity: CavitySettings,
        mode: Optional[CavityMode] = None,
    ) -> "ScanSettings":
        """
        Copy with every value inside SCAN_LIMITS.

        Offsets, ROC, scan range and order are rounded to whole units; the
        waist keeps its precision.

        Args:
            cavity: Cavity the beam is matched to when waist/ROC are unset
            mode: Cavity eigenmode, or None if it could not be solved
        """
        waist_default, roc_default = matched_beam(cavity, mode)
        waist = self.beam_waist_mm if self.beam_waist_mm is not None else waist_default
        roc = self.beam_roc_mm if self.beam_roc_mm is not None else roc_default
        defaults = ScanSettings()

        max_order = sanitize_number(self.max_order, defaults.max_order, SCAN_LIMITS["max_order"])
        scan_range = sanitize_number(
            self.scan_range_fsr, defaults.scan_range_fsr, SCAN_LIMITS["scan_range_fsr"]
        )
        x_offset = sanitize_number(self.x_offset_um, defaults.x_offset_um, SCAN_LIMITS["x_offset_um"])
        y_offset = sanitize_number(self.y_offset_um, defaults.y_offset_um, SCAN_LIMITS["y_offset_um"])
        roc = sanitize_number(roc, roc_default, SCAN_LIMITS["beam_roc_mm"])
        return ScanSettings(
            x_offset_um=float(round(x_offset)),
            y_offset_um=float(round(y_offset)),
            scan_range_fsr=float(round(scan_range)),
            max_order=int(round(max_order)),
            beam_waist_mm=sanitize_number(waist, waist_default, SCAN_LIMITS["beam_waist_mm"]),
            beam_roc_mm=float(round(roc)),
        )

    def to_inputs(self) -> ScanInputs:
        if self.beam_waist_mm is None or self.beam_roc_mm is None:
            raise ValueError("beam_waist_mm and beam_roc_mm must be set; call sanitized() first")
        return ScanInputs(
            beam_waist=self.beam_waist_mm * 1e-3,
            beam_curvature=self.beam_roc_mm * 1e-3,
            x_offset=self.x_offset_um * 1e-6,
            y_offset=self.y_offset_um * 1e-6,
            scan_range=self.scan_range_fsr,
            max_order=int(self.max_order),
        )


def matched_beam(cavity: CavitySettings, mode: Optional[CavityMode]) -> Tuple[float, float]:
    """Waist and ROC in mm of the input beam matched to the mode at mirror 1."""
    if mode is None or not math.isfinite(mode.w_mirror1):
        return UNMATCHED_WAIST_MM, cavity.r1_mm
    return mode.w_mirror1 * 1e3, cavity.r1_mm
