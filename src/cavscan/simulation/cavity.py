"""
Two-Mirror Cavity Eigenmode Solver.

This module solves the paraxial Gaussian eigenmode of a two-mirror
resonator from its geometry using ray-transfer (ABCD) matrices, and
classifies the (g1, g2) stability point of the resonator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from numpy.typing import NDArray

from ..exceptions import InvalidGeometry, NearPlanarDegenerate, UnstableCavity

logger = logging.getLogger(__name__)

SPEED_OF_LIGHT = 299792458.0  # m/s

# Empirical thresholds; changing them shifts which geometries are rejected.
STABILITY_TOLERANCE = 1e-9
DEGENERACY_THRESHOLD = 1e-14

PROFILE_SAMPLES = 1000

EXACT_TOL = 1e-3
NEAR_TOL = 0.08

SPECIAL_POINTS = (
    ("CONFOCAL", 0.0, 0.0),
    ("CONCENTRIC", -1.0, -1.0),
    ("PLANAR", 1.0, 1.0),
)


@dataclass(frozen=True)
class CavityGeometry:
    """Geometry of a two-mirror cavity (SI units)."""

    r1: float  # radius of curvature of mirror 1 in meters
    r2: float  # radius of curvature of mirror 2 in meters
    length: float  # mirror separation in meters
    wavelength: float  # vacuum wavelength in meters
    n_center: float = 1.0  # refractive index between the mirrors

    def validate(self) -> None:
        """Raise InvalidGeometry for any non-positive parameter."""
        for name in ("r1", "r2", "length", "n_center"):
            value = getattr(self, name)
            if not value > 0:
                raise InvalidGeometry(name, value)

    @property
    def g_parameters(self) -> Tuple[float, float]:
        """Cavity g-parameters (g1, g2)."""
        g1 = 1 - self.length / self.r1
        g2 = 1 - self.length / self.r2
        return g1, g2

    @property
    def g_product(self) -> float:
        g1, g2 = self.g_parameters
        return g1 * g2

    @property
    def medium_wavelength(self) -> float:
        """Wavelength inside the cavity medium."""
        return self.wavelength / self.n_center

    @property
    def fsr_length(self) -> float:
        """Mirror displacement corresponding to one free spectral range."""
        return self.medium_wavelength / 2

    @property
    def fsr(self) -> float:
        """Free spectral range in Hz."""
        return SPEED_OF_LIGHT / (2 * self.n_center * self.length)


@dataclass(frozen=True)
class CavityMode:
    """Gaussian eigenmode of a cavity, sampled between the mirrors."""

    g1: float
    g2: float
    q: complex  # complex beam parameter at mirror 1
    z: NDArray  # positions from mirror 1 in meters
    w: NDArray  # beam radius at each position in meters
    waist: float
    waist_position: float
    rayleigh_range: float
    w_mirror1: float
    w_mirror2: float

    @property
    def g_product(self) -> float:
        return self.g1 * self.g2


def mirror_matrix(radius: float) -> NDArray:
    """Ray matrix of reflection from a curved mirror."""
    return np.array([[1.0, 0.0], [-2.0 / radius, 1.0]])


def propagation_matrix(distance: float) -> NDArray:
    """Ray matrix of free-space propagation."""
    return np.array([[1.0, distance], [0.0, 1.0]])


def round_trip_matrix(r1: float, r2: float, length: float) -> NDArray:
    """
    Round-trip ray matrix referenced to mirror 1.

    Reflect at mirror 1, travel to mirror 2, reflect, travel back.
    """
    return (
        mirror_matrix(r1)
        @ propagation_matrix(length)
        @ mirror_matrix(r2)
        @ propagation_matrix(length)
    )


def solve_cavity_mode(
    geometry: CavityGeometry,
    num_samples: int = PROFILE_SAMPLES,
) -> CavityMode:
    """
    Solve the Gaussian eigenmode of a two-mirror cavity.

    Args:
        geometry: Cavity geometry
        num_samples: Number of beam-radius samples between the mirrors

    Returns:
        CavityMode with the beam profile and stability parameters

    Raises:
        InvalidGeometry: A radius, the length or the index is not positive
        UnstableCavity: The round-trip matrix has |(A + D) / 2| > 1
        NearPlanarDegenerate: The round-trip C element is ~0
    """
    geometry.validate()
    g1, g2 = geometry.g_parameters

    M = round_trip_matrix(geometry.r1, geometry.r2, geometry.length)
    A, C, D = M[0, 0], M[1, 0], M[1, 1]

    if abs((A + D) / 2) > 1 + STABILITY_TOLERANCE:
        raise UnstableCavity(g1, g2)
    if abs(C) < DEGENERACY_THRESHOLD:
        raise NearPlanarDegenerate(float(C))

    disc = max(0.0, 4 - (A + D) ** 2)
    q0 = complex((A - D) / (2 * C), np.sqrt(disc) / (2 * abs(C)))

    lambda_medium = geometry.medium_wavelength
    z = np.linspace(0.0, geometry.length, num_samples)
    q = q0 + z
    # Im(q) == 0 on the stability boundary gives an unbounded beam
    with np.errstate(divide="ignore", invalid="ignore"):
        w = np.sqrt(-lambda_medium / (np.pi * (1 / q).imag))
    w = np.where(np.isfinite(w), w, np.inf)

    waist_index = int(np.argmin(w))
    waist = float(w[waist_index])

    mode = CavityMode(
        g1=g1,
        g2=g2,
        q=q0,
        z=z,
        w=w,
        waist=waist,
        waist_position=float(z[waist_index]),
        rayleigh_range=np.pi * waist**2 / lambda_medium,
        w_mirror1=float(w[0]),
        w_mirror2=float(w[-1]),
    )
    logger.debug(
        f"Cavity mode: g1={g1:.4f}, g2={g2:.4f}, w0={waist:.4e} m "
        f"at z={mode.waist_position:.4e} m"
    )
    return mode


def stability_label(g1: float, g2: float) -> str:
    """
    Classify a (g1, g2) point.

    Returns one of CONFOCAL, CONCENTRIC, PLANAR, their NEAR- variants,
    STABLE or UNSTABLE.
    """
    for label, g1_target, g2_target in SPECIAL_POINTS:
        if abs(g1 - g1_target) <= EXACT_TOL and abs(g2 - g2_target) <= EXACT_TOL:
            return label
    for label, g1_target, g2_target in SPECIAL_POINTS:
        if abs(g1 - g1_target) <= NEAR_TOL and abs(g2 - g2_target) <= NEAR_TOL:
            return f"NEAR-{label}"

    return "STABLE" if 0 <= g1 * g2 <= 1 else "UNSTABLE"


def finesse(reflectivity: float) -> float:
    """Finesse of a cavity with two mirrors of equal power reflectivity."""
    return np.pi * np.sqrt(reflectivity) / (1 - reflectivity)


def gouy_phase(g_product: float) -> float:
    """One-way Gouy phase of the fundamental mode."""
    return float(np.arccos(np.sqrt(np.clip(g_product, 0.0, 1.0))))
