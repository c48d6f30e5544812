"""
Modal decomposition of an input beam.

Projects a transversely offset Gaussian input beam onto a sampled
Hermite-Gaussian basis, one transverse axis at a time.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from .mode_generator import HermiteGaussBasis, curvature_phase, gaussian_prefactor


def input_field(
    x: NDArray,
    waist: float,
    curvature: float,
    wavelength: float,
    offset: float = 0.0,
) -> NDArray:
    """
    1D Gaussian field of unit power centered at ``offset``.

    Args:
        x: Positions in meters
        waist: Beam radius in meters
        curvature: Wavefront radius of curvature in meters (inf = flat)
        wavelength: Wavelength in meters
        offset: Transverse displacement of the beam center in meters
    """
    shifted = np.asarray(x, dtype=np.float64) - offset
    envelope = gaussian_prefactor(waist) * np.exp(-(shifted**2) / waist**2)
    return envelope * curvature_phase(shifted, curvature, wavelength)


def project_onto_basis(
    basis: HermiteGaussBasis,
    waist: float,
    curvature: float,
    wavelength: float,
    offset: float = 0.0,
) -> NDArray:
    """
    Overlap coefficients of an offset Gaussian beam with each basis mode.

    coefficient[n] = dx * sum_x conj(u_n(x)) * field(x), a Riemann-sum
    inner product whose accuracy is limited by the grid resolution.

    Returns:
        Complex array of shape (basis.max_order + 1,)
    """
    field = input_field(basis.x, waist, curvature, wavelength, offset)
    return basis.dx * (basis.modes.conj() @ field)


def project_mode(basis: HermiteGaussBasis, field: NDArray) -> NDArray:
    """Overlap coefficients of an arbitrary sampled field with each basis mode."""
    return basis.dx * (basis.modes.conj() @ np.asarray(field))
