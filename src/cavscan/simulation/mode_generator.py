"""
Hermite-Gaussian Basis Generation.

This module samples the one-dimensional Hermite-Gaussian modes of a cavity
at a mirror, including the wavefront curvature of the mirror, and memoizes
the sampled basis so repeated scans with the same parameters reuse it.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from numpy.typing import NDArray
from scipy.special import factorial

logger = logging.getLogger(__name__)

NUM_PIXELS = 96
FOV_FACTOR = 4.0
KEY_DIGITS = 9

BasisKey = Tuple[float, float, float, float, int, float, int]


@dataclass(frozen=True)
class HermiteGaussBasis:
    """
    Sampled Hermite-Gaussian modes on a 1D grid.

    Attributes:
        x: Grid positions in meters
        modes: Complex mode functions, shape (max_order + 1, len(x))
        mirror_radius: Beam radius the modes are built for
        mirror_curvature: Wavefront radius of curvature (inf for planar)
        wavelength: Wavelength in the cavity medium
    """

    x: NDArray
    modes: NDArray
    mirror_radius: float
    mirror_curvature: float
    wavelength: float

    @property
    def dx(self) -> float:
        return float(self.x[1] - self.x[0])

    @property
    def max_order(self) -> int:
        return self.modes.shape[0] - 1

    @property
    def num_pixels(self) -> int:
        return self.x.shape[0]

    @property
    def extent(self) -> Tuple[float, float]:
        return float(self.x[0]), float(self.x[-1])


def hermite_table(x: NDArray, max_order: int) -> NDArray:
    """
    Physicists' Hermite polynomials H_0..H_max_order evaluated at x.

    Uses H_n = 2x H_{n-1} - 2(n-1) H_{n-2} starting from H_0 = 1, H_1 = 2x.

    Returns:
        Array of shape (max_order + 1, len(x))
    """
    x = np.asarray(x, dtype=np.float64)
    table = np.empty((max_order + 1, x.size), dtype=np.float64)
    table[0] = 1.0
    if max_order >= 1:
        table[1] = 2 * x
    for n in range(2, max_order + 1):
        table[n] = 2 * x * table[n - 1] - 2 * (n - 1) * table[n - 2]
    return table


def curvature_phase(x: NDArray, curvature: float, wavelength: float) -> NDArray:
    """Quadratic wavefront phase factor exp(-i k x^2 / 2R); unity when R is infinite."""
    if not np.isfinite(curvature):
        return np.ones(np.shape(x), dtype=np.complex128)
    k = 2 * np.pi / wavelength
    return np.exp(-1j * k * np.asarray(x) ** 2 / (2 * curvature))


def gaussian_prefactor(waist: float, order: int = 0) -> float:
    """Normalization making the Hermite-Gaussian mode of this order unit power."""
    return (2 / np.pi) ** 0.25 / np.sqrt(2.0**order * factorial(order, exact=True) * waist)


def _round_sig(value: float, digits: int = KEY_DIGITS) -> float:
    return float(f"{value:.{digits}g}")


def basis_key(
    mirror_radius: float,
    mirror_curvature: float,
    wavelength: float,
    input_waist: float,
    num_pixels: int,
    fov_factor: float,
    max_order: int,
) -> BasisKey:
    """Cache key with every float rounded to nine significant digits."""
    return (
        _round_sig(mirror_radius),
        _round_sig(mirror_curvature),
        _round_sig(wavelength),
        _round_sig(input_waist),
        int(num_pixels),
        _round_sig(fov_factor),
        int(max_order),
    )


def generate_basis(
    mirror_radius: float,
    mirror_curvature: float,
    wavelength: float,
    input_waist: float,
    max_order: int,
    num_pixels: int = NUM_PIXELS,
    fov_factor: float = FOV_FACTOR,
) -> HermiteGaussBasis:
    """
    Sample Hermite-Gaussian modes 0..max_order at a mirror.

    The grid spans +/- fov_factor * max(mirror_radius, input_waist) so that
    a wide input beam is not clipped.

    Args:
        mirror_radius: Cavity beam radius at the mirror in meters
        mirror_curvature: Wavefront radius of curvature in meters (inf = planar)
        wavelength: Wavelength in the cavity medium in meters
        input_waist: Input beam waist in meters
        max_order: Highest mode order
        num_pixels: Grid points
        fov_factor: Half-width of the grid in units of the larger beam radius

    Returns:
        HermiteGaussBasis with read-only arrays
    """
    half_size = fov_factor * max(mirror_radius, input_waist)
    x = np.linspace(-half_size, half_size, num_pixels)

    xi = np.sqrt(2) * x / mirror_radius
    hermites = hermite_table(xi, max_order)
    envelope = np.exp(-(x**2) / mirror_radius**2)
    phase = curvature_phase(x, mirror_curvature, wavelength)

    prefactors = np.array(
        [gaussian_prefactor(mirror_radius, n) for n in range(max_order + 1)]
    )
    modes = prefactors[:, None] * hermites * (envelope * phase)[None, :]

    x.setflags(write=False)
    modes.setflags(write=False)
    return HermiteGaussBasis(
        x=x,
        modes=modes,
        mirror_radius=mirror_radius,
        mirror_curvature=mirror_curvature,
        wavelength=wavelength,
    )


class BasisCache:
    """
    Memoization table for sampled bases.

    Keys are the basis parameters rounded to nine significant digits.
    With ``max_entries=None`` the cache only grows, which is fine for the
    small set of parameter combinations a session produces. With a limit,
    the oldest inserted basis is evicted first.

    Attributes:
        max_entries: Capacity, or None for unbounded
        hits: Number of lookups served from the cache
        misses: Number of bases generated
    """

    def __init__(self, max_entries: Optional[int] = None):
        if max_entries is not None and max_entries < 1:
            raise ValueError(f"max_entries must be positive or None, got {max_entries}")
        self.max_entries = max_entries
        self.hits = 0
        self.misses = 0
        self._entries: "OrderedDict[BasisKey, HermiteGaussBasis]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def clear(self) -> None:
        self._entries.clear()

    def get_basis(
        self,
        mirror_radius: float,
        mirror_curvature: float,
        wavelength: float,
        input_waist: float,
        max_order: int,
        num_pixels: int = NUM_PIXELS,
        fov_factor: float = FOV_FACTOR,
    ) -> HermiteGaussBasis:
        """Return the cached basis for these parameters, generating it on a miss."""
        key = basis_key(
            mirror_radius,
            mirror_curvature,
            wavelength,
            input_waist,
            num_pixels,
            fov_factor,
            max_order,
        )
        basis = self._entries.get(key)
        if basis is not None:
            self.hits += 1
            logger.debug(f"Basis cache hit: {key}")
            return basis

        self.misses += 1
        logger.debug(f"Basis cache miss: {key}")
        # Build from the rounded values so equal keys give identical arrays
        basis = generate_basis(
            mirror_radius=key[0],
            mirror_curvature=key[1],
            wavelength=key[2],
            input_waist=key[3],
            max_order=key[6],
            num_pixels=key[4],
            fov_factor=key[5],
        )
        self._entries[key] = basis
        if self.max_entries is not None and len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Basis cache evicted: {evicted}")
        return basis


default_cache = BasisCache()


def get_basis(
    mirror_radius: float,
    mirror_curvature: float,
    wavelength: float,
    input_waist: float,
    max_order: int,
    num_pixels: int = NUM_PIXELS,
    fov_factor: float = FOV_FACTOR,
) -> HermiteGaussBasis:
    """Look up a basis in the process-wide cache."""
    return default_cache.get_basis(
        mirror_radius,
        mirror_curvature,
        wavelength,
        input_waist,
        max_order,
        num_pixels=num_pixels,
        fov_factor=fov_factor,
    )
