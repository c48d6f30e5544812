"""
Fabry-Pérot transmission across a cavity length scan.

Each combined transverse order sees the same Airy response, shifted in
length by its Gouy phase. The detuning-averaged products of these
responses weight the interference between orders in a time-averaged
camera image.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .cavity import gouy_phase

MIRROR_REFLECTIVITY = 0.995
NUM_SCAN_POINTS = 481  # odd, so zero detuning is sampled exactly


@dataclass(frozen=True)
class ScanTrace:
    """
    Per-order transfer amplitudes over a symmetric length scan.

    Attributes:
        detuning: Mirror displacement of each sample in meters
        transfer: Complex transfer amplitude, shape (num_orders, num_samples)
        correlation: Detuning-averaged transfer[p] * conj(transfer[q])
    """

    detuning: NDArray
    transfer: NDArray
    correlation: NDArray

    @property
    def step(self) -> float:
        return float(self.detuning[1] - self.detuning[0])


def airy_transfer(phase: NDArray, reflectivity: float = MIRROR_REFLECTIVITY) -> NDArray:
    """
    Transmitted field of a symmetric Fabry-Pérot cavity.

    t^2 exp(i phi / 2) / (1 - r^2 exp(i phi)) with r = sqrt(R), t = sqrt(1 - R).
    """
    r_squared = reflectivity
    t_squared = 1 - reflectivity
    return t_squared * np.exp(0.5j * phase) / (1 - r_squared * np.exp(1j * phase))


def simulate_transfer(
    num_orders: int,
    wavelength: float,
    g_product: float,
    scan_range: float,
    reflectivity: float = MIRROR_REFLECTIVITY,
    num_samples: int = NUM_SCAN_POINTS,
) -> ScanTrace:
    """
    Transfer amplitudes of each transverse order during a length scan.

    Args:
        num_orders: Number of combined transverse orders
        wavelength: Wavelength in the cavity medium in meters
        g_product: g1 * g2 of the cavity (clamped to [0, 1])
        scan_range: Half-width of the scan in free spectral ranges
        reflectivity: Power reflectivity of each mirror
        num_samples: Number of detuning samples

    Returns:
        ScanTrace
    """
    fsr_length = wavelength / 2
    detuning = np.linspace(-scan_range * fsr_length, scan_range * fsr_length, num_samples)
    k = 2 * np.pi / wavelength
    zeta = gouy_phase(g_product)

    # Higher orders come into resonance earlier in the scan
    resonance_shift = -(np.arange(num_orders) * zeta / k)
    phase = 2 * k * (detuning[None, :] - resonance_shift[:, None])
    transfer = airy_transfer(phase, reflectivity)

    correlation = (transfer @ transfer.conj().T) / num_samples

    return ScanTrace(detuning=detuning, transfer=transfer, correlation=correlation)
