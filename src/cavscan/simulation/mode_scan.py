"""
Cavity Length-Scan Simulation.

This module composes the cavity solver, the Hermite-Gaussian
decomposition and the Fabry-Pérot response into the signals seen while
scanning the cavity length: the transmitted power on a photodiode and the
time-averaged transmitted intensity on a camera.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from ..exceptions import CavityError, SimulationUnavailable
from .cavity import PROFILE_SAMPLES, CavityGeometry, CavityMode, solve_cavity_mode
from .mode_generator import FOV_FACTOR, NUM_PIXELS, BasisCache, default_cache
from .order_images import synthesize_order_images
from .overlap import project_onto_basis
from .transfer import MIRROR_REFLECTIVITY, NUM_SCAN_POINTS, simulate_transfer

logger = logging.getLogger(__name__)

PEAK_TIE_TOLERANCE = 1e-9
MIN_PEAK = 1e-18


@dataclass(frozen=True)
class ScanInputs:
    """
    Input beam and scan settings (SI units).

    The input beam is circularly symmetric: the same waist and wavefront
    curvature apply to both transverse axes.
    """

    beam_waist: float  # meters
    beam_curvature: float  # meters, inf for a flat wavefront
    x_offset: float = 0.0  # meters
    y_offset: float = 0.0  # meters
    scan_range: float = 2.0  # half-width in free spectral ranges
    max_order: int = 10

    @classmethod
    def matched(
        cls,
        geometry: CavityGeometry,
        mode: CavityMode,
        **kwargs,
    ) -> "ScanInputs":
        """Input beam equal to the cavity mode at mirror 1."""
        return cls(beam_waist=mode.w_mirror1, beam_curvature=geometry.r1, **kwargs)


@dataclass(frozen=True)
class SimulationResult:
    """
    Normalized detector signals of a cavity length scan.

    The modes and input field have unit power per axis, so a matched beam
    transmits ``trace_peak`` = 1 on resonance. A basis normalized to
    1/sqrt(2) per axis instead scales ``trace_peak`` by 1/4 and
    ``camera_peak`` by 1/8.

    Attributes:
        mode: Cavity eigenmode used for the scan
        detuning: Mirror displacement of each scan sample in meters
        detuning_fsr: The same axis in free spectral ranges
        detector_trace: Transmitted power normalized to its peak
        trace_peak: Unnormalized peak of the transmitted power
        peak_detuning: Detuning of the trace peak in meters
        camera_image: Time-averaged intensity normalized to its peak, indexed [y, x]
        camera_peak: Unnormalized peak of the camera image
        extent: (min, max) image coordinate in meters, same for both axes
        power_by_order: Input power coupled into each combined order
    """

    mode: CavityMode
    detuning: NDArray
    detuning_fsr: NDArray
    detector_trace: NDArray
    trace_peak: float
    peak_detuning: float
    camera_image: NDArray
    camera_peak: float
    extent: Tuple[float, float]
    power_by_order: NDArray

    @property
    def peak_detuning_fsr(self) -> float:
        fsr_length = self.detuning[-1] / self.detuning_fsr[-1]
        return self.peak_detuning / fsr_length

    @property
    def extent_mm(self) -> Tuple[float, float]:
        return self.extent[0] * 1e3, self.extent[1] * 1e3

    @property
    def num_pixels(self) -> int:
        return self.camera_image.shape[0]


def normalize(values: NDArray) -> Tuple[NDArray, float]:
    """Divide by the maximum value; return the scaled array and the maximum."""
    peak = max(float(values.max()), MIN_PEAK)
    return values / peak, peak


def find_peak_index(trace: NDArray, detuning: NDArray) -> int:
    """
    Index of the trace maximum.

    Neighbouring longitudinal resonances give identical maxima, so samples
    within PEAK_TIE_TOLERANCE of the maximum count as ties and the tie
    closest to zero detuning wins.
    """
    peak = trace.max()
    candidates = np.flatnonzero(trace >= peak * (1 - PEAK_TIE_TOLERANCE))
    return int(candidates[np.argmin(np.abs(detuning[candidates]))])


def simulate_mode_scan(
    geometry: CavityGeometry,
    inputs: ScanInputs,
    cache: Optional[BasisCache] = None,
    reflectivity: float = MIRROR_REFLECTIVITY,
    num_pixels: int = NUM_PIXELS,
    fov_factor: float = FOV_FACTOR,
    num_scan_points: int = NUM_SCAN_POINTS,
    profile_samples: int = PROFILE_SAMPLES,
) -> SimulationResult:
    """
    Simulate the transmission of an input beam during a cavity length scan.

    Args:
        geometry: Cavity geometry
        inputs: Input beam and scan settings
        cache: Basis cache (defaults to the process-wide cache)
        reflectivity: Power reflectivity of each mirror
        num_pixels: Camera grid points per axis
        fov_factor: Camera half-width in units of the larger beam radius
        num_scan_points: Detuning samples
        profile_samples: Beam-radius samples between the mirrors

    Returns:
        SimulationResult

    Raises:
        SimulationUnavailable: The cavity has no confined Gaussian mode
    """
    try:
        mode = solve_cavity_mode(geometry, num_samples=profile_samples)
    except CavityError as e:
        raise SimulationUnavailable(str(e), cause=e) from e

    if not np.isfinite(mode.w_mirror1):
        raise SimulationUnavailable(
            "Cavity mode radius at mirror 1 is unbounded (marginally stable cavity)"
        )

    cache = cache if cache is not None else default_cache
    wavelength = geometry.medium_wavelength

    basis = cache.get_basis(
        mode.w_mirror1,
        geometry.r1,
        wavelength,
        inputs.beam_waist,
        inputs.max_order,
        num_pixels=num_pixels,
        fov_factor=fov_factor,
    )
    alpha = project_onto_basis(
        basis, inputs.beam_waist, inputs.beam_curvature, wavelength, inputs.x_offset
    )
    beta = project_onto_basis(
        basis, inputs.beam_waist, inputs.beam_curvature, wavelength, inputs.y_offset
    )
    orders = synthesize_order_images(basis, alpha, beta, inputs.max_order)
    scan = simulate_transfer(
        orders.num_orders,
        wavelength,
        mode.g_product,
        inputs.scan_range,
        reflectivity=reflectivity,
        num_samples=num_scan_points,
    )

    # Orders add incoherently on the photodiode
    trace = orders.power @ (np.abs(scan.transfer) ** 2)

    weighted = np.tensordot(scan.correlation, orders.images.conj(), axes=(1, 0))
    image = np.sum(orders.images * weighted, axis=0).real
    image = np.maximum(image, 0.0)

    trace_norm, trace_peak = normalize(trace)
    image_norm, image_peak = normalize(image)
    peak_index = find_peak_index(trace_norm, scan.detuning)

    logger.debug(
        f"Mode scan: {orders.num_orders} orders, trace peak {trace_peak:.4e} "
        f"at {scan.detuning[peak_index]:.4e} m, camera peak {image_peak:.4e}"
    )

    return SimulationResult(
        mode=mode,
        detuning=scan.detuning,
        detuning_fsr=scan.detuning / geometry.fsr_length,
        detector_trace=trace_norm,
        trace_peak=trace_peak,
        peak_detuning=float(scan.detuning[peak_index]),
        camera_image=image_norm,
        camera_peak=image_peak,
        extent=basis.extent,
        power_by_order=orders.power,
    )
