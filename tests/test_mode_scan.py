"""
Tests for the length-scan simulation.
"""

import math

import numpy as np
import pytest

from cavscan.exceptions import InvalidGeometry, SimulationUnavailable, UnstableCavity
from cavscan.simulation import (
    BasisCache,
    CavityGeometry,
    ScanInputs,
    SimulationResult,
    simulate_mode_scan,
    solve_cavity_mode,
)
from cavscan.simulation.mode_scan import find_peak_index, normalize


@pytest.fixture
def geometry():
    """Default cavity: R1 = R2 = 50 mm, L = 40 mm, 780 nm."""
    return CavityGeometry(r1=0.05, r2=0.05, length=0.04, wavelength=780e-9)


@pytest.fixture
def mode(geometry):
    """Cavity eigenmode fixture."""
    return solve_cavity_mode(geometry)


@pytest.fixture
def cache():
    """Fresh basis cache per test."""
    return BasisCache()


class TestMatchedScan:
    """Tests for an on-axis, mode-matched input beam."""

    @pytest.fixture
    def result(self, geometry, mode, cache):
        """Run a matched scan."""
        inputs = ScanInputs.matched(geometry, mode, max_order=4)
        return simulate_mode_scan(geometry, inputs, cache=cache)

    def test_result_shapes(self, result):
        """Test result array shapes."""
        assert isinstance(result, SimulationResult)
        assert result.detuning.shape == (481,)
        assert result.detuning_fsr.shape == (481,)
        assert result.detector_trace.shape == (481,)
        assert result.camera_image.shape == (96, 96)
        assert result.power_by_order.shape == (9,)
        assert result.num_pixels == 96

    def test_peak_at_zero_detuning(self, result):
        """Test the transmission peak sits at zero detuning."""
        step = result.detuning[1] - result.detuning[0]
        assert abs(result.peak_detuning) <= step
        assert abs(result.peak_detuning_fsr) <= result.detuning_fsr[1] - result.detuning_fsr[0]

    def test_power_in_fundamental(self, result):
        """Test all input power couples to TEM00."""
        assert result.power_by_order[0] == pytest.approx(1.0, abs=1e-6)
        assert np.all(result.power_by_order[1:] < 1e-6)
        assert result.trace_peak == pytest.approx(1.0, abs=1e-5)

    def test_normalized_signals(self, result):
        """Test normalized trace and image are in [0, 1] with peak 1."""
        assert result.detector_trace.min() >= 0
        assert result.detector_trace.max() == 1.0
        assert result.camera_image.min() >= 0
        assert result.camera_image.max() == 1.0
        assert result.camera_peak > 0

    def test_camera_image_symmetric(self, result):
        """Test the TEM00 image is centered."""
        image = result.camera_image
        np.testing.assert_allclose(image, image[::-1, ::-1], atol=1e-9)
        np.testing.assert_allclose(image, image.T, atol=1e-9)

    def test_extent(self, result, mode):
        """Test the image field of view."""
        low, high = result.extent
        assert low == pytest.approx(-4 * mode.w_mirror1, rel=1e-8)
        assert high == pytest.approx(4 * mode.w_mirror1, rel=1e-8)
        assert result.extent_mm == pytest.approx((low * 1e3, high * 1e3))

    def test_detuning_in_fsr(self, result, geometry):
        """Test the detuning axis in free spectral ranges."""
        assert result.detuning_fsr[0] == pytest.approx(-2.0)
        assert result.detuning_fsr[-1] == pytest.approx(2.0)
        np.testing.assert_allclose(result.detuning, result.detuning_fsr * geometry.fsr_length)


class TestMismatchedScan:
    """Tests for offset and mismatched input beams."""

    def test_offset_excites_higher_orders(self, geometry, mode, cache):
        """Test a displaced beam spreads power into odd orders."""
        inputs = ScanInputs.matched(geometry, mode, x_offset=0.5 * mode.w_mirror1, max_order=8)
        result = simulate_mode_scan(geometry, inputs, cache=cache)

        assert result.power_by_order[0] == pytest.approx(math.exp(-0.25), rel=1e-5)
        assert result.power_by_order[1] > 0.1
        assert abs(result.peak_detuning) <= result.detuning[1] - result.detuning[0]

    def test_offset_broadens_camera_image(self, geometry, mode, cache):
        """Test an x offset widens the image along x only."""
        inputs = ScanInputs.matched(geometry, mode, x_offset=0.5 * mode.w_mirror1, max_order=8)
        result = simulate_mode_scan(geometry, inputs, cache=cache)

        image = result.camera_image
        x = np.linspace(result.extent[0], result.extent[1], result.num_pixels)
        total = image.sum()
        centroid_y = np.sum(image * x[:, None]) / total
        spread_x = np.sum(image * x[None, :] ** 2) / total
        spread_y = np.sum(image * x[:, None] ** 2) / total

        assert abs(centroid_y) < 1e-6 * mode.w_mirror1
        assert spread_x > spread_y
        np.testing.assert_allclose(image, image[::-1, :], atol=1e-9)

    def test_y_offset_mirrors_x_offset(self, geometry, mode, cache):
        """Test x and y offsets give transposed images."""
        offset = 0.3 * mode.w_mirror1
        x_result = simulate_mode_scan(
            geometry, ScanInputs.matched(geometry, mode, x_offset=offset, max_order=6), cache=cache
        )
        y_result = simulate_mode_scan(
            geometry, ScanInputs.matched(geometry, mode, y_offset=offset, max_order=6), cache=cache
        )

        np.testing.assert_allclose(x_result.camera_image, y_result.camera_image.T, atol=1e-9)
        np.testing.assert_allclose(x_result.detector_trace, y_result.detector_trace, atol=1e-12)

    def test_power_conserved(self, geometry, mode, cache):
        """Test the order powers sum to about one for a well-resolved beam."""
        inputs = ScanInputs(
            beam_waist=1.2 * mode.w_mirror1,
            beam_curvature=geometry.r1,
            x_offset=0.2 * mode.w_mirror1,
            max_order=12,
        )
        result = simulate_mode_scan(geometry, inputs, cache=cache)

        assert result.power_by_order.sum() == pytest.approx(1.0, abs=1e-3)

    def test_flat_wavefront(self, geometry, mode, cache):
        """Test an input with infinite curvature still runs."""
        inputs = ScanInputs(beam_waist=mode.w_mirror1, beam_curvature=math.inf, max_order=4)
        result = simulate_mode_scan(geometry, inputs, cache=cache)

        assert result.power_by_order[0] < 1.0
        assert result.detector_trace.max() == 1.0

    def test_uses_cache(self, geometry, mode, cache):
        """Test repeated scans reuse the basis."""
        inputs = ScanInputs.matched(geometry, mode, max_order=3)
        simulate_mode_scan(geometry, inputs, cache=cache)
        simulate_mode_scan(geometry, inputs, cache=cache)

        assert cache.misses == 1
        assert cache.hits == 1

    def test_grid_settings(self, geometry, mode, cache):
        """Test camera, scan and profile sampling follow the arguments."""
        inputs = ScanInputs.matched(geometry, mode, max_order=2)
        result = simulate_mode_scan(
            geometry,
            inputs,
            cache=cache,
            num_pixels=64,
            fov_factor=2.0,
            num_scan_points=101,
            profile_samples=200,
        )

        assert result.camera_image.shape == (64, 64)
        assert result.detector_trace.shape == (101,)
        assert result.mode.w.shape == (200,)
        assert result.extent[1] == pytest.approx(2.0 * mode.w_mirror1, rel=1e-6)


class TestScanErrors:
    """Tests for failing scans."""

    def test_unstable_cavity(self, cache):
        """Test an unstable cavity aborts the scan."""
        geometry = CavityGeometry(r1=0.01, r2=0.01, length=0.03, wavelength=780e-9)
        inputs = ScanInputs(beam_waist=1e-4, beam_curvature=0.01)

        with pytest.raises(SimulationUnavailable) as excinfo:
            simulate_mode_scan(geometry, inputs, cache=cache)

        assert isinstance(excinfo.value.cause, UnstableCavity)
        assert isinstance(excinfo.value.__cause__, UnstableCavity)
        assert "g1*g2=4.0000" in str(excinfo.value)
        assert len(cache) == 0

    def test_invalid_geometry(self, cache):
        """Test an invalid geometry aborts the scan."""
        geometry = CavityGeometry(r1=-0.01, r2=0.05, length=0.04, wavelength=780e-9)
        inputs = ScanInputs(beam_waist=1e-4, beam_curvature=0.05)

        with pytest.raises(SimulationUnavailable) as excinfo:
            simulate_mode_scan(geometry, inputs, cache=cache)

        assert isinstance(excinfo.value.cause, InvalidGeometry)

    def test_marginally_stable(self, cache):
        """Test a concentric cavity aborts the scan before building a basis."""
        geometry = CavityGeometry(r1=0.05, r2=0.05, length=0.1, wavelength=780e-9)
        inputs = ScanInputs(beam_waist=3e-4, beam_curvature=0.05)

        with pytest.raises(SimulationUnavailable) as excinfo:
            simulate_mode_scan(geometry, inputs, cache=cache)

        assert excinfo.value.cause is None
        assert "unbounded" in str(excinfo.value)
        assert len(cache) == 0


class TestHelpers:
    """Tests for normalization and peak selection."""

    def test_normalize(self):
        """Test normalization returns the peak."""
        values, peak = normalize(np.array([0.0, 2.0, 4.0]))
        np.testing.assert_allclose(values, [0.0, 0.5, 1.0])
        assert peak == 4.0

    def test_normalize_all_zero(self):
        """Test normalization of an empty signal."""
        values, peak = normalize(np.zeros(3))
        assert peak == pytest.approx(1e-18)
        assert np.all(values == 0)

    def test_peak_prefers_zero_detuning(self):
        """Test tied maxima resolve to the sample nearest zero."""
        detuning = np.linspace(-2, 2, 5)
        trace = np.array([1.0, 0.2, 1.0 - 1e-12, 0.2, 1.0])
        assert find_peak_index(trace, detuning) == 2

    def test_peak_unique(self):
        """Test a single maximum is returned as is."""
        detuning = np.linspace(-2, 2, 5)
        trace = np.array([0.1, 0.9, 0.5, 0.2, 0.3])
        assert find_peak_index(trace, detuning) == 1
