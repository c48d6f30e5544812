"""
CavScan - Two-mirror optical cavity mode and length-scan simulation.

This package provides tools for:
- Solving the Gaussian eigenmode and stability of a two-mirror cavity
- Decomposing an offset, mismatched input beam into Hermite-Gaussian modes
- Simulating the transmitted photodiode trace and camera image of a length scan

Example Usage:
    >>> from cavscan.simulation import CavityGeometry, ScanInputs, solve_cavity_mode
    >>> geometry = CavityGeometry(r1=0.05, r2=0.05, length=0.04, wavelength=780e-9)
    >>> mode = solve_cavity_mode(geometry)
    >>> inputs = ScanInputs.matched(geometry, mode, x_offset=50e-6)

    >>> from cavscan.simulation import simulate_mode_scan
    >>> result = simulate_mode_scan(geometry, inputs)
    >>> result.peak_detuning_fsr
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Any

__version__ = "0.1.0"

# Lazy imports keep `import cavscan` cheap
_LAZY_IMPORTS = {
    # Simulation module
    "CavityGeometry": "cavscan.simulation",
    "CavityMode": "cavscan.simulation",
    "solve_cavity_mode": "cavscan.simulation",
    "stability_label": "cavscan.simulation",
    "HermiteGaussBasis": "cavscan.simulation",
    "BasisCache": "cavscan.simulation",
    "get_basis": "cavscan.simulation",
    "project_onto_basis": "cavscan.simulation",
    "synthesize_order_images": "cavscan.simulation",
    "simulate_transfer": "cavscan.simulation",
    "ScanInputs": "cavscan.simulation",
    "SimulationResult": "cavscan.simulation",
    "simulate_mode_scan": "cavscan.simulation",

    # Settings
    "CavitySettings": "cavscan.config",
    "ScanSettings": "cavscan.config",
    "FixedSettings": "cavscan.config",

    # Errors
    "CavityError": "cavscan.exceptions",
    "InvalidGeometry": "cavscan.exceptions",
    "UnstableCavity": "cavscan.exceptions",
    "NearPlanarDegenerate": "cavscan.exceptions",
    "SimulationUnavailable": "cavscan.exceptions",
}

# Submodules
_SUBMODULES = frozenset([
    "simulation",
    "config",
    "exceptions",
    "cli",
])


def __getattr__(name: str) -> Any:
    """Lazy import handler for package attributes."""
    if name in _LAZY_IMPORTS:
        module = importlib.import_module(_LAZY_IMPORTS[name])
        return getattr(module, name)

    if name in _SUBMODULES:
        return importlib.import_module(f"cavscan.{name}")

    raise AttributeError(f"module 'cavscan' has no attribute '{name}'")


def __dir__() -> list[str]:
    """Return available attributes for autocomplete."""
    return list(_LAZY_IMPORTS.keys()) + list(_SUBMODULES) + ["__version__"]


if TYPE_CHECKING:
    from cavscan.config import CavitySettings, FixedSettings, ScanSettings
    from cavscan.exceptions import (
        CavityError,
        InvalidGeometry,
        NearPlanarDegenerate,
        SimulationUnavailable,
        UnstableCavity,
    )
    from cavscan.simulation import (
        BasisCache,
        CavityGeometry,
        CavityMode,
        HermiteGaussBasis,
        ScanInputs,
        SimulationResult,
        get_basis,
        project_onto_basis,
        simulate_mode_scan,
        simulate_transfer,
        solve_cavity_mode,
        stability_label,
        synthesize_order_images,
    )


__all__ = [
    "__version__",
    # Simulation
    "CavityGeometry",
    "CavityMode",
    "solve_cavity_mode",
    "stability_label",
    "HermiteGaussBasis",
    "BasisCache",
    "get_basis",
    "project_onto_basis",
    "synthesize_order_images",
    "simulate_transfer",
    "ScanInputs",
    "SimulationResult",
    "simulate_mode_scan",
    # Settings
    "CavitySettings",
    "ScanSettings",
    "FixedSettings",
    # Errors
    "CavityError",
    "InvalidGeometry",
    "UnstableCavity",
    "NearPlanarDegenerate",
    "SimulationUnavailable",
]
