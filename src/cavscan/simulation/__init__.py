"""
Simulation module for two-mirror cavity mode scans.

This module provides the cavity eigenmode solver, the Hermite-Gaussian
basis and modal decomposition of an input beam, and the Fabry-Pérot
length-scan simulation built on them.
"""

from .cavity import (
    CavityGeometry,
    CavityMode,
    finesse,
    gouy_phase,
    round_trip_matrix,
    solve_cavity_mode,
    stability_label,
)
from .mode_generator import (
    BasisCache,
    HermiteGaussBasis,
    default_cache,
    generate_basis,
    get_basis,
    hermite_table,
)
from .mode_scan import ScanInputs, SimulationResult, simulate_mode_scan
from .order_images import OrderImages, synthesize_order_images
from .overlap import input_field, project_mode, project_onto_basis
from .transfer import ScanTrace, airy_transfer, simulate_transfer

__all__ = [
    # Cavity mode
    "CavityGeometry",
    "CavityMode",
    "solve_cavity_mode",
    "stability_label",
    "round_trip_matrix",
    "finesse",
    "gouy_phase",
    # Basis generation
    "HermiteGaussBasis",
    "BasisCache",
    "default_cache",
    "generate_basis",
    "get_basis",
    "hermite_table",
    # Modal decomposition
    "input_field",
    "project_onto_basis",
    "project_mode",
    "OrderImages",
    "synthesize_order_images",
    # Length scan
    "ScanTrace",
    "airy_transfer",
    "simulate_transfer",
    "ScanInputs",
    "SimulationResult",
    "simulate_mode_scan",
]
