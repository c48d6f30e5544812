"""
Exceptions raised by the cavity simulation.

Each error keeps the values that produced it so callers can rebuild
their own message or react to the numbers directly.
"""

from __future__ import annotations

from typing import Optional


class CavityError(Exception):
    """Base class for all cavity simulation errors."""


class InvalidGeometry(CavityError):
    """A mirror radius, cavity length or refractive index is not positive."""

    def __init__(self, parameter: str, value: float):
        self.parameter = parameter
        self.value = value
        super().__init__(f"{parameter} must be positive, got {value!r}")


class UnstableCavity(CavityError):
    """
    Round-trip matrix violates the stability condition |(A + D) / 2| <= 1.

    Attributes:
        g1: Stability parameter of mirror 1
        g2: Stability parameter of mirror 2
    """

    def __init__(self, g1: float, g2: float):
        self.g1 = g1
        self.g2 = g2
        super().__init__(
            f"Unstable cavity: g1={g1:.4f}, g2={g2:.4f}, g1*g2={self.g_product:.4f}"
        )

    @property
    def g_product(self) -> float:
        return self.g1 * self.g2


class NearPlanarDegenerate(CavityError):
    """Round-trip C element is ~0, so no confined Gaussian mode exists."""

    def __init__(self, c_element: float):
        self.c_element = c_element
        super().__init__(
            f"Near-planar cavity (C={c_element:.3e}): Gaussian mode is not confined"
        )


class SimulationUnavailable(CavityError):
    """
    The mode scan could not be run.

    Wraps any upstream cavity error (available as ``__cause__``) or a
    condition found by the scan itself.
    """

    def __init__(self, reason: str, cause: Optional[CavityError] = None):
        self.reason = reason
        self.cause = cause
        super().__init__(reason)
