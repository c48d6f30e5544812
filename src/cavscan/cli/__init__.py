"""
Command-line interface for CavScan.

Provides CLI tools for cavity mode and length-scan simulation.
"""

from . import simulate

__all__ = [
    "simulate",
]
