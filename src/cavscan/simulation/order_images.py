"""
Transverse field images grouped by combined mode order.

Modes TEM_nm with the same n + m resonate at the same cavity length in a
symmetric resonator, so their fields are summed coherently into one image
per combined order before any intensity is formed.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .mode_generator import HermiteGaussBasis


@dataclass(frozen=True)
class OrderImages:
    """
    Coherent field image and power for each combined order p = n + m.

    Attributes:
        images: Complex fields, shape (2 * max_order + 1, ny, nx), indexed [p, y, x]
        power: Power coupled into each combined order
    """

    images: NDArray
    power: NDArray

    @property
    def num_orders(self) -> int:
        return self.images.shape[0]


def synthesize_order_images(
    basis: HermiteGaussBasis,
    alpha: NDArray,
    beta: NDArray,
    max_order: int,
) -> OrderImages:
    """
    Combine per-axis coefficients into per-order 2D fields.

    Args:
        basis: Sampled 1D modes shared by both axes
        alpha: x-axis overlap coefficients
        beta: y-axis overlap coefficients
        max_order: Highest 1D mode order used

    Returns:
        OrderImages with 2 * max_order + 1 entries
    """
    num_orders = 2 * max_order + 1
    size = basis.num_pixels
    modes = basis.modes
    images = np.zeros((num_orders, size, size), dtype=np.complex128)
    power = np.zeros(num_orders, dtype=np.float64)

    for order in range(num_orders):
        for n in range(max(0, order - max_order), min(max_order, order) + 1):
            m = order - n
            coeff = alpha[n] * beta[m]
            power[order] += abs(alpha[n]) ** 2 * abs(beta[m]) ** 2
            images[order] += coeff * np.outer(modes[m], modes[n])

    return OrderImages(images=images, power=power)
