"""Explicit nonlinear diffusion steps and the Perona-Malik conductivity."""

from __future__ import annotations

import numpy as np

from akazefeat.image import GrayFloatImage


def calculate_step(evolution, step_size):
    """Apply one forward Euler diffusion step to ``evolution.lt`` in place.

    The flow between neighbouring pixels is the step size times the product
    of their conductivities (``evolution.lflow``) times their difference.
    """
    values = evolution.lt.data
    conductivities = evolution.lflow.data
    if values.shape != conductivities.shape:
        raise ValueError("the image and its conductivities differ in size")
    step = np.float32(step_size)

    horizontal = (
        step
        * conductivities[:, :-1]
        * conductivities[:, 1:]
        * (values[:, 1:] - values[:, :-1])
    )
    vertical = (
        step
        * conductivities[:-1, :]
        * conductivities[1:, :]
        * (values[1:, :] - values[:-1, :])
    )

    values[:, :-1] += horizontal
    values[:, 1:] -= horizontal
    values[:-1, :] += vertical
    values[1:, :] -= vertical


def pm_g2(lx, ly, k):
    """The Perona-Malik conductivity g2 = 1 / (1 + |grad L|^2 / k^2)."""
    if lx.data.shape != ly.data.shape:
        raise ValueError("the two derivative images differ in size")
    inverse_k = np.float32(1.0 / (k * k))
    x = lx.data
    y = ly.data
    conductivities = np.float32(1.0) / (np.float32(1.0) + inverse_k * (x * x + y * y))
    return GrayFloatImage(conductivities)