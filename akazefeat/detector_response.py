"""The Hessian determinant response used to detect keypoints."""

from __future__ import annotations

import math

import numpy as np

from akazefeat.derivatives import scharr_horizontal, scharr_vertical
from akazefeat.image import GrayFloatImage


def _derivative_scale(evolution, derivative_factor):
    # The image shrinks by 2^octave, so the filter scale shrinks with it.
    ratio = 2.0 ** evolution.octave
    return math.floor(evolution.esigma * derivative_factor / ratio + 0.5)


def compute_multiscale_derivatives(evolutions, derivative_factor):
    """Fill in the first and second derivatives of every step's smoothed image."""
    for evolution in evolutions:
        sigma_size = _derivative_scale(evolution, derivative_factor)
        evolution.lx = scharr_horizontal(evolution.lsmooth, sigma_size)
        evolution.ly = scharr_vertical(evolution.lsmooth, sigma_size)
        evolution.lxx = scharr_horizontal(evolution.lx, sigma_size)
        evolution.lyy = scharr_vertical(evolution.ly, sigma_size)
        evolution.lxy = scharr_vertical(evolution.lx, sigma_size)


def detector_response(evolutions, derivative_factor):
    """Store the scale-normalised determinant of the Hessian in each step's ``ldet``."""
    compute_multiscale_derivatives(evolutions, derivative_factor)
    for evolution in evolutions:
        sigma_size = _derivative_scale(evolution, derivative_factor)
        normalisation = np.float32(float(sigma_size) ** 4)
        lxx = evolution.lxx.data
        lyy = evolution.lyy.data
        lxy = evolution.lxy.data
        evolution.ldet = GrayFloatImage((lxx * lyy - lxy * lxy) * normalisation)