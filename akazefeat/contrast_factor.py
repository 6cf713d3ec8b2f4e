"""Empirical estimate of the contrast factor k for nonlinear diffusion."""

from __future__ import annotations

import logging

import numpy as np

from akazefeat.derivatives import scharr_horizontal, scharr_vertical
from akazefeat.image import gaussian_blur

logger = logging.getLogger(__name__)

_FALLBACK_CONTRAST = 0.03


def compute_contrast_factor(image, percentile, gradient_histogram_scale, num_bins):
    """Return the gradient magnitude at ``percentile`` (0-1) of a blurred image.

    The magnitudes of the interior pixels are put into a histogram of
    ``num_bins`` bins after a Gaussian blur of scale
    ``gradient_histogram_scale``.
    """
    if image.width() < 3 or image.height() < 3:
        raise ValueError("the contrast factor needs an image of at least 3x3 pixels")
    if num_bins < 1:
        raise ValueError("the histogram needs at least one bin")

    smoothed = gaussian_blur(image, float(gradient_histogram_scale))
    lx = scharr_horizontal(smoothed, 1).data[1:-1, 1:-1]
    ly = scharr_vertical(smoothed, 1).data[1:-1, 1:-1]
    squared = (lx * lx).astype(np.float64) + (ly * ly).astype(np.float64)
    hmax = float(np.sqrt(squared.max()))

    magnitudes = np.sqrt(squared)
    nonzero = magnitudes[magnitudes != 0.0]
    if nonzero.size:
        bins = np.floor(num_bins * (nonzero / hmax)).astype(np.intp)
        bins = np.minimum(bins, num_bins - 1)
        histogram = np.bincount(bins, minlength=num_bins)
    else:
        histogram = np.zeros(num_bins, dtype=np.intp)

    threshold = int(nonzero.size * percentile)
    num_elements = 0
    k = 0
    for count in histogram:
        if num_elements >= threshold:
            break
        num_elements += int(count)
        k += 1

    logger.debug(
        "hmax: %s, threshold: %s, num_elements: %s", hmax, threshold, num_elements
    )
    if num_elements >= threshold:
        return hmax * k / num_bins
    return _FALLBACK_CONTRAST