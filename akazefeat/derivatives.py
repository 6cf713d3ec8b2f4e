"""Scharr-style first derivatives computed with separable filters."""

from __future__ import annotations

from enum import Enum

import numpy as np

from akazefeat.image import GrayFloatImage, fill_border


class _Direction(Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class _Order(Enum):
    MAIN = "main"
    OFF = "off"


def scharr_horizontal(image, sigma_size):
    """The Scharr derivative at scale ``sigma_size``, smoothing along rows."""
    smoothed = _scharr_axis(image, sigma_size, _Direction.HORIZONTAL, _Order.MAIN)
    return _scharr_axis(smoothed, sigma_size, _Direction.VERTICAL, _Order.OFF)


def scharr_vertical(image, sigma_size):
    """The Scharr derivative at scale ``sigma_size``, smoothing along columns."""
    differenced = _scharr_axis(image, sigma_size, _Direction.HORIZONTAL, _Order.OFF)
    return _scharr_axis(differenced, sigma_size, _Direction.VERTICAL, _Order.MAIN)


def _scharr_axis(image, sigma_size, direction, order):
    border = int(sigma_size)
    if border < 1:
        raise ValueError("sigma_size must be at least 1")
    height, width = image.data.shape
    if height < 2 * border or width < 2 * border:
        raise ValueError(
            f"a {width}x{height} image is too small for sigma_size {sigma_size}"
        )

    # Difference between the middle and the sides of the main-axis filter.
    w = 10.0 / 3.0
    norm = np.float32(1.0 / (2.0 * float(border) * (w + 2.0)))
    middle = norm * np.float32(w)

    if order is _Order.MAIN:
        taps = [(norm, (border, 0)), (middle, (border, border)), (norm, (border, 2 * border))]
    else:
        taps = [(np.float32(-1.0), (border, 0)), (np.float32(1.0), (border, 2 * border))]

    if direction is _Direction.HORIZONTAL:
        taps = [(weight, (y, x)) for weight, (x, y) in taps]

    source = image.data
    output = np.zeros((height, width), dtype=np.float32)
    target = output[border:height - border, border:width - border]
    rows = height - 2 * border
    cols = width - 2 * border
    for weight, (x_offset, y_offset) in taps:
        target += weight * source[y_offset:y_offset + rows, x_offset:x_offset + cols]

    result = GrayFloatImage(output)
    fill_border(result, border)
    return result