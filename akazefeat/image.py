"""Single-channel floating point images and the separable filters used on them."""

from __future__ import annotations

import math

import numpy as np
from PIL import Image

_SIXTEEN_BIT_MODES = frozenset({"I;16", "I;16B", "I;16L", "I;16N", "I"})


class GrayFloatImage:
    """A grayscale image stored as a row-major ``float32`` array of shape (height, width)."""

    __slots__ = ("data",)

    def __init__(self, data):
        array = np.array(data, dtype=np.float32)
        if array.ndim != 2:
            raise ValueError(f"an image needs a 2-D array, got {array.ndim} dimensions")
        self.data = np.ascontiguousarray(array)

    @classmethod
    def zeros(cls, width, height):
        """Create an image of the given size filled with zeros."""
        return cls(np.zeros((height, width), dtype=np.float32))

    @classmethod
    def from_pil(cls, image):
        """Convert a Pillow image to grayscale with values between 0 and 1."""
        if image.mode in _SIXTEEN_BIT_MODES:
            pixels = np.asarray(image, dtype=np.float32) / np.float32(65535.0)
        else:
            pixels = np.asarray(image.convert("L"), dtype=np.float32) / np.float32(255.0)
        return cls(pixels)

    def width(self):
        return self.data.shape[1]

    def height(self):
        return self.data.shape[0]

    def _check_bounds(self, x, y):
        if not (0 <= x < self.width() and 0 <= y < self.height()):
            raise IndexError(
                f"pixel ({x}, {y}) is outside a {self.width()}x{self.height()} image"
            )

    def get(self, x, y):
        """Return the value of the pixel at column ``x`` and row ``y``."""
        self._check_bounds(x, y)
        return float(self.data[y, x])

    def put(self, x, y, value):
        """Set the pixel at column ``x`` and row ``y``."""
        self._check_bounds(x, y)
        self.data[y, x] = value

    def copy(self):
        return GrayFloatImage(self.data)

    def half_size(self):
        """Downsample by two in each direction with nearest-neighbour sampling."""
        height, width = self.data.shape
        rows = _nearest_indices(height, height // 2)
        cols = _nearest_indices(width, width // 2)
        return GrayFloatImage(self.data[np.ix_(rows, cols)])

    def __repr__(self):
        return f"GrayFloatImage(width={self.width()}, height={self.height()})"


def _nearest_indices(source_size, target_size):
    if target_size == 0:
        return np.zeros(0, dtype=np.intp)
    ratio = source_size / target_size
    indices = np.floor((np.arange(target_size) + 0.5) * ratio).astype(np.intp)
    return np.clip(indices, 0, source_size - 1)


def fill_border(image, half_width):
    """Overwrite a border of ``half_width`` pixels with the nearest inner row or column."""
    data = image.data
    height, width = data.shape
    if height == 0 or width == 0:
        return
    if half_width >= height or half_width >= width:
        raise ValueError(
            f"border of {half_width} pixels does not fit a {width}x{height} image"
        )
    top = data[half_width].copy()
    bottom = data[height - half_width - 1].copy()
    data[:half_width] = top
    data[height - half_width:] = bottom
    left = data[:, half_width].copy()
    right = data[:, width - half_width - 1].copy()
    data[:, :half_width] = left[:, np.newaxis]
    data[:, width - half_width:] = right[:, np.newaxis]


def _odd_kernel(kernel):
    kernel = np.asarray(kernel, dtype=np.float32)
    if kernel.ndim != 1 or len(kernel) % 2 == 0:
        raise ValueError("the filter kernel must be a 1-D sequence of odd length")
    return kernel


def _flat_filter(image, kernel, stride):
    # The kernel runs over the flattened pixel buffer; the values that wrap
    # across rows all land in the border, which is refilled afterwards.
    half_width = len(kernel) // 2
    height, width = image.data.shape
    total = width * height
    source = image.data.ravel()
    output = np.zeros(total, dtype=np.float32)
    start = half_width * stride
    stop = total - start - 1
    if stop > start:
        for offset, weight in zip(range(-half_width, half_width + 1), kernel):
            shift = offset * stride
            output[start:stop] += weight * source[start + shift:stop + shift]
    result = GrayFloatImage(output.reshape(height, width))
    fill_border(result, half_width)
    return result


def horizontal_filter(image, kernel):
    """Convolve each row with an odd-length kernel."""
    return _flat_filter(image, _odd_kernel(kernel), 1)


def vertical_filter(image, kernel):
    """Convolve each column with an odd-length kernel."""
    return _flat_filter(image, _odd_kernel(kernel), image.width())


def gaussian(x, r):
    """The normal density with standard deviation ``r`` evaluated at ``x``."""
    return math.exp(-(x * x) / (2.0 * r * r)) / (math.sqrt(2.0 * math.pi) * r)


def gaussian_kernel(r, kernel_size):
    """A normalised Gaussian kernel of odd length ``kernel_size``."""
    if kernel_size % 2 == 0:
        raise ValueError("the kernel size must be odd")
    half_width = kernel_size // 2
    values = np.array(
        [gaussian(float(i), r) for i in range(-half_width, half_width + 1)],
        dtype=np.float32,
    )
    return values / values.sum(dtype=np.float32)


def gaussian_blur(image, r):
    """Blur with a separable Gaussian of standard deviation ``r``."""
    kernel_size = math.ceil(r) * 2 + 1
    kernel = gaussian_kernel(r, kernel_size)
    return vertical_filter(horizontal_filter(image, kernel), kernel)