"""The rotation invariant M-LDB binary descriptor."""

from __future__ import annotations

import math

import numpy as np

_F32 = np.float32
_MAX_CHANNELS = 3
_DESCRIPTOR_BYTES = 64
_SIZE_MULTIPLIERS = (_F32(1.0), _F32(2.0) / _F32(3.0), _F32(1.0) / _F32(2.0))


def _check_options(descriptor_channels, descriptor_pattern_size):
    if not 1 <= descriptor_channels <= _MAX_CHANNELS:
        raise ValueError(
            f"descriptor_channels must be between 1 and {_MAX_CHANNELS}, "
            f"got {descriptor_channels}"
        )
    if descriptor_pattern_size < 1:
        raise ValueError("descriptor_pattern_size must be at least 1")


def _round_half_away(values):
    return np.where(values < 0, -np.floor(-values + 0.5), np.floor(values + 0.5)).astype(
        np.int64
    )


def _sample(image, xs, ys):
    height, width = image.data.shape
    if xs.min() < 0 or ys.min() < 0 or xs.max() >= width or ys.max() >= height:
        raise IndexError(
            f"descriptor samples fall outside a {width}x{height} image"
        )
    return image.data[ys, xs]


def extract_descriptors(evolutions, keypoints, descriptor_channels, descriptor_pattern_size):
    """Compute a 64-byte descriptor for each keypoint."""
    return [
        mldb_descriptor(keypoint, evolutions, descriptor_channels, descriptor_pattern_size)
        for keypoint in keypoints
    ]


def mldb_descriptor(keypoint, evolutions, descriptor_channels, descriptor_pattern_size):
    """The M-LDB descriptor of one keypoint as 64 bytes, bits in little-endian order."""
    _check_options(descriptor_channels, descriptor_pattern_size)
    ratio = _F32(1 << keypoint.octave)
    half_size = _F32(0.5) * _F32(keypoint.size) / ratio
    scale = _F32(math.copysign(math.floor(abs(float(half_size)) + 0.5), float(half_size)))
    xf = _F32(keypoint.point[0]) / ratio
    yf = _F32(keypoint.point[1]) / ratio
    co = np.cos(_F32(keypoint.angle))
    si = np.sin(_F32(keypoint.angle))

    values = [0.0] * (16 * _MAX_CHANNELS)
    descriptor = bytearray(_DESCRIPTOR_BYTES)
    dpos = 0
    for level, multiplier in enumerate(_SIZE_MULTIPLIERS):
        val_count = (level + 2) * (level + 2)
        sample_step = math.ceil(_F32(descriptor_pattern_size) * multiplier)
        filled = mldb_fill_values(
            sample_step,
            keypoint.class_id,
            xf,
            yf,
            co,
            si,
            scale,
            evolutions,
            descriptor_channels,
            descriptor_pattern_size,
        )
        if len(filled) > len(values):
            raise ValueError(
                f"pattern size {descriptor_pattern_size} yields too many samples"
            )
        values[: len(filled)] = filled
        dpos = mldb_binary_comparisons(
            values, descriptor, val_count, dpos, descriptor_channels
        )
    return bytes(descriptor)


def mldb_fill_values(
    sample_step,
    level,
    xf,
    yf,
    co,
    si,
    scale,
    evolutions,
    descriptor_channels,
    descriptor_pattern_size,
):
    """Average intensity (and derivatives) over a grid of rotated square cells.

    The cells have a side of ``sample_step`` and cover a square of
    ``2 * descriptor_pattern_size`` around the point. The result holds
    ``descriptor_channels`` values per cell, cells in row-major order.
    """
    _check_options(descriptor_channels, descriptor_pattern_size)
    if sample_step < 1:
        raise ValueError("sample_step must be at least 1")
    evolution = evolutions[level]
    xf, yf, co, si, scale = (_F32(v) for v in (xf, yf, co, si, scale))
    pattern = int(descriptor_pattern_size)
    starts = range(-pattern, pattern, sample_step)

    values = []
    for i in starts:
        ks = np.arange(i, i + sample_step).astype(np.float32) + _F32(0.5)
        for j in starts:
            ls = np.arange(j, j + sample_step).astype(np.float32) + _F32(0.5)
            kk, ll = np.meshgrid(ks, ls, indexing="ij")
            sample_y = yf + (ll * co * scale + kk * si * scale)
            sample_x = xf + (-ll * si * scale + kk * co * scale)
            ys = _round_half_away(sample_y)
            xs = _round_half_away(sample_x)
            count = _F32(kk.size)

            intensity = _sample(evolution.lt, xs, ys)
            values.append(float(intensity.sum(dtype=np.float32) / count))
            if descriptor_channels > 1:
                rx = _sample(evolution.lx, xs, ys)
                ry = _sample(evolution.ly, xs, ys)
                if descriptor_channels == 2:
                    magnitude = np.sqrt(rx * rx + ry * ry)
                    values.append(float(magnitude.sum(dtype=np.float32) / count))
                else:
                    rry = rx * co + ry * si
                    rrx = -rx * si + ry * co
                    values.append(float(rrx.sum(dtype=np.float32) / count))
                    values.append(float(rry.sum(dtype=np.float32) / count))
    return values


def mldb_binary_comparisons(values, descriptor, count, dpos, nr_channels):
    """Set one bit in ``descriptor`` per ordered pair of the first ``count`` cells.

    For each channel and each pair ``i < j`` the bit is set when cell ``i``
    exceeds cell ``j``. Bits are written from position ``dpos`` on; the
    position after the last bit is returned.
    """
    if len(values) < nr_channels * count:
        raise IndexError(
            f"{len(values)} values are too few for {count} cells of {nr_channels} channels"
        )
    for channel in range(nr_channels):
        column = values[channel : nr_channels * count : nr_channels]
        for i, first in enumerate(column):
            for second in column[i + 1 :]:
                bit = 1 if first > second else 0
                descriptor[dpos >> 3] |= bit << (dpos & 7)
                dpos += 1
    return dpos