"""Detection of scale space extrema, sub-pixel refinement and orientation."""

from __future__ import annotations

import logging
import math
from dataclasses import replace

import numpy as np

from akazefeat.keypoint import KeyPoint

logger = logging.getLogger(__name__)

_F32 = np.float32
_PI = _F32(math.pi)
_TWO_PI = _F32(2.0) * _PI
_WINDOW = _PI / _F32(3.0)
_WRAP = _F32(5.0) * _PI / _F32(3.0)
_ANGLE_STEP = _F32(0.15)
_SMAX = float(_F32(10.0) * _F32(math.sqrt(2.0)))

# A 7x7 Gaussian kernel, indexed by the absolute offset from the centre.
_GAUSS25 = np.array(
    [
        [0.02546481, 0.02350698, 0.01849125, 0.01239505, 0.00708017, 0.00344629, 0.00142946],
        [0.02350698, 0.02169968, 0.01706957, 0.01144208, 0.00653582, 0.00318132, 0.00131956],
        [0.01849125, 0.01706957, 0.01342740, 0.00900066, 0.00514126, 0.00250252, 0.00103800],
        [0.01239505, 0.01144208, 0.00900066, 0.00603332, 0.00344629, 0.00167749, 0.00069579],
        [0.00708017, 0.00653582, 0.00514126, 0.00344629, 0.00196855, 0.00095820, 0.00039744],
        [0.00344629, 0.00318132, 0.00250252, 0.00167749, 0.00095820, 0.00046640, 0.00019346],
        [0.00142946, 0.00131956, 0.00103800, 0.00069579, 0.00039744, 0.00019346, 0.00008024],
    ],
    dtype=np.float32,
)

# Sample offsets within a radius of six steps, with their Gaussian weights.
_DISC = tuple(
    (i, j, _GAUSS25[abs(i), abs(j)])
    for i in range(-6, 7)
    for j in range(-6, 7)
    if i * i + j * j < 36
)


def _round(value):
    """Round half away from zero."""
    return math.copysign(math.floor(abs(value) + 0.5), value)


def _to_index(value):
    """Round to the nearest pixel index, saturating negative values at zero."""
    return int(max(_round(float(value)), 0.0))


def find_scale_space_extrema(evolutions, detector_threshold, derivative_factor):
    """Find local maxima of the detector response across the scale space.

    A pixel is a candidate when its response exceeds the threshold and its
    four neighbours. Candidates close to a stronger response at the same or
    the next lower level are dropped, as are those too close to the border
    for a descriptor and those repeated at the next higher level.
    """
    threshold = _F32(detector_threshold)
    cache = []
    for e_id, evolution in enumerate(evolutions):
        height, width = evolution.ldet.data.shape
        if height < 3 or width < 1:
            raise ValueError(
                f"a {width}x{height} detector response is too small to search"
            )
        flat = evolution.ldet.data.ravel()
        indices = np.arange(width + 1, flat.size - width - 1)
        centre = flat[indices]
        candidates = (
            (indices % width != 0)
            & (centre > threshold)
            & (centre > flat[indices + 1])
            & (centre > flat[indices - 1])
            & (centre > flat[indices - width])
            & (centre > flat[indices + width])
        )

        size = float(_F32(evolution.esigma * derivative_factor))
        ratio = 2.0 ** evolution.octave
        sigma_size = _round(float(_F32(size) / _F32(ratio)))

        for index in indices[candidates]:
            x, y = int(index % width), int(index // width)
            keypoint = KeyPoint(
                point=(float(x), float(y)),
                response=abs(float(flat[index])),
                size=size,
                octave=evolution.octave,
                class_id=e_id,
                angle=0.0,
            )

            repeated_at = None
            is_extremum = True
            for k, previous in enumerate(cache):
                if previous.class_id == e_id or (e_id != 0 and previous.class_id == e_id - 1):
                    dx = x * ratio - previous.point[0]
                    dy = y * ratio - previous.point[1]
                    if dx * dx + dy * dy <= size * size:
                        if keypoint.response > previous.response:
                            repeated_at = k
                        else:
                            is_extremum = False
                        break
            if not is_extremum:
                continue

            reach = _SMAX * sigma_size
            is_out = (
                _round(x - reach) - 1.0 < 0.0
                or _round(x + reach) + 1.0 >= width
                or _round(y - reach) - 1.0 < 0.0
                or _round(y + reach) + 1.0 >= height
            )
            if is_out:
                continue

            shift = 0.5 * (ratio - 1.0)
            keypoint.point = (x * ratio + shift, y * ratio + shift)
            if repeated_at is None:
                cache.append(keypoint)
            else:
                cache[repeated_at] = keypoint

    result = []
    for i, kp_i in enumerate(cache):
        repeated = False
        for kp_j in cache[i:]:
            if kp_i.class_id + 1 == kp_j.class_id:
                dx = kp_i.point[0] - kp_j.point[0]
                dy = kp_i.point[1] - kp_j.point[1]
                if dx * dx + dy * dy <= kp_i.size * kp_i.size:
                    repeated = True
                    break
        if not repeated:
            result.append(kp_i)
    logger.debug("Extracted %d scale space extrema.", len(result))
    return result


def compute_main_orientation(keypoint, evolutions):
    """Return the dominant gradient direction around ``keypoint``.

    A window of pi/3 slides around the circle; the direction of the longest
    summed derivative vector wins. When no window gives a positive length,
    the keypoint's current angle is returned.
    """
    evolution = evolutions[keypoint.class_id]
    ratio = float(1 << evolution.octave)
    s = _round(float(_F32(0.5) * _F32(keypoint.size) / _F32(ratio)))
    xf = keypoint.point[0] / ratio
    yf = keypoint.point[1] / ratio

    res_x = np.empty(len(_DISC), dtype=np.float32)
    res_y = np.empty(len(_DISC), dtype=np.float32)
    for idx, (i, j, weight) in enumerate(_DISC):
        iy = _to_index(yf + j * s)
        ix = _to_index(xf + i * s)
        res_x[idx] = weight * _F32(evolution.lx.get(ix, iy))
        res_y[idx] = weight * _F32(evolution.ly.get(ix, iy))
    angles = np.arctan2(res_y, res_y)

    angle = keypoint.angle
    ang1 = _F32(0.0)
    sum_x = _F32(0.0)
    sum_y = _F32(0.0)
    best = _F32(0.0)
    while ang1 < _TWO_PI:
        ang2 = ang1 - _WRAP if ang1 + _WINDOW > _TWO_PI else ang1 + _WINDOW
        ang1 = _F32(ang1 + _ANGLE_STEP)
        if ang1 < ang2:
            inside = (ang1 < angles) & (angles < ang2)
        elif ang2 < ang1:
            inside = ((angles > 0) & (angles < ang2)) | ((angles > ang1) & (angles < _TWO_PI))
        else:
            inside = np.zeros(angles.shape, dtype=bool)
        sum_x = _F32(sum_x + res_x[inside].sum(dtype=np.float32))
        sum_y = _F32(sum_y + res_y[inside].sum(dtype=np.float32))
        value = _F32(sum_x * sum_x + sum_y * sum_y)
        if value > best:
            best = value
            angle = float(np.arctan2(sum_y, sum_x))
    return angle


def do_subpixel_refinement(keypoints, evolutions):
    """Fit a quadratic to the response around each keypoint and move it to the peak.

    Keypoints whose peak lies more than a pixel away are dropped. The
    survivors are returned with their main orientation set.
    """
    refined = []
    for keypoint in keypoints:
        ratio = 2.0 ** keypoint.octave
        x = _to_index(_F32(keypoint.point[0]) / _F32(ratio))
        y = _to_index(_F32(keypoint.point[1]) / _F32(ratio))
        ldet = evolutions[keypoint.class_id].ldet

        def at(px, py, ldet=ldet):
            return _F32(ldet.get(px, py))

        centre = at(x, y)
        x_p, x_m = at(x + 1, y), at(x - 1, y)
        y_p, y_m = at(x, y + 1), at(x, y - 1)
        x_p_y_p, x_p_y_m = at(x + 1, y + 1), at(x + 1, y - 1)
        x_m_y_p, x_m_y_m = at(x - 1, y + 1), at(x - 1, y - 1)

        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            half = _F32(0.5)
            quarter = _F32(0.25)
            d_x = half * (x_p - x_m)
            d_y = half * (y_p - y_m)
            d_xx = x_p + x_m - _F32(2.0) * centre
            d_yy = y_p + y_m - _F32(2.0) * centre
            d_xy = quarter * (x_p_y_p + x_m_y_m) - quarter * (x_p_y_m + x_m_y_p)
            inv_det = _F32(1.0) / (d_xx * d_yy - d_xy * d_xy)
            dst_x = -d_x * (inv_det * d_yy) + -d_y * (inv_det * -d_xy)
            dst_y = -d_x * (inv_det * -d_xy) + -d_y * (inv_det * d_xx)

        if abs(dst_x) <= 1.0 and abs(dst_y) <= 1.0:
            shift = 0.5 * (ratio - 1.0)
            point = (
                (x + float(dst_x)) * ratio + shift,
                (y + float(dst_y)) * ratio + shift,
            )
            refined.append(replace(keypoint, point=point))

    logger.debug(
        "%d/%d remain after subpixel refinement.", len(refined), len(keypoints)
    )
    return [
        replace(keypoint, angle=compute_main_orientation(keypoint, evolutions))
        for keypoint in refined
    ]


def detect_keypoints(evolutions, detector_threshold, derivative_factor):
    """Find scale space extrema and refine them to sub-pixel accuracy."""
    keypoints = find_scale_space_extrema(evolutions, detector_threshold, derivative_factor)
    return do_subpixel_refinement(keypoints, evolutions)