import math

import numpy as np
import pytest

from akazefeat.evolution import EvolutionStep
from akazefeat.image import GrayFloatImage
from akazefeat.keypoint import KeyPoint
from akazefeat.scale_space_extrema import (
    compute_main_orientation,
    detect_keypoints,
    do_subpixel_refinement,
    find_scale_space_extrema,
)

SIZE = 100
DERIVATIVE_FACTOR = 1.5
BASE_SCALE = 1.6


def _step(sublevel=0, octave=0, ldet=None, lx=None, ly=None):
    step = EvolutionStep.create(octave, sublevel, 4, BASE_SCALE)
    zeros = np.zeros((SIZE, SIZE), dtype=np.float32)
    step.ldet = GrayFloatImage(zeros if ldet is None else ldet)
    step.lx = GrayFloatImage(zeros if lx is None else lx)
    step.ly = GrayFloatImage(zeros if ly is None else ly)
    return step


def _peaks(*peaks):
    data = np.zeros((SIZE, SIZE), dtype=np.float32)
    for (x, y), value in peaks:
        data[y, x] = value
    return data


def _quadratic(cx, cy):
    ys, xs = np.mgrid[0:SIZE, 0:SIZE].astype(np.float32)
    return (10.0 - (xs - cx) ** 2 - (ys - cy) ** 2).astype(np.float32)


def _keypoint(x, y, angle=0.0):
    return KeyPoint(
        point=(float(x), float(y)),
        response=1.0,
        size=BASE_SCALE * DERIVATIVE_FACTOR,
        octave=0,
        class_id=0,
        angle=angle,
    )


def test_single_peak_is_found():
    steps = [_step(ldet=_peaks(((50, 40), 1.0)))]
    found = find_scale_space_extrema(steps, 0.001, DERIVATIVE_FACTOR)
    assert len(found) == 1
    kp = found[0]
    assert kp.point == (50.0, 40.0)
    assert kp.response == 1.0
    assert kp.class_id == 0
    assert kp.octave == 0
    assert kp.size == pytest.approx(BASE_SCALE * DERIVATIVE_FACTOR, rel=1e-6)


def test_peak_below_threshold_is_ignored():
    steps = [_step(ldet=_peaks(((50, 40), 0.0005)))]
    assert find_scale_space_extrema(steps, 0.001, DERIVATIVE_FACTOR) == []


def test_negative_peak_is_ignored():
    steps = [_step(ldet=_peaks(((50, 40), -1.0)))]
    assert find_scale_space_extrema(steps, 0.001, DERIVATIVE_FACTOR) == []


def test_peak_near_border_is_ignored():
    steps = [_step(ldet=_peaks(((5, 50), 1.0)))]
    assert find_scale_space_extrema(steps, 0.001, DERIVATIVE_FACTOR) == []


def test_plateau_is_not_a_maximum():
    steps = [_step(ldet=_peaks(((50, 40), 1.0), ((51, 40), 1.0)))]
    assert find_scale_space_extrema(steps, 0.001, DERIVATIVE_FACTOR) == []


def test_stronger_upper_level_replaces_lower():
    steps = [
        _step(0, ldet=_peaks(((50, 50), 1.0))),
        _step(1, ldet=_peaks(((50, 50), 2.0))),
    ]
    found = find_scale_space_extrema(steps, 0.001, DERIVATIVE_FACTOR)
    assert [kp.class_id for kp in found] == [1]
    assert found[0].response == 2.0


def test_weaker_upper_level_is_dropped():
    steps = [
        _step(0, ldet=_peaks(((50, 50), 1.0))),
        _step(1, ldet=_peaks(((50, 50), 0.5))),
    ]
    found = find_scale_space_extrema(steps, 0.001, DERIVATIVE_FACTOR)
    assert [kp.class_id for kp in found] == [0]
    assert found[0].response == 1.0


def test_distant_peaks_on_adjacent_levels_are_kept():
    steps = [
        _step(0, ldet=_peaks(((50, 50), 1.0))),
        _step(1, ldet=_peaks(((50, 55), 1.0))),
    ]
    found = find_scale_space_extrema(steps, 0.001, DERIVATIVE_FACTOR)
    assert [kp.class_id for kp in found] == [0, 1]


def test_higher_octave_points_are_scaled_to_full_resolution():
    steps = [_step(octave=1, ldet=_peaks(((50, 40), 1.0)))]
    found = find_scale_space_extrema(steps, 0.001, DERIVATIVE_FACTOR)
    assert len(found) == 1
    assert found[0].octave == 1
    assert found[0].point[0] == pytest.approx(100.5)


def test_too_small_response_raises():
    step = _step()
    step.ldet = GrayFloatImage(np.zeros((2, 10), dtype=np.float32))
    with pytest.raises(ValueError):
        find_scale_space_extrema([step], 0.001, DERIVATIVE_FACTOR)


def test_refinement_keeps_symmetric_peak():
    steps = [_step(ldet=_quadratic(50, 40))]
    refined = do_subpixel_refinement([_keypoint(50, 40)], steps)
    assert len(refined) == 1
    assert refined[0].point[0] == pytest.approx(50.0, abs=1e-5)
    assert refined[0].point[1] == pytest.approx(40.0, abs=1e-5)
    assert refined[0].angle == 0.0


def test_refinement_moves_to_offset_peak():
    steps = [_step(ldet=_quadratic(50.25, 40))]
    refined = do_subpixel_refinement([_keypoint(50, 40)], steps)
    assert len(refined) == 1
    assert refined[0].point[0] == pytest.approx(50.25, abs=1e-4)
    assert refined[0].point[1] == pytest.approx(40.0, abs=1e-4)


def test_refinement_drops_flat_response():
    steps = [_step(ldet=np.ones((SIZE, SIZE), dtype=np.float32))]
    assert do_subpixel_refinement([_keypoint(50, 40)], steps) == []


def test_refinement_does_not_change_input():
    steps = [_step(ldet=_quadratic(50.25, 40))]
    original = _keypoint(50, 40)
    do_subpixel_refinement([original], steps)
    assert original.point == (50.0, 40.0)


def test_refinement_at_image_edge_raises():
    steps = [_step(ldet=_quadratic(0, 40))]
    with pytest.raises(IndexError):
        do_subpixel_refinement([_keypoint(0, 40)], steps)


def test_orientation_without_gradient_keeps_angle():
    steps = [_step()]
    assert compute_main_orientation(_keypoint(50, 50, angle=0.7), steps) == 0.7


def test_orientation_with_vertical_gradient():
    ones = np.ones((SIZE, SIZE), dtype=np.float32)
    steps = [_step(ly=ones)]
    angle = compute_main_orientation(_keypoint(50, 50), steps)
    assert angle == pytest.approx(math.pi / 2, abs=1e-5)


def test_orientation_is_scale_independent():
    ones = np.ones((SIZE, SIZE), dtype=np.float32)
    small = compute_main_orientation(_keypoint(50, 50), [_step(lx=ones, ly=ones)])
    large = compute_main_orientation(_keypoint(50, 50), [_step(lx=ones * 5, ly=ones * 5)])
    assert small == pytest.approx(large, abs=1e-6)


def test_detect_keypoints_finds_refined_peak():
    steps = [_step(ldet=_quadratic(50, 40))]
    found = detect_keypoints(steps, 0.001, DERIVATIVE_FACTOR)
    assert len(found) == 1
    assert found[0].point[0] == pytest.approx(50.0, abs=1e-5)
    assert found[0].point[1] == pytest.approx(40.0, abs=1e-5)


def test_detect_keypoints_with_high_threshold_finds_nothing():
    steps = [_step(ldet=_quadratic(50, 40))]
    assert detect_keypoints(steps, 100.0, DERIVATIVE_FACTOR) == []