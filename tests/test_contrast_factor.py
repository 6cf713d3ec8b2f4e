import numpy as np
import pytest

from akazefeat.contrast_factor import compute_contrast_factor
from akazefeat.image import GrayFloatImage


def _noise_image(seed=7, size=60):
    rng = np.random.default_rng(seed)
    return GrayFloatImage(rng.random((size, size), dtype=np.float32))


def test_constant_image_has_zero_contrast():
    image = GrayFloatImage(np.full((30, 30), 0.5, dtype=np.float32))
    assert compute_contrast_factor(image, 0.7, 1.0, 300) == 0.0


def test_zero_percentile_gives_zero():
    assert compute_contrast_factor(_noise_image(), 0.0, 1.0, 300) == 0.0


def test_noise_image_gives_positive_contrast():
    assert compute_contrast_factor(_noise_image(), 0.7, 1.0, 300) > 0.0


def test_contrast_grows_with_percentile():
    image = _noise_image()
    values = [compute_contrast_factor(image, p, 1.0, 300) for p in (0.1, 0.4, 0.7, 1.0)]
    assert values == sorted(values)
    assert values[0] < values[-1]


def test_contrast_scales_linearly_with_intensity():
    image = _noise_image(seed=3)
    doubled = GrayFloatImage(image.data * np.float32(2.0))
    single = compute_contrast_factor(image, 0.7, 1.0, 300)
    assert compute_contrast_factor(doubled, 0.7, 1.0, 300) == pytest.approx(2.0 * single)


def test_full_percentile_is_at_least_other_percentiles():
    image = _noise_image(seed=11)
    full = compute_contrast_factor(image, 1.0, 1.0, 50)
    assert full >= compute_contrast_factor(image, 0.5, 1.0, 50)


def test_too_small_image_is_rejected():
    with pytest.raises(ValueError):
        compute_contrast_factor(GrayFloatImage.zeros(2, 2), 0.7, 1.0, 300)


def test_zero_bins_is_rejected():
    with pytest.raises(ValueError):
        compute_contrast_factor(_noise_image(), 0.7, 1.0, 0)