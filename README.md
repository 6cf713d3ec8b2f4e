# akazefeat

AKAZE feature extraction for computer vision. The package builds a nonlinear
scale space, finds keypoints where the determinant of the Hessian has a peak,
and computes a rotation-invariant M-LDB binary descriptor for each keypoint.
Each descriptor is a `bytes` object of 64 bytes (512 bits). The bits are
stored in little-endian order within each byte.

## Installation

```
pip install akazefeat
```

The package needs NumPy and Pillow.

## Usage

```python
from akazefeat.extractor import Akaze

akaze = Akaze.sparse()          # detector threshold 0.01
keypoints, descriptors = akaze.extract_path("frame.png")

for kp in keypoints[:5]:
    print(kp.point, kp.size, kp.angle, kp.response)
```

`Akaze.extract` works the same way on an image you have already opened with
Pillow:

```python
from PIL import Image
from akazefeat.extractor import Akaze

with Image.open("frame.png") as image:
    keypoints, descriptors = Akaze.dense().extract(image)
```

The input image is first converted to grayscale. 16-bit grayscale images
(Pillow modes `I;16*` and `I`) are scaled by 1/65535. All other images are
converted to mode `L` and scaled by 1/255.

The smaller side of the image must be at least 40 pixels. For a smaller image,
`create_nonlinear_scale_space` (and therefore `extract`) raises `ValueError`.

### Keypoints

Each keypoint is an `akazefeat.keypoint.KeyPoint` dataclass with these fields:

- `point`: `(x, y)` in pixels. x grows to the right and y grows downwards.
- `response`: the detector response at the keypoint.
- `size`: the scale of the keypoint.
- `octave`: the octave where the keypoint was found.
- `class_id`: the index of the scale-space step where the keypoint was found.
- `angle`: the main orientation, in radians.

`KeyPoint.image_point()` returns the location as a pair of floats.

### Configuration

`Akaze` is a frozen dataclass. `Akaze()` gives the default settings. The
detector threshold matters most, and there are helpers for it:

- `Akaze.new(threshold)` sets the threshold and keeps every other default.
- `Akaze.sparse()` uses a threshold of `0.01`.
- `Akaze()` uses the default threshold of `0.001`.
- `Akaze.dense()` uses a threshold of `0.0001`.

The other fields, with their defaults:

| field | default |
| --- | --- |
| `num_sublevels` | 4 |
| `max_octave_evolution` | 4 |
| `base_scale_offset` | 1.6 |
| `initial_contrast` | 0.001 (stored, not used by the pipeline) |
| `contrast_percentile` | 0.7 |
| `contrast_factor_num_bins` | 300 |
| `derivative_factor` | 1.5 |
| `descriptor_channels` | 3 (1, 2 or 3) |
| `descriptor_pattern_size` | 10 |

To change any of them, pass it as a keyword argument: `Akaze(num_sublevels=3)`.

### Running the stages yourself

`Akaze.extract` runs these steps in order, and you can also call them one at a
time:

1. `allocate_evolutions(width, height)` lays out the scale-space steps.
2. `create_nonlinear_scale_space(evolutions, image)` fills the steps in place. `image` is a `GrayFloatImage`.
3. `find_image_keypoints(evolutions)` computes the detector response and returns the refined, oriented keypoints.
4. `extract_descriptors(evolutions, keypoints)` returns one 64-byte descriptor per keypoint.

The lower-level building blocks live in their own modules:

- `akazefeat.image`: the `GrayFloatImage` class (a `float32` array), separable filters, `gaussian_kernel` and `gaussian_blur`.
- `akazefeat.derivatives`: the `scharr_horizontal` and `scharr_vertical` derivatives.
- `akazefeat.fed_tau`: Fast Explicit Diffusion step sizes.
- `akazefeat.contrast_factor`: `compute_contrast_factor`.
- `akazefeat.nonlinear_diffusion`: `pm_g2` conductivity and `calculate_step`.
- `akazefeat.evolution`: `EvolutionStep` and `allocate_evolutions`.
- `akazefeat.detector_response`: the Hessian determinant response.
- `akazefeat.scale_space_extrema`: extrema detection, sub-pixel refinement and orientation.
- `akazefeat.descriptors`: the M-LDB descriptor.

## What it does not do

- It has no command-line tool. Use it as a library.
- It does not match descriptors. To compare two descriptors, compute their Hamming distance yourself:

```python
distance = (int.from_bytes(a, "little") ^ int.from_bytes(b, "little")).bit_count()
```