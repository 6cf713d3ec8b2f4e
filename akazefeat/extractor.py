"""End-to-end AKAZE feature extraction."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

import numpy as np
from PIL import Image

from akazefeat import descriptors, detector_response, evolution, nonlinear_diffusion
from akazefeat.contrast_factor import compute_contrast_factor
from akazefeat.derivatives import scharr_horizontal, scharr_vertical
from akazefeat.image import GrayFloatImage, gaussian_blur
from akazefeat.scale_space_extrema import detect_keypoints

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Akaze:
    """The configuration of the AKAZE detector and descriptor.

    ``detector_threshold`` matters most; :meth:`new`, :meth:`sparse` and
    :meth:`dense` set it and leave everything else at its default.
    """

    num_sublevels: int = 4
    max_octave_evolution: int = 4
    base_scale_offset: float = 1.6
    initial_contrast: float = 0.001
    contrast_percentile: float = 0.7
    contrast_factor_num_bins: int = 300
    derivative_factor: float = 1.5
    detector_threshold: float = 0.001
    descriptor_channels: int = 3
    descriptor_pattern_size: int = 10

    @classmethod
    def new(cls, threshold):
        """Default settings with the given detector threshold."""
        return replace(cls(), detector_threshold=threshold)

    @classmethod
    def sparse(cls):
        """Settings that detect few features (threshold 0.01)."""
        return cls.new(0.01)

    @classmethod
    def dense(cls):
        """Settings that detect many features (threshold 0.0001)."""
        return cls.new(0.0001)

    def allocate_evolutions(self, width, height):
        """Lay out the scale space for an image of ``width`` by ``height`` pixels."""
        return evolution.allocate_evolutions(
            width,
            height,
            self.max_octave_evolution,
            self.num_sublevels,
            self.base_scale_offset,
        )

    def create_nonlinear_scale_space(self, evolutions, image):
        """Fill ``evolutions`` in place by edge-preserving diffusion of ``image``."""
        if not evolutions:
            raise ValueError("the image is too small to build a scale space")
        first = evolutions[0]
        first.lt = gaussian_blur(image, float(np.float32(self.base_scale_offset)))
        first.lsmooth = first.lt.copy()
        contrast = compute_contrast_factor(
            first.lsmooth,
            self.contrast_percentile,
            1.0,
            self.contrast_factor_num_bins,
        )
        logger.debug(
            "Contrast percentile=%s, Num bins=%s, Initial contrast factor=%s",
            self.contrast_percentile,
            self.contrast_factor_num_bins,
            contrast,
        )
        for index, (previous, current) in enumerate(zip(evolutions, evolutions[1:]), start=1):
            logger.debug("Creating evolution %d.", index)
            if current.octave > previous.octave:
                current.lt = previous.lt.half_size()
                contrast *= 0.75
                logger.debug(
                    "New image size: %dx%d, new contrast factor: %s",
                    current.lt.width(),
                    current.lt.height(),
                    contrast,
                )
            else:
                current.lt = previous.lt.copy()
            current.lsmooth = gaussian_blur(current.lt, 1.0)
            current.lx = scharr_horizontal(current.lsmooth, 1)
            current.ly = scharr_vertical(current.lsmooth, 1)
            current.lflow = nonlinear_diffusion.pm_g2(current.lx, current.ly, contrast)
            for step_size in current.fed_tau_steps:
                nonlinear_diffusion.calculate_step(current, step_size)

    def find_image_keypoints(self, evolutions):
        """Compute the detector response and return the keypoints it yields."""
        detector_response.detector_response(evolutions, self.derivative_factor)
        return detect_keypoints(evolutions, self.detector_threshold, self.derivative_factor)

    def extract_descriptors(self, evolutions, keypoints):
        """Compute the 64-byte M-LDB descriptor of each keypoint."""
        return descriptors.extract_descriptors(
            evolutions,
            keypoints,
            self.descriptor_channels,
            self.descriptor_pattern_size,
        )

    def extract(self, image):
        """Return ``(keypoints, descriptors)`` for a Pillow image."""
        float_image = GrayFloatImage.from_pil(image)
        width, height = image.size
        logger.info("Loaded a %d x %d image", width, height)
        evolutions = self.allocate_evolutions(width, height)
        self.create_nonlinear_scale_space(evolutions, float_image)
        keypoints = self.find_image_keypoints(evolutions)
        found = self.extract_descriptors(evolutions, keypoints)
        return keypoints, found

    def extract_path(self, path):
        """Open the image at ``path`` and return ``(keypoints, descriptors)``."""
        with Image.open(path) as image:
            return self.extract(image)