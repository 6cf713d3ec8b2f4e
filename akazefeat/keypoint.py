"""Points of interest found in an image."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class KeyPoint:
    """A detected feature, following the usual keypoint conventions.

    ``point`` is ``(x, y)`` with x growing to the right and y growing
    downwards from the top-left corner of the image.
    """

    point: tuple
    response: float
    size: float
    octave: int
    class_id: int
    angle: float = 0.0

    def image_point(self):
        """The location as a pair of floats ``(x, y)``."""
        return (float(self.point[0]), float(self.point[1]))