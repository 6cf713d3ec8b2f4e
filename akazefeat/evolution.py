"""The steps of a nonlinear scale space."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from akazefeat.fed_tau import fed_tau_by_process_time
from akazefeat.image import GrayFloatImage

logger = logging.getLogger(__name__)

_MIN_DIMENSION = 40
_FULL_SUBLEVEL_DIMENSION = 80


def _empty_image():
    return GrayFloatImage.zeros(0, 0)


@dataclass
class EvolutionStep:
    """One level of the scale space together with its working images."""

    etime: float
    esigma: float
    octave: int
    sublevel: int
    sigma_size: int
    lt: GrayFloatImage = field(default_factory=_empty_image)
    lsmooth: GrayFloatImage = field(default_factory=_empty_image)
    lx: GrayFloatImage = field(default_factory=_empty_image)
    ly: GrayFloatImage = field(default_factory=_empty_image)
    lxx: GrayFloatImage = field(default_factory=_empty_image)
    lyy: GrayFloatImage = field(default_factory=_empty_image)
    lxy: GrayFloatImage = field(default_factory=_empty_image)
    lflow: GrayFloatImage = field(default_factory=_empty_image)
    ldet: GrayFloatImage = field(default_factory=_empty_image)
    fed_tau_steps: list = field(default_factory=list)

    @classmethod
    def create(cls, octave, sublevel, num_sublevels, base_scale_offset):
        """A step for ``octave`` and ``sublevel`` with its scale and time set."""
        esigma = base_scale_offset * 2.0 ** (sublevel / num_sublevels + octave)
        return cls(
            etime=0.5 * esigma * esigma,
            esigma=esigma,
            octave=octave,
            sublevel=sublevel,
            sigma_size=math.floor(esigma + 0.5),
        )


def allocate_evolutions(width, height, max_octave_evolution, num_sublevels, base_scale_offset):
    """Lay out the scale space for an image of the given size.

    Octaves whose smaller side drops below 40 pixels are left out, and those
    below 80 pixels get a single sublevel. Every step after the first gets
    the FED step sizes that carry the diffusion on from the previous one.
    """
    evolutions = []
    for octave in range(max_octave_evolution):
        rfactor = 2.0 ** -octave
        smallest = min(int(width * rfactor), int(height * rfactor))
        if smallest < _MIN_DIMENSION:
            continue
        sublevels = 1 if smallest < _FULL_SUBLEVEL_DIMENSION else num_sublevels
        evolutions.extend(
            EvolutionStep.create(octave, sublevel, num_sublevels, base_scale_offset)
            for sublevel in range(sublevels)
        )

    for index, (previous, current) in enumerate(zip(evolutions, evolutions[1:]), start=1):
        current.fed_tau_steps = fed_tau_by_process_time(
            current.etime - previous.etime, 1, 0.25, True
        )
        logger.debug("%d steps in evolution %d.", len(current.fed_tau_steps), index)
    return evolutions