"""Manning friction slope using sampled or rectangular channel geometry."""

from typing import Optional

import numpy as np

from .cross_section import CrossSectionSampler
from .numba_kernels import manning_slope_kernel, rectangular_radius_kernel


class FrictionModel:
    """Manning friction slope per cell.

    The hydraulic radius comes from the cross-section sampler when both a
    sampler and the cell bed positions are available. Otherwise the channel
    is assumed rectangular with width ``channel_width``:

        A = B h,   P = B + 2h,   R = A / P

    Attributes:
        sampler: Optional CrossSectionSampler
        cell_positions: Optional (N, 3) array of cell centre bed positions
        channel_width: Channel width B (m), 1.0 = per unit width
    """

    def __init__(self, sampler: Optional[CrossSectionSampler] = None,
                 cell_positions: Optional[np.ndarray] = None,
                 channel_width: float = 1.0):
        self.sampler = sampler
        self.cell_positions = cell_positions
        self.channel_width = channel_width

    def update_params(self, params):
        """Follow a SimParams change: the sampler's dry threshold tracks min_depth."""
        if self.sampler is not None:
            self.sampler.min_depth = params.min_depth

    @property
    def uses_sampler(self) -> bool:
        return self.sampler is not None and self.cell_positions is not None

    def hydraulic_radius(self, i: int, depth: float) -> float:
        """Hydraulic radius of cell ``i`` at ``depth`` (m)."""
        if self.uses_sampler:
            section = self.sampler.sample_cross_section(self.cell_positions[i], depth,
                                                        self.channel_width)
            return section.hydraulic_radius
        perimeter = self.channel_width + 2.0 * depth
        return self.channel_width * depth / perimeter if perimeter > 0.0 else 0.0

    def friction_slope(self, i: int, depth: float, velocity: float, manning_n: float) -> float:
        """Manning friction slope S_f = n² u|u| / R^(4/3) for cell ``i``."""
        return manning_slope_kernel(float(velocity), self.hydraulic_radius(i, depth),
                                    float(manning_n))

    def fill_hydraulic_radius(self, h: np.ndarray, radius: np.ndarray):
        """Fill ``radius`` with the hydraulic radius of every cell for depths ``h``."""
        if not self.uses_sampler:
            rectangular_radius_kernel(h, float(self.channel_width), radius)
            return
        for i in range(h.shape[0]):
            radius[i] = self.hydraulic_radius(i, float(h[i]))
