"""
CFL-limited frame stepping for the channel solver.

One host frame of length dt is split into equal explicit Euler substeps whose
count is derived from the fastest signal speed in the channel.
"""

import math
import warnings
from typing import Callable

import numpy as np

from .numba_kernels import max_wave_speed_kernel
from .params import SimParams


class TimeStepper:
    """Split a frame into CFL-limited substeps.

    Attributes:
        params: Simulation parameters
        max_wave_speed: λ_max of the last frame (m/s)
        max_depth: Largest depth at the start of the last frame (m)
        last_substeps: Substep count used by the last frame
        clamped_frames: Number of frames whose substep count hit substeps_max
    """

    def __init__(self, params: SimParams):
        self.params = params
        self.max_wave_speed = 0.0
        self.max_depth = 0.0
        self.last_substeps = 0
        self.clamped_frames = 0
        self._warned = False

    def plan(self, dt: float, h: np.ndarray, q: np.ndarray):
        """Compute the substep count and size for a frame of length ``dt``.

        Mathematical formulation:
            λ_max  = max_i (|u_i| + √(g h_i))  over wet cells
            Δt_cfl = CFL Δx / λ_max            (Δt when λ_max <= min_depth)
            n      = clamp(ceil(Δt / Δt_cfl), 1, substeps_max)

        When the required count exceeds substeps_max the frame runs with
        substeps_max substeps anyway: frame cost stays bounded and stability
        is best-effort for that frame.

        Args:
            dt: Frame length (s), > 0
            h, q: Current state arrays

        Returns:
            tuple: (n substeps, substep length)
        """
        p = self.params
        lambda_max, h_max = max_wave_speed_kernel(h, q, p.g, p.min_depth)
        self.max_wave_speed = lambda_max
        self.max_depth = h_max

        dt_cfl = p.cfl * p.dx / lambda_max if lambda_max > p.min_depth else dt
        required = max(1, int(math.ceil(dt / dt_cfl)))
        substeps = min(required, p.substeps_max)

        if required > p.substeps_max:
            self.clamped_frames += 1
            if not self._warned:
                self._warned = True
                warnings.warn(
                    f"Frame needs {required} substeps but substeps_max is {p.substeps_max}; "
                    "stability is best-effort for such frames",
                    RuntimeWarning,
                    stacklevel=4,
                )

        return substeps, dt / substeps

    def advance(self, dt: float, h: np.ndarray, q: np.ndarray,
                substep: Callable[[float], None]):
        """Run one frame: plan the substeps, then call ``substep(sub_dt)`` for each.

        A frame with dt <= 0 is a no-op.
        """
        if not dt > 0.0:
            return
        substeps, sub_dt = self.plan(dt, h, q)
        self.last_substeps = substeps
        for _ in range(substeps):
            substep(sub_dt)
