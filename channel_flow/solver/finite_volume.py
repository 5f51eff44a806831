"""
Finite volume interface fluxes for the channel solver.

Implements the first-order Rusanov numerical flux on top of the numba kernels.
"""

import numpy as np

from .numba_kernels import interface_flux_kernel, rusanov_flux_kernel
from .params import SimParams


class RusanovFlux:
    """Rusanov (local Lax-Friedrichs) numerical flux scheme.

    The Rusanov flux is:

        F̂(U_L, U_R) = 1/2 * [F(U_L) + F(U_R) - α(U_R - U_L)]

    where α = max(|u_L| + √(gh_L), |u_R| + √(gh_R)) bounds the local signal
    speed. The scheme is monotone and keeps depths non-negative as long as the
    substep respects the CFL restriction enforced by the time stepper.

    Attributes:
        flux_name: Name of the numerical flux scheme
    """

    def __init__(self, params: SimParams):
        """Initialize Rusanov flux.

        Args:
            params: Simulation parameters (g and min_depth are read on every call)
        """
        self.params = params
        self.flux_name = "Rusanov"

    def compute_flux(self, h_left: float, q_left: float,
                     h_right: float, q_right: float):
        """Compute the numerical flux at one interface.

        Args:
            h_left, q_left: Left state (m, m²/s)
            h_right, q_right: Right state

        Returns:
            tuple: (F̂_h, F̂_q)
        """
        return rusanov_flux_kernel(float(h_left), float(q_left),
                                   float(h_right), float(q_right),
                                   self.params.g, self.params.min_depth)

    def build_interface_fluxes(self, h: np.ndarray, q: np.ndarray,
                               left_ghost, right_ghost,
                               fh: np.ndarray, fq: np.ndarray):
        """Evaluate the flux at all N+1 interfaces.

        Args:
            h, q: Cell state arrays of shape (N,)
            left_ghost: Upstream ghost state (h, q)
            right_ghost: Downstream ghost state (h, q)
            fh, fq: Output arrays of shape (N+1,), modified in place
        """
        interface_flux_kernel(h, q,
                              float(left_ghost[0]), float(left_ghost[1]),
                              float(right_ghost[0]), float(right_ghost[1]),
                              self.params.g, self.params.min_depth,
                              fh, fq)

    def get_flux_name(self) -> str:
        """Get flux scheme name."""
        return self.flux_name
