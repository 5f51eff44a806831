"""
Double-buffered cell state of the channel solver.
"""

import numpy as np

from .numba_kernels import finite_volume_update_kernel
from .params import SimParams


def _read_only(array: np.ndarray) -> np.ndarray:
    view = array.view()
    view.flags.writeable = False
    return view


class SimulationState:
    """Depth/discharge arrays, interface fluxes and update scratch buffers.

    Every buffer is allocated once at construction. ``apply_update`` writes the
    new state into the scratch pair and then swaps references with the active
    pair, so a substep never reads partially updated neighbours and never
    copies.

    Stored values obey H >= 0 and the dry-cell convention: a depth below
    min_depth is stored as H = Q = 0.

    Attributes:
        params: Simulation parameters
        num_cells: Number of cells N (fixed for the lifetime of the state)
    """

    def __init__(self, params: SimParams):
        self.params = params
        self.num_cells = params.num_cells

        n = self.num_cells
        self._h = np.zeros(n)
        self._q = np.zeros(n)
        self._h_new = np.zeros(n)
        self._q_new = np.zeros(n)
        self._fh = np.zeros(n + 1)
        self._fq = np.zeros(n + 1)
        self._radius = np.zeros(n)

        self._initial = (0.0, 0.0)

    # ------------------------------------------------------------------ views
    @property
    def h(self) -> np.ndarray:
        """Read-only view of the depths H[0..N)."""
        return _read_only(self._h)

    @property
    def q(self) -> np.ndarray:
        """Read-only view of the discharges Q[0..N)."""
        return _read_only(self._q)

    @property
    def fh(self) -> np.ndarray:
        """Read-only view of the mass fluxes Fh[0..N]."""
        return _read_only(self._fh)

    @property
    def fq(self) -> np.ndarray:
        """Read-only view of the momentum fluxes Fq[0..N]."""
        return _read_only(self._fq)

    def buffers(self):
        """Writable (h, q, fh, fq, radius) for the solver components."""
        return self._h, self._q, self._fh, self._fq, self._radius

    # ---------------------------------------------------------- initialisation
    def initialise_state(self, depth: float, velocity: float):
        """Set every cell to ``depth`` with discharge depth * velocity.

        The arguments are remembered for ``reset``.
        """
        self._initial = (float(depth), float(velocity))
        h, q = self._sanitize(depth, depth * velocity)
        self._h.fill(h)
        self._q.fill(q)
        self._fh.fill(0.0)
        self._fq.fill(0.0)

    def reset(self):
        """Replay the last ``initialise_state`` call (zeros if there was none)."""
        self.initialise_state(*self._initial)

    # ----------------------------------------------------------------- setters
    def set_depth(self, i: int, value: float):
        if 0 <= i < self.num_cells:
            self._store(i, value, self._q[i])

    def set_discharge(self, i: int, value: float):
        if 0 <= i < self.num_cells:
            self._store(i, self._h[i], value)

    def set_state(self, i: int, depth: float, discharge: float):
        if 0 <= i < self.num_cells:
            self._store(i, depth, discharge)

    def velocity(self, i: int) -> float:
        """Velocity Q/H of cell ``i``; 0 if dry or out of range."""
        if not 0 <= i < self.num_cells:
            return 0.0
        h = self._h[i]
        if h <= self.params.min_depth:
            return 0.0
        return float(self._q[i] / h)

    # ------------------------------------------------------------------ update
    def apply_update(self, dt: float):
        """Finite volume update from the current interface fluxes, then swap buffers.

        Expects ``fh``/``fq`` and the hydraulic radius scratch array to hold
        values computed from the current state.
        """
        p = self.params
        finite_volume_update_kernel(self._h, self._q, self._fh, self._fq, self._radius,
                                    self._h_new, self._q_new,
                                    dt, p.dx, p.g, p.manning_n, p.bed_slope, p.min_depth)
        self._h, self._h_new = self._h_new, self._h
        self._q, self._q_new = self._q_new, self._q

    def total_volume(self) -> float:
        """Σ H dx over all cells (m² per unit width)."""
        return float(self._h.sum() * self.params.dx)

    def _sanitize(self, depth: float, discharge: float):
        h = float(depth)
        # also catches NaN
        if not h >= self.params.min_depth or h <= 0.0:
            return 0.0, 0.0
        return h, float(discharge)

    def _store(self, i: int, depth: float, discharge: float):
        self._h[i], self._q[i] = self._sanitize(depth, discharge)
