"""Ghost states at the upstream and downstream ends of the channel."""

import numpy as np

from .params import BoundaryConfig, FixedDepth


class BoundaryConditions:
    """Derive the ghost states fed to the two boundary interfaces.

    The configuration is read on every call, so edits to ``config`` between
    frames apply from the next substep.

    Supported policies:
        - Upstream, inflow enabled: depth copied from cell 0, discharge imposed
          (Dirichlet on discharge only)
        - Upstream, inflow disabled: zero-gradient copy of cell 0
        - Downstream ``OpenCopy``: zero-gradient copy of cell N-1
        - Downstream ``FixedDepth(d)``: depth d, discharge copied from cell N-1
    """

    def __init__(self, config: BoundaryConfig = None):
        self.config = config if config is not None else BoundaryConfig()

    def left_ghost(self, h: np.ndarray, q: np.ndarray):
        """Upstream ghost state (h, q) built from cell 0."""
        if self.config.inflow_enabled:
            return float(h[0]), float(self.config.inflow_q_per_width)
        return float(h[0]), float(q[0])

    def right_ghost(self, h: np.ndarray, q: np.ndarray):
        """Downstream ghost state (h, q) built from cell N-1."""
        outflow = self.config.outflow
        if isinstance(outflow, FixedDepth):
            return float(outflow.depth), float(q[-1])
        return float(h[-1]), float(q[-1])
