"""
Simulation and boundary parameters for the 1D channel solver.
"""

from dataclasses import dataclass, field
from typing import Union


@dataclass(frozen=True)
class SimParams:
    """Numerical and physical parameters of one channel simulation.

    Attributes:
        num_cells: Number of finite volume cells N (>= 1)
        substeps_max: Upper bound on CFL substeps per frame (>= 1)
        dx: Cell width (m), > 0
        g: Gravitational acceleration (m/s²)
        manning_n: Manning roughness coefficient (s/m^(1/3))
        bed_slope: Bed slope S0 (positive = bed falling downstream)
        min_depth: Depth below which a cell is treated as dry (m)
        cfl: CFL number in (0, 1]
    """

    num_cells: int = 1
    substeps_max: int = 1
    dx: float = 1.0
    g: float = 9.81
    manning_n: float = 0.03
    bed_slope: float = 0.0
    min_depth: float = 1e-4
    cfl: float = 0.5

    def __post_init__(self):
        if self.num_cells < 1:
            raise ValueError(f"num_cells must be >= 1, got {self.num_cells}")
        if self.substeps_max < 1:
            raise ValueError(f"substeps_max must be >= 1, got {self.substeps_max}")
        if not self.dx > 0.0:
            raise ValueError(f"dx must be > 0, got {self.dx}")
        if not 0.0 < self.cfl <= 1.0:
            raise ValueError(f"cfl must be in (0, 1], got {self.cfl}")
        if self.min_depth < 0.0:
            raise ValueError(f"min_depth must be >= 0, got {self.min_depth}")
        if self.manning_n < 0.0:
            raise ValueError(f"manning_n must be >= 0, got {self.manning_n}")


@dataclass(frozen=True)
class OpenCopy:
    """Zero-gradient outflow: the ghost state copies the last cell."""


@dataclass(frozen=True)
class FixedDepth:
    """Outflow with an imposed ghost depth; discharge copies the last cell."""

    depth: float = 0.2

    def __post_init__(self):
        if self.depth < 0.0:
            raise ValueError(f"fixed outflow depth must be >= 0, got {self.depth}")


Outflow = Union[OpenCopy, FixedDepth]


@dataclass
class BoundaryConfig:
    """Upstream inflow and downstream outflow policy.

    Attributes:
        inflow_enabled: Impose ``inflow_q_per_width`` at the upstream boundary
        inflow_q_per_width: Imposed discharge per unit width (m²/s)
        outflow: ``OpenCopy()`` or ``FixedDepth(depth)``
    """

    inflow_enabled: bool = False
    inflow_q_per_width: float = 0.0
    outflow: Outflow = field(default_factory=OpenCopy)
