"""
Real-time 1D Saint-Venant channel simulation.

The host calls ``step(dt)`` once per frame. Each frame is split into
CFL-limited substeps; every substep builds the ghost states, evaluates the
Rusanov flux at all N+1 interfaces, refreshes the hydraulic radius used by the
Manning friction term and applies the finite volume update.
"""

import numpy as np

from .boundary import BoundaryConditions
from .finite_volume import RusanovFlux
from .friction import FrictionModel
from .params import BoundaryConfig, SimParams
from .state import SimulationState
from .time_scheme import TimeStepper


class Simulation:
    """Host-facing driver of one channel.

    Invalid calls in the frame loop (dt <= 0, cell index out of range) are
    silent no-ops. Configuration errors are raised at construction.

    Attributes:
        state: SimulationState owning every array
        boundary_conditions: BoundaryConditions (ghost states)
        flux: RusanovFlux
        friction: FrictionModel
        stepper: TimeStepper
    """

    def __init__(self, params: SimParams, boundary: BoundaryConfig = None,
                 friction: FrictionModel = None):
        self._params = params
        self.state = SimulationState(params)
        self.boundary_conditions = BoundaryConditions(boundary)
        self.flux = RusanovFlux(params)
        self.friction = friction if friction is not None else FrictionModel()
        self.stepper = TimeStepper(params)

    # ----------------------------------------------------------- configuration
    @property
    def params(self) -> SimParams:
        return self._params

    @params.setter
    def params(self, value: SimParams):
        if value.num_cells != self._params.num_cells:
            raise ValueError(
                f"num_cells is fixed at {self._params.num_cells} for this simulation, "
                f"got {value.num_cells}"
            )
        self._params = value
        self.state.params = value
        self.flux.params = value
        self.stepper.params = value
        self.friction.update_params(value)

    @property
    def boundary(self) -> BoundaryConfig:
        return self.boundary_conditions.config

    @boundary.setter
    def boundary(self, value: BoundaryConfig):
        self.boundary_conditions.config = value

    @property
    def num_cells(self) -> int:
        return self.state.num_cells

    # -------------------------------------------------------------- stepping
    def step(self, dt: float):
        """Advance the channel by one frame of length ``dt`` (no-op if dt <= 0)."""
        h, q = self.state.buffers()[:2]
        self.stepper.advance(dt, h, q, self._substep)

    def _substep(self, dt: float):
        h, q, fh, fq, radius = self.state.buffers()
        bc = self.boundary_conditions
        self.flux.build_interface_fluxes(h, q, bc.left_ghost(h, q), bc.right_ghost(h, q), fh, fq)
        if self._params.manning_n > 0.0:
            self.friction.fill_hydraulic_radius(h, radius)
        self.state.apply_update(dt)

    # ----------------------------------------------------------------- state
    def initialise_state(self, depth: float, velocity: float):
        self.state.initialise_state(depth, velocity)

    def reset(self):
        self.state.reset()

    def set_depth(self, i: int, value: float):
        self.state.set_depth(i, value)

    def set_discharge(self, i: int, value: float):
        self.state.set_discharge(i, value)

    def set_state(self, i: int, depth: float, discharge: float):
        self.state.set_state(i, depth, discharge)

    def get_velocity(self, i: int) -> float:
        return self.state.velocity(i)

    @property
    def h(self) -> np.ndarray:
        return self.state.h

    @property
    def q(self) -> np.ndarray:
        return self.state.q

    @property
    def fh(self) -> np.ndarray:
        return self.state.fh

    @property
    def fq(self) -> np.ndarray:
        return self.state.fq

    def total_volume(self) -> float:
        return self.state.total_volume()

    # ----------------------------------------------------------- diagnostics
    @property
    def max_wave_speed(self) -> float:
        return self.stepper.max_wave_speed

    @property
    def max_depth(self) -> float:
        return self.stepper.max_depth

    @property
    def last_substeps(self) -> int:
        return self.stepper.last_substeps
