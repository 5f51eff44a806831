"""
Host-side channel node: geometry, settings and a live Simulation.

Holds the settings a host exposes for one channel, builds the mesh, the
cross-section sampler and the simulation on ``initialise``, and advances the
simulation once per frame in ``process``. Boundary settings assigned on the
node propagate to the running simulation immediately.
"""

import dataclasses
from typing import Optional, Sequence

import numpy as np

from .cross_section import CrossSectionSampler, GeometryQuery
from .friction import FrictionModel
from .mesh import ChannelMesh
from .params import BoundaryConfig, OpenCopy, Outflow, SimParams
from .simulation import Simulation


class Channel:
    """One simulated channel as seen by the host.

    Attributes:
        num_cells, substeps_max, g, manning_n, bed_slope, min_depth, cfl:
            Simulation settings read by ``initialise``
        initial_depth, initial_velocity: Uniform initial condition
        length, width, origin, direction, up: Channel geometry
        geometry: Optional GeometryQuery used by the cross-section sampler
        mesh: ChannelMesh (after initialise)
        sampler: CrossSectionSampler (after initialise)
        simulation: Simulation (after initialise)
    """

    def __init__(self, num_cells: int = 256, substeps_max: int = 8,
                 g: float = 9.81, manning_n: float = 0.03, bed_slope: float = 0.0,
                 min_depth: float = 1e-4, cfl: float = 0.5,
                 inflow_enabled: bool = False, inflow_q_per_width: float = 0.0,
                 outflow: Optional[Outflow] = None,
                 initial_depth: float = 0.5, initial_velocity: float = 0.0,
                 length: float = 10.0, width: float = 1.0,
                 origin: Sequence[float] = (0.0, 0.0, 0.0),
                 direction: Sequence[float] = (1.0, 0.0, 0.0),
                 up: Sequence[float] = (0.0, 1.0, 0.0),
                 geometry: Optional[GeometryQuery] = None,
                 max_ray_distance: float = 10.0):
        self.num_cells = num_cells
        self.substeps_max = substeps_max
        self.g = g
        self.manning_n = manning_n
        self.bed_slope = bed_slope
        self.min_depth = min_depth
        self.cfl = cfl

        self._inflow_enabled = inflow_enabled
        self._inflow_q_per_width = inflow_q_per_width
        self._outflow = outflow if outflow is not None else OpenCopy()

        self.initial_depth = initial_depth
        self.initial_velocity = initial_velocity

        self.length = length
        self.width = width
        self.origin = origin
        self.direction = direction
        self.up = up
        self.geometry = geometry
        self.max_ray_distance = max_ray_distance

        self.mesh = None
        self.sampler = None
        self.simulation = None

    # -------------------------------------------------------- boundary settings
    @property
    def inflow_enabled(self) -> bool:
        return self._inflow_enabled

    @inflow_enabled.setter
    def inflow_enabled(self, value: bool):
        self._inflow_enabled = value
        if self.simulation is not None:
            self.simulation.boundary.inflow_enabled = value

    @property
    def inflow_q_per_width(self) -> float:
        return self._inflow_q_per_width

    @inflow_q_per_width.setter
    def inflow_q_per_width(self, value: float):
        self._inflow_q_per_width = value
        if self.simulation is not None:
            self.simulation.boundary.inflow_q_per_width = value

    @property
    def outflow(self) -> Outflow:
        return self._outflow

    @outflow.setter
    def outflow(self, value: Outflow):
        self._outflow = value
        if self.simulation is not None:
            self.simulation.boundary.outflow = value

    # ---------------------------------------------------------------- lifecycle
    @property
    def initialised(self) -> bool:
        return self.simulation is not None

    def initialise(self, verbosity: int = 0):
        """Build mesh, sampler, friction model and simulation; apply the initial state."""
        self.mesh = ChannelMesh(self.num_cells, self.length, self.width,
                                origin=self.origin, direction=self.direction,
                                up=self.up, bed_slope=self.bed_slope)
        self.mesh.initialize(verbosity)

        self.sampler = CrossSectionSampler(self.geometry,
                                           channel_axis=self.mesh.axis,
                                           width_axis=self.mesh.width_axis,
                                           up_axis=self.mesh.up_axis,
                                           max_ray_distance=self.max_ray_distance,
                                           min_depth=self.min_depth)
        sampler = self.sampler if self.geometry is not None else None
        friction = FrictionModel(sampler, self.mesh.bed_positions, self.width)

        params = SimParams(num_cells=self.num_cells, substeps_max=self.substeps_max,
                           dx=self.mesh.dx, g=self.g, manning_n=self.manning_n,
                           bed_slope=self.bed_slope, min_depth=self.min_depth, cfl=self.cfl)
        boundary = BoundaryConfig(inflow_enabled=self._inflow_enabled,
                                  inflow_q_per_width=self._inflow_q_per_width,
                                  outflow=self._outflow)

        self.simulation = Simulation(params, boundary, friction)
        self.simulation.initialise_state(self.initial_depth, self.initial_velocity)

        if verbosity > 0:
            print("\033[92mSUCCESS::CHANNEL : Simulation initialised.\033[0m")
            print()

    def process(self, delta: float):
        """Advance the simulation by one host frame (no-op before initialise)."""
        if self.simulation is None:
            return
        self.simulation.step(delta)

    def update_params(self, **changes):
        """Apply setting changes between frames.

        Simulation parameters (every SimParams field but num_cells) reach the
        live simulation and its cross-section sampler; a bed slope change also
        moves the cell bed positions. Other node settings, such as the initial
        state, are stored for the next ``initialise``.

        Raises:
            ValueError: num_cells differs from the running simulation
            AttributeError: a name is not a setting of the node
        """
        for name in changes:
            if not hasattr(self, name):
                raise AttributeError(f"Channel has no setting {name!r}")

        if self.simulation is not None:
            fields = {f.name for f in dataclasses.fields(SimParams)}
            sim_changes = {k: v for k, v in changes.items() if k in fields}
            if sim_changes:
                self.simulation.params = dataclasses.replace(self.simulation.params,
                                                             **sim_changes)

        for name, value in changes.items():
            setattr(self, name, value)

        if self.sampler is not None:
            self.sampler.min_depth = self.min_depth
        if self.mesh is not None and "bed_slope" in changes:
            # bed_positions is refilled in place, the friction model sees the new bed
            self.mesh.bed_slope = self.bed_slope
            self.mesh.initialize(verbosity=0)
            self.sampler.clear_caches()

    # ------------------------------------------------------------------ helpers
    def set_cell_state(self, start_index: int, count: int, depth: float, velocity: float):
        """Set ``count`` cells from ``start_index`` to depth with discharge depth * velocity."""
        if self.simulation is None:
            return
        end = min(start_index + count, self.simulation.num_cells)
        for i in range(max(start_index, 0), end):
            self.simulation.set_depth(i, depth)
            self.simulation.set_discharge(i, depth * velocity)

    def cell_world_position(self, cell_index: int) -> np.ndarray:
        """World position of the free surface above a cell centre."""
        return self.mesh.cell_world_position(cell_index, self.simulation.h[cell_index])

    def surface_profile(self, scale: float = 1.0) -> np.ndarray:
        return self.mesh.surface_profile(self.simulation.h, scale)

    def stats(self) -> dict:
        """Diagnostics of the last frame."""
        sim = self.simulation
        return {
            "cells": self.num_cells,
            "max_speed": sim.max_wave_speed,
            "max_depth": sim.max_depth,
            "substeps": sim.last_substeps,
            "dx": self.mesh.dx,
            "channel_length": self.length,
            "channel_width": self.width,
        }
