"""
DataFile class for reading and managing channel simulation parameters.

Reads configuration from a JSON file and provides access to all simulation parameters.
"""

import json
import os
from dataclasses import dataclass, field
from typing import List

from .channel import Channel
from .geometry import TrapezoidalTrench
from .mesh import ChannelMesh
from .params import BoundaryConfig, FixedDepth, OpenCopy, SimParams

OUTFLOW_MODES = ("OpenCopy", "FixedDepth")
GEOMETRY_TYPES = ("none", "trapezoid")


@dataclass
class DataFile:
    """Manages all simulation parameters from input file.

    Attributes:
        file_name: Path to the parameter file
        results_dir: Directory where results will be saved
        save_frequency: Frequency of solution saves (in frames)
        n_probes: Number of water depth measurement probes
        probes_references: Reference names of the probes
        probes_positions: Distance of each probe along the channel axis
        num_cells: Number of cells
        substeps_max: Maximum CFL substeps per frame
        g: Gravity acceleration
        manning_n: Manning roughness
        bed_slope: Bed slope
        min_depth: Dry-cell threshold
        CFL: CFL number
        inflow_enabled: Whether discharge is imposed upstream
        inflow_q_per_width: Imposed upstream discharge per unit width
        outflow_mode: "OpenCopy" or "FixedDepth"
        outflow_fixed_depth: Ghost depth for "FixedDepth"
        initial_depth: Uniform initial depth
        initial_velocity: Uniform initial velocity
        initial_states: Cell ranges overriding the uniform state
        channel_origin: World position of the upstream bed centre
        channel_direction: Downstream direction
        channel_length: Channel length
        channel_width: Channel width
        geometry: "none" (rectangular estimate) or "trapezoid"
        side_slope: Trench side slope for "trapezoid"
        final_time: End time
        frame_dt: Host frame length
    """

    file_name: str = ""
    results_dir: str = "results"
    save_frequency: int = 1
    n_probes: int = 0
    probes_references: List[str] = field(default_factory=list)
    probes_positions: List[float] = field(default_factory=list)
    num_cells: int = 256
    substeps_max: int = 8
    g: float = 9.81
    manning_n: float = 0.03
    bed_slope: float = 0.0
    min_depth: float = 1e-4
    CFL: float = 0.5
    inflow_enabled: bool = False
    inflow_q_per_width: float = 0.0
    outflow_mode: str = "OpenCopy"
    outflow_fixed_depth: float = 0.2
    initial_depth: float = 0.5
    initial_velocity: float = 0.0
    initial_states: List[dict] = field(default_factory=list)
    channel_origin: List[float] = field(default_factory=lambda: [0.0, 0.0, 0.0])
    channel_direction: List[float] = field(default_factory=lambda: [1.0, 0.0, 0.0])
    channel_length: float = 10.0
    channel_width: float = 1.0
    geometry: str = "none"
    side_slope: float = 0.0
    final_time: float = 10.0
    frame_dt: float = 1.0 / 60.0

    def read_data_file(self, verbosity: int = 1):
        """Read and parse the JSON data file.

        Args:
            verbosity: Level of output verbosity (0=silent, 1=normal)

        Raises:
            FileNotFoundError: The parameter file does not exist
            ValueError: A setting is out of range or has an unknown value
        """
        if not os.path.exists(self.file_name):
            raise FileNotFoundError(f"Unable to open file {self.file_name}")

        if verbosity > 0:
            print(f"Reading JSON data file {self.file_name}")

        with open(self.file_name, 'r') as f:
            data = json.load(f)

        # Output
        self.results_dir = data.get("results_dir", self.results_dir)
        self.save_frequency = int(data.get("save_frequency", self.save_frequency))

        # Probes
        if "probes" in data:
            probes = data["probes"]
            self.n_probes = len(probes)
            self.probes_references = [str(p["ref"]) for p in probes]
            self.probes_positions = [float(p["position"]) for p in probes]

        # Numerical scheme
        self.num_cells = int(data.get("num_cells", self.num_cells))
        self.substeps_max = int(data.get("substeps_max", self.substeps_max))
        self.CFL = data.get("cfl", self.CFL)
        self.min_depth = data.get("min_depth", self.min_depth)

        # Physics
        self.g = data.get("gravity", self.g)
        self.manning_n = data.get("manning_n", self.manning_n)
        self.bed_slope = data.get("bed_slope", self.bed_slope)

        # Boundary conditions
        self.inflow_enabled = data.get("inflow_enabled", self.inflow_enabled)
        self.inflow_q_per_width = data.get("inflow_q_per_width", self.inflow_q_per_width)
        self.outflow_mode = data.get("outflow_mode", self.outflow_mode)
        self.outflow_fixed_depth = data.get("outflow_fixed_depth", self.outflow_fixed_depth)

        # Initial conditions
        self.initial_depth = data.get("initial_depth", self.initial_depth)
        self.initial_velocity = data.get("initial_velocity", self.initial_velocity)
        self.initial_states = data.get("initial_states", self.initial_states)

        # Channel geometry
        self.channel_origin = data.get("channel_origin", self.channel_origin)
        self.channel_direction = data.get("channel_direction", self.channel_direction)
        self.channel_length = data.get("channel_length", self.channel_length)
        self.channel_width = data.get("channel_width", self.channel_width)
        self.geometry = data.get("geometry", self.geometry)
        self.side_slope = data.get("side_slope", self.side_slope)

        # Time parameters
        self.final_time = data.get("final_time", self.final_time)
        self.frame_dt = data.get("frame_dt", self.frame_dt)

        self.validate()

        if verbosity > 0:
            print("\033[92mSUCCESS::DATAFILE : File read successfully\033[0m")
            print()

    def validate(self):
        if self.num_cells < 1:
            raise ValueError(f"num_cells must be >= 1, got {self.num_cells}")
        if self.outflow_mode not in OUTFLOW_MODES:
            raise ValueError(f"Outflow mode {self.outflow_mode} not implemented")
        if self.geometry not in GEOMETRY_TYPES:
            raise ValueError(f"Geometry {self.geometry} not implemented")
        if not self.frame_dt > 0.0:
            raise ValueError(f"frame_dt must be > 0, got {self.frame_dt}")
        if self.final_time < 0.0:
            raise ValueError(f"final_time must be >= 0, got {self.final_time}")

    @property
    def dx(self) -> float:
        return self.channel_length / self.num_cells

    def sim_params(self) -> SimParams:
        return SimParams(num_cells=self.num_cells, substeps_max=self.substeps_max,
                         dx=self.dx, g=self.g, manning_n=self.manning_n,
                         bed_slope=self.bed_slope, min_depth=self.min_depth, cfl=self.CFL)

    def boundary_config(self) -> BoundaryConfig:
        if self.outflow_mode == "FixedDepth":
            outflow = FixedDepth(self.outflow_fixed_depth)
        else:
            outflow = OpenCopy()
        return BoundaryConfig(inflow_enabled=self.inflow_enabled,
                              inflow_q_per_width=self.inflow_q_per_width,
                              outflow=outflow)

    def build_geometry(self):
        """Geometry service described by the file, or None for the rectangular estimate."""
        if self.geometry != "trapezoid":
            return None
        frame = ChannelMesh(self.num_cells, self.channel_length, self.channel_width,
                            origin=self.channel_origin, direction=self.channel_direction)
        return TrapezoidalTrench(self.channel_origin, self.channel_width,
                                 side_slope=self.side_slope, bed_slope=self.bed_slope,
                                 axis=frame.axis, width_axis=frame.width_axis,
                                 up_axis=frame.up_axis)

    def build_channel(self) -> Channel:
        """Channel node configured from the file (not yet initialised)."""
        boundary = self.boundary_config()
        return Channel(num_cells=self.num_cells, substeps_max=self.substeps_max,
                       g=self.g, manning_n=self.manning_n, bed_slope=self.bed_slope,
                       min_depth=self.min_depth, cfl=self.CFL,
                       inflow_enabled=boundary.inflow_enabled,
                       inflow_q_per_width=boundary.inflow_q_per_width,
                       outflow=boundary.outflow,
                       initial_depth=self.initial_depth,
                       initial_velocity=self.initial_velocity,
                       length=self.channel_length, width=self.channel_width,
                       origin=self.channel_origin, direction=self.channel_direction,
                       geometry=self.build_geometry())

    def apply_initial_states(self, channel: Channel):
        """Apply the cell-range overrides of ``initial_states`` to an initialised channel."""
        for block in self.initial_states:
            channel.set_cell_state(int(block["start"]), int(block["count"]),
                                   float(block["depth"]), float(block.get("velocity", 0.0)))

    def print_data(self):
        """Print all parameters to console."""
        print(f"Channel              = {self.geometry}")
        print(f"   |length           = {self.channel_length}")
        print(f"   |width            = {self.channel_width}")
        if self.geometry == "trapezoid":
            print(f"   |side slope       = {self.side_slope}")
        print(f"   |Nx               = {self.num_cells}")
        print(f"   |dx               = {self.dx}")
        print(f"InitialCondition     = Uniform")
        print(f"  |Initial Depth     = {self.initial_depth}")
        print(f"  |Initial Velocity  = {self.initial_velocity}")
        if self.initial_states:
            print(f"  |Cell ranges       = {len(self.initial_states)}")
        print(f"Numerical Flux       = Rusanov")
        print(f"CFL                  = {self.CFL}")
        print(f"Max substeps         = {self.substeps_max}")
        print(f"Frame dt             = {self.frame_dt}")
        print(f"Final time           = {self.final_time}")
        print(f"Gravity              = {self.g}")
        print(f"Manning n            = {self.manning_n}")
        print(f"Bed slope            = {self.bed_slope}")
        print(f"Min depth            = {self.min_depth}")
        print(f"Save Frequency       = {self.save_frequency}")
        print(f"Number of probes     = {self.n_probes}")
        for i in range(self.n_probes):
            print(f"   |Position probe {self.probes_references[i]} = {self.probes_positions[i]}")
        print(f"Inflow               = {'Enabled' if self.inflow_enabled else 'Disabled'}")
        if self.inflow_enabled:
            print(f"   |Discharge        = {self.inflow_q_per_width}")
        print(f"Outflow              = {self.outflow_mode}")
        if self.outflow_mode == "FixedDepth":
            print(f"   |Fixed depth      = {self.outflow_fixed_depth}")
