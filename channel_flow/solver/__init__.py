"""Channel flow solver: finite volume Saint-Venant core and host node.

Public API
----------
Simulation     : per-frame driver (``step``, setters, read-only views).
SimParams      : immutable numerical and physical parameters.
BoundaryConfig : upstream inflow and downstream outflow settings.
Channel        : host node building mesh, sampler and simulation.
DataFile       : JSON parameter file reader.
FrameRunner    : batch runner writing HDF5 histories.
"""

from .channel import Channel
from .cross_section import (
    CrossSectionProperties,
    CrossSectionSampler,
    GeometryQuery,
    SectionCache,
)
from .data_file import DataFile
from .friction import FrictionModel
from .geometry import TrapezoidalTrench
from .mesh import ChannelMesh
from .params import BoundaryConfig, FixedDepth, OpenCopy, Outflow, SimParams
from .runner import FrameRunner
from .simulation import Simulation

__all__ = [
    "BoundaryConfig",
    "Channel",
    "ChannelMesh",
    "CrossSectionProperties",
    "CrossSectionSampler",
    "DataFile",
    "FixedDepth",
    "FrameRunner",
    "FrictionModel",
    "GeometryQuery",
    "OpenCopy",
    "Outflow",
    "SectionCache",
    "SimParams",
    "Simulation",
    "TrapezoidalTrench",
]
