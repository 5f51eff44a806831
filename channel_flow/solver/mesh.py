"""
ChannelMesh class for the uniform 1D mesh laid along a channel in world space.
"""

import warnings
from typing import Sequence

import numpy as np


class ChannelMesh:
    """Uniform 1D mesh along a straight channel.

    Attributes:
        number_of_cells: Number of cells N
        length: Channel length L (m)
        width: Channel width B (m)
        dx: Spatial step L / N
        bed_slope: Bed slope S0 (bed falls by S0 per metre downstream)
        origin: World position of the upstream end of the bed centre line
        axis: Unit vector pointing downstream
        up_axis: Unit vector pointing up
        width_axis: Unit vector across the channel (axis × up)
        bed_elevation: Bed elevation at the origin along up_axis
        cell_centers: Distance of each cell centre from the origin (N,)
        bed_positions: World position of each cell centre on the bed (N, 3)
    """

    def __init__(self, number_of_cells: int, length: float, width: float,
                 origin: Sequence[float] = (0.0, 0.0, 0.0),
                 direction: Sequence[float] = (1.0, 0.0, 0.0),
                 up: Sequence[float] = (0.0, 1.0, 0.0),
                 bed_slope: float = 0.0):
        if number_of_cells < 1:
            raise ValueError(f"number_of_cells must be >= 1, got {number_of_cells}")
        if not length > 0.0:
            raise ValueError(f"length must be > 0, got {length}")

        self.number_of_cells = number_of_cells
        self.length = length
        self.width = width
        self.dx = length / number_of_cells
        self.bed_slope = bed_slope

        self.origin = np.asarray(origin, dtype=float)
        self.up_axis = np.asarray(up, dtype=float) / np.linalg.norm(up)

        axis = np.asarray(direction, dtype=float)
        if axis @ axis < 1e-6:
            warnings.warn("Channel direction was near-zero, defaulting to the X axis",
                          RuntimeWarning, stacklevel=2)
            axis = np.array([1.0, 0.0, 0.0])
        self.axis = axis / np.linalg.norm(axis)

        width_axis = np.cross(self.axis, self.up_axis)
        if np.linalg.norm(width_axis) < 1e-6:
            raise ValueError("channel direction must not be parallel to the up axis")
        self.width_axis = width_axis / np.linalg.norm(width_axis)

        self.bed_elevation = float(self.origin @ self.up_axis)
        self.cell_centers = np.zeros(self.number_of_cells)
        self.bed_positions = np.zeros((self.number_of_cells, 3))

    def initialize(self, verbosity: int = 1):
        """Compute cell centres and their bed positions.

        Cell centres sit at x_i = (i + 0.5) dx along the axis; their bed
        elevation follows the bed slope:

            z_b(x) = z_b(0) - S0 x

        Args:
            verbosity: Level of output verbosity (0=silent, 1=normal output)
        """
        if verbosity > 0:
            print("Generating a 1D channel mesh...")

        for i in range(self.number_of_cells):
            x = (i + 0.5) * self.dx
            self.cell_centers[i] = x
            self.bed_positions[i] = self._bed_point(x)

        if verbosity > 0:
            print("\033[92mSUCCESS::MESH : Mesh generated successfully !\033[0m")
            print()

    def bed_elevation_at(self, x: float) -> float:
        return self.bed_elevation - self.bed_slope * x

    def cell_world_position(self, i: int, depth: float = 0.0) -> np.ndarray:
        """World position of the water surface above cell ``i`` at ``depth``."""
        return self.bed_positions[i] + self.up_axis * depth

    def surface_profile(self, h: np.ndarray, scale: float = 1.0) -> np.ndarray:
        """Free-surface points at the N+1 cell interfaces.

        End points take the depth of the boundary cells, interior points the
        mean depth of their two neighbours.

        Args:
            h: Depth array of shape (N,)
            scale: Vertical exaggeration applied to the depth

        Returns:
            np.ndarray: Points of shape (N+1, 3)
        """
        n = self.number_of_cells
        depth = np.empty(n + 1)
        depth[0] = h[0]
        depth[n] = h[n - 1]
        depth[1:n] = 0.5 * (h[:-1] + h[1:])

        points = np.zeros((n + 1, 3))
        for k in range(n + 1):
            points[k] = self._bed_point(k * self.dx) + self.up_axis * depth[k] * scale
        return points

    def _bed_point(self, x: float) -> np.ndarray:
        point = self.origin + self.axis * x
        return point + self.up_axis * (self.bed_elevation_at(x) - point @ self.up_axis)

    def get_cell_centers(self) -> np.ndarray:
        """Get array of cell centre distances along the axis."""
        return self.cell_centers

    def get_number_of_cells(self) -> int:
        """Get number of cells in the mesh."""
        return self.number_of_cells

    def get_space_step(self) -> float:
        """Get spatial step size."""
        return self.dx
