"""
Analytic geometry service: a straight trapezoidal trench.

Implements the GeometryQuery protocol with exact ray/plane intersections, so
the cross-section sampler can run without a host engine.
"""

from typing import Optional, Sequence

import numpy as np

# Tolerance on face extents (m)
_EPS = 1e-7


class TrapezoidalTrench:
    """Infinite trapezoidal trench along a straight axis.

    In the local frame (s along the axis, w across, z up, relative to
    ``origin``) the trench is bounded by:
        - bed:         z = -S0 s                       for |w| <= b/2
        - left wall:   w = -(b/2 + m (z + S0 s))      for z >= -S0 s
        - right wall:  w =  (b/2 + m (z + S0 s))      for z >= -S0 s

    where b is the bed width, m the side slope (horizontal per vertical,
    0 for vertical walls) and S0 the bed slope.

    Attributes:
        origin: World position of the bed centre line at s = 0
        axis, width_axis, up_axis: Orthonormal trench frame
        bed_width: Bed width b (m)
        side_slope: Side slope m
        bed_slope: Bed slope S0
    """

    def __init__(self, origin: Sequence[float], bed_width: float,
                 side_slope: float = 0.0, bed_slope: float = 0.0,
                 axis: Sequence[float] = (1.0, 0.0, 0.0),
                 width_axis: Sequence[float] = (0.0, 0.0, 1.0),
                 up_axis: Sequence[float] = (0.0, 1.0, 0.0)):
        if bed_width < 0.0:
            raise ValueError(f"bed_width must be >= 0, got {bed_width}")
        if side_slope < 0.0:
            raise ValueError(f"side_slope must be >= 0, got {side_slope}")
        self.origin = np.asarray(origin, dtype=float)
        self.axis = np.asarray(axis, dtype=float) / np.linalg.norm(axis)
        self.width_axis = np.asarray(width_axis, dtype=float) / np.linalg.norm(width_axis)
        self.up_axis = np.asarray(up_axis, dtype=float) / np.linalg.norm(up_axis)
        self.bed_width = bed_width
        self.side_slope = side_slope
        self.bed_slope = bed_slope

        half, m, s0 = 0.5 * bed_width, side_slope, bed_slope
        # Each face as (normal in local (s, w, z), offset): n·p + c = 0
        self._faces = (
            ("bed", np.array([s0, 0.0, 1.0]), 0.0),
            ("left", np.array([m * s0, 1.0, m]), half),
            ("right", np.array([-m * s0, 1.0, -m]), -half),
        )

    def to_local(self, point: Sequence[float]) -> np.ndarray:
        p = np.asarray(point, dtype=float) - self.origin
        return np.array([p @ self.axis, p @ self.width_axis, p @ self.up_axis])

    def to_world(self, local: np.ndarray) -> np.ndarray:
        return (self.origin + local[0] * self.axis
                + local[1] * self.width_axis + local[2] * self.up_axis)

    def bed_elevation(self, s: float) -> float:
        """Local bed elevation at distance ``s`` along the axis."""
        return -self.bed_slope * s

    def half_width(self, s: float, z: float) -> float:
        """Half width of the trench at local elevation ``z``."""
        return 0.5 * self.bed_width + self.side_slope * max(z - self.bed_elevation(s), 0.0)

    def find_surface(self, origin: Sequence[float], direction: Sequence[float],
                     max_distance: float) -> Optional[np.ndarray]:
        """Nearest hit of the ray with the trench surface within ``max_distance``."""
        p0 = self.to_local(origin)
        d = np.asarray(direction, dtype=float)
        d = np.array([d @ self.axis, d @ self.width_axis, d @ self.up_axis])

        best_t = None
        for name, normal, offset in self._faces:
            denom = normal @ d
            if abs(denom) < 1e-12:
                continue
            t = -(normal @ p0 + offset) / denom
            if t < -_EPS or t > max_distance + _EPS:
                continue
            hit = p0 + t * d
            if not self._on_face(name, hit):
                continue
            if best_t is None or t < best_t:
                best_t = t

        if best_t is None:
            return None
        return self.to_world(p0 + max(best_t, 0.0) * d)

    def _on_face(self, name: str, hit: np.ndarray) -> bool:
        s, w, z = hit
        if name == "bed":
            return abs(w) <= 0.5 * self.bed_width + _EPS
        return z >= self.bed_elevation(s) - _EPS
