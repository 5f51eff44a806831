"""
Cross-section sampling for the friction source term.

The sampler estimates the wetted geometry (area, wetted perimeter, top width,
hydraulic radius) of the channel at a position along its axis by casting rays
against an injected geometry service. Results are cached by quantized
position; the section cache is dropped whenever the water depth moves by more
than DEPTH_CHANGE_THRESHOLD since the last invalidation, the bed elevation
cache never is.
"""

import math
import warnings
from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, Tuple

import numpy as np

# Section cache is invalidated when depth changes by more than this (m)
DEPTH_CHANGE_THRESHOLD = 1e-3

HASH_PRIME_A = 73856093
HASH_PRIME_B = 19349663


class GeometryQuery(Protocol):
    """Ray query service the sampler casts against."""

    def find_surface(self, origin: np.ndarray, direction: np.ndarray,
                     max_distance: float) -> Optional[np.ndarray]:
        """Return the nearest hit point along the ray, or None on a miss."""
        ...


@dataclass(frozen=True)
class CrossSectionProperties:
    """Wetted geometry of one cross-section.

    Attributes:
        bed_elevation: Elevation of the channel bed along the up axis (m)
        area: Wetted area (m²)
        wetted_perimeter: Wetted perimeter (m)
        top_width: Free-surface width (m)
        hydraulic_radius: area / wetted_perimeter, 0 if the perimeter is 0 (m)
    """

    bed_elevation: float = 0.0
    area: float = 0.0
    wetted_perimeter: float = 0.0
    top_width: float = 0.0
    hydraulic_radius: float = 0.0


def position_key(a: float, b: float, resolution: float = 1.0) -> int:
    """Integer spatial hash of two horizontal coordinates quantized to ``resolution``."""
    ia = int(a / resolution)
    ib = int(b / resolution)
    return (ia * HASH_PRIME_A) ^ (ib * HASH_PRIME_B)


class SectionCache:
    """Position-keyed cache with optional depth-change invalidation.

    With ``depth_threshold=None`` entries never depend on depth. Otherwise
    ``track_depth`` clears every entry as soon as the queried depth differs
    from the depth recorded at the last invalidation by more than the
    threshold.
    """

    def __init__(self, depth_threshold: Optional[float] = None):
        self.depth_threshold = depth_threshold
        self.last_depth = -1.0
        self.hits = 0
        self.misses = 0
        self._entries = {}

    def track_depth(self, depth: float) -> bool:
        """Record the queried depth; return True if the cache was invalidated."""
        if self.depth_threshold is None:
            return False
        if abs(depth - self.last_depth) > self.depth_threshold:
            self._entries.clear()
            self.last_depth = depth
            return True
        return False

    def get(self, key: int):
        value = self._entries.get(key)
        if value is None:
            self.misses += 1
        else:
            self.hits += 1
        return value

    def put(self, key: int, value):
        self._entries[key] = value

    def clear(self):
        self._entries.clear()
        self.last_depth = -1.0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: int) -> bool:
        return key in self._entries


def _normalized(vector: Sequence[float]) -> np.ndarray:
    v = np.asarray(vector, dtype=float)
    norm = np.linalg.norm(v)
    if not norm > 0.0:
        raise ValueError(f"axis vector must be non-zero, got {vector}")
    return v / norm


def integrate_cross_section(points: List[Tuple[float, float]],
                            bed_elevation: float,
                            channel_width: float) -> CrossSectionProperties:
    """Integrate sampled (lateral offset, depth) points into section properties.

    Points are ordered by lateral offset so that the polyline descends the
    left bank, crosses the bed and climbs the right bank:
        - area: trapezoid rule Σ Δw (d₁ + d₂)/2
        - wetted perimeter: polyline length Σ √(Δw² + Δd²)
    An extreme point still below the surface is joined to the nominal bank
    edge (±channel_width/2) at the surface; that side segment adds to the
    perimeter and its triangle to the area.

    Args:
        points: (offset, depth below surface) pairs
        bed_elevation: Bed elevation reported with the result (m)
        channel_width: Nominal channel width (m)

    Returns:
        CrossSectionProperties with every quantity clamped >= 0
    """
    if len(points) < 2:
        return CrossSectionProperties(bed_elevation=bed_elevation)

    ordered = sorted(points, key=lambda p: (p[0], p[1] if p[0] < 0.0 else -p[1]))

    area = 0.0
    perimeter = 0.0
    for (w1, d1), (w2, d2) in zip(ordered[:-1], ordered[1:]):
        dw = w2 - w1
        area += dw * 0.5 * (d1 + d2)
        perimeter += math.hypot(dw, d2 - d1)

    half_width = 0.5 * channel_width
    left_w, left_d = ordered[0]
    right_w, right_d = ordered[-1]
    top_left, top_right = left_w, right_w

    if left_d > 0.0:
        gap = max(half_width + left_w, 0.0)
        perimeter += math.hypot(gap, left_d)
        area += 0.5 * gap * left_d
        top_left = left_w - gap

    if right_d > 0.0:
        gap = max(half_width - right_w, 0.0)
        perimeter += math.hypot(gap, right_d)
        area += 0.5 * gap * right_d
        top_right = right_w + gap

    radius = area / perimeter if perimeter > 0.0 else 0.0

    return CrossSectionProperties(
        bed_elevation=bed_elevation,
        area=max(area, 0.0),
        wetted_perimeter=max(perimeter, 0.0),
        top_width=max(top_right - top_left, 0.0),
        hydraulic_radius=max(radius, 0.0),
    )


class CrossSectionSampler:
    """Sample channel cross-section geometry through a geometry service.

    Any failure of the geometry service (exception, miss, malformed hit)
    degrades to a flat bed / rectangular section; the sampler itself never
    raises once constructed.

    Attributes:
        geometry: Injected GeometryQuery, or None for the rectangular fallback
        channel_axis, width_axis, up_axis: Unit vectors of the channel frame
        max_ray_distance: Half length of the vertical bed query and reach of
            the lateral bank queries, never below 0.75 channel width (m)
        width_samples: Points of the flat rectangular estimate
        depth_samples: Elevations sampled between bed and surface
        min_depth: Depth below which no query is made (m)
        cache_resolution: Quantization step of the cache key (m)
        section_cache: Depth-dependent SectionCache
        bed_cache: Depth-independent SectionCache of bed elevations
        query_failures: Number of geometry queries that raised
    """

    def __init__(self, geometry: Optional[GeometryQuery],
                 channel_axis: Sequence[float] = (1.0, 0.0, 0.0),
                 width_axis: Sequence[float] = (0.0, 0.0, 1.0),
                 up_axis: Sequence[float] = (0.0, 1.0, 0.0),
                 max_ray_distance: float = 10.0,
                 width_samples: int = 8,
                 depth_samples: int = 4,
                 min_depth: float = 1e-4,
                 cache_resolution: float = 1.0):
        self.geometry = geometry
        self.channel_axis = _normalized(channel_axis)
        self.width_axis = _normalized(width_axis)
        self.up_axis = _normalized(up_axis)
        self.max_ray_distance = max_ray_distance
        self.width_samples = max(2, width_samples)
        self.depth_samples = max(2, depth_samples)
        self.min_depth = min_depth
        self.cache_resolution = cache_resolution

        self.section_cache = SectionCache(DEPTH_CHANGE_THRESHOLD)
        self.bed_cache = SectionCache()
        self.query_failures = 0
        self._warned = False

    def sample_cross_section(self, position: Sequence[float], water_depth: float,
                             channel_width: float) -> CrossSectionProperties:
        """Estimate the wetted cross-section at ``position``.

        Args:
            position: World position on the channel centre line
            water_depth: Current water depth at that position (m)
            channel_width: Nominal channel width (m)

        Returns:
            CrossSectionProperties (degenerate zeros if water_depth < min_depth)
        """
        position = np.asarray(position, dtype=float)

        if water_depth < self.min_depth:
            return CrossSectionProperties(bed_elevation=self._elevation(position))

        key = self.position_key(position)
        self.section_cache.track_depth(water_depth)

        cached = self.section_cache.get(key)
        if cached is not None:
            return cached

        bed_elevation = self.find_bed_elevation(position)
        surface = bed_elevation + water_depth

        points = []
        if self.geometry is not None:
            for d in range(self.depth_samples):
                elevation = bed_elevation + water_depth * d / (self.depth_samples - 1)
                points.extend(self._sample_banks(position, elevation, surface, channel_width))

        if len(points) < 2:
            points = self._flat_estimate(water_depth, channel_width)

        result = integrate_cross_section(points, bed_elevation, channel_width)
        self.section_cache.put(key, result)
        return result

    def find_bed_elevation(self, position: Sequence[float]) -> float:
        """Bed elevation below ``position`` (cached, depth-independent)."""
        position = np.asarray(position, dtype=float)
        key = self.position_key(position)

        cached = self.bed_cache.get(key)
        if cached is not None:
            return cached

        bed_elevation = self._elevation(position)
        hit = self._query(position + self.up_axis * self.max_ray_distance,
                          -self.up_axis, 2.0 * self.max_ray_distance)
        if hit is not None:
            bed_elevation = self._elevation(hit)

        self.bed_cache.put(key, bed_elevation)
        return bed_elevation

    def position_key(self, position: np.ndarray) -> int:
        return position_key(float(position @ self.channel_axis),
                            float(position @ self.width_axis),
                            self.cache_resolution)

    def clear_caches(self):
        self.section_cache.clear()
        self.bed_cache.clear()

    def _elevation(self, point: np.ndarray) -> float:
        return float(point @ self.up_axis)

    def _sample_banks(self, position: np.ndarray, elevation: float,
                      surface: float, channel_width: float):
        """Cast one lateral ray toward each bank at ``elevation``."""
        centre = position + self.up_axis * (elevation - self._elevation(position))
        reach = max(self.max_ray_distance, 0.75 * channel_width)

        points = []
        for side in (-1.0, 1.0):
            hit = self._query(centre, side * self.width_axis, reach)
            if hit is None:
                continue
            offset = float((hit - centre) @ self.width_axis)
            depth = surface - self._elevation(hit)
            points.append((offset, max(depth, 0.0)))
        return points

    def _flat_estimate(self, water_depth: float, channel_width: float):
        """Rectangular section: bed points spread evenly over the nominal width."""
        n = self.width_samples
        return [((i / (n - 1) - 0.5) * channel_width, water_depth) for i in range(n)]

    def _query(self, origin: np.ndarray, direction: np.ndarray,
               max_distance: float) -> Optional[np.ndarray]:
        if self.geometry is None:
            return None
        try:
            hit = self.geometry.find_surface(origin, direction, max_distance)
            if hit is None:
                return None
            hit = np.asarray(hit, dtype=float).reshape(3)
        except Exception as exc:
            self._record_failure(exc)
            return None
        if not np.all(np.isfinite(hit)):
            return None
        return hit

    def _record_failure(self, exc: Exception):
        self.query_failures += 1
        if not self._warned:
            self._warned = True
            warnings.warn(
                f"Geometry query failed ({exc!r}); using flat bed / rectangular section",
                RuntimeWarning,
                stacklevel=4,
            )
