"""Tests for cross-section sampling and its caches."""

import warnings

import numpy as np
import pytest

from channel_flow.solver.cross_section import (
    DEPTH_CHANGE_THRESHOLD,
    CrossSectionSampler,
    SectionCache,
    integrate_cross_section,
    position_key,
)
from channel_flow.solver.geometry import TrapezoidalTrench


class ExplodingGeometry:
    """Geometry service whose every query raises."""

    def __init__(self):
        self.calls = 0

    def find_surface(self, origin, direction, max_distance):
        self.calls += 1
        raise RuntimeError("collision world unavailable")


class NanGeometry:
    """Geometry service returning malformed hits."""

    def find_surface(self, origin, direction, max_distance):
        return np.array([np.nan, 0.0, 0.0])


class CountingGeometry(TrapezoidalTrench):
    """Trench that counts its queries."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = 0

    def find_surface(self, origin, direction, max_distance):
        self.calls += 1
        return super().find_surface(origin, direction, max_distance)


def _rectangular_radius(width, depth):
    return width * depth / (width + 2.0 * depth)


class TestPositionKey:

    def test_quantized(self):
        assert position_key(0.2, 0.3) == position_key(0.9, 0.1)
        assert position_key(1.5, 0.0) != position_key(0.5, 0.0)

    def test_resolution(self):
        assert position_key(0.2, 0.0, resolution=0.1) != position_key(0.9, 0.0, resolution=0.1)


class TestSectionCache:

    def test_depth_invalidation(self):
        cache = SectionCache(DEPTH_CHANGE_THRESHOLD)
        assert cache.track_depth(0.5)
        cache.put(1, "a")
        assert not cache.track_depth(0.5005)
        assert 1 in cache
        assert cache.track_depth(0.502)
        assert len(cache) == 0
        assert cache.last_depth == 0.502

    def test_depth_independent_cache(self):
        cache = SectionCache()
        cache.put(1, 3.0)
        assert not cache.track_depth(10.0)
        assert cache.get(1) == 3.0

    def test_hit_miss_counters(self):
        cache = SectionCache()
        assert cache.get(7) is None
        cache.put(7, 1.0)
        cache.get(7)
        assert (cache.hits, cache.misses) == (1, 1)


class TestIntegrateCrossSection:

    def test_rectangle(self):
        points = [(w, 0.5) for w in np.linspace(-1.0, 1.0, 8)]
        section = integrate_cross_section(points, 0.0, 2.0)
        assert section.area == pytest.approx(1.0)
        assert section.wetted_perimeter == pytest.approx(3.0)
        assert section.top_width == pytest.approx(2.0)
        assert section.hydraulic_radius == pytest.approx(1.0 / 3.0)

    def test_too_few_points(self):
        section = integrate_cross_section([(0.0, 1.0)], 2.5, 2.0)
        assert section.area == 0.0
        assert section.hydraulic_radius == 0.0
        assert section.bed_elevation == 2.5

    def test_bank_profile(self):
        # V-shaped section reaching the surface on both banks
        points = [(-1.0, 0.0), (0.0, 1.0), (1.0, 0.0)]
        section = integrate_cross_section(points, 0.0, 2.0)
        assert section.area == pytest.approx(1.0)
        assert section.wetted_perimeter == pytest.approx(2.0 * np.sqrt(2.0))
        assert section.top_width == pytest.approx(2.0)


class TestSamplerFallback:
    """Rectangular estimate without usable geometry."""

    def test_no_geometry(self):
        sampler = CrossSectionSampler(None)
        section = sampler.sample_cross_section((3.0, 0.0, 0.0), 0.4, 2.0)
        assert section.area == pytest.approx(0.8)
        assert section.hydraulic_radius == pytest.approx(_rectangular_radius(2.0, 0.4))

    def test_below_min_depth(self):
        geometry = CountingGeometry((0.0, 0.0, 0.0), 2.0)
        sampler = CrossSectionSampler(geometry, min_depth=1e-3)
        section = sampler.sample_cross_section((0.0, 1.5, 0.0), 1e-4, 2.0)
        assert section.area == 0.0
        assert section.hydraulic_radius == 0.0
        assert section.bed_elevation == 1.5
        assert geometry.calls == 0
        assert len(sampler.section_cache) == 0
        assert len(sampler.bed_cache) == 0

    def test_raising_geometry_degrades_and_warns_once(self):
        geometry = ExplodingGeometry()
        sampler = CrossSectionSampler(geometry)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            first = sampler.sample_cross_section((0.5, 0.0, 0.0), 0.4, 2.0)
            sampler.sample_cross_section((5.5, 0.0, 0.0), 0.4, 2.0)
        assert len([w for w in caught if issubclass(w.category, RuntimeWarning)]) == 1
        assert sampler.query_failures == geometry.calls > 0
        assert first.hydraulic_radius == pytest.approx(_rectangular_radius(2.0, 0.4))
        assert first.bed_elevation == 0.0

    def test_malformed_hits_are_misses(self):
        sampler = CrossSectionSampler(NanGeometry())
        section = sampler.sample_cross_section((0.5, 0.0, 0.0), 0.4, 2.0)
        assert sampler.query_failures == 0
        assert section.hydraulic_radius == pytest.approx(_rectangular_radius(2.0, 0.4))


class TestSamplerTrench:
    """Sampling an analytic trench."""

    def test_vertical_walls(self):
        sampler = CrossSectionSampler(TrapezoidalTrench((0.0, 0.0, 0.0), 2.0))
        section = sampler.sample_cross_section((5.0, 0.0, 0.0), 0.4, 2.0)
        assert section.area == pytest.approx(0.8)
        assert section.wetted_perimeter == pytest.approx(2.8)
        assert section.top_width == pytest.approx(2.0)

    def test_sloped_walls(self):
        trench = TrapezoidalTrench((0.0, 0.0, 0.0), 2.0, side_slope=0.5)
        sampler = CrossSectionSampler(trench)
        section = sampler.sample_cross_section((5.0, 0.0, 0.0), 0.4, 2.0)
        assert section.area == pytest.approx((2.0 + 0.5 * 0.4) * 0.4)
        assert section.wetted_perimeter == pytest.approx(2.0 + 2.0 * 0.4 * np.sqrt(1.25))
        assert section.top_width == pytest.approx(2.4)

    def test_deep_sloped_walls(self):
        # surface half width (2.0) exceeds 0.75 of the nominal width
        trench = TrapezoidalTrench((0.0, 0.0, 0.0), 2.0, side_slope=1.0)
        sampler = CrossSectionSampler(trench)
        section = sampler.sample_cross_section((5.0, 0.0, 0.0), 1.0, 2.0)
        assert section.area == pytest.approx(3.0)
        assert section.wetted_perimeter == pytest.approx(2.0 + 2.0 * np.sqrt(2.0))
        assert section.top_width == pytest.approx(4.0)

    def test_sloped_bed_elevation(self):
        trench = TrapezoidalTrench((0.0, 0.0, 0.0), 2.0, bed_slope=0.01)
        sampler = CrossSectionSampler(trench)
        assert sampler.find_bed_elevation((50.0, 0.0, 0.0)) == pytest.approx(-0.5)

    def test_section_cache_reused_within_threshold(self):
        geometry = CountingGeometry((0.0, 0.0, 0.0), 2.0)
        sampler = CrossSectionSampler(geometry)
        sampler.sample_cross_section((5.2, 0.0, 0.0), 0.4, 2.0)
        calls = geometry.calls
        sampler.sample_cross_section((5.7, 0.0, 0.0), 0.4 + 0.5 * DEPTH_CHANGE_THRESHOLD, 2.0)
        assert geometry.calls == calls
        assert sampler.section_cache.hits == 1

    def test_depth_change_keeps_bed_cache(self):
        geometry = CountingGeometry((0.0, 0.0, 0.0), 2.0)
        sampler = CrossSectionSampler(geometry)
        sampler.sample_cross_section((5.0, 0.0, 0.0), 0.4, 2.0)
        calls = geometry.calls
        section = sampler.sample_cross_section((5.0, 0.0, 0.0), 0.6, 2.0)
        # only the lateral rays are cast again
        assert geometry.calls - calls == 2 * sampler.depth_samples
        assert sampler.bed_cache.hits == 1
        assert section.area == pytest.approx(1.2)

    def test_clear_caches(self):
        sampler = CrossSectionSampler(TrapezoidalTrench((0.0, 0.0, 0.0), 2.0))
        sampler.sample_cross_section((5.0, 0.0, 0.0), 0.4, 2.0)
        sampler.clear_caches()
        assert len(sampler.section_cache) == 0
        assert len(sampler.bed_cache) == 0

    def test_zero_axis_rejected(self):
        with pytest.raises(ValueError):
            CrossSectionSampler(None, channel_axis=(0.0, 0.0, 0.0))
