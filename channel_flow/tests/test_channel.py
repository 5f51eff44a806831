"""Tests for the channel mesh and the host node."""

import dataclasses

import numpy as np
import pytest

from channel_flow.solver.channel import Channel
from channel_flow.solver.geometry import TrapezoidalTrench
from channel_flow.solver.mesh import ChannelMesh
from channel_flow.solver.params import FixedDepth, OpenCopy


class TestChannelMesh:

    def test_cell_centers(self):
        mesh = ChannelMesh(4, 2.0, 1.0)
        mesh.initialize(verbosity=0)
        assert mesh.get_space_step() == 0.5
        np.testing.assert_allclose(mesh.get_cell_centers(), [0.25, 0.75, 1.25, 1.75])

    def test_sloped_bed_positions(self):
        mesh = ChannelMesh(2, 10.0, 1.0, origin=(0.0, 1.0, 0.0), bed_slope=0.1)
        mesh.initialize(verbosity=0)
        np.testing.assert_allclose(mesh.bed_positions, [[2.5, 0.75, 0.0], [7.5, 0.25, 0.0]])

    def test_direction_normalised(self):
        mesh = ChannelMesh(2, 1.0, 1.0, direction=(0.0, 0.0, 3.0))
        np.testing.assert_allclose(mesh.axis, [0.0, 0.0, 1.0])
        np.testing.assert_allclose(mesh.width_axis, [-1.0, 0.0, 0.0])

    def test_zero_direction_falls_back(self):
        with pytest.warns(RuntimeWarning):
            mesh = ChannelMesh(2, 1.0, 1.0, direction=(0.0, 0.0, 0.0))
        np.testing.assert_allclose(mesh.axis, [1.0, 0.0, 0.0])

    def test_vertical_direction_rejected(self):
        with pytest.raises(ValueError):
            ChannelMesh(2, 1.0, 1.0, direction=(0.0, 1.0, 0.0))

    @pytest.mark.parametrize("args", [(0, 1.0, 1.0), (4, 0.0, 1.0)])
    def test_invalid(self, args):
        with pytest.raises(ValueError):
            ChannelMesh(*args)

    def test_surface_profile(self):
        mesh = ChannelMesh(3, 3.0, 1.0)
        mesh.initialize(verbosity=0)
        points = mesh.surface_profile(np.array([1.0, 2.0, 4.0]), scale=2.0)
        assert points.shape == (4, 3)
        np.testing.assert_allclose(points[:, 0], [0.0, 1.0, 2.0, 3.0])
        np.testing.assert_allclose(points[:, 1], [2.0, 3.0, 6.0, 8.0])


class TestChannel:

    @pytest.fixture
    def channel(self):
        channel = Channel(num_cells=20, length=10.0, width=2.0, manning_n=0.02,
                          initial_depth=0.5, initial_velocity=0.2)
        channel.initialise()
        return channel

    def test_initialise(self, channel):
        assert channel.initialised
        sim = channel.simulation
        assert sim.params.dx == 0.5
        np.testing.assert_array_equal(sim.h, 0.5)
        np.testing.assert_allclose(sim.q, 0.1)
        assert not sim.friction.uses_sampler

    def test_process_before_initialise_is_noop(self):
        Channel().process(1.0 / 60.0)

    def test_process_advances(self, channel):
        channel.set_cell_state(0, 5, 1.0, 0.0)
        channel.process(1.0 / 60.0)
        assert channel.simulation.h[4] < 1.0
        assert channel.stats()["substeps"] >= 1

    def test_boundary_settings_propagate(self, channel):
        channel.inflow_enabled = True
        channel.inflow_q_per_width = 0.7
        channel.outflow = FixedDepth(0.1)
        boundary = channel.simulation.boundary
        assert boundary.inflow_enabled
        assert boundary.inflow_q_per_width == 0.7
        assert boundary.outflow == FixedDepth(0.1)

    def test_set_cell_state_clamps_range(self, channel):
        channel.set_cell_state(-3, 5, 0.9, 1.0)
        channel.set_cell_state(18, 10, 0.8, 0.0)
        h = channel.simulation.h
        np.testing.assert_array_equal(h[:2], 0.9)
        assert h[2] == 0.5
        np.testing.assert_array_equal(h[18:], 0.8)
        np.testing.assert_allclose(channel.simulation.q[:2], 0.9)

    def test_update_params(self, channel):
        channel.update_params(manning_n=0.05, substeps_max=4)
        assert channel.simulation.params.manning_n == 0.05
        assert channel.substeps_max == 4

    def test_update_params_num_cells_rejected(self, channel):
        with pytest.raises(ValueError):
            channel.update_params(num_cells=40)
        assert channel.num_cells == 20

    def test_update_node_settings(self, channel):
        params = channel.simulation.params
        channel.update_params(initial_depth=0.8, initial_velocity=0.0)
        assert channel.initial_depth == 0.8
        assert channel.simulation.params == params
        channel.initialise()
        np.testing.assert_array_equal(channel.simulation.h, 0.8)

    def test_update_unknown_setting_rejected(self, channel):
        with pytest.raises(AttributeError):
            channel.update_params(roughness=0.1)
        assert channel.simulation.params.manning_n == 0.02

    def test_update_bed_slope_moves_bed(self, channel):
        channel.update_params(bed_slope=0.1)
        assert channel.simulation.params.bed_slope == 0.1
        np.testing.assert_allclose(channel.mesh.bed_positions[0], [0.25, -0.025, 0.0])
        assert channel.simulation.friction.cell_positions is channel.mesh.bed_positions

    def test_min_depth_reaches_sampler(self):
        trench = TrapezoidalTrench((0.0, 0.0, 0.0), 2.0, side_slope=0.5)
        channel = Channel(num_cells=10, length=10.0, width=2.0, geometry=trench,
                          min_depth=1e-2)
        channel.initialise()
        channel.update_params(min_depth=1e-4)
        assert channel.sampler.min_depth == 1e-4

        sim = channel.simulation
        channel.set_cell_state(0, 10, 5e-3, 0.5)
        assert sim.friction.hydraulic_radius(5, 5e-3) > 0.0
        channel.process(1e-3)
        assert np.all(np.isfinite(sim.q))
        assert np.all(np.abs(sim.q) < 0.01)

    def test_cell_world_position(self, channel):
        np.testing.assert_allclose(channel.cell_world_position(0), [0.25, 0.5, 0.0])

    def test_surface_profile(self, channel):
        assert channel.surface_profile().shape == (21, 3)

    def test_stats(self, channel):
        channel.process(1.0 / 60.0)
        stats = channel.stats()
        assert set(stats) == {"cells", "max_speed", "max_depth", "substeps", "dx",
                              "channel_length", "channel_width"}
        assert stats["cells"] == 20
        assert stats["max_depth"] == pytest.approx(0.5)
        assert stats["max_speed"] == pytest.approx(0.2 + np.sqrt(9.81 * 0.5))

    def test_geometry_service(self):
        trench = TrapezoidalTrench((0.0, 0.0, 0.0), 2.0, side_slope=0.5)
        channel = Channel(num_cells=10, length=10.0, width=2.0, geometry=trench,
                          initial_depth=0.4, outflow=OpenCopy())
        channel.initialise()
        assert channel.simulation.friction.uses_sampler
        channel.process(1.0 / 60.0)
        assert np.all(np.isfinite(channel.simulation.h))
        assert len(channel.sampler.bed_cache) > 0
