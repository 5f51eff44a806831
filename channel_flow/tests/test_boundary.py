"""Tests for ghost states and boundary parameters."""

import numpy as np
import pytest

from channel_flow.solver.boundary import BoundaryConditions
from channel_flow.solver.params import BoundaryConfig, FixedDepth, OpenCopy, SimParams


@pytest.fixture
def state():
    h = np.array([1.0, 0.8, 0.6])
    q = np.array([0.3, 0.2, 0.1])
    return h, q


class TestGhostStates:
    """Upstream and downstream policies."""

    def test_default_is_zero_gradient(self, state):
        bc = BoundaryConditions()
        assert bc.left_ghost(*state) == (1.0, 0.3)
        assert bc.right_ghost(*state) == (0.6, 0.1)

    def test_inflow_imposes_discharge_only(self, state):
        bc = BoundaryConditions(BoundaryConfig(inflow_enabled=True, inflow_q_per_width=5.0))
        assert bc.left_ghost(*state) == (1.0, 5.0)

    def test_inflow_disabled_ignores_value(self, state):
        bc = BoundaryConditions(BoundaryConfig(inflow_enabled=False, inflow_q_per_width=5.0))
        assert bc.left_ghost(*state) == (1.0, 0.3)

    def test_fixed_depth_outflow(self, state):
        bc = BoundaryConditions(BoundaryConfig(outflow=FixedDepth(0.2)))
        assert bc.right_ghost(*state) == (0.2, 0.1)

    def test_config_edits_apply_on_next_call(self, state):
        bc = BoundaryConditions()
        bc.config.outflow = FixedDepth(0.05)
        bc.config.inflow_enabled = True
        bc.config.inflow_q_per_width = 2.0
        assert bc.right_ghost(*state) == (0.05, 0.1)
        assert bc.left_ghost(*state) == (1.0, 2.0)


class TestParams:
    """Construction-time validation."""

    def test_defaults(self):
        config = BoundaryConfig()
        assert isinstance(config.outflow, OpenCopy)
        assert not config.inflow_enabled

    def test_negative_fixed_depth(self):
        with pytest.raises(ValueError):
            FixedDepth(-0.1)

    @pytest.mark.parametrize("kwargs", [
        {"num_cells": 0},
        {"substeps_max": 0},
        {"dx": 0.0},
        {"cfl": 0.0},
        {"cfl": 1.5},
        {"min_depth": -1.0},
        {"manning_n": -0.01},
    ])
    def test_invalid_sim_params(self, kwargs):
        with pytest.raises(ValueError):
            SimParams(**kwargs)

    def test_sim_params_frozen(self):
        params = SimParams()
        with pytest.raises(AttributeError):
            params.num_cells = 4
