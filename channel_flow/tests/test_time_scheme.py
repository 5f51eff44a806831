"""Tests for CFL substep planning."""

import warnings

import numpy as np
import pytest

from channel_flow.solver.params import SimParams
from channel_flow.solver.time_scheme import TimeStepper


def _stepper(**kwargs):
    defaults = dict(num_cells=10, dx=0.1, substeps_max=8, cfl=0.5, manning_n=0.0)
    defaults.update(kwargs)
    return TimeStepper(SimParams(**defaults))


class TestPlan:
    """Substep count and length."""

    def test_required_substeps(self):
        stepper = _stepper()
        h = np.ones(10)
        q = np.zeros(10)
        n, sub_dt = stepper.plan(0.05, h, q)
        # λ = √g ≈ 3.132, Δt_cfl = 0.05 / λ ≈ 0.016  =>  ceil(3.13) = 4
        assert n == 4
        assert sub_dt == pytest.approx(0.0125)
        assert stepper.max_wave_speed == pytest.approx(np.sqrt(9.81))
        assert stepper.max_depth == 1.0

    def test_small_frame_single_substep(self):
        stepper = _stepper()
        n, sub_dt = stepper.plan(1e-4, np.ones(10), np.zeros(10))
        assert n == 1
        assert sub_dt == 1e-4

    def test_dry_domain_uses_full_frame(self):
        stepper = _stepper()
        n, sub_dt = stepper.plan(0.5, np.zeros(10), np.zeros(10))
        assert n == 1
        assert sub_dt == 0.5
        assert stepper.max_wave_speed == 0.0

    def test_clamp_warns_once(self):
        stepper = _stepper()
        h = np.ones(10)
        q = np.zeros(10)
        with pytest.warns(RuntimeWarning, match="substeps_max"):
            n, _ = stepper.plan(1.0, h, q)
        assert n == 8

        with warnings.catch_warnings():
            warnings.simplefilter("error")
            stepper.plan(1.0, h, q)
        assert stepper.clamped_frames == 2


class TestAdvance:
    """Frame driver."""

    def test_calls_substep_n_times(self):
        stepper = _stepper()
        calls = []
        stepper.advance(0.05, np.ones(10), np.zeros(10), calls.append)
        assert len(calls) == 4
        assert sum(calls) == pytest.approx(0.05)
        assert stepper.last_substeps == 4

    @pytest.mark.parametrize("dt", [0.0, -0.1, float("nan")])
    def test_non_positive_dt_is_noop(self, dt):
        stepper = _stepper()
        calls = []
        stepper.advance(dt, np.ones(10), np.zeros(10), calls.append)
        assert calls == []
        assert stepper.last_substeps == 0
