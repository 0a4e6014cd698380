"""Tests for islandgrid.reliability: failure timer and random streams."""

from __future__ import annotations

import math

import numpy as np
import pytest

from islandgrid.reliability import FailureEvent, FailureModel, RandomStreams, draw_failure_time


def _available_invariant(model: FailureModel) -> bool:
    return model.available == (model.status and model.repair_countdown == 0)


class TestDrawFailureTime:
    def test_zero_rate_never_fails(self):
        rng = np.random.default_rng(0)
        assert draw_failure_time(rng, 0.0) == math.inf

    def test_mean_matches_rate(self):
        rng = np.random.default_rng(1)
        draws = [draw_failure_time(rng, 8.76) for _ in range(20_000)]
        # lambda = 8.76 / 8760 = 1e-3 per hour -> mean 1000 h
        assert np.mean(draws) == pytest.approx(1000.0, rel=0.05)


class TestFailureModel:
    def test_negative_rate_rejected(self):
        with pytest.raises(ValueError):
            FailureModel(failure_rate_per_year=-1.0)

    def test_fails_after_threshold_and_repairs(self):
        rng = np.random.default_rng(3)
        model = FailureModel(failure_rate_per_year=10.0, repair_time_hours=3)
        model.reset(rng, consider_failures=True)
        model.next_failure_hours = 2.0

        model.add_work_time(1.0)
        assert model.step(rng, True) is FailureEvent.NONE
        model.add_work_time(1.0)
        assert model.step(rng, True) is FailureEvent.FAILED
        assert not model.available
        assert model.failure_count == 1

        events = [model.step(rng, True) for _ in range(3)]
        assert events == [FailureEvent.NONE, FailureEvent.NONE, FailureEvent.REPAIRED]
        assert model.available
        assert model.time_worked == 0.0
        assert _available_invariant(model)

    def test_work_time_ignored_while_in_repair(self):
        model = FailureModel(failure_rate_per_year=1.0, repair_time_hours=5)
        model.fail()
        model.add_work_time(10.0)
        assert model.time_worked == 0.0

    def test_no_failures_when_disabled(self):
        rng = np.random.default_rng(4)
        model = FailureModel(failure_rate_per_year=1000.0, repair_time_hours=2)
        model.reset(rng, consider_failures=False)
        for _ in range(500):
            model.add_work_time(1.0)
            assert model.step(rng, False) is FailureEvent.NONE
        assert model.failure_count == 0

    def test_zero_repair_time_returns_immediately(self):
        model = FailureModel(failure_rate_per_year=1.0, repair_time_hours=0)
        model.fail()
        assert model.available
        assert model.failure_count == 1

    def test_outage_is_not_a_failure(self):
        model = FailureModel(failure_rate_per_year=1.0, repair_time_hours=5)
        assert model.begin_outage(4)
        assert not model.available
        assert model.failure_count == 0

    def test_empty_outage_keeps_asset_in_service(self):
        model = FailureModel(failure_rate_per_year=1.0, repair_time_hours=5)
        assert not model.begin_outage(0)
        assert model.available

    def test_invariant_holds_over_random_walk(self):
        rng = np.random.default_rng(5)
        model = FailureModel(failure_rate_per_year=200.0, repair_time_hours=7)
        model.reset(rng, consider_failures=True)
        for _ in range(5000):
            model.add_work_time(1.0)
            model.step(rng, True)
            assert _available_invariant(model)
        assert model.failure_count > 0


class TestRandomStreams:
    def test_same_seed_same_draws(self):
        a = RandomStreams.from_seed(123)
        b = RandomStreams.from_seed(123)
        assert a.diesel.random() == b.diesel.random()
        assert a.bus.random() == b.bus.random()

    def test_types_are_independent(self):
        s = RandomStreams.from_seed(7)
        assert s.diesel.random() != s.wind_turbine.random()

    def test_negative_seed_builds_streams(self):
        a = RandomStreams.from_seed(-1)
        b = RandomStreams.from_seed(-1)
        assert a.room.random() == b.room.random()
        assert RandomStreams.from_seed(-1).diesel.random() != RandomStreams.from_seed(1).diesel.random()

    def test_offsets_do_not_alias_neighbouring_seeds(self):
        # Asset type k of seed s must not replay asset type k+1 of seed s-1.
        assert RandomStreams.from_seed(10).diesel.random() != RandomStreams.from_seed(9).battery.random()
