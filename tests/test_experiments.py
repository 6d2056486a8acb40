"""Tests for execution-time measurement."""

import math

import pytest

from utils.experiments import MeasurementResult, measure_execution_time


class TestMeasurementResult:
    """Statistics over fixed samples."""

    @pytest.fixture
    def result(self):
        return MeasurementResult(durations=[40, 10, 30, 20])

    def test_min_max(self, result):
        assert result.min() == 10
        assert result.max() == 40

    def test_median_is_upper(self, result):
        """Even sample counts pick element n // 2 of the sorted samples."""
        assert result.median() == 30

    def test_median_odd(self):
        assert MeasurementResult([5, 1, 3]).median() == 3

    def test_mean(self, result):
        assert result.mean() == 25.0

    def test_population_sd(self, result):
        assert math.isclose(result.sd(), math.sqrt(125.0))

    def test_summary(self, result):
        summary = result.summary()
        assert summary["trials"] == 4
        assert summary["min_ns"] == 10
        assert summary["median_ns"] == 30


class TestMeasure:
    def test_calls_func_once_per_trial(self):
        calls = []
        result = measure_execution_time(5, 0, calls.append, "x")
        assert calls == ["x"] * 5
        assert len(result.durations) == 5
        assert result.min() <= result.median() <= result.max()

    def test_rejects_zero_trials(self):
        with pytest.raises(ValueError):
            measure_execution_time(0, 0, lambda: None)
