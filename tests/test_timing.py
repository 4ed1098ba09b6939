from __future__ import annotations

import time

import pytest

from pySPONGEbench.timing import Timing, format_timing, time_call


def test_time_call_returns_result_and_non_negative_timing():
    result, timing = time_call(sum, [1, 2, 3])
    assert result == 6
    assert timing.cpu_time >= 0
    assert timing.elapsed_time >= 0


def test_time_call_measures_wall_clock():
    _, timing = time_call(time.sleep, 0.05)
    assert timing.elapsed_time >= 0.04


def test_time_call_passes_kwargs():
    result, _ = time_call(sorted, [3, 1, 2], reverse=True)
    assert result == [3, 2, 1]


def test_time_call_propagates_errors():
    def _boom():
        raise KeyError("missing")

    with pytest.raises(KeyError, match="missing"):
        time_call(_boom)


def test_timing_addition_is_componentwise():
    total = Timing(1.5, 2.0) + Timing(0.25, 0.5)
    assert total == Timing(cpu_time=1.75, elapsed_time=2.5)


def test_timing_rejects_negative_values():
    with pytest.raises(ValueError, match="non-negative"):
        Timing(cpu_time=-1.0, elapsed_time=0.0)


def test_timing_dict_uses_r_attribute_names():
    timing = Timing(0.3, 0.7)
    assert timing.to_dict() == {'cputime': 0.3, 'elapsedtime': 0.7}
    assert Timing.from_dict(timing.to_dict()) == timing


def test_format_timing():
    assert format_timing(Timing(1.0, 2.5)) == "2.50s elapsed, 1.00s cpu"
