import math

import pytest

from philosophers.stats import CaseResult, Stats, combine_repeats, finite_mean, summarize


def test_average_wait_in_milliseconds():
    stats = Stats(2)
    stats.record(0, 0.010)
    stats.record(0, 0.030)
    assert stats.meals == [2, 0]
    assert stats.average_wait_ms(0) == pytest.approx(20.0)


def test_starved_worker_reports_infinity():
    stats = Stats(3)
    stats.record(1, 0.002)
    averages = summarize(stats)
    assert math.isinf(averages[0])
    assert averages[1] == pytest.approx(2.0)
    assert math.isinf(averages[2])


def test_combine_repeats_averages_per_worker():
    combined = combine_repeats([[1.0, 4.0], [3.0, 8.0]])
    assert combined == [2.0, 6.0]


def test_combine_repeats_keeps_starved_repeat_infinite():
    combined = combine_repeats([[1.0, math.inf], [3.0, 2.0]])
    assert combined[0] == 2.0
    assert math.isinf(combined[1])


def test_combine_repeats_needs_input():
    with pytest.raises(ValueError):
        combine_repeats([])


def test_finite_mean_skips_infinite_values():
    assert finite_mean([1.0, math.inf, 3.0]) == 2.0
    assert math.isinf(finite_mean([math.inf, math.inf]))


def test_case_result_lists_starved_workers():
    case = CaseResult(strategy="AtomicBoth", n=3, averages=[1.0, math.inf, 2.0], overall=1.5)
    assert case.starved == [1]


def test_longest_wait_per_worker():
    stats = Stats(2)
    stats.record(1, 0.004)
    stats.record(1, 0.009)
    stats.record(1, 0.002)
    assert stats.longest_wait == [0.0, 0.009]
