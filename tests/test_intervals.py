from datetime import date, timedelta

import pytest

from jira_metrics.analytics.metrics.intervals import DateInterval, segment_days

START = date(2022, 1, 1)
END = date(2022, 1, 10)


def test_single_run():
    intervals = segment_days(START, END, lambda d: 3 <= d.day <= 6)
    assert intervals == [DateInterval(date(2022, 1, 3), date(2022, 1, 6))]
    assert intervals[0].days == 4


def test_two_runs_in_order():
    intervals = segment_days(START, END, lambda d: d.day in (3, 4, 6))
    assert [i.days for i in intervals] == [2, 1]
    assert intervals[0].start < intervals[1].start


def test_always_false_is_empty():
    assert segment_days(START, END, lambda d: False) == []


def test_always_true_spans_whole_range():
    assert segment_days(START, END, lambda d: True) == [DateInterval(START, END)]
    assert segment_days(START, END, lambda d: True)[0].days == 10


def test_run_touching_the_end_is_closed():
    assert segment_days(START, END, lambda d: d.day >= 9) == [DateInterval(date(2022, 1, 9), END)]


def test_empty_range():
    assert segment_days(END, START, lambda d: True) == []


@pytest.mark.parametrize("pattern", [0b1011001110, 0b0000000001, 0b1000000000, 0b0101010101, 0b1111100000])
def test_runs_cover_exactly_the_matching_days(pattern):
    def predicate(day):
        return bool(pattern >> (day - START).days & 1)

    intervals = segment_days(START, END, predicate)
    covered = set()
    for previous, current in zip(intervals, intervals[1:]):
        # disjoint, sorted and maximal
        assert previous.end + timedelta(days=1) < current.start
    for interval in intervals:
        day = interval.start
        while day <= interval.end:
            covered.add(day)
            day += timedelta(days=1)
    expected = {START + timedelta(days=n) for n in range(10) if predicate(START + timedelta(days=n))}
    assert covered == expected
