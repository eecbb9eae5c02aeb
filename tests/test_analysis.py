from datetime import timedelta

import pytest

from analysis import daily_changes, quick_range, select_date_range, summarize, trend_residuals
from pipeline import process_observations


@pytest.fixture
def records(sparse_observations):
    return process_observations(sparse_observations)


def test_select_date_range_inclusive(records, start_day):
    visible = select_date_range(records, start_day + timedelta(days=3), start_day + timedelta(days=5))
    assert [r.obs_date for r in visible] == [start_day + timedelta(days=d) for d in (3, 4, 5)]


def test_select_date_range_open_ended(records, start_day):
    assert len(select_date_range(records)) == 20
    assert len(select_date_range(records, start=start_day + timedelta(days=15))) == 5
    assert len(select_date_range(records, end=start_day + timedelta(days=1))) == 2


def test_select_date_range_reversed(records, start_day):
    with pytest.raises(ValueError):
        select_date_range(records, start_day + timedelta(days=5), start_day)


def test_quick_range(records, start_day):
    assert quick_range(records, 7) == (start_day + timedelta(days=13), start_day + timedelta(days=19))
    assert quick_range(records, 365) == (start_day, start_day + timedelta(days=19))
    with pytest.raises(ValueError):
        quick_range(records, 0)


def test_daily_changes(records):
    changes = daily_changes(records)
    assert len(changes) == 19
    assert changes[0].obs_date == records[1].obs_date
    assert changes[0].fat_change == round(records[1].fat_trend_short - records[0].fat_trend_short, 3)
    assert all(abs(c.fat_change) <= 0.191 for c in changes)
    assert daily_changes(records[:1]) == []


def test_trend_residuals(records):
    residuals = trend_residuals(records)
    assert residuals[0].fat_difference == pytest.approx(records[0].observed_fat_mass - records[0].fat_trend_short)
    assert residuals[1].fat_difference is None
    assert residuals[1].lean_difference is None
    assert residuals[4].lean_difference is not None


def test_summarize(records):
    summary = summarize(records)
    assert summary.days == 20
    assert summary.observed_days == 4
    assert summary.fat_trend_short == records[-1].fat_trend_short
    with pytest.raises(ValueError):
        summarize([])
