#!/usr/bin/env python3

"""
Views over the pipeline output used by the CLI and the charts: date range
selection, day-over-day trend change, and observed-minus-trend residuals.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Sequence, Tuple

from pipeline import OutputRecord, TREND_DECIMALS


@dataclass
class DailyChange:
    obs_date: date
    timestamp: int
    fat_change: float
    lean_change: float


@dataclass
class TrendResidual:
    obs_date: date
    timestamp: int
    fat_difference: Optional[float]
    lean_difference: Optional[float]


@dataclass
class TrendSummary:
    first_date: date
    last_date: date
    days: int
    observed_days: int
    fat_trend_short: float
    fat_trend_long: float
    lean_trend_short: float
    lean_trend_long: float
    fat_trend_change: float
    lean_trend_change: float


# ---------------------------
# Range selection
# ---------------------------

def select_date_range(records: Sequence[OutputRecord],
                      start: Optional[date] = None,
                      end: Optional[date] = None) -> List[OutputRecord]:
    """Inclusive [start, end] filter; open ends keep everything on that side."""
    if start and end and start > end:
        raise ValueError(f"Start date {start} is after end date {end}")
    out = []
    for r in records:
        if start and r.obs_date < start:
            continue
        if end and r.obs_date > end:
            continue
        out.append(r)
    return out


def quick_range(records: Sequence[OutputRecord], days: int) -> Tuple[date, date]:
    """The last `days` days of the full range, never starting before the first record."""
    if days < 1:
        raise ValueError(f"days must be >= 1, got {days}")
    if not records:
        raise ValueError("No records to select from")
    first, last = records[0].obs_date, records[-1].obs_date
    start = last - timedelta(days=days - 1)
    if start < first:
        start = first
    return start, last


# ---------------------------
# Derived series
# ---------------------------

def daily_changes(records: Sequence[OutputRecord]) -> List[DailyChange]:
    if len(records) < 2:
        return []
    out: List[DailyChange] = []
    for previous, current in zip(records[:-1], records[1:]):
        out.append(DailyChange(
            obs_date=current.obs_date,
            timestamp=current.timestamp,
            fat_change=round(current.fat_trend_short - previous.fat_trend_short, TREND_DECIMALS),
            lean_change=round(current.lean_trend_short - previous.lean_trend_short, TREND_DECIMALS),
        ))
    return out


def trend_residuals(records: Sequence[OutputRecord]) -> List[TrendResidual]:
    out: List[TrendResidual] = []
    for r in records:
        fat_diff = None if r.observed_fat_mass is None else r.observed_fat_mass - r.fat_trend_short
        lean_diff = None if r.observed_lean_mass is None else r.observed_lean_mass - r.lean_trend_short
        out.append(TrendResidual(r.obs_date, r.timestamp, fat_diff, lean_diff))
    return out


def summarize(records: Sequence[OutputRecord]) -> TrendSummary:
    if not records:
        raise ValueError("No records to summarize")
    first, last = records[0], records[-1]
    return TrendSummary(
        first_date=first.obs_date,
        last_date=last.obs_date,
        days=len(records),
        observed_days=sum(1 for r in records if r.observed_fat_mass is not None),
        fat_trend_short=last.fat_trend_short,
        fat_trend_long=last.fat_trend_long,
        lean_trend_short=last.lean_trend_short,
        lean_trend_long=last.lean_trend_long,
        fat_trend_change=round(last.fat_trend_short - first.fat_trend_short, TREND_DECIMALS),
        lean_trend_change=round(last.lean_trend_short - first.lean_trend_short, TREND_DECIMALS),
    )
