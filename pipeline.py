#!/usr/bin/env python3

"""
Daily body composition trend pipeline.

Turns an unordered list of sparse RawObservations into one OutputRecord per
calendar day:

    densify -> interpolate -> Hampel mask -> constrained trend filter -> EMA

Fat mass and lean mass run the full chain; total weight and fat percent are
only gap-filled. Everything is computed at full precision and rounded once,
when the records are assembled.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime, time, timezone
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from calendar_grid import RawObservation, densify
from config import TrendConfig
from interpolation import interpolate_channel
from kalman import run_trend_filter
from outliers import hampel_outlier_mask
from smoothing import exponential_moving_average

logger = logging.getLogger(__name__)

# Presentation rounding
FAT_MASS_DECIMALS = 3
MASS_DECIMALS = 2
TREND_DECIMALS = 3
PERCENT_DECIMALS = 1


# ---------------------------
# Data structures
# ---------------------------

@dataclass
class OutputRecord:
    obs_date: date
    timestamp: int  # milliseconds since epoch, UTC midnight
    observed_fat_mass: Optional[float]
    interpolated_fat_mass: float
    observed_weight: Optional[float]
    interpolated_weight: float
    observed_lean_mass: Optional[float]
    interpolated_lean_mass: float
    fat_trend_short: float
    fat_trend_long: float
    lean_trend_short: float
    lean_trend_long: float
    interpolated_fat_percent: float


@dataclass
class ChannelTrends:
    """Intermediate arrays of one mass channel, all aligned to the day grid."""
    dense: np.ndarray
    outliers: np.ndarray
    trend: np.ndarray
    short: np.ndarray
    long: np.ndarray


# ---------------------------
# Stages
# ---------------------------

def compute_channel_trends(dense: np.ndarray, config: TrendConfig) -> ChannelTrends:
    """Hampel -> trend filter -> short/long EMA for one dense channel. No state is shared."""
    mask = hampel_outlier_mask(dense, window=config.hampel_window, threshold=config.hampel_threshold)
    trend = run_trend_filter(
        dense,
        mask,
        sigma_obs=config.sigma_obs,
        sigma_proc=config.sigma_proc,
        max_daily_change=config.max_daily_change,
    )
    short = exponential_moving_average(trend, config.ema_span_short)
    long_ = exponential_moving_average(trend, config.ema_span_long)
    return ChannelTrends(dense=dense, outliers=mask, trend=trend, short=short, long=long_)


def day_timestamp(d: date) -> int:
    return int(datetime.combine(d, time.min, tzinfo=timezone.utc).timestamp() * 1000)


def _rounded(value: float, decimals: int) -> float:
    return round(float(value), decimals)


def _rounded_or_none(value: float, decimals: int) -> Optional[float]:
    if np.isnan(value):
        return None
    return round(float(value), decimals)


def process_observations(observations: Sequence[RawObservation],
                         config: Optional[TrendConfig] = None) -> List[OutputRecord]:
    """
    Run the whole pipeline.

    The caller is expected to have rejected inputs with fewer than 2 records;
    a single record (or all records on one day) still yields one output day.
    """
    config = (config or TrendConfig()).validate()
    channels = densify(observations)

    filled_fat = interpolate_channel(channels.fat_mass)
    filled_lean = interpolate_channel(channels.lean_mass)
    filled_weight = interpolate_channel(channels.weight)
    filled_fat_percent = interpolate_channel(channels.fat_percent)

    fat = compute_channel_trends(filled_fat, config)
    lean = compute_channel_trends(filled_lean, config)

    records: List[OutputRecord] = []
    for i, d in enumerate(channels.grid.dates):
        records.append(OutputRecord(
            obs_date=d,
            timestamp=day_timestamp(d),
            observed_fat_mass=_rounded_or_none(channels.fat_mass[i], FAT_MASS_DECIMALS),
            interpolated_fat_mass=_rounded(filled_fat[i], FAT_MASS_DECIMALS),
            observed_weight=_rounded_or_none(channels.weight[i], MASS_DECIMALS),
            interpolated_weight=_rounded(filled_weight[i], MASS_DECIMALS),
            observed_lean_mass=_rounded_or_none(channels.lean_mass[i], MASS_DECIMALS),
            interpolated_lean_mass=_rounded(filled_lean[i], MASS_DECIMALS),
            fat_trend_short=_rounded(fat.short[i], TREND_DECIMALS),
            fat_trend_long=_rounded(fat.long[i], TREND_DECIMALS),
            lean_trend_short=_rounded(lean.short[i], TREND_DECIMALS),
            lean_trend_long=_rounded(lean.long[i], TREND_DECIMALS),
            interpolated_fat_percent=_rounded(filled_fat_percent[i], PERCENT_DECIMALS),
        ))

    logger.debug("Pipeline produced %d daily records (%d fat / %d lean outlier days)",
                 len(records), int(fat.outliers.sum()), int(lean.outliers.sum()))
    return records


def records_to_dataframe(records: Sequence[OutputRecord]) -> pd.DataFrame:
    columns = list(OutputRecord.__dataclass_fields__.keys())
    if not records:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame([asdict(r) for r in records], columns=columns)
