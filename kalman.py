#!/usr/bin/env python3

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

import numpy as np

from config import DEFAULT_MAX_DAILY_CHANGE, DEFAULT_SIGMA_OBS, DEFAULT_SIGMA_PROC

logger = logging.getLogger(__name__)


@dataclass
class TrendState:
    """Scalar Kalman filter state for one mass channel"""
    estimate: float  # Current trend estimate
    variance: float  # Variance of the estimate


class StepKind(Enum):
    """How a single day is folded into the filter"""
    MEASUREMENT_UPDATE = "update"
    PREDICT_ONLY = "predict"

    @classmethod
    def for_day(cls, is_outlier: bool) -> "StepKind":
        return cls.PREDICT_ONLY if is_outlier else cls.MEASUREMENT_UPDATE


class ScalarTrendFilter:
    """
    Random-walk Kalman filter with a hard limit on daily trend movement.

    State: trend value only (no velocity term)
    Measurement: daily channel value
    """

    def __init__(self,
                 initial_value: float,
                 sigma_obs: float = DEFAULT_SIGMA_OBS,
                 sigma_proc: float = DEFAULT_SIGMA_PROC,
                 max_daily_change: float = DEFAULT_MAX_DAILY_CHANGE):
        """
        Initialize filter

        Args:
            initial_value: Starting trend estimate (first day's value)
            sigma_obs: Observation noise standard deviation
            sigma_proc: Process noise standard deviation per day
            max_daily_change: Largest allowed change of the trend between days
        """
        self.R = float(sigma_obs) ** 2
        self.Q = float(sigma_proc) ** 2
        self.max_daily_change = float(max_daily_change)
        self.state = TrendState(estimate=float(initial_value), variance=self.R)
        self.clamped_steps = 0

    def predict(self) -> None:
        """Advance one day; the estimate carries over and uncertainty grows."""
        self.state.variance = self.state.variance + self.Q

    def update(self, measurement: float) -> None:
        """Fold in one measurement after predict()."""
        P = self.state.variance
        K = P / (P + self.R)
        self.state.estimate = self.state.estimate + K * (float(measurement) - self.state.estimate)
        self.state.variance = (1.0 - K) * P

    def clamp(self, previous_trend: float) -> None:
        change = self.state.estimate - previous_trend
        if abs(change) > self.max_daily_change:
            self.state.estimate = previous_trend + float(np.sign(change)) * self.max_daily_change
            self.clamped_steps += 1

    def step(self, measurement: float, kind: StepKind) -> float:
        """
        Run one full day: predict, optionally update, then rate-limit.

        Args:
            measurement: The day's channel value
            kind: MEASUREMENT_UPDATE or PREDICT_ONLY (outlier days)

        Returns:
            The trend value for the day
        """
        previous_trend = self.state.estimate
        self.predict()
        if kind is StepKind.MEASUREMENT_UPDATE:
            self.update(measurement)
        self.clamp(previous_trend)
        return self.state.estimate


def run_trend_filter(values: Sequence[float],
                     outlier_mask: Optional[Sequence[bool]] = None,
                     sigma_obs: float = DEFAULT_SIGMA_OBS,
                     sigma_proc: float = DEFAULT_SIGMA_PROC,
                     max_daily_change: float = DEFAULT_MAX_DAILY_CHANGE) -> np.ndarray:
    """
    Run the constrained trend filter over a dense daily channel

    Args:
        values: Interpolated daily values
        outlier_mask: True on days whose measurement should be skipped
        sigma_obs: Observation noise standard deviation
        sigma_proc: Process noise standard deviation per day
        max_daily_change: Largest allowed daily trend movement

    Returns:
        Trend array with one value per day
    """
    values = np.asarray(values, dtype=float)
    if len(values) == 0:
        return np.array([], dtype=float)
    if not np.all(np.isfinite(values)):
        raise ValueError("Trend filter requires a dense, finite channel")
    if outlier_mask is None:
        outlier_mask = np.zeros(len(values), dtype=bool)
    if len(outlier_mask) != len(values):
        raise ValueError(f"Outlier mask length {len(outlier_mask)} does not match channel length {len(values)}")

    tf = ScalarTrendFilter(values[0], sigma_obs=sigma_obs, sigma_proc=sigma_proc,
                           max_daily_change=max_daily_change)
    trend = np.empty(len(values), dtype=float)
    trend[0] = tf.state.estimate
    for i in range(1, len(values)):
        trend[i] = tf.step(values[i], StepKind.for_day(bool(outlier_mask[i])))

    logger.debug("Trend filter: %d days, %d clamped steps", len(values), tf.clamped_steps)
    return trend
