#!/usr/bin/env python3

"""Causal Hampel filter over a dense daily channel."""

from __future__ import annotations

import logging

import numpy as np
from scipy.stats import median_abs_deviation

from config import DEFAULT_HAMPEL_THRESHOLD, DEFAULT_HAMPEL_WINDOW

logger = logging.getLogger(__name__)

# Windows shorter than this are never judged
MIN_WINDOW_POINTS = 3


def is_outlier(values: np.ndarray, index: int,
               window: int = DEFAULT_HAMPEL_WINDOW,
               threshold: float = DEFAULT_HAMPEL_THRESHOLD) -> bool:
    """
    Judge values[index] against the trailing window values[index-window .. index].

    Only past and current values are used. A flat window (MAD of zero) never
    flags anything.
    """
    segment = values[max(0, index - window): index + 1]
    if len(segment) < MIN_WINDOW_POINTS:
        return False
    med = float(np.median(segment))
    mad = float(median_abs_deviation(segment, scale=1.0))
    if mad == 0:
        return False
    return abs(float(values[index]) - med) > threshold * mad


def hampel_outlier_mask(values: np.ndarray,
                        window: int = DEFAULT_HAMPEL_WINDOW,
                        threshold: float = DEFAULT_HAMPEL_THRESHOLD) -> np.ndarray:
    """Boolean mask, True where the day is an outlier. The channel is not modified."""
    values = np.asarray(values, dtype=float)
    if not np.all(np.isfinite(values)):
        raise ValueError("Outlier detection requires a dense, finite channel")
    mask = np.array([is_outlier(values, i, window, threshold) for i in range(len(values))], dtype=bool)
    logger.debug("Hampel filter flagged %d of %d days", int(mask.sum()), len(values))
    return mask
