#!/usr/bin/env python3

from typing import Sequence

import numpy as np


def exponential_moving_average(series: Sequence[float], span: float) -> np.ndarray:
    """
    Standard EMA over a daily series.

    alpha = 2/(span+1)
    ema[0] = series[0]; ema[i] = alpha*series[i] + (1-alpha)*ema[i-1]
    """
    if span < 1:
        raise ValueError(f"EMA span must be >= 1, got {span}")
    values = np.asarray(series, dtype=float)
    ema = np.empty(len(values), dtype=float)
    if len(values) == 0:
        return ema
    alpha = 2.0 / (float(span) + 1.0)
    ema[0] = values[0]
    for i in range(1, len(values)):
        ema[i] = alpha * values[i] + (1.0 - alpha) * ema[i - 1]
    return ema
