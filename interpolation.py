#!/usr/bin/env python3

"""
Monotone cubic Hermite (PCHIP-style) gap filling for daily channels.

Knot slopes follow Fritsch-Carlson: zero where the neighbouring secants
disagree in sign, otherwise a weighted harmonic mean of the two secants.
End slopes equal the adjacent secant.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence

import numpy as np


def pchip_slopes(xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
    """
    Compute knot derivatives for a monotone cubic Hermite spline.

    Args:
        xs: Strictly increasing knot positions (at least 2)
        ys: Knot values

    Returns:
        Array of derivatives, one per knot
    """
    n = len(xs)
    h = np.diff(xs).astype(float)
    delta = np.diff(ys).astype(float) / h

    m = np.zeros(n, dtype=float)
    for i in range(1, n - 1):
        if delta[i - 1] * delta[i] > 0:
            w1 = 2.0 * h[i] + h[i - 1]
            w2 = h[i] + 2.0 * h[i - 1]
            m[i] = (w1 + w2) / (w1 / delta[i - 1] + w2 / delta[i])
    m[0] = delta[0]
    m[n - 1] = delta[n - 2]
    return m


def hermite_basis(s: float):
    """Return the cubic Hermite weights (h00, h10, h01, h11) at s in [0, 1]."""
    s2 = s * s
    s3 = s2 * s
    h00 = 2.0 * s3 - 3.0 * s2 + 1.0
    h10 = s3 - 2.0 * s2 + s
    h01 = -2.0 * s3 + 3.0 * s2
    h11 = s3 - s2
    return h00, h10, h01, h11


class MonotoneSpline:
    """Piecewise cubic Hermite interpolant with clamped (flat) extrapolation."""

    def __init__(self, xs: Sequence[float], ys: Sequence[float]):
        self.xs = np.asarray(xs, dtype=float)
        self.ys = np.asarray(ys, dtype=float)
        if len(self.xs) < 2:
            raise ValueError("MonotoneSpline needs at least 2 knots")
        if len(self.xs) != len(self.ys):
            raise ValueError("Knot positions and values differ in length")
        if np.any(np.diff(self.xs) <= 0):
            raise ValueError("Knot positions must be strictly increasing")
        self.slopes = pchip_slopes(self.xs, self.ys)

    def _segment_value(self, k: int, t: float) -> float:
        x0, x1 = self.xs[k], self.xs[k + 1]
        width = x1 - x0
        h00, h10, h01, h11 = hermite_basis((t - x0) / width)
        return (h00 * self.ys[k] + h10 * width * self.slopes[k]
                + h01 * self.ys[k + 1] + h11 * width * self.slopes[k + 1])

    def evaluate_sorted(self, ts: Iterable[float]) -> List[float]:
        """
        Evaluate at non-decreasing query positions.

        The segment cursor only moves forward, so a full pass costs
        O(len(ts) + number of knots).
        """
        xs = self.xs
        last = len(xs) - 1
        out: List[float] = []
        k = 0
        prev_t = -np.inf
        for t in ts:
            if t < prev_t:
                raise ValueError("Query positions must be non-decreasing")
            prev_t = t
            if t <= xs[0]:
                out.append(float(self.ys[0]))
                continue
            if t >= xs[last]:
                out.append(float(self.ys[last]))
                continue
            while xs[k + 1] < t:
                k += 1
            out.append(float(self._segment_value(k, t)))
        return out

    def __call__(self, t: float) -> float:
        return self.evaluate_sorted([t])[0]


def interpolate_channel(values: np.ndarray) -> np.ndarray:
    """
    Fill NaN gaps in a day-indexed channel.

    With fewer than 2 known days the channel is filled flat with the single
    known value (or 0.0 when nothing is known).
    """
    values = np.asarray(values, dtype=float)
    n = len(values)
    known = np.flatnonzero(~np.isnan(values))
    if len(known) < 2:
        fill = float(values[known[0]]) if len(known) == 1 else 0.0
        return np.full(n, fill, dtype=float)

    spline = MonotoneSpline(known.astype(float), values[known])
    return np.asarray(spline.evaluate_sorted(range(n)), dtype=float)
