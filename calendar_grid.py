#!/usr/bin/env python3

"""
Calendar densification: map sparse, irregularly dated body composition
observations onto a gap-free grid of consecutive days.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Sequence

import numpy as np

logger = logging.getLogger(__name__)


# ---------------------------
# Data structures
# ---------------------------

@dataclass
class RawObservation:
    """One normalized measurement as delivered by the parsing layer."""
    obs_date: date
    weight: float  # total mass
    fat_percent: float  # (0, 100]
    fat_mass: float

    @classmethod
    def from_measurement(cls, obs_date: date, weight: float, fat_percent: float) -> "RawObservation":
        return cls(obs_date, float(weight), float(fat_percent), float(weight) * float(fat_percent) / 100.0)

    @property
    def lean_mass(self) -> float:
        return self.weight - self.fat_mass


@dataclass
class DayGrid:
    """Contiguous day index 0..N-1 over [first, last]."""
    first: date
    last: date

    def __len__(self) -> int:
        return (self.last - self.first).days + 1

    @property
    def dates(self) -> List[date]:
        return [self.first + timedelta(days=i) for i in range(len(self))]

    def index_of(self, d: date) -> int:
        idx = (d - self.first).days
        if idx < 0 or idx >= len(self):
            raise IndexError(f"{d} is outside the grid {self.first}..{self.last}")
        return idx


@dataclass
class SparseChannels:
    """Per-day channels aligned to a DayGrid; NaN marks a day without an observation."""
    grid: DayGrid
    fat_mass: np.ndarray
    weight: np.ndarray
    fat_percent: np.ndarray
    lean_mass: np.ndarray

    def observed_mask(self) -> np.ndarray:
        return ~np.isnan(self.fat_mass)


# ---------------------------
# Densification
# ---------------------------

def build_day_lookup(observations: Sequence[RawObservation]) -> Dict[date, RawObservation]:
    """Stable sort by date, then key by day; a later entry for a tied date wins."""
    ordered = sorted(observations, key=lambda o: o.obs_date)
    lookup: Dict[date, RawObservation] = {}
    for obs in ordered:
        lookup[obs.obs_date] = obs
    return lookup


def densify(observations: Sequence[RawObservation]) -> SparseChannels:
    if not observations:
        raise ValueError("Cannot densify an empty observation set")

    lookup = build_day_lookup(observations)
    days = sorted(lookup)
    grid = DayGrid(days[0], days[-1])
    n = len(grid)

    fat_mass = np.full(n, np.nan, dtype=float)
    weight = np.full(n, np.nan, dtype=float)
    fat_percent = np.full(n, np.nan, dtype=float)
    lean_mass = np.full(n, np.nan, dtype=float)

    for d, obs in lookup.items():
        i = grid.index_of(d)
        fat_mass[i] = obs.fat_mass
        weight[i] = obs.weight
        fat_percent[i] = obs.fat_percent
        # lean mass is derived per observed day, before interpolation
        lean_mass[i] = obs.lean_mass

    logger.debug("Densified %d observations onto %d days (%s..%s)",
                 len(observations), n, grid.first, grid.last)
    return SparseChannels(grid, fat_mass, weight, fat_percent, lean_mass)
