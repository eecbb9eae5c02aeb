"""Shared fixtures for the trend pipeline tests."""

from datetime import date, timedelta

import pytest

from calendar_grid import RawObservation


def obs(d, weight, fat_percent):
    return RawObservation.from_measurement(d, weight, fat_percent)


@pytest.fixture
def start_day():
    return date(2024, 1, 1)


@pytest.fixture
def smooth_observations(start_day):
    """20 daily measurements at constant weight 100, so fat mass equals fat percent."""
    return [obs(start_day + timedelta(days=i), 100.0, 25.0 - 0.05 * i) for i in range(20)]


@pytest.fixture
def sparse_observations(start_day):
    return [
        obs(start_day + timedelta(days=19), 79.0, 21.0),
        obs(start_day, 80.0, 22.0),
        obs(start_day + timedelta(days=4), 79.8, 21.8),
        obs(start_day + timedelta(days=11), 79.5, 21.4),
    ]
