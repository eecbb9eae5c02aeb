import numpy as np
import pytest

from smoothing import exponential_moving_average


def test_constant_series_is_unchanged():
    for span in (5, 28):
        np.testing.assert_allclose(exponential_moving_average(np.full(50, 3.25), span), 3.25)


def test_recursion():
    ema = exponential_moving_average([0.0, 6.0, 6.0], 5)
    alpha = 2.0 / 6.0
    assert ema[0] == 0.0
    assert ema[1] == pytest.approx(alpha * 6.0)
    assert ema[2] == pytest.approx(alpha * 6.0 + (1 - alpha) * alpha * 6.0)


def test_longer_span_lags_more():
    series = np.concatenate([np.zeros(5), np.ones(20)])
    short = exponential_moving_average(series, 5)
    long_ = exponential_moving_average(series, 28)
    assert np.all(long_[5:] < short[5:])


def test_span_one_copies_input():
    series = [1.0, 4.0, 2.0]
    np.testing.assert_allclose(exponential_moving_average(series, 1), series)


def test_invalid_span():
    with pytest.raises(ValueError):
        exponential_moving_average([1.0], 0)


def test_empty_series():
    assert len(exponential_moving_average([], 5)) == 0
