import numpy as np
import pytest

from outliers import hampel_outlier_mask, is_outlier

NOISY = np.array([10.0, 10.2, 9.9, 10.1, 10.0, 9.8, 10.1, 14.0])


def test_spike_is_flagged():
    mask = hampel_outlier_mask(NOISY)
    assert mask[7]
    assert not mask[:7].any()


def test_first_two_days_never_flagged():
    values = np.array([0.0, 100.0, 0.0])
    assert not is_outlier(values, 0)
    assert not is_outlier(values, 1)


def test_flat_window_is_never_flagged():
    values = np.array([1.0] * 7 + [5.0])
    assert not hampel_outlier_mask(values).any()


def test_detection_is_causal():
    mask_prefix = hampel_outlier_mask(NOISY[:5])
    spiked = NOISY.copy()
    spiked[6] = 50.0
    mask_full = hampel_outlier_mask(spiked)
    np.testing.assert_array_equal(mask_full[:5], mask_prefix)


def test_larger_threshold_flags_fewer_days():
    assert not hampel_outlier_mask(NOISY, threshold=100.0).any()


def test_channel_is_not_modified():
    values = NOISY.copy()
    hampel_outlier_mask(values)
    np.testing.assert_array_equal(values, NOISY)


def test_non_finite_values_are_rejected():
    with pytest.raises(ValueError):
        hampel_outlier_mask(np.array([1.0, np.nan, 1.0]))


def test_window_includes_current_and_w_previous_days():
    values = np.array([0.0, 1.0, 10.0])
    assert is_outlier(values, 2, window=2)
    assert hampel_outlier_mask(values, window=2)[2]


def test_day_before_window_is_excluded():
    values = np.array([5.0, 1.0, 1.2, 5.0])
    # days 1..3 only: median 1.2, MAD 0.2
    assert is_outlier(values, 3, window=2)
    # widening to day 0 changes the verdict
    assert not is_outlier(values, 3, window=3)
