import numpy as np
import pytest

from kalman import ScalarTrendFilter, StepKind, run_trend_filter


def test_step_kind_for_day():
    assert StepKind.for_day(True) is StepKind.PREDICT_ONLY
    assert StepKind.for_day(False) is StepKind.MEASUREMENT_UPDATE


def test_initial_state():
    tf = ScalarTrendFilter(20.0, sigma_obs=0.3, sigma_proc=0.25)
    assert tf.state.estimate == 20.0
    assert tf.state.variance == pytest.approx(0.09)


def test_measurement_update_step():
    tf = ScalarTrendFilter(10.0, sigma_obs=0.3, sigma_proc=0.25, max_daily_change=0.19)
    value = tf.step(10.1, StepKind.MEASUREMENT_UPDATE)
    Pp = 0.09 + 0.0625
    K = Pp / (Pp + 0.09)
    assert value == pytest.approx(10.0 + K * 0.1)
    assert tf.state.variance == pytest.approx((1 - K) * Pp)


def test_predict_only_step_ignores_measurement():
    tf = ScalarTrendFilter(10.0, sigma_obs=0.3, sigma_proc=0.25)
    value = tf.step(50.0, StepKind.PREDICT_ONLY)
    assert value == 10.0
    assert tf.state.variance == pytest.approx(0.09 + 0.0625)


def test_clamp_limits_daily_movement():
    values = np.array([20.0] * 5 + [25.0] * 20)
    trend = run_trend_filter(values, max_daily_change=0.19)
    assert np.all(np.abs(np.diff(trend)) <= 0.19 + 1e-9)
    assert trend[5] == pytest.approx(20.19)


def test_clamp_law_with_loose_noise_settings():
    rng = np.random.default_rng(7)
    values = 20.0 + np.cumsum(rng.normal(0, 1.0, 200))
    trend = run_trend_filter(values, sigma_obs=0.01, sigma_proc=5.0, max_daily_change=0.05)
    assert np.all(np.abs(np.diff(trend)) <= 0.05 + 1e-9)


def test_constant_input_gives_constant_trend():
    trend = run_trend_filter(np.full(30, 18.5))
    np.testing.assert_allclose(trend, 18.5)


def test_outlier_days_use_prediction_only():
    values = np.array([10.0, 10.0, 30.0, 10.0])
    trend = run_trend_filter(values, np.array([False, False, True, False]))
    np.testing.assert_allclose(trend, 10.0)


def test_single_day_and_empty():
    np.testing.assert_array_equal(run_trend_filter([5.0]), [5.0])
    assert len(run_trend_filter([])) == 0


def test_mask_length_mismatch():
    with pytest.raises(ValueError):
        run_trend_filter([1.0, 2.0], [False])


def test_non_finite_values_are_rejected():
    with pytest.raises(ValueError):
        run_trend_filter([1.0, np.nan, 2.0])
