import math

import pytest

from control.pid import (
    ControllerNotInitializedError,
    DegenerateTimestepError,
    PIDController,
    PIDParameters,
)


def _ctrl(kp=1.0, ki=1.0, kd=1.0):
    return PIDController(PIDParameters(k_p=kp, k_i=ki, k_d=kd))


def test_initialize_sets_baseline():
    c = _ctrl()
    assert not c.initialized
    c.initialize(2.0, 0.5, 3.0)
    assert c.initialized
    assert c.last_error == 1.5
    assert c.last_timestamp == 3.0
    assert c.error_integral == 0.0
    assert c.target == 2.0


def test_reinitialize_zeroes_integral():
    c = _ctrl()
    c.initialize(1.0, 0.0, 0.0)
    c.calculate_output(0.0, 1.0)
    assert c.error_integral != 0.0
    c.initialize(0.0, 0.0, 5.0)
    assert c.error_integral == 0.0 and c.last_error == 0.0


def test_evaluate_before_initialize_raises():
    c = _ctrl()
    with pytest.raises(ControllerNotInitializedError):
        c.calculate_output(0.0, 1.0)


def test_zero_error_zero_output():
    c = _ctrl(3.0, 2.0, 1.0)
    c.initialize(1.0, 1.0, 0.0)
    for i in range(1, 50):
        assert c.calculate_output(1.0, i * 0.1) == 0.0
    assert c.error_integral == 0.0


def test_single_step_matches_formula():
    c = _ctrl(2.0, 3.0, 0.5)
    c.initialize(1.0, 0.0, 0.0)  # last_error = 1
    u = c.calculate_output(0.5, 0.5)  # error = 0.5, dt = 0.5
    deriv = (0.5 - 1.0) / 0.5
    integral = ((0.5 + 1.0) / 2) * 0.5
    assert u == pytest.approx(2.0 * 0.5 + 0.5 * deriv + 3.0 * integral)
    assert c.last_error == 0.5
    assert c.last_timestamp == 0.5
    assert c.error_integral == pytest.approx(integral)


def test_integral_is_trapezoidal_not_euler():
    c = _ctrl(0.0, 1.0, 0.0)
    c.initialize(0.0, 0.0, 0.0)
    # error ramps 0 -> -1 -> -2 with target 0
    c.calculate_output(1.0, 1.0)
    c.calculate_output(2.0, 2.0)
    # trapezoid: (0 + -1)/2 + (-1 + -2)/2 = -2.0 ; Euler with current error would be -3.0
    assert c.error_integral == pytest.approx(-2.0)


def test_integral_grows_linearly_under_constant_error():
    c = _ctrl(0.0, 1.0, 0.0)
    c.initialize(1.0, 0.25, 0.0)  # constant error 0.75
    dt = 0.02
    n = 200
    for i in range(1, n + 1):
        c.calculate_output(0.25, i * dt)
    assert c.error_integral == pytest.approx(0.75 * n * dt)


def test_update_target_leaves_integral_and_last_error():
    c = _ctrl()
    c.initialize(1.0, 0.0, 0.0)
    c.calculate_output(0.2, 0.1)
    integral, last_err, last_t = c.error_integral, c.last_error, c.last_timestamp
    c.update_target(5.0)
    assert c.target == 5.0
    assert (c.error_integral, c.last_error, c.last_timestamp) == (integral, last_err, last_t)


def test_target_step_produces_derivative_kick():
    c = _ctrl(0.0, 0.0, 1.0)
    c.initialize(0.0, 0.0, 0.0)
    assert c.calculate_output(0.0, 0.01) == 0.0
    c.update_target(1.0)
    assert c.calculate_output(0.0, 0.02) == pytest.approx(1.0 / 0.01)


def test_params_swap_applies_on_next_evaluation():
    c = _ctrl(1.0, 0.0, 0.0)
    c.initialize(1.0, 0.0, 0.0)
    assert c.calculate_output(0.0, 1.0) == pytest.approx(1.0)
    c.params = PIDParameters(k_p=4.0)
    assert c.params == PIDParameters(4.0, 0.0, 0.0)
    assert c.calculate_output(0.0, 2.0) == pytest.approx(4.0)
    c.params = PIDParameters(k_p=0.0, k_i=1.0)
    # integral from the two previous intervals is kept: 1 + 1 + 1
    assert c.calculate_output(0.0, 3.0) == pytest.approx(3.0)


def test_parameters_are_immutable():
    p = PIDParameters(1.0, 2.0, 3.0)
    with pytest.raises(AttributeError):
        p.k_p = 5.0  # type: ignore[misc]


@pytest.mark.parametrize("t", [0.0, -0.5])
def test_non_increasing_timestamp_rejected_without_side_effects(t):
    c = _ctrl()
    c.initialize(1.0, 0.0, 0.0)
    before = (c.error_integral, c.last_error, c.last_timestamp)
    with pytest.raises(DegenerateTimestepError):
        c.calculate_output(0.3, t)
    assert (c.error_integral, c.last_error, c.last_timestamp) == before
    # controller still usable afterwards
    assert math.isfinite(c.calculate_output(0.3, 0.1))


def test_duplicate_timestamp_rejected_consistently():
    c = _ctrl()
    c.initialize(1.0, 0.0, 0.0)
    c.calculate_output(0.1, 0.5)
    for _ in range(3):
        with pytest.raises(DegenerateTimestepError):
            c.calculate_output(0.1, 0.5)


def test_degenerate_timestep_is_a_value_error():
    assert issubclass(DegenerateTimestepError, ValueError)
    assert issubclass(ControllerNotInitializedError, RuntimeError)


def test_deterministic_responses():
    seq = [(0.1 * i, 0.01 * i * i) for i in range(1, 100)]

    def run():
        c = _ctrl(1.3, 0.7, 0.2)
        c.initialize(1.0, 0.0, 0.0)
        return [c.calculate_output(s, t) for t, s in seq]

    assert run() == run()


def test_nan_state_propagates():
    c = _ctrl()
    c.initialize(1.0, 0.0, 0.0)
    assert math.isnan(c.calculate_output(float("nan"), 1.0))
