"""
Tests for the two-link dynamics, the RK4 integrator and the swing simulator.
"""

import numpy as np
import pytest

from swing_config import SwingConfig, SwingParams, SwingParamBounds
from swing_model import (
    CONTACT_GROUND, CONTACT_HIT, SwingSimulator, apply_joint_limits, check_contact,
    compute_accelerations, head_position, head_velocity, integrate_reference, rk4_step,
    simulate,
)

# A clamped club angle is stored as theta1 -/+ limit, so theta2 - theta1
# recovers the limit only up to round-off at the angle magnitudes (|theta| < 4*pi).
WRIST_TOL = 4 * np.spacing(4 * np.pi)



def _sample_params(n, seed=11):
    rng = np.random.default_rng(seed)
    bounds = SwingParamBounds()
    return [bounds.params_from_array([rng.uniform(lo, hi) for lo, hi in bounds.get_bounds_list()])
            for _ in range(n)]


class TestDynamics:
    """Test compute_accelerations."""

    def test_hanging_rest_is_equilibrium(self, config):
        alpha1, alpha2 = compute_accelerations(np.zeros(4), 0.0, 0.0, config)
        assert alpha1 == pytest.approx(0.0)
        assert alpha2 == pytest.approx(0.0)

    def test_gravity_pulls_raised_arm_down(self, config):
        alpha1, _ = compute_accelerations(np.array([0.5, 0.0, 0.5, 0.0]), 0.0, 0.0, config)
        assert alpha1 < 0

    def test_shoulder_torque_accelerates_arm(self, config):
        state = config.initial_state()
        free, _ = compute_accelerations(state, 0.0, 0.0, config)
        driven, _ = compute_accelerations(state, 70.0, 0.0, config)
        assert driven > free

    def test_singular_matrix_returns_zero(self):
        config = SwingConfig(singular_tolerance=1e3)
        assert compute_accelerations(np.array([0.3, 1.0, 0.1, 2.0]), 50.0, 20.0, config) == (0.0, 0.0)

    def test_near_singular_configuration(self):
        # Negligible arm mass with aligned links drives det toward zero
        config = SwingConfig(m_arm=1e-12)
        state = np.array([0.4, 0.0, 0.4, 0.0])
        assert compute_accelerations(state, 10.0, 5.0, config) == (0.0, 0.0)


class TestIntegrator:
    """Test the fixed-step RK4 integrator."""

    def test_matches_adaptive_reference(self, config):
        state0 = config.initial_state()
        n_steps = 200
        state = state0.copy()
        for _ in range(n_steps):
            state = rk4_step(state, 70.0, 20.0, config)
        reference = integrate_reference(state0, 70.0, 20.0, n_steps * config.dt, config)
        np.testing.assert_allclose(state, reference, atol=1e-6)

    def test_step_does_not_mutate_input(self, config):
        state = config.initial_state()
        before = state.copy()
        rk4_step(state, 70.0, 20.0, config)
        assert np.array_equal(state, before)

    def test_zero_acceleration_fallback_moves_linearly(self):
        config = SwingConfig(singular_tolerance=1e3)
        state = np.array([0.0, 2.0, 0.0, -1.0])
        new = rk4_step(state, 0.0, 0.0, config)
        np.testing.assert_allclose(new, [2.0 * config.dt, 2.0, -1.0 * config.dt, -1.0])


class TestJointLimits:
    """Test apply_joint_limits."""

    def test_within_limits_unchanged(self, config):
        state = np.array([0.2, 1.0, 0.0, 3.0])
        assert np.array_equal(apply_joint_limits(state, config), state)

    def test_release_limit(self, config):
        th1, om1, th2, om2 = apply_joint_limits(np.array([0.0, 1.0, 1.0, 5.0]), config)
        assert th2 - th1 == pytest.approx(config.max_wrist_release)
        assert om2 == 1.0

    def test_lag_limit(self, config):
        th1, om1, th2, om2 = apply_joint_limits(np.array([0.0, 1.0, -2.0, -5.0]), config)
        assert th2 - th1 == pytest.approx(-config.max_wrist_lag)
        assert om2 == 1.0

    def test_shoulder_limit_is_inelastic(self, config):
        th1, om1, th2, om2 = apply_joint_limits(np.array([7.0, 3.0, 7.0, 3.0]), config)
        assert th1 == config.max_shoulder_angle
        assert om1 == 0.0
        assert th2 - th1 <= config.max_wrist_release + WRIST_TOL
        assert om2 == 0.0

    def test_negative_shoulder_limit(self, config):
        th1, om1, _, _ = apply_joint_limits(np.array([-7.0, -3.0, -7.0, -3.0]), config)
        assert th1 == -config.max_shoulder_angle
        assert om1 == 0.0


class TestKinematics:
    def test_hanging_head_on_floor(self, config):
        head = head_position(np.zeros(4), config)
        np.testing.assert_allclose(head, [0.0, config.floor_y()])

    def test_velocity_matches_finite_difference(self, config):
        state = np.array([-0.4, 8.0, -0.9, 20.0])
        h = 1e-7
        moved = state + h * np.array([state[1], 0.0, state[3], 0.0])
        numeric = (head_position(moved, config) - head_position(state, config)) / h
        np.testing.assert_allclose(head_velocity(state, config), numeric, rtol=1e-4)


class TestContact:
    """Test ground/ball classification, including the tolerance band."""

    def test_clean_hit(self, config):
        ball = np.array(config.ball_position())
        assert check_contact(ball, np.array([30.0, 0.0]), config) == CONTACT_HIT

    def test_steep_descent_is_ground_strike(self, config):
        ball = np.array(config.ball_position())
        assert check_contact(ball, np.array([10.0, 20.0]), config) == CONTACT_GROUND

    def test_steep_ascent_is_a_hit(self, config):
        # y points down: an upward blow has negative vy
        ball = np.array(config.ball_position())
        assert check_contact(ball, np.array([10.0, -20.0]), config) == CONTACT_HIT

    def test_ground_checked_before_ball(self, config):
        below_ball = np.array([config.ball_x_offset,
                               config.floor_y() + 2 * config.ground_tolerance])
        assert check_contact(below_ball, np.array([30.0, 0.0]), config) == CONTACT_GROUND

    def test_inside_tolerance_band_near_ball_hits(self, config):
        head = np.array([config.ball_x_offset, config.floor_y() + 0.5 * config.ground_tolerance])
        assert check_contact(head, np.array([30.0, 0.0]), config) == CONTACT_HIT

    def test_grazing_tolerance_band_away_from_ball(self, config):
        head = np.array([-0.5, config.floor_y() + 0.5 * config.ground_tolerance])
        assert check_contact(head, np.array([30.0, 0.0]), config) is None

    def test_far_from_ball(self, config):
        assert check_contact(np.array([1.0, 0.5]), np.array([30.0, 0.0]), config) is None


class TestSwingSimulator:
    """Test SwingSimulator.simulate."""

    def test_deterministic(self, simulator):
        params = SwingParams()
        first = simulator.simulate(params)
        second = simulator.simulate(params)
        assert np.array_equal(first.history, second.history)
        assert first.max_speed == second.max_speed
        assert first.impact_speed == second.impact_speed
        assert first.ball_distance == second.ball_distance
        assert np.array_equal(first.ball_trajectory, second.ball_trajectory)

    def test_module_function_matches_class(self, default_result):
        result = simulate(SwingParams())
        assert np.array_equal(result.history, default_result.history)

    def test_history_bounded(self, simulator, config, default_result, weak_result,
                             early_cast_result):
        results = [default_result, weak_result, early_cast_result]
        results += [simulator.simulate(p) for p in _sample_params(4)]
        for result in results:
            assert 0 < len(result.history) <= config.max_steps()
            assert len(result.time) == len(result.history)

    def test_joint_constraints_hold(self, simulator, config, default_result, weak_result,
                                    early_cast_result):
        results = [default_result, weak_result, early_cast_result]
        results += [simulator.simulate(p) for p in _sample_params(4, seed=5)]
        for result in results:
            assert np.all(np.abs(result.theta1) <= config.max_shoulder_angle)
            assert np.all(result.wrist_angle >= -config.max_wrist_lag - WRIST_TOL)
            assert np.all(result.wrist_angle <= config.max_wrist_release + WRIST_TOL)

    def test_time_axis(self, default_result, config):
        assert default_result.time[0] == pytest.approx(config.dt)
        assert np.all(np.diff(default_result.time) > 0)
        assert default_result.phase_transitions[0] == (0.0, 'start')

    def test_default_swing_hits(self, default_result):
        assert default_result.hit_ball
        assert default_result.impact_speed > 20.0
        assert default_result.max_speed >= default_result.impact_speed
        assert any(label == 'impact' for _, label in default_result.phase_transitions)

    def test_hit_distances_consistent(self, default_result):
        assert default_result.ball_distance >= default_result.carry_distance >= 0
        assert default_result.ball_distance == pytest.approx(
            default_result.carry_distance + default_result.run_distance)
        assert default_result.impact_speed > 0
        assert len(default_result.ball_trajectory) > 0

    def test_weak_swing_slower_or_misses(self, default_result, weak_result):
        assert (not weak_result.hit_ball
                or weak_result.impact_speed < 0.9 * default_result.impact_speed)

    def test_early_cast_reaches_lag_limit(self, early_cast_result, config):
        at_limit = np.isclose(early_cast_result.wrist_angle, -config.max_wrist_lag,
                              atol=WRIST_TOL, rtol=0.0)
        assert at_limit.any()
        # Clamped steps store exactly theta1 - max_wrist_lag
        clamped = early_cast_result.history[at_limit]
        np.testing.assert_array_equal(clamped[:, 2], clamped[:, 0] - config.max_wrist_lag)

    def test_steep_contact_in_simulation_is_ground_strike(self, default_result):
        vx, vy = default_result.impact_velocity
        descent = np.degrees(np.arctan2(vy, vx))
        # The head meets the ball on the way down to its low point
        assert descent > 0
        config = SwingConfig(max_attack_angle=descent - 1.0)
        result = SwingSimulator(config).simulate(SwingParams())
        assert result.ground_strike
        assert not result.hit_ball
        assert result.ball_distance == 0.0
        assert any(label == 'ground_strike' for _, label in result.phase_transitions)
        np.testing.assert_array_equal(result.history, default_result.history)

    def test_sampled_hits_consistent(self, simulator):
        for params in _sample_params(6, seed=23):
            result = simulator.simulate(params)
            if result.hit_ball:
                assert result.ball_distance >= result.carry_distance >= 0
                assert result.impact_speed > 0
            else:
                assert result.ball_distance == 0.0
                assert result.carry_distance == 0.0

    def test_unreachable_ball_is_a_miss(self):
        result = SwingSimulator(SwingConfig(ball_x_offset=5.0)).simulate(SwingParams())
        assert not result.hit_ball
        assert not result.ground_strike
        assert result.ball_distance == 0.0
        assert result.carry_distance == 0.0
        assert result.impact_speed == 0.0
        assert result.ball_trajectory.shape == (0, 2)

    def test_short_time_window_times_out(self):
        config = SwingConfig(t_max=0.01)
        result = SwingSimulator(config).simulate(SwingParams())
        assert result.termination == 'timeout'
        assert len(result.history) == config.max_steps()

    def test_history_within_non_integer_window(self):
        config = SwingConfig(t_max=0.0106, dt=0.001)
        assert config.max_steps() == 10
        result = SwingSimulator(config).simulate(SwingParams())
        assert len(result.history) <= config.t_max / config.dt
        assert result.time[-1] <= config.t_max

    def test_out_of_range_params_warn(self, simulator):
        with pytest.warns(RuntimeWarning):
            simulator.simulate(SwingParams(t1_mag=500.0))
