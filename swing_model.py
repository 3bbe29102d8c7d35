"""
Golf Swing Simulator: Swing Model
=================================
Two-link (arm + club) torque-driven pendulum:
- Mass-matrix dynamics with a singular-configuration fallback
- Fixed-step RK4 integration under piecewise-constant torques
- Joint limits, ground strike and ball contact detection
"""

import logging
import warnings
from typing import Optional, Tuple

import numpy as np
from scipy.integrate import solve_ivp

from swing_config import (
    SwingConfig, SwingParams, SwingParamBounds, SimulationResult, M_TO_YD,
)
from ball_flight import simulate_ball_flight

logger = logging.getLogger(__name__)

CONTACT_HIT = 'hit'
CONTACT_GROUND = 'ground'


def compute_accelerations(
    state: np.ndarray, torque1: float, torque2: float, config: SwingConfig
) -> Tuple[float, float]:
    """
    Angular accelerations of arm and club.

    Solves M @ [alpha1, alpha2] = F for the 2x2 generalized mass matrix.
    A near-singular matrix (|det| < config.singular_tolerance) gives zero
    acceleration instead of a division by a tiny determinant.

    Parameters
    ----------
    state : ndarray
        [theta1, omega1, theta2, omega2]
    torque1, torque2 : float
        Applied shoulder and wrist torques [Nm]
    config : SwingConfig

    Returns
    -------
    (alpha1, alpha2) : tuple of float
    """
    th1, om1, th2, om2 = state
    L1, L2 = config.L_arm, config.L_club
    m1, m2 = config.m_arm, config.m_club
    g = config.g
    d_th = th1 - th2

    # Mass matrix
    m11 = (m1 + m2) * L1 * L1
    m12 = m2 * L1 * L2 * np.cos(d_th)
    m21 = m12
    m22 = m2 * L2 * L2

    # Velocity-product, gravity and torque terms
    f1 = -m2 * L1 * L2 * om2 * om2 * np.sin(d_th) - (m1 + m2) * g * L1 * np.sin(th1) + torque1
    f2 = m2 * L1 * L2 * om1 * om1 * np.sin(d_th) - m2 * g * L2 * np.sin(th2) + torque2

    det = m11 * m22 - m12 * m21
    if abs(det) < config.singular_tolerance:
        return 0.0, 0.0

    alpha1 = (m22 * f1 - m12 * f2) / det
    alpha2 = (m11 * f2 - m21 * f1) / det
    return alpha1, alpha2


def state_derivative(
    state: np.ndarray, torque1: float, torque2: float, config: SwingConfig
) -> np.ndarray:
    """d/dt [theta1, omega1, theta2, omega2]."""
    alpha1, alpha2 = compute_accelerations(state, torque1, torque2, config)
    return np.array([state[1], alpha1, state[3], alpha2])


def rk4_step(
    state: np.ndarray, torque1: float, torque2: float, config: SwingConfig
) -> np.ndarray:
    """Advance the state by one classical RK4 step of config.dt.

    Torques are held constant over the four stages.
    """
    dt = config.dt
    k1 = state_derivative(state, torque1, torque2, config)
    k2 = state_derivative(state + 0.5 * dt * k1, torque1, torque2, config)
    k3 = state_derivative(state + 0.5 * dt * k2, torque1, torque2, config)
    k4 = state_derivative(state + dt * k3, torque1, torque2, config)
    return state + (dt / 6.0) * (k1 + 2 * k2 + 2 * k3 + k4)


def apply_joint_limits(state: np.ndarray, config: SwingConfig) -> np.ndarray:
    """
    Clamp shoulder and wrist angles to their limits.

    Stops are inelastic: the rate that would push further past a limit is
    clamped. The wrist limit is asymmetric (more lag than release allowed)
    and couples the club rate to the arm rate.
    """
    th1, om1, th2, om2 = state
    limit = config.max_shoulder_angle

    if th1 > limit:
        th1 = limit
        om1 = min(0.0, om1)
    elif th1 < -limit:
        th1 = -limit
        om1 = max(0.0, om1)

    wrist = th2 - th1
    if wrist > config.max_wrist_release:
        th2 = th1 + config.max_wrist_release
        om2 = min(om1, om2)
    elif wrist < -config.max_wrist_lag:
        th2 = th1 - config.max_wrist_lag
        om2 = max(om1, om2)

    return np.array([th1, om1, th2, om2])


def head_position(state: np.ndarray, config: SwingConfig) -> np.ndarray:
    """Club head position (x, y), y downward."""
    th1, th2 = state[0], state[2]
    x = config.L_arm * np.sin(th1) + config.L_club * np.sin(th2)
    y = config.L_arm * np.cos(th1) + config.L_club * np.cos(th2)
    return np.array([x, y])


def head_velocity(state: np.ndarray, config: SwingConfig) -> np.ndarray:
    """Club head linear velocity from both joint rates (chain rule), y downward."""
    th1, om1, th2, om2 = state
    vx = config.L_arm * om1 * np.cos(th1) + config.L_club * om2 * np.cos(th2)
    vy = -(config.L_arm * om1 * np.sin(th1) + config.L_club * om2 * np.sin(th2))
    return np.array([vx, vy])


def check_contact(
    head: np.ndarray, velocity: np.ndarray, config: SwingConfig
) -> Optional[str]:
    """
    Classify the club head against ground and ball.

    The ground check runs first. Inside the hit radius, a contact steeper
    downward than config.max_attack_angle digs into the turf and counts as
    a ground strike.

    Returns
    -------
    'ground', 'hit' or None
    """
    hx, hy = head
    if hy > config.floor_y() + config.ground_tolerance:
        return CONTACT_GROUND

    ball_x, ball_y = config.ball_position()
    if np.hypot(hx - ball_x, hy - ball_y) < config.hit_radius():
        # vy > 0 is downward, so a steep downward blow is a large positive angle
        descent = np.degrees(np.arctan2(velocity[1], velocity[0]))
        if descent > config.max_attack_angle:
            return CONTACT_GROUND
        return CONTACT_HIT

    return None


def integrate_reference(
    state0: np.ndarray,
    torque1: float,
    torque2: float,
    t_end: float,
    config: SwingConfig,
    rtol: float = 1e-10,
    atol: float = 1e-12,
) -> np.ndarray:
    """
    High-accuracy solution under constant torques (no joint limits).

    Used to check the fixed-step integrator against an adaptive solver.
    """
    sol = solve_ivp(
        lambda t, y: state_derivative(y, torque1, torque2, config),
        [0.0, t_end],
        np.asarray(state0, dtype=float),
        method='DOP853',
        rtol=rtol,
        atol=atol,
    )
    if not sol.success:
        raise RuntimeError(f"reference integration failed: {sol.message}")
    return sol.y[:, -1]


class SwingSimulator:
    """
    Simulates one downswing from the top position.

    Each call to simulate() is independent: all state is local to the call.
    """

    def __init__(self, config: SwingConfig = None, bounds: SwingParamBounds = None):
        """
        Parameters
        ----------
        config : SwingConfig, optional
            Physical constants (defaults if omitted)
        bounds : SwingParamBounds, optional
            Admissible parameter ranges, used to warn about out-of-range input
        """
        self.config = config if config is not None else SwingConfig()
        self.bounds = bounds if bounds is not None else SwingParamBounds()

    def simulate(self, params: SwingParams) -> SimulationResult:
        """
        Run the swing and, on a clean hit, the ball flight.

        Parameters
        ----------
        params : SwingParams
            Torque profile. Values outside the bounds are simulated as given.

        Returns
        -------
        SimulationResult
        """
        cfg = self.config
        if not self.bounds.contains(params):
            warnings.warn(f"Swing parameters outside admissible range: {params}",
                          RuntimeWarning, stacklevel=2)

        schedule = params.to_schedule()
        state = cfg.initial_state()
        result = SimulationResult()
        result.phase_transitions = [(0.0, 'start')]

        times = []
        states = []
        heads = []
        max_speed = 0.0
        resolved = False
        termination = 'timeout'

        for i in range(cfg.max_steps()):
            t = i * cfg.dt
            if state[0] >= cfg.stop_angle:
                termination = 'stop_angle'
                result.phase_transitions.append((t, 'stop_angle'))
                break

            tau1, tau2 = schedule.torques_at(t)
            state = rk4_step(state, tau1, tau2, cfg)
            state = apply_joint_limits(state, cfg)

            head = head_position(state, cfg)
            times.append(t + cfg.dt)
            states.append(state)
            heads.append(head)

            velocity = head_velocity(state, cfg)
            speed = float(np.hypot(velocity[0], velocity[1]))
            max_speed = max(max_speed, speed)

            if resolved:
                continue

            contact = check_contact(head, velocity, cfg)
            if contact == CONTACT_GROUND:
                resolved = True
                result.ground_strike = True
                result.phase_transitions.append((t + cfg.dt, 'ground_strike'))
            elif contact == CONTACT_HIT:
                resolved = True
                result.hit_ball = True
                result.impact_speed = speed
                result.impact_velocity = velocity
                result.impact_time = t + cfg.dt
                result.shaft_lean = float(np.degrees(state[0] - state[2]))
                result.phase_transitions.append((t + cfg.dt, 'impact'))
        else:
            result.phase_transitions.append((cfg.max_steps() * cfg.dt, 'timeout'))

        result.termination = termination
        result.time = np.array(times)
        result.history = np.array(states).reshape(-1, 4)
        result.head_pos = np.array(heads).reshape(-1, 2)
        result.max_speed = max_speed

        if result.hit_ball:
            flight = simulate_ball_flight(
                result.impact_velocity[0],
                result.impact_velocity[1],
                result.shaft_lean,
                cfg.flight,
                ball_pos=cfg.ball_position(),
            )
            result.ball_trajectory = flight.trajectory
            result.ball_distance = flight.distance
            result.carry_distance = flight.carry_distance
            result.run_distance = flight.run_distance
            result.max_height = flight.max_height
            result.attack_angle = flight.attack_angle
            result.launch_angle = flight.launch_angle
            result.ball_speed = flight.ball_speed
            result.smash_factor = flight.smash_factor
        else:
            result.ball_trajectory = np.zeros((0, 2))

        logger.debug("Swing %s: hit=%s impact=%.2f m/s distance=%.1f m",
                     termination, result.hit_ball, result.impact_speed, result.ball_distance)
        return result


def simulate(params: SwingParams, config: SwingConfig = None) -> SimulationResult:
    """Simulate one swing with the given (or default) constants."""
    return SwingSimulator(config).simulate(params)


def report_simulation(result: SimulationResult, params: SwingParams = None):
    """Print a summary of a simulation result."""
    if params is not None:
        print(f"\nParameters:")
        print(f"  t1_mag: {params.t1_mag:.2f} Nm, t1_dur: {params.t1_dur:.3f} s")
        print(f"  t2_mag: {params.t2_mag:.2f} Nm, t2_delay: {params.t2_delay:.3f} s, "
              f"t2_dur: {params.t2_dur:.3f} s")

    print(f"\nResults:")
    print(f"  Steps: {len(result.history)} ({result.termination})")
    print(f"  Max head speed: {result.max_speed:.2f} m/s")
    if result.hit_ball:
        sign = '+' if result.attack_angle >= 0 else ''
        lean_sign = '+' if result.shaft_lean >= 0 else ''
        print(f"  Impact speed: {result.impact_speed:.2f} m/s")
        print(f"  Total: {result.ball_distance * M_TO_YD:.0f} yds "
              f"(Carry: {result.carry_distance * M_TO_YD:.0f} + "
              f"Run: {result.run_distance * M_TO_YD:.0f})")
        print(f"  Attack: {sign}{result.attack_angle:.1f} deg | "
              f"Launch: {result.launch_angle:.1f} deg | "
              f"Lean: {lean_sign}{result.shaft_lean:.0f} deg")
    elif result.ground_strike:
        print(f"  Duff! Club hit the ground first")
    else:
        print(f"  Miss! (max speed was {result.max_speed:.1f} m/s)")


def demo_simulation():
    """Run the default swing and print the result."""
    print("=" * 60)
    print("Golf Swing Simulation")
    print("=" * 60)

    config = SwingConfig()
    print(f"\nConfiguration:")
    print(f"  L_arm: {config.L_arm} m, L_club: {config.L_club} m")
    print(f"  m_arm: {config.m_arm} kg, m_club: {config.m_club} kg")
    print(f"  dt: {config.dt} s, t_max: {config.t_max} s")

    params = SwingParams()
    result = SwingSimulator(config).simulate(params)
    report_simulation(result, params)
    return result


if __name__ == "__main__":
    demo_simulation()
