"""
Golf Swing Simulator: Ball Flight
=================================
Empirical launch model and drag-perturbed ballistic flight with roll-out.

Positions share the swing frame (origin at the shoulder, y downward), so
"up" is negative y.
"""

from typing import Tuple

import numpy as np

from swing_config import FlightConfig, FlightResult, SwingConfig, M_TO_YD, DEG


def to_yards(meters: float) -> float:
    return meters * M_TO_YD


def attack_angle(impact_vx: float, impact_vy: float) -> float:
    """Club path angle from horizontal [rad]; positive = ascending."""
    return np.arctan2(-impact_vy, impact_vx)


def dynamic_loft(shaft_lean: float, config: FlightConfig) -> float:
    """Delivered loft [rad]; hands-ahead lean (degrees) removes loft."""
    loft = config.loft_angle * DEG - shaft_lean * DEG * config.loft_per_lean
    return max(config.min_dynamic_loft, loft)


def launch_angle(loft: float, attack: float, config: FlightConfig) -> float:
    """Blend of face (dynamic loft) and path (attack angle) [rad]."""
    return config.loft_weight * loft + (1.0 - config.loft_weight) * attack


def base_smash_factor(config: FlightConfig) -> float:
    """Ideal ball/club speed ratio from a COR momentum transfer."""
    m_head, m_ball = config.club_head_mass, config.ball_mass
    return (1.0 + config.ball_cor) * m_head / (m_head + m_ball)


def lean_bonus(shaft_lean: float, config: FlightConfig) -> float:
    """Efficiency bonus, peaking at config.ideal_lean [deg]."""
    deviation = abs(shaft_lean - config.ideal_lean)
    return max(config.lean_bonus_floor,
               config.lean_bonus_peak - deviation * config.lean_bonus_slope)


def attack_penalty(attack_deg: float, config: FlightConfig) -> float:
    """Efficiency multiplier outside the tolerant attack angle band."""
    if attack_deg < config.steep_attack_limit:
        return max(config.steep_attack_floor,
                   1.0 - abs(attack_deg - config.steep_attack_limit) * config.steep_attack_slope)
    if attack_deg > config.upward_attack_limit:
        return max(config.upward_attack_floor,
                   1.0 - (attack_deg - config.upward_attack_limit) * config.upward_attack_slope)
    return 1.0


def smash_factor(shaft_lean: float, attack_deg: float, config: FlightConfig) -> float:
    return (base_smash_factor(config) * config.energy_loss
            * (1.0 + lean_bonus(shaft_lean, config))
            * attack_penalty(attack_deg, config))


def run_coefficient(landing_deg: float, config: FlightConfig) -> float:
    """Roll as a fraction of carry; shallow landings roll farther."""
    coeff = config.run_coeff_base - landing_deg * config.run_coeff_slope
    return min(config.run_coeff_max, max(config.run_coeff_min, coeff))


def simulate_ball_flight(
    impact_vx: float,
    impact_vy: float,
    shaft_lean: float,
    config: FlightConfig = None,
    ball_pos: Tuple[float, float] = None,
) -> FlightResult:
    """
    Launch the ball from impact kinematics and fly it to rest.

    Parameters
    ----------
    impact_vx, impact_vy : float
        Club head velocity at impact [m/s] (vy > 0 is downward)
    shaft_lean : float
        Shaft lean at impact [deg], positive = hands ahead
    config : FlightConfig, optional
    ball_pos : (x, y), optional
        Ball position on the ground; defaults to the swing model's ball

    Returns
    -------
    FlightResult
    """
    cfg = config if config is not None else FlightConfig()
    if ball_pos is None:
        ball_pos = SwingConfig().ball_position()
    x0, ground_y = ball_pos

    club_speed = np.hypot(impact_vx, impact_vy)
    attack = attack_angle(impact_vx, impact_vy)
    loft = dynamic_loft(shaft_lean, cfg)
    launch = launch_angle(loft, attack, cfg)

    smash = smash_factor(shaft_lean, np.degrees(attack), cfg)
    ball_speed = min(club_speed * smash, cfg.max_ball_speed)

    bvx = ball_speed * np.cos(launch)
    bvy = -ball_speed * np.sin(launch)  # Up is negative
    bx, by = x0, ground_y
    dt = cfg.dt

    points = []
    carry = 0.0
    landing_v = (0.0, 0.0)
    landed = False

    for _ in range(cfg.max_steps()):
        points.append((bx, by))

        speed = np.hypot(bvx, bvy)
        drag = cfg.drag_coeff * speed

        bx += bvx * dt
        by += bvy * dt

        bvx -= drag * bvx * dt
        bvy += cfg.g * dt - drag * bvy * dt

        if by >= ground_y:
            carry = bx - x0
            landing_v = (bvx, bvy)
            landed = True
            points.append((bx, ground_y))
            break

    # Roll-out along the ground
    landing_deg = np.degrees(np.arctan2(landing_v[1], landing_v[0]))
    run = carry * run_coefficient(landing_deg, cfg)
    if cfg.run_points > 0:
        step = run / cfg.run_points
        for i in range(1, cfg.run_points + 1):
            points.append((x0 + carry + step * i, ground_y))

    trajectory = np.array(points, dtype=float).reshape(-1, 2)
    max_height = max(0.0, ground_y - trajectory[:, 1].min()) if len(trajectory) else 0.0

    return FlightResult(
        trajectory=trajectory,
        distance=carry + run,
        carry_distance=carry,
        run_distance=run,
        attack_angle=float(np.degrees(attack)),
        launch_angle=float(np.degrees(launch)),
        dynamic_loft=float(np.degrees(loft)),
        ball_speed=float(ball_speed),
        smash_factor=float(smash),
        landing_angle=float(landing_deg),
        max_height=float(max_height),
        landed=landed,
    )
