"""
Golf Swing Simulator: Configuration and Constants
==================================================
Dataclasses for the arm+club model, ball flight constants, swing parameters,
search settings and simulation results.

Coordinate frame: origin at the shoulder, x to the right, y increasing
downward. Angles are absolute and measured from the downward vertical.
"""

from dataclasses import dataclass, field, fields
from typing import List, NamedTuple, Optional, Tuple
import numpy as np


# Physical constants
GRAVITY = 9.81  # m/s^2
DEG = np.pi / 180.0
M_TO_YD = 1.09361  # metres -> yards


class State(NamedTuple):
    """Readable view of the 4-element state vector."""

    theta1: float  # Arm angle [rad]
    omega1: float  # Arm angular rate [rad/s]
    theta2: float  # Club angle, absolute [rad]
    omega2: float  # Club angular rate [rad/s]

    @classmethod
    def from_array(cls, arr) -> 'State':
        return cls(*(float(v) for v in arr))

    def as_array(self) -> np.ndarray:
        return np.array(self, dtype=float)


@dataclass
class FlightConfig:
    """Empirical ball launch and flight constants (7-iron)."""

    g: float = GRAVITY

    # Ball / club head
    ball_mass: float = 0.0459        # Golf ball mass [kg]
    ball_cor: float = 0.78           # Coefficient of restitution
    club_head_mass: float = 0.3      # 7-iron head mass [kg]
    loft_angle: float = 34.0         # Static loft [deg]

    # Efficiency model
    energy_loss: float = 0.95        # Scales the ideal momentum-transfer smash
    max_ball_speed: float = 68.0     # Plausible ball speed cap [m/s]

    # Dynamic loft: hands-ahead de-lofts the face
    loft_per_lean: float = 0.7       # Loft removed per unit of shaft lean
    min_dynamic_loft: float = 0.1    # Floor [rad]
    loft_weight: float = 0.85        # Launch = w*loft + (1-w)*attack

    # Shaft lean bonus (peaks at ideal_lean)
    ideal_lean: float = 12.0         # [deg]
    lean_bonus_peak: float = 0.05
    lean_bonus_slope: float = 0.005  # Per degree of deviation
    lean_bonus_floor: float = -0.15

    # Attack angle penalty band [deg]
    steep_attack_limit: float = -10.0
    steep_attack_slope: float = 0.03
    steep_attack_floor: float = 0.6
    upward_attack_limit: float = 5.0
    upward_attack_slope: float = 0.02
    upward_attack_floor: float = 0.75

    # Trajectory integration
    dt: float = 0.02                 # Flight step [s]
    drag_coeff: float = 0.008        # Per-axis quadratic drag coefficient [1/m]
    max_flight_time: float = 10.0    # [s]

    # Roll-out
    run_coeff_base: float = 0.6
    run_coeff_slope: float = 0.01    # Per degree of landing angle
    run_coeff_min: float = 0.05
    run_coeff_max: float = 0.5
    run_points: int = 20             # Synthetic ground points for the roll

    def __post_init__(self):
        if self.dt <= 0 or self.max_flight_time <= 0:
            raise ValueError("flight time step and window must be positive")
        if self.ball_mass <= 0 or self.club_head_mass <= 0:
            raise ValueError("ball and club head masses must be positive")
        if self.run_coeff_min > self.run_coeff_max:
            raise ValueError("run_coeff_min exceeds run_coeff_max")
        if self.run_points < 0:
            raise ValueError("run_points must be non-negative")

    def max_steps(self) -> int:
        return int(np.floor(self.max_flight_time / self.dt + 1e-9))


@dataclass
class SwingConfig:
    """Physical and numerical parameters of the two-link swing model."""

    g: float = GRAVITY

    # Links: arm (shoulder -> wrist) and club (wrist -> head)
    L_arm: float = 0.55      # [m]
    L_club: float = 0.95     # [m] - 7-iron
    m_arm: float = 4.5       # Arm + hands [kg]
    m_club: float = 0.35     # Effective club mass [kg]

    # Integration
    dt: float = 0.0005       # Swing step [s]
    t_max: float = 1.0       # Maximum swing time [s]
    singular_tolerance: float = 1e-10  # |det M| below this -> zero accel

    # Top of swing posture
    arm_angle_init: float = -np.pi / 1.5   # -120 deg
    wrist_cock_init: float = -np.pi / 4    # 45 deg of lag
    stop_angle: float = np.pi / 3          # Follow-through cut-off [rad]

    # Joint limits
    max_shoulder_angle: float = 2 * np.pi
    max_wrist_lag: float = np.pi * 0.5       # Cock direction (~90 deg)
    max_wrist_release: float = np.pi * 0.15  # Flip direction (~27 deg)

    # Ball and contact
    ball_radius: float = 0.021       # [m]
    ball_x_offset: float = 0.05      # Ball slightly ahead of the shoulder [m]
    head_allowance: float = 0.08     # Club head size added to the hit radius [m]
    ground_tolerance: float = 0.03   # Head below floor by more than this = duff [m]
    max_attack_angle: float = 40.0   # Steeper downward contact = duff [deg]

    flight: FlightConfig = field(default_factory=FlightConfig)

    def __post_init__(self):
        for name in ('L_arm', 'L_club', 'm_arm', 'm_club', 'dt', 't_max'):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.max_wrist_lag < 0 or self.max_wrist_release < 0:
            raise ValueError("wrist limits must be non-negative")

    def floor_y(self) -> float:
        """Ground level: the fully extended linkage hangs to the floor."""
        return self.L_arm + self.L_club

    def ball_position(self) -> Tuple[float, float]:
        return self.ball_x_offset, self.floor_y()

    def hit_radius(self) -> float:
        return self.ball_radius + self.head_allowance

    def max_steps(self) -> int:
        """Whole steps that fit in t_max (never more than t_max / dt)."""
        return int(np.floor(self.t_max / self.dt + 1e-9))

    def initial_state(self) -> np.ndarray:
        """State at the top of the swing, at rest."""
        theta1 = self.arm_angle_init
        return np.array([theta1, 0.0, theta1 + self.wrist_cock_init, 0.0])


@dataclass
class SwingParams:
    """Torque pulse profile: one shoulder pulse from t=0, one delayed wrist pulse."""

    t1_mag: float = 70.0     # Shoulder torque [Nm]
    t1_dur: float = 0.35     # Shoulder pulse duration [s]
    t2_mag: float = 20.0     # Wrist torque [Nm]
    t2_delay: float = 0.1    # Wrist pulse start [s]
    t2_dur: float = 0.15     # Wrist pulse duration [s]

    def to_array(self) -> np.ndarray:
        return np.array([getattr(self, f.name) for f in fields(self)])

    def to_schedule(self) -> 'ControlSchedule':
        return ControlSchedule(
            shoulder=[TorquePulse(0.0, self.t1_dur, self.t1_mag)],
            wrist=[TorquePulse(self.t2_delay, self.t2_delay + self.t2_dur, self.t2_mag)],
        )


@dataclass(frozen=True)
class TorquePulse:
    """Constant torque over the half-open window [start, end)."""

    start: float
    end: float
    magnitude: float

    def active(self, t: float) -> bool:
        return self.start <= t < self.end


@dataclass
class ControlSchedule:
    """Per-joint list of torque pulses, evaluated by lookup."""

    shoulder: List[TorquePulse] = field(default_factory=list)
    wrist: List[TorquePulse] = field(default_factory=list)

    def torques_at(self, t: float) -> Tuple[float, float]:
        """Summed shoulder and wrist torque active at time t."""
        tau1 = sum(p.magnitude for p in self.shoulder if p.active(t))
        tau2 = sum(p.magnitude for p in self.wrist if p.active(t))
        return float(tau1), float(tau2)


@dataclass
class SwingParamBounds:
    """Admissible [min, max] range of each swing parameter."""

    t1_mag: Tuple[float, float] = (30.0, 150.0)
    t1_dur: Tuple[float, float] = (0.2, 0.5)
    t2_mag: Tuple[float, float] = (-50.0, 80.0)
    t2_delay: Tuple[float, float] = (0.0, 0.35)
    t2_dur: Tuple[float, float] = (0.05, 0.3)

    def __post_init__(self):
        for name, (lo, hi) in self.items():
            if lo > hi:
                raise ValueError(f"bounds for {name}: min {lo} > max {hi}")

    def names(self) -> List[str]:
        return [f.name for f in fields(self)]

    def items(self) -> List[Tuple[str, Tuple[float, float]]]:
        return [(name, getattr(self, name)) for name in self.names()]

    def get_bounds_list(self) -> List[Tuple[float, float]]:
        """Bounds in SwingParams field order."""
        return [getattr(self, name) for name in self.names()]

    def span(self, name: str) -> float:
        lo, hi = getattr(self, name)
        return hi - lo

    def contains(self, params: SwingParams) -> bool:
        return all(lo <= getattr(params, name) <= hi for name, (lo, hi) in self.items())

    def clip(self, params: SwingParams) -> SwingParams:
        return SwingParams(**{
            name: float(np.clip(getattr(params, name), lo, hi))
            for name, (lo, hi) in self.items()
        })

    def params_from_array(self, values) -> SwingParams:
        """Convert an array in field order to SwingParams."""
        return SwingParams(**{name: float(v) for name, v in zip(self.names(), values)})


@dataclass
class SearchConfig:
    """Budgets and scoring weights for the two-phase parameter search."""

    phase1_iterations: int = 2000   # Random global search
    phase2_iterations: int = 3000   # Hill climbing
    batch_size: int = 100           # Evaluations between yields
    perturb_fraction: float = 0.1   # Hill-climb step as fraction of range
    lean_weight: float = 2.0        # Score bonus per degree of shaft lean [m/deg]
    late_hands_penalty: float = 1000.0

    def __post_init__(self):
        if self.phase1_iterations < 0 or self.phase2_iterations < 0:
            raise ValueError("iteration budgets must be non-negative")
        if self.batch_size <= 0:
            raise ValueError("batch_size must be positive")


@dataclass
class FlightResult:
    """Ball flight from impact to the end of the roll."""

    trajectory: np.ndarray = None     # (M, 2) BallPoints (x, y)
    distance: float = 0.0             # Carry + run [m]
    carry_distance: float = 0.0       # [m]
    run_distance: float = 0.0         # [m]
    attack_angle: float = 0.0         # [deg], positive = ascending
    launch_angle: float = 0.0         # [deg]
    dynamic_loft: float = 0.0         # [deg]
    ball_speed: float = 0.0           # [m/s]
    smash_factor: float = 0.0
    landing_angle: float = 0.0        # [deg] below horizontal
    max_height: float = 0.0           # Apex above ground [m]
    landed: bool = False


@dataclass
class SimulationResult:
    """Results from one swing simulation."""

    # Trajectory data
    time: np.ndarray = None
    history: np.ndarray = None        # (N, 4) [theta1, omega1, theta2, omega2]
    head_pos: np.ndarray = None       # (N, 2)

    # Swing metrics
    max_speed: float = 0.0
    impact_speed: float = 0.0
    impact_velocity: np.ndarray = None  # (2,)
    impact_time: Optional[float] = None
    hit_ball: bool = False
    ground_strike: bool = False
    shaft_lean: float = 0.0           # [deg], positive = hands ahead

    # Ball flight
    ball_trajectory: np.ndarray = None  # (M, 2)
    ball_distance: float = 0.0
    carry_distance: float = 0.0
    run_distance: float = 0.0
    max_height: float = 0.0
    attack_angle: float = 0.0         # [deg]
    launch_angle: float = 0.0         # [deg]
    ball_speed: float = 0.0
    smash_factor: float = 0.0

    termination: str = ''
    phase_transitions: List[Tuple[float, str]] = field(default_factory=list)

    @property
    def theta1(self) -> np.ndarray:
        return self.history[:, 0]

    @property
    def omega1(self) -> np.ndarray:
        return self.history[:, 1]

    @property
    def theta2(self) -> np.ndarray:
        return self.history[:, 2]

    @property
    def omega2(self) -> np.ndarray:
        return self.history[:, 3]

    @property
    def wrist_angle(self) -> np.ndarray:
        """Relative club angle (theta2 - theta1); negative = lag."""
        return self.history[:, 2] - self.history[:, 0]

    def states(self) -> List[State]:
        return [State.from_array(row) for row in self.history]
