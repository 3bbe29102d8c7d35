"""
Golf Swing Simulator: Symbolic Physics Derivation
=================================================
Derives the equations of motion of the two-link swing model with SymPy
and compares them with the hand-coded solver in swing_model.py.

Generalized coordinates (absolute, from the downward vertical, y down):
    theta1 - Arm angle (shoulder -> wrist)
    theta2 - Club angle (wrist -> head)

Both links are point masses at their distal ends. Applied torques act
directly on their own coordinate.
"""

import numpy as np
import sympy as sp
from sympy import sin, cos, Rational, diff, Matrix
from sympy.physics.mechanics import dynamicsymbols
from sympy.utilities.lambdify import lambdify

from swing_config import SwingConfig
from swing_model import compute_accelerations


def derive_equations(verbose: bool = False):
    """
    Derive the equations of motion symbolically.
    Returns matrices M and F such that M @ q_ddot = F
    """
    if verbose:
        print("=" * 60)
        print("Golf Swing: Symbolic Derivation")
        print("=" * 60)

    t = sp.Symbol('t')

    theta1 = dynamicsymbols('theta1')
    theta2 = dynamicsymbols('theta2')
    d_theta1 = diff(theta1, t)
    d_theta2 = diff(theta2, t)
    dd_theta1 = diff(theta1, t, 2)
    dd_theta2 = diff(theta2, t, 2)

    L1 = sp.Symbol('L1', positive=True)
    L2 = sp.Symbol('L2', positive=True)
    m1 = sp.Symbol('m1', positive=True)
    m2 = sp.Symbol('m2', positive=True)
    g = sp.Symbol('g', positive=True)
    tau1 = sp.Symbol('tau1')
    tau2 = sp.Symbol('tau2')

    if verbose:
        print("\n1. Computing kinematics...")

    # y points down, so a hanging link sits at positive y
    p_wrist = L1 * Matrix([sin(theta1), cos(theta1)])
    p_head = p_wrist + L2 * Matrix([sin(theta2), cos(theta2)])

    v_wrist = diff(p_wrist, t)
    v_head = diff(p_head, t)

    if verbose:
        print("\n2. Computing energies...")

    T = Rational(1, 2) * m1 * v_wrist.dot(v_wrist) + Rational(1, 2) * m2 * v_head.dot(v_head)
    # Potential decreases downward (+y)
    V = -m1 * g * p_wrist[1] - m2 * g * p_head[1]
    L = T - V

    if verbose:
        print("\n3. Deriving Lagrange equations...")

    coords = [theta1, theta2]
    vels = [d_theta1, d_theta2]
    Q = [tau1, tau2]
    eom_exprs = []
    for qi, dqi, Qi in zip(coords, vels, Q):
        eom_exprs.append(sp.expand(diff(diff(L, dqi), t) - diff(L, qi) - Qi))

    # linear_eq_to_matrix wants plain symbols for the unknowns
    a1, a2 = sp.symbols('a1 a2')
    eom_exprs = [expr.subs({dd_theta1: a1, dd_theta2: a2}) for expr in eom_exprs]
    M_matrix, F_vector = sp.linear_eq_to_matrix(eom_exprs, [a1, a2])
    M_matrix = M_matrix.applyfunc(sp.trigsimp)
    F_vector = F_vector.applyfunc(sp.trigsimp)

    if verbose:
        print("   Mass matrix M:")
        sp.pprint(M_matrix)
        print("   Force vector F:")
        sp.pprint(F_vector)

    return {
        't': t,
        'coords': coords,
        'vels': vels,
        'M': M_matrix,
        'F': F_vector,
        'T': T,
        'V': V,
        'L': L,
        'params': {'L1': L1, 'L2': L2, 'm1': m1, 'm2': m2, 'g': g,
                   'tau1': tau1, 'tau2': tau2},
        'positions': {'p_wrist': p_wrist, 'p_head': p_head},
    }


def build_numeric_functions(derived):
    """
    Lambdify M and F into NumPy callables.

    Both take (th1, om1, th2, om2, L1, L2, m1, m2, g, tau1, tau2).
    """
    t = derived['t']
    params = derived['params']
    theta1, theta2 = derived['coords']

    th1, th2, om1, om2 = sp.symbols('th1 th2 om1 om2')
    subs_dict = {
        diff(theta1, t): om1, diff(theta2, t): om2,
    }
    # Velocities first, then coordinates
    M_sub = derived['M'].subs(subs_dict).subs({theta1: th1, theta2: th2})
    F_sub = derived['F'].subs(subs_dict).subs({theta1: th1, theta2: th2})

    args = [th1, om1, th2, om2, params['L1'], params['L2'], params['m1'], params['m2'],
            params['g'], params['tau1'], params['tau2']]

    compute_M = lambdify(args, M_sub, modules='numpy')
    compute_F = lambdify(args, F_sub, modules='numpy')
    return compute_M, compute_F


def compare_with_model(state, torque1=0.0, torque2=0.0, config=None, derived=None):
    """
    Evaluate the symbolic M and F and the hand-coded accelerations at a state.

    Returns
    -------
    dict with 'M', 'F' (numeric arrays), 'symbolic_accel' (solution of
    M @ a = F) and 'model_accel' (swing_model.compute_accelerations)
    """
    cfg = config if config is not None else SwingConfig()
    if derived is None:
        derived = derive_equations()
    compute_M, compute_F = build_numeric_functions(derived)

    th1, om1, th2, om2 = state
    args = (th1, om1, th2, om2, cfg.L_arm, cfg.L_club, cfg.m_arm, cfg.m_club,
            cfg.g, torque1, torque2)
    M = np.array(compute_M(*args), dtype=float)
    F = np.array(compute_F(*args), dtype=float).reshape(-1)

    return {
        'M': M,
        'F': F,
        'symbolic_accel': np.linalg.solve(M, F),
        'model_accel': np.array(compute_accelerations(np.asarray(state, dtype=float),
                                                      torque1, torque2, cfg)),
    }


def main():
    """Derive the equations and print a comparison at a sample state."""
    derived = derive_equations(verbose=True)

    print("\n4. Comparing with swing_model at rest (theta1=-120 deg, theta2=-165 deg)...")
    state = [-2 * np.pi / 3, 0.0, -2 * np.pi / 3 - np.pi / 4, 0.0]
    cmp = compare_with_model(state, torque1=70.0, torque2=20.0, derived=derived)
    print(f"   Symbolic accelerations: {cmp['symbolic_accel']}")
    print(f"   Model accelerations:    {cmp['model_accel']}")


if __name__ == "__main__":
    main()
