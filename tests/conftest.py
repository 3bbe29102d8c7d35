"""
Shared fixtures for the swing simulator test suite.

Full simulations take a noticeable fraction of a second, so the common
reference swings are computed once per session.
"""

import pytest

from swing_config import SwingConfig, SwingParams, SwingParamBounds
from swing_model import SwingSimulator


@pytest.fixture
def config():
    return SwingConfig()


@pytest.fixture
def bounds():
    return SwingParamBounds()


@pytest.fixture(scope="session")
def simulator():
    return SwingSimulator()


@pytest.fixture(scope="session")
def default_result(simulator):
    """Every parameter at its default."""
    return simulator.simulate(SwingParams())


@pytest.fixture(scope="session")
def weak_result(simulator):
    """Minimum shoulder torque, no wrist torque."""
    bounds = SwingParamBounds()
    return simulator.simulate(SwingParams(t1_mag=bounds.t1_mag[0], t2_mag=0.0))


@pytest.fixture(scope="session")
def early_cast_result(simulator):
    """Early, large negative wrist torque (casting)."""
    bounds = SwingParamBounds()
    return simulator.simulate(SwingParams(t2_mag=bounds.t2_mag[0], t2_delay=0.0,
                                          t2_dur=bounds.t2_dur[1]))
