"""
Descent Landing Simulation - Reaction Control System (RCS)

Rotational acceleration from the RCS thrusters and the fuel they draw.
A command magnitude below the deadband leaves the thrusters idle.
"""

import numpy as np

from . import constants as C
from .profiles import RCSSpec


def compute_rcs_acceleration(rotation_input: float, rcs: RCSSpec) -> float:
    """
    Angular acceleration for a rotation input.

    Args:
        rotation_input: Commanded rate input in [-1, 1]
        rcs: RCS specification

    Returns:
        Angular acceleration (rad/s^2)
    """
    rotation_input = float(np.clip(rotation_input, -C.MAX_ROTATION_INPUT,
                                   C.MAX_ROTATION_INPUT))
    return rotation_input * rcs.rotation_acceleration


def compute_rcs_fuel(rotation_input: float, rcs: RCSSpec, dt: float,
                     deadband: float = 1e-3) -> float:
    """
    Fuel drawn by the RCS over one tick.

    Only fuel-consuming RCS installations draw propellant, and only while
    actively firing. Draw is proportional to command magnitude.

    Args:
        rotation_input: Commanded rate input in [-1, 1]
        rcs: RCS specification
        dt: Time step (s)
        deadband: Input magnitude below which thrusters do not fire

    Returns:
        Fuel used (units)
    """
    if not rcs.consumes_fuel or abs(rotation_input) <= deadband:
        return 0.0
    magnitude = min(abs(rotation_input), C.MAX_ROTATION_INPUT)
    return rcs.fuel_consumption * magnitude * dt
