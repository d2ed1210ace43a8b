"""
Descent Landing Simulation - Control Laws

This module implements the building blocks shared by the autopilot and
the abort guidance:
- Gain composition (world baseline x vehicle modifier)
- PD control law
- Command saturation
- Angle wrapping
"""

import numpy as np

from . import constants as C
from .profiles import AxisGains, VehicleProfile, WorldProfile


def wrap_angle(angle: float) -> float:
    """Wrap an angle to [-pi, pi]."""
    return float((angle + np.pi) % C.TWO_PI - np.pi)


def compose_gains(world: WorldProfile, vehicle: VehicleProfile,
                  scale: float = 1.0) -> dict:
    """
    Effective per-axis gains for a world/vehicle pair.

    The world supplies the physical baseline, the vehicle a craft-specific
    multiplier.

    Args:
        world: World profile
        vehicle: Vehicle profile
        scale: Additional uniform scale (demo mode)

    Returns:
        Dict mapping 'attitude', 'horizontal', 'vertical' to AxisGains
    """
    base = world.autopilot_gains
    mods = vehicle.autopilot_modifiers
    return {
        'attitude': base.attitude.scaled(mods.attitude * scale),
        'horizontal': base.horizontal.scaled(mods.horizontal * scale),
        'vertical': base.vertical.scaled(mods.vertical * scale),
    }


def pd_control_law(error: float, error_rate: float, gains: AxisGains) -> float:
    """
    Proportional-derivative law.

    command = kp * error + kd * error_rate

    Args:
        error: Setpoint minus measurement
        error_rate: Time derivative of the error
        gains: Axis gains

    Returns:
        Unsaturated command
    """
    return gains.kp * error + gains.kd * error_rate


def saturate(value: float, limit: float) -> float:
    """Clamp value to [-limit, limit]."""
    return float(np.clip(value, -limit, limit))


def clamp_throttle(value: float) -> float:
    """Clamp a throttle fraction to [0, 1]."""
    return float(np.clip(value, 0.0, 1.0))


def rotation_command(target: float, rotation: float, angular_velocity: float,
                     gains: AxisGains) -> float:
    """
    Attitude loop: rate input driving rotation toward target.

    The derivative term damps the current rotation rate, since the target
    changes slowly compared with the vehicle's attitude dynamics.
    """
    error = wrap_angle(target - rotation)
    return saturate(pd_control_law(error, -angular_velocity, gains),
                    C.MAX_ROTATION_INPUT)
