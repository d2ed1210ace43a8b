"""
Descent Landing Simulation - Touchdown Detection and Classification

Dual-leg contact model: the legs sit leg_span either side of the vehicle
center, rotated with the vehicle, and a tilted vehicle drops one leg
lower. Contact happens when the center or either leg reaches the surface.
A clean landing needs both legs on the same free pad.
"""

import logging
from typing import Optional

import numpy as np

from .profiles import VehicleProfile, WorldProfile
from .state import FlightState
from .terrain import find_pad_at, get_pad, surface_height
from .types import FailureReason, LandingOutcome, TouchdownResult

logger = logging.getLogger(__name__)

NO_CONTACT = TouchdownResult(contact=False)


def leg_positions(state: FlightState, vehicle: VehicleProfile) -> tuple:
    """
    Foot positions of the left and right legs.

    Returns:
        ((left_x, left_y), (right_x, right_y))
    """
    span = vehicle.landing_gear.leg_span
    cos_r = np.cos(state.rotation)
    drop = span * abs(np.sin(state.rotation))
    left = (state.x - span * cos_r, state.y - drop)
    right = (state.x + span * cos_r, state.y - drop)
    return left, right


def classify_landing(speed: float, angle: float, left_pad: Optional[int],
                     right_pad: Optional[int], world: WorldProfile,
                     vehicle: VehicleProfile, fuel: float = 1.0) -> tuple:
    """
    Classify a touchdown.

    success: speed within both the world and landing-gear limits, attitude
    within the world limit, both legs on the same unoccupied pad.
    damaged: speed within the survivable crash velocity, or a safe-speed,
    safe-attitude touchdown off the pads where the world allows it.
    crashed: everything else, including touching down on an occupied pad.

    Args:
        speed: Impact speed (units/s)
        angle: Attitude at impact (rad)
        left_pad, right_pad: Pad index under each leg, or None
        world: World profile (landing thresholds, terrain rules)
        vehicle: Vehicle profile (gear and structure limits)
        fuel: Fuel remaining at impact

    Returns:
        (LandingOutcome, FailureReason or None, landed pad index or None)
    """
    speed_limit = min(world.max_landing_velocity,
                      vehicle.landing_gear.max_impact_velocity)
    speed_ok = speed <= speed_limit
    angle_ok = abs(angle) <= world.max_landing_angle
    same_pad = left_pad is not None and left_pad == right_pad
    pad = get_pad(world, left_pad) if same_pad else None

    if pad is not None and pad.occupied:
        return LandingOutcome.CRASHED, FailureReason.OFF_PAD, None

    if speed_ok and angle_ok and same_pad:
        return LandingOutcome.SUCCESS, None, left_pad

    allow_off_pad = world.terrain is None or world.terrain.allow_damaged_landing
    if speed_ok and angle_ok and allow_off_pad:
        return LandingOutcome.DAMAGED, FailureReason.DAMAGED, None

    if speed <= vehicle.structure.survivable_crash_velocity:
        return LandingOutcome.DAMAGED, FailureReason.DAMAGED, None

    if not speed_ok:
        reason = FailureReason.OUT_OF_FUEL if fuel <= 0.0 else FailureReason.VELOCITY_HIGH
    elif not angle_ok:
        reason = FailureReason.ANGLE_BAD
    else:
        reason = FailureReason.OFF_PAD
    return LandingOutcome.CRASHED, reason, None


def check_touchdown(state: FlightState, vehicle: VehicleProfile,
                    world: WorldProfile) -> TouchdownResult:
    """
    Detect ground contact and classify it.

    Args:
        state: State after integration
        vehicle: Vehicle profile
        world: World profile

    Returns:
        TouchdownResult; contact=False while airborne
    """
    terrain = world.terrain
    (lx, ly), (rx, ry) = leg_positions(state, vehicle)
    center_surface = surface_height(state.x, terrain)

    left_contact = ly <= surface_height(lx, terrain)
    right_contact = ry <= surface_height(rx, terrain)
    center_contact = state.y <= center_surface

    if not (left_contact or right_contact or center_contact):
        return NO_CONTACT

    left_pad = find_pad_at(lx, terrain)
    right_pad = find_pad_at(rx, terrain)
    outcome, reason, landed = classify_landing(
        state.speed, state.rotation, left_pad, right_pad, world, vehicle,
        fuel=state.fuel)

    logger.info(f"Touchdown at t={state.t:.2f}s: {outcome.value} "
                f"(speed={state.speed:.2f}, angle={state.rotation:.3f}, "
                f"pads={left_pad}/{right_pad})")

    return TouchdownResult(
        contact=True,
        outcome=outcome,
        failure_reason=reason,
        landed_pad_index=landed,
        surface_height=center_surface,
    )
