"""
Descent Landing Simulation - Validation Checks

This module implements the checks that guard the simulation core:
- World profile checks (positive physics, wind bands, terrain and pads)
- Vehicle profile checks (throttle range, fuel, structure limits)
- Flight state invariants (fuel bounds, finite values)

A flight never starts with an invalid profile; state checks abort on
violation.
"""

from typing import Optional, Tuple

import numpy as np

from .profiles import AtmosphereProfile, TerrainProfile, VehicleProfile, WorldProfile
from .state import FlightState


class ValidationError(Exception):
    """Raised when a profile or state validation check fails."""
    pass


def _require_positive(name: str, value: float) -> None:
    if not np.isfinite(value) or value <= 0:
        raise ValidationError(f"{name} must be positive and finite, got {value}")


def _require_non_negative(name: str, value: float) -> None:
    if not np.isfinite(value) or value < 0:
        raise ValidationError(f"{name} must be non-negative and finite, got {value}")


def check_wind_bands(atmosphere: AtmosphereProfile) -> bool:
    """
    Verify wind bands are well-formed and do not overlap.

    Args:
        atmosphere: Atmosphere profile

    Returns:
        True if valid, raises ValidationError otherwise
    """
    _require_non_negative("drag_coefficient", atmosphere.drag_coefficient)

    bands = sorted(atmosphere.wind_bands, key=lambda b: b.altitude_min)
    for band in bands:
        if band.altitude_max <= band.altitude_min:
            raise ValidationError(
                f"Wind band [{band.altitude_min}, {band.altitude_max}) is empty or inverted"
            )
        _require_non_negative("wind band density", band.density)
        _require_non_negative("wind band turbulence", band.turbulence)

    for lower, upper in zip(bands, bands[1:]):
        if upper.altitude_min < lower.altitude_max:
            raise ValidationError(
                f"Wind bands overlap: [{lower.altitude_min}, {lower.altitude_max}) "
                f"and [{upper.altitude_min}, {upper.altitude_max})"
            )
    return True


def check_terrain(terrain: TerrainProfile) -> bool:
    """
    Verify the terrain polyline and pads.

    Returns:
        True if valid, raises ValidationError otherwise
    """
    _require_positive("terrain width", terrain.width)
    if len(terrain.points) < 2:
        raise ValidationError("Terrain needs at least two points")

    xs = [p[0] for p in terrain.points]
    if any(b < a for a, b in zip(xs, xs[1:])):
        raise ValidationError("Terrain points must be ordered by x")

    for pad in terrain.pads:
        if pad.x2 <= pad.x1:
            raise ValidationError(f"Pad {pad.designation or pad.x1} has no width")
        if pad.x1 < 0 or pad.x2 > terrain.width:
            raise ValidationError(
                f"Pad {pad.designation or pad.x1} [{pad.x1}, {pad.x2}] lies outside "
                f"terrain width {terrain.width}"
            )
        if pad.multiplier < 1:
            raise ValidationError(f"Pad multiplier must be >= 1, got {pad.multiplier}")
    return True


def validate_world(world: WorldProfile) -> bool:
    """
    Check a world profile before a flight starts.

    Args:
        world: World profile

    Returns:
        True if valid, raises ValidationError otherwise
    """
    for name in ('gravity', 'real_gravity', 'max_thrust', 'fuel_consumption',
                 'max_landing_velocity', 'max_landing_angle', 'rotation_speed'):
        _require_positive(name, getattr(world, name))
    for name in ('orbital_velocity', 'orbital_altitude', 'starting_fuel'):
        _require_non_negative(name, getattr(world, name))

    for axis in ('attitude', 'horizontal', 'vertical'):
        gains = getattr(world.autopilot_gains, axis)
        _require_non_negative(f"{axis} kp", gains.kp)
        _require_non_negative(f"{axis} kd", gains.kd)

    if world.atmosphere is not None:
        check_wind_bands(world.atmosphere)
    if world.terrain is not None:
        check_terrain(world.terrain)
    return True


def validate_vehicle(vehicle: VehicleProfile) -> bool:
    """
    Check a vehicle profile before a flight starts.

    Args:
        vehicle: Vehicle profile

    Returns:
        True if valid, raises ValidationError otherwise
    """
    engine = vehicle.engine
    _require_positive("engine max_thrust", engine.max_thrust)
    if not 0.0 <= engine.throttle_min <= engine.throttle_max <= 1.0:
        raise ValidationError(
            f"Invalid throttle range [{engine.throttle_min}, {engine.throttle_max}]"
        )
    if engine.throttle_max <= 0.0:
        raise ValidationError("Engine throttle_max must be positive")
    if engine.max_restarts < -1:
        raise ValidationError(f"max_restarts must be -1 or >= 0, got {engine.max_restarts}")

    _require_positive("fuel capacity", vehicle.fuel.capacity)
    _require_positive("fuel consumption_rate", vehicle.fuel.consumption_rate)
    _require_non_negative("fuel mass_per_unit", vehicle.fuel.mass_per_unit)
    _require_non_negative("rcs rotation_acceleration", vehicle.rcs.rotation_acceleration)
    _require_non_negative("rcs fuel_consumption", vehicle.rcs.fuel_consumption)
    _require_non_negative("landing gear leg_span", vehicle.landing_gear.leg_span)
    _require_positive("landing gear max_impact_velocity",
                      vehicle.landing_gear.max_impact_velocity)
    _require_non_negative("structure dry_mass", vehicle.structure.dry_mass)
    _require_positive("survivable_crash_velocity",
                      vehicle.structure.survivable_crash_velocity)
    _require_positive("guidance_precision", vehicle.avionics.guidance_precision)

    if vehicle.structure.dry_mass + vehicle.fuel.capacity * vehicle.fuel.mass_per_unit <= 0:
        raise ValidationError("Vehicle must have positive mass")
    if vehicle.abort.max_abort_attempts < 0:
        raise ValidationError("max_abort_attempts must be non-negative")
    _require_positive("abort_thrust_multiplier", vehicle.abort.abort_thrust_multiplier)
    return True


def check_fuel_bounds(fuel: float, capacity: float) -> bool:
    """
    Verify 0 <= fuel <= capacity.

    Returns:
        True if valid, raises ValidationError otherwise
    """
    if not (0.0 <= fuel <= capacity):
        raise ValidationError(f"Fuel out of range: {fuel:.6f} not in [0, {capacity}]")
    return True


def check_state_finite(state: FlightState) -> bool:
    values = (state.x, state.y, state.vx, state.vy, state.rotation,
              state.angular_velocity, state.fuel, state.t)
    if not np.all(np.isfinite(values)):
        raise ValidationError(f"Non-finite value in state: {state}")
    return True


def validate_state(state: FlightState, vehicle: VehicleProfile,
                   abort_on_error: bool = True) -> Tuple[bool, Optional[str]]:
    """
    Perform all invariant checks on a flight state.

    Args:
        state: State to validate
        vehicle: Vehicle profile (fuel capacity)
        abort_on_error: If True, raise exception on first error
    """
    try:
        check_state_finite(state)
        check_fuel_bounds(state.fuel, vehicle.fuel.capacity)
        return True, None
    except ValidationError as e:
        if abort_on_error:
            raise
        return False, str(e)
