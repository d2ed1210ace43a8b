"""
Descent Landing Simulation - Numerical Integration

This module advances the flight state by one fixed tick. The default
scheme is semi-implicit Euler (velocity first, then position from the
updated velocity), which keeps trajectories stable and reproducible at a
fixed dt. Explicit Euler is kept for comparison.
"""

from .dynamics import EngineState, TickDynamics, compute_tick_dynamics
from .profiles import VehicleProfile, WorldProfile
from .state import FlightState
from .terrain import wrap_x
from .types import ControlCommand, EnvironmentEffect

INTEGRATION_METHODS = ('semi_implicit', 'explicit_euler')


def _apply(state: FlightState, dyn: TickDynamics, dt: float,
           world: WorldProfile, semi_implicit: bool) -> FlightState:
    new = state.copy()
    new.t = state.t + dt
    new.rotation = dyn.rotation
    new.angular_velocity = dyn.angular_velocity
    new.fuel = dyn.fuel
    new.thrust = dyn.thrust
    new.phase = dyn.phase
    new.has_burned = dyn.has_burned

    if dyn.orbit_hold:
        # Stable orbit: constant altitude, horizontal drift only
        new.vy = 0.0
        new.x = wrap_x(state.x + state.vx * dt, world.terrain)
        return new

    new.vx = state.vx + dyn.ax * dt
    new.vy = state.vy + dyn.ay * dt
    if semi_implicit:
        new.x = state.x + new.vx * dt
        new.y = state.y + new.vy * dt
    else:
        new.x = state.x + state.vx * dt
        new.y = state.y + state.vy * dt
    new.x = wrap_x(new.x, world.terrain)
    return new


def semi_implicit_step(state: FlightState, dyn: TickDynamics, dt: float,
                       world: WorldProfile) -> FlightState:
    """Velocity from acceleration first, then position from new velocity."""
    return _apply(state, dyn, dt, world, semi_implicit=True)


def explicit_euler_step(state: FlightState, dyn: TickDynamics, dt: float,
                        world: WorldProfile) -> FlightState:
    """Position from the old velocity, velocity from acceleration."""
    return _apply(state, dyn, dt, world, semi_implicit=False)


def integrate(state: FlightState, vehicle: VehicleProfile, world: WorldProfile,
              command: ControlCommand, effect: EnvironmentEffect,
              engine: EngineState, dt: float,
              method: str = 'semi_implicit') -> FlightState:
    """
    Advance the flight state by one tick.

    Args:
        state: Current state (not modified)
        vehicle: Vehicle profile
        world: World profile
        command: Command to apply this tick
        effect: Environment effect for this tick
        engine: Engine bookkeeping (updated in place)
        dt: Time step (s)
        method: 'semi_implicit' or 'explicit_euler'

    Returns:
        New state after integration

    Raises:
        ValueError: If dt <= 0 or method is unknown
    """
    if dt <= 0:
        raise ValueError(f"Time step dt must be positive, got {dt}")
    if method not in INTEGRATION_METHODS:
        raise ValueError(f"Unknown integration method: {method}. "
                         f"Use one of {INTEGRATION_METHODS}")

    if state.is_terminal:
        return state.copy()

    dyn = compute_tick_dynamics(state, vehicle, world, command, effect, engine, dt)
    if method == 'semi_implicit':
        return semi_implicit_step(state, dyn, dt, world)
    return explicit_euler_step(state, dyn, dt, world)
