"""
Descent Landing Simulation - Vehicle Dynamics

This module implements the per-tick force and torque model:
- Engine restart bookkeeping
- Throttle mapping into the engine's throttle range
- Fuel draw (main engine + RCS) with mid-tick exhaustion
- Rotational dynamics (RCS + environment torque + damping)
- Translational accelerations (gravity + thrust + drag)

State advancement lives in integrators.py.
"""

import logging
from typing import NamedTuple

import numpy as np

from . import constants as C
from .control import wrap_angle
from .mass import mass_ratio
from .profiles import EngineSpec, VehicleProfile, WorldProfile
from .rcs import compute_rcs_acceleration, compute_rcs_fuel
from .state import FlightState
from .types import ControlCommand, EnvironmentEffect, FlightPhase

logger = logging.getLogger(__name__)


class EngineState:
    """
    Main-engine ignition and restart bookkeeping.

    The first nonzero throttle ignites the engine. Every later shutdown
    followed by a nonzero throttle is a relight. A non-restartable engine
    becomes inert at its first shutdown; a restartable one spends one
    relight from max_restarts (-1 = unlimited) and becomes inert once a
    finite budget is used up and it shuts down again.
    """

    def __init__(self, spec: EngineSpec):
        self.spec = spec
        self.ignited = False
        self.lit = False
        self.inert = False
        self.relights_used = 0

    @property
    def relights_remaining(self) -> float:
        if not self.spec.restartable:
            return 0
        if self.spec.max_restarts < 0:
            return float('inf')
        return max(self.spec.max_restarts - self.relights_used, 0)

    def update(self, requested_throttle: float) -> bool:
        """
        Register this tick's throttle request.

        Args:
            requested_throttle: Commanded throttle fraction

        Returns:
            True if the engine may produce thrust this tick
        """
        if self.inert:
            return False

        wants_thrust = requested_throttle > 0.0

        if wants_thrust and not self.lit:
            if not self.ignited:
                self.ignited = True
            elif self.relights_remaining > 0:
                self.relights_used += 1
                logger.debug(f"Engine relight {self.relights_used}")
            else:
                self.inert = True
                logger.info("Engine relight rejected: restart budget exhausted")
                return False
            self.lit = True
        elif not wants_thrust and self.lit:
            self.lit = False
            if self.relights_remaining <= 0:
                self.inert = True
                logger.info("Engine shut down with no relights remaining; engine inert")

        return self.lit


def map_throttle(requested: float, engine: EngineSpec) -> float:
    """
    Map a [0, 1] throttle request into the engine's throttle range.

    Requests at or below zero shut the engine off; any positive request is
    held within [throttle_min, throttle_max].
    """
    if requested <= 0.0:
        return 0.0
    return float(np.clip(requested, engine.throttle_min, engine.throttle_max))


class TickDynamics(NamedTuple):
    """Everything the integrator needs to advance one tick."""
    ax: float
    ay: float
    angular_velocity: float
    rotation: float
    fuel: float
    thrust: float  # Fraction of max thrust produced (0 once the tank is dry)
    phase: FlightPhase
    has_burned: bool
    orbit_hold: bool  # No gravity, vertical velocity pinned to zero


def compute_tick_dynamics(state: FlightState, vehicle: VehicleProfile,
                          world: WorldProfile, command: ControlCommand,
                          effect: EnvironmentEffect, engine: EngineState,
                          dt: float) -> TickDynamics:
    """
    Compute accelerations, attitude and fuel for one tick.

    Args:
        state: State at the start of the tick
        vehicle: Vehicle profile
        world: World profile (gravity)
        command: Controller (or abort) command
        effect: Environment effect for this tick
        engine: Engine bookkeeping (updated in place)
        dt: Time step (s)

    Returns:
        TickDynamics for the integrator
    """
    # Rotational dynamics
    angular_acc = compute_rcs_acceleration(command.rotation, vehicle.rcs)
    angular_velocity = (state.angular_velocity + angular_acc * dt
                        + effect.torque) * C.ANGULAR_DAMPING
    rotation = wrap_angle(state.rotation + angular_velocity * dt)

    fuel = max(state.fuel - compute_rcs_fuel(command.rotation, vehicle.rcs, dt), 0.0)

    # Main engine
    throttle = map_throttle(command.throttle, vehicle.engine)
    engine_on = engine.update(throttle)
    firing = engine_on and throttle > 0.0 and fuel > 0.0

    burn_fraction = 0.0
    thrust = 0.0
    if firing:
        burn = vehicle.fuel.consumption_rate * throttle * command.thrust_multiplier * dt
        if burn >= fuel:
            # Tank runs dry mid-tick: thrust only for the burnable part
            burn_fraction = fuel / burn if burn > 0.0 else 0.0
            fuel = 0.0
        else:
            burn_fraction = 1.0
            fuel -= burn
            thrust = throttle * command.thrust_multiplier

    fuel = float(np.clip(fuel, 0.0, vehicle.fuel.capacity))

    phase = state.phase
    has_burned = state.has_burned
    if firing and phase == FlightPhase.ORBIT:
        phase = FlightPhase.DESCENT
        has_burned = True
        logger.info(f"First burn at t={state.t:.2f}s: leaving orbit")

    orbit_hold = phase == FlightPhase.ORBIT
    if orbit_hold:
        return TickDynamics(0.0, 0.0, angular_velocity, rotation, fuel, 0.0,
                            phase, has_burned, True)

    ratio = mass_ratio(vehicle, fuel)
    thrust_acc = (vehicle.engine.max_thrust * throttle * command.thrust_multiplier
                  * burn_fraction * ratio)
    ax = np.sin(rotation) * thrust_acc + effect.drag_x * ratio
    ay = np.cos(rotation) * thrust_acc - world.gravity + effect.drag_y * ratio

    return TickDynamics(float(ax), float(ay), angular_velocity, rotation, fuel,
                        thrust, phase, has_burned, False)
