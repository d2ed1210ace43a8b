"""
Descent Landing Simulation - Abort Decision System

Supervisory monitor evaluated once per tick, after the autopilot proposes a
command and before the integrator applies it.

Trigger conditions (any):
- LOW_FUEL: fuel below a margin over the estimated fuel to land
- DESCENT_RATE: falling faster than a crash-probable threshold with too
  little altitude left to brake
- UNAVOIDABLE_CRASH: impact speed under maximum deceleration would exceed
  the survivable crash velocity

Decision priority when an abort is available:
1. orbit    - high enough and enough fuel to climb back to orbit
2. retarget - an unoccupied pad is reachable ahead
3. brace    - level the vehicle and brake with whatever is left

Event outcomes stay PENDING until the flight reaches a terminal phase.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np

from . import constants as C
from .config import SimulationConfig, create_default_config
from .control import wrap_angle
from .guidance import (
    Autopilot,
    braking_deceleration,
    braking_distance,
    target_descent_rate,
    touchdown_rate,
)
from .mass import mass_ratio
from .profiles import VehicleProfile, WorldProfile
from .state import FlightState
from .terrain import altitude_at, wrapped_dx
from .types import (
    AbortCheck,
    AbortDecision,
    AbortOutcome,
    AbortTrigger,
    ControlCommand,
    FlightPhase,
    LandingOutcome,
    OrbitAbortStage,
)

logger = logging.getLogger(__name__)


@dataclass
class AbortEvent:
    """One abort decision. outcome is filled in once the flight ends."""
    altitude: float
    phase: FlightPhase
    fuel: float
    vx: float
    vy: float
    decision: AbortDecision
    trigger: AbortTrigger
    timestamp: float
    original_pad_index: Optional[int] = None
    emergency_pad_index: Optional[int] = None
    outcome: AbortOutcome = AbortOutcome.PENDING

    def to_dict(self) -> dict:
        return {
            'altitude': round(self.altitude, C.TELEMETRY_POSITION_DECIMALS),
            'phase': self.phase.value,
            'fuel': round(self.fuel, C.TELEMETRY_POSITION_DECIMALS),
            'velocity': {
                'vx': round(self.vx, C.TELEMETRY_VELOCITY_DECIMALS),
                'vy': round(self.vy, C.TELEMETRY_VELOCITY_DECIMALS),
            },
            'decision': self.decision.value,
            'trigger': self.trigger.value,
            'outcome': self.outcome.value,
            'originalPadIndex': self.original_pad_index,
            'emergencyPadIndex': self.emergency_pad_index,
            'timestamp': round(self.timestamp, C.TELEMETRY_VELOCITY_DECIMALS),
        }


# =============================================================================
# ESTIMATES
# =============================================================================

def net_deceleration(vehicle: VehicleProfile, world: WorldProfile, fuel: float,
                     multiplier: float = 1.0) -> float:
    """Upward acceleration at full throttle, upright, minus gravity."""
    return vehicle.engine.max_thrust * multiplier * mass_ratio(vehicle, fuel) - world.gravity


def landing_fuel_estimate(state: FlightState, altitude: float,
                          vehicle: VehicleProfile, world: WorldProfile) -> float:
    """
    Fuel the autopilot will burn landing from here on the braking profile.

    A vehicle slower than the profile coasts until it meets it; the meeting
    point comes from energy balance between free fall and profile braking.
    From there the profile brakes at a_b down to the final approach, which
    hovers down at the touchdown rate. Horizontal speed is nulled at full
    thrust on top.
    """
    consumption = vehicle.fuel.consumption_rate
    thrust = vehicle.engine.max_thrust * mass_ratio(vehicle, state.fuel)
    brake = braking_deceleration(world, vehicle)
    final_rate = touchdown_rate(world, vehicle)
    g = world.gravity
    if brake <= 0.0 or thrust <= 0.0 or final_rate <= 0.0:
        return float('inf')

    height = max(altitude, 0.0)
    descent = max(state.descent_rate, 0.0)
    if descent >= target_descent_rate(height, brake, final_rate):
        entry_rate = descent
    else:
        meet = ((descent * descent + 2.0 * g * height - final_rate * final_rate)
                / (2.0 * (g + brake)))
        meet = float(np.clip(meet, 0.0, height))
        entry_rate = float(np.sqrt(final_rate * final_rate + 2.0 * brake * meet))

    brake_time = max(entry_rate - final_rate, 0.0) / brake
    brake_throttle = min((g + brake) / thrust, 1.0)
    final_time = min(C.FINAL_APPROACH_ALTITUDE, height) / final_rate
    hover_throttle = min(g / thrust, 1.0)
    lateral_time = abs(state.vx) / thrust
    return consumption * (brake_throttle * brake_time + hover_throttle * final_time
                          + lateral_time)


def impact_speed_estimate(state: FlightState, altitude: float,
                          vehicle: VehicleProfile, world: WorldProfile) -> float:
    """
    Impact speed if the engine brakes at full thrust from now on.

    Limited both by available deceleration and by the fuel left to burn.
    """
    descent = max(state.descent_rate, 0.0)
    decel = net_deceleration(vehicle, world, state.fuel)
    altitude = max(altitude, 0.0)

    residual_sq = descent * descent - 2.0 * decel * altitude
    by_thrust = float(np.sqrt(residual_sq)) if residual_sq > 0.0 else 0.0

    burn_time = state.fuel / max(vehicle.fuel.consumption_rate, C.ZERO_TOLERANCE)
    if decel <= 0.0:
        by_fuel = float(np.sqrt(descent * descent + 2.0 * world.gravity * altitude))
    else:
        brake_time = descent / decel
        if burn_time >= brake_time:
            by_fuel = 0.0
        else:
            # Free fall after the tank runs dry
            v_dry = descent - decel * burn_time
            fallen = descent * burn_time - 0.5 * decel * burn_time ** 2
            remaining = max(altitude - fallen, 0.0)
            by_fuel = float(np.sqrt(v_dry * v_dry + 2.0 * world.gravity * remaining))
    return max(by_thrust, by_fuel)


def orbit_fuel_estimate(state: FlightState, altitude: float,
                        world: WorldProfile) -> float:
    """Conservative fuel estimate for climbing back to orbit."""
    dv_arrest = max(0.0, state.descent_rate * C.ORBIT_DV_ARREST_FACTOR)
    deficit = max(0.0, world.orbital_altitude - altitude)
    dv_climb = np.sqrt(2.0 * world.gravity * deficit) * C.ORBIT_DV_CLIMB_FACTOR
    dv_prograde = max(0.0, world.orbital_velocity - abs(state.vx))
    gravity_losses = (dv_arrest + dv_climb) * C.ORBIT_GRAVITY_LOSS_FRACTION

    total_dv = dv_arrest + dv_climb + dv_prograde + gravity_losses
    burn_time = total_dv / world.max_thrust
    return float(burn_time * world.fuel_consumption * C.ORBIT_FUEL_MARGIN)


def can_reach_orbit(state: FlightState, altitude: float, world: WorldProfile) -> bool:
    """Orbit return is only considered high up and with enough fuel."""
    if altitude < world.orbital_altitude * C.ORBIT_ABORT_MIN_ALTITUDE_FRACTION:
        return False
    return state.fuel >= orbit_fuel_estimate(state, altitude, world)


def find_emergency_pad(state: FlightState, altitude: float, world: WorldProfile,
                       exclude: Optional[int] = None) -> Optional[int]:
    """
    Closest reachable unoccupied pad, working with horizontal momentum.

    A pad is reachable when it lies ahead within the ballistic range plus a
    fuel-dependent manoeuvre allowance, or only slightly behind.
    """
    if world.terrain is None:
        return None

    g = world.gravity
    vy = state.vy
    discriminant = vy * vy + 2.0 * g * max(altitude, 0.0)
    time_to_ground = (vy + np.sqrt(discriminant)) / g if g > 0 else 0.0
    direction = 1.0 if state.vx >= 0 else -1.0
    natural_range = abs(state.vx) * time_to_ground
    reach = (max(natural_range, 0.0) * C.EMERGENCY_PAD_REACH_MARGIN
             + state.fuel / max(world.fuel_consumption, C.ZERO_TOLERANCE)
             * C.EMERGENCY_PAD_FUEL_RANGE)

    best, best_dist = None, float('inf')
    for i, pad in enumerate(world.terrain.pads):
        if pad.occupied or i == exclude:
            continue
        ahead = wrapped_dx(state.x, pad.center, world.terrain) * direction
        if ahead < -C.EMERGENCY_PAD_BEHIND_LIMIT or ahead > reach:
            continue
        if abs(ahead) < best_dist:
            best, best_dist = i, abs(ahead)
    return best


def attitude_hold(target: float, rotation: float) -> float:
    """Proportional rotation input toward a target attitude."""
    error = wrap_angle(target - rotation)
    return float(np.clip(error * C.ABORT_ATTITUDE_KP,
                         -C.MAX_ROTATION_INPUT, C.MAX_ROTATION_INPUT))


# =============================================================================
# MONITOR
# =============================================================================

class AbortMonitor:
    """
    Per-flight abort supervisor.

    Holds the abort-attempt counter, the AbortEvent log and any active
    abort manoeuvre. check() is called every tick with the autopilot's
    command and returns the command to apply.
    """

    def __init__(self, world: WorldProfile, vehicle: VehicleProfile,
                 autopilot: Autopilot, config: SimulationConfig = None):
        if config is None:
            config = create_default_config()
        self.world = world
        self.vehicle = vehicle
        self.autopilot = autopilot
        self.config = config

        self.attempts = 0
        self.events: List[AbortEvent] = []
        self.informational: List[Tuple[float, AbortTrigger]] = []
        self.active: Optional[AbortDecision] = None
        self.orbit_stage: Optional[OrbitAbortStage] = None
        self.orbit_direction = 1.0
        self._trigger_latched = False

    @property
    def available(self) -> bool:
        caps = self.vehicle.abort
        return caps.abort_system and self.attempts < caps.max_abort_attempts

    # ── triggers ────────────────────────────────────────────────────────

    def evaluate_trigger(self, state: FlightState, altitude: float) -> Optional[AbortTrigger]:
        """Return the first trigger condition that holds, or None."""
        if state.phase != FlightPhase.DESCENT:
            return None
        if state.fuel <= 0.0 or altitude <= self.config.abort_min_altitude:
            return None

        needed = landing_fuel_estimate(state, altitude, self.vehicle, self.world)
        if state.fuel < self.config.abort_fuel_margin * needed:
            return AbortTrigger.LOW_FUEL

        if state.descent_rate > self.config.abort_descent_rate:
            decel = net_deceleration(self.vehicle, self.world, state.fuel)
            stop = braking_distance(state.descent_rate, decel)
            if stop > altitude * self.config.abort_stopping_margin:
                return AbortTrigger.DESCENT_RATE

        impact = impact_speed_estimate(state, altitude, self.vehicle, self.world)
        if impact > self.vehicle.structure.survivable_crash_velocity:
            return AbortTrigger.UNAVOIDABLE_CRASH

        return None

    def check(self, state: FlightState, command: ControlCommand) -> Tuple[ControlCommand, AbortCheck]:
        """
        Supervise one tick.

        Args:
            state: Current flight state
            command: Autopilot command for this tick

        Returns:
            (command to apply, AbortCheck)
        """
        result: AbortCheck = {
            'triggered': False,
            'trigger': None,
            'override': False,
            'decision': None,
            'informational': False,
            'phase': None,
        }
        altitude = altitude_at(state.x, state.y, self.world)

        if self.active is None:
            trigger = self.evaluate_trigger(state, altitude)
            rising = trigger is not None and not self._trigger_latched
            self._trigger_latched = trigger is not None

            if rising:
                result['triggered'] = True
                result['trigger'] = trigger
                if self.available:
                    result['decision'] = self._decide(state, altitude, trigger)
                else:
                    self.informational.append((state.t, trigger))
                    result['informational'] = True
                    logger.warning(f"Abort trigger {trigger.value} at t={state.t:.2f}s "
                                   f"recorded without override (abort "
                                   f"{'exhausted' if self.vehicle.abort.abort_system else 'unavailable'})")

        if self.active == AbortDecision.ORBIT:
            command, phase = self._orbit_guidance(state)
            result['override'] = True
            result['phase'] = phase
        elif self.active == AbortDecision.BRACE:
            command = self._brace_guidance(state)
            result['override'] = True

        return command, result

    # ── decisions ───────────────────────────────────────────────────────

    def _decide(self, state: FlightState, altitude: float,
                trigger: AbortTrigger) -> AbortDecision:
        original = self.autopilot.target_pad_index
        emergency = None
        if can_reach_orbit(state, altitude, self.world):
            decision = AbortDecision.ORBIT
        else:
            emergency = find_emergency_pad(state, altitude, self.world, exclude=original)
            decision = AbortDecision.RETARGET if emergency is not None else AbortDecision.BRACE

        self.attempts += 1
        event = AbortEvent(
            altitude=altitude,
            phase=state.phase,
            fuel=state.fuel,
            vx=state.vx,
            vy=state.vy,
            decision=decision,
            trigger=trigger,
            timestamp=state.t,
            original_pad_index=original,
            emergency_pad_index=emergency,
        )
        self.events.append(event)
        logger.info(f"ABORT {decision.value.upper()} ({trigger.value}) at t={state.t:.2f}s: "
                    f"alt={altitude:.1f}, fuel={state.fuel:.1f}, "
                    f"v=({state.vx:.1f}, {state.vy:.1f}), attempt {self.attempts}")

        if decision == AbortDecision.RETARGET:
            self.autopilot.force_land(emergency)
        elif decision == AbortDecision.ORBIT:
            self.active = decision
            self.orbit_stage = OrbitAbortStage.ARREST_DESCENT
            # Orbit travel direction, fixed for the whole manoeuvre
            self.orbit_direction = 1.0 if self.world.orbital_velocity >= 0.0 else -1.0
        else:
            self.active = decision
        return decision

    # ── abort guidance ──────────────────────────────────────────────────

    def _orbit_guidance(self, state: FlightState) -> Tuple[ControlCommand, Optional[FlightPhase]]:
        multiplier = self.vehicle.abort.abort_thrust_multiplier

        def burn(target: float) -> ControlCommand:
            aligned = abs(wrap_angle(target - state.rotation)) < C.ABORT_ALIGN_TOLERANCE
            throttle = 1.0 if aligned else C.MIN_BURN_THROTTLE
            return ControlCommand(throttle, attitude_hold(target, state.rotation), multiplier)

        if self.orbit_stage == OrbitAbortStage.ARREST_DESCENT:
            if state.vy >= 0.0:
                logger.debug(f"Orbit abort: descent arrested at t={state.t:.2f}s")
                self.orbit_stage = OrbitAbortStage.PROGRADE_BURN
            return burn(0.0), FlightPhase.ABORTED

        if self.orbit_stage == OrbitAbortStage.PROGRADE_BURN:
            world = self.world
            direction = self.orbit_direction
            prograde = direction * np.pi / 2
            low, mid, high = C.PROGRADE_TILT_FRACTIONS
            height_left = world.orbital_altitude - state.y
            # Climb rate that coasts up exactly to orbital altitude
            apex_rate = float(np.sqrt(2.0 * world.gravity * max(height_left, 0.0)))
            needs_speed = (state.vx * direction
                           < abs(world.orbital_velocity) * C.ORBIT_SPEED_FRACTION)

            if height_left > C.ORBIT_ALTITUDE_TOLERANCE and state.vy < apex_rate:
                if not needs_speed:
                    target = 0.0
                elif state.vy < C.PROGRADE_CLIMB_RATE:
                    target = prograde * low
                else:
                    target = prograde * mid
                return burn(target), FlightPhase.ABORTED
            if needs_speed:
                return burn(prograde * high), FlightPhase.ABORTED
            if abs(state.vy) > C.ORBIT_VERTICAL_SPEED_TOLERANCE:
                # Coasting up to the apex
                return (ControlCommand(0.0, attitude_hold(prograde, state.rotation), multiplier),
                        FlightPhase.ABORTED)
            return self._orbit_achieved(state), FlightPhase.ORBIT

        return ControlCommand(), None

    def _orbit_achieved(self, state: FlightState) -> ControlCommand:
        self.orbit_stage = OrbitAbortStage.STABILIZED
        self.active = None
        self._trigger_latched = False
        for event in self.events:
            if event.decision == AbortDecision.ORBIT and event.outcome == AbortOutcome.PENDING:
                event.outcome = AbortOutcome.ORBIT_ACHIEVED
        logger.info(f"Orbit abort complete at t={state.t:.2f}s: "
                    f"y={state.y:.1f}, vx={state.vx:.1f}")
        return ControlCommand(0.0, 0.0)

    def _brace_guidance(self, state: FlightState) -> ControlCommand:
        descending = state.descent_rate > C.BRACE_DESCENT_RATE
        if state.fuel > 0.0 and descending:
            throttle = 1.0
        else:
            throttle = self.autopilot.hold_throttle()
        return ControlCommand(throttle, attitude_hold(0.0, state.rotation))

    # ── resolution ──────────────────────────────────────────────────────

    def resolve_outcomes(self, landing: LandingOutcome):
        """Fill in PENDING outcomes once the flight has touched down."""
        for event in self.events:
            if event.outcome != AbortOutcome.PENDING:
                continue
            if event.decision == AbortDecision.ORBIT or landing == LandingOutcome.CRASHED:
                event.outcome = AbortOutcome.CRASHED
            elif event.decision == AbortDecision.BRACE:
                event.outcome = AbortOutcome.LANDED_DAMAGED
                if landing == LandingOutcome.SUCCESS:
                    logger.info(f"Brace at t={event.timestamp:.2f}s resolved "
                                f"{event.outcome.value}; flight landing outcome "
                                f"{landing.value}")
            elif landing == LandingOutcome.SUCCESS:
                event.outcome = AbortOutcome.LANDED_SUCCESS
            else:
                event.outcome = AbortOutcome.LANDED_DAMAGED
        self.active = None
