"""
Descent Landing Simulation - Autopilot Guidance

This module implements the landing autopilot:
- Mode state machine (off, stabilize, land, demo)
- Target pad selection
- Deorbit sequencing (wait, align retrograde, braking burn)
- Coast with lateral correction toward the pad
- Powered descent with per-axis PD loops:
    vertical   -> throttle tracking a constant-deceleration braking profile
    horizontal -> attitude target steering toward the pad center
    attitude   -> rotation input tracking the attitude target

The braking profile is v(h) = sqrt(v_td^2 + 2 a_b (h - h_final)): it asks for
a fixed share of the available deceleration all the way down, so the coast
ends exactly where the profile meets the current descent rate.

Mode changes come from outside (set_mode), except force_land() which the
abort system uses to hand control back with a new target.
"""

import logging
from typing import Optional

import numpy as np

from . import constants as C
from .config import SimulationConfig, create_default_config
from .control import (
    clamp_throttle,
    compose_gains,
    pd_control_law,
    rotation_command,
    saturate,
    wrap_angle,
)
from .dynamics import EngineState
from .mass import mass_ratio
from .profiles import VehicleProfile, WorldProfile
from .sensors import GuidanceSensor
from .state import FlightState
from .terrain import altitude_at, get_pad, wrapped_dx
from .types import (
    ApproachMode,
    AutopilotMode,
    ControlCommand,
    FlightPhase,
    GuidanceOutput,
    GuidancePhase,
    ZERO_COMMAND,
)

logger = logging.getLogger(__name__)


# =============================================================================
# PROFILES AND SCHEDULES
# =============================================================================

def braking_deceleration(world: WorldProfile, vehicle: VehicleProfile) -> float:
    """Deceleration budget of the braking profile (units/s^2, full-tank thrust)."""
    engine = vehicle.engine
    net = engine.max_thrust * engine.throttle_max - world.gravity
    return C.BRAKING_DECEL_FRACTION * max(net, 0.0)


def touchdown_rate(world: WorldProfile, vehicle: VehicleProfile) -> float:
    """Descent rate the final approach holds, below every touchdown limit."""
    limit = min(world.max_landing_velocity, vehicle.landing_gear.max_impact_velocity)
    return C.TOUCHDOWN_VELOCITY_FRACTION * limit


def target_descent_rate(altitude: float, braking_decel: float,
                        final_rate: float) -> float:
    """
    Desired descent rate (positive down) for an altitude.

    Follows v^2 = v_td^2 + 2 a_b (h - h_final): a vehicle on the profile
    that brakes at a_b arrives at the final approach altitude at v_td,
    which it then holds to the ground. Monotonic in altitude.

    Args:
        altitude: Height above the surface (units)
        braking_decel: Profile deceleration a_b (units/s^2)
        final_rate: Touchdown descent rate v_td (units/s)

    Returns:
        Target descent rate (units/s)
    """
    height = max(altitude - C.FINAL_APPROACH_ALTITUDE, 0.0)
    return float(np.sqrt(final_rate * final_rate + 2.0 * max(braking_decel, 0.0) * height))


def tilt_limit(altitude: float) -> float:
    """Largest attitude the horizontal loop may request at this altitude."""
    for floor, limit in C.TILT_LIMIT_SCHEDULE:
        if altitude > floor:
            return limit
    return C.TILT_LIMIT_FLOOR


def deorbit_throttle(horizontal_speed: float) -> float:
    for floor, throttle in C.DEORBIT_THROTTLE_SCHEDULE:
        if horizontal_speed > floor:
            return throttle
    return C.DEORBIT_THROTTLE_FLOOR


def deorbit_stop_distance(speed: float, acceleration: float) -> float:
    """
    Horizontal distance the deorbit burn covers before it completes.

    Integrates the throttle schedule band by band at full-throttle
    acceleration `acceleration`, down to DEORBIT_END_SPEED.
    """
    if acceleration <= 0.0:
        return float('inf')
    bands = C.DEORBIT_THROTTLE_SCHEDULE + ((C.DEORBIT_END_SPEED, C.DEORBIT_THROTTLE_FLOOR),)
    distance = 0.0
    for floor, throttle in bands:
        if speed > floor:
            distance += (speed * speed - floor * floor) / (2.0 * acceleration * throttle)
            speed = floor
    return distance


def braking_distance(speed: float, deceleration: float) -> float:
    """Distance needed to stop from speed at constant deceleration."""
    if deceleration <= 0.0:
        return float('inf')
    return speed * speed / (2.0 * deceleration)


def forward_distance(state: FlightState, target_x: float,
                     world: WorldProfile) -> float:
    """Distance to target_x measured along the direction of travel."""
    dx = wrapped_dx(state.x, target_x, world.terrain)
    if state.vx < 0:
        dx = -dx
    if world.terrain is not None and dx < 0:
        dx += world.terrain.width
    return dx


def select_target_pad(state: FlightState, world: WorldProfile,
                      min_distance: float = 0.0,
                      prefer_high_multiplier: bool = False) -> Optional[int]:
    """
    Choose a landing pad.

    Unoccupied pads at least min_distance ahead are preferred, closest
    first (or best distance per multiplier point). If none is far enough
    ahead, the closest unoccupied pad ahead is used.

    Returns:
        Pad index, or None if the world has no free pads
    """
    if world.terrain is None:
        return None

    candidates = []
    for i, pad in enumerate(world.terrain.pads):
        if pad.occupied:
            continue
        distance = forward_distance(state, pad.center, world)
        score = distance / max(pad.multiplier, 1) if prefer_high_multiplier else distance
        candidates.append((distance >= min_distance, score, distance, i))

    if not candidates:
        return None
    reachable = [c for c in candidates if c[0]]
    pool = reachable if reachable else candidates
    return min(pool, key=lambda c: (c[1], c[2]))[3]


# =============================================================================
# AUTOPILOT
# =============================================================================

class Autopilot:
    """Per-flight autopilot. One instance per session."""

    def __init__(self, world: WorldProfile, vehicle: VehicleProfile, seed: float,
                 config: SimulationConfig = None,
                 mode: AutopilotMode = AutopilotMode.LAND,
                 target_pad: Optional[int] = None,
                 engine: Optional[EngineState] = None):
        """
        Args:
            world: World profile
            vehicle: Vehicle profile
            seed: Session seed (drives guidance sensor error)
            config: Simulation config
            mode: Initial autopilot mode
            target_pad: Landing pad index, or None to choose automatically
            engine: The session's engine state, read to avoid spending relights
        """
        if config is None:
            config = create_default_config()
        self.world = world
        self.vehicle = vehicle
        self.config = config
        self.seed = seed
        self.engine = engine
        self.approach_mode = ApproachMode(config.approach_mode)
        self.mode = mode
        self.target_pad_index = target_pad
        self.phase: Optional[GuidancePhase] = None
        self.deorbit_complete = False
        self.last_output: Optional[GuidanceOutput] = None
        self.braking_decel = braking_deceleration(world, vehicle)
        self.touchdown_rate = touchdown_rate(world, vehicle)
        self._prev_vy: Optional[float] = None
        self._accel_filtered = 0.0
        self._configure()

    def _configure(self):
        demo = self.mode == AutopilotMode.DEMO
        gain_scale = self.config.demo_gain_scale if demo else 1.0
        noise_scale = self.config.demo_noise_scale if demo else 1.0
        self.gains = compose_gains(self.world, self.vehicle, gain_scale)
        self.sensor = GuidanceSensor(
            self.seed,
            guidance_precision=self.vehicle.avionics.guidance_precision,
            altitude_amplitude=self.config.altitude_noise_amplitude,
            attitude_amplitude=self.config.attitude_noise_amplitude,
            noise_scale=noise_scale,
        )

    def set_mode(self, mode: AutopilotMode):
        """Switch autopilot mode (host input)."""
        if mode != self.mode:
            logger.info(f"Autopilot mode {self.mode.value} -> {mode.value}")
        self.mode = mode
        self._prev_vy = None
        self._accel_filtered = 0.0
        self._configure()

    def force_land(self, pad_index: Optional[int]):
        """Engage landing guidance on a new pad (abort retarget)."""
        logger.info(f"Autopilot forced to land on pad {pad_index} "
                    f"(was {self.target_pad_index})")
        self.target_pad_index = pad_index
        if self.mode not in (AutopilotMode.LAND, AutopilotMode.DEMO):
            self.mode = AutopilotMode.LAND
            self._configure()

    def target_descent_rate(self, altitude: float) -> float:
        """This vehicle's braking-profile rate at an altitude."""
        return target_descent_rate(altitude, self.braking_decel, self.touchdown_rate)

    def hold_throttle(self) -> float:
        """
        Throttle for phases that want no thrust.

        A lit engine with no relights left would go inert at shutdown, so it
        is kept burning at the minimum instead.
        """
        engine = self.engine
        if engine is not None and engine.lit and engine.relights_remaining < 1:
            return C.MIN_BURN_THROTTLE
        return 0.0

    def ensure_target(self, state: FlightState) -> Optional[int]:
        """Select a target pad if none has been chosen yet."""
        if self.target_pad_index is None:
            thrust = self.vehicle.engine.max_thrust
            if self.approach_mode == ApproachMode.BOOSTBACK:
                decel = thrust * C.BOOSTBACK_THROTTLE
            else:
                decel = thrust * C.TARGET_SELECT_DECEL_FRACTION
            speed = abs(state.vx)
            min_distance = braking_distance(speed, decel) + speed * C.TARGET_LEAD_TIME
            self.target_pad_index = select_target_pad(
                state, self.world, min_distance,
                prefer_high_multiplier=self.config.prefer_high_multiplier)
        return self.target_pad_index

    def compute(self, state: FlightState, dt: float) -> ControlCommand:
        """
        Compute this tick's command.

        Args:
            state: Current flight state
            dt: Time step (s)

        Returns:
            ControlCommand for the integrator
        """
        if self.mode == AutopilotMode.OFF:
            self._record(GuidancePhase.COAST if state.has_burned else None, 0.0,
                         state.y, 0.0, state.rotation)
            return ZERO_COMMAND

        if self.mode == AutopilotMode.STABILIZE:
            rotation = saturate(
                pd_control_law(0.0, -state.angular_velocity, self.gains['attitude']),
                C.MAX_ROTATION_INPUT)
            self._record(None, 0.0, state.y, 0.0, state.rotation)
            return ControlCommand(throttle=0.0, rotation=rotation)

        return self._land(state, dt)

    # ── landing guidance ────────────────────────────────────────────────

    def _land(self, state: FlightState, dt: float) -> ControlCommand:
        self.ensure_target(state)
        altitude = altitude_at(state.x, state.y, self.world)
        sensed_alt = self.sensor.measure_altitude(altitude, state.t)
        sensed_rot = self.sensor.measure_rotation(state.rotation, state.t)

        pad = get_pad(self.world, self.target_pad_index)
        lateral = wrapped_dx(state.x, pad.center, self.world.terrain) if pad else 0.0

        # Measured vertical acceleration, low-pass filtered for the D term
        if self._prev_vy is not None and dt > 0.0:
            measured = (state.vy - self._prev_vy) / dt
            self._accel_filtered += C.ACCEL_FILTER_ALPHA * (measured - self._accel_filtered)

        rate_target = 0.0
        if state.phase == FlightPhase.ORBIT:
            throttle, tilt = self._orbit_commands(state, sensed_rot)
        elif self.phase == GuidancePhase.DEORBIT_BURN and not self._deorbit_done(
                state, sensed_alt):
            if self.approach_mode == ApproachMode.BOOSTBACK:
                throttle = self._boostback_throttle(state)
            else:
                throttle = deorbit_throttle(abs(state.vx))
            tilt = self._retrograde(state)
        else:
            throttle, tilt, rate_target = self._descent_commands(state, sensed_alt, lateral)

        self._prev_vy = state.vy
        rotation = rotation_command(tilt, sensed_rot, state.angular_velocity,
                                    self.gains['attitude'])
        self._record(self.phase, rate_target, sensed_alt, lateral, tilt)
        return ControlCommand(throttle=throttle, rotation=rotation)

    @staticmethod
    def _retrograde(state: FlightState) -> float:
        return -np.pi / 2 if state.vx > 0 else np.pi / 2

    def _available_thrust(self, fuel: float) -> float:
        return self.vehicle.engine.max_thrust * mass_ratio(self.vehicle, fuel)

    def _orbit_commands(self, state: FlightState, sensed_rot: float) -> tuple:
        """Hold retrograde and fire the braking burn at the right point."""
        self.deorbit_complete = False
        retrograde = self._retrograde(state)
        speed = abs(state.vx)

        pad = get_pad(self.world, self.target_pad_index)
        ahead = forward_distance(state, pad.center, self.world) if pad else 0.0

        thrust = self._available_thrust(state.fuel)
        if self.approach_mode == ApproachMode.BOOSTBACK:
            burn_at = braking_distance(speed, thrust * C.BOOSTBACK_THROTTLE)
        else:
            burn_at = deorbit_stop_distance(speed, thrust)

        aligned = abs(wrap_angle(sensed_rot - retrograde)) < C.ORBIT_ALIGN_TOLERANCE
        if ahead <= burn_at and aligned:
            self._set_phase(GuidancePhase.DEORBIT_BURN, state)
            return deorbit_throttle(speed), retrograde
        if ahead <= burn_at:
            self._set_phase(GuidancePhase.ORBIT_ALIGN, state)
        else:
            self._set_phase(GuidancePhase.ORBIT_WAIT, state)
        return 0.0, retrograde

    def _boostback_throttle(self, state: FlightState) -> float:
        """Throttle for the deceleration that stops the vehicle over the pad."""
        pad = get_pad(self.world, self.target_pad_index)
        ahead = forward_distance(state, pad.center, self.world) if pad else 0.0
        speed = abs(state.vx)
        required = speed * speed / (2.0 * max(ahead, 1.0))
        thrust = self._available_thrust(state.fuel)
        if thrust <= 0.0:
            return 1.0
        return float(np.clip(required / thrust, C.BOOSTBACK_THROTTLE_FLOOR, 1.0))

    def _deorbit_done(self, state: FlightState, sensed_alt: float) -> bool:
        done = (abs(state.vx) < C.DEORBIT_END_SPEED
                or state.descent_rate >= self.target_descent_rate(sensed_alt))
        if done and not self.deorbit_complete:
            logger.info(f"Deorbit burn complete at t={state.t:.2f}s: "
                        f"vx={state.vx:.1f}, vy={state.vy:.1f}")
            self.deorbit_complete = True
        return done

    def _descent_commands(self, state: FlightState, sensed_alt: float,
                          lateral: float) -> tuple:
        """Coast until the braking profile is reached, then track it down."""
        self.deorbit_complete = True
        rate_target = self.target_descent_rate(sensed_alt)
        descent = state.descent_rate
        burning = self.phase in (GuidancePhase.TERMINAL_BURN, GuidancePhase.TOUCHDOWN)
        if (not burning and descent < rate_target
                and sensed_alt > C.COAST_MIN_ALTITUDE):
            self._set_phase(GuidancePhase.COAST, state)
            throttle, tilt = self._coast_commands(state, sensed_alt, lateral)
            return throttle, tilt, rate_target

        if not burning:
            logger.info(f"Terminal burn start at t={state.t:.2f}s: "
                        f"alt={sensed_alt:.1f}, descent={descent:.1f}, "
                        f"profile={rate_target:.1f}, fuel={state.fuel:.1f}")
        if sensed_alt > C.TOUCHDOWN_ALTITUDE:
            self._set_phase(GuidancePhase.TERMINAL_BURN, state)
        else:
            self._set_phase(GuidancePhase.TOUCHDOWN, state)

        # Vertical loop: profile feed-forward plus PD on rate, with the
        # derivative taken from the filtered measured acceleration
        ref_accel = self.braking_decel * descent / rate_target if rate_target > 0.0 else 0.0
        error = -rate_target - state.vy
        error_rate = ref_accel - self._accel_filtered
        accel = ref_accel + C.VERTICAL_ACCEL_SCALE * pd_control_law(
            error, error_rate, self.gains['vertical'])

        available = self._available_thrust(state.fuel)
        cos_r = np.cos(state.rotation)
        if available <= 0.0:
            throttle = 1.0
        else:
            throttle = (self.world.gravity + accel) / (available * max(cos_r, C.HOVER_COS_FLOOR))
        throttle = max(clamp_throttle(throttle), C.MIN_BURN_THROTTLE)
        if cos_r < C.HOVER_COS_FLOOR:
            # Lying too far over for thrust to help; keep the engine lit only
            throttle = C.MIN_BURN_THROTTLE

        # Horizontal loop
        if self.phase == GuidancePhase.TOUCHDOWN:
            tilt = 0.0
        else:
            tilt = saturate(
                pd_control_law(lateral, -state.vx, self.gains['horizontal']),
                tilt_limit(sensed_alt))

        return throttle, tilt, rate_target

    def _coast_commands(self, state: FlightState, sensed_alt: float,
                        lateral: float) -> tuple:
        """
        Lateral correction while coasting.

        Steers on the predicted miss distance at ground contact, blended
        toward the present error as altitude runs out, and only spends
        fuel when the miss or drift is large and the attitude is there.
        """
        descent = state.descent_rate
        if sensed_alt > 0.0 and descent > 0.0:
            time_to_go = sensed_alt / descent
        else:
            time_to_go = C.COAST_DEFAULT_TIME_TO_GO
        predicted = lateral - state.vx * time_to_go
        blend = min(1.0, sensed_alt / C.COAST_BLEND_ALTITUDE)
        effective = predicted * blend + lateral * (1.0 - blend)

        limit = C.COAST_TILT_LIMIT_FAR if abs(effective) > C.COAST_FAR_ERROR else C.COAST_TILT_LIMIT
        tilt = saturate(effective * C.COAST_POSITION_GAIN - state.vx * C.COAST_VELOCITY_GAIN, limit)

        needs_correction = (abs(state.vx) > C.COAST_CORRECTION_SPEED
                            or abs(effective) > C.COAST_CORRECTION_ERROR)
        aligned = abs(state.rotation - tilt) < C.COAST_ALIGN_TOLERANCE

        throttle = self.hold_throttle()
        if needs_correction and aligned:
            correction = (abs(effective) * C.COAST_THROTTLE_POSITION_GAIN
                          + abs(state.vx) * C.COAST_THROTTLE_VELOCITY_GAIN)
            throttle = max(throttle, min(C.COAST_MAX_THROTTLE, correction))
        return throttle, tilt

    def _set_phase(self, phase: GuidancePhase, state: FlightState):
        if phase != self.phase:
            logger.debug(f"Guidance phase {self.phase.value if self.phase else None} "
                         f"-> {phase.value} at t={state.t:.2f}s")
            self.phase = phase

    def _record(self, phase, rate_target, sensed_alt, lateral, tilt):
        self.last_output = {
            'mode': self.mode,
            'phase': phase,
            'target_pad_index': self.target_pad_index,
            'target_descent_rate': rate_target,
            'sensed_altitude': sensed_alt,
            'lateral_error': lateral,
            'desired_tilt': tilt,
        }
