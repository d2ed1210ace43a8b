"""
Descent Landing Simulation - Flight Session

This module implements the per-flight simulation loop with:
- A session object owning the seed, autopilot, abort monitor, engine and
  recorder for exactly one flight
- Fixed execution order per tick:
    environment -> autopilot -> abort monitor -> integrator
    -> touchdown check -> telemetry
- Cancellation and timeout producing reports tagged incomplete
- Logging framework for diagnostics

Coordinates are y-up; altitude is measured above the local surface.
"""

import logging
import time
from typing import Optional

from .abort import AbortMonitor
from .atmosphere import effect_at, new_session_seed
from .config import SimulationConfig, create_default_config
from .dynamics import EngineState
from .guidance import Autopilot
from .integrators import integrate
from .landing import check_touchdown
from .profiles import VehicleProfile, WorldProfile
from .state import FlightState, create_initial_state
from .telemetry import FlightReport, TelemetryRecorder
from .terrain import altitude_at
from .thermal import ThermalState, entry_heating_intensity
from .types import (
    AutopilotMode,
    ControlCommand,
    EnvironmentEffect,
    FlightPhase,
    LandingOutcome,
    TouchdownResult,
    ZERO_COMMAND,
    ZERO_EFFECT,
)
from .validation import validate_state, validate_vehicle, validate_world

# Configure module logger
logger = logging.getLogger(__name__)


class FlightSession:
    """
    One flight from orbit to a terminal phase.

    Profiles are validated before anything else happens; a session never
    simulates with an invalid profile. The turbulence seed is fixed at
    construction and read-only for the rest of the flight. Start a new
    session to reset.
    """

    def __init__(self, world: WorldProfile, vehicle: Optional[VehicleProfile] = None,
                 config: SimulationConfig = None, seed: Optional[float] = None,
                 mode: AutopilotMode = AutopilotMode.LAND,
                 target_pad: Optional[int] = None):
        """
        Args:
            world: World profile
            vehicle: Vehicle profile (default: baseline craft from the world)
            config: Simulation config (default created if None)
            seed: Turbulence seed; falls back to config.seed, then a fresh draw
            mode: Initial autopilot mode
            target_pad: Landing pad index, or None to choose automatically

        Raises:
            ValidationError: If either profile is invalid
        """
        if config is None:
            config = create_default_config()
        if vehicle is None:
            vehicle = VehicleProfile.from_world(world)

        validate_world(world)
        validate_vehicle(vehicle)

        if seed is None:
            seed = config.seed if config.seed is not None else new_session_seed()

        self.world = world
        self.vehicle = vehicle
        self.config = config
        self.seed = float(seed)

        self.state = create_initial_state(world, vehicle, config)
        self.initial_state = self.state.copy()
        self.engine = EngineState(vehicle.engine)
        self.thermal = ThermalState(vehicle.structure)
        self.autopilot = Autopilot(world, vehicle, self.seed, config, mode, target_pad,
                                   engine=self.engine)
        self.abort_monitor = AbortMonitor(world, vehicle, self.autopilot, config)
        self.recorder = TelemetryRecorder(world, keep_samples=config.record_telemetry)

        self.initial_target_pad = self.autopilot.ensure_target(self.state)
        self.touchdown: Optional[TouchdownResult] = None
        self.last_effect: EnvironmentEffect = ZERO_EFFECT
        self.last_command: ControlCommand = ZERO_COMMAND
        self.steps = 0
        self.report: Optional[FlightReport] = None
        self._last_print_time = 0.0

        self.recorder.record(self.state, self.altitude)

        logger.info(f"Session start: world={world.name}, vehicle={vehicle.name}, "
                    f"mode={mode.value}, seed={self.seed:.3f}, "
                    f"target pad={self.initial_target_pad}")
        logger.debug(f"Initial state: {self.state}")

    @property
    def altitude(self) -> float:
        return altitude_at(self.state.x, self.state.y, self.world)

    @property
    def finished(self) -> bool:
        return self.report is not None or self.state.is_terminal

    def tick(self) -> FlightState:
        """
        Advance the flight by one fixed tick.

        Returns:
            The new flight state (unchanged once the flight is terminal)
        """
        if self.finished:
            return self.state

        dt = self.config.dt
        state = self.state

        # Environment
        effect = effect_at(altitude_at(state.x, state.y, self.world), state.vx, state.vy,
                           self.world.atmosphere, state.t, self.seed)

        # Autopilot, then abort supervision
        command = self.autopilot.compute(state, dt)
        command, check = self.abort_monitor.check(state, command)

        # Integrate
        new = integrate(state, self.vehicle, self.world, command, effect,
                        self.engine, dt, self.config.integrator)

        if check['phase'] is not None and new.phase != check['phase']:
            logger.info(f"Phase {new.phase.value} -> {check['phase'].value} "
                        f"at t={new.t:.2f}s (abort)")
            new.phase = check['phase']
        if new.phase == FlightPhase.ORBIT:
            new.vy = 0.0

        heating = entry_heating_intensity(new.speed, effect.density, self.world.atmosphere)
        self.thermal.update(heating, dt)

        validate_state(new, self.vehicle)

        # Ground contact
        touchdown = check_touchdown(new, self.vehicle, self.world)
        if touchdown.contact:
            new.y = max(new.y, touchdown.surface_height)
            new.thrust = 0.0
            new.phase = (FlightPhase.CRASHED if touchdown.outcome == LandingOutcome.CRASHED
                         else FlightPhase.LANDED)
            self.touchdown = touchdown
            self.abort_monitor.resolve_outcomes(touchdown.outcome)

        self.state = new
        self.last_effect = effect
        self.last_command = command
        self.steps += 1
        self.recorder.record(new, self.altitude, heating)

        if self.config.verbose and new.t - self._last_print_time >= self.config.status_interval:
            _print_status(new, self.altitude, self.autopilot)
            self._last_print_time = new.t

        return new

    def run(self) -> FlightReport:
        """
        Tick until touchdown or config.max_time.

        Returns:
            FlightReport (incomplete, outcome None, if time ran out)
        """
        if self.report is not None:
            return self.report

        if self.config.verbose:
            print("\n" + "=" * 80)
            print(f"DESCENT SIMULATION | {self.world.name} | {self.vehicle.name} | "
                  f"dt={self.config.dt:.4f}s | seed={self.seed:.3f}")
            print("=" * 80)
            print(f"{'Time (s)':^10} | {'Alt':^10} | {'Speed':^10} | {'Fuel':^10} | {'Phase':<20}")
            print("-" * 80)

        start_time = time.time()
        while not self.state.is_terminal:
            if self.state.t >= self.config.max_time:
                logger.warning(f"Flight timed out at t={self.state.t:.2f}s "
                               f"(max_time={self.config.max_time}s)")
                return self._finish(incomplete=True, elapsed=time.time() - start_time)
            self.tick()

        return self._finish(incomplete=False, elapsed=time.time() - start_time)

    def cancel(self) -> FlightReport:
        """
        Abandon the flight at the current tick boundary.

        Returns:
            FlightReport tagged incomplete; a cancelled flight is never
            classified as landed or crashed.
        """
        if self.report is not None:
            return self.report
        logger.info(f"Flight cancelled at t={self.state.t:.2f}s")
        return self._finish(incomplete=True)

    def _finish(self, incomplete: bool, elapsed: float = 0.0) -> FlightReport:
        touchdown = None if incomplete else self.touchdown
        autopilot = self.autopilot
        landing_mode = autopilot.mode in (AutopilotMode.LAND, AutopilotMode.DEMO)

        self.report = self.recorder.finalize(
            self.initial_state,
            self.state.copy(),
            outcome=touchdown.outcome if touchdown else None,
            failure_reason=touchdown.failure_reason if touchdown else None,
            mode=autopilot.mode,
            approach_mode=autopilot.approach_mode if landing_mode else None,
            target_pad_index=autopilot.target_pad_index,
            initial_target_pad=self.initial_target_pad,
            landed_pad_index=touchdown.landed_pad_index if touchdown else None,
            terminal_altitude=self.altitude,
            abort_events=tuple(self.abort_monitor.events),
            abort_attempts=self.abort_monitor.attempts,
            seed=self.seed,
            incomplete=incomplete,
            heat_shield_remaining=self.thermal.shield_remaining,
            vehicle_name=self.vehicle.name,
        )
        _log_completion(self.report, self.steps, elapsed, self.config.verbose)
        return self.report


def run_flight(world: WorldProfile, vehicle: Optional[VehicleProfile] = None,
               config: SimulationConfig = None, seed: Optional[float] = None,
               mode: AutopilotMode = AutopilotMode.LAND,
               target_pad: Optional[int] = None) -> FlightReport:
    """
    Run one complete flight.

    Args:
        world: World profile
        vehicle: Vehicle profile (default: baseline craft from the world)
        config: SimulationConfig instance. If None a default is created.
        seed: Turbulence seed (default: config.seed, then a fresh draw)
        mode: Autopilot mode
        target_pad: Landing pad index, or None to choose automatically

    Returns:
        FlightReport
    """
    session = FlightSession(world, vehicle, config=config, seed=seed,
                            mode=mode, target_pad=target_pad)
    return session.run()


def _print_status(state: FlightState, altitude: float, autopilot: Autopilot):
    """Print a formatted status row."""
    phase = autopilot.phase.value if autopilot.phase else state.phase.value
    msg = (f"{state.t:10.1f} | {altitude:10.1f} | "
           f"{state.speed:10.1f} | {state.fuel:10.1f} | {phase:<15}")
    print(msg)
    logger.info(msg)


def _log_completion(report: FlightReport, steps: int, elapsed: float, verbose: bool):
    """Log and print flight statistics."""
    logger.info(f"Flight complete: {steps} steps in {elapsed:.2f}s - {report.summary()}")

    if verbose:
        outcome = report.outcome.value.upper() if report.outcome else "INCOMPLETE"
        print("-" * 80)
        print(f"FLIGHT {outcome}")
        print("-" * 80)
        if report.failure_reason:
            print(f"Reason:         {report.failure_reason.value}")
        print(f"Duration:       {report.duration:.2f} s")
        print(f"Burn Time:      {report.burn_time:.2f} s")
        print(f"Fuel Used:      {report.fuel_used:.1f}")
        print(f"Max Speed:      {report.max_speed:.1f}")
        print(f"Max Gs:         {report.max_gs:.2f}")
        if report.vertical_speed_at_touchdown is not None:
            print(f"Touchdown:      v={report.vertical_speed_at_touchdown:.2f} "
                  f"h={report.horizontal_speed_at_touchdown:.2f} "
                  f"angle={report.angle_at_touchdown:.3f}")
        if report.landed_pad_index is not None:
            print(f"Landed Pad:     {report.landed_pad_index} "
                  f"(x{report.landed_pad_multiplier})")
        print(f"Aborts:         {report.abort_attempts}")
        print("-" * 80)
        print(f"Steps:       {steps:,}")
        print(f"Wall Time:   {elapsed:.2f} s")
        print("=" * 80)
