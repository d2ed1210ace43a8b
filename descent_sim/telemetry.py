"""
Descent Landing Simulation - Telemetry Recorder

This module implements the flight telemetry stream:
- One TelemetrySample per tick, append-only
- Running extrema maintained from the stream itself
- FlightReport assembly at the end of a flight
- CSV export for offline analysis

The recorder only observes; nothing it holds is ever fed back into the
simulation.
"""

import csv
import logging
import os
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Tuple

import numpy as np

from . import constants as C
from .profiles import WorldProfile
from .state import FlightState
from .terrain import get_pad, nearest_pad, wrapped_dx
from .types import ApproachMode, AutopilotMode, FailureReason, FlightPhase, LandingOutcome

logger = logging.getLogger(__name__)


class TelemetrySample(NamedTuple):
    """Snapshot of the flight after one tick."""
    t: float
    x: float
    y: float
    vx: float
    vy: float
    rotation: float
    fuel: float
    thrust: float
    altitude: float
    phase: FlightPhase

    def to_dict(self) -> dict:
        pos, vel, rot = (C.TELEMETRY_POSITION_DECIMALS, C.TELEMETRY_VELOCITY_DECIMALS,
                         C.TELEMETRY_ROTATION_DECIMALS)
        return {
            't': round(self.t, vel),
            'x': round(self.x, pos),
            'y': round(self.y, pos),
            'vx': round(self.vx, vel),
            'vy': round(self.vy, vel),
            'rot': round(self.rotation, rot),
            'fuel': round(self.fuel, pos),
            'thrust': round(self.thrust, vel),
            'alt': round(self.altitude, pos),
            'phase': self.phase.value,
        }


def _state_dict(state: FlightState) -> dict:
    pos, vel, rot = (C.TELEMETRY_POSITION_DECIMALS, C.TELEMETRY_VELOCITY_DECIMALS,
                     C.TELEMETRY_ROTATION_DECIMALS)
    return {
        'x': round(state.x, pos),
        'y': round(state.y, pos),
        'vx': round(state.vx, vel),
        'vy': round(state.vy, vel),
        'rotation': round(state.rotation, rot),
        'fuel': round(state.fuel, pos),
    }


def _round_or_none(value: Optional[float], decimals: int) -> Optional[float]:
    return None if value is None else round(value, decimals)


@dataclass
class FlightReport:
    """
    Result of one flight.

    A pure data struct: it carries no session or transport details.
    outcome is None only for incomplete (cancelled or timed-out) flights.
    """
    outcome: Optional[LandingOutcome]
    failure_reason: Optional[FailureReason]
    mode: AutopilotMode
    approach_mode: Optional[ApproachMode]
    duration: float
    burn_time: float
    initial: FlightState
    initial_target_pad: Optional[int]
    terminal: FlightState
    terminal_altitude: float
    max_speed: float
    max_descent_rate: float
    max_horizontal_speed: float
    max_gs: float
    min_altitude: float
    fuel_used: float
    horizontal_error_at_touchdown: Optional[float]
    vertical_speed_at_touchdown: Optional[float]
    horizontal_speed_at_touchdown: Optional[float]
    angle_at_touchdown: Optional[float]
    time_in_orbit: float
    abort_attempts: int
    abort_events: tuple = ()
    landed_pad_index: Optional[int] = None
    landed_pad_multiplier: Optional[int] = None
    telemetry: Tuple[TelemetrySample, ...] = ()
    incomplete: bool = False
    seed: float = 0.0
    peak_heating: float = 0.0
    heat_shield_remaining: float = 0.0
    world_name: str = ""
    vehicle_name: str = ""

    @property
    def landed(self) -> bool:
        return self.outcome in (LandingOutcome.SUCCESS, LandingOutcome.DAMAGED)

    def to_dict(self) -> dict:
        """Serialize to the camelCase layout used for submission."""
        pos, vel, rot = (C.TELEMETRY_POSITION_DECIMALS, C.TELEMETRY_VELOCITY_DECIMALS,
                         C.TELEMETRY_ROTATION_DECIMALS)
        initial = _state_dict(self.initial)
        initial['targetPadIndex'] = self.initial_target_pad
        terminal = _state_dict(self.terminal)
        terminal['speed'] = round(self.terminal.speed, vel)
        terminal['altitude'] = round(self.terminal_altitude, pos)

        return {
            'outcome': self.outcome.value if self.outcome else None,
            'failureReason': self.failure_reason.value if self.failure_reason else None,
            'mode': self.mode.value,
            'approachMode': self.approach_mode.value if self.approach_mode else None,
            'duration': round(self.duration, vel),
            'burnTime': round(self.burn_time, vel),
            'initial': initial,
            'terminal': terminal,
            'metrics': {
                'maxSpeed': round(self.max_speed, vel),
                'maxDescentRate': round(self.max_descent_rate, vel),
                'maxHorizontalSpeed': round(self.max_horizontal_speed, vel),
                'maxGs': round(self.max_gs, vel),
                'minAltitude': round(self.min_altitude, pos),
                'fuelUsed': round(self.fuel_used, pos),
                'horizontalErrorAtTouchdown': _round_or_none(self.horizontal_error_at_touchdown, pos),
                'verticalSpeedAtTouchdown': _round_or_none(self.vertical_speed_at_touchdown, vel),
                'horizontalSpeedAtTouchdown': _round_or_none(self.horizontal_speed_at_touchdown, vel),
                'angleAtTouchdown': _round_or_none(self.angle_at_touchdown, rot),
                'timeInOrbit': round(self.time_in_orbit, vel),
                'abortAttempts': self.abort_attempts,
                'abortEvents': [e.to_dict() for e in self.abort_events],
            },
            'landedPadIndex': self.landed_pad_index,
            'landedPadMultiplier': self.landed_pad_multiplier,
            'telemetry': [s.to_dict() for s in self.telemetry],
            'incomplete': self.incomplete,
            'seed': self.seed,
            'peakHeating': round(self.peak_heating, C.TELEMETRY_ROTATION_DECIMALS),
            'heatShieldRemaining': round(self.heat_shield_remaining, C.TELEMETRY_ROTATION_DECIMALS),
        }

    def summary(self) -> str:
        """One-line human-readable result."""
        result = self.outcome.value.upper() if self.outcome else "INCOMPLETE"
        if self.failure_reason and self.outcome == LandingOutcome.CRASHED:
            result += f" ({self.failure_reason.value})"
        return (f"{self.world_name}/{self.vehicle_name}: {result} after {self.duration:.1f}s, "
                f"fuel used {self.fuel_used:.1f}, max {self.max_gs:.2f} g, "
                f"aborts {self.abort_attempts}")


@dataclass
class TelemetryRecorder:
    """
    Append-only telemetry stream with running extrema.

    Extrema are updated as each sample arrives and never recomputed from
    the stored history.
    """
    world: WorldProfile
    keep_samples: bool = True
    max_speed: float = 0.0
    max_descent_rate: float = 0.0
    max_horizontal_speed: float = 0.0
    max_gs: float = 0.0
    min_altitude: float = float('inf')
    time_in_orbit: float = 0.0
    burn_time: float = 0.0
    peak_heating: float = 0.0
    _samples: List[TelemetrySample] = field(default_factory=list, repr=False)
    _last: Optional[TelemetrySample] = field(default=None, repr=False)

    def record(self, state: FlightState, altitude: float, heating: float = 0.0):
        """
        Append one sample and update running extrema.

        Args:
            state: State after this tick
            altitude: Height above the surface (units)
            heating: Entry-heating intensity this tick
        """
        sample = TelemetrySample(
            t=state.t, x=state.x, y=state.y, vx=state.vx, vy=state.vy,
            rotation=state.rotation, fuel=state.fuel, thrust=state.thrust,
            altitude=altitude, phase=state.phase,
        )

        self.max_speed = max(self.max_speed, state.speed)
        self.max_descent_rate = max(self.max_descent_rate, state.descent_rate)
        self.max_horizontal_speed = max(self.max_horizontal_speed, abs(state.vx))
        self.min_altitude = min(self.min_altitude, altitude)
        self.peak_heating = max(self.peak_heating, heating)

        last = self._last
        if last is not None:
            dt = sample.t - last.t
            if state.phase == FlightPhase.ORBIT:
                self.time_in_orbit += dt
            if state.thrust > 0.0:
                self.burn_time += dt
            # Orbit insertion zeroes vy by fiat; that step is not a felt load
            inserted = state.phase == FlightPhase.ORBIT and last.phase != FlightPhase.ORBIT
            if dt > 0.0 and not state.is_terminal and not inserted:
                self.max_gs = max(self.max_gs, self.g_load(last, sample, dt))

        self._last = sample
        if self.keep_samples:
            self._samples.append(sample)

    def g_load(self, prev: TelemetrySample, cur: TelemetrySample, dt: float) -> float:
        """
        Felt acceleration between two samples, in Earth g.

        Proper acceleration is the kinematic acceleration minus gravity;
        game units are mapped to m/s^2 through the world's real gravity.
        """
        ax = (cur.vx - prev.vx) / dt
        ay = (cur.vy - prev.vy) / dt
        gravity = 0.0 if cur.phase == FlightPhase.ORBIT else self.world.gravity
        proper = float(np.hypot(ax, ay + gravity))
        return proper * (self.world.real_gravity / self.world.gravity) / C.G0

    @property
    def samples(self) -> Tuple[TelemetrySample, ...]:
        return tuple(self._samples)

    def __len__(self) -> int:
        return len(self._samples)

    def finalize(self, initial: FlightState, terminal: FlightState, *,
                 outcome: Optional[LandingOutcome],
                 failure_reason: Optional[FailureReason],
                 mode: AutopilotMode,
                 approach_mode: Optional[ApproachMode],
                 target_pad_index: Optional[int],
                 initial_target_pad: Optional[int],
                 landed_pad_index: Optional[int],
                 terminal_altitude: float,
                 abort_events: tuple = (),
                 abort_attempts: int = 0,
                 seed: float = 0.0,
                 incomplete: bool = False,
                 heat_shield_remaining: float = 0.0,
                 vehicle_name: str = "") -> FlightReport:
        """
        Build the FlightReport for a finished (or abandoned) flight.

        Touchdown metrics are measured against the landed pad, else the
        targeted pad, else the nearest pad; they are None for incomplete
        flights.
        """
        touched_down = outcome is not None
        error = v_touch = h_touch = angle = None
        if touched_down:
            ref_index = landed_pad_index
            if ref_index is None:
                ref_index = target_pad_index
            if ref_index is None:
                ref_index = nearest_pad(terminal.x, self.world, include_occupied=True)
            pad = get_pad(self.world, ref_index)
            if pad is not None:
                error = abs(wrapped_dx(terminal.x, pad.center, self.world.terrain))
            v_touch = abs(terminal.vy)
            h_touch = abs(terminal.vx)
            angle = abs(terminal.rotation)

        landed_pad = get_pad(self.world, landed_pad_index)

        report = FlightReport(
            outcome=outcome,
            failure_reason=failure_reason,
            mode=mode,
            approach_mode=approach_mode,
            duration=terminal.t - initial.t,
            burn_time=self.burn_time,
            initial=initial,
            initial_target_pad=initial_target_pad,
            terminal=terminal,
            terminal_altitude=terminal_altitude,
            max_speed=self.max_speed,
            max_descent_rate=self.max_descent_rate,
            max_horizontal_speed=self.max_horizontal_speed,
            max_gs=self.max_gs,
            min_altitude=self.min_altitude if self._last is not None else terminal_altitude,
            fuel_used=initial.fuel - terminal.fuel,
            horizontal_error_at_touchdown=error,
            vertical_speed_at_touchdown=v_touch,
            horizontal_speed_at_touchdown=h_touch,
            angle_at_touchdown=angle,
            time_in_orbit=self.time_in_orbit,
            abort_attempts=abort_attempts,
            abort_events=tuple(abort_events),
            landed_pad_index=landed_pad_index,
            landed_pad_multiplier=landed_pad.multiplier if landed_pad else None,
            telemetry=self.samples,
            incomplete=incomplete,
            seed=seed,
            peak_heating=self.peak_heating,
            heat_shield_remaining=heat_shield_remaining,
            world_name=self.world.name,
            vehicle_name=vehicle_name,
        )
        logger.debug(f"Report finalized: {len(self._samples)} samples, "
                     f"outcome={outcome.value if outcome else None}")
        return report

    def to_csv(self, filename: str):
        """Write the sample stream to CSV for offline analysis."""
        os.makedirs(os.path.dirname(filename) or '.', exist_ok=True)
        header = ['t', 'x', 'y', 'vx', 'vy', 'rotation', 'fuel', 'thrust',
                  'altitude', 'phase']

        with open(filename, 'w', newline='') as fh:
            writer = csv.writer(fh)
            writer.writerow(header)
            for s in self._samples:
                writer.writerow([s.t, s.x, s.y, s.vx, s.vy, s.rotation, s.fuel,
                                 s.thrust, s.altitude, s.phase.value])
