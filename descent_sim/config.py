"""
Descent Landing Simulation - Configuration

This module provides a SimulationConfig dataclass for dependency injection,
allowing different simulation parameters to be passed without modifying
module constants.

World and vehicle physics live in profiles.py; this config only holds
settings of the simulation run itself.
"""

from dataclasses import dataclass
from typing import Optional

from . import constants as C


@dataclass(frozen=True)
class SimulationConfig:
    """
    Immutable configuration for a flight session.

    Using frozen=True ensures configs cannot be accidentally modified.
    Create new configs via dataclass replace() if needed.

    Section grouping:
      1. Simulation timing
      2. Session
      3. Guidance
      4. Abort thresholds
      5. Telemetry
      6. Misc
    """

    # ── 1. Simulation timing ─────────────────────────────────────────────
    dt: float = C.DT
    max_time: float = C.MAX_TIME
    integrator: str = "semi_implicit"

    # ── 2. Session ───────────────────────────────────────────────────────
    # Turbulence/guidance-noise seed; None draws a fresh one per session
    seed: Optional[float] = None
    start_x: float = 0.0

    # ── 3. Guidance ──────────────────────────────────────────────────────
    demo_gain_scale: float = C.DEMO_GAIN_SCALE
    demo_noise_scale: float = C.DEMO_NOISE_SCALE
    altitude_noise_amplitude: float = C.ALTITUDE_NOISE_AMPLITUDE
    attitude_noise_amplitude: float = C.ATTITUDE_NOISE_AMPLITUDE
    approach_mode: str = "stop_drop"
    prefer_high_multiplier: bool = False

    # ── 4. Abort thresholds ──────────────────────────────────────────────
    # Fuel must exceed this multiple of the estimated landing requirement
    abort_fuel_margin: float = 1.2
    # Descent rate (units/s) considered crash-probable
    abort_descent_rate: float = 60.0
    # Stopping distance must stay below altitude times this factor
    abort_stopping_margin: float = 0.9
    abort_min_altitude: float = C.ABORT_MIN_ALTITUDE

    # ── 5. Telemetry ─────────────────────────────────────────────────────
    record_telemetry: bool = True

    # ── 6. Misc ──────────────────────────────────────────────────────────
    verbose: bool = False
    status_interval: float = 5.0


def create_default_config() -> SimulationConfig:
    """Create a SimulationConfig with default values from constants."""
    return SimulationConfig()


def create_test_config(dt: float = C.DT, max_time: float = 120.0,
                       **overrides) -> SimulationConfig:
    """Create a deterministic config suitable for testing.

    Any keyword arg accepted by SimulationConfig can be passed as an override.
    """
    defaults = dict(dt=dt, max_time=max_time, seed=42.0, verbose=False)
    defaults.update(overrides)
    return SimulationConfig(**defaults)
