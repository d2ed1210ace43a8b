"""
Descent Landing Simulation Package

A fixed-tick, deterministic simulation of a small spacecraft descending
from orbit and landing on a configurable planetary body.

Modules:
    - constants: Fixed tick, environment tuning constants, schedules
    - types: Enumerations and structured return types
    - profiles: World and vehicle profiles with built-in presets
    - config: Simulation run configuration
    - state: Flight state dataclass
    - atmosphere: Wind bands, turbulence, drag and torque disturbance
    - terrain: Surface height, pads and horizontal wrap-around
    - mass: Fuel-dependent mass ratio
    - thermal: Entry heating and heat-shield ablation
    - sensors: Seeded guidance measurement error
    - control: PD law and gain composition
    - rcs: Reaction control system
    - dynamics: Engine bookkeeping and per-tick forces
    - integrators: Semi-implicit / explicit Euler stepping
    - landing: Touchdown detection and classification
    - guidance: Landing autopilot
    - abort: Abort decision system
    - telemetry: Telemetry recorder and flight report
    - validation: Profile and state checks
    - main: Flight session entry point
    - montecarlo: Seed sweeps
"""

from .state import FlightState, create_initial_state
from .main import FlightSession, run_flight
from .telemetry import FlightReport, TelemetryRecorder, TelemetrySample
from .config import SimulationConfig, create_default_config, create_test_config
from .profiles import VehicleProfile, WorldProfile, get_vehicle, get_world
from .types import AutopilotMode, FlightPhase, LandingOutcome
from .validation import ValidationError

__version__ = "1.0.0"
__author__ = "Descent Simulation Team"

__all__ = [
    'FlightState',
    'create_initial_state',
    'FlightSession',
    'run_flight',
    'FlightReport',
    'TelemetryRecorder',
    'TelemetrySample',
    'SimulationConfig',
    'create_default_config',
    'create_test_config',
    'VehicleProfile',
    'WorldProfile',
    'get_vehicle',
    'get_world',
    'AutopilotMode',
    'FlightPhase',
    'LandingOutcome',
    'ValidationError',
]
