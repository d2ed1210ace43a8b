"""
Descent Landing Simulation - Type Definitions

Closed enumerations for phases, outcomes and decisions, plus NamedTuple
and TypedDict definitions for structured return values.
"""

from enum import Enum
from typing import NamedTuple, Optional, TypedDict


class FlightPhase(Enum):
    """Phase of a flight. ORBIT until the first burn."""
    ORBIT = "orbit"
    DESCENT = "descent"
    LANDED = "landed"
    CRASHED = "crashed"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (FlightPhase.LANDED, FlightPhase.CRASHED)


class LandingOutcome(Enum):
    SUCCESS = "success"
    DAMAGED = "damaged"
    CRASHED = "crashed"


class FailureReason(Enum):
    VELOCITY_HIGH = "VELOCITY_HIGH"
    ANGLE_BAD = "ANGLE_BAD"
    OFF_PAD = "OFF_PAD"
    OUT_OF_FUEL = "OUT_OF_FUEL"
    DAMAGED = "DAMAGED"


class AutopilotMode(Enum):
    OFF = "off"
    STABILIZE = "stabilize"
    LAND = "land"
    DEMO = "demo"


class AbortDecision(Enum):
    ORBIT = "orbit"
    RETARGET = "retarget"
    BRACE = "brace"


class AbortOutcome(Enum):
    ORBIT_ACHIEVED = "orbit_achieved"
    LANDED_SUCCESS = "landed_success"
    LANDED_DAMAGED = "landed_damaged"
    CRASHED = "crashed"
    PENDING = "pending"


class AbortTrigger(Enum):
    """Danger condition that caused the abort monitor to fire."""
    LOW_FUEL = "low_fuel"
    DESCENT_RATE = "descent_rate"
    UNAVOIDABLE_CRASH = "unavoidable_crash"


class OrbitAbortStage(Enum):
    """Sub-stages of an abort-to-orbit manoeuvre."""
    ARREST_DESCENT = "arrest_descent"
    PROGRADE_BURN = "prograde_burn"
    STABILIZED = "stabilized"


class EnvironmentEffect(NamedTuple):
    """Environment Model output for one tick."""
    density: float = 0.0
    wind_x: float = 0.0
    wind_y: float = 0.0
    drag_x: float = 0.0
    drag_y: float = 0.0
    torque: float = 0.0


ZERO_EFFECT = EnvironmentEffect()


class ControlCommand(NamedTuple):
    """
    Controller output consumed by the integrator.

    throttle is a fraction of max thrust in [0, 1] before it is mapped
    into the engine's throttle range; rotation is a rate input in [-1, 1].
    """
    throttle: float = 0.0
    rotation: float = 0.0
    thrust_multiplier: float = 1.0


ZERO_COMMAND = ControlCommand()


class TouchdownResult(NamedTuple):
    """Result of a ground-contact check."""
    contact: bool
    outcome: Optional[LandingOutcome] = None
    failure_reason: Optional[FailureReason] = None
    landed_pad_index: Optional[int] = None
    surface_height: float = 0.0


class AbortCheck(TypedDict):
    """Return type for AbortMonitor.check()."""
    triggered: bool  # A trigger condition was detected this tick
    trigger: Optional[AbortTrigger]
    override: bool  # The command was replaced by abort guidance
    decision: Optional[AbortDecision]
    informational: bool  # Trigger recorded without override
    phase: Optional[FlightPhase]  # Phase the session must switch to, if any


class ApproachMode(Enum):
    """Deorbit strategy: stop over the pad and drop, or fly to it."""
    STOP_DROP = "stop_drop"
    BOOSTBACK = "boostback"


class GuidancePhase(Enum):
    """Internal sequencing of the landing autopilot."""
    ORBIT_WAIT = "orbit_wait"
    ORBIT_ALIGN = "orbit_align"
    DEORBIT_BURN = "deorbit_burn"
    COAST = "coast"
    TERMINAL_BURN = "terminal_burn"
    TOUCHDOWN = "touchdown"


class GuidanceOutput(TypedDict):
    """Diagnostics from the autopilot for the current tick."""
    mode: AutopilotMode
    phase: Optional[GuidancePhase]
    target_pad_index: Optional[int]
    target_descent_rate: float  # Positive down (units/s)
    sensed_altitude: float  # Altitude after sensor error (units)
    lateral_error: float  # Signed distance to the pad center (units)
    desired_tilt: float  # Attitude target (rad)
