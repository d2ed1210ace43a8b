"""
Descent Landing Simulation - Flight State

This module defines the single mutable flight-state dataclass. One instance
exists per flight; the integrator produces a fresh copy every tick.

Coordinates are y-up. Rotation 0 is upright; positive rotation tilts the
thrust vector toward +x.
"""

from dataclasses import dataclass, replace

import numpy as np

from .config import SimulationConfig, create_default_config
from .profiles import VehicleProfile, WorldProfile
from .types import FlightPhase


@dataclass
class FlightState:
    """
    Flight state vector.

    Attributes:
        x, y: Position (world units)
        vx, vy: Velocity (units/s), vy positive up
        rotation: Attitude (rad), wrapped to [-pi, pi]
        angular_velocity: Rotation rate (rad/s)
        fuel: Fuel remaining (units)
        t: Elapsed flight time (s)
        phase: Current flight phase
        thrust: Fraction of max thrust actually produced last tick
        has_burned: Engine has fired at least once (gravity is active)
    """
    x: float = 0.0
    y: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    rotation: float = 0.0
    angular_velocity: float = 0.0
    fuel: float = 0.0
    t: float = 0.0
    phase: FlightPhase = FlightPhase.ORBIT
    thrust: float = 0.0
    has_burned: bool = False

    def copy(self) -> 'FlightState':
        """Create a copy of the state."""
        return replace(self)

    @property
    def speed(self) -> float:
        """Magnitude of velocity (units/s)."""
        return float(np.hypot(self.vx, self.vy))

    @property
    def descent_rate(self) -> float:
        """Downward speed, positive when falling (units/s)."""
        return -self.vy

    @property
    def is_terminal(self) -> bool:
        return self.phase.is_terminal

    def __str__(self) -> str:
        """Human-readable state summary."""
        return (
            f"FlightState(t={self.t:.2f}s, "
            f"x={self.x:.1f}, y={self.y:.1f}, "
            f"v={self.speed:.1f}, rot={self.rotation:.3f}, "
            f"fuel={self.fuel:.1f}, phase={self.phase.value})"
        )


def create_initial_state(world: WorldProfile, vehicle: VehicleProfile,
                         config: SimulationConfig = None) -> FlightState:
    """
    Create the starting state for a flight.

    The lander begins in orbit at the world's orbital altitude, moving
    horizontally at orbital velocity, with a full tank.

    Args:
        world: World profile (orbital parameters)
        vehicle: Vehicle profile (fuel capacity)
        config: Simulation config (start position)

    Returns:
        FlightState in the ORBIT phase
    """
    if config is None:
        config = create_default_config()
    return FlightState(
        x=config.start_x,
        y=world.orbital_altitude,
        vx=world.orbital_velocity,
        vy=0.0,
        rotation=0.0,
        angular_velocity=0.0,
        fuel=vehicle.fuel.capacity,
        t=0.0,
        phase=FlightPhase.ORBIT,
    )
