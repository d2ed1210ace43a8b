"""Tests for profile and state validation."""
from dataclasses import replace

import numpy as np
import pytest

from descent_sim import validation
from descent_sim.main import FlightSession
from descent_sim.profiles import (
    APOLLO_LM,
    AtmosphereProfile,
    EngineSpec,
    LandingPad,
    MOON,
    TerrainProfile,
    WindBand,
)
from descent_sim.state import FlightState
from descent_sim.validation import ValidationError


def _world_with_bands(*bands):
    return replace(MOON, atmosphere=AtmosphereProfile(wind_bands=tuple(bands),
                                                      drag_coefficient=0.1))


# =============================================================================
# World checks
# =============================================================================

def test_overlapping_bands_rejected():
    world = _world_with_bands(
        WindBand(0.0, 100.0, 1.0, 0.0, 0.0),
        WindBand(50.0, 150.0, 0.5, 0.0, 0.0),
    )
    with pytest.raises(ValidationError, match="overlap"):
        validation.validate_world(world)


def test_adjacent_bands_accepted():
    world = _world_with_bands(
        WindBand(100.0, 200.0, 0.5, 0.0, 0.0),
        WindBand(0.0, 100.0, 1.0, 0.0, 0.0),
    )
    assert validation.validate_world(world)


def test_inverted_band_rejected():
    world = _world_with_bands(WindBand(200.0, 100.0, 1.0, 0.0, 0.0))
    with pytest.raises(ValidationError):
        validation.validate_world(world)


def test_negative_gravity_rejected():
    with pytest.raises(ValidationError):
        validation.validate_world(replace(MOON, gravity=-1.0))


def test_nan_thrust_rejected():
    with pytest.raises(ValidationError):
        validation.validate_world(replace(MOON, max_thrust=float('nan')))


def test_pad_outside_terrain_rejected():
    terrain = TerrainProfile(width=500.0, points=((0.0, 0.0), (500.0, 0.0)),
                             pads=(LandingPad(450.0, 550.0, 0.0),))
    with pytest.raises(ValidationError):
        validation.check_terrain(terrain)


def test_unordered_terrain_rejected():
    terrain = TerrainProfile(width=500.0, points=((0.0, 0.0), (300.0, 0.0), (200.0, 0.0)))
    with pytest.raises(ValidationError):
        validation.check_terrain(terrain)


# =============================================================================
# Vehicle checks
# =============================================================================

@pytest.mark.parametrize('throttle_min,throttle_max', [
    (0.5, 0.2),
    (-0.1, 1.0),
    (0.0, 1.5),
    (0.0, 0.0),
])
def test_bad_throttle_range_rejected(throttle_min, throttle_max):
    vehicle = replace(APOLLO_LM, engine=EngineSpec(throttle_min=throttle_min,
                                                   throttle_max=throttle_max))
    with pytest.raises(ValidationError):
        validation.validate_vehicle(vehicle)


def test_bad_restart_count_rejected():
    vehicle = replace(APOLLO_LM, engine=EngineSpec(max_restarts=-2))
    with pytest.raises(ValidationError):
        validation.validate_vehicle(vehicle)


def test_session_refuses_invalid_profile():
    """No tick is ever simulated with an invalid profile."""
    vehicle = replace(APOLLO_LM, engine=EngineSpec(throttle_min=0.9, throttle_max=0.1))
    with pytest.raises(ValidationError):
        FlightSession(MOON, vehicle)


# =============================================================================
# State checks
# =============================================================================

def test_fuel_bounds():
    assert validation.check_fuel_bounds(0.0, 100.0)
    assert validation.check_fuel_bounds(100.0, 100.0)
    with pytest.raises(ValidationError):
        validation.check_fuel_bounds(-0.01, 100.0)
    with pytest.raises(ValidationError):
        validation.check_fuel_bounds(100.01, 100.0)


def test_validate_state_no_abort():
    state = FlightState(x=0.0, y=np.nan, fuel=10.0)
    ok, msg = validation.validate_state(state, APOLLO_LM, abort_on_error=False)
    assert not ok
    assert "Non-finite" in msg


def test_validate_state_raises():
    state = FlightState(fuel=500.0)
    with pytest.raises(ValidationError):
        validation.validate_state(state, APOLLO_LM)


def test_validate_state_ok():
    ok, msg = validation.validate_state(FlightState(fuel=50.0), APOLLO_LM)
    assert ok
    assert msg is None
