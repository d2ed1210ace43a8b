"""Tests for engine bookkeeping, mass model and per-tick dynamics."""
import unittest
from dataclasses import replace

import numpy as np
import pytest

from descent_sim import constants as C
from descent_sim import dynamics
from descent_sim.mass import mass_ratio, vehicle_mass
from descent_sim.profiles import (
    APOLLO_LM,
    EngineSpec,
    MOON,
    RCSSpec,
    VehicleProfile,
)
from descent_sim.rcs import compute_rcs_acceleration, compute_rcs_fuel
from descent_sim.state import FlightState
from descent_sim.types import ControlCommand, EnvironmentEffect, FlightPhase, ZERO_EFFECT


def _descending(**kwargs):
    defaults = dict(x=0.0, y=500.0, vx=0.0, vy=-10.0, fuel=50.0,
                    phase=FlightPhase.DESCENT, has_burned=True)
    defaults.update(kwargs)
    return FlightState(**defaults)


class TestEngineState(unittest.TestCase):
    """Restart rules for the main engine."""

    def test_first_ignition_is_free(self):
        engine = dynamics.EngineState(EngineSpec(restartable=False))
        self.assertTrue(engine.update(0.5))
        self.assertTrue(engine.ignited)
        self.assertEqual(engine.relights_used, 0)

    def test_non_restartable_inert_after_shutdown(self):
        engine = dynamics.EngineState(EngineSpec(restartable=False))
        engine.update(0.5)
        self.assertFalse(engine.update(0.0))
        self.assertTrue(engine.inert)
        self.assertFalse(engine.update(1.0))

    def test_restart_budget(self):
        engine = dynamics.EngineState(EngineSpec(restartable=True, max_restarts=2))
        engine.update(1.0)
        engine.update(0.0)
        self.assertTrue(engine.update(1.0))  # relight 1
        engine.update(0.0)
        self.assertTrue(engine.update(1.0))  # relight 2
        self.assertEqual(engine.relights_used, 2)
        engine.update(0.0)
        self.assertTrue(engine.inert)
        self.assertFalse(engine.update(1.0))

    def test_unlimited_restarts(self):
        engine = dynamics.EngineState(EngineSpec(restartable=True, max_restarts=-1))
        for _ in range(20):
            self.assertTrue(engine.update(1.0))
            self.assertFalse(engine.update(0.0))
        self.assertFalse(engine.inert)


def test_map_throttle():
    engine = EngineSpec(throttle_min=0.2, throttle_max=0.8)
    assert dynamics.map_throttle(0.0, engine) == 0.0
    assert dynamics.map_throttle(-1.0, engine) == 0.0
    assert dynamics.map_throttle(0.05, engine) == 0.2
    assert dynamics.map_throttle(0.5, engine) == 0.5
    assert dynamics.map_throttle(1.0, engine) == 0.8


def test_mass_ratio_full_tank_is_one():
    assert mass_ratio(APOLLO_LM, APOLLO_LM.fuel.capacity) == pytest.approx(1.0)


def test_mass_ratio_grows_as_fuel_burns():
    assert mass_ratio(APOLLO_LM, 0.0) > mass_ratio(APOLLO_LM, 50.0) > 1.0
    assert vehicle_mass(APOLLO_LM, -5.0) == APOLLO_LM.structure.dry_mass


def test_rcs_deadband_and_fuel():
    rcs = RCSSpec(rotation_acceleration=4.0, consumes_fuel=True, fuel_consumption=0.5)
    assert compute_rcs_fuel(0.0005, rcs, 1.0) == 0.0
    assert compute_rcs_fuel(0.5, rcs, 1.0) == pytest.approx(0.25)
    assert compute_rcs_fuel(0.5, RCSSpec(), 1.0) == 0.0
    assert compute_rcs_acceleration(2.0, rcs) == pytest.approx(4.0)


def test_zero_fuel_produces_no_thrust():
    state = _descending(fuel=0.0)
    engine = dynamics.EngineState(APOLLO_LM.engine)
    dyn = dynamics.compute_tick_dynamics(state, APOLLO_LM, MOON, ControlCommand(1.0, 0.0),
                                         ZERO_EFFECT, engine, C.DT)
    assert dyn.thrust == 0.0
    assert dyn.fuel == 0.0
    assert dyn.ay == pytest.approx(-MOON.gravity)


def test_fuel_never_negative_when_tank_runs_dry():
    state = _descending(fuel=0.01)
    engine = dynamics.EngineState(APOLLO_LM.engine)
    dyn = dynamics.compute_tick_dynamics(state, APOLLO_LM, MOON, ControlCommand(1.0, 0.0),
                                         ZERO_EFFECT, engine, 0.1)
    assert dyn.fuel == 0.0
    # Partial burn still pushes up against gravity
    assert dyn.ay > -MOON.gravity


def test_upright_full_thrust():
    vehicle = VehicleProfile.from_world(MOON)
    state = _descending(fuel=vehicle.fuel.capacity)
    engine = dynamics.EngineState(vehicle.engine)
    dyn = dynamics.compute_tick_dynamics(state, vehicle, MOON, ControlCommand(1.0, 0.0),
                                         ZERO_EFFECT, engine, C.DT)
    burn = vehicle.fuel.consumption_rate * C.DT
    ratio = mass_ratio(vehicle, vehicle.fuel.capacity - burn)
    assert dyn.ax == pytest.approx(0.0, abs=1e-9)
    assert dyn.ay == pytest.approx(MOON.max_thrust * ratio - MOON.gravity)
    assert dyn.fuel == pytest.approx(vehicle.fuel.capacity - burn)
    assert dyn.thrust == 1.0


def test_positive_rotation_pushes_positive_x():
    state = _descending(rotation=0.5)
    engine = dynamics.EngineState(APOLLO_LM.engine)
    dyn = dynamics.compute_tick_dynamics(state, APOLLO_LM, MOON, ControlCommand(1.0, 0.0),
                                         ZERO_EFFECT, engine, C.DT)
    assert dyn.ax > 0.0


def test_abort_multiplier_scales_thrust_and_fuel():
    state = _descending()
    plain = dynamics.compute_tick_dynamics(
        state, APOLLO_LM, MOON, ControlCommand(1.0, 0.0, 1.0),
        ZERO_EFFECT, dynamics.EngineState(APOLLO_LM.engine), C.DT)
    boosted = dynamics.compute_tick_dynamics(
        state, APOLLO_LM, MOON, ControlCommand(1.0, 0.0, 1.5),
        ZERO_EFFECT, dynamics.EngineState(APOLLO_LM.engine), C.DT)
    assert boosted.ay > plain.ay
    assert state.fuel - boosted.fuel == pytest.approx(1.5 * (state.fuel - plain.fuel))


def test_orbit_holds_without_burn():
    state = FlightState(x=0.0, y=800.0, vx=120.0, fuel=100.0)
    engine = dynamics.EngineState(APOLLO_LM.engine)
    dyn = dynamics.compute_tick_dynamics(state, APOLLO_LM, MOON, ControlCommand(0.0, 0.3),
                                         ZERO_EFFECT, engine, C.DT)
    assert dyn.orbit_hold
    assert dyn.phase == FlightPhase.ORBIT
    assert dyn.ay == 0.0
    assert dyn.angular_velocity != 0.0


def test_first_burn_leaves_orbit():
    state = FlightState(x=0.0, y=800.0, vx=120.0, fuel=100.0)
    engine = dynamics.EngineState(APOLLO_LM.engine)
    dyn = dynamics.compute_tick_dynamics(state, APOLLO_LM, MOON, ControlCommand(0.5, 0.0),
                                         ZERO_EFFECT, engine, C.DT)
    assert dyn.phase == FlightPhase.DESCENT
    assert dyn.has_burned
    assert not dyn.orbit_hold


def test_environment_torque_and_drag_applied():
    state = _descending(fuel=APOLLO_LM.fuel.capacity)
    effect = EnvironmentEffect(density=1.0, drag_x=2.0, drag_y=1.0, torque=0.01)
    engine = dynamics.EngineState(APOLLO_LM.engine)
    dyn = dynamics.compute_tick_dynamics(state, APOLLO_LM, MOON, ControlCommand(0.0, 0.0),
                                         effect, engine, C.DT)
    assert dyn.angular_velocity == pytest.approx(0.01 * C.ANGULAR_DAMPING)
    assert dyn.ax == pytest.approx(2.0)
    assert dyn.ay == pytest.approx(-MOON.gravity + 1.0)


def test_rotation_wrapped():
    state = _descending(rotation=np.pi - 0.001, angular_velocity=1.0)
    engine = dynamics.EngineState(APOLLO_LM.engine)
    dyn = dynamics.compute_tick_dynamics(state, APOLLO_LM, MOON, ControlCommand(),
                                         ZERO_EFFECT, engine, C.DT)
    assert -np.pi <= dyn.rotation <= np.pi


def test_throttle_below_range_is_lifted():
    vehicle = replace(APOLLO_LM, engine=EngineSpec(throttle_min=0.4, throttle_max=1.0))
    state = _descending()
    engine = dynamics.EngineState(vehicle.engine)
    dyn = dynamics.compute_tick_dynamics(state, vehicle, MOON, ControlCommand(0.01, 0.0),
                                         ZERO_EFFECT, engine, C.DT)
    assert dyn.thrust == pytest.approx(0.4)
