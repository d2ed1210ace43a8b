"""Tests for the landing autopilot and control laws."""
from dataclasses import replace

import numpy as np
import pytest

from descent_sim import constants as C
from descent_sim import control, guidance
from descent_sim.config import create_test_config
from descent_sim.dynamics import EngineState
from descent_sim.profiles import (
    APOLLO_LM,
    AxisGains,
    EARTH,
    GainModifiers,
    MARS,
    MOON,
    VehicleProfile,
)
from descent_sim.sensors import GuidanceSensor
from descent_sim.state import FlightState
from descent_sim.types import (
    ApproachMode,
    AutopilotMode,
    FlightPhase,
    GuidancePhase,
    ZERO_COMMAND,
)


def _autopilot(world=MOON, vehicle=None, mode=AutopilotMode.LAND, engine=None, **config):
    vehicle = vehicle if vehicle is not None else VehicleProfile.from_world(world)
    return guidance.Autopilot(world, vehicle, 42.0, create_test_config(**config), mode,
                              engine=engine)


def _lit_engine(vehicle, **spec):
    engine = EngineState(replace(vehicle.engine, **spec))
    engine.update(0.5)
    return engine


def _descent_state(pad, dx=0.0, height=600.0, **kwargs):
    defaults = dict(x=pad.center + dx, y=pad.y + height, vx=0.0, vy=-2.0, fuel=50.0,
                    phase=FlightPhase.DESCENT, has_burned=True)
    defaults.update(kwargs)
    return FlightState(**defaults)


def _orbit_state(world=MOON, x=0.0):
    return FlightState(x=x, y=world.orbital_altitude, vx=world.orbital_velocity,
                       fuel=world.starting_fuel)


# =============================================================================
# Control laws
# =============================================================================

def test_wrap_angle():
    assert control.wrap_angle(3 * np.pi / 2) == pytest.approx(-np.pi / 2)
    assert control.wrap_angle(-3 * np.pi / 2) == pytest.approx(np.pi / 2)
    assert control.wrap_angle(0.3) == pytest.approx(0.3)


def test_pd_control_law():
    assert control.pd_control_law(2.0, -1.0, AxisGains(3.0, 0.5)) == pytest.approx(5.5)


def test_compose_gains_world_times_vehicle():
    vehicle = replace(APOLLO_LM, autopilot_modifiers=GainModifiers(1.1, 0.5, 2.0))
    gains = control.compose_gains(MARS, vehicle)
    base = MARS.autopilot_gains
    assert gains['attitude'].kp == pytest.approx(base.attitude.kp * 1.1)
    assert gains['horizontal'].kd == pytest.approx(base.horizontal.kd * 0.5)
    assert gains['vertical'].kp == pytest.approx(base.vertical.kp * 2.0)


def test_compose_gains_scale():
    gains = control.compose_gains(MOON, APOLLO_LM, scale=0.5)
    assert gains['attitude'].kd == pytest.approx(MOON.autopilot_gains.attitude.kd * 0.5)


def test_rotation_command_saturates():
    assert control.rotation_command(np.pi / 2, -np.pi / 2, 0.0, AxisGains(3.0, 2.0)) in (-1.0, 1.0)


# =============================================================================
# Schedules
# =============================================================================

def test_descent_rate_monotonic_in_altitude():
    altitudes = np.linspace(0.0, 1000.0, 201)
    rates = [guidance.target_descent_rate(a, 20.0, 7.5) for a in altitudes]
    assert all(b >= a for a, b in zip(rates, rates[1:]))


def test_descent_rate_follows_braking_kinematics():
    altitude = C.FINAL_APPROACH_ALTITUDE + 100.0
    rate = guidance.target_descent_rate(altitude, 10.0, 5.0)
    assert rate == pytest.approx(np.sqrt(5.0 ** 2 + 2 * 10.0 * 100.0))


def test_descent_rate_holds_touchdown_rate_in_final_approach():
    for altitude in (0.0, 5.0, C.FINAL_APPROACH_ALTITUDE):
        assert guidance.target_descent_rate(altitude, 20.0, 7.5) == pytest.approx(7.5)


def test_braking_deceleration_is_share_of_net_thrust():
    for world in (MOON, MARS, EARTH):
        vehicle = VehicleProfile.from_world(world)
        expected = C.BRAKING_DECEL_FRACTION * (world.max_thrust - world.gravity)
        assert guidance.braking_deceleration(world, vehicle) == pytest.approx(expected)


def test_braking_deceleration_never_negative():
    assert guidance.braking_deceleration(EARTH, APOLLO_LM) == 0.0


def test_touchdown_rate_uses_tighter_limit():
    # Mars allows 12 at touchdown, the LM's gear 15
    assert guidance.touchdown_rate(MARS, APOLLO_LM) == pytest.approx(
        C.TOUCHDOWN_VELOCITY_FRACTION * MARS.max_landing_velocity)


def test_tilt_limit_shrinks_near_ground():
    assert guidance.tilt_limit(500.0) > guidance.tilt_limit(150.0) > guidance.tilt_limit(10.0)


def test_braking_distance():
    assert guidance.braking_distance(10.0, 5.0) == pytest.approx(10.0)
    assert guidance.braking_distance(10.0, 0.0) == float('inf')


def test_deorbit_stop_distance_integrates_throttle_bands():
    expected = ((30.0 ** 2 - 20.0 ** 2) / (2 * 10.0 * 0.9)
                + (20.0 ** 2 - 10.0 ** 2) / (2 * 10.0 * 0.7)
                + (10.0 ** 2 - C.DEORBIT_END_SPEED ** 2) / (2 * 10.0 * 0.5))
    assert guidance.deorbit_stop_distance(30.0, 10.0) == pytest.approx(expected)
    assert guidance.deorbit_stop_distance(1.0, 10.0) == 0.0
    assert guidance.deorbit_stop_distance(30.0, 0.0) == float('inf')


# =============================================================================
# Pad selection
# =============================================================================

def test_select_target_pad_skips_occupied():
    terrain = replace(MOON.terrain, pads=(
        replace(MOON.terrain.pads[0], occupied=True),) + MOON.terrain.pads[1:])
    world = replace(MOON, terrain=terrain)
    state = _orbit_state(world, x=300.0)
    assert guidance.select_target_pad(state, world) != 0


def test_select_target_pad_respects_min_distance():
    state = _orbit_state(MOON, x=400.0)
    # Pad 0 spans 420-520, so it is ahead but too close
    assert guidance.select_target_pad(state, MOON, min_distance=200.0) == 1


def test_select_target_pad_prefers_multiplier():
    state = _orbit_state(MOON, x=0.0)
    plain = guidance.select_target_pad(state, MOON)
    bonus = guidance.select_target_pad(state, MOON, prefer_high_multiplier=True)
    assert plain == 0
    assert MOON.terrain.pads[bonus].multiplier >= MOON.terrain.pads[plain].multiplier


def test_select_target_pad_no_terrain():
    world = replace(MOON, terrain=None)
    assert guidance.select_target_pad(_orbit_state(world), world) is None


def test_forward_distance_moving_left():
    state = FlightState(x=500.0, vx=-10.0)
    assert guidance.forward_distance(state, 400.0, MOON) == pytest.approx(100.0)
    assert guidance.forward_distance(state, 600.0, MOON) == pytest.approx(
        MOON.terrain.width - 100.0)


# =============================================================================
# Autopilot modes
# =============================================================================

def test_off_mode_returns_zero_command():
    ap = _autopilot(mode=AutopilotMode.OFF)
    assert ap.compute(_orbit_state(), C.DT) == ZERO_COMMAND


def test_stabilize_damps_rotation_without_throttle():
    ap = _autopilot(mode=AutopilotMode.STABILIZE)
    state = _orbit_state()
    state.angular_velocity = 0.5
    cmd = ap.compute(state, C.DT)
    assert cmd.throttle == 0.0
    assert cmd.rotation < 0.0


def test_land_mode_waits_in_orbit_far_from_pad():
    ap = _autopilot()
    state = _orbit_state(x=1300.0)
    ap.target_pad_index = 0  # well over half the world away
    cmd = ap.compute(state, C.DT)
    assert cmd.throttle == 0.0
    assert ap.phase == GuidancePhase.ORBIT_WAIT
    # Turning toward retrograde
    assert cmd.rotation < 0.0


def test_land_mode_burns_when_aligned_near_pad():
    ap = _autopilot()
    pad = MOON.terrain.pads[1]
    state = _orbit_state(x=pad.center - 50.0)
    state.rotation = -np.pi / 2
    ap.target_pad_index = 1
    cmd = ap.compute(state, C.DT)
    assert ap.phase == GuidancePhase.DEORBIT_BURN
    assert cmd.throttle > 0.0


def test_land_mode_aligns_before_burn():
    ap = _autopilot()
    pad = MOON.terrain.pads[1]
    state = _orbit_state(x=pad.center - 50.0)
    ap.target_pad_index = 1
    cmd = ap.compute(state, C.DT)
    assert ap.phase == GuidancePhase.ORBIT_ALIGN
    assert cmd.throttle == 0.0


def test_terminal_burn_throttles_up_when_falling_fast():
    ap = _autopilot()
    pad = MOON.terrain.pads[1]
    ap.target_pad_index = 1
    state = FlightState(x=pad.center, y=pad.y + 40.0, vx=0.0, vy=-60.0,
                        fuel=50.0, phase=FlightPhase.DESCENT, has_burned=True)
    cmd = ap.compute(state, C.DT)
    assert ap.phase == GuidancePhase.TERMINAL_BURN
    assert cmd.throttle == 1.0
    assert ap.last_output['target_descent_rate'] > 0.0


def test_coast_ends_when_descent_reaches_profile():
    ap = _autopilot()
    ap.target_pad_index = 1
    pad = MOON.terrain.pads[1]
    profile = ap.target_descent_rate(400.0)

    ap.compute(_descent_state(pad, height=400.0, vy=-(profile - 10.0)), C.DT)
    assert ap.phase == GuidancePhase.COAST

    cmd = ap.compute(_descent_state(pad, height=400.0, vy=-(profile + 10.0), t=C.DT), C.DT)
    assert ap.phase == GuidancePhase.TERMINAL_BURN
    assert cmd.throttle > 0.0


def test_vertical_loop_rejects_single_tick_acceleration_spike():
    ap = _autopilot()
    ap.target_pad_index = 1
    ap.phase = GuidancePhase.TERMINAL_BURN
    pad = MOON.terrain.pads[1]
    profile = ap.target_descent_rate(200.0)

    ap.compute(_descent_state(pad, height=200.0, vy=-profile), C.DT)
    # One tick later the vehicle reads 60 units/s^2 of braking
    cmd = ap.compute(_descent_state(pad, height=200.0, vy=-profile + 1.0), C.DT)
    assert cmd.throttle > 0.5


def test_terminal_burn_idles_engine_when_lying_sideways():
    ap = _autopilot()
    ap.target_pad_index = 1
    ap.phase = GuidancePhase.TERMINAL_BURN
    pad = MOON.terrain.pads[1]
    cmd = ap.compute(_descent_state(pad, height=100.0, vy=-60.0, rotation=1.2), C.DT)
    assert cmd.throttle == C.MIN_BURN_THROTTLE


def test_coast_when_high_and_slow():
    ap = _autopilot()
    ap.target_pad_index = 1
    pad = MOON.terrain.pads[1]
    cmd = ap.compute(_descent_state(pad), C.DT)
    assert ap.phase == GuidancePhase.COAST
    assert cmd.throttle == 0.0


def test_coast_corrects_predicted_miss_when_aligned():
    ap = _autopilot()
    ap.target_pad_index = 1
    pad = MOON.terrain.pads[1]
    # Pad 200 to the right, falling straight down
    state = _descent_state(pad, dx=-200.0, vy=-10.0, rotation=C.COAST_TILT_LIMIT_FAR)
    cmd = ap.compute(state, C.DT)
    assert ap.phase == GuidancePhase.COAST
    assert ap.last_output['desired_tilt'] == pytest.approx(C.COAST_TILT_LIMIT_FAR)
    assert cmd.throttle == pytest.approx(C.COAST_MAX_THROTTLE)


def test_coast_holds_fire_until_aligned():
    ap = _autopilot()
    ap.target_pad_index = 1
    pad = MOON.terrain.pads[1]
    cmd = ap.compute(_descent_state(pad, dx=-200.0, vy=-10.0), C.DT)
    assert ap.phase == GuidancePhase.COAST
    assert cmd.throttle == 0.0
    assert cmd.rotation > 0.0


def test_coast_keeps_last_burn_alive_without_relights():
    vehicle = VehicleProfile.from_world(MOON)
    engine = _lit_engine(vehicle, restartable=False)
    ap = _autopilot(vehicle=vehicle, engine=engine)
    ap.target_pad_index = 1
    cmd = ap.compute(_descent_state(MOON.terrain.pads[1]), C.DT)
    assert ap.phase == GuidancePhase.COAST
    assert cmd.throttle == C.MIN_BURN_THROTTLE


def test_coast_shuts_down_restartable_engine():
    vehicle = VehicleProfile.from_world(MOON)
    ap = _autopilot(vehicle=vehicle, engine=_lit_engine(vehicle))
    ap.target_pad_index = 1
    cmd = ap.compute(_descent_state(MOON.terrain.pads[1]), C.DT)
    assert cmd.throttle == 0.0


def test_hold_throttle_tracks_relight_budget():
    vehicle = VehicleProfile.from_world(MOON)
    assert _autopilot(vehicle=vehicle).hold_throttle() == 0.0
    last = _lit_engine(vehicle, max_restarts=0)
    assert _autopilot(vehicle=vehicle, engine=last).hold_throttle() == C.MIN_BURN_THROTTLE
    spare = _lit_engine(vehicle, max_restarts=1)
    assert _autopilot(vehicle=vehicle, engine=spare).hold_throttle() == 0.0


def test_deorbit_burn_hands_over_on_profile():
    ap = _autopilot()
    ap.target_pad_index = 1
    ap.phase = GuidancePhase.DEORBIT_BURN
    pad = MOON.terrain.pads[1]
    profile = ap.target_descent_rate(300.0)

    cmd = ap.compute(_descent_state(pad, height=300.0, vx=60.0,
                                    vy=-(profile - 20.0)), C.DT)
    assert ap.phase == GuidancePhase.DEORBIT_BURN
    assert cmd.throttle == guidance.deorbit_throttle(60.0)

    ap.compute(_descent_state(pad, height=300.0, vx=60.0,
                              vy=-(profile + 20.0)), C.DT)
    assert ap.deorbit_complete
    assert ap.phase == GuidancePhase.TERMINAL_BURN


@pytest.mark.parametrize('dx,expected', [
    (-300.0, C.BOOSTBACK_THROTTLE_FLOOR),
    (-30.0, 1.0),
])
def test_boostback_throttle_flies_required_deceleration(dx, expected):
    vehicle = VehicleProfile.from_world(MOON)
    ap = _autopilot(vehicle=vehicle, approach_mode="boostback")
    ap.target_pad_index = 1
    ap.phase = GuidancePhase.DEORBIT_BURN
    state = _descent_state(MOON.terrain.pads[1], dx=dx, vx=60.0, vy=-5.0,
                           fuel=vehicle.fuel.capacity)
    cmd = ap.compute(state, C.DT)
    assert ap.phase == GuidancePhase.DEORBIT_BURN
    assert cmd.throttle == pytest.approx(expected)


def test_touchdown_phase_holds_upright():
    ap = _autopilot()
    ap.target_pad_index = 1
    pad = MOON.terrain.pads[1]
    state = FlightState(x=pad.center + 30.0, y=pad.y + 2.0, vx=3.0, vy=-2.0,
                        fuel=50.0, phase=FlightPhase.DESCENT, has_burned=True)
    ap.compute(state, C.DT)
    assert ap.phase == GuidancePhase.TOUCHDOWN
    assert ap.last_output['desired_tilt'] == 0.0


def test_lateral_loop_steers_toward_pad():
    ap = _autopilot()
    ap.target_pad_index = 1
    pad = MOON.terrain.pads[1]
    state = FlightState(x=pad.center - 80.0, y=pad.y + 150.0, vx=0.0, vy=-20.0,
                        fuel=50.0, phase=FlightPhase.DESCENT, has_burned=True)
    ap.phase = GuidancePhase.TERMINAL_BURN
    ap.compute(state, C.DT)
    # Pad is to the right: tilt thrust toward +x
    assert ap.last_output['desired_tilt'] > 0.0
    assert ap.last_output['desired_tilt'] <= guidance.tilt_limit(150.0)


def test_force_land_switches_mode_and_target():
    ap = _autopilot(mode=AutopilotMode.STABILIZE)
    ap.force_land(2)
    assert ap.mode == AutopilotMode.LAND
    assert ap.target_pad_index == 2


def test_force_land_keeps_demo_mode():
    ap = _autopilot(mode=AutopilotMode.DEMO)
    ap.force_land(1)
    assert ap.mode == AutopilotMode.DEMO


def test_demo_mode_softens_gains():
    land = _autopilot()
    demo = _autopilot(mode=AutopilotMode.DEMO)
    assert demo.gains['vertical'].kp == pytest.approx(
        land.gains['vertical'].kp * C.DEMO_GAIN_SCALE)
    assert demo.sensor.altitude_amplitude < land.sensor.altitude_amplitude


def test_approach_mode_from_config():
    assert _autopilot(approach_mode="boostback").approach_mode == ApproachMode.BOOSTBACK


def test_ensure_target_is_sticky():
    ap = _autopilot()
    first = ap.ensure_target(_orbit_state())
    assert first is not None
    assert ap.ensure_target(_orbit_state(x=1500.0)) == first


# =============================================================================
# Sensors
# =============================================================================

def test_sensor_error_bounded_by_precision():
    coarse = GuidanceSensor(5.0, guidance_precision=1.0)
    fine = GuidanceSensor(5.0, guidance_precision=2.0)
    for t in np.linspace(0, 30, 50):
        assert abs(coarse.measure_altitude(100.0, t) - 100.0) <= C.ALTITUDE_NOISE_AMPLITUDE
        assert abs(fine.measure_altitude(100.0, t) - 100.0) <= C.ALTITUDE_NOISE_AMPLITUDE / 2


def test_sensor_reproducible():
    a = GuidanceSensor(9.0)
    b = GuidanceSensor(9.0)
    assert a.measure_rotation(0.1, 3.0) == b.measure_rotation(0.1, 3.0)


