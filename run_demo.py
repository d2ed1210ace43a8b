"""Demo script: fly the autopilot on every built-in world and show the results."""
from descent_sim.main import run_flight
from descent_sim.profiles import WORLDS, VehicleProfile
from descent_sim.config import create_default_config

config = create_default_config()

for name, world in WORLDS.items():
    print(f"\n===== {name.upper()} =====")
    report = run_flight(world, VehicleProfile.from_world(world), config=config, seed=42.0)
    print(report.summary())
    print(f"Time in orbit: {report.time_in_orbit:.1f}s | Burn time: {report.burn_time:.1f}s")
    if report.horizontal_error_at_touchdown is not None:
        print(f"Touchdown: {report.vertical_speed_at_touchdown:.2f} down, "
              f"{report.horizontal_speed_at_touchdown:.2f} across, "
              f"{report.horizontal_error_at_touchdown:.1f} from pad center")
    for event in report.abort_events:
        print(f"  Abort {event.decision.value} ({event.trigger.value}) at "
              f"t={event.timestamp:.1f}s -> {event.outcome.value}")

    print("Phase Timeline:")
    prev_phase = None
    for s in report.telemetry:
        if s.phase != prev_phase:
            print(f"  t={s.t:8.1f}s | Alt={s.altitude:8.1f} | "
                  f"V=({s.vx:7.1f}, {s.vy:7.1f}) | Phase: {s.phase.value}")
            prev_phase = s.phase
