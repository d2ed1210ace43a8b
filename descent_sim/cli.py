"""
Descent Landing Simulation - CLI

The single entry point for running a flight (or a seed sweep) from the
command line and writing its report as JSON and its telemetry as CSV.
"""

import argparse
import json
import logging
import os
import sys
from dataclasses import replace

from .config import create_default_config
from .main import FlightSession
from .montecarlo import run_seed_sweep
from .profiles import WORLDS, VEHICLES, get_vehicle, get_world, vehicle_from_dict, world_from_dict
from .types import ApproachMode, AutopilotMode

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Powered descent and landing simulation",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        "--world", "-w",
        type=str,
        default="moon",
        choices=sorted(WORLDS),
        help="Built-in world profile"
    )
    parser.add_argument(
        "--world-file",
        type=str,
        default=None,
        help="World definition JSON (overrides --world)"
    )
    parser.add_argument(
        "--vehicle", "-v",
        type=str,
        default="default",
        choices=["default"] + sorted(VEHICLES),
        help="Built-in vehicle profile ('default' derives one from the world)"
    )
    parser.add_argument(
        "--vehicle-file",
        type=str,
        default=None,
        help="Spacecraft definition JSON (overrides --vehicle)"
    )
    parser.add_argument(
        "--seed",
        type=float,
        default=None,
        help="Turbulence seed (random if omitted)"
    )
    parser.add_argument(
        "--mode",
        type=str,
        default=AutopilotMode.LAND.value,
        choices=[m.value for m in AutopilotMode],
        help="Autopilot mode"
    )
    parser.add_argument(
        "--approach",
        type=str,
        default=ApproachMode.STOP_DROP.value,
        choices=[m.value for m in ApproachMode],
        help="Deorbit approach strategy"
    )
    parser.add_argument(
        "--pad",
        type=int,
        default=None,
        help="Target pad index (chosen automatically if omitted)"
    )
    parser.add_argument(
        "--max-time",
        type=float,
        default=None,
        help="Maximum flight time in seconds"
    )
    parser.add_argument(
        "--json",
        type=str,
        default=None,
        help="Write the flight report to this JSON file"
    )
    parser.add_argument(
        "--csv",
        type=str,
        default=None,
        help="Write the telemetry stream to this CSV file"
    )
    parser.add_argument(
        "--sweep",
        type=int,
        default=0,
        help="Run a seed sweep of N flights instead of a single flight"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress verbose output"
    )
    return parser.parse_args(argv)


def _load_json(path: str) -> dict:
    with open(path) as fh:
        return json.load(fh)


def main(argv=None):
    """Main execution flow."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        world = world_from_dict(_load_json(args.world_file)) if args.world_file else get_world(args.world)
        if args.vehicle_file:
            vehicle = vehicle_from_dict(_load_json(args.vehicle_file))
        else:
            vehicle = get_vehicle(args.vehicle, world)

        overrides = dict(approach_mode=args.approach, verbose=not args.quiet)
        if args.max_time is not None:
            overrides['max_time'] = args.max_time
        config = replace(create_default_config(), **overrides)
        mode = AutopilotMode(args.mode)

        if args.sweep > 0:
            seed = int(args.seed) if args.seed is not None else 42
            results = run_seed_sweep(world, vehicle, replace(config, verbose=False),
                                     n_runs=args.sweep, seed=seed, mode=mode,
                                     verbose=not args.quiet)
            if args.quiet:
                print(results.summary())
            return 0

        session = FlightSession(world, vehicle, config=config, seed=args.seed,
                                mode=mode, target_pad=args.pad)
        report = session.run()
        print(report.summary())

        if args.json:
            os.makedirs(os.path.dirname(args.json) or '.', exist_ok=True)
            with open(args.json, 'w') as fh:
                json.dump(report.to_dict(), fh, indent=2)
            logger.info(f"Report written to {args.json}")

        if args.csv:
            session.recorder.to_csv(args.csv)
            logger.info(f"Telemetry written to {args.csv}")

        return 0

    except Exception as e:
        logger.error(f"Simulation failed: {e}", exc_info=True)
        print(f"\n[ERROR] Simulation failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    sys.exit(main())
