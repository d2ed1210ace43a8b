"""
Descent Landing Simulation - Seed Sweep Analysis

Runs the same world/vehicle pair over many turbulence seeds to assess how
robust the autopilot is. Every run is an independent FlightSession; only
the immutable profiles are shared.
"""

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import numpy as np

from . import constants as C
from .config import SimulationConfig, create_default_config
from .profiles import VehicleProfile, WorldProfile
from .types import AutopilotMode

logger = logging.getLogger(__name__)


@dataclass
class SweepRunResult:
    """Result from a single seeded flight."""
    run_index: int
    seed: float
    outcome: str
    failure_reason: Optional[str]
    duration: float
    fuel_used: float
    max_gs: float
    max_descent_rate: float
    touchdown_speed: float
    horizontal_error: float
    abort_attempts: int


@dataclass
class SweepResults:
    """Aggregated results from a seed sweep."""
    runs: List[SweepRunResult] = field(default_factory=list)
    world_name: str = ""
    vehicle_name: str = ""
    wall_time_s: float = 0.0

    @property
    def n_runs(self) -> int:
        return len(self.runs)

    def outcome_counts(self) -> Dict[str, int]:
        return dict(Counter(r.outcome for r in self.runs))

    @property
    def success_rate(self) -> float:
        if not self.runs:
            return 0.0
        return self.outcome_counts().get('success', 0) / self.n_runs

    def get_statistic(self, attr: str) -> dict:
        """Compute mean/std/min/max for a scalar attribute across runs."""
        values = [getattr(r, attr) for r in self.runs if hasattr(r, attr)]
        values = [v for v in values if v is not None and np.isfinite(v)]
        if not values:
            return {'mean': 0, 'std': 0, 'min': 0, 'max': 0}
        arr = np.array(values)
        return {
            'mean': float(np.mean(arr)),
            'std': float(np.std(arr)),
            'min': float(np.min(arr)),
            'max': float(np.max(arr)),
        }

    def summary(self) -> str:
        """Return a formatted summary string."""
        lines = [f"Seed sweep {self.world_name}/{self.vehicle_name}: "
                 f"{self.n_runs} runs in {self.wall_time_s:.1f}s"]
        counts = ', '.join(f"{k}={v}" for k, v in sorted(self.outcome_counts().items()))
        lines.append(f"  outcomes: {counts}")
        for attr in ['duration', 'fuel_used', 'max_gs', 'touchdown_speed',
                     'horizontal_error']:
            stats = self.get_statistic(attr)
            lines.append(f"  {attr:20s}: mean={stats['mean']:.2f} std={stats['std']:.2f} "
                         f"min={stats['min']:.2f} max={stats['max']:.2f}")
        return '\n'.join(lines)


def run_seed_sweep(world: WorldProfile, vehicle: VehicleProfile = None,
                   base_config: SimulationConfig = None,
                   n_runs: int = 20,
                   seed: int = 42,
                   mode: AutopilotMode = AutopilotMode.LAND,
                   run_function: Callable = None,
                   verbose: bool = True) -> SweepResults:
    """
    Fly n_runs sessions with seeds drawn from a master generator.

    Args:
        world: World profile
        vehicle: Vehicle profile (default: baseline craft from the world)
        base_config: Base simulation configuration
        n_runs: Number of flights
        seed: Master random seed
        run_function: Callable(world, vehicle, config, seed) -> FlightReport.
                      If None, uses run_flight from main.
        verbose: Print progress

    Returns:
        SweepResults with per-run data and statistics
    """
    if base_config is None:
        base_config = create_default_config()
    if vehicle is None:
        vehicle = VehicleProfile.from_world(world)

    if run_function is None:
        from .main import run_flight

        def run_function(w, v, cfg, s):
            return run_flight(w, v, config=cfg, seed=s, mode=mode)

    rng = np.random.default_rng(seed)
    results = SweepResults(world_name=world.name, vehicle_name=vehicle.name)
    start = time.time()

    for i in range(n_runs):
        run_seed = float(rng.uniform(0.0, C.SEED_RANGE))

        try:
            report = run_function(world, vehicle, base_config, run_seed)
            outcome = report.outcome.value if report.outcome else 'incomplete'
            touchdown = report.terminal.speed if report.outcome else float('nan')
            error = report.horizontal_error_at_touchdown
            run_result = SweepRunResult(
                run_index=i,
                seed=run_seed,
                outcome=outcome,
                failure_reason=report.failure_reason.value if report.failure_reason else None,
                duration=report.duration,
                fuel_used=report.fuel_used,
                max_gs=report.max_gs,
                max_descent_rate=report.max_descent_rate,
                touchdown_speed=touchdown,
                horizontal_error=error if error is not None else float('nan'),
                abort_attempts=report.abort_attempts,
            )
        except Exception as e:
            logger.error(f"Sweep run {i} (seed={run_seed:.3f}) failed: {e}")
            run_result = SweepRunResult(
                run_index=i, seed=run_seed,
                outcome='error', failure_reason=f"ERROR: {e}",
                duration=0.0, fuel_used=0.0, max_gs=0.0, max_descent_rate=0.0,
                touchdown_speed=float('nan'), horizontal_error=float('nan'),
                abort_attempts=0,
            )

        results.runs.append(run_result)

        if verbose and (i + 1) % max(1, n_runs // 10) == 0:
            elapsed = time.time() - start
            print(f"  Sweep run {i+1}/{n_runs} ({elapsed:.1f}s)")

    results.wall_time_s = time.time() - start

    if verbose:
        print(results.summary())

    return results
