import pytest
import numpy as np
from descent_sim import montecarlo
from descent_sim.config import create_test_config
from descent_sim.main import FlightSession
from descent_sim.profiles import MOON
from descent_sim.types import LandingOutcome


def _stub_flight(outcomes):
    """run_function that cancels a short session and stamps an outcome on it."""
    calls = []

    def run(world, vehicle, cfg, seed):
        session = FlightSession(world, vehicle, config=cfg, seed=seed)
        for _ in range(10):
            session.tick()
        report = session.cancel()
        outcome = outcomes[len(calls) % len(outcomes)]
        calls.append(seed)
        if outcome == 'boom':
            raise RuntimeError("engine exploded")
        report.outcome = outcome
        return report

    run.calls = calls
    return run


def test_sweep_collects_runs():
    run = _stub_flight([LandingOutcome.SUCCESS, LandingOutcome.CRASHED, None])
    results = montecarlo.run_seed_sweep(MOON, base_config=create_test_config(), n_runs=6,
                                        seed=3, run_function=run, verbose=False)
    assert results.n_runs == 6
    assert results.outcome_counts() == {'success': 2, 'crashed': 2, 'incomplete': 2}
    assert results.success_rate == pytest.approx(1 / 3)
    assert len(set(run.calls)) == 6


def test_sweep_seeds_reproducible():
    a = _stub_flight([LandingOutcome.SUCCESS])
    b = _stub_flight([LandingOutcome.SUCCESS])
    montecarlo.run_seed_sweep(MOON, base_config=create_test_config(), n_runs=4, seed=9,
                              run_function=a, verbose=False)
    montecarlo.run_seed_sweep(MOON, base_config=create_test_config(), n_runs=4, seed=9,
                              run_function=b, verbose=False)
    assert a.calls == b.calls


def test_sweep_records_errors():
    run = _stub_flight([LandingOutcome.SUCCESS, 'boom'])
    results = montecarlo.run_seed_sweep(MOON, base_config=create_test_config(), n_runs=2,
                                        run_function=run, verbose=False)
    assert results.runs[1].outcome == 'error'
    assert "engine exploded" in results.runs[1].failure_reason


def test_get_statistic_ignores_nan():
    results = montecarlo.SweepResults()
    for i, error in enumerate([1.0, 3.0, float('nan')]):
        results.runs.append(montecarlo.SweepRunResult(
            run_index=i, seed=float(i), outcome='success', failure_reason=None,
            duration=10.0, fuel_used=5.0, max_gs=0.2, max_descent_rate=30.0,
            touchdown_speed=4.0, horizontal_error=error, abort_attempts=0))
    stats = results.get_statistic('horizontal_error')
    assert stats['mean'] == pytest.approx(2.0)
    assert stats['max'] == 3.0
    assert "horizontal_error" in results.summary()


def test_empty_sweep_statistics():
    results = montecarlo.SweepResults()
    assert results.success_rate == 0.0
    assert results.get_statistic('duration') == {'mean': 0, 'std': 0, 'min': 0, 'max': 0}


@pytest.mark.slow
def test_seed_sweep_moon():
    results = montecarlo.run_seed_sweep(MOON, base_config=create_test_config(max_time=300.0),
                                        n_runs=3, seed=1, verbose=False)
    assert results.n_runs == 3
    assert 'error' not in results.outcome_counts()
    assert all(np.isfinite(r.fuel_used) for r in results.runs)
