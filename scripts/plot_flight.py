"""
Descent Landing Simulation - Flight Visualization

Trajectory and telemetry plots for a single flight report: the flight
path over the terrain profile, altitude and speed histories, and fuel and
throttle usage.
"""

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend for batch processing
import matplotlib.pyplot as plt
import numpy as np

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from descent_sim.main import run_flight
from descent_sim.profiles import get_vehicle, get_world
from descent_sim.types import FlightPhase


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class FlightData:
    """Telemetry columns as arrays."""
    t: np.ndarray
    x: np.ndarray
    y: np.ndarray
    vx: np.ndarray
    vy: np.ndarray
    rotation: np.ndarray
    fuel: np.ndarray
    thrust: np.ndarray
    altitude: np.ndarray
    in_orbit: np.ndarray


def configure_plot_style() -> None:
    """Configure matplotlib defaults for the flight plots."""
    plt.rcParams.update({
        'figure.figsize': (10, 6),
        'savefig.dpi': 150,
        'axes.grid': True,
        'axes.axisbelow': True,
        'grid.alpha': 0.3,
        'font.size': 11,
        'axes.titlesize': 13,
        'axes.labelsize': 12,
        'legend.fontsize': 10,
        'lines.linewidth': 1.8,
    })


def extract_flight_data(report) -> FlightData:
    """Turn a FlightReport's telemetry tuple into column arrays."""
    samples = report.telemetry
    return FlightData(
        t=np.array([s.t for s in samples]),
        x=np.array([s.x for s in samples]),
        y=np.array([s.y for s in samples]),
        vx=np.array([s.vx for s in samples]),
        vy=np.array([s.vy for s in samples]),
        rotation=np.array([s.rotation for s in samples]),
        fuel=np.array([s.fuel for s in samples]),
        thrust=np.array([s.thrust for s in samples]),
        altitude=np.array([s.altitude for s in samples]),
        in_orbit=np.array([s.phase == FlightPhase.ORBIT for s in samples]),
    )


# =============================================================================
# Plots
# =============================================================================

def plot_trajectory(data: FlightData, world, output_dir: str) -> str:
    """Flight path over the terrain polyline and pads."""
    fig, ax = plt.subplots()

    terrain = world.terrain
    if terrain is not None:
        tx = [p[0] for p in terrain.points]
        ty = [p[1] for p in terrain.points]
        ax.fill_between(tx, 0, ty, color='#8c7b6b', alpha=0.4, label='Terrain')
        for pad in terrain.pads:
            color = 'gray' if pad.occupied else 'green'
            ax.plot([pad.x1, pad.x2], [pad.y, pad.y], color=color, linewidth=4)
            ax.annotate(f"{pad.designation} x{pad.multiplier}", (pad.center, pad.y),
                        textcoords='offset points', xytext=(0, 8), ha='center', fontsize=8)

    # Split the path where x wraps so lines don't cross the plot
    breaks = np.where(np.abs(np.diff(data.x)) > 0.5 * (terrain.width if terrain else np.inf))[0]
    start = 0
    for end in list(breaks + 1) + [len(data.x)]:
        ax.plot(data.x[start:end], data.y[start:end], 'b-')
        start = end

    ax.scatter([data.x[0]], [data.y[0]], c='green', s=60, zorder=5, label='Start')
    ax.scatter([data.x[-1]], [data.y[-1]], c='red', marker='x', s=80, zorder=5, label='End')
    ax.set_xlabel('x (units)')
    ax.set_ylabel('y (units)')
    ax.set_title('Flight Path', fontweight='bold')
    ax.legend(loc='upper right')

    plt.tight_layout()
    path = os.path.join(output_dir, '01_trajectory.png')
    fig.savefig(path, bbox_inches='tight')
    plt.close(fig)
    return path


def plot_altitude_speed(data: FlightData, output_dir: str) -> str:
    """Altitude, descent rate and horizontal speed against time."""
    fig, (ax1, ax2) = plt.subplots(2, 1, sharex=True, figsize=(10, 8))

    ax1.plot(data.t, data.altitude, 'b-', label='Altitude')
    ax1.set_ylabel('Altitude (units)')
    ax1.set_title('Altitude and Velocity', fontweight='bold')
    ax1.legend(loc='upper right')

    ax2.plot(data.t, -data.vy, 'r-', label='Descent rate')
    ax2.plot(data.t, np.abs(data.vx), 'g-', label='Horizontal speed')
    ax2.set_xlabel('Time (s)')
    ax2.set_ylabel('Speed (units/s)')
    ax2.legend(loc='upper right')

    plt.tight_layout()
    path = os.path.join(output_dir, '02_altitude_speed.png')
    fig.savefig(path, bbox_inches='tight')
    plt.close(fig)
    return path


def plot_propulsion(data: FlightData, output_dir: str) -> str:
    """Fuel remaining and thrust fraction against time."""
    fig, ax1 = plt.subplots()

    ax1.plot(data.t, data.fuel, 'k-', label='Fuel')
    ax1.set_xlabel('Time (s)')
    ax1.set_ylabel('Fuel (units)')

    ax2 = ax1.twinx()
    ax2.fill_between(data.t, 0, data.thrust, color='orange', alpha=0.4, label='Thrust')
    ax2.set_ylabel('Thrust fraction')
    ax2.set_ylim(0, max(1.0, float(np.max(data.thrust)) if len(data.thrust) else 1.0))

    ax1.set_title('Propulsion', fontweight='bold')
    plt.tight_layout()
    path = os.path.join(output_dir, '03_propulsion.png')
    fig.savefig(path, bbox_inches='tight')
    plt.close(fig)
    return path


def plot_attitude(data: FlightData, output_dir: str) -> str:
    fig, ax = plt.subplots()
    ax.plot(data.t, np.degrees(data.rotation), 'm-')
    ax.set_xlabel('Time (s)')
    ax.set_ylabel('Rotation (deg)')
    ax.set_title('Attitude', fontweight='bold')
    plt.tight_layout()
    path = os.path.join(output_dir, '04_attitude.png')
    fig.savefig(path, bbox_inches='tight')
    plt.close(fig)
    return path


def generate_all_plots(report, world, output_dir: str = "plots") -> List[str]:
    """
    Generate every flight plot for one report.

    Args:
        report: FlightReport with telemetry
        world: WorldProfile the flight ran in
        output_dir: Directory to save plots (created if it doesn't exist)

    Returns:
        List of paths to saved plot files
    """
    os.makedirs(output_dir, exist_ok=True)
    configure_plot_style()
    data = extract_flight_data(report)

    return [
        plot_trajectory(data, world, output_dir),
        plot_altitude_speed(data, output_dir),
        plot_propulsion(data, output_dir),
        plot_attitude(data, output_dir),
    ]


def main() -> None:
    """Fly one flight per argument world (default moon) and plot it."""
    world_name = sys.argv[1] if len(sys.argv) > 1 else "moon"
    vehicle_name = sys.argv[2] if len(sys.argv) > 2 else "default"

    world = get_world(world_name)
    vehicle = get_vehicle(vehicle_name, world)

    print(f"Flying {vehicle.name} on {world.name}...")
    report = run_flight(world, vehicle, seed=42.0)
    print(report.summary())

    output_dir = os.path.join("plots", world.name)
    saved_files = generate_all_plots(report, world, output_dir)
    print(f"\nGenerated {len(saved_files)} plots in '{output_dir}/'")
    for i, path in enumerate(saved_files, 1):
        print(f"  {i:2d}. {os.path.basename(path)}")


if __name__ == "__main__":
    main()
