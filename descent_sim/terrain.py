"""
Descent Landing Simulation - Terrain Queries

Surface height, pad lookup and horizontal wrap-around on a TerrainProfile.
A world without terrain is treated as flat ground at height zero with no
pads and no wrapping.
"""

from typing import Optional

import numpy as np

from .profiles import LandingPad, TerrainProfile, WorldProfile


def wrap_x(x: float, terrain: Optional[TerrainProfile]) -> float:
    """Wrap a horizontal position into [0, width)."""
    if terrain is None or terrain.width <= 0:
        return x
    return float(np.mod(x, terrain.width))


def wrapped_dx(from_x: float, to_x: float, terrain: Optional[TerrainProfile]) -> float:
    """Shortest signed horizontal distance from from_x to to_x."""
    dx = to_x - from_x
    if terrain is None or terrain.width <= 0:
        return dx
    width = terrain.width
    return float((dx + 0.5 * width) % width - 0.5 * width)


def find_pad_at(x: float, terrain: Optional[TerrainProfile]) -> Optional[int]:
    """Index of the pad whose span contains x, or None."""
    if terrain is None:
        return None
    x = wrap_x(x, terrain)
    for i, pad in enumerate(terrain.pads):
        if pad.x1 <= x <= pad.x2:
            return i
    return None


def surface_height(x: float, terrain: Optional[TerrainProfile]) -> float:
    """
    Ground height at x.

    Pad surfaces take precedence over the terrain polyline.
    """
    if terrain is None:
        return 0.0
    x = wrap_x(x, terrain)
    pad_index = find_pad_at(x, terrain)
    if pad_index is not None:
        return terrain.pads[pad_index].y
    xs = [p[0] for p in terrain.points]
    ys = [p[1] for p in terrain.points]
    return float(np.interp(x, xs, ys))


def altitude_at(x: float, y: float, world: WorldProfile) -> float:
    """Height of (x, y) above the local surface."""
    return y - surface_height(x, world.terrain)


def get_pad(world: WorldProfile, index: Optional[int]) -> Optional[LandingPad]:
    if index is None or world.terrain is None:
        return None
    if 0 <= index < len(world.terrain.pads):
        return world.terrain.pads[index]
    return None


def nearest_pad(x: float, world: WorldProfile, include_occupied: bool = False,
                exclude: Optional[int] = None) -> Optional[int]:
    """Index of the closest pad center by wrapped distance."""
    if world.terrain is None:
        return None
    best, best_dist = None, float('inf')
    for i, pad in enumerate(world.terrain.pads):
        if i == exclude or (pad.occupied and not include_occupied):
            continue
        dist = abs(wrapped_dx(x, pad.center, world.terrain))
        if dist < best_dist:
            best, best_dist = i, dist
    return best
