"""
Descent Landing Simulation - Environment Model

Pure mapping from (altitude, velocity, time, seed) to wind, drag and
turbulent torque for a given atmosphere profile. The only randomness is a
deterministic hash of its arguments and the session seed, so identical
inputs always produce identical effects.

The scaling constants (drag 0.01, torque 0.0003, density gradient 0.3,
vertical gust 20) are tuned for play and must stay as they are.
"""

from typing import Optional

import numpy as np

from . import constants as C
from .profiles import AtmosphereProfile, WindBand
from .types import EnvironmentEffect, ZERO_EFFECT


def noise(a: float, b: float, seed: float) -> float:
    """
    Deterministic pseudo-random scalar in [0, 1).

    noise(a, b) = frac(sin(a*12.9898 + b*78.233 + seed) * 43758.5453)
    """
    v = np.sin(a * C.NOISE_A + b * C.NOISE_B + seed) * C.NOISE_SCALE
    return float(v - np.floor(v))


def _channel(t: float, altitude: float, seed: float, channel: tuple) -> float:
    """Zero-mean noise sample in [-1, 1) for one decorrelated channel."""
    t_mult, t_offset, alt_mult = channel
    return (noise(t * t_mult + t_offset, altitude * alt_mult, seed) - 0.5) * 2.0


def new_session_seed(rng: np.random.Generator = None) -> float:
    """
    Draw a fresh turbulence seed for a new flight session.

    Args:
        rng: Optional generator; a fresh default_rng() is used otherwise

    Returns:
        Seed in [0, 1000)
    """
    if rng is None:
        rng = np.random.default_rng()
    return float(rng.uniform(0.0, C.SEED_RANGE))


def find_wind_band(altitude: float,
                   atmosphere: Optional[AtmosphereProfile]) -> Optional[WindBand]:
    """First band with altitude_min <= altitude < altitude_max, or None."""
    if atmosphere is None:
        return None
    for band in atmosphere.wind_bands:
        if band.contains(altitude):
            return band
    return None


def band_density(altitude: float, band: WindBand) -> float:
    """Band density with a mild gradient, densest at the band floor."""
    span = band.altitude_max - band.altitude_min
    p = (altitude - band.altitude_min) / span if span > 0 else 0.0
    return band.density * (1.0 - p * C.DENSITY_GRADIENT)


def effect_at(altitude: float, vx: float, vy: float,
              atmosphere: Optional[AtmosphereProfile],
              t: float, seed: float) -> EnvironmentEffect:
    """
    Compute the environmental effect at one point of the flight.

    Args:
        altitude: Height above the surface (units)
        vx, vy: Vehicle velocity (units/s)
        atmosphere: Atmosphere profile, None for vacuum
        t: Flight time (s)
        seed: Session turbulence seed

    Returns:
        EnvironmentEffect (all zero in vacuum or outside every band)
    """
    if atmosphere is None or not atmosphere.wind_bands:
        return ZERO_EFFECT

    band = find_wind_band(altitude, atmosphere)
    if band is None:
        return ZERO_EFFECT

    density = band_density(altitude, band)

    turb_x = _channel(t, altitude, seed, C.TURB_X_CHANNEL) * band.turbulence
    turb_y = _channel(t, altitude, seed, C.TURB_Y_CHANNEL) * band.turbulence

    wind_x = band.wind_speed * (1.0 + turb_x * C.WIND_TURBULENCE_GAIN)
    wind_y = turb_y * C.VERTICAL_GUST_SCALE

    rel_x = vx - wind_x
    rel_y = vy - wind_y
    rel_speed = float(np.hypot(rel_x, rel_y))

    drag_x = 0.0
    drag_y = 0.0
    if rel_speed > C.ZERO_TOLERANCE:
        drag_mag = atmosphere.drag_coefficient * density
        drag_x = -drag_mag * rel_x * abs(rel_x) * C.DRAG_SCALE
        drag_y = -drag_mag * rel_y * abs(rel_y) * C.DRAG_SCALE

    torque_noise = _channel(t, altitude, seed, C.TORQUE_CHANNEL)
    torque = torque_noise * density * band.turbulence * rel_speed * C.TORQUE_SCALE

    return EnvironmentEffect(
        density=density,
        wind_x=wind_x,
        wind_y=wind_y,
        drag_x=drag_x,
        drag_y=drag_y,
        torque=torque,
    )
