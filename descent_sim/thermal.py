"""
Descent Landing Simulation - Entry Heating

Scalar entry-heating intensity for worlds with an atmosphere. Intensity
rises linearly once speed exceeds the threshold, saturating at twice the
threshold, and only where there is air. A heat shield ablates while
heating is active.
"""

from typing import Optional

import numpy as np

from .profiles import AtmosphereProfile, StructureSpec


def entry_heating_intensity(speed: float, density: float,
                            atmosphere: Optional[AtmosphereProfile]) -> float:
    """
    Heating intensity in [0, max_intensity].

    Args:
        speed: Vehicle speed (units/s)
        density: Local air density from the environment model
        atmosphere: Atmosphere profile, None for vacuum

    Returns:
        Heating intensity (0 when disabled, in vacuum, or below threshold)
    """
    if atmosphere is None or density <= 0.0:
        return 0.0
    heating = atmosphere.entry_heating
    if not heating.enabled or heating.velocity_threshold <= 0.0:
        return 0.0
    fraction = (speed - heating.velocity_threshold) / heating.velocity_threshold
    return float(np.clip(fraction, 0.0, 1.0) * heating.max_intensity)


class ThermalState:
    """Tracks peak heating and heat-shield ablation over a flight."""

    def __init__(self, structure: StructureSpec):
        self.has_heat_shield = structure.has_heat_shield
        self.ablation_rate = structure.heat_shield_ablation_rate
        self.shield_remaining = 1.0 if structure.has_heat_shield else 0.0
        self.peak_intensity = 0.0

    def update(self, intensity: float, dt: float):
        """Accumulate one tick of heating."""
        self.peak_intensity = max(self.peak_intensity, intensity)
        if self.has_heat_shield and intensity > 0.0:
            self.shield_remaining = max(
                0.0, self.shield_remaining - self.ablation_rate * intensity * dt)
