"""
Descent Landing Simulation - Guidance Sensor Model

Measurement error applied to altitude and attitude before the autopilot's
PD laws see them. Error magnitude scales inversely with the vehicle's
guidance precision. The error is drawn from the same seeded hash as the
environment model, so a flight is reproducible from its seed alone.
"""

from . import constants as C
from .atmosphere import noise

# (time multiplier, time offset, second argument) per measured quantity
ALTITUDE_CHANNEL = (2.3, 200.0, 17.0)
ATTITUDE_CHANNEL = (3.1, 300.0, 29.0)


class GuidanceSensor:
    """Seeded altimeter and attitude sensor with precision-scaled error."""

    def __init__(self, seed: float, guidance_precision: float = 1.0,
                 altitude_amplitude: float = C.ALTITUDE_NOISE_AMPLITUDE,
                 attitude_amplitude: float = C.ATTITUDE_NOISE_AMPLITUDE,
                 noise_scale: float = 1.0):
        """
        Args:
            seed: Session seed
            guidance_precision: Avionics precision; higher means less error
            altitude_amplitude: Peak altitude error at precision 1.0 (units)
            attitude_amplitude: Peak attitude error at precision 1.0 (rad)
            noise_scale: Extra multiplier (demo playback uses < 1)
        """
        self.seed = seed
        precision = max(guidance_precision, 1e-6)
        self.altitude_amplitude = altitude_amplitude * noise_scale / precision
        self.attitude_amplitude = attitude_amplitude * noise_scale / precision

    def _error(self, t: float, channel: tuple, amplitude: float) -> float:
        t_mult, t_offset, b = channel
        return (noise(t * t_mult + t_offset, b, self.seed) - 0.5) * 2.0 * amplitude

    def measure_altitude(self, true_altitude: float, t: float) -> float:
        """Sensed altitude (units)."""
        return true_altitude + self._error(t, ALTITUDE_CHANNEL, self.altitude_amplitude)

    def measure_rotation(self, true_rotation: float, t: float) -> float:
        """Sensed attitude (rad)."""
        return true_rotation + self._error(t, ATTITUDE_CHANNEL, self.attitude_amplitude)
