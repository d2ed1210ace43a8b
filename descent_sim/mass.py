"""
Descent Landing Simulation - Mass Properties

Thrust and drag are given as accelerations for a fully fuelled vehicle.
As fuel burns the vehicle lightens, so the same force produces a larger
acceleration. Gravity is unaffected.
"""

from .profiles import VehicleProfile


def vehicle_mass(vehicle: VehicleProfile, fuel: float) -> float:
    """Dry mass plus remaining-fuel mass."""
    return vehicle.structure.dry_mass + max(fuel, 0.0) * vehicle.fuel.mass_per_unit


def full_mass(vehicle: VehicleProfile) -> float:
    """Vehicle mass with a full tank."""
    return vehicle_mass(vehicle, vehicle.fuel.capacity)


def mass_ratio(vehicle: VehicleProfile, fuel: float) -> float:
    """
    Acceleration scale factor for the current fuel load.

    Returns 1.0 at full tank and grows as fuel is spent. A massless
    vehicle definition falls back to 1.0.

    Args:
        vehicle: Vehicle profile
        fuel: Fuel remaining (units)

    Returns:
        full_mass / current_mass
    """
    current = vehicle_mass(vehicle, fuel)
    if current <= 0.0:
        return 1.0
    return full_mass(vehicle) / current


def is_fuel_exhausted(fuel: float) -> bool:
    return fuel <= 0.0
