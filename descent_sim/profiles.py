"""
Descent Landing Simulation - World and Vehicle Profiles

Immutable, fully specified descriptions of a planetary body (WorldProfile)
and a spacecraft (VehicleProfile). Every field carries an explicit default
so simulation code never has to check whether an optional setting exists.

Profiles can be built directly, taken from the built-in presets, or loaded
from the camelCase JSON layout used by world/spacecraft definition files
via world_from_dict() / vehicle_from_dict(). Defaults are resolved once
here, at load time.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple


# =============================================================================
# ATMOSPHERE
# =============================================================================

@dataclass(frozen=True)
class WindBand:
    """Altitude interval [altitude_min, altitude_max) with its own air mass."""
    altitude_min: float
    altitude_max: float
    density: float
    wind_speed: float
    turbulence: float

    def contains(self, altitude: float) -> bool:
        return self.altitude_min <= altitude < self.altitude_max


@dataclass(frozen=True)
class EntryHeating:
    enabled: bool = False
    velocity_threshold: float = 80.0
    max_intensity: float = 0.0


@dataclass(frozen=True)
class AtmosphereProfile:
    """Ordered, non-overlapping wind bands plus a drag coefficient."""
    wind_bands: Tuple[WindBand, ...] = ()
    drag_coefficient: float = 0.0
    entry_heating: EntryHeating = field(default_factory=EntryHeating)


# =============================================================================
# TERRAIN
# =============================================================================

@dataclass(frozen=True)
class LandingPad:
    """Flat pad spanning [x1, x2] with its top surface at height y."""
    x1: float
    x2: float
    y: float
    multiplier: int = 1
    occupied: bool = False
    designation: str = ""

    @property
    def center(self) -> float:
        return 0.5 * (self.x1 + self.x2)

    @property
    def width(self) -> float:
        return self.x2 - self.x1


@dataclass(frozen=True)
class TerrainProfile:
    """
    Surface polyline and landing pads.

    Attributes:
        width: Horizontal wrap period of the world
        points: (x, height) vertices, ascending in x, spanning [0, width]
        pads: Landing pads; pad surfaces override the polyline
        allow_damaged_landing: Off-pad touchdowns with safe speed and
            attitude count as damaged instead of crashed
    """
    width: float = 2400.0
    points: Tuple[Tuple[float, float], ...] = ((0.0, 0.0), (2400.0, 0.0))
    pads: Tuple[LandingPad, ...] = ()
    allow_damaged_landing: bool = True


# =============================================================================
# AUTOPILOT GAINS
# =============================================================================

@dataclass(frozen=True)
class AxisGains:
    kp: float
    kd: float

    def scaled(self, factor: float) -> 'AxisGains':
        return AxisGains(kp=self.kp * factor, kd=self.kd * factor)


@dataclass(frozen=True)
class AutopilotGains:
    """Per-axis PD gains supplied by a world."""
    attitude: AxisGains = AxisGains(3.0, 2.0)
    horizontal: AxisGains = AxisGains(0.006, 0.025)
    vertical: AxisGains = AxisGains(0.5, 0.1)


@dataclass(frozen=True)
class GainModifiers:
    """Per-axis multipliers supplied by a vehicle."""
    attitude: float = 1.0
    horizontal: float = 1.0
    vertical: float = 1.0


# =============================================================================
# WORLD
# =============================================================================

@dataclass(frozen=True)
class WorldProfile:
    """
    Planetary body physics, in game units.

    gravity, max_thrust and orbital parameters are scaled for play;
    real_gravity (m/s^2) is only used to express felt acceleration in g.
    """
    name: str = "custom"
    gravity: float = 20.0
    real_gravity: float = 1.62
    orbital_velocity: float = 120.0
    orbital_altitude: float = 800.0
    max_thrust: float = 60.0
    fuel_consumption: float = 8.0
    max_landing_velocity: float = 15.0
    max_landing_angle: float = 0.3
    rotation_speed: float = 4.0
    starting_fuel: float = 100.0
    autopilot_gains: AutopilotGains = field(default_factory=AutopilotGains)
    atmosphere: Optional[AtmosphereProfile] = None
    terrain: Optional[TerrainProfile] = None


# =============================================================================
# VEHICLE
# =============================================================================

@dataclass(frozen=True)
class EngineSpec:
    """Main engine. max_restarts of -1 means unlimited relights."""
    max_thrust: float = 60.0
    throttle_min: float = 0.1
    throttle_max: float = 1.0
    restartable: bool = True
    max_restarts: int = -1


@dataclass(frozen=True)
class FuelSpec:
    capacity: float = 100.0
    consumption_rate: float = 8.0
    mass_per_unit: float = 0.1


@dataclass(frozen=True)
class RCSSpec:
    rotation_acceleration: float = 4.0
    consumes_fuel: bool = False
    fuel_consumption: float = 0.0


@dataclass(frozen=True)
class LandingGearSpec:
    leg_span: float = 20.0
    max_impact_velocity: float = 15.0


@dataclass(frozen=True)
class StructureSpec:
    dry_mass: float = 50.0
    integrity: float = 5.0
    survivable_crash_velocity: float = 20.0
    has_heat_shield: bool = False
    heat_shield_ablation_rate: float = 0.0


@dataclass(frozen=True)
class AvionicsSpec:
    guidance_precision: float = 1.0


@dataclass(frozen=True)
class AbortCapability:
    abort_system: bool = True
    abort_thrust_multiplier: float = 1.5
    max_abort_attempts: int = 1


@dataclass(frozen=True)
class VehicleProfile:
    name: str = "custom"
    engine: EngineSpec = field(default_factory=EngineSpec)
    fuel: FuelSpec = field(default_factory=FuelSpec)
    rcs: RCSSpec = field(default_factory=RCSSpec)
    landing_gear: LandingGearSpec = field(default_factory=LandingGearSpec)
    structure: StructureSpec = field(default_factory=StructureSpec)
    avionics: AvionicsSpec = field(default_factory=AvionicsSpec)
    autopilot_modifiers: GainModifiers = field(default_factory=GainModifiers)
    abort: AbortCapability = field(default_factory=AbortCapability)

    @classmethod
    def from_world(cls, world: WorldProfile) -> 'VehicleProfile':
        """
        Baseline craft built from a world's own physics block.

        Used when no spacecraft is selected: engine, tank and RCS take the
        world's thrust, consumption, starting fuel and rotation speed.
        """
        return cls(
            name=f"{world.name}_default",
            engine=EngineSpec(max_thrust=world.max_thrust, throttle_min=0.0,
                              throttle_max=1.0),
            fuel=FuelSpec(capacity=world.starting_fuel,
                          consumption_rate=world.fuel_consumption),
            rcs=RCSSpec(rotation_acceleration=world.rotation_speed),
            landing_gear=LandingGearSpec(
                max_impact_velocity=world.max_landing_velocity),
        )


# =============================================================================
# PRESETS
# =============================================================================

def _moon_terrain() -> TerrainProfile:
    return TerrainProfile(
        width=2400.0,
        points=(
            (0.0, 140.0), (250.0, 190.0), (420.0, 110.0), (520.0, 110.0),
            (700.0, 230.0), (900.0, 160.0), (1100.0, 90.0), (1200.0, 90.0),
            (1400.0, 200.0), (1650.0, 140.0), (1800.0, 120.0), (1880.0, 120.0),
            (2100.0, 210.0), (2400.0, 140.0),
        ),
        pads=(
            LandingPad(420.0, 520.0, 110.0, multiplier=2, designation="TRANQUILITY"),
            LandingPad(1100.0, 1200.0, 90.0, multiplier=1, designation="FRA MAURO"),
            LandingPad(1800.0, 1880.0, 120.0, multiplier=4, designation="HADLEY"),
        ),
        allow_damaged_landing=True,
    )


def _mars_terrain() -> TerrainProfile:
    return TerrainProfile(
        width=2400.0,
        points=(
            (0.0, 160.0), (300.0, 220.0), (520.0, 130.0), (600.0, 130.0),
            (850.0, 250.0), (1150.0, 170.0), (1400.0, 100.0), (1480.0, 100.0),
            (1750.0, 240.0), (2050.0, 180.0), (2400.0, 160.0),
        ),
        pads=(
            LandingPad(520.0, 600.0, 130.0, multiplier=2, designation="JEZERO"),
            LandingPad(1400.0, 1480.0, 100.0, multiplier=3, designation="GALE"),
        ),
        allow_damaged_landing=True,
    )


def _earth_terrain() -> TerrainProfile:
    return TerrainProfile(
        width=2400.0,
        points=(
            (0.0, 100.0), (400.0, 140.0), (600.0, 80.0), (700.0, 80.0),
            (1000.0, 180.0), (1300.0, 120.0), (1600.0, 60.0), (1690.0, 60.0),
            (2000.0, 150.0), (2400.0, 100.0),
        ),
        pads=(
            LandingPad(600.0, 700.0, 80.0, multiplier=1, designation="LZ-1"),
            LandingPad(1600.0, 1690.0, 60.0, multiplier=3, designation="LZ-2"),
        ),
        allow_damaged_landing=False,
    )


MOON = WorldProfile(
    name="moon",
    gravity=20.0,
    real_gravity=1.62,
    orbital_velocity=120.0,
    orbital_altitude=800.0,
    max_thrust=60.0,
    fuel_consumption=8.0,
    max_landing_velocity=15.0,
    max_landing_angle=0.3,
    rotation_speed=4.0,
    starting_fuel=100.0,
    autopilot_gains=AutopilotGains(
        attitude=AxisGains(3.0, 2.0),
        horizontal=AxisGains(0.006, 0.025),
        vertical=AxisGains(0.5, 0.1),
    ),
    atmosphere=None,
    terrain=_moon_terrain(),
)

MARS = WorldProfile(
    name="mars",
    gravity=46.0,
    real_gravity=3.71,
    orbital_velocity=100.0,
    orbital_altitude=800.0,
    max_thrust=138.0,
    fuel_consumption=10.0,
    max_landing_velocity=12.0,
    max_landing_angle=0.25,
    rotation_speed=3.5,
    starting_fuel=120.0,
    autopilot_gains=AutopilotGains(
        attitude=AxisGains(4.0, 2.5),
        horizontal=AxisGains(0.0027, 0.011),
        vertical=AxisGains(0.7, 0.15),
    ),
    atmosphere=AtmosphereProfile(
        wind_bands=(
            WindBand(150.0, 300.0, density=0.4, wind_speed=-8.0, turbulence=0.2),
            WindBand(50.0, 150.0, density=0.7, wind_speed=5.0, turbulence=0.4),
            WindBand(0.0, 50.0, density=1.0, wind_speed=-3.0, turbulence=0.6),
        ),
        drag_coefficient=0.008,
        entry_heating=EntryHeating(enabled=True, velocity_threshold=80.0,
                                   max_intensity=0.7),
    ),
    terrain=_mars_terrain(),
)

EARTH = WorldProfile(
    name="earth",
    gravity=122.0,
    real_gravity=9.81,
    orbital_velocity=85.0,
    orbital_altitude=800.0,
    max_thrust=366.0,
    fuel_consumption=12.0,
    max_landing_velocity=12.0,
    max_landing_angle=0.25,
    rotation_speed=3.0,
    starting_fuel=150.0,
    autopilot_gains=AutopilotGains(
        attitude=AxisGains(5.0, 3.0),
        horizontal=AxisGains(0.001, 0.004),
        vertical=AxisGains(1.2, 0.25),
    ),
    atmosphere=AtmosphereProfile(
        wind_bands=(
            WindBand(400.0, 600.0, density=0.5, wind_speed=25.0, turbulence=0.3),
            WindBand(200.0, 400.0, density=0.7, wind_speed=-15.0, turbulence=0.6),
            WindBand(0.0, 200.0, density=0.9, wind_speed=8.0, turbulence=0.5),
        ),
        drag_coefficient=0.35,
    ),
    terrain=_earth_terrain(),
)

APOLLO_LM = VehicleProfile(
    name="apollo_lm",
    engine=EngineSpec(max_thrust=60.0, throttle_min=0.1, throttle_max=1.0,
                      restartable=True, max_restarts=-1),
    fuel=FuelSpec(capacity=100.0, consumption_rate=8.0, mass_per_unit=0.1),
    rcs=RCSSpec(rotation_acceleration=4.0, consumes_fuel=False),
    landing_gear=LandingGearSpec(leg_span=20.0, max_impact_velocity=15.0),
    structure=StructureSpec(dry_mass=50.0, integrity=5.0,
                            survivable_crash_velocity=20.0),
    avionics=AvionicsSpec(guidance_precision=1.0),
    autopilot_modifiers=GainModifiers(1.0, 1.0, 1.0),
    abort=AbortCapability(abort_system=True, abort_thrust_multiplier=1.5),
)

MARS_LANDER = VehicleProfile(
    name="mars_lander",
    engine=EngineSpec(max_thrust=80.0, throttle_min=0.2, throttle_max=1.0,
                      restartable=True, max_restarts=3),
    fuel=FuelSpec(capacity=120.0, consumption_rate=10.0, mass_per_unit=0.08),
    rcs=RCSSpec(rotation_acceleration=3.5, consumes_fuel=True, fuel_consumption=0.5),
    landing_gear=LandingGearSpec(leg_span=25.0, max_impact_velocity=12.0),
    structure=StructureSpec(dry_mass=70.0, integrity=7.0,
                            survivable_crash_velocity=15.0,
                            has_heat_shield=True, heat_shield_ablation_rate=0.1),
    avionics=AvionicsSpec(guidance_precision=1.2),
    autopilot_modifiers=GainModifiers(attitude=1.1, horizontal=1.0, vertical=1.2),
    abort=AbortCapability(abort_system=True, abort_thrust_multiplier=1.8),
)

ASTEROID_HOPPER = VehicleProfile(
    name="asteroid_hopper",
    engine=EngineSpec(max_thrust=30.0, throttle_min=0.05, throttle_max=1.0,
                      restartable=True, max_restarts=-1),
    fuel=FuelSpec(capacity=80.0, consumption_rate=5.0, mass_per_unit=0.05),
    rcs=RCSSpec(rotation_acceleration=6.0, consumes_fuel=True, fuel_consumption=0.2),
    landing_gear=LandingGearSpec(leg_span=15.0, max_impact_velocity=25.0),
    structure=StructureSpec(dry_mass=20.0, integrity=4.0,
                            survivable_crash_velocity=30.0),
    avionics=AvionicsSpec(guidance_precision=1.5),
    autopilot_modifiers=GainModifiers(attitude=0.8, horizontal=0.7, vertical=0.8),
    abort=AbortCapability(abort_system=False, abort_thrust_multiplier=1.0),
)

WORLDS = {w.name: w for w in (MOON, MARS, EARTH)}
VEHICLES = {v.name: v for v in (APOLLO_LM, MARS_LANDER, ASTEROID_HOPPER)}


def get_world(name: str) -> WorldProfile:
    """Look up a built-in world by name."""
    try:
        return WORLDS[name]
    except KeyError:
        raise KeyError(f"Unknown world '{name}'. Available: {sorted(WORLDS)}") from None


def get_vehicle(name: str, world: Optional[WorldProfile] = None) -> VehicleProfile:
    """Look up a built-in vehicle; 'default' builds one from the world."""
    if name == "default":
        return VehicleProfile.from_world(world if world is not None else MOON)
    try:
        return VEHICLES[name]
    except KeyError:
        raise KeyError(f"Unknown vehicle '{name}'. Available: {sorted(VEHICLES)}") from None


# =============================================================================
# LOADERS (camelCase definition files)
# =============================================================================

def _gains_from_dict(data: dict, default: AxisGains) -> AxisGains:
    if not data:
        return default
    return AxisGains(kp=float(data.get('kp', default.kp)),
                     kd=float(data.get('kd', default.kd)))


def world_from_dict(data: dict) -> WorldProfile:
    """
    Build a WorldProfile from a world definition document.

    Accepts the nested layout {"id", "physics": {...}, "autopilotGains":
    {...}, "atmosphere": {"dragCoefficient", "windBands": [...]},
    "terrain": {...}}; any missing key takes the WorldProfile default.
    """
    base = WorldProfile()
    physics = data.get('physics', {})
    gains = data.get('autopilotGains', {})

    atmosphere = None
    atmo = data.get('atmosphere')
    if atmo and atmo.get('windBands'):
        heating = atmo.get('entryHeating', {})
        atmosphere = AtmosphereProfile(
            wind_bands=tuple(
                WindBand(
                    altitude_min=float(b['altitudeMin']),
                    altitude_max=float(b['altitudeMax']),
                    density=float(b.get('density', 1.0)),
                    wind_speed=float(b.get('windSpeed', 0.0)),
                    turbulence=float(b.get('turbulence', 0.0)),
                )
                for b in atmo['windBands']
            ),
            drag_coefficient=float(atmo.get('dragCoefficient', 0.0)),
            entry_heating=EntryHeating(
                enabled=bool(heating.get('enabled', False)),
                velocity_threshold=float(heating.get('velocityThreshold', 80.0)),
                max_intensity=float(heating.get('maxIntensity', 0.0)),
            ),
        )

    terrain = None
    terr = data.get('terrain')
    if terr and terr.get('points'):
        dims = data.get('dimensions', {})
        terrain = TerrainProfile(
            width=float(terr.get('width', dims.get('width', 2400.0))),
            points=tuple((float(p['x']), float(p['y'])) for p in terr['points']),
            pads=tuple(
                LandingPad(
                    x1=float(p['x1']), x2=float(p['x2']), y=float(p['y']),
                    multiplier=int(p.get('multiplier', 1)),
                    occupied=bool(p.get('occupied', False)),
                    designation=str(p.get('designation', '')),
                )
                for p in terr.get('pads', [])
            ),
            allow_damaged_landing=bool(terr.get('allowDamagedLanding', True)),
        )

    return WorldProfile(
        name=str(data.get('id', base.name)),
        gravity=float(physics.get('gravity', base.gravity)),
        real_gravity=float(physics.get('realGravity', base.real_gravity)),
        orbital_velocity=float(physics.get('orbitalVelocity', base.orbital_velocity)),
        orbital_altitude=float(physics.get('orbitalAltitude', base.orbital_altitude)),
        max_thrust=float(physics.get('maxThrust', base.max_thrust)),
        fuel_consumption=float(physics.get('fuelConsumption', base.fuel_consumption)),
        max_landing_velocity=float(physics.get('maxLandingVelocity', base.max_landing_velocity)),
        max_landing_angle=float(physics.get('maxLandingAngle', base.max_landing_angle)),
        rotation_speed=float(physics.get('rotationSpeed', base.rotation_speed)),
        starting_fuel=float(physics.get('startingFuel', base.starting_fuel)),
        autopilot_gains=AutopilotGains(
            attitude=_gains_from_dict(gains.get('attitude'), base.autopilot_gains.attitude),
            horizontal=_gains_from_dict(gains.get('horizontal'), base.autopilot_gains.horizontal),
            vertical=_gains_from_dict(gains.get('vertical'), base.autopilot_gains.vertical),
        ),
        atmosphere=atmosphere,
        terrain=terrain,
    )


def vehicle_from_dict(data: dict) -> VehicleProfile:
    """Build a VehicleProfile from a spacecraft definition document."""
    engine = data.get('engine', {})
    fuel = data.get('fuel', {})
    rcs = data.get('rcs', {})
    gear = data.get('landingGear', {})
    structure = data.get('structure', {})
    avionics = data.get('avionics', {})
    caps = data.get('capabilities', {})
    mods = data.get('autopilotModifiers', {})

    d_engine, d_fuel, d_rcs = EngineSpec(), FuelSpec(), RCSSpec()
    d_gear, d_struct, d_abort = LandingGearSpec(), StructureSpec(), AbortCapability()
    throttle = engine.get('throttleRange', [d_engine.throttle_min, d_engine.throttle_max])

    return VehicleProfile(
        name=str(data.get('id', 'custom')),
        engine=EngineSpec(
            max_thrust=float(engine.get('maxThrust', d_engine.max_thrust)),
            throttle_min=float(throttle[0]),
            throttle_max=float(throttle[1]),
            restartable=bool(engine.get('restartable', d_engine.restartable)),
            max_restarts=int(engine.get('maxRestarts', d_engine.max_restarts)),
        ),
        fuel=FuelSpec(
            capacity=float(fuel.get('capacity', d_fuel.capacity)),
            consumption_rate=float(fuel.get('consumptionRate', d_fuel.consumption_rate)),
            mass_per_unit=float(fuel.get('massPerUnit', d_fuel.mass_per_unit)),
        ),
        rcs=RCSSpec(
            rotation_acceleration=float(rcs.get('rotationAcceleration', d_rcs.rotation_acceleration)),
            consumes_fuel=bool(rcs.get('consumesFuel', d_rcs.consumes_fuel)),
            fuel_consumption=float(rcs.get('fuelConsumption', d_rcs.fuel_consumption)),
        ),
        landing_gear=LandingGearSpec(
            leg_span=float(gear.get('legSpan', d_gear.leg_span)),
            max_impact_velocity=float(gear.get('maxImpactVelocity', d_gear.max_impact_velocity)),
        ),
        structure=StructureSpec(
            dry_mass=float(structure.get('dryMass', d_struct.dry_mass)),
            integrity=float(structure.get('integrity', d_struct.integrity)),
            survivable_crash_velocity=float(
                structure.get('survivableCrashVelocity', d_struct.survivable_crash_velocity)),
            has_heat_shield=bool(structure.get('hasHeatShield', d_struct.has_heat_shield)),
            heat_shield_ablation_rate=float(
                structure.get('heatShieldAblationRate', d_struct.heat_shield_ablation_rate)),
        ),
        avionics=AvionicsSpec(
            guidance_precision=float(avionics.get('guidancePrecision', 1.0)),
        ),
        autopilot_modifiers=GainModifiers(
            attitude=float(mods.get('attitude', 1.0)),
            horizontal=float(mods.get('horizontal', 1.0)),
            vertical=float(mods.get('vertical', 1.0)),
        ),
        abort=AbortCapability(
            abort_system=bool(caps.get('abortSystem', d_abort.abort_system)),
            abort_thrust_multiplier=float(
                caps.get('abortThrustMultiplier', d_abort.abort_thrust_multiplier)),
            max_abort_attempts=int(caps.get('maxAbortAttempts', d_abort.max_abort_attempts)),
        ),
    )


def with_atmosphere(world: WorldProfile, atmosphere: Optional[AtmosphereProfile]) -> WorldProfile:
    """Copy of a world with its atmosphere replaced (None for vacuum)."""
    return replace(world, atmosphere=atmosphere)
