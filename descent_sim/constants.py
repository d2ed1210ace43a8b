"""
Descent Landing Simulation - Constants

Fixed simulation tick, environment-model tuning constants, guidance
schedules and abort thresholds shared across the package.

Units are game units: distances in world units, time in seconds,
gravity and thrust as accelerations (units/s^2).
"""

import numpy as np

# =============================================================================
# SIMULATION TIMING
# =============================================================================

# Fixed simulation tick (s)
DT = 1.0 / 60.0

# Maximum flight duration before a flight is reported incomplete (s)
MAX_TIME = 600.0

# Earth standard gravity, used to express felt acceleration in g (m/s^2)
G0 = 9.80665

# =============================================================================
# ENVIRONMENT MODEL
# Empirically tuned values; kept exact for behavioural parity.
# =============================================================================

# Density falls by this fraction from band floor to band ceiling
DENSITY_GRADIENT = 0.3

# Quadratic drag scale
DRAG_SCALE = 0.01

# Turbulent torque scale
TORQUE_SCALE = 0.0003

# Vertical gust multiplier (no steady vertical wind)
VERTICAL_GUST_SCALE = 20.0

# Horizontal wind modulation by turbulence
WIND_TURBULENCE_GAIN = 0.5

# Pseudo-random hash constants
NOISE_A = 12.9898
NOISE_B = 78.233
NOISE_SCALE = 43758.5453

# Channel arguments: (time multiplier, time offset, altitude multiplier)
TURB_X_CHANNEL = (0.5, 0.0, 0.01)
TURB_Y_CHANNEL = (0.7, 100.0, 0.01)
TORQUE_CHANNEL = (1.3, 50.0, 0.02)

# Upper bound for a freshly drawn session seed
SEED_RANGE = 1000.0

# =============================================================================
# VEHICLE DYNAMICS
# =============================================================================

# Per-tick angular velocity damping
ANGULAR_DAMPING = 0.95

# Speeds below this are treated as zero for drag
ZERO_TOLERANCE = 1e-12

# =============================================================================
# GUIDANCE
# =============================================================================

# Braking profile: deceleration budget as a fraction of the net upward
# acceleration at full throttle
BRAKING_DECEL_FRACTION = 0.5

# Fraction of the safe landing velocity the final approach aims for
TOUCHDOWN_VELOCITY_FRACTION = 0.5

# Below this altitude the profile holds the touchdown rate (units)
FINAL_APPROACH_ALTITUDE = 15.0

# Vertical loop: PD output scale (units/s^2 per unit command) and the
# smoothing factor of the measured vertical acceleration
VERTICAL_ACCEL_SCALE = 10.0
ACCEL_FILTER_ALPHA = 0.1

# Tilt limits by altitude: (altitude above, max tilt rad), highest first
TILT_LIMIT_SCHEDULE = (
    (300.0, 0.6),
    (100.0, 0.4),
    (30.0, 0.2),
)
TILT_LIMIT_FLOOR = 0.05

# Deorbit burn start requires attitude within this of retrograde (rad)
ORBIT_ALIGN_TOLERANCE = 0.2

# Deorbit burn throttle by remaining horizontal speed: (speed above, throttle)
DEORBIT_THROTTLE_SCHEDULE = (
    (20.0, 0.9),
    (10.0, 0.7),
)
DEORBIT_THROTTLE_FLOOR = 0.5

# Deorbit burn completes below this horizontal speed (units/s)
DEORBIT_END_SPEED = 2.0

# Boostback: planning throttle for the burn start and lowest throttle
# while flying the required deceleration to the pad
BOOSTBACK_THROTTLE = 0.6
BOOSTBACK_THROTTLE_FLOOR = 0.3

# Target pad must lie beyond the stopping distance plus this much travel (s)
TARGET_LEAD_TIME = 2.0

# Horizontal deceleration assumed when picking a stop-drop target
# (fraction of max thrust)
TARGET_SELECT_DECEL_FRACTION = 0.81

# Coast lateral correction: prediction blend altitude, tilt gains and
# limits, correction thresholds and throttle shaping
COAST_BLEND_ALTITUDE = 200.0
COAST_DEFAULT_TIME_TO_GO = 10.0
COAST_POSITION_GAIN = 0.005
COAST_VELOCITY_GAIN = 0.02
COAST_TILT_LIMIT = 0.25
COAST_TILT_LIMIT_FAR = 0.35
COAST_FAR_ERROR = 100.0
COAST_CORRECTION_SPEED = 8.0
COAST_CORRECTION_ERROR = 30.0
COAST_ALIGN_TOLERANCE = 0.12
COAST_THROTTLE_POSITION_GAIN = 0.003
COAST_THROTTLE_VELOCITY_GAIN = 0.02
COAST_MAX_THROTTLE = 0.5

# Always burn below this altitude once descending
COAST_MIN_ALTITUDE = 50.0

# Final touchdown phase (upright, no lateral correction)
TOUCHDOWN_ALTITUDE = 5.0

# Smallest throttle request that keeps a lit engine burning
MIN_BURN_THROTTLE = 1e-3

# Hover feed-forward uses cos(rotation), floored to avoid blow-up
HOVER_COS_FLOOR = 0.5

# Guidance-precision noise amplitudes (1.0 precision baseline)
ALTITUDE_NOISE_AMPLITUDE = 2.0
ATTITUDE_NOISE_AMPLITUDE = 0.01

# Demo mode scaling
DEMO_GAIN_SCALE = 0.85
DEMO_NOISE_SCALE = 0.5

# Maximum commanded rotation input magnitude
MAX_ROTATION_INPUT = 1.0

# =============================================================================
# ABORT SYSTEM
# =============================================================================

# Fraction of orbital altitude required before an abort-to-orbit is considered
ORBIT_ABORT_MIN_ALTITUDE_FRACTION = 0.7

# Orbit-insertion speed tolerance (fraction of orbital velocity)
ORBIT_SPEED_FRACTION = 0.9

# Emergency-pad search: tolerance behind the vehicle (units) and reach margin
EMERGENCY_PAD_BEHIND_LIMIT = 50.0
EMERGENCY_PAD_REACH_MARGIN = 1.3
EMERGENCY_PAD_FUEL_RANGE = 15.0

# Descent rate above which brace fires the engine
BRACE_DESCENT_RATE = 5.0

# Proportional gain used by abort attitude commands
ABORT_ATTITUDE_KP = 3.0

# Prograde-burn tilt fractions of pi/2 by orbital progress
PROGRADE_TILT_FRACTIONS = (0.3, 0.5, 1.0)

# Abort triggers are not evaluated below this altitude
ABORT_MIN_ALTITUDE = 20.0

# Orbit insertion counts as reached within this of the orbital altitude (units)
ORBIT_ALTITUDE_TOLERANCE = 20.0

# Orbit insertion also needs the vertical speed nulled to within this (units/s)
ORBIT_VERTICAL_SPEED_TOLERANCE = 3.0

# Abort burns fire only with attitude within this of the target (rad)
ABORT_ALIGN_TOLERANCE = 0.3

# Prograde burn stays mostly upright while climbing slower than this (units/s)
PROGRADE_CLIMB_RATE = 10.0

# Orbit-return delta-v estimate: descent arrest factor, climb factor,
# gravity-loss fraction and fuel margin
ORBIT_DV_ARREST_FACTOR = 1.5
ORBIT_DV_CLIMB_FACTOR = 2.0
ORBIT_GRAVITY_LOSS_FRACTION = 0.5
ORBIT_FUEL_MARGIN = 2.0

# =============================================================================
# TELEMETRY
# =============================================================================

# Rounding applied to exported telemetry fields (decimal places)
TELEMETRY_POSITION_DECIMALS = 1
TELEMETRY_VELOCITY_DECIMALS = 2
TELEMETRY_ROTATION_DECIMALS = 3

TWO_PI = 2.0 * np.pi
