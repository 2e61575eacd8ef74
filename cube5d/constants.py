"""
cube5d/constants.py - Pipeline Constants and Enums

All constants for the 5D resonance pipeline. Centralized for tuning.
Pure data, no behavior.
"""

from enum import Enum

# =============================================================================
# STATE SPACE
# =============================================================================

STATE_DIM = 5  # Fixed dimension of the state space

# =============================================================================
# INTEGRATION DEFAULTS
# =============================================================================

DEFAULT_STEP_SIZE = 0.01
DEFAULT_T_FINAL = 1.0
STEP_RATIO_DECIMALS = 9  # t_final / h is rounded before the ceiling
HEUN_STABILITY_LIMIT = 2.0  # h * |lambda| bound on the real axis

# =============================================================================
# GATE THRESHOLDS
# =============================================================================

DEFAULT_MAX_DELTA_PI = 0.1  # Largest admissible step displacement
DEFAULT_MIN_PHI = 0.5       # Smallest admissible cosine alignment

# =============================================================================
# SPECTRAL ANALYSIS
# =============================================================================

DEFAULT_HISTORY_WINDOW = 4096  # Observation buffer bound per run
DEFAULT_ENTROPY_BINS = 16      # Histogram bins for the magnitude entropy
DEFAULT_FREQUENCY_COMPONENT = 0

# =============================================================================
# COMMIT ENCODING
# =============================================================================

DEFAULT_SEED = "42"
DEFAULT_STATE_PRECISION = 12  # Decimals per state component in the digest
PHI_PRECISION = 10            # Decimals for phi in the digest
SEED_PREFIX_LENGTH = 8        # Seed characters carried into knowledge ids
DIGEST_LENGTH = 64            # SHA-256 hex

# =============================================================================
# ADAPTERS / ROUTING
# =============================================================================

ROUNDTRIP_EPSILON = 1e-10  # Max error in state <-> spiral round trip
ROUTE_ORDER = 7            # Routes are permutations of 7 elements (S7)

# =============================================================================
# STABILITY
# =============================================================================

JACOBIAN_EPSILON = 1e-6
MARGINAL_TOLERANCE = 1e-9  # |max Re(lambda)| below this = marginal

# =============================================================================
# RECEIPT TYPES
# =============================================================================

RECEIPT_SCHEMA = [
    "integration",
    "spectral_signature",
    "route_selection",
    "resonance_proof",
    "gate_decision",
    "commit",
    "anomaly",
    "pipeline_run",
    "ensemble_run",
]


# =============================================================================
# ENUMS
# =============================================================================

class CouplingType(Enum):
    """How the coupling matrix enters each dimension's derivative."""
    NONE = "none"
    LINEAR = "linear"
    NONLINEAR = "nonlinear"


class GateDecision(Enum):
    """Binary gate outcome. No intermediate states."""
    FIRE = "FIRE"
    HOLD = "HOLD"


class ErrorKind(Enum):
    """Tags for the closed pipeline error hierarchy."""
    EMPTY_TRAJECTORY = "empty_trajectory"
    INVALID_STATE = "invalid_state"
    SPECTRAL_ANALYSIS = "spectral_analysis"
    ROUTE_SELECTION = "route_selection"
