"""
cube5d - Deterministic 5D Resonance Pipeline

Public API: integrate a 5D state under a coupled vector field, summarize the
trajectory spectrally, judge the last transition, gate and commit.
Flat, focused files. One file = one responsibility.
"""

# =============================================================================
# CONSTANTS
# =============================================================================
from .constants import (
    STATE_DIM,
    CouplingType,
    GateDecision,
    ErrorKind,
    RECEIPT_SCHEMA,
    ROUNDTRIP_EPSILON,
)

# =============================================================================
# ERRORS
# =============================================================================
from .errors import (
    PipelineError,
    EmptyTrajectory,
    InvalidState,
    SpectralAnalysisError,
    RouteSelectionError,
)

# =============================================================================
# TYPES (Dataclasses)
# =============================================================================
from .types_state import StateVector, SystemParameters, Trajectory
from .types_result import (
    SpectralSignature,
    ProofOfResonance,
    RouteSpec,
    CommitRecord,
    KnowledgeRecord,
    PipelineInput,
    PipelineOutput,
)
from .types_config import (
    PipelineConfig,
    ConfigError,
    CONFIG_DEFAULT,
    CONFIG_STRICT,
    CONFIG_SHADOW,
    load as load_config,
)

# =============================================================================
# CORE
# =============================================================================
from .coupling import CouplingMatrix
from .dynamics import VectorField
from .integration import Integrator, integrate, check_step_size
from .spectral import (
    SpectralAnalyzer,
    centroid,
    magnitude_entropy,
    zero_crossing_frequency,
    fft_peak_frequency,
)
from .resonance import ResonanceEvaluator
from .gate import GateDecisionEngine
from .commit import CommitBuilder
from .pipeline import PipelineOrchestrator

# =============================================================================
# COLLABORATORS / ADAPTERS
# =============================================================================
from .adapters import SpiralCoordinates, StateAdapter
from .collaborators import (
    RouteSelector,
    ResonanceField,
    KnowledgeStore,
    PermutationRouteSelector,
    ConstantResonanceField,
    InMemoryKnowledgeStore,
    JsonlKnowledgeStore,
)

# =============================================================================
# ANALYSIS / TOOLING
# =============================================================================
from .stability import StabilityReport, jacobian, classify, largest_lyapunov
from .projection import Projection, project
from .templates import Template, TEMPLATES, get_template
from .ensemble import EnsembleResult, run_ensemble
from .validation import linear_reference, integration_error, observed_order

# =============================================================================
# PUBLIC API
# =============================================================================
__all__ = [
    # Constants
    "STATE_DIM",
    "CouplingType",
    "GateDecision",
    "ErrorKind",
    "RECEIPT_SCHEMA",
    "ROUNDTRIP_EPSILON",
    # Errors
    "PipelineError",
    "EmptyTrajectory",
    "InvalidState",
    "SpectralAnalysisError",
    "RouteSelectionError",
    # Types
    "StateVector",
    "SystemParameters",
    "Trajectory",
    "SpectralSignature",
    "ProofOfResonance",
    "RouteSpec",
    "CommitRecord",
    "KnowledgeRecord",
    "PipelineInput",
    "PipelineOutput",
    "PipelineConfig",
    "ConfigError",
    "CONFIG_DEFAULT",
    "CONFIG_STRICT",
    "CONFIG_SHADOW",
    "load_config",
    # Core
    "CouplingMatrix",
    "VectorField",
    "Integrator",
    "integrate",
    "check_step_size",
    "SpectralAnalyzer",
    "centroid",
    "magnitude_entropy",
    "zero_crossing_frequency",
    "fft_peak_frequency",
    "ResonanceEvaluator",
    "GateDecisionEngine",
    "CommitBuilder",
    "PipelineOrchestrator",
    # Collaborators
    "SpiralCoordinates",
    "StateAdapter",
    "RouteSelector",
    "ResonanceField",
    "KnowledgeStore",
    "PermutationRouteSelector",
    "ConstantResonanceField",
    "InMemoryKnowledgeStore",
    "JsonlKnowledgeStore",
    # Analysis
    "StabilityReport",
    "jacobian",
    "classify",
    "largest_lyapunov",
    "Projection",
    "project",
    "Template",
    "TEMPLATES",
    "get_template",
    "EnsembleResult",
    "run_ensemble",
    "linear_reference",
    "integration_error",
    "observed_order",
]
