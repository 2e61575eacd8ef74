"""
cube5d/types_result.py - Pipeline Records

Immutable value records flowing through and out of the pipeline.
Frozen dataclasses with to_dict() for export and hashing.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from receipts import merkle

from .constants import DEFAULT_SEED, GateDecision
from .coupling import CouplingMatrix
from .errors import stoprule_invalid_state
from .types_state import StateVector, SystemParameters, Trajectory


@dataclass(frozen=True)
class SpectralSignature:
    """(psi, rho, omega) summary of a trajectory. rho in [0, 1]."""
    psi: float
    rho: float
    omega: float

    def __post_init__(self):
        if not all(math.isfinite(v) for v in (self.psi, self.rho, self.omega)):
            stoprule_invalid_state("spectral_signature", (self.psi, self.rho, self.omega))
        if not 0.0 <= self.rho <= 1.0:
            raise ValueError(f"rho must be in [0, 1], got {self.rho}")

    def to_dict(self) -> Dict[str, float]:
        return {"psi": self.psi, "rho": self.rho, "omega": self.omega}


@dataclass(frozen=True)
class ProofOfResonance:
    """Validity judgment about one state transition.

    delta_pi: step displacement, >= 0
    phi: cosine alignment, in [-1, 1]
    delta_v: signed energy change, negative = contraction
    valid: delta_pi <= max_delta_pi and phi >= min_phi
    """
    delta_pi: float
    phi: float
    delta_v: float
    valid: bool

    def __post_init__(self):
        if self.delta_pi < 0:
            raise ValueError(f"delta_pi must be >= 0, got {self.delta_pi}")
        if not -1.0 <= self.phi <= 1.0:
            raise ValueError(f"phi must be in [-1, 1], got {self.phi}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "delta_pi": self.delta_pi,
            "phi": self.phi,
            "delta_v": self.delta_v,
            "valid": self.valid,
        }


@dataclass(frozen=True)
class RouteSpec:
    """Route chosen by the external selector."""
    route_id: str
    permutation: Tuple[int, ...]
    score: float

    def __post_init__(self):
        object.__setattr__(self, "permutation", tuple(int(i) for i in self.permutation))

    def to_dict(self) -> Dict[str, Any]:
        return {"route_id": self.route_id, "permutation": list(self.permutation), "score": self.score}


@dataclass(frozen=True)
class CommitRecord:
    """Hashed snapshot. `timestamp` is audit metadata and is not in `digest`."""
    state_snapshot: StateVector
    proof: ProofOfResonance
    digest: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "state_snapshot": self.state_snapshot.to_list(),
            "proof": self.proof.to_dict(),
            "digest": self.digest,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class KnowledgeRecord:
    """Record handed to the knowledge store on FIRE."""
    identifier: str
    owner_id: str
    route_id: str
    seed_path: str
    payload: bytes
    commit: CommitRecord

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identifier": self.identifier,
            "owner_id": self.owner_id,
            "route_id": self.route_id,
            "seed_path": self.seed_path,
            "payload": self.payload.hex(),
            "commit": self.commit.to_dict(),
        }


@dataclass(frozen=True)
class PipelineInput:
    """One pipeline invocation. None step_size / t_final = configured default."""
    initial_state: StateVector
    parameters: SystemParameters = field(default_factory=SystemParameters)
    coupling: CouplingMatrix = field(default_factory=CouplingMatrix.none)
    step_size: Optional[float] = None
    t_final: Optional[float] = None
    identifier: str = ""
    seed: str = DEFAULT_SEED
    seed_path: str = ""


@dataclass(frozen=True)
class PipelineOutput:
    """Canonical output record of one run."""
    trajectory: Trajectory
    signature: SpectralSignature
    centroid: StateVector
    spiral: Any  # adapters.SpiralCoordinates, or the custom adapter's form
    route: RouteSpec
    proof: ProofOfResonance
    decision: GateDecision
    knowledge: Optional[KnowledgeRecord]
    committed: bool
    resonance_strength: float
    receipts: Tuple[Dict[str, Any], ...] = ()

    @property
    def final_state(self) -> StateVector:
        return self.trajectory[-1]

    def receipts_root(self) -> str:
        """Merkle root over this run's receipts."""
        return merkle(list(self.receipts))

    def to_dict(self) -> Dict[str, Any]:
        spiral = self.spiral.to_dict() if hasattr(self.spiral, "to_dict") else self.spiral
        return {
            "trajectory": [s.to_list() for s in self.trajectory],
            "signature": self.signature.to_dict(),
            "centroid": self.centroid.to_list(),
            "spiral": spiral,
            "route": self.route.to_dict(),
            "proof": self.proof.to_dict(),
            "decision": self.decision.value,
            "knowledge": self.knowledge.to_dict() if self.knowledge else None,
            "committed": self.committed,
            "resonance_strength": self.resonance_strength,
        }
