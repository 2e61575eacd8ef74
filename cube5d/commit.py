"""
cube5d/commit.py - Commit Builder

Deterministic digest over a canonical text encoding:

    "[c0,c1,c2,c3,c4]|phi|seed"

components at a fixed number of decimals, phi at exactly 10. SHA-256 hex,
64 chars. The wall-clock timestamp travels beside the digest, never inside.
"""

import hashlib
from datetime import datetime, timezone

from .constants import DEFAULT_STATE_PRECISION, PHI_PRECISION
from .types_result import CommitRecord, ProofOfResonance
from .types_state import StateVector


def _fixed(value: float, decimals: int) -> str:
    text = f"{value:.{decimals}f}"
    # -0.000 and 0.000 must hash the same
    if text.lstrip("-").strip("0.") == "":
        text = text.lstrip("-")
    return text


class CommitBuilder:
    """Builds CommitRecords. Holds only the encoding precision."""

    def __init__(self, state_precision: int = DEFAULT_STATE_PRECISION):
        self.state_precision = state_precision

    def canonical_encoding(self, state: StateVector, phi: float, seed: str) -> str:
        components = ",".join(_fixed(c, self.state_precision) for c in state)
        return f"[{components}]|{_fixed(phi, PHI_PRECISION)}|{seed}"

    def digest(self, state: StateVector, phi: float, seed: str) -> str:
        """SHA-256 hex of the canonical encoding. Same inputs, same digest."""
        return hashlib.sha256(self.canonical_encoding(state, phi, seed).encode()).hexdigest()

    def build(self, state: StateVector, proof: ProofOfResonance, seed: str) -> CommitRecord:
        return CommitRecord(
            state_snapshot=state,
            proof=proof,
            digest=self.digest(state, proof.phi, seed),
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    def verify(self, record: CommitRecord, seed: str) -> bool:
        """True if the record's digest matches its state, phi and the seed."""
        return record.digest == self.digest(record.state_snapshot, record.proof.phi, seed)
