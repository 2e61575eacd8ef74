"""
cube5d/gate.py - Gate Decision Engine

FIRE iff the proof is valid and the transition contracts (delta_v < 0).
Everything else, including a trajectory too short to have a transition, HOLDs.
Stateless: each call decides afresh.
"""

from typing import Optional

from .constants import GateDecision
from .types_result import ProofOfResonance


class GateDecisionEngine:
    """Pure function from ProofOfResonance to GateDecision."""

    def decide(self, proof: ProofOfResonance,
               trajectory_length: Optional[int] = None) -> GateDecision:
        if trajectory_length is not None and trajectory_length < 2:
            return GateDecision.HOLD
        if proof.valid and proof.delta_v < 0:
            return GateDecision.FIRE
        return GateDecision.HOLD


def decide(proof: ProofOfResonance, trajectory_length: Optional[int] = None) -> GateDecision:
    return GateDecisionEngine().decide(proof, trajectory_length)
