"""
cube5d/resonance.py - Proof-of-Resonance Evaluator

Judges one state transition (prev -> curr):
    delta_pi = ||curr - prev||                 path invariance, >= 0
    phi      = <prev, curr> / (|prev| |curr|)  alignment, 0 if either is zero
    delta_v  = |curr| - |prev|                 energy change
    valid    = delta_pi <= max_delta_pi and phi >= min_phi

Needs only the last two trajectory points.
"""

import math
from typing import Sequence, Tuple

from .constants import DEFAULT_MAX_DELTA_PI, DEFAULT_MIN_PHI
from .errors import stoprule_invalid_state
from .types_result import ProofOfResonance
from .types_state import StateVector


def path_invariance(prev: StateVector, curr: StateVector) -> float:
    return prev.distance(curr)


def _scaled(state: StateVector, scale: float) -> Tuple[float, ...]:
    return tuple(c / scale for c in state)


def alignment(prev: StateVector, curr: StateVector) -> float:
    """Cosine similarity clipped to [-1, 1]; 0.0 when either state is zero.

    Each state is divided by its largest component first, so the dot
    product stays finite for any finite input.
    """
    scale_prev = prev.max_abs()
    scale_curr = curr.max_abs()
    if scale_prev == 0.0 or scale_curr == 0.0:
        return 0.0
    p = _scaled(prev, scale_prev)
    q = _scaled(curr, scale_curr)
    cos = sum(a * b for a, b in zip(p, q)) / (math.hypot(*p) * math.hypot(*q))
    return max(-1.0, min(1.0, cos))


def energy_delta(prev: StateVector, curr: StateVector) -> float:
    """|curr| - |prev|, computed on a shared scale so it is never inf - inf."""
    scale = max(prev.max_abs(), curr.max_abs())
    if scale == 0.0:
        return 0.0
    return (math.hypot(*_scaled(curr, scale)) - math.hypot(*_scaled(prev, scale))) * scale


class ResonanceEvaluator:
    """Pure evaluator with two configured thresholds."""

    def __init__(self, max_delta_pi: float = DEFAULT_MAX_DELTA_PI,
                 min_phi: float = DEFAULT_MIN_PHI):
        self.max_delta_pi = max_delta_pi
        self.min_phi = min_phi

    def evaluate(self, prev: StateVector, curr: StateVector, r: float = 1.0) -> ProofOfResonance:
        """
        Build the proof for prev -> curr.

        Args:
            prev: State before the transition
            curr: State after the transition
            r: Resonance field strength in [0, 1]; checked, reported by the
               caller, does not enter validity

        Raises:
            InvalidState: r outside [0, 1] or non-finite
        """
        if not (math.isfinite(r) and 0.0 <= r <= 1.0):
            stoprule_invalid_state("resonance_strength", r)
        delta_pi = path_invariance(prev, curr)
        phi = alignment(prev, curr)
        delta_v = energy_delta(prev, curr)
        valid = delta_pi <= self.max_delta_pi and phi >= self.min_phi
        return ProofOfResonance(delta_pi=delta_pi, phi=phi, delta_v=delta_v, valid=valid)

    def last_transition(self, trajectory: Sequence[StateVector]) -> Tuple[StateVector, StateVector]:
        """(prev, curr) of the last step; a single state pairs with itself."""
        if not trajectory:
            stoprule_invalid_state("trajectory", "empty")
        if len(trajectory) < 2:
            return trajectory[-1], trajectory[-1]
        return trajectory[-2], trajectory[-1]

    def evaluate_trajectory(self, trajectory: Sequence[StateVector], r: float = 1.0) -> ProofOfResonance:
        prev, curr = self.last_transition(trajectory)
        return self.evaluate(prev, curr, r)
