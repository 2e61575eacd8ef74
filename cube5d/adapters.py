"""
cube5d/adapters.py - State <-> Spiral Coordinate Adapter

External ledgers address states in spiral coordinates:
    (r1, theta1) = polar form of (x0, x1)
    (r2, theta2) = polar form of (x2, x3)
    z            = x4
Round trip recovers every component within ROUNDTRIP_EPSILON.
"""

import math
from dataclasses import dataclass
from typing import Dict

from .constants import ROUNDTRIP_EPSILON
from .types_state import StateVector


@dataclass(frozen=True)
class SpiralCoordinates:
    r1: float
    theta1: float
    r2: float
    theta2: float
    z: float

    def to_dict(self) -> Dict[str, float]:
        return {"r1": self.r1, "theta1": self.theta1, "r2": self.r2,
                "theta2": self.theta2, "z": self.z}


class StateAdapter:
    """Bidirectional conversion between StateVector and SpiralCoordinates."""

    def to_spiral(self, state: StateVector) -> SpiralCoordinates:
        x0, x1, x2, x3, x4 = state.components
        return SpiralCoordinates(
            r1=math.hypot(x0, x1),
            theta1=math.atan2(x1, x0),
            r2=math.hypot(x2, x3),
            theta2=math.atan2(x3, x2),
            z=x4,
        )

    def from_spiral(self, coords: SpiralCoordinates) -> StateVector:
        return StateVector.of(
            coords.r1 * math.cos(coords.theta1),
            coords.r1 * math.sin(coords.theta1),
            coords.r2 * math.cos(coords.theta2),
            coords.r2 * math.sin(coords.theta2),
            coords.z,
        )

    def roundtrip_error(self, state: StateVector) -> float:
        """Max absolute componentwise error of state -> spiral -> state."""
        back = self.from_spiral(self.to_spiral(state))
        return max(abs(a - b) for a, b in zip(state, back))

    def check_roundtrip(self, state: StateVector, epsilon: float = ROUNDTRIP_EPSILON) -> bool:
        return self.roundtrip_error(state) <= epsilon
