"""
cube5d/types_state.py - StateVector, SystemParameters, Trajectory

Immutable state-space values. Frozen dataclasses, pure helpers.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Iterator, Mapping, Optional, Sequence, Tuple

import numpy as np

from .constants import STATE_DIM
from .errors import stoprule_invalid_state


# =============================================================================
# STATE VECTOR
# =============================================================================

@dataclass(frozen=True)
class StateVector:
    """A point in the 5-dimensional state space.

    Exactly STATE_DIM finite floats. Equality is exact componentwise.
    """
    components: Tuple[float, ...]

    def __post_init__(self):
        values = tuple(float(c) for c in self.components)
        if len(values) != STATE_DIM:
            stoprule_invalid_state("state_vector", values)
        if not all(math.isfinite(v) for v in values):
            stoprule_invalid_state("state_vector", values)
        object.__setattr__(self, "components", values)

    @classmethod
    def of(cls, *components: float) -> "StateVector":
        return cls(tuple(components))

    @classmethod
    def zeros(cls) -> "StateVector":
        return cls((0.0,) * STATE_DIM)

    @classmethod
    def from_array(cls, arr) -> "StateVector":
        return cls(tuple(np.asarray(arr, dtype=np.float64).ravel().tolist()))

    def to_array(self) -> np.ndarray:
        return np.array(self.components, dtype=np.float64)

    def __getitem__(self, i: int) -> float:
        return self.components[i]

    def __iter__(self) -> Iterator[float]:
        return iter(self.components)

    def __len__(self) -> int:
        return STATE_DIM

    def norm(self) -> float:
        """Euclidean norm. hypot keeps large components from overflowing."""
        return math.hypot(*self.components)

    def max_abs(self) -> float:
        return max(abs(c) for c in self.components)

    def dot(self, other: "StateVector") -> float:
        return sum(a * b for a, b in zip(self.components, other.components))

    def distance(self, other: "StateVector") -> float:
        """Euclidean distance to another state."""
        return math.hypot(*(a - b for a, b in zip(self.components, other.components)))

    def to_list(self):
        return list(self.components)


Trajectory = Tuple[StateVector, ...]


def trajectory_to_array(trajectory: Sequence[StateVector]) -> np.ndarray:
    """Stack a trajectory into an (n, STATE_DIM) float64 array."""
    if not trajectory:
        return np.empty((0, STATE_DIM), dtype=np.float64)
    return np.array([s.components for s in trajectory], dtype=np.float64)


def trajectory_from_array(arr) -> Trajectory:
    """Inverse of trajectory_to_array."""
    arr = np.asarray(arr, dtype=np.float64)
    return tuple(StateVector.from_array(row) for row in arr)


# =============================================================================
# SYSTEM PARAMETERS
# =============================================================================

@dataclass(frozen=True)
class SystemParameters:
    """Named scalar coefficients consumed by the vector field.

    No required keys. Recognized by the field formula:
    - alpha / alpha_<i>: self-rate of dimension i (default 0.0)
    - beta / beta_<i>: constant drive of dimension i (default 0.0)
    - gamma: coupling gain (default 1.0)

    Per-dimension keys override the shared key. Hashes by its sorted items,
    so inputs and templates carrying it are hashable.
    """
    values: Dict[str, float] = field(default_factory=dict)

    def __post_init__(self):
        clean = {str(k): float(v) for k, v in dict(self.values).items()}
        bad = {k: v for k, v in clean.items() if not math.isfinite(v)}
        if bad:
            stoprule_invalid_state("system_parameters", bad)
        object.__setattr__(self, "values", clean)

    def __hash__(self) -> int:
        return hash(tuple(sorted(self.values.items())))

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, float]] = None) -> "SystemParameters":
        return cls(dict(mapping or {}))

    def get(self, key: str, default: float = 0.0) -> float:
        return self.values.get(key, default)

    def __getitem__(self, key: str) -> float:
        return self.values[key]

    def __contains__(self, key: str) -> bool:
        return key in self.values

    def rate(self, i: int) -> float:
        return self.values.get(f"alpha_{i}", self.values.get("alpha", 0.0))

    def drive(self, i: int) -> float:
        return self.values.get(f"beta_{i}", self.values.get("beta", 0.0))

    @property
    def gain(self) -> float:
        return self.values.get("gamma", 1.0)

    def rates(self) -> np.ndarray:
        return np.array([self.rate(i) for i in range(STATE_DIM)], dtype=np.float64)

    def drives(self) -> np.ndarray:
        return np.array([self.drive(i) for i in range(STATE_DIM)], dtype=np.float64)

    def to_dict(self) -> Dict[str, float]:
        return dict(sorted(self.values.items()))
