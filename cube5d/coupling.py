"""
cube5d/coupling.py - Coupling Matrix

Fixed 5x5 interaction weights between dimensions, tagged with the coupling
topology that decides how they enter the vector field.
"""

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from .constants import STATE_DIM, CouplingType
from .errors import stoprule_invalid_state


@dataclass(frozen=True)
class CouplingMatrix:
    """5x5 coupling weights plus their CouplingType.

    NONE contributes nothing regardless of the weights; `none()` is the
    canonical all-zero passthrough.
    """
    rows: Tuple[Tuple[float, ...], ...]
    coupling_type: CouplingType = CouplingType.LINEAR

    def __post_init__(self):
        rows = tuple(tuple(float(v) for v in row) for row in self.rows)
        if len(rows) != STATE_DIM or any(len(r) != STATE_DIM for r in rows):
            stoprule_invalid_state("coupling_matrix_shape", [len(r) for r in rows])
        if not all(math.isfinite(v) for r in rows for v in r):
            stoprule_invalid_state("coupling_matrix", rows)
        object.__setattr__(self, "rows", rows)
        object.__setattr__(self, "coupling_type", CouplingType(self.coupling_type))

    # -------------------------------------------------------------------------
    # Named variants
    # -------------------------------------------------------------------------

    @classmethod
    def none(cls) -> "CouplingMatrix":
        return cls(((0.0,) * STATE_DIM,) * STATE_DIM, CouplingType.NONE)

    @classmethod
    def from_array(cls, arr, coupling_type: CouplingType = CouplingType.LINEAR) -> "CouplingMatrix":
        arr = np.asarray(arr, dtype=np.float64)
        return cls(tuple(tuple(row) for row in arr.tolist()), coupling_type)

    @classmethod
    def from_rows(cls, rows: Sequence[Sequence[float]],
                  coupling_type: CouplingType = CouplingType.LINEAR) -> "CouplingMatrix":
        return cls(tuple(tuple(r) for r in rows), coupling_type)

    @classmethod
    def identity(cls, strength: float = 1.0,
                 coupling_type: CouplingType = CouplingType.LINEAR) -> "CouplingMatrix":
        return cls.from_array(np.eye(STATE_DIM) * strength, coupling_type)

    @classmethod
    def uniform(cls, strength: float,
                coupling_type: CouplingType = CouplingType.LINEAR) -> "CouplingMatrix":
        """Every off-diagonal pair coupled with the same weight."""
        arr = np.full((STATE_DIM, STATE_DIM), strength, dtype=np.float64)
        np.fill_diagonal(arr, 0.0)
        return cls.from_array(arr, coupling_type)

    @classmethod
    def ring(cls, strength: float,
             coupling_type: CouplingType = CouplingType.LINEAR) -> "CouplingMatrix":
        """Diffusive nearest-neighbour coupling on a ring (discrete Laplacian)."""
        arr = np.zeros((STATE_DIM, STATE_DIM), dtype=np.float64)
        for i in range(STATE_DIM):
            arr[i, (i + 1) % STATE_DIM] += strength
            arr[i, (i - 1) % STATE_DIM] += strength
            arr[i, i] -= 2.0 * strength
        return cls.from_array(arr, coupling_type)

    # -------------------------------------------------------------------------
    # Behavior
    # -------------------------------------------------------------------------

    def to_array(self) -> np.ndarray:
        return np.array(self.rows, dtype=np.float64)

    @property
    def is_none(self) -> bool:
        return self.coupling_type is CouplingType.NONE

    def contribution(self, x: np.ndarray) -> np.ndarray:
        """Coupling term c(x) added to each dimension's self-dynamics."""
        if self.coupling_type is CouplingType.NONE:
            return np.zeros(STATE_DIM, dtype=np.float64)
        if self.coupling_type is CouplingType.LINEAR:
            return self.to_array() @ x
        return self.to_array() @ np.tanh(x)

    def to_dict(self) -> dict:
        return {"coupling_type": self.coupling_type.value, "rows": [list(r) for r in self.rows]}
