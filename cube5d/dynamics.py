"""
cube5d/dynamics.py - Vector Field

f_i(x) = alpha_i * x_i + beta_i + gamma * c_i(x)

where c(x) is the coupling contribution:
    NONE       c(x) = 0
    LINEAR     c(x) = C @ x
    NONLINEAR  c(x) = C @ tanh(x)

Pure: no hidden state, no I/O.
"""

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from .constants import CouplingType
from .coupling import CouplingMatrix
from .errors import stoprule_invalid_state
from .types_state import StateVector, SystemParameters


@dataclass(frozen=True)
class VectorField:
    """Per-dimension self-dynamics plus coupling, under named parameters."""
    coupling: CouplingMatrix = field(default_factory=CouplingMatrix.none)
    parameters: SystemParameters = field(default_factory=SystemParameters)

    @classmethod
    def zero(cls) -> "VectorField":
        """dx/dt = 0 everywhere."""
        return cls(CouplingMatrix.none(), SystemParameters())

    def evaluate_array(self, x: np.ndarray, step: Optional[int] = None) -> np.ndarray:
        """Derivative of a raw float64 state array. Raises InvalidState on NaN/Inf."""
        p = self.parameters
        dx = p.rates() * x + p.drives()
        if not self.coupling.is_none:
            dx = dx + p.gain * self.coupling.contribution(x)
        if not np.all(np.isfinite(dx)):
            stoprule_invalid_state("vector_field", dx.tolist(), step)
        return dx

    def __call__(self, state: StateVector) -> StateVector:
        return StateVector.from_array(self.evaluate_array(state.to_array()))

    def linear_operator(self) -> Optional[np.ndarray]:
        """Matrix A of x' = A x + b when the field is affine, else None."""
        p = self.parameters
        A = np.diag(p.rates())
        if self.coupling.is_none:
            return A
        if self.coupling.coupling_type is CouplingType.LINEAR:
            return A + p.gain * self.coupling.to_array()
        return None
