"""
cube5d/stability.py - Local Stability Analysis

Linearization of the vector field at a state and an orbit-based estimate of
the largest Lyapunov exponent:
    max Re(lambda) < 0: stable (perturbations decay)
    max Re(lambda) ~ 0: marginal
    max Re(lambda) > 0: unstable (perturbations grow)
"""

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from .constants import JACOBIAN_EPSILON, MARGINAL_TOLERANCE, STATE_DIM
from .dynamics import VectorField
from .integration import Integrator
from .types_state import StateVector


@dataclass(frozen=True)
class StabilityReport:
    eigenvalues: Tuple[complex, ...]
    spectral_abscissa: float  # max real part
    kind: str  # "stable" | "marginal" | "unstable"

    def to_dict(self) -> dict:
        return {
            "eigenvalues": [[z.real, z.imag] for z in self.eigenvalues],
            "spectral_abscissa": self.spectral_abscissa,
            "kind": self.kind,
        }


def jacobian(field: VectorField, state: StateVector, eps: float = JACOBIAN_EPSILON) -> np.ndarray:
    """Central-difference Jacobian, J[i, j] = d f_i / d x_j."""
    x = state.to_array()
    J = np.zeros((STATE_DIM, STATE_DIM), dtype=np.float64)
    for j in range(STATE_DIM):
        e = np.zeros(STATE_DIM, dtype=np.float64)
        e[j] = eps
        J[:, j] = (field.evaluate_array(x + e) - field.evaluate_array(x - e)) / (2.0 * eps)
    return J


def eigenvalues(field: VectorField, state: StateVector) -> np.ndarray:
    return np.linalg.eigvals(jacobian(field, state))


def classify(field: VectorField, state: StateVector,
             tolerance: float = MARGINAL_TOLERANCE) -> StabilityReport:
    """Classify the linearization at `state`."""
    eig = eigenvalues(field, state)
    abscissa = float(np.max(eig.real))
    if abscissa < -tolerance:
        kind = "stable"
    elif abscissa > tolerance:
        kind = "unstable"
    else:
        kind = "marginal"
    return StabilityReport(
        eigenvalues=tuple(complex(z) for z in eig),
        spectral_abscissa=abscissa,
        kind=kind,
    )


def largest_lyapunov(field: VectorField, initial: StateVector, h: float,
                     n_steps: int, d0: float = 1e-8) -> float:
    """
    Benettin estimate of the largest Lyapunov exponent.

    A companion orbit starts d0 away along the diagonal; after every Heun
    step the separation is logged and renormalized back to d0.

    Returns:
        float: mean log growth per unit time (0.0 for the zero field)
    """
    if n_steps <= 0:
        raise ValueError(f"n_steps must be positive, got {n_steps}")
    integrator = Integrator(field)
    x = initial.to_array()
    direction = np.ones(STATE_DIM, dtype=np.float64) / math.sqrt(STATE_DIM)
    y = x + d0 * direction
    total = 0.0
    for n in range(n_steps):
        x = integrator.step_array(x, h, n)
        y = integrator.step_array(y, h, n)
        delta = y - x
        d = float(np.linalg.norm(delta))
        if d == 0.0:
            y = x + d0 * direction
            continue
        total += math.log(d / d0)
        y = x + delta * (d0 / d)
    return total / (n_steps * h)
