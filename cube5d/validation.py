"""
cube5d/validation.py - Reference Solutions

Exact solutions of affine fields x' = A x + b (NONE or LINEAR coupling) via
the matrix exponential of the augmented system

    d/dt [x; 1] = [[A, b], [0, 0]] [x; 1]

used to measure integration error and the observed convergence order.
"""

import math

import numpy as np
from scipy.linalg import expm

from .constants import STATE_DIM
from .dynamics import VectorField
from .integration import Integrator, times as sample_times
from .types_state import StateVector, trajectory_to_array


def augmented_operator(field: VectorField) -> np.ndarray:
    A = field.linear_operator()
    if A is None:
        raise ValueError("reference solutions need an affine field (NONE or LINEAR coupling)")
    M = np.zeros((STATE_DIM + 1, STATE_DIM + 1), dtype=np.float64)
    M[:STATE_DIM, :STATE_DIM] = A
    M[:STATE_DIM, STATE_DIM] = field.parameters.drives()
    return M


def linear_reference(field: VectorField, initial: StateVector, t) -> np.ndarray:
    """Exact states at the given times, shape (len(t), STATE_DIM)."""
    M = augmented_operator(field)
    z0 = np.append(initial.to_array(), 1.0)
    return np.array([(expm(M * ti) @ z0)[:STATE_DIM] for ti in np.atleast_1d(t)])


def integration_error(field: VectorField, initial: StateVector, h: float, t_final: float) -> float:
    """Max absolute error of the Heun trajectory against the exact solution."""
    trajectory = Integrator(field).integrate(initial, h, t_final)
    exact = linear_reference(field, initial, sample_times(h, len(trajectory)))
    return float(np.max(np.abs(trajectory_to_array(trajectory) - exact)))


def observed_order(field: VectorField, initial: StateVector, h: float, t_final: float) -> float:
    """log2(err(h) / err(h/2)); about 2 for the Heun scheme."""
    coarse = integration_error(field, initial, h, t_final)
    fine = integration_error(field, initial, h / 2.0, t_final)
    if fine == 0.0 or coarse == 0.0:
        return math.inf
    return math.log2(coarse / fine)
