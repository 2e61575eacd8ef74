"""
cube5d/integration.py - Fixed-Step Heun Integrator

Explicit two-stage predictor-corrector (improved Euler):

    k1 = f(x_n)
    x* = x_n + h * k1
    k2 = f(x*)
    x_{n+1} = x_n + (h / 2) * (k1 + k2)

No adaptive step, no randomness. Trajectory length is ceil(t_final / h) + 1
with the initial state at index 0.
"""

import math
import warnings
from typing import List, Optional

import numpy as np

from .constants import HEUN_STABILITY_LIMIT, STEP_RATIO_DECIMALS
from .dynamics import VectorField
from .errors import stoprule_empty_trajectory, stoprule_invalid_state
from .types_state import StateVector, Trajectory


def step_count(h: float, t_final: float) -> int:
    """
    Number of integration steps for (h, t_final), always >= 1.

    Ratios within rounding noise of an integer do not gain a spurious step;
    a horizon far below h still takes one.

    Raises:
        EmptyTrajectory: non-positive or non-finite h or t_final
    """
    if not (math.isfinite(h) and math.isfinite(t_final)) or h <= 0 or t_final <= 0:
        stoprule_empty_trajectory(h, t_final)
    ratio = t_final / h
    if not math.isfinite(ratio):
        stoprule_empty_trajectory(h, t_final)
    return max(1, math.ceil(round(ratio, STEP_RATIO_DECIMALS)))


def times(h: float, n_samples: int) -> np.ndarray:
    """Sample times 0, h, 2h, ... for a trajectory of n_samples."""
    return np.arange(n_samples, dtype=np.float64) * h


def check_step_size(field: VectorField, h: float) -> bool:
    """
    Warn when h * spectral radius of an affine field leaves the Heun
    stability interval. Nonlinear fields are not checked.

    Returns:
        bool: True if the step size looks stable (or was not checked)
    """
    A = field.linear_operator()
    if A is None:
        return True
    radius = float(np.max(np.abs(np.linalg.eigvals(A))))
    if radius * h > HEUN_STABILITY_LIMIT:
        warnings.warn(
            f"step size {h} is outside the stable range for this field "
            f"(h * spectral radius = {radius * h:.3g} > {HEUN_STABILITY_LIMIT})",
            RuntimeWarning,
            stacklevel=2,
        )
        return False
    return True


class Integrator:
    """Heun integrator over a VectorField."""

    def __init__(self, field: VectorField):
        self.field = field

    def step_array(self, x: np.ndarray, h: float, step: Optional[int] = None) -> np.ndarray:
        f = self.field.evaluate_array
        k1 = f(x, step)
        x_pred = x + h * k1
        k2 = f(x_pred, step)
        x_next = x + (h / 2.0) * (k1 + k2)
        if not np.all(np.isfinite(x_next)):
            stoprule_invalid_state("integrated_state", x_next.tolist(), step)
        return x_next

    def step(self, state: StateVector, h: float) -> StateVector:
        """Advance one step of size h."""
        return StateVector.from_array(self.step_array(state.to_array(), h))

    def integrate(self, initial: StateVector, h: float, t_final: float) -> Trajectory:
        """
        Integrate from `initial` over [0, t_final] with fixed step h.

        Args:
            initial: State at t = 0 (kept as trajectory[0] exactly)
            h: Step size, > 0
            t_final: Horizon, > 0

        Returns:
            Trajectory of ceil(t_final / h) + 1 states

        Raises:
            EmptyTrajectory: h <= 0 or t_final <= 0
            InvalidState: a derivative or state became non-finite; nothing
                integrated so far is returned
        """
        n_steps = step_count(h, t_final)
        x = initial.to_array()
        states: List[StateVector] = [initial]
        for n in range(n_steps):
            x = self.step_array(x, h, n)
            states.append(StateVector.from_array(x))
        return tuple(states)


def integrate(field: VectorField, initial: StateVector, h: float, t_final: float) -> Trajectory:
    """Functional shortcut for Integrator(field).integrate(...)."""
    return Integrator(field).integrate(initial, h, t_final)
