"""
cube5d/projection.py - Dimension Reduction

PCA projection of a trajectory onto its leading principal axes, via SVD of
the mean-centred samples. Used for plotting and quick inspection.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .constants import STATE_DIM
from .errors import stoprule_empty_sequence
from .types_state import StateVector, trajectory_to_array


@dataclass(frozen=True)
class Projection:
    coordinates: np.ndarray               # (n_samples, n_components)
    components: np.ndarray                # (n_components, STATE_DIM), orthonormal rows
    explained_variance_ratio: np.ndarray  # (n_components,)
    mean: np.ndarray                      # (STATE_DIM,)

    def project_state(self, state: StateVector) -> np.ndarray:
        return (state.to_array() - self.mean) @ self.components.T


def project(trajectory: Sequence[StateVector], n_components: int = 2) -> Projection:
    """
    Project a trajectory onto its first n_components principal axes.

    Edge cases:
        - Empty trajectory -> SpectralAnalysisError
        - No variance at all -> zero coordinates, zero explained ratios
    """
    if not 1 <= n_components <= STATE_DIM:
        raise ValueError(f"n_components must be in [1, {STATE_DIM}], got {n_components}")
    if not trajectory:
        stoprule_empty_sequence()
    arr = trajectory_to_array(trajectory)
    mean = arr.mean(axis=0)
    centered = arr - mean
    _, s, vt = np.linalg.svd(centered, full_matrices=True)
    components = vt[:n_components]
    variance = np.zeros(STATE_DIM, dtype=np.float64)
    variance[:s.size] = s ** 2
    total = variance.sum()
    if total > 0:
        ratio = variance[:n_components] / total
    else:
        ratio = np.zeros(n_components, dtype=np.float64)
    return Projection(
        coordinates=centered @ components.T,
        components=components,
        explained_variance_ratio=ratio,
        mean=mean,
    )
