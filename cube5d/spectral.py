"""
cube5d/spectral.py - Spectral Signature of a Trajectory

Produces (psi, rho, omega):
- psi: normalized Shannon entropy of the per-sample magnitude histogram, in [0, 1]
- rho: coherence of consecutive states, mean (1 + cos) / 2, in [0, 1]
- omega: dominant frequency of one component, zero-crossing rate by default

Entropy and frequency estimators are substitutable callables.
"""

import math
from collections import deque
from typing import Callable, Deque, Sequence, Tuple

import numpy as np
from scipy.stats import entropy as shannon_entropy

from .constants import (
    DEFAULT_ENTROPY_BINS,
    DEFAULT_FREQUENCY_COMPONENT,
    DEFAULT_HISTORY_WINDOW,
    STATE_DIM,
)
from .errors import stoprule_empty_sequence
from .types_result import SpectralSignature
from .types_state import StateVector, trajectory_to_array

EntropyEstimator = Callable[[np.ndarray, int], float]
FrequencyEstimator = Callable[[np.ndarray, float], float]


# =============================================================================
# ESTIMATORS
# =============================================================================

def magnitude_entropy(magnitudes: np.ndarray, bins: int = DEFAULT_ENTROPY_BINS) -> float:
    """
    Normalized Shannon entropy of the magnitude distribution.

    H = -sum(p * log2(p)) / log2(n_bins), so the result lies in [0, 1].

    Edge cases:
        - Fewer than 2 samples -> 0.0
        - All magnitudes equal -> 0.0 (single occupied bin)
    """
    n = magnitudes.size
    n_bins = min(bins, n)
    if n < 2 or n_bins < 2:
        return 0.0
    counts, _ = np.histogram(magnitudes, bins=n_bins)
    if np.count_nonzero(counts) <= 1:
        return 0.0
    h = shannon_entropy(counts, base=2)
    return float(min(max(h / math.log2(n_bins), 0.0), 1.0))


def zero_crossing_frequency(series: np.ndarray, dt: float = 1.0) -> float:
    """
    Frequency from the zero-crossing rate of the mean-removed series.

    f = crossings / (2 * duration), duration = (n - 1) * dt. Exact zeros are
    skipped when counting sign changes.
    """
    n = series.size
    if n < 2:
        return 0.0
    centered = series - series.mean()
    signs = np.sign(centered)
    signs = signs[signs != 0]
    if signs.size < 2:
        return 0.0
    crossings = int(np.count_nonzero(signs[1:] != signs[:-1]))
    return crossings / (2.0 * (n - 1) * dt)


def fft_peak_frequency(series: np.ndarray, dt: float = 1.0) -> float:
    """Frequency of the largest non-DC rfft bin of the mean-removed series."""
    n = series.size
    if n < 2:
        return 0.0
    centered = series - series.mean()
    spec = np.abs(np.fft.rfft(centered))
    if spec.size < 2 or not np.any(spec[1:] > 0):
        return 0.0
    freqs = np.fft.rfftfreq(n, d=dt)
    peak_idx = int(np.argmax(spec[1:])) + 1
    return float(freqs[peak_idx])


def _max_abs(arr: np.ndarray) -> float:
    return float(np.max(np.abs(arr))) if arr.size else 0.0


def _normalized(arr: np.ndarray) -> np.ndarray:
    """arr divided by its largest absolute entry (unchanged if all zero)."""
    scale = _max_abs(arr)
    return arr / scale if scale > 0.0 else arr


def coherence(arr: np.ndarray) -> float:
    """Mean (1 + cos) / 2 over consecutive pairs with non-zero norms."""
    if arr.shape[0] < 2:
        return 0.0
    arr = _normalized(arr)
    norms = np.linalg.norm(arr, axis=1)
    prev_n, curr_n = norms[:-1], norms[1:]
    mask = (prev_n > 0) & (curr_n > 0)
    if not np.any(mask):
        return 0.0
    dots = np.einsum("ij,ij->i", arr[:-1][mask], arr[1:][mask])
    cos = np.clip(dots / (prev_n[mask] * curr_n[mask]), -1.0, 1.0)
    return float(np.clip(np.mean((1.0 + cos) / 2.0), 0.0, 1.0))


def centroid(trajectory: Sequence[StateVector]) -> StateVector:
    """Per-component mean across the whole trajectory."""
    if not trajectory:
        stoprule_empty_sequence()
    arr = trajectory_to_array(trajectory)
    scale = _max_abs(arr)
    if scale == 0.0:
        return StateVector.zeros()
    return StateVector.from_array((arr / scale).mean(axis=0) * scale)


# =============================================================================
# ANALYZER
# =============================================================================

class SpectralAnalyzer:
    """Turns a trajectory into a SpectralSignature.

    The observation buffer is bounded by `history_window`; only the most
    recent samples are analyzed. It is created per call and discarded.
    """

    def __init__(self,
                 history_window: int = DEFAULT_HISTORY_WINDOW,
                 entropy_bins: int = DEFAULT_ENTROPY_BINS,
                 component: int = DEFAULT_FREQUENCY_COMPONENT,
                 entropy_estimator: EntropyEstimator = magnitude_entropy,
                 frequency_estimator: FrequencyEstimator = zero_crossing_frequency):
        if not 0 <= component < STATE_DIM:
            raise ValueError(f"component must be in [0, {STATE_DIM}), got {component}")
        self.history_window = history_window
        self.entropy_bins = entropy_bins
        self.component = component
        self.entropy_estimator = entropy_estimator
        self.frequency_estimator = frequency_estimator

    def _observe(self, trajectory: Sequence[StateVector]) -> np.ndarray:
        buffer: Deque[Tuple[float, ...]] = deque(maxlen=self.history_window)
        for state in trajectory:
            buffer.append(state.components)
        return np.array(buffer, dtype=np.float64)

    def analyze(self, trajectory: Sequence[StateVector], dt: float = 1.0) -> SpectralSignature:
        """
        Compute (psi, rho, omega).

        Args:
            trajectory: Non-empty sequence of states
            dt: Sample spacing, omega is reported in cycles per unit of dt

        Raises:
            SpectralAnalysisError: zero samples
        """
        if not trajectory:
            stoprule_empty_sequence()
        # psi, rho and omega are scale-invariant
        arr = _normalized(self._observe(trajectory))
        magnitudes = np.linalg.norm(arr, axis=1)

        psi = float(self.entropy_estimator(magnitudes, self.entropy_bins))
        rho = coherence(arr)
        omega = float(self.frequency_estimator(arr[:, self.component], dt))
        return SpectralSignature(psi=psi, rho=rho, omega=omega)
