"""
cube5d/ensemble.py - Ensemble Runs

Dispatches independent pipeline runs over deterministic perturbations of one
initial state. Concurrency lives here, outside the core: each run owns its
trajectory, the orchestrator's config is read-only, and results come back in
member order so the ensemble is as reproducible as a single run.
"""

import hashlib
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from receipts import emit_receipt, merkle

from .constants import STATE_DIM, GateDecision
from .pipeline import PipelineOrchestrator
from .types_result import PipelineInput, PipelineOutput
from .types_state import StateVector


@dataclass(frozen=True)
class EnsembleResult:
    outputs: Tuple[PipelineOutput, ...]
    fire_count: int
    fire_rate: float
    digest_root: str  # merkle root over member commit digests
    receipt: Dict[str, Any]


def seed_to_int(seed: str) -> int:
    """Stable 64-bit integer from a seed string."""
    return int(hashlib.sha256(seed.encode()).hexdigest()[:16], 16)


def perturbed_states(center: StateVector, n: int, scale: float,
                     rng_seed: int) -> List[StateVector]:
    """
    n states: the center itself, then center + N(0, scale^2) offsets.

    Same (center, n, scale, rng_seed) always yields the same states.
    """
    if n <= 0:
        raise ValueError(f"ensemble size must be positive, got {n}")
    rng = np.random.default_rng(rng_seed)
    base = center.to_array()
    states = [center]
    for _ in range(n - 1):
        states.append(StateVector.from_array(base + rng.normal(0.0, scale, STATE_DIM)))
    return states


def run_ensemble(orchestrator: PipelineOrchestrator, base_input: PipelineInput, n: int,
                 scale: float = 0.01, rng_seed: Optional[int] = None,
                 max_workers: Optional[int] = None) -> EnsembleResult:
    """
    Run n perturbed copies of base_input.

    Args:
        orchestrator: Shared orchestrator (its collaborators must tolerate
            concurrent calls when max_workers > 1)
        base_input: Template input; member i gets identifier '<id>#<i>'
        n: Ensemble size
        scale: Standard deviation of the perturbation
        rng_seed: Perturbation seed, defaults to one derived from base_input.seed
        max_workers: Thread pool size; None or 1 runs sequentially

    Returns:
        EnsembleResult with outputs in member order
    """
    if rng_seed is None:
        rng_seed = seed_to_int(base_input.seed)
    states = perturbed_states(base_input.initial_state, n, scale, rng_seed)
    inputs = [
        replace(base_input, initial_state=s, identifier=f"{base_input.identifier}#{i}")
        for i, s in enumerate(states)
    ]

    if max_workers is None or max_workers <= 1:
        outputs = [orchestrator.run(inp) for inp in inputs]
    else:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            outputs = list(pool.map(orchestrator.run, inputs))

    fire_count = sum(1 for o in outputs if o.decision is GateDecision.FIRE)
    digests = [o.knowledge.commit.digest for o in outputs if o.knowledge is not None]
    digest_root = merkle(digests)
    receipt = emit_receipt("ensemble_run", {
        "tenant_id": orchestrator.config.tenant_id,
        "n_members": n,
        "scale": scale,
        "rng_seed": rng_seed,
        "fire_count": fire_count,
        "digest_root": digest_root,
    })
    return EnsembleResult(
        outputs=tuple(outputs),
        fire_count=fire_count,
        fire_rate=fire_count / n,
        digest_root=digest_root,
        receipt=receipt,
    )
