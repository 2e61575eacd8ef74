"""
cube5d/collaborators.py - External Collaborator Interfaces

Capability interfaces injected into the orchestrator, plus the default
implementations shipped with the package:
- RouteSelector: PermutationRouteSelector (hash-indexed S7 permutation)
- ResonanceField: ConstantResonanceField
- KnowledgeStore: InMemoryKnowledgeStore, JsonlKnowledgeStore

The core treats every collaborator as an opaque call: no retries, no timeouts.
"""

import hashlib
import json
import math
import threading
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Tuple, Union, runtime_checkable

from .constants import ROUTE_ORDER
from .types_result import KnowledgeRecord, RouteSpec
from .types_state import StateVector


# =============================================================================
# INTERFACES
# =============================================================================

@runtime_checkable
class RouteSelector(Protocol):
    def select(self, final_state: StateVector, seed: str,
               enhancement_score: float) -> RouteSpec:
        """Deterministic given its inputs."""
        ...


@runtime_checkable
class ResonanceField(Protocol):
    def strength(self, state_prev: StateVector, state_curr: StateVector, t: float) -> float:
        """Field strength r in [0, 1]."""
        ...


@runtime_checkable
class KnowledgeStore(Protocol):
    def put(self, record: KnowledgeRecord) -> None:
        """Called only on FIRE."""
        ...


# =============================================================================
# ROUTE SELECTION
# =============================================================================

def decode_permutation(index: int, n: int = ROUTE_ORDER) -> Tuple[int, ...]:
    """Lehmer-code decode: index in [0, n!) -> permutation of range(n)."""
    if not 0 <= index < math.factorial(n):
        raise ValueError(f"index {index} out of range for S{n}")
    pool = list(range(n))
    perm = []
    for k in range(n - 1, -1, -1):
        digit, index = divmod(index, math.factorial(k))
        perm.append(pool.pop(digit))
    return tuple(perm)


def permutation_displacement(perm: Tuple[int, ...]) -> float:
    """Total |p[i] - i|, normalized by its maximum for len(perm)."""
    n = len(perm)
    max_disp = sum(abs((n - 1 - i) - i) for i in range(n))
    if max_disp == 0:
        return 0.0
    return sum(abs(p - i) for i, p in enumerate(perm)) / max_disp


class PermutationRouteSelector:
    """Picks one of the n! routes by hashing the final state with the seed.

    score = enhancement_score * (1 - normalized displacement), so the
    identity route keeps the full score.
    """

    def __init__(self, order: int = ROUTE_ORDER):
        self.order = order
        self.n_routes = math.factorial(order)

    def route_index(self, final_state: StateVector, seed: str) -> int:
        key = ",".join(repr(c) for c in final_state) + "|" + seed
        return int(hashlib.sha256(key.encode()).hexdigest(), 16) % self.n_routes

    def select(self, final_state: StateVector, seed: str,
               enhancement_score: float) -> RouteSpec:
        index = self.route_index(final_state, seed)
        perm = decode_permutation(index, self.order)
        score = enhancement_score * (1.0 - permutation_displacement(perm))
        return RouteSpec(route_id=f"S{self.order}-{index:04d}", permutation=perm, score=score)


# =============================================================================
# RESONANCE FIELD
# =============================================================================

class ConstantResonanceField:
    """Same strength for every transition."""

    def __init__(self, value: float = 1.0):
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"field strength must be in [0, 1], got {value}")
        self.value = value

    def strength(self, state_prev: StateVector, state_curr: StateVector, t: float) -> float:
        return self.value


# =============================================================================
# KNOWLEDGE STORES
# =============================================================================

class InMemoryKnowledgeStore:
    """List-backed store. Safe to share between concurrent runs."""

    def __init__(self):
        self._records: List[KnowledgeRecord] = []
        self._lock = threading.Lock()

    def put(self, record: KnowledgeRecord) -> None:
        with self._lock:
            self._records.append(record)

    def get(self, identifier: str) -> Optional[KnowledgeRecord]:
        with self._lock:
            for record in reversed(self._records):
                if record.identifier == identifier:
                    return record
        return None

    def records(self) -> List[KnowledgeRecord]:
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class JsonlKnowledgeStore:
    """Appends one JSON line per record. Payload bytes are hex-encoded."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    def put(self, record: KnowledgeRecord) -> None:
        line = json.dumps(record.to_dict(), sort_keys=True, separators=(",", ":"))
        with self._lock:
            with self.path.open("a", encoding="utf-8") as fh:
                fh.write(line + "\n")

    def read_all(self) -> List[Dict]:
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as fh:
            return [json.loads(line) for line in fh if line.strip()]
