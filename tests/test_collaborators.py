"""
tests/test_collaborators.py - Tests for cube5d/collaborators.py and cube5d/adapters.py

Validates the default collaborators against their interfaces and the
spiral coordinate round trip.
"""

import math

import numpy as np
import pytest

from cube5d.adapters import SpiralCoordinates, StateAdapter
from cube5d.collaborators import (
    ConstantResonanceField,
    InMemoryKnowledgeStore,
    JsonlKnowledgeStore,
    KnowledgeStore,
    PermutationRouteSelector,
    ResonanceField,
    RouteSelector,
    decode_permutation,
    permutation_displacement,
)
from cube5d.commit import CommitBuilder
from cube5d.constants import ROUNDTRIP_EPSILON
from cube5d.types_result import KnowledgeRecord, ProofOfResonance
from cube5d.types_state import StateVector


def _record(identifier="obj:S7-0001:42", payload=b"\x00\x01"):
    state = StateVector.of(1, 0, 0, 0, 0)
    proof = ProofOfResonance(delta_pi=0.01, phi=1.0, delta_v=-0.01, valid=True)
    return KnowledgeRecord(
        identifier=identifier,
        owner_id="obj",
        route_id="S7-0001",
        seed_path="root/a",
        payload=payload,
        commit=CommitBuilder().build(state, proof, "42"),
    )


class TestInterfaces:
    """Default implementations satisfy the runtime-checkable protocols."""

    def test_protocols(self, tmp_path):
        assert isinstance(PermutationRouteSelector(), RouteSelector)
        assert isinstance(ConstantResonanceField(), ResonanceField)
        assert isinstance(InMemoryKnowledgeStore(), KnowledgeStore)
        assert isinstance(JsonlKnowledgeStore(tmp_path / "k.jsonl"), KnowledgeStore)


class TestPermutations:
    """Tests for decode_permutation and permutation_displacement."""

    def test_decode_endpoints(self):
        assert decode_permutation(0) == (0, 1, 2, 3, 4, 5, 6)
        assert decode_permutation(5039) == (6, 5, 4, 3, 2, 1, 0)

    def test_decode_small(self):
        perms = {decode_permutation(i, 3) for i in range(6)}
        assert len(perms) == 6, "S3 has six distinct permutations"
        assert decode_permutation(1, 3) == (0, 2, 1)

    @pytest.mark.parametrize("index", [-1, 5040])
    def test_decode_out_of_range(self, index):
        with pytest.raises(ValueError):
            decode_permutation(index)

    def test_displacement_bounds(self):
        assert permutation_displacement((0, 1, 2, 3, 4, 5, 6)) == 0.0
        assert permutation_displacement((6, 5, 4, 3, 2, 1, 0)) == 1.0
        assert permutation_displacement((1, 0, 2, 3, 4, 5, 6)) == pytest.approx(2 / 24)

    def test_displacement_trivial(self):
        assert permutation_displacement((0,)) == 0.0


class TestPermutationRouteSelector:
    """Tests for PermutationRouteSelector."""

    def test_deterministic(self):
        state = StateVector.of(0.3, -0.2, 0.1, 0.0, 0.5)
        a = PermutationRouteSelector().select(state, "42", 0.8)
        b = PermutationRouteSelector().select(state, "42", 0.8)
        assert a == b

    def test_route_shape(self):
        route = PermutationRouteSelector().select(StateVector.of(1, 0, 0, 0, 0), "42", 1.0)
        assert route.route_id.startswith("S7-")
        assert sorted(route.permutation) == list(range(7))
        assert 0.0 <= route.score <= 1.0
        index = int(route.route_id.split("-")[1])
        assert decode_permutation(index) == route.permutation

    def test_seed_changes_route_index(self):
        selector = PermutationRouteSelector()
        state = StateVector.of(1, 0, 0, 0, 0)
        indices = {selector.route_index(state, str(seed)) for seed in range(20)}
        assert len(indices) > 1, "different seeds should spread over routes"

    def test_score_scales_with_enhancement(self):
        selector = PermutationRouteSelector()
        state = StateVector.of(1, 2, 3, 4, 5)
        assert selector.select(state, "s", 0.0).score == 0.0
        full = selector.select(state, "s", 1.0).score
        assert selector.select(state, "s", 0.5).score == pytest.approx(full / 2)


class TestConstantResonanceField:
    """Tests for ConstantResonanceField."""

    def test_strength(self):
        s = StateVector.zeros()
        assert ConstantResonanceField().strength(s, s, 0.0) == 1.0
        assert ConstantResonanceField(0.25).strength(s, s, 3.0) == 0.25

    @pytest.mark.parametrize("value", [-0.5, 1.01])
    def test_out_of_range(self, value):
        with pytest.raises(ValueError):
            ConstantResonanceField(value)


class TestKnowledgeStores:
    """Tests for the in-memory and JSONL stores."""

    def test_in_memory(self):
        store = InMemoryKnowledgeStore()
        record = _record()
        store.put(record)
        assert len(store) == 1
        assert store.get(record.identifier) is record
        assert store.get("missing") is None
        assert store.records() == [record]

    def test_in_memory_latest_wins(self):
        store = InMemoryKnowledgeStore()
        first, second = _record(payload=b"a"), _record(payload=b"b")
        store.put(first)
        store.put(second)
        assert store.get(first.identifier) is second

    def test_jsonl(self, tmp_path):
        path = tmp_path / "knowledge.jsonl"
        store = JsonlKnowledgeStore(path)
        assert store.read_all() == []
        store.put(_record(payload=b"\xff\x00"))
        store.put(_record(identifier="other"))
        rows = store.read_all()
        assert [r["identifier"] for r in rows] == ["obj:S7-0001:42", "other"]
        assert rows[0]["payload"] == "ff00"
        assert len(rows[0]["commit"]["digest"]) == 64


class TestStateAdapter:
    """Tests for the spiral coordinate adapter."""

    def test_known_values(self):
        coords = StateAdapter().to_spiral(StateVector.of(0, 2, -3, 0, 7))
        assert coords.r1 == pytest.approx(2.0)
        assert coords.theta1 == pytest.approx(math.pi / 2)
        assert coords.r2 == pytest.approx(3.0)
        assert coords.theta2 == pytest.approx(math.pi)
        assert coords.z == 7

    def test_from_spiral(self):
        state = StateAdapter().from_spiral(SpiralCoordinates(1.0, 0.0, 0.0, 0.0, -1.0))
        assert state == StateVector.of(1, 0, 0, 0, -1)

    @pytest.mark.parametrize("seed", range(5))
    def test_roundtrip(self, seed):
        rng = np.random.default_rng(seed)
        adapter = StateAdapter()
        state = StateVector.from_array(rng.normal(0, 100, 5))
        assert adapter.roundtrip_error(state) <= ROUNDTRIP_EPSILON
        assert adapter.check_roundtrip(state)

    def test_roundtrip_origin(self):
        assert StateAdapter().roundtrip_error(StateVector.zeros()) == 0.0
