"""
cube5d/pipeline.py - Pipeline Orchestrator

integrate -> analyze -> centroid -> spiral form -> route -> knowledge id
-> resonance proof -> gate -> commit / hand-off.

Synchronous and pure up to the final hand-off: nothing outside the run is
touched before knowledge_store.put(), and only on FIRE outside shadow mode.
Collaborators are injected; the orchestrator holds read-only config and can
be shared between concurrent runs.
"""

from typing import Any, Dict, List, Optional

from receipts import canonical_json, emit_receipt

from .adapters import StateAdapter
from .collaborators import (
    ConstantResonanceField,
    InMemoryKnowledgeStore,
    KnowledgeStore,
    PermutationRouteSelector,
    ResonanceField,
    RouteSelector,
)
from .commit import CommitBuilder
from .constants import GateDecision
from .dynamics import VectorField
from .errors import PipelineError, stoprule_empty_trajectory, stoprule_route_failure
from .gate import GateDecisionEngine
from .integration import Integrator, check_step_size
from .resonance import ResonanceEvaluator
from .spectral import SpectralAnalyzer, centroid
from .types_config import CONFIG_DEFAULT, PipelineConfig
from .types_result import (
    KnowledgeRecord,
    PipelineInput,
    PipelineOutput,
    RouteSpec,
    SpectralSignature,
)
from .types_state import StateVector, Trajectory


def knowledge_identifier(identifier: str, route_id: str, seed: str, prefix_length: int) -> str:
    """'<identifier>:<route_id>:<seed prefix>'"""
    return f"{identifier}:{route_id}:{seed[:prefix_length]}"


def knowledge_payload(signature: SpectralSignature, centroid_state: StateVector,
                      spiral: Any, n_samples: int, decision: GateDecision) -> bytes:
    """Canonical JSON bytes carried in the KnowledgeRecord."""
    spiral_data = spiral.to_dict() if hasattr(spiral, "to_dict") else spiral
    return canonical_json({
        "centroid": centroid_state.to_list(),
        "decision": decision.value,
        "n_samples": n_samples,
        "signature": signature.to_dict(),
        "spiral": spiral_data,
    }).encode()


class PipelineOrchestrator:
    """Sequences the core components and the external collaborators."""

    def __init__(self,
                 config: PipelineConfig = CONFIG_DEFAULT,
                 route_selector: Optional[RouteSelector] = None,
                 resonance_field: Optional[ResonanceField] = None,
                 knowledge_store: Optional[KnowledgeStore] = None,
                 state_adapter: Optional[StateAdapter] = None,
                 analyzer: Optional[SpectralAnalyzer] = None):
        self.config = config
        self.route_selector = route_selector or PermutationRouteSelector()
        self.resonance_field = resonance_field or ConstantResonanceField()
        self.knowledge_store = knowledge_store if knowledge_store is not None else InMemoryKnowledgeStore()
        self.state_adapter = state_adapter or StateAdapter()
        self.analyzer = analyzer or SpectralAnalyzer(
            history_window=config.history_window,
            entropy_bins=config.entropy_bins,
            component=config.frequency_component,
        )
        self.evaluator = ResonanceEvaluator(config.max_delta_pi, config.min_phi)
        self.gate = GateDecisionEngine()
        self.commit_builder = CommitBuilder(config.state_precision)

    # -------------------------------------------------------------------------
    # Receipts
    # -------------------------------------------------------------------------

    def _emit(self, receipts: List[Dict], receipt_type: str, data: Dict[str, Any]) -> None:
        if self.config.emit_receipts:
            receipts.append(emit_receipt(receipt_type, {"tenant_id": self.config.tenant_id, **data}))

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def _integrate(self, inp: PipelineInput, h: float, t_final: float) -> Trajectory:
        field = VectorField(inp.coupling, inp.parameters)
        check_step_size(field, h)
        trajectory = Integrator(field).integrate(inp.initial_state, h, t_final)
        if not trajectory:
            stoprule_empty_trajectory(h, t_final)
        return trajectory

    def _select_route(self, final_state: StateVector, seed: str, score: float) -> RouteSpec:
        try:
            return self.route_selector.select(final_state, seed, score)
        except PipelineError:
            raise
        except Exception as exc:
            stoprule_route_failure(exc)

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def run(self, inp: PipelineInput) -> PipelineOutput:
        """
        Execute one pipeline run.

        Args:
            inp: PipelineInput (step_size / t_final default to the config)

        Returns:
            PipelineOutput carrying trajectory, signature, route, proof,
            decision and the knowledge record. `committed` is True only when
            the record was handed to the knowledge store.

        Raises:
            EmptyTrajectory: invalid step size or horizon, before any analysis
            InvalidState: non-finite values during integration
            RouteSelectionError: the route selector failed
        """
        cfg = self.config
        h = cfg.step_size if inp.step_size is None else inp.step_size
        t_final = cfg.t_final if inp.t_final is None else inp.t_final
        seed = inp.seed or cfg.seed
        receipts: List[Dict] = []

        trajectory = self._integrate(inp, h, t_final)
        final_state = trajectory[-1]
        self._emit(receipts, "integration", {
            "scheme": "heun",
            "step_size": h,
            "t_final": t_final,
            "n_samples": len(trajectory),
            "initial_state": inp.initial_state.to_list(),
            "final_state": final_state.to_list(),
        })

        signature = self.analyzer.analyze(trajectory, dt=h)
        centroid_state = centroid(trajectory)
        self._emit(receipts, "spectral_signature", {
            **signature.to_dict(),
            "centroid": centroid_state.to_list(),
            "component": self.analyzer.component,
        })

        spiral = self.state_adapter.to_spiral(final_state)
        route = self._select_route(final_state, seed, signature.rho)
        knowledge_id = knowledge_identifier(inp.identifier, route.route_id, seed,
                                            cfg.seed_prefix_length)
        self._emit(receipts, "route_selection", {**route.to_dict(), "knowledge_id": knowledge_id})

        prev, curr = self.evaluator.last_transition(trajectory)
        t = (len(trajectory) - 1) * h
        strength = self.resonance_field.strength(prev, curr, t)
        proof = self.evaluator.evaluate(prev, curr, strength)
        self._emit(receipts, "resonance_proof", {**proof.to_dict(), "field_strength": strength, "t": t})

        decision = self.gate.decide(proof, len(trajectory))
        self._emit(receipts, "gate_decision", {
            "decision": decision.value,
            "por_valid": proof.valid,
            "delta_v": proof.delta_v,
        })

        commit = self.commit_builder.build(final_state, proof, seed)
        knowledge = KnowledgeRecord(
            identifier=knowledge_id,
            owner_id=inp.identifier,
            route_id=route.route_id,
            seed_path=inp.seed_path,
            payload=knowledge_payload(signature, centroid_state, spiral, len(trajectory), decision),
            commit=commit,
        )

        committed = False
        if decision is GateDecision.FIRE and not cfg.shadow_mode:
            self.knowledge_store.put(knowledge)
            committed = True
        self._emit(receipts, "commit", {
            "digest": commit.digest,
            "commit_ts": commit.timestamp,
            "knowledge_id": knowledge_id,
            "committed": committed,
            "shadow_mode": cfg.shadow_mode,
        })

        self._emit(receipts, "pipeline_run", {
            "identifier": inp.identifier,
            "seed_path": inp.seed_path,
            "decision": decision.value,
            "committed": committed,
            "config_hash": cfg.config_hash,
        })

        return PipelineOutput(
            trajectory=trajectory,
            signature=signature,
            centroid=centroid_state,
            spiral=spiral,
            route=route,
            proof=proof,
            decision=decision,
            knowledge=knowledge,
            committed=committed,
            resonance_strength=strength,
            receipts=tuple(receipts),
        )

    process = run
