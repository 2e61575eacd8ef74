"""
tests/test_analysis.py - Tests for the analysis and tooling modules

Covers cube5d/stability.py, projection.py, templates.py, validation.py,
export.py and ensemble.py.
"""

import io
import json
import math

import numpy as np
import pytest

from cube5d.collaborators import InMemoryKnowledgeStore
from cube5d.constants import GateDecision
from cube5d.dynamics import VectorField
from cube5d.ensemble import perturbed_states, run_ensemble, seed_to_int
from cube5d.errors import SpectralAnalysisError
from cube5d.export import (
    CSV_HEADER,
    output_to_json,
    trajectory_from_csv,
    trajectory_to_csv,
    write_output_json,
    write_receipts,
)
from cube5d.integration import integrate
from cube5d.pipeline import PipelineOrchestrator
from cube5d.projection import project
from cube5d.stability import classify, eigenvalues, jacobian, largest_lyapunov
from cube5d.templates import (
    COUPLED_RING,
    DECAY,
    GROWTH,
    OSCILLATOR,
    SATURATING,
    STATIC,
    TEMPLATES,
    get_template,
)
from cube5d.types_state import StateVector, SystemParameters
from cube5d.validation import integration_error, linear_reference, observed_order


class TestStability:
    """Tests for linearization and Lyapunov estimates."""

    def test_jacobian_of_decay(self):
        J = jacobian(DECAY.vector_field(), DECAY.initial_state)
        np.testing.assert_allclose(J, -np.eye(5), atol=1e-8)

    def test_oscillator_eigenvalues(self):
        eig = eigenvalues(OSCILLATOR.vector_field(), OSCILLATOR.initial_state)
        complex_pair = sorted((z for z in eig if abs(z.imag) > 1e-6), key=lambda z: z.imag)
        assert len(complex_pair) == 2
        assert complex_pair[0] == pytest.approx(complex(-0.05, -2 * math.pi), abs=1e-6)
        assert complex_pair[1] == pytest.approx(complex(-0.05, 2 * math.pi), abs=1e-6)

    @pytest.mark.parametrize("template,kind", [
        (DECAY, "stable"),
        (GROWTH, "unstable"),
        (STATIC, "marginal"),
        (OSCILLATOR, "stable"),
    ])
    def test_classify(self, template, kind):
        report = classify(template.vector_field(), template.initial_state)
        assert report.kind == kind
        assert len(report.to_dict()["eigenvalues"]) == 5

    def test_lyapunov_decay(self):
        lam = largest_lyapunov(DECAY.vector_field(), DECAY.initial_state, 0.01, 100)
        assert lam == pytest.approx(-1.0, abs=0.01)

    def test_lyapunov_static(self):
        lam = largest_lyapunov(STATIC.vector_field(), STATIC.initial_state, 0.01, 50)
        assert abs(lam) < 1e-5

    def test_lyapunov_needs_steps(self):
        with pytest.raises(ValueError):
            largest_lyapunov(DECAY.vector_field(), DECAY.initial_state, 0.01, 0)


class TestProjection:
    """Tests for PCA projection."""

    def test_line_has_one_axis(self):
        """DECAY moves along the diagonal: one axis explains everything."""
        traj = integrate(DECAY.vector_field(), DECAY.initial_state, 0.01, 1.0)
        proj = project(traj, n_components=2)
        assert proj.coordinates.shape == (101, 2)
        assert proj.explained_variance_ratio[0] == pytest.approx(1.0)
        assert proj.explained_variance_ratio[1] == pytest.approx(0.0, abs=1e-12)

    def test_components_orthonormal(self):
        traj = integrate(COUPLED_RING.vector_field(), COUPLED_RING.initial_state, 0.01, 1.0)
        proj = project(traj, n_components=3)
        np.testing.assert_allclose(proj.components @ proj.components.T, np.eye(3), atol=1e-10)
        np.testing.assert_allclose(proj.project_state(traj[0]), proj.coordinates[0], atol=1e-12)

    def test_no_variance(self):
        proj = project((StateVector.of(1, 2, 3, 4, 5),) * 4)
        assert np.all(proj.explained_variance_ratio == 0.0)
        np.testing.assert_allclose(proj.coordinates, 0.0)

    def test_single_sample(self):
        proj = project((StateVector.of(1, 2, 3, 4, 5),), n_components=5)
        assert proj.components.shape == (5, 5)

    def test_bad_arguments(self):
        with pytest.raises(ValueError):
            project((StateVector.zeros(),), n_components=0)
        with pytest.raises(SpectralAnalysisError):
            project(())


class TestTemplates:
    """Tests for the preset templates."""

    def test_registry(self):
        assert set(TEMPLATES) == {"static", "decay", "growth", "oscillator",
                                  "coupled_ring", "saturating"}
        assert get_template("decay") is DECAY

    def test_templates_and_inputs_hashable(self):
        assert hash(DECAY) == hash(get_template("decay"))
        assert hash(DECAY.to_input()) == hash(DECAY.to_input())
        assert len({t.to_input() for t in TEMPLATES.values()}) == len(TEMPLATES)

    def test_unknown(self):
        with pytest.raises(KeyError):
            get_template("nope")

    def test_to_input(self):
        inp = OSCILLATOR.to_input(seed="s")
        assert inp.identifier == "oscillator"
        assert inp.t_final == 3.0
        assert inp.seed == "s"

    @pytest.mark.parametrize("name", sorted(TEMPLATES))
    def test_every_template_runs(self, name):
        out = PipelineOrchestrator().run(get_template(name).to_input())
        assert out.decision in (GateDecision.FIRE, GateDecision.HOLD)
        assert 0.0 <= out.signature.rho <= 1.0


class TestValidation:
    """Tests against exact solutions of affine fields."""

    def test_reference_decay(self):
        exact = linear_reference(DECAY.vector_field(), DECAY.initial_state, [0.0, 1.0])
        np.testing.assert_allclose(exact[0], np.ones(5))
        np.testing.assert_allclose(exact[1], np.full(5, math.exp(-1.0)), rtol=1e-12)

    def test_reference_with_drive(self):
        """x' = -x + 1 from 0: x(t) = 1 - exp(-t)."""
        field = VectorField(parameters=SystemParameters({"alpha": -1.0, "beta": 1.0}))
        exact = linear_reference(field, StateVector.zeros(), 2.0)
        np.testing.assert_allclose(exact[0], np.full(5, 1.0 - math.exp(-2.0)), rtol=1e-12)

    def test_decay_error_small(self):
        err = integration_error(DECAY.vector_field(), DECAY.initial_state, 0.01, 1.0)
        assert err < 1e-5

    @pytest.mark.parametrize("template", [DECAY, OSCILLATOR, COUPLED_RING])
    def test_second_order(self, template):
        order = observed_order(template.vector_field(), template.initial_state, 0.02, 1.0)
        assert order == pytest.approx(2.0, abs=0.2)

    def test_static_exact(self):
        assert observed_order(STATIC.vector_field(), STATIC.initial_state, 0.1, 1.0) == math.inf

    def test_nonlinear_rejected(self):
        with pytest.raises(ValueError):
            integration_error(SATURATING.vector_field(), SATURATING.initial_state, 0.1, 1.0)


class TestExport:
    """Tests for CSV/JSON/JSONL export."""

    def test_csv_roundtrip(self):
        traj = integrate(OSCILLATOR.vector_field(), OSCILLATOR.initial_state, 0.01, 0.5)
        buf = io.StringIO()
        rows = trajectory_to_csv(traj, 0.01, buf)
        assert rows == 51
        buf.seek(0)
        times, back = trajectory_from_csv(buf)
        assert back == traj, "repr() formatting preserves every float"
        assert times[0] == 0.0
        assert times[-1] == pytest.approx(0.5)

    def test_csv_header(self):
        buf = io.StringIO()
        trajectory_to_csv((StateVector.zeros(),), 0.1, buf)
        assert buf.getvalue().splitlines()[0] == ",".join(CSV_HEADER)

    def test_csv_bad_header(self):
        with pytest.raises(ValueError):
            trajectory_from_csv(io.StringIO("a,b,c\n1,2,3\n"))

    def test_output_json(self, tmp_path):
        out = PipelineOrchestrator().run(DECAY.to_input())
        data = json.loads(output_to_json(out))
        assert data["decision"] == "FIRE"
        assert data["knowledge"]["commit"]["digest"] == out.knowledge.commit.digest
        path = write_output_json(out, tmp_path / "out.json")
        assert json.loads(path.read_text(encoding="utf-8")) == data

    def test_write_receipts(self):
        out = PipelineOrchestrator().run(DECAY.to_input())
        buf = io.StringIO()
        assert write_receipts(out, buf) == len(out.receipts)
        lines = buf.getvalue().splitlines()
        assert [json.loads(line)["receipt_type"] for line in lines] == \
            [r["receipt_type"] for r in out.receipts]


class TestEnsemble:
    """Tests for ensemble dispatch."""

    def test_perturbed_states(self):
        center = StateVector.of(1, 1, 1, 1, 1)
        a = perturbed_states(center, 5, 0.01, rng_seed=7)
        b = perturbed_states(center, 5, 0.01, rng_seed=7)
        assert a == b
        assert a[0] == center
        assert len(set(a)) == 5

    def test_perturbed_states_size(self):
        with pytest.raises(ValueError):
            perturbed_states(StateVector.zeros(), 0, 0.01, 1)

    def test_seed_to_int_stable(self):
        assert seed_to_int("42") == seed_to_int("42")
        assert seed_to_int("42") != seed_to_int("43")

    def test_decay_ensemble_fires(self):
        store = InMemoryKnowledgeStore()
        result = run_ensemble(PipelineOrchestrator(knowledge_store=store), DECAY.to_input(), 4)
        assert result.fire_count == 4
        assert result.fire_rate == 1.0
        assert len(store) == 4
        assert [o.knowledge.owner_id for o in result.outputs] == [f"decay#{i}" for i in range(4)]
        assert result.receipt["receipt_type"] == "ensemble_run"

    def test_threaded_matches_sequential(self):
        seq = run_ensemble(PipelineOrchestrator(), DECAY.to_input(), 6, rng_seed=3)
        par = run_ensemble(PipelineOrchestrator(), DECAY.to_input(), 6, rng_seed=3, max_workers=3)
        assert seq.digest_root == par.digest_root
        assert [o.final_state for o in seq.outputs] == [o.final_state for o in par.outputs]
