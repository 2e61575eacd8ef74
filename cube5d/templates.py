"""
cube5d/templates.py - Domain Templates

Ready-made (parameters, coupling, initial state) instantiations of the 5D
system. Each template can build its VectorField or a full PipelineInput.
"""

from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from .constants import DEFAULT_SEED, STATE_DIM, CouplingType
from .coupling import CouplingMatrix
from .dynamics import VectorField
from .types_result import PipelineInput
from .types_state import StateVector, SystemParameters


@dataclass(frozen=True)
class Template:
    """Named instantiation of the 5D system."""
    name: str
    description: str
    parameters: SystemParameters
    coupling: CouplingMatrix
    initial_state: StateVector
    step_size: Optional[float] = None
    t_final: Optional[float] = None

    def vector_field(self) -> VectorField:
        return VectorField(self.coupling, self.parameters)

    def to_input(self, identifier: str = "", seed: str = DEFAULT_SEED,
                 seed_path: str = "") -> PipelineInput:
        return PipelineInput(
            initial_state=self.initial_state,
            parameters=self.parameters,
            coupling=self.coupling,
            step_size=self.step_size,
            t_final=self.t_final,
            identifier=identifier or self.name,
            seed=seed,
            seed_path=seed_path,
        )


def _rotation(omega: float) -> CouplingMatrix:
    arr = np.zeros((STATE_DIM, STATE_DIM), dtype=np.float64)
    arr[0, 1] = -omega
    arr[1, 0] = omega
    return CouplingMatrix.from_array(arr, CouplingType.LINEAR)


# =============================================================================
# PRESETS
# =============================================================================

STATIC = Template(
    name="static",
    description="dx/dt = 0 everywhere; every sample equals the initial state",
    parameters=SystemParameters(),
    coupling=CouplingMatrix.none(),
    initial_state=StateVector.of(1.0, 0.0, 0.0, 0.0, 0.0),
)

DECAY = Template(
    name="decay",
    description="Uncoupled exponential relaxation toward the origin",
    parameters=SystemParameters({"alpha": -1.0}),
    coupling=CouplingMatrix.none(),
    initial_state=StateVector.of(1.0, 1.0, 1.0, 1.0, 1.0),
)

GROWTH = Template(
    name="growth",
    description="Uncoupled exponential growth away from the origin",
    parameters=SystemParameters({"alpha": 0.5}),
    coupling=CouplingMatrix.none(),
    initial_state=StateVector.of(1.0, 0.5, 0.25, 0.0, -0.5),
)

OSCILLATOR = Template(
    name="oscillator",
    description="Lightly damped rotation in the (x0, x1) plane, other axes decay",
    parameters=SystemParameters({"alpha": -0.05}),
    coupling=_rotation(2.0 * np.pi),
    initial_state=StateVector.of(1.0, 0.0, 0.5, 0.5, 0.5),
    t_final=3.0,
)

COUPLED_RING = Template(
    name="coupled_ring",
    description="Diffusive nearest-neighbour exchange on a ring with weak decay",
    parameters=SystemParameters({"alpha": -0.1}),
    coupling=CouplingMatrix.ring(0.5),
    initial_state=StateVector.of(1.0, 0.0, 0.0, 0.0, 0.0),
)

SATURATING = Template(
    name="saturating",
    description="Decay with tanh-saturated all-to-all coupling",
    parameters=SystemParameters({"alpha": -0.5, "gamma": 0.3}),
    coupling=CouplingMatrix.uniform(1.0, CouplingType.NONLINEAR),
    initial_state=StateVector.of(0.5, -0.5, 0.2, 0.0, 0.1),
)

TEMPLATES: Dict[str, Template] = {
    t.name: t for t in (STATIC, DECAY, GROWTH, OSCILLATOR, COUPLED_RING, SATURATING)
}


def get_template(name: str) -> Template:
    try:
        return TEMPLATES[name]
    except KeyError:
        raise KeyError(f"unknown template {name!r}; choose from {sorted(TEMPLATES)}") from None
