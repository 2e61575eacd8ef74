"""
cube5d/types_config.py - PipelineConfig and Presets

Immutable, self-validating configuration for pipeline runs.
Frozen dataclass; dict/YAML input is checked against a Draft 2020-12 JSON
Schema before construction.
"""

from __future__ import annotations

import hashlib
import json
import warnings
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from jsonschema import Draft202012Validator

from .constants import (
    DEFAULT_ENTROPY_BINS,
    DEFAULT_FREQUENCY_COMPONENT,
    DEFAULT_HISTORY_WINDOW,
    DEFAULT_MAX_DELTA_PI,
    DEFAULT_MIN_PHI,
    DEFAULT_SEED,
    DEFAULT_STATE_PRECISION,
    DEFAULT_STEP_SIZE,
    DEFAULT_T_FINAL,
    SEED_PREFIX_LENGTH,
    STATE_DIM,
)

__all__ = [
    "PipelineConfig",
    "ConfigError",
    "CONFIG_DEFAULT",
    "CONFIG_STRICT",
    "CONFIG_SHADOW",
    "load",
    "from_dict",
]


# =============================================================================
# JSON Schema Definition (Draft 2020-12)
# =============================================================================

_JSON_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "PipelineConfig",
    "description": "cube5d pipeline configuration",
    "type": "object",
    "properties": {
        "step_size": {"type": "number", "exclusiveMinimum": 0},
        "t_final": {"type": "number", "exclusiveMinimum": 0},
        "max_delta_pi": {"type": "number", "minimum": 0},
        "min_phi": {"type": "number", "minimum": -1.0, "maximum": 1.0},
        "seed": {"type": "string", "minLength": 1},
        "seed_prefix_length": {"type": "integer", "minimum": 1},
        "state_precision": {"type": "integer", "minimum": 1, "maximum": 17},
        "history_window": {"type": "integer", "minimum": 1},
        "entropy_bins": {"type": "integer", "minimum": 2},
        "frequency_component": {"type": "integer", "minimum": 0, "maximum": STATE_DIM - 1},
        "shadow_mode": {"type": "boolean"},
        "emit_receipts": {"type": "boolean"},
        "tenant_id": {"type": "string", "minLength": 1},
    },
    "additionalProperties": False,
}

# Compiled once at import
Draft202012Validator.check_schema(_JSON_SCHEMA)
_COMPILED_VALIDATOR = Draft202012Validator(_JSON_SCHEMA)


class ConfigError(ValueError):
    """Config input failed schema validation."""


# =============================================================================
# PipelineConfig Dataclass
# =============================================================================

@dataclass(frozen=True)
class PipelineConfig:
    """
    Read-only run configuration, shared safely across concurrent runs.

    Attributes:
        step_size: Default integration step h
        t_final: Default integration horizon
        max_delta_pi: Largest step displacement a valid proof admits
        min_phi: Smallest alignment a valid proof admits
        seed: Default seed when the input carries none
        seed_prefix_length: Seed characters carried into knowledge ids
        state_precision: Decimals per state component in commit digests
        history_window: Spectral observation buffer bound
        entropy_bins: Histogram bins for psi
        frequency_component: State component omega is measured on
        shadow_mode: Compute everything, never hand records to the store
        emit_receipts: Collect stage receipts into the output
        tenant_id: Tenant stamped on every receipt
    """
    step_size: float = DEFAULT_STEP_SIZE
    t_final: float = DEFAULT_T_FINAL
    max_delta_pi: float = DEFAULT_MAX_DELTA_PI
    min_phi: float = DEFAULT_MIN_PHI
    seed: str = DEFAULT_SEED
    seed_prefix_length: int = SEED_PREFIX_LENGTH
    state_precision: int = DEFAULT_STATE_PRECISION
    history_window: int = DEFAULT_HISTORY_WINDOW
    entropy_bins: int = DEFAULT_ENTROPY_BINS
    frequency_component: int = DEFAULT_FREQUENCY_COMPONENT
    shadow_mode: bool = False
    emit_receipts: bool = True
    tenant_id: str = "cube5d"

    def __post_init__(self) -> None:
        errors = sorted(_COMPILED_VALIDATOR.iter_errors(self.to_dict()), key=lambda e: list(e.path))
        if errors:
            raise ConfigError("; ".join(_format_error(e) for e in errors))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @property
    def config_hash(self) -> str:
        """Short SHA3-256 of the canonical config."""
        canonical = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"))
        return hashlib.sha3_256(canonical.encode()).hexdigest()[:16]

    def with_updates(self, **changes: Any) -> PipelineConfig:
        return replace(self, **changes)


def _format_error(error) -> str:
    where = ".".join(str(p) for p in error.path) or "<root>"
    return f"{where}: {error.message}"


# =============================================================================
# Loading
# =============================================================================

def from_dict(data: Dict[str, Any]) -> PipelineConfig:
    """Validate a plain dict and build a PipelineConfig."""
    errors = sorted(_COMPILED_VALIDATOR.iter_errors(data), key=lambda e: list(e.path))
    if errors:
        raise ConfigError("; ".join(_format_error(e) for e in errors))
    config = PipelineConfig(**data)
    if config.shadow_mode:
        warnings.warn(
            "shadow_mode is on: FIRE decisions will not be handed to the knowledge store",
            RuntimeWarning,
            stacklevel=2,
        )
    return config


def load(path: Union[str, Path]) -> PipelineConfig:
    """Load a config from a .yaml/.yml or .json file."""
    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return from_dict(data)


# =============================================================================
# PRESETS
# =============================================================================

CONFIG_DEFAULT = PipelineConfig()

CONFIG_STRICT = PipelineConfig(
    max_delta_pi=0.01,
    min_phi=0.9,
)

CONFIG_SHADOW = PipelineConfig(
    shadow_mode=True,
)
