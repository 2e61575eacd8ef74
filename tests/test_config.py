"""
tests/test_config.py - Tests for cube5d/types_config.py

Validates defaults, schema rejection, file loading and the shadow-mode
warning.
"""

import json
import warnings
from dataclasses import FrozenInstanceError

import pytest

from cube5d.types_config import (
    CONFIG_DEFAULT,
    CONFIG_SHADOW,
    CONFIG_STRICT,
    ConfigError,
    PipelineConfig,
    from_dict,
    load,
)


class TestPipelineConfig:
    """Tests for the PipelineConfig dataclass."""

    def test_defaults(self):
        cfg = CONFIG_DEFAULT
        assert cfg.step_size == 0.01
        assert cfg.t_final == 1.0
        assert cfg.max_delta_pi == 0.1
        assert cfg.min_phi == 0.5
        assert cfg.seed == "42"
        assert cfg.seed_prefix_length == 8
        assert cfg.shadow_mode is False
        assert cfg.emit_receipts is True

    def test_presets(self):
        assert CONFIG_STRICT.max_delta_pi == 0.01
        assert CONFIG_STRICT.min_phi == 0.9
        assert CONFIG_SHADOW.shadow_mode is True

    @pytest.mark.parametrize("changes", [
        {"step_size": 0.0},
        {"t_final": -1.0},
        {"min_phi": 1.5},
        {"max_delta_pi": -0.1},
        {"seed": ""},
        {"frequency_component": 5},
        {"entropy_bins": 1},
    ])
    def test_invalid_values(self, changes):
        with pytest.raises(ConfigError):
            PipelineConfig(**changes)

    def test_config_error_is_value_error(self):
        assert issubclass(ConfigError, ValueError)

    def test_frozen(self):
        with pytest.raises(FrozenInstanceError):
            CONFIG_DEFAULT.step_size = 0.5

    def test_with_updates(self):
        cfg = CONFIG_DEFAULT.with_updates(step_size=0.001)
        assert cfg.step_size == 0.001
        assert CONFIG_DEFAULT.step_size == 0.01
        with pytest.raises(ConfigError):
            CONFIG_DEFAULT.with_updates(step_size=0.0)

    def test_config_hash(self):
        assert len(CONFIG_DEFAULT.config_hash) == 16
        assert PipelineConfig().config_hash == CONFIG_DEFAULT.config_hash
        assert CONFIG_STRICT.config_hash != CONFIG_DEFAULT.config_hash


class TestLoading:
    """Tests for from_dict and load."""

    def test_from_dict(self):
        cfg = from_dict({"step_size": 0.05, "seed": "abc"})
        assert cfg.step_size == 0.05
        assert cfg.seed == "abc"
        assert cfg.t_final == 1.0

    def test_unknown_key_rejected(self):
        with pytest.raises(ConfigError) as exc_info:
            from_dict({"step": 0.1})
        assert "step" in str(exc_info.value)

    def test_wrong_type_rejected(self):
        with pytest.raises(ConfigError):
            from_dict({"shadow_mode": "yes"})

    def test_shadow_mode_warns(self):
        with pytest.warns(RuntimeWarning, match="shadow_mode"):
            cfg = from_dict({"shadow_mode": True})
        assert cfg.shadow_mode is True

    def test_no_warning_by_default(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            from_dict({})

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "run.yaml"
        path.write_text("step_size: 0.02\nt_final: 2.0\nmin_phi: 0.75\n", encoding="utf-8")
        cfg = load(path)
        assert (cfg.step_size, cfg.t_final, cfg.min_phi) == (0.02, 2.0, 0.75)

    def test_load_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("", encoding="utf-8")
        assert load(path) == CONFIG_DEFAULT

    def test_load_json(self, tmp_path):
        path = tmp_path / "run.json"
        path.write_text(json.dumps({"history_window": 64}), encoding="utf-8")
        assert load(path).history_window == 64

    def test_load_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load(path)
