# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the config loader.

  1. Valid YAML loads into a frozen, correct config object
  2. Missing required fields raise ConfigValidationError
  3. Unknown fields and out-of-range values raise ConfigValidationError
  4. Broken YAML or a missing file raises ConfigLoadError
"""

import textwrap
from pathlib import Path

import pytest

from dnntrain.config.exceptions import ConfigLoadError, ConfigValidationError
from dnntrain.config.loader import load_config


def _write(tmp_path: Path, name: str, content: str) -> Path:
    config_file = tmp_path / name
    config_file.write_text(textwrap.dedent(content), encoding="utf-8")
    return config_file


class TestLoadValidConfig:
    def test_loads_minimal_valid_config(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        assert config.global_config.project_name == "dnntrain-test"
        assert config.global_config.seed == 42
        assert config.global_config.log_level == "DEBUG"

    def test_optional_sections_default_to_none(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        assert config.data is None
        assert config.model is None
        assert config.train is None
        assert config.runtime is None

    def test_loads_full_training_config(self, train_config_file: Path) -> None:
        config = load_config(train_config_file)
        assert config.global_config.seed == 7
        assert config.data is not None and config.data.valid_ratio == 3
        assert config.model is not None and config.model.hidden_dims == []
        assert config.train is not None
        assert config.train.non_increase_window == 3
        assert config.train.batch_size == 4
        assert config.runtime is not None and config.runtime.device == "cpu"

    def test_shipped_sample_config_is_valid(self) -> None:
        sample = Path(__file__).resolve().parents[2] / "configs" / "train.yaml"
        config = load_config(sample)
        assert config.train is not None


class TestLoadInvalidConfig:
    def test_missing_required_field_raises_validation_error(
        self, invalid_config_file: Path
    ) -> None:
        with pytest.raises(ConfigValidationError):
            load_config(invalid_config_file)

    def test_unknown_field_raises_validation_error(self, tmp_path: Path) -> None:
        config_file = _write(tmp_path, "unknown.yaml", """\
            global:
              config_version: "1.0.0"
            train:
              config_version: "1.0.0"
              momentum: 0.9
        """)
        with pytest.raises(ConfigValidationError):
            load_config(config_file)

    @pytest.mark.parametrize(
        "field, value",
        [
            ("max_epoch", 0),
            ("batch_size", 0),
            ("non_increase_window", 0),
            ("eval_batch_size", 0),
            ("min_valid_accuracy", 1.5),
            ("learning_rate", 0),
        ],
    )
    def test_out_of_range_train_values_are_rejected(
        self, tmp_path: Path, field: str, value: float
    ) -> None:
        config_file = _write(tmp_path, "range.yaml", f"""\
            global:
              config_version: "1.0.0"
            train:
              config_version: "1.0.0"
              {field}: {value}
        """)
        with pytest.raises(ConfigValidationError):
            load_config(config_file)

    def test_broken_yaml_raises_load_error(self, broken_yaml_file: Path) -> None:
        with pytest.raises(ConfigLoadError):
            load_config(broken_yaml_file)

    def test_nonexistent_file_raises_load_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError):
            load_config(tmp_path / "does_not_exist.yaml")

    def test_directory_path_raises_load_error(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError):
            load_config(tmp_path)

    def test_non_mapping_document_raises_load_error(self, tmp_path: Path) -> None:
        config_file = _write(tmp_path, "list.yaml", "- just\n- a list\n")
        with pytest.raises(ConfigLoadError, match="mapping"):
            load_config(config_file)


class TestConfigImmutability:
    def test_cannot_mutate_frozen_config(self, tmp_config_file: Path) -> None:
        config = load_config(tmp_config_file)
        with pytest.raises(Exception):
            config.global_config.seed = 999  # type: ignore[misc]

    def test_cannot_mutate_train_section(self, train_config_file: Path) -> None:
        config = load_config(train_config_file)
        assert config.train is not None
        with pytest.raises(Exception):
            config.train.learning_rate = 5.0  # type: ignore[misc]


class TestOverrides:
    def test_override_replaces_file_value(self, train_config_file: Path) -> None:
        config = load_config(train_config_file, overrides=["train.learning_rate=0.5"])
        assert config.train is not None
        assert config.train.learning_rate == 0.5

    def test_values_are_yaml_typed(self, train_config_file: Path) -> None:
        config = load_config(
            train_config_file,
            overrides=["model.hidden_dims=[6, 3]", "train.shuffle=true"],
        )
        assert config.model is not None and config.model.hidden_dims == [6, 3]
        assert config.train is not None and config.train.shuffle is True

    def test_later_override_wins(self, train_config_file: Path) -> None:
        config = load_config(
            train_config_file,
            overrides=["train.batch_size=8", "train.batch_size=16"],
        )
        assert config.train is not None and config.train.batch_size == 16

    def test_overrides_are_validated(self, train_config_file: Path) -> None:
        with pytest.raises(ConfigValidationError):
            load_config(train_config_file, overrides=["train.batch_size=0"])

    def test_missing_section_is_rejected(self, tmp_config_file: Path) -> None:
        with pytest.raises(ConfigLoadError, match="'train'"):
            load_config(tmp_config_file, overrides=["train.batch_size=8"])

    @pytest.mark.parametrize("text", ["train.batch_size", "=3", "train..batch_size=3"])
    def test_malformed_override_is_rejected(self, train_config_file: Path, text: str) -> None:
        with pytest.raises(ConfigLoadError):
            load_config(train_config_file, overrides=[text])
