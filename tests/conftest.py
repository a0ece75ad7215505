# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for dnntrain tests.

Fixtures here are available to every test file automatically.
Only fixtures that several test modules share live here.
"""

import textwrap
from pathlib import Path

import pytest


@pytest.fixture()
def tmp_config_file(tmp_path: Path) -> Path:
    """The smallest config that passes schema validation."""
    config_content = textwrap.dedent("""\
        global:
          config_version: "1.0.0"
          project_name: "dnntrain-test"
          seed: 42
          log_level: "DEBUG"
    """)
    config_file = tmp_path / "test_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def invalid_config_file(tmp_path: Path) -> Path:
    """A config file that's valid YAML but fails schema validation (missing required field)."""
    config_content = textwrap.dedent("""\
        global:
          project_name: "dnntrain-test"
          seed: 42
    """)
    config_file = tmp_path / "invalid_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def broken_yaml_file(tmp_path: Path) -> Path:
    """A file that isn't valid YAML at all."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("{{not: yaml: at: all:::", encoding="utf-8")
    return config_file


@pytest.fixture()
def separable_data_file(tmp_path: Path) -> Path:
    """
    60 dense samples, two classes, linearly separable.

    Class 0 sits around (-1, -1), class 1 around (1, 1); the offsets are
    deterministic so every run sees the same file.
    """
    lines = []
    for i in range(60):
        label = (i // 3) % 2
        sign = 1.0 if label == 1 else -1.0
        jitter = ((i * 7) % 11 - 5) / 20.0
        lines.append(f"{label} {sign + jitter:.3f} {sign - jitter:.3f}")
    data_file = tmp_path / "train.dat"
    data_file.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return data_file


@pytest.fixture()
def train_config_file(tmp_path: Path, separable_data_file: Path) -> Path:
    """A complete training config pointing at separable_data_file."""
    model_out = tmp_path / "out.model"
    config_content = textwrap.dedent(f"""\
        global:
          config_version: "1.0.0"
          seed: 7
          log_level: "INFO"
        data:
          config_version: "1.0.0"
          training_set_file: "{separable_data_file}"
          valid_ratio: 3
        model:
          config_version: "1.0.0"
          hidden_dims: []
          init_variance: 0.01
          model_out: "{model_out}"
        train:
          config_version: "1.0.0"
          learning_rate: 2.0
          min_valid_accuracy: 0.9
          max_epoch: 50
          non_increase_window: 3
          batch_size: 4
          eval_batch_size: 16
          progress_table: false
        runtime:
          config_version: "1.0.0"
          device: "cpu"
          cache_mb: 0
    """)
    config_file = tmp_path / "train.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file
