# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for dnntrain.

Each config section is a frozen pydantic model:
  - frozen=True: immutable after construction
  - extra="forbid": unknown fields fail immediately
  - validate_default=True: defaults get type-checked too

Structural violations (max_epoch=0, batch_size=0, non_increase_window=0, ...)
are rejected here, long before the training loop starts.

The learning rate in TrainConfig is only the *initial* rate. The running rate
lives inside the model and the learning-rate adapter changes it between
epochs. The config itself never changes once loaded.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class GlobalConfig(BaseModel):
    """
    Cross-cutting settings: reproducibility (seed), observability (log_level,
    log_file) and project identity.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(
        description="Schema version for compatibility tracking, e.g. '1.0.0'"
    )
    project_name: str = Field(
        default="dnntrain", description="Human-readable project identifier"
    )
    seed: int = Field(
        default=42,
        ge=0,
        description="Global random seed propagated to python and torch",
    )
    log_level: str = Field(
        default="INFO",
        description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional path for file-based log output",
    )


class DataConfig(BaseModel):
    """Where the training data lives and how it gets prepared."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(description="Schema version")
    training_set_file: str = Field(
        description="Text file with one sample per line: label followed by features",
    )
    input_dim: int = Field(
        default=0,
        ge=0,
        description="Feature dimension; 0 means detect it from the file",
    )
    normalize: Literal["none", "rescale", "standard"] = Field(
        default="none",
        description="none, rescale each dimension to [0, 1], or z-score each dimension",
    )
    label_base: int = Field(
        default=0,
        ge=0,
        le=1,
        description="Whether class labels in the file start at 0 or 1",
    )
    valid_ratio: int = Field(
        default=5,
        ge=1,
        description="Ratio of training samples to validation samples (split automatically)",
    )


class ModelConfig(BaseModel):
    """Feed-forward network shape, initialisation and I/O paths."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(description="Schema version")
    hidden_dims: list[int] = Field(
        default_factory=lambda: [16, 8],
        description="Width of each hidden layer, input to output",
    )
    init_variance: float = Field(
        default=0.01,
        gt=0.0,
        description="Variance of the normal distribution used to initialise weights",
    )
    model_in: Optional[str] = Field(
        default=None,
        description="Saved model directory to start from; a fresh network is built when unset",
    )
    model_out: Optional[str] = Field(
        default=None,
        description="Where to save the trained model; defaults to '<training file name>.model'",
    )


class TrainConfig(BaseModel):
    """Epoch/batch schedule, stopping policy and learning-rate adaptation."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(description="Schema version")
    learning_rate: float = Field(
        default=0.1,
        gt=0.0,
        description="Initial learning rate; each update uses learning_rate / batch_size",
    )
    min_valid_accuracy: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Validation accuracy that must be exceeded before early stopping is considered",
    )
    max_epoch: int = Field(
        default=100000,
        ge=1,
        description="Maximum number of epochs",
    )
    non_increase_window: int = Field(
        default=6,
        ge=1,
        description="Number of recent epochs the current validation error must not exceed",
    )
    batch_size: int = Field(
        default=32,
        ge=1,
        description="Number of samples per mini-batch update",
    )
    eval_batch_size: int = Field(
        default=2048,
        ge=1,
        description="Chunk size for whole-set error evaluation; never changes the result",
    )
    shuffle: bool = Field(
        default=False,
        description="Permute the order of mini-batches each epoch (seeded)",
    )
    error_measure: Literal["classification", "regression"] = Field(
        default="classification",
        description="classification (zero-one error) or regression (squared error)",
    )
    lr_decay_factor: float = Field(
        default=1.0,
        gt=0.0,
        le=1.0,
        description="Multiplier applied to the learning rate when train accuracy stalls; 1.0 keeps it constant",
    )
    lr_min_improvement: float = Field(
        default=0.0,
        ge=0.0,
        description="Train accuracy gain over the best epoch so far that counts as progress",
    )
    min_learning_rate: float = Field(
        default=0.0,
        ge=0.0,
        description="Floor for the adapted learning rate",
    )
    progress_table: bool = Field(
        default=True,
        description="Render the human-readable per-epoch table on stdout",
    )


class RuntimeConfig(BaseModel):
    """Device selection and the one-time device cache sizing."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(description="Schema version")
    device: Literal["auto", "cpu", "cuda"] = Field(
        default="auto",
        description="auto picks cuda when available, otherwise cpu",
    )
    cache_mb: int = Field(
        default=16,
        ge=0,
        description="Device memory (MB) the model may cache; 0 leaves the allocator uncapped",
    )


class DnnTrainConfig(BaseModel):
    """
    Top-level config container.

    A YAML file holds `global:` plus whichever sections a command needs.
    Missing sections stay None; commands check for what they require.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    global_config: GlobalConfig = Field(alias="global")
    data: Optional[DataConfig] = Field(default=None)
    model: Optional[ModelConfig] = Field(default=None)
    train: Optional[TrainConfig] = Field(default=None)
    runtime: Optional[RuntimeConfig] = Field(default=None)
