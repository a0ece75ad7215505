# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Atomic save/load of trained models.

A saved model is a directory:
  model.pt       network state dict
  metadata.json  layer dims, error measure, learning rate, training summary

Saves write into a temp directory next to the target and rename it into
place, so an interrupted save never leaves a half-written model behind.
"""

import json
import logging
import shutil
import tempfile
from dataclasses import asdict, dataclass, field
from pathlib import Path

import torch

from dnntrain.config.schema import TrainConfig
from dnntrain.logging.logger import get_logger
from dnntrain.model.network import FeedForwardNetwork, NetworkModel, build_adapter
from dnntrain.training.evaluation.core import ErrorMeasure

logger: logging.Logger = get_logger(__name__)

_WEIGHTS_FILE = "model.pt"
_METADATA_FILE = "metadata.json"


@dataclass(frozen=True)
class ModelMetadata:
    """Everything needed to rebuild a NetworkModel besides the weights."""

    layer_dims: list[int]
    error_measure: str
    learning_rate: float
    training: dict[str, object] = field(default_factory=dict)


def save_model(model: NetworkModel, model_dir: Path, training: dict[str, object] | None = None) -> Path:
    """
    Save a model atomically.

    Args:
        model: The model to save.
        model_dir: Final directory for the saved model.
        training: Optional summary of the run that produced the model.

    Returns:
        Path to the saved model directory.
    """
    parent = model_dir.parent
    parent.mkdir(parents=True, exist_ok=True)

    metadata = ModelMetadata(
        layer_dims=model.layer_dims,
        error_measure=model.measure.value,
        learning_rate=model.current_learning_rate(),
        training=training or {},
    )

    tmp_dir = Path(tempfile.mkdtemp(dir=parent, prefix=".model_tmp_"))
    try:
        torch.save(model.network.state_dict(), tmp_dir / _WEIGHTS_FILE)
        (tmp_dir / _METADATA_FILE).write_text(
            json.dumps(asdict(metadata), indent=2, default=str),
            encoding="utf-8",
        )

        if model_dir.exists():
            shutil.rmtree(model_dir)
        tmp_dir.rename(model_dir)
    except Exception:
        if tmp_dir.exists():
            shutil.rmtree(tmp_dir)
        raise

    logger.info(
        "Model saved",
        extra={"path": str(model_dir), "layer_dims": metadata.layer_dims},
    )
    return model_dir


def read_metadata(model_dir: Path) -> ModelMetadata:
    """Read metadata.json from a saved model directory."""
    meta_path = model_dir / _METADATA_FILE
    if not meta_path.is_file():
        raise RuntimeError(f"{_METADATA_FILE} not found in {model_dir}")

    raw = json.loads(meta_path.read_text(encoding="utf-8"))
    return ModelMetadata(
        layer_dims=list(raw["layer_dims"]),
        error_measure=raw["error_measure"],
        learning_rate=float(raw["learning_rate"]),
        training=raw.get("training", {}),
    )


def load_model(
    model_dir: Path,
    train_cfg: TrainConfig,
    device: torch.device | None = None,
) -> NetworkModel:
    """
    Rebuild a NetworkModel from disk.

    The learning rate restarts from train_cfg.learning_rate, so a new run
    uses the rate it was configured with. The saved rate is informational.

    Raises:
        FileNotFoundError: If model_dir doesn't exist.
        RuntimeError: If a file is missing, or the saved error measure
            doesn't match train_cfg.error_measure.
    """
    if not model_dir.is_dir():
        raise FileNotFoundError(f"Model directory not found: {model_dir}")

    metadata = read_metadata(model_dir)
    if metadata.error_measure != train_cfg.error_measure:
        raise RuntimeError(
            f"Model at {model_dir} was trained for {metadata.error_measure}, "
            f"config asks for {train_cfg.error_measure}"
        )

    weights_path = model_dir / _WEIGHTS_FILE
    if not weights_path.is_file():
        raise RuntimeError(f"{_WEIGHTS_FILE} not found in {model_dir}")

    network = FeedForwardNetwork(metadata.layer_dims)
    map_location = device if device is not None else "cpu"
    network.load_state_dict(torch.load(weights_path, map_location=map_location, weights_only=True))

    model = NetworkModel(
        network,
        ErrorMeasure(metadata.error_measure),
        build_adapter(train_cfg),
        device=device,
    )
    logger.info(
        "Model loaded",
        extra={"path": str(model_dir), "layer_dims": metadata.layer_dims},
    )
    return model
