# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Error measures used both to drive updates and to score epochs.

Two measures:
  - CLASSIFICATION: predictions are class probabilities (N, C), targets are
    integer labels (N,). The epoch score is the zero-one error, the number
    of rows whose arg-max class is not the label. The update signal is the
    cross-entropy gradient w.r.t. the softmax input: probs - one_hot(labels).
  - REGRESSION: predictions and targets are (N, D) floats. The epoch score is
    the squared error 0.5 * sum((pred - target)^2). Its gradient,
    pred - target, is the update signal.

`predict_error` scores a whole dataset in chunks of eval_batch_size. Chunking
only bounds memory. Classification counts are exact integers summed per
chunk, so the result is the same for every chunk size.
"""

import logging
from enum import Enum

import torch
import torch.nn.functional as F

from dnntrain.logging.logger import get_logger
from dnntrain.training.batching.core import partition
from dnntrain.training.interfaces import DatasetProvider, ModelCapability

logger: logging.Logger = get_logger(__name__)

DEFAULT_EVAL_BATCH_SIZE = 2048


class ErrorMeasure(str, Enum):
    """Which loss scores predictions."""

    CLASSIFICATION = "classification"
    REGRESSION = "regression"


def _check_shapes(
    predictions: torch.Tensor,
    targets: torch.Tensor,
    measure: ErrorMeasure,
) -> None:
    if measure is ErrorMeasure.CLASSIFICATION:
        if predictions.dim() != 2 or targets.dim() != 1:
            raise ValueError(
                "Classification expects predictions (N, C) and labels (N,), "
                f"got {tuple(predictions.shape)} and {tuple(targets.shape)}"
            )
        if predictions.shape[0] != targets.shape[0]:
            raise ValueError(
                f"Row count mismatch: {predictions.shape[0]} predictions vs {targets.shape[0]} labels"
            )
        if targets.numel() and (targets.min() < 0 or targets.max() >= predictions.shape[1]):
            raise ValueError(
                f"Labels must lie in [0, {predictions.shape[1]}) for a model with "
                f"{predictions.shape[1]} outputs, got range "
                f"[{int(targets.min())}, {int(targets.max())}]"
            )
    elif predictions.shape != targets.shape:
        raise ValueError(
            f"Regression expects matching shapes, got {tuple(predictions.shape)} "
            f"and {tuple(targets.shape)}"
        )


def evaluate(
    predictions: torch.Tensor,
    targets: torch.Tensor,
    measure: ErrorMeasure,
) -> int | float:
    """
    Score a batch of predictions against ground truth.

    Args:
        predictions: Model output for the batch.
        targets: Labels (classification) or target values (regression).
        measure: Which error measure to apply.

    Returns:
        Number of mispredicted rows (int) for classification, or the squared
        error (float) for regression.

    Raises:
        ValueError: If the shapes don't fit the measure.
    """
    _check_shapes(predictions, targets, measure)
    targets = targets.to(predictions.device)

    if measure is ErrorMeasure.CLASSIFICATION:
        if predictions.shape[0] == 0:
            return 0
        predicted_class = predictions.argmax(dim=1)
        return int((predicted_class != targets.long()).sum().item())

    diff = predictions.double() - targets.double()
    return float(0.5 * (diff * diff).sum().item())


def error_signal(
    predictions: torch.Tensor,
    targets: torch.Tensor,
    measure: ErrorMeasure,
) -> torch.Tensor:
    """
    Per-batch error signal handed to the model's update call.

    The signal is the gradient of the batch loss w.r.t. the output layer's
    pre-activation, summed (not averaged) over rows. Batch-size normalisation
    happens in the learning rate instead.
    """
    _check_shapes(predictions, targets, measure)
    targets = targets.to(predictions.device)

    if measure is ErrorMeasure.CLASSIFICATION:
        one_hot = F.one_hot(targets.long(), num_classes=predictions.shape[1])
        return predictions - one_hot.to(predictions.dtype)

    return predictions - targets.to(predictions.dtype)


def predict_error(
    model: ModelCapability,
    dataset: DatasetProvider,
    measure: ErrorMeasure,
    eval_batch_size: int = DEFAULT_EVAL_BATCH_SIZE,
) -> int | float:
    """
    Total error of the model over a whole dataset.

    Args:
        model: Anything implementing ModelCapability.forward.
        dataset: The samples to score.
        measure: Error measure.
        eval_batch_size: Chunk size for forward passes.

    Returns:
        Summed error over every sample (int for classification).
    """
    total: int | float = 0 if measure is ErrorMeasure.CLASSIFICATION else 0.0
    for batch_range in partition(len(dataset), eval_batch_size):
        batch = dataset[batch_range]
        total += evaluate(model.forward(batch.x), batch.y, measure)

    logger.debug(
        "Dataset evaluated",
        extra={"samples": len(dataset), "error": total, "measure": measure.value},
    )
    return total
