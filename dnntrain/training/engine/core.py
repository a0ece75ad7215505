# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Epoch controller for dnntrain.

One training run is an explicit loop over epochs:
  1. Walk the training set batch by batch (BatchScheduler)
  2. Per batch: forward pass, error signal, parameter update with
     lr = model.current_learning_rate() / batch_size
  3. Score the whole training set (Ein) and validation set (Eout)
  4. Record Eout in the error history
  5. Diverged epoch (train accuracy < 0): count it, mark it, move on
  6. Otherwise report the epoch, stop if validation accuracy clears the
     threshold and the error has plateaued, else let the model adapt its
     learning rate
  7. Stop after max_epoch epochs if nothing converged

Batches and epochs are strictly sequential. Batch k's update finishes
before batch k+1's forward pass reads the parameters. The controller itself
never runs anything concurrently.

State machine:
  RUNNING ──converged──▶ STOPPED_CONVERGED
     │
     └──max_epoch reached──▶ STOPPED_MAX_EPOCH
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum

from dnntrain.config.schema import TrainConfig
from dnntrain.logging.logger import get_logger
from dnntrain.training.batching.core import BatchScheduler
from dnntrain.training.evaluation.core import ErrorMeasure, error_signal, predict_error
from dnntrain.training.exceptions import EmptyDatasetError, InvalidTrainingConfigError
from dnntrain.training.interfaces import DatasetProvider, ModelCapability
from dnntrain.training.metrics.core import (
    EpochResult,
    ProgressTable,
    accuracy,
    log_diverged_epoch,
    log_epoch,
    log_summary,
)
from dnntrain.training.stopping.core import ErrorHistory, should_stop

logger: logging.Logger = get_logger(__name__)


class TrainingState(str, Enum):
    RUNNING = "running"
    STOPPED_CONVERGED = "stopped_converged"
    STOPPED_MAX_EPOCH = "stopped_max_epoch"


@dataclass(frozen=True)
class TrainingResult:
    """Final result of a training run."""

    state: TrainingState
    epochs_run: int
    error_history: tuple[int | float, ...]
    epochs: tuple[EpochResult, ...]
    final_train_error: int | float
    final_valid_error: int | float
    final_train_accuracy: float
    final_valid_accuracy: float
    elapsed_seconds: float
    diverged_epochs: int
    final_learning_rate: float

    @property
    def stop_epoch(self) -> int:
        """Index of the last epoch that ran."""
        return self.epochs_run - 1


class EpochController:
    """
    Drives one training run of a model over fixed train/validation sets.

    The model is updated in place and stays owned by the caller. Nothing else
    may write to its parameters while `run` is executing.

    Args:
        model: The model to train.
        train: Training samples.
        valid: Validation samples.
        config: Schedule, stopping and error-measure settings.
        progress: Table to render progress into; a disabled table when None.
        seed: Base seed for batch-order shuffling (ignored unless config.shuffle).

    Raises:
        InvalidTrainingConfigError: If a schedule parameter is below 1.
        EmptyDatasetError: If either dataset is empty.
    """

    def __init__(
        self,
        model: ModelCapability,
        train: DatasetProvider,
        valid: DatasetProvider,
        config: TrainConfig,
        progress: ProgressTable | None = None,
        seed: int = 42,
    ) -> None:
        _validate_setup(train, valid, config)

        self.model = model
        self.train = train
        self.valid = valid
        self.config = config
        self.measure = ErrorMeasure(config.error_measure)
        self.progress = progress if progress is not None else ProgressTable(enabled=False)
        self.scheduler = BatchScheduler(
            len(train), config.batch_size, shuffle=config.shuffle, seed=seed,
        )

        self.state = TrainingState.RUNNING
        self.epoch = 0
        self.history = ErrorHistory()
        self.diverged_epochs = 0

    def _train_epoch(self, epoch: int) -> None:
        """One forward/update cycle per batch, in order."""
        lr = self.model.current_learning_rate() / self.config.batch_size

        for batch_range in self.scheduler.for_epoch(epoch):
            batch = self.train[batch_range]
            predictions = self.model.forward(batch.x)
            signal = error_signal(predictions, batch.y, self.measure)
            self.model.update(signal, batch.x, predictions, lr)

    def _evaluate(self) -> tuple[int | float, int | float]:
        eval_batch_size = self.config.eval_batch_size
        train_error = predict_error(self.model, self.train, self.measure, eval_batch_size)
        valid_error = predict_error(self.model, self.valid, self.measure, eval_batch_size)
        return train_error, valid_error

    def run(self) -> TrainingResult:
        """
        Run epochs until convergence or max_epoch.

        Returns:
            TrainingResult describing how the run ended.
        """
        if self.state is not TrainingState.RUNNING:
            raise RuntimeError(f"Training already finished in state {self.state.value}")

        n_train = len(self.train)
        n_valid = len(self.valid)
        reported: list[EpochResult] = []
        train_error: int | float = 0
        valid_error: int | float = 0

        logger.info(
            "Training started",
            extra={
                "n_train": n_train,
                "n_valid": n_valid,
                "batch_size": self.config.batch_size,
                "batches_per_epoch": len(self.scheduler),
                "max_epoch": self.config.max_epoch,
                "window": self.config.non_increase_window,
                "measure": self.measure.value,
                "lr": self.model.current_learning_rate(),
            },
        )
        start = time.monotonic()
        self.progress.header()

        for epoch in range(self.config.max_epoch):
            self.epoch = epoch
            self._train_epoch(epoch)

            train_error, valid_error = self._evaluate()
            self.history.append(valid_error)

            train_accuracy = accuracy(train_error, n_train)
            if train_accuracy < 0:
                self.diverged_epochs += 1
                self.progress.diverged()
                log_diverged_epoch(epoch, train_error, n_train, self.diverged_epochs)
                continue

            result = EpochResult(
                epoch=epoch,
                train_error=train_error,
                valid_error=valid_error,
                train_accuracy=train_accuracy,
                valid_accuracy=accuracy(valid_error, n_valid),
                correct_train=n_train - train_error,
                correct_valid=n_valid - valid_error,
                learning_rate=self.model.current_learning_rate(),
            )
            reported.append(result)
            self.progress.row(result)
            log_epoch(result)

            if result.valid_accuracy > self.config.min_valid_accuracy and should_stop(
                self.history, epoch, self.config.non_increase_window
            ):
                self.state = TrainingState.STOPPED_CONVERGED
                break

            self.model.adjust_learning_rate(train_accuracy)

        if self.state is TrainingState.RUNNING:
            self.state = TrainingState.STOPPED_MAX_EPOCH

        elapsed = time.monotonic() - start
        epochs_run = len(self.history)
        self.progress.summary(epochs_run, elapsed, train_error, n_train, valid_error, n_valid)

        training_result = TrainingResult(
            state=self.state,
            epochs_run=epochs_run,
            error_history=self.history.as_tuple(),
            epochs=tuple(reported),
            final_train_error=train_error,
            final_valid_error=valid_error,
            final_train_accuracy=accuracy(train_error, n_train),
            final_valid_accuracy=accuracy(valid_error, n_valid),
            elapsed_seconds=elapsed,
            diverged_epochs=self.diverged_epochs,
            final_learning_rate=self.model.current_learning_rate(),
        )

        log_summary(
            training_result.state.value,
            epochs_run,
            elapsed,
            training_result.final_train_accuracy,
            training_result.final_valid_accuracy,
            self.diverged_epochs,
        )
        return training_result


def _validate_setup(
    train: DatasetProvider,
    valid: DatasetProvider,
    config: TrainConfig,
) -> None:
    """Reject structurally invalid runs before the first epoch."""
    for name in ("max_epoch", "batch_size", "eval_batch_size", "non_increase_window"):
        value = getattr(config, name)
        if value < 1:
            raise InvalidTrainingConfigError(f"{name} must be >= 1, got {value}")

    check_datasets(train, valid)


def check_datasets(train: DatasetProvider, valid: DatasetProvider) -> None:
    """
    Reject degenerate train/validation sets; accuracy is undefined for them.

    Raises:
        EmptyDatasetError: If either set has no samples.
    """
    if len(train) == 0:
        raise EmptyDatasetError("Training set is empty")
    if len(valid) == 0:
        raise EmptyDatasetError("Validation set is empty")


def run_training(
    model: ModelCapability,
    train: DatasetProvider,
    valid: DatasetProvider,
    config: TrainConfig,
    progress: ProgressTable | None = None,
    seed: int = 42,
) -> TrainingResult:
    """
    Train `model` in place and return how the run ended.

    Convenience wrapper around EpochController for callers that don't need
    to inspect the controller afterwards.
    """
    controller = EpochController(model, train, valid, config, progress=progress, seed=seed)
    return controller.run()
