# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Per-epoch training metrics and progress reporting.

Two outputs per reported epoch:
  - a structured JSON log entry (epoch, accuracies, correct counts, lr)
  - one row of the human-readable progress table

The table goes to an explicit text stream (stdout by default) rather than
through the logger, so it stays readable when the log stream is JSON.
Diverged epochs get a single '.' marker in the table and a warning in the
log; they never get a row.
"""

import logging
import sys
from dataclasses import dataclass
from typing import TextIO

from dnntrain.logging.logger import get_logger

logger: logging.Logger = get_logger(__name__)

_TABLE_HEADER = (
    "._______._________________________._________________________.\n"
    "|       |                         |                         |\n"
    "|       |        In-Sample        |      Out-of-Sample      |\n"
    "| Epoch |__________.______________|__________.______________|\n"
    "|       |          |              |          |              |\n"
    "|       | Accuracy | # of correct | Accuracy | # of correct |\n"
    "|_______|__________|______________|__________|______________|\n"
)


@dataclass(frozen=True)
class EpochResult:
    """Errors and accuracies for one completed, non-diverged epoch."""

    epoch: int
    train_error: int | float
    valid_error: int | float
    train_accuracy: float
    valid_accuracy: float
    correct_train: int | float
    correct_valid: int | float
    learning_rate: float


def accuracy(error: int | float, sample_count: int) -> float:
    """1 - error / sample_count. Negative when the error exceeds the sample count."""
    return 1.0 - float(error) / sample_count


def _format_count(value: int | float) -> str:
    if isinstance(value, int):
        return f"{value:7d}"
    return f"{value:7.1f}"


class ProgressTable:
    """
    Fixed-width progress table.

    Args:
        stream: Where to write; defaults to sys.stdout at write time.
        enabled: When False every call is a no-op (structured logs still flow).
    """

    def __init__(self, stream: TextIO | None = None, enabled: bool = True) -> None:
        self._stream = stream
        self.enabled = enabled

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def _write(self, text: str) -> None:
        if not self.enabled:
            return
        self.stream.write(text)
        self.stream.flush()

    def header(self) -> None:
        self._write(_TABLE_HEADER)

    def row(self, result: EpochResult) -> None:
        self._write(
            f"|{result.epoch:4d}   |  {result.train_accuracy * 100:5.2f} % |  "
            f"{_format_count(result.correct_train)}     |  "
            f"{result.valid_accuracy * 100:5.2f} % |  "
            f"{_format_count(result.correct_valid)}     |\n"
        )

    def diverged(self) -> None:
        self._write(".")

    def summary(
        self,
        epochs_run: int,
        elapsed_seconds: float,
        train_error: int | float,
        n_train: int,
        valid_error: int | float,
        n_valid: int,
    ) -> None:
        self._write(f"\n{epochs_run} epochs in total\n")
        self._write(f"Elapsed time: {elapsed_seconds:.3f} s\n")
        self._write(f"[   In-Sample   ] {_format_accuracy(train_error, n_train)}\n")
        self._write(f"[ Out-of-Sample ] {_format_accuracy(valid_error, n_valid)}\n")


def _format_accuracy(error: int | float, sample_count: int) -> str:
    correct = sample_count - error
    return (
        f"Accuracy = {accuracy(error, sample_count) * 100:.2f} % "
        f"({_format_count(correct).strip()} / {sample_count})"
    )


def log_epoch(result: EpochResult) -> None:
    """Emit the structured progress record for one reported epoch."""
    logger.info(
        "Epoch complete",
        extra={
            "epoch": result.epoch,
            "train_accuracy": round(result.train_accuracy, 6),
            "correct_train": result.correct_train,
            "valid_accuracy": round(result.valid_accuracy, 6),
            "correct_valid": result.correct_valid,
            "lr": result.learning_rate,
        },
    )


def log_diverged_epoch(epoch: int, train_error: int | float, n_train: int, count: int) -> None:
    """Warn about an epoch whose train error exceeds the training set size."""
    logger.warning(
        "Diverged epoch skipped",
        extra={
            "epoch": epoch,
            "train_error": train_error,
            "n_train": n_train,
            "diverged_epochs": count,
        },
    )


def log_summary(
    state: str,
    epochs_run: int,
    elapsed: float,
    train_accuracy: float,
    valid_accuracy: float,
    diverged_epochs: int,
) -> None:
    """Emit the structured end-of-run record that mirrors the table summary."""
    logger.info(
        "Training complete",
        extra={
            "state": state,
            "epochs_run": epochs_run,
            "elapsed_s": round(elapsed, 3),
            "train_accuracy": round(train_accuracy, 6),
            "valid_accuracy": round(valid_accuracy, 6),
            "diverged_epochs": diverged_epochs,
        },
    )
