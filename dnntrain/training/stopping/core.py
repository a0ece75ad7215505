# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Out-of-sample error history and the plateau test used for early stopping.

Training stops once the current epoch's validation error is no worse than
any of the validation errors in the last `window` epochs (the current one
included). A plateau or a new low both pass. Any windowed epoch with a
strictly lower error than the current one means training is still getting
worse relative to it, so it continues.

Near the start of training there are fewer than `window` epochs to look
back on. Only indices that exist are compared: epoch 1 with a window of 3
looks at epochs 1 and 0, nothing else.
"""

from typing import Iterator


class ErrorHistory:
    """
    Append-only per-epoch validation error record, indexed from epoch 0.

    Entries are never reordered or replaced after they are appended.
    """

    def __init__(self) -> None:
        self._errors: list[int | float] = []

    def append(self, error: int | float) -> None:
        self._errors.append(error)

    def __len__(self) -> int:
        return len(self._errors)

    def __getitem__(self, epoch: int) -> int | float:
        if epoch < 0 or epoch >= len(self._errors):
            raise IndexError(f"No error recorded for epoch {epoch}")
        return self._errors[epoch]

    def __iter__(self) -> Iterator[int | float]:
        return iter(self._errors)

    def as_tuple(self) -> tuple[int | float, ...]:
        return tuple(self._errors)

    @classmethod
    def from_errors(cls, errors: list[int | float] | tuple[int | float, ...]) -> "ErrorHistory":
        history = cls()
        for error in errors:
            history.append(error)
        return history


def should_stop(history: ErrorHistory, epoch: int, window: int) -> bool:
    """
    Decide whether validation error has stopped decreasing.

    Args:
        history: Validation errors, one per completed epoch.
        epoch: Index of the epoch being judged (must already be recorded).
        window: How many epochs, counting the current one, to compare against.

    Returns:
        True when history[epoch] <= history[epoch - i] for every i in
        [0, window) with epoch - i >= 0.

    Raises:
        ValueError: If window < 1 or epoch is not a recorded index.
    """
    if window < 1:
        raise ValueError(f"window must be >= 1, got {window}")
    if epoch < 0 or epoch >= len(history):
        raise ValueError(f"epoch {epoch} is outside the recorded history (length {len(history)})")

    current = history[epoch]
    for offset in range(window):
        earlier = epoch - offset
        if earlier < 0:
            break
        if current > history[earlier]:
            return False

    return True
