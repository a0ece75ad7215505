# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Capability contracts the epoch controller depends on.

The controller never imports a concrete network or dataset class. Anything
that provides these methods can be trained: the bundled torch network, a
stub in a test, or a model running on some other backend. Structural typing
(Protocol) keeps implementers free of a shared base class.

Contracts:
  - Batch:            x (inputs) and y (targets) for one BatchRange
  - DatasetProvider:  len() and indexing by BatchRange
  - ModelCapability:  forward / update / current_learning_rate / adjust_learning_rate

Every call is synchronous. Whatever parallelism the model uses internally
has finished by the time a call returns.
"""

from typing import NamedTuple, Protocol, runtime_checkable

import torch

from dnntrain.training.batching.core import BatchRange


class Batch(NamedTuple):
    """Inputs and targets for one contiguous range of samples."""

    x: torch.Tensor
    y: torch.Tensor


@runtime_checkable
class DatasetProvider(Protocol):
    """A fixed, indexable set of samples."""

    def __len__(self) -> int: ...

    def __getitem__(self, batch: BatchRange) -> Batch: ...


@runtime_checkable
class ModelCapability(Protocol):
    """
    What the controller needs from a trainable model.

    forward(inputs) -> predictions
        Predictions for a batch. Must not change parameters.
    update(error_signal, inputs, predictions, learning_rate) -> None
        Apply one parameter update. The change must be visible to the next
        forward call.
    current_learning_rate() -> float
        The model's running learning rate (before batch-size normalisation).
    adjust_learning_rate(train_accuracy) -> None
        Called once per reported epoch; may change the running rate.
    """

    def forward(self, inputs: torch.Tensor) -> torch.Tensor: ...

    def update(
        self,
        error_signal: torch.Tensor,
        inputs: torch.Tensor,
        predictions: torch.Tensor,
        learning_rate: float,
    ) -> None: ...

    def current_learning_rate(self) -> float: ...

    def adjust_learning_rate(self, train_accuracy: float) -> None: ...
