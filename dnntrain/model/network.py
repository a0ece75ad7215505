# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Feed-forward network implementing the model capability.

Topology: input → [Linear → sigmoid] × len(hidden_dims) → Linear → output
The output activation is softmax for classification and identity for
regression. FeedForwardNetwork returns the output *pre-activation*.
NetworkModel applies the output activation and exposes the four capability
calls the epoch controller uses.

The error signal the controller hands to `update` is the loss gradient
w.r.t. that pre-activation, so the update is a single autograd backward from
the pre-activation followed by a plain gradient step:
  p ← p - lr · ∂L/∂p
No optimizer object is involved. The step size is whatever the controller
passes in (the running learning rate divided by the batch size).
"""

import logging
import math
from dataclasses import dataclass, field

import torch
import torch.nn as nn

from dnntrain.config.schema import ModelConfig, TrainConfig
from dnntrain.logging.logger import get_logger
from dnntrain.training.evaluation.core import ErrorMeasure

logger: logging.Logger = get_logger(__name__)


class FeedForwardNetwork(nn.Module):
    """
    Sigmoid MLP that returns output pre-activations.

    Args:
        layer_dims: [input_dim, hidden..., output_dim]; at least two entries.
    """

    def __init__(self, layer_dims: list[int]) -> None:
        super().__init__()
        if len(layer_dims) < 2:
            raise ValueError(f"Need at least input and output dims, got {layer_dims}")
        if any(d < 1 for d in layer_dims):
            raise ValueError(f"Layer dims must be >= 1, got {layer_dims}")

        self.layer_dims = list(layer_dims)
        self.layers = nn.ModuleList(
            nn.Linear(d_in, d_out) for d_in, d_out in zip(layer_dims[:-1], layer_dims[1:])
        )

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        for layer in self.layers[:-1]:
            x = torch.sigmoid(layer(x))
        return self.layers[-1](x)


def init_weights(module: nn.Module, seed: int, variance: float) -> None:
    """
    Initialise weights from N(0, variance) and biases to zero.

    A dedicated Generator makes the result independent of the global RNG, so
    the same seed always gives the same starting parameters.
    """
    generator = torch.Generator()
    generator.manual_seed(seed)
    std = math.sqrt(variance)

    with torch.no_grad():
        for param in module.parameters():
            if param.dim() >= 2:
                param.normal_(0.0, std, generator=generator)
            else:
                param.zero_()


@dataclass
class LearningRateAdapter:
    """
    Decays the learning rate when train accuracy stalls.

    After each reported epoch the accuracy is compared with the best seen so
    far. If it improved by less than `min_improvement` the rate is multiplied
    by `decay_factor`, never going below `min_learning_rate`. With
    decay_factor == 1.0 the rate never changes.
    """

    learning_rate: float
    decay_factor: float = 1.0
    min_improvement: float = 0.0
    min_learning_rate: float = 0.0
    _best_accuracy: float | None = field(default=None, init=False)

    def step(self, train_accuracy: float) -> float:
        if self._best_accuracy is not None:
            improvement = train_accuracy - self._best_accuracy
            if improvement < self.min_improvement and self.decay_factor < 1.0:
                decayed = max(self.learning_rate * self.decay_factor, self.min_learning_rate)
                if decayed != self.learning_rate:
                    logger.info(
                        "Learning rate decayed",
                        extra={
                            "previous_lr": self.learning_rate,
                            "lr": decayed,
                            "train_accuracy": round(train_accuracy, 6),
                        },
                    )
                self.learning_rate = decayed

        if self._best_accuracy is None or train_accuracy > self._best_accuracy:
            self._best_accuracy = train_accuracy
        return self.learning_rate


class NetworkModel:
    """
    ModelCapability over a FeedForwardNetwork.

    Args:
        network: The parameters being trained.
        measure: Decides the output activation.
        adapter: Holds the running learning rate.
        device: Where parameters live; inputs are moved here on every call.
    """

    def __init__(
        self,
        network: FeedForwardNetwork,
        measure: ErrorMeasure,
        adapter: LearningRateAdapter,
        device: torch.device | None = None,
    ) -> None:
        self.device = device if device is not None else torch.device("cpu")
        self.network = network.to(self.device)
        self.measure = measure
        self.adapter = adapter

    @property
    def layer_dims(self) -> list[int]:
        return self.network.layer_dims

    def _activate(self, pre_activation: torch.Tensor) -> torch.Tensor:
        if self.measure is ErrorMeasure.CLASSIFICATION:
            return torch.softmax(pre_activation, dim=1)
        return pre_activation

    def forward(self, inputs: torch.Tensor) -> torch.Tensor:
        with torch.no_grad():
            return self._activate(self.network(inputs.to(self.device)))

    def update(
        self,
        error_signal: torch.Tensor,
        inputs: torch.Tensor,
        predictions: torch.Tensor,
        learning_rate: float,
    ) -> None:
        if error_signal.shape != predictions.shape:
            raise ValueError(
                f"Error signal shape {tuple(error_signal.shape)} does not match "
                f"predictions {tuple(predictions.shape)}"
            )

        self.network.zero_grad(set_to_none=True)
        pre_activation = self.network(inputs.to(self.device))
        pre_activation.backward(gradient=error_signal.to(self.device, pre_activation.dtype))

        with torch.no_grad():
            for param in self.network.parameters():
                if param.grad is not None:
                    param.add_(param.grad, alpha=-learning_rate)
        self.network.zero_grad(set_to_none=True)

    def current_learning_rate(self) -> float:
        return self.adapter.learning_rate

    def adjust_learning_rate(self, train_accuracy: float) -> None:
        self.adapter.step(train_accuracy)

    def count_parameters(self) -> int:
        return sum(p.numel() for p in self.network.parameters())


def build_adapter(train_cfg: TrainConfig, learning_rate: float | None = None) -> LearningRateAdapter:
    """Learning-rate adapter configured from the train section."""
    return LearningRateAdapter(
        learning_rate=learning_rate if learning_rate is not None else train_cfg.learning_rate,
        decay_factor=train_cfg.lr_decay_factor,
        min_improvement=train_cfg.lr_min_improvement,
        min_learning_rate=train_cfg.min_learning_rate,
    )


def build_model(
    model_cfg: ModelConfig,
    train_cfg: TrainConfig,
    input_dim: int,
    output_dim: int,
    seed: int = 42,
    device: torch.device | None = None,
) -> NetworkModel:
    """
    Build a freshly initialised NetworkModel.

    Args:
        model_cfg: Hidden layer widths and init variance.
        train_cfg: Initial learning rate, adapter knobs and error measure.
        input_dim: Feature dimension of the dataset.
        output_dim: Number of classes, or regression target width.
        seed: Seed for weight initialisation.
        device: Target device.
    """
    layer_dims = [input_dim, *model_cfg.hidden_dims, output_dim]
    network = FeedForwardNetwork(layer_dims)
    init_weights(network, seed, model_cfg.init_variance)

    model = NetworkModel(
        network,
        ErrorMeasure(train_cfg.error_measure),
        build_adapter(train_cfg),
        device=device,
    )
    logger.info(
        "Model created",
        extra={"layer_dims": layer_dims, "parameters": model.count_parameters()},
    )
    return model
