# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
dnntrain: epoch/batch training controller with early stopping.

Subsystems:
  - config: YAML + pydantic configuration
  - logging: structured JSON logger
  - runtime: bootstrap and one-time device setup
  - data: text dataset provider (load, normalize, split)
  - model: feed-forward network implementing the model capability
  - training: batch scheduler, error evaluator, early stopping, epoch controller
  - cli: the `dnntrain` command
"""

__version__ = "0.1.0"
