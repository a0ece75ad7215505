# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runtime bootstrap for dnntrain.

One-time setup before any real work:
  1. Validate the environment (Python version)
  2. Set deterministic seeds
  3. Apply the configured log level (and log file) to every package logger

Device selection and cache sizing are a separate step (runtime.device),
performed once the command knows it will build a model.
"""

import logging
import os
import random
from pathlib import Path

import torch

from dnntrain.config.schema import GlobalConfig
from dnntrain.logging.logger import get_logger, set_package_log_level
from dnntrain.runtime.environment import check_minimum_python, get_system_info

logger: logging.Logger = get_logger(__name__)


def set_deterministic_seed(seed: int) -> None:
    """
    Lock down python and torch randomness to the given seed.

    Args:
        seed: Integer seed value. Must be >= 0.
    """
    random.seed(seed)
    os.environ["PYTHONHASHSEED"] = str(seed)

    torch.manual_seed(seed)
    if torch.cuda.is_available():
        torch.cuda.manual_seed_all(seed)
        torch.backends.cudnn.deterministic = True  # type: ignore[attr-defined]
        torch.backends.cudnn.benchmark = False  # type: ignore[attr-defined]


def bootstrap(config: GlobalConfig) -> None:
    """
    Put the process into a known state: environment checked, seeds set,
    log level applied, startup info logged.

    Args:
        config: The validated global configuration.
    """
    check_minimum_python()
    set_deterministic_seed(config.seed)

    log_file = Path(config.log_file) if config.log_file is not None else None
    set_package_log_level(config.log_level, log_file=log_file)

    logger.info(
        "dnntrain bootstrap complete",
        extra={"seed": config.seed, **get_system_info().log_fields()},
    )
