# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Device selection and device-cache sizing.

Called exactly once per command, after bootstrap and before the model is
built. The result is a frozen DeviceResources value that gets passed to
whatever needs a device. Nothing here is consulted again during training.

On CUDA, `cache_mb` caps how much device memory the torch caching allocator
may hold for this process (torch.cuda.set_per_process_memory_fraction). On
CPU the cap has no meaning and is recorded but not applied.
"""

import logging
from dataclasses import dataclass

import torch

from dnntrain.config.schema import RuntimeConfig
from dnntrain.logging.logger import get_logger

logger: logging.Logger = get_logger(__name__)

_BYTES_PER_MB = 1024 * 1024


@dataclass(frozen=True)
class DeviceResources:
    """The device training runs on and the cache limit applied to it."""

    device: torch.device
    cache_mb: int
    memory_fraction: float | None


def select_device(preference: str = "auto") -> torch.device:
    """
    Resolve a device preference.

    Raises:
        RuntimeError: If cuda is requested but not available.
    """
    if preference == "cpu":
        return torch.device("cpu")
    if preference == "cuda":
        if not torch.cuda.is_available():
            raise RuntimeError("CUDA device requested but torch.cuda.is_available() is False")
        return torch.device("cuda")
    if torch.cuda.is_available():
        return torch.device("cuda")
    return torch.device("cpu")


def _apply_cache_limit(device: torch.device, cache_mb: int) -> float | None:
    if device.type != "cuda" or cache_mb == 0:
        return None

    index = device.index if device.index is not None else torch.cuda.current_device()
    total = torch.cuda.get_device_properties(index).total_memory
    fraction = min(1.0, cache_mb * _BYTES_PER_MB / total)
    torch.cuda.set_per_process_memory_fraction(fraction, index)
    return fraction


def configure_device(config: RuntimeConfig | None = None) -> DeviceResources:
    """
    Pick the device and apply the cache limit.

    Args:
        config: Runtime section; defaults (auto device, 16 MB) when None.

    Returns:
        DeviceResources describing what was configured.
    """
    if config is None:
        config = RuntimeConfig(config_version="1.0.0")

    device = select_device(config.device)
    fraction = _apply_cache_limit(device, config.cache_mb)

    logger.info(
        "Device configured",
        extra={
            "device": str(device),
            "cache_mb": config.cache_mb,
            "memory_fraction": fraction,
        },
    )
    return DeviceResources(device=device, cache_mb=config.cache_mb, memory_fraction=fraction)
