# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Interpreter/torch checks and the system snapshot that startup logs carry.
"""

import platform
import sys
from dataclasses import asdict, dataclass

import torch

MINIMUM_PYTHON = (3, 10)


@dataclass(frozen=True)
class SystemInfo:
    """What the process is running on, as reported at startup and by `info`."""

    python_version: str
    platform: str
    architecture: str
    hostname: str
    torch_version: str
    cuda_available: bool
    cuda_device_count: int

    def log_fields(self) -> dict[str, object]:
        return asdict(self)


def check_minimum_python(version: tuple[int, ...] | None = None) -> None:
    """
    Raises:
        RuntimeError: If the interpreter (or `version`, when given) is older
            than MINIMUM_PYTHON.
    """
    current = tuple(version if version is not None else sys.version_info[:2])
    if current[:2] < MINIMUM_PYTHON:
        required = ".".join(map(str, MINIMUM_PYTHON))
        found = ".".join(map(str, current[:2]))
        raise RuntimeError(f"dnntrain requires Python >= {required}, found {found}")


def get_system_info() -> SystemInfo:
    cuda_available = torch.cuda.is_available()
    return SystemInfo(
        python_version=platform.python_version(),
        platform=platform.system(),
        architecture=platform.machine(),
        hostname=platform.node(),
        torch_version=torch.__version__,
        cuda_available=cuda_available,
        cuda_device_count=torch.cuda.device_count() if cuda_available else 0,
    )
