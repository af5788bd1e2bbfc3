# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Environment checks for flatparam.

Fail fast on an unsupported interpreter instead of hitting a syntax or stdlib
incompatibility halfway through building a network.
"""

import platform
import sys
from typing import NamedTuple

import torch

MINIMUM_PYTHON = (3, 10)


class SystemInfo(NamedTuple):
    """Snapshot of the current system environment."""

    python_version: str
    torch_version: str
    platform: str
    architecture: str


def check_minimum_python() -> None:
    """
    Raises:
        RuntimeError: If the interpreter is older than MINIMUM_PYTHON.
    """
    major, minor = sys.version_info[:2]
    if (major, minor) < MINIMUM_PYTHON:
        required = ".".join(str(part) for part in MINIMUM_PYTHON)
        raise RuntimeError(
            f"flatparam requires Python >= {required}, but you're running {major}.{minor}."
        )


def get_system_info() -> SystemInfo:
    """Collect basic system information for logging and diagnostics."""
    return SystemInfo(
        python_version=platform.python_version(),
        torch_version=torch.__version__,
        platform=platform.system(),
        architecture=platform.machine(),
    )
