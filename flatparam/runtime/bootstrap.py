# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runtime bootstrap for flatparam.

Every CLI command runs this before doing real work:
  1. Validate the environment
  2. Set deterministic seeds
  3. Configure the package logger

Afterwards the process is in a known, reproducible state.
"""

import logging
import os
import random
from pathlib import Path

import torch

from flatparam.config.schema import GlobalConfig
from flatparam.logging.logger import get_logger
from flatparam.runtime.environment import check_minimum_python, get_system_info


def set_deterministic_seed(seed: int) -> None:
    """
    Seed Python's ``random``, PYTHONHASHSEED and torch's global generator.

    Layer initialization uses its own per-layer generators, but anything that
    falls back to global state (e.g. an unseeded call) is covered too.
    """
    random.seed(seed)
    os.environ["PYTHONHASHSEED"] = str(seed)
    torch.manual_seed(seed)


def bootstrap(config: GlobalConfig) -> logging.Logger:
    """
    Run the bootstrap sequence and return the configured package logger.

    Args:
        config: The validated global configuration.
    """
    check_minimum_python()
    set_deterministic_seed(config.seed)

    log_file = Path(config.log_file) if config.log_file is not None else None
    logger = get_logger("flatparam", log_level=config.log_level, log_file=log_file)

    system_info = get_system_info()
    logger.info(
        "flatparam bootstrap complete",
        extra={
            "seed": config.seed,
            "python_version": system_info.python_version,
            "torch_version": system_info.torch_version,
            "platform": system_info.platform,
        },
    )
    return logger
