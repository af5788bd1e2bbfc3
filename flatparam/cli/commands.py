# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Subcommand handlers for the flatparam CLI.

Each function here corresponds to one CLI subcommand and returns an exit code.
No print() calls. Everything goes through the structured logger.
"""

import argparse
import logging
from pathlib import Path
from typing import Optional

import torch

from flatparam.buffer.core import BufferView
from flatparam.cli.exit_codes import (
    CONFIG_ERROR,
    RUNTIME_ERROR,
    SUCCESS,
    USER_ERROR,
    VALIDATION_ERROR,
)
from flatparam.config.exceptions import ConfigError
from flatparam.config.loader import load_config
from flatparam.config.schema import FlatParamConfig
from flatparam.exceptions import ParamLayoutError
from flatparam.logging.logger import get_logger
from flatparam.runtime.bootstrap import bootstrap, set_deterministic_seed


def _load_and_bootstrap(
    args: argparse.Namespace,
    command_name: str,
) -> tuple[int, Optional[FlatParamConfig], logging.Logger]:
    """
    The shared setup every command needs: configure logging, load config, bootstrap.

    Returns (exit_code, config, logger). If exit_code is not SUCCESS the caller
    should return it immediately.
    """
    get_logger("flatparam", log_level=args.log_level or "INFO")
    logger = logging.getLogger(f"flatparam.cli.{command_name}")

    config = None
    if args.config is not None:
        try:
            config = load_config(Path(args.config))
        except ConfigError as err:
            logger.error(
                "Configuration error",
                extra={"command": command_name, "error": str(err)},
            )
            return CONFIG_ERROR, None, logger

    if config is not None:
        bootstrap(config.global_config)
        if args.log_level is not None:
            get_logger("flatparam", log_level=args.log_level)
    else:
        logger.debug(
            "No config provided, running with defaults",
            extra={"command": command_name},
        )

    if args.seed is not None:
        set_deterministic_seed(args.seed)

    return SUCCESS, config, logger


def _segment_stats(view: BufferView) -> dict[str, object]:
    values = view.tensor.to(torch.float64)
    stats: dict[str, object] = {"start": view.start, "length": view.length}
    if view.length == 0:
        return stats
    stats.update(
        mean=values.mean().item(),
        std=values.std(unbiased=False).item(),
        min=values.min().item(),
        max=values.max().item(),
    )
    return stats


def handle_info(args: argparse.Namespace) -> int:
    """Display environment and configuration information."""
    exit_code, _, logger = _load_and_bootstrap(args, "info")
    if exit_code != SUCCESS:
        return exit_code

    from flatparam import __version__
    from flatparam.init.weights import WeightInit
    from flatparam.runtime.environment import get_system_info

    system_info = get_system_info()
    logger.info(
        "System information",
        extra={
            "flatparam_version": __version__,
            "python_version": system_info.python_version,
            "torch_version": system_info.torch_version,
            "platform": system_info.platform,
            "architecture": system_info.architecture,
            "weight_init_schemes": [member.value for member in WeightInit],
            "config": args.config,
        },
    )
    return SUCCESS


def handle_layout(args: argparse.Namespace) -> int:
    """Log every layer's slice of the parameter and gradient buffers."""
    exit_code, config, logger = _load_and_bootstrap(args, "layout")
    if exit_code != SUCCESS:
        return exit_code

    if config is None or config.network is None:
        logger.error("A config with a network section is required", extra={"command": "layout"})
        return USER_ERROR

    from flatparam.network.factory import build_network

    try:
        network = build_network(config.network)
        tables = network.init(initialize_params=False)
        gradient_tables = network.gradient_tables()

        for section, (start, length), table, grads in zip(
            config.network.layers, network.layer_slices(), tables, gradient_tables
        ):
            logger.info(
                "Layer layout",
                extra={
                    "layer": section.name,
                    "offset": start,
                    "num_params": length,
                    "segments": {
                        name: [view.start, view.end] for name, view in table.items()
                    },
                    "gradient_segments": {
                        name: [view.start, view.end] for name, view in grads.items()
                    },
                },
            )

        logger.info(
            "Layout complete",
            extra={"layers": len(tables), "num_params": network.num_params},
        )
        return SUCCESS

    except ParamLayoutError as err:
        logger.error("Layout failed", extra={"error": str(err)})
        return VALIDATION_ERROR
    except Exception as err:
        logger.error("Layout failed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR


def handle_init(args: argparse.Namespace) -> int:
    """Allocate the parameter buffer, initialize every layer and log segment statistics."""
    exit_code, config, logger = _load_and_bootstrap(args, "init")
    if exit_code != SUCCESS:
        return exit_code

    if config is None or config.network is None:
        logger.error("A config with a network section is required", extra={"command": "init"})
        return USER_ERROR

    from flatparam.network.factory import build_network

    seed = args.seed if args.seed is not None else config.global_config.seed

    try:
        network = build_network(config.network)
        tables = network.init(
            initialize_params=True,
            seed=seed,
            max_workers=config.network.init_workers,
        )

        for section, table in zip(config.network.layers, tables):
            logger.info(
                "Layer initialized",
                extra={
                    "layer": section.name,
                    "weight_init": section.weight_init,
                    "segments": {name: _segment_stats(view) for name, view in table.items()},
                },
            )

        logger.info(
            "Initialization complete",
            extra={"layers": len(tables), "num_params": network.num_params, "seed": seed},
        )
        return SUCCESS

    except ParamLayoutError as err:
        logger.error("Initialization failed", extra={"error": str(err)})
        return VALIDATION_ERROR
    except Exception as err:
        logger.error("Initialization failed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR
