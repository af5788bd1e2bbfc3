# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI entrypoint for flatparam.

Every operation is a subcommand of ``flatparam``. The global options
(--config, --log-level, --seed) are inherited by every subcommand through
argparse's parent parser mechanism.

Usage:
    flatparam info
    flatparam layout --config configs/network.yaml
    flatparam init --config configs/network.yaml --seed 123
"""

import argparse
import sys

from flatparam.cli.commands import handle_info, handle_init, handle_layout
from flatparam.cli.exit_codes import USER_ERROR


def _build_global_parser() -> argparse.ArgumentParser:
    """Parent parser with the options every subcommand inherits."""
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file.",
    )
    parent.add_argument(
        "--log-level",
        type=str,
        default=None,
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the logging verbosity level (config or INFO otherwise).",
    )
    parent.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Override the random seed (takes precedence over config).",
    )
    return parent


def _register_subcommands(
    subparsers: argparse._SubParsersAction,  # type: ignore[type-arg]
    parent: argparse.ArgumentParser,
) -> None:
    commands = [
        ("info", "Display environment and version info.", handle_info),
        ("layout", "Show each layer's slice of the parameter buffer.", handle_layout),
        ("init", "Initialize the parameter buffer and report statistics.", handle_init),
    ]

    for name, help_text, handler in commands:
        parser = subparsers.add_parser(name, parents=[parent], help=help_text)
        parser.set_defaults(func=handler)


def main() -> None:
    """
    Main CLI entrypoint, referenced by pyproject.toml's [project.scripts].

    With no subcommand, prints help and exits with USER_ERROR.
    """
    parent = _build_global_parser()

    root_parser = argparse.ArgumentParser(
        prog="flatparam",
        description="flatparam — flat parameter buffer layout and weight initialization.",
        parents=[parent],
    )
    subparsers = root_parser.add_subparsers(dest="command")
    _register_subcommands(subparsers, parent)

    args = root_parser.parse_args()

    if getattr(args, "func", None) is None:
        root_parser.print_help()
        sys.exit(USER_ERROR)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
