# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI entrypoint for dnntrain.

Every operation is a subcommand of `dnntrain`. The global options
(--config, --set, --log-level, --dry-run, --seed) are shared by every subcommand
through argparse's parent parser mechanism.

Usage:
    dnntrain train --config configs/train.yaml
    dnntrain train --config configs/train.yaml --seed 7 --log-level DEBUG
    dnntrain train --config configs/train.yaml --set train.batch_size=64
    dnntrain info
"""

import argparse
import sys

from dnntrain.cli.commands import handle_info, handle_train
from dnntrain.cli.exit_codes import USER_ERROR


def _build_global_parser() -> argparse.ArgumentParser:
    """
    Build the parent parser with global options.

    add_help=False keeps its help text from colliding with the subcommand
    parsers that inherit it.
    """
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
        default="INFO",
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging verbosity level.",
    )
    parent.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        dest="dry_run",
        help="Validate config and report what would run, without training.",
    )
    parent.add_argument(
        "--set",
        action="append",
        default=None,
        dest="overrides",
        metavar="SECTION.KEY=VALUE",
        help="Override one config value, e.g. --set train.learning_rate=0.5 (repeatable).",
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
    """Register each subcommand with its handler via set_defaults(func=...)."""
    commands = [
        ("train", "Train a model with mini-batches and early stopping.", handle_train),
        ("info", "Display environment and device info.", handle_info),
    ]

    for name, help_text, handler in commands:
        parser = subparsers.add_parser(name, parents=[parent], help=help_text)
        parser.set_defaults(func=handler)


def main() -> None:
    """
    Main CLI entrypoint, referenced by pyproject.toml's [project.scripts].

    With no subcommand, shows help and exits with USER_ERROR.
    """
    parent = _build_global_parser()

    root_parser = argparse.ArgumentParser(
        prog="dnntrain",
        description="dnntrain: mini-batch training with early stopping.",
        parents=[parent],
    )
    subparsers = root_parser.add_subparsers(dest="command")
    _register_subcommands(subparsers, parent)

    args = root_parser.parse_args()

    if not hasattr(args, "func") or args.func is None:
        root_parser.print_help()
        sys.exit(USER_ERROR)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
