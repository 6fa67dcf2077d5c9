# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI entrypoint for Ravensaid.

Every operation is a subcommand of `ravensaid`. The global options
(--config, --log-level, --dry-run, --seed) are inherited by every subcommand
through argparse's parent parser mechanism.

Usage:
    ravensaid train --config configs/train.yaml
    ravensaid score --model models/epoch_42.nn --message "..."
    ravensaid run --model models/epoch_42.nn
    ravensaid serve --config configs/serve.yaml --port 8732
    ravensaid info
"""

import argparse
import sys

from ravensaid.cli.commands import (
    handle_info,
    handle_run,
    handle_score,
    handle_serve,
    handle_train,
)
from ravensaid.cli.exit_codes import USER_ERROR


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
        help="Set the logging verbosity level (overrides the config).",
    )
    parent.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        dest="dry_run",
        help="Validate inputs and report what would happen without doing it.",
    )
    parent.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Override the random seed (takes precedence over config).",
    )
    return parent


def _add_model_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--model",
        type=str,
        default=None,
        help="Path to a .nn network file (overrides scoring.model_path).",
    )
    parser.add_argument(
        "--device",
        type=str,
        default=None,
        help="Torch device: 'auto', 'cpu', 'cuda:0', ... (overrides scoring.device).",
    )


def _register_subcommands(
    subparsers: argparse._SubParsersAction,  # type: ignore[type-arg]
    parent: argparse.ArgumentParser,
) -> None:
    commands = [
        ("train", "Train a network on the configured corpus.", handle_train),
        ("run", "Score messages typed on stdin, one per line.", handle_run),
        ("score", "Score a single message.", handle_score),
        ("serve", "Start the local scoring server.", handle_serve),
        ("info", "Display environment and version info.", handle_info),
    ]

    for name, help_text, handler in commands:
        parser = subparsers.add_parser(name, parents=[parent], help=help_text)
        parser.set_defaults(func=handler)

    train_parser = subparsers.choices["train"]
    train_parser.add_argument(
        "--prefix",
        type=str,
        default=None,
        help="Prefix for saved network file names (overrides train.checkpoint_prefix).",
    )
    train_parser.add_argument(
        "--device",
        type=str,
        default="auto",
        help="Torch device to train on.",
    )

    for name in ("run", "score", "serve"):
        _add_model_argument(subparsers.choices[name])

    subparsers.choices["score"].add_argument(
        "--message",
        type=str,
        default=None,
        help="The message to score.",
    )

    serve_parser = subparsers.choices["serve"]
    serve_parser.add_argument("--host", type=str, default=None, help="Bind address.")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port.")


def build_parser() -> argparse.ArgumentParser:
    parent = _build_global_parser()
    root_parser = argparse.ArgumentParser(
        prog="ravensaid",
        description="Ravensaid: how likely is it that Ravenholdt wrote this message?",
        parents=[parent],
    )
    subparsers = root_parser.add_subparsers(dest="command")
    _register_subcommands(subparsers, parent)
    return root_parser


def main() -> None:
    """
    Main CLI entrypoint, referenced by pyproject.toml's [project.scripts].

    With no subcommand we show help and exit with USER_ERROR.
    """
    root_parser = build_parser()
    args = root_parser.parse_args()

    if getattr(args, "func", None) is None:
        root_parser.print_help()
        sys.exit(USER_ERROR)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
