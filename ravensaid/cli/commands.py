# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Subcommand handlers for the Ravensaid CLI.

Each handler returns an exit code. Diagnostics go through the structured
logger (stderr); only command results are written to stdout.

HandleMisuseError derives from SystemExit, so the `except Exception`
blocks below never catch it and the process stops.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from ravensaid.cli.exit_codes import CONFIG_ERROR, RUNTIME_ERROR, SUCCESS, USER_ERROR, VALIDATION_ERROR
from ravensaid.config.exceptions import ConfigError
from ravensaid.config.loader import load_config
from ravensaid.config.schema import RavensaidConfig
from ravensaid.logging.logger import configure_logging, get_logger
from ravensaid.runtime.bootstrap import bootstrap, set_deterministic_seed

if TYPE_CHECKING:
    from ravensaid.scoring.handle import RavensaidState

DEFAULT_LOG_LEVEL = "INFO"


def _load_and_bootstrap(
    args: argparse.Namespace,
    command_name: str,
) -> tuple[int, RavensaidConfig | None, logging.Logger]:
    """
    The shared setup every command needs: load config, run bootstrap.

    Returns (exit_code, config, logger). If exit_code is not SUCCESS the
    caller should return it immediately.
    """
    level = args.log_level or DEFAULT_LOG_LEVEL
    logger = get_logger(f"ravensaid.cli.{command_name}", log_level=level)

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
        bootstrap(config.global_config, log_level=args.log_level)
    else:
        configure_logging(level)
        logger.debug(
            "No config provided, running with defaults",
            extra={"command": command_name},
        )

    if args.seed is not None:
        set_deterministic_seed(args.seed)

    return SUCCESS, config, logger


def _resolve_project_root() -> Path:
    """Project root for relative config paths, or the working directory outside a project."""
    from ravensaid.utils.paths import resolve_project_root

    try:
        return resolve_project_root()
    except RuntimeError:
        return Path.cwd()


def _resolve_model_path(args: argparse.Namespace, config: RavensaidConfig | None) -> Path | None:
    """--model (relative to cwd) wins over scoring.model_path (relative to project root)."""
    from ravensaid.utils.paths import resolve_path

    if getattr(args, "model", None):
        return Path(args.model)
    if config is not None and config.scoring is not None and config.scoring.model_path:
        return resolve_path(config.scoring.model_path, _resolve_project_root())
    return None


def _open_handle(
    args: argparse.Namespace,
    config: RavensaidConfig | None,
    logger: logging.Logger,
) -> tuple[int, "RavensaidState | None"]:
    """
    Load the network named by args/config.

    Returns (exit_code, state). state is None whenever exit_code isn't SUCCESS.
    """
    from ravensaid.model.network import NetworkSpec
    from ravensaid.scoring.handle import DEFAULT_MAX_MESSAGE_BYTES, ravensaid_init

    model_path = _resolve_model_path(args, config)
    if model_path is None:
        logger.error("No network given, use --model or set scoring.model_path")
        return USER_ERROR, None

    scoring_cfg = config.scoring if config is not None else None
    device = getattr(args, "device", None) or (scoring_cfg.device if scoring_cfg else "auto")
    max_bytes = scoring_cfg.max_message_bytes if scoring_cfg else DEFAULT_MAX_MESSAGE_BYTES
    spec = NetworkSpec.from_config(config.model) if config is not None and config.model else None

    state = ravensaid_init(model_path, spec=spec, device=device, max_message_bytes=max_bytes)
    if state is None:
        logger.error("Couldn't load neural network from file", extra={"path": str(model_path)})
        return VALIDATION_ERROR, None
    return SUCCESS, state


def handle_train(args: argparse.Namespace) -> int:
    """Train a network and save one .nn file per epoch."""
    exit_code, config, logger = _load_and_bootstrap(args, "train")
    if exit_code != SUCCESS:
        return exit_code

    try:
        if config is None or config.train is None or config.corpus is None:
            logger.error(
                "Train and corpus config sections are required",
                extra={"command": "train"},
            )
            return CONFIG_ERROR

        train_cfg = config.train
        if args.prefix is not None:
            train_cfg = train_cfg.model_copy(update={"checkpoint_prefix": args.prefix})
            config = config.model_copy(update={"train": train_cfg})

        seed = args.seed if args.seed is not None else config.global_config.seed

        logger.info(
            "Starting training",
            extra={
                "command": "train",
                "dry_run": args.dry_run,
                "epochs": train_cfg.epochs,
                "prefix": train_cfg.checkpoint_prefix,
                "seed": seed,
            },
        )

        from ravensaid.training.corpus.core import build_corpus

        project_root = _resolve_project_root()
        corpus = build_corpus(config.corpus, project_root)

        if args.dry_run:
            logger.info(
                "Dry run, would train",
                extra={"training": len(corpus.training), "validation": len(corpus.validation)},
            )
            return SUCCESS

        from ravensaid.training.engine.core import run_training
        from ravensaid.training.engine.experiment import create_experiment_dir

        experiments_root = project_root / config.global_config.directories.experiments
        experiment_dir = create_experiment_dir(experiments_root, config, seed)

        result = run_training(
            config,
            experiment_dir,
            project_root,
            corpus=corpus,
            device=args.device,
        )

        logger.info(
            "Training finished",
            extra={
                "final_loss": result.final_loss,
                "best_accuracy": result.best_accuracy,
                "best_network": result.best_network,
                "experiment_dir": result.experiment_dir,
            },
        )
        return SUCCESS

    except FileNotFoundError as err:
        logger.error("Training failed, missing files", extra={"error": str(err)})
        return VALIDATION_ERROR
    except Exception as err:
        logger.error("Training failed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR


def handle_run(args: argparse.Namespace) -> int:
    """Interactive scoring: one message per stdin line until 'exit'."""
    exit_code, config, logger = _load_and_bootstrap(args, "run")
    if exit_code != SUCCESS:
        return exit_code

    try:
        exit_code, state = _open_handle(args, config, logger)
        if state is None:
            return exit_code

        from ravensaid.scoring.handle import ravensaid_free

        try:
            if args.dry_run:
                logger.info("Dry run, network loads; not reading input")
            else:
                from ravensaid.interactive.core import run_interactive

                run_interactive(state, sys.stdin, sys.stdout)
        finally:
            ravensaid_free(state)
        return SUCCESS

    except Exception as err:
        logger.error("Run failed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR


def handle_score(args: argparse.Namespace) -> int:
    """Load a network, score one message, print the result, release the network."""
    exit_code, config, logger = _load_and_bootstrap(args, "score")
    if exit_code != SUCCESS:
        return exit_code

    if args.message is None:
        logger.error("No message provided, use --message")
        return USER_ERROR

    try:
        exit_code, state = _open_handle(args, config, logger)
        if state is None:
            return exit_code

        from ravensaid.scoring.fixed_point import format_score, is_error
        from ravensaid.scoring.handle import ravensaid, ravensaid_free

        probability = ravensaid(state, args.message)
        ravensaid_free(state)

        if is_error(probability):
            logger.error(
                "Failed processing message",
                extra={"score": probability, "status": format_score(probability)},
            )
            return RUNTIME_ERROR

        percent = format_score(probability, decimal_separator=",")
        sys.stdout.write(
            f'Message: "{args.message}"\n'
            f"Probability of being written by Ravenholdt: {percent}\n"
        )
        sys.stdout.flush()
        return SUCCESS

    except Exception as err:
        logger.error("Score failed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR


def handle_serve(args: argparse.Namespace) -> int:
    """Start the local scoring server."""
    exit_code, config, logger = _load_and_bootstrap(args, "serve")
    if exit_code != SUCCESS:
        return exit_code

    try:
        from ravensaid.config.schema import RuntimeConfig

        runtime_cfg = (
            config.runtime
            if config is not None and config.runtime is not None
            else RuntimeConfig(config_version="1.0.0")
        )
        host = args.host or runtime_cfg.host
        port = args.port if args.port is not None else runtime_cfg.port

        exit_code, state = _open_handle(args, config, logger)
        if state is None:
            return exit_code

        logger.info(
            "Starting scoring server",
            extra={"host": host, "port": port, "dry_run": args.dry_run},
        )

        from ravensaid.scoring.handle import ravensaid_free

        if args.dry_run:
            logger.info("Dry run, would start server", extra={"host": host, "port": port})
            ravensaid_free(state)
            return SUCCESS

        from ravensaid.serving.server.core import run_server

        try:
            run_server(
                state,
                host=host,
                port=port,
                max_request_size_bytes=runtime_cfg.max_request_size_bytes,
            )
        finally:
            ravensaid_free(state)
        return SUCCESS

    except Exception as err:
        logger.error("Serve failed", extra={"error": str(err)}, exc_info=True)
        return RUNTIME_ERROR


def handle_info(args: argparse.Namespace) -> int:
    """Display environment and version information."""
    logger = get_logger("ravensaid.cli.info", log_level=args.log_level or DEFAULT_LOG_LEVEL)

    from ravensaid import __version__
    from ravensaid.runtime.environment import get_system_info

    system_info = get_system_info()

    logger.info(
        "System information",
        extra={
            "ravensaid_version": __version__,
            "python_version": system_info.python_version,
            "torch_version": system_info.torch_version,
            "cuda_available": system_info.cuda_available,
            "platform": system_info.platform,
            "architecture": system_info.architecture,
            "hostname": system_info.hostname,
            "config": args.config,
        },
    )
    return SUCCESS
