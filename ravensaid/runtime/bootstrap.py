# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runtime bootstrap for Ravensaid.

Runs once at the start of every configured CLI command:
  1. Validate the environment (Python version)
  2. Set deterministic seeds
  3. Bring every logger to the configured level
  4. Ensure the project directories exist
"""

import os
import random
from pathlib import Path

import torch

from ravensaid.config.schema import GlobalConfig
from ravensaid.logging.logger import configure_logging, get_logger
from ravensaid.runtime.environment import check_minimum_python, get_system_info
from ravensaid.utils.paths import ensure_directory, resolve_project_root


def set_deterministic_seed(seed: int) -> None:
    """
    Lock down all sources of randomness to the given seed: Python's
    `random`, PYTHONHASHSEED, and torch (CPU and, when present, CUDA).
    """
    random.seed(seed)
    os.environ["PYTHONHASHSEED"] = str(seed)

    torch.manual_seed(seed)
    if torch.cuda.is_available():
        torch.cuda.manual_seed_all(seed)
        torch.backends.cudnn.deterministic = True  # type: ignore[attr-defined]
        torch.backends.cudnn.benchmark = False  # type: ignore[attr-defined]


def _ensure_project_directories(project_root: Path, config: GlobalConfig) -> None:
    dirs = config.directories
    ensure_directory(project_root / dirs.data)
    ensure_directory(project_root / dirs.models)
    ensure_directory(project_root / dirs.logs)
    ensure_directory(project_root / dirs.experiments)


def bootstrap(config: GlobalConfig, log_level: str | None = None) -> None:
    """
    Put the process into a known state before a command does real work.

    Args:
        config: The validated global configuration.
        log_level: Overrides config.log_level (the CLI flag wins when given).
    """
    check_minimum_python()
    set_deterministic_seed(config.seed)

    level = log_level or config.log_level
    log_file = Path(config.log_file) if config.log_file is not None else None
    configure_logging(level, log_file)

    logger = get_logger("ravensaid.runtime", log_level=level, log_file=log_file)

    system_info = get_system_info()
    logger.info(
        "Ravensaid bootstrap complete",
        extra={
            "seed": config.seed,
            "python_version": system_info.python_version,
            "torch_version": system_info.torch_version,
            "cuda_available": system_info.cuda_available,
            "platform": system_info.platform,
        },
    )

    try:
        project_root = resolve_project_root()
        _ensure_project_directories(project_root, config)
    except RuntimeError:
        logger.warning(
            "Could not resolve project root, skipping directory creation",
        )
