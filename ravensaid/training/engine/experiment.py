# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Experiment directory setup.

    experiments/<run_id>/
      ├── config.json     frozen config snapshot
      └── networks/       one .nn (+ sidecar) per epoch

run_id format: YYYYMMDD_HHMMSS_<seed>
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from ravensaid.config.schema import RavensaidConfig
from ravensaid.logging.logger import get_logger

logger: logging.Logger = get_logger(__name__)

NETWORKS_DIRNAME = "networks"


def create_experiment_dir(
    experiments_root: Path,
    config: RavensaidConfig,
    seed: int,
) -> Path:
    """
    Create a new experiment directory and snapshot the config into it.

    Returns:
        Path to the created experiment directory.
    """
    timestamp = datetime.now(tz=timezone.utc).strftime("%Y%m%d_%H%M%S")
    run_id = f"{timestamp}_{seed}"
    experiment_dir = experiments_root / run_id

    experiment_dir.mkdir(parents=True, exist_ok=True)
    (experiment_dir / NETWORKS_DIRNAME).mkdir(exist_ok=True)

    config_snapshot = config.model_dump(by_alias=True)
    (experiment_dir / "config.json").write_text(
        json.dumps(config_snapshot, indent=2, default=str),
        encoding="utf-8",
    )

    logger.info(
        "Experiment directory created",
        extra={"run_id": run_id, "path": str(experiment_dir)},
    )
    return experiment_dir
