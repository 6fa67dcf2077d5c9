# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Path helpers shared by the CLI, bootstrap, and training output."""

import os
from pathlib import Path

PROJECT_ROOT_ENV = "RAVENSAID_HOME"


def resolve_project_root() -> Path:
    """
    Find the project root.

    RAVENSAID_HOME wins when set. Otherwise we walk up from the current
    working directory looking for a pyproject.toml, so relative paths in a
    config resolve against the project the user is working in.

    Raises:
        RuntimeError: If neither the variable nor a pyproject.toml is found.
    """
    override = os.environ.get(PROJECT_ROOT_ENV)
    if override:
        return Path(override).resolve()

    current = Path.cwd().resolve()
    for candidate in (current, *current.parents):
        if (candidate / "pyproject.toml").exists():
            return candidate
    raise RuntimeError(
        f"Cannot find project root. Set {PROJECT_ROOT_ENV} or run from a directory "
        "with a pyproject.toml in one of its ancestors."
    )


def resolve_path(path: str | Path, base: Path) -> Path:
    """Return `path` unchanged when absolute, otherwise anchored at `base`."""
    candidate = Path(path)
    if candidate.is_absolute():
        return candidate
    return base / candidate


def ensure_directory(path: Path) -> Path:
    """Create a directory (and parents) if it doesn't exist. Returns the path for chaining."""
    path.mkdir(parents=True, exist_ok=True)
    return path
