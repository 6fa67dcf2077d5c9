# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Saving and loading .nn network files.

A network file is the state_dict of a RavensaidNetwork written with
torch.save. Next to it sits a JSON sidecar (`<name>.nn.json`) with the
network shape, training stats, and the SHA256 of the weights file.

Saves are atomic: each file is written to a temp file in the target
directory and then moved into place with os.replace, so a crash mid-save
never leaves a truncated network behind for the scorer to pick up.

The sidecar is optional on load. Networks produced elsewhere can be loaded
without one; when it is present its checksum must match.
"""

import json
import logging
import os
import tempfile
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Callable

import torch
import torch.nn as nn

from ravensaid.logging.logger import get_logger
from ravensaid.utils.hashing import compute_sha256, verify_checksum

logger: logging.Logger = get_logger(__name__)

SIDECAR_SUFFIX = ".json"

# Upper bounds on a readable network shape. Anything larger is a corrupt sidecar.
MAX_INPUT_BYTES = 4096
MAX_HIDDEN_SIZE = 65_536


class NetworkFileError(RuntimeError):
    """A network file is missing, unreadable, corrupt, or doesn't fit the model."""


@dataclass(frozen=True)
class NetworkMetadata:
    """What we record about a saved network."""

    input_bytes: int
    hidden_size: int
    epoch: int = -1
    loss: float = 0.0
    accuracy: float = 0.0
    seed: int = 0
    weights_sha256: str = ""


def sidecar_path(network_path: Path) -> Path:
    """`models/epoch_3.nn` -> `models/epoch_3.nn.json`."""
    return network_path.with_name(network_path.name + SIDECAR_SUFFIX)


def _atomic_write(target: Path, write: Callable[[Path], None]) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
    os.close(fd)
    tmp_path = Path(tmp_name)
    try:
        write(tmp_path)
        os.replace(tmp_path, target)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def save_network(
    model: nn.Module,
    network_path: Path,
    metadata: NetworkMetadata,
) -> NetworkMetadata:
    """
    Atomically write the model weights and their sidecar.

    Args:
        model: The network to save. Weights are moved to CPU first so the
               file loads on machines without a GPU.
        network_path: Destination .nn file.
        metadata: Training stats to record. Its weights_sha256 is ignored
                  and replaced with the digest of the written file.

    Returns:
        The metadata as written, including the real checksum.
    """
    state_dict = {key: value.detach().cpu() for key, value in model.state_dict().items()}
    _atomic_write(network_path, lambda tmp: torch.save(state_dict, tmp))

    written = replace(metadata, weights_sha256=compute_sha256(network_path))
    payload = json.dumps(asdict(written), indent=2)
    _atomic_write(sidecar_path(network_path), lambda tmp: tmp.write_text(payload, encoding="utf-8"))

    logger.info(
        "Network saved",
        extra={
            "path": str(network_path),
            "epoch": written.epoch,
            "loss": written.loss,
            "sha256": written.weights_sha256[:16] + "...",
        },
    )
    return written


def read_metadata(network_path: Path) -> NetworkMetadata | None:
    """
    Read the sidecar for a network file.

    Returns None when there is no sidecar.

    Raises:
        NetworkFileError: If the sidecar exists but can't be parsed.
    """
    meta_path = sidecar_path(network_path)
    if not meta_path.is_file():
        return None

    try:
        raw = json.loads(meta_path.read_text(encoding="utf-8"))
        metadata = NetworkMetadata(
            input_bytes=int(raw["input_bytes"]),
            hidden_size=int(raw["hidden_size"]),
            epoch=int(raw.get("epoch", -1)),
            loss=float(raw.get("loss", 0.0)),
            accuracy=float(raw.get("accuracy", 0.0)),
            seed=int(raw.get("seed", 0)),
            weights_sha256=str(raw.get("weights_sha256", "")),
        )
    except (OSError, ValueError, KeyError, TypeError, OverflowError) as err:
        raise NetworkFileError(f"Unreadable metadata {meta_path}: {err}") from err

    if not 1 <= metadata.input_bytes <= MAX_INPUT_BYTES:
        raise NetworkFileError(f"Metadata {meta_path} has invalid input_bytes {metadata.input_bytes}")
    if not 1 <= metadata.hidden_size <= MAX_HIDDEN_SIZE:
        raise NetworkFileError(f"Metadata {meta_path} has invalid hidden_size {metadata.hidden_size}")
    return metadata


def verify_network_file(network_path: Path, metadata: NetworkMetadata | None = None) -> None:
    """
    Check that a network file exists and matches its recorded checksum.

    Cheap enough to run before a network is allocated.

    Raises:
        NetworkFileError: Missing file or checksum mismatch.
    """
    if not network_path.is_file():
        raise NetworkFileError(f"Network file not found: {network_path}")

    if metadata is not None and metadata.weights_sha256:
        if not verify_checksum(network_path, metadata.weights_sha256):
            raise NetworkFileError(
                f"Checksum mismatch for {network_path}: "
                f"expected {metadata.weights_sha256[:16]}..."
            )


def load_network(
    network_path: Path,
    model: nn.Module,
    metadata: NetworkMetadata | None = None,
    device: torch.device | None = None,
) -> None:
    """
    Load saved weights into `model`.

    Args:
        network_path: The .nn file.
        model: A network of the matching shape.
        metadata: The file's sidecar, if any. When it carries a checksum the
                  weights file must match it.
        device: Where to map tensors while loading.

    Raises:
        NetworkFileError: Missing file, checksum mismatch, unpicklable or
            non-tensor content, or a state dict that doesn't fit the model.
    """
    verify_network_file(network_path, metadata)

    map_location = device if device is not None else "cpu"
    try:
        state_dict = torch.load(network_path, map_location=map_location, weights_only=True)
    except Exception as err:
        raise NetworkFileError(f"Cannot read network file {network_path}: {err}") from err

    if not isinstance(state_dict, dict):
        raise NetworkFileError(
            f"Network file {network_path} holds {type(state_dict).__name__}, expected a state dict"
        )

    if not all(isinstance(key, str) for key in state_dict):
        raise NetworkFileError(f"Network file {network_path} has non-string state dict keys")

    try:
        model.load_state_dict(state_dict)
    except (RuntimeError, TypeError, ValueError, AttributeError) as err:
        raise NetworkFileError(f"Network file {network_path} doesn't fit the model: {err}") from err
