# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Network handle lifecycle: load, score, release.

    state = ravensaid_init("models/epoch_42.nn")
    if state is None:
        ...  # couldn't load
    score = ravensaid(state, "some message")   # 4625 == 46.25%
    ravensaid_free(state)

Load failures come back as None. Scoring failures come back as negative
sentinel ints (see fixed_point). Misusing a handle, meaning releasing None,
releasing twice, or scoring with a released or missing handle, is a
programming error. It raises HandleMisuseError, which derives from
SystemExit: it is not caught by `except Exception` and stops the process
unless someone deliberately intercepts it.

A handle is owned by one thread of execution. Nothing here locks.
"""

import logging
from pathlib import Path
from types import TracebackType

import torch

from ravensaid.logging.logger import get_logger
from ravensaid.model.encoding import encode_message
from ravensaid.model.network import NetworkSpec, RavensaidNetwork
from ravensaid.scoring.fixed_point import INVALID_MESSAGE, probability_to_score
from ravensaid.training.checkpoint.core import (
    NetworkMetadata,
    load_network,
    read_metadata,
    verify_network_file,
)

logger: logging.Logger = get_logger(__name__)

DEFAULT_MAX_MESSAGE_BYTES = 2000


class HandleMisuseError(SystemExit):
    """Raised on null or released handle use. Halts the program by default."""


def resolve_device(device_str: str) -> torch.device:
    """'auto' picks CUDA when available, otherwise CPU."""
    if device_str == "auto":
        return torch.device("cuda" if torch.cuda.is_available() else "cpu")
    return torch.device(device_str)


class RavensaidState:
    """
    A loaded network. Create with ravensaid_init, destroy with
    ravensaid_free (or by leaving a `with` block).
    """

    def __init__(
        self,
        network: RavensaidNetwork,
        device: torch.device,
        path: Path,
        max_message_bytes: int = DEFAULT_MAX_MESSAGE_BYTES,
        metadata: NetworkMetadata | None = None,
    ) -> None:
        self._network: RavensaidNetwork | None = network
        self.device = device
        self.path = path
        self.max_message_bytes = max_message_bytes
        self.metadata = metadata
        self.spec = network.spec

    @property
    def released(self) -> bool:
        return self._network is None

    @property
    def network(self) -> RavensaidNetwork:
        if self._network is None:
            raise HandleMisuseError(f"Network handle for {self.path} was already released")
        return self._network

    def _release(self) -> None:
        self._network = None

    def __enter__(self) -> "RavensaidState":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if not self.released:
            ravensaid_free(self)

    def __repr__(self) -> str:
        state = "released" if self.released else "loaded"
        return f"RavensaidState(path={str(self.path)!r}, device={str(self.device)!r}, {state})"


def _pick_spec(
    requested: NetworkSpec | None,
    metadata: NetworkMetadata | None,
) -> NetworkSpec:
    if requested is not None:
        return requested
    if metadata is not None:
        return NetworkSpec(input_bytes=metadata.input_bytes, hidden_size=metadata.hidden_size)
    return NetworkSpec()


def ravensaid_init(
    path: str | Path | None,
    spec: NetworkSpec | None = None,
    device: str = "auto",
    max_message_bytes: int = DEFAULT_MAX_MESSAGE_BYTES,
) -> RavensaidState | None:
    """
    Load a saved network from `path`.

    The network shape comes from `spec` when given, else from the file's
    sidecar metadata, else the default 32-byte / 64-hidden shape.

    Returns:
        A handle, or None if the path is None or the file can't be read,
        fails its checksum, or doesn't fit the network shape.
    """
    if path is None:
        logger.warning("Refusing to load network from a null path")
        return None

    network_path = Path(path)
    try:
        metadata = read_metadata(network_path)
        verify_network_file(network_path, metadata)
        chosen = _pick_spec(spec, metadata)
        target_device = resolve_device(device)

        network = RavensaidNetwork(chosen)
        load_network(network_path, network, metadata=metadata, device=target_device)
        network = network.to(target_device)
        network.eval()
    except (RuntimeError, OSError, ValueError) as err:
        logger.warning(
            "Failed to load network",
            extra={"path": str(network_path), "error": str(err)},
        )
        return None

    logger.info(
        "Network loaded",
        extra={
            "path": str(network_path),
            "device": str(target_device),
            "input_bytes": chosen.input_bytes,
            "hidden_size": chosen.hidden_size,
            "parameters": network.count_parameters(),
        },
    )
    return RavensaidState(
        network=network,
        device=target_device,
        path=network_path,
        max_message_bytes=max_message_bytes,
        metadata=metadata,
    )


def _message_bytes(message: str | bytes | None) -> bytes | None:
    """UTF-8 bytes of the message, or None when it isn't valid text."""
    if isinstance(message, str):
        try:
            return message.encode("utf-8")
        except UnicodeEncodeError:
            return None
    if isinstance(message, (bytes, bytearray)):
        try:
            bytes(message).decode("utf-8")
        except UnicodeDecodeError:
            return None
        return bytes(message)
    return None


def ravensaid(state: RavensaidState | None, message: str | bytes | None) -> int:
    """
    Score how likely `message` was written by Ravenholdt.

    Returns:
        A fixed-point percentage in [0, 20000] (4625 == 46.25%), or
        -1 for a null, non-UTF-8, empty, or over-long message,
        -2 if the probability came out above 200%,
        -3 if it came out negative.

    Raises:
        HandleMisuseError: `state` is None or already released.
    """
    if state is None:
        raise HandleMisuseError("Cannot score with a null network handle")
    network = state.network

    data = _message_bytes(message)
    if data is None or not data or len(data) > state.max_message_bytes:
        logger.debug(
            "Rejected message",
            extra={"length": None if data is None else len(data), "limit": state.max_message_bytes},
        )
        return INVALID_MESSAGE

    inputs = encode_message(data, state.spec.input_bytes).to(state.device)
    with torch.no_grad():
        logit = network(inputs)
        probability = torch.sigmoid(logit).item()

    score = probability_to_score(probability)
    logger.debug("Scored message", extra={"length": len(data), "probability": probability, "score": score})
    return score


def ravensaid_free(state: RavensaidState | None) -> None:
    """
    Release a handle. Each handle must be released exactly once.

    Raises:
        HandleMisuseError: `state` is None or was already released.
    """
    if state is None:
        logger.critical("Attempted to release a null network handle")
        raise HandleMisuseError("You can't release a null network handle")
    if state.released:
        logger.critical("Attempted to release a network handle twice", extra={"path": str(state.path)})
        raise HandleMisuseError(f"Network handle for {state.path} was already released")

    state._release()
    logger.debug("Network handle released", extra={"path": str(state.path)})
