# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Byte-level input encoding.

A message becomes a flat one-hot tensor: every one of the first
`input_bytes` byte positions owns a block of 256 floats, and the float
matching that byte's value is set to 1.0. Shorter messages leave the
trailing blocks all zero; longer messages are cut off.

    x[i * 256 + byte_i] = 1.0    for i < min(len(data), input_bytes)
"""

import torch

BYTE_VALUES = 256


def input_size_for(input_bytes: int) -> int:
    """Width of the encoded vector for a given byte window."""
    return input_bytes * BYTE_VALUES


def encode_message(data: bytes, input_bytes: int) -> torch.Tensor:
    """
    Encode raw message bytes as a float32 one-hot tensor.

    Args:
        data: UTF-8 bytes of the message.
        input_bytes: How many leading bytes the network looks at.

    Returns:
        Tensor of shape (input_bytes * 256,).
    """
    encoded = torch.zeros(input_size_for(input_bytes), dtype=torch.float32)
    window = data[:input_bytes]
    if window:
        positions = torch.arange(len(window), dtype=torch.long) * BYTE_VALUES
        values = torch.tensor(list(window), dtype=torch.long)
        encoded[positions + values] = 1.0
    return encoded


def encode_text(text: str, input_bytes: int) -> torch.Tensor:
    """Encode a str via its UTF-8 bytes."""
    return encode_message(text.encode("utf-8"), input_bytes)


def encode_label(is_target: bool) -> torch.Tensor:
    """Training target for one passage: 1.0 for the target author, else 0.0."""
    return torch.tensor([1.0 if is_target else 0.0], dtype=torch.float32)
