# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
The Ravensaid network.

Two linear layers with nothing in between:

    one-hot bytes (input_bytes * 256) -> l1 -> hidden_size -> l3 -> 1 logit

The layer attribute names are part of the saved file format. A .nn file is
the network's state_dict, so its keys are `l1.weight`, `l1.bias`,
`l3.weight` and `l3.bias`.
"""

from dataclasses import dataclass

import torch
import torch.nn as nn

from ravensaid.config.schema import ModelConfig
from ravensaid.model.encoding import input_size_for


@dataclass(frozen=True)
class NetworkSpec:
    """Shape parameters for RavensaidNetwork."""

    input_bytes: int = 32
    hidden_size: int = 64

    @property
    def input_size(self) -> int:
        return input_size_for(self.input_bytes)

    @classmethod
    def from_config(cls, model_cfg: ModelConfig | None) -> "NetworkSpec":
        if model_cfg is None:
            return cls()
        return cls(input_bytes=model_cfg.input_bytes, hidden_size=model_cfg.hidden_size)


class RavensaidNetwork(nn.Module):
    """
    Outputs one raw logit per message. Callers apply the sigmoid themselves:
    training feeds the logit to BCEWithLogitsLoss, scoring turns it into a
    probability.
    """

    def __init__(self, spec: NetworkSpec) -> None:
        super().__init__()
        self.spec = spec
        self.l1 = nn.Linear(spec.input_size, spec.hidden_size)
        self.l3 = nn.Linear(spec.hidden_size, 1)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """
        Args:
            x: Encoded messages, shape (input_size,) or (batch, input_size).

        Returns:
            Logits of shape (1,) or (batch, 1).
        """
        return self.l3(self.l1(x))

    def count_parameters(self) -> int:
        return sum(p.numel() for p in self.parameters())
