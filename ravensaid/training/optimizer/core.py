# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Optimizer and learning rate schedule.

Plain Adam with a two-step schedule: `learning_rate` for the first half of
training, `late_learning_rate` from epoch `epochs // 2` onwards. The
schedule is a function of the epoch rather than a torch LRScheduler so the
engine sets it explicitly and logs what it set.
"""

import torch
import torch.nn as nn

from ravensaid.config.schema import TrainConfig


def create_optimizer(model: nn.Module, train_config: TrainConfig) -> torch.optim.Adam:
    return torch.optim.Adam(model.parameters(), lr=train_config.learning_rate)


def get_learning_rate(epoch: int, train_config: TrainConfig) -> float:
    """
    Learning rate for a given epoch (0-indexed).

    Args:
        epoch: Current epoch.
        train_config: Supplies epochs, learning_rate and late_learning_rate.
    """
    if epoch >= train_config.epochs // 2:
        return train_config.late_learning_rate
    return train_config.learning_rate


def set_learning_rate(optimizer: torch.optim.Optimizer, lr: float) -> None:
    """Set the learning rate on all parameter groups of an optimizer."""
    for param_group in optimizer.param_groups:
        param_group["lr"] = lr


def clip_gradients(model: nn.Module, clip_value: float) -> None:
    """Clamp every gradient element into [-clip_value, clip_value]."""
    torch.nn.utils.clip_grad_value_(model.parameters(), clip_value)
