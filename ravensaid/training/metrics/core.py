# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Training metrics for Ravensaid.

Two things get measured each epoch: the mean training loss over the slice
that was trained on, and the accuracy on the validation set. A prediction
counts as correct when round(sigmoid(logit)) matches the label, i.e. the
network is on the right side of 50%.

Both are emitted as structured log entries.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Sequence

import torch
import torch.nn as nn

from ravensaid.logging.logger import get_logger
from ravensaid.model.encoding import encode_text
from ravensaid.training.corpus.core import Sample

logger: logging.Logger = get_logger(__name__)


@dataclass(frozen=True)
class EvaluationResult:
    tests: int
    successes: int

    @property
    def accuracy(self) -> float:
        """Share of correct predictions in percent. 0.0 for an empty set."""
        if self.tests == 0:
            return 0.0
        return 100.0 * self.successes / self.tests


def evaluate(
    model: nn.Module,
    samples: Sequence[Sample],
    input_bytes: int,
    device: torch.device | None = None,
) -> EvaluationResult:
    """
    Count how many samples the network classifies correctly.

    The model is put in eval mode for the duration and restored afterwards.
    """
    was_training = model.training
    model.eval()
    successes = 0
    try:
        with torch.no_grad():
            for sample in samples:
                inputs = encode_text(sample.text, input_bytes)
                if device is not None:
                    inputs = inputs.to(device)
                predicted = bool(torch.sigmoid(model(inputs)).round().item())
                if predicted == sample.is_target:
                    successes += 1
    finally:
        model.train(was_training)

    result = EvaluationResult(tests=len(samples), successes=successes)
    logger.info(
        "Validation",
        extra={
            "tests": result.tests,
            "passed": result.successes,
            "accuracy": round(result.accuracy, 2),
        },
    )
    return result


@dataclass
class EpochMetrics:
    epoch: int
    loss: float
    learning_rate: float
    samples: int
    accuracy: float
    elapsed_seconds: float


@dataclass
class MetricsTracker:
    """
    Accumulates per-sample losses within an epoch and logs the summary.

    Args:
        prefix: Checkpoint prefix, included so runs sharing a log can be told apart.
    """

    prefix: str = ""
    history: list[EpochMetrics] = field(default_factory=list)
    _loss_sum: float = field(default=0.0, init=False)
    _loss_count: int = field(default=0, init=False)
    _epoch_start: float = field(default=0.0, init=False)

    def begin_epoch(self) -> None:
        self._loss_sum = 0.0
        self._loss_count = 0
        self._epoch_start = time.monotonic()

    def record_loss(self, loss: float) -> None:
        self._loss_sum += loss
        self._loss_count += 1

    @property
    def mean_loss(self) -> float:
        if self._loss_count == 0:
            return 0.0
        return self._loss_sum / self._loss_count

    def end_epoch(self, epoch: int, learning_rate: float, accuracy: float) -> EpochMetrics:
        metrics = EpochMetrics(
            epoch=epoch,
            loss=self.mean_loss,
            learning_rate=learning_rate,
            samples=self._loss_count,
            accuracy=accuracy,
            elapsed_seconds=time.monotonic() - self._epoch_start,
        )
        self.history.append(metrics)
        logger.info(
            "Epoch complete",
            extra={
                "prefix": self.prefix,
                "epoch": metrics.epoch,
                "loss": round(metrics.loss, 6),
                "lr": metrics.learning_rate,
                "samples": metrics.samples,
                "accuracy": round(metrics.accuracy, 2),
                "elapsed_s": round(metrics.elapsed_seconds, 2),
            },
        )
        return metrics
