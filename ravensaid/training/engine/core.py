# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Training loop for Ravensaid.

Each epoch:
  1. Set the learning rate for this epoch
  2. Pick this epoch's slice of the training set (slices rotate)
  3. For each sample: forward, BCE-with-logits loss, backward,
     clamp gradients by value, optimizer step
  4. Evaluate accuracy on the validation set
  5. Log epoch metrics
  6. Save the network as <prefix>epoch_<n>.nn

Training is one sample at a time. The network is small enough that
batching buys nothing.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import torch
import torch.nn as nn

from ravensaid.config.schema import RavensaidConfig
from ravensaid.logging.logger import get_logger
from ravensaid.model.encoding import encode_label, encode_text
from ravensaid.model.network import NetworkSpec, RavensaidNetwork
from ravensaid.scoring.handle import resolve_device
from ravensaid.training.checkpoint.core import NetworkMetadata, save_network
from ravensaid.training.corpus.core import CorpusSplit, Sample, build_corpus
from ravensaid.training.engine.experiment import NETWORKS_DIRNAME
from ravensaid.training.metrics.core import MetricsTracker, evaluate
from ravensaid.training.optimizer.core import (
    clip_gradients,
    create_optimizer,
    get_learning_rate,
    set_learning_rate,
)

logger: logging.Logger = get_logger(__name__)


@dataclass(frozen=True)
class TrainingResult:
    """Final result of a training run."""

    epochs: int
    final_loss: float
    final_accuracy: float
    best_accuracy: float
    best_network: str
    last_network: str
    experiment_dir: str


def epoch_slice(samples: list[Sample], epoch: int, slices: int) -> list[Sample]:
    """
    The part of the training set used in `epoch`.

    The set is cut into `slices` equal parts (the remainder is never
    visited) and epochs cycle through them in order.
    """
    length = len(samples) // slices
    start = (epoch % slices) * length
    return samples[start : start + length]


def network_filename(prefix: str, epoch: int) -> str:
    return f"{prefix}epoch_{epoch}.nn"


def run_training(
    config: RavensaidConfig,
    experiment_dir: Path,
    project_root: Path,
    corpus: CorpusSplit | None = None,
    device: str = "auto",
) -> TrainingResult:
    """
    Train a network from scratch and save it after every epoch.

    Args:
        config: Validated config with `train` and `corpus` sections. `model`
                is optional and defaults to the standard shape.
        experiment_dir: Where networks get written (under networks/).
        project_root: Base for the corpus data directory.
        corpus: Pre-built corpus; read from config.corpus when None.
        device: Torch device string, 'auto' for CUDA when available.

    Raises:
        RuntimeError: Missing config sections, or fewer training samples
            than slices per epoch.
    """
    train_cfg = config.train
    if train_cfg is None:
        raise RuntimeError("Training config is required")

    if corpus is None:
        if config.corpus is None:
            raise RuntimeError("Corpus config is required when no corpus is given")
        corpus = build_corpus(config.corpus, project_root)

    if len(corpus.training) < train_cfg.slices_per_epoch:
        raise RuntimeError(
            f"Need at least {train_cfg.slices_per_epoch} training samples, "
            f"got {len(corpus.training)}"
        )

    target_device = resolve_device(device)
    spec = NetworkSpec.from_config(config.model)
    model = RavensaidNetwork(spec).to(target_device)
    optimizer = create_optimizer(model, train_cfg)
    loss_fn = nn.BCEWithLogitsLoss()
    tracker = MetricsTracker(prefix=train_cfg.checkpoint_prefix)
    networks_dir = experiment_dir / NETWORKS_DIRNAME

    logger.info(
        "Training setup",
        extra={
            "device": str(target_device),
            "epochs": train_cfg.epochs,
            "training_samples": len(corpus.training),
            "validation_samples": len(corpus.validation),
            "parameters": model.count_parameters(),
        },
    )

    best_accuracy = -1.0
    best_network = ""
    last_network = ""
    final_loss = 0.0
    final_accuracy = 0.0

    model.train()
    for epoch in range(train_cfg.epochs):
        lr = get_learning_rate(epoch, train_cfg)
        set_learning_rate(optimizer, lr)
        tracker.begin_epoch()

        for sample in epoch_slice(corpus.training, epoch, train_cfg.slices_per_epoch):
            inputs = encode_text(sample.text, spec.input_bytes).to(target_device)
            target = encode_label(sample.is_target).to(target_device)

            loss = loss_fn(model(inputs), target)
            optimizer.zero_grad()
            loss.backward()
            clip_gradients(model, train_cfg.grad_clip_value)
            optimizer.step()

            tracker.record_loss(loss.item())

        validation = evaluate(model, corpus.validation, spec.input_bytes, target_device)
        metrics = tracker.end_epoch(epoch, lr, validation.accuracy)

        network_path = networks_dir / network_filename(train_cfg.checkpoint_prefix, epoch)
        save_network(
            model,
            network_path,
            NetworkMetadata(
                input_bytes=spec.input_bytes,
                hidden_size=spec.hidden_size,
                epoch=epoch,
                loss=metrics.loss,
                accuracy=metrics.accuracy,
                seed=config.global_config.seed,
            ),
        )

        last_network = str(network_path)
        final_loss = metrics.loss
        final_accuracy = metrics.accuracy
        if metrics.accuracy > best_accuracy:
            best_accuracy = metrics.accuracy
            best_network = str(network_path)

    logger.info(
        "Training complete",
        extra={
            "final_loss": final_loss,
            "final_accuracy": final_accuracy,
            "best_accuracy": best_accuracy,
            "best_network": best_network,
        },
    )

    return TrainingResult(
        epochs=train_cfg.epochs,
        final_loss=final_loss,
        final_accuracy=final_accuracy,
        best_accuracy=best_accuracy,
        best_network=best_network,
        last_network=last_network,
        experiment_dir=str(experiment_dir),
    )
