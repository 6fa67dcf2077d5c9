# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for Ravensaid.

Each config section is a frozen pydantic model:
  - frozen=True: immutability after construction
  - extra="forbid": unknown fields cause immediate failure
  - validate_default=True: even defaults get type-checked

Only `global:` is required. Commands check for the sections they need and
fail with CONFIG_ERROR when one is missing.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DirectoryConfig(BaseModel):
    """Paths to the standard project directories, all relative to project root."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    data: str = Field(default="data", description="Training corpora")
    models: str = Field(default="models", description="Trained .nn networks")
    logs: str = Field(default="logs", description="System and debug logs")
    experiments: str = Field(default="experiments", description="Training run outputs")


class GlobalConfig(BaseModel):
    """
    Cross-cutting settings that apply to every command: reproducibility
    (seed), observability (log_level, log_file), and project identity.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(
        description="Schema version for compatibility tracking, e.g. '1.0.0'"
    )
    project_name: str = Field(
        default="ravensaid", description="Human-readable project identifier"
    )
    seed: int = Field(
        default=42,
        ge=0,
        description="Global random seed propagated to all subsystems",
    )
    log_level: str = Field(
        default="INFO",
        description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional path for file-based log output",
    )
    directories: DirectoryConfig = Field(default_factory=DirectoryConfig)


class ModelConfig(BaseModel):
    """
    Shape of the byte-level network. A saved .nn file only loads into a
    network built with the same shape, so these must match whatever the
    network was trained with.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(description="Schema version")
    input_bytes: int = Field(
        default=32,
        ge=1,
        le=4096,
        description="How many leading message bytes the network sees",
    )
    hidden_size: int = Field(
        default=64,
        ge=1,
        le=65_536,
        description="Width of the single hidden layer",
    )


class SourceConfig(BaseModel):
    """
    One stream of training passages. Files are read in order and chained,
    so two short authors can share a slot against a prolific one.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    name: str = Field(description="Short identifier used in logs")
    files: list[str] = Field(min_length=1, description="Text files, relative to the data directory")
    target: bool = Field(
        default=False,
        description="True when these passages were written by the target author",
    )


def _default_sources() -> list[SourceConfig]:
    return [
        SourceConfig(name="berk_sidju", files=["berk.txt", "sidju.txt"], target=False),
        SourceConfig(name="ravenholdt", files=["ravenholdt.txt"], target=True),
        SourceConfig(name="dreamer", files=["dreamer.txt"], target=False),
    ]


class CorpusConfig(BaseModel):
    """Where training text lives and how it gets turned into samples."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(description="Schema version")
    data_directory: str = Field(
        default="data",
        description="Directory holding the source text files, relative to project root",
    )
    separator: str = Field(
        default="\n\n",
        min_length=1,
        description="Passages within a file are split on this string",
    )
    sources: list[SourceConfig] = Field(default_factory=_default_sources)
    validation_fraction: float = Field(
        default=0.2,
        ge=0.0,
        lt=1.0,
        description="Leading share of interleaved samples held out for validation",
    )

    @model_validator(mode="after")
    def _needs_both_labels(self) -> "CorpusConfig":
        labels = {source.target for source in self.sources}
        if labels != {True, False}:
            raise ValueError("corpus sources must include at least one target and one non-target source")
        return self


class TrainConfig(BaseModel):
    """Training hyperparameters and schedule."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(description="Schema version")
    epochs: int = Field(default=100, ge=1, description="Number of training epochs")
    learning_rate: float = Field(
        default=5e-6,
        gt=0.0,
        description="Adam learning rate for the first half of training",
    )
    late_learning_rate: float = Field(
        default=1e-6,
        gt=0.0,
        description="Adam learning rate from epoch epochs // 2 onwards",
    )
    grad_clip_value: float = Field(
        default=0.5,
        gt=0.0,
        description="Each gradient element is clamped to [-v, v] before the step",
    )
    slices_per_epoch: int = Field(
        default=10,
        ge=1,
        description="Training set is cut into this many slices; each epoch trains on one",
    )
    checkpoint_prefix: str = Field(
        default="",
        description="Prepended to every saved network file name",
    )


class ScoringConfig(BaseModel):
    """How the scorer loads a network and which messages it accepts."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(description="Schema version")
    model_path: Optional[str] = Field(
        default=None,
        description="Path to the .nn network file, relative to project root",
    )
    device: str = Field(
        default="auto",
        description="'auto', 'cpu', or any torch device string such as 'cuda:0'",
    )
    max_message_bytes: int = Field(
        default=2000,
        ge=1,
        description="Messages longer than this (UTF-8 bytes) score -1",
    )


class RuntimeConfig(BaseModel):
    """Local scoring server settings."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(description="Schema version")
    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=8732, ge=0, le=65535, description="Bind port")
    max_request_size_bytes: int = Field(
        default=65_536,
        ge=1,
        description="Request bodies larger than this are rejected with 413",
    )


class RavensaidConfig(BaseModel):
    """
    Top-level config container. Sections not present in the YAML stay None;
    commands validate they have what they need.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    global_config: GlobalConfig = Field(alias="global")
    model: Optional[ModelConfig] = Field(default=None)
    corpus: Optional[CorpusConfig] = Field(default=None)
    train: Optional[TrainConfig] = Field(default=None)
    scoring: Optional[ScoringConfig] = Field(default=None)
    runtime: Optional[RuntimeConfig] = Field(default=None)
