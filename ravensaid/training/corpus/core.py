# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Training corpus for Ravensaid.

Each source is one or more text files of passages separated by blank lines.
Sources are interleaved one passage at a time, in config order, so the
target author never dominates a stretch of the training set:

    round 1: berk/sidju[0], ravenholdt[0], dreamer[0]
    round 2: berk/sidju[1], ravenholdt[1], dreamer[1]
    ...

Interleaving stops at the first source that runs dry. Passages already
taken in that last round are kept.

The leading `validation_fraction` of the interleaved samples is held out
for validation; the remainder is the training set.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Sequence

from ravensaid.config.schema import CorpusConfig, SourceConfig
from ravensaid.logging.logger import get_logger

logger: logging.Logger = get_logger(__name__)


@dataclass(frozen=True)
class Sample:
    """One labelled passage."""

    text: str
    is_target: bool


@dataclass(frozen=True)
class CorpusSplit:
    training: list[Sample]
    validation: list[Sample]


def split_passages(text: str, separator: str = "\n\n") -> list[str]:
    """Split file content into passages. Empty passages are kept, as written."""
    return text.split(separator)


def read_source(source: SourceConfig, data_dir: Path, separator: str = "\n\n") -> list[str]:
    """
    Read every file of a source, in order, and chain their passages.

    Raises:
        FileNotFoundError: If any listed file is missing.
    """
    passages: list[str] = []
    for name in source.files:
        path = data_dir / name
        if not path.is_file():
            raise FileNotFoundError(f"Corpus file not found for source '{source.name}': {path}")
        passages.extend(split_passages(path.read_text(encoding="utf-8"), separator))

    logger.debug(
        "Source read",
        extra={"source": source.name, "files": len(source.files), "passages": len(passages)},
    )
    return passages


def interleave(streams: Sequence[tuple[Sequence[str], bool]]) -> list[Sample]:
    """
    Take one passage from each stream in turn until any stream is exhausted.

    Args:
        streams: (passages, is_target) pairs, visited in order every round.
    """
    iterators: list[tuple[Iterator[str], bool]] = [(iter(p), label) for p, label in streams]
    samples: list[Sample] = []
    if not iterators:
        return samples

    while True:
        for passages, label in iterators:
            text = next(passages, None)
            if text is None:
                return samples
            samples.append(Sample(text=text, is_target=label))


def split_samples(samples: list[Sample], validation_fraction: float) -> CorpusSplit:
    """Hold out the leading `validation_fraction` of samples for validation."""
    cut = int(len(samples) * validation_fraction)
    return CorpusSplit(training=samples[cut:], validation=samples[:cut])


def build_corpus(corpus_cfg: CorpusConfig, project_root: Path) -> CorpusSplit:
    """
    Read every configured source and produce the train/validation split.

    Args:
        corpus_cfg: Validated corpus section.
        project_root: Base for a relative data_directory.
    """
    data_dir = Path(corpus_cfg.data_directory)
    if not data_dir.is_absolute():
        data_dir = project_root / data_dir

    streams = [
        (read_source(source, data_dir, corpus_cfg.separator), source.target)
        for source in corpus_cfg.sources
    ]
    samples = interleave(streams)
    split = split_samples(samples, corpus_cfg.validation_fraction)

    logger.info(
        "Corpus built",
        extra={
            "training": len(split.training),
            "validation": len(split.validation),
            "target_share": (
                round(sum(s.is_target for s in samples) / len(samples), 4) if samples else 0.0
            ),
        },
    )
    return split
