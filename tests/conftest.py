# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for Ravensaid tests.

The network fixtures build networks with known weights: every parameter is
zero except the output bias, so the logit, and therefore the score, is the
same for every message. That makes exact score assertions possible without
a trained network.
"""

import textwrap
from pathlib import Path
from typing import Callable

import pytest
import torch

from ravensaid.model.network import NetworkSpec, RavensaidNetwork
from ravensaid.training.checkpoint.core import NetworkMetadata, save_network

NetworkFactory = Callable[..., Path]


@pytest.fixture()
def tmp_config_file(tmp_path: Path) -> Path:
    """The smallest config that passes schema validation."""
    config_content = textwrap.dedent("""\
        global:
          config_version: "1.0.0"
          project_name: "ravensaid-test"
          seed: 42
          log_level: "DEBUG"
    """)
    config_file = tmp_path / "test_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def invalid_config_file(tmp_path: Path) -> Path:
    """Valid YAML that fails schema validation (missing config_version)."""
    config_content = textwrap.dedent("""\
        global:
          project_name: "ravensaid-test"
          seed: 42
    """)
    config_file = tmp_path / "invalid_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def broken_yaml_file(tmp_path: Path) -> Path:
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("{{not: yaml: at: all:::", encoding="utf-8")
    return config_file


def build_constant_network(spec: NetworkSpec, output_bias: float) -> RavensaidNetwork:
    """A network whose logit is `output_bias` for every input."""
    network = RavensaidNetwork(spec)
    with torch.no_grad():
        for param in network.parameters():
            param.zero_()
        network.l3.bias.fill_(output_bias)
    return network


@pytest.fixture()
def network_factory(tmp_path: Path) -> NetworkFactory:
    """
    Save a constant-output network and return its path.

    Keyword args:
        name: file name inside tmp_path/models (default "constant.nn")
        spec: network shape (default NetworkSpec())
        output_bias: the constant logit (default 0.0, i.e. a 50.00% score)
    """

    def _make(
        name: str = "constant.nn",
        spec: NetworkSpec | None = None,
        output_bias: float = 0.0,
    ) -> Path:
        chosen = spec or NetworkSpec()
        network = build_constant_network(chosen, output_bias)
        path = tmp_path / "models" / name
        save_network(
            network,
            path,
            NetworkMetadata(input_bytes=chosen.input_bytes, hidden_size=chosen.hidden_size),
        )
        return path

    return _make


@pytest.fixture()
def constant_network(network_factory: NetworkFactory) -> Path:
    """A default-shape network that scores every valid message at exactly 5000 (50.00%)."""
    return network_factory()


@pytest.fixture()
def corpus_dir(tmp_path: Path) -> Path:
    """The four source files the default corpus config expects."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    (data_dir / "berk.txt").write_text("b1\n\nb2", encoding="utf-8")
    (data_dir / "sidju.txt").write_text("s1", encoding="utf-8")
    (data_dir / "ravenholdt.txt").write_text("r1\n\nr2\n\nr3", encoding="utf-8")
    (data_dir / "dreamer.txt").write_text("d1\n\nd2\n\nd3", encoding="utf-8")
    return data_dir
