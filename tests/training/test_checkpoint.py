# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for network save/load.

Validates:
  - weights survive a save/load cycle exactly
  - the sidecar records shape, stats and the real checksum
  - corrupted or mismatched files are rejected with NetworkFileError
  - saves leave no temp files behind
"""

import json
from pathlib import Path

import pytest
import torch

from ravensaid.model.network import NetworkSpec, RavensaidNetwork
from ravensaid.training.checkpoint.core import (
    NetworkFileError,
    NetworkMetadata,
    load_network,
    read_metadata,
    save_network,
    sidecar_path,
    verify_network_file,
)
from ravensaid.utils.hashing import compute_sha256

SMALL = NetworkSpec(input_bytes=4, hidden_size=3)


def _metadata(**overrides) -> NetworkMetadata:
    fields = {"input_bytes": SMALL.input_bytes, "hidden_size": SMALL.hidden_size}
    fields.update(overrides)
    return NetworkMetadata(**fields)


class TestSaveNetwork:
    def test_writes_network_and_sidecar(self, tmp_path: Path) -> None:
        path = tmp_path / "nets" / "epoch_0.nn"
        save_network(RavensaidNetwork(SMALL), path, _metadata(epoch=0))
        assert path.is_file()
        assert sidecar_path(path) == tmp_path / "nets" / "epoch_0.nn.json"
        assert sidecar_path(path).is_file()

    def test_sidecar_contents(self, tmp_path: Path) -> None:
        path = tmp_path / "epoch_3.nn"
        written = save_network(
            RavensaidNetwork(SMALL),
            path,
            _metadata(epoch=3, loss=0.25, accuracy=87.5, seed=7),
        )
        raw = json.loads(sidecar_path(path).read_text(encoding="utf-8"))
        assert raw["input_bytes"] == 4
        assert raw["hidden_size"] == 3
        assert raw["epoch"] == 3
        assert raw["accuracy"] == 87.5
        assert raw["weights_sha256"] == compute_sha256(path)
        assert written.weights_sha256 == raw["weights_sha256"]

    def test_ignores_supplied_checksum(self, tmp_path: Path) -> None:
        path = tmp_path / "net.nn"
        written = save_network(RavensaidNetwork(SMALL), path, _metadata(weights_sha256="bogus"))
        assert written.weights_sha256 == compute_sha256(path)

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        save_network(RavensaidNetwork(SMALL), tmp_path / "net.nn", _metadata())
        assert sorted(p.name for p in tmp_path.iterdir()) == ["net.nn", "net.nn.json"]

    def test_overwrite_replaces_file(self, tmp_path: Path) -> None:
        path = tmp_path / "net.nn"
        save_network(RavensaidNetwork(SMALL), path, _metadata(epoch=0))
        save_network(RavensaidNetwork(SMALL), path, _metadata(epoch=1))
        assert read_metadata(path).epoch == 1


class TestLoadNetwork:
    def test_round_trip_weights(self, tmp_path: Path) -> None:
        path = tmp_path / "net.nn"
        original = RavensaidNetwork(SMALL)
        metadata = save_network(original, path, _metadata())

        restored = RavensaidNetwork(SMALL)
        load_network(path, restored, metadata=metadata)
        for key, value in original.state_dict().items():
            assert torch.equal(value, restored.state_dict()[key])

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(NetworkFileError, match="not found"):
            load_network(tmp_path / "missing.nn", RavensaidNetwork(SMALL))

    def test_checksum_mismatch(self, tmp_path: Path) -> None:
        path = tmp_path / "net.nn"
        metadata = save_network(RavensaidNetwork(SMALL), path, _metadata())
        with path.open("ab") as f:
            f.write(b"tampered")
        with pytest.raises(NetworkFileError, match="Checksum mismatch"):
            load_network(path, RavensaidNetwork(SMALL), metadata=metadata)

    def test_shape_mismatch(self, tmp_path: Path) -> None:
        path = tmp_path / "net.nn"
        save_network(RavensaidNetwork(SMALL), path, _metadata())
        with pytest.raises(NetworkFileError, match="doesn't fit"):
            load_network(path, RavensaidNetwork(NetworkSpec(input_bytes=5, hidden_size=3)))

    def test_not_a_torch_file(self, tmp_path: Path) -> None:
        path = tmp_path / "net.nn"
        path.write_text("plain text", encoding="utf-8")
        with pytest.raises(NetworkFileError, match="Cannot read"):
            load_network(path, RavensaidNetwork(SMALL))

    def test_non_string_keys(self, tmp_path: Path) -> None:
        path = tmp_path / "net.nn"
        torch.save({1: torch.zeros(1)}, path)
        with pytest.raises(NetworkFileError, match="non-string"):
            load_network(path, RavensaidNetwork(SMALL))

    def test_non_tensor_values(self, tmp_path: Path) -> None:
        path = tmp_path / "net.nn"
        torch.save({"fc1.weight": 3}, path)
        with pytest.raises(NetworkFileError):
            load_network(path, RavensaidNetwork(SMALL))

    def test_network_file_error_is_runtime_error(self) -> None:
        assert issubclass(NetworkFileError, RuntimeError)


class TestVerifyNetworkFile:
    def test_matching_checksum_passes(self, tmp_path: Path) -> None:
        path = tmp_path / "net.nn"
        metadata = save_network(RavensaidNetwork(SMALL), path, _metadata())
        verify_network_file(path, metadata)

    def test_without_metadata_only_checks_existence(self, tmp_path: Path) -> None:
        path = tmp_path / "net.nn"
        path.write_bytes(b"anything")
        verify_network_file(path)
        with pytest.raises(NetworkFileError, match="not found"):
            verify_network_file(tmp_path / "missing.nn")

    def test_checksum_is_case_insensitive(self, tmp_path: Path) -> None:
        path = tmp_path / "net.nn"
        save_network(RavensaidNetwork(SMALL), path, _metadata())
        verify_network_file(path, _metadata(weights_sha256=compute_sha256(path).upper()))

    def test_mismatch(self, tmp_path: Path) -> None:
        path = tmp_path / "net.nn"
        save_network(RavensaidNetwork(SMALL), path, _metadata())
        with pytest.raises(NetworkFileError, match="Checksum mismatch"):
            verify_network_file(path, _metadata(weights_sha256="0" * 64))


class TestReadMetadata:
    def test_missing_sidecar_is_none(self, tmp_path: Path) -> None:
        assert read_metadata(tmp_path / "lonely.nn") is None

    def test_missing_required_key(self, tmp_path: Path) -> None:
        path = tmp_path / "net.nn"
        sidecar_path(path).write_text(json.dumps({"hidden_size": 3}), encoding="utf-8")
        with pytest.raises(NetworkFileError):
            read_metadata(path)

    def test_optional_fields_default(self, tmp_path: Path) -> None:
        path = tmp_path / "net.nn"
        sidecar_path(path).write_text(
            json.dumps({"input_bytes": 4, "hidden_size": 3}), encoding="utf-8"
        )
        metadata = read_metadata(path)
        assert metadata == NetworkMetadata(input_bytes=4, hidden_size=3)

    def test_infinite_number(self, tmp_path: Path) -> None:
        path = tmp_path / "net.nn"
        sidecar_path(path).write_text('{"input_bytes": 1e999, "hidden_size": 3}', encoding="utf-8")
        with pytest.raises(NetworkFileError, match="Unreadable"):
            read_metadata(path)

    @pytest.mark.parametrize(
        "shape",
        [
            {"input_bytes": 0, "hidden_size": 3},
            {"input_bytes": 10**20, "hidden_size": 3},
            {"input_bytes": 4, "hidden_size": -1},
            {"input_bytes": 4, "hidden_size": 10**9},
        ],
    )
    def test_out_of_range_shape(self, tmp_path: Path, shape: dict) -> None:
        path = tmp_path / "net.nn"
        sidecar_path(path).write_text(json.dumps(shape), encoding="utf-8")
        with pytest.raises(NetworkFileError, match="invalid"):
            read_metadata(path)
