# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Tests for project root resolution and path helpers."""

from pathlib import Path

import pytest

from ravensaid.utils.paths import ensure_directory, resolve_path, resolve_project_root


class TestResolveProjectRoot:
    def test_env_variable_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RAVENSAID_HOME", str(tmp_path))
        assert resolve_project_root() == tmp_path.resolve()

    def test_walks_up_to_pyproject(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("RAVENSAID_HOME", raising=False)
        (tmp_path / "pyproject.toml").write_text("[project]\n", encoding="utf-8")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        assert resolve_project_root() == tmp_path.resolve()


class TestResolvePath:
    def test_relative_is_anchored(self, tmp_path: Path) -> None:
        assert resolve_path("models/x.nn", tmp_path) == tmp_path / "models" / "x.nn"

    def test_absolute_is_unchanged(self, tmp_path: Path) -> None:
        absolute = tmp_path / "x.nn"
        assert resolve_path(absolute, Path("/elsewhere")) == absolute


class TestEnsureDirectory:
    def test_creates_nested(self, tmp_path: Path) -> None:
        target = ensure_directory(tmp_path / "a" / "b")
        assert target.is_dir()

    def test_existing_is_fine(self, tmp_path: Path) -> None:
        assert ensure_directory(tmp_path) == tmp_path
