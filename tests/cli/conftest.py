"""Shared fixtures for CLI tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from remote_whitelist.sync.config import URL_ENV_VAR


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch) -> Path:
    """Keep config reads and writes out of the real home directory."""
    monkeypatch.setattr(Path, "home", lambda: tmp_path)
    monkeypatch.delenv(URL_ENV_VAR, raising=False)
    return tmp_path
