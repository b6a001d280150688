"""Shared fixtures for entity store tests."""

from pathlib import Path

import pytest
from structlog.testing import CapturingLogger

from entity_store.modes import RunMode
from entity_store.store import Store


@pytest.fixture
def captured() -> CapturingLogger:
    """Underlying logger recording every rendered event."""
    return CapturingLogger()


@pytest.fixture(params=["memory", "yaml"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> Store:
    """A store on each backend, logging nothing."""
    return Store(backend=request.param, root=tmp_path / "data", mode=RunMode.SILENT)


@pytest.fixture
def yaml_store(tmp_path: Path) -> Store:
    """A YAML store rooted in a temporary directory."""
    return Store(backend="yaml", root=tmp_path / "data", mode=RunMode.SILENT)


@pytest.fixture
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the home directory (and so the global config) at a temporary directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr(Path, "home", lambda: home)
    return home
