"""Shared pytest fixtures for licensesentinel tests."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from licensesentinel.core.config import AppConfig, Config
from licensesentinel.exceptions import SourceError
from licensesentinel.sources.base import Source
from licensesentinel.sources.models import Dependency
from licensesentinel.sources.registry import SOURCE_REGISTRY


class FakeSource(Source):
    """In-memory source; dependencies and failures are set per app name."""

    type = "fake"
    dependencies_by_app: dict[str, list[Dependency]] = {}
    failing_apps: set[str] = set()
    disabled_apps: set[str] = set()

    def enabled(self) -> bool:
        return self.app.name not in self.disabled_apps

    def enumerate_dependencies(self) -> list[Dependency]:
        if self.app.name in self.failing_apps:
            raise SourceError("lock file is corrupt")
        return list(self.dependencies_by_app.get(self.app.name, []))


@pytest.fixture
def fake_source():
    """Replace the source registry with FakeSource only."""
    FakeSource.dependencies_by_app = {}
    FakeSource.failing_apps = set()
    FakeSource.disabled_apps = set()
    with patch.dict(SOURCE_REGISTRY, {"fake": FakeSource}, clear=True):
        yield FakeSource


@pytest.fixture
def make_app(tmp_path: Path):
    def _make(name: str = "app", **overrides) -> AppConfig:
        source_path = tmp_path / "src" / name
        source_path.mkdir(parents=True, exist_ok=True)
        values = {
            "name": name,
            "source_path": source_path,
            "cache_path": tmp_path / "cache" / name,
            "allowed": ["mit"],
        }
        values.update(overrides)
        return AppConfig(**values)

    return _make


@pytest.fixture
def make_config(make_app):
    def _make(*names: str, **overrides) -> Config:
        return Config(apps=[make_app(name, **overrides) for name in names or ("app",)])

    return _make
