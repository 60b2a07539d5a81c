"""Shared traversal over apps, sources and dependencies."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

import structlog

# Ensure sources are registered before any command runs.
import licensesentinel.sources.adapters  # noqa: F401
from licensesentinel.cache import store
from licensesentinel.core.config import AppConfig, Config
from licensesentinel.core.policy import ReviewPolicy
from licensesentinel.exceptions import SourceError
from licensesentinel.sources.base import Source
from licensesentinel.sources.models import Dependency
from licensesentinel.sources.registry import sources_for

log = structlog.get_logger("licensesentinel.command")


@dataclass
class SourceFailure:
    """A source that could not enumerate dependencies for one app."""

    app: str
    source: str
    message: str


@dataclass
class SourceRun:
    app: AppConfig
    policy: ReviewPolicy
    source: Source
    dependencies: list[Dependency]

    def record_path(self, dependency: Dependency) -> Path | None:
        """Cache record path for *dependency*, or None when it has no usable key."""
        try:
            return store.path_for(self.app.cache_path, self.source.cache_key(dependency))
        except ValueError:
            return None


def walk_sources(config: Config, failures: list[SourceFailure]) -> Iterator[SourceRun]:
    """Yield every enabled source of every app with its dependencies.

    Apps are visited in configuration order and sources in registry order.
    A SourceError is appended to *failures* and the walk moves on.
    """
    for app in config.apps:
        policy = ReviewPolicy.from_app(app)
        for source in sources_for(app, policy):
            try:
                if not source.enabled():
                    log.debug("command.source_disabled", app=app.name, source=source.type)
                    continue
                dependencies = source.dependencies()
            except SourceError as exc:
                log.error("command.source_failed", app=app.name, source=source.type, error=str(exc))
                failures.append(SourceFailure(app=app.name, source=source.type, message=str(exc)))
                continue
            yield SourceRun(app=app, policy=policy, source=source, dependencies=dependencies)
