"""Abstract base class for dependency sources."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import ClassVar

import structlog

from licensesentinel.cache import store
from licensesentinel.core.config import AppConfig
from licensesentinel.core.policy import ReviewPolicy
from licensesentinel.sources.models import CacheKey, Dependency

log = structlog.get_logger("licensesentinel.sources")


class Source(ABC):
    """
    One package ecosystem's view of an application's dependencies.

    Subclasses implement ``enabled`` and ``enumerate_dependencies``; the
    project root is always ``self.root`` and external tools must be run with
    it as their working directory instead of changing the process cwd.
    """

    type: ClassVar[str]

    def __init__(self, app: AppConfig, policy: ReviewPolicy | None = None) -> None:
        self.app = app
        self.policy = policy or ReviewPolicy.from_app(app)
        self._dependencies: list[Dependency] | None = None

    @property
    def root(self) -> Path:
        return self.app.source_path

    @abstractmethod
    def enabled(self) -> bool:
        """Whether this ecosystem applies to the application."""
        ...

    @abstractmethod
    def enumerate_dependencies(self) -> list[Dependency]:
        """
        Produce the application's dependencies for this ecosystem.

        Problems with a single entry go into that dependency's ``errors``.
        Raises SourceError only when the ecosystem's manifest or index
        cannot be read at all.
        """
        ...

    def cache_key(self, dependency: Dependency) -> CacheKey:
        version = dependency.version if dependency.disambiguate else None
        return CacheKey(source_type=self.type, name=dependency.name, version=version)

    def dependencies(self) -> list[Dependency]:
        """Enumerated dependencies minus ignored ones, one per cache key.

        Duplicate keys keep the position of their first occurrence and the
        contents of their last. Entries without a usable cache key (no name,
        or a name that cannot be a file name) are kept as they are, with the
        reason in their ``errors``, so commands can report them.
        """
        if self._dependencies is not None:
            return self._dependencies

        collapsed: dict[CacheKey | int, Dependency] = {}
        for index, dep in enumerate(self.enumerate_dependencies()):
            if isinstance(dep.name, str) and dep.name and self.policy.ignored(self.type, dep.name):
                log.debug("source.dependency_ignored", source=self.type, name=dep.name)
                continue
            key = self.cache_key(dep)
            try:
                store.validate_key(key)
            except ValueError as exc:
                if dep.name or not dep.errors:
                    dep.errors.append(str(exc))
                log.warning(
                    "source.unkeyed_dependency",
                    source=self.type,
                    app=self.app.name,
                    errors=dep.errors,
                )
                # unkeyed entries are never collapsed
                collapsed[index] = dep
                continue
            prev = collapsed.get(key)
            if prev is not None:
                log.debug(
                    "source.dependency_collapsed",
                    source=self.type,
                    name=dep.name,
                    old_version=prev.version,
                    new_version=dep.version,
                )
            collapsed[key] = dep

        self._dependencies = list(collapsed.values())
        return self._dependencies
