"""Data models shared by sources and the cache store."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class Dependency:
    """A single dependency reported by a source."""

    name: str
    version: str
    path: str = ""
    errors: list[str] = field(default_factory=list)
    metadata: dict[str, str] = field(default_factory=dict)
    # several versions of this name coexist; key the cache by version too
    disambiguate: bool = False


@dataclass(frozen=True)
class CacheKey:
    """Identity of a cache slot: ecosystem tag, name, and optional version."""

    source_type: str
    name: str
    version: str | None = None
