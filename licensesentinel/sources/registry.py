"""Source registry: map ecosystem tags to source classes."""

from __future__ import annotations

from licensesentinel.core.config import AppConfig
from licensesentinel.core.policy import ReviewPolicy
from licensesentinel.sources.base import Source

SOURCE_REGISTRY: dict[str, type[Source]] = {}


def register_source(cls: type[Source]) -> type[Source]:
    """Register a source class by its ``type`` tag. Usable as a decorator."""
    SOURCE_REGISTRY[cls.type] = cls
    return cls


def sources_for(app: AppConfig, policy: ReviewPolicy | None = None) -> list[Source]:
    """Instantiate every registered source the app's configuration allows.

    Whether each source actually applies is left to ``Source.enabled``.
    """
    policy = policy or ReviewPolicy.from_app(app)
    return [
        cls(app, policy)
        for source_type, cls in SOURCE_REGISTRY.items()
        if app.source_enabled(source_type)
    ]
