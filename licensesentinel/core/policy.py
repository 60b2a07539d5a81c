"""Review policy: allow-list and review-list predicates from app configuration."""

from __future__ import annotations

from licensesentinel.cache.record import CacheRecord
from licensesentinel.core.config import AppConfig


class ReviewPolicy:
    """Answers whether a cached record is acceptable for one application."""

    def __init__(
        self,
        allowed: list[str] | None = None,
        reviewed: dict[str, list[str]] | None = None,
        ignored: dict[str, list[str]] | None = None,
    ) -> None:
        self._allowed = {lic.lower() for lic in allowed or []}
        self._reviewed = {t: set(names) for t, names in (reviewed or {}).items()}
        self._ignored = {t: set(names) for t, names in (ignored or {}).items()}

    @classmethod
    def from_app(cls, app: AppConfig) -> ReviewPolicy:
        return cls(allowed=app.allowed, reviewed=app.reviewed, ignored=app.ignored)

    def allowed(self, record: CacheRecord) -> bool:
        return record.license.lower() in self._allowed

    def reviewed(self, record: CacheRecord) -> bool:
        return record.name in self._reviewed.get(record.type, ())

    def allowed_or_reviewed(self, record: CacheRecord) -> bool:
        return self.allowed(record) or self.reviewed(record)

    def ignored(self, source_type: str, name: str) -> bool:
        return name in self._ignored.get(source_type, ())
