"""Cache: record license metadata for every dependency of every app."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

import structlog

from licensesentinel.cache import store
from licensesentinel.cache.record import CacheRecord, LicenseText
from licensesentinel.commands.base import SourceFailure, walk_sources
from licensesentinel.core.config import Config
from licensesentinel.exceptions import CacheWriteError, RecordError
from licensesentinel.sources.models import Dependency

log = structlog.get_logger("licensesentinel.command.cache")

_LICENSE_FILE_RE = re.compile(r"^(licen[cs]e|copying)", re.IGNORECASE)


@runtime_checkable
class LicenseDetector(Protocol):
    """Maps collected license texts to a normalized license identifier."""

    def detect(self, dependency: Dependency, texts: list[LicenseText]) -> str: ...


class PresenceLicenseDetector:
    """Fallback detector: ``other`` when any license text exists, else ``none``.

    Identifying the license itself is left to a real detector plugged in by
    the caller.
    """

    def detect(self, dependency: Dependency, texts: list[LicenseText]) -> str:
        return "other" if texts else "none"


def collect_license_texts(path: str | Path) -> list[LicenseText]:
    """Read top-level LICENSE/LICENCE/COPYING files under *path*."""
    if not path:
        return []
    root = Path(path)
    if not root.is_dir():
        return []
    texts: list[LicenseText] = []
    for candidate in sorted(root.iterdir(), key=lambda p: p.name):
        if not candidate.is_file() or not _LICENSE_FILE_RE.match(candidate.name):
            continue
        try:
            with open(candidate, encoding="utf-8", errors="replace", newline="") as f:
                texts.append(LicenseText(sources=candidate.name, text=f.read()))
        except OSError as exc:
            log.warning("cache.license_unreadable", path=str(candidate), error=str(exc))
    return texts


@dataclass
class CacheReport:
    written: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    write_errors: list[tuple[Path, str]] = field(default_factory=list)
    failures: list[SourceFailure] = field(default_factory=list)
    # dependencies that could not be given a record at all
    unresolved: list[SourceFailure] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.write_errors and not self.failures and not self.unresolved


class CacheCommand:
    def __init__(
        self,
        config: Config,
        detector: LicenseDetector | None = None,
        force: bool = False,
    ) -> None:
        self.config = config
        self.detector = detector or PresenceLicenseDetector()
        self.force = force

    def run(self) -> CacheReport:
        report = CacheReport()
        for run in walk_sources(self.config, report.failures):
            for dependency in run.dependencies:
                filename = run.record_path(dependency)
                if filename is None:
                    log.error(
                        "cache.dependency_unresolved",
                        app=run.app.name,
                        source=run.source.type,
                        errors=dependency.errors,
                    )
                    report.unresolved.append(
                        SourceFailure(
                            app=run.app.name,
                            source=run.source.type,
                            message="; ".join(dependency.errors) or "dependency has no cache key",
                        )
                    )
                    continue
                if not self.force and self._up_to_date(filename, dependency):
                    report.skipped.append(filename)
                    continue

                record = self.build_record(run.source.type, dependency)
                try:
                    store.write(filename, record)
                except CacheWriteError as exc:
                    log.error("cache.write_failed", path=str(filename), error=str(exc))
                    report.write_errors.append((filename, str(exc)))
                    continue
                report.written.append(filename)

            log.info(
                "cache.source_cached",
                app=run.app.name,
                source=run.source.type,
                dependencies=len(run.dependencies),
            )
        return report

    def build_record(self, source_type: str, dependency: Dependency) -> CacheRecord:
        texts = collect_license_texts(dependency.path)
        return CacheRecord(
            type=source_type,
            name=dependency.name,
            version=dependency.version,
            license=self.detector.detect(dependency, texts),
            licenses=texts,
            metadata={k: v for k, v in dependency.metadata.items() if v is not None},
        )

    @staticmethod
    def _up_to_date(filename: Path, dependency: Dependency) -> bool:
        try:
            record = store.read(filename)
        except RecordError:
            return False
        return record.version == dependency.version
