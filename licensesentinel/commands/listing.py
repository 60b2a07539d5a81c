"""List: enumerate dependencies without touching the cache."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from licensesentinel.commands.base import SourceFailure, walk_sources
from licensesentinel.core.config import Config
from licensesentinel.sources.models import Dependency


@dataclass
class ListEntry:
    app: str
    source: str
    dependency: Dependency
    filename: Path | None


@dataclass
class ListReport:
    entries: list[ListEntry] = field(default_factory=list)
    failures: list[SourceFailure] = field(default_factory=list)


class ListCommand:
    def __init__(self, config: Config) -> None:
        self.config = config

    def run(self) -> ListReport:
        report = ListReport()
        for run in walk_sources(self.config, report.failures):
            for dependency in run.dependencies:
                report.entries.append(
                    ListEntry(
                        app=run.app.name,
                        source=run.source.type,
                        dependency=dependency,
                        filename=run.record_path(dependency),
                    )
                )
        return report
