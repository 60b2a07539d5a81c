"""Status: verify cached license records against the live dependency set."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import structlog

from licensesentinel.cache import store
from licensesentinel.commands.base import SourceFailure, walk_sources
from licensesentinel.core.config import Config
from licensesentinel.core.policy import ReviewPolicy
from licensesentinel.exceptions import RecordNotFound, RecordParseError
from licensesentinel.sources.models import Dependency

log = structlog.get_logger("licensesentinel.command.status")

MISSING = "cached license data missing"
OUT_OF_DATE = "cached license data out of date"
MISSING_LICENSE_TEXT = "missing license text"


def needs_review(license_id: str) -> str:
    return f"license needs reviewed: {license_id}."


def unreadable(reason: str) -> str:
    return f"cached license data unreadable: {reason}"


@dataclass
class StatusResult:
    """Warnings for one dependency whose cached record is not acceptable."""

    filename: Path
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    app: str = ""
    source: str = ""
    name: str = ""


@dataclass
class StatusReport:
    results: list[StatusResult] = field(default_factory=list)
    failures: list[SourceFailure] = field(default_factory=list)
    checked: int = 0

    @property
    def success(self) -> bool:
        return not self.results and not self.failures


def verify_dependency(
    filename: Path, dependency: Dependency, policy: ReviewPolicy
) -> StatusResult | None:
    """Check one dependency against its cache record at *filename*.

    Returns None when the dependency is clean. Reads the record but never
    modifies the cache.
    """
    warnings: list[str] = []
    try:
        record = store.read(filename)
    except RecordNotFound:
        warnings.append(MISSING)
    except RecordParseError as exc:
        warnings.append(unreadable(str(exc)))
    else:
        if record.version != dependency.version:
            warnings.append(OUT_OF_DATE)
        if not record.licenses:
            warnings.append(MISSING_LICENSE_TEXT)
        if not policy.allowed_or_reviewed(record):
            warnings.append(needs_review(record.license))

    if not warnings and not dependency.errors:
        return None
    return StatusResult(
        filename=filename,
        warnings=warnings,
        errors=list(dependency.errors),
        name=dependency.name,
    )


def unresolved_dependency(cache_dir: Path, dependency: Dependency) -> StatusResult:
    """Result for a dependency that has no cache record slot at all.

    *cache_dir* is the source's directory in the cache, which stands in for
    the record path.
    """
    return StatusResult(
        filename=cache_dir,
        errors=list(dependency.errors) or [f"dependency has no cache key: {dependency.name!r}"],
        name=dependency.name if isinstance(dependency.name, str) else "",
    )


class StatusCommand:
    """Verify every app's cached records; ``success`` once ``run`` has returned."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self.report: StatusReport | None = None

    def run(self) -> StatusReport:
        report = StatusReport()
        for run in walk_sources(self.config, report.failures):
            found = 0
            for dependency in run.dependencies:
                filename = run.record_path(dependency)
                if filename is None:
                    result = unresolved_dependency(run.app.cache_path / run.source.type, dependency)
                else:
                    result = verify_dependency(filename, dependency, run.policy)
                report.checked += 1
                if result is not None:
                    result.app = run.app.name
                    result.source = run.source.type
                    report.results.append(result)
                    found += 1
            log.info(
                "status.source_checked",
                app=run.app.name,
                source=run.source.type,
                dependencies=len(run.dependencies),
                warnings=found,
            )
        self.report = report
        return report

    def success(self) -> bool:
        if self.report is None:
            raise RuntimeError("status has not been run")
        return self.report.success


def status(config: Config) -> tuple[StatusReport, bool]:
    """Run a status check over *config* and return the report and verdict."""
    report = StatusCommand(config).run()
    return report, report.success
