"""Source for Yarn 2+ (berry) projects, via ``yarn info``."""

from __future__ import annotations

import json
import re
from typing import Any

import structlog

from licensesentinel.core import shell
from licensesentinel.exceptions import ShellError, SourceError
from licensesentinel.sources.base import Source
from licensesentinel.sources.models import Dependency
from licensesentinel.sources.registry import register_source

log = structlog.get_logger("licensesentinel.sources.yarn")

_MAJOR_VERSION_RE = re.compile(r"^\s*v?(\d+)\.")

_INFO_ARGS = ("info", "--json", "--manifest", "--recursive", "--all")


@register_source
class YarnBerrySource(Source):
    type = "yarn"
    minimum_major_version = 2

    _dependency_paths: dict[tuple[str, str], str] | None = None

    def enabled(self) -> bool:
        if not (self.root / "package.json").is_file() or not (self.root / "yarn.lock").is_file():
            return False
        if not shell.tool_available("yarn"):
            return False
        try:
            output = shell.execute("yarn", "--version", cwd=self.root)
        except ShellError:
            return False
        m = _MAJOR_VERSION_RE.match(output)
        return bool(m) and int(m.group(1)) >= self.minimum_major_version

    def enumerate_dependencies(self) -> list[Dependency]:
        by_name: dict[str, list[Dependency]] = {}
        unnamed: list[Dependency] = []
        for entry in self._yarn_info():
            dep = self._dependency_from_entry(entry)
            if not dep.name:
                unnamed.append(dep)
                continue
            versions = by_name.setdefault(dep.name, [])
            if all(existing.version != dep.version for existing in versions):
                versions.append(dep)

        deps: list[Dependency] = []
        for versions in by_name.values():
            if len(versions) > 1:
                for dep in versions:
                    dep.disambiguate = True
            deps.extend(versions)
        deps.extend(unnamed)
        return deps

    def _dependency_from_entry(self, entry: Any) -> Dependency:
        errors: list[str] = []
        if not isinstance(entry, dict):
            return Dependency(name="", version="", errors=[f"unexpected entry: {entry!r}"])

        value = entry.get("value")
        if not isinstance(value, str):
            value = ""
        name, _, _ = value.rpartition("@")
        if not name:
            errors.append(f"cannot parse package descriptor {value!r}")
            name = value

        children = entry.get("children")
        if not isinstance(children, dict):
            children = {}
        version = children.get("Version") or ""
        if not isinstance(version, str):
            errors.append(f"{name}: version is not a string: {version!r}")
            version = ""
        elif not version:
            errors.append(f"{name}: no resolved version")
        manifest = children.get("Manifest")
        homepage = manifest.get("Homepage") if isinstance(manifest, dict) else None
        if not isinstance(homepage, str):
            homepage = None

        metadata = {"name": name}
        if homepage:
            metadata["homepage"] = homepage

        return Dependency(
            name=name,
            version=version,
            path=self.dependency_paths().get((name, version), ""),
            errors=errors,
            metadata=metadata,
        )

    def _yarn_info(self) -> list[Any]:
        output = shell.execute("yarn", *_INFO_ARGS, cwd=self.root)
        entries: list[Any] = []
        for lineno, line in enumerate(output.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                entries.append(json.loads(line))
            except ValueError as exc:
                raise SourceError(f"unable to parse yarn info output line {lineno}: {exc}") from exc
        return entries

    def dependency_paths(self) -> dict[tuple[str, str], str]:
        """Map (name, version) to the directory holding that package."""
        if self._dependency_paths is not None:
            return self._dependency_paths

        paths: dict[tuple[str, str], str] = {}
        for manifest in sorted((self.root / "node_modules").glob("**/package.json")):
            try:
                data = json.loads(manifest.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                # a broken manifest for a reported package still surfaces as
                # a dependency with no path
                log.debug("yarn.manifest_unreadable", path=str(manifest))
                continue
            if not isinstance(data, dict):
                continue
            name, version = data.get("name"), data.get("version")
            if isinstance(name, str) and isinstance(version, str) and name and version:
                paths[(name, version)] = str(manifest.parent)

        self._dependency_paths = paths
        return paths
