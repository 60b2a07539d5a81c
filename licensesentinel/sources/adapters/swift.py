"""Source for Swift Package Manager projects (Package.resolved)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from licensesentinel.core import shell
from licensesentinel.exceptions import DependencyResolutionError, SourceError
from licensesentinel.sources.base import Source
from licensesentinel.sources.models import Dependency
from licensesentinel.sources.registry import register_source


def _checkout_name(url: str) -> str:
    """Last path component of a repository URL, without ``.git``."""
    path = urlparse(url).path if "://" in url else url.split(":", 1)[-1]
    last = path.rstrip("/").split("/")[-1]
    if last.endswith(".git"):
        last = last[: -len(".git")]
    if not last:
        raise DependencyResolutionError(f"cannot derive checkout name from {url!r}")
    return last


@register_source
class SwiftSource(Source):
    type = "swift"

    def enabled(self) -> bool:
        if not shell.tool_available("swift"):
            return False
        if not self.package_resolved_path.is_file():
            return False
        return shell.success("swift", "package", "describe", cwd=self.root)

    @property
    def package_resolved_path(self) -> Path:
        return self.root / "Package.resolved"

    def enumerate_dependencies(self) -> list[Dependency]:
        deps: list[Dependency] = []
        for index, pin in enumerate(self._pins()):
            errors: list[str] = []
            name = ""
            version = ""
            path = ""
            try:
                if not isinstance(pin, dict):
                    raise DependencyResolutionError(f"pin #{index} is not an object")
                # format v1 uses package/repositoryURL, v2 identity/location
                name = pin.get("package") or pin.get("identity") or ""
                if not isinstance(name, str):
                    name = ""
                    raise DependencyResolutionError(f"pin #{index} has a non-string name")
                if not name:
                    raise DependencyResolutionError(f"pin #{index} has no package name")
                url = pin.get("repositoryURL") or pin.get("location") or ""
                version = (pin.get("state") or {}).get("version") or ""
                if not isinstance(version, str):
                    version = ""
                    raise DependencyResolutionError(f"{name}: pin version is not a string")
                if not version:
                    raise DependencyResolutionError(f"{name}: pin has no resolved version")
                if not isinstance(url, str) or not url:
                    raise DependencyResolutionError(f"{name}: pin has no repository URL")
                path = str(self.root / ".build" / "checkouts" / _checkout_name(url))
            except (DependencyResolutionError, AttributeError, TypeError) as exc:
                errors.append(str(exc))

            deps.append(Dependency(name=name, version=version, path=path, errors=errors))
        return deps

    def _pins(self) -> list[Any]:
        try:
            data = json.loads(self.package_resolved_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise SourceError(f"unable to read Package.resolved: {exc}") from exc

        if not isinstance(data, dict):
            raise SourceError("unable to read Package.resolved: top level is not an object")
        pins = data.get("pins")
        if pins is None and isinstance(data.get("object"), dict):
            pins = data["object"].get("pins")
        if not isinstance(pins, list):
            raise SourceError("unable to read Package.resolved: no pins list")
        return pins
