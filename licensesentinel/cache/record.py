"""Cache record model and its text serialization.

A record file is a YAML front-matter block followed by license text sections::

    ---
    type: yarn
    name: foo
    version: 1.0.0
    license: mit
    metadata:
      homepage: https://example.com
    licenses:
    - sources: LICENSE
      length: 1071
    ---
    === LICENSE
    <license text, exactly ``length`` characters>

Every section body is followed by a single newline separator. The ``length``
entries make section boundaries unambiguous even when a license body contains
lines that look like headers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import yaml

from licensesentinel.exceptions import RecordParseError

DELIMITER = "---\n"
SECTION_PREFIX = "=== "

_REQUIRED_FIELDS = ("type", "name", "version", "license")


@dataclass(frozen=True)
class LicenseText:
    """Raw license text and the file it was read from."""

    sources: str
    text: str


@dataclass
class CacheRecord:
    """License metadata for one dependency at its last-audited version."""

    type: str
    name: str
    version: str
    license: str = "none"
    licenses: list[LicenseText] = field(default_factory=list)
    metadata: dict[str, str] = field(default_factory=dict)

    def validate(self) -> None:
        """Raise ValueError if the record cannot be serialized faithfully."""
        for key in _REQUIRED_FIELDS:
            value = getattr(self, key)
            if not isinstance(value, str):
                raise ValueError(f"{key} must be a string, got {type(value).__name__}")
        if not self.type or not self.name:
            raise ValueError("type and name must be non-empty")
        for lic in self.licenses:
            if not isinstance(lic.sources, str) or not isinstance(lic.text, str):
                raise ValueError("license sources and text must be strings")
            if not lic.sources or "\n" in lic.sources:
                raise ValueError(f"invalid license source name: {lic.sources!r}")
        for k, v in self.metadata.items():
            if not isinstance(k, str) or not isinstance(v, str):
                raise ValueError(f"metadata entries must be strings: {k!r}")
        for value in self._strings():
            try:
                value.encode("utf-8")
            except UnicodeEncodeError as exc:
                raise ValueError(f"not encodable as UTF-8: {value!r}") from exc

    def _strings(self):
        yield from (self.type, self.name, self.version, self.license)
        for lic in self.licenses:
            yield lic.sources
            yield lic.text
        for k, v in self.metadata.items():
            yield k
            yield v


def dumps(record: CacheRecord) -> str:
    """Serialize *record* to its on-disk text form."""
    record.validate()
    front: dict[str, Any] = {
        "type": record.type,
        "name": record.name,
        "version": record.version,
        "license": record.license,
    }
    if record.metadata:
        front["metadata"] = dict(sorted(record.metadata.items()))
    front["licenses"] = [
        {"sources": lic.sources, "length": len(lic.text)} for lic in record.licenses
    ]

    parts = [
        DELIMITER,
        yaml.safe_dump(front, sort_keys=False, default_flow_style=False, allow_unicode=True),
        DELIMITER,
    ]
    for lic in record.licenses:
        parts.append(f"{SECTION_PREFIX}{lic.sources}\n")
        parts.append(lic.text)
        parts.append("\n")
    return "".join(parts)


def loads(content: str) -> CacheRecord:
    """Parse a record from its text form, raising RecordParseError."""
    if not content.startswith(DELIMITER):
        raise RecordParseError("missing front matter delimiter")

    end = content.find("\n" + DELIMITER, len(DELIMITER) - 1)
    if end == -1:
        raise RecordParseError("unterminated front matter")
    front_text = content[len(DELIMITER) : end + 1]
    body = content[end + 1 + len(DELIMITER) :]

    try:
        front = yaml.safe_load(front_text)
    except yaml.YAMLError as exc:
        raise RecordParseError(f"invalid front matter: {exc}") from exc
    if not isinstance(front, dict):
        raise RecordParseError("front matter must be a mapping")

    for key in _REQUIRED_FIELDS:
        if key not in front:
            raise RecordParseError(f"missing required field: {key}")
        if front[key] is None:
            raise RecordParseError(f"empty required field: {key}")
        # bare scalars like `version: 1.0` load as numbers
        front[key] = str(front[key])

    metadata = front.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise RecordParseError("metadata must be a mapping")

    entries = front.get("licenses") or []
    if not isinstance(entries, list):
        raise RecordParseError("licenses must be a list")

    licenses = _parse_sections(body, entries)

    return CacheRecord(
        type=front["type"],
        name=front["name"],
        version=front["version"],
        license=front["license"],
        licenses=licenses,
        metadata={str(k): "" if v is None else str(v) for k, v in metadata.items()},
    )


def _parse_sections(body: str, entries: list[Any]) -> list[LicenseText]:
    licenses: list[LicenseText] = []
    pos = 0
    for entry in entries:
        if not isinstance(entry, dict) or "sources" not in entry or "length" not in entry:
            raise RecordParseError(f"malformed licenses entry: {entry!r}")
        sources = str(entry["sources"])
        length = entry["length"]
        if not isinstance(length, int) or length < 0:
            raise RecordParseError(f"invalid length for {sources}: {length!r}")

        header = f"{SECTION_PREFIX}{sources}\n"
        if not body.startswith(header, pos):
            raise RecordParseError(f"expected section header for {sources}")
        start = pos + len(header)
        stop = start + length
        if body[stop : stop + 1] != "\n":
            raise RecordParseError(f"section {sources} is truncated")
        licenses.append(LicenseText(sources=sources, text=body[start:stop]))
        pos = stop + 1

    if body[pos:].strip():
        raise RecordParseError("unexpected content after license sections")
    return licenses
