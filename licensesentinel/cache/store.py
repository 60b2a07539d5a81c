"""Cache record store: on-disk layout and atomic record I/O."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import structlog

from licensesentinel.cache.record import CacheRecord, dumps, loads
from licensesentinel.exceptions import CacheWriteError, RecordNotFound, RecordParseError
from licensesentinel.sources.models import CacheKey

log = structlog.get_logger("licensesentinel.cache")

RECORD_SUFFIX = ".txt"


def validate_key(key: CacheKey) -> None:
    """Raise ValueError unless *key* maps to a file inside its type directory.

    ``@`` separates name and version in file names, so a name may only use it
    as a leading scope marker (``@babel/core``) and a version not at all.
    """
    if not key.source_type or not key.name:
        raise ValueError(f"cache key needs a source type and a name: {key!r}")
    if not isinstance(key.name, str) or not isinstance(key.source_type, str):
        raise ValueError(f"cache key parts must be strings: {key!r}")
    if not _is_plain_part(key.source_type):
        raise ValueError(f"invalid source type for a cache path: {key.source_type!r}")
    if not all(_is_plain_part(part) for part in key.name.split("/")):
        raise ValueError(f"invalid dependency name for a cache path: {key.name!r}")
    if "@" in key.name[1:]:
        raise ValueError(f"'@' is reserved for version suffixes: {key.name!r}")
    if key.version is not None:
        if not isinstance(key.version, str) or not _is_plain_part(key.version):
            raise ValueError(f"invalid version for a cache path: {key.version!r}")
        if "@" in key.version:
            raise ValueError(f"'@' is reserved for version suffixes: {key.version!r}")


def _is_plain_part(part: str) -> bool:
    return part not in ("", ".", "..") and "/" not in part and "\\" not in part


def path_for(cache_root: Path | str, key: CacheKey) -> Path:
    """Return the record path for *key* under *cache_root*. No I/O.

    ``<root>/<type>/<name>.txt``, or ``<root>/<type>/<name>@<version>.txt``
    for keys that carry a version. Raises ValueError for keys rejected by
    ``validate_key``.
    """
    validate_key(key)
    stem = key.name if key.version is None else f"{key.name}@{key.version}"
    return Path(cache_root) / key.source_type / f"{stem}{RECORD_SUFFIX}"


def exists(path: Path | str) -> bool:
    return Path(path).is_file()


def read(path: Path | str) -> CacheRecord:
    """Load the record at *path*.

    Raises RecordNotFound if the file is absent and RecordParseError if it
    cannot be opened, decoded or parsed.
    """
    try:
        with open(path, encoding="utf-8", newline="") as f:
            content = f.read()
    except FileNotFoundError as exc:
        raise RecordNotFound(str(path)) from exc
    except UnicodeDecodeError as exc:
        raise RecordParseError(f"{path}: not valid UTF-8") from exc
    except OSError as exc:
        raise RecordParseError(f"{path}: {exc}") from exc

    try:
        return loads(content)
    except RecordParseError as exc:
        raise RecordParseError(f"{path}: {exc}") from exc


def write(path: Path | str, record: CacheRecord) -> None:
    """Write *record* to *path*, replacing any existing file atomically.

    The record is serialized before the destination is touched, and the
    bytes go to a temporary sibling that is renamed into place, so a failed
    write leaves the previous file as it was.
    """
    dest = Path(path)
    try:
        content = dumps(record)
    except ValueError as exc:
        raise CacheWriteError(f"{dest}: invalid record: {exc}") from exc

    tmp_name: str | None = None
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            newline="",
            dir=dest.parent,
            prefix=f".{dest.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp_name = tmp.name
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp_name, dest)
        tmp_name = None
    except (OSError, UnicodeError) as exc:
        raise CacheWriteError(f"{dest}: {exc}") from exc
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass

    log.debug("cache.record_written", path=str(dest), name=record.name, version=record.version)
