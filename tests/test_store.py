"""Tests for the cache record store."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from licensesentinel.cache import store
from licensesentinel.cache.record import CacheRecord, LicenseText
from licensesentinel.exceptions import CacheWriteError, RecordNotFound, RecordParseError
from licensesentinel.sources.models import CacheKey


def _record(**overrides) -> CacheRecord:
    values = {
        "type": "swift",
        "name": "foo",
        "version": "1.0.0",
        "license": "mit",
        "licenses": [LicenseText(sources="LICENSE", text="MIT License\n")],
    }
    values.update(overrides)
    return CacheRecord(**values)


class TestPathFor:
    def test_type_and_name(self):
        path = store.path_for(Path("/cache"), CacheKey("swift", "foo"))
        assert path == Path("/cache/swift/foo.txt")

    def test_versioned_key(self):
        path = store.path_for("/cache", CacheKey("yarn", "lodash", "4.17.21"))
        assert path == Path("/cache/yarn/lodash@4.17.21.txt")

    def test_scoped_name_nests(self):
        path = store.path_for("/cache", CacheKey("yarn", "@babel/core"))
        assert path == Path("/cache/yarn/@babel/core.txt")

    def test_empty_name_rejected(self):
        with pytest.raises(ValueError):
            store.path_for("/cache", CacheKey("yarn", ""))

    def test_empty_type_rejected(self):
        with pytest.raises(ValueError):
            store.path_for("/cache", CacheKey("", "foo"))

    @pytest.mark.parametrize(
        "key",
        [
            CacheKey("yarn", "../escape"),
            CacheKey("yarn", "a/../../b"),
            CacheKey("yarn", "/abs"),
            CacheKey("yarn", "a\\b"),
            CacheKey("..", "foo"),
            CacheKey("yarn", "foo", "../1.0"),
        ],
    )
    def test_names_leaving_type_directory_rejected(self, key):
        with pytest.raises(ValueError):
            store.path_for("/cache", key)

    def test_at_sign_reserved_for_versions(self):
        assert store.path_for("/cache", CacheKey("yarn", "a", "1")) == Path("/cache/yarn/a@1.txt")
        with pytest.raises(ValueError, match="reserved"):
            store.path_for("/cache", CacheKey("yarn", "a@1"))
        with pytest.raises(ValueError, match="reserved"):
            store.path_for("/cache", CacheKey("yarn", "a", "1@2"))

    def test_non_string_name_rejected(self):
        with pytest.raises(ValueError):
            store.validate_key(CacheKey("swift", {"x": 1}))


class TestReadWrite:
    def test_round_trip(self, tmp_path):
        path = tmp_path / "swift" / "foo.txt"
        record = _record(metadata={"homepage": "https://example.com"})
        store.write(path, record)
        assert store.read(path) == record

    def test_write_creates_parent_directories(self, tmp_path):
        path = tmp_path / "a" / "b" / "c" / "foo.txt"
        store.write(path, _record())
        assert path.is_file()
        assert store.exists(path)

    def test_write_overwrites(self, tmp_path):
        path = tmp_path / "foo.txt"
        store.write(path, _record(version="1.0.0"))
        store.write(path, _record(version="2.0.0"))
        assert store.read(path).version == "2.0.0"

    def test_write_leaves_no_temp_files(self, tmp_path):
        path = tmp_path / "foo.txt"
        store.write(path, _record())
        assert [p.name for p in tmp_path.iterdir()] == ["foo.txt"]

    def test_read_missing(self, tmp_path):
        with pytest.raises(RecordNotFound):
            store.read(tmp_path / "missing.txt")
        assert not store.exists(tmp_path / "missing.txt")

    def test_read_malformed_includes_path(self, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_text("not a record\n")
        with pytest.raises(RecordParseError, match="bad.txt"):
            store.read(path)

    def test_read_directory(self, tmp_path):
        with pytest.raises(RecordParseError):
            store.read(tmp_path)

    def test_read_non_utf8(self, tmp_path):
        path = tmp_path / "bad.txt"
        path.write_bytes(b"---\n\xff\xfe\n---\n")
        with pytest.raises(RecordParseError):
            store.read(path)


class TestWriteFailures:
    def test_invalid_record_writes_nothing(self, tmp_path):
        path = tmp_path / "foo.txt"
        with pytest.raises(CacheWriteError):
            store.write(path, _record(name=""))
        assert not path.exists()

    def test_invalid_record_keeps_previous_file(self, tmp_path):
        path = tmp_path / "foo.txt"
        store.write(path, _record())
        before = path.read_bytes()
        with pytest.raises(CacheWriteError):
            store.write(path, _record(version=None))
        assert path.read_bytes() == before

    def test_failed_replace_keeps_previous_file(self, tmp_path):
        path = tmp_path / "foo.txt"
        store.write(path, _record())
        before = path.read_bytes()
        with patch("licensesentinel.cache.store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(CacheWriteError, match="disk full"):
                store.write(path, _record(version="9.9.9"))
        assert path.read_bytes() == before
        assert [p.name for p in tmp_path.iterdir()] == ["foo.txt"]

    def test_unencodable_text_is_write_error(self, tmp_path):
        path = tmp_path / "foo.txt"
        record = _record(licenses=[LicenseText(sources="LICENSE-\udcff", text="x")])
        with pytest.raises(CacheWriteError):
            store.write(path, record)
        assert list(tmp_path.iterdir()) == []

    def test_unwritable_parent(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not a directory")
        with pytest.raises(CacheWriteError):
            store.write(blocker / "foo.txt", _record())
