"""Tests for the cache record text format."""

from __future__ import annotations

import pytest

from licensesentinel.cache.record import CacheRecord, LicenseText, dumps, loads
from licensesentinel.exceptions import RecordParseError


def _record(**overrides) -> CacheRecord:
    values = {
        "type": "yarn",
        "name": "foo",
        "version": "1.0.0",
        "license": "mit",
        "licenses": [LicenseText(sources="LICENSE", text="MIT text\n")],
        "metadata": {"homepage": "https://example.com"},
    }
    values.update(overrides)
    return CacheRecord(**values)


class TestDumps:
    def test_front_matter_key_order(self):
        content = dumps(_record())
        assert content.startswith(
            "---\ntype: yarn\nname: foo\nversion: 1.0.0\nlicense: mit\nmetadata:\n"
        )

    def test_license_section_layout(self):
        content = dumps(_record())
        assert content.endswith("---\n=== LICENSE\nMIT text\n\n")

    def test_metadata_keys_sorted(self):
        content = dumps(_record(metadata={"zeta": "1", "alpha": "2"}))
        assert content.index("alpha") < content.index("zeta")

    def test_no_metadata_key_when_empty(self):
        assert "metadata" not in dumps(_record(metadata={}))

    def test_rejects_empty_name(self):
        with pytest.raises(ValueError):
            dumps(_record(name=""))

    def test_rejects_multiline_source_name(self):
        with pytest.raises(ValueError):
            dumps(_record(licenses=[LicenseText(sources="LICENSE\nx", text="")]))

    def test_rejects_non_string_version(self):
        with pytest.raises(ValueError):
            dumps(_record(version=1))

    def test_rejects_unencodable_source_name(self):
        # non-UTF-8 file names come back from iterdir with surrogate escapes
        with pytest.raises(ValueError, match="UTF-8"):
            dumps(_record(licenses=[LicenseText(sources="LICENSE-\udcff", text="x")]))


class TestRoundTrip:
    def test_full_record(self):
        record = _record()
        assert loads(dumps(record)) == record

    def test_multiple_sections_and_no_trailing_newline(self):
        record = _record(
            licenses=[
                LicenseText(sources="COPYING", text="no newline at end"),
                LicenseText(sources="LICENSE", text="second\n\n\n"),
            ]
        )
        assert loads(dumps(record)) == record

    def test_body_containing_header_lines(self):
        text = "=== NOTICE\n---\nlooks like structure\n"
        record = _record(licenses=[LicenseText(sources="LICENSE", text=text)])
        assert loads(dumps(record)).licenses[0].text == text

    def test_crlf_preserved(self):
        record = _record(licenses=[LicenseText(sources="LICENSE", text="a\r\nb\r\n")])
        assert loads(dumps(record)).licenses[0].text == "a\r\nb\r\n"

    def test_empty_licenses(self):
        record = _record(license="none", licenses=[])
        assert loads(dumps(record)) == record

    def test_version_that_looks_numeric(self):
        record = _record(version="1.0")
        assert loads(dumps(record)).version == "1.0"

    def test_reserialization_is_byte_identical(self):
        content = dumps(_record())
        assert dumps(loads(content)) == content

    def test_unicode_text(self):
        record = _record(licenses=[LicenseText(sources="LICENSE", text="© Ünïcode\n")])
        assert loads(dumps(record)) == record


class TestLoadsErrors:
    def test_missing_front_matter(self):
        with pytest.raises(RecordParseError, match="delimiter"):
            loads("type: yarn\n")

    def test_unterminated_front_matter(self):
        with pytest.raises(RecordParseError, match="unterminated"):
            loads("---\ntype: yarn\n")

    def test_missing_required_field(self):
        content = "---\ntype: yarn\nname: foo\nlicense: mit\n---\n"
        with pytest.raises(RecordParseError, match="version"):
            loads(content)

    def test_invalid_yaml(self):
        with pytest.raises(RecordParseError, match="invalid front matter"):
            loads("---\ntype: [unclosed\n---\n")

    def test_front_matter_not_mapping(self):
        with pytest.raises(RecordParseError, match="mapping"):
            loads("---\n- a\n- b\n---\n")

    def test_truncated_section(self):
        content = dumps(_record())
        with pytest.raises(RecordParseError, match="truncated"):
            loads(content[:-5])

    def test_missing_section_header(self):
        content = (
            "---\ntype: yarn\nname: foo\nversion: 1.0.0\nlicense: mit\n"
            "licenses:\n- sources: LICENSE\n  length: 3\n---\nabc\n"
        )
        with pytest.raises(RecordParseError, match="header"):
            loads(content)

    def test_trailing_garbage(self):
        content = dumps(_record()) + "extra\n"
        with pytest.raises(RecordParseError, match="unexpected content"):
            loads(content)

    def test_numeric_version_is_coerced(self):
        record = loads("---\ntype: swift\nname: foo\nversion: 2\nlicense: mit\n---\n")
        assert record.version == "2"
        assert record.licenses == []
