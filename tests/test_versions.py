"""Tests for version parsing and the seen-state rules."""

import pytest

from whatsnew.versions import (
    DEFAULT_LAST_SEEN,
    VersionStamp,
    is_important,
    is_seen,
    is_updated,
    parse_date,
    parse_version,
    version_lt,
)


LAST_SEEN = VersionStamp(version="3.2.8", date=1676160000000)


class TestParsing:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("3.3.0", "3.3.0"),
            ("v3.3.0", "3.3.0"),
            (" 4.0.0 ", "4.0.0"),
            ("3.3.0-beta.1", "3.3.0-beta.1"),
            ("Unreleased", None),
            ("", None),
        ],
    )
    def test_parse_version(self, text, expected):
        assert parse_version(text) == expected

    def test_parse_date_is_utc(self):
        assert parse_date("2023-02-12") == 1676160000000

    @pytest.mark.parametrize("text", ["3.3", "4", "1.0.0.0", "3.3.0rc1"])
    def test_not_semantic_version(self, text):
        """Versions must carry major, minor and patch and nothing else."""
        assert parse_version(text) is None

    @pytest.mark.parametrize(
        "text, expected",
        [("2023", 1672531200000), ("2023-03", 1677628800000), ("March 2023", 1677628800000)],
    )
    def test_partial_date_starts_the_period(self, text, expected):
        """Missing month and day fall on the first, whatever today is."""
        assert parse_date(text) == expected

    @pytest.mark.parametrize("text", ["", "   ", "someday"])
    def test_unparseable_date(self, text):
        assert parse_date(text) is None

    def test_default_last_seen(self):
        """The baseline predates the changelog dialog."""
        assert DEFAULT_LAST_SEEN.version == "3.2.8"
        assert DEFAULT_LAST_SEEN.date == 1676160000000


class TestSeen:
    def test_same_version(self):
        assert is_seen("3.2.8", None, LAST_SEEN) is True

    def test_newer_version_without_date(self):
        assert is_seen("3.3.0", None, LAST_SEEN) is False

    def test_newer_version_with_old_date(self):
        """The date check applies even when the version is newer."""
        assert is_seen("3.3.0", 1676160000000, LAST_SEEN) is True

    def test_unparseable_version_falls_back_to_date(self):
        assert is_seen(None, 1672531200000, LAST_SEEN) is True
        assert is_seen(None, 1677974400000, LAST_SEEN) is False

    def test_cursor_without_date(self):
        assert is_seen(None, 0, VersionStamp(version="3.2.8")) is False


class TestImportant:
    def test_major_bump(self):
        assert is_important("4.0.0", False, False, LAST_SEEN) is True

    def test_minor_bump(self):
        assert is_important("3.3.0", False, False, LAST_SEEN) is False

    def test_notice(self):
        assert is_important("3.3.0", True, False, LAST_SEEN) is True

    def test_breaking(self):
        assert is_important(None, False, True, LAST_SEEN) is True

    def test_invalid_cursor_version(self):
        """An unreadable cursor version never makes a release important by itself."""
        assert is_important("4.0.0", False, False, VersionStamp(version="garbage")) is False


class TestUpdated:
    def test_newer_release(self):
        assert is_updated(VersionStamp(version="0.0.0"), "3.3.0") is True

    def test_same_release(self):
        assert is_updated(VersionStamp(version="3.3.0"), "3.3.0") is False

    def test_missing_newest(self):
        assert is_updated(VersionStamp(version="0.0.0"), None) is False

    def test_prerelease_orders_before_release(self):
        assert version_lt("3.3.0-rc.1", "3.3.0") is True
