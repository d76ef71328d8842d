"""Shared fixtures for the whatsnew tests."""

from datetime import datetime, timezone

import pytest

from whatsnew.db import CursorStore, Database
from whatsnew.versions import SeenCursor, VersionStamp


SAMPLE = """# Changelog

## [3.3.0] - 2023-03-05

Read this before updating.

### Added

- **Breaking**: removed X
- Plain change

### Unknown

- Not modelled

## 3.2.8 - 2023-02-12

### fixed

* __Note__: spaced out
- **Note** unrelated text

## Unreleased - 2023-01-01

### Changed

- Something old

[3.3.0]: https://example.com/compare/v3.2.8...v3.3.0
"""


def epoch_ms(year: int, month: int, day: int) -> int:
    return int(datetime(year, month, day, tzinfo=timezone.utc).timestamp() * 1000)


@pytest.fixture
def sample() -> str:
    return SAMPLE


@pytest.fixture
def cursor() -> SeenCursor:
    return SeenCursor(
        last_used=VersionStamp(version="0.0.0"),
        last_seen=VersionStamp(version="3.2.8", date=epoch_ms(2023, 2, 12)),
    )


@pytest.fixture
def db(tmp_path) -> Database:
    return Database(str(tmp_path / "data" / "whatsnew.db"))


@pytest.fixture
def store(db) -> CursorStore:
    return CursorStore(db, "tests/common-changelog")
