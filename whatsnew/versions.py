from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

import semver
from dateutil.parser import parse as dtparse
from pydantic import BaseModel, ConfigDict, ValidationError


ZERO = "0.0.0"
# Fills in the month and day a release date leaves out
DATE_DEFAULT = datetime(2001, 1, 1)


class VersionStamp(BaseModel):
    """A persisted version with an optional epoch-millisecond date."""

    model_config = ConfigDict(frozen=True)

    version: str
    date: Optional[int] = None

    @classmethod
    def load(cls, value: Any, default: "VersionStamp") -> "VersionStamp":
        try:
            return cls.model_validate(value)
        except ValidationError:
            logging.info(f"No valid stored version in {value!r}, using default {default.version}")
            return default


DEFAULT_LAST_USED = VersionStamp(version=ZERO)
# Baseline for users who upgraded from a release without the changelog dialog
DEFAULT_LAST_SEEN = VersionStamp(
    version="3.2.8",
    date=int(datetime(2023, 2, 12, tzinfo=timezone.utc).timestamp() * 1000),
)


@dataclass(frozen=True)
class SeenCursor:
    last_used: VersionStamp = DEFAULT_LAST_USED
    last_seen: VersionStamp = DEFAULT_LAST_SEEN


def parse_version(text: str) -> Optional[str]:
    """Semantic version in ``text``, a leading ``v`` or ``=`` is allowed."""
    try:
        return str(semver.Version.parse(text.strip().lstrip("=v")))
    except ValueError:
        return None


def parse_date(text: str) -> Optional[int]:
    """Epoch milliseconds for ``text``, naive dates are taken as UTC."""
    if not text.strip():
        return None
    try:
        parsed = dtparse(text.strip(), default=DATE_DEFAULT)
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def _key(version: Optional[str]) -> semver.Version:
    return semver.Version.parse(parse_version(version or ZERO) or ZERO)


def version_lt(a: Optional[str], b: Optional[str]) -> bool:
    return _key(a) < _key(b)


def is_seen(version: Optional[str], date: Optional[int], last_seen: VersionStamp) -> bool:
    if version is not None and parse_version(last_seen.version) is not None:
        if _key(last_seen.version) >= _key(version):
            return True
    return last_seen.date is not None and date is not None and last_seen.date >= date


def is_important(version: Optional[str], has_notice: bool, breaking: bool, last_seen: VersionStamp) -> bool:
    if version is not None and parse_version(last_seen.version) is not None:
        if _key(version).major > _key(last_seen.version).major:
            return True
    return has_notice or breaking


def is_updated(last_used: VersionStamp, newest: Optional[str]) -> bool:
    return version_lt(last_used.version, newest)
