from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from importlib import resources
from typing import Dict, List, Optional, Sequence, Tuple

from .document import Document, Line, segment
from .markup import empty, markdown_to_html, strip_markdown
from .render import OPEN_BLOCK, join_document, render_release
from .versions import SeenCursor, VersionStamp, is_important, is_seen, is_updated, parse_date, parse_version


GROUP_LABELS = ("changed", "added", "removed", "fixed")
BOLD_MARKERS = ("**", "__")
PREFIX_SEPARATOR = ":"
DATE_SEPARATOR = " - "


@dataclass(frozen=True)
class Title:
    line: Line
    html: str


@dataclass(frozen=True)
class Change:
    line: Line
    prefix: Optional[str] = None
    breaking: bool = False


@dataclass(frozen=True)
class ChangeGroup:
    line: Line
    changes: Tuple[Change, ...]

    @property
    def label(self) -> str:
        return group_label(self.line)


@dataclass(frozen=True)
class Release:
    line: Line
    version: Optional[str]
    date: Optional[int]
    notice: Tuple[Line, ...]
    change_groups: Tuple[ChangeGroup, ...]
    seen: bool
    important: bool
    html: str

    @property
    def heading(self) -> str:
        return self.line.text

    @property
    def changes(self) -> List[Change]:
        return [change for group in self.change_groups for change in group.changes]

    @property
    def has_notice(self) -> bool:
        return any(not line.blank for line in self.notice)

    @property
    def is_open(self) -> bool:
        return self.important and not self.seen


@dataclass(frozen=True)
class Changelog:
    raw: str
    headings: Tuple[Line, ...]
    title: Optional[Title]
    releases: Tuple[Release, ...]
    references: Tuple[Line, ...]
    ignored: Tuple[Line, ...]
    html: str
    should_display: bool
    updated: bool

    @property
    def newest(self) -> Optional[Release]:
        return self.releases[0] if self.releases else None


# Structure before any markdown conversion or seen-state evaluation

@dataclass(frozen=True)
class GroupOutline:
    line: Line
    changes: Tuple[Line, ...]


@dataclass(frozen=True)
class ReleaseOutline:
    line: Line
    end: int
    notice: Tuple[Line, ...]
    groups: Tuple[GroupOutline, ...]


@dataclass(frozen=True)
class Outline:
    title: Optional[Line]
    releases: Tuple[ReleaseOutline, ...]
    ignored: Tuple[Line, ...]


def group_label(line: Line) -> str:
    return line.text.lower().lstrip()[4:].strip()


def is_group_heading(line: Line) -> bool:
    return line.startswith("### ") and group_label(line) in GROUP_LABELS


def is_change(line: Line) -> bool:
    return line.startswith("- ") or line.startswith("* ")


def _following(headings: Sequence[Line], marker: str, end: int) -> Dict[int, int]:
    """Map each heading to the line of the next heading starting with ``marker``."""
    following: Dict[int, int] = {}
    stop = end
    for heading in reversed(headings):
        following[heading.number] = stop
        if heading.startswith(marker):
            stop = heading.number
    return following


def build_outline(document: Document) -> Outline:
    end = document.end
    headings = document.headings
    title = next((heading for heading in headings if heading.startswith("# ")), None)
    next_release = _following(headings, "## ", end)
    next_subsection = _following(headings, "### ", end)
    next_heading = _following(headings, "#", end)

    # Every heading between two releases belongs to the earlier one
    owned: Dict[int, List[Line]] = {}
    current: Optional[Line] = None
    for heading in headings:
        if heading.startswith("## "):
            current = heading
            owned[current.number] = []
        elif current is not None and is_group_heading(heading):
            owned[current.number].append(heading)

    excluded = {line.number for line in document.references}
    if title is not None:
        excluded.add(title.number)

    releases = []
    for heading in headings:
        if not heading.startswith("## "):
            continue
        stop = next_release[heading.number]
        notice = tuple(
            line for line in document.span(heading.number, min(next_subsection[heading.number], stop))
            if line.number not in excluded
        )
        groups = tuple(
            GroupOutline(
                line=group,
                changes=tuple(
                    line for line in document.span(group.number, min(next_heading[group.number], stop))
                    if is_change(line)
                ),
            )
            for group in owned[heading.number]
        )
        releases.append(ReleaseOutline(line=heading, end=stop, notice=notice, groups=groups))

    claimed = set(excluded)
    for release in releases:
        claimed.add(release.line.number)
        claimed.update(line.number for line in release.notice)
        for group in release.groups:
            claimed.add(group.line.number)
            claimed.update(line.number for line in group.changes)
    ignored = tuple(line for line in document.lines if line.number not in claimed)

    return Outline(title=title, releases=tuple(releases), ignored=ignored)


def bold_prefix(text: str) -> Optional[str]:
    """Bold lead-in of a change line such as ``**Breaking**:``.

    The separator must sit right after the closing markers or right before
    them, so both ``**Note**:`` and ``**Note:**`` count as prefixes.
    """
    sliced = text.lstrip()[2:].lstrip()
    bold = next((marker for marker in BOLD_MARKERS if sliced.startswith(marker)), None)
    if bold is None:
        return None

    bold_end = sliced.find(bold, len(bold))
    separator = sliced.find(PREFIX_SEPARATOR, len(bold))
    if separator == bold_end + len(bold) or separator == bold_end - 1:
        return sliced[:max(separator + len(PREFIX_SEPARATOR), bold_end + len(bold))]
    return None


async def classify(line: Line) -> Change:
    prefix = bold_prefix(line.text)
    if prefix is None:
        return Change(line=line)
    stripped = (await strip_markdown(prefix)).lower()
    return Change(
        line=line,
        prefix=prefix,
        breaking=stripped == "breaking:" or stripped.endswith("(breaking):"),
    )


async def release_version(heading: str, references: Sequence[str]) -> Optional[str]:
    label = heading.split(DATE_SEPARATOR)[0].strip()[3:]
    return parse_version(await strip_markdown(label, references))


async def release_date(heading: str) -> Optional[int]:
    parts = heading.split(DATE_SEPARATOR)
    if len(parts) < 2:
        return None
    return parse_date(await strip_markdown(parts[1].strip()))


async def _group(outline: GroupOutline) -> ChangeGroup:
    changes = await asyncio.gather(*(classify(line) for line in outline.changes))
    return ChangeGroup(line=outline.line, changes=tuple(changes))


async def _release(outline: ReleaseOutline, references: Sequence[str], last_seen: VersionStamp) -> Release:
    heading = outline.line.text
    version, date, *groups = await asyncio.gather(
        release_version(heading, references),
        release_date(heading),
        *(_group(group) for group in outline.groups),
    )
    if version is None:
        logging.debug(f"Release on line {outline.line.number} has no parseable version: {heading!r}")

    has_notice = any(not line.blank for line in outline.notice)
    breaking = any(change.breaking for group in groups for change in group.changes)
    seen = is_seen(version, date, last_seen)
    important = is_important(version, has_notice, breaking, last_seen)

    html = await render_release(
        heading,
        [line.text for line in outline.notice],
        [(group.line.text, [change.line.text for change in group.changes]) for group in groups],
        references,
        important and not seen,
    )
    return Release(
        line=outline.line,
        version=version,
        date=date,
        notice=outline.notice,
        change_groups=tuple(groups),
        seen=seen,
        important=important,
        html=html,
    )


def bundled_changelog() -> str:
    return resources.files(__package__).joinpath("CHANGELOG.md").read_text(encoding="utf-8")


async def parse_changelog(changelog: Optional[str] = None, cursor: Optional[SeenCursor] = None) -> Changelog:
    cursor = cursor or SeenCursor()
    document = segment(bundled_changelog() if changelog is None else changelog)
    outline = build_outline(document)
    references = document.reference_text

    title_html, releases = await asyncio.gather(
        markdown_to_html(outline.title.text, references) if outline.title else empty(),
        asyncio.gather(*(_release(release, references, cursor.last_seen) for release in outline.releases)),
    )
    title = Title(line=outline.title, html=title_html) if outline.title else None
    html = join_document(title_html, [release.html for release in releases])
    newest = releases[0].version if releases else None

    logging.debug(
        f"Parsed changelog: {len(releases)} releases, {len(document.references)} references, "
        f"{len(outline.ignored)} ignored lines"
    )
    return Changelog(
        raw=document.raw,
        headings=document.headings,
        title=title,
        releases=tuple(releases),
        references=document.references,
        ignored=outline.ignored,
        html=html,
        should_display=OPEN_BLOCK in html,
        updated=is_updated(cursor.last_used, newest),
    )
