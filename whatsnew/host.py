from __future__ import annotations

import logging
from enum import Enum
from typing import Awaitable, Callable, Optional, Protocol

from .changelog import Changelog, parse_changelog
from .db import CursorStore
from .render import wrap_dialog


DIALOG_TITLE = "Extension updated"
NOTIFICATION_TITLE = "Extension updated"
NOTIFICATION_MESSAGE = "A new version is installed, see what changed"


class DisplayMode(str, Enum):
    NEW = "new"
    IMPORTANT = "important"
    NEVER = "never"


class Host(Protocol):
    """What the surrounding application offers for showing the changelog."""

    async def show_dialog(self, title: str, html: str, on_acknowledge: Callable[[], None]) -> None:
        ...

    async def send_notification(self, title: str, message: str, action: Callable[[], Awaitable[None]]) -> None:
        ...


async def show_changelog(host: Host, changelog: Changelog, store: CursorStore) -> None:
    newest = changelog.newest

    def acknowledge() -> None:
        if newest is not None:
            store.acknowledge(newest.version, newest.date)

    await host.show_dialog(DIALOG_TITLE, wrap_dialog(changelog.html), acknowledge)


def should_show(changelog: Changelog, mode: DisplayMode) -> bool:
    if mode is DisplayMode.NEVER:
        return False
    if mode is DisplayMode.NEW:
        return changelog.updated
    return changelog.should_display


async def validate_changelog(
    host: Host,
    store: CursorStore,
    text: Optional[str] = None,
    mode: DisplayMode = DisplayMode.IMPORTANT,
) -> Changelog:
    """Parse the changelog and tell the host about anything the user has not seen.

    An update records the newest release as last used and raises a
    notification whose action opens the changelog. The dialog itself is shown
    according to ``mode``.
    """
    changelog = await parse_changelog(text, store.load())
    newest = changelog.newest

    if changelog.updated and newest is not None:
        store.mark_used(newest.version, newest.date)

        async def open_changelog() -> None:
            await show_changelog(host, changelog, store)

        await host.send_notification(NOTIFICATION_TITLE, NOTIFICATION_MESSAGE, open_changelog)

    if should_show(changelog, mode):
        logging.info(f"Showing changelog ({len(changelog.releases)} releases)")
        await show_changelog(host, changelog, store)
    else:
        logging.debug("Nothing new to show in the changelog")

    return changelog
