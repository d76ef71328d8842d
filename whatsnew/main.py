from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Awaitable, Callable, List, Optional

import httpx
from dotenv import load_dotenv

from .changelog import bundled_changelog
from .config import Config
from .db import CursorStore, Database
from .host import show_changelog, validate_changelog


async def fetch_changelog(url: str) -> str:
    logging.info(f"Fetching changelog from {url}")
    async with httpx.AsyncClient(timeout=30) as client:
        resp = await client.get(url)
        resp.raise_for_status()
        logging.info(f"Successfully fetched changelog ({len(resp.text)} chars)")
        return resp.text


async def load_changelog(cfg: Config) -> str:
    if cfg.changelog_url:
        return await fetch_changelog(cfg.changelog_url)
    if cfg.changelog_path:
        logging.info(f"Reading changelog from {cfg.changelog_path}")
        return Path(cfg.changelog_path).read_text(encoding="utf-8")
    return bundled_changelog()


class ConsoleHost:
    """Writes the changelog dialog to a file and logs notifications."""

    def __init__(self, output: Path, acknowledge: bool = False) -> None:
        self.output = output
        self.acknowledge = acknowledge
        self.shown = False

    async def show_dialog(self, title: str, html: str, on_acknowledge: Callable[[], None]) -> None:
        self.output.parent.mkdir(parents=True, exist_ok=True)
        self.output.write_text(html, encoding="utf-8")
        self.shown = True
        logging.info(f"{title}: changelog written to {self.output}")
        if self.acknowledge:
            on_acknowledge()

    async def send_notification(self, title: str, message: str, action: Callable[[], Awaitable[None]]) -> None:
        logging.info(f"{title}: {message}")


def setup_logging(level: str = "INFO") -> None:
    if not isinstance(logging.getLevelName(level), int):
        level = "INFO"
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # Reduce httpx logging noise
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('MARKDOWN').setLevel(logging.WARNING)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="whatsnew", description="Show what changed since the last acknowledged release")
    parser.add_argument("--output", "-o", type=Path, default=Path("changelog.html"), help="Where to write the changelog HTML")
    parser.add_argument("--acknowledge", "-a", action="store_true", help="Mark the newest release as seen once shown")
    parser.add_argument("--show", "-s", action="store_true", help="Write the changelog even if nothing new is important")
    return parser.parse_args(argv)


async def async_main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    load_dotenv()
    setup_logging(os.getenv("LOG_LEVEL", "INFO").strip().upper())
    cfg = Config()
    try:
        cfg.validate()
    except Exception as e:
        logging.error(f"Configuration error: {e}")
        return 2

    db = Database(cfg.database_path)
    store = CursorStore(db, cfg.namespace)
    if cfg.extension_version:
        store.migrate_version(cfg.extension_version)

    host = ConsoleHost(args.output, acknowledge=args.acknowledge)
    try:
        text = await load_changelog(cfg)
        changelog = await validate_changelog(host, store, text, cfg.mode)
        if args.show and not host.shown:
            await show_changelog(host, changelog, store)
    except Exception as e:
        # Unavailable for this run, the next start parses again
        logging.error(f"Changelog unavailable: {e}", exc_info=True)
        return 1

    if changelog.updated:
        logging.info(f"Updated to {changelog.newest.version if changelog.newest else 'unknown version'}")
    return 0


def main() -> None:
    raise SystemExit(asyncio.run(async_main()))


if __name__ == "__main__":
    main()
