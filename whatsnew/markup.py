from __future__ import annotations

import asyncio
from typing import Iterable

import markdown
from bs4 import BeautifulSoup


def _with_references(source: str, references: Iterable[str]) -> str:
    # Reference definitions render to nothing, they only resolve link labels
    return f"{source}\n\n" + "\n".join(references)


def _convert(source: str) -> str:
    return markdown.markdown(source).strip()


def _plain_text(source: str) -> str:
    return BeautifulSoup(_convert(source), "html.parser").get_text().strip()


async def markdown_to_html(source: str, references: Iterable[str] = ()) -> str:
    return await asyncio.to_thread(_convert, _with_references(source, references))


async def strip_markdown(source: str, references: Iterable[str] = ()) -> str:
    """Plain text of ``source`` with emphasis, links and headings removed."""
    return await asyncio.to_thread(_plain_text, _with_references(source, references))


async def empty() -> str:
    return ""
