from __future__ import annotations

import asyncio
from typing import Iterable, Optional, Sequence, Tuple

from .markup import empty, markdown_to_html


EXPAND_MARKER = '<span class="expand">\U0001f53b</span>'
OPEN_BLOCK = "<details open>"

STYLE = """
.dialog-container {
    max-height: 69vh;
}

.changelog-wrapper {
    white-space: normal;
}

details > summary {
  cursor: pointer;
  display: flex;
  background: #303030aa;
  padding-left: 1.5rem;
}

details > summary * {
  cursor: pointer;
}

details > :not(summary) {
  margin-left: 1.5rem;
}

details > summary .expand {
  color: transparent;
  text-shadow: 0 0 0 rgb(238, 238, 238);
  margin-left: auto;
  width: 54px;
  height: 54px;
  padding-left: 2.5px;
  font-size: 3em;
  rotate: 90deg;
}

details[open] > summary .expand {
  rotate: 0deg;
}"""


def group_source(heading: str, changes: Iterable[str]) -> str:
    return f"{heading}\n\n" + "\n".join(changes)


async def render_release(
    heading: str,
    notice: Sequence[str],
    groups: Sequence[Tuple[str, Sequence[str]]],
    references: Sequence[str],
    is_open: bool,
) -> str:
    """Collapsible ``<details>`` block for one release.

    The summary holds the rendered heading line, the body holds the notice
    (when it has any content) followed by every change group, each group
    separated from the next by a blank line.
    """
    has_notice = any(line.strip() for line in notice)
    summary, notice_html, groups_html = await asyncio.gather(
        markdown_to_html(heading, references),
        markdown_to_html("\n".join(notice), references) if has_notice else empty(),
        markdown_to_html("\n\n".join(group_source(h, c).strip() for h, c in groups), references),
    )
    return "\n".join([
        OPEN_BLOCK if is_open else "<details>",
        f"<summary>{summary} {EXPAND_MARKER}</summary>",
        notice_html,
        groups_html,
        "</details>",
    ])


def join_document(title_html: Optional[str], releases: Iterable[str]) -> str:
    return "\n".join([title_html or "", *releases])


def wrap_dialog(html: str) -> str:
    """Dialog markup with the style sheet, the first release forced open."""
    first = html.find("<details>")
    if first != -1 and first == html.find("<details"):
        html = html[:first] + OPEN_BLOCK + html[first + len("<details>"):]
    return f'<div class="changelog-wrapper"><style>{STYLE}</style>{html}</div>'
