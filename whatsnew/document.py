from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple


@dataclass(frozen=True)
class Line:
    number: int
    text: str

    @property
    def stripped(self) -> str:
        return self.text.strip()

    @property
    def blank(self) -> bool:
        return not self.stripped

    def startswith(self, marker: str) -> bool:
        return self.text.lstrip().startswith(marker)


@dataclass(frozen=True)
class Document:
    raw: str
    lines: Tuple[Line, ...]
    references: Tuple[Line, ...]
    headings: Tuple[Line, ...]

    @property
    def end(self) -> int:
        """Line number one past the last line."""
        return len(self.lines) + 1

    @property
    def reference_text(self) -> List[str]:
        return [line.text for line in self.references]

    def span(self, start: int, stop: int) -> Tuple[Line, ...]:
        """Lines with ``start < number < stop``."""
        return self.lines[max(start, 0):max(stop - 1, 0)]


def is_reference(text: str) -> bool:
    """``[label]: target`` with a non-empty label and target."""
    stripped = text.strip()
    separator = stripped.find("]: ")
    return stripped.startswith("[") and separator > 1 and len(stripped) > separator + 3


def segment(raw: str) -> Document:
    lines = tuple(Line(number, text.rstrip()) for number, text in enumerate(raw.split("\n"), start=1))
    references = tuple(line for line in lines if is_reference(line.text))
    headings = tuple(line for line in lines if line.startswith("#"))
    return Document(raw=raw, lines=lines, references=references, headings=headings)
