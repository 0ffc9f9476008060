from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator

from .selector_rules import is_absolute_xpath


@dataclass(slots=True)
class SelectionLog:
    """Ordered, duplicate-free list of picked selections for one working session."""

    entries: list[str] = field(default_factory=list)

    @classmethod
    def from_entries(cls, entries: Iterable[str]) -> SelectionLog:
        log = cls()
        for entry in entries:
            log.add(entry)
        return log

    def add(self, selection: str) -> tuple[bool, str]:
        text = selection.strip()
        if not text:
            return False, "Selection is empty."
        if is_absolute_xpath(text):
            return False, "Absolute XPath skipped!"
        if text in self.entries:
            return False, "Selector already added!"
        self.entries.append(text)
        return True, "Selector added."

    def remove(self, index: int) -> bool:
        if index < 0 or index >= len(self.entries):
            return False
        del self.entries[index]
        return True

    def clear(self) -> None:
        self.entries.clear()

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries)
