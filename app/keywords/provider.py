from __future__ import annotations

from typing import Iterable, Protocol


class KeywordCorpusProvider(Protocol):
    def categories(self) -> dict[str, tuple[str, ...]]:
        """Return keyword categories in display order."""

    def candidates(self, selected: Iterable[str] = ()) -> list[str]:
        """Return every candidate keyword followed by the user-selected ones."""
