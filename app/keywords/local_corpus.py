from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from .provider import KeywordCorpusProvider

CATEGORY_ORDER = ("technical", "soft", "industry")


def dedupe_keywords(keywords: Iterable[str]) -> list[str]:
    """Case-insensitive dedupe that keeps the first spelling and order."""
    seen: set[str] = set()
    unique: list[str] = []
    for keyword in keywords:
        cleaned = keyword.strip()
        key = cleaned.lower()
        if not cleaned or key in seen:
            continue
        seen.add(key)
        unique.append(cleaned)
    return unique


class LocalKeywordCorpus(KeywordCorpusProvider):
    def __init__(self, keywords_path: str | Path | None = None) -> None:
        path = Path(keywords_path) if keywords_path else Path(__file__).with_name("keywords.json")
        self._categories = self._load_categories(path)

    @staticmethod
    def _load_categories(path: Path) -> dict[str, tuple[str, ...]]:
        with path.open("r", encoding="utf-8") as handle:
            raw = json.load(handle)
        if not isinstance(raw, dict):
            raise RuntimeError(f"Invalid keyword corpus '{path}': expected a mapping of categories.")
        ordered = [name for name in CATEGORY_ORDER if name in raw]
        ordered += [name for name in raw if name not in CATEGORY_ORDER]
        return {
            name: tuple(str(term).strip() for term in raw[name] if str(term).strip())
            for name in ordered
        }

    def categories(self) -> dict[str, tuple[str, ...]]:
        return dict(self._categories)

    def candidates(self, selected: Iterable[str] = ()) -> list[str]:
        terms = [term for values in self._categories.values() for term in values]
        return dedupe_keywords([*terms, *selected])


class KeywordSelection:
    """User-picked keywords, toggled on and off from the suggestion chips."""

    def __init__(self, keywords: Iterable[str] = ()) -> None:
        self._keywords: list[str] = dedupe_keywords(keywords)

    def toggle(self, keyword: str) -> bool:
        """Add or remove ``keyword``; returns True when it is now selected."""
        if keyword in self._keywords:
            self._keywords = [item for item in self._keywords if item != keyword]
            return False
        if not keyword.strip():
            return False
        self._keywords = [*self._keywords, keyword]
        return True

    def replace(self, keywords: Iterable[str]) -> None:
        self._keywords = dedupe_keywords(keywords)

    def __contains__(self, keyword: object) -> bool:
        return keyword in self._keywords

    def __iter__(self):
        return iter(self._keywords)

    def __len__(self) -> int:
        return len(self._keywords)

    def as_tuple(self) -> tuple[str, ...]:
        return tuple(self._keywords)
