from functools import lru_cache

from .local_corpus import KeywordSelection, LocalKeywordCorpus, dedupe_keywords
from .provider import KeywordCorpusProvider


@lru_cache(maxsize=1)
def get_default_keyword_corpus() -> KeywordCorpusProvider:
    return LocalKeywordCorpus()


__all__ = [
    "KeywordCorpusProvider",
    "KeywordSelection",
    "LocalKeywordCorpus",
    "dedupe_keywords",
    "get_default_keyword_corpus",
]
