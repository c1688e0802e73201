from __future__ import annotations

import logging
import math
import re
from functools import lru_cache
from typing import Any, Iterable

from app.core.config.scoring import get_scoring_value
from app.keywords import KeywordCorpusProvider, get_default_keyword_corpus
from app.schemas.ats import ATSAnalysis
from app.schemas.resume import ResumeRecord

# ASCII word split, so "c++" or "résumé" break the same way a browser \W split does.
_JD_TOKEN_SPLIT_RE = re.compile(r"[^a-z0-9_]+")

logger = logging.getLogger(__name__)


@lru_cache(maxsize=8)
def _report_config_error(message: str) -> None:
    logger.warning("scoring_config_unavailable, using built-in defaults: %s", message)


def _cfg_value(path: str, default: Any) -> Any:
    # Every threshold has a built-in default, so scoring works without config/scoring.yaml.
    try:
        return get_scoring_value(path, default)
    except RuntimeError as exc:
        _report_config_error(str(exc))
        return default


def _cfg_int(path: str, default: int) -> int:
    value = _cfg_value(path, default)
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _cfg_str(path: str, default: str) -> str:
    value = _cfg_value(path, default)
    return str(value) if value else default


def keyword_target() -> int:
    """Unique keywords needed for a full base score."""
    return max(1, _cfg_int("ats.keyword_target", 20))


def build_resume_text(record: ResumeRecord) -> str:
    """Concatenate the résumé fields that take part in keyword matching."""
    basic = record.basic_details
    parts: list[str] = [basic.name, basic.title, record.about]
    parts.append(" ".join(record.skills))
    parts.append(" ".join(cert.name for cert in record.certifications))
    parts.append(
        " ".join(f"{exp.job_title} {exp.employer} {exp.description}" for exp in record.experience)
    )
    parts.append(" ".join(f"{project.name} {project.description}" for project in record.projects))
    return "\n".join(parts)


def find_keywords(corpus: str, candidates: Iterable[str]) -> list[str]:
    """Substring match, case-insensitive, first spelling wins, discovery order kept."""
    lowered = corpus.lower()
    seen: set[str] = set()
    found: list[str] = []
    for candidate in candidates:
        key = candidate.lower()
        if not key or key in seen:
            continue
        if key in lowered:
            seen.add(key)
            found.append(candidate)
    return found


def extract_missing_keywords(job_description: str, resume_text: str, *, limit: int, min_length: int) -> list[str]:
    """JD tokens the résumé never mentions, in JD order. Repeated tokens are kept."""
    if not job_description.strip():
        return []
    resume_lower = resume_text.lower()
    missing: list[str] = []
    for token in _JD_TOKEN_SPLIT_RE.split(job_description.lower()):
        if len(token) < min_length or token in resume_lower:
            continue
        missing.append(token)
        if len(missing) >= limit:
            break
    return missing


def _bonus(record: ResumeRecord) -> int:
    points = _cfg_int("ats.bonus.points", 5)
    bonus = 0
    if len(record.about) > _cfg_int("ats.bonus.about_min_chars", 50):
        bonus += points
    if len(record.skills) >= _cfg_int("ats.bonus.min_skills", 6):
        bonus += points
    if len(record.experience) >= _cfg_int("ats.bonus.min_experience", 2):
        bonus += points
    if len(record.certifications) >= _cfg_int("ats.bonus.min_certifications", 1):
        bonus += points
    return bonus


def _suggestions(record: ResumeRecord, unique_count: int) -> list[str]:
    suggestions: list[str] = []
    if len(record.about) < _cfg_int("ats.suggestions.about_min_chars", 50):
        suggestions.append(_cfg_str("ats.messages.about", "Add a more detailed professional summary"))
    if len(record.skills) < _cfg_int("ats.suggestions.min_skills", 6):
        suggestions.append(_cfg_str("ats.messages.skills", "Include more relevant skills"))
    if unique_count < _cfg_int("ats.suggestions.min_unique_keywords", 10):
        suggestions.append(_cfg_str("ats.messages.keywords", "Include more industry-specific keywords"))
    min_description = _cfg_int("ats.suggestions.min_description_chars", 50)
    # An empty experience section has no detailed description either.
    if not record.experience or any(len(exp.description) < min_description for exp in record.experience):
        suggestions.append(_cfg_str("ats.messages.descriptions", "Provide more detailed job descriptions"))
    return suggestions


def score(
    record: ResumeRecord,
    job_description: str = "",
    selected_keywords: Iterable[str] = (),
    *,
    corpus: KeywordCorpusProvider | None = None,
) -> ATSAnalysis:
    """Heuristic ATS score for ``record``.

    Pure and deterministic: the same record, job description and keyword
    selection always produce an equal analysis.
    """
    provider = corpus or get_default_keyword_corpus()
    job_description = job_description or ""
    resume_text = build_resume_text(record)
    matching_corpus = f"{resume_text}\n{job_description}".lower()

    found = find_keywords(matching_corpus, provider.candidates(selected_keywords))
    unique_count = len(found)

    base = min(unique_count / keyword_target() * 100, 100)
    final = min(base + _bonus(record), 100)

    return ATSAnalysis(
        score=int(math.floor(final + 0.5)),
        keywords=found[: _cfg_int("ats.max_found_keywords", 15)],
        suggestions=_suggestions(record, unique_count),
        missing_keywords=extract_missing_keywords(
            job_description,
            resume_text,
            limit=_cfg_int("ats.max_missing_keywords", 10),
            min_length=_cfg_int("ats.min_token_length", 4),
        ),
        unique_count=unique_count,
    )
