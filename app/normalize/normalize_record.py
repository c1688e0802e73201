from __future__ import annotations

import re
from typing import Any, Iterable

from pydantic import BaseModel, ValidationError

from app.schemas.resume import (
    Award,
    BasicDetails,
    Certification,
    Education,
    Experience,
    Project,
    ResumeRecord,
)

_YEAR_RANGE_SPLIT_RE = re.compile(r"\s*[-–—]\s*|\s+to\s+", re.IGNORECASE)
_CATEGORIZED_SKILL_KEYS = ("programmingLanguages", "librariesFrameworks", "toolsPlatforms", "databases")
_LEGACY_SKILL_LIST_KEYS = ("techSkills", "softSkills")

# Item model per canonical section key; "about" and "skills" hold plain strings.
_CANONICAL_ITEM_MODELS: dict[str, type[BaseModel]] = {
    "basicDetails": BasicDetails,
    "education": Education,
    "experience": Experience,
    "projects": Project,
    "certifications": Certification,
    "awards": Award,
}


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(_text(item) for item in value if _text(item))
    return str(value).strip()


def _first(raw: dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = _text(raw.get(key))
        if value:
            return value
    return ""


def _join(*parts: str, sep: str = ", ") -> str:
    return sep.join(part for part in parts if part)


def _split_range(value: str) -> tuple[str, str]:
    """'2020 – 2023' -> ('2020', '2023'); a single value is treated as the start."""
    if not value:
        return "", ""
    pieces = [piece.strip() for piece in _YEAR_RANGE_SPLIT_RE.split(value, maxsplit=1)]
    if len(pieces) == 1:
        return pieces[0], ""
    return pieces[0], pieces[1]


def _dict_items(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _split_csv(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        items: list[str] = []
        for entry in value:
            items.extend(_split_csv(entry))
        return items
    return [piece.strip() for piece in _text(value).split(",") if piece.strip()]


def _normalize_basic_details(raw: dict[str, Any]) -> BasicDetails:
    name = _first(raw, "name") or _join(_first(raw, "firstName"), _first(raw, "surname", "lastName"), sep=" ")
    location = _first(raw, "location", "address") or _join(_first(raw, "city"), _first(raw, "country"))
    return BasicDetails(
        name=name,
        title=_first(raw, "title"),
        phone=_first(raw, "phone"),
        email=_first(raw, "email"),
        website=_first(raw, "website"),
        github=_first(raw, "github"),
        linkedin=_first(raw, "linkedin"),
        location=location,
    )


def _normalize_education(raw: dict[str, Any]) -> Education:
    start, end = _split_range(_first(raw, "year"))
    return Education(
        institution=_first(raw, "institution", "university"),
        degree=_first(raw, "degree"),
        specialization=_first(raw, "specialization"),
        start_date=_first(raw, "startDate", "start_date") or start,
        end_date=_first(raw, "endDate", "end_date") or end,
        location=_first(raw, "location"),
        cgpa=_first(raw, "cgpa"),
        percentage=_first(raw, "percentage"),
    )


def _normalize_experience(raw: dict[str, Any]) -> Experience:
    start, end = _split_range(_first(raw, "year"))
    return Experience(
        job_title=_first(raw, "jobTitle", "job_title", "role", "position"),
        employer=_first(raw, "employer", "company"),
        location=_first(raw, "location") or _join(_first(raw, "city"), _first(raw, "country")),
        start_month=_first(raw, "startMonth", "start_month"),
        start_year=_first(raw, "startYear", "start_year") or start,
        end_month=_first(raw, "endMonth", "end_month"),
        end_year=_first(raw, "endYear", "end_year") or end,
        description=_first(raw, "description"),
    )


def _normalize_project(raw: dict[str, Any]) -> Project:
    return Project(
        name=_first(raw, "name"),
        tech_stack=_first(raw, "techStack", "tech_stack", "technologies"),
        description=_first(raw, "description", "result"),
        link=_first(raw, "link", "github"),
        year=_first(raw, "year"),
    )


def _normalize_certifications(value: Any) -> list[Certification]:
    if not isinstance(value, list):
        return []
    certifications: list[Certification] = []
    for item in value:
        if isinstance(item, dict):
            certifications.append(
                Certification(
                    name=_first(item, "name"),
                    issuer=_first(item, "issuer"),
                    year=_first(item, "year"),
                )
            )
        elif isinstance(item, str):
            certifications.append(Certification(name=item.strip()))
    return certifications


def _normalize_skills(raw: dict[str, Any]) -> list[str]:
    value = raw.get("skills")
    skills: list[str] = []
    if isinstance(value, dict):
        for key in _CATEGORIZED_SKILL_KEYS:
            skills.extend(_split_csv(value.get(key)))
    elif isinstance(value, list):
        skills.extend(_text(item) for item in value if _text(item))
    for key in _LEGACY_SKILL_LIST_KEYS:
        skills.extend(_text(item) for item in _as_list(raw.get(key)) if _text(item))
    return skills


def _model_keys(model: type[BaseModel]) -> set[str]:
    return {info.alias or name for name, info in model.model_fields.items()}


def _is_canonical(raw: dict[str, Any]) -> bool:
    """True when every key, at every level, is one the canonical record dumps."""
    if not set(raw) <= _model_keys(ResumeRecord):
        return False
    for key, value in raw.items():
        if key == "about":
            if not isinstance(value, str):
                return False
        elif key == "skills":
            if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
                return False
        elif key == "basicDetails":
            if not isinstance(value, dict) or not set(value) <= _model_keys(BasicDetails):
                return False
        else:
            allowed = _model_keys(_CANONICAL_ITEM_MODELS[key])
            if not isinstance(value, list):
                return False
            if not all(isinstance(item, dict) and set(item) <= allowed for item in value):
                return False
    return True


def _as_list(value: Any) -> Iterable[Any]:
    if isinstance(value, list):
        return value
    return ()


def load_resume_record(raw: dict[str, Any] | ResumeRecord | None) -> ResumeRecord:
    """Canonicalize a stored or uploaded résumé payload.

    Accepts the current camelCase shape, the legacy shapes (``basicdetails``,
    ``role``/``company``, ``university``/``year``, ``result``, categorized or
    split ``techSkills``/``softSkills`` skills, string certifications) and any
    mix of them. Modern fields win when both variants are populated.

    Payloads already in the canonical shape, such as rows written by the store
    or an exported JSON file, are validated as-is so blank items and
    whitespace survive.
    """
    if isinstance(raw, ResumeRecord):
        return raw
    if not raw:
        return ResumeRecord()
    if _is_canonical(raw):
        try:
            return ResumeRecord.model_validate(raw)
        except ValidationError:
            # Non-string leaf values (e.g. a numeric year) take the lenient path.
            pass

    basic = raw.get("basicDetails") or raw.get("basicdetails") or raw.get("basic_details") or {}
    if not isinstance(basic, dict):
        basic = {}

    return ResumeRecord(
        basic_details=_normalize_basic_details(basic),
        about=_text(raw.get("about")),
        education=[_normalize_education(item) for item in _dict_items(raw.get("education"))],
        experience=[_normalize_experience(item) for item in _dict_items(raw.get("experience"))],
        projects=[_normalize_project(item) for item in _dict_items(raw.get("projects"))],
        skills=_normalize_skills(raw),
        certifications=_normalize_certifications(raw.get("certifications")),
        awards=[
            Award(
                title=_first(item, "title"),
                description=_first(item, "description"),
                year=_first(item, "year"),
            )
            for item in _dict_items(raw.get("awards"))
        ],
    )
