from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel

from app.editor.sections import SECTION_SPECS, SectionKind, SectionSpec, lookup_section
from app.schemas.resume import ResumeRecord

ValidationResult = dict[str, str]

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Required attributes per repeated section, checked item by item.
_REQUIRED_ITEM_FIELDS: dict[SectionKind, tuple[str, ...]] = {
    SectionKind.EDUCATION: ("institution", "degree"),
    SectionKind.EXPERIENCE: ("job_title", "employer"),
    SectionKind.PROJECTS: ("name",),
    SectionKind.CERTIFICATIONS: ("name",),
    SectionKind.AWARDS: ("title",),
}


class SectionMutationError(ValueError):
    def __init__(self, message: str, *, path: str):
        super().__init__(message)
        self.path = path


class InvalidPath(SectionMutationError):
    pass


class IndexOutOfRange(SectionMutationError):
    pass


class UnknownSection(SectionMutationError):
    pass


def _path(section: Any, index: int | None = None, field: str | None = None) -> str:
    name = section.value if isinstance(section, SectionKind) else str(section)
    parts = [name]
    if index is not None:
        parts.append(str(index))
    if field:
        parts.append(field)
    return ".".join(parts)


def _repeated_spec(section: SectionKind | str, index: int | None = None) -> SectionSpec:
    spec = lookup_section(section)
    if spec is None or not spec.repeated:
        raise UnknownSection(
            f"'{_path(section)}' is not a repeated section",
            path=_path(section, index),
        )
    return spec


def _check_index(spec: SectionSpec, items: list[Any], index: Any, field: str | None = None) -> int:
    if isinstance(index, bool) or not isinstance(index, int):
        raise InvalidPath(
            f"Section '{spec.kind.value}' requires an integer index",
            path=_path(spec.kind, None, field),
        )
    if index < 0 or index >= len(items):
        raise IndexOutOfRange(
            f"Index {index} is out of range for '{spec.kind.value}' (length {len(items)})",
            path=_path(spec.kind, index, field),
        )
    return index


def update_scalar(
    record: ResumeRecord,
    section: SectionKind | str,
    field: str | None,
    value: str,
    *,
    index: int | None = None,
) -> ResumeRecord:
    """Set one string value and return the updated record.

    The returned record shares every section it did not touch with ``record``.
    An update that does not change the value returns ``record`` itself.
    """
    spec = lookup_section(section)
    if spec is None:
        raise InvalidPath(f"Unknown section '{section}'", path=_path(section, index, field))
    if not isinstance(value, str):
        raise InvalidPath(
            f"Value for '{_path(spec.kind, index, field)}' must be a string",
            path=_path(spec.kind, index, field),
        )

    if spec.repeated and index is None:
        raise InvalidPath(
            f"Section '{spec.kind.value}' requires an index",
            path=_path(spec.kind, None, field),
        )
    if not spec.repeated and index is not None:
        raise InvalidPath(
            f"Section '{spec.kind.value}' does not take an index",
            path=_path(spec.kind, index, field),
        )

    attribute: str | None = None
    if spec.shape in {"scalar", "repeated_text"}:
        if field is not None:
            raise InvalidPath(
                f"Section '{spec.kind.value}' has no field '{field}'",
                path=_path(spec.kind, index, field),
            )
    else:
        attribute = spec.resolve_field(field) if field else None
        if attribute is None:
            raise InvalidPath(
                f"Section '{spec.kind.value}' has no field '{field}'",
                path=_path(spec.kind, index, field),
            )

    current = getattr(record, spec.attribute)

    if spec.shape == "scalar":
        if current == value:
            return record
        return record.model_copy(update={spec.attribute: value})

    if spec.shape == "object":
        if getattr(current, attribute) == value:
            return record
        updated = current.model_copy(update={attribute: value})
        return record.model_copy(update={spec.attribute: updated})

    position = _check_index(spec, current, index, field)
    item = current[position]
    if spec.shape == "repeated_text":
        if item == value:
            return record
        new_item: BaseModel | str = value
    else:
        if getattr(item, attribute) == value:
            return record
        new_item = item.model_copy(update={attribute: value})

    items = list(current)
    items[position] = new_item
    return record.model_copy(update={spec.attribute: items})


def add_item(record: ResumeRecord, section: SectionKind | str) -> ResumeRecord:
    """Append a fully defaulted template item to a repeated section."""
    spec = _repeated_spec(section)
    items = list(getattr(record, spec.attribute))
    items.append(spec.new_item())
    return record.model_copy(update={spec.attribute: items})


def remove_item(record: ResumeRecord, section: SectionKind | str, index: int) -> ResumeRecord:
    """Remove one item; later items shift down by one.

    Removing the only remaining item is allowed and leaves an empty section.
    """
    spec = _repeated_spec(section, index)
    current = getattr(record, spec.attribute)
    position = _check_index(spec, current, index)
    items = list(current[:position]) + list(current[position + 1 :])
    return record.model_copy(update={spec.attribute: items})


def validate(record: ResumeRecord) -> ValidationResult:
    errors: ValidationResult = {}

    basic = record.basic_details
    if not basic.name.strip():
        errors["basicDetails.name"] = "Name is required."
    email = basic.email.strip()
    if not email:
        errors["basicDetails.email"] = "Email is required."
    elif not EMAIL_RE.match(email):
        errors["basicDetails.email"] = "Please enter a valid email address."

    for kind, required in _REQUIRED_ITEM_FIELDS.items():
        spec = SECTION_SPECS[kind]
        for position, item in enumerate(getattr(record, spec.attribute)):
            for attribute in required:
                if str(getattr(item, attribute, "")).strip():
                    continue
                label = spec.field_alias(attribute)
                errors[_path(kind, position, label)] = f"{_humanize(label)} is required."

    for position, skill in enumerate(record.skills):
        if not skill.strip():
            errors[_path(SectionKind.SKILLS, position)] = "Skill cannot be empty."

    return errors


def _humanize(label: str) -> str:
    spaced = re.sub(r"(?<!^)([A-Z])", r" \1", label)
    return spaced[:1].upper() + spaced[1:].lower()
