from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

from pydantic import BaseModel

from app.schemas.resume import (
    Award,
    BasicDetails,
    Certification,
    Education,
    Experience,
    Project,
    ResumeRecord,
)

SectionShape = Literal["object", "scalar", "repeated", "repeated_text"]


class SectionKind(str, Enum):
    BASIC_DETAILS = "basicDetails"
    ABOUT = "about"
    EDUCATION = "education"
    EXPERIENCE = "experience"
    PROJECTS = "projects"
    SKILLS = "skills"
    CERTIFICATIONS = "certifications"
    AWARDS = "awards"


@dataclass(frozen=True)
class SectionSpec:
    kind: SectionKind
    attribute: str
    shape: SectionShape
    template: type[BaseModel] | None = None

    @property
    def repeated(self) -> bool:
        return self.shape in {"repeated", "repeated_text"}

    def new_item(self) -> BaseModel | str:
        if self.shape == "repeated_text":
            return ""
        if self.shape != "repeated" or self.template is None:
            raise TypeError(f"Section '{self.kind.value}' has no item template")
        return self.template()

    def resolve_field(self, field: str) -> str | None:
        """Map an attribute name or JSON alias onto the template attribute name."""
        if self.template is None:
            return None
        fields = self.template.model_fields
        if field in fields:
            return field
        for name, info in fields.items():
            if info.alias == field:
                return name
        return None

    def field_alias(self, attribute: str) -> str:
        if self.template is None:
            return attribute
        info = self.template.model_fields.get(attribute)
        if info is None or not info.alias:
            return attribute
        return info.alias


SECTION_SPECS: dict[SectionKind, SectionSpec] = {
    SectionKind.BASIC_DETAILS: SectionSpec(SectionKind.BASIC_DETAILS, "basic_details", "object", BasicDetails),
    SectionKind.ABOUT: SectionSpec(SectionKind.ABOUT, "about", "scalar"),
    SectionKind.EDUCATION: SectionSpec(SectionKind.EDUCATION, "education", "repeated", Education),
    SectionKind.EXPERIENCE: SectionSpec(SectionKind.EXPERIENCE, "experience", "repeated", Experience),
    SectionKind.PROJECTS: SectionSpec(SectionKind.PROJECTS, "projects", "repeated", Project),
    SectionKind.SKILLS: SectionSpec(SectionKind.SKILLS, "skills", "repeated_text"),
    SectionKind.CERTIFICATIONS: SectionSpec(SectionKind.CERTIFICATIONS, "certifications", "repeated", Certification),
    SectionKind.AWARDS: SectionSpec(SectionKind.AWARDS, "awards", "repeated", Award),
}

# Every ResumeRecord attribute must be addressable through exactly one section kind.
if {spec.attribute for spec in SECTION_SPECS.values()} != set(ResumeRecord.model_fields):
    raise RuntimeError("SECTION_SPECS does not cover every ResumeRecord field.")


def lookup_section(section: SectionKind | str) -> SectionSpec | None:
    if isinstance(section, SectionKind):
        return SECTION_SPECS[section]
    if not isinstance(section, str):
        return None
    raw = section.strip()
    for spec in SECTION_SPECS.values():
        if raw in {spec.kind.value, spec.attribute, spec.kind.name.lower()}:
            return spec
    return None
