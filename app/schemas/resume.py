from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _RecordModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class BasicDetails(_RecordModel):
    name: str = ""
    title: str = ""
    phone: str = ""
    email: str = ""
    website: str = ""
    github: str = ""
    linkedin: str = ""
    location: str = ""


class Education(_RecordModel):
    institution: str = ""
    degree: str = ""
    specialization: str = ""
    start_date: str = Field(default="", alias="startDate")
    end_date: str = Field(default="", alias="endDate")
    location: str = ""
    cgpa: str = ""
    percentage: str = ""


class Experience(_RecordModel):
    job_title: str = Field(default="", alias="jobTitle")
    employer: str = ""
    location: str = ""
    start_month: str = Field(default="", alias="startMonth")
    start_year: str = Field(default="", alias="startYear")
    end_month: str = Field(default="", alias="endMonth")
    end_year: str = Field(default="", alias="endYear")
    description: str = ""


class Project(_RecordModel):
    name: str = ""
    tech_stack: str = Field(default="", alias="techStack")
    description: str = ""
    link: str = ""
    year: str = ""


class Certification(_RecordModel):
    name: str = ""
    issuer: str = ""
    year: str = ""


class Award(_RecordModel):
    title: str = ""
    description: str = ""
    year: str = ""


class ResumeRecord(_RecordModel):
    """Canonical résumé. Legacy payloads go through ``load_resume_record`` first."""

    basic_details: BasicDetails = Field(default_factory=BasicDetails, alias="basicDetails")
    about: str = ""
    education: list[Education] = Field(default_factory=list)
    experience: list[Experience] = Field(default_factory=list)
    projects: list[Project] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    certifications: list[Certification] = Field(default_factory=list)
    awards: list[Award] = Field(default_factory=list)
