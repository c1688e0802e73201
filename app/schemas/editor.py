from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.ats import ATSAnalysis
from app.schemas.resume import ResumeRecord


class _Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ScoreRequest(_Request):
    resume: dict[str, Any] = Field(default_factory=dict)
    job_description: str = Field(default="", max_length=50000, alias="jobDescription")
    selected_keywords: list[str] = Field(default_factory=list, max_length=100, alias="selectedKeywords")


class FieldUpdateRequest(_Request):
    section: str = Field(min_length=1, max_length=40)
    field: str | None = Field(default=None, max_length=60)
    index: int | None = None
    value: str = Field(max_length=20000)


class AnalysisInputsRequest(_Request):
    job_description: str | None = Field(default=None, max_length=50000, alias="jobDescription")
    selected_keywords: list[str] | None = Field(default=None, max_length=100, alias="selectedKeywords")


class LoginRequest(_Request):
    email: str = Field(min_length=3, max_length=200)
    password: str = Field(min_length=1, max_length=200)


class SessionStateResponse(_Request):
    user_id: str = Field(alias="userId")
    resume: ResumeRecord
    analysis: ATSAnalysis | None = None
    validation: dict[str, str] = Field(default_factory=dict)
    dirty: bool = False
    job_description: str = Field(default="", alias="jobDescription")
    selected_keywords: list[str] = Field(default_factory=list, alias="selectedKeywords")
