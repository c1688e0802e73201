from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.resume import ResumeRecord

ExperienceLevel = Literal["entry", "mid", "senior"]
KeywordDensity = Literal["low", "medium", "high"]
OptimizationSource = Literal["remote", "llm", "local"]


class ATSAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    score: int = Field(ge=0, le=100)
    keywords: list[str] = Field(default_factory=list, max_length=15)
    suggestions: list[str] = Field(default_factory=list)
    missing_keywords: list[str] = Field(default_factory=list, max_length=10, alias="missingKeywords")
    unique_count: int = Field(default=0, ge=0, alias="uniqueCount", exclude=True)


class OptimizationOptions(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    target_role: str | None = Field(default=None, alias="targetRole", max_length=200)
    industry: str | None = Field(default=None, max_length=200)
    experience_level: ExperienceLevel | None = Field(default=None, alias="experienceLevel")
    ats_optimization: bool = Field(default=True, alias="atsOptimization")
    keyword_density: KeywordDensity | None = Field(default=None, alias="keywordDensity")


class OptimizationOutcome(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    source: OptimizationSource
    message: str | None = None
    analysis: ATSAnalysis
    record: ResumeRecord | None = None
    html: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
