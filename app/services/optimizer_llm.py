from __future__ import annotations

import json
import logging
import os
import time
import uuid
from functools import lru_cache
from typing import Any

from openai import OpenAI

from app.core.config import settings
from app.normalize.normalize_record import load_resume_record
from app.schemas.ats import OptimizationOptions
from app.schemas.resume import ResumeRecord

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You optimize resumes for Applicant Tracking Systems. "
    "Rewrite wording to be concise, keyword-rich and truthful. "
    "Never invent employers, dates, degrees or certifications. "
    "Return only a JSON object with the same keys as the input resume."
)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("replace_") or lower in {"changeme", "todo"}


def optimizer_llm_enabled() -> bool:
    if not _env_bool("OPTIMIZER_LLM_ENABLED", settings.optimizer_llm_enabled):
        return False
    api_key = (os.getenv("OPENAI_API_KEY") or "").strip()
    if not api_key or _looks_like_placeholder(api_key):
        return False
    return True


@lru_cache(maxsize=1)
def _client() -> OpenAI:
    return OpenAI(
        api_key=(os.getenv("OPENAI_API_KEY") or "").strip(),
        base_url=(os.getenv("OPENAI_BASE_URL") or None),
        timeout=float(os.getenv("OPTIMIZER_LLM_TIMEOUT_S", "30")),
        max_retries=int(os.getenv("OPENAI_MAX_RETRIES", "2")),
    )


def _model() -> str:
    return (os.getenv("AI_MODEL") or os.getenv("OPENAI_MODEL") or "gpt-4o-mini").strip()


def _log_run(*, run_id: str, status: str, latency_ms: int, error_code: str | None = None) -> None:
    logger.info(
        json.dumps(
            {
                "event": "optimizer_llm_run",
                "run_id": run_id,
                "model": _model(),
                "status": status,
                "error_code": error_code,
                "latency_ms": latency_ms,
            }
        )
    )


def build_user_prompt(record: ResumeRecord, options: OptimizationOptions) -> str:
    lines = ["Optimize this resume for ATS screening."]
    if options.target_role:
        lines.append(f"Target role: {options.target_role}")
    if options.industry:
        lines.append(f"Industry: {options.industry}")
    if options.experience_level:
        lines.append(f"Experience level: {options.experience_level}")
    if options.keyword_density:
        lines.append(f"Keyword density: {options.keyword_density}")
    lines.append("RESUME JSON:")
    lines.append(record.model_dump_json(by_alias=True))
    return "\n".join(lines)


def json_completion(
    *,
    system_prompt: str,
    user_prompt: str,
    temperature: float = 0.2,
    max_output_tokens: int = 2000,
) -> dict[str, Any] | None:
    run_id = uuid.uuid4().hex
    started = time.perf_counter()
    if not optimizer_llm_enabled():
        _log_run(run_id=run_id, status="skipped", error_code="llm_disabled", latency_ms=0)
        return None

    try:
        response = _client().chat.completions.create(
            model=_model(),
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            response_format={"type": "json_object"},
            max_tokens=max_output_tokens,
        )
        content = response.choices[0].message.content if response.choices else ""
        if not content:
            _log_run(
                run_id=run_id,
                status="empty",
                error_code="empty_response",
                latency_ms=int((time.perf_counter() - started) * 1000),
            )
            return None
        parsed = json.loads(content)
        schema_valid = isinstance(parsed, dict)
        _log_run(
            run_id=run_id,
            status="success" if schema_valid else "invalid_schema",
            error_code=None if schema_valid else "invalid_schema",
            latency_ms=int((time.perf_counter() - started) * 1000),
        )
        return parsed if schema_valid else None
    except Exception as exc:  # noqa: BLE001
        logger.warning("optimizer_llm_json_failed model=%s prompt_len=%s: %s", _model(), len(user_prompt), exc)
        _log_run(
            run_id=run_id,
            status="error",
            error_code="llm_exception",
            latency_ms=int((time.perf_counter() - started) * 1000),
        )
        return None


def optimize_with_llm(record: ResumeRecord, options: OptimizationOptions | None = None) -> ResumeRecord | None:
    payload = json_completion(
        system_prompt=_SYSTEM_PROMPT,
        user_prompt=build_user_prompt(record, options or OptimizationOptions()),
    )
    if not payload:
        return None
    return load_resume_record(payload)
