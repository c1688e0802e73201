from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    resume_db_path: str
    analysis_debounce_ms: int
    autosave_debounce_ms: int
    resume_backend_url: str | None
    resume_backend_timeout_s: float
    optimizer_llm_enabled: bool
    max_editor_sessions: int


settings = Settings(
    api_key=_get_env("API_KEY"),
    rate_limit=_get_env("RATE_LIMIT", "60/minute") or "60/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:3000",
        ],
    ),
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX"),
    resume_db_path=_get_env("RESUME_DB_PATH", "data/resumes.db") or "data/resumes.db",
    analysis_debounce_ms=max(0, _get_env_int("ANALYSIS_DEBOUNCE_MS", 1000)),
    autosave_debounce_ms=max(0, _get_env_int("AUTOSAVE_DEBOUNCE_MS", 1500)),
    resume_backend_url=_get_env("RESUME_BACKEND_URL"),
    resume_backend_timeout_s=_get_env_float("RESUME_BACKEND_TIMEOUT_S", 10.0),
    optimizer_llm_enabled=_get_env_bool("OPTIMIZER_LLM_ENABLED", False),
    max_editor_sessions=max(1, _get_env_int("MAX_EDITOR_SESSIONS", 500)),
)
