from __future__ import annotations

import asyncio
import json
import logging
from functools import lru_cache

from app.core.config import settings
from app.integrations.resume_backend import ResumeBackendClient
from app.services.editor_session import ResumeEditorSession
from app.storage.resume_store import ResumeRepository, SqliteResumeRepository

logger = logging.getLogger("app.editor")
# Insertion order doubles as recency: get_session moves a hit to the end.
_sessions: dict[str, ResumeEditorSession] = {}
_evictions: set[asyncio.Task[None]] = set()
_repository_override: ResumeRepository | None = None


@lru_cache(maxsize=1)
def _default_repository() -> SqliteResumeRepository:
    return SqliteResumeRepository(settings.resume_db_path)


def get_repository() -> ResumeRepository:
    if _repository_override is not None:
        return _repository_override
    return _default_repository()


def set_repository(repository: ResumeRepository | None) -> None:
    """Swap the persistence collaborator, e.g. for an in-memory fake in tests."""
    global _repository_override
    _repository_override = repository


def build_backend_client() -> ResumeBackendClient | None:
    if not settings.resume_backend_url:
        return None
    return ResumeBackendClient(settings.resume_backend_url, timeout_s=settings.resume_backend_timeout_s)


def _report_eviction(task: asyncio.Task[None]) -> None:
    _evictions.discard(task)
    if not task.cancelled() and task.exception() is not None:
        logger.error("editor_session_eviction_failed", exc_info=task.exception())


async def _close(user_id: str, session: ResumeEditorSession, reason: str) -> None:
    await session.close()
    logger.info(json.dumps({"event": "editor_session_closed", "user_id": user_id, "reason": reason}))


def _evict_least_recent() -> None:
    while len(_sessions) > settings.max_editor_sessions:
        user_id = next(iter(_sessions))
        session = _sessions.pop(user_id)
        task = asyncio.get_running_loop().create_task(_close(user_id, session, "evicted"))
        _evictions.add(task)
        task.add_done_callback(_report_eviction)


def get_session(user_id: str) -> ResumeEditorSession:
    """Return the open session for ``user_id``, loading it on first use.

    Sessions live until DELETE, shutdown, or eviction once more than
    ``MAX_EDITOR_SESSIONS`` are open. Eviction closes the least recently used
    session, which saves any pending edits.
    """
    session = _sessions.pop(user_id, None)
    if session is not None:
        _sessions[user_id] = session
        return session
    session = ResumeEditorSession.load(user_id, get_repository(), backend=build_backend_client())
    _sessions[user_id] = session
    logger.info(json.dumps({"event": "editor_session_opened", "user_id": user_id}))
    _evict_least_recent()
    return session


def open_session_ids() -> list[str]:
    """Open sessions, least recently used first."""
    return list(_sessions)


async def close_session(user_id: str) -> bool:
    session = _sessions.pop(user_id, None)
    if session is None:
        return False
    await _close(user_id, session, "closed")
    return True


async def close_all_sessions() -> None:
    for user_id in list(_sessions):
        await close_session(user_id)
    if _evictions:
        await asyncio.gather(*_evictions, return_exceptions=True)
