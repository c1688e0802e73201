import contextlib
from contextlib import asynccontextmanager
import logging

from app.services.editor_service import close_all_sessions, get_repository
from app.storage.resume_store import SqliteResumeRepository

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    repository = get_repository()
    if isinstance(repository, SqliteResumeRepository):
        repository.init()

    yield

    try:
        await close_all_sessions()
    except Exception as exc:  # noqa: BLE001
        logger.warning("editor_session_shutdown_failed: %s", exc)
    if isinstance(repository, SqliteResumeRepository):
        with contextlib.suppress(Exception):
            repository.close()
