from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Awaitable, Callable, Iterable

from app.core.config import settings
from app.editor import (
    SectionKind,
    ValidationResult,
    add_item,
    lookup_section,
    remove_item,
    update_scalar,
    validate,
)
from app.integrations.resume_backend import RemoteCallError, ResumeBackendClient
from app.keywords import KeywordCorpusProvider, KeywordSelection, get_default_keyword_corpus
from app.schemas.ats import ATSAnalysis, OptimizationOptions, OptimizationOutcome
from app.schemas.resume import ResumeRecord
from app.scoring.ats_engine import score
from app.services.optimizer_llm import optimize_with_llm, optimizer_llm_enabled
from app.storage.resume_store import ResumeRepository

logger = logging.getLogger(__name__)

AnalysisCallback = Callable[[ATSAnalysis], None]
LLMOptimizer = Callable[[ResumeRecord, OptimizationOptions], Awaitable[ResumeRecord | None]]

LLM_FALLBACK_MESSAGE = "AI optimization is unavailable. Showing the local ATS analysis instead."


class Debouncer:
    """Runs ``action`` once input has been quiet for ``delay_s`` seconds.

    A new trigger cancels the pending run, so only the latest trigger fires.
    Needs a running event loop.
    """

    def __init__(self, delay_s: float, action: Callable[[], Awaitable[None]]) -> None:
        self._delay_s = max(0.0, delay_s)
        self._action = action
        self._task: asyncio.Task[None] | None = None

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def trigger(self) -> None:
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run())
        self._task.add_done_callback(self._report_failure)

    def _report_failure(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "debounced_action_failed action=%s",
                getattr(self._action, "__qualname__", repr(self._action)),
                exc_info=exc,
            )

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self) -> None:
        await asyncio.sleep(self._delay_s)
        await self._action()

    async def wait(self) -> None:
        """Wait for the pending run, if any. Used by shutdown and tests."""
        task = self._task
        if task is None:
            return
        with contextlib.suppress(asyncio.CancelledError):
            await task


async def _llm_optimize(record: ResumeRecord, options: OptimizationOptions) -> ResumeRecord | None:
    if not optimizer_llm_enabled():
        return None
    return await asyncio.to_thread(optimize_with_llm, record, options)


class ResumeEditorSession:
    """Owns one user's résumé while it is being edited.

    Edits go through the section mutator and replace the record wholesale.
    Scoring and autosave run on separate debouncers, both keyed to the latest
    record only.
    """

    def __init__(
        self,
        user_id: str,
        repository: ResumeRepository,
        *,
        record: ResumeRecord | None = None,
        corpus: KeywordCorpusProvider | None = None,
        analysis_delay_s: float | None = None,
        autosave_delay_s: float | None = None,
        on_analysis: AnalysisCallback | None = None,
        backend: ResumeBackendClient | None = None,
        llm_optimizer: LLMOptimizer | None = _llm_optimize,
    ) -> None:
        self.user_id = user_id
        self._repository = repository
        self._record = record if record is not None else ResumeRecord()
        self._corpus = corpus or get_default_keyword_corpus()
        self._on_analysis = on_analysis
        self._backend = backend
        self._llm_optimizer = llm_optimizer
        self._job_description = ""
        self._selection = KeywordSelection()
        self._analysis: ATSAnalysis | None = None
        self._revision = 0
        self._analyzed_revision = -1
        self.dirty = False
        self.last_error: str | None = None

        if analysis_delay_s is None:
            analysis_delay_s = settings.analysis_debounce_ms / 1000
        if autosave_delay_s is None:
            autosave_delay_s = settings.autosave_debounce_ms / 1000
        self._analysis_debouncer = Debouncer(analysis_delay_s, self._run_scheduled_analysis)
        self._autosave_debouncer = Debouncer(autosave_delay_s, self.flush)

    @classmethod
    def load(cls, user_id: str, repository: ResumeRepository, **kwargs) -> "ResumeEditorSession":
        record = repository.get(user_id)
        return cls(user_id, repository, record=record, **kwargs)

    @property
    def record(self) -> ResumeRecord:
        return self._record

    @property
    def analysis(self) -> ATSAnalysis | None:
        return self._analysis

    @property
    def job_description(self) -> str:
        return self._job_description

    @property
    def selected_keywords(self) -> tuple[str, ...]:
        return self._selection.as_tuple()

    @property
    def analysis_pending(self) -> bool:
        return self._analysis_debouncer.pending

    @property
    def analysis_stale(self) -> bool:
        return self._analyzed_revision != self._revision

    def _apply(self, updated: ResumeRecord) -> bool:
        if updated is self._record:
            return False
        self._record = updated
        self._revision += 1
        self.dirty = True
        self._analysis_debouncer.trigger()
        self._autosave_debouncer.trigger()
        return True

    def update_field(
        self,
        section: SectionKind | str,
        field: str | None,
        value: str,
        *,
        index: int | None = None,
    ) -> bool:
        return self._apply(update_scalar(self._record, section, field, value, index=index))

    def add_item(self, section: SectionKind | str) -> int:
        """Append a template item and return its index."""
        self._apply(add_item(self._record, section))
        return len(getattr(self._record, _attribute(section))) - 1

    def remove_item(self, section: SectionKind | str, index: int) -> None:
        self._apply(remove_item(self._record, section, index))

    def replace_record(self, record: ResumeRecord) -> bool:
        return self._apply(record)

    def validate(self) -> ValidationResult:
        return validate(self._record)

    def set_job_description(self, text: str) -> None:
        text = text or ""
        if text == self._job_description:
            return
        self._job_description = text
        self._revision += 1
        self._analysis_debouncer.trigger()

    def set_selected_keywords(self, keywords: Iterable[str]) -> None:
        self._selection.replace(keywords)
        self._revision += 1
        self._analysis_debouncer.trigger()

    def toggle_keyword(self, keyword: str) -> bool:
        selected = self._selection.toggle(keyword)
        self._revision += 1
        self._analysis_debouncer.trigger()
        return selected

    def _score_current(self) -> ATSAnalysis:
        analysis = score(
            self._record,
            self._job_description,
            self._selection.as_tuple(),
            corpus=self._corpus,
        )
        self._analysis = analysis
        self._analyzed_revision = self._revision
        logger.info(
            json.dumps(
                {
                    "event": "ats_analysis",
                    "user_id": self.user_id,
                    "revision": self._revision,
                    "score": analysis.score,
                    "unique_keywords": analysis.unique_count,
                    "missing_keywords": len(analysis.missing_keywords),
                }
            )
        )
        if self._on_analysis is not None:
            self._on_analysis(analysis)
        return analysis

    async def _run_scheduled_analysis(self) -> None:
        self._score_current()

    def analyze_now(self) -> ATSAnalysis:
        """Score immediately, superseding any pending debounced pass."""
        self._analysis_debouncer.cancel()
        return self._score_current()

    async def flush(self) -> bool:
        """Save the record if it changed since the last save. Returns True on save."""
        if not self.dirty:
            return False
        try:
            self._repository.put(self.user_id, self._record)
        except Exception as exc:  # noqa: BLE001
            logger.warning("resume_autosave_failed user_id=%s: %s", self.user_id, exc)
            return False
        self.dirty = False
        return True

    async def optimize(self, options: OptimizationOptions | None = None) -> OptimizationOutcome:
        """Ask the remote backend, then the LLM, to optimize; fall back to local scoring."""
        options = options or OptimizationOptions()
        message: str | None = None

        if self._backend is not None and self._backend.is_authenticated:
            try:
                remote = await self._backend.generate_ats_resume(self._record, options)
            except RemoteCallError as exc:
                logger.warning(
                    "remote_optimization_failed user_id=%s kind=%s: %s",
                    self.user_id,
                    type(exc).__name__,
                    exc,
                )
                message = exc.user_message
            else:
                self.last_error = None
                target = remote.record or self._record
                return OptimizationOutcome(
                    source="remote",
                    analysis=self._score_for(target),
                    record=remote.record,
                    html=remote.html,
                )

        if self._llm_optimizer is not None:
            optimized = await self._llm_optimizer(self._record, options)
            if optimized is not None:
                self.last_error = None
                return OptimizationOutcome(
                    source="llm",
                    message=message,
                    analysis=self._score_for(optimized),
                    record=optimized,
                )
            if message is None and optimizer_llm_enabled():
                message = LLM_FALLBACK_MESSAGE

        self.last_error = message
        return OptimizationOutcome(source="local", message=message, analysis=self.analyze_now())

    def _score_for(self, record: ResumeRecord) -> ATSAnalysis:
        return score(record, self._job_description, self._selection.as_tuple(), corpus=self._corpus)

    async def wait_idle(self) -> None:
        await self._analysis_debouncer.wait()
        await self._autosave_debouncer.wait()

    @property
    def backend(self) -> ResumeBackendClient | None:
        return self._backend

    async def close(self) -> None:
        """Cancel pending work, save once more and release the backend client."""
        self._analysis_debouncer.cancel()
        self._autosave_debouncer.cancel()
        await self.flush()
        if self._backend is not None:
            await self._backend.aclose()


def _attribute(section: SectionKind | str) -> str:
    spec = lookup_section(section)
    return spec.attribute if spec else str(section)
