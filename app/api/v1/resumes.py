import logging
from typing import Annotated, Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Path, status
from fastapi.responses import Response

from app.core.security import require_api_key
from app.editor import IndexOutOfRange, InvalidPath, SectionMutationError, UnknownSection
from app.integrations.resume_backend import RemoteCallError
from app.normalize.normalize_record import load_resume_record
from app.schemas.ats import ATSAnalysis, OptimizationOptions
from app.schemas.editor import AnalysisInputsRequest, FieldUpdateRequest, LoginRequest, SessionStateResponse
from app.services.editor_service import close_session, get_session
from app.services.editor_session import ResumeEditorSession
from app.services.export_service import export_filename, export_html, export_json

router = APIRouter(dependencies=[Depends(require_api_key)])
logger = logging.getLogger(__name__)

UserId = Annotated[str, Path(min_length=1, max_length=128, pattern=r"^[A-Za-z0-9_.@-]+$")]


def _raise_mutation_http_error(exc: SectionMutationError) -> None:
    if isinstance(exc, IndexOutOfRange):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    if isinstance(exc, (InvalidPath, UnknownSection)):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    raise exc


def _state(session: ResumeEditorSession) -> SessionStateResponse:
    return SessionStateResponse(
        user_id=session.user_id,
        resume=session.record,
        analysis=session.analysis,
        validation=session.validate(),
        dirty=session.dirty,
        job_description=session.job_description,
        selected_keywords=list(session.selected_keywords),
    )


@router.get("/resumes/{user_id}", response_model=SessionStateResponse, response_model_by_alias=True)
async def get_resume(user_id: UserId):
    return _state(get_session(user_id))


@router.put("/resumes/{user_id}", response_model=SessionStateResponse, response_model_by_alias=True)
async def replace_resume(user_id: UserId, payload: dict[str, Any]):
    session = get_session(user_id)
    session.replace_record(load_resume_record(payload))
    return _state(session)


@router.patch("/resumes/{user_id}/fields", response_model=SessionStateResponse, response_model_by_alias=True)
async def update_field(user_id: UserId, payload: FieldUpdateRequest):
    session = get_session(user_id)
    try:
        session.update_field(payload.section, payload.field, payload.value, index=payload.index)
    except SectionMutationError as exc:
        _raise_mutation_http_error(exc)
    return _state(session)


@router.post(
    "/resumes/{user_id}/sections/{section}/items",
    response_model=SessionStateResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
)
async def add_section_item(user_id: UserId, section: str):
    session = get_session(user_id)
    try:
        session.add_item(section)
    except SectionMutationError as exc:
        _raise_mutation_http_error(exc)
    return _state(session)


@router.delete(
    "/resumes/{user_id}/sections/{section}/items/{index}",
    response_model=SessionStateResponse,
    response_model_by_alias=True,
)
async def remove_section_item(user_id: UserId, section: str, index: int):
    session = get_session(user_id)
    try:
        session.remove_item(section, index)
    except SectionMutationError as exc:
        _raise_mutation_http_error(exc)
    return _state(session)


@router.get("/resumes/{user_id}/validation")
async def validate_resume(user_id: UserId):
    errors = get_session(user_id).validate()
    return {"valid": not errors, "errors": errors}


@router.put("/resumes/{user_id}/analysis-inputs", response_model=SessionStateResponse, response_model_by_alias=True)
async def set_analysis_inputs(user_id: UserId, payload: AnalysisInputsRequest):
    session = get_session(user_id)
    if payload.job_description is not None:
        session.set_job_description(payload.job_description)
    if payload.selected_keywords is not None:
        session.set_selected_keywords(payload.selected_keywords)
    return _state(session)


@router.post("/resumes/{user_id}/analysis", response_model=ATSAnalysis, response_model_by_alias=True)
async def analyze_resume(user_id: UserId):
    return get_session(user_id).analyze_now()


@router.post("/resumes/{user_id}/save")
async def save_resume(user_id: UserId):
    session = get_session(user_id)
    saved = await session.flush()
    return {"saved": saved, "dirty": session.dirty}


@router.post("/resumes/{user_id}/optimize")
async def optimize_resume(user_id: UserId, options: OptimizationOptions | None = None):
    outcome = await get_session(user_id).optimize(options)
    return outcome.to_payload()


@router.post("/resumes/{user_id}/login")
async def login_backend(user_id: UserId, payload: LoginRequest):
    session = get_session(user_id)
    if session.backend is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Resume backend not configured.")
    try:
        auth = await session.backend.login(payload.email, payload.password)
    except RemoteCallError as exc:
        logger.warning("resume_backend_login_failed user_id=%s kind=%s", user_id, type(exc).__name__)
        code = exc.status_code if exc.status_code in {401, 403} else status.HTTP_502_BAD_GATEWAY
        raise HTTPException(status_code=code, detail=exc.user_message) from exc
    return {"authenticated": True, "user": auth.user}


@router.get("/resumes/{user_id}/export/{fmt}")
async def export_resume(user_id: UserId, fmt: Literal["json", "html"]):
    record = get_session(user_id).record
    if fmt == "json":
        content, media_type = export_json(record), "application/json"
    else:
        content, media_type = export_html(record), "text/html; charset=utf-8"
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{export_filename(record, fmt)}"'},
    )


@router.delete("/resumes/{user_id}/session")
async def end_session(user_id: UserId):
    return {"closed": await close_session(user_id)}
