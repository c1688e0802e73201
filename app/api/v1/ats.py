from fastapi import APIRouter, Depends, Request

from app.core.rate_limit import rate_limit
from app.core.security import require_api_key
from app.keywords import get_default_keyword_corpus
from app.normalize.normalize_record import load_resume_record
from app.schemas.ats import ATSAnalysis
from app.schemas.editor import ScoreRequest
from app.scoring.ats_engine import score

router = APIRouter()


@router.post("/ats/score", response_model=ATSAnalysis, response_model_by_alias=True)
@rate_limit()
async def ats_score(request: Request, payload: ScoreRequest, _: None = Depends(require_api_key)):
    record = load_resume_record(payload.resume)
    return score(record, payload.job_description, payload.selected_keywords)


@router.get("/ats/keywords")
async def ats_keywords(_: None = Depends(require_api_key)):
    categories = get_default_keyword_corpus().categories()
    return {name: list(terms) for name, terms in categories.items()}
