from fastapi import APIRouter

from app.scoring.ats_engine import keyword_target

router = APIRouter()


@router.get("/health", summary="Health Check", description="Check the health status of the application.")
async def health_check():
    return {"status": "healthy", "keyword_target": keyword_target()}
