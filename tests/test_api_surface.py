import sys
from pathlib import Path

from fastapi import FastAPI
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.api.v1.health import router as health_router
from app.main import app


def _registered_paths() -> set[str]:
    return {route.path for route in app.routes}


def test_resume_routes_are_registered() -> None:
    paths = _registered_paths()

    assert "/v1/health" in paths
    assert "/v1/ats/score" in paths
    assert "/v1/ats/keywords" in paths
    assert "/v1/resumes/{user_id}" in paths
    assert "/v1/resumes/{user_id}/fields" in paths
    assert "/v1/resumes/{user_id}/sections/{section}/items" in paths
    assert "/v1/resumes/{user_id}/sections/{section}/items/{index}" in paths
    assert "/v1/resumes/{user_id}/optimize" in paths
    assert "/v1/resumes/{user_id}/export/{fmt}" in paths


def test_only_resume_routes_are_mounted_under_v1() -> None:
    versioned = {path for path in _registered_paths() if path.startswith("/v1/")}

    assert versioned
    assert all(path.split("/")[2] in {"health", "ats", "resumes"} for path in versioned)


def test_health_endpoint_reports_keyword_target() -> None:
    test_app = FastAPI()
    test_app.include_router(health_router, prefix="/v1")
    client = TestClient(test_app)

    response = client.get("/v1/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "keyword_target": 20}
