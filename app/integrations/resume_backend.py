from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

import httpx

from app.normalize.normalize_record import load_resume_record
from app.schemas.ats import OptimizationOptions
from app.schemas.resume import ResumeRecord

logger = logging.getLogger(__name__)


class RemoteCallError(RuntimeError):
    default_message = "The resume service is unavailable right now."

    def __init__(self, detail: str, *, status_code: int | None = None, user_message: str | None = None):
        super().__init__(detail)
        self.status_code = status_code
        self.user_message = user_message or self.default_message


class NetworkError(RemoteCallError):
    default_message = "Could not reach the resume service. Check your connection and try again."


class AuthError(RemoteCallError):
    default_message = "Your session has expired. Please sign in again."


class ServerError(RemoteCallError):
    default_message = "The resume service had a problem. Please try again later."


@dataclass(frozen=True)
class AuthSession:
    token: str
    user: dict[str, Any] = field(default_factory=dict)

    @property
    def user_id(self) -> str | None:
        value = self.user.get("id") or self.user.get("_id")
        return str(value) if value else None


@dataclass(frozen=True)
class RemoteOptimization:
    html: str | None = None
    record: ResumeRecord | None = None


def _unwrap(body: Any) -> Any:
    """Strip the ``{success, data, message}`` envelope when the backend sends one."""
    if isinstance(body, dict) and "success" in body and isinstance(body.get("data"), dict):
        return body["data"]
    return body


class ResumeBackendClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
        token: str | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._transport = transport
        self._session: AuthSession | None = AuthSession(token=token) if token else None
        self._client: httpx.AsyncClient | None = None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    @property
    def user_id(self) -> str | None:
        return self._session.user_id if self._session else None

    @property
    def token(self) -> str | None:
        return self._session.token if self._session else None

    def logout(self) -> None:
        self._session = None

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout_s,
                transport=self._transport,
                headers={"Content-Type": "application/json", "Accept": "application/json"},
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        *,
        payload: dict[str, Any] | None = None,
        authenticated: bool = False,
    ) -> Any:
        headers = {"X-Request-ID": f"req_{uuid.uuid4().hex[:12]}"}
        if authenticated:
            if self._session is None:
                raise AuthError(f"{method} {path} requires authentication", status_code=401)
            headers["Authorization"] = f"Bearer {self._session.token}"

        try:
            response = await self._http().request(method, path, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            logger.warning("resume_backend_timeout method=%s path=%s", method, path)
            raise NetworkError(f"{method} {path} timed out") from exc
        except httpx.TransportError as exc:
            logger.warning("resume_backend_unreachable method=%s path=%s: %s", method, path, exc)
            raise NetworkError(f"{method} {path} failed: {exc}") from exc

        status = response.status_code
        if status == 401:
            # Stored token is no longer valid; later authenticated calls must log in again.
            self.logout()
            raise AuthError(f"{method} {path} returned 401", status_code=status)
        if status == 403:
            raise AuthError(
                f"{method} {path} returned 403",
                status_code=status,
                user_message="You do not have access to this feature.",
            )
        if status >= 400:
            logger.warning("resume_backend_error method=%s path=%s status=%s", method, path, status)
            raise ServerError(f"{method} {path} returned {status}", status_code=status)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise ServerError(f"{method} {path} returned invalid JSON", status_code=status) from exc

    async def login(self, email: str, password: str) -> AuthSession:
        try:
            body = _unwrap(await self._request("POST", "/api/auth", payload={"email": email, "password": password}))
        except AuthError as exc:
            raise AuthError(
                str(exc),
                status_code=exc.status_code,
                user_message="Invalid email or password. Please try again.",
            ) from exc
        token = body.get("token") if isinstance(body, dict) else None
        if not token:
            raise AuthError("login response carried no token", user_message="Invalid email or password. Please try again.")
        user = body.get("user") if isinstance(body.get("user"), dict) else {}
        self._session = AuthSession(token=str(token), user=user)
        return self._session

    async def me(self) -> dict[str, Any]:
        body = _unwrap(await self._request("GET", "/me", authenticated=True))
        user = body if isinstance(body, dict) else {}
        if self._session is not None and user:
            self._session = AuthSession(token=self._session.token, user=user)
        return user

    async def upload_resume(self, record: ResumeRecord, *, user_id: str | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {"resumeData": record.model_dump(by_alias=True)}
        if user_id:
            payload["userId"] = user_id
        body = await self._request("POST", "/api/resume/Resume", payload=payload)
        return body if isinstance(body, dict) else {}

    async def generate_ats_resume(
        self,
        record: ResumeRecord,
        options: OptimizationOptions | None = None,
    ) -> RemoteOptimization:
        payload = {
            "resumeData": record.model_dump(by_alias=True),
            "options": (options or OptimizationOptions()).model_dump(by_alias=True, exclude_none=True),
        }
        body = await self._request("POST", "/api/resume/Ats_resume", payload=payload, authenticated=True)
        if not isinstance(body, dict):
            raise ServerError("Ats_resume returned an unexpected payload")
        html = body.get("html")
        data = body.get("data")
        optimized = load_resume_record(data) if isinstance(data, dict) and data else None
        if not html and optimized is None:
            raise ServerError("Ats_resume returned neither html nor data")
        return RemoteOptimization(html=str(html) if html else None, record=optimized)
