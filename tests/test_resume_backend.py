import json
import sys
import unittest
from pathlib import Path

import httpx

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.integrations.resume_backend import (  # noqa: E402
    AuthError,
    NetworkError,
    ResumeBackendClient,
    ServerError,
)
from app.schemas.ats import OptimizationOptions  # noqa: E402
from app.schemas.resume import BasicDetails, ResumeRecord  # noqa: E402

BASE_URL = "https://resume.example.test"


def _client(handler, **kwargs):
    return ResumeBackendClient(BASE_URL, timeout_s=1.0, transport=httpx.MockTransport(handler), **kwargs)


class ResumeBackendClientTests(unittest.IsolatedAsyncioTestCase):
    async def test_login_stores_token_and_user(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"success": True, "data": {"token": "tok-1", "user": {"_id": "abc", "name": "Olivia"}}},
            )

        client = _client(handler)
        session = await client.login("olivia@example.com", "secret")
        await client.aclose()

        self.assertEqual(seen["path"], "/api/auth")
        self.assertEqual(seen["body"], {"email": "olivia@example.com", "password": "secret"})
        self.assertEqual(session.token, "tok-1")
        self.assertTrue(client.is_authenticated)
        self.assertEqual(client.user_id, "abc")

    async def test_login_rejection_has_friendly_message(self):
        client = _client(lambda request: httpx.Response(401, json={"message": "nope"}))
        with self.assertRaises(AuthError) as ctx:
            await client.login("olivia@example.com", "wrong")
        await client.aclose()
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(ctx.exception.user_message, "Invalid email or password. Please try again.")
        self.assertFalse(client.is_authenticated)

    async def test_login_without_token_fails(self):
        client = _client(lambda request: httpx.Response(200, json={"success": True, "data": {}}))
        with self.assertRaises(AuthError):
            await client.login("olivia@example.com", "secret")
        await client.aclose()

    async def test_authenticated_call_sends_bearer_and_parses_result(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            seen["request_id"] = request.headers.get("X-Request-ID")
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"html": "<h1>Olivia</h1>", "data": {"basicdetails": {"name": "Olivia"}, "skills": ["SEO"]}},
            )

        client = _client(handler, token="tok-1")
        record = ResumeRecord(basic_details=BasicDetails(name="Olivia"))
        result = await client.generate_ats_resume(record, OptimizationOptions(target_role="Marketing Lead"))
        await client.aclose()

        self.assertEqual(seen["auth"], "Bearer tok-1")
        self.assertTrue(seen["request_id"].startswith("req_"))
        self.assertEqual(seen["body"]["resumeData"]["basicDetails"]["name"], "Olivia")
        self.assertEqual(seen["body"]["options"], {"targetRole": "Marketing Lead", "atsOptimization": True})
        self.assertEqual(result.html, "<h1>Olivia</h1>")
        self.assertEqual(result.record.basic_details.name, "Olivia")
        self.assertEqual(result.record.skills, ["SEO"])

    async def test_unauthenticated_optimization_is_rejected_without_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={})

        client = _client(handler)
        with self.assertRaises(AuthError):
            await client.generate_ats_resume(ResumeRecord())
        self.assertEqual(calls, [])
        await client.aclose()

    async def test_expired_token_logs_out(self):
        client = _client(lambda request: httpx.Response(401), token="stale")
        with self.assertRaises(AuthError):
            await client.me()
        await client.aclose()
        self.assertFalse(client.is_authenticated)

    async def test_forbidden_keeps_session(self):
        client = _client(lambda request: httpx.Response(403), token="tok-1")
        with self.assertRaises(AuthError) as ctx:
            await client.me()
        await client.aclose()
        self.assertEqual(ctx.exception.status_code, 403)
        self.assertTrue(client.is_authenticated)

    async def test_server_and_network_errors(self):
        client = _client(lambda request: httpx.Response(500, text="boom"), token="tok-1")
        with self.assertLogs("app.integrations.resume_backend", level="WARNING"):
            with self.assertRaises(ServerError) as ctx:
                await client.generate_ats_resume(ResumeRecord())
        self.assertEqual(ctx.exception.status_code, 500)
        await client.aclose()

        def unreachable(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(unreachable)
        with self.assertLogs("app.integrations.resume_backend", level="WARNING"):
            with self.assertRaises(NetworkError) as ctx:
                await client.upload_resume(ResumeRecord())
        self.assertEqual(ctx.exception.user_message, NetworkError.default_message)
        await client.aclose()

    async def test_empty_optimization_payload_is_server_error(self):
        client = _client(lambda request: httpx.Response(200, json={"success": True}), token="tok-1")
        with self.assertRaises(ServerError):
            await client.generate_ats_resume(ResumeRecord())
        await client.aclose()

    async def test_upload_does_not_require_login(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"id": "r-1"})

        client = _client(handler)
        body = await client.upload_resume(ResumeRecord(about="Hi"), user_id="abc")
        await client.aclose()

        self.assertIsNone(seen["auth"])
        self.assertEqual(seen["body"]["userId"], "abc")
        self.assertEqual(seen["body"]["resumeData"]["about"], "Hi")
        self.assertEqual(body, {"id": "r-1"})


if __name__ == "__main__":
    unittest.main()
