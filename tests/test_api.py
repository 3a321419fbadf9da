"""
End-to-end tests for the HTTP surface.

The app runs in-process through httpx.ASGITransport with services
pre-initialized on an in-memory store; GitHub and Turnstile are served by
FakeRemote.
"""

import random
from contextlib import asynccontextmanager

import httpx
import pytest

from conftest import make_settings, publish
from access_gate.core.service_manager import initialize_services, shutdown_services
from access_gate.main import create_app

CLIENT_IP = "192.0.2.10"


@asynccontextmanager
async def gate_client(store, clock, remote, **overrides):
    app_settings = make_settings(**overrides)
    app = create_app(app_settings)
    await initialize_services(
        app,
        app_settings,
        store=store,
        http_client=remote.client(),
        clock=clock,
        rng=random.Random(1),
    )
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    await shutdown_services(app)


def submit(client, email="admin@co.com", token="tok", honeypot="", ip=CLIENT_IP):
    return client.post(
        "/api/validate",
        json={"email": email, "turnstileToken": token, "honeypotField": honeypot},
        headers={"CF-Connecting-IP": ip},
    )


class TestValidateEndpoint:
    """POST /api/validate."""

    @pytest.mark.asyncio
    async def test_success_scenario(self, store, clock, remote):
        publish(remote, emails=["admin@co.com"], blocked_ips=["203.0.113.7"], urls=["https://x/r?u="])

        async with gate_client(store, clock, remote) as client:
            response = await submit(client)

        assert response.status_code == 200
        assert response.json() == {"success": True, "redirectUrl": "https://x/r?u=admin@co.com"}

    @pytest.mark.asyncio
    async def test_second_call_within_window_is_rate_limited(self, store, clock, remote):
        publish(remote, emails=["admin@co.com"], blocked_ips=[], urls=["https://x/r?u="])

        async with gate_client(store, clock, remote, RATE_LIMIT_MAX_REQUESTS=1) as client:
            first = await submit(client)
            clock.advance(30)
            second = await submit(client)

        assert first.status_code == 200
        assert second.status_code == 429
        assert second.json() == {
            "success": False,
            "message": "Too many requests. Please try again later.",
        }

    @pytest.mark.asyncio
    async def test_deny_list_hit_and_allow_list_miss_are_byte_identical(self, store, clock, remote):
        publish(remote, emails=["admin@co.com"], blocked_ips=[CLIENT_IP], urls=["https://x/r?u="])

        async with gate_client(store, clock, remote) as client:
            denied = await submit(client)
            not_allowed = await submit(client, email="intruder@co.com", ip="192.0.2.77")

        assert denied.status_code == not_allowed.status_code == 403
        assert denied.content == not_allowed.content
        assert denied.json() == {"success": False, "message": "Access denied"}

    @pytest.mark.asyncio
    async def test_honeypot_and_bot_failure_share_the_denial(self, store, clock, remote):
        publish(remote, emails=["admin@co.com"], urls=["https://x/r?u="], verified=False)

        async with gate_client(store, clock, remote) as client:
            honeypot = await submit(client, honeypot="gotcha")
            bot = await submit(client)

        assert honeypot.status_code == bot.status_code == 403
        assert honeypot.content == bot.content

    @pytest.mark.asyncio
    @pytest.mark.parametrize("honeypot", [1, True, ["x"]])
    async def test_non_string_honeypot_gets_the_generic_denial(self, store, clock, remote, honeypot):
        publish(remote, emails=["admin@co.com"], urls=["https://x/r?u="])

        async with gate_client(store, clock, remote) as client:
            response = await client.post(
                "/api/validate",
                json={"email": "admin@co.com", "turnstileToken": "tok", "honeypotField": honeypot},
                headers={"CF-Connecting-IP": CLIENT_IP},
            )

        assert response.status_code == 403
        assert response.json() == {"success": False, "message": "Access denied"}
        assert remote.requests == []

    @pytest.mark.asyncio
    async def test_empty_redirect_pool_is_server_error(self, store, clock, remote):
        publish(remote, emails=["admin@co.com"])

        async with gate_client(store, clock, remote) as client:
            response = await submit(client)

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "No redirect URLs available"}

    @pytest.mark.asyncio
    async def test_missing_fields_and_bad_email_are_bad_requests(self, store, clock, remote):
        async with gate_client(store, clock, remote) as client:
            missing = await submit(client, token="")
            malformed = await submit(client, email="not-an-email")

        assert missing.status_code == 400
        assert missing.json()["message"] == "Missing required fields"
        assert malformed.status_code == 400
        assert malformed.json()["message"] == "Invalid email format"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b"not json", b"[1, 2]", b'{"email": 42, "turnstileToken": "t"}'])
    async def test_unparseable_body_is_bad_request(self, store, clock, remote, body):
        async with gate_client(store, clock, remote) as client:
            response = await client.post(
                "/api/validate", content=body, headers={"Content-Type": "application/json"}
            )

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Invalid request body"}

    @pytest.mark.asyncio
    async def test_wrong_method(self, store, clock, remote):
        async with gate_client(store, clock, remote) as client:
            response = await client.get("/api/validate")

        assert response.status_code == 405


class TestRouting:
    """Static assets, preflight and unknown paths."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path,content_type", [
        ("/", "text/html"),
        ("/index.html", "text/html"),
        ("/styles.css", "text/css"),
        ("/script.js", "application/javascript"),
    ])
    async def test_static_assets(self, store, clock, remote, path, content_type):
        async with gate_client(store, clock, remote) as client:
            response = await client.get(path)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith(content_type)
        assert response.content

    @pytest.mark.asyncio
    async def test_unknown_path_is_not_found(self, store, clock, remote):
        async with gate_client(store, clock, remote) as client:
            response = await client.get("/admin")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_options_is_answered_without_body_or_rate_limit(self, store, clock, remote):
        async with gate_client(store, clock, remote, RATE_LIMIT_MAX_REQUESTS=1) as client:
            responses = [
                await client.options("/api/validate", headers={"Origin": "https://example.org"})
                for _ in range(3)
            ]

        for response in responses:
            assert response.status_code == 200
            assert response.content == b""
            assert response.headers["access-control-allow-origin"] == "*"
        assert store.keys() == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("requested_headers", [None, "content-type", "content-type, x-requested-with"])
    async def test_browser_preflight_gets_empty_200(self, store, clock, remote, requested_headers):
        headers = {
            "Origin": "https://example.org",
            "Access-Control-Request-Method": "POST",
        }
        if requested_headers:
            headers["Access-Control-Request-Headers"] = requested_headers

        async with gate_client(store, clock, remote) as client:
            response = await client.options("/api/validate", headers=headers)

        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-methods"] == "GET, POST, OPTIONS"
        assert response.headers["access-control-allow-headers"] == "Content-Type"

    @pytest.mark.asyncio
    async def test_preflight_on_unknown_path(self, store, clock, remote):
        async with gate_client(store, clock, remote) as client:
            response = await client.options("/anything", headers={"Access-Control-Request-Method": "GET"})

        assert response.status_code == 200
        assert response.content == b""

    @pytest.mark.asyncio
    async def test_simple_request_still_gets_cors_origin(self, store, clock, remote):
        async with gate_client(store, clock, remote) as client:
            response = await client.get("/", headers={"Origin": "https://example.org"})

        assert response.headers["access-control-allow-origin"] == "*"

    @pytest.mark.asyncio
    async def test_static_pages_count_against_the_limit(self, store, clock, remote):
        async with gate_client(store, clock, remote, RATE_LIMIT_MAX_REQUESTS=2) as client:
            first = await client.get("/", headers={"CF-Connecting-IP": CLIENT_IP})
            second = await client.get("/styles.css", headers={"CF-Connecting-IP": CLIENT_IP})
            third = await client.get("/script.js", headers={"CF-Connecting-IP": CLIENT_IP})

        assert first.headers["X-RateLimit-Remaining"] == "1"
        assert second.headers["X-RateLimit-Remaining"] == "0"
        assert third.status_code == 429

    @pytest.mark.asyncio
    async def test_forwarded_for_identifies_client(self, store, clock, remote):
        async with gate_client(store, clock, remote) as client:
            await client.get("/", headers={"X-Forwarded-For": "198.51.100.4, 10.0.0.1"})

        assert store.keys() == ["rate_limit:198.51.100.4"]
