"""
Shared test fixtures.

- FakeClock: deterministic epoch-seconds clock driving windows and TTLs
- FakeRemote: httpx.MockTransport standing in for GitHub and Turnstile
- make_settings(): Settings isolated from the developer's environment/.env
"""

import base64
import json
from typing import Any, Optional

import httpx
import pytest

from access_gate.core.setting import Settings
from access_gate.db.memory_store import MemoryKeyValueStore

OWNER = "acme"
REPO = "access-lists"
BRANCH = "main"
API = f"https://api.github.com/repos/{OWNER}/{REPO}/contents"
RAW = f"https://raw.githubusercontent.com/{OWNER}/{REPO}/{BRANCH}"
VERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"


class FakeClock:
    """Callable returning a settable epoch time in seconds."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRemote:
    """
    Canned HTTP responses keyed by scheme://host/path (query ignored).

    Unregistered URLs answer 404. Registering an exception makes the
    transport raise it, simulating an unreachable host.
    """

    def __init__(self):
        self.routes: dict[str, Any] = {}
        self.requests: list[httpx.Request] = []

    @staticmethod
    def key(url: httpx.URL) -> str:
        return f"{url.scheme}://{url.host}{url.path}"

    def add(
        self,
        url: str,
        status_code: int = 200,
        json_body: Optional[Any] = None,
        text: Optional[str] = None
    ) -> None:
        if json_body is not None:
            self.routes[url] = httpx.Response(status_code, json=json_body)
        else:
            self.routes[url] = httpx.Response(status_code, text=text or "")

    def fail(self, url: str, error: Exception) -> None:
        self.routes[url] = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(self.key(request.url))
        if route is None:
            return httpx.Response(404, text="Not Found")
        if isinstance(route, Exception):
            raise route
        return httpx.Response(
            route.status_code,
            content=route.content,
            headers=route.headers,
        )

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def requests_to(self, url: str) -> list[httpx.Request]:
        return [request for request in self.requests if self.key(request.url) == url]


def contents_envelope(text: str) -> dict:
    """Body of a GitHub contents API response for a file with text."""
    return {
        "type": "file",
        "encoding": "base64",
        "content": base64.b64encode(text.encode("utf-8")).decode("ascii"),
    }


def publish(
    remote: FakeRemote,
    emails: Optional[list[str]] = None,
    blocked_ips: Optional[list[str]] = None,
    urls: Optional[list[str]] = None,
    verified: bool = True
) -> None:
    """Serve the three documents through the contents API and the verifier."""
    if emails is not None:
        remote.add(f"{API}/data/list.json", json_body=contents_envelope(json.dumps({"emails": emails})))
    if blocked_ips is not None:
        remote.add(f"{API}/data/blacklist.txt", json_body=contents_envelope("\n".join(blocked_ips)))
    if urls is not None:
        remote.add(f"{API}/data/url.json", json_body=contents_envelope(json.dumps({"urls": urls})))
    remote.add(VERIFY_URL, json_body={"success": verified})


def make_settings(**overrides) -> Settings:
    values = {
        "GITHUB_REPO_OWNER": OWNER,
        "GITHUB_REPO_NAME": REPO,
        "GITHUB_BRANCH": BRANCH,
        "GITHUB_API_TOKEN": None,
        "TURNSTILE_SECRET_KEY": "test-secret",
        "TURNSTILE_VERIFY_URL": VERIFY_URL,
        "KV_BACKEND": "memory",
        "RATE_LIMIT_MAX_REQUESTS": 10,
        "RATE_LIMIT_WINDOW": 60,
        "RATE_LIMIT_FAIL_OPEN": True,
        "CACHE_TTL": 300,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> MemoryKeyValueStore:
    return MemoryKeyValueStore(clock=clock)


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()
