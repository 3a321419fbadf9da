"""
Service Manager

This module builds the application's service graph once per process and
attaches it to app.state, where the middleware and endpoints read it.

Design:
- Initialized on application startup, released on shutdown
- The key-value store and the outbound HTTP client are the only shared
  resources; every service receives them explicitly
- Tests pre-initialize with an in-memory store, a mocked HTTP transport
  and a fake clock; startup then leaves the injected graph alone
"""

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional

import httpx
from fastapi import FastAPI

from access_gate.core.rate_limit import RateLimiter
from access_gate.core.setting import Settings
from access_gate.db import KeyValueStore, create_kv_store
from access_gate.services.access_lists import AccessListService
from access_gate.services.access_validator import AccessValidator
from access_gate.services.bot_verifier import TurnstileVerifier
from access_gate.services.document_cache import DocumentCache
from access_gate.services.document_fetcher import RemoteDocumentFetcher
from access_gate.services.redirect_service import RedirectService

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything a request handler needs."""
    settings: Settings
    store: KeyValueStore
    http_client: httpx.AsyncClient
    rate_limiter: RateLimiter
    access_lists: AccessListService
    validator: AccessValidator


def build_services(
    settings: Settings,
    store: KeyValueStore,
    http_client: httpx.AsyncClient,
    clock: Callable[[], float] = time.time,
    rng: Optional[random.Random] = None
) -> Services:
    """Wire the service graph from its shared resources."""
    rate_limiter = RateLimiter(
        store,
        max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=settings.RATE_LIMIT_WINDOW,
        fail_open=settings.RATE_LIMIT_FAIL_OPEN,
        clock=clock,
    )
    cache = DocumentCache(store, ttl_seconds=settings.CACHE_TTL, clock=clock)
    fetcher = RemoteDocumentFetcher.from_settings(http_client, settings)
    access_lists = AccessListService(cache, fetcher)
    verifier = TurnstileVerifier(
        http_client,
        secret_key=settings.TURNSTILE_SECRET_KEY,
        verify_url=settings.TURNSTILE_VERIFY_URL,
    )
    validator = AccessValidator(
        access_lists,
        verifier,
        RedirectService(access_lists, rng=rng),
    )
    return Services(
        settings=settings,
        store=store,
        http_client=http_client,
        rate_limiter=rate_limiter,
        access_lists=access_lists,
        validator=validator,
    )


def get_services(app: FastAPI) -> Services:
    """
    Services attached to app.

    Raises:
        RuntimeError: If initialize_services has not run
    """
    services = getattr(app.state, "services", None)
    if services is None:
        raise RuntimeError("Services are not initialized")
    return services


async def initialize_services(
    app: FastAPI,
    settings: Settings,
    store: Optional[KeyValueStore] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    clock: Callable[[], float] = time.time,
    rng: Optional[random.Random] = None
) -> Services:
    """
    Create the store and HTTP client (unless given) and attach the services.
    """
    existing = getattr(app.state, "services", None)
    if existing is not None:
        logger.warning("Services already initialized")
        return existing

    if store is None:
        store = await create_kv_store(settings)
        logger.info(f"Key-value store initialized: backend={settings.KV_BACKEND.value}")

    if http_client is None:
        http_client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT)

    services = build_services(settings, store, http_client, clock=clock, rng=rng)
    app.state.services = services
    logger.info(
        f"Services initialized: "
        f"max_requests={settings.RATE_LIMIT_MAX_REQUESTS}, "
        f"window={settings.RATE_LIMIT_WINDOW}s, "
        f"cache_ttl={settings.CACHE_TTL}s"
    )
    return services


async def shutdown_services(app: FastAPI) -> None:
    """Close the HTTP client and the store."""
    services = getattr(app.state, "services", None)
    if services is None:
        return

    try:
        await services.http_client.aclose()
    except Exception as e:
        logger.warning(f"Failed to close HTTP client: {e}")

    try:
        await services.store.close()
    except Exception as e:
        logger.warning(f"Failed to close key-value store: {e}")

    app.state.services = None
    logger.info("Services shut down")
