"""
Access List Service

Combines the document cache with the remote fetcher and exposes the three
derived collections the validator works with:
- deny-list: sequence of IP literals, linear membership test
- allow-list: lower-cased set of emails, rebuilt on every call
- redirect pool: sequence of target URLs

Only non-empty fetch results are cached, so a failed fetch is retried on the
next request instead of pinning an empty list for a whole TTL.
"""

import logging

from access_gate.services.document_cache import DocumentCache
from access_gate.services.document_fetcher import (
    ALLOW_LIST,
    DENY_LIST,
    REDIRECT_POOL,
    RemoteDocumentFetcher,
)

logger = logging.getLogger(__name__)


class AccessListService:
    """Cache-first access to the remote access-control documents."""

    def __init__(self, cache: DocumentCache, fetcher: RemoteDocumentFetcher):
        self.cache = cache
        self.fetcher = fetcher

    async def load(self, name: str) -> list[str]:
        """
        Cached entries for name, fetching and caching on a miss.

        Never raises: fetch failures come back as an empty list.
        """
        cached = await self.cache.get(name)
        if cached is not None:
            return list(cached)

        entries = await self.fetcher.fetch(name)
        if entries:
            await self.cache.put(name, entries)
        return entries

    async def get_deny_list(self) -> list[str]:
        return await self.load(DENY_LIST)

    async def get_allow_set(self) -> set[str]:
        emails = await self.load(ALLOW_LIST)
        return {email.lower() for email in emails}

    async def get_redirect_pool(self) -> list[str]:
        return await self.load(REDIRECT_POOL)
