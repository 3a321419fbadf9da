"""
Remote Document Fetcher

This service loads the access-control documents (deny-list, allow-list and
redirect targets) from a version-controlled repository over plain HTTP(S).

Design Decisions:
- Each document has an ordered table of retrieval strategies (contents API,
  raw file, plain-text fallback). The first strategy that yields a
  non-empty parsed result wins and the rest are skipped
- Transport errors and non-200 answers surface as TransportFailure; they
  and parse errors all mean "try the next strategy". When every strategy
  fails the result is an empty list
- The API token is only ever attached to the authenticated contents API
  strategy, never to raw downloads
- Strategies are data, not branches: adding a source means adding a row
"""

import base64
import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx

from access_gate.core.exceptions import TransportFailure
from access_gate.core.setting import Settings
from access_gate.core.validators import is_http_url, normalize_email

logger = logging.getLogger(__name__)

USER_AGENT = "Access-Gate/1.0"

DENY_LIST = "blacklist"
ALLOW_LIST = "whitelist_set"
REDIRECT_POOL = "redirect_urls"

Parser = Callable[[httpx.Response], list[str]]


def split_lines(text: str) -> list[str]:
    """Stripped, non-blank lines of text."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def decode_contents(response: httpx.Response) -> str:
    """Decode the base64 file body of a contents API response."""
    envelope = response.json()
    return base64.b64decode(envelope["content"]).decode("utf-8")


def json_field(document: Any, field: str) -> list[str]:
    """
    Extract a named array of strings from a JSON object.

    Raises:
        ValueError: If the document is not an object or the field is not an array
    """
    if not isinstance(document, dict):
        raise ValueError(f"expected a JSON object with '{field}'")
    values = document.get(field, [])
    if not isinstance(values, list):
        raise ValueError(f"'{field}' is not an array")
    return [value.strip() for value in values if isinstance(value, str) and value.strip()]


def api_lines() -> Parser:
    return lambda response: split_lines(decode_contents(response))


def api_json_field(field: str) -> Parser:
    return lambda response: json_field(json.loads(decode_contents(response)), field)


def raw_json_field(field: str) -> Parser:
    return lambda response: json_field(response.json(), field)


def raw_lines(keep: Optional[Callable[[str], bool]] = None) -> Parser:
    def parse(response: httpx.Response) -> list[str]:
        lines = split_lines(response.text)
        if keep is not None:
            lines = [line for line in lines if keep(line)]
        return lines
    return parse


@dataclass(frozen=True)
class FetchStrategy:
    """One way of retrieving a document."""
    label: str
    source: str  # "api" or "raw"
    path: str
    parser: Parser
    authenticated: bool = False


@dataclass(frozen=True)
class DocumentSpec:
    """Ordered strategies plus the entry normalizer for one document."""
    strategies: tuple[FetchStrategy, ...]
    normalize: Callable[[str], str] = str.strip


DOCUMENTS: dict[str, DocumentSpec] = {
    DENY_LIST: DocumentSpec(
        strategies=(
            FetchStrategy("GitHub API", "api", "data/blacklist.txt", api_lines(), authenticated=True),
            FetchStrategy("raw file", "raw", "data/blacklist.txt", raw_lines()),
        ),
    ),
    ALLOW_LIST: DocumentSpec(
        strategies=(
            FetchStrategy("GitHub API", "api", "data/list.json", api_json_field("emails"), authenticated=True),
            FetchStrategy("raw file", "raw", "data/list.json", raw_json_field("emails")),
            FetchStrategy("text file", "raw", "data/emails.txt", raw_lines(lambda line: "@" in line)),
        ),
        normalize=normalize_email,
    ),
    REDIRECT_POOL: DocumentSpec(
        strategies=(
            FetchStrategy("GitHub API", "api", "data/url.json", api_json_field("urls"), authenticated=True),
            FetchStrategy("raw file", "raw", "data/url.json", raw_json_field("urls")),
            FetchStrategy("text file", "raw", "data/urls.txt", raw_lines(is_http_url)),
        ),
    ),
}


class RemoteDocumentFetcher:
    """
    Fetches named documents from owner/repo@branch.

    fetch() never raises: every failure degrades to the next strategy and
    finally to an empty list.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        owner: str,
        repo: str,
        branch: str = "main",
        api_token: Optional[str] = None,
        api_base_url: str = "https://api.github.com",
        raw_base_url: str = "https://raw.githubusercontent.com",
        documents: Optional[dict[str, DocumentSpec]] = None
    ):
        self.http_client = http_client
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.api_token = api_token
        self.api_base_url = api_base_url.rstrip("/")
        self.raw_base_url = raw_base_url.rstrip("/")
        self.documents = documents if documents is not None else DOCUMENTS

    @classmethod
    def from_settings(cls, http_client: httpx.AsyncClient, settings: Settings) -> "RemoteDocumentFetcher":
        return cls(
            http_client,
            owner=settings.GITHUB_REPO_OWNER,
            repo=settings.GITHUB_REPO_NAME,
            branch=settings.GITHUB_BRANCH,
            api_token=settings.GITHUB_API_TOKEN,
            api_base_url=settings.GITHUB_API_BASE_URL,
            raw_base_url=settings.GITHUB_RAW_BASE_URL,
        )

    def build_request(self, strategy: FetchStrategy) -> tuple[str, dict[str, str], dict[str, str]]:
        """
        URL, headers and query parameters for a strategy.

        Returns:
            (url, headers, params)
        """
        headers = {"User-Agent": USER_AGENT}
        params: dict[str, str] = {}

        if strategy.source == "api":
            url = f"{self.api_base_url}/repos/{self.owner}/{self.repo}/contents/{strategy.path}"
            params["ref"] = self.branch
            headers["Accept"] = "application/vnd.github.v3+json"
        else:
            url = f"{self.raw_base_url}/{self.owner}/{self.repo}/{self.branch}/{strategy.path}"

        if strategy.authenticated and self.api_token:
            headers["Authorization"] = f"token {self.api_token}"

        return url, headers, params

    async def fetch(self, name: str) -> list[str]:
        """
        Retrieve and parse a document.

        Args:
            name: Logical document name (blacklist, whitelist_set, redirect_urls)

        Returns:
            Normalized entries, empty when every strategy failed
        """
        doc_spec = self.documents.get(name)
        if doc_spec is None:
            logger.error(f"Unknown document requested: {name}")
            return []

        for method, strategy in enumerate(doc_spec.strategies, start=1):
            try:
                entries = await self._attempt(strategy)
            except TransportFailure as e:
                logger.warning(f"{name}: method {method} ({strategy.label}) error: {str(e)}")
                continue
            except Exception as e:
                logger.warning(f"{name}: method {method} ({strategy.label}) parse error: {str(e)}")
                continue

            entries = [doc_spec.normalize(entry) for entry in entries]
            entries = [entry for entry in entries if entry]
            if entries:
                logger.info(f"{name}: method {method} ({strategy.label}) success, {len(entries)} entries")
                return entries
            logger.info(f"{name}: method {method} ({strategy.label}) returned no entries")

        logger.error(f"{name}: all methods failed to load entries")
        return []

    async def _attempt(self, strategy: FetchStrategy) -> list[str]:
        url, headers, params = self.build_request(strategy)
        try:
            response = await self.http_client.get(url, headers=headers, params=params)
        except httpx.HTTPError as e:
            raise TransportFailure(url, e) from e

        if response.status_code != 200:
            raise TransportFailure(url, httpx.HTTPStatusError(
                f"{response.status_code} {response.reason_phrase}",
                request=response.request,
                response=response,
            ))
        return strategy.parser(response)
