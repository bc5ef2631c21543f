from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

import httpx
from pydantic import ValidationError

from job_search.config import Settings
from job_search.models import SearchQuery, SearchResponse, SearchResult
from job_search.query import to_query_params

logger = logging.getLogger(__name__)

SEARCH_PATH = "search"

SearchExecutor = Callable[[SearchQuery], Awaitable[SearchResponse]]


class SearchError(Exception):
    pass


class InvalidURLError(SearchError):
    def __init__(self, url: str):
        super().__init__(f"The string '{url}' does not describe a valid URL.")
        self.url = url


class SearchHTTPError(SearchError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SearchDecodeError(SearchError):
    pass


def build_search_url(base_url: str, query: SearchQuery) -> httpx.URL:
    raw = f"{base_url.rstrip('/')}/{SEARCH_PATH}"
    try:
        url = httpx.URL(raw, params=to_query_params(query))
    except (httpx.InvalidURL, TypeError, ValueError) as exc:
        raise InvalidURLError(raw) from exc
    if url.scheme not in ("http", "https") or not url.host:
        raise InvalidURLError(raw)
    return url


def decode_search_response(payload: bytes | str) -> SearchResponse:
    try:
        return SearchResponse.model_validate_json(payload)
    except ValidationError as exc:
        raise SearchDecodeError(f"invalid search response: {exc}") from exc


class SearchClient:
    """Runs searches against ``{base_url}/search``.

    Instances are async callables so they can be handed straight to the
    orchestrator as its search executor.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str = "",
        timeout_seconds: float = 20.0,
        user_agent: str = "job-search/0.1",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url
        auth = httpx.BasicAuth(api_key, "") if api_key else None
        self._client = httpx.AsyncClient(
            auth=auth,
            timeout=timeout_seconds,
            headers={"User-Agent": user_agent, "Accept": "application/json"},
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> SearchClient:
        return cls(
            settings.base_url,
            api_key=settings.api_key,
            timeout_seconds=settings.request_timeout_seconds,
            user_agent=settings.user_agent,
            **kwargs,
        )

    async def search(self, query: SearchQuery) -> SearchResponse:
        url = build_search_url(self.base_url, query)
        logger.debug("GET %s", url)
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as exc:
            raise SearchHTTPError(f"search request failed: {exc}") from exc

        if response.status_code != 200:
            raise SearchHTTPError(
                f"search returned HTTP {response.status_code}", status_code=response.status_code
            )
        result = decode_search_response(response.content)
        logger.debug("search returned %d of %d results", len(result.results), result.total_results)
        return result

    async def __call__(self, query: SearchQuery) -> SearchResponse:
        return await self.search(query)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> SearchClient:
        return self

    async def __aexit__(self, exc_type, exc, exc_tb) -> None:
        await self.aclose()



class JobSearchRepository:
    """Runs searches through an executor and pairs each response with its query."""

    def __init__(self, execute: SearchExecutor):
        self._execute = execute

    async def perform_search(self, query: SearchQuery) -> SearchResult:
        response = await self._execute(query)
        return SearchResult(query=query, response=response)
