import asyncio
import base64
import json

import httpx
import pytest

from job_search.client import (
    InvalidURLError,
    JobSearchRepository,
    SearchClient,
    SearchDecodeError,
    SearchHTTPError,
    build_search_url,
)
from job_search.config import Settings
from job_search.models import JobType, SearchQuery, SearchResponse, SearchResult


def _listing_json(job_id: int) -> dict:
    return {
        "jobId": job_id,
        "employerId": 501,
        "employerName": "Acme Ltd",
        "jobTitle": "Python Developer",
        "locationName": "London",
        "expirationDate": "24/09/2021",
        "date": "13/08/2021",
        "jobDescription": "",
        "applications": 0,
        "jobUrl": f"https://www.reed.co.uk/jobs/{job_id}",
    }


def _search(client: SearchClient, query: SearchQuery):
    async def run():
        async with client:
            return await client.search(query)

    return asyncio.run(run())


def test_build_search_url_appends_path_and_ordered_params() -> None:
    query = SearchQuery(keywords="iOS Developer", job_types=JobType.PERMANENT, results_to_take=25)

    url = build_search_url("https://www.reed.co.uk/api/1.0/", query)

    assert url.path == "/api/1.0/search"
    assert list(url.params.multi_items()) == [
        ("keywords", "iOS Developer"),
        ("permanent", "true"),
        ("resultsToTake", "25"),
    ]


def test_build_search_url_rejects_unusable_base_url() -> None:
    with pytest.raises(InvalidURLError):
        build_search_url("not a url", SearchQuery())


def test_search_sends_get_with_basic_auth_and_decodes_body() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = {"results": [_listing_json(1), _listing_json(2)], "totalResults": 2}
        return httpx.Response(200, content=json.dumps(body))

    client = SearchClient(
        "https://api.example.test/1.0",
        api_key="secret",
        transport=httpx.MockTransport(handler),
    )
    response = _search(client, SearchQuery(keywords="python"))

    assert [listing.job_id for listing in response.results] == [1, 2]
    assert response.total_results == 2
    assert seen[0].method == "GET"
    assert str(seen[0].url) == "https://api.example.test/1.0/search?keywords=python"
    assert seen[0].headers["Authorization"] == "Basic " + base64.b64encode(b"secret:").decode()


def test_search_treats_non_200_as_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(204)

    client = SearchClient("https://api.example.test", transport=httpx.MockTransport(handler))

    with pytest.raises(SearchHTTPError) as excinfo:
        _search(client, SearchQuery(keywords="python"))
    assert excinfo.value.status_code == 204


def test_search_wraps_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = SearchClient("https://api.example.test", transport=httpx.MockTransport(handler))

    with pytest.raises(SearchHTTPError):
        _search(client, SearchQuery(keywords="python"))


def test_search_rejects_malformed_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>oops</html>")

    client = SearchClient("https://api.example.test", transport=httpx.MockTransport(handler))

    with pytest.raises(SearchDecodeError):
        _search(client, SearchQuery(keywords="python"))


def test_search_rejects_bad_listing_date() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        listing = _listing_json(1)
        listing["date"] = "2021-08-13"
        return httpx.Response(200, content=json.dumps({"results": [listing], "totalResults": 1}))

    client = SearchClient("https://api.example.test", transport=httpx.MockTransport(handler))

    with pytest.raises(SearchDecodeError):
        _search(client, SearchQuery(keywords="python"))


def test_client_from_settings_uses_configured_base_url() -> None:
    settings = Settings(base_url="https://api.example.test/v2/", api_key="k")

    async def run() -> str:
        async with SearchClient.from_settings(settings) as client:
            return client.base_url

    assert asyncio.run(run()) == "https://api.example.test/v2/"


def test_repository_pairs_response_with_the_query_that_was_sent() -> None:
    response = SearchResponse(results=[], total_results=0)
    sent: list[SearchQuery] = []

    async def execute(query: SearchQuery) -> SearchResponse:
        sent.append(query)
        return response

    query = SearchQuery(keywords="python", results_to_take=10, results_to_skip=20)
    result = asyncio.run(JobSearchRepository(execute).perform_search(query))

    assert isinstance(result, SearchResult)
    assert result.query is query
    assert result.response is response
    assert sent == [query]


def test_repository_propagates_client_failures() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    client = SearchClient("https://api.example.test", transport=httpx.MockTransport(handler))

    async def run():
        async with client:
            return await JobSearchRepository(client).perform_search(SearchQuery(keywords="python"))

    with pytest.raises(SearchHTTPError):
        asyncio.run(run())
