"""Async client for the catalog search backend."""

import asyncio
import time
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from catalog_search.clients.errors import (
    QUERY_TIMEOUT,
    HttpError,
    NetworkError,
    ParseError,
    RequestTimeoutError,
)
from catalog_search.logging_config import get_logger
from catalog_search.models.query import QueryExecutionRequest, QueryResult
from catalog_search.models.search import SearchRequest, SearchResultPage, SuggestionItem

logger = get_logger(__name__)

_SUGGESTIONS = TypeAdapter(list[SuggestionItem])


class CatalogClient:
    """Client for the catalog search API with uniform error mapping.

    Every failure surfaces as a CatalogApiError subclass: transport problems
    as NetworkError, non-2xx responses as HttpError, exhausted time budgets
    as RequestTimeoutError and malformed bodies as ParseError.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8000",
        timeout: float = 10.0,
        query_timeout_ms: int = 30_000,
        slow_query_threshold_ms: int = 5_000,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize catalog client.

        Args:
            base_url: Catalog backend base URL (ignored when http_client is given)
            timeout: Transport timeout in seconds (default: 10.0)
            query_timeout_ms: Default budget for ad-hoc queries (default: 30000)
            slow_query_threshold_ms: Executions slower than this are logged as slow
            http_client: Pre-configured httpx client, e.g. bound to an ASGI app
        """
        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self.timeout = timeout
        self.query_timeout_ms = query_timeout_ms
        self.slow_query_threshold_ms = slow_query_threshold_ms

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            RequestTimeoutError: If the transport timed out
            NetworkError: If the request could not be delivered
            HttpError: If the response status is not 2xx
            ParseError: If the body cannot be decoded or is not valid JSON
        """
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise RequestTimeoutError(f"Request to {path} timed out", details=str(e)) from e
        except httpx.DecodingError as e:
            raise ParseError(f"Undecodable response body from {path}", details=str(e)) from e
        except httpx.RequestError as e:
            raise NetworkError(
                "Network error - please check your connection", details=str(e)
            ) from e

        if not response.is_success:
            raise self._http_error(response)

        try:
            return response.json()
        except ValueError as e:
            raise ParseError(f"Malformed JSON from {path}", details=str(e)) from e

    @staticmethod
    def _http_error(response: httpx.Response) -> HttpError:
        """Build an HttpError, preferring the server-supplied message."""
        message = None
        details = None
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            for key in ("message", "error", "detail"):
                if isinstance(body.get(key), str):
                    message = body[key]
                    break
            details = body.get("details", body.get("detail"))

        return HttpError(response.status_code, message, details)

    async def get_suggestions(self, query: str, limit: int = 10) -> list[SuggestionItem]:
        """Fetch lookahead suggestions for a partial query.

        Args:
            query: Partial query text
            limit: Maximum number of suggestions

        Returns:
            Suggestions in server order
        """
        data = await self._request(
            "GET", "/api/search/suggestions", params={"q": query, "limit": limit}
        )
        try:
            return _SUGGESTIONS.validate_python(data)
        except ValidationError as e:
            raise ParseError("Unexpected suggestions payload", details=e.errors()) from e

    async def search_tables(self, request: SearchRequest) -> SearchResultPage:
        """Run a faceted table search.

        Args:
            request: Filters plus pagination window

        Returns:
            One page of results with metrics
        """
        data = await self._request("POST", "/api/search/tables", json=request.to_payload())
        try:
            return SearchResultPage.model_validate(data)
        except ValidationError as e:
            raise ParseError("Unexpected search payload", details=e.errors()) from e

    async def execute_query(
        self,
        sql: str,
        source_id: int,
        timeout_ms: int | None = None,
    ) -> QueryResult:
        """Execute an ad-hoc query within a time budget.

        On expiry the call is abandoned locally and reported as a timeout,
        never as a network failure.

        Args:
            sql: Query text
            source_id: Data source to run against
            timeout_ms: Budget in milliseconds (default: client's query_timeout_ms)

        Returns:
            Query result with columns and rows

        Raises:
            RequestTimeoutError: With code QUERY_TIMEOUT if the budget runs out
        """
        budget_ms = timeout_ms if timeout_ms is not None else self.query_timeout_ms
        budget = budget_ms / 1000
        body = QueryExecutionRequest(sql=sql, source_id=source_id).model_dump(by_alias=True)

        start_time = time.perf_counter()
        try:
            data = await asyncio.wait_for(
                self._request("POST", "/api/query/execute", json=body, timeout=budget),
                timeout=budget,
            )
        except (TimeoutError, RequestTimeoutError) as e:
            logger.warning(f"Query on source {source_id} abandoned after {budget_ms}ms")
            raise RequestTimeoutError(
                f"Query execution timed out after {budget:g} seconds",
                code=QUERY_TIMEOUT,
            ) from e

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        if elapsed_ms > self.slow_query_threshold_ms:
            logger.warning(
                f"Slow query on source {source_id}: {elapsed_ms:.0f}ms "
                f"(threshold {self.slow_query_threshold_ms}ms)"
            )

        try:
            return QueryResult.model_validate(data)
        except ValidationError as e:
            raise ParseError("Unexpected query result payload", details=e.errors()) from e

    async def health_check(self) -> dict[str, Any]:
        """Return the backend health payload."""
        return await self._request("GET", "/health")

    async def close(self):
        """Close the client connection if this client created it."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
