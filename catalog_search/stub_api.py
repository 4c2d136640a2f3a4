"""Stub catalog API serving mocked table metadata.

Implements the three endpoints the search core talks to over an
in-memory list of table records, for local development, demos and
end-to-end tests. Start it with::

    uvicorn catalog_search.stub_api:app --reload
"""

import asyncio
import time
import uuid
from collections import Counter
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from catalog_search.config import get_settings
from catalog_search.logging_config import get_logger, setup_logging
from catalog_search.models.error import ErrorResponse
from catalog_search.models.filters import FilterState
from catalog_search.models.query import QueryExecutionRequest, QueryResult
from catalog_search.models.search import quality_label

logger = get_logger(__name__)

QUALITY_BUCKETS = {
    "Excellent": "Excellent (90-100)",
    "Good": "Good (80-89)",
    "Fair": "Fair (70-79)",
    "Poor": "Poor (60-69)",
    "Critical": "Critical (<60)",
}

SAMPLE_TABLES: list[dict[str, Any]] = [
    {
        "id": 1, "name": "customers", "fullName": "public.customers", "schema": "public",
        "sourceId": 1, "sourceName": "warehouse", "sourceType": "postgresql",
        "tableType": "table", "description": "Customer master records",
        "tags": ["pii", "core"], "rowCount": 125_000, "fieldCount": 14, "qualityScore": 94,
        "businessTerms": ["Customer"], "createdAt": "2024-01-10T00:00:00Z",
        "lastScannedAt": "2024-06-01T08:00:00Z",
    },
    {
        "id": 2, "name": "orders", "fullName": "public.orders", "schema": "public",
        "sourceId": 1, "sourceName": "warehouse", "sourceType": "postgresql",
        "tableType": "table", "description": "Order headers",
        "tags": ["core", "finance"], "rowCount": 890_000, "fieldCount": 11, "qualityScore": 88,
        "businessTerms": ["Order"], "createdAt": "2024-01-10T00:00:00Z",
        "lastScannedAt": "2024-06-01T08:00:00Z",
    },
    {
        "id": 3, "name": "order_items", "fullName": "public.order_items", "schema": "public",
        "sourceId": 1, "sourceName": "warehouse", "sourceType": "postgresql",
        "tableType": "table", "description": None,
        "tags": ["core"], "rowCount": 999_000, "fieldCount": 8, "qualityScore": 72,
        "businessTerms": [], "createdAt": "2024-02-02T00:00:00Z",
        "lastScannedAt": "2024-05-20T08:00:00Z",
    },
    {
        "id": 4, "name": "daily_revenue", "fullName": "analytics.daily_revenue",
        "schema": "analytics", "sourceId": 2, "sourceName": "lakehouse",
        "sourceType": "snowflake", "tableType": "view",
        "description": "Revenue aggregated per day", "tags": ["finance", "kpi"],
        "rowCount": 1_460, "fieldCount": 6, "qualityScore": 97,
        "businessTerms": ["Revenue"], "createdAt": "2024-03-15T00:00:00Z",
        "lastScannedAt": "2024-06-02T08:00:00Z",
    },
    {
        "id": 5, "name": "customer_churn", "fullName": "analytics.customer_churn",
        "schema": "analytics", "sourceId": 2, "sourceName": "lakehouse",
        "sourceType": "snowflake", "tableType": "view",
        "description": "Monthly churn cohorts", "tags": ["kpi"],
        "rowCount": 240, "fieldCount": 9, "qualityScore": 64,
        "businessTerms": ["Customer", "Churn"], "createdAt": "2024-04-01T00:00:00Z",
        "lastScannedAt": "2024-05-28T08:00:00Z",
    },
    {
        "id": 6, "name": "raw_events", "fullName": "staging.raw_events", "schema": "staging",
        "sourceId": 3, "sourceName": "event-stream", "sourceType": "mysql",
        "tableType": "table", "description": "Unprocessed clickstream events",
        "tags": ["raw"], "rowCount": None, "fieldCount": 21, "qualityScore": 41,
        "businessTerms": [], "createdAt": "2024-05-05T00:00:00Z", "lastScannedAt": None,
    },
]


def _matches(table: dict[str, Any], filters: FilterState) -> list[str] | None:
    """Return matched field names, or None if the table is filtered out."""
    matched: list[str] = []
    if filters.query:
        needle = filters.query.lower()
        haystacks = {
            "name": [table["name"]],
            "fullName": [table["fullName"]],
            "description": [table.get("description") or ""],
            "tags": table.get("tags", []),
            "businessTerms": table.get("businessTerms", []),
        }
        matched = [
            key for key, values in haystacks.items()
            if any(needle in value.lower() for value in values)
        ]
        if not matched:
            return None

    if filters.source_ids and table["sourceId"] not in filters.source_ids:
        return None
    if filters.schemas and table["schema"] not in filters.schemas:
        return None
    if filters.table_types and table.get("tableType") not in filters.table_types:
        return None
    if filters.tags and not filters.tags.intersection(table.get("tags", [])):
        return None
    if filters.has_business_terms and not table.get("businessTerms"):
        return None
    if filters.has_description and not table.get("description"):
        return None

    if filters.is_range_active("quality_score_range"):
        low, high = filters.quality_score_range
        score = table.get("qualityScore")
        if score is None or not low <= score <= high:
            return None
    if filters.is_range_active("row_count_range"):
        low, high = filters.row_count_range
        rows = table.get("rowCount")
        if rows is None or not low <= rows <= high:
            return None

    if filters.date_range is not None:
        raw = table.get(filters.date_range.field.value)
        if raw is None:
            return None
        stamp = datetime.fromisoformat(raw)
        start, end = _as_utc(filters.date_range.start), _as_utc(filters.date_range.end)
        if not start <= _as_utc(stamp) <= end:
            return None

    return matched


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are taken as UTC
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def _facet_counts(tables: list[dict[str, Any]]) -> dict[str, dict[str, int]]:
    sources = Counter(str(t["sourceId"]) for t in tables)
    schemas = Counter(t["schema"] for t in tables)
    tags = Counter(tag for t in tables for tag in t.get("tags", []))
    quality = Counter(
        QUALITY_BUCKETS[quality_label(t["qualityScore"])]
        for t in tables
        if t.get("qualityScore") is not None
    )
    return {
        "sources": dict(sources.most_common()),
        "schemas": dict(schemas.most_common()),
        "tags": dict(tags.most_common()),
        "qualityScores": dict(quality.most_common()),
    }


def _suggestions(tables: list[dict[str, Any]], query: str, limit: int) -> list[dict[str, Any]]:
    needle = query.lower()
    found: dict[tuple[str, str], dict[str, Any]] = {}

    def add(kind: str, value: str, category: str) -> None:
        if needle not in value.lower():
            return
        entry = found.setdefault(
            (kind, value),
            {"type": kind, "value": value, "category": category, "frequency": 0},
        )
        entry["frequency"] += 1

    for table in tables:
        add("table", table["name"], table["schema"])
        for tag in table.get("tags", []):
            add("tag", tag, "Tag")
        for term in table.get("businessTerms", []):
            add("business_term", term, "Business Term")

    ranked = sorted(found.values(), key=lambda s: (-s["frequency"], s["value"]))
    return ranked[:limit]


def create_app(
    tables: list[dict[str, Any]] | None = None,
    query_delay: float = 0.0,
) -> FastAPI:
    """Build a stub catalog API over ``tables``.

    Args:
        tables: Table records in wire shape (default: SAMPLE_TABLES)
        query_delay: Seconds each query execution sleeps, to exercise timeouts
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging()
        logger.info(f"Stub catalog API serving {len(app.state.tables)} tables")
        yield
        logger.info("Stub catalog API shut down")

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="Mocked data catalog search endpoints",
        lifespan=lifespan,
    )
    app.state.tables = list(SAMPLE_TABLES if tables is None else tables)
    app.state.query_delay = query_delay

    def error_body(request: Request, error: str, detail: str) -> dict[str, Any]:
        return ErrorResponse(
            error=error,
            message=detail,
            detail=detail,
            request_id=getattr(request.state, "request_id", str(uuid.uuid4())),
        ).model_dump(mode="json")

    @app.middleware("http")
    async def request_middleware(request: Request, call_next):
        """Add request ID tracking and error handling."""
        request.state.request_id = str(uuid.uuid4())
        try:
            response = await call_next(request)
            logger.debug(
                f"{request.method} {request.url.path} - Status: {response.status_code}"
            )
            return response
        except Exception as e:
            logger.error(f"Unhandled exception: {str(e)}", exc_info=True)
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=error_body(request, "Internal Server Error", str(e)),
            )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle request validation errors."""
        detail = "; ".join(
            f"{' -> '.join(str(loc) for loc in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        logger.warning(f"Validation error: {detail}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_body(request, "Validation Error", detail),
        )

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "service": settings.api_title,
            "version": settings.api_version,
            "tables": len(app.state.tables),
        }

    @app.get("/api/search/suggestions")
    async def get_suggestions(
        q: str = "",
        limit: int = Query(default=10, ge=1, le=100),
    ) -> list[dict[str, Any]]:
        if not q:
            return []
        return _suggestions(app.state.tables, q, limit)

    @app.post("/api/search/tables")
    async def search_tables(request: Request) -> dict[str, Any]:
        start_time = time.perf_counter()
        body = await request.json()
        if not isinstance(body, dict):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Body must be an object")

        limit = body.pop("limit", 50)
        offset = body.pop("offset", 0)
        if not isinstance(limit, int) or not isinstance(offset, int) or limit < 1 or offset < 0:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="limit must be >= 1 and offset must be >= 0",
            )
        try:
            filters = FilterState.model_validate(body)
        except ValidationError as e:
            raise RequestValidationError(e.errors()) from e

        hits = []
        for table in app.state.tables:
            matched = _matches(table, filters)
            if matched is not None:
                hits.append({**table, "matchedFields": matched, "relevanceScore": float(len(matched))})
        hits.sort(key=lambda t: (-t["relevanceScore"], t["fullName"]))

        return {
            "results": hits[offset:offset + limit],
            "metrics": {
                "totalResults": len(hits),
                "facetCounts": _facet_counts(hits),
                "searchTime": round((time.perf_counter() - start_time) * 1000, 3),
            },
        }

    @app.post("/api/query/execute")
    async def execute_query(payload: QueryExecutionRequest) -> dict[str, Any]:
        start_time = time.perf_counter()
        tables = [t for t in app.state.tables if t["sourceId"] == payload.source_id]
        if not tables:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Data source {payload.source_id} not found",
            )
        if app.state.query_delay:
            await asyncio.sleep(app.state.query_delay)

        rows = [[t["fullName"], t.get("rowCount")] for t in tables]
        return QueryResult(
            columns=["table_name", "row_count"],
            rows=rows,
            row_count=len(rows),
            execution_time=round((time.perf_counter() - start_time) * 1000, 3),
        ).model_dump(by_alias=True)

    return app


app = create_app()
