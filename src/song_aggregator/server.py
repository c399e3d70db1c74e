"""
HTTP boundary for song aggregation.

Exposes the aggregator as a JSON endpoint: ``{"query": ...}`` in, the
mode-dependent SongResult JSON out, or ``{"error": ...}`` with status 400
for any fatal failure.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from song_aggregator.aggregator import SongAggregator, results_to_json
from song_aggregator.config import Config
from song_aggregator.errors import SongAggregatorError, ValidationError

log = logging.getLogger(__name__)

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]
CORS_ALLOW_METHODS = ["GET", "POST", "OPTIONS"]
UNEXPECTED_ERROR = "Unexpected error"


class SearchRequest(BaseModel):
    """Request body of the search endpoint."""

    query: str | None = None


def cors_headers(config: Config, origin: str | None = None) -> dict[str, str]:
    """
    CORS headers for one response.

    With a wildcard in ``server.allowed_origins`` any origin is allowed. Otherwise
    the request's ``Origin`` is echoed back only when it is listed.
    """
    origins = config.server.allowed_origins
    headers = {
        "Access-Control-Allow-Headers": ", ".join(CORS_ALLOW_HEADERS),
        "Access-Control-Allow-Methods": ", ".join(CORS_ALLOW_METHODS),
    }
    if "*" in origins:
        headers["Access-Control-Allow-Origin"] = "*"
        return headers

    headers["Vary"] = "Origin"
    if origin in origins:
        headers["Access-Control-Allow-Origin"] = origin
    return headers


async def _read_query(request: Request) -> str:
    """Extract the query, raising ValidationError for any malformed body."""
    try:
        payload: Any = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError("Request body must be JSON") from e

    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")

    try:
        body = SearchRequest.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError("Query must be a string") from e

    if not body.query or not body.query.strip():
        raise ValidationError()
    return body.query


def create_app(config: Config, aggregator: SongAggregator | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Loaded configuration
        aggregator: Optional pre-built aggregator (tests inject fakes through it)

    Raises:
        ConfigError: If provider credentials are missing and no aggregator is given
    """
    if aggregator is None:
        aggregator = SongAggregator(config)

    path = config.server.path

    app = FastAPI(title="Song Aggregator", version="0.1.0")

    def _headers_for(request: Request) -> dict[str, str]:
        return cors_headers(config, request.headers.get("origin"))

    # Every preflight gets 200 "ok", whatever headers it asks for
    @app.options(path)
    async def search_preflight(request: Request) -> PlainTextResponse:
        return PlainTextResponse("ok", headers=_headers_for(request))

    @app.post(path)
    async def search_song(request: Request) -> JSONResponse:
        headers = _headers_for(request)
        try:
            query = await _read_query(request)
            results = await aggregator.search(query)
        except SongAggregatorError as e:
            log.error(f"Search failed: {e}")
            return JSONResponse({"error": str(e)}, status_code=400, headers=headers)
        except Exception:
            log.exception("Unexpected error during search")
            return JSONResponse({"error": UNEXPECTED_ERROR}, status_code=400, headers=headers)

        return JSONResponse(results_to_json(results), headers=headers)

    @app.get("/health")
    async def health_check(request: Request) -> JSONResponse:
        return JSONResponse({"status": "healthy"}, headers=_headers_for(request))

    return app
