"""API routes exposing the feed aggregation pipeline."""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from newswire.config import AppConfig
from newswire.models import AggregateResult
from newswire.services.aggregator import FeedAggregator

logger = logging.getLogger(__name__)

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

FEED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]


class SourceEntry(BaseModel):
    label: str
    endpoint: str
    host: str


class SourcesResponse(BaseModel):
    sources: List[SourceEntry] = Field(default_factory=list)


def _registry(request: Request) -> AppConfig:
    return request.app.state.config


@router.options("/feeds")
async def preflight_feeds() -> Response:
    """Answer a CORS preflight without running the pipeline."""

    return Response(status_code=200, headers=CORS_HEADERS)


@router.api_route("/feeds", methods=FEED_METHODS)
async def fetch_feeds(request: Request) -> JSONResponse:
    """Aggregate every configured feed and return the newest items."""

    try:
        aggregator = FeedAggregator(_registry(request))
        result = await aggregator.aggregate()
    except Exception as exc:  # noqa: BLE001 - surfaced as a failed response
        logger.exception("Error in fetch-feeds handler")
        result = AggregateResult.failure(str(exc))

    status_code = 200 if result.success else 500
    return JSONResponse(result.to_payload(), status_code=status_code, headers=CORS_HEADERS)


@router.get("/sources", response_model=SourcesResponse)
async def list_sources(request: Request) -> SourcesResponse:
    """Return the configured set of feeds."""

    entries = [
        SourceEntry(label=source.label, endpoint=source.url, host=source.host)
        for source in _registry(request).iter_sources()
    ]
    return SourcesResponse(sources=entries)
