"""FastAPI application entrypoint."""

from __future__ import annotations

from fastapi import FastAPI, Request

from newswire.api.routes import CORS_HEADERS, router
from newswire.config import AppConfig


def create_app(config: AppConfig | None = None) -> FastAPI:
    """Build the application around an immutable feed registry.

    The registry is read once here and shared read-only by every request.
    """

    app = FastAPI(title="Newswire", description="Concurrent syndication feed aggregator")
    app.state.config = config if config is not None else AppConfig.load()
    app.include_router(router, prefix="/api")

    @app.middleware("http")
    async def add_cors_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    return app


app = create_app()
