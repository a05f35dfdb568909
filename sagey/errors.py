from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from spotipy.exceptions import SpotifyException


log = logging.getLogger(__name__)


class SpotifyProxyError(Exception):
    """An error that a route renders as ``{"error": ..., **flags}``."""

    def __init__(self, status_code: int, error: str, **flags: Any):
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.flags = flags

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error, **self.flags}


def missing_token() -> SpotifyProxyError:
    return SpotifyProxyError(401, "No Spotify access token found")


def internal_error() -> SpotifyProxyError:
    return SpotifyProxyError(500, "Internal server error")


def from_spotify_exception(exc: SpotifyException, resource: str) -> SpotifyProxyError:
    """Map a provider failure onto the proxy error taxonomy.

    401 asks the caller to refresh, 403 asks it to re-run the consent flow,
    anything else keeps the provider status with a generic message.
    """
    status = exc.http_status or 500
    log.warning("Spotify API error fetching %s: status=%s msg=%s", resource, status, exc.msg)
    if status == 401:
        return SpotifyProxyError(401, "Token expired", shouldRefresh=True)
    if status == 403:
        return SpotifyProxyError(403, "Insufficient Spotify permissions", shouldReconnect=True)
    return SpotifyProxyError(status, f"Failed to fetch {resource}")


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(SpotifyProxyError)
    async def _proxy_error(request: Request, exc: SpotifyProxyError) -> JSONResponse:
        return JSONResponse(exc.to_dict(), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        log.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(internal_error().to_dict(), status_code=500)

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
            for err in exc.errors()
        ]
        return JSONResponse(
            {"error": "Invalid request parameters", "details": details},
            status_code=400,
        )
