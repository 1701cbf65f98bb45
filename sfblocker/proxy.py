"""Forwarding handler: the next handler behind the blocker.

Requests that the blocker lets through are forwarded to ``upstream.url``
with method, path, query string and body unchanged. Hop-by-hop headers
(RFC 7230 §6.1) are stripped in both directions; the upstream response is
streamed back as it arrives.

Failure modes:
  - upstream unreachable / timed out / invalid HTTP → 502 JSON
"""

from __future__ import annotations

from typing import Iterable

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from starlette.background import BackgroundTask

from sfblocker.config import AppConfig
from sfblocker.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["proxy"])

# ─── Constants ────────────────────────────────────────────────────────────────

HOP_BY_HOP_HEADERS: frozenset[str] = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailers",
        "transfer-encoding",
        "upgrade",
        "host",
        "content-length",  # httpx / Starlette compute it
    }
)

POOL_MAX_CONNECTIONS: int = 100
POOL_MAX_KEEPALIVE: int = 20
POOL_KEEPALIVE_EXPIRY: float = 30.0  # seconds
PROXY_TIMEOUT: float = 30.0  # total request timeout


def create_http_client() -> httpx.AsyncClient:
    """Create the shared httpx.AsyncClient (once, at lifespan startup)."""
    return httpx.AsyncClient(
        limits=httpx.Limits(
            max_connections=POOL_MAX_CONNECTIONS,
            max_keepalive_connections=POOL_MAX_KEEPALIVE,
            keepalive_expiry=POOL_KEEPALIVE_EXPIRY,
        ),
        timeout=httpx.Timeout(PROXY_TIMEOUT),
        follow_redirects=False,  # 3xx goes back to the client untouched
    )


def filter_headers(headers: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
    """Drop hop-by-hop headers; keep everything else, repeated names included."""
    return [(name, value) for name, value in headers if name.lower() not in HOP_BY_HOP_HEADERS]


def _upstream_unavailable(reason: str) -> JSONResponse:
    return JSONResponse(
        status_code=502,
        content={
            "error": {
                "message": "Upstream unavailable",
                "code": "upstream_unavailable",
                "detail": reason or None,
            }
        },
    )


@router.api_route(
    "/{path:path}",
    methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD"],
    include_in_schema=False,
)
async def forward(request: Request, path: str) -> Response:
    """Forward a request that was not blocked to the upstream server."""
    config: AppConfig = request.app.state.config
    http_client: httpx.AsyncClient = request.app.state.http_client

    upstream_url = f"{config.upstream.url.rstrip('/')}/{path}"
    upstream_request = http_client.build_request(
        method=request.method,
        url=upstream_url,
        headers=filter_headers(request.headers.items()),
        content=await request.body(),
        params=request.query_params.multi_items(),
    )

    try:
        upstream_response = await http_client.send(upstream_request, stream=True)
    except (httpx.ConnectError, httpx.TimeoutException, httpx.RemoteProtocolError) as exc:
        logger.warning(
            "Upstream unavailable",
            upstream=config.upstream.url,
            path=path,
            error_type=type(exc).__name__,
        )
        return _upstream_unavailable(type(exc).__name__)

    response = StreamingResponse(
        upstream_response.aiter_raw(),
        status_code=upstream_response.status_code,
        background=BackgroundTask(upstream_response.aclose),
    )
    # Repeated names such as Set-Cookie stay separate header lines.
    response.raw_headers.extend(
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in filter_headers(upstream_response.headers.multi_items())
    )
    return response
