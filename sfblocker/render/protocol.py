"""Renderer Protocol and the plain-text DefaultRenderer.

A renderer writes the complete forbidden response to the ASGI ``send``
callable. It never inspects the request; the argument exists so every
renderer has the same signature.

Failures writing to the client are raised as RenderError. The middleware turns
them into a 500 when the response has not been started yet.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from starlette.requests import Request
from starlette.types import Send

from sfblocker.constants import DEFAULT_FORBIDDEN_MESSAGE, FORBIDDEN_STATUS
from sfblocker.errors import RenderError


@runtime_checkable
class Renderer(Protocol):
    """Writes the forbidden response for a blocked request.

    Implementations: DefaultRenderer, TemplateRenderer.
    """

    kind: str

    async def render(self, send: Send, request: Request) -> None:
        """Send status + body. Raises RenderError if the client write fails."""
        ...


async def send_response(
    send: Send,
    status: int,
    content_type: str,
    body: bytes,
) -> None:
    """Send a complete, non-streamed response as two ASGI messages.

    Raises:
        RenderError: the transport rejected either message (client gone,
                     channel closed, server refused the message).
    """
    headers = [
        (b"content-type", content_type.encode("latin-1")),
        (b"content-length", str(len(body)).encode("latin-1")),
        (b"x-content-type-options", b"nosniff"),
    ]
    try:
        await send({"type": "http.response.start", "status": status, "headers": headers})
        await send({"type": "http.response.body", "body": body, "more_body": False})
    except (OSError, RuntimeError) as exc:
        raise RenderError(f"failed to write forbidden response: {exc}") from exc


class DefaultRenderer:
    """Plain-text 403 with a fixed message and a trailing newline."""

    kind = "default"

    def __init__(self, message: str = DEFAULT_FORBIDDEN_MESSAGE) -> None:
        self.message = message
        self._payload = (message + "\n").encode("utf-8")

    async def render(self, send: Send, request: Request) -> None:
        await send_response(
            send,
            FORBIDDEN_STATUS,
            "text/plain; charset=utf-8",
            self._payload,
        )
