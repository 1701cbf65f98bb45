"""ASGI helpers for driving middleware and renderers without a server."""

from __future__ import annotations

from starlette.requests import Request


class SendRecorder:
    """ASGI ``send`` stand-in that records every message."""

    def __init__(self) -> None:
        self.messages: list[dict] = []

    async def __call__(self, message: dict) -> None:
        self.messages.append(message)

    @property
    def starts(self) -> list[dict]:
        return [m for m in self.messages if m["type"] == "http.response.start"]

    @property
    def status(self) -> int | None:
        return self.starts[0]["status"] if self.starts else None

    @property
    def headers(self) -> dict[str, str]:
        if not self.starts:
            return {}
        return {k.decode(): v.decode() for k, v in self.starts[0]["headers"]}

    @property
    def body(self) -> bytes:
        return b"".join(
            m.get("body", b"") for m in self.messages if m["type"] == "http.response.body"
        )


def make_scope(
    path: str = "/",
    client: tuple[str, int] | None = ("203.0.113.9", 51234),
) -> dict:
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "query_string": b"",
        "root_path": "",
        "headers": [(b"host", b"testserver")],
        "client": client,
        "server": ("testserver", 80),
    }


async def empty_receive() -> dict:
    return {"type": "http.request", "body": b"", "more_body": False}


def make_request(path: str = "/") -> Request:
    return Request(make_scope(path), empty_receive)
