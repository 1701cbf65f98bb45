"""Programmatic uvicorn entry point.

Usage:
    python -m sfblocker.run
    sfblocker                  # via pyproject.toml [project.scripts]

Host and port come from server.host / server.port (SFBLOCKER_PORT overrides).
``lifespan="on"`` makes a failed startup exit the process instead of serving
without the blocker.
"""

from __future__ import annotations

import uvicorn

from sfblocker.config import load_config

UVICORN_LIMIT_CONCURRENCY: int = 100
UVICORN_BACKLOG: int = 50
UVICORN_TIMEOUT_KEEP_ALIVE: int = 5


def main() -> None:
    config = load_config()

    uvicorn.run(
        "sfblocker.main:create_app",
        factory=True,
        host=config.server.host,
        port=config.server.port,
        lifespan="on",
        limit_concurrency=UVICORN_LIMIT_CONCURRENCY,
        backlog=UVICORN_BACKLOG,
        timeout_keep_alive=UVICORN_TIMEOUT_KEEP_ALIVE,
    )


if __name__ == "__main__":
    main()
