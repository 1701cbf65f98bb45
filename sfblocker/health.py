"""Health endpoint.

GET /health — 503 until the lifespan has finished startup, then 200 with a
summary of the installed blocker.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    state = request.app.state
    if not getattr(state, "ready", False):
        raise HTTPException(status_code=503, detail={"status": "starting"})

    rules = state.rules
    return {
        "status": "ok",
        "blocker": state.config.blocker.name,
        "exact_rules": len(rules.exact_names),
        "pattern_rules": len(rules.patterns),
        "renderer": state.renderer.kind,
        "audit": state.audit_sink.kind,
    }
