"""Sensitive files blocker: ASGI middleware + construction builder.

Request flow (HTTP scopes only; lifespan and websocket pass through):

  1. decide(scope["path"], rules)            → Decision
  2. NOT blocked → await app(scope, receive, send)   (request untouched)
  3. Blocked     → renderer.render(send, request)
                   audit_sink.log("Blocked access to <path>", "<host>:<port>")
                   render failed and nothing sent yet → 500 text/plain

The RuleSet, the renderer and its pre-rendered body are immutable after
construction and shared by all in-flight requests without locking. The audit
sink is the only mutable resource and serialises its own writes.

Registration:
    application.add_middleware(
        SensitiveFileBlocker, rules=rules, renderer=renderer, audit_sink=sink,
    )
or, building everything from configuration:
    blocker = create_blocker(app, config.blocker)
"""

from __future__ import annotations

from typing import Optional

from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from sfblocker.audit.address import format_client
from sfblocker.audit.factory import create_audit_sink
from sfblocker.audit.protocol import AuditSink, NullAuditSink
from sfblocker.config import BlockerConfig
from sfblocker.constants import DEFAULT_BLOCKER_NAME, RENDER_FAILURE_STATUS
from sfblocker.render.factory import create_renderer
from sfblocker.render.protocol import DefaultRenderer, Renderer
from sfblocker.rules.matcher import Decision, decide
from sfblocker.rules.ruleset import RuleSet, compile_rules
from sfblocker.utils.logger import get_logger

logger = get_logger(__name__)


class SensitiveFileBlocker:
    """Blocks requests whose path names a sensitive file.

    Owns its RuleSet, renderer and audit sink for its whole lifetime;
    close() releases the audit sink exactly once.
    """

    def __init__(
        self,
        app: ASGIApp,
        rules: RuleSet,
        renderer: Optional[Renderer] = None,
        audit_sink: Optional[AuditSink] = None,
        name: str = DEFAULT_BLOCKER_NAME,
    ) -> None:
        self.app = app
        self.rules = rules
        self.renderer: Renderer = renderer if renderer is not None else DefaultRenderer()
        self.audit_sink: AuditSink = audit_sink if audit_sink is not None else NullAuditSink()
        self.name = name

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        decision = decide(scope["path"], self.rules)
        if not decision.blocked:
            await self.app(scope, receive, send)
            return

        await self._block(decision, scope, receive, send)

    async def _block(
        self,
        decision: Decision,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        remote_addr = format_client(scope.get("client"))
        logger.info(
            "request_blocked",
            middleware=self.name,
            path=decision.path,
            rule=decision.rule,
            rule_type=decision.rule_type,
            client=remote_addr,
        )

        response_started = False

        async def tracking_send(message: Message) -> None:
            nonlocal response_started
            await send(message)
            if message["type"] == "http.response.start":
                response_started = True

        render_error: Optional[Exception] = None
        try:
            await self.renderer.render(tracking_send, Request(scope, receive))
        except Exception as exc:  # noqa: BLE001
            render_error = exc

        self.audit_sink.log(f"Blocked access to {decision.path}", remote_addr)

        if render_error is None:
            return

        logger.error(
            "Forbidden response render failed",
            middleware=self.name,
            path=decision.path,
            error=str(render_error),
            error_type=type(render_error).__name__,
            response_started=response_started,
        )
        if response_started:
            # Status line already committed; nothing valid left to send.
            return

        response = PlainTextResponse(f"{render_error}\n", status_code=RENDER_FAILURE_STATUS)
        try:
            await response(scope, receive, send)
        except (OSError, RuntimeError) as exc:
            logger.warning(
                "Could not deliver 500 after render failure",
                middleware=self.name,
                error=str(exc),
            )

    def close(self) -> None:
        """Release the audit sink. Raises CloseError when called twice."""
        self.audit_sink.close()


# ─── Builder ──────────────────────────────────────────────────────────────────


def build_components(config: BlockerConfig) -> tuple[RuleSet, Renderer, AuditSink]:
    """Validate ``config`` and build the three owned sub-objects.

    Order: rules → renderer → audit sink. The sink is the only component that
    holds an OS resource and is opened last, once everything else is valid.

    Raises:
        EmptyRuleSetError, PatternSyntaxError: from compile_rules().
        TemplateParseError, TemplateExecutionError: from create_renderer().
        LogFileOpenError: from create_audit_sink().
    """
    rules = compile_rules(config.blocked_files, config.blocked_files_regex)
    renderer = create_renderer(config.template)
    audit_sink = create_audit_sink(config.logs)
    return rules, renderer, audit_sink


def create_blocker(
    app: ASGIApp,
    config: BlockerConfig,
    name: Optional[str] = None,
) -> SensitiveFileBlocker:
    """Build a SensitiveFileBlocker in front of ``app`` from configuration.

    Either returns a fully-initialised middleware or raises a
    ConfigurationError; the audit file is closed on any failure after it
    was opened.
    """
    rules, renderer, audit_sink = build_components(config)
    try:
        blocker = SensitiveFileBlocker(
            app,
            rules=rules,
            renderer=renderer,
            audit_sink=audit_sink,
            name=name or config.name,
        )
    except BaseException:
        audit_sink.close()
        raise

    logger.info(
        "Sensitive files blocker ready",
        middleware=blocker.name,
        exact_rules=len(rules.exact_names),
        pattern_rules=len(rules.patterns),
        renderer=renderer.kind,
        audit=audit_sink.kind,
    )
    return blocker
