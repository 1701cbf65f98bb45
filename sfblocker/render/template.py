"""TemplateRenderer: HTML forbidden page rendered once at construction.

Templates use the ``{{ .Name }}`` variable syntax and ``{{/* ... */}}``
comments, nothing else. Each substitution is translated to a Jinja2 expression
before parsing; any other action between ``{{`` and ``}}`` is a parse error, so
a template can look values up but never evaluate expressions.

Rendering rules:
  - Title, Heading and Body default to the standard 403 wording unless the
    vars mapping overrides them.
  - Supplied values are HTML-escaped (sandboxed Environment, autoescape=True).
  - ``CSS`` is filled from the configured stylesheet when the vars mapping does
    not provide it, and is inserted unescaped.
  - A missing top-level variable renders as an empty string; attribute access
    on a missing variable is an execution error.

The rendered bytes are reused verbatim for every blocked request.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

import jinja2
from jinja2.sandbox import SandboxedEnvironment
from markupsafe import Markup
from starlette.requests import Request
from starlette.types import Send

from sfblocker.constants import CSS_TEMPLATE_VAR, DEFAULT_TEMPLATE_VARS, FORBIDDEN_STATUS
from sfblocker.errors import TemplateExecutionError, TemplateParseError
from sfblocker.render.protocol import send_response
from sfblocker.utils.logger import get_logger

logger = get_logger(__name__)

# {{/* note */}} | {{ .Title }}, {{.A.B}}, {{- .Body -}} | anything else
_ACTION_RE = re.compile(
    r"(?P<comment>\{\{/\*.*?\*/\}\})"
    r"|\{\{(?P<ltrim>-?)\s*\."
    r"(?P<field>[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*)"
    r"\s*(?P<rtrim>-?)\}\}"
    r"|(?P<other>\{\{)",
    re.DOTALL,
)

_ENVIRONMENT = SandboxedEnvironment(
    autoescape=True,
    keep_trailing_newline=True,
    # translate_fields() never emits statements; their delimiters are moved
    # off {% so a literal {% in HTML or CSS stays text.
    block_start_string="{{%",
    block_end_string="%}}",
    comment_start_string="{{/*",
    comment_end_string="*/}}",
    line_statement_prefix=None,
    line_comment_prefix=None,
)


def translate_fields(source: str) -> str:
    """Rewrite ``{{ .Field }}`` substitutions as Jinja2 expressions.

    Comments are kept for Jinja2 to drop.

    Raises:
        TemplateParseError: any other ``{{`` action, e.g. ``{{ Name }}``,
                            ``{{ 7*7 }}`` or an unterminated ``{{.Name}``.
    """

    def _replace(match: "re.Match[str]") -> str:
        if match.group("comment") is not None:
            return match.group("comment")
        if match.group("field") is not None:
            return "{{%s %s %s}}" % (
                match.group("ltrim"),
                match.group("field"),
                match.group("rtrim"),
            )
        line = source.count("\n", 0, match.start()) + 1
        snippet = source[match.start():match.start() + 20].split("\n", 1)[0]
        raise TemplateParseError(
            f"template parse error at line {line}: unsupported action {snippet!r}"
        )

    return _ACTION_RE.sub(_replace, source)


class TemplateRenderer:
    """Serves a pre-rendered HTML page with status 403."""

    kind = "template"

    def __init__(
        self,
        html: str,
        css: str = "",
        variables: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Parse and render the page.

        Raises:
            TemplateParseError:     ``html`` is not a valid template.
            TemplateExecutionError: the one-time render failed.
        """
        source = translate_fields(html)
        try:
            template = _ENVIRONMENT.from_string(source)
        except jinja2.TemplateSyntaxError as exc:
            raise TemplateParseError(
                f"template parse error at line {exc.lineno}: {exc.message}"
            ) from exc

        context = {**DEFAULT_TEMPLATE_VARS, **(variables or {})}
        if CSS_TEMPLATE_VAR not in context:
            # Operator-supplied stylesheet, trusted like the template itself.
            context[CSS_TEMPLATE_VAR] = Markup(css)

        try:
            rendered = template.render(context)
        except jinja2.TemplateError as exc:
            raise TemplateExecutionError(f"template execution error: {exc}") from exc

        self.body: bytes = rendered.encode("utf-8")
        logger.debug("Forbidden page rendered", size=len(self.body))

    async def render(self, send: Send, request: Request) -> None:
        await send_response(
            send,
            FORBIDDEN_STATUS,
            "text/html; charset=utf-8",
            self.body,
        )


# Default document served when the template is enabled without custom HTML.
DEFAULT_HTML_TEMPLATE = """<!DOCTYPE html>
<html>
	<head>
		<title>{{ .Title }}</title>
		<style>{{ .CSS }}</style>
	</head>
	<body>

    <div class="container">
        <h1>{{ .Heading }}</h1>
        <p>{{ .Body }}</p>
        <a href="/">Go Back Home</a>
    </div>
	</body>
</html>
"""

# Stylesheet injected as CSS when the vars mapping does not define it.
DEFAULT_CSS_TEMPLATE = """
body {
    font-family: 'Arial', sans-serif;
    background-color: #f2f2f2;
    color: #333;
    margin: 0;
    padding: 0;
    display: flex;
    justify-content: center;
    align-items: center;
    height: 100vh;
}
.container {
    text-align: center;
}
h1 {
    font-size: 6em;
    margin: 0;
    color: #55a2f4;
}
p {
    font-size: 1.5em;
    margin: 20px 0;
}
a {
    text-decoration: none;
    color: #55a2f4;
    border: 2px solid #55a2f4;
    padding: 10px 20px;
    border-radius: 5px;
    transition: 0.3s;
}
a:hover {
    background-color: #55a2f4;
    color: white;
}
"""
