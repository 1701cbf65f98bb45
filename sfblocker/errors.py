"""Exception hierarchy for the sensitive files blocker.

Configuration errors are raised while the middleware is being built and are
fatal to that instance. ``RenderError`` is raised at request time and is turned
into a 500 response by the middleware. ``CloseError`` surfaces at teardown.
"""

from __future__ import annotations


class BlockerError(Exception):
    """Base class for every error raised by this package."""


# ─── Construction-time ────────────────────────────────────────────────────────


class ConfigurationError(BlockerError):
    """The blocker could not be built from the supplied configuration."""


class EmptyRuleSetError(ConfigurationError):
    """Neither exact names nor patterns were configured."""

    def __init__(self) -> None:
        super().__init__("blockedFiles and blockedFilesRegex cannot both be empty")


class PatternSyntaxError(ConfigurationError):
    """A ``blockedFilesRegex`` entry failed to compile."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"invalid pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


class TemplateParseError(ConfigurationError):
    """The forbidden page template could not be parsed."""


class TemplateExecutionError(ConfigurationError):
    """The one-time render of the forbidden page template failed."""


class LogFileOpenError(ConfigurationError):
    """The audit log file could not be opened for appending."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"cannot open audit log {path!r}: {reason}")
        self.path = path


# ─── Request-time / teardown ──────────────────────────────────────────────────


class RenderError(BlockerError):
    """Writing the forbidden response to the client failed."""


class CloseError(BlockerError):
    """Releasing the audit sink failed, including a repeated close."""
