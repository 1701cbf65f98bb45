"""AuditSink Protocol + NullAuditSink."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class AuditSink(Protocol):
    """Destination for block events.

    Implementations: NullAuditSink, FileAuditSink.
    Selection via create_audit_sink() (audit/factory.py).
    """

    kind: str

    def log(self, message: str, remote_addr: str) -> None:
        """Record one blocked request. Must NEVER raise."""
        ...

    def close(self) -> None:
        """Release the underlying resource.

        Raises CloseError on failure, including a second call.
        """
        ...


class NullAuditSink:
    """No-op sink used when audit logging is disabled."""

    kind = "null"

    def log(self, message: str, remote_addr: str) -> None:
        """No-op: event discarded."""

    def close(self) -> None:
        """No-op: nothing to release."""


assert isinstance(NullAuditSink(), AuditSink), (
    "NullAuditSink does not satisfy AuditSink protocol"
)
