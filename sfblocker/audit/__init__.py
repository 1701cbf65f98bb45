"""Audit sinks for blocked requests.

    protocol.py  — AuditSink Protocol + NullAuditSink
    address.py   — strip_port() — remote address normalisation policy
    file_sink.py — FileAuditSink (append-only file, one line per block)
    factory.py   — create_audit_sink() — selection from LogsConfig
"""

from sfblocker.audit.address import strip_port
from sfblocker.audit.factory import create_audit_sink
from sfblocker.audit.file_sink import FileAuditSink
from sfblocker.audit.protocol import AuditSink, NullAuditSink

__all__ = [
    "AuditSink",
    "FileAuditSink",
    "NullAuditSink",
    "create_audit_sink",
    "strip_port",
]
