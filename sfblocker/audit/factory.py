"""Audit sink selection.

  logs.enabled: true  → FileAuditSink.open(logs.log_file)  (open failure aborts)
  logs.enabled: false → NullAuditSink
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sfblocker.audit.file_sink import FileAuditSink
from sfblocker.audit.protocol import AuditSink, NullAuditSink
from sfblocker.utils.logger import get_logger

if TYPE_CHECKING:
    from sfblocker.config import LogsConfig

logger = get_logger(__name__)


def create_audit_sink(logs: "LogsConfig") -> AuditSink:
    """Build the audit sink described by ``logs``.

    Raises:
        LogFileOpenError: logging is enabled and the file cannot be opened.
    """
    if not logs.enabled:
        logger.debug("audit_sink_selected", sink="null")
        return NullAuditSink()

    sink = FileAuditSink.open(
        logs.log_file,
        legacy_address_format=logs.legacy_address_format,
    )
    logger.debug("audit_sink_selected", sink="file", path=logs.log_file)
    return sink
