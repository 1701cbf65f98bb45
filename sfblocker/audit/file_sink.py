"""FileAuditSink: append-only audit log for blocked requests.

Line format:
    2024/01/31 13:45:07 203.0.113.9 Blocked access to .env

The file is opened once (O_APPEND | O_CREAT, mode 0600) and kept open for the
lifetime of the sink. Writes go through a private ``logging.Logger`` whose
handler holds an internal lock, so lines from concurrent requests never
interleave. A write failure is reported through the application logger and
dropped: audit logging never affects the block decision.
"""

from __future__ import annotations

import logging
import os
import threading
from typing import TextIO

from sfblocker.audit.address import strip_port
from sfblocker.constants import AUDIT_DATE_FORMAT, AUDIT_FILE_MODE
from sfblocker.errors import CloseError, LogFileOpenError
from sfblocker.utils.logger import get_logger

logger = get_logger(__name__)


class _AuditFileHandler(logging.StreamHandler):
    """StreamHandler that reports write failures instead of printing them."""

    def __init__(self, stream: TextIO, path: str) -> None:
        super().__init__(stream)
        self.path = path

    def handleError(self, record: logging.LogRecord) -> None:
        logger.error("Audit log write failed", path=self.path, message=record.getMessage())


def _escape(text: str) -> str:
    # One event per line; a decoded path may carry CR/LF.
    return text.replace("\r", "\\r").replace("\n", "\\n")


class FileAuditSink:
    """Audit sink writing one line per blocked request to a file."""

    kind = "file"

    def __init__(self, path: str, stream: TextIO, legacy_address_format: bool = False) -> None:
        self.path = path
        self.legacy_address_format = legacy_address_format
        self._stream = stream
        self._closed = False
        self._close_lock = threading.Lock()

        self._handler = _AuditFileHandler(stream, path)
        self._handler.setFormatter(
            logging.Formatter("%(asctime)s %(message)s", datefmt=AUDIT_DATE_FORMAT)
        )
        # Private logger, not in the logging manager registry.
        self._logger = logging.Logger(f"sfblocker.audit.{path}", level=logging.INFO)
        self._logger.propagate = False
        self._logger.addHandler(self._handler)

    @classmethod
    def open(cls, path: str, legacy_address_format: bool = False) -> "FileAuditSink":
        """Open (or create) ``path`` for appending.

        Raises:
            LogFileOpenError: the file could not be opened.
        """
        try:
            fd = os.open(path, os.O_APPEND | os.O_CREAT | os.O_WRONLY, AUDIT_FILE_MODE)
        except OSError as exc:
            raise LogFileOpenError(path, exc.strerror or str(exc)) from exc

        stream = os.fdopen(fd, "a", encoding="utf-8")
        logger.info("Audit log opened", path=path)
        return cls(path, stream, legacy_address_format=legacy_address_format)

    @property
    def closed(self) -> bool:
        return self._closed

    def log(self, message: str, remote_addr: str) -> None:
        if self._closed:
            logger.warning("Audit event dropped: log closed", path=self.path)
            return
        host = strip_port(remote_addr, fixed_suffix=self.legacy_address_format)
        # Blocking write and flush on the caller's thread, event loop included;
        # one short line to a local file is accepted on the request path.
        self._logger.info("%s %s", _escape(host), _escape(message))

    def close(self) -> None:
        """Flush and close the file.

        Raises:
            CloseError: already closed, or the OS reported an error on close.
        """
        with self._close_lock:
            if self._closed:
                raise CloseError(f"audit log {self.path!r} already closed")
            self._closed = True

        self._logger.removeHandler(self._handler)
        try:
            self._handler.close()
            self._stream.close()
        except OSError as exc:
            raise CloseError(f"failed to close audit log {self.path!r}: {exc}") from exc
        logger.info("Audit log closed", path=self.path)
