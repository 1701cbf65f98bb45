"""Tests for sfblocker/audit — address policy, NullAuditSink, FileAuditSink, factory.

Covers:
  - strip_port(): parsed policy and legacy fixed-suffix policy
  - file created 0600, opened in append mode, one line per event
  - concurrent log() calls never interleave within a line
  - close() once succeeds, close() twice raises CloseError
  - write failures never escape log()
"""

from __future__ import annotations

import os
import re
import stat
import threading
from unittest.mock import MagicMock

import pytest

from sfblocker.audit import (
    AuditSink,
    FileAuditSink,
    NullAuditSink,
    create_audit_sink,
    strip_port,
)
from sfblocker.audit.address import format_client
from sfblocker.config import LogsConfig
from sfblocker.errors import CloseError, LogFileOpenError

_LINE_RE = re.compile(r"^\d{4}/\d{2}/\d{2} \d{2}:\d{2}:\d{2} (\S*) (.*)$")


def _lines(path) -> list[str]:
    with open(path) as fh:
        return fh.read().splitlines()


# ─── Address policy ───────────────────────────────────────────────────────────


class TestStripPort:
    @pytest.mark.parametrize(
        "addr, expected",
        [
            ("10.0.0.1:4242", "10.0.0.1"),
            ("10.0.0.1:51234", "10.0.0.1"),
            ("[::1]:8080", "::1"),
            ("[2001:db8::7]:443", "2001:db8::7"),
            ("::1", "::1"),
            ("10.0.0.1", "10.0.0.1"),
            ("unix:socket", "unix:socket"),
            ("", ""),
        ],
    )
    def test_parsed_policy(self, addr, expected):
        assert strip_port(addr) == expected

    @pytest.mark.parametrize(
        "addr, expected",
        [
            ("10.0.0.1:4242", "10.0.0.1"),
            ("10.0.0.1:51234", "10.0.0.1:"),
            ("[::1]:8080", "[::1]"),
        ],
    )
    def test_legacy_fixed_suffix(self, addr, expected):
        assert strip_port(addr, fixed_suffix=True) == expected


class TestFormatClient:
    def test_ipv4(self):
        assert format_client(("203.0.113.9", 51234)) == "203.0.113.9:51234"

    def test_ipv6_is_bracketed(self):
        assert format_client(("::1", 8080)) == "[::1]:8080"

    def test_missing_client(self):
        assert format_client(None) == ""


# ─── NullAuditSink ────────────────────────────────────────────────────────────


class TestNullAuditSink:
    def test_log_is_noop(self):
        NullAuditSink().log("Blocked access to .env", "10.0.0.1:4242")

    def test_close_always_succeeds(self):
        sink = NullAuditSink()
        sink.close()
        sink.close()

    def test_satisfies_protocol(self):
        assert isinstance(NullAuditSink(), AuditSink)


# ─── FileAuditSink ────────────────────────────────────────────────────────────


class TestFileAuditSinkOpen:
    def test_creates_file_owner_read_write(self, tmp_path):
        path = tmp_path / "audit.log"
        sink = FileAuditSink.open(str(path))
        try:
            assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
        finally:
            sink.close()

    def test_appends_to_existing_file(self, tmp_path):
        path = tmp_path / "audit.log"
        path.write_text("previous line\n")
        sink = FileAuditSink.open(str(path))
        sink.log("Blocked access to .env", "10.0.0.1:4242")
        sink.close()
        lines = _lines(path)
        assert lines[0] == "previous line"
        assert len(lines) == 2

    def test_empty_path_fails(self):
        with pytest.raises(LogFileOpenError):
            FileAuditSink.open("")

    def test_missing_directory_fails(self, tmp_path):
        with pytest.raises(LogFileOpenError) as exc_info:
            FileAuditSink.open(str(tmp_path / "no" / "such" / "audit.log"))
        assert exc_info.value.path.endswith("audit.log")

    def test_satisfies_protocol(self, tmp_path):
        sink = FileAuditSink.open(str(tmp_path / "audit.log"))
        assert isinstance(sink, AuditSink)
        sink.close()


class TestFileAuditSinkLog:
    def test_line_format(self, tmp_path):
        path = tmp_path / "audit.log"
        sink = FileAuditSink.open(str(path))
        sink.log("Blocked access to .env", "203.0.113.9:51234")
        sink.close()

        (line,) = _lines(path)
        match = _LINE_RE.match(line)
        assert match is not None
        assert match.group(1) == "203.0.113.9"
        assert match.group(2) == "Blocked access to .env"

    def test_line_on_disk_when_log_returns(self, tmp_path):
        path = tmp_path / "audit.log"
        sink = FileAuditSink.open(str(path))
        sink.log("Blocked access to .env", "203.0.113.9:51234")
        try:
            assert len(_lines(path)) == 1
        finally:
            sink.close()

    def test_legacy_address_format(self, tmp_path):
        path = tmp_path / "audit.log"
        sink = FileAuditSink.open(str(path), legacy_address_format=True)
        sink.log("Blocked access to .env", "10.0.0.1:51234")
        sink.close()
        assert _LINE_RE.match(_lines(path)[0]).group(1) == "10.0.0.1:"

    def test_newlines_in_message_escaped(self, tmp_path):
        path = tmp_path / "audit.log"
        sink = FileAuditSink.open(str(path))
        sink.log("Blocked access to a\nfake line", "10.0.0.1:4242")
        sink.close()
        lines = _lines(path)
        assert len(lines) == 1
        assert lines[0].endswith("Blocked access to a\\nfake line")

    def test_concurrent_lines_never_interleave(self, tmp_path):
        path = tmp_path / "audit.log"
        sink = FileAuditSink.open(str(path))
        threads_count, per_thread = 8, 200

        def worker(n: int) -> None:
            message = f"Blocked access to {'x' * 512}-{n}"
            for _ in range(per_thread):
                sink.log(message, f"10.0.0.{n}:4242")

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(threads_count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        sink.close()

        lines = _lines(path)
        assert len(lines) == threads_count * per_thread
        for line in lines:
            match = _LINE_RE.match(line)
            assert match is not None
            n = match.group(1).rsplit(".", 1)[1]
            assert match.group(2) == f"Blocked access to {'x' * 512}-{n}"

    def test_write_failure_does_not_raise(self, tmp_path):
        sink = FileAuditSink.open(str(tmp_path / "audit.log"))
        sink._handler.stream = MagicMock(write=MagicMock(side_effect=OSError("disk full")))
        sink.log("Blocked access to .env", "10.0.0.1:4242")
        sink._handler.stream = sink._stream
        sink.close()

    def test_log_after_close_is_dropped(self, tmp_path):
        path = tmp_path / "audit.log"
        sink = FileAuditSink.open(str(path))
        sink.close()
        sink.log("Blocked access to .env", "10.0.0.1:4242")
        assert _lines(path) == []


class TestFileAuditSinkClose:
    def test_close_once(self, tmp_path):
        sink = FileAuditSink.open(str(tmp_path / "audit.log"))
        sink.close()
        assert sink.closed is True

    def test_double_close_raises(self, tmp_path):
        sink = FileAuditSink.open(str(tmp_path / "audit.log"))
        sink.close()
        with pytest.raises(CloseError):
            sink.close()

    def test_os_error_on_close_surfaces(self, tmp_path):
        sink = FileAuditSink.open(str(tmp_path / "audit.log"))
        real_stream = sink._stream
        sink._stream = MagicMock(close=MagicMock(side_effect=OSError("EIO")))
        with pytest.raises(CloseError):
            sink.close()
        real_stream.close()


# ─── create_audit_sink() ──────────────────────────────────────────────────────


class TestCreateAuditSink:
    def test_disabled_returns_null_sink(self):
        assert isinstance(create_audit_sink(LogsConfig(enabled=False)), NullAuditSink)

    def test_disabled_ignores_bad_path(self):
        sink = create_audit_sink(LogsConfig(enabled=False, log_file="/no/such/dir/x.log"))
        assert sink.kind == "null"

    def test_enabled_returns_file_sink(self, tmp_path):
        sink = create_audit_sink(LogsConfig(enabled=True, log_file=str(tmp_path / "a.log")))
        assert isinstance(sink, FileAuditSink)
        sink.close()

    def test_enabled_without_file_fails(self):
        with pytest.raises(LogFileOpenError):
            create_audit_sink(LogsConfig(enabled=True, log_file=""))

    def test_legacy_flag_forwarded(self, tmp_path):
        sink = create_audit_sink(
            LogsConfig(
                enabled=True,
                log_file=str(tmp_path / "a.log"),
                legacy_address_format=True,
            )
        )
        assert sink.legacy_address_format is True
        sink.close()
