"""Tests for the structured logging library used across the service."""

from __future__ import annotations

import io
import json

import pytest

import logging_lib
from logging_lib.config import load_settings
from logging_lib.dispatcher import Dispatcher
from logging_lib.redaction import build_registry
from logging_lib.sampling import should_emit
from logging_lib.schema import build_log_record, validate_record
from logging_lib.sinks.memory import InMemorySink
from logging_lib.sinks.stdout import StdoutSink


def test_level_threshold():
    settings = load_settings({"LOG_LEVEL": "WARNING"})

    assert should_emit("INFO", settings) is False
    assert should_emit("WARNING", settings) is True
    assert should_emit("error", settings) is True


def test_logger_writes_fields_and_context_to_memory_sink():
    logger = logging_lib.get_logger("auth.test")

    with logging_lib.logger_context(rid="req-1"):
        logger.info("login_succeeded", subject_id="7", extra={"jti": "abc123"})

    record = logging_lib.get_memory_records()[-1]
    assert record["message"] == "login_succeeded"
    assert record["component"] == "auth.test"
    assert record["subject_id"] == "7"
    assert record["jti"] == "abc123"
    assert record["context"]["rid"] == "req-1"


def test_debug_is_dropped_above_threshold():
    logging_lib.configure(level="INFO")
    logging_lib.get_logger("auth.test").debug("noisy")

    assert all(r["message"] != "noisy" for r in logging_lib.get_memory_records())


def test_exception_captures_traceback():
    logger = logging_lib.get_logger("auth.test")

    try:
        raise RuntimeError("boom")
    except RuntimeError:
        logger.exception("failed")

    record = logging_lib.get_memory_records()[-1]
    assert record["level"] == "ERROR"
    assert "RuntimeError: boom" in record["exc_info"]


class TestRedaction:
    def test_secrets_are_dropped_and_tokens_masked(self):
        registry = build_registry(load_settings({"LOG_LEVEL": "INFO"}).redaction)

        sanitized = registry.apply(
            {
                "password": "hunter2",
                "access_token": "eyJhbGciOiJIUzI1NiJ9.payload.sig",
                "authorization": "short",
                "context": {"secret": "s3cret"},
                "user": "admin",
            }
        )

        assert sanitized["password"] == "[REDACTED]"
        assert sanitized["context"]["secret"] == "[REDACTED]"
        assert sanitized["access_token"].startswith("eyJh")
        assert "payload" not in sanitized["access_token"]
        assert sanitized["authorization"] == "***"
        assert sanitized["user"] == "admin"

    def test_logger_applies_redaction(self):
        logging_lib.get_logger("auth.test").warning("oops", password="hunter2")

        assert logging_lib.get_memory_records()[-1]["password"] == "[REDACTED]"

    def test_redaction_can_be_disabled(self):
        settings = load_settings({"LOG_REDACTION_ENABLED": "false"})

        assert build_registry(settings.redaction).apply({"password": "x"}) == {"password": "x"}


class TestSchema:
    def test_record_has_required_fields(self):
        settings = load_settings({"LOG_SERVICE_NAME": "auth", "LOG_ENV": "test"})
        record = build_log_record(level="INFO", message="hi", settings=settings, component="c")

        assert record["service"] == "auth"
        assert record["env"] == "test"
        assert record["schema_version"] == 1
        assert record["context"] == {"component": "c"}

    def test_protected_fields_cannot_be_overridden(self):
        settings = load_settings({"LOG_LEVEL": "INFO"})
        record = build_log_record(level="INFO", message="hi", settings=settings, component="c", ts="x")

        assert record["ts"] != "x"

    def test_missing_fields_rejected(self):
        with pytest.raises(ValueError):
            validate_record({"message": "hi"})

    def test_long_fields_are_truncated(self):
        settings = load_settings({"LOG_REDACTION_TRUNCATE_LENGTH": "10"})
        record = build_log_record(level="INFO", message="hi", settings=settings, component="c", note="x" * 50)

        assert record["note"] == "x" * 10 + "..."

    def test_oversized_context_is_dropped(self):
        settings = load_settings({"LOG_PAYLOAD_LIMIT_BYTES": "400"})
        record = build_log_record(
            level="INFO",
            message="hi",
            settings=settings,
            component="c",
            context={f"k{i}": "v" * 40 for i in range(20)},
        )

        assert record["context_truncated"] is True
        assert record["context"] == {"component": "c"}


class TestSinksAndDispatch:
    def test_stdout_sink_emits_json_lines(self):
        stream = io.StringIO()
        StdoutSink(load_settings({"LOG_LEVEL": "INFO"}), stream=stream).emit({"message": "m", "level": "INFO"})

        payload = json.loads(stream.getvalue().strip())
        assert payload == {"message": "m", "level": "INFO", "severity": "INFO"}

    def test_failing_sink_does_not_block_others(self, capsys):
        class _Broken:
            def emit(self, record):
                raise OSError("disk full")

        memory = InMemorySink()
        dispatcher = Dispatcher([_Broken()])
        dispatcher.register_sink(memory)

        dispatcher.submit({"message": "m"})

        assert memory.records == [{"message": "m"}]
        assert "disk full" in capsys.readouterr().err


class TestContext:
    def test_capture_and_run_with_context(self):
        with logging_lib.logger_context(rid="outer"):
            captured = logging_lib.capture_context({"extra": 1})

        assert logging_lib.get_context() == {}
        seen = logging_lib.run_with_context(captured, logging_lib.get_context)
        assert seen == {"rid": "outer", "extra": 1}

    def test_bind_and_pop(self):
        token = logging_lib.bind_context(subject_id="1")
        assert logging_lib.get_context()["subject_id"] == "1"

        logging_lib.pop_context(token)
        assert "subject_id" not in logging_lib.get_context()
