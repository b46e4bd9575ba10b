"""Tests for structured logging utilities."""

import logging

import pytest

from timeledger.utils.logging_utils import (
    REDACTED,
    LedgerContextFilter,
    LogContext,
    current_context,
    log_function_call,
    new_correlation_id,
    sanitize_sensitive_data,
)


def make_record(**extra):
    record = logging.LogRecord("ledger", logging.INFO, __file__, 1, "msg", (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestCorrelationId:
    def test_format(self):
        corr_id = new_correlation_id()

        assert len(corr_id) == 12
        int(corr_id, 16)

    def test_uniqueness(self):
        assert len({new_correlation_id() for _ in range(100)}) == 100


class TestLogContext:
    """Test LogContext context manager."""

    def test_binds_fields(self):
        with LogContext(user_id="u1", invoice_id="i1"):
            assert current_context() == {"user_id": "u1", "invoice_id": "i1"}

        assert current_context() == {}

    def test_nesting_merges_and_restores(self):
        with LogContext(user_id="u1", correlation_id="abc"):
            with LogContext(user_id="u2", project_id="p1"):
                assert current_context() == {
                    "user_id": "u2",
                    "correlation_id": "abc",
                    "project_id": "p1",
                }
            assert current_context() == {"user_id": "u1", "correlation_id": "abc"}

    def test_none_values_are_skipped(self):
        with LogContext(user_id="u1", client_id=None):
            assert "client_id" not in current_context()

    def test_restored_after_exception(self):
        with pytest.raises(RuntimeError):
            with LogContext(user_id="u1"):
                raise RuntimeError("boom")

        assert current_context() == {}


class TestLedgerContextFilter:
    def test_adds_context_to_record(self):
        record = make_record()

        with LogContext(user_id="u1"):
            assert LedgerContextFilter().filter(record) is True

        assert record.user_id == "u1"

    def test_explicit_extra_wins(self):
        record = make_record(user_id="explicit")

        with LogContext(user_id="u1"):
            LedgerContextFilter().filter(record)

        assert record.user_id == "explicit"


class TestSanitizeSensitiveData:
    def test_redacts_nested_fields(self):
        data = {
            "amount": 10,
            "reference": "IBAN123",
            "client": {"name": "Acme", "billing_email": "a@b.c"},
        }

        assert sanitize_sensitive_data(data) == {
            "amount": 10,
            "reference": REDACTED,
            "client": {"name": "Acme", "billing_email": REDACTED},
        }

    def test_none_stays_none(self):
        assert sanitize_sensitive_data({"receipt": None}) == {"receipt": None}

    def test_input_not_modified(self):
        data = {"token": "t"}
        sanitize_sensitive_data(data)
        assert data == {"token": "t"}


class TestLogFunctionCall:
    def test_logs_entry_and_exit(self, caplog):
        @log_function_call
        def add(a, b):
            return a + b

        with caplog.at_level(logging.DEBUG):
            assert add(1, 2) == 3

        messages = [r.getMessage() for r in caplog.records]
        assert any(m.startswith("Entering") and "add" in m for m in messages)
        assert any(m.startswith("Exiting") for m in messages)

    def test_args_are_sanitized(self, caplog):
        @log_function_call(include_args=True, level="INFO")
        def record(invoice_id, reference=None):
            return invoice_id

        with caplog.at_level(logging.INFO):
            record("i1", reference="secret-ref")

        assert "secret-ref" not in caplog.text
        assert REDACTED in caplog.text

    def test_failure_is_logged_and_raised(self, caplog):
        @log_function_call
        def explode():
            raise ValueError("bad input")

        with caplog.at_level(logging.DEBUG):
            with pytest.raises(ValueError):
                explode()

        assert "failed: ValueError: bad input" in caplog.text

    def test_preserves_metadata(self):
        @log_function_call
        def documented():
            """Docstring."""

        assert documented.__name__ == "documented"
        assert documented.__doc__ == "Docstring."
