"""Unit tests for error status mapping and request-id log context."""

from __future__ import annotations

import pytest
import structlog

from src.api.middleware import error_status
from src.utils.errors import (
    ConfigurationError,
    ExtractionError,
    GoncalinhoError,
    LLMError,
    ProcessingError,
    StoreError,
    StoreWriteError,
    UnsupportedFormatError,
)
from src.utils.logging import current_request_id, new_request_id, request_context


def _wrapped(cause: BaseException) -> ProcessingError:
    error = ProcessingError("Could not ingest", provider_name="ingestion")
    error.__cause__ = cause
    return error


class TestErrorStatus:
    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (UnsupportedFormatError(), 415),
            (ExtractionError(), 422),
            (StoreError(), 503),
            (StoreWriteError(), 503),
            (LLMError(), 502),
            (ConfigurationError(), 500),
            (GoncalinhoError(), 500),
        ],
    )
    def test_direct_errors(self, error: GoncalinhoError, status: int) -> None:
        assert error_status(error) == status

    def test_processing_error_takes_extraction_cause(self) -> None:
        assert error_status(_wrapped(ExtractionError("bad pdf", provider_name="pdf"))) == 422

    def test_processing_error_takes_store_cause(self) -> None:
        assert error_status(_wrapped(StoreWriteError("disk full"))) == 503

    def test_processing_error_with_os_cause_is_500(self) -> None:
        assert error_status(_wrapped(OSError("gone"))) == 500

    def test_bare_processing_error_is_500(self) -> None:
        assert error_status(ProcessingError()) == 500

    def test_cause_cycle_terminates(self) -> None:
        first = ProcessingError()
        second = ProcessingError()
        first.__cause__ = second
        second.__cause__ = first
        assert error_status(first) == 500


class TestRequestContext:
    def setup_method(self) -> None:
        structlog.contextvars.clear_contextvars()

    def test_binds_and_unbinds_request_id(self) -> None:
        assert current_request_id() is None
        with request_context("abc123"):
            assert current_request_id() == "abc123"
        assert current_request_id() is None

    def test_extra_fields_bound(self) -> None:
        with request_context("abc123", path="/api/upload"):
            assert structlog.contextvars.get_contextvars() == {
                "request_id": "abc123",
                "path": "/api/upload",
            }

    def test_supplied_id_reused(self) -> None:
        assert new_request_id("painel-42") == "painel-42"

    @pytest.mark.parametrize("supplied", [None, "", "x" * 65, "linha\nquebrada"])
    def test_unusable_id_replaced(self, supplied: str | None) -> None:
        request_id = new_request_id(supplied)
        assert request_id != supplied
        assert len(request_id) == 16
