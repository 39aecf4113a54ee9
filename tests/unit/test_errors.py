"""Unit tests for the error taxonomy and operation tracking."""

import logging

import pytest

from resume_backend.app.db.context import RequestContext
from resume_backend.app.errors import (
    AppClientError,
    AppError,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ServerError,
    UnauthorizedError,
)
from resume_backend.app.utils.logging import track_operation
from resume_backend.app.utils.metrics import composition_operations_total


@pytest.mark.parametrize(
    ("error_class", "kind", "status_code"),
    [
        (BadRequestError, "bad_request", 400),
        (UnauthorizedError, "unauthorized", 401),
        (ForbiddenError, "forbidden", 403),
        (NotFoundError, "not_found", 404),
        (ConflictError, "conflict", 409),
        (ServerError, "server_error", 500),
    ],
)
def test_error_kind_and_status(error_class: type[AppError], kind: str, status_code: int) -> None:
    err = error_class("message")

    assert err.kind == kind
    assert err.status_code == status_code
    assert err.message == "message"
    assert str(err) == "message"


def test_client_errors_share_base() -> None:
    assert issubclass(ForbiddenError, AppClientError)
    assert not issubclass(ServerError, AppClientError)


def test_status_code_override() -> None:
    assert AppError("teapot", status_code=418).status_code == 418


def _count(operation: str, outcome: str) -> float:
    return composition_operations_total.labels(operation=operation, outcome=outcome)._value.get()


CTX = RequestContext(username="alice")


class TestTrackOperation:
    @pytest.mark.asyncio
    async def test_success_is_counted_and_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        before = _count("unit_success", "success")

        with caplog.at_level(logging.INFO):
            async with track_operation(CTX, "unit_success", document_id="d1"):
                pass

        assert _count("unit_success", "success") == before + 1
        record = next(r for r in caplog.records if "unit_success" in r.getMessage())
        assert record.levelno == logging.INFO
        assert record.structured["username"] == "alice"
        assert record.structured["params"] == {"document_id": "d1"}

    @pytest.mark.asyncio
    async def test_client_error_outcome_is_its_kind(self, caplog: pytest.LogCaptureFixture) -> None:
        before = _count("unit_forbidden", "forbidden")

        with caplog.at_level(logging.INFO):
            with pytest.raises(ForbiddenError):
                async with track_operation(CTX, "unit_forbidden"):
                    raise ForbiddenError("nope")

        assert _count("unit_forbidden", "forbidden") == before + 1
        record = next(r for r in caplog.records if "unit_forbidden" in r.getMessage())
        assert record.levelno == logging.WARNING
        assert record.structured["error_reason"] == "nope"

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_server_error(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        before = _count("unit_crash", "server_error")

        with caplog.at_level(logging.INFO):
            with pytest.raises(RuntimeError):
                async with track_operation(CTX, "unit_crash"):
                    raise RuntimeError("boom")

        assert _count("unit_crash", "server_error") == before + 1
        record = next(r for r in caplog.records if "unit_crash" in r.getMessage())
        assert record.levelno == logging.ERROR
        assert record.structured["error_reason"] == "RuntimeError"
