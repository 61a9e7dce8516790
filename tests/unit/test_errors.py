"""Tests for the error taxonomy and the response envelope."""

from unittest.mock import MagicMock

import pytest
from pydantic import BaseModel

from src.fs_common.errors import (
    AppError,
    ExpenseNotFoundError,
    InvalidCredentialsError,
    NotGroupMemberError,
    NotSessionControllerError,
    ReceiptSessionNotFoundError,
    ReconciliationInputError,
    SessionExpiredError,
    SessionNotClaimableError,
    SettlementNotFoundError,
    ValidationError,
)
from src.fs_common.response import error_response, respond, success_response


@pytest.mark.parametrize(
    ("exc", "code", "status"),
    [
        (InvalidCredentialsError(), 1001, 401),
        (NotGroupMemberError("g1"), 2001, 403),
        (ValidationError("bad"), 3001, 422),
        (ExpenseNotFoundError("e1"), 3002, 404),
        (ReceiptSessionNotFoundError("s1"), 4001, 404),
        (SessionExpiredError("s1"), 4003, 410),
        (SessionNotClaimableError("s1", "completed"), 4004, 409),
        (NotSessionControllerError(), 4005, 403),
        (ReconciliationInputError("no total"), 4009, 422),
        (SettlementNotFoundError("x"), 5001, 404),
    ],
)
def test_codes_and_statuses(exc: AppError, code: int, status: int) -> None:
    assert isinstance(exc, AppError)
    assert exc.code == code
    assert exc.http_status == status


def test_messages_name_the_resource() -> None:
    assert "g1" in NotGroupMemberError("g1").message
    assert "completed" in SessionNotClaimableError("s1", "completed").message


def test_success_envelope() -> None:
    resp = success_response({"a": 1})
    assert resp.code == 0
    assert resp.message == "success"
    assert resp.data == {"a": 1}
    assert resp.request_id.startswith("req_")


def test_error_envelope_has_no_data() -> None:
    resp = error_response(4003, "expired")
    assert resp.code == 4003
    assert resp.data is None


class _Payload(BaseModel):
    value: int


def test_respond_reuses_middleware_request_id() -> None:
    request = MagicMock()
    request.state.request_id = "req_abc"
    resp = respond(request, _Payload(value=3))
    assert resp.request_id == "req_abc"
    assert resp.data == {"value": 3}
