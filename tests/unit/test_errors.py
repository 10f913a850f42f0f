"""Tests for wg_common.errors and wg_common.response."""

from unittest.mock import MagicMock

from src.wg_common.errors import (
    AppError,
    BettingClosedError,
    ConcurrentSettlementError,
    InsufficientTokenBalanceError,
    PayoutInvariantError,
    QuarterNotEndedError,
    SelfWagerError,
    StakeOutOfRangeError,
)
from src.wg_common.response import ApiResponse, error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1001, message="test"), Exception)


class TestSpecificErrors:
    def test_insufficient_balance(self) -> None:
        err = InsufficientTokenBalanceError(required=500, available=120)
        assert err.code == 2001
        assert err.http_status == 422
        assert "500" in err.message
        assert "120" in err.message

    def test_betting_closed(self) -> None:
        err = BettingClosedError("2026-Q1")
        assert err.code == 3003
        assert "2026-Q1" in err.message

    def test_quarter_not_ended(self) -> None:
        assert QuarterNotEndedError("2026-Q2").code == 3004

    def test_stake_out_of_range(self) -> None:
        err = StakeOutOfRangeError(5, 10, 10000)
        assert err.code == 4001
        assert err.http_status == 400

    def test_self_wager(self) -> None:
        assert SelfWagerError().code == 4005

    def test_settlement_errors(self) -> None:
        assert PayoutInvariantError("x").code == 5001
        err = ConcurrentSettlementError("bet_1")
        assert err.code == 5002
        assert err.http_status == 409
        assert "bet_1" in err.message


class TestApiResponse:
    def test_success_response(self) -> None:
        resp = success_response({"a": 1})
        assert isinstance(resp, ApiResponse)
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.data == {"a": 1}
        assert resp.request_id.startswith("req_")

    def test_success_reuses_request_id(self) -> None:
        request = MagicMock()
        request.state.request_id = "req_abc123"
        assert success_response(None, request).request_id == "req_abc123"

    def test_error_response(self) -> None:
        resp = error_response(4001, "bad stake")
        assert resp.code == 4001
        assert resp.data is None

    def test_error_reuses_request_id(self) -> None:
        request = MagicMock()
        request.state.request_id = "req_err001"
        resp = error_response(5001, "quarter not ended", request)
        assert resp.request_id == "req_err001"
        assert resp.message == "quarter not ended"
