"""Tests for request, options and outcome models."""

import pytest
from pydantic import ValidationError

from txengine.models import (
    AddLiquidityData,
    ExecutionOptions,
    SwapData,
    TransactionOutcome,
    TransactionPriority,
    TransactionRequest,
    TransactionStatus,
    TransactionType,
)


def make_request(**overrides):
    fields = {
        "type": TransactionType.ADD_LIQUIDITY,
        "data": AddLiquidityData(pool_address="pool-1", amount=1.0, wallet_address="w"),
        "agent_id": "agent-1",
    }
    fields.update(overrides)
    return TransactionRequest(**fields)


class TestTransactionPriority:
    def test_rank_order(self):
        ranks = [p.rank for p in TransactionPriority]
        assert ranks == [0, 1, 2, 3]
        assert TransactionPriority.CRITICAL.rank < TransactionPriority.LOW.rank


class TestTransactionStatus:
    def test_active_statuses(self):
        active = {s for s in TransactionStatus if s.is_active}
        assert active == {
            TransactionStatus.SIGNING,
            TransactionStatus.SENDING,
            TransactionStatus.CONFIRMING,
        }


class TestTransactionRequest:
    def test_defaults(self):
        request = make_request()
        assert request.status == TransactionStatus.PENDING
        assert request.priority == TransactionPriority.MEDIUM
        assert request.retry_count == 0
        assert request.max_retries == 3
        assert request.result == {}
        assert request.error is None
        assert len(request.id) == 32
        assert request.wallet_address == "w"

    def test_unique_ids(self):
        assert make_request().id != make_request().id

    def test_frozen(self):
        request = make_request()
        with pytest.raises(ValidationError):
            request.status = TransactionStatus.SIGNING

    def test_retry_count_bounded(self):
        with pytest.raises(ValidationError):
            make_request(retry_count=4, max_retries=3)

    def test_payload_must_match_type(self):
        with pytest.raises(ValidationError):
            make_request(type=TransactionType.SWAP)

    def test_evolve_keeps_identity(self):
        request = make_request()
        updated = request.evolve(status=TransactionStatus.SIGNING)
        assert updated.id == request.id
        assert updated.created_at == request.created_at
        assert updated.data == request.data
        assert updated.status == TransactionStatus.SIGNING
        assert request.status == TransactionStatus.PENDING

    def test_terminal_and_cancellable(self):
        request = make_request(max_retries=1)
        assert request.is_cancellable
        assert not request.is_terminal

        failed = request.evolve(status=TransactionStatus.FAILED)
        assert not failed.is_terminal
        exhausted = failed.evolve(retry_count=1)
        assert exhausted.is_terminal
        assert not exhausted.is_cancellable

        assert request.evolve(status=TransactionStatus.CONFIRMED).is_terminal
        assert request.evolve(status=TransactionStatus.RETRYING).is_cancellable

    def test_swap_request(self):
        request = make_request(
            type=TransactionType.SWAP,
            data=SwapData(from_token="SOL", to_token="USDC", amount=3, wallet_address="w"),
        )
        assert request.data.to_token == "USDC"


class TestExecutionOptions:
    def test_defaults(self):
        opts = ExecutionOptions()
        assert opts.max_retries == 3
        assert opts.retry_delays == [5.0, 15.0, 30.0]
        assert opts.timeout == 60.0
        assert opts.confirmations == 1
        assert opts.priority == TransactionPriority.MEDIUM

    def test_empty_delays_rejected(self):
        with pytest.raises(ValidationError):
            ExecutionOptions(retry_delays=[])

    def test_negative_delay_rejected(self):
        with pytest.raises(ValidationError):
            ExecutionOptions(retry_delays=[1.0, -1.0])

    def test_merged_only_applies_explicit_fields(self):
        base = ExecutionOptions(max_retries=5, confirmations=3)
        merged = base.merged(ExecutionOptions(priority=TransactionPriority.HIGH))
        assert merged.max_retries == 5
        assert merged.confirmations == 3
        assert merged.priority == TransactionPriority.HIGH

    def test_merged_none(self):
        base = ExecutionOptions()
        assert base.merged(None) is base


class TestTransactionOutcome:
    def test_confirmed_flattens_result(self):
        request = make_request().evolve(
            status=TransactionStatus.CONFIRMED,
            result={"tx_hash": "abc", "slot": 7},
        )
        outcome = TransactionOutcome.confirmed(request)
        assert outcome.success
        assert outcome.tx_hash == "abc"
        assert outcome.to_dict() == {"tx_hash": "abc", "slot": 7, "success": True}

    def test_failed_carries_error(self):
        request = make_request().evolve(status=TransactionStatus.FAILED, error="boom")
        outcome = TransactionOutcome.failed(request, "boom")
        assert not outcome.success
        assert outcome.to_dict() == {"success": False, "error": "boom"}
