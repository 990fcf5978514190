"""Tests for paper collaborators and an end-to-end dry run."""

import pytest

from txengine.execution.engine import TransactionEngine
from txengine.execution.errors import BuildError, ConfirmationError, SigningError
from txengine.execution.paper import (
    PaperTransactionBuilder,
    PaperTransactionSender,
    PaperTransactionSigner,
)
from txengine.models import ExecutionOptions, TransactionStatus, TransactionType

WALLET = "test_wallet_address"


@pytest.fixture
def builder():
    return PaperTransactionBuilder()


@pytest.fixture
def signer():
    s = PaperTransactionSigner()
    s.register_wallet(WALLET, "test_private_key")
    return s


@pytest.fixture
def sender():
    return PaperTransactionSender()


class TestPaperTransactionBuilder:
    @pytest.mark.asyncio
    async def test_add_liquidity(self, builder):
        tx = await builder.build_add_liquidity("pool", 2.0, (-1, 1))
        assert tx["instructions"][0]["program"] == "add_liquidity"
        assert tx["instructions"][0]["bin_range"] == [-1, 1]

    @pytest.mark.asyncio
    async def test_swap_into_same_token_rejected(self, builder):
        with pytest.raises(BuildError):
            await builder.build_swap("SOL", "SOL", 1.0, 1.0)

    @pytest.mark.asyncio
    async def test_remove_liquidity_bounds(self, builder):
        with pytest.raises(BuildError):
            await builder.build_remove_liquidity("pool", 150.0)

    @pytest.mark.asyncio
    async def test_emergency_exit_one_instruction_per_pool(self, builder):
        tx = await builder.build_emergency_exit(["a", "b", "c"])
        assert [ix["pool"] for ix in tx["instructions"]] == ["a", "b", "c"]


class TestPaperTransactionSigner:
    @pytest.mark.asyncio
    async def test_sign_registered_wallet(self, signer):
        signed = await signer.sign({"ix": 1}, WALLET)
        assert signed["signer"] == WALLET
        assert len(signed["signature"]) == 64

    @pytest.mark.asyncio
    async def test_unknown_wallet(self, signer):
        with pytest.raises(SigningError, match="not registered"):
            await signer.sign({"ix": 1}, "stranger")

    def test_unregister(self, signer):
        assert signer.unregister_wallet(WALLET)
        assert not signer.has_wallet(WALLET)
        assert not signer.unregister_wallet(WALLET)


class TestPaperTransactionSender:
    @pytest.mark.asyncio
    async def test_send_and_confirm(self, sender):
        tx_hash = await sender.send({"signed": True})
        assert tx_hash.startswith("paper-")
        result = await sender.confirm(tx_hash, 3)
        assert result["tx_hash"] == tx_hash
        assert result["confirmations"] == 3
        assert tx_hash in sender.sent

    @pytest.mark.asyncio
    async def test_confirm_unknown(self, sender):
        with pytest.raises(ConfirmationError):
            await sender.confirm("nope")


class TestPaperDryRun:
    @pytest.mark.asyncio
    async def test_engine_with_paper_collaborators(self, builder, signer, sender):
        engine = TransactionEngine(builder, signer, sender)
        request = engine.create_request(
            TransactionType.ADD_LIQUIDITY,
            {"pool_address": "test_pool_address", "amount": 1.0, "wallet_address": WALLET},
            "test_agent_id",
        )
        outcome = await engine.execute(request)

        assert outcome.success
        assert outcome.tx_hash in sender.sent
        assert outcome.details["block_time"] > 0
        assert engine.get_status(request.id) == TransactionStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_unregistered_wallet_fails_after_retries(self, builder, sender):
        engine = TransactionEngine(builder, PaperTransactionSigner(), sender)
        options = ExecutionOptions(max_retries=2, retry_delays=[0.001])
        outcome = await engine.submit(
            TransactionType.SWAP_TO_NATIVE,
            {"from_token": "USDC", "amount": 5, "wallet_address": "unknown"},
            "agent-x",
            options,
        )
        assert not outcome.success
        assert "not registered" in outcome.error
        assert engine.get_request(outcome.request_id).retry_count == 2
        assert sender.sent == {}
