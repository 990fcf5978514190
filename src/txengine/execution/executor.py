"""Single-attempt state machine: build, sign, send, confirm."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import structlog

from txengine.execution.errors import BuildError, ConfirmationTimeout
from txengine.execution.interfaces import (
    TransactionBuilder,
    TransactionSender,
    TransactionSigner,
)
from txengine.execution.registry import RequestRegistry
from txengine.models import (
    AddLiquidityData,
    EmergencyExitData,
    ExecutionOptions,
    RemoveLiquidityData,
    SwapData,
    SwapToNativeData,
    TransactionRequest,
    TransactionStatus,
)

logger = structlog.get_logger()


@dataclass
class AttemptResult:
    """Outcome of one pass through the state machine."""

    request: TransactionRequest
    success: bool
    error: str | None = None
    stage: str | None = None


class TransactionExecutor:
    """Drives one request through SIGNING -> SENDING -> CONFIRMING -> CONFIRMED.

    Any exception raised by a collaborator is caught and the request is moved
    to FAILED with the error message recorded. The retry decision belongs to
    the caller (the engine).
    """

    def __init__(
        self,
        builder: TransactionBuilder,
        signer: TransactionSigner,
        sender: TransactionSender,
        registry: RequestRegistry,
    ):
        self._builder = builder
        self._signer = signer
        self._sender = sender
        self._registry = registry

    async def build(self, request: TransactionRequest) -> Any:
        """Dispatch to the builder method for the request's payload type."""
        data = request.data
        if isinstance(data, AddLiquidityData):
            return await self._builder.build_add_liquidity(
                data.pool_address, data.amount, data.bin_range
            )
        if isinstance(data, RemoveLiquidityData):
            return await self._builder.build_remove_liquidity(
                data.pool_address, data.percentage, data.bin_range
            )
        if isinstance(data, (SwapData, SwapToNativeData)):
            return await self._builder.build_swap(
                data.from_token, data.to_token, data.amount, data.max_slippage
            )
        if isinstance(data, EmergencyExitData):
            return await self._builder.build_emergency_exit(list(data.pool_addresses))
        raise BuildError(f"Unsupported transaction type: {request.type.value}")

    async def run_attempt(
        self, request_id: str, options: ExecutionOptions
    ) -> AttemptResult:
        request = self._registry.require(request_id)
        stage = "build"
        log = logger.bind(
            request_id=request_id,
            agent_id=request.agent_id,
            type=request.type.value,
            attempt=request.retry_count + 1,
        )
        log.info("transaction_attempt_started")

        try:
            request = self._registry.update_status(request_id, TransactionStatus.SIGNING)
            unsigned_tx = await self.build(request)

            stage = "sign"
            signed_tx = await self._signer.sign(unsigned_tx, request.wallet_address)

            stage = "send"
            request = self._registry.update_status(request_id, TransactionStatus.SENDING)
            tx_hash = await self._sender.send(signed_tx)

            stage = "confirm"
            request = self._registry.update_status(
                request_id, TransactionStatus.CONFIRMING, result={"tx_hash": tx_hash}
            )
            confirmation = await self._confirm(tx_hash, options)

            request = self._registry.update_status(
                request_id, TransactionStatus.CONFIRMED, result=confirmation
            )
        except Exception as e:
            error = str(e) or type(e).__name__
            stage = getattr(e, "stage", None) or stage
            log.warning(
                "transaction_attempt_failed",
                stage=stage,
                error=error,
                error_type=type(e).__name__,
            )
            request = self._registry.update_status(
                request_id, TransactionStatus.FAILED, error=error
            )
            return AttemptResult(request=request, success=False, error=error, stage=stage)

        log.info("transaction_confirmed", tx_hash=request.tx_hash)
        return AttemptResult(request=request, success=True)

    async def _confirm(self, tx_hash: str, options: ExecutionOptions) -> dict[str, Any]:
        confirm = self._sender.confirm(tx_hash, options.confirmations)
        if options.timeout is None:
            result = await confirm
        else:
            try:
                result = await asyncio.wait_for(confirm, timeout=options.timeout)
            except asyncio.TimeoutError as e:
                raise ConfirmationTimeout(
                    f"Confirmation of {tx_hash} timed out after {options.timeout}s"
                ) from e
        return dict(result or {})
