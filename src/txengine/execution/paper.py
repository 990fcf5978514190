"""Paper collaborators: in-memory builder, signer and sender for dry runs."""

import hashlib
import time
import uuid
from typing import Any

import structlog

from txengine.execution.errors import BuildError, ConfirmationError, SigningError
from txengine.execution.interfaces import (
    TransactionBuilder,
    TransactionSender,
    TransactionSigner,
)

logger = structlog.get_logger()


class PaperTransactionBuilder(TransactionBuilder):
    """Builds plain-dict instruction sets without touching the chain."""

    def __init__(self, blockhash: str = "paper-blockhash"):
        self._blockhash = blockhash

    def _tx(self, instruction: str, **params: Any) -> dict[str, Any]:
        return {
            "instructions": [{"program": instruction, **params}],
            "recent_blockhash": self._blockhash,
        }

    async def build_add_liquidity(
        self,
        pool_address: str,
        amount: float,
        bin_range: tuple[int, int],
    ) -> dict[str, Any]:
        if not pool_address:
            raise BuildError("pool_address is required")
        if amount <= 0:
            raise BuildError(f"amount must be positive, got {amount}")
        return self._tx(
            "add_liquidity", pool=pool_address, amount=amount, bin_range=list(bin_range)
        )

    async def build_remove_liquidity(
        self,
        pool_address: str,
        percentage: float,
        bin_range: tuple[int, int] | None = None,
    ) -> dict[str, Any]:
        if not pool_address:
            raise BuildError("pool_address is required")
        if not 0 < percentage <= 100:
            raise BuildError(f"percentage must be in (0, 100], got {percentage}")
        return self._tx(
            "remove_liquidity",
            pool=pool_address,
            percentage=percentage,
            bin_range=list(bin_range) if bin_range else None,
        )

    async def build_swap(
        self,
        from_token: str,
        to_token: str,
        amount: float,
        max_slippage: float,
    ) -> dict[str, Any]:
        if from_token == to_token:
            raise BuildError(f"Cannot swap {from_token} into itself")
        if amount <= 0:
            raise BuildError(f"amount must be positive, got {amount}")
        return self._tx(
            "swap",
            from_token=from_token,
            to_token=to_token,
            amount=amount,
            max_slippage=max_slippage,
        )

    async def build_emergency_exit(self, pool_addresses: list[str]) -> dict[str, Any]:
        if not pool_addresses:
            raise BuildError("pool_addresses must not be empty")
        return {
            "instructions": [
                {"program": "remove_liquidity", "pool": pool, "percentage": 100.0}
                for pool in pool_addresses
            ],
            "recent_blockhash": self._blockhash,
        }


class PaperTransactionSigner(TransactionSigner):
    """Signs with registered wallets by hashing the transaction and key.

    This is not a cryptographic signature; it only lets dry runs exercise the
    unknown-wallet failure path.
    """

    def __init__(self) -> None:
        self._wallets: dict[str, str] = {}

    def register_wallet(self, wallet_address: str, private_key: str) -> None:
        self._wallets[wallet_address] = private_key
        logger.info("paper_wallet_registered", wallet=wallet_address)

    def unregister_wallet(self, wallet_address: str) -> bool:
        return self._wallets.pop(wallet_address, None) is not None

    def has_wallet(self, wallet_address: str) -> bool:
        return wallet_address in self._wallets

    async def sign(self, unsigned_tx: Any, wallet_address: str) -> dict[str, Any]:
        key = self._wallets.get(wallet_address)
        if key is None:
            raise SigningError(f"Wallet not registered: {wallet_address}")
        digest = hashlib.sha256(f"{key}:{unsigned_tx!r}".encode()).hexdigest()
        return {"transaction": unsigned_tx, "signer": wallet_address, "signature": digest}


class PaperTransactionSender(TransactionSender):
    """Pretends to broadcast; every sent transaction confirms immediately."""

    def __init__(self, slot_start: int = 1) -> None:
        self._sent: dict[str, Any] = {}
        self._slot = slot_start

    @property
    def sent(self) -> dict[str, Any]:
        return dict(self._sent)

    async def send(self, signed_tx: Any) -> str:
        tx_hash = f"paper-{uuid.uuid4().hex[:16]}"
        self._sent[tx_hash] = signed_tx
        logger.debug("paper_transaction_sent", tx_hash=tx_hash)
        return tx_hash

    async def confirm(self, tx_hash: str, confirmations: int = 1) -> dict[str, Any]:
        if tx_hash not in self._sent:
            raise ConfirmationError(f"Unknown transaction: {tx_hash}")
        self._slot += 1
        return {
            "tx_hash": tx_hash,
            "slot": self._slot,
            "block_time": int(time.time()),
            "confirmations": confirmations,
        }
