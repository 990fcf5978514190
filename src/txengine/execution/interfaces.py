"""Abstract collaborator interfaces the engine calls through."""

from abc import ABC, abstractmethod
from typing import Any


class TransactionBuilder(ABC):
    """Builds unsigned transactions, one method per transaction type.

    All methods are async and must raise (ideally BuildError) on invalid input
    rather than return a partially built transaction.
    """

    @abstractmethod
    async def build_add_liquidity(
        self,
        pool_address: str,
        amount: float,
        bin_range: tuple[int, int],
    ) -> Any:
        """Build a liquidity deposit."""

    @abstractmethod
    async def build_remove_liquidity(
        self,
        pool_address: str,
        percentage: float,
        bin_range: tuple[int, int] | None = None,
    ) -> Any:
        """Build a liquidity withdrawal of ``percentage`` of the position."""

    @abstractmethod
    async def build_swap(
        self,
        from_token: str,
        to_token: str,
        amount: float,
        max_slippage: float,
    ) -> Any:
        """Build a token swap."""

    @abstractmethod
    async def build_emergency_exit(self, pool_addresses: list[str]) -> Any:
        """Build a full withdrawal from every listed pool."""


class TransactionSigner(ABC):
    @abstractmethod
    async def sign(self, unsigned_tx: Any, wallet_address: str) -> Any:
        """Sign ``unsigned_tx`` with the key for ``wallet_address``.

        Raises SigningError if the wallet is not known.
        """


class TransactionSender(ABC):
    """Broadcasts signed transactions and waits for confirmation."""

    @abstractmethod
    async def send(self, signed_tx: Any) -> str:
        """Broadcast a signed transaction. Returns the transaction hash."""

    @abstractmethod
    async def confirm(self, tx_hash: str, confirmations: int = 1) -> dict[str, Any]:
        """Wait until ``tx_hash`` has ``confirmations`` confirmations.

        Returns a result payload that is merged unmodified into the request
        result. Raises on rejection or timeout.
        """
