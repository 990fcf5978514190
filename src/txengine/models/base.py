"""Base model and common enums for the transaction engine."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class FrozenModel(BaseModel):
    """Immutable base model."""

    model_config = ConfigDict(frozen=True)


class TransactionType(str, Enum):
    """On-chain action a request performs."""

    ADD_LIQUIDITY = "ADD_LIQUIDITY"
    REMOVE_LIQUIDITY = "REMOVE_LIQUIDITY"
    SWAP = "SWAP"
    SWAP_TO_NATIVE = "SWAP_TO_NATIVE"
    EMERGENCY_EXIT = "EMERGENCY_EXIT"


class TransactionStatus(str, Enum):
    """Transaction request lifecycle status."""

    PENDING = "PENDING"
    SIGNING = "SIGNING"
    SENDING = "SENDING"
    CONFIRMING = "CONFIRMING"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"
    RETRYING = "RETRYING"
    CANCELLED = "CANCELLED"

    @property
    def is_active(self) -> bool:
        """True while a request holds an execution slot."""
        return self in _ACTIVE_STATUSES


_ACTIVE_STATUSES = frozenset(
    {TransactionStatus.SIGNING, TransactionStatus.SENDING, TransactionStatus.CONFIRMING}
)


class TransactionPriority(str, Enum):
    """Dispatch priority. Lower rank is dispatched first."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    TransactionPriority.CRITICAL: 0,
    TransactionPriority.HIGH: 1,
    TransactionPriority.MEDIUM: 2,
    TransactionPriority.LOW: 3,
}
