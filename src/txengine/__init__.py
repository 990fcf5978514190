"""Priority-scheduled transaction execution engine for liquidity-pool agents."""

from txengine.config import Settings, load_settings
from txengine.execution import TransactionEngine
from txengine.models import (
    ExecutionOptions,
    TransactionOutcome,
    TransactionPriority,
    TransactionRequest,
    TransactionStatus,
    TransactionType,
)

__version__ = "0.1.0"

__all__ = [
    "ExecutionOptions",
    "Settings",
    "TransactionEngine",
    "TransactionOutcome",
    "TransactionPriority",
    "TransactionRequest",
    "TransactionStatus",
    "TransactionType",
    "load_settings",
]
