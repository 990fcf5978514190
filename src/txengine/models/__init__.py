"""Core data models for the transaction engine."""

from txengine.models.base import (
    FrozenModel,
    TransactionPriority,
    TransactionStatus,
    TransactionType,
)
from txengine.models.payloads import (
    NATIVE_TOKEN,
    AddLiquidityData,
    EmergencyExitData,
    RemoveLiquidityData,
    SwapData,
    SwapToNativeData,
    TransactionPayload,
    parse_payload,
)
from txengine.models.request import (
    CANCELLABLE_STATUSES,
    TERMINAL_STATUSES,
    ExecutionOptions,
    TransactionOutcome,
    TransactionRequest,
)

__all__ = [
    "CANCELLABLE_STATUSES",
    "NATIVE_TOKEN",
    "TERMINAL_STATUSES",
    "AddLiquidityData",
    "EmergencyExitData",
    "ExecutionOptions",
    "FrozenModel",
    "RemoveLiquidityData",
    "SwapData",
    "SwapToNativeData",
    "TransactionOutcome",
    "TransactionPayload",
    "TransactionPriority",
    "TransactionRequest",
    "TransactionStatus",
    "TransactionType",
    "parse_payload",
]
