"""Transaction request, execution options and outcome models."""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import Field, model_validator

from txengine.models.base import (
    FrozenModel,
    TransactionPriority,
    TransactionStatus,
    TransactionType,
)
from txengine.models.payloads import TransactionPayload

TERMINAL_STATUSES = frozenset({TransactionStatus.CONFIRMED, TransactionStatus.CANCELLED})
CANCELLABLE_STATUSES = frozenset({TransactionStatus.PENDING, TransactionStatus.RETRYING})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_request_id() -> str:
    return uuid.uuid4().hex


class ExecutionOptions(FrozenModel):
    """Per-call execution settings.

    ``retry_delays`` holds one wait (seconds) per retry attempt; the last value
    is reused for attempts beyond the sequence length.
    """

    max_retries: int = Field(default=3, ge=0)
    retry_delays: list[float] = Field(
        default_factory=lambda: [5.0, 15.0, 30.0], min_length=1
    )
    timeout: float | None = Field(default=60.0, gt=0)
    confirmations: int = Field(default=1, ge=1)
    priority: TransactionPriority = TransactionPriority.MEDIUM

    @model_validator(mode="after")
    def non_negative_delays(self) -> "ExecutionOptions":
        if any(d < 0 for d in self.retry_delays):
            raise ValueError("retry_delays must be non-negative")
        return self

    def merged(self, overrides: "ExecutionOptions | None") -> "ExecutionOptions":
        """Return a copy with the fields explicitly set on ``overrides`` applied."""
        if overrides is None:
            return self
        updates = {
            name: getattr(overrides, name) for name in overrides.model_fields_set
        }
        return self.model_copy(update=updates)


class TransactionRequest(FrozenModel):
    """Immutable snapshot of one unit of work and its lifecycle state.

    Status transitions produce new snapshots via ``evolve``; identity fields
    (id, type, data, priority, agent_id, created_at) never change.
    """

    id: str = Field(default_factory=new_request_id)
    type: TransactionType
    data: TransactionPayload
    agent_id: str = Field(min_length=1)
    priority: TransactionPriority = TransactionPriority.MEDIUM
    status: TransactionStatus = TransactionStatus.PENDING
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    retry_count: int = Field(default=0, ge=0)
    max_retries: int = Field(default=3, ge=0)
    result: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None

    @model_validator(mode="after")
    def check_consistency(self) -> "TransactionRequest":
        if self.retry_count > self.max_retries:
            raise ValueError(
                f"retry_count ({self.retry_count}) exceeds max_retries ({self.max_retries})"
            )
        if self.data.type != self.type:
            raise ValueError(
                f"Payload type {self.data.type.value} does not match {self.type.value}"
            )
        return self

    @property
    def wallet_address(self) -> str:
        return self.data.wallet_address

    @property
    def tx_hash(self) -> str | None:
        return self.result.get("tx_hash")

    @property
    def is_terminal(self) -> bool:
        if self.status in TERMINAL_STATUSES:
            return True
        return self.status == TransactionStatus.FAILED and not self.can_retry

    @property
    def is_cancellable(self) -> bool:
        return self.status in CANCELLABLE_STATUSES

    @property
    def can_retry(self) -> bool:
        return self.retry_count < self.max_retries

    def evolve(self, **changes: Any) -> "TransactionRequest":
        """Return a validated copy with ``changes`` applied."""
        return self.model_validate({**self.model_dump(), **changes})


class TransactionOutcome(FrozenModel):
    """Final result handed back to the caller of ``execute``."""

    success: bool
    request_id: str
    status: TransactionStatus
    tx_hash: str | None = None
    error: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def confirmed(cls, request: TransactionRequest) -> "TransactionOutcome":
        return cls(
            success=True,
            request_id=request.id,
            status=request.status,
            tx_hash=request.tx_hash,
            details=dict(request.result),
        )

    @classmethod
    def failed(cls, request: TransactionRequest, error: str) -> "TransactionOutcome":
        return cls(
            success=False,
            request_id=request.id,
            status=request.status,
            tx_hash=request.tx_hash,
            error=error,
            details=dict(request.result),
        )

    def to_dict(self) -> dict[str, Any]:
        """Flatten to ``{**details, "success": ..., "error": ...}``."""
        out = dict(self.details)
        out["success"] = self.success
        if self.error is not None:
            out["error"] = self.error
        return out
