"""Request registry: latest snapshots, history and listener fan-out."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog

from txengine.execution.errors import TransactionStateError
from txengine.execution.history import (
    DEFAULT_HISTORY_LIMIT,
    ListenerRegistry,
    TransactionHistory,
)
from txengine.models import TransactionRequest, TransactionStatus

logger = structlog.get_logger()

S = TransactionStatus

ALLOWED_TRANSITIONS: dict[TransactionStatus, frozenset[TransactionStatus]] = {
    S.PENDING: frozenset({S.SIGNING, S.CANCELLED}),
    S.SIGNING: frozenset({S.SENDING, S.FAILED}),
    S.SENDING: frozenset({S.CONFIRMING, S.FAILED}),
    S.CONFIRMING: frozenset({S.CONFIRMED, S.FAILED}),
    S.FAILED: frozenset({S.RETRYING}),
    S.RETRYING: frozenset({S.SIGNING, S.CANCELLED}),
    S.CONFIRMED: frozenset(),
    S.CANCELLED: frozenset(),
}


class RequestRegistry:
    """Owns every request snapshot known to one engine.

    ``update_status`` is the only way a request changes state. Each call
    updates status and ``updated_at``, merges the partial result, replaces the
    snapshot in the agent's history and notifies the agent's listeners.
    """

    def __init__(self, history_limit: int = DEFAULT_HISTORY_LIMIT):
        self._requests: dict[str, TransactionRequest] = {}
        self._history = TransactionHistory(limit=history_limit)
        self._listeners = ListenerRegistry()

    @property
    def history(self) -> TransactionHistory:
        return self._history

    @property
    def listeners(self) -> ListenerRegistry:
        return self._listeners

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._requests

    def __len__(self) -> int:
        return len(self._requests)

    def register(self, request: TransactionRequest) -> TransactionRequest:
        if request.id in self._requests:
            raise TransactionStateError(f"Transaction {request.id} already registered")
        self._requests[request.id] = request
        evicted = self._history.add(request)
        if evicted is not None:
            # Only finished requests are forgotten; in-flight ones stay addressable
            latest = self._requests.get(evicted.id)
            if latest is not None and latest.is_terminal:
                del self._requests[evicted.id]
            logger.debug(
                "transaction_history_evicted",
                agent_id=request.agent_id,
                request_id=evicted.id,
            )
        return request

    def get(self, request_id: str) -> TransactionRequest | None:
        return self._requests.get(request_id)

    def require(self, request_id: str) -> TransactionRequest:
        request = self._requests.get(request_id)
        if request is None:
            raise KeyError(f"Transaction {request_id} not found")
        return request

    def update_status(
        self,
        request_id: str,
        status: TransactionStatus,
        result: dict[str, Any] | None = None,
        error: str | None = None,
        **changes: Any,
    ) -> TransactionRequest:
        """Transition a request and apply every side effect of the change."""
        current = self.require(request_id)
        if status not in ALLOWED_TRANSITIONS[current.status]:
            raise TransactionStateError(
                f"Transaction {request_id}: {current.status.value} -> {status.value} not allowed"
            )

        merged = {**current.result, **result} if result else current.result
        updated = current.evolve(
            status=status,
            updated_at=datetime.now(timezone.utc),
            result=merged,
            error=error if error is not None else current.error,
            **changes,
        )
        self._requests[request_id] = updated
        if not self._history.replace(updated) and updated.is_terminal:
            # Evicted while in flight; nothing can address it once finished
            del self._requests[request_id]
        logger.debug(
            "transaction_status_changed",
            request_id=request_id,
            agent_id=updated.agent_id,
            previous=current.status.value,
            status=status.value,
        )
        self._listeners.notify(updated)
        return updated
