"""Per-agent transaction history and status listeners."""

from collections import deque
from collections.abc import Callable

import structlog

from txengine.models import TransactionRequest

logger = structlog.get_logger()

TransactionListener = Callable[[TransactionRequest], None]

DEFAULT_HISTORY_LIMIT = 100


class TransactionHistory:
    """Bounded, insertion-ordered request history per agent.

    Once an agent's history is full the oldest entry is evicted to admit a new
    one. Updating an existing entry replaces it in place and does not move it.
    """

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT):
        if limit < 1:
            raise ValueError("history limit must be >= 1")
        self._limit = limit
        self._by_agent: dict[str, deque[TransactionRequest]] = {}

    @property
    def limit(self) -> int:
        return self._limit

    def add(self, request: TransactionRequest) -> TransactionRequest | None:
        """Append ``request`` to its agent's history.

        Returns the evicted request, if any.
        """
        history = self._by_agent.setdefault(
            request.agent_id, deque(maxlen=self._limit)
        )
        evicted = history[0] if len(history) == self._limit else None
        history.append(request)
        return evicted

    def replace(self, request: TransactionRequest) -> bool:
        """Overwrite the stored snapshot for ``request.id``.

        Returns False if the request is not (or no longer) in the history.
        """
        history = self._by_agent.get(request.agent_id)
        if not history:
            return False
        for i, existing in enumerate(history):
            if existing.id == request.id:
                history[i] = request
                return True
        return False

    def get(self, agent_id: str) -> list[TransactionRequest]:
        return list(self._by_agent.get(agent_id, ()))


class ListenerRegistry:
    """Per-agent observer lists notified synchronously on every transition."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[TransactionListener]] = {}

    def add(self, agent_id: str, listener: TransactionListener) -> None:
        self._listeners.setdefault(agent_id, []).append(listener)

    def remove(self, agent_id: str, listener: TransactionListener) -> bool:
        listeners = self._listeners.get(agent_id)
        if not listeners or listener not in listeners:
            return False
        listeners.remove(listener)
        if not listeners:
            del self._listeners[agent_id]
        return True

    def count(self, agent_id: str) -> int:
        return len(self._listeners.get(agent_id, ()))

    def notify(self, request: TransactionRequest) -> None:
        """Call each listener for the request's agent in registration order.

        A failing listener is logged and skipped; it stays registered.
        """
        # Copy so listeners may (un)register during notification
        for listener in list(self._listeners.get(request.agent_id, ())):
            try:
                listener(request)
            except Exception as e:
                logger.warning(
                    "transaction_listener_failed",
                    agent_id=request.agent_id,
                    request_id=request.id,
                    status=request.status.value,
                    error=str(e),
                    exc_info=True,
                )
