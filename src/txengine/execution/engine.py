"""Transaction engine: priority queue, bounded worker slots and retry scheduling."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import structlog

from txengine.execution.errors import TransactionStateError
from txengine.execution.executor import AttemptResult, TransactionExecutor
from txengine.execution.history import DEFAULT_HISTORY_LIMIT, TransactionListener
from txengine.execution.interfaces import (
    TransactionBuilder,
    TransactionSender,
    TransactionSigner,
)
from txengine.execution.queue import QueueEntry, TransactionQueue
from txengine.execution.registry import RequestRegistry
from txengine.execution.retry import RetryPolicy
from txengine.models import (
    ExecutionOptions,
    FrozenModel,
    TransactionOutcome,
    TransactionRequest,
    TransactionStatus,
    TransactionType,
    parse_payload,
)

if TYPE_CHECKING:
    from txengine.config import Settings

logger = structlog.get_logger()

CANCELLED_ERROR = "cancelled"
SHUTDOWN_ERROR = "engine shut down"


class TransactionEngine:
    """Public facade for submitting and tracking on-chain transactions.

    Requests wait in a priority queue and are admitted to at most
    ``max_concurrent`` execution slots. Each admitted request runs one attempt
    through the executor. A failed attempt with retries left releases its
    slot, waits out the retry delay and re-enters the queue; the caller's
    ``execute`` only returns once the request is CONFIRMED, CANCELLED or has
    exhausted its retries.

    All state is owned by the instance and mutated on the event loop thread.
    """

    def __init__(
        self,
        builder: TransactionBuilder,
        signer: TransactionSigner,
        sender: TransactionSender,
        max_concurrent: int = 3,
        default_options: ExecutionOptions | None = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        retry_policy: RetryPolicy | None = None,
    ):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        self._max_concurrent = max_concurrent
        self._default_options = default_options or ExecutionOptions()
        self._retry_policy = retry_policy or RetryPolicy()
        self._registry = RequestRegistry(history_limit=history_limit)
        self._executor = TransactionExecutor(builder, signer, sender, self._registry)
        self._queue = TransactionQueue()
        self._active = 0
        self._draining = False
        self._tasks: set[asyncio.Task] = set()
        self._retry_timers: dict[str, tuple[asyncio.Task, QueueEntry]] = {}

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        builder: TransactionBuilder,
        signer: TransactionSigner,
        sender: TransactionSender,
    ) -> TransactionEngine:
        return cls(
            builder,
            signer,
            sender,
            max_concurrent=settings.max_concurrent_transactions,
            default_options=settings.execution_options(),
            history_limit=settings.history_limit,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def max_concurrent(self) -> int:
        return self._max_concurrent

    @property
    def active_count(self) -> int:
        return self._active

    @property
    def queued_count(self) -> int:
        return len(self._queue)

    @property
    def default_options(self) -> ExecutionOptions:
        return self._default_options

    # ------------------------------------------------------------------
    # Facade
    # ------------------------------------------------------------------

    def create_request(
        self,
        tx_type: TransactionType,
        data: Mapping[str, Any] | FrozenModel,
        agent_id: str,
        options: ExecutionOptions | None = None,
    ) -> TransactionRequest:
        """Create and register a PENDING request.

        Raises ValueError if ``data`` is not a valid payload for ``tx_type``.
        """
        opts = self._default_options.merged(options)
        tx_type = TransactionType(tx_type)
        request = TransactionRequest(
            type=tx_type,
            data=parse_payload(tx_type, data),
            agent_id=agent_id,
            priority=opts.priority,
            max_retries=opts.max_retries,
        )
        self._registry.register(request)
        logger.info(
            "transaction_created",
            request_id=request.id,
            type=tx_type.value,
            agent_id=agent_id,
            priority=request.priority.value,
        )
        return request

    async def execute(
        self,
        request: TransactionRequest,
        options: ExecutionOptions | None = None,
    ) -> TransactionOutcome:
        """Queue ``request`` and wait for its terminal outcome.

        Requests not created through this engine are registered on first use.
        Collaborator failures never raise here; they are reported through the
        returned outcome. Raises TransactionStateError if the request is not
        PENDING or is already queued.
        """
        known = self._registry.get(request.id)
        if known is None:
            if request.status != TransactionStatus.PENDING:
                raise TransactionStateError(
                    f"Transaction {request.id} must be PENDING to execute, got {request.status.value}"
                )
            known = self._registry.register(request)
        elif known.status != TransactionStatus.PENDING:
            raise TransactionStateError(
                f"Transaction {request.id} must be PENDING to execute, got {known.status.value}"
            )
        if self._queue.contains(known.id):
            raise TransactionStateError(f"Transaction {known.id} is already queued")

        loop = asyncio.get_running_loop()
        entry = QueueEntry(
            request=known,
            options=self._default_options.merged(options),
            future=loop.create_future(),
        )
        self._enqueue(entry)
        return await entry.future

    async def submit(
        self,
        tx_type: TransactionType,
        data: Mapping[str, Any] | FrozenModel,
        agent_id: str,
        options: ExecutionOptions | None = None,
    ) -> TransactionOutcome:
        """Create a request and execute it."""
        request = self.create_request(tx_type, data, agent_id, options)
        return await self.execute(request, options)

    def cancel(self, request_id: str) -> bool:
        """Cancel a request that has not been admitted to a slot.

        Only PENDING and RETRYING requests can be cancelled; in-flight
        collaborator calls are never interrupted.
        """
        request = self._registry.get(request_id)
        if request is None:
            logger.warning("transaction_cancel_rejected", request_id=request_id, reason="not_found")
            return False
        if not request.is_cancellable:
            logger.warning(
                "transaction_cancel_rejected",
                request_id=request_id,
                reason="not_cancellable",
                status=request.status.value,
            )
            return False

        request = self._registry.update_status(request_id, TransactionStatus.CANCELLED)
        removed = self._queue.remove(request_id)
        timer = self._retry_timers.pop(request_id, None)
        if timer is not None:
            task, entry = timer
            task.cancel()
            removed.append(entry)
        for entry in removed:
            self._resolve(entry, TransactionOutcome.failed(request, CANCELLED_ERROR))

        logger.info("transaction_cancelled", request_id=request_id, agent_id=request.agent_id)
        return True

    def get_status(self, request_id: str) -> TransactionStatus | None:
        request = self._registry.get(request_id)
        return request.status if request else None

    def get_request(self, request_id: str) -> TransactionRequest | None:
        return self._registry.get(request_id)

    def get_agent_transaction_history(self, agent_id: str) -> list[TransactionRequest]:
        return self._registry.history.get(agent_id)

    def add_transaction_listener(self, agent_id: str, listener: TransactionListener) -> None:
        self._registry.listeners.add(agent_id, listener)
        logger.debug(
            "transaction_listener_added",
            agent_id=agent_id,
            listeners=self._registry.listeners.count(agent_id),
        )

    def remove_transaction_listener(self, agent_id: str, listener: TransactionListener) -> bool:
        return self._registry.listeners.remove(agent_id, listener)

    async def shutdown(self) -> None:
        """Stop retry timers and in-flight attempts; resolve every waiting caller."""
        waiting = self._queue.drain()
        for task, entry in self._retry_timers.values():
            task.cancel()
            waiting.append(entry)
        self._retry_timers.clear()

        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

        for entry in waiting:
            request = self._registry.get(entry.request_id) or entry.request
            self._resolve(entry, TransactionOutcome.failed(request, SHUTDOWN_ERROR))
        logger.info("transaction_engine_shutdown", abandoned=len(waiting) + len(tasks))

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _enqueue(self, entry: QueueEntry) -> None:
        self._queue.enqueue(entry)
        logger.debug(
            "transaction_queued",
            request_id=entry.request_id,
            priority=entry.request.priority.value,
            position=self._queue.snapshot().index(entry.request_id),
            queued=len(self._queue),
        )
        self._drain()

    def _drain(self) -> None:
        """Admit queued entries while execution slots are free."""
        if self._draining:
            return
        self._draining = True
        try:
            while self._queue and self._active < self._max_concurrent:
                entry = self._queue.pop()
                self._active += 1
                task = asyncio.create_task(self._run(entry))
                self._tasks.add(task)
                task.add_done_callback(self._on_task_done)
        finally:
            self._draining = False

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        self._active -= 1
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "transaction_task_crashed",
                error=str(task.exception()),
                exc_info=task.exception(),
            )
        self._drain()

    async def _run(self, entry: QueueEntry) -> None:
        try:
            attempt = await self._executor.run_attempt(entry.request_id, entry.options)
            self._after_attempt(entry, attempt)
        except asyncio.CancelledError:
            request = self._registry.get(entry.request_id) or entry.request
            self._resolve(entry, TransactionOutcome.failed(request, SHUTDOWN_ERROR))
            raise
        except Exception as e:
            # Registry or state errors, not collaborator failures
            request = self._registry.get(entry.request_id) or entry.request
            self._resolve(entry, TransactionOutcome.failed(request, str(e)))
            raise

    def _after_attempt(self, entry: QueueEntry, attempt: AttemptResult) -> None:
        request = attempt.request
        if attempt.success:
            self._resolve(entry, TransactionOutcome.confirmed(request))
            return

        if not self._retry_policy.should_retry(request):
            logger.error(
                "transaction_failed",
                request_id=request.id,
                agent_id=request.agent_id,
                retries=request.retry_count,
                error=attempt.error,
            )
            self._resolve(entry, TransactionOutcome.failed(request, attempt.error or "failed"))
            return

        retry_count = request.retry_count + 1
        request = self._registry.update_status(
            request.id, TransactionStatus.RETRYING, retry_count=retry_count
        )
        delay = self._retry_policy.delay_for(retry_count, entry.options.retry_delays)
        logger.info(
            "transaction_retry_scheduled",
            request_id=request.id,
            retry=retry_count,
            max_retries=request.max_retries,
            delay=delay,
        )
        retry_entry = QueueEntry(request=request, options=entry.options, future=entry.future)
        timer = asyncio.create_task(self._retry_after(retry_entry, delay))
        self._retry_timers[request.id] = (timer, retry_entry)

    async def _retry_after(self, entry: QueueEntry, delay: float) -> None:
        await asyncio.sleep(delay)
        self._retry_timers.pop(entry.request_id, None)
        request = self._registry.get(entry.request_id)
        if request is None or request.status != TransactionStatus.RETRYING:
            return
        # Queued behind same-priority requests that arrived during the delay
        entry.request = request
        entry.arrival = datetime.now(timezone.utc)
        self._enqueue(entry)

    @staticmethod
    def _resolve(entry: QueueEntry, outcome: TransactionOutcome) -> None:
        if not entry.future.done():
            entry.future.set_result(outcome)
