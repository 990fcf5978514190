"""Priority queue of transaction requests awaiting an execution slot."""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass, field
from datetime import datetime

from txengine.models import ExecutionOptions, TransactionOutcome, TransactionRequest

_sequence = itertools.count()


@dataclass
class QueueEntry:
    """Scheduling entry: a request, its call options and the caller's future.

    The future is shared across retries of the same request so that only the
    final terminal transition resolves it. ``arrival`` orders entries of equal
    priority; a first submission arrives at the request's ``created_at``, a
    retry at the moment its delay expires.
    """

    request: TransactionRequest
    options: ExecutionOptions
    future: asyncio.Future[TransactionOutcome]
    arrival: datetime | None = None
    seq: int = field(default_factory=lambda: next(_sequence))

    @property
    def request_id(self) -> str:
        return self.request.id

    @property
    def arrived_at(self) -> datetime:
        return self.arrival or self.request.created_at

    @property
    def sort_key(self) -> tuple:
        return (self.request.priority.rank, self.arrived_at, self.seq)


class TransactionQueue:
    """Holds pending and retrying requests ordered by priority then age.

    Ordering: priority rank ascending (CRITICAL first), then arrival time
    ascending, then enqueue order for identical arrival times.
    """

    def __init__(self) -> None:
        self._entries: list[QueueEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def enqueue(self, entry: QueueEntry) -> None:
        entry.seq = next(_sequence)
        self._entries.append(entry)

    def sort(self) -> None:
        self._entries.sort(key=lambda e: e.sort_key)

    def pop(self) -> QueueEntry:
        """Remove and return the most urgent entry. Raises IndexError if empty."""
        self.sort()
        return self._entries.pop(0)

    def remove(self, request_id: str) -> list[QueueEntry]:
        """Drop every entry for ``request_id`` and return the removed entries."""
        removed = [e for e in self._entries if e.request_id == request_id]
        if removed:
            self._entries = [e for e in self._entries if e.request_id != request_id]
        return removed

    def contains(self, request_id: str) -> bool:
        return any(e.request_id == request_id for e in self._entries)

    def drain(self) -> list[QueueEntry]:
        """Remove and return all entries."""
        entries, self._entries = self._entries, []
        return entries

    def snapshot(self) -> list[str]:
        """Request ids in dispatch order."""
        self.sort()
        return [e.request_id for e in self._entries]
