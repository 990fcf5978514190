"""Transaction execution package."""

from txengine.execution.engine import TransactionEngine
from txengine.execution.errors import (
    BuildError,
    ConfirmationError,
    ConfirmationTimeout,
    SigningError,
    SubmissionError,
    TransactionError,
    TransactionStateError,
)
from txengine.execution.executor import AttemptResult, TransactionExecutor
from txengine.execution.history import (
    ListenerRegistry,
    TransactionHistory,
    TransactionListener,
)
from txengine.execution.interfaces import (
    TransactionBuilder,
    TransactionSender,
    TransactionSigner,
)
from txengine.execution.paper import (
    PaperTransactionBuilder,
    PaperTransactionSender,
    PaperTransactionSigner,
)
from txengine.execution.queue import QueueEntry, TransactionQueue
from txengine.execution.registry import RequestRegistry
from txengine.execution.retry import RetryPolicy

__all__ = [
    "AttemptResult",
    "BuildError",
    "ConfirmationError",
    "ConfirmationTimeout",
    "ListenerRegistry",
    "PaperTransactionBuilder",
    "PaperTransactionSender",
    "PaperTransactionSigner",
    "QueueEntry",
    "RequestRegistry",
    "RetryPolicy",
    "SigningError",
    "SubmissionError",
    "TransactionBuilder",
    "TransactionEngine",
    "TransactionError",
    "TransactionExecutor",
    "TransactionHistory",
    "TransactionListener",
    "TransactionQueue",
    "TransactionSender",
    "TransactionSigner",
    "TransactionStateError",
]
