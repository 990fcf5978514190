"""Error taxonomy for transaction execution."""


class TransactionError(Exception):
    """Base class for failures raised while executing a transaction.

    Subclasses name the stage they belong to; it takes precedence over the
    stage the executor was in when the error surfaced.
    """

    stage: str | None = None


class BuildError(TransactionError, ValueError):
    """Malformed or unsupported payload."""

    stage = "build"


class SigningError(TransactionError):
    """Unknown wallet or signature failure."""

    stage = "sign"


class SubmissionError(TransactionError, ConnectionError):
    """Broadcast to the network failed."""

    stage = "send"


class ConfirmationError(TransactionError):
    """Transaction was rejected or never reached the required depth."""

    stage = "confirm"


class ConfirmationTimeout(ConfirmationError):
    """Confirmation did not arrive within the configured timeout."""


class TransactionStateError(RuntimeError):
    """A request was driven into a transition its current status does not allow."""
