"""Retry policy: bounded attempts with a per-attempt delay schedule."""

from collections.abc import Sequence

from txengine.models import TransactionRequest


class RetryPolicy:
    """Decides whether a failed request is retried and how long to wait.

    The delay for retry ``n`` (1-based) is ``delays[n - 1]``; once the schedule
    is exhausted its last value is reused. The schedule is only as steep as
    the caller makes it, so pass an increasing sequence for exponential-style
    backoff.
    """

    @staticmethod
    def should_retry(request: TransactionRequest) -> bool:
        return request.retry_count < request.max_retries

    @staticmethod
    def delay_for(retry_count: int, delays: Sequence[float]) -> float:
        if not delays:
            raise ValueError("delays must not be empty")
        if retry_count < 1:
            raise ValueError("retry_count is 1-based")
        index = min(retry_count - 1, len(delays) - 1)
        return float(delays[index])
