"""Retry decisions for failed request attempts.

The decision itself is the pure function :func:`should_retry`; the executor
drives it through a Tenacity :class:`~tenacity.Retrying` loop built by
:func:`create_request_retry_policy` so that logging, waiting, and re-raising
follow the usual Tenacity conventions.

Decision table (first match wins):

1. attempt count has reached ``max_retries`` -> stop
2. unknown host -> stop
3. connection refused -> stop
4. TLS failure -> stop
5. timeout -> falls through to the idempotency check
6. otherwise -> retry only idempotent (body-less) requests

Example:
    >>> should_retry(FailureKind.TIMEOUT, 1, True, 3)
    True
    >>> should_retry(FailureKind.TIMEOUT, 1, False, 3)
    False
"""

import logging

from tenacity import (
    RetryCallState,
    Retrying,
    before_sleep_log,
    stop_after_attempt,
    wait_none,
    wait_random_exponential,
)
from tenacity.retry import retry_base

from fluenthttp.errors import FailureKind, TransportFailure

logger = logging.getLogger(__name__)

_NEVER_RETRIED = frozenset(
    {FailureKind.UNKNOWN_HOST, FailureKind.CONNECTION_REFUSED, FailureKind.TLS}
)


def should_retry(
    failure: FailureKind,
    attempt_count: int,
    is_idempotent: bool,
    max_retries: int,
) -> bool:
    """Decide whether a failed attempt may be repeated.

    Args:
        failure: Category of the transport failure.
        attempt_count: Number of attempts executed so far (1 after the first failure).
        is_idempotent: Whether the request carries no body.
        max_retries: Configured retry budget; negative values act as zero.

    Returns:
        ``True`` when another attempt should be made.
    """
    if attempt_count >= max(0, max_retries):
        return False
    if failure in _NEVER_RETRIED:
        logger.debug("not retrying %s failure", failure.value)
        return False
    # Timeouts fall through: an idempotent request is retried after a timeout.
    return is_idempotent


class retry_if_transport_failure(retry_base):
    """Tenacity predicate applying :func:`should_retry` to the last outcome."""

    def __init__(self, is_idempotent: bool, max_retries: int) -> None:
        self.is_idempotent = is_idempotent
        self.max_retries = max_retries

    def __call__(self, retry_state: RetryCallState) -> bool:
        outcome = retry_state.outcome
        if outcome is None or not outcome.failed:
            return False
        exc = outcome.exception()
        if not isinstance(exc, TransportFailure):
            return False
        decision = should_retry(
            exc.kind, retry_state.attempt_number, self.is_idempotent, self.max_retries
        )
        logger.debug(
            "retry decision",
            extra={
                "failure": exc.kind.value,
                "attempt": retry_state.attempt_number,
                "max_retries": self.max_retries,
                "idempotent": self.is_idempotent,
                "retry": decision,
            },
        )
        return decision


def create_request_retry_policy(
    *,
    max_retries: int,
    is_idempotent: bool,
    backoff_sec: float = 0.0,
) -> Retrying:
    """Create the Tenacity loop used for one request.

    Args:
        max_retries: Retry budget from the client configuration.
        is_idempotent: Whether the request may be repeated safely.
        backoff_sec: Multiplier for full-jitter exponential backoff; ``0`` retries
            immediately.

    Returns:
        Configured :class:`~tenacity.Retrying` that re-raises the last failure.

    Example:
        >>> policy = create_request_retry_policy(max_retries=3, is_idempotent=True)
        >>> for attempt in policy:
        ...     with attempt:
        ...         pass
    """
    if backoff_sec > 0:
        wait = wait_random_exponential(multiplier=backoff_sec, max=max(backoff_sec * 32, 1.0))
    else:
        wait = wait_none()
    return Retrying(
        stop=stop_after_attempt(max(1, max_retries)),
        wait=wait,
        retry=retry_if_transport_failure(is_idempotent, max_retries),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


__all__ = [
    "should_retry",
    "retry_if_transport_failure",
    "create_request_retry_policy",
]
