"""
Retry Strategies using Tenacity.

Transport-level retry policy for JSON-RPC reads. Only TransportError is
retried; codec failures and verification outcomes never are.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from a402.core.exceptions import RpcError, TransportError
from a402.core.logging import get_logger

logger = get_logger("resilience.retry")


def is_transient_error(exception: BaseException) -> bool:
    """
    Check if exception is a transient network/infrastructure error.

    JSON-RPC error objects are deterministic answers from the node
    (reverts, bad params) and are not retried, except rate limiting.
    """
    if isinstance(exception, RpcError):
        return exception.is_rate_limited()
    return isinstance(exception, TransportError)


def _log_retry(retry_state: Any) -> None:
    logger.warning(
        f"Retrying RPC round-trip after transport failure "
        f"(attempt {retry_state.attempt_number}): {retry_state.outcome.exception()}"
    )


async def execute_with_retry(
    func: Callable[..., Awaitable[Any]],
    *args: Any,
    attempts: int = 3,
    wait_multiplier: float = 0.5,
    wait_max: float = 4.0,
    **kwargs: Any,
) -> Any:
    """Execute an async function, retrying transient transport errors with backoff."""
    async for attempt in AsyncRetrying(
        retry=retry_if_exception(is_transient_error),
        wait=wait_exponential(multiplier=wait_multiplier, max=wait_max),
        stop=stop_after_attempt(attempts),
        reraise=True,
        before_sleep=_log_retry,
    ):
        with attempt:
            return await func(*args, **kwargs)
