"""Inter-retry delay computation."""

import random
from typing import Callable, Optional, Union

from project_events.events.types import RetryPolicy

EXPONENTIAL_BASE_DELAY_MS = 100.0
LINEAR_INCREMENT_MS = 500.0
MAX_JITTER_MS = 50.0


def resolve_policy(policy: Optional[Union[RetryPolicy, str]]) -> RetryPolicy:
    """Map a policy name to a RetryPolicy; unknown or missing names fall back to linear.

    The ``-backoff`` suffixed names (``exponential-backoff``) are accepted too.
    """
    if isinstance(policy, RetryPolicy):
        return policy
    if not policy:
        return RetryPolicy.LINEAR
    try:
        return RetryPolicy(policy.lower().removesuffix("-backoff"))
    except ValueError:
        return RetryPolicy.LINEAR


def backoff_delay(
    attempt: int,
    policy: Optional[Union[RetryPolicy, str]] = None,
    jitter: Callable[[], float] = random.random,
) -> float:
    """
    Delay in milliseconds to wait after ``attempt`` failed.

    Args:
        attempt: 1-based number of the attempt that just failed
        policy: Retry policy (enum or name); defaults to linear
        jitter: Source of uniform randomness in [0, 1)

    Returns:
        exponential: 100 * 2^(attempt-1) + jitter
        linear:      attempt * 500 + jitter
        where jitter is in [0, 50) ms.
    """
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")

    jitter_ms = jitter() * MAX_JITTER_MS

    if resolve_policy(policy) is RetryPolicy.EXPONENTIAL:
        return EXPONENTIAL_BASE_DELAY_MS * 2 ** (attempt - 1) + jitter_ms
    return attempt * LINEAR_INCREMENT_MS + jitter_ms
