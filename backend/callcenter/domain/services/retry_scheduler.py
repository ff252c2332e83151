"""
Retry Scheduler
Back-off timing and exhaustion policy for unreached pool items
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Tuple, Union

from callcenter.domain.models.call_pool import CallPoolStatus, MAX_RETRIES
from callcenter.domain.models.dialer_config import RetryDelayBasis

logger = logging.getLogger(__name__)


# Delay before the next attempt, indexed by retry count
RETRY_DELAYS: Tuple[timedelta, ...] = (
    timedelta(minutes=5),
    timedelta(minutes=10),
    timedelta(minutes=30),
)


@dataclass(frozen=True)
class RetryExhausted:
    """Signal value: no further retry for this retry count."""
    retry_count: int

    def __bool__(self) -> bool:
        return False


@dataclass(frozen=True)
class RetryDecision:
    """What to write back to a pool item after an unanswered attempt."""
    retry_count: int
    status: CallPoolStatus
    next_retry_at: Optional[datetime]

    @property
    def exhausted(self) -> bool:
        return self.status == CallPoolStatus.FAILED


def compute_next_retry(retry_count: int, now: datetime) -> Union[datetime, RetryExhausted]:
    """
    Compute when an item with `retry_count` failed attempts may be dialed again.

    0 -> +5 min, 1 -> +10 min, 2 -> +30 min, 3 or more -> RetryExhausted.
    """
    if retry_count < 0:
        raise ValueError(f"retry_count must be >= 0, got {retry_count}")

    if retry_count >= MAX_RETRIES:
        return RetryExhausted(retry_count=retry_count)

    return now + RETRY_DELAYS[retry_count]


def is_exhausted(result: Union[datetime, RetryExhausted]) -> bool:
    return isinstance(result, RetryExhausted)


def plan_retry(
    retry_count: int,
    now: datetime,
    basis: RetryDelayBasis = RetryDelayBasis.AFTER_INCREMENT
) -> RetryDecision:
    """
    Decide the pool item update after an unanswered attempt.

    Every failed attempt increments the retry count. The delay is looked up
    with the incremented count (AFTER_INCREMENT) or the previous count
    (BEFORE_INCREMENT).

    Args:
        retry_count: Failed attempts recorded before this one
        now: Time of the failed attempt
        basis: Which count the delay is looked up with

    Returns:
        RetryDecision with the new count, status and next retry time
    """
    new_count = retry_count + 1
    lookup = new_count if RetryDelayBasis(basis) == RetryDelayBasis.AFTER_INCREMENT else retry_count

    result = compute_next_retry(lookup, now)

    if is_exhausted(result):
        logger.debug(f"Retries exhausted at count {new_count}")
        return RetryDecision(
            retry_count=new_count,
            status=CallPoolStatus.FAILED,
            next_retry_at=None,
        )

    return RetryDecision(
        retry_count=new_count,
        status=CallPoolStatus.WAITING,
        next_retry_at=result,
    )
