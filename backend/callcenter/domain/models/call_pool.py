"""
Call Pool Models
A pool item is one order's candidacy for an outbound call
"""
from pydantic import BaseModel, Field
from typing import Optional, Set, Tuple
from datetime import datetime
from enum import Enum

from callcenter.domain.models.order import Order


class CallPoolStatus(str, Enum):
    """Status of a pool item"""
    WAITING = "WAITING"
    DIALING = "DIALING"
    CONNECTED = "CONNECTED"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class CallOutcome(str, Enum):
    """How a call attempt or session ended"""
    REACHED_CONFIRMED = "REACHED_CONFIRMED"
    REACHED_CANCELLED = "REACHED_CANCELLED"
    BUSY = "BUSY"
    UNREACHABLE = "UNREACHABLE"
    WRONG_NUMBER = "WRONG_NUMBER"
    SCHEDULED = "SCHEDULED"


class PoolSourceType(str, Enum):
    """Which order attribute a pool is populated from"""
    ORDER = "ORDER"   # order lifecycle status
    CARGO = "CARGO"   # shipping status


# Module-level constants for retry logic
MAX_RETRIES = 3
DEFAULT_PRIORITY = 1

TERMINAL_STATUSES: Set[str] = {CallPoolStatus.COMPLETED.value, CallPoolStatus.FAILED.value}
ACTIVE_STATUSES: Set[str] = {CallPoolStatus.DIALING.value, CallPoolStatus.CONNECTED.value}


class CallPoolItem(BaseModel):
    """
    Represents one order awaiting an outbound call.

    Customer name/phone are a snapshot taken when the item entered the pool;
    they are not re-synced if the order changes afterwards.
    """

    # Identity
    id: str = Field(..., description="Unique pool item identifier")
    order_id: str = Field(..., description="Source order (weak reference)")
    order_number: str

    # Snapshot of the customer at insertion time
    customer_name: str = "Unknown"
    customer_phone: str = ""

    # Queue state
    status: CallPoolStatus = Field(default=CallPoolStatus.WAITING)
    priority: int = Field(default=DEFAULT_PRIORITY, description="Higher = more urgent")
    added_at: datetime

    # Retry tracking
    retry_count: int = Field(default=0, ge=0, description="Number of prior failed attempts")
    next_retry_at: Optional[datetime] = None
    last_call_outcome: Optional[CallOutcome] = None

    # Embedded order snapshot for detail display during a call
    order: Optional[Order] = None

    model_config = {"use_enum_values": True}

    @classmethod
    def from_order(
        cls,
        order: Order,
        item_id: str,
        added_at: datetime,
        priority: int = DEFAULT_PRIORITY
    ) -> "CallPoolItem":
        """Create a fresh WAITING item for an order."""
        customer = order.customer
        return cls(
            id=item_id,
            order_id=order.id,
            order_number=order.order_number,
            customer_name=(customer.name if customer and customer.name else "Unknown"),
            customer_phone=(customer.phone if customer and customer.phone else ""),
            status=CallPoolStatus.WAITING,
            priority=priority,
            added_at=added_at,
            order=order.model_copy(deep=True),
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def is_eligible(self, now: datetime) -> bool:
        """WAITING and not held back by a future retry time."""
        if self.status != CallPoolStatus.WAITING.value:
            return False
        return self.next_retry_at is None or self.next_retry_at <= now

    def sort_key(self) -> Tuple[bool, int, datetime]:
        """
        Display and selection order.

        Retried items first, then higher priority, then oldest first.
        Python's stable sort keeps insertion order for full ties.
        """
        return (self.retry_count == 0, -self.priority, self.added_at)

    def check_invariants(self) -> None:
        """
        Raise ValueError for status/retry combinations that must never exist.
        """
        if self.status == CallPoolStatus.FAILED.value and self.retry_count < MAX_RETRIES:
            raise ValueError(
                f"Pool item {self.id} cannot be FAILED with retry_count={self.retry_count} "
                f"(< {MAX_RETRIES})"
            )
        if self.is_terminal and self.next_retry_at is not None:
            raise ValueError(
                f"Pool item {self.id} is {self.status} but still has next_retry_at"
            )

    def __repr__(self) -> str:
        return (
            f"CallPoolItem(id={self.id}, "
            f"order={self.order_number}, "
            f"status={self.status}, "
            f"retries={self.retry_count})"
        )
