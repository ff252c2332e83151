"""
Call Pool Store
In-memory working set of call candidates with per-item retry state
"""
import logging
import uuid
from datetime import datetime
from typing import Callable, Dict, List, Optional

from callcenter.domain.exceptions import PoolBusy, SourceUnavailable
from callcenter.domain.interfaces.order_source import OrderSource
from callcenter.domain.models.call_pool import (
    CallPoolItem,
    CallPoolStatus,
    PoolSourceType,
    DEFAULT_PRIORITY,
)
from callcenter.domain.models.order import OrderFilter
from callcenter.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class CallPoolStore:
    """
    Holds the pool of orders awaiting an outbound call.

    One instance per call center service; inject a fresh store for
    isolation instead of sharing module-level state.

    - populate() replaces the pool wholesale from the Order Source
    - list() returns deep-copied snapshots in display order
    - find_next_eligible() picks the item the dialer should call next
    - update_item() applies validated partial updates

    While the dialer holds an item (mark_active), populate() is refused
    with PoolBusy because it would destroy the item being called.
    """

    UPDATABLE_FIELDS = {"status", "retry_count", "next_retry_at", "last_call_outcome", "priority"}

    def __init__(
        self,
        order_source: OrderSource,
        default_priority: int = DEFAULT_PRIORITY,
        clock: Callable[[], datetime] = utcnow
    ):
        """
        Initialize pool store.

        Args:
            order_source: Supplier of candidate orders
            default_priority: Priority given to freshly pooled items
            clock: Time source for added_at stamps
        """
        self._source = order_source
        self._default_priority = default_priority
        self._clock = clock
        self._items: Dict[str, CallPoolItem] = {}
        self._active_item_id: Optional[str] = None
        self._source_label: Optional[str] = None

    async def populate(self, source_type: PoolSourceType, status_value: str) -> List[CallPoolItem]:
        """
        Replace the pool with one fresh item per matching order.

        Retry bookkeeping of previously pooled items is discarded, even for
        orders that match the new filter again.

        Args:
            source_type: ORDER (order status) or CARGO (shipping status)
            status_value: Status to filter on (opaque to the pool)

        Returns:
            Snapshot of the new pool

        Raises:
            PoolBusy: The dialer holds an active item
            SourceUnavailable: The Order Source failed; pool unchanged
        """
        if self._active_item_id is not None:
            logger.warning(f"Refusing to re-populate pool: item {self._active_item_id} is active")
            raise PoolBusy(self._active_item_id)

        source_type = PoolSourceType(source_type)
        if source_type == PoolSourceType.ORDER:
            order_filter = OrderFilter(status=status_value)
        else:
            order_filter = OrderFilter(shipping_status=status_value)

        try:
            orders = await self._source.list_orders(order_filter)
        except Exception as e:
            logger.error(f"Order source '{self._source.name}' unavailable: {e}")
            raise SourceUnavailable(f"Failed to load orders for {source_type.value}-{status_value}: {e}") from e

        # Re-check after the await: the dialer may have started meanwhile
        if self._active_item_id is not None:
            raise PoolBusy(self._active_item_id)

        now = self._clock()
        new_items: Dict[str, CallPoolItem] = {}
        for order in orders:
            item_id = f"pool-{order.id}-{uuid.uuid4().hex[:8]}"
            new_items[item_id] = CallPoolItem.from_order(
                order,
                item_id=item_id,
                added_at=now,
                priority=self._default_priority,
            )

        self._items = new_items
        self._source_label = f"{source_type.value}-{status_value}"
        logger.info(f"Call pool populated from {self._source_label}: {len(new_items)} items")

        return self.list()

    def list(self) -> List[CallPoolItem]:
        """Snapshot of the pool in display order (copies; safe to mutate)."""
        ordered = sorted(self._items.values(), key=lambda i: i.sort_key())
        return [item.model_copy(deep=True) for item in ordered]

    def get(self, item_id: str) -> Optional[CallPoolItem]:
        item = self._items.get(item_id)
        return item.model_copy(deep=True) if item else None

    def find_next_eligible(self, now: datetime) -> Optional[CallPoolItem]:
        """
        Highest-ranked WAITING item whose retry time has passed.

        Pure read; returns a copy or None.
        """
        eligible = [item for item in self._items.values() if item.is_eligible(now)]
        if not eligible:
            return None
        best = min(eligible, key=lambda i: i.sort_key())
        return best.model_copy(deep=True)

    def update_item(self, item_id: str, **patch) -> Optional[CallPoolItem]:
        """
        Apply a partial update to a pool item.

        The update is validated as a whole; an invalid status/retry
        combination raises ValueError and leaves the stored item untouched.
        Terminal statuses drop any pending next_retry_at.

        Returns:
            Updated copy, or None if the id is unknown (no-op)
        """
        item = self._items.get(item_id)
        if item is None:
            logger.debug(f"update_item ignored for unknown pool item {item_id}")
            return None

        unknown = set(patch) - self.UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable on pool items: {sorted(unknown)}")

        if "retry_count" in patch and patch["retry_count"] < item.retry_count:
            raise ValueError(
                f"retry_count cannot decrease ({item.retry_count} -> {patch['retry_count']})"
            )

        if item.status == CallPoolStatus.FAILED.value and patch.get("status", item.status) != item.status:
            raise ValueError(f"Pool item {item_id} is FAILED and cannot change status")

        data = item.model_dump()
        data.update(patch)
        updated = CallPoolItem.model_validate(data)
        if updated.is_terminal:
            updated = updated.model_copy(update={"next_retry_at": None})
        updated.check_invariants()

        self._items[item_id] = updated
        return updated.model_copy(deep=True)

    # ========== Active item lease (held by the dialer) ==========

    def mark_active(self, item_id: str) -> None:
        if self._active_item_id is not None and self._active_item_id != item_id:
            raise PoolBusy(self._active_item_id)
        self._active_item_id = item_id

    def clear_active(self) -> None:
        self._active_item_id = None

    @property
    def active_item_id(self) -> Optional[str]:
        return self._active_item_id

    # ========== Stats ==========

    @property
    def source_label(self) -> Optional[str]:
        """Label of the filter the pool was last populated from (e.g. ORDER-NEW)"""
        return self._source_label

    def status_counts(self) -> Dict[str, int]:
        counts = {status.value: 0 for status in CallPoolStatus}
        for item in self._items.values():
            counts[item.status] += 1
        return counts

    def __len__(self) -> int:
        return len(self._items)
