"""
In-Memory Order Source
Volatile order store standing in for the admin panel's order service
"""
import asyncio
import logging
from datetime import timedelta
from typing import Iterable, List, Optional

from callcenter.domain.interfaces.order_source import OrderSource
from callcenter.domain.models.order import (
    Customer,
    Order,
    OrderFilter,
    OrderStatus,
    ShippingStatus,
)
from callcenter.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class InMemoryOrderSource(OrderSource):
    """
    Order source backed by a list in memory.

    Returns deep copies so callers cannot mutate the stored orders.
    `latency_seconds` simulates a remote fetch.
    """

    def __init__(self, orders: Optional[Iterable[Order]] = None, latency_seconds: float = 0.0):
        self._orders: List[Order] = [o.model_copy(deep=True) for o in (orders or [])]
        self._latency = latency_seconds

    @property
    def name(self) -> str:
        return "in-memory"

    async def list_orders(self, order_filter: OrderFilter) -> List[Order]:
        if self._latency:
            await asyncio.sleep(self._latency)
        return [o.model_copy(deep=True) for o in self._orders if order_filter.matches(o)]

    def add(self, order: Order) -> None:
        self._orders.append(order.model_copy(deep=True))

    def __len__(self) -> int:
        return len(self._orders)

    @classmethod
    def with_demo_data(cls) -> "InMemoryOrderSource":
        """Source pre-filled with demo orders across all statuses."""
        return cls(build_demo_orders())


_DEMO_CUSTOMERS = [
    ("Ayse Yilmaz", "+905321112233", "Istanbul"),
    ("Mehmet Demir", "+905331234567", "Ankara"),
    ("Zeynep Kaya", "+905441239876", "Izmir"),
    ("Ali Celik", "+905551112244", "Bursa"),
    ("Fatma Sahin", "+905061113355", "Antalya"),
    ("Can Ozturk", "+905371118899", "Konya"),
    ("Elif Arslan", "+905421117766", "Adana"),
    ("Burak Aydin", "+905301115544", "Kayseri"),
]

_DEMO_STATUSES = [
    (OrderStatus.NEW, None),
    (OrderStatus.NEW, None),
    (OrderStatus.NEW, None),
    (OrderStatus.TO_CALL, None),
    (OrderStatus.TO_CALL, None),
    (OrderStatus.UNREACHABLE, None),
    (OrderStatus.APPROVED, ShippingStatus.PREPARING),
    (OrderStatus.SHIPPED, ShippingStatus.SHIPPED),
    (OrderStatus.SHIPPED, ShippingStatus.SHIPPED),
    (OrderStatus.DELIVERED, ShippingStatus.DELIVERED),
    (OrderStatus.RETURNED, ShippingStatus.RETURNED),
    (OrderStatus.CANCELLED, ShippingStatus.CANCELLED),
]


def build_demo_orders() -> List[Order]:
    """Deterministic demo orders (one per demo status slot)."""
    now = utcnow()
    orders = []
    for index, (status, shipping_status) in enumerate(_DEMO_STATUSES, start=1):
        name, phone, city = _DEMO_CUSTOMERS[(index - 1) % len(_DEMO_CUSTOMERS)]
        orders.append(Order(
            id=f"o{index}",
            order_number=f"ORD-{1000 + index}",
            status=status.value,
            shipping_status=shipping_status,
            customer=Customer(id=f"c{index}", name=name, phone=phone, city=city),
            total_amount=round(149.9 + index * 25, 2),
            created_at=now - timedelta(hours=len(_DEMO_STATUSES) - index),
        ))
    logger.debug(f"Built {len(orders)} demo orders")
    return orders
