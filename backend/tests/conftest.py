"""
Shared test helpers for the call center tests
"""
import asyncio
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Union

import pytest

from callcenter.domain.interfaces.connection_backend import ConnectionBackend
from callcenter.domain.interfaces.order_source import OrderSource
from callcenter.domain.models.call_pool import CallPoolItem
from callcenter.domain.models.dialer_config import DialerConfig
from callcenter.domain.models.order import Customer, Order, OrderFilter
from callcenter.infrastructure.orders.in_memory import InMemoryOrderSource


T0 = datetime(2024, 12, 9, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock injected wherever code calls utcnow()."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class ScriptedConnectionBackend(ConnectionBackend):
    """
    Connection backend answering from a script.

    Each connect() consumes the next entry: True/False is returned,
    an Exception instance is raised. An empty script answers False.
    Setting connect_gate / hangup_gate holds the call until the event is set.
    """

    def __init__(self, script: Optional[Iterable[Union[bool, Exception]]] = None):
        self._script: List[Union[bool, Exception]] = list(script or [])
        self.connected: List[str] = []
        self.hung_up: List[str] = []
        self.connect_gate: Optional[asyncio.Event] = None
        self.hangup_gate: Optional[asyncio.Event] = None

    @property
    def name(self) -> str:
        return "scripted"

    async def connect(self, item: CallPoolItem) -> bool:
        self.connected.append(item.id)
        if self.connect_gate is not None:
            await self.connect_gate.wait()
        result = self._script.pop(0) if self._script else False
        if isinstance(result, Exception):
            raise result
        return result

    async def hangup(self, item: CallPoolItem) -> None:
        self.hung_up.append(item.id)
        if self.hangup_gate is not None:
            await self.hangup_gate.wait()


class FailingOrderSource(OrderSource):
    """Order source whose fetch always fails."""

    @property
    def name(self) -> str:
        return "failing"

    async def list_orders(self, order_filter: OrderFilter) -> List[Order]:
        raise ConnectionError("order service timed out")


def make_order(
    order_id: str,
    status: str = "NEW",
    shipping_status: Optional[str] = None,
    name: str = "Ayse Yilmaz",
    phone: str = "+905321112233"
) -> Order:
    return Order(
        id=order_id,
        order_number=f"ORD-{order_id}",
        status=status,
        shipping_status=shipping_status,
        customer=Customer(id=f"c-{order_id}", name=name, phone=phone),
        total_amount=249.9,
        created_at=T0 - timedelta(days=1),
    )


def instant_config(**overrides) -> DialerConfig:
    """Dialer config without artificial delays; RINGING resolved explicitly."""
    values = {
        "dial_delay_seconds": 0,
        "ring_delay_seconds": 0,
        "wrapup_delay_seconds": 0,
        "tick_interval_seconds": 1.0,
        "auto_connect": False,
    }
    values.update(overrides)
    return DialerConfig(**values)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def order_source() -> InMemoryOrderSource:
    return InMemoryOrderSource([
        make_order("o1", status="NEW", name="Ayse Yilmaz", phone="+905321112233"),
        make_order("o2", status="NEW", name="Mehmet Demir", phone="+905331234567"),
        make_order("o3", status="TO_CALL", name="Zeynep Kaya", phone="+905441239876"),
        make_order("o4", status="SHIPPED", shipping_status="SHIPPED", name="Ali Celik"),
        make_order("o5", status="APPROVED", shipping_status="PREPARING", name="Fatma Sahin"),
    ])
