"""
Call Center Service
Facade over pool store, dialer and performance aggregator used by the API
"""
import logging
from typing import List, Optional

from callcenter.core.config import ConfigManager, Settings
from callcenter.domain.exceptions import NoEligibleItems, PoolBusy, PoolItemNotFound
from callcenter.domain.interfaces.connection_backend import ConnectionBackend
from callcenter.domain.interfaces.order_source import OrderSource
from callcenter.domain.models.call_pool import CallOutcome, CallPoolItem, PoolSourceType
from callcenter.domain.models.call_session import CallSession
from callcenter.domain.models.dialer_config import DialerConfig
from callcenter.domain.models.order import (
    NON_CALLABLE_ORDER_STATUSES,
    OrderFilter,
    OrderStatus,
    ShippingStatus,
)
from callcenter.domain.models.performance import AgentPerformance, AgentStats, PoolCounts
from callcenter.domain.services.call_pool_store import CallPoolStore
from callcenter.domain.services.dialer import AutoDialer
from callcenter.domain.services.performance_aggregator import PerformanceAggregator
from callcenter.domain.services.session_history import SessionHistory
from callcenter.infrastructure.orders.in_memory import InMemoryOrderSource
from callcenter.infrastructure.telephony.factory import ConnectionBackendFactory
from callcenter.utils.time_utils import format_duration

logger = logging.getLogger(__name__)


class CallCenterService:
    """
    Operations the call center screen needs.

    Owns one pool store, one dialer and one session history; create a new
    instance for an isolated call center (e.g. per test).
    """

    def __init__(
        self,
        order_source: OrderSource,
        connection_backend: ConnectionBackend,
        config: Optional[DialerConfig] = None,
        agent_id: str = "current-user",
        store: Optional[CallPoolStore] = None,
        history: Optional[SessionHistory] = None,
        dialer: Optional[AutoDialer] = None
    ):
        self._config = config or DialerConfig.default()
        self._order_source = order_source
        self.store = store or CallPoolStore(order_source, default_priority=self._config.default_priority)
        self.history = history or SessionHistory()
        self.dialer = dialer or AutoDialer(
            store=self.store,
            connection_backend=connection_backend,
            session_history=self.history,
            config=self._config,
            agent_id=agent_id,
        )
        self.aggregator = PerformanceAggregator(self.history)

    @classmethod
    def from_settings(cls, settings: Settings, config_manager: ConfigManager) -> "CallCenterService":
        """Build the service from application settings and YAML config."""
        dialer_config = DialerConfig.from_config_manager(config_manager)
        provider = config_manager.get("telephony.provider", "simulated")
        backend = ConnectionBackendFactory.create(provider, dialer_config)

        if settings.seed_demo_orders:
            order_source = InMemoryOrderSource.with_demo_data()
        else:
            order_source = InMemoryOrderSource()

        logger.info(
            f"Call center configured: backend={backend.name}, source={order_source.name}, "
            f"orders={len(order_source)}, retry_basis={dialer_config.retry_delay_basis.value}"
        )
        return cls(
            order_source=order_source,
            connection_backend=backend,
            config=dialer_config,
            agent_id=settings.agent_id,
        )

    # ========== Pool ==========

    async def get_pool_counts(self) -> PoolCounts:
        """
        Candidate counts per order status and per shipping status.

        Approved and shipped orders are left out of the order counts: they
        need no confirmation call.
        """
        orders = await self._order_source.list_orders(OrderFilter())

        order_counts = {
            status.value: 0
            for status in OrderStatus
            if status.value not in NON_CALLABLE_ORDER_STATUSES
        }
        cargo_counts = {status.value: 0 for status in ShippingStatus}

        for order in orders:
            if order.status in order_counts:
                order_counts[order.status] += 1
            if order.shipping_status in cargo_counts:
                cargo_counts[order.shipping_status] += 1

        return PoolCounts(order_counts=order_counts, cargo_counts=cargo_counts)

    async def populate_pool(self, source_type: PoolSourceType, status: str) -> List[CallPoolItem]:
        """
        Replace the pool from the order source.

        Raises:
            PoolBusy: The dialer is not IDLE
            SourceUnavailable: Order source failed; pool unchanged
        """
        if not self.dialer.is_idle:
            active = self.dialer.active_item
            raise PoolBusy(active.id if active else self.dialer.state.value)
        return await self.store.populate(source_type, status)

    def get_call_pool(self) -> List[CallPoolItem]:
        return self.store.list()

    def get_pool_item(self, pool_item_id: str) -> CallPoolItem:
        item = self.store.get(pool_item_id)
        if item is None:
            raise PoolItemNotFound(pool_item_id)
        return item

    # ========== Dialer ==========

    async def start_auto_dialer(self) -> Optional[CallPoolItem]:
        """Start dialing the next eligible item; None if nothing is eligible."""
        try:
            return await self.dialer.start()
        except NoEligibleItems:
            return None

    async def simulate_connection(self, pool_item_id: str) -> bool:
        """Resolve the ringing call: True if answered."""
        self.get_pool_item(pool_item_id)
        return await self.dialer.resolve_connection(pool_item_id)

    async def complete_call(
        self,
        pool_item_id: str,
        outcome: CallOutcome,
        notes: Optional[str] = None
    ) -> CallSession:
        self.get_pool_item(pool_item_id)
        return await self.dialer.end(pool_item_id, outcome, notes)

    def get_dialer_status(self) -> dict:
        """State, active item and live timer for the dialer panel."""
        duration = self.dialer.call_duration
        return {
            "state": self.dialer.state.value,
            "active_item": self.dialer.active_item,
            "call_duration_seconds": duration,
            "call_duration": format_duration(duration),
            "pool_source": self.store.source_label,
            "pool_status_counts": self.store.status_counts(),
        }

    # ========== Performance ==========

    def get_agent_performance(self) -> AgentPerformance:
        return self.aggregator.get_agent_performance()

    def get_agent_stats(self) -> List[AgentStats]:
        return self.aggregator.get_agent_stats()

    async def shutdown(self) -> None:
        """Cancel dialer timers and release the pool."""
        await self.dialer.aclose()
        logger.info("Call center service shut down")
