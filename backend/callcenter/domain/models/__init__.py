"""Domain models"""

# Order source models
from .order import (
    OrderStatus,
    ShippingStatus,
    Customer,
    Order,
    OrderFilter,
)

# Call pool models
from .call_pool import (
    CallPoolStatus,
    CallOutcome,
    PoolSourceType,
    CallPoolItem,
    MAX_RETRIES,
)

# Session models
from .call_session import (
    DialerState,
    CallSession,
)

from .dialer_config import (
    RetryDelayBasis,
    DialerConfig,
)

from .performance import (
    AgentPerformance,
    AgentStats,
    PoolCounts,
)

__all__ = [
    # Orders
    "OrderStatus",
    "ShippingStatus",
    "Customer",
    "Order",
    "OrderFilter",
    # Call pool
    "CallPoolStatus",
    "CallOutcome",
    "PoolSourceType",
    "CallPoolItem",
    "MAX_RETRIES",
    # Sessions
    "DialerState",
    "CallSession",
    # Configuration
    "RetryDelayBasis",
    "DialerConfig",
    # Performance
    "AgentPerformance",
    "AgentStats",
    "PoolCounts",
]
