"""
Order Source Interface
Read-only supplier of candidate orders for the call pool
"""
from abc import ABC, abstractmethod
from typing import List

from callcenter.domain.models.order import Order, OrderFilter


class OrderSource(ABC):
    """Abstract base class for order sources"""

    @abstractmethod
    async def list_orders(self, order_filter: OrderFilter) -> List[Order]:
        """
        List orders matching a filter

        Args:
            order_filter: Status and/or shipping status constraint

        Returns:
            Matching orders (snapshots; the caller may not mutate the source)

        Raises:
            Any exception if the source cannot be read
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Source name"""
        pass
