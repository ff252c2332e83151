"""
Connection Backend Interface
Resolves a ringing call to answered / not answered
"""
from abc import ABC, abstractmethod

from callcenter.domain.models.call_pool import CallPoolItem


class ConnectionBackend(ABC):
    """
    Abstract base class for the telephony side of the dialer.

    The dialer state machine only needs to know whether the customer picked
    up; a real telephony integration can replace the simulated backend
    without touching the state machine.
    """

    @abstractmethod
    async def connect(self, item: CallPoolItem) -> bool:
        """
        Ring the customer of a pool item

        Args:
            item: Pool item being dialed

        Returns:
            True if answered, False if busy / not answered
        """
        pass

    async def hangup(self, item: CallPoolItem) -> None:
        """End the line for a pool item (no-op by default)"""
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name"""
        pass
