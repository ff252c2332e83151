"""
Simulated Connection Backend
Random answer/no-answer outcome after a ringing delay
"""
import asyncio
import logging
import random
from typing import Optional

from callcenter.domain.interfaces.connection_backend import ConnectionBackend
from callcenter.domain.models.call_pool import CallPoolItem

logger = logging.getLogger(__name__)


class SimulatedConnectionBackend(ConnectionBackend):
    """
    Stand-in for telephony: rings for `ring_delay_seconds`, then answers
    with probability `answer_rate` (60% by default).

    Pass a seeded random.Random for reproducible runs.
    """

    def __init__(
        self,
        answer_rate: float = 0.6,
        ring_delay_seconds: float = 2.0,
        rng: Optional[random.Random] = None
    ):
        if not 0.0 <= answer_rate <= 1.0:
            raise ValueError(f"answer_rate must be within [0, 1], got {answer_rate}")
        self._answer_rate = answer_rate
        self._ring_delay = ring_delay_seconds
        self._rng = rng or random.Random()

    @property
    def name(self) -> str:
        return "simulated"

    async def connect(self, item: CallPoolItem) -> bool:
        logger.info(f"[simulated] Ringing {item.customer_phone} ({item.order_number})...")
        if self._ring_delay:
            await asyncio.sleep(self._ring_delay)

        answered = self._rng.random() < self._answer_rate
        logger.info(f"[simulated] {item.customer_phone}: {'answered' if answered else 'no answer'}")
        return answered

    async def hangup(self, item: CallPoolItem) -> None:
        logger.debug(f"[simulated] Hangup {item.customer_phone}")
