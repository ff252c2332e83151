"""
Auto Dialer
Single-agent state machine driving one call at a time through the pool
"""
import asyncio
import logging
import uuid
from datetime import datetime
from typing import Callable, Optional, Tuple

from callcenter.domain.exceptions import InvalidDialerTransition, NoEligibleItems
from callcenter.domain.interfaces.connection_backend import ConnectionBackend
from callcenter.domain.models.call_pool import CallOutcome, CallPoolItem, CallPoolStatus
from callcenter.domain.models.call_session import CallSession, DialerState
from callcenter.domain.models.dialer_config import DialerConfig
from callcenter.domain.services.call_pool_store import CallPoolStore
from callcenter.domain.services.duration_ticker import DurationTicker
from callcenter.domain.services.retry_scheduler import plan_retry
from callcenter.domain.services.session_history import SessionHistory
from callcenter.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


class AutoDialer:
    """
    Drives exactly one pool item through the call lifecycle.

    States:
        IDLE -> DIALING -> RINGING -> CONNECTED -> IDLE
                           RINGING -> WRAPUP -> IDLE   (not answered)

    - start(): picks the next eligible item, opens a session (IDLE only)
    - DIALING -> RINGING happens after dial_delay_seconds
    - RINGING is resolved by the ConnectionBackend, automatically when
      auto_connect is set, otherwise through resolve_connection()
    - end(): operator ends a CONNECTED call; the only path that records a
      finalized session

    Timers (dial delay, wrap-up settle, duration ticker) are asyncio tasks.
    aclose() cancels all of them; use `async with AutoDialer(...)` to tie
    the dialer to a scope.
    """

    def __init__(
        self,
        store: CallPoolStore,
        connection_backend: ConnectionBackend,
        session_history: SessionHistory,
        config: Optional[DialerConfig] = None,
        agent_id: str = "current-user",
        clock: Callable[[], datetime] = utcnow
    ):
        self._store = store
        self._backend = connection_backend
        self._history = session_history
        self._config = config or DialerConfig.default()
        self._agent_id = agent_id
        self._clock = clock

        self._state = DialerState.IDLE
        self._state_changed = asyncio.Event()
        self._active_item: Optional[CallPoolItem] = None
        self._active_session: Optional[CallSession] = None
        # (pool item id, answered) of the most recent resolved attempt
        self._last_resolution: Optional[Tuple[str, bool]] = None

        self._ticker = DurationTicker(interval=self._config.tick_interval_seconds)
        self._sequence_task: Optional[asyncio.Task] = None
        self._resolve_task: Optional[asyncio.Task] = None
        self._settle_task: Optional[asyncio.Task] = None

    # ========== Read side ==========

    @property
    def state(self) -> DialerState:
        return self._state

    @property
    def is_idle(self) -> bool:
        return self._state == DialerState.IDLE

    @property
    def active_item(self) -> Optional[CallPoolItem]:
        if self._active_item is None:
            return None
        return self._store.get(self._active_item.id) or self._active_item.model_copy(deep=True)

    @property
    def active_session(self) -> Optional[CallSession]:
        return self._active_session.model_copy(deep=True) if self._active_session else None

    @property
    def call_duration(self) -> int:
        """Live ticker value (seconds while CONNECTED)."""
        return self._ticker.elapsed

    @property
    def ticker_running(self) -> bool:
        return self._ticker.running

    async def wait_for_state(self, state: DialerState, timeout: Optional[float] = None) -> None:
        """Wait until the dialer reaches `state` (asyncio.TimeoutError on timeout)."""
        await self._wait_until(lambda: self._state == state, timeout)

    async def _wait_until(self, predicate: Callable[[], bool], timeout: Optional[float] = None) -> None:
        async def _wait():
            while not predicate():
                self._state_changed.clear()
                await self._state_changed.wait()

        await asyncio.wait_for(_wait(), timeout)

    # ========== Transitions ==========

    async def start(self) -> CallPoolItem:
        """
        IDLE -> DIALING with the next eligible pool item.

        Returns:
            The pool item being dialed

        Raises:
            InvalidDialerTransition: A call is already in progress
            NoEligibleItems: Nothing to dial; state stays IDLE
        """
        if self._state != DialerState.IDLE:
            raise InvalidDialerTransition("start dialing", self._state.value)

        now = self._clock()
        candidate = self._store.find_next_eligible(now)
        if candidate is None:
            logger.info("Auto-dialer start requested but no eligible items in pool")
            raise NoEligibleItems()

        self._store.mark_active(candidate.id)
        item = self._store.update_item(candidate.id, status=CallPoolStatus.DIALING)
        self._active_item = item
        self._last_resolution = None
        self._resolve_task = None
        self._active_session = CallSession(
            id=f"session-{uuid.uuid4()}",
            pool_item_id=item.id,
            order_id=item.order_id,
            agent_id=self._agent_id,
            start_time=now,
        )
        self._set_state(DialerState.DIALING)

        logger.info(
            f"Dialing {item.customer_phone} for order {item.order_number} "
            f"(retry {item.retry_count})",
            extra={"pool_item_id": item.id, "session_id": self._active_session.id}
        )

        self._sequence_task = asyncio.create_task(self._run_dial_sequence(item.id))
        return item

    async def resolve_connection(self, pool_item_id: str) -> bool:
        """
        Resolve the ringing call of `pool_item_id` (answered or not).

        Waits out the DIALING delay if the line is not ringing yet. If the
        attempt is already being resolved (auto_connect) its result is
        awaited; if it was already resolved that result is returned again.

        Returns:
            True if answered (CONNECTED), False if not (WRAPUP)
        """
        if self._last_resolution is not None and self._last_resolution[0] == pool_item_id:
            return self._last_resolution[1]

        self._require_active_item(pool_item_id, "connect")

        if self._state == DialerState.DIALING:
            await self._wait_until(lambda: self._state != DialerState.DIALING)
            return await self.resolve_connection(pool_item_id)

        if self._state != DialerState.RINGING:
            raise InvalidDialerTransition("connect", self._state.value, "call is not ringing")

        task = self._begin_resolution()
        # Caller cancellation must not cancel the shared resolution task
        await asyncio.wait({task})
        if task.cancelled():
            raise InvalidDialerTransition("connect", self._state.value, "dialer was shut down")
        return task.result()

    async def end(
        self,
        pool_item_id: str,
        outcome: CallOutcome,
        notes: Optional[str] = None
    ) -> CallSession:
        """
        CONNECTED -> IDLE: finalize the session and complete the pool item.

        The pool item, history and dialer state are settled before the
        backend hangup is awaited, so a second end() for the same call is
        rejected instead of recording the session twice.

        Returns:
            The finalized CallSession
        """
        outcome = CallOutcome(outcome)
        self._require_active_item(pool_item_id, "end call")
        if self._state != DialerState.CONNECTED:
            raise InvalidDialerTransition("end call", self._state.value, "call is not connected")

        # Ticker stops before anything else so no tick lands after end()
        live_seconds = self._ticker.stop()

        item = self._active_item
        now = self._clock()
        session = self._active_session.finalize(end_time=now, outcome=outcome, notes=notes)

        self._store.update_item(
            item.id,
            status=CallPoolStatus.COMPLETED,
            last_call_outcome=outcome,
        )
        self._history.record(session)

        logger.info(
            f"Call completed for order {item.order_number}: {session.outcome} "
            f"({session.duration_seconds:.0f}s, ticker {live_seconds}s)",
            extra={"pool_item_id": item.id, "session_id": session.id}
        )

        self._return_to_idle()

        try:
            await self._backend.hangup(item)
        except Exception as e:
            logger.error(f"Hangup failed for pool item {item.id}: {e}", exc_info=True)

        return session

    async def aclose(self) -> None:
        """
        Tear down: cancel every timer and release the pool.

        An in-flight item goes back to WAITING without consuming a retry;
        its unfinalized session is discarded. A connection attempt still
        waiting on the backend is cancelled and never applied.
        """
        self._ticker.stop()

        tasks = [
            t for t in (self._sequence_task, self._resolve_task, self._settle_task)
            if t is not None and not t.done()
        ]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._sequence_task = None
        self._resolve_task = None
        self._settle_task = None

        item = self._active_item
        if item is not None:
            current = self._store.get(item.id)
            if current is not None and current.status in (
                CallPoolStatus.DIALING.value,
                CallPoolStatus.CONNECTED.value,
            ):
                self._store.update_item(item.id, status=CallPoolStatus.WAITING)
                logger.warning(f"Dialer closed mid-call; pool item {item.id} returned to WAITING")

        self._return_to_idle()

    async def __aenter__(self) -> "AutoDialer":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ========== Internals ==========

    async def _run_dial_sequence(self, pool_item_id: str) -> None:
        """DIALING -> RINGING after the dial delay, then auto-resolve if configured."""
        await asyncio.sleep(self._config.dial_delay_seconds)
        if self._active_item is None or self._active_item.id != pool_item_id:
            return

        self._set_state(DialerState.RINGING)

        if self._config.auto_connect:
            self._begin_resolution()

    def _begin_resolution(self) -> asyncio.Task:
        """Start resolving the ringing call once; later callers share the task."""
        if self._resolve_task is None:
            self._resolve_task = asyncio.create_task(self._resolve(self._active_item))
        return self._resolve_task

    async def _resolve(self, item: CallPoolItem) -> bool:
        """Ask the backend for the RINGING outcome and apply it."""
        try:
            answered = await self._backend.connect(item)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            # Transient backend failure counts as not answered
            logger.error(f"Connection backend failed for pool item {item.id}: {e}", exc_info=True)
            answered = False

        if self._active_item is None or self._active_item.id != item.id:
            logger.warning(f"Discarding connection result for pool item {item.id}: no longer the active call")
            return answered

        self._last_resolution = (item.id, answered)
        if answered:
            self._on_answered(item)
        else:
            self._on_unanswered(item)
        return answered

    def _on_answered(self, item: CallPoolItem) -> None:
        self._active_item = self._store.update_item(item.id, status=CallPoolStatus.CONNECTED)
        self._set_state(DialerState.CONNECTED)
        self._ticker.start()
        logger.info(f"Call answered for order {item.order_number}", extra={"pool_item_id": item.id})

    def _on_unanswered(self, item: CallPoolItem) -> None:
        now = self._clock()
        decision = plan_retry(item.retry_count, now, self._config.retry_delay_basis)

        self._active_item = self._store.update_item(
            item.id,
            status=decision.status,
            retry_count=decision.retry_count,
            next_retry_at=decision.next_retry_at,
            last_call_outcome=CallOutcome.UNREACHABLE,
        )

        if decision.exhausted:
            logger.warning(
                f"Retries exhausted for order {item.order_number} "
                f"after {decision.retry_count} failed attempts; marked FAILED",
                extra={"pool_item_id": item.id}
            )
        else:
            logger.info(
                f"Order {item.order_number} unreachable; retry {decision.retry_count} "
                f"scheduled at {decision.next_retry_at.isoformat()}",
                extra={"pool_item_id": item.id}
            )

        # No conversation took place: the session is not kept
        self._active_session = None
        self._set_state(DialerState.WRAPUP)
        self._settle_task = asyncio.create_task(self._settle())

    async def _settle(self) -> None:
        await asyncio.sleep(self._config.wrapup_delay_seconds)
        self._return_to_idle()

    def _return_to_idle(self) -> None:
        self._ticker.reset()
        self._active_item = None
        self._active_session = None
        self._last_resolution = None
        self._store.clear_active()
        self._set_state(DialerState.IDLE)

    def _require_active_item(self, pool_item_id: str, operation: str) -> None:
        if self._active_item is None or self._active_item.id != pool_item_id:
            raise InvalidDialerTransition(
                operation,
                self._state.value,
                f"pool item {pool_item_id} is not the active call"
            )

    def _set_state(self, state: DialerState) -> None:
        if state != self._state:
            logger.info(f"Dialer state {self._state.value} -> {state.value}")
        self._state = state
        self._state_changed.set()
