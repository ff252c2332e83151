"""
Session History
In-memory store of finalized call sessions (volatile, process-local)
"""
import logging
from typing import List, Optional

from callcenter.domain.models.call_session import CallSession

logger = logging.getLogger(__name__)


class SessionHistory:
    """Append-only log of finalized CallSessions feeding the aggregator."""

    def __init__(self):
        self._sessions: List[CallSession] = []

    def record(self, session: CallSession) -> None:
        if not session.is_finalized:
            raise ValueError(f"Session {session.id} is not finalized")
        self._sessions.append(session.model_copy(deep=True))
        logger.debug(
            f"Recorded session {session.id} ({session.outcome}, {session.duration_seconds:.0f}s)",
            extra={"pool_item_id": session.pool_item_id, "agent_id": session.agent_id}
        )

    def list(self, agent_id: Optional[str] = None) -> List[CallSession]:
        sessions = self._sessions
        if agent_id is not None:
            sessions = [s for s in sessions if s.agent_id == agent_id]
        return [s.model_copy(deep=True) for s in sessions]

    def clear(self) -> None:
        """Reset history (for testing)."""
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)
