"""
Performance Aggregator
Derives agent performance statistics from finalized call sessions
"""
import logging
from typing import Dict, Iterable, List

from callcenter.domain.models.call_pool import CallOutcome
from callcenter.domain.models.call_session import CallSession
from callcenter.domain.models.performance import AgentPerformance, AgentStats
from callcenter.domain.services.session_history import SessionHistory
from callcenter.utils.time_utils import format_duration_text

logger = logging.getLogger(__name__)


def _finalized(sessions: Iterable[CallSession]) -> List[CallSession]:
    return [s for s in sessions if s.is_finalized]


def _percentage(part: int, whole: int) -> float:
    if whole == 0:
        return 0.0
    return round(part * 100.0 / whole, 1)


def summarize_sessions(sessions: Iterable[CallSession]) -> AgentPerformance:
    """
    Summary stats for the call center header.

    Unfinalized sessions are ignored. No sessions -> zero-valued summary.
    """
    done = _finalized(sessions)
    if not done:
        return AgentPerformance()

    total = len(done)
    avg_duration = sum(s.duration_seconds for s in done) / total
    confirmed = [s for s in done if s.outcome == CallOutcome.REACHED_CONFIRMED.value]
    approved_orders = {s.order_id or s.pool_item_id for s in confirmed}

    return AgentPerformance(
        total_calls=total,
        avg_duration_seconds=round(avg_duration, 1),
        avg_duration=format_duration_text(avg_duration),
        success_rate=_percentage(len(confirmed), total),
        orders_approved=len(approved_orders),
    )


def agent_breakdown(sessions: Iterable[CallSession]) -> List[AgentStats]:
    """Per-agent stats, sorted by agent id."""
    by_agent: Dict[str, List[CallSession]] = {}
    for session in _finalized(sessions):
        by_agent.setdefault(session.agent_id, []).append(session)

    stats = []
    for agent_id in sorted(by_agent):
        agent_sessions = by_agent[agent_id]
        total = len(agent_sessions)
        confirmed = sum(1 for s in agent_sessions if s.outcome == CallOutcome.REACHED_CONFIRMED.value)
        cancelled = sum(1 for s in agent_sessions if s.outcome == CallOutcome.REACHED_CANCELLED.value)
        stats.append(AgentStats(
            agent_id=agent_id,
            total_calls=total,
            confirmed_orders=confirmed,
            cancelled_orders=cancelled,
            approval_rate=_percentage(confirmed, total),
            avg_duration_seconds=round(sum(s.duration_seconds for s in agent_sessions) / total, 1),
        ))
    return stats


class PerformanceAggregator:
    """
    Read side over a SessionHistory.

    Holds no state of its own; every call recomputes from the history.
    """

    def __init__(self, history: SessionHistory):
        self._history = history

    def get_agent_performance(self) -> AgentPerformance:
        return summarize_sessions(self._history.list())

    def get_agent_stats(self) -> List[AgentStats]:
        return agent_breakdown(self._history.list())
