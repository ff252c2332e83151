"""
Call Session Models
Defines CallSession and DialerState for the single-agent dialer
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum

from callcenter.domain.models.call_pool import CallOutcome


class DialerState(str, Enum):
    """Dialer state machine states"""
    IDLE = "IDLE"
    DIALING = "DIALING"
    RINGING = "RINGING"
    CONNECTED = "CONNECTED"
    WRAPUP = "WRAPUP"          # after an unanswered attempt, before IDLE


class CallSession(BaseModel):
    """
    Record of one call attempt run by the agent.

    Opened when the dialer enters DIALING; only a call that reached
    CONNECTED is finalized (end_time and outcome set). Unanswered attempts
    discard their session.
    """

    id: str = Field(..., description="Unique session identifier")
    pool_item_id: str
    order_id: Optional[str] = None
    agent_id: str

    start_time: datetime
    end_time: Optional[datetime] = None
    duration_seconds: float = Field(default=0.0, ge=0.0)

    outcome: Optional[CallOutcome] = None
    notes: Optional[str] = None

    model_config = {"use_enum_values": True}

    @property
    def is_finalized(self) -> bool:
        return self.end_time is not None

    def finalize(
        self,
        end_time: datetime,
        outcome: CallOutcome,
        notes: Optional[str] = None
    ) -> "CallSession":
        """Return the finalized copy of this session (duration = end - start)."""
        duration = max(0.0, (end_time - self.start_time).total_seconds())
        return self.model_copy(update={
            "end_time": end_time,
            "outcome": CallOutcome(outcome).value,
            "notes": notes,
            "duration_seconds": duration,
        })
