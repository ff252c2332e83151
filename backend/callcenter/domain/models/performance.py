"""
Performance Models
Agent performance summaries derived from finalized call sessions
"""
from pydantic import BaseModel, Field
from typing import Dict


class AgentPerformance(BaseModel):
    """Call center summary shown above the dialer"""
    total_calls: int = Field(default=0, ge=0)
    avg_duration_seconds: float = Field(default=0.0, ge=0.0)
    avg_duration: str = "0s"
    success_rate: float = Field(default=0.0, ge=0.0, le=100.0, description="% of confirmed calls")
    orders_approved: int = Field(default=0, ge=0)


class AgentStats(BaseModel):
    """Per-agent breakdown for the agent reports page"""
    agent_id: str
    total_calls: int = 0
    confirmed_orders: int = 0
    cancelled_orders: int = 0
    approval_rate: float = 0.0
    avg_duration_seconds: float = 0.0


class PoolCounts(BaseModel):
    """Candidate counts for the pool source sidebar"""
    order_counts: Dict[str, int] = Field(default_factory=dict)
    cargo_counts: Dict[str, int] = Field(default_factory=dict)
