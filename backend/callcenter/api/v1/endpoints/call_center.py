"""
Call Center Endpoints
Pool management, auto-dialer control and agent performance
"""
import logging
from fastapi import APIRouter, HTTPException, Depends, status
from pydantic import BaseModel, Field
from typing import List, Optional

from callcenter.api.v1.dependencies import get_call_center_service
from callcenter.domain.exceptions import (
    InvalidDialerTransition,
    PoolBusy,
    PoolItemNotFound,
    SourceUnavailable,
)
from callcenter.domain.models.call_pool import CallOutcome, CallPoolItem, PoolSourceType
from callcenter.domain.models.call_session import CallSession
from callcenter.domain.models.performance import AgentPerformance, AgentStats, PoolCounts
from callcenter.services.call_center_service import CallCenterService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/call-center", tags=["call-center"])


class PopulatePoolRequest(BaseModel):
    """Which orders to pull into the pool"""
    type: PoolSourceType = Field(..., description="ORDER (order status) or CARGO (shipping status)")
    status: str = Field(..., min_length=1, description="Status value to filter on")


class PopulatePoolResponse(BaseModel):
    source: str
    items: List[CallPoolItem]


class StartDialerResponse(BaseModel):
    """Item being dialed, or null with a notice when nothing is eligible"""
    item: Optional[CallPoolItem] = None
    message: Optional[str] = None


class ConnectResponse(BaseModel):
    answered: bool
    item: Optional[CallPoolItem] = None


class CompleteCallRequest(BaseModel):
    outcome: CallOutcome
    notes: Optional[str] = Field(None, max_length=2000)


class DialerStatusResponse(BaseModel):
    state: str
    active_item: Optional[CallPoolItem] = None
    call_duration_seconds: int
    call_duration: str
    pool_source: Optional[str] = None
    pool_status_counts: dict


def _dialer_conflict(e: InvalidDialerTransition) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.get("/pool/counts", response_model=PoolCounts)
async def get_pool_counts(
    service: CallCenterService = Depends(get_call_center_service)
):
    """
    Candidate counts per order status and shipping status.

    Used by: pool source sidebar.
    """
    try:
        return await service.get_pool_counts()
    except Exception as e:
        logger.error(f"Failed to count pool candidates: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Failed to load order counts: {str(e)}"
        )


@router.post("/pool/populate", response_model=PopulatePoolResponse)
async def populate_pool(
    request: PopulatePoolRequest,
    service: CallCenterService = Depends(get_call_center_service)
):
    """
    Replace the call pool with orders matching a status.

    Refused with 409 while a call is in progress.
    """
    try:
        items = await service.populate_pool(request.type, request.status)
    except PoolBusy as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except SourceUnavailable as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{str(e)}. Please retry."
        )

    return PopulatePoolResponse(source=f"{request.type.value}-{request.status}", items=items)


@router.get("/pool", response_model=List[CallPoolItem])
async def get_call_pool(
    service: CallCenterService = Depends(get_call_center_service)
):
    """Current pool in display order (retried first, priority, oldest)."""
    return service.get_call_pool()


@router.get("/dialer", response_model=DialerStatusResponse)
async def get_dialer_status(
    service: CallCenterService = Depends(get_call_center_service)
):
    return service.get_dialer_status()


@router.post("/dialer/start", response_model=StartDialerResponse)
async def start_auto_dialer(
    service: CallCenterService = Depends(get_call_center_service)
):
    """
    Start dialing the next eligible pool item.

    An empty/ineligible pool is not an error: item is null and a notice is
    returned.
    """
    try:
        item = await service.start_auto_dialer()
    except InvalidDialerTransition as e:
        raise _dialer_conflict(e)

    if item is None:
        return StartDialerResponse(item=None, message="No eligible records to call")
    return StartDialerResponse(item=item)


@router.post("/dialer/{pool_item_id}/connect", response_model=ConnectResponse)
async def simulate_connection(
    pool_item_id: str,
    service: CallCenterService = Depends(get_call_center_service)
):
    """Resolve the ringing call (answered / not answered)."""
    try:
        answered = await service.simulate_connection(pool_item_id)
    except PoolItemNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidDialerTransition as e:
        raise _dialer_conflict(e)

    return ConnectResponse(answered=answered, item=service.store.get(pool_item_id))


@router.post("/dialer/{pool_item_id}/complete", response_model=CallSession)
async def complete_call(
    pool_item_id: str,
    request: CompleteCallRequest,
    service: CallCenterService = Depends(get_call_center_service)
):
    """End the connected call with an outcome and optional notes."""
    try:
        return await service.complete_call(pool_item_id, request.outcome, request.notes)
    except PoolItemNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except InvalidDialerTransition as e:
        raise _dialer_conflict(e)


@router.get("/performance", response_model=AgentPerformance)
async def get_agent_performance(
    service: CallCenterService = Depends(get_call_center_service)
):
    return service.get_agent_performance()


@router.get("/performance/agents", response_model=List[AgentStats])
async def get_agent_stats(
    service: CallCenterService = Depends(get_call_center_service)
):
    """Per-agent breakdown for the agent reports page."""
    return service.get_agent_stats()
