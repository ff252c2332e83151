"""
API Dependencies
Shared dependencies for endpoint handlers
"""
from fastapi import HTTPException, Request, status

from callcenter.services.call_center_service import CallCenterService


def get_call_center_service(request: Request) -> CallCenterService:
    """
    Get the call center service created during application startup.

    Raises:
        HTTPException: If the service has not been initialized
    """
    service = getattr(request.app.state, "call_center", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Call center service is not initialized"
        )
    return service
