"""Application services"""
from callcenter.services.call_center_service import CallCenterService

__all__ = ["CallCenterService"]
