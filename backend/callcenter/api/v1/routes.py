"""
API Router
Combines all endpoint routers
"""
from fastapi import APIRouter
from callcenter.api.v1.endpoints import call_center

api_router = APIRouter()

api_router.include_router(call_center.router)
