"""Collaborator interfaces consumed by the call center core"""
from .order_source import OrderSource
from .connection_backend import ConnectionBackend

__all__ = [
    "OrderSource",
    "ConnectionBackend",
]
