"""Order source implementations"""
from callcenter.infrastructure.orders.in_memory import InMemoryOrderSource

__all__ = ["InMemoryOrderSource"]
