"""
Order Models
Read-only snapshot of orders supplied by the Order Source
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from enum import Enum

from callcenter.utils.time_utils import utcnow


class OrderStatus(str, Enum):
    """Order lifecycle status"""
    NEW = "NEW"
    TO_CALL = "TO_CALL"
    APPROVED = "APPROVED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    UNREACHABLE = "UNREACHABLE"
    WRONG_NUMBER = "WRONG_NUMBER"
    CANCELLED = "CANCELLED"
    RETURNED = "RETURNED"


class ShippingStatus(str, Enum):
    """Cargo status of a shipped order"""
    PREPARING = "PREPARING"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    RETURNED = "RETURNED"
    CANCELLED = "CANCELLED"


# Order statuses that never need an outbound call (already approved or in cargo)
NON_CALLABLE_ORDER_STATUSES = {OrderStatus.APPROVED.value, OrderStatus.SHIPPED.value}


class Customer(BaseModel):
    """Customer contact details"""
    id: str
    name: str
    phone: str
    email: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None


class Order(BaseModel):
    """
    Order as seen by the call center.

    The status is kept as a plain string so custom statuses defined in the
    admin panel pass through untouched.
    """
    id: str
    order_number: str
    status: str = Field(default=OrderStatus.NEW.value)
    shipping_status: Optional[ShippingStatus] = None
    customer: Optional[Customer] = None
    total_amount: float = Field(default=0.0, ge=0.0)
    payment_method: str = "cash_on_delivery"
    created_at: datetime = Field(default_factory=utcnow)

    model_config = {"use_enum_values": True}


class OrderFilter(BaseModel):
    """Filter passed to OrderSource.list_orders (None = no constraint)"""
    status: Optional[str] = None
    shipping_status: Optional[str] = None

    def matches(self, order: Order) -> bool:
        if self.status is not None and order.status != self.status:
            return False
        if self.shipping_status is not None and order.shipping_status != self.shipping_status:
            return False
        return True
