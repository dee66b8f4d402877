from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .record import Record

DeliveryStatus = Literal["pending", "processing", "shipped", "out_for_delivery", "completed", "cancelled"]


class OrderItem(BaseModel):
    """One line of an order."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    name: str = Field(description="Product name at time of order")
    price: float = Field(default=0.0, description="Unit price")
    quantity: Optional[int] = Field(default=1, description="Units ordered")


class Order(Record):
    """Customer order document."""
    user_id: Optional[str] = Field(default=None, description="Foreign key into users")
    items: List[OrderItem] = Field(default_factory=list, description="Ordered lines")
    subtotal: Optional[float] = Field(default=None, description="Sum of line totals")
    delivery_fee: Optional[float] = Field(default=None, description="Delivery fee")
    total_amount: Optional[float] = Field(default=None, description="Amount charged")
    delivery_status: str = Field(default="pending", description="Fulfilment state, normally a DeliveryStatus")
    payment_method: Optional[str] = Field(default=None, description="Payment method label")
    payment_status: Optional[str] = Field(default=None, description="Payment state")
    address: Optional[str] = Field(default=None, description="Address entered on the order")
    phone_number: Optional[str] = Field(default=None, description="Phone entered on the order")


class OrderView(Order):
    """Order joined with resolved customer display fields."""
    customer_name: str = Field(default="Unknown", description="Resolved customer name")
    customer_phone: str = Field(default="No phone provided", description="Resolved phone")
    customer_address: str = Field(default="No address provided", description="Resolved address")
