"""Order screen: status vocabulary, customer projection and status updates."""
from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple

from fitfuel_admin.core.aggregates import AggregateDefinition
from fitfuel_admin.core.reference_cache import ReferenceCache
from fitfuel_admin.core.views import CollectionView
from fitfuel_admin.data.interface import Document, Gateway
from fitfuel_admin.data.models import Order, OrderItem, OrderView, SortSpec
from fitfuel_admin.errors import LocalValidationError

ORDERS = "orders"
USERS = "users"

STATUS_OPTIONS: List[Tuple[str, str]] = [
    ("pending", "Pending"),
    ("processing", "Processing"),
    ("shipped", "Shipped"),
    ("out_for_delivery", "Out for Delivery"),
    ("completed", "Completed"),
    ("cancelled", "Cancelled"),
]
STATUS_LABELS: Dict[str, str] = dict(STATUS_OPTIONS)

STATUS_DESCRIPTIONS: Dict[str, str] = {
    "pending": "Assigning delivery agent",
    "processing": "Processing, Being packed, Delivery in 15 min",
    "shipped": "Picked Up",
    "out_for_delivery": "Out for delivery, arriving in 10 min",
    "completed": "Delivered",
    "cancelled": "Cancelled",
}

STATUS_COLORS: Dict[str, str] = {
    "pending": "#f59e0b",
    "processing": "#3b82f6",
    "shipped": "#8b5cf6",
    "out_for_delivery": "#10b981",
    "completed": "#22c55e",
    "cancelled": "#ef4444",
}

DATE_OPTIONS: List[Tuple[str, str]] = [
    ("all", "All Time"),
    ("today", "Today"),
    ("yesterday", "Yesterday"),
    ("week", "This Week"),
    ("month", "This Month"),
]

ORDER_SEARCH_FIELDS = ("customer_name", "id", "customer_phone", "customer_address")


def status_label(status: Optional[str]) -> str:
    return STATUS_LABELS.get(status, "Unknown")


def status_description(status: Optional[str]) -> str:
    return STATUS_DESCRIPTIONS.get(status, "Status unknown")


def status_color(status: Optional[str]) -> str:
    return STATUS_COLORS.get(status, "#6b7280")


def order_counters() -> AggregateDefinition:
    return AggregateDefinition.by_value("delivery_status", STATUS_LABELS)


def display_name(user: Optional[Document]) -> str:
    if not user:
        return "Unknown User"
    return user.get("name") or user.get("displayName") or "Unknown User"


def project_order(order: Order, cache: ReferenceCache) -> OrderView:
    """Join an order with its customer profile.

    Each display field falls back from the order itself, to the user profile, to a
    placeholder.
    """
    user = cache.resolve(USERS, order.user_id) if order.user_id else None
    extra = order.model_extra or {}

    if extra.get("customerName"):
        customer_name = extra["customerName"]
    elif order.user_id:
        customer_name = display_name(user)
    else:
        customer_name = "Unknown"

    user = user or {}
    base = {k: v for k, v in order.model_dump().items() if k != "customerName"}
    return OrderView.model_validate({
        **base,
        "customer_name": customer_name,
        "customer_phone": order.phone_number or user.get("phone") or "No phone provided",
        "customer_address": order.address or user.get("address") or "No address provided",
    })


def order_projector(cache: ReferenceCache) -> Callable[[Order], OrderView]:
    return lambda order: project_order(order, cache)


def build_order_view(gateway: Gateway, cache: ReferenceCache, max_workers: Optional[int] = None) -> CollectionView:
    return CollectionView(
        gateway=gateway,
        collection=ORDERS,
        model=Order,
        definition=order_counters(),
        search_fields=ORDER_SEARCH_FIELDS,
        projector=order_projector(cache),
        sort=SortSpec(field="created_at", direction="desc"),
        date_field="created_at",
        max_workers=max_workers,
    )


def update_order_status(view: CollectionView, order_id: str, status: str) -> OrderView:
    if status not in STATUS_LABELS:
        raise LocalValidationError(f"Unknown delivery status: {status}", field="delivery_status")
    return view.mutations.apply(order_id, {"delivery_status": status})


def line_total(item: OrderItem) -> float:
    return item.price * (item.quantity or 1)


def payment_label(order: Order) -> str:
    return "Paid" if order.payment_status == "paid" else "Pending"
