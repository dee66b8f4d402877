from .record import Record
from .data_filters import ALL, DateBucket, FilterSet, SortSpec
from .products import CATEGORIES, NUTRITION_UNITS, NutritionFact, Product, default_nutrition_facts
from .users import UserResponse
from .orders import DeliveryStatus, Order, OrderItem, OrderView
from .notifications import (
    AbTestResult,
    AnalyticsSummary,
    Campaign,
    NotificationAnalytics,
    NotificationRecord,
    PushToken,
    ReminderSendNow,
    ReminderStart,
    SendRequest,
    SendResult,
    Timeframe,
    Variant,
    WaterReminderStatus,
)

__all__ = [
    # Base
    "Record",
    # Filter classes
    "ALL",
    "DateBucket",
    "FilterSet",
    "SortSpec",
    # Collection models
    "CATEGORIES",
    "NUTRITION_UNITS",
    "NutritionFact",
    "Product",
    "default_nutrition_facts",
    "UserResponse",
    "DeliveryStatus",
    "Order",
    "OrderItem",
    "OrderView",
    # Notification service models
    "AbTestResult",
    "AnalyticsSummary",
    "Campaign",
    "NotificationAnalytics",
    "NotificationRecord",
    "PushToken",
    "ReminderSendNow",
    "ReminderStart",
    "SendRequest",
    "SendResult",
    "Timeframe",
    "Variant",
    "WaterReminderStatus",
]
