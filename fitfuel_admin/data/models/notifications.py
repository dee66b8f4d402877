from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Timeframe = Literal["day", "week", "month"]


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")


class PushToken(_ApiModel):
    """Registered device token."""
    user_id: Optional[str] = Field(default=None, description="Owning user")
    token: str = Field(description="Device push token")
    platform: Optional[str] = Field(default=None, description="ios / android / web")


class SendRequest(_ApiModel):
    """Body of POST /send-notifications."""
    tokens: List[str] = Field(description="Target device tokens")
    title: str = Field(description="Notification title")
    body: str = Field(description="Notification body")
    data: Dict[str, Any] = Field(default_factory=dict, description="Structured payload")


class SendResult(_ApiModel):
    """Outcome of a fan-out send."""
    sent: int = Field(default=0, description="Devices the service delivered to")
    failed: int = Field(default=0, description="Devices the service failed to deliver to")


class ReminderJob(_ApiModel):
    next_invocation: Optional[datetime] = Field(default=None, description="Next scheduled run")


class WaterReminderStatus(_ApiModel):
    """Water-reminder schedule state."""
    active: bool = Field(default=False, description="Schedule is running")
    jobs: List[ReminderJob] = Field(default_factory=list, description="Scheduled jobs")
    schedule: Optional[Any] = Field(default=None, description="Schedule description")

    @property
    def next_reminder(self) -> Optional[datetime]:
        return self.jobs[0].next_invocation if self.jobs else None


class ReminderStart(_ApiModel):
    next_reminder: Optional[datetime] = Field(default=None, description="First scheduled run")
    schedule: Optional[Any] = Field(default=None, description="Schedule description")


class ReminderSendNow(_ApiModel):
    successful: int = Field(default=0, description="Devices reached")
    failed: int = Field(default=0, description="Devices not reached")


class NotificationRecord(_ApiModel):
    """One past notification with its engagement counters."""
    id: Optional[str] = Field(default=None, description="Notification identifier")
    title: str = Field(default="", description="Notification title")
    sent_at: Optional[datetime] = Field(default=None, description="Dispatch time")
    sent_count: int = Field(default=0, description="Devices delivered to")
    target_count: int = Field(default=0, description="Devices targeted")
    open_count: int = Field(default=0, description="Opens recorded")
    interaction_count: int = Field(default=0, description="Interactions recorded")


class AnalyticsSummary(_ApiModel):
    total_sent: int = 0
    total_delivered: int = 0
    total_opened: int = 0
    total_interactions: int = 0
    delivery_rate: float = 0.0
    open_rate: float = 0.0
    interaction_rate: float = 0.0


class NotificationAnalytics(_ApiModel):
    """Response of GET /notification-analytics."""
    summary: AnalyticsSummary = Field(default_factory=AnalyticsSummary)
    notifications: List[NotificationRecord] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.notifications


class Campaign(_ApiModel):
    id: str = Field(description="Campaign identifier")
    name: str = Field(default="", description="Campaign name")


class Variant(_ApiModel):
    """One arm of an A/B test."""
    id: str = Field(description="Variant identifier")
    variant: str = Field(default="", description="Variant label, e.g. A or B")
    title: str = Field(default="", description="Variant title")
    body: str = Field(default="", description="Variant body")
    open_rate: float = Field(default=0.0, description="Open rate in percent")
    interaction_rate: float = Field(default=0.0, description="Interaction rate in percent")


class WinnerRef(_ApiModel):
    id: Optional[str] = None


class AbTestResult(_ApiModel):
    """Response of GET /ab-test-results/{campaignId}."""
    variants: List[Variant] = Field(default_factory=list)
    winner: Optional[WinnerRef] = None
