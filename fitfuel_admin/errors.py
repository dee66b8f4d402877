"""Exception types surfaced to the dashboard pages.

Every error here is recoverable: the page shows the message and the user repeats the
action. Partial bulk outcomes are not errors, see ``core.mutations.BulkResult``.
"""
from __future__ import annotations

from typing import Optional


class DashboardError(Exception):
    """Base class for all user-facing dashboard failures."""


class LocalValidationError(DashboardError):
    """Input rejected before any network call was made."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class GatewayError(DashboardError):
    """A document store read or write failed."""

    def __init__(
        self,
        message: str,
        operation: str,
        collection: str,
        record_id: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.collection = collection
        self.record_id = record_id


class NotificationServiceError(DashboardError):
    """The notification HTTP service returned an error or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ScreenBusyError(DashboardError):
    """An action was attempted while another one is in flight on the same screen."""
