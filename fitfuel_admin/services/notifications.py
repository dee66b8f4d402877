"""Client for the notification HTTP service, plus send-form validation."""
from __future__ import annotations

import json
from typing import Any, Dict, List, Literal, Optional, Sequence

import httpx
from pydantic import BaseModel

from fitfuel_admin.config import get_config
from fitfuel_admin.core.filter_sort import apply
from fitfuel_admin.data.models import (
    AbTestResult,
    Campaign,
    FilterSet,
    NotificationAnalytics,
    PushToken,
    ReminderSendNow,
    ReminderStart,
    SendRequest,
    SendResult,
    WaterReminderStatus,
)
from fitfuel_admin.errors import LocalValidationError, NotificationServiceError
from fitfuel_admin.logger import get_logger

logger = get_logger(__name__)

TIMEFRAMES = ("day", "week", "month")
TOKEN_SEARCH_FIELDS = ("user_id", "token")


class StatusMessage(BaseModel):
    """Banner shown above the notification page."""
    kind: Literal["info", "success", "warning", "error"]
    text: str


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"HTTP {response.status_code} from {response.request.url}"


class NotificationClient:
    """
    Thin wrapper over the notification service's ``/api`` endpoints.

    Every method raises ``NotificationServiceError`` on transport failure or a non-2xx
    response; the message is the service's ``error`` field when it sends one.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        config = get_config()
        self.base_url = (base_url or config.notification_api_url).rstrip("/")
        self.client = client or httpx.Client(timeout=timeout or config.request_timeout_seconds)

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.client.request(method, url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response)
            logger.error(f"{method} {path} failed: {message}")
            raise NotificationServiceError(message, status_code=e.response.status_code) from e
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise NotificationServiceError(str(e) or type(e).__name__) from e
        try:
            return response.json()
        except ValueError as e:
            raise NotificationServiceError(f"Malformed response from {path}") from e

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "NotificationClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ---------- tokens and sending ----------

    def fetch_tokens(self) -> List[PushToken]:
        data = self._request("GET", "/tokens")
        return [PushToken.model_validate(t) for t in data.get("tokens") or []]

    def send(self, request: SendRequest) -> SendResult:
        data = self._request("POST", "/send-notifications", json=request.model_dump())
        return SendResult.model_validate(data)

    # ---------- water reminders ----------

    def water_reminder_status(self) -> WaterReminderStatus:
        return WaterReminderStatus.model_validate(self._request("GET", "/water-reminders/status"))

    def start_water_reminders(self) -> ReminderStart:
        return ReminderStart.model_validate(self._request("POST", "/start-water-reminders"))

    def send_water_reminder_now(self) -> ReminderSendNow:
        return ReminderSendNow.model_validate(self._request("POST", "/water-reminders/send-now"))

    # ---------- analytics ----------

    def fetch_analytics(self, timeframe: str) -> NotificationAnalytics:
        if timeframe not in TIMEFRAMES:
            raise LocalValidationError(f"Unknown timeframe: {timeframe}", field="timeframe")
        data = self._request("GET", "/notification-analytics", params={"timeframe": timeframe})
        return NotificationAnalytics.model_validate(data)

    def fetch_campaigns(self) -> List[Campaign]:
        data = self._request("GET", "/campaigns")
        return [Campaign.model_validate(c) for c in data.get("campaigns") or []]

    def fetch_ab_test(self, campaign_id: str) -> AbTestResult:
        return AbTestResult.model_validate(self._request("GET", f"/ab-test-results/{campaign_id}"))


# ---------- token filtering ----------

def filter_tokens(tokens: Sequence[PushToken], platform: str = "all", search: str = "") -> List[PushToken]:
    """Tokens matching the platform and free-text filters, in their original order."""
    filters = FilterSet(search=search, equals={"platform": platform})
    return apply(tokens, filters, None, TOKEN_SEARCH_FIELDS)


def platforms_of(tokens: Sequence[PushToken]) -> List[str]:
    return sorted({t.platform for t in tokens if t.platform})


def tokens_loaded_message(tokens: Sequence[PushToken]) -> StatusMessage:
    if tokens:
        return StatusMessage(kind="success", text=f"Successfully loaded {len(tokens)} device tokens.")
    return StatusMessage(kind="warning", text="No device tokens found in the database.")


# ---------- send form ----------

def parse_payload(text: Optional[str]) -> Dict[str, Any]:
    """Parse the data field of the send form. Blank means an empty payload."""
    if text is None or not text.strip():
        return {}
    try:
        data = json.loads(text)
    except ValueError as e:
        raise LocalValidationError(f"Invalid data format: {e}", field="data") from None
    if not isinstance(data, dict):
        raise LocalValidationError("Invalid data format: data must be a JSON object", field="data")
    return data


def build_send_request(tokens: Sequence[PushToken], title: str, body: str, data_text: str) -> SendRequest:
    """Validate the send form locally; nothing is sent when this raises."""
    if not title.strip() or not body.strip():
        raise LocalValidationError("Title and body are required!", field="title" if not title.strip() else "body")
    if not tokens:
        raise LocalValidationError("No tokens available to send notifications to!", field="tokens")
    data = parse_payload(data_text)
    return SendRequest(tokens=[t.token for t in tokens], title=title, body=body, data=data)


def send_notifications(
    client: NotificationClient,
    tokens: Sequence[PushToken],
    title: str,
    body: str,
    data_text: str,
) -> SendResult:
    request = build_send_request(tokens, title, body, data_text)
    result = client.send(request)
    logger.info(f"Sent '{title}' to {result.sent} device(s), {result.failed} failed")
    return result


def send_result_message(result: SendResult) -> StatusMessage:
    text = f"Sent notifications to {result.sent} devices."
    if result.failed > 0:
        text += f" Failed: {result.failed}"
    return StatusMessage(kind="success" if result.sent > 0 else "warning", text=text)


def reminder_sent_message(result: ReminderSendNow) -> StatusMessage:
    text = f"Water reminder sent to {result.successful} devices."
    if result.failed > 0:
        text += f" Failed: {result.failed}"
    return StatusMessage(kind="success", text=text)
