import json
from datetime import datetime

import httpx
import pytest

from fitfuel_admin.data.models import PushToken, ReminderSendNow, SendResult
from fitfuel_admin.errors import LocalValidationError, NotificationServiceError
from fitfuel_admin.services.notifications import (
    NotificationClient,
    build_send_request,
    filter_tokens,
    parse_payload,
    platforms_of,
    reminder_sent_message,
    send_notifications,
    send_result_message,
    tokens_loaded_message,
)

TOKENS = [
    PushToken(user_id="u1", token="ExponentPushToken[aaa]", platform="ios"),
    PushToken(user_id="u2", token="ExponentPushToken[bbb]", platform="android"),
    PushToken(user_id="u3", token="ExponentPushToken[ccc]", platform="ios"),
]


@pytest.fixture
def service():
    """Mock notification service; records every request it receives."""
    requests = []
    responses = {}

    def handler(request):
        requests.append(request)
        key = (request.method, request.url.path)
        status, body = responses.get(key, (404, None))
        return httpx.Response(status, json=body)

    client = NotificationClient(
        base_url="http://notify.test/api/",
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )
    client.requests = requests
    client.responses = responses
    yield client
    client.close()


def test_invalid_payload_sends_nothing(service):
    with pytest.raises(LocalValidationError) as e:
        send_notifications(service, TOKENS, "Hello", "World", "{bad json")

    assert e.value.field == "data"
    assert str(e.value).startswith("Invalid data format")
    assert service.requests == []


def test_missing_title_or_tokens_sends_nothing(service):
    with pytest.raises(LocalValidationError, match="Title and body are required!"):
        send_notifications(service, TOKENS, " ", "World", "")
    with pytest.raises(LocalValidationError, match="No tokens available"):
        send_notifications(service, [], "Hello", "World", "")
    assert service.requests == []


def test_send_posts_tokens_and_payload(service):
    service.responses[("POST", "/api/send-notifications")] = (200, {"sent": 2, "failed": 1})

    result = send_notifications(service, TOKENS, "Hydrate", "Drink water", '{"screen": "home"}')

    assert result == SendResult(sent=2, failed=1)
    (request,) = service.requests
    assert json.loads(request.content) == {
        "tokens": [t.token for t in TOKENS],
        "title": "Hydrate",
        "body": "Drink water",
        "data": {"screen": "home"},
    }


def test_service_error_field_is_surfaced(service):
    service.responses[("POST", "/api/send-notifications")] = (500, {"error": "Expo is down"})

    with pytest.raises(NotificationServiceError) as e:
        send_notifications(service, TOKENS, "Hi", "There", "")

    assert str(e.value) == "Expo is down"
    assert e.value.status_code == 500


def test_error_without_body_names_status(service):
    with pytest.raises(NotificationServiceError, match="HTTP 404"):
        service.fetch_campaigns()


def test_transport_failure_is_a_service_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = NotificationClient(base_url="http://down.test/api", client=httpx.Client(transport=httpx.MockTransport(handler)))
    with pytest.raises(NotificationServiceError, match="connection refused"):
        client.fetch_tokens()


def test_fetch_tokens(service):
    service.responses[("GET", "/api/tokens")] = (200, {"tokens": [
        {"userId": "u9", "token": "t9", "platform": "web"},
    ]})

    tokens = service.fetch_tokens()

    assert tokens == [PushToken(user_id="u9", token="t9", platform="web")]


def test_analytics_sends_timeframe(service):
    service.responses[("GET", "/api/notification-analytics")] = (200, {
        "summary": {"totalSent": 10, "totalOpened": 4, "openRate": 40.0},
        "notifications": [{
            "id": "n1", "title": "Hi", "sentAt": "2024-05-14T10:00:00",
            "sentCount": 8, "targetCount": 10, "openCount": 4, "interactionCount": 1,
        }],
    })

    analytics = service.fetch_analytics("week")

    assert service.requests[0].url.params["timeframe"] == "week"
    assert analytics.summary.total_sent == 10
    assert analytics.summary.open_rate == 40.0
    assert analytics.notifications[0].sent_at == datetime(2024, 5, 14, 10, 0)
    assert not analytics.is_empty


def test_empty_analytics(service):
    service.responses[("GET", "/api/notification-analytics")] = (200, {"summary": {}, "notifications": []})

    analytics = service.fetch_analytics("day")

    assert analytics.is_empty
    assert analytics.summary.open_rate == 0.0


def test_unknown_timeframe_rejected_locally(service):
    with pytest.raises(LocalValidationError):
        service.fetch_analytics("year")
    assert service.requests == []


def test_water_reminders(service):
    service.responses[("GET", "/api/water-reminders/status")] = (200, {
        "active": True, "jobs": [{"nextInvocation": "2024-05-15T14:00:00"}], "schedule": "every 2h",
    })
    service.responses[("POST", "/api/water-reminders/send-now")] = (200, {"successful": 5, "failed": 0})

    status = service.water_reminder_status()
    sent = service.send_water_reminder_now()

    assert status.active
    assert status.next_reminder == datetime(2024, 5, 15, 14, 0)
    assert sent == ReminderSendNow(successful=5, failed=0)
    assert reminder_sent_message(sent).text == "Water reminder sent to 5 devices."


def test_ab_test_results(service):
    service.responses[("GET", "/api/ab-test-results/c1")] = (200, {
        "variants": [{"id": "a", "variant": "A", "openRate": 12.5}],
        "winner": {"id": "a"},
    })

    result = service.fetch_ab_test("c1")

    assert result.variants[0].open_rate == 12.5
    assert result.winner.id == "a"


def test_parse_payload():
    assert parse_payload("") == {}
    assert parse_payload("   ") == {}
    assert parse_payload('{"a": 1}') == {"a": 1}
    with pytest.raises(LocalValidationError, match="must be a JSON object"):
        parse_payload("[1, 2]")


def test_build_send_request_keeps_token_order():
    request = build_send_request(list(reversed(TOKENS)), "t", "b", "")
    assert request.tokens == [t.token for t in reversed(TOKENS)]
    assert request.data == {}


def test_filter_tokens_is_an_ordered_subset():
    assert filter_tokens(TOKENS) == TOKENS
    assert [t.user_id for t in filter_tokens(TOKENS, platform="ios")] == ["u1", "u3"]
    assert [t.user_id for t in filter_tokens(TOKENS, search="BBB")] == ["u2"]
    assert filter_tokens(TOKENS, platform="android", search="u1") == []
    assert platforms_of(TOKENS) == ["android", "ios"]


def test_status_messages():
    assert send_result_message(SendResult(sent=3, failed=0)).kind == "success"
    assert send_result_message(SendResult(sent=3, failed=2)).text == "Sent notifications to 3 devices. Failed: 2"
    assert send_result_message(SendResult(sent=0, failed=2)).kind == "warning"
    assert tokens_loaded_message([]).kind == "warning"
    assert tokens_loaded_message(TOKENS).text == "Successfully loaded 3 device tokens."
