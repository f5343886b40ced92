# =============================================================================
# File: tests/unit/test_collaborators.py
# Description: HTTP collaborators against httpx.MockTransport
# =============================================================================

from __future__ import annotations

import json
from typing import Callable, List

import httpx
import pytest

from profilesync.config.integration_config import IntegrationConfig
from profilesync.infra.collaborators.booking_client import HttpBookingSystemClient
from profilesync.infra.collaborators.notification_delivery import HttpNotificationDelivery
from profilesync.infra.collaborators.search_index_client import HttpSearchIndexClient
from profilesync.infra.collaborators.stakeholder_resolver import HttpStakeholderResolver

CONFIG = IntegrationConfig(
    stakeholder_service_url="http://stakeholders.test/",
    notification_service_url="http://notifications.test",
    search_service_url="http://search.test",
    booking_service_url="http://booking.test",
)


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _recording(requests: List[httpx.Request], response: httpx.Response):
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return response
    return handler


# =============================================================================
# Stakeholders
# =============================================================================

@pytest.mark.asyncio
async def test_stakeholders_deduplicated_in_order():
    requests: List[httpx.Request] = []
    payload = {"stakeholders": ["client-2", "client-1", "client-2", "follower-9"]}
    resolver = HttpStakeholderResolver(CONFIG, _client(_recording(requests, httpx.Response(200, json=payload))))

    recipients = await resolver.affected_stakeholders("subject-1")

    assert recipients == ["client-2", "client-1", "follower-9"]
    assert str(requests[0].url) == "http://stakeholders.test/subjects/subject-1/stakeholders"


@pytest.mark.asyncio
async def test_stakeholders_accepts_bare_list():
    resolver = HttpStakeholderResolver(CONFIG, _client(lambda r: httpx.Response(200, json=["a", "b"])))

    assert await resolver.affected_stakeholders("subject-1") == ["a", "b"]


@pytest.mark.asyncio
async def test_stakeholders_not_found_is_not_retried():
    requests: List[httpx.Request] = []
    resolver = HttpStakeholderResolver(CONFIG, _client(_recording(requests, httpx.Response(404))))

    with pytest.raises(httpx.HTTPStatusError):
        await resolver.affected_stakeholders("subject-1")
    assert len(requests) == 1


@pytest.mark.asyncio
async def test_stakeholders_unavailable_is_retried_once():
    requests: List[httpx.Request] = []
    resolver = HttpStakeholderResolver(CONFIG, _client(_recording(requests, httpx.Response(503))))

    with pytest.raises(httpx.HTTPStatusError):
        await resolver.affected_stakeholders("subject-1")
    assert len(requests) == 2


# =============================================================================
# Notifications
# =============================================================================

@pytest.mark.asyncio
async def test_notification_channels_mapped_from_response():
    requests: List[httpx.Request] = []
    response = httpx.Response(200, json={"channels": {"websocket": True, "sms": True}})
    delivery = HttpNotificationDelivery(CONFIG, _client(_recording(requests, response)))

    result = await delivery.send("client-1", {"title": "Changed"}, ["websocket", "email"])

    assert result == {"websocket": True, "email": False}
    body = json.loads(requests[0].content)
    assert str(requests[0].url) == "http://notifications.test/notifications"
    assert body == {"recipient_id": "client-1", "payload": {"title": "Changed"}, "channels": ["websocket", "email"]}


@pytest.mark.asyncio
async def test_notification_error_status_raises():
    delivery = HttpNotificationDelivery(CONFIG, _client(lambda r: httpx.Response(500)))

    with pytest.raises(httpx.HTTPStatusError):
        await delivery.send("client-1", {}, ["email"])


# =============================================================================
# Search and booking
# =============================================================================

@pytest.mark.asyncio
async def test_search_upsert_puts_document():
    requests: List[httpx.Request] = []
    client = HttpSearchIndexClient(CONFIG, _client(_recording(requests, httpx.Response(200))))

    await client.upsert("subject-1", {"bio": "Hi"})

    assert requests[0].method == "PUT"
    assert str(requests[0].url) == "http://search.test/documents/subject-1"
    assert json.loads(requests[0].content) == {"bio": "Hi"}


@pytest.mark.asyncio
async def test_booking_urls_and_bodies():
    requests: List[httpx.Request] = []
    client = HttpBookingSystemClient(CONFIG, _client(_recording(requests, httpx.Response(204))))

    await client.update_availability("subject-1", {"monday": {}})
    await client.update_consultation_options("subject-1", ["video"], {"video": {"available": True}})
    await client.update_booking_configuration("subject-1", {"slot_minutes": 50})
    await client.update_provider_status("subject-1", "suspended", False)
    await client.update_provider_details("subject-1", "credentials", {"verified": True})

    assert [str(r.url) for r in requests] == [
        "http://booking.test/providers/subject-1/availability",
        "http://booking.test/providers/subject-1/consultation-options",
        "http://booking.test/providers/subject-1/booking-configuration",
        "http://booking.test/providers/subject-1/status",
        "http://booking.test/providers/subject-1/details/credentials",
    ]
    assert all(r.method == "PUT" for r in requests)
    assert json.loads(requests[3].content) == {"status": "suspended", "accepting_bookings": False}


@pytest.mark.asyncio
async def test_injected_client_not_closed():
    http = _client(lambda r: httpx.Response(200))
    client = HttpSearchIndexClient(CONFIG, http)

    await client.close()

    assert not http.is_closed
