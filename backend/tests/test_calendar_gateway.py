"""Tests for the Google Calendar gateway against a mocked HTTP transport."""
import json
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from labx.errors import AuthError, NetworkError, UnauthenticatedError
from labx.services.calendar_gateway import BusyInterval, GoogleCalendarGateway, build_gateway

START = datetime(2024, 1, 10, 1, 0, tzinfo=timezone.utc)  # 09:00 Asia/Singapore
END = START + timedelta(minutes=30)


def _gateway(handler, token="ya29.token"):
    return GoogleCalendarGateway(token, base_url="https://calendar.test/v3", transport=httpx.MockTransport(handler))


class TestFreeBusy:
    def test_request_shape_and_parsing(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"calendars": {"primary": {"busy": [
                {"start": "2024-01-10T01:15:00Z", "end": "2024-01-10T02:00:00Z"},
            ]}}})

        busy = _gateway(handler).query_free_busy(START, END, "Asia/Singapore")

        assert seen["url"] == "https://calendar.test/v3/freeBusy"
        assert seen["auth"] == "Bearer ya29.token"
        assert seen["body"] == {
            "timeMin": "2024-01-10T09:00:00+08:00",
            "timeMax": "2024-01-10T09:30:00+08:00",
            "timeZone": "Asia/Singapore",
            "items": [{"id": "primary"}],
        }
        assert busy == [BusyInterval(
            datetime(2024, 1, 10, 1, 15, tzinfo=timezone.utc),
            datetime(2024, 1, 10, 2, 0, tzinfo=timezone.utc),
        )]

    def test_empty_busy_list(self):
        def handler(request):
            return httpx.Response(200, json={"calendars": {"primary": {"busy": []}}})

        assert _gateway(handler).query_free_busy(START, END, "Asia/Singapore") == []

    def test_missing_token_is_unauthenticated(self):
        def handler(request):
            raise AssertionError("no request expected")

        with pytest.raises(UnauthenticatedError):
            _gateway(handler, token=None).query_free_busy(START, END, "Asia/Singapore")

    def test_rejected_token_is_auth_error(self):
        with pytest.raises(AuthError):
            _gateway(lambda request: httpx.Response(401)).query_free_busy(START, END, "UTC")

    def test_server_error_is_network_error(self):
        with pytest.raises(NetworkError):
            _gateway(lambda request: httpx.Response(503, text="unavailable")).query_free_busy(START, END, "UTC")

    def test_transport_failure_is_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(NetworkError):
            _gateway(handler).query_free_busy(START, END, "UTC")

    def test_malformed_body_is_network_error(self):
        with pytest.raises(NetworkError):
            _gateway(lambda request: httpx.Response(200, json={"calendars": {}})).query_free_busy(START, END, "UTC")


class TestCreateEvent:
    def test_request_shape(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "evt1"})

        ok = _gateway(handler).create_event(
            "Consultation with alex", "Essay draft", START, END, "Asia/Singapore",
        )

        assert ok is True
        assert seen["url"] == "https://calendar.test/v3/calendars/primary/events"
        assert seen["body"] == {
            "summary": "Consultation with alex",
            "description": "Essay draft",
            "start": {"dateTime": "2024-01-10T09:00:00+08:00", "timeZone": "Asia/Singapore"},
            "end": {"dateTime": "2024-01-10T09:30:00+08:00", "timeZone": "Asia/Singapore"},
        }

    def test_non_success_returns_false(self):
        assert _gateway(lambda request: httpx.Response(400)).create_event("s", "d", START, END, "UTC") is False

    def test_forbidden_raises_auth_error(self):
        with pytest.raises(AuthError):
            _gateway(lambda request: httpx.Response(403)).create_event("s", "d", START, END, "UTC")


def test_build_gateway_needs_token():
    assert build_gateway(None) is None
    assert build_gateway("") is None
    assert isinstance(build_gateway("ya29.token"), GoogleCalendarGateway)
