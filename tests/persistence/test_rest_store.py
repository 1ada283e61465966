"""Tests for the PostgREST signal store (HTTP mocked)."""

import io
import socket
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch
from urllib.error import HTTPError, URLError
from urllib.parse import parse_qsl, urlsplit

import orjson

from lifebus.errors import InvalidSignalError, PersistenceError, StoreConfigurationError
from lifebus.models.signal import NewSignal, SignalStatus
from lifebus.persistence.base import SignalQuery, SortOrder
from lifebus.persistence.rest_store import RestSignalStore

BASE_URL = "https://example.supabase.co"
NOW = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)


def fake_response(body=b"", headers=None):
    """Context-manager response as returned by urlopen."""
    response = MagicMock()
    response.read.return_value = body
    response.headers = headers or {}
    response.__enter__.return_value = response
    return response


def row(**overrides):
    values = {
        "id": "3f1c2b9e-0000-4000-8000-000000000001",
        "source_agent": "finance",
        "target_agent": None,
        "signal_type": "budget_alert",
        "priority": 1,
        "payload": {"category": "restaurant"},
        "message": "Restaurant over budget",
        "status": "active",
        "consumed_by": None,
        "consumed_at": None,
        "expires_at": "2026-03-03T08:00:00+00:00",
        "created_at": "2026-03-02T08:00:00.123+00:00",
    }
    values.update(overrides)
    return values


def sent_request(mock_urlopen, index=-1):
    return mock_urlopen.call_args_list[index].args[0]


def query_params(request):
    return parse_qsl(urlsplit(request.full_url).query)


@pytest.fixture
def rest_store():
    return RestSignalStore(BASE_URL + "/", "service-key", timeout_seconds=5.0)


class TestRestStoreConfiguration:
    """Test construction checks."""

    def test_endpoint(self, rest_store):
        assert rest_store.endpoint == "https://example.supabase.co/rest/v1/agent_signals"

    def test_invalid_url(self):
        with pytest.raises(StoreConfigurationError) as exc_info:
            RestSignalStore("not a url", "key")
        assert exc_info.value.field == "rest_url"

    def test_missing_key(self):
        with pytest.raises(StoreConfigurationError) as exc_info:
            RestSignalStore(BASE_URL, "")
        assert exc_info.value.field == "rest_key"


class TestRestStoreOperations:
    """Test request construction and response decoding."""

    @patch("lifebus.persistence.rest_store.urlopen")
    def test_insert(self, mock_urlopen, rest_store):
        mock_urlopen.return_value = fake_response(orjson.dumps([row()]))
        new_signal = NewSignal(
            source_agent="finance",
            signal_type="budget_alert",
            message="Restaurant over budget",
            priority=1,
            expires_at=NOW + timedelta(hours=24),
            payload={"category": "restaurant"},
        )

        stored = rest_store.insert(new_signal)

        request = sent_request(mock_urlopen)
        assert request.get_method() == "POST"
        assert request.get_header("Prefer") == "return=representation"
        assert request.get_header("Apikey") == "service-key"
        assert request.get_header("Authorization") == "Bearer service-key"
        assert mock_urlopen.call_args.kwargs["timeout"] == 5.0

        body = orjson.loads(request.data)
        assert body["status"] == "active"
        assert body["target_agent"] is None
        assert body["payload"] == {"category": "restaurant"}
        assert body["expires_at"] == "2026-03-03T08:00:00.000000+00:00"
        assert "created_at" not in body

        assert stored.id == row()["id"]
        assert stored.created_at == NOW + timedelta(milliseconds=123)
        assert stored.payload == {"category": "restaurant"}

    @patch("lifebus.persistence.rest_store.urlopen")
    def test_insert_empty_response(self, mock_urlopen, rest_store):
        mock_urlopen.return_value = fake_response(b"[]")
        new_signal = NewSignal("finance", "cash_gap", "gap", 2, NOW)

        with pytest.raises(PersistenceError) as exc_info:
            rest_store.insert(new_signal)

        assert exc_info.value.operation == "insert"

    def test_select_params_for_consume(self, rest_store):
        """Audience, types, priority and ordering become PostgREST filters."""
        params = rest_store.build_select_params(SignalQuery(
            audience="learning",
            signal_types=("skill_gap", "interview_scheduled"),
            max_priority=3,
            limit=20,
        ))

        assert params == [
            ("select", "*"),
            ("status", "eq.active"),
            ("or", "(target_agent.eq.learning,target_agent.is.null)"),
            ("signal_type", 'in.("skill_gap","interview_scheduled")'),
            ("priority", "lte.3"),
            ("order", "priority.asc,created_at.desc,id.desc"),
            ("limit", "20"),
        ]

    def test_select_params_for_recent(self, rest_store):
        params = dict(rest_store.build_select_params(SignalQuery(
            source_agent="health",
            created_since=NOW,
            order=SortOrder.RECENT,
            limit=1,
        )))

        assert params["source_agent"] == "eq.health"
        assert params["created_at"] == "gte.2026-03-02T08:00:00.000000+00:00"
        assert params["order"] == "created_at.desc,id.desc"
        assert params["limit"] == "1"

    @patch("lifebus.persistence.rest_store.urlopen")
    def test_select(self, mock_urlopen, rest_store):
        mock_urlopen.return_value = fake_response(orjson.dumps([
            row(), row(id="second", priority=3, payload='{"raw": true}')
        ]))

        result = rest_store.select(SignalQuery(audience="health"))

        request = sent_request(mock_urlopen)
        assert request.get_method() == "GET"
        assert ("or", "(target_agent.eq.health,target_agent.is.null)") in query_params(request)
        assert [s.id for s in result] == [row()["id"], "second"]
        assert result[1].payload == {"raw": True}

    @patch("lifebus.persistence.rest_store.urlopen")
    def test_update_status_guards_on_active(self, mock_urlopen, rest_store):
        mock_urlopen.return_value = fake_response(orjson.dumps([{"id": "a"}]))

        updated = rest_store.update_status(
            ["a", "b"], SignalStatus.CONSUMED,
            consumed_by="morning-briefing", consumed_at=NOW
        )

        request = sent_request(mock_urlopen)
        assert request.get_method() == "PATCH"
        assert query_params(request) == [
            ("id", 'in.("a","b")'),
            ("status", "eq.active"),
            ("select", "id"),
        ]
        assert orjson.loads(request.data) == {
            "status": "consumed",
            "consumed_by": "morning-briefing",
            "consumed_at": "2026-03-02T08:00:00.000000+00:00",
        }
        assert updated == ["a"]

    @patch("lifebus.persistence.rest_store.urlopen")
    def test_update_status_no_ids(self, mock_urlopen, rest_store):
        assert rest_store.update_status([], SignalStatus.DISMISSED) == []
        mock_urlopen.assert_not_called()

    @patch("lifebus.persistence.rest_store.urlopen")
    def test_update_status_rejects_non_terminal(self, mock_urlopen, rest_store):
        """Signals can never be moved back to active."""
        with pytest.raises(InvalidSignalError) as exc_info:
            rest_store.update_status(["a"], SignalStatus.ACTIVE)

        assert exc_info.value.field == "status"
        mock_urlopen.assert_not_called()

    @patch("lifebus.persistence.rest_store.urlopen")
    def test_get(self, mock_urlopen, rest_store):
        mock_urlopen.return_value = fake_response(b"[]")

        assert rest_store.get("missing") is None
        assert ("id", "eq.missing") in query_params(sent_request(mock_urlopen))

    @patch("lifebus.persistence.rest_store.urlopen")
    def test_delete_before(self, mock_urlopen, rest_store):
        mock_urlopen.return_value = fake_response(orjson.dumps([{"id": "a"}, {"id": "b"}]))

        deleted = rest_store.delete_before(NOW, statuses=[SignalStatus.CONSUMED])

        request = sent_request(mock_urlopen)
        assert request.get_method() == "DELETE"
        params = dict(query_params(request))
        assert params["expires_at"] == "lt.2026-03-02T08:00:00.000000+00:00"
        assert params["status"] == 'in.("consumed")'
        assert deleted == 2

    @patch("lifebus.persistence.rest_store.urlopen")
    def test_count_by_status(self, mock_urlopen, rest_store):
        mock_urlopen.side_effect = [
            fake_response(b"[]", {"Content-Range": "0-0/4"}),
            fake_response(b"[]", {"Content-Range": "*/0"}),
            fake_response(b"[]", {"Content-Range": "0-0/1"}),
        ]

        assert rest_store.count_by_status() == {"active": 4, "dismissed": 1}
        assert sent_request(mock_urlopen, 0).get_header("Prefer") == "count=exact"


class TestRestStoreErrors:
    """Test failure mapping to PersistenceError."""

    @patch("lifebus.persistence.rest_store.urlopen")
    def test_http_error(self, mock_urlopen, rest_store):
        mock_urlopen.side_effect = HTTPError(
            rest_store.endpoint, 401, "Unauthorized", {}, io.BytesIO(b'{"message":"bad key"}')
        )

        with pytest.raises(PersistenceError) as exc_info:
            rest_store.select(SignalQuery())

        assert exc_info.value.operation == "select"
        assert exc_info.value.context["status"] == 401
        assert "bad key" in str(exc_info.value)

    @patch("lifebus.persistence.rest_store.urlopen")
    def test_network_error(self, mock_urlopen, rest_store):
        mock_urlopen.side_effect = URLError("connection refused")

        with pytest.raises(PersistenceError) as exc_info:
            rest_store.get("abc")

        assert exc_info.value.operation == "get"

    @patch("lifebus.persistence.rest_store.urlopen")
    def test_timeout(self, mock_urlopen, rest_store):
        mock_urlopen.side_effect = socket.timeout("timed out")

        with pytest.raises(PersistenceError):
            rest_store.update_status(["a"], SignalStatus.DISMISSED)

    @patch("lifebus.persistence.rest_store.urlopen")
    def test_invalid_json(self, mock_urlopen, rest_store):
        mock_urlopen.return_value = fake_response(b"<html>gateway</html>")

        with pytest.raises(PersistenceError):
            rest_store.select(SignalQuery())

    @patch("lifebus.persistence.rest_store.urlopen")
    def test_unexpected_shape(self, mock_urlopen, rest_store):
        mock_urlopen.return_value = fake_response(orjson.dumps({"message": "nope"}))

        with pytest.raises(PersistenceError):
            rest_store.select(SignalQuery())

    @patch("lifebus.persistence.rest_store.urlopen")
    def test_missing_content_range(self, mock_urlopen, rest_store):
        mock_urlopen.return_value = fake_response(b"[]")

        with pytest.raises(PersistenceError) as exc_info:
            rest_store.count_by_status()

        assert exc_info.value.operation == "count_by_status"
