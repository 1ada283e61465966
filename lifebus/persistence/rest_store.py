"""PostgREST (Supabase) signal store."""

import socket
from datetime import datetime
from typing import Any, Iterable, Optional
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode, urlparse
from urllib.request import Request, urlopen

import orjson

from ..errors import PersistenceError, StoreConfigurationError
from ..logging.config import get_logger
from ..models.signal import NewSignal, Signal, SignalStatus
from ..utils.time import format_timestamp
from .base import SignalQuery, SignalStore, SortOrder, check_terminal, row_to_signal

# Characters PostgREST needs verbatim in filter values
_SAFE_CHARS = "(),.*"


def _in_list(values: Iterable[str]) -> str:
    return "in.(" + ",".join(f'"{v}"' for v in values) + ")"


class RestSignalStore(SignalStore):
    """
    Signal store speaking the PostgREST dialect over HTTPS.

    Each operation is one bounded request; there is no retry. ``created_at``
    is assigned by the database column default.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        table: str = "agent_signals",
        timeout_seconds: float = 10.0
    ):
        parsed = urlparse(base_url or "")
        if not parsed.scheme or not parsed.netloc:
            raise StoreConfigurationError(f"Invalid store URL: {base_url}", field="rest_url")
        if not api_key:
            raise StoreConfigurationError("Store API key is required", field="rest_key")

        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.table = table
        self.timeout_seconds = timeout_seconds
        self.logger = get_logger("signal.store.rest")

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/rest/v1/{self.table}"

    def _request(
        self,
        method: str,
        operation: str,
        params: list[tuple[str, str]],
        body: Optional[Any] = None,
        prefer: Optional[str] = None
    ) -> tuple[Any, dict[str, str]]:
        """Send one request and decode the JSON response."""
        url = self.endpoint
        if params:
            url += "?" + urlencode(params, safe=_SAFE_CHARS, quote_via=quote)

        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
            "User-Agent": "lifebus/0.1",
        }
        if prefer:
            headers["Prefer"] = prefer

        data = None
        if body is not None:
            data = orjson.dumps(body)
            headers["Content-Type"] = "application/json"

        req = Request(url, data=data, headers=headers, method=method)

        try:
            with urlopen(req, timeout=self.timeout_seconds) as response:
                raw = response.read()
                response_headers = {k.lower(): v for k, v in response.headers.items()}

        except HTTPError as e:
            try:
                detail = e.read().decode("utf-8", errors="replace")[:200]
            except (OSError, AttributeError):
                detail = ""
            self.logger.warning(
                "Store HTTP error",
                operation=operation,
                error_code=e.code,
                error_reason=str(e.reason),
                detail=detail
            )
            raise PersistenceError(
                f"HTTP {e.code}: {e.reason} {detail}".strip(),
                operation=operation,
                target=self.endpoint,
                context={"status": e.code}
            ) from e

        except (URLError, socket.timeout, OSError) as e:
            self.logger.warning("Store network error", operation=operation, error=str(e))
            raise PersistenceError(
                f"Network error: {e}",
                operation=operation,
                target=self.endpoint
            ) from e

        if not raw:
            return None, response_headers

        try:
            return orjson.loads(raw), response_headers
        except orjson.JSONDecodeError as e:
            raise PersistenceError(
                f"Invalid JSON from store: {e}",
                operation=operation,
                target=self.endpoint
            ) from e

    def _rows(self, payload: Any, operation: str) -> list[dict[str, Any]]:
        if payload is None:
            return []
        if not isinstance(payload, list):
            raise PersistenceError(
                f"Expected a list of rows, got {type(payload).__name__}",
                operation=operation,
                target=self.endpoint
            )
        return payload

    def insert(self, new_signal: NewSignal) -> Signal:
        """Insert a new active signal."""
        body = {
            "source_agent": new_signal.source_agent,
            "target_agent": new_signal.target_agent,
            "signal_type": new_signal.signal_type,
            "priority": new_signal.priority,
            "payload": new_signal.payload,
            "message": new_signal.message,
            "status": SignalStatus.ACTIVE.value,
            "expires_at": format_timestamp(new_signal.expires_at),
        }

        try:
            payload, _ = self._request(
                "POST", "insert", [("select", "*")], body=body,
                prefer="return=representation"
            )
        except TypeError as e:
            raise PersistenceError(f"Unserializable payload: {e}", operation="insert") from e

        rows = self._rows(payload, "insert")
        if not rows:
            raise PersistenceError("Insert returned no row", operation="insert", target=self.endpoint)

        return row_to_signal(rows[0])

    def build_select_params(self, query: SignalQuery) -> list[tuple[str, str]]:
        """Translate a SignalQuery into PostgREST query parameters."""
        params: list[tuple[str, str]] = [("select", "*")]

        if query.status is not None:
            params.append(("status", f"eq.{SignalStatus(query.status).value}"))

        if query.audience is not None:
            params.append(("or", f"(target_agent.eq.{query.audience},target_agent.is.null)"))

        if query.signal_types:
            params.append(("signal_type", _in_list(query.signal_types)))

        if query.max_priority is not None:
            params.append(("priority", f"lte.{query.max_priority}"))

        if query.source_agent is not None:
            params.append(("source_agent", f"eq.{query.source_agent}"))

        if query.created_since is not None:
            params.append(("created_at", f"gte.{format_timestamp(query.created_since)}"))

        if query.order == SortOrder.RECENT:
            params.append(("order", "created_at.desc,id.desc"))
        else:
            params.append(("order", "priority.asc,created_at.desc,id.desc"))

        if query.limit is not None:
            params.append(("limit", str(query.limit)))

        return params

    def select(self, query: SignalQuery) -> list[Signal]:
        """Select signals matching a query."""
        payload, _ = self._request("GET", "select", self.build_select_params(query))
        return [row_to_signal(row) for row in self._rows(payload, "select")]

    def update_status(
        self,
        signal_ids: Iterable[str],
        status: SignalStatus,
        consumed_by: Optional[str] = None,
        consumed_at: Optional[datetime] = None
    ) -> list[str]:
        """Transition active signals to a terminal status."""
        check_terminal(status)
        ids = [str(i) for i in signal_ids if i]
        if not ids:
            return []

        body: dict[str, Any] = {
            "status": SignalStatus(status).value,
            "consumed_by": consumed_by,
        }
        if consumed_at is not None:
            body["consumed_at"] = format_timestamp(consumed_at)

        params = [
            ("id", _in_list(ids)),
            ("status", f"eq.{SignalStatus.ACTIVE.value}"),
            ("select", "id"),
        ]
        payload, _ = self._request(
            "PATCH", "update_status", params, body=body,
            prefer="return=representation"
        )
        return [str(row["id"]) for row in self._rows(payload, "update_status")]

    def get(self, signal_id: str) -> Optional[Signal]:
        """Get a signal by ID."""
        params = [("select", "*"), ("id", f"eq.{signal_id}"), ("limit", "1")]
        payload, _ = self._request("GET", "get", params)
        rows = self._rows(payload, "get")
        return row_to_signal(rows[0]) if rows else None

    def delete_before(
        self,
        cutoff: datetime,
        statuses: Optional[Iterable[SignalStatus]] = None
    ) -> int:
        """Remove signals that expired before the cutoff."""
        params = [("expires_at", f"lt.{format_timestamp(cutoff)}")]

        if statuses is not None:
            values = [SignalStatus(s).value for s in statuses]
            if not values:
                return 0
            params.append(("status", _in_list(values)))

        params.append(("select", "id"))
        payload, _ = self._request(
            "DELETE", "delete_before", params, prefer="return=representation"
        )
        deleted_count = len(self._rows(payload, "delete_before"))

        self.logger.info("Deleted old signals", deleted=deleted_count)
        return deleted_count

    def count_by_status(self) -> dict[str, int]:
        """Row counts grouped by status, one counting request per status."""
        counts: dict[str, int] = {}

        for status in SignalStatus:
            params = [("select", "id"), ("status", f"eq.{status.value}"), ("limit", "1")]
            _, headers = self._request("GET", "count_by_status", params, prefer="count=exact")

            content_range = headers.get("content-range", "")
            total = content_range.rpartition("/")[2]
            if not total.isdigit():
                raise PersistenceError(
                    f"Missing row count in Content-Range: {content_range!r}",
                    operation="count_by_status",
                    target=self.endpoint
                )
            if int(total) > 0:
                counts[status.value] = int(total)

        return counts
