"""LingaPOS HTTP extraction.

Fetches the collections behind every report for one
``(store_id, from_date, to_date)`` selection:

    getsale            -> sales (tickets with embedded orders and payments)
    discountReport     -> saleDetails (discount rows, incl. "Total" rows)
    layout             -> floors
    users              -> users (employees)
    saleReport         -> menus (vendor menu item report, passed through raw)
    saleSummaryReport  -> saleSummary

The requests run concurrently and ``fetch`` returns only after all of them
have completed, so callers always receive one consistent snapshot.

Report code does not talk to this module directly. It receives a
``BatchSource`` (anything with a matching ``fetch``) so that aggregation can be
exercised with canned payloads.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Any, Optional, Protocol

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from linga_core.config import DEFAULT_RETRIES, DEFAULT_TIMEOUT, LingaSettings
from linga_core.exceptions import ExtractionError
from linga_core.schema import ReportBatch, flatten_orders

logger = logging.getLogger(__name__)

_MONTHS = ("JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC")

# Transient statuses retried with backoff (rate limiting and gateway errors)
RETRY_STATUSES = (429, 500, 502, 503, 504)


class BatchSource(Protocol):
    """Anything that can deliver the raw bundle for one selection."""

    def fetch(self, store_id: str, from_date: date, to_date: date) -> dict[str, Any]: ...


def format_date(d: date) -> str:
    """Format a date the way the Linga report endpoints expect.

    Examples:
        >>> format_date(date(2024, 1, 5))
        '05-JAN-2024'
    """
    return f"{d.day:02d}-{_MONTHS[d.month - 1]}-{d.year}"


def make_session(
    api_key: str, timeout: float = DEFAULT_TIMEOUT, retries: int = DEFAULT_RETRIES
) -> requests.Session:
    """Create a requests Session with retry logic and default timeout.

    Configures the session with:
    - ``apikey`` header and JSON ``Accept``/``Content-Type``
    - Retry adapter (exponential backoff) on ``RETRY_STATUSES`` for
      idempotent methods only
    - Default timeout for every request unless the caller passes one

    Args:
        api_key: Linga API key.
        timeout: Default timeout in seconds for all requests.
        retries: Number of retry attempts.

    Returns:
        Configured requests.Session object.
    """
    s = requests.Session()
    s.headers.update(
        {"apikey": api_key, "Accept": "application/json", "Content-Type": "application/json"}
    )
    retry = Retry(
        total=retries,
        connect=retries,
        read=retries,
        status=retries,
        backoff_factor=0.8,  # 0.8, 1.6, 3.2, ...
        status_forcelist=RETRY_STATUSES,
        allowed_methods=frozenset({"GET", "HEAD", "OPTIONS"}),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    s.mount("http://", adapter)
    s.mount("https://", adapter)
    send = s.request

    def request_with_timeout(method: str, url: str, **kwargs: Any) -> requests.Response:
        kwargs.setdefault("timeout", timeout)
        return send(method, url, **kwargs)

    s.request = request_with_timeout  # type: ignore[method-assign,assignment]
    return s


def _unwrap(payload: Any, key: Optional[str] = None) -> list[Any]:
    """Return the list inside a response body.

    Some endpoints answer with a bare list, others wrap it (``{"sales": [...]}``).
    Anything else, including ``null``, becomes an empty list.
    """
    if isinstance(payload, dict) and key is not None:
        payload = payload.get(key)
    return payload if isinstance(payload, list) else []


def ensure_ok(resp: requests.Response, msg: str) -> None:
    """Raise ExtractionError with a short body excerpt if the response failed."""
    if resp.status_code in (401, 403):
        raise ExtractionError(
            f"{msg}: not authorized (HTTP {resp.status_code}); check LINGA_API_KEY"
        )
    if not resp.ok:
        raise ExtractionError(f"{msg}. HTTP {resp.status_code}: {resp.text[:400]}")


class LingaClient:
    """``BatchSource`` backed by the Linga REST API.

    Example:
        >>> from linga_core.config import LingaSettings
        >>> client = LingaClient(LingaSettings.from_env())
        >>> raw = client.fetch("5e4be85b7237b70001de9106", date(2024, 1, 1), date(2024, 1, 1))
        >>> sorted(raw)
        ['detailedMenu', 'floors', 'menus', 'saleDetails', 'saleSummary', 'sales', 'users']
    """

    def __init__(
        self,
        settings: LingaSettings,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.settings = settings
        self.session = session or make_session(
            settings.api_key, timeout=settings.timeout, retries=settings.retries
        )

    def endpoints(
        self, store_id: str, from_date: date, to_date: date
    ) -> dict[str, tuple[str, dict[str, str]]]:
        """Path and query parameters per collection."""
        base = f"/v1/lingapos/store/{store_id}"
        start, end = format_date(from_date), format_date(to_date)
        return {
            "sales": (f"{base}/getsale", {"fromDate": start, "toDate": end}),
            "saleDetails": (
                f"{base}/discountReport",
                {
                    "dateOption": "DR",
                    "fromDate": start,
                    "toDate": end,
                    "selectedReportType": "By Discount Type",
                },
            ),
            "floors": (f"{base}/layout", {}),
            "users": (f"{base}/users", {}),
            "menus": (
                f"{base}/saleReport",
                {
                    "dateOption": "DR",
                    "employeeGroup": "N",
                    "fromDate": start,
                    "toDate": end,
                    "isDetailedView": "false",
                    "page": "1",
                    "type": "MENUITEM",
                },
            ),
            "saleSummary": (
                f"{base}/saleSummaryReport",
                {"dateOption": "DR", "fromDate": start, "toDate": end},
            ),
        }

    def get_json(self, path: str, params: dict[str, str]) -> Any:
        url = f"{self.settings.base_url}{path}"
        try:
            resp = self.session.get(url, params=params)
        except requests.RequestException as e:
            raise ExtractionError(f"GET {path} failed: {e}") from e
        ensure_ok(resp, f"GET {path}")
        try:
            return resp.json()
        except ValueError as e:
            raise ExtractionError(f"GET {path} returned non-JSON body: {resp.text[:200]}") from e

    def fetch(self, store_id: str, from_date: date, to_date: date) -> dict[str, Any]:
        """Fetch every collection for one selection.

        Args:
            store_id: Linga store id.
            from_date: First day (inclusive).
            to_date: Last day (inclusive).

        Returns:
            Raw bundle with keys ``sales``, ``saleDetails``, ``floors``,
            ``users``, ``menus``, ``saleSummary`` and ``detailedMenu``
            (order lines flattened out of the tickets). Missing collections
            are empty lists. ``menus`` is the vendor's own menu item report,
            returned unchanged for callers that want it. ``ReportBatch``
            does not read it: menu figures are derived from the order lines
            so they stay consistent with the tickets.

        Raises:
            ValueError: If ``from_date`` is after ``to_date``.
            ExtractionError: If any request fails; no partial bundle is
                returned.
        """
        if from_date > to_date:
            raise ValueError(f"Start date {from_date} is after end date {to_date}")

        endpoints = self.endpoints(store_id, from_date, to_date)
        logger.info(
            "Fetching %d collections for store %s, %s to %s",
            len(endpoints),
            store_id,
            from_date,
            to_date,
        )
        with ThreadPoolExecutor(max_workers=len(endpoints)) as pool:
            futures = {
                name: pool.submit(self.get_json, path, params)
                for name, (path, params) in endpoints.items()
            }
            # .result() re-raises the first failure after all requests finish
            results = {name: future.result() for name, future in futures.items()}

        sales = _unwrap(results["sales"], "sales")
        raw = {
            "sales": sales,
            "saleDetails": _unwrap(results["saleDetails"]),
            "floors": _unwrap(results["floors"], "floors"),
            "users": _unwrap(results["users"]),
            "menus": _unwrap(results["menus"], "data"),
            "saleSummary": _unwrap(results["saleSummary"]),
            "detailedMenu": flatten_orders(sales),
        }
        logger.info(
            "Fetched %d ticket(s), %d order line(s), %d discount row(s)",
            len(raw["sales"]),
            len(raw["detailedMenu"]),
            len(raw["saleDetails"]),
        )
        return raw


def load_batch(
    source: BatchSource,
    store_id: str,
    from_date: date,
    to_date: date,
    tz: Optional[str] = None,
) -> ReportBatch:
    """Fetch one selection through ``source`` and ingest it.

    Args:
        source: Injected fetch collaborator (``LingaClient`` in production).
        store_id: Linga store id.
        from_date: First day (inclusive).
        to_date: Last day (inclusive).
        tz: Optional zone for hour bucketing of tz-aware timestamps.

    Returns:
        The ingested ReportBatch.
    """
    raw = source.fetch(store_id, from_date, to_date)
    return ReportBatch.from_raw(raw, tz=tz)
