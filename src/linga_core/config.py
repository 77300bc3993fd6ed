"""Unified configuration for the Linga reporting core.

Two pieces of configuration exist:

- ``LingaSettings``: how to reach the vendor API (base URL, API key,
  timeouts, store time zone), read from the environment.
- The store allow-list: a JSON file mapping store names to Linga store ids.
  Only stores listed there can be reported on.

Environment:
    LINGA_BASE      API base URL (default https://api.lingaros.com)
    LINGA_API_KEY   API key sent as the ``apikey`` header (required)
    LINGA_TIMEOUT   Request timeout in seconds (default 60)
    LINGA_RETRIES   Retry attempts on 429/5xx (default 3)
    LINGA_TZ        IANA zone used to bucket tz-aware timestamps (optional)
    LINGA_STORES    Path to the store allow-list JSON (optional)
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pandas as pd

from linga_core.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_BASE = "https://api.lingaros.com"
DEFAULT_TIMEOUT = 60.0
DEFAULT_RETRIES = 3


@dataclass
class LingaSettings:
    """Connection settings for the Linga API.

    Attributes:
        api_key: Key sent with every request.
        base_url: API root, without trailing slash.
        timeout: Default timeout in seconds for all requests.
        retries: Retry attempts for transient failures.
        timezone: Optional IANA zone for hour bucketing.
    """

    api_key: str
    base_url: str = DEFAULT_BASE
    timeout: float = DEFAULT_TIMEOUT
    retries: int = DEFAULT_RETRIES
    timezone: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> LingaSettings:
        """Create settings from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``.

        Returns:
            LingaSettings instance.

        Raises:
            ConfigError: If ``LINGA_API_KEY`` is missing, a numeric setting
                is invalid or ``LINGA_TZ`` is not a known time zone.

        Examples:
            >>> settings = LingaSettings.from_env({"LINGA_API_KEY": "secret"})
            >>> settings.base_url
            'https://api.lingaros.com'
        """
        env = os.environ if environ is None else environ
        # Values copied from .env files often keep their quotes
        api_key = env.get("LINGA_API_KEY", "").strip().strip('"').strip("'")
        if not api_key:
            raise ConfigError("LINGA_API_KEY is not set")

        base_url = env.get("LINGA_BASE", DEFAULT_BASE).strip().strip('"').strip("'").rstrip("/")
        try:
            timeout = float(env.get("LINGA_TIMEOUT", DEFAULT_TIMEOUT))
            retries = int(env.get("LINGA_RETRIES", DEFAULT_RETRIES))
        except ValueError as e:
            raise ConfigError(f"Invalid LINGA_TIMEOUT/LINGA_RETRIES: {e}") from e

        timezone = env.get("LINGA_TZ", "").strip().strip('"').strip("'") or None
        if timezone is not None:
            try:
                pd.Timestamp("2000-01-01", tz=timezone)
            except (KeyError, ValueError) as e:
                raise ConfigError(f"Invalid LINGA_TZ {timezone!r}: unknown time zone") from e

        return cls(
            api_key=api_key,
            base_url=base_url or DEFAULT_BASE,
            timeout=timeout,
            retries=retries,
            timezone=timezone,
        )


def load_store_map(path: str | Path) -> dict[str, str]:
    """Load the store allow-list.

    Supports two JSON shapes:

      {
        "Common Grounds DIFC": "5e4be85b7237b70001de9106"
      }

    and the richer form:

      {
        "Common Grounds DIFC": {"id": "5e4be85b7237b70001de9106"}
      }

    Args:
        path: JSON file path.

    Returns:
        Mapping of store name to store id.

    Raises:
        ConfigError: If the file cannot be read or has the wrong shape.
    """
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot load store allow-list {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{path} must be a JSON object mapping store name -> id")

    stores: dict[str, str] = {}
    for name, value in data.items():
        if isinstance(value, dict):
            if "id" not in value:
                raise ConfigError(f"Entry {name!r} is an object but has no 'id' field")
            stores[name] = str(value["id"])
        elif isinstance(value, str):
            stores[name] = value
        else:
            raise ConfigError(f"Entry {name!r} must be a string id or an object with 'id'")

    logger.debug("Loaded %d store(s) from %s", len(stores), path)
    return stores


def resolve_store(
    stores: Mapping[str, str],
    name: Optional[str] = None,
    store_id: Optional[str] = None,
) -> tuple[str, str]:
    """Resolve a store from the allow-list by name or id.

    Args:
        stores: Allow-list from ``load_store_map``.
        name: Store name (exact match).
        store_id: Linga store id.

    Returns:
        ``(store_id, store_name)``.

    Raises:
        ConfigError: If neither is given or the store is not allowed.
    """
    if name:
        if name not in stores:
            raise ConfigError(f"Store '{name}' not found. Known: {', '.join(sorted(stores))}")
        return stores[name], name
    if store_id:
        for store_name, sid in stores.items():
            if sid == store_id:
                return sid, store_name
        raise ConfigError(f"Store id '{store_id}' is not in the allow-list")
    raise ConfigError("Either a store name or a store id is required")
