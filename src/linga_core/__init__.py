"""Linga reporting core: ingestion and aggregation of LingaPOS back-office data.

The package turns the raw collections returned by the Linga API for one
store and date range into the figures shown on a restaurant dashboard:

- **Ingestion** (``linga_core.schema``): vendor records with string-encoded
  amounts become typed, immutable entities in one ``ReportBatch``
- **Reports** (``linga_core.reports``): sales overview, pivots, discount
  ledger, void log, staff metrics and the Daily Sales Recap
- **Export** (``linga_core.export``): xlsx/csv workbooks
- **Extraction** (``linga_core.client``): concurrent fetch from the API

Quick Start:
    >>> from datetime import date
    >>> from linga_core import LingaClient, LingaSettings, load_batch
    >>> from linga_core.reports import pivot, recap_for_batch
    >>>
    >>> client = LingaClient(LingaSettings.from_env())
    >>> batch = load_batch(client, "5e4be85b7237b70001de9106", date(2024, 1, 5), date(2024, 1, 5))
    >>> recap = recap_for_batch(batch, operational_target=12000)
    >>> print(recap.net_total, recap.variance_pct)
    >>> pivot(batch, "CATEGORY")[:3]
"""

__version__ = "0.1.0"

from linga_core.client import BatchSource, LingaClient, load_batch
from linga_core.config import LingaSettings
from linga_core.exceptions import ConfigError, DataQualityError, ExtractionError, LingaAPIError
from linga_core.schema import ReportBatch

__all__ = [
    "BatchSource",
    "ConfigError",
    "DataQualityError",
    "ExtractionError",
    "LingaAPIError",
    "LingaClient",
    "LingaSettings",
    "ReportBatch",
    "__version__",
    "load_batch",
]
