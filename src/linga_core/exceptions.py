"""Domain-specific exceptions for the Linga reporting core.

This module defines custom exceptions that are part of the public API.
All exceptions inherit from LingaAPIError for easy catching.

The aggregation functions in ``linga_core.reports`` never raise any of these:
malformed values and missing references are recovered where they occur.
Only the configuration and fetch layers surface errors to callers.
"""


class LingaAPIError(Exception):
    """Base exception for all Linga reporting errors.

    Users can catch this exception to handle any error raised by the package.
    """

    pass


class ConfigError(LingaAPIError):
    """Raised when there is a configuration error.

    This exception is raised when:
    - The API key or base URL is missing
    - Numeric settings (timeout, retries) cannot be parsed
    - The store allow-list cannot be loaded or does not contain the store
    """

    pass


class DataQualityError(LingaAPIError):
    """Raised when a raw payload does not have the declared shape.

    This exception is raised when:
    - A collection in the fetched bundle is not a list
    - A record in a collection is not a JSON object
    - An export is requested for a selection with no tickets
    """

    pass


class ExtractionError(LingaAPIError):
    """Raised when fetching data from the vendor API fails.

    This exception is raised when:
    - Network connection to the Linga API fails
    - Authentication fails (HTTP 401/403)
    - The API returns an unexpected response
    """

    pass
