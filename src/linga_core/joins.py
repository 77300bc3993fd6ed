"""Foreign-key resolution across independently fetched lookup collections.

Tickets, order lines and discount rows carry employee and floor ids, never
names. The names come from the ``users`` and ``layout`` endpoints, which may
be empty when the store has not been configured yet.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Optional

UNKNOWN = "Unknown"


def _field(item: Any, field: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(field)
    return getattr(item, field, None)


def resolve_name(
    collection: Optional[Iterable[Any]],
    id_: Any,
    field: str = "name",
    fallback: str = UNKNOWN,
) -> str:
    """Look up the display name of ``id_`` in a reference collection.

    Items may be mappings or objects; both must expose an ``id`` and the
    requested ``field``. The lookup is linear and the first match wins.

    Args:
        collection: Lookup table (employees, floors). None or empty is treated
            as "no match".
        id_: Identifier to resolve. Empty ids never match.
        field: Attribute holding the display name.
        fallback: Returned when nothing matches or the match has no name.

    Returns:
        The display name or ``fallback``.

    Examples:
        >>> resolve_name([{"id": "e1", "name": "Ahmed"}], "e1")
        'Ahmed'
        >>> resolve_name([], "e1")
        'Unknown'
    """
    if not collection or id_ is None or id_ == "":
        return fallback
    for item in collection:
        if _field(item, "id") == id_:
            name = _field(item, field)
            return str(name) if name else fallback
    return fallback
