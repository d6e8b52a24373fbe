"""Query string codec.

Parses query strings into a multi-value mapping and serializes mappings
back to a canonical query string.

Value conventions::

    "a=1"      -> {"a": "1"}
    "a"        -> {"a": None}
    "a=1&a=2"  -> {"a": ["1", "2"]}

When serializing, ``None`` emits the bare key and ``OMIT`` drops the
key (or list element) entirely.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import quote, unquote

logger = logging.getLogger("wayfinder.routing")

# encodeURIComponent safe set minus RFC3986 reserved !'()*, plus literal commas
_QUERY_SAFE = "-_.~,"

Query = dict[str, Any]


class _Omit:
    """Sentinel for query values that should not be serialized."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "OMIT"


OMIT = _Omit()


def encode(value: str) -> str:
    """Percent-encode *value* for a query string, keeping commas literal."""
    return quote(value, safe=_QUERY_SAFE)


def decode(value: str) -> str:
    return unquote(value)


def parse_query(query: str) -> Query:
    """Parse *query* into a mapping; repeated keys accumulate into a list."""
    result: Query = {}

    query = query.strip()
    if query[:1] in ("?", "#", "&"):
        query = query[1:]

    if not query:
        return result

    for param in query.split("&"):
        parts = param.replace("+", " ").split("=")
        key = decode(parts[0])
        value = decode("=".join(parts[1:])) if len(parts) > 1 else None

        if key not in result:
            result[key] = value
        elif isinstance(result[key], list):
            result[key].append(value)
        else:
            result[key] = [result[key], value]

    return result


def resolve_query(
    query: str | None,
    extra: Mapping[str, Any] | None = None,
    parser: Callable[[str], Query] | None = None,
) -> Query:
    """Parse *query* with *parser* (default ``parse_query``) and overlay *extra*.

    A parser failure is logged and treated as an empty query.
    """
    parse = parser or parse_query
    try:
        parsed = dict(parse(query or ""))
    except Exception as exc:
        logger.warning("Failed to parse query %r: %s", query, exc)
        parsed = {}

    if extra:
        for key, value in extra.items():
            parsed[key] = value
    return parsed


def stringify_query(query: Mapping[str, Any] | None) -> str:
    """Serialize *query* to ``?k=v&...``, or ``""`` when nothing is emitted."""
    if not query:
        return ""

    pairs: list[str] = []
    for key, value in query.items():
        if value is OMIT:
            continue

        if value is None:
            pairs.append(encode(key))
            continue

        if isinstance(value, (list, tuple)):
            for item in value:
                if item is OMIT:
                    continue
                if item is None:
                    pairs.append(encode(key))
                else:
                    pairs.append(f"{encode(key)}={encode(str(item))}")
            continue

        pairs.append(f"{encode(key)}={encode(str(value))}")

    return f"?{'&'.join(pairs)}" if pairs else ""
