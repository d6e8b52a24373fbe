"""Location normalization.

Turns a raw navigation target into the canonical ``Location`` the
matcher works on. Normalization is idempotent: a location flagged
``normalized`` is returned as-is.
"""

import copy
import dataclasses
import logging
from collections.abc import Callable
from typing import Any

from wayfinder.routing.path import parse_path, resolve_path
from wayfinder.routing.pattern import fill_params
from wayfinder.routing.query import resolve_query
from wayfinder.routing.route import Location, RawLocation, Route

logger = logging.getLogger("wayfinder.routing")


def normalize_location(
    raw: RawLocation,
    current: Route | None = None,
    append: bool = False,
    parse_query: Callable[[str], dict[str, Any]] | None = None,
) -> Location:
    """Normalize *raw* relative to the *current* route.

    Named locations are copied but otherwise left alone; the matcher
    resolves them. A location with params but no path is a relative-params
    navigation from *current*.
    """
    location = Location.from_raw(raw)

    if location.normalized:
        return location

    if location.name:
        named = dataclasses.replace(location)
        if location.params is not None:
            named.params = copy.deepcopy(location.params)
        return named

    # relative params
    if not location.path and location.params is not None and current is not None:
        relative = dataclasses.replace(location, normalized=True)
        params = {**current.params, **location.params}
        if current.name:
            relative.name = current.name
            relative.params = params
        elif current.matched:
            relative.path = fill_params(current.matched[-1].path, params)
        else:
            logger.warning("relative params navigation requires a current route.")
        return relative

    parsed = parse_path(location.path or "")
    base_path = current.path if current is not None and current.path else "/"
    path = (
        resolve_path(parsed.path, base_path, append or location.append)
        if parsed.path
        else base_path
    )

    query = resolve_query(parsed.query, location.query, parse_query)

    hash = location.hash or parsed.hash
    if hash and not hash.startswith("#"):
        hash = f"#{hash}"

    return Location(
        path=path,
        query=query,
        hash=hash,
        replace=location.replace,
        normalized=True,
    )
