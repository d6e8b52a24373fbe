"""Matcher: resolves locations against the route table.

Matching never raises for a location that simply does not match. It
returns a ``Route`` with an empty ``matched`` chain instead. The only
hard failure is a param fill that cannot produce a concrete path.
"""

import dataclasses
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from wayfinder.config import RouterConfig
from wayfinder.routing.location import normalize_location
from wayfinder.routing.path import resolve_path
from wayfinder.routing.pattern import fill_params
from wayfinder.routing.route import (
    Location,
    RawLocation,
    Route,
    RouteConfig,
    RouteRecord,
    create_route,
)
from wayfinder.routing.table import RouteTable, build_route_table

logger = logging.getLogger("wayfinder.routing")


class Matcher:
    """Compiled route table plus the resolution rules around it.

    Usage::

        matcher = Matcher([RouteConfig("/params/:name", component=Params)])
        route = matcher.match("/params/42")
        route.params        # {"name": "42"}
    """

    __slots__ = ("config", "table")

    def __init__(
        self,
        routes: Iterable[RouteConfig | Mapping[str, Any]] = (),
        config: RouterConfig | None = None,
    ) -> None:
        self.config = config or RouterConfig()
        self.table: RouteTable = build_route_table(routes, debug=self.config.debug)

    def add_routes(self, routes: Iterable[RouteConfig | Mapping[str, Any]]) -> None:
        """Extend the table. Already-resolved routes are unaffected."""
        build_route_table(routes, self.table, debug=self.config.debug)

    def match(
        self,
        raw: RawLocation,
        current: Route | None = None,
        redirected_from: Location | None = None,
    ) -> Route:
        """Resolve *raw* relative to *current* into a ``Route``."""
        return self._match(raw, current, redirected_from, 0)

    def _match(
        self,
        raw: RawLocation,
        current: Route | None,
        redirected_from: Location | None,
        depth: int,
    ) -> Route:
        location = normalize_location(raw, current, False, self.config.parse_query)

        if location.name:
            record = self.table.name_map.get(location.name)
            if record is None:
                logger.warning("Route with name '%s' does not exist", location.name)
                return self._create_route(None, location, None, depth)

            required = record.pattern.required_params
            if not isinstance(location.params, dict):
                location.params = {}

            if current is not None:
                for key, value in current.params.items():
                    if key not in location.params and key in required:
                        location.params[key] = value

            location.path = fill_params(record.path, location.params)
            location.params = _stringify_params(location.params)
            return self._create_route(record, location, redirected_from, depth)

        if location.path:
            for path in self.table.path_list:
                record = self.table.path_map[path]
                params = record.pattern.match(location.path)
                if params is not None:
                    location.params = params
                    return self._create_route(record, location, redirected_from, depth)

        # no match
        return self._create_route(None, location, None, depth)

    def _create_route(
        self,
        record: RouteRecord | None,
        location: Location,
        redirected_from: Location | None,
        depth: int,
    ) -> Route:
        if record is not None and (record.redirect or record.match_as):
            if depth >= self.config.max_redirects:
                logger.error(
                    "Redirect/alias chain through %r exceeded %d steps; treating as no match",
                    record.path,
                    self.config.max_redirects,
                )
                return self._route(None, location)
            if record.redirect:
                return self._redirect(record, redirected_from or location, depth + 1)
            return self._alias(record, location, record.match_as, depth + 1)  # type: ignore[arg-type]
        return self._route(record, location, redirected_from)

    def _route(
        self,
        record: RouteRecord | None,
        location: Location,
        redirected_from: Location | None = None,
    ) -> Route:
        return create_route(record, location, redirected_from, self.config.stringify_query)

    def _redirect(self, record: RouteRecord, location: Location, depth: int) -> Route:
        target = record.redirect
        if callable(target):
            target = target(self._route(record, location))

        redirect = _redirect_fields(target)
        if redirect is None:
            logger.warning("invalid redirect option: %r", target)
            return self._route(None, location)

        # The redirect target is the source of truth for what it declares.
        query = redirect["query"] if "query" in redirect else location.query
        hash = redirect["hash"] if "hash" in redirect else location.hash
        params = redirect["params"] if "params" in redirect else location.params
        name = redirect.get("name")
        path = redirect.get("path")

        if name:
            if name not in self.table.name_map:
                logger.warning('redirect failed: named route "%s" not found.', name)
            return self._match(
                Location(
                    name=name,
                    query=query,
                    hash=hash,
                    params=dict(params) if params is not None else None,
                    normalized=True,
                ),
                None,
                location,
                depth,
            )

        if path:
            raw_path = resolve_path(path, record.parent.path if record.parent else "/", True)
            resolved = fill_params(raw_path, params)
            return self._match(
                Location(path=resolved, query=query, hash=hash, normalized=True),
                None,
                location,
                depth,
            )

        logger.warning("invalid redirect option: %r", target)
        return self._route(None, location)

    def _alias(self, record: RouteRecord, location: Location, match_as: str, depth: int) -> Route:
        aliased_path = fill_params(match_as, location.params)
        aliased = self._match(Location(path=aliased_path, normalized=True), None, None, depth)
        if aliased.matched:
            aliased_record = aliased.matched[-1]
            location.params = dict(aliased.params)
            return self._create_route(aliased_record, location, None, depth)
        return self._route(None, location)


def _redirect_fields(target: Any) -> dict[str, Any] | None:
    """Return the fields a redirect target declares, or ``None`` if unusable."""
    if isinstance(target, str):
        return {"path": target}
    if isinstance(target, Location):
        declared = {
            f.name: getattr(target, f.name)
            for f in dataclasses.fields(target)
            if f.name in ("path", "name", "params", "query", "hash")
        }
        return {key: value for key, value in declared.items() if value is not None}
    if isinstance(target, Mapping):
        return dict(target)
    return None


def _stringify_params(params: Mapping[str, Any]) -> dict[str, Any]:
    """Coerce filled param values to the string form a path match yields.

    Lists (repeat params) are converted element-wise; unset optionals are dropped.
    """
    return {
        key: [str(item) for item in value] if isinstance(value, (list, tuple)) else str(value)
        for key, value in params.items()
        if value is not None
    }
