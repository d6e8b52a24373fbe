"""Route data model.

``RouteConfig`` is what applications author. ``RouteRecord`` is the
compiled, static node built from it. ``Location`` is a normalized
navigation intent and ``Route`` the resolved, immutable result of
matching one.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeAlias

from wayfinder.routing.pattern import PathOptions, PathPattern
from wayfinder.routing.query import stringify_query as default_stringify_query

# The view a record renders when no name is given
DEFAULT_VIEW = "default"


@dataclass(frozen=True, slots=True)
class RouteConfig:
    """A route as authored by the application.

    ``component`` is shorthand for ``components={"default": component}``.
    Component references are opaque to the router; wrap a loader in
    ``wayfinder.lazy()`` to resolve it during navigation.
    """

    path: str
    component: Any = None
    components: Mapping[str, Any] | None = None
    name: str | None = None
    children: Sequence[RouteConfig | Mapping[str, Any]] = ()
    redirect: str | Mapping[str, Any] | Location | Callable[[Route], Any] | None = None
    alias: str | Sequence[str] | None = None
    before_enter: Callable[..., Any] | None = None
    meta: Mapping[str, Any] | None = None
    props: bool | Mapping[str, Any] | Callable[[Route], Any] | None = None
    case_sensitive: bool | None = None
    path_options: PathOptions | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> RouteConfig:
        """Build a config from a plain mapping. Unknown keys are ignored."""
        known = {name: data[name] for name in cls.__dataclass_fields__ if name in data}
        return cls(**known)


@dataclass(frozen=True, slots=True, eq=False)
class RouteRecord:
    """A compiled route. Compared by identity.

    Immutable once built except for ``instances`` (written by the
    rendering layer) and ``components`` (lazy entries are replaced by
    their resolved component during navigation).
    """

    path: str
    pattern: PathPattern
    components: dict[str, Any]
    instances: dict[str, Any] = field(default_factory=dict)
    name: str | None = None
    parent: RouteRecord | None = None
    match_as: str | None = None
    redirect: Any = None
    before_enter: Callable[..., Any] | None = None
    meta: Mapping[str, Any] = field(default_factory=dict)
    props: Mapping[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        return f"RouteRecord(path={self.path!r}, name={self.name!r})"


@dataclass(slots=True)
class Location:
    """A navigation target.

    ``normalized`` marks a location that already went through
    ``normalize_location`` so it is passed through untouched.
    """

    path: str | None = None
    name: str | None = None
    params: dict[str, Any] | None = None
    query: dict[str, Any] | None = None
    hash: str | None = None
    append: bool = False
    replace: bool = False
    normalized: bool = False

    @classmethod
    def from_raw(cls, raw: RawLocation) -> Location:
        """Coerce a string, mapping or ``Location`` into a ``Location``."""
        if isinstance(raw, Location):
            return raw
        if isinstance(raw, str):
            return cls(path=raw)
        known = {name: raw[name] for name in cls.__dataclass_fields__ if name in raw}
        return cls(**known)


RawLocation: TypeAlias = str | Location | Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class Route:
    """The resolved result of matching a location."""

    path: str
    full_path: str
    hash: str = ""
    query: dict[str, Any] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)
    name: str | None = None
    meta: Mapping[str, Any] = field(default_factory=dict)
    matched: tuple[RouteRecord, ...] = ()
    redirected_from: Location | None = None


def format_match(record: RouteRecord | None) -> tuple[RouteRecord, ...]:
    """Return the chain of records from the root down to *record*."""
    chain: list[RouteRecord] = []
    while record is not None:
        chain.insert(0, record)
        record = record.parent
    return tuple(chain)


def get_full_path(
    location: Location,
    stringify: Callable[[Mapping[str, Any]], str] | None = None,
) -> str:
    """Return ``path + ?query + #hash`` for *location*."""
    stringify = stringify or default_stringify_query
    return (location.path or "/") + stringify(location.query or {}) + (location.hash or "")


def create_route(
    record: RouteRecord | None,
    location: Location,
    redirected_from: Location | None = None,
    stringify: Callable[[Mapping[str, Any]], str] | None = None,
) -> Route:
    """Build a ``Route`` for *record* (``None`` for no match) from *location*."""
    return Route(
        name=location.name or (record.name if record else None),
        meta=record.meta if record else {},
        path=location.path or "/",
        hash=location.hash or "",
        query=copy.deepcopy(location.query or {}),
        params=dict(location.params or {}),
        full_path=get_full_path(location, stringify),
        matched=format_match(record),
        redirected_from=redirected_from,
    )


# "Nowhere": the current route before the first navigation completes.
START = create_route(None, Location(path="/"))


def is_same_route(a: Route, b: Route | None) -> bool:
    """Return True when *a* and *b* point at the same location."""
    if b is START:
        return a is b
    if b is None:
        return False
    if a.path and b.path:
        return (
            a.path.rstrip("/") == b.path.rstrip("/")
            and a.hash == b.hash
            and is_object_equal(a.query, b.query)
        )
    if a.name and b.name:
        return (
            a.name == b.name
            and a.hash == b.hash
            and is_object_equal(a.query, b.query)
            and is_object_equal(a.params, b.params)
        )
    return False


def is_object_equal(a: Mapping[str, Any] | None, b: Mapping[str, Any] | None) -> bool:
    """Compare two mappings by keys and values, recursively.

    ``None`` only equals ``None``; lists compare element-wise; any other
    pair of values compares by string form, so ``1`` equals ``"1"``.
    """
    a = a or {}
    b = b or {}
    if a.keys() != b.keys():
        return False
    return all(_is_value_equal(value, b[key]) for key, value in a.items())


def _is_value_equal(a: Any, b: Any) -> bool:
    if a is None or b is None:
        return a is b
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        return is_object_equal(a, b)
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        return len(a) == len(b) and all(_is_value_equal(x, y) for x, y in zip(a, b, strict=True))
    return str(a) == str(b)
