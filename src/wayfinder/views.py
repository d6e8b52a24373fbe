"""Rendering boundary.

The router never renders. A UI integration uses these helpers to pick
the component for a view at a given depth, to register the instance it
mounted for that view, and to compute the props a view receives.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from wayfinder.routing.route import DEFAULT_VIEW, Route, RouteRecord

logger = logging.getLogger("wayfinder.views")


@dataclass(frozen=True, slots=True)
class LazyComponent:
    """A component resolved on first navigation to its record.

    *loader* returns the component, or an awaitable of it.
    """

    loader: Callable[[], Any | Awaitable[Any]]


def lazy(loader: Callable[[], Any | Awaitable[Any]]) -> LazyComponent:
    """Mark *loader* as a lazily resolved component::

        RouteConfig("/reports", component=lazy(load_reports_view))
    """
    return LazyComponent(loader)


def matched_component(route: Route, depth: int, view: str = DEFAULT_VIEW) -> Any:
    """Return the component to render for *view* at nesting *depth*, or ``None``."""
    if depth >= len(route.matched):
        return None
    return route.matched[depth].components.get(view)


def register_route_instance(
    record: RouteRecord,
    view: str,
    instance: Any,
    value: Any = None,
) -> None:
    """Register or unregister the UI instance mounted for *record*'s *view*.

    Call with ``value=instance`` on mount and ``value=None`` on unmount.
    Unmounting only clears the slot if *instance* still owns it.
    """
    current = record.instances.get(view)
    if value is not None and current is not instance:
        record.instances[view] = value
    elif value is None and current is instance:
        record.instances.pop(view, None)


def resolve_props(route: Route, config: Any) -> dict[str, Any] | None:
    """Resolve a record's props spec for one view.

    ``True`` passes the route params, a mapping is passed as-is, a
    callable is called with the route. ``None`` and ``False`` pass nothing.
    """
    if config is None or config is False:
        return None
    if config is True:
        return dict(route.params)
    if callable(config):
        return config(route)
    if isinstance(config, dict):
        return config
    logger.warning(
        'props in "%s" is a %s, expecting a mapping, callable or bool.',
        route.path,
        type(config).__name__,
    )
    return None
