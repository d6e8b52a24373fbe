"""Wayfinder exception hierarchy.

Shared across the matcher, the route table builder, and the transition
engine so every module raises and catches the same types.

Navigation failures are *expected* outcomes (duplicate, cancelled,
redirected, aborted). They are handed to abort callbacks, never raised
out of the engine.
"""

from __future__ import annotations

from enum import IntFlag
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from wayfinder.routing.route import Route


class WayfinderError(Exception):
    """Base for all wayfinder-specific errors."""


class ConfigurationError(WayfinderError):
    """Raised when a route configuration is invalid.

    Only raised when ``RouterConfig.debug`` is set. Otherwise the problem
    is logged and the table is built on a best-effort basis.
    """


class ParamError(WayfinderError):
    """A path pattern could not be filled with the given params."""


class MissingParamError(ParamError):
    """A required path parameter was not supplied."""

    def __init__(self, param: str, path: str) -> None:
        self.param = param
        self.path = path
        super().__init__(f'Expected "{param}" to be defined (path "{path}")')


class NavigationFailureType(IntFlag):
    """Kinds of non-fatal navigation outcomes."""

    REDIRECTED = 2
    ABORTED = 4
    CANCELLED = 8
    DUPLICATED = 16


class NavigationFailure(WayfinderError):
    """A navigation that ended without committing, for an expected reason."""

    def __init__(
        self,
        type: NavigationFailureType,
        from_route: Route,
        to_route: Route,
        message: str,
    ) -> None:
        self.type = type
        self.from_route = from_route
        self.to_route = to_route
        super().__init__(message)

    @classmethod
    def redirected(cls, from_route: Route, to_route: Route) -> NavigationFailure:
        return cls(
            NavigationFailureType.REDIRECTED,
            from_route,
            to_route,
            f'Redirected when going from "{from_route.full_path}" to '
            f'"{to_route.full_path}" via a navigation guard.',
        )

    @classmethod
    def duplicated(cls, from_route: Route, to_route: Route) -> NavigationFailure:
        return cls(
            NavigationFailureType.DUPLICATED,
            from_route,
            to_route,
            f'Avoided redundant navigation to current location: "{from_route.full_path}".',
        )

    @classmethod
    def cancelled(cls, from_route: Route, to_route: Route) -> NavigationFailure:
        return cls(
            NavigationFailureType.CANCELLED,
            from_route,
            to_route,
            f'Navigation cancelled from "{from_route.full_path}" to '
            f'"{to_route.full_path}" with a new navigation.',
        )

    @classmethod
    def aborted(cls, from_route: Route, to_route: Route) -> NavigationFailure:
        return cls(
            NavigationFailureType.ABORTED,
            from_route,
            to_route,
            f'Navigation aborted from "{from_route.full_path}" to '
            f'"{to_route.full_path}" via a navigation guard.',
        )


def is_navigation_failure(err: Any, type: NavigationFailureType | None = None) -> bool:
    """Return True if *err* is a navigation failure, optionally of *type*."""
    if not isinstance(err, NavigationFailure):
        return False
    return type is None or bool(err.type & type)
