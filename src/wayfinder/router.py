"""Router: the application-facing object.

Owns the matcher, the global hooks and one history backend. One router
is built per application and handed to whatever needs it; there is no
module-level state.
"""

from collections.abc import AsyncIterator, Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from wayfinder._internal.types import AfterHook, Guard
from wayfinder.config import RouterConfig
from wayfinder.errors import NavigationFailure, is_navigation_failure
from wayfinder.navigation.events import RouteEventBus
from wayfinder.navigation.history import History
from wayfinder.navigation.memory import MemoryHistory
from wayfinder.routing.location import normalize_location
from wayfinder.routing.matcher import Matcher
from wayfinder.routing.path import clean_path
from wayfinder.routing.route import Location, RawLocation, Route, RouteConfig, get_full_path


@dataclass(frozen=True, slots=True)
class Resolved:
    """Result of ``Router.resolve()``."""

    location: Location
    route: Route
    href: str


def _register_hook(hooks: list[Any], fn: Any) -> Callable[[], None]:
    hooks.append(fn)

    def unregister() -> None:
        if fn in hooks:
            hooks.remove(fn)

    return unregister


class Router:
    """Route table, global guards and navigation entry points.

    Usage::

        router = Router([
            RouteConfig("/", component=Home),
            RouteConfig("/params/:name", component=Params),
            RouteConfig("*", component=NotFound),
        ])

        def auth(to, from_, next):
            next()

        router.before_each(auth)

        await router.start()
        failure = await router.push("/params/42")
    """

    __slots__ = (
        "_events",
        "after_hooks",
        "before_hooks",
        "config",
        "history",
        "matcher",
        "resolve_hooks",
    )

    def __init__(
        self,
        routes: Iterable[RouteConfig | Mapping[str, Any]] = (),
        config: RouterConfig | None = None,
        *,
        history: Callable[..., History] = MemoryHistory,
    ) -> None:
        self.config: RouterConfig = config or RouterConfig()
        self.matcher = Matcher(routes, self.config)
        self.before_hooks: list[Guard] = []
        self.resolve_hooks: list[Guard] = []
        self.after_hooks: list[AfterHook] = []
        self._events = RouteEventBus()
        self.history: History = history(self, self.config.base)
        self.history.listen(self._events.publish)

    # -- Matching --

    def match(
        self,
        raw: RawLocation,
        current: Route | None = None,
        redirected_from: Location | None = None,
    ) -> Route:
        return self.matcher.match(raw, current, redirected_from)

    def add_routes(self, routes: Iterable[RouteConfig | Mapping[str, Any]]) -> None:
        """Extend the route table. Routes are never removed."""
        self.matcher.add_routes(routes)

    def resolve(
        self,
        to: RawLocation,
        current: Route | None = None,
        append: bool = False,
    ) -> Resolved:
        """Resolve *to* without navigating, including its href."""
        current = current or self.history.current
        location = normalize_location(to, current, append, self.config.parse_query)
        route = self.match(location, current)
        if route.redirected_from is not None:
            full_path = get_full_path(route.redirected_from, self.config.stringify_query)
        else:
            full_path = route.full_path
        href = clean_path(f"{self.history.base}/{full_path}") if self.history.base else full_path
        return Resolved(location=location, route=route, href=href)

    def get_matched_components(self, to: RawLocation | Route | None = None) -> list[Any]:
        """Components of every view along the matched chain of *to* (default: current)."""
        if to is None:
            route = self.history.current
        elif isinstance(to, Route):
            route = to
        else:
            route = self.resolve(to).route
        return [
            component
            for record in route.matched
            for component in record.components.values()
        ]

    @property
    def current_route(self) -> Route:
        return self.history.current

    # -- Hooks --

    def before_each(self, guard: Guard) -> Callable[[], None]:
        """Register a global guard run before per-record guards."""
        return _register_hook(self.before_hooks, guard)

    def before_resolve(self, guard: Guard) -> Callable[[], None]:
        """Register a global guard run after enter guards, just before commit."""
        return _register_hook(self.resolve_hooks, guard)

    def after_each(self, hook: AfterHook) -> Callable[[], None]:
        """Register a ``(to, from_)`` hook run after every commit."""
        return _register_hook(self.after_hooks, hook)

    def on_ready(
        self,
        cb: Callable[[Route], Any],
        error_cb: Callable[[BaseException], Any] | None = None,
    ) -> None:
        self.history.on_ready(cb, error_cb)

    def on_error(self, error_cb: Callable[[BaseException], Any]) -> None:
        self.history.on_error(error_cb)

    # -- Navigation --

    async def start(self) -> None:
        """Navigate to the backend's current location and start listening."""
        self.history.setup_listeners()
        await self.history.transition_to(self.history.get_current_location())

    async def push(
        self,
        location: RawLocation,
        on_complete: Callable[[Route], Any] | None = None,
        on_abort: Callable[[BaseException], Any] | None = None,
    ) -> NavigationFailure | None:
        """Navigate to *location*, adding a history entry.

        Returns the ``NavigationFailure`` when the navigation did not
        commit, ``None`` when it did. Unexpected guard errors are re-raised
        unless *on_abort* is given.
        """
        outcome: list[BaseException] = []
        await self.history.push(location, on_complete, self._collect(outcome, on_abort))
        return self._settle(outcome, on_abort)

    async def replace(
        self,
        location: RawLocation,
        on_complete: Callable[[Route], Any] | None = None,
        on_abort: Callable[[BaseException], Any] | None = None,
    ) -> NavigationFailure | None:
        """Like ``push()``, but replaces the current history entry."""
        outcome: list[BaseException] = []
        await self.history.replace(location, on_complete, self._collect(outcome, on_abort))
        return self._settle(outcome, on_abort)

    async def go(self, n: int) -> None:
        await self.history.go(n)

    async def back(self) -> None:
        await self.go(-1)

    async def forward(self) -> None:
        await self.go(1)

    # -- Route change propagation --

    def subscribe(self) -> AsyncIterator[Route]:
        """Async iterator over every committed route."""
        return self._events.subscribe()

    def listen(self, cb: Callable[[Route], Any]) -> Callable[[], None]:
        """Call *cb* with every committed route. Returns an unsubscribe callable."""
        return self._events.listen(cb)

    def close(self) -> None:
        """Stop listeners, pending instance polls and subscribers."""
        self.history.teardown_listeners()
        self._events.close()

    @staticmethod
    def _collect(
        outcome: list[BaseException],
        on_abort: Callable[[BaseException], Any] | None,
    ) -> Callable[[BaseException], None]:
        def aborted(err: BaseException) -> None:
            outcome.append(err)
            if on_abort is not None:
                on_abort(err)

        return aborted

    @staticmethod
    def _settle(
        outcome: list[BaseException],
        on_abort: Callable[[BaseException], Any] | None,
    ) -> NavigationFailure | None:
        if not outcome:
            return None
        err = outcome[0]
        if is_navigation_failure(err):
            return err  # type: ignore[return-value]
        if on_abort is None:
            raise err
        return None
