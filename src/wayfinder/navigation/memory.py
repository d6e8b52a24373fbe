"""In-memory history backend.

Keeps its own stack of committed routes instead of talking to a URL bar.
Used outside of any browser-like host and in tests.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from wayfinder.errors import NavigationFailureType, is_navigation_failure
from wayfinder.navigation.history import History, OnAbort, OnComplete
from wayfinder.routing.route import RawLocation, Route

if TYPE_CHECKING:
    from wayfinder.router import Router


class MemoryHistory(History):
    """History backed by a list of routes and a cursor."""

    def __init__(self, router: Router, base: str | None = None) -> None:
        super().__init__(router, base)
        self.stack: list[Route] = []
        self.index = -1

    async def push(
        self,
        location: RawLocation,
        on_complete: OnComplete | None = None,
        on_abort: OnAbort | None = None,
    ) -> None:
        def complete(route: Route) -> None:
            self.stack = [*self.stack[: self.index + 1], route]
            self.index += 1
            if on_complete is not None:
                on_complete(route)

        await self.transition_to(location, complete, on_abort)

    async def replace(
        self,
        location: RawLocation,
        on_complete: OnComplete | None = None,
        on_abort: OnAbort | None = None,
    ) -> None:
        def complete(route: Route) -> None:
            if self.index < 0:
                self.stack = [route]
                self.index = 0
            else:
                self.stack = [*self.stack[: self.index], route]
            if on_complete is not None:
                on_complete(route)

        await self.transition_to(location, complete, on_abort)

    async def go(self, n: int) -> None:
        target = self.index + n
        if target < 0 or target >= len(self.stack):
            return
        route = self.stack[target]

        def complete(route: Route) -> None:
            prev = self.current
            self.index = target
            self.update_route(route)
            for hook in list(self.router.after_hooks):
                hook(route, prev)

        def fail(err: BaseException) -> None:
            if is_navigation_failure(err, NavigationFailureType.DUPLICATED):
                self.index = target

        await self.confirm_transition(route, complete, fail)

    def get_current_location(self) -> str:
        return self.stack[self.index].full_path if self.index >= 0 else "/"

    def ensure_url(self, push: bool = False) -> None:
        """Nothing to reconcile: the stack is the URL."""
