"""Transition engine.

``History`` owns the ``current`` and ``pending`` routes and drives every
navigation through the guard pipeline::

    leave guards (deepest first)
    -> global before hooks
    -> update guards (shallowest first)
    -> per-record before_enter
    -> lazy component resolution
    -> enter guards
    -> global resolve hooks
    -> commit, after hooks, instance callbacks

Guards run strictly one after another. A navigation started while
another is pending supersedes it: the stale one notices before its next
guard (or before committing) and aborts as cancelled.

Concrete backends subclass ``History`` and implement the URL side:
``push``, ``replace``, ``go``, ``ensure_url`` and ``get_current_location``.

Guards and lazy loaders are awaited through anyio, but post-commit
instance pollers are asyncio tasks (as is the route event bus), so the
engine runs on the asyncio backend only.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

import anyio

from wayfinder._internal.types import Guard
from wayfinder.errors import NavigationFailure, is_navigation_failure
from wayfinder.navigation.guards import (
    extract_enter_guards,
    extract_leave_guards,
    extract_update_hooks,
    resolve_async_components,
    resolve_queue,
)
from wayfinder.routing.route import START, Location, RawLocation, Route, is_same_route

if TYPE_CHECKING:
    from wayfinder.router import Router

logger = logging.getLogger("wayfinder.navigation")

OnComplete = Callable[[Route], Any]
OnAbort = Callable[[BaseException], Any]


class _Abort(Exception):
    """Stops the guard pipeline. Never escapes ``confirm_transition``."""

    def __init__(self, reason: BaseException, redirect: RawLocation | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.redirect = redirect


def normalize_base(base: str | None) -> str:
    """Return *base* with a leading slash and no trailing slash."""
    base = base or "/"
    if not base.startswith("/"):
        base = "/" + base
    return base.rstrip("/")


def _is_redirect(to: Any) -> bool:
    if isinstance(to, str):
        return True
    if isinstance(to, Location):
        return to.path is not None or to.name is not None
    if isinstance(to, Mapping):
        return isinstance(to.get("path"), str) or isinstance(to.get("name"), str)
    return False


def _wants_replace(to: RawLocation) -> bool:
    if isinstance(to, Location):
        return to.replace
    if isinstance(to, Mapping):
        return bool(to.get("replace"))
    return False


class History(ABC):
    """Navigation state machine shared by all history backends."""

    def __init__(self, router: Router, base: str | None = None) -> None:
        self.router = router
        self.base = normalize_base(base)
        # start with a route that stands for "nowhere"
        self.current: Route = START
        self.pending: Route | None = None
        self.ready = False
        self.listeners: list[Callable[[], Any]] = []
        self._cb: Callable[[Route], Any] | None = None
        self._ready_cbs: list[Callable[[Route], Any]] = []
        self._ready_error_cbs: list[Callable[[BaseException], Any]] = []
        self._error_cbs: list[Callable[[BaseException], Any]] = []
        self._pollers: set[asyncio.Task[None]] = set()

    # -- Backend interface --

    @abstractmethod
    async def push(
        self,
        location: RawLocation,
        on_complete: OnComplete | None = None,
        on_abort: OnAbort | None = None,
    ) -> None: ...

    @abstractmethod
    async def replace(
        self,
        location: RawLocation,
        on_complete: OnComplete | None = None,
        on_abort: OnAbort | None = None,
    ) -> None: ...

    @abstractmethod
    async def go(self, n: int) -> None: ...

    @abstractmethod
    def ensure_url(self, push: bool = False) -> None:
        """Reconcile the externally visible URL with ``current``."""

    @abstractmethod
    def get_current_location(self) -> str: ...

    def setup_listeners(self) -> None:
        """Subscribe to external navigation events. No-op by default."""

    def teardown_listeners(self) -> None:
        for cleanup in self.listeners:
            cleanup()
        self.listeners = []
        for task in list(self._pollers):
            task.cancel()

    # -- Callbacks --

    def listen(self, cb: Callable[[Route], Any]) -> None:
        """Set the callback that receives every committed route."""
        self._cb = cb

    def on_ready(
        self,
        cb: Callable[[Route], Any],
        error_cb: Callable[[BaseException], Any] | None = None,
    ) -> None:
        if self.ready:
            cb(self.current)
            return
        self._ready_cbs.append(cb)
        if error_cb is not None:
            self._ready_error_cbs.append(error_cb)

    def on_error(self, error_cb: Callable[[BaseException], Any]) -> None:
        self._error_cbs.append(error_cb)

    # -- Navigation --

    async def transition_to(
        self,
        location: RawLocation,
        on_complete: OnComplete | None = None,
        on_abort: OnAbort | None = None,
    ) -> None:
        """Resolve *location* and run it through the guard pipeline."""
        try:
            route = self.router.match(location, self.current)
        except Exception as exc:
            for cb in self._error_cbs:
                cb(exc)
            self._fail_ready(exc)
            raise

        def complete(route: Route) -> None:
            prev = self.current
            self.update_route(route)
            if on_complete is not None:
                on_complete(route)
            self.ensure_url()
            for hook in list(self.router.after_hooks):
                hook(route, prev)

            # fire ready cbs once
            if not self.ready:
                self.ready = True
                for cb in self._ready_cbs:
                    cb(route)
                self._ready_cbs.clear()

        def fail(err: BaseException) -> None:
            if on_abort is not None:
                on_abort(err)
            self._fail_ready(err)

        await self.confirm_transition(route, complete, fail)

    def _fail_ready(self, err: BaseException) -> None:
        """Settle the one-shot ready state with *err* if nothing settled it yet."""
        if self.ready:
            return
        self.ready = True
        for cb in self._ready_error_cbs:
            cb(err)
        self._ready_error_cbs.clear()

    async def confirm_transition(
        self,
        route: Route,
        on_complete: OnComplete,
        on_abort: OnAbort | None = None,
    ) -> None:
        current = self.current

        def abort(err: BaseException) -> None:
            if not is_navigation_failure(err):
                if self._error_cbs:
                    for cb in self._error_cbs:
                        cb(err)
                else:
                    logger.error("uncaught error during route navigation:", exc_info=err)
            if on_abort is not None:
                on_abort(err)

        # the table may have been extended since current was resolved
        if is_same_route(route, current) and len(route.matched) == len(current.matched):
            self.ensure_url()
            abort(NavigationFailure.duplicated(current, route))
            return

        updated, activated, deactivated = resolve_queue(current.matched, route.matched)

        queue: list[Guard | None] = [
            *extract_leave_guards(deactivated),
            *self.router.before_hooks,
            *extract_update_hooks(updated),
            *(record.before_enter for record in activated),
            resolve_async_components(activated),
        ]

        self.pending = route
        post_enter: list[Callable[[], Any]] = []

        try:
            await self._run_queue(queue, route, current)
            # enter guards are extracted only once lazy components are resolved
            enter_guards = extract_enter_guards(
                activated,
                post_enter,
                lambda: self.current is route,
                self.router.config.poll_interval,
            )
            await self._run_queue([*enter_guards, *self.router.resolve_hooks], route, current)
        except _Abort as stop:
            abort(stop.reason)
            if stop.redirect is not None:
                if _wants_replace(stop.redirect):
                    await self.replace(stop.redirect)
                else:
                    await self.push(stop.redirect)
            return

        if self.pending is not route:
            abort(NavigationFailure.cancelled(current, route))
            return

        self.pending = None
        on_complete(route)
        self._flush_post_enter(post_enter)

    def update_route(self, route: Route) -> None:
        self.current = route
        if self._cb is not None:
            self._cb(route)

    # -- Pipeline --

    async def _run_queue(
        self,
        queue: Sequence[Guard | None],
        route: Route,
        current: Route,
    ) -> None:
        for guard in queue:
            if guard is None:
                continue
            if self.pending is not route:
                raise _Abort(NavigationFailure.cancelled(current, route))

            try:
                to = await self._call_guard(guard, route, current)
            except Exception as exc:
                raise _Abort(exc) from exc

            if to is False:
                # next(False): stay where we are
                self.ensure_url(True)
                raise _Abort(NavigationFailure.aborted(current, route))
            if isinstance(to, BaseException):
                self.ensure_url(True)
                raise _Abort(to)
            if _is_redirect(to):
                raise _Abort(NavigationFailure.redirected(current, route), redirect=to)

    async def _call_guard(self, guard: Guard, route: Route, current: Route) -> Any:
        """Invoke *guard* and wait for its first ``next`` call."""
        decided = anyio.Event()
        outcome: list[Any] = []

        def next_(to: Any = None) -> None:
            if decided.is_set():
                logger.debug("next() called more than once by %r; ignored", guard)
                return
            outcome.append(to)
            decided.set()

        result = guard(route, current, next_)
        if inspect.isawaitable(result):
            await result
        await decided.wait()
        return outcome[0]

    def _flush_post_enter(self, callbacks: list[Callable[[], Any]]) -> None:
        if not callbacks:
            return
        for start in callbacks:
            task = asyncio.create_task(start())
            self._pollers.add(task)
            task.add_done_callback(self._poller_done)

    def _poller_done(self, task: asyncio.Task[None]) -> None:
        self._pollers.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("instance callback failed after navigation", exc_info=exc)
