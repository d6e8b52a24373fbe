"""Guard extraction and the helpers the transition engine schedules.

In-component guards live on component definitions as attributes:

- ``before_route_leave(self, to, from_, next)``: instance method, runs
  when the component's record is deactivated
- ``before_route_update(self, to, from_, next)``: instance method, runs
  when the record stays matched but the route changes
- ``before_route_enter(to, from_, next)``: static or class method, runs
  before the record is activated (there is no instance yet)

Leave and update guards only run for views with a registered instance.
An enter guard may pass a callable to ``next``; it is called with the
view's instance once that instance registers after the commit.
"""

import functools
import inspect
import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any

import anyio

from wayfinder._internal.types import Guard, Next
from wayfinder.routing.route import Route, RouteRecord
from wayfinder.views import LazyComponent

logger = logging.getLogger("wayfinder.navigation")

LEAVE_HOOK = "before_route_leave"
UPDATE_HOOK = "before_route_update"
ENTER_HOOK = "before_route_enter"


def resolve_queue(
    current: Sequence[RouteRecord],
    target: Sequence[RouteRecord],
) -> tuple[list[RouteRecord], list[RouteRecord], list[RouteRecord]]:
    """Split two matched chains at their first difference.

    Returns ``(updated, activated, deactivated)``: the shared prefix, the
    target's remainder and the current chain's remainder.
    """
    i = 0
    for i in range(max(len(current), len(target)) + 1):
        if i >= len(current) or i >= len(target) or current[i] is not target[i]:
            break
    return list(target[:i]), list(target[i:]), list(current[i:])


def _flat_map_components(
    records: Iterable[RouteRecord],
    fn: Callable[[Any, Any, RouteRecord, str], Guard | None],
) -> list[Guard | None]:
    return [
        fn(component, record.instances.get(view), record, view)
        for record in records
        for view, component in record.components.items()
    ]


def _extract_guards(
    records: Iterable[RouteRecord],
    hook: str,
    bind: Callable[[Guard, Any, RouteRecord, str], Guard | None],
    reverse: bool = False,
) -> list[Guard]:
    def extract(definition: Any, instance: Any, record: RouteRecord, view: str) -> Guard | None:
        guard = getattr(definition, hook, None)
        if guard is None:
            return None
        return bind(guard, instance, record, view)

    guards = _flat_map_components(records, extract)
    if reverse:
        guards.reverse()
    return [guard for guard in guards if guard is not None]


def _bind_instance_guard(hook: str) -> Callable[[Guard, Any, RouteRecord, str], Guard | None]:
    def bind(guard: Guard, instance: Any, record: RouteRecord, view: str) -> Guard | None:
        if instance is None:
            return None
        bound = getattr(instance, hook, None)
        if bound is None:
            return functools.partial(guard, instance)
        return bound

    return bind


def extract_leave_guards(deactivated: Sequence[RouteRecord]) -> list[Guard]:
    """Leave guards of *deactivated*, deepest record first."""
    return _extract_guards(deactivated, LEAVE_HOOK, _bind_instance_guard(LEAVE_HOOK), reverse=True)


def extract_update_hooks(updated: Sequence[RouteRecord]) -> list[Guard]:
    """Update guards of *updated*, shallowest record first."""
    return _extract_guards(updated, UPDATE_HOOK, _bind_instance_guard(UPDATE_HOOK))


def extract_enter_guards(
    activated: Sequence[RouteRecord],
    post_enter: list[Callable[[], Any]],
    is_valid: Callable[[], bool],
    poll_interval: float,
) -> list[Guard]:
    """Enter guards of *activated*.

    Instance callbacks they pass to ``next`` are queued on *post_enter*
    as coroutine factories that poll for the instance.
    """

    def bind(guard: Guard, instance: Any, record: RouteRecord, view: str) -> Guard:
        return _bind_enter_guard(guard, record, view, post_enter, is_valid, poll_interval)

    return _extract_guards(activated, ENTER_HOOK, bind)


def _bind_enter_guard(
    guard: Guard,
    record: RouteRecord,
    view: str,
    post_enter: list[Callable[[], Any]],
    is_valid: Callable[[], bool],
    poll_interval: float,
) -> Guard:
    def route_enter_guard(to: Route, from_: Route, next_: Next) -> Any:
        def enter_next(callback: Any = None) -> None:
            if callable(callback):
                post_enter.append(
                    functools.partial(
                        poll, callback, record.instances, view, is_valid, poll_interval
                    )
                )
            next_(callback)

        return guard(to, from_, enter_next)

    return route_enter_guard


async def poll(
    callback: Callable[[Any], Any],
    instances: dict[str, Any],
    view: str,
    is_valid: Callable[[], bool],
    interval: float,
) -> None:
    """Call *callback* with the instance for *view* once it registers.

    Gives up as soon as *is_valid* reports the route is no longer current.
    Instances flagged ``is_being_destroyed`` are skipped.
    """
    while True:
        instance = instances.get(view)
        if instance is not None and not getattr(instance, "is_being_destroyed", False):
            callback(instance)
            return
        if not is_valid():
            return
        await anyio.sleep(interval)


def resolve_async_components(matched: Sequence[RouteRecord]) -> Guard:
    """Return a guard that resolves every ``LazyComponent`` in *matched*.

    Loaders run concurrently. Each resolved component replaces its
    wrapper in the record. The first failure is passed to ``next``.
    """

    async def resolve_components(to: Route, from_: Route, next_: Next) -> None:
        pending = [
            (record, view, component)
            for record in matched
            for view, component in record.components.items()
            if isinstance(component, LazyComponent)
        ]
        if not pending:
            next_()
            return

        errors: list[Exception] = []

        async def _load(record: RouteRecord, view: str, component: LazyComponent) -> None:
            try:
                resolved = component.loader()
                if inspect.isawaitable(resolved):
                    resolved = await resolved
            except Exception as exc:
                logger.warning(
                    "Failed to resolve async component %r of %r: %s", view, record.path, exc
                )
                errors.append(exc)
                return
            record.components[view] = resolved

        async with anyio.create_task_group() as tg:
            for record, view, component in pending:
                tg.start_soon(_load, record, view, component)

        next_(errors[0] if errors else None)

    return resolve_components
