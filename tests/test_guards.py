"""Tests for wayfinder.navigation.guards — queue diffing, guard extraction and lazy resolution."""

import asyncio

import pytest

from wayfinder.navigation.guards import (
    extract_enter_guards,
    extract_leave_guards,
    extract_update_hooks,
    poll,
    resolve_async_components,
    resolve_queue,
)
from wayfinder.routing.matcher import Matcher
from wayfinder.routing.route import START, RouteConfig
from wayfinder.views import lazy, register_route_instance


class Guarded:
    def __init__(self, log: list[str], label: str) -> None:
        self.log = log
        self.label = label

    def before_route_leave(self, to, from_, next) -> None:
        self.log.append(f"leave:{self.label}")
        next()

    def before_route_update(self, to, from_, next) -> None:
        self.log.append(f"update:{self.label}")
        next()

    @staticmethod
    def before_route_enter(to, from_, next) -> None:
        next()


class Plain:
    pass


def _matcher(component: object = Guarded) -> Matcher:
    return Matcher([
        RouteConfig("/a", component=component, children=[
            RouteConfig("b", component=component, children=[RouteConfig("c", component=component)]),
            RouteConfig("d", component=component),
        ]),
    ])


def _next_recorder() -> tuple[list, object]:
    calls: list = []

    def next_(to=None) -> None:
        calls.append(to)

    return calls, next_


class TestResolveQueue:
    def test_split(self) -> None:
        matcher = _matcher()
        current = matcher.match("/a/b/c").matched
        target = matcher.match("/a/d").matched
        updated, activated, deactivated = resolve_queue(current, target)
        assert [r.path for r in updated] == ["/a"]
        assert [r.path for r in activated] == ["/a/d"]
        assert [r.path for r in deactivated] == ["/a/b", "/a/b/c"]

    def test_from_nowhere(self) -> None:
        target = _matcher().match("/a/b").matched
        updated, activated, deactivated = resolve_queue((), target)
        assert updated == []
        assert activated == list(target)
        assert deactivated == []

    def test_same_chain(self) -> None:
        chain = _matcher().match("/a/b").matched
        assert resolve_queue(chain, chain) == (list(chain), [], [])


class TestExtraction:
    def test_leave_guards_need_instances(self) -> None:
        matched = _matcher().match("/a/b/c").matched
        assert extract_leave_guards(matched) == []

    def test_leave_guards_deepest_first(self) -> None:
        log: list[str] = []
        matched = _matcher().match("/a/b/c").matched
        for record, label in zip(matched, ("a", "b", "c"), strict=True):
            instance = Guarded(log, label)
            register_route_instance(record, "default", instance, instance)

        for guard in extract_leave_guards(matched):
            guard(START, START, lambda to=None: None)
        assert log == ["leave:c", "leave:b", "leave:a"]

    def test_update_hooks_shallowest_first(self) -> None:
        log: list[str] = []
        matched = _matcher().match("/a/b").matched
        for record, label in zip(matched, ("a", "b"), strict=True):
            instance = Guarded(log, label)
            register_route_instance(record, "default", instance, instance)

        for guard in extract_update_hooks(matched):
            guard(START, START, lambda to=None: None)
        assert log == ["update:a", "update:b"]

    def test_components_without_hooks(self) -> None:
        matched = _matcher(Plain).match("/a/b").matched
        for record in matched:
            register_route_instance(record, "default", Plain(), Plain())
        assert extract_update_hooks(matched) == []
        assert extract_enter_guards(matched, [], lambda: True, 0.01) == []

    def test_enter_guard_queues_instance_callback(self) -> None:
        class Entering:
            @staticmethod
            def before_route_enter(to, from_, next) -> None:
                next(lambda vm: None)

        matched = _matcher(Entering).match("/a").matched
        post_enter: list = []
        (guard,) = extract_enter_guards(matched, post_enter, lambda: True, 0.01)
        calls, next_ = _next_recorder()
        guard(START, START, next_)
        assert len(post_enter) == 1
        assert callable(calls[0])


class TestPoll:
    @pytest.mark.asyncio
    async def test_waits_for_instance(self) -> None:
        instances: dict[str, object] = {}
        seen: list[object] = []
        task = asyncio.create_task(poll(seen.append, instances, "default", lambda: True, 0.001))
        await asyncio.sleep(0.01)
        assert seen == []
        instance = Plain()
        instances["default"] = instance
        await asyncio.wait_for(task, timeout=2.0)
        assert seen == [instance]

    @pytest.mark.asyncio
    async def test_stops_when_invalid(self) -> None:
        seen: list[object] = []
        await asyncio.wait_for(poll(seen.append, {}, "default", lambda: False, 0.001), timeout=2.0)
        assert seen == []

    @pytest.mark.asyncio
    async def test_skips_instances_being_destroyed(self) -> None:
        dying = Plain()
        dying.is_being_destroyed = True  # type: ignore[attr-defined]
        seen: list[object] = []
        await asyncio.wait_for(
            poll(seen.append, {"default": dying}, "default", lambda: False, 0.001), timeout=2.0
        )
        assert seen == []


class TestResolveAsyncComponents:
    @pytest.mark.asyncio
    async def test_resolves_in_place(self) -> None:
        async def load() -> type:
            await asyncio.sleep(0)
            return Plain

        matcher = Matcher([
            RouteConfig("/lazy", components={"default": lazy(load), "side": lazy(lambda: Guarded)}),
        ])
        matched = matcher.match("/lazy").matched
        calls, next_ = _next_recorder()
        await resolve_async_components(matched)(START, START, next_)
        assert calls == [None]
        assert matched[0].components == {"default": Plain, "side": Guarded}

    @pytest.mark.asyncio
    async def test_nothing_to_resolve(self) -> None:
        matched = _matcher(Plain).match("/a").matched
        calls, next_ = _next_recorder()
        await resolve_async_components(matched)(START, START, next_)
        assert calls == [None]

    @pytest.mark.asyncio
    async def test_failure_passed_to_next(self) -> None:
        def broken() -> type:
            raise ImportError("no such view")

        matched = Matcher([RouteConfig("/lazy", component=lazy(broken))]).match("/lazy").matched
        calls, next_ = _next_recorder()
        await resolve_async_components(matched)(START, START, next_)
        assert isinstance(calls[0], ImportError)
