"""Tests for wayfinder.navigation.events — committed-route broadcast."""

import asyncio

import pytest

from wayfinder.navigation.events import RouteEventBus
from wayfinder.routing.route import Route


def _route(path: str) -> Route:
    return Route(path=path, full_path=path)


class TestRouteEventBus:
    @pytest.mark.asyncio
    async def test_publish_and_subscribe(self) -> None:
        bus = RouteEventBus()
        received: list[Route] = []

        async def collector():
            async for route in bus.subscribe():
                received.append(route)
                if len(received) >= 2:
                    break

        task = asyncio.create_task(collector())
        # Give the subscriber time to register
        await asyncio.sleep(0.01)

        bus.publish(_route("/a"))
        bus.publish(_route("/b"))

        await asyncio.wait_for(task, timeout=2.0)
        assert [route.path for route in received] == ["/a", "/b"]

    @pytest.mark.asyncio
    async def test_multiple_subscribers(self) -> None:
        bus = RouteEventBus()
        received_a: list[Route] = []
        received_b: list[Route] = []

        async def collector(into: list[Route]):
            async for route in bus.subscribe():
                into.append(route)
                break

        task_a = asyncio.create_task(collector(received_a))
        task_b = asyncio.create_task(collector(received_b))
        await asyncio.sleep(0.01)

        bus.publish(_route("/a"))

        await asyncio.wait_for(asyncio.gather(task_a, task_b), timeout=2.0)
        assert len(received_a) == 1
        assert len(received_b) == 1

    @pytest.mark.asyncio
    async def test_close(self) -> None:
        bus = RouteEventBus()
        count = 0

        async def collector():
            nonlocal count
            async for _route in bus.subscribe():
                count += 1

        task = asyncio.create_task(collector())
        await asyncio.sleep(0.01)

        bus.close()
        await asyncio.wait_for(task, timeout=2.0)
        assert count == 0

    def test_publish_without_subscribers(self) -> None:
        RouteEventBus().publish(_route("/a"))

    def test_listeners_called_inline(self) -> None:
        bus = RouteEventBus()
        seen: list[str] = []
        unlisten = bus.listen(lambda route: seen.append(route.path))
        bus.publish(_route("/a"))
        unlisten()
        bus.publish(_route("/b"))
        assert seen == ["/a"]
