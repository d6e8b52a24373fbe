"""Tests for wayfinder.views — component lookup, instance registration and props."""

import logging

import pytest

from wayfinder.routing.matcher import Matcher
from wayfinder.routing.route import RouteConfig
from wayfinder.views import LazyComponent, lazy, matched_component, register_route_instance, resolve_props


class Parent:
    pass


class Child:
    pass


class Side:
    pass


def _matcher() -> Matcher:
    return Matcher([
        RouteConfig(
            "/parent/:id",
            component=Parent,
            children=[RouteConfig("child", components={"default": Child, "side": Side})],
        ),
    ])


class TestMatchedComponent:
    def test_by_depth(self) -> None:
        route = _matcher().match("/parent/1/child")
        assert matched_component(route, 0) is Parent
        assert matched_component(route, 1) is Child
        assert matched_component(route, 1, "side") is Side

    def test_out_of_range(self) -> None:
        route = _matcher().match("/parent/1")
        assert matched_component(route, 1) is None

    def test_unknown_view(self) -> None:
        route = _matcher().match("/parent/1")
        assert matched_component(route, 0, "side") is None


class TestRegisterInstance:
    def test_register_and_unregister(self) -> None:
        record = _matcher().match("/parent/1").matched[0]
        instance = Parent()
        register_route_instance(record, "default", instance, instance)
        assert record.instances["default"] is instance
        register_route_instance(record, "default", instance, None)
        assert "default" not in record.instances

    def test_unregister_only_by_owner(self) -> None:
        record = _matcher().match("/parent/1").matched[0]
        old, new = Parent(), Parent()
        register_route_instance(record, "default", old, old)
        register_route_instance(record, "default", new, new)
        register_route_instance(record, "default", old, None)
        assert record.instances["default"] is new


class TestResolveProps:
    def test_bool(self) -> None:
        route = _matcher().match("/parent/7")
        assert resolve_props(route, True) == {"id": "7"}
        assert resolve_props(route, False) is None
        assert resolve_props(route, None) is None

    def test_mapping(self) -> None:
        route = _matcher().match("/parent/7")
        assert resolve_props(route, {"static": 1}) == {"static": 1}

    def test_callable(self) -> None:
        route = _matcher().match("/parent/7?q=x")
        assert resolve_props(route, lambda r: {"q": r.query["q"]}) == {"q": "x"}

    def test_invalid(self, caplog: pytest.LogCaptureFixture) -> None:
        route = _matcher().match("/parent/7")
        with caplog.at_level(logging.WARNING, logger="wayfinder.views"):
            assert resolve_props(route, 42) is None
        assert "expecting a mapping" in caplog.text


class TestLazy:
    def test_wraps_loader(self) -> None:
        def loader() -> type:
            return Parent

        component = lazy(loader)
        assert isinstance(component, LazyComponent)
        assert component.loader is loader
