"""Wayfinder — declarative route matching and guarded navigation.

Resolves URLs or location descriptors against a table of route patterns
and drives each navigation through an ordered, cancellable pipeline of
async guards before committing it.

Basic usage::

    from wayfinder import Router, RouteConfig

    router = Router([
        RouteConfig("/", component=Home),
        RouteConfig("/users/:id", name="user", component=User),
        RouteConfig("*", component=NotFound),
    ])

    await router.start()
    await router.push({"name": "user", "params": {"id": 7}})
    router.current_route.params   # {"id": "7"}
"""

__version__ = "0.1.0-dev"
__all__ = [
    "START",
    "ConfigurationError",
    "History",
    "LazyComponent",
    "Location",
    "Matcher",
    "MemoryHistory",
    "MissingParamError",
    "NavigationFailure",
    "NavigationFailureType",
    "ParamError",
    "Route",
    "RouteConfig",
    "RouteRecord",
    "Router",
    "RouterConfig",
    "WayfinderError",
    "is_navigation_failure",
    "lazy",
]

_LAZY_IMPORTS: dict[str, str] = {
    "START": "wayfinder.routing.route",
    "ConfigurationError": "wayfinder.errors",
    "History": "wayfinder.navigation.history",
    "LazyComponent": "wayfinder.views",
    "Location": "wayfinder.routing.route",
    "Matcher": "wayfinder.routing.matcher",
    "MemoryHistory": "wayfinder.navigation.memory",
    "MissingParamError": "wayfinder.errors",
    "NavigationFailure": "wayfinder.errors",
    "NavigationFailureType": "wayfinder.errors",
    "ParamError": "wayfinder.errors",
    "Route": "wayfinder.routing.route",
    "RouteConfig": "wayfinder.routing.route",
    "RouteRecord": "wayfinder.routing.route",
    "Router": "wayfinder.router",
    "RouterConfig": "wayfinder.config",
    "WayfinderError": "wayfinder.errors",
    "is_navigation_failure": "wayfinder.errors",
    "lazy": "wayfinder.views",
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import wayfinder`` fast while providing a clean top-level API.
    """
    module_name = _LAZY_IMPORTS.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    import importlib

    return getattr(importlib.import_module(module_name), name)
