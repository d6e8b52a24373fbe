"""Route table builder.

Compiles a tree of ``RouteConfig`` into three lookup structures:

- ``path_list``: path keys in matching priority order
- ``path_map``: path key -> ``RouteRecord``
- ``name_map``: route name -> ``RouteRecord``

Building is additive. Passing an existing table extends it in place;
nothing is ever removed.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from wayfinder.errors import ConfigurationError
from wayfinder.routing.path import join_paths
from wayfinder.routing.pattern import PathOptions, PathPattern
from wayfinder.routing.route import DEFAULT_VIEW, RouteConfig, RouteRecord

logger = logging.getLogger("wayfinder.routing")

WILDCARD = "*"

_DEFAULT_CHILD_RE = re.compile(r"^/?$")


@dataclass(slots=True)
class RouteTable:
    """The compiled route table."""

    path_list: list[str] = field(default_factory=list)
    path_map: dict[str, RouteRecord] = field(default_factory=dict)
    name_map: dict[str, RouteRecord] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.path_list)

    def __contains__(self, path: str) -> bool:
        return path in self.path_map

    def records(self) -> list[RouteRecord]:
        """Return every record in matching priority order."""
        return [self.path_map[path] for path in self.path_list]


class _Builder:
    """One pass of the builder over a list of configs.

    Holds the diagnostic policy so every recursive call reports the same way.
    """

    __slots__ = ("debug", "table")

    def __init__(self, table: RouteTable, debug: bool) -> None:
        self.table = table
        self.debug = debug

    def diagnose(self, message: str) -> None:
        if self.debug:
            raise ConfigurationError(message)
        logger.warning(message)

    def add(
        self,
        raw: RouteConfig | Mapping[str, Any],
        parent: RouteRecord | None = None,
        match_as: str | None = None,
    ) -> None:
        if isinstance(raw, RouteConfig):
            config = raw
        else:
            if raw.get("path") is None:
                self.diagnose(f'"path" is required in a route configuration: {dict(raw)!r}')
                return
            config = RouteConfig.from_mapping(raw)

        if isinstance(config.component, str):
            self.diagnose(
                f'route config "component" for path: {config.path or config.name} '
                "cannot be a string id. Use an actual component instead."
            )

        options = config.path_options or PathOptions()
        normalized = _normalize_path(config.path, parent, options.strict)

        if config.case_sensitive is not None:
            options = PathOptions(
                sensitive=config.case_sensitive,
                strict=options.strict,
                end=options.end,
            )

        if config.props is None:
            props: Mapping[str, Any] = {}
        elif config.components:
            props = config.props  # type: ignore[assignment]
        else:
            props = {DEFAULT_VIEW: config.props}

        record = RouteRecord(
            path=normalized,
            pattern=self.compile(normalized, options),
            components=dict(config.components or {DEFAULT_VIEW: config.component}),
            name=config.name,
            parent=parent,
            match_as=match_as,
            redirect=config.redirect,
            before_enter=config.before_enter,
            meta=dict(config.meta or {}),
            props=props,
        )

        if config.children:
            if config.name and not config.redirect and any(
                _DEFAULT_CHILD_RE.match(_child_path(child)) for child in config.children
            ):
                self.diagnose(
                    f"Named Route '{config.name}' has a default child route. "
                    f"When navigating to this named route ({{'name': '{config.name}'}}), "
                    "the default child route will not be rendered. Remove the name from "
                    "this route and use the name of the default child route for named "
                    "links instead."
                )
            for child in config.children:
                child_match_as = join_paths(match_as, _child_path(child)) if match_as else None
                self.add(child, record, child_match_as)

        if record.path not in self.table.path_map:
            self.table.path_list.append(record.path)
            self.table.path_map[record.path] = record

        if config.alias is not None:
            aliases = [config.alias] if isinstance(config.alias, str) else list(config.alias)
            for alias in aliases:
                if alias == config.path:
                    self.diagnose(
                        f'Found an alias with the same value as the path: "{config.path}". '
                        "You have to remove that alias. It will be ignored."
                    )
                    continue
                self.add(
                    RouteConfig(path=alias, children=config.children),
                    parent,
                    record.path or "/",
                )

        if config.name:
            if config.name not in self.table.name_map:
                self.table.name_map[config.name] = record
            elif not match_as:
                self.diagnose(
                    "Duplicate named routes definition: "
                    f'{{ name: "{config.name}", path: "{record.path}" }}'
                )

    def compile(self, path: str, options: PathOptions) -> PathPattern:
        pattern = PathPattern(path, options)
        seen: set[str] = set()
        for key in pattern.keys:
            if key.param_name in seen:
                self.diagnose(f'Duplicate param keys in route with path: "{path}"')
            seen.add(key.param_name)
        return pattern


def _child_path(child: RouteConfig | Mapping[str, Any]) -> str:
    if isinstance(child, RouteConfig):
        return child.path
    return child.get("path") or ""


def _normalize_path(path: str, parent: RouteRecord | None, strict: bool) -> str:
    if not strict and path.endswith("/"):
        path = path[:-1]
    if path.startswith("/"):
        return path
    if parent is None:
        return path
    return join_paths(parent.path, path)


def build_route_table(
    routes: Iterable[RouteConfig | Mapping[str, Any]],
    table: RouteTable | None = None,
    *,
    debug: bool = False,
) -> RouteTable:
    """Compile *routes* into *table* (a new one if omitted) and return it.

    Wildcard keys are moved behind every other key so specific routes
    always win, regardless of declaration order.
    """
    table = table if table is not None else RouteTable()
    builder = _Builder(table, debug)

    for route in routes:
        builder.add(route)

    wildcards = [path for path in table.path_list if path == WILDCARD]
    if wildcards:
        table.path_list[:] = [path for path in table.path_list if path != WILDCARD] + wildcards

    missing_slash = [
        path for path in table.path_list if path and path[0] not in (WILDCARD, "/")
    ]
    if missing_slash:
        listing = "\n".join(f"- {path}" for path in missing_slash)
        builder.diagnose(
            "Non-nested routes must include a leading slash character. "
            f"Fix the following routes: \n{listing}"
        )

    return table
