"""Router configuration.

RouterConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Router configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RouterConfig(base="/app", debug=True)
    """

    # Prefix for hrefs produced by Router.resolve()
    base: str = "/"

    # Query codec overrides (default: wayfinder.routing.query)
    parse_query: Callable[[str], dict[str, Any]] | None = None
    stringify_query: Callable[[Mapping[str, Any]], str] | None = None

    # Nested redirect / alias indirection deeper than this resolves to no match
    max_redirects: int = 32

    # Seconds between instance polls for enter-guard callbacks
    poll_interval: float = 0.016

    # Raise ConfigurationError on route config diagnostics instead of logging
    debug: bool = False
