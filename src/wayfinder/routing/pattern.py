"""Path pattern compilation.

A pattern such as ``/users/:id(\\d+)/files/*`` compiles to a
``PathPattern`` that can both match a concrete path (extracting the
captures) and be filled with params to produce a concrete path.

Syntax::

    :name        named segment            /users/:id
    :name?       optional segment         /users/:id?
    :name*       zero or more segments    /files/:rest*
    :name+       one or more segments     /files/:rest+
    :name(re)    custom capture           /users/:id(\\d+)
    (re)         unnamed capture          /icon-(\\d+).png
    *            unnamed wildcard         /docs/*
    \\x          literal character        /price\\:usd

Unnamed captures are numbered from 0. Capture 0 is exposed under the
param name ``pathMatch``; later ones under their index as a string.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any
from urllib.parse import quote, unquote

from wayfinder.errors import MissingParamError, ParamError

_TOKEN_RE = re.compile(
    r"(\\.)"
    r"|([/.])?(?:(?:\:(\w+)(?:\(((?:\\.|[^\\()])+)\))?|\(((?:\\.|[^\\()])+)\))([+*?])?|(\*))"
)
_ESCAPE_STRING_RE = re.compile(r"([.+*?=^!:${}()\[\]|/\\])")
_ESCAPE_GROUP_RE = re.compile(r"([=!:$/()])")

# encodeURI safe set, minus / ? # for regular captures and minus ? # for asterisks
_PRETTY_SAFE = ";,:@&=+$-_.!~*'()"
_ASTERISK_SAFE = ";,/:@&=+$-_.!~*'()"

WILDCARD_PARAM = "pathMatch"


@dataclass(frozen=True, slots=True)
class PathKey:
    """A capture in a compiled pattern."""

    name: str | int
    prefix: str = ""
    delimiter: str = "/"
    optional: bool = False
    repeat: bool = False
    partial: bool = False
    asterisk: bool = False
    pattern: str = "[^/]+?"

    @property
    def param_name(self) -> str:
        """Name of the param this capture reads from and writes to."""
        if isinstance(self.name, str):
            return self.name
        if self.name == 0:
            return WILDCARD_PARAM
        return str(self.name)


@dataclass(frozen=True, slots=True)
class PathOptions:
    """Per-path compile options."""

    sensitive: bool = False
    strict: bool = False
    end: bool = True


def _escape_string(value: str) -> str:
    return _ESCAPE_STRING_RE.sub(r"\\\1", value)


def _escape_group(value: str) -> str:
    return _ESCAPE_GROUP_RE.sub(r"\\\1", value)


def tokenize(path: str) -> list[str | PathKey]:
    """Split *path* into literal strings and ``PathKey`` captures."""
    tokens: list[str | PathKey] = []
    key_index = 0
    index = 0
    literal = ""

    for m in _TOKEN_RE.finditer(path):
        literal += path[index : m.start()]
        index = m.end()

        escaped = m.group(1)
        if escaped:
            literal += escaped[1]
            continue

        prefix, name, capture, group, modifier, asterisk = m.group(2, 3, 4, 5, 6, 7)
        following = path[index] if index < len(path) else None

        if literal:
            tokens.append(literal)
            literal = ""

        if name is None:
            key_name: str | int = key_index
            key_index += 1
        else:
            key_name = name

        delimiter = prefix or "/"
        custom = capture or group
        if custom:
            pattern = _escape_group(custom)
        elif asterisk:
            pattern = ".*"
        else:
            pattern = f"[^{_escape_string(delimiter)}]+?"

        tokens.append(
            PathKey(
                name=key_name,
                prefix=prefix or "",
                delimiter=delimiter,
                optional=modifier in ("?", "*"),
                repeat=modifier in ("+", "*"),
                partial=prefix is not None and following is not None and following != prefix,
                asterisk=bool(asterisk),
                pattern=pattern,
            )
        )

    if index < len(path):
        literal += path[index:]
    if literal:
        tokens.append(literal)

    return tokens


def _tokens_to_regex(tokens: list[str | PathKey], options: PathOptions) -> re.Pattern[str]:
    route = ""
    for token in tokens:
        if isinstance(token, str):
            route += _escape_string(token)
            continue

        prefix = _escape_string(token.prefix)
        capture = f"(?:{token.pattern})"
        if token.repeat:
            capture += f"(?:{prefix}{capture})*"
        if token.optional:
            if not token.partial:
                capture = f"(?:{prefix}({capture}))?"
            else:
                capture = f"{prefix}({capture})?"
        else:
            capture = f"{prefix}({capture})"
        route += capture

    delimiter = _escape_string("/")
    ends_with_delimiter = route.endswith(delimiter)

    if not options.strict:
        if ends_with_delimiter:
            route = route[: -len(delimiter)]
        route += f"(?:{delimiter}(?=\\Z))?"

    if options.end:
        route += r"\Z"
    elif not (options.strict and ends_with_delimiter):
        route += f"(?={delimiter}|\\Z)"

    # "*" must also catch paths holding a raw newline
    flags = re.DOTALL if options.sensitive else re.DOTALL | re.IGNORECASE
    return re.compile("^" + route, flags)


class PathPattern:
    """A compiled path pattern.

    Usage::

        pattern = PathPattern("/params/:name")
        pattern.match("/params/42")     # {"name": "42"}
        pattern.fill({"name": "42"})    # "/params/42"
    """

    __slots__ = ("_fill_checks", "keys", "options", "path", "regex", "tokens")

    def __init__(self, path: str, options: PathOptions | None = None) -> None:
        self.path = path
        self.options = options or PathOptions()
        self.tokens = tokenize(path)
        self.keys: tuple[PathKey, ...] = tuple(t for t in self.tokens if isinstance(t, PathKey))
        self.regex = _tokens_to_regex(self.tokens, self.options)
        self._fill_checks = {
            key.name: re.compile(f"^(?:{key.pattern})\\Z") for key in self.keys
        }

    def __repr__(self) -> str:
        return f"PathPattern({self.path!r})"

    @property
    def required_params(self) -> list[str]:
        """Names of the params that must be present to fill this pattern."""
        return [key.param_name for key in self.keys if not key.optional]

    def match(self, path: str) -> dict[str, str] | None:
        """Match *path* and return its decoded captures, or ``None``.

        Captures for optional keys that did not participate are omitted.
        """
        m = self.regex.match(path)
        if m is None:
            return None

        params: dict[str, str] = {}
        for key, value in zip(self.keys, m.groups(), strict=False):
            if value is not None:
                params[key.param_name] = unquote(value)
        return params

    def fill(self, params: dict[str, Any] | None = None) -> str:
        """Build a concrete path from *params*.

        Raises ``MissingParamError`` when a required param is absent and
        ``ParamError`` when a value does not satisfy its capture pattern.
        """
        params = params or {}
        path = ""

        for token in self.tokens:
            if isinstance(token, str):
                path += token
                continue

            value = params.get(token.param_name)

            if value is None:
                if token.optional:
                    if token.partial:
                        path += token.prefix
                    continue
                raise MissingParamError(token.param_name, self.path)

            check = self._fill_checks[token.name]

            if isinstance(value, (list, tuple)):
                if not token.repeat:
                    msg = f'Expected "{token.param_name}" to not repeat, but received {value!r}'
                    raise ParamError(msg)
                if not value:
                    if token.optional:
                        continue
                    msg = f'Expected "{token.param_name}" to not be empty'
                    raise ParamError(msg)
                for i, item in enumerate(value):
                    segment = quote(str(item), safe=_PRETTY_SAFE)
                    if not check.match(segment):
                        msg = (
                            f'Expected all "{token.param_name}" to match '
                            f'"{token.pattern}", but received "{segment}"'
                        )
                        raise ParamError(msg)
                    path += (token.prefix if i == 0 else token.delimiter) + segment
                continue

            safe = _ASTERISK_SAFE if token.asterisk else _PRETTY_SAFE
            segment = quote(str(value), safe=safe)
            if not check.match(segment):
                msg = (
                    f'Expected "{token.param_name}" to match "{token.pattern}", '
                    f'but received "{segment}"'
                )
                raise ParamError(msg)
            path += token.prefix + segment

        return path


@lru_cache(maxsize=512)
def compile_pattern(path: str, options: PathOptions | None = None) -> PathPattern:
    """Compile *path*, caching the result per ``(path, options)``."""
    return PathPattern(path, options)


def fill_params(path: str, params: dict[str, Any] | None) -> str:
    """Fill the pattern *path* with *params* using the shared compile cache."""
    return compile_pattern(path).fill(params)
