"""Path helpers: splitting, relative resolution, slash cleanup.

All functions are purely syntactic. Nothing here decodes percent-escapes.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ParsedPath:
    """A raw path split into its path, query string and hash parts."""

    path: str
    query: str = ""
    hash: str = ""


def parse_path(raw: str) -> ParsedPath:
    """Split *raw* on the first ``#``, then on the first ``?``.

    The query is returned without its ``?``; the hash keeps its ``#``::

        parse_path("/a?x=1#top") -> ParsedPath("/a", "x=1", "#top")
    """
    hash = ""
    query = ""

    hash_index = raw.find("#")
    if hash_index >= 0:
        hash = raw[hash_index:]
        raw = raw[:hash_index]

    query_index = raw.find("?")
    if query_index >= 0:
        query = raw[query_index + 1 :]
        raw = raw[:query_index]

    return ParsedPath(path=raw, query=query, hash=hash)


def resolve_path(relative: str, base: str, append: bool = False) -> str:
    """Resolve *relative* against *base*.

    Absolute paths are returned unchanged; ``?``/``#`` suffixes attach to
    *base*. Otherwise *base* is treated as a segment stack: the last
    segment is dropped unless *append* is set or *base* ends in a slash,
    then ``..`` pops and ``.`` is skipped.
    """
    first = relative[:1]
    if first == "/":
        return relative
    if first in ("?", "#"):
        return base + relative

    stack = base.split("/")

    if not append or not stack[-1]:
        stack.pop()

    for segment in relative.removeprefix("/").split("/"):
        if segment == "..":
            if stack:
                stack.pop()
        elif segment != ".":
            stack.append(segment)

    # ensure leading slash
    if not stack or stack[0] != "":
        stack.insert(0, "")

    return "/".join(stack)


def clean_path(path: str) -> str:
    """Collapse every run of slashes into a single slash."""
    while "//" in path:
        path = path.replace("//", "/")
    return path


def join_paths(parent: str, child: str) -> str:
    """Join a child pattern onto its parent's canonical path."""
    return clean_path(f"{parent}/{child}")
