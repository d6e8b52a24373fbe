"""Tests for wayfinder.routing.path — splitting, resolution, cleanup."""

from wayfinder.routing.path import ParsedPath, clean_path, join_paths, parse_path, resolve_path


class TestParsePath:
    def test_plain(self) -> None:
        assert parse_path("/users") == ParsedPath("/users", "", "")

    def test_query_and_hash(self) -> None:
        parsed = parse_path("/a?x=1&y=2#top")
        assert parsed.path == "/a"
        assert parsed.query == "x=1&y=2"
        assert parsed.hash == "#top"

    def test_question_mark_inside_hash(self) -> None:
        parsed = parse_path("/a#frag?not-a-query")
        assert parsed.path == "/a"
        assert parsed.query == ""
        assert parsed.hash == "#frag?not-a-query"

    def test_no_decoding(self) -> None:
        assert parse_path("/a%20b?q=%2F").path == "/a%20b"
        assert parse_path("/a%20b?q=%2F").query == "q=%2F"


class TestResolvePath:
    def test_absolute_unchanged(self) -> None:
        assert resolve_path("/abs", "/x/y") == "/abs"

    def test_query_and_hash_attach_to_base(self) -> None:
        assert resolve_path("?q=1", "/x") == "/x?q=1"
        assert resolve_path("#top", "/x") == "/x#top"

    def test_sibling(self) -> None:
        assert resolve_path("bar", "/foo/baz") == "/foo/bar"

    def test_append(self) -> None:
        assert resolve_path("bar", "/foo", append=True) == "/foo/bar"

    def test_append_to_trailing_slash(self) -> None:
        assert resolve_path("c", "/a/b/", append=True) == "/a/b/c"

    def test_dot_segments(self) -> None:
        assert resolve_path("../c", "/a/b/") == "/a/c"
        assert resolve_path("./c", "/a/b") == "/a/c"

    def test_leading_slash_guaranteed(self) -> None:
        assert resolve_path("c", "") == "/c"

    def test_pop_past_root(self) -> None:
        assert resolve_path("../../x", "/a") == "/x"


class TestCleanPath:
    def test_collapses_slashes(self) -> None:
        assert clean_path("/a//b///c") == "/a/b/c"

    def test_untouched(self) -> None:
        assert clean_path("/a/b") == "/a/b"

    def test_join(self) -> None:
        assert join_paths("/parent", "child") == "/parent/child"
        assert join_paths("/parent/", "/child") == "/parent/child"
