"""Tests for pattern segment matching."""

import pytest
from deptree.patterns import (
    is_version_included_in_range,
    matches,
    matches_tokens,
    matches_value,
)


class TestMatches:
    """Tests for single-segment matching."""

    @pytest.mark.parametrize("token,pattern", [
        ("anything", "*"),
        ("anything", ""),
        ("foobarbaz", "*bar*"),
        ("foobar", "*bar"),
        ("foobar", "foo*"),
        ("some-artifact-id", "some-*-id"),
        ("1.0", "1.0"),
    ])
    def test_matching(self, token, pattern):
        assert matches(token, pattern)

    @pytest.mark.parametrize("token,pattern", [
        ("foobar", "*baz*"),
        ("foobar", "*foo"),
        ("foobar", "bar*"),
        ("some-id", "some-*-id"),
        ("1.0", "1.1"),
    ])
    def test_not_matching(self, token, pattern):
        assert not matches(token, pattern)

    def test_version_range_segment(self):
        assert matches("1.0.1", "[1.0,1.1)")
        assert not matches("1.5", "[1.0,1.1)")
        assert not matches("1.0.1", "(,1.0],[1.2,)")

    def test_version_range_with_padded_qualified_bound(self):
        assert matches("1.0-beta", "[1.0.0-alpha,2.0)")
        assert not matches("1.0-alpha", "(1.0.0-alpha,2.0)")

    def test_malformed_range_matches_nothing(self):
        """Test that a broken range never raises."""
        assert not matches("1.0", "[1.0")
        assert not is_version_included_in_range("1.0", "[2.0,1.0]")

    def test_none_token(self):
        assert matches(None, "*")
        assert not matches(None, "foo")


class TestMatchesTokens:

    def test_shorter_pattern_leaves_rest_unconstrained(self):
        assert matches_tokens(["g", "a", "jar", "1.0"], "g:a")
        assert matches_tokens(["g", "a", "jar", "1.0"], "g")

    def test_longer_pattern_never_matches(self):
        assert not matches_tokens(["g", "a"], "g:a:jar")

    def test_empty_segments_match_anything(self):
        assert matches_tokens(["g", "a", "jar", "1.0"], ":::")
        assert matches_tokens(["g", "a", "jar", "1.0"], "*:*:*:*")


class TestMatchesValue:

    def test_leading_wildcard_right_aligns(self):
        """Test that "*:jar:*" finds the type wherever the version ends."""
        assert matches_value("group:artifact:jar:version", "*:jar:*")
        assert not matches_value("group:artifact:ejb:version", "*:jar:*")

    def test_plain_prefix(self):
        assert matches_value("group:artifact:jar:1.0", "group:artifact")
        assert not matches_value("group:artifact:jar:1.0", "group:other")
