"""Wildcard and version-range matching of artifact pattern segments.

A pattern is up to four colon-separated segments, groupId:artifactId:type:version.
Each segment may be empty or "*" (match anything), "*text*" (contains), "*text"
(ends with), "text*" (starts with), "some-*-id" (ordered parts), a version range
such as "[1.0,2.0)", or a literal.
"""

import logging
from typing import List, Sequence

from .version_parser import (
    ComparableVersion,
    InvalidVersionSpecificationError,
    VersionRange,
)

logger = logging.getLogger(__name__)

WILDCARD = "*"


def matches(token: str, pattern: str) -> bool:
    """Match a single token against a single pattern segment."""
    if token is None:
        token = ""

    # full wildcard and implied wildcard
    if pattern == WILDCARD or not pattern:
        return True

    # contains wildcard
    if pattern.startswith(WILDCARD) and pattern.endswith(WILDCARD):
        return pattern[1:-1] in token

    # leading wildcard
    if pattern.startswith(WILDCARD):
        return token.endswith(pattern[1:])

    # trailing wildcard
    if pattern.endswith(WILDCARD):
        return token.startswith(pattern[:-1])

    # wildcards inside the segment, e.g. some-*-id
    if WILDCARD in pattern:
        return _matches_ordered_parts(token, pattern.split(WILDCARD))

    # version range
    if pattern.startswith("[") or pattern.startswith("("):
        return is_version_included_in_range(token, pattern)

    return token == pattern


def _matches_ordered_parts(token: str, parts: List[str]) -> bool:
    position = 0
    for part in parts:
        if not part:
            continue
        index = token.find(part, position)
        if index < 0:
            return False
        position = index + len(part)
    return True


def is_version_included_in_range(version: str, range_spec: str) -> bool:
    """Whether a version falls inside a range; malformed input never matches."""
    try:
        return VersionRange.create_from_version_spec(range_spec).contains_version(ComparableVersion(version))
    except InvalidVersionSpecificationError as e:
        logger.debug(f"Ignoring invalid version range '{range_spec}': {e}")
        return False


def matches_tokens(tokens: Sequence[str], pattern: str) -> bool:
    """
    Match a colon-separated pattern against a sequence of tokens.

    The pattern may have fewer segments than there are tokens (the remaining
    tokens are unconstrained) but never more.
    """
    pattern_tokens = pattern.split(":")
    if len(pattern_tokens) > len(tokens):
        return False
    return all(matches(token, segment) for token, segment in zip(tokens, pattern_tokens))


def matches_value(value: str, pattern: str) -> bool:
    """
    Match a colon-separated pattern against a colon-separated value.

    A pattern whose first segment is "*" and that is shorter than the value is
    also tried right-aligned, so "*:jar:*" matches "group:artifact:jar:1.0".
    """
    tokens = value.split(":")
    if matches_tokens(tokens, pattern):
        return True

    pattern_tokens = pattern.split(":")
    if pattern_tokens[0] == WILDCARD and 1 < len(pattern_tokens) < len(tokens):
        trailing = tokens[len(tokens) - len(pattern_tokens) + 1:]
        return all(matches(token, segment) for token, segment in zip(trailing, pattern_tokens[1:]))
    return False
