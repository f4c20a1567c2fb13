"""Version parsing, ordering and range utilities for Maven-style versions."""

import re
from dataclasses import dataclass
from functools import total_ordering
from typing import Iterable, List, Optional, Tuple, Union


class InvalidVersionSpecificationError(ValueError):
    """Raised when a version range specification cannot be parsed."""


class OverConstrainedVersionError(Exception):
    """Raised when no available version satisfies a version range."""


@dataclass
class VersionInfo:
    """
    Parsed version information.

    Attributes:
        version: The version string as declared
        base_version: Version with any timestamped snapshot qualifier rewritten to SNAPSHOT
        is_snapshot: Whether this is a snapshot version (timestamped or not)
        timestamp: Snapshot deployment timestamp (yyyyMMdd.HHmmss), if timestamped
        build_number: Snapshot build number, if timestamped
    """
    version: str
    base_version: str
    is_snapshot: bool = False
    timestamp: Optional[str] = None
    build_number: Optional[int] = None


class VersionParser:
    """Parser for Maven version strings."""

    SNAPSHOT = "SNAPSHOT"

    # Timestamped snapshot format: <base>-<yyyyMMdd.HHmmss>-<buildNumber>
    # Example: 1.0-20240105.101010-3 is a deployed build of 1.0-SNAPSHOT
    TIMESTAMPED_SNAPSHOT_PATTERN = re.compile(
        r'^(.*)-'                  # Base version without the -SNAPSHOT suffix
        r'([0-9]{8}\.[0-9]{6})-'   # Deployment timestamp
        r'([0-9]+)$'               # Build number
    )

    @classmethod
    def parse(cls, version: str) -> VersionInfo:
        """
        Parse a version string, recognising timestamped snapshot versions.

        Args:
            version: The version string to parse

        Returns:
            VersionInfo with the base version resolved
        """
        match = cls.TIMESTAMPED_SNAPSHOT_PATTERN.match(version)
        if match:
            return VersionInfo(
                version=version,
                base_version=f"{match.group(1)}-{cls.SNAPSHOT}",
                is_snapshot=True,
                timestamp=match.group(2),
                build_number=int(match.group(3)),
            )

        return VersionInfo(
            version=version,
            base_version=version,
            is_snapshot=version.endswith(cls.SNAPSHOT),
        )

    @classmethod
    def get_base_version(cls, version: Optional[str]) -> Optional[str]:
        """
        Get the base version for a version string.

        For timestamped snapshots (1.0-20240105.101010-3) returns 1.0-SNAPSHOT,
        any other version is returned as-is.
        """
        if version is None:
            return None
        return cls.parse(version).base_version

    @staticmethod
    def is_range(version: Optional[str]) -> bool:
        """Whether a version string is a bracket/paren range specification."""
        return bool(version) and version[0] in "[("


# Qualifier ordering: alpha < beta < milestone < rc < snapshot < release < sp
_QUALIFIERS = ["alpha", "beta", "milestone", "rc", "snapshot", "", "sp"]
_QUALIFIER_ALIASES = {"ga": "", "final": "", "release": "", "cr": "rc"}
_RELEASE_RANK = (_QUALIFIERS.index(""), "")


def _qualifier_rank(qualifier: str) -> Tuple[int, str]:
    qualifier = _QUALIFIER_ALIASES.get(qualifier, qualifier)
    if qualifier in _QUALIFIERS:
        return (_QUALIFIERS.index(qualifier), "")
    # Unknown qualifiers sort after the known ones, lexically among themselves
    return (len(_QUALIFIERS), qualifier)


def _tokenize(version: str) -> List[Union[int, str]]:
    items: List[Union[int, str]] = []
    for chunk in re.split(r'[.\-]', version.lower()):
        for token in re.findall(r'[0-9]+|[^0-9]+', chunk):
            if token.isdigit():
                items.append(int(token))
                continue
            # 1.0.0-alpha and 1-alpha are the same version
            while items and items[-1] == 0:
                items.pop()
            items.append(_QUALIFIER_ALIASES.get(token, token))
        if not chunk:
            items.append(0)

    # Trailing zeros and release qualifiers carry no ordering weight
    while items and (items[-1] == 0 or _is_release(items[-1])):
        items.pop()
    return items


def _is_release(item: Union[int, str]) -> bool:
    return isinstance(item, str) and _qualifier_rank(item) == _RELEASE_RANK


def _compare_items(left: Optional[Union[int, str]], right: Optional[Union[int, str]]) -> int:
    if left is None and right is None:
        return 0
    if left is None:
        return -_compare_items(right, None)
    if isinstance(left, int):
        if right is None:
            return 0 if left == 0 else 1
        if isinstance(right, int):
            return (left > right) - (left < right)
        return 1  # a number outranks a qualifier
    if right is None:
        rank = _qualifier_rank(left)
        return (rank > _RELEASE_RANK) - (rank < _RELEASE_RANK)
    if isinstance(right, int):
        return -1
    left_rank, right_rank = _qualifier_rank(left), _qualifier_rank(right)
    return (left_rank > right_rank) - (left_rank < right_rank)


@total_ordering
class ComparableVersion:
    """
    A version that orders the way Maven orders versions.

    Numeric items compare numerically, qualifiers compare by their well-known
    rank and then lexically, and trailing zeros are insignificant (1.0 == 1).
    """

    def __init__(self, version: str):
        if version is None or not version.strip():
            raise InvalidVersionSpecificationError("Version must not be empty")
        self.value = version.strip()
        self.items = _tokenize(self.value)

    def compare_to(self, other: 'ComparableVersion') -> int:
        for i in range(max(len(self.items), len(other.items))):
            left = self.items[i] if i < len(self.items) else None
            right = other.items[i] if i < len(other.items) else None
            result = _compare_items(left, right)
            if result:
                return result
        return 0

    def __eq__(self, other) -> bool:
        if not isinstance(other, ComparableVersion):
            return NotImplemented
        return self.compare_to(other) == 0

    def __lt__(self, other: 'ComparableVersion') -> bool:
        return self.compare_to(other) < 0

    def __hash__(self) -> int:
        return hash(tuple(self.items))

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"ComparableVersion('{self.value}')"


class Restriction:
    """A single interval of a version range; a missing bound is unbounded."""

    def __init__(
        self,
        lower_bound: Optional[ComparableVersion] = None,
        lower_inclusive: bool = False,
        upper_bound: Optional[ComparableVersion] = None,
        upper_inclusive: bool = False
    ):
        self.lower_bound = lower_bound
        self.lower_inclusive = lower_inclusive
        self.upper_bound = upper_bound
        self.upper_inclusive = upper_inclusive

    def contains_version(self, version: ComparableVersion) -> bool:
        if self.lower_bound is not None:
            comparison = self.lower_bound.compare_to(version)
            if comparison == 0 and not self.lower_inclusive:
                return False
            if comparison > 0:
                return False
        if self.upper_bound is not None:
            comparison = self.upper_bound.compare_to(version)
            if comparison == 0 and not self.upper_inclusive:
                return False
            if comparison < 0:
                return False
        return True

    def __str__(self) -> str:
        if (self.lower_bound is not None and self.lower_bound == self.upper_bound
                and self.lower_inclusive and self.upper_inclusive):
            return f"[{self.lower_bound}]"
        lower = str(self.lower_bound) if self.lower_bound is not None else ""
        upper = str(self.upper_bound) if self.upper_bound is not None else ""
        return (f"{'[' if self.lower_inclusive else '('}{lower},"
                f"{upper}{']' if self.upper_inclusive else ')'}")


EVERYTHING = Restriction()


class VersionRange:
    """A union of version intervals, or a soft (recommended) version."""

    def __init__(self, recommended_version: Optional[ComparableVersion], restrictions: List[Restriction]):
        self.recommended_version = recommended_version
        self.restrictions = restrictions

    @classmethod
    def create_from_version_spec(cls, spec: str) -> 'VersionRange':
        """
        Parse a version specification.

        Accepts interval unions such as "[1.0,2.0)" or "(,1.0],[1.2,)", exact
        pins such as "[1.0]" and plain soft versions such as "1.0".

        Raises:
            InvalidVersionSpecificationError: if the specification is malformed
        """
        if spec is None:
            raise InvalidVersionSpecificationError("Version specification must not be null")

        process = spec.strip()
        restrictions: List[Restriction] = []
        upper_bound: Optional[ComparableVersion] = None

        while process.startswith("[") or process.startswith("("):
            index_paren = process.find(")")
            index_bracket = process.find("]")

            index = index_bracket
            if index_bracket < 0 or (0 <= index_paren < index_bracket):
                index = index_paren
            if index < 0:
                raise InvalidVersionSpecificationError(f"Unbounded range: {spec}")

            restriction = cls._parse_restriction(process[:index + 1])
            if upper_bound is not None:
                if restriction.lower_bound is None or restriction.lower_bound < upper_bound:
                    raise InvalidVersionSpecificationError(f"Ranges overlap: {spec}")
            restrictions.append(restriction)
            upper_bound = restriction.upper_bound

            process = process[index + 1:].strip()
            if process.startswith(","):
                process = process[1:].strip()

        recommended = None
        if process:
            if restrictions:
                raise InvalidVersionSpecificationError(
                    f"Only fully-qualified sets allowed in multiple set scenario: {spec}"
                )
            recommended = ComparableVersion(process)
            restrictions.append(EVERYTHING)

        if not restrictions:
            raise InvalidVersionSpecificationError(f"Empty version specification: '{spec}'")

        return cls(recommended, restrictions)

    @staticmethod
    def _parse_restriction(spec: str) -> Restriction:
        lower_inclusive = spec.startswith("[")
        upper_inclusive = spec.endswith("]")
        process = spec[1:-1].strip()

        if "," not in process:
            if not lower_inclusive or not upper_inclusive:
                raise InvalidVersionSpecificationError(
                    f"Single version must be surrounded by []: {spec}"
                )
            version = ComparableVersion(process)
            return Restriction(version, True, version, True)

        lower_spec, upper_spec = (part.strip() for part in process.split(",", 1))
        if "," in upper_spec:
            raise InvalidVersionSpecificationError(
                f"Invalid version range {spec}, more than two bounds"
            )

        lower = ComparableVersion(lower_spec) if lower_spec else None
        upper = ComparableVersion(upper_spec) if upper_spec else None
        if lower is not None and upper is not None and upper < lower:
            raise InvalidVersionSpecificationError(
                f"Range defies version ordering: {spec}"
            )
        return Restriction(lower, lower_inclusive, upper, upper_inclusive)

    @property
    def has_restrictions(self) -> bool:
        """True unless this is a plain soft version."""
        return self.recommended_version is None

    def contains_version(self, version: Union[str, ComparableVersion]) -> bool:
        if not isinstance(version, ComparableVersion):
            version = ComparableVersion(version)
        return any(restriction.contains_version(version) for restriction in self.restrictions)

    def match_version(self, versions: Iterable[str]) -> Optional[str]:
        """Return the highest of the given versions contained in this range."""
        matched: Optional[ComparableVersion] = None
        for candidate in versions:
            version = ComparableVersion(candidate)
            if self.contains_version(version) and (matched is None or version > matched):
                matched = version
        return str(matched) if matched is not None else None

    def __str__(self) -> str:
        if self.recommended_version is not None:
            return str(self.recommended_version)
        return ",".join(str(restriction) for restriction in self.restrictions)
