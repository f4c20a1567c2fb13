"""Artifact filters: pattern, scope and composite include/exclude filters, plus collection filters."""

import logging
from typing import Iterable, List, Optional, Set

from .models import (
    Artifact,
    SCOPE_COMPILE,
    SCOPE_PROVIDED,
    SCOPE_RUNTIME,
    SCOPE_SYSTEM,
    SCOPE_TEST,
)
from .patterns import matches_tokens, matches_value

# Scopes enabled by a scope and its implications
SCOPE_IMPLICATIONS = {
    SCOPE_COMPILE: {SCOPE_COMPILE, SCOPE_PROVIDED, SCOPE_SYSTEM},
    SCOPE_RUNTIME: {SCOPE_COMPILE, SCOPE_RUNTIME},
    SCOPE_TEST: {SCOPE_COMPILE, SCOPE_RUNTIME, SCOPE_TEST, SCOPE_PROVIDED, SCOPE_SYSTEM},
    SCOPE_PROVIDED: {SCOPE_PROVIDED},
    SCOPE_SYSTEM: {SCOPE_SYSTEM},
}


class ArtifactFilter:
    """Decides whether an artifact is included."""

    def include(self, artifact: Artifact) -> bool:
        raise NotImplementedError

    def __call__(self, artifact: Artifact) -> bool:
        return self.include(artifact)


class StatisticsReportingArtifactFilter(ArtifactFilter):
    """A filter that remembers what it filtered and which criteria were never used."""

    def report_missed_criteria(self, logger: logging.Logger) -> None:
        raise NotImplementedError

    def report_filtered_artifacts(self, logger: logging.Logger) -> None:
        raise NotImplementedError

    def has_missed_criteria(self) -> bool:
        raise NotImplementedError


class AndArtifactFilter(ArtifactFilter):
    """
    Includes an artifact only if every filter includes it.

    By default evaluation stops at the first filter that rejects the
    artifact. With evaluate_all every filter sees every artifact, so that
    statistics-reporting members report what they would have matched.
    """

    def __init__(self, filters: Optional[Iterable[ArtifactFilter]] = None, evaluate_all: bool = False):
        self.filters: List[ArtifactFilter] = list(filters or [])
        self.evaluate_all = evaluate_all

    def add(self, artifact_filter: ArtifactFilter) -> None:
        self.filters.append(artifact_filter)

    def include(self, artifact: Artifact) -> bool:
        if self.evaluate_all:
            return all([f.include(artifact) for f in self.filters])
        return all(f.include(artifact) for f in self.filters)


class OrArtifactFilter(ArtifactFilter):
    """Includes an artifact if any filter includes it."""

    def __init__(self, filters: Optional[Iterable[ArtifactFilter]] = None):
        self.filters: List[ArtifactFilter] = list(filters or [])

    def add(self, artifact_filter: ArtifactFilter) -> None:
        self.filters.append(artifact_filter)

    def include(self, artifact: Artifact) -> bool:
        return any(f.include(artifact) for f in self.filters)


class IncludesArtifactFilter(ArtifactFilter):
    """Includes artifacts whose groupId:artifactId is in the given list."""

    def __init__(self, keys: Iterable[str]):
        self.keys = set(keys)

    def include(self, artifact: Artifact) -> bool:
        return artifact.versionless_key in self.keys


class ExcludesArtifactFilter(IncludesArtifactFilter):
    """Excludes artifacts whose groupId:artifactId is in the given list."""

    def include(self, artifact: Artifact) -> bool:
        return not super().include(artifact)


class AbstractStrictPatternArtifactFilter(ArtifactFilter):
    """
    Include or exclude artifacts matching any of a list of strict patterns.

    Patterns have the form [groupId]:[artifactId]:[type]:[version]; each
    segment is optional and supports full and partial "*" wildcards, and the
    version segment also accepts ranges. The version is compared against the
    base version, so "*-SNAPSHOT" matches timestamped snapshots too.
    """

    def __init__(self, patterns: Iterable[str], include: bool):
        self.patterns = list(patterns)
        self._include = include

    def include(self, artifact: Artifact) -> bool:
        tokens = [
            artifact.group_id,
            artifact.artifact_id,
            artifact.type,
            artifact.base_version or "",
        ]
        matched = any(matches_tokens(tokens, pattern) for pattern in self.patterns)
        return matched if self._include else not matched

    def __str__(self) -> str:
        kind = "include" if self._include else "exclude"
        return f"Strict {kind} filter: {self.patterns}"


class StrictPatternIncludesArtifactFilter(AbstractStrictPatternArtifactFilter):
    def __init__(self, patterns: Iterable[str]):
        super().__init__(patterns, True)


class StrictPatternExcludesArtifactFilter(AbstractStrictPatternArtifactFilter):
    def __init__(self, patterns: Iterable[str]):
        super().__init__(patterns, False)


class PatternIncludesArtifactFilter(StatisticsReportingArtifactFilter):
    """
    Include artifacts matching lenient patterns.

    Each pattern is tried against the artifact's full id, its conflict id and
    its groupId:artifactId key. A leading "!" makes a pattern negative. When
    acting transitively, the artifact is also matched through any entry of its
    dependency trail, where a plain substring match suffices.
    """

    def __init__(self, patterns: Optional[Iterable[str]] = None, act_transitively: bool = False):
        self.act_transitively = act_transitively
        self.patterns: List[str] = list(patterns or [])
        self.positive_patterns: List[str] = []
        self.negative_patterns: List[str] = []
        for pattern in self.patterns:
            if pattern.startswith("!"):
                self.negative_patterns.append(pattern[1:])
            else:
                self.positive_patterns.append(pattern)

        self.patterns_triggered: Set[str] = set()
        self.filtered_artifact_ids: List[str] = []

    def include(self, artifact: Artifact) -> bool:
        if not self.positive_patterns and not self.negative_patterns:
            return True

        should_include = self.pattern_matches(artifact)
        if not should_include:
            self.filtered_artifact_ids.append(artifact.id)
        return should_include

    def pattern_matches(self, artifact: Artifact) -> bool:
        positive = self._match(artifact, self.positive_patterns, "") if self.positive_patterns else None
        negative = self._match(artifact, self.negative_patterns, "!") if self.negative_patterns else None
        return positive is True or negative is False

    def _match(self, artifact: Artifact, patterns: List[str], prefix: str) -> bool:
        for value in (artifact.id, artifact.dependency_conflict_id, artifact.versionless_key):
            if self._match_against(value, patterns, prefix, region_match=False):
                return True

        if self.act_transitively and len(artifact.dependency_trail) > 1:
            for trail_item in artifact.dependency_trail:
                if self._match_against(trail_item, patterns, prefix, region_match=True):
                    return True
        return False

    def _match_against(self, value: str, patterns: List[str], prefix: str, region_match: bool) -> bool:
        for pattern in patterns:
            if matches_value(value, pattern) or (region_match and pattern in value):
                # triggered patterns are kept as written, "!" included
                self.patterns_triggered.add(prefix + pattern)
                return True
        return False

    def _missed_patterns(self) -> List[str]:
        return [p for p in self.patterns if p not in self.patterns_triggered]

    def has_missed_criteria(self) -> bool:
        return bool(self._missed_patterns())

    def report_missed_criteria(self, logger: logging.Logger) -> None:
        missed = self._missed_patterns()
        if missed and logger.isEnabledFor(logging.WARNING):
            lines = "".join(f"\no  '{pattern}'" for pattern in missed)
            logger.warning(f"The following patterns were never triggered in this {self.filter_description}:{lines}\n")

    def report_filtered_artifacts(self, logger: logging.Logger) -> None:
        if self.filtered_artifact_ids and logger.isEnabledFor(logging.DEBUG):
            lines = "".join(f"\n{artifact_id}" for artifact_id in self.filtered_artifact_ids)
            logger.debug(f"The following artifacts were removed by this {self.filter_description}: {lines}")

    @property
    def filter_description(self) -> str:
        return "artifact inclusion filter"

    def __str__(self) -> str:
        lines = "".join(f"\no '{pattern}'" for pattern in self.positive_patterns)
        return f"Includes filter:{lines}"


class PatternExcludesArtifactFilter(PatternIncludesArtifactFilter):
    """Exclude artifacts matching lenient patterns; the inverse of the includes filter."""

    def include(self, artifact: Artifact) -> bool:
        should_include = not self.pattern_matches(artifact)
        if not should_include:
            self.filtered_artifact_ids.append(artifact.id)
        return should_include

    @property
    def filter_description(self) -> str:
        return "artifact exclusion filter"

    def __str__(self) -> str:
        lines = "".join(f"\no '{pattern}'" for pattern in self.positive_patterns)
        return f"Excludes filter:{lines}"


class ScopeArtifactFilter(StatisticsReportingArtifactFilter):
    """
    Selects artifacts by scope.

    Constructed with a scope, the scope's implications are enabled (compile
    enables compile, provided and system; runtime enables compile and runtime;
    test enables everything). Constructed without one, nothing but the null
    scope is enabled and scopes are switched on individually.
    """

    def __init__(self, scope: Optional[str] = None):
        self.enabled_scopes: Set[str] = set(SCOPE_IMPLICATIONS.get(scope, set()))
        self.include_null_scope = True
        self.scopes_hit: Set[Optional[str]] = set()
        self.filtered_artifact_ids: List[str] = []

    def set_include_scope(self, scope: str, enabled: bool = True) -> 'ScopeArtifactFilter':
        """Enable or disable a single scope, without implications."""
        if enabled:
            self.enabled_scopes.add(scope)
        else:
            self.enabled_scopes.discard(scope)
        return self

    def set_include_scope_with_implications(self, scope: str, enabled: bool = True) -> 'ScopeArtifactFilter':
        for implied in SCOPE_IMPLICATIONS.get(scope, {scope}):
            self.set_include_scope(implied, enabled)
        return self

    def include(self, artifact: Artifact) -> bool:
        scope = artifact.scope
        self.scopes_hit.add(scope)

        if scope is None:
            result = self.include_null_scope
        elif scope in SCOPE_IMPLICATIONS:
            result = scope in self.enabled_scopes
        else:
            result = True

        if not result:
            if artifact.has_version_range():
                self.filtered_artifact_ids.append(f"{artifact.dependency_conflict_id}:{artifact.version}")
            else:
                self.filtered_artifact_ids.append(artifact.id)
        return result

    def _missed_scopes(self) -> List[str]:
        missed = ["[Null Scope]"] if None not in self.scopes_hit else []
        missed.extend(scope.capitalize() for scope in SCOPE_IMPLICATIONS if scope not in self.scopes_hit)
        return missed

    def has_missed_criteria(self) -> bool:
        return bool(self._missed_scopes())

    def report_missed_criteria(self, logger: logging.Logger) -> None:
        missed = self._missed_scopes()
        if missed and logger.isEnabledFor(logging.DEBUG):
            lines = "".join(f"\no {scope}" for scope in missed)
            logger.debug(f"The following scope filters were not used: {lines}")

    def report_filtered_artifacts(self, logger: logging.Logger) -> None:
        if self.filtered_artifact_ids and logger.isEnabledFor(logging.DEBUG):
            lines = "".join(f"\n{artifact_id}" for artifact_id in self.filtered_artifact_ids)
            logger.debug(f"The following artifacts were removed by this filter: {lines}")

    def __str__(self) -> str:
        flags = ", ".join(f"{scope}={scope in self.enabled_scopes}" for scope in SCOPE_IMPLICATIONS)
        return f"Scope filter [null-scope={self.include_null_scope}, {flags}]"


class CumulativeScopeArtifactFilter(ArtifactFilter):
    """Includes artifacts in any of several scopes, each with its implied scopes."""

    def __init__(self, scopes: Optional[Iterable[str]] = None):
        self.enabled_scopes: Set[str] = set()
        for scope in scopes or []:
            self.add_scope(scope)

    def add_scope(self, scope: str) -> None:
        self.enabled_scopes.update(SCOPE_IMPLICATIONS.get(scope, set()))

    def include(self, artifact: Artifact) -> bool:
        if artifact.scope in SCOPE_IMPLICATIONS:
            return artifact.scope in self.enabled_scopes
        return True


class ArtifactFilterError(Exception):
    """Raised when a collection filter is configured with an unusable criterion."""


def _split_features(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part for part in value.split(",") if part]


class ArtifactFeatureFilter:
    """
    Filters a collection of artifacts by one feature (groupId, type, ...).

    include and exclude are comma-separated lists. Includes are applied
    first, then excludes; an empty list leaves the collection alone. The
    input order is kept.
    """

    def __init__(self, include: Optional[str] = None, exclude: Optional[str] = None):
        self.includes = _split_features(include)
        self.excludes = _split_features(exclude)

    def filter(self, artifacts: Iterable[Artifact]) -> List[Artifact]:
        results = list(artifacts)
        if self.includes:
            results = [a for a in results
                       if any(self.compare_features(self.artifact_feature(a), f) for f in self.includes)]
        if self.excludes:
            results = [a for a in results
                       if not any(self.compare_features(self.artifact_feature(a), f) for f in self.excludes)]
        return results

    def artifact_feature(self, artifact: Artifact) -> Optional[str]:
        raise NotImplementedError

    def compare_features(self, feature: Optional[str], criterion: str) -> bool:
        return feature == criterion


class GroupIdFilter(ArtifactFeatureFilter):
    """Filters by groupId prefix: "org.apache" also selects "org.apache.maven"."""

    def artifact_feature(self, artifact: Artifact) -> Optional[str]:
        return artifact.group_id

    def compare_features(self, feature: Optional[str], criterion: str) -> bool:
        return feature is not None and feature.startswith(criterion)


class ArtifactIdFilter(ArtifactFeatureFilter):
    def artifact_feature(self, artifact: Artifact) -> Optional[str]:
        return artifact.artifact_id


class TypeFilter(ArtifactFeatureFilter):
    def artifact_feature(self, artifact: Artifact) -> Optional[str]:
        return artifact.type


class ClassifierFilter(ArtifactFeatureFilter):
    def artifact_feature(self, artifact: Artifact) -> Optional[str]:
        return artifact.classifier


class ScopeFilter:
    """
    Filters a collection of artifacts by an include or an exclude scope.

    An include scope keeps the artifacts the scope implies (provided and
    system keep only themselves). An exclude scope drops them; the exclude
    scope is ignored when an include scope is set. Scopes are case
    sensitive and test cannot be excluded, as it would exclude everything.
    """

    def __init__(self, include_scope: Optional[str] = None, exclude_scope: Optional[str] = None):
        self.include_scope = include_scope
        self.exclude_scope = exclude_scope

    def filter(self, artifacts: Iterable[Artifact]) -> List[Artifact]:
        artifacts = list(artifacts)

        if self.include_scope:
            self._check_scope(self.include_scope, "includeScope")
            if self.include_scope in (SCOPE_PROVIDED, SCOPE_SYSTEM):
                return [a for a in artifacts if a.scope == self.include_scope]
            scope_filter = ScopeArtifactFilter(self.include_scope)
            return [a for a in artifacts if scope_filter.include(a)]

        if self.exclude_scope:
            self._check_scope(self.exclude_scope, "excludeScope")
            if self.exclude_scope == SCOPE_TEST:
                raise ArtifactFilterError("Can't exclude Test scope, this will exclude everything.")
            if self.exclude_scope in (SCOPE_PROVIDED, SCOPE_SYSTEM):
                return [a for a in artifacts if a.scope != self.exclude_scope]
            scope_filter = ScopeArtifactFilter(self.exclude_scope)
            return [a for a in artifacts if not scope_filter.include(a)]

        return artifacts

    @staticmethod
    def _check_scope(scope: str, name: str) -> None:
        if scope not in SCOPE_IMPLICATIONS:
            raise ArtifactFilterError(f"Invalid Scope in {name}: {scope}")
