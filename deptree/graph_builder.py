"""Builds resolved dependency trees from a root artifact and its declared dependencies."""

import logging
from collections import deque
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Union

from .conflict import ConflictResolver
from .filters import ArtifactFilter
from .metadata import MetadataResolutionError, MetadataSource
from .models import Artifact, DependencyNode, NodeState
from .version_parser import (
    InvalidVersionSpecificationError,
    OverConstrainedVersionError,
    VersionRange,
)

logger = logging.getLogger(__name__)


class DependencyTreeBuilderError(Exception):
    """Raised when a tree cannot be built; the failing artifact and cause are kept."""

    def __init__(self, message: str, artifact: Optional[Artifact] = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.artifact = artifact
        self.cause = cause


class InvalidDependencyError(DependencyTreeBuilderError):
    """Raised for a dependency declaration that cannot be resolved as written."""


class ManagedVersions:
    """Dependency management: forced versions and scopes keyed by conflict key."""

    def __init__(self, mapping: Optional[Mapping[str, Artifact]] = None):
        self.mapping: Dict[str, Artifact] = dict(mapping or {})

    @classmethod
    def from_artifacts(cls, artifacts: Iterable[Union[str, Artifact]]) -> 'ManagedVersions':
        mapping = {}
        for artifact in artifacts:
            if isinstance(artifact, str):
                artifact = Artifact.parse(artifact)
            mapping[artifact.dependency_conflict_id] = artifact
        return cls(mapping)

    def lookup(self, conflict_id: str) -> Optional[Artifact]:
        return self.mapping.get(conflict_id)

    def __len__(self) -> int:
        return len(self.mapping)


def _as_managed_versions(managed) -> Optional[ManagedVersions]:
    if managed is None or hasattr(managed, "lookup"):
        return managed
    return ManagedVersions(managed)


class ResolutionRecord:
    """The winning node of every conflict key of one build, in discovery order."""

    def __init__(self, winners: Optional[Mapping[str, DependencyNode]] = None):
        self._winners: Dict[str, DependencyNode] = dict(winners or {})

    def winner(self, conflict_id: str) -> Optional[DependencyNode]:
        return self._winners.get(conflict_id)

    def keys(self) -> List[str]:
        return list(self._winners)

    def artifacts(self) -> List[Artifact]:
        return [node.artifact for node in self._winners.values()]

    def __contains__(self, conflict_id: str) -> bool:
        return conflict_id in self._winners

    def __len__(self) -> int:
        return len(self._winners)

    def __iter__(self) -> Iterator[str]:
        return iter(self._winners)


class DependencyTreeBuilder:
    """
    Builds a resolved dependency tree.

    The tree is grown breadth-first: every child of a node is decided before
    any node one level deeper, so the nearest declaration of an artifact wins
    and, between declarations at the same depth, the first one discovered.
    Losing declarations stay in the tree as omitted leaves pointing at the
    winner.
    """

    def __init__(
        self,
        metadata_source: Optional[MetadataSource] = None,
        conflict_resolver: Optional[ConflictResolver] = None,
        include_optional: bool = False
    ):
        self.metadata_source = metadata_source
        self.conflict_resolver = conflict_resolver or ConflictResolver()
        self.include_optional = include_optional
        self.resolution_record = ResolutionRecord()

    def build(
        self,
        root_artifact: Artifact,
        direct_dependencies: Iterable[Artifact],
        managed_versions=None,
        metadata_source: Optional[MetadataSource] = None,
        artifact_filter: Optional[ArtifactFilter] = None
    ) -> DependencyNode:
        """
        Build the tree of a root artifact.

        Args:
            root_artifact: The project whose dependencies are resolved
            direct_dependencies: The root's declared dependencies, in declaration order
            managed_versions: Dependency management, a ManagedVersions or a plain mapping
            metadata_source: Overrides the builder's source for this build
            artifact_filter: Included nodes it rejects are left out of the tree

        Returns:
            The root node; the winners are available from resolution_record
        """
        source = metadata_source or self.metadata_source
        if source is None:
            raise DependencyTreeBuilderError("No metadata source configured", root_artifact)
        managed = _as_managed_versions(managed_versions)

        self.conflict_resolver.reset()
        root_artifact = root_artifact.copy(dependency_trail=[root_artifact.id])
        root = DependencyNode(root_artifact)

        direct = [dep.copy() for dep in direct_dependencies]
        logger.info(f"Building dependency tree for {root_artifact.id} with {len(direct)} direct dependencies")

        queue = deque([(root, direct)])
        while queue:
            parent, declared = queue.popleft()
            for child in self._add_children(parent, declared, managed, source, artifact_filter):
                queue.append((child, self._direct_dependencies_of(child, source)))

        self.resolution_record = ResolutionRecord(self.conflict_resolver.winners)
        logger.info(f"Resolved {len(self.resolution_record)} artifacts for {root_artifact.id}")
        return root

    def _add_children(
        self,
        parent: DependencyNode,
        declared: List[Artifact],
        managed: Optional[ManagedVersions],
        source: MetadataSource,
        artifact_filter: Optional[ArtifactFilter]
    ) -> List[DependencyNode]:
        """Decide every declared dependency of a node; return the new winners to expand."""
        transitive = parent.parent is not None
        scope_mediator = self.conflict_resolver.scope_mediator
        winners = []

        for artifact in declared:
            self._validate(artifact)

            if transitive:
                if artifact.optional and not self.include_optional:
                    logger.debug(f"Skipping optional dependency {artifact} of {parent.artifact}")
                    continue
                if not scope_mediator.is_transitive(artifact.scope):
                    logger.debug(f"Skipping {artifact.scope} dependency {artifact} of {parent.artifact}")
                    continue
                artifact.scope = scope_mediator.inherit_scope(parent.artifact.scope, artifact.scope)

            node = DependencyNode(artifact)
            parent.add_child(node)

            state = self.conflict_resolver.resolve(node, managed)
            artifact.dependency_trail = parent.artifact.dependency_trail + [artifact.id]
            if state is not NodeState.INCLUDED:
                continue

            if not artifact.version:
                parent.remove_child(node)
                raise InvalidDependencyError(f"No version declared or managed for {artifact}", artifact)

            if artifact_filter is not None and not artifact_filter.include(artifact):
                logger.debug(f"Filtered out {artifact}")
                parent.remove_child(node)
                continue

            if artifact.has_version_range():
                self._select_version_from_range(node, source)
                artifact.dependency_trail[-1] = artifact.id

            self.conflict_resolver.register(node)
            winners.append(node)

        return winners

    @staticmethod
    def _validate(artifact: Artifact) -> None:
        if not artifact.group_id or not artifact.artifact_id:
            raise InvalidDependencyError(f"Dependency is missing its groupId or artifactId: {artifact}", artifact)
        if artifact.has_version_range():
            try:
                VersionRange.create_from_version_spec(artifact.version)
            except InvalidVersionSpecificationError as e:
                raise InvalidDependencyError(f"Invalid version specification for {artifact}: {e}", artifact, e) from e

    def _select_version_from_range(self, node: DependencyNode, source: MetadataSource) -> None:
        artifact = node.artifact
        spec = artifact.version
        try:
            available = source.retrieve_available_versions(artifact)
        except MetadataResolutionError as e:
            raise DependencyTreeBuilderError(f"Unable to get available versions of {artifact}: {e}", artifact, e) from e

        selected = VersionRange.create_from_version_spec(spec).match_version(available)
        if selected is None:
            cause = OverConstrainedVersionError(f"No version of {artifact.versionless_key} in {spec} among {available}")
            raise DependencyTreeBuilderError(str(cause), artifact, cause) from cause

        logger.debug(f"Selected {selected} for {artifact.versionless_key} from {spec}")
        artifact.version = selected
        node.version_selected_from_range = spec
        node.available_versions = available

    @staticmethod
    def _direct_dependencies_of(node: DependencyNode, source: MetadataSource) -> List[Artifact]:
        try:
            return source.get_direct_dependencies(node.artifact)
        except MetadataResolutionError as e:
            logger.error(f"Aborting build: {e}")
            raise DependencyTreeBuilderError(
                f"Unable to get dependencies of {node.artifact}: {e}", node.artifact, e
            ) from e
