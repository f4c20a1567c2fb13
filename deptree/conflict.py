"""Conflict resolution policy: nearest-wins selection, management and scope mediation."""

import logging
from typing import Dict, Mapping, Optional, Tuple

from .models import (
    Artifact,
    DependencyNode,
    NodeState,
    SCOPE_COMPILE,
    SCOPE_PROVIDED,
    SCOPE_RUNTIME,
    SCOPE_SYSTEM,
    SCOPE_TEST,
)
from .version_parser import InvalidVersionSpecificationError, VersionRange

logger = logging.getLogger(__name__)

# (winning scope, newcomer scope) -> widened scope
DEFAULT_WIDENING: Dict[Tuple[str, str], str] = {
    (SCOPE_RUNTIME, SCOPE_COMPILE): SCOPE_COMPILE,
    (SCOPE_TEST, SCOPE_COMPILE): SCOPE_COMPILE,
    (SCOPE_TEST, SCOPE_RUNTIME): SCOPE_RUNTIME,
}

# Scopes that never reach beyond the artifact that declares them
NON_TRANSITIVE_SCOPES = (SCOPE_TEST, SCOPE_PROVIDED, SCOPE_SYSTEM)


class ScopeMediator:
    """
    Scope rules applied while a tree is built.

    inherit_scope() derives the scope of a transitive dependency from the scope
    its parent ended up with. widen() decides whether a re-encountered
    dependency may broaden the scope of the node that already won; the
    widening matrix is configurable.
    """

    def __init__(self, widening: Optional[Mapping[Tuple[str, str], str]] = None):
        self.widening = dict(DEFAULT_WIDENING if widening is None else widening)

    @staticmethod
    def is_transitive(declared_scope: Optional[str]) -> bool:
        return declared_scope not in NON_TRANSITIVE_SCOPES

    @staticmethod
    def inherit_scope(parent_scope: Optional[str], declared_scope: Optional[str]) -> Optional[str]:
        if parent_scope is None:
            return declared_scope
        if parent_scope in (SCOPE_PROVIDED, SCOPE_SYSTEM):
            return SCOPE_PROVIDED
        if parent_scope in (SCOPE_TEST, SCOPE_RUNTIME):
            return parent_scope
        return declared_scope or SCOPE_COMPILE

    def widen(self, winning_scope: Optional[str], newcomer_scope: Optional[str]) -> Optional[str]:
        """Return the widened scope, or None when the winner keeps its scope."""
        return self.widening.get((winning_scope or SCOPE_COMPILE, newcomer_scope or SCOPE_COMPILE))


class ConflictResolver:
    """
    Decides the state of each newly discovered node.

    Winners are remembered per conflict key for the lifetime of one build, in
    the order they were registered. The first registered occurrence of a key
    wins; later ones are omitted as duplicates (same version) or conflicts.
    """

    def __init__(self, scope_mediator: Optional[ScopeMediator] = None):
        self.scope_mediator = scope_mediator or ScopeMediator()
        self.winners: Dict[str, DependencyNode] = {}

    def reset(self) -> None:
        self.winners = {}

    def winner(self, conflict_id: str) -> Optional[DependencyNode]:
        return self.winners.get(conflict_id)

    def register(self, node: DependencyNode) -> None:
        """Record an included node as the winner for its conflict key."""
        key = node.artifact.dependency_conflict_id
        if key in self.winners:
            raise ValueError(f"A winner for {key} is already registered")
        self.winners[key] = node

    def resolve(self, node: DependencyNode, managed_versions=None) -> NodeState:
        """
        Decide a node already attached to its parent.

        Cycles are checked first, then dependency management is applied, then
        the node is compared with the current winner for its conflict key.
        The node is left INCLUDED when it is the first of its key; the caller
        registers it once it decides to keep it.
        """
        artifact = node.artifact
        key = artifact.dependency_conflict_id

        for ancestor in node.ancestors():
            if ancestor.artifact.dependency_conflict_id == key:
                logger.warning(f"Dependency cycle detected: {artifact} is its own ancestor")
                node.omit_for_cycle(ancestor.artifact)
                return node.state

        self.apply_management(node, managed_versions)

        winner = self.winners.get(key)
        if winner is None:
            return node.state

        if self._is_duplicate(artifact, winner.artifact):
            node.state = NodeState.OMITTED_FOR_DUPLICATE
        else:
            node.state = NodeState.OMITTED_FOR_CONFLICT
        node.related_artifact = winner.artifact
        logger.debug(f"{artifact} {node.state.value} ({winner.artifact} wins)")

        self._mediate_scope(winner, artifact.scope)
        return node.state

    @staticmethod
    def _is_duplicate(artifact: Artifact, winning: Artifact) -> bool:
        if artifact.version == winning.version:
            return True
        if artifact.has_version_range() and winning.version:
            try:
                return VersionRange.create_from_version_spec(artifact.version).contains_version(winning.version)
            except InvalidVersionSpecificationError:
                return False
        return False

    def _mediate_scope(self, winner: DependencyNode, newcomer_scope: Optional[str]) -> None:
        widened = self.scope_mediator.widen(winner.artifact.scope, newcomer_scope)
        if widened is None:
            return

        # a scope declared by the project itself is never overridden
        if winner.depth <= 1:
            logger.debug(f"Not updating scope of {winner.artifact} to {widened}: declared by the project")
            winner.failed_update_scope = widened
            return

        logger.debug(f"Updating scope of {winner.artifact} to {widened}")
        if winner.original_scope is None:
            winner.original_scope = winner.artifact.scope
        winner.artifact.scope = widened

    @staticmethod
    def apply_management(node: DependencyNode, managed_versions) -> None:
        """
        Apply a dependency management override to a node.

        Transitive nodes take the managed version and scope, recording the
        values they had before. Direct dependencies only take what they leave
        unspecified.
        """
        if managed_versions is None:
            return
        managed = managed_versions.lookup(node.artifact.dependency_conflict_id)
        if managed is None:
            return

        artifact = node.artifact
        direct = node.depth <= 1

        if managed.version and managed.version != artifact.version:
            if direct:
                if not artifact.version:
                    artifact.version = managed.version
            else:
                node.premanaged_version = artifact.version
                artifact.version = managed.version

        if managed.scope and managed.scope != artifact.scope:
            if direct:
                if not artifact.scope:
                    artifact.scope = managed.scope
            else:
                node.premanaged_scope = artifact.scope
                artifact.scope = managed.scope
