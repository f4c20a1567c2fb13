"""Core data models for deptree."""

import weakref
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterator, List, Optional

from packageurl import PackageURL

from .version_parser import VersionParser

SCOPE_COMPILE = "compile"
SCOPE_RUNTIME = "runtime"
SCOPE_TEST = "test"
SCOPE_PROVIDED = "provided"
SCOPE_SYSTEM = "system"

SCOPES = (SCOPE_COMPILE, SCOPE_RUNTIME, SCOPE_TEST, SCOPE_PROVIDED, SCOPE_SYSTEM)


@dataclass
class Artifact:
    """A Maven artifact identified by its coordinates."""

    group_id: str
    artifact_id: str
    version: Optional[str] = None  # plain version, range spec, or None when managed
    type: str = "jar"
    classifier: Optional[str] = None
    scope: Optional[str] = None  # compile, runtime, test, provided, system or None
    optional: bool = False
    file: Optional[str] = None  # resolved location, filled in by whoever fetched it
    dependency_trail: List[str] = field(default_factory=list, compare=False)

    def __post_init__(self):
        """Normalize empty classifier and scope to None."""
        if not self.classifier:
            self.classifier = None
        if not self.scope:
            self.scope = None
        if not self.type:
            self.type = "jar"

    @classmethod
    def parse(cls, coordinates: str) -> 'Artifact':
        """
        Parse a coordinate string.

        Accepted forms:
            groupId:artifactId:version
            groupId:artifactId:type:version
            groupId:artifactId:type:version:scope
            groupId:artifactId:type:classifier:version:scope
        """
        parts = coordinates.strip().split(':')
        if len(parts) < 3 or len(parts) > 6:
            raise ValueError(f"Invalid artifact coordinates: '{coordinates}'")

        if len(parts) == 3:
            group_id, artifact_id, version = parts
            return cls(group_id, artifact_id, version)
        if len(parts) == 4:
            group_id, artifact_id, type_, version = parts
            return cls(group_id, artifact_id, version, type=type_)
        if len(parts) == 5:
            group_id, artifact_id, type_, version, scope = parts
            return cls(group_id, artifact_id, version, type=type_, scope=scope)

        group_id, artifact_id, type_, classifier, version, scope = parts
        return cls(group_id, artifact_id, version, type=type_, classifier=classifier, scope=scope)

    @classmethod
    def from_purl(cls, purl: str) -> 'Artifact':
        """Build an artifact from a Maven Package URL (pkg:maven/group/artifact@version)."""
        parsed = PackageURL.from_string(purl)
        if parsed.type != "maven":
            raise ValueError(f"Not a Maven package URL: '{purl}'")
        qualifiers = parsed.qualifiers or {}
        return cls(
            group_id=parsed.namespace or "",
            artifact_id=parsed.name,
            version=parsed.version,
            type=qualifiers.get("type", "jar"),
            classifier=qualifiers.get("classifier"),
        )

    def to_purl(self) -> str:
        """Return the Package URL for this artifact."""
        qualifiers = {}
        if self.type != "jar":
            qualifiers["type"] = self.type
        if self.classifier:
            qualifiers["classifier"] = self.classifier
        return PackageURL(
            type="maven",
            namespace=self.group_id,
            name=self.artifact_id,
            version=self.version,
            qualifiers=qualifiers or None,
        ).to_string()

    @property
    def dependency_conflict_id(self) -> str:
        """The conflict key: group:artifact:type[:classifier], version excluded."""
        key = f"{self.group_id}:{self.artifact_id}:{self.type}"
        if self.classifier:
            key += f":{self.classifier}"
        return key

    @property
    def versionless_key(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"

    @property
    def id(self) -> str:
        """Full coordinates: group:artifact:type[:classifier]:version."""
        return f"{self.dependency_conflict_id}:{self.version}"

    @property
    def base_version(self) -> Optional[str]:
        return VersionParser.get_base_version(self.version)

    def has_version_range(self) -> bool:
        return VersionParser.is_range(self.version)

    def copy(self, **changes) -> 'Artifact':
        """Return a copy with the given fields replaced; the trail is copied, not shared."""
        changes.setdefault("dependency_trail", list(self.dependency_trail))
        return replace(self, **changes)

    def __str__(self) -> str:
        if self.scope:
            return f"{self.id}:{self.scope}"
        return self.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Artifact):
            return False
        return self.id == other.id


class NodeState(Enum):
    """Outcome of conflict resolution for a node."""

    INCLUDED = "included"
    OMITTED_FOR_DUPLICATE = "omitted for duplicate"
    OMITTED_FOR_CONFLICT = "omitted for conflict"
    OMITTED_FOR_CYCLE = "omitted for cycle"


class DependencyNode:
    """
    A node in a resolved dependency tree.

    Children are owned by their parent; the parent is only weakly referenced
    so a subtree never keeps its ancestors alive.
    """

    def __init__(
        self,
        artifact: Artifact,
        state: NodeState = NodeState.INCLUDED,
        related_artifact: Optional[Artifact] = None
    ):
        if state is not NodeState.INCLUDED and related_artifact is None:
            raise ValueError(f"Related artifact required for state {state.name}")

        self.artifact = artifact
        self.state = state
        self.related_artifact = related_artifact
        self.children: List['DependencyNode'] = []
        self._parent: Optional[weakref.ref] = None

        self.premanaged_version: Optional[str] = None
        self.premanaged_scope: Optional[str] = None
        self.original_scope: Optional[str] = None
        self.failed_update_scope: Optional[str] = None
        self.version_selected_from_range: Optional[str] = None
        self.available_versions: Optional[List[str]] = None

    @property
    def parent(self) -> Optional['DependencyNode']:
        return self._parent() if self._parent is not None else None

    @property
    def depth(self) -> int:
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    @property
    def has_children(self) -> bool:
        return bool(self.children)

    def ancestors(self) -> Iterator['DependencyNode']:
        """Yield the parent, grandparent and so on up to the root."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def add_child(self, child: 'DependencyNode') -> None:
        """Append a child; the child must not already belong to another node."""
        if child.parent is not None:
            raise ValueError(f"{child.artifact} already has a parent")
        self.children.append(child)
        child._parent = weakref.ref(self)

    def remove_child(self, child: 'DependencyNode') -> None:
        self.children.remove(child)
        child._parent = None

    def remove_all_children(self) -> None:
        for child in list(self.children):
            self.remove_child(child)

    def omit_for_conflict(self, related_artifact: Artifact) -> None:
        """
        Omit this node in favour of another artifact with the same conflict key.

        The node becomes a duplicate when the related artifact has the same
        version, a conflict otherwise. Any children are detached.
        """
        if self.state is not NodeState.INCLUDED:
            raise ValueError("Only included nodes can be omitted")
        if related_artifact.dependency_conflict_id != self.artifact.dependency_conflict_id:
            raise ValueError(f"{related_artifact} does not conflict with {self.artifact}")

        if related_artifact.version == self.artifact.version:
            self.state = NodeState.OMITTED_FOR_DUPLICATE
        else:
            self.state = NodeState.OMITTED_FOR_CONFLICT
        self.related_artifact = related_artifact
        self.remove_all_children()

    def omit_for_cycle(self, related_artifact: Artifact) -> None:
        """Omit this node because its conflict key already appears among its ancestors."""
        if self.state is not NodeState.INCLUDED:
            raise ValueError("Only included nodes can be omitted")
        self.state = NodeState.OMITTED_FOR_CYCLE
        self.related_artifact = related_artifact
        self.remove_all_children()

    def accept(self, visitor) -> bool:
        """
        Apply a visitor to this node and its descendants.

        Children are visited only when visit() returns True; a False from a
        child's end_visit() stops the remaining siblings.
        """
        if visitor.visit(self):
            for child in self.children:
                if not child.accept(visitor):
                    break
        return visitor.end_visit(self)

    def preorder_iterator(self) -> Iterator['DependencyNode']:
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def inverse_iterator(self) -> Iterator['DependencyNode']:
        """Iterate in reverse pre-order (last-declared leaf first, this node last)."""
        return reversed(list(self.preorder_iterator()))

    def to_node_string(self) -> str:
        """Render this node alone, e.g. "(g:a:jar:2:compile - omitted for conflict with 1)"."""
        details = []
        if self.premanaged_version:
            details.append(f"version managed from {self.premanaged_version}")
        if self.premanaged_scope:
            details.append(f"scope managed from {self.premanaged_scope}")
        if self.original_scope:
            details.append(f"scope updated from {self.original_scope}")
        if self.failed_update_scope:
            details.append(f"scope not updated to {self.failed_update_scope}")
        if self.version_selected_from_range:
            details.append(f"version selected from constraint {self.version_selected_from_range}")

        if self.state is NodeState.OMITTED_FOR_CONFLICT:
            details.append(f"omitted for conflict with {self.related_artifact.version}")
        elif self.state is not NodeState.INCLUDED:
            details.append(self.state.value)

        if self.state is NodeState.INCLUDED:
            if details:
                return f"{self.artifact} ({'; '.join(details)})"
            return str(self.artifact)
        return f"({self.artifact} - {'; '.join(details)})"

    def _to_string(self, indent: int) -> List[str]:
        lines = [" " * indent + self.to_node_string()]
        for child in self.children:
            lines.extend(child._to_string(indent + 2))
        return lines

    def __str__(self) -> str:
        return "\n".join(self._to_string(0)) + "\n"

    def __repr__(self) -> str:
        return f"DependencyNode({self.to_node_string()!r})"

    def __eq__(self, other) -> bool:
        """Structural equality over the node's state, annotations and subtree."""
        if not isinstance(other, DependencyNode):
            return False
        return (
            self.artifact == other.artifact
            and self.artifact.scope == other.artifact.scope
            and self.state is other.state
            and self.related_artifact == other.related_artifact
            and self.premanaged_version == other.premanaged_version
            and self.premanaged_scope == other.premanaged_scope
            and self.original_scope == other.original_scope
            and self.failed_update_scope == other.failed_update_scope
            and self.version_selected_from_range == other.version_selected_from_range
            and self.children == other.children
        )

    def __hash__(self) -> int:
        return hash((self.artifact.id, self.state))
