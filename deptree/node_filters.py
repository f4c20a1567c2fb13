"""Filters over dependency tree nodes, for use with FilteringDependencyNodeVisitor."""

from typing import Iterable, List, Optional

from .filters import ArtifactFilter
from .models import DependencyNode, NodeState


class DependencyNodeFilter:
    def accept(self, node: DependencyNode) -> bool:
        raise NotImplementedError

    def __call__(self, node: DependencyNode) -> bool:
        return self.accept(node)


class StateDependencyNodeFilter(DependencyNodeFilter):
    """Accepts nodes in a given state; INCLUDED by default."""

    INCLUDED: 'StateDependencyNodeFilter'

    def __init__(self, state: NodeState = NodeState.INCLUDED):
        self.state = state

    def accept(self, node: DependencyNode) -> bool:
        return node.state is self.state


StateDependencyNodeFilter.INCLUDED = StateDependencyNodeFilter(NodeState.INCLUDED)


class ArtifactDependencyNodeFilter(DependencyNodeFilter):
    """Accepts nodes whose artifact an artifact filter includes."""

    def __init__(self, artifact_filter: ArtifactFilter):
        self.artifact_filter = artifact_filter

    def accept(self, node: DependencyNode) -> bool:
        return self.artifact_filter.include(node.artifact)


class AncestorOrSelfDependencyNodeFilter(DependencyNodeFilter):
    """Accepts the given nodes and every ancestor of any of them."""

    def __init__(self, descendant_nodes: Iterable[DependencyNode]):
        self.descendant_nodes: List[DependencyNode] = list(descendant_nodes)

    def accept(self, node: DependencyNode) -> bool:
        for descendant in self.descendant_nodes:
            if descendant is node or any(ancestor is node for ancestor in descendant.ancestors()):
                return True
        return False


class AndDependencyNodeFilter(DependencyNodeFilter):
    """Accepts nodes accepted by every filter."""

    def __init__(self, filters: Optional[Iterable[DependencyNodeFilter]] = None):
        self.filters: List[DependencyNodeFilter] = list(filters or [])

    def add(self, node_filter: DependencyNodeFilter) -> None:
        self.filters.append(node_filter)

    def accept(self, node: DependencyNode) -> bool:
        return all(f.accept(node) for f in self.filters)
