"""Visitors walking a dependency tree: collecting, rendering, filtering, copying and counting."""

import io
from collections import Counter
from dataclasses import dataclass
from typing import Callable, List, Optional, TextIO

from .models import DependencyNode, NodeState


class DependencyNodeVisitor:
    """
    Base visitor; both callbacks return whether the walk continues.

    visit() is called before a node's children and decides whether they are
    visited; end_visit() is called after them and returning False stops the
    node's remaining siblings.
    """

    def visit(self, node: DependencyNode) -> bool:
        return True

    def end_visit(self, node: DependencyNode) -> bool:
        return True


class CollectingDependencyNodeVisitor(DependencyNodeVisitor):
    """Collects every visited node in pre-order."""

    def __init__(self):
        self.nodes: List[DependencyNode] = []

    def visit(self, node: DependencyNode) -> bool:
        self.nodes.append(node)
        return True


@dataclass(frozen=True)
class TreeTokens:
    """Line prefixes used when rendering a tree."""
    node: str
    last_node: str
    fill: str
    last_fill: str


STANDARD_TOKENS = TreeTokens("+- ", "\\- ", "|  ", "   ")
EXTENDED_TOKENS = TreeTokens("├─ ", "└─ ", "│  ", "   ")
WHITESPACE_TOKENS = TreeTokens("   ", "   ", "   ", "   ")

TREE_STYLES = {
    "standard": STANDARD_TOKENS,
    "extended": EXTENDED_TOKENS,
    "whitespace": WHITESPACE_TOKENS,
}


class SerializingDependencyNodeVisitor(DependencyNodeVisitor):
    """
    Renders a tree as text, one node per line:

        g:p:jar:1
        +- g:a:jar:1:compile
        |  \\- g:b:jar:1:compile
        \\- g:c:jar:1:test
    """

    def __init__(self, writer: Optional[TextIO] = None, tokens: TreeTokens = STANDARD_TOKENS):
        self.writer = writer if writer is not None else io.StringIO()
        self.tokens = tokens
        self._depth = 0

    def visit(self, node: DependencyNode) -> bool:
        self._indent(node)
        self.writer.write(node.to_node_string())
        self.writer.write("\n")
        self._depth += 1
        return True

    def end_visit(self, node: DependencyNode) -> bool:
        self._depth -= 1
        return True

    def _indent(self, node: DependencyNode) -> None:
        # walk up from the node's parent; each ancestor below the root adds one column
        prefixes = []
        current = node
        for level in range(self._depth):
            parent = current.parent
            if parent is None:
                break
            last = parent.children[-1] is current
            if level == 0:
                prefixes.append(self.tokens.last_node if last else self.tokens.node)
            else:
                prefixes.append(self.tokens.last_fill if last else self.tokens.fill)
            current = parent
        self.writer.write("".join(reversed(prefixes)))

    def getvalue(self) -> str:
        """The rendered text, when writing to the default in-memory buffer."""
        return self.writer.getvalue()


class FilteringDependencyNodeVisitor(DependencyNodeVisitor):
    """
    Passes only the nodes accepted by a node filter on to another visitor.

    Rejected nodes are still descended into, so accepted descendants are seen.
    """

    def __init__(self, visitor: DependencyNodeVisitor, node_filter):
        self.visitor = visitor
        self.node_filter = node_filter

    def visit(self, node: DependencyNode) -> bool:
        if self.node_filter.accept(node):
            return self.visitor.visit(node)
        return True

    def end_visit(self, node: DependencyNode) -> bool:
        if self.node_filter.accept(node):
            return self.visitor.end_visit(node)
        return True


class BuildingDependencyNodeVisitor(DependencyNodeVisitor):
    """
    Builds a copy of the visited tree, optionally forwarding to another visitor.

    Only visited nodes are copied, so wrapped in a FilteringDependencyNodeVisitor
    it builds a pruned tree.
    """

    def __init__(self, visitor: Optional[DependencyNodeVisitor] = None):
        self.visitor = visitor
        self.dependency_tree: Optional[DependencyNode] = None
        self._stack: List[DependencyNode] = []

    def visit(self, node: DependencyNode) -> bool:
        copy = _copy_node(node)
        if self._stack:
            self._stack[-1].add_child(copy)
        else:
            self.dependency_tree = copy
        self._stack.append(copy)

        if self.visitor is not None:
            return self.visitor.visit(copy)
        return True

    def end_visit(self, node: DependencyNode) -> bool:
        copy = self._stack.pop()
        if self.visitor is not None:
            return self.visitor.end_visit(copy)
        return True


def _copy_node(node: DependencyNode) -> DependencyNode:
    copy = DependencyNode(node.artifact.copy(), node.state, node.related_artifact)
    copy.premanaged_version = node.premanaged_version
    copy.premanaged_scope = node.premanaged_scope
    copy.original_scope = node.original_scope
    copy.failed_update_scope = node.failed_update_scope
    copy.version_selected_from_range = node.version_selected_from_range
    copy.available_versions = node.available_versions
    return copy


class StatisticsDependencyNodeVisitor(DependencyNodeVisitor):
    """Counts nodes by state, distinct winners and the maximum depth."""

    def __init__(self):
        self.state_counts: Counter = Counter()
        self.winners = set()
        self.max_depth = 0
        self._depth = -1

    def visit(self, node: DependencyNode) -> bool:
        self._depth += 1
        self.max_depth = max(self.max_depth, self._depth)
        self.state_counts[node.state] += 1
        if node.state is NodeState.INCLUDED and self._depth > 0:
            self.winners.add(node.artifact.dependency_conflict_id)
        return True

    def end_visit(self, node: DependencyNode) -> bool:
        self._depth -= 1
        return True

    @property
    def total(self) -> int:
        return sum(self.state_counts.values())


class FirstMatchDependencyNodeVisitor(DependencyNodeVisitor):
    """Stops the walk at the first node satisfying a predicate."""

    def __init__(self, predicate: Callable[[DependencyNode], bool]):
        self.predicate = predicate
        self.match: Optional[DependencyNode] = None

    def visit(self, node: DependencyNode) -> bool:
        if self.match is None and self.predicate(node):
            self.match = node
        return self.match is None

    def end_visit(self, node: DependencyNode) -> bool:
        return self.match is None
