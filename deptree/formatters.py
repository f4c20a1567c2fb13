"""Output formatters for resolved dependency trees."""

import io
import logging
from typing import List

from .models import Artifact, DependencyNode, NodeState
from .traversal import (
    CollectingDependencyNodeVisitor,
    FilteringDependencyNodeVisitor,
    SerializingDependencyNodeVisitor,
    StatisticsDependencyNodeVisitor,
    STANDARD_TOKENS,
    TreeTokens,
)
from .node_filters import StateDependencyNodeFilter

logger = logging.getLogger(__name__)


def _included_artifacts(root: DependencyNode) -> List[Artifact]:
    collector = CollectingDependencyNodeVisitor()
    root.accept(FilteringDependencyNodeVisitor(collector, StateDependencyNodeFilter.INCLUDED))
    return [node.artifact for node in collector.nodes[1:]]


class OutputFormatter:
    """Formatter for various output formats."""

    @staticmethod
    def format_as_tree(root: DependencyNode, tokens: TreeTokens = STANDARD_TOKENS) -> str:
        """Format as a tree visualization, omitted nodes included."""
        serializer = SerializingDependencyNodeVisitor(io.StringIO(), tokens)
        root.accept(serializer)
        return serializer.getvalue()

    @staticmethod
    def format_as_maven_tree(root: DependencyNode, tokens: TreeTokens = STANDARD_TOKENS) -> str:
        """Format as Maven dependency:tree output."""
        tree = OutputFormatter.format_as_tree(root, tokens)
        lines = [f"[INFO] {line}" for line in tree.splitlines()]
        return '\n'.join(lines) + '\n'

    @staticmethod
    def format_as_list(root: DependencyNode) -> str:
        """Format the included artifacts as a flat list (one per line)."""
        lines = [str(artifact) for artifact in _included_artifacts(root)]
        return '\n'.join(lines) + '\n' if lines else ''

    @staticmethod
    def format_as_purls(root: DependencyNode) -> str:
        """Format the included artifacts as Package URLs."""
        lines = [artifact.to_purl() for artifact in _included_artifacts(root)]
        return '\n'.join(lines) + '\n' if lines else ''

    @staticmethod
    def format_statistics(root: DependencyNode) -> str:
        """Summarize a tree: nodes by state, distinct winners and depth."""
        stats = StatisticsDependencyNodeVisitor()
        root.accept(stats)

        lines = [
            f"Dependency Statistics for {root.artifact.id}:",
            f"  Total Nodes: {stats.total}",
        ]
        for state in NodeState:
            lines.append(f"  {state.value.capitalize()}: {stats.state_counts[state]}")
        lines.extend([
            f"  Resolved Artifacts: {len(stats.winners)}",
            f"  Max Depth: {stats.max_depth}",
        ])
        return '\n'.join(lines) + '\n'
