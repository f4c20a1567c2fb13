"""Tests for tree visitors and node filters."""

import io

from deptree.filters import PatternIncludesArtifactFilter
from deptree.models import Artifact, DependencyNode, NodeState
from deptree.node_filters import (
    AncestorOrSelfDependencyNodeFilter,
    AndDependencyNodeFilter,
    ArtifactDependencyNodeFilter,
    StateDependencyNodeFilter,
)
from deptree.traversal import (
    BuildingDependencyNodeVisitor,
    CollectingDependencyNodeVisitor,
    EXTENDED_TOKENS,
    FilteringDependencyNodeVisitor,
    FirstMatchDependencyNodeVisitor,
    SerializingDependencyNodeVisitor,
    StatisticsDependencyNodeVisitor,
    WHITESPACE_TOKENS,
)


def node(coords, state=NodeState.INCLUDED, related=None):
    return DependencyNode(Artifact.parse(coords), state, Artifact.parse(related) if related else None)


def sample_tree():
    """
    g:p:t:1
    +- g:a:t:1
    |  \\- g:b:t:1
    \\- g:c:t:1
       \\- (g:b:t:2 - omitted for conflict with 1)
    """
    root = node("g:p:t:1")
    a = node("g:a:t:1")
    c = node("g:c:t:1")
    root.add_child(a)
    root.add_child(c)
    a.add_child(node("g:b:t:1"))
    c.add_child(node("g:b:t:2", NodeState.OMITTED_FOR_CONFLICT, "g:b:t:1"))
    return root


def serialize(root, tokens=None):
    visitor = SerializingDependencyNodeVisitor(io.StringIO()) if tokens is None else \
        SerializingDependencyNodeVisitor(io.StringIO(), tokens)
    root.accept(visitor)
    return visitor.getvalue()


class TestSerializingDependencyNodeVisitor:

    def test_single_node(self):
        assert serialize(node("g:p:t:1")) == "g:p:t:1\n"

    def test_node_with_child(self):
        root = node("g:p:t:1")
        root.add_child(node("g:a:t:1"))

        assert serialize(root) == "g:p:t:1\n\\- g:a:t:1\n"

    def test_node_with_multiple_children(self):
        root = node("g:p:t:1")
        for name in ("a", "b", "c"):
            root.add_child(node(f"g:{name}:t:1"))

        assert serialize(root) == (
            "g:p:t:1\n"
            "+- g:a:t:1\n"
            "+- g:b:t:1\n"
            "\\- g:c:t:1\n"
        )

    def test_node_with_grandchild(self):
        root = node("g:p:t:1")
        child = node("g:a:t:1")
        root.add_child(child)
        child.add_child(node("g:b:t:1"))

        assert serialize(root) == (
            "g:p:t:1\n"
            "\\- g:a:t:1\n"
            "   \\- g:b:t:1\n"
        )

    def test_node_with_multiple_grandchildren(self):
        assert serialize(sample_tree()) == (
            "g:p:t:1\n"
            "+- g:a:t:1\n"
            "|  \\- g:b:t:1\n"
            "\\- g:c:t:1\n"
            "   \\- (g:b:t:2 - omitted for conflict with 1)\n"
        )

    def test_extended_tokens(self):
        assert serialize(sample_tree(), EXTENDED_TOKENS) == (
            "g:p:t:1\n"
            "├─ g:a:t:1\n"
            "│  └─ g:b:t:1\n"
            "└─ g:c:t:1\n"
            "   └─ (g:b:t:2 - omitted for conflict with 1)\n"
        )

    def test_whitespace_tokens(self):
        lines = serialize(sample_tree(), WHITESPACE_TOKENS).splitlines()

        assert lines[1] == "   g:a:t:1"
        assert lines[2] == "      g:b:t:1"

    def test_default_writer(self):
        visitor = SerializingDependencyNodeVisitor()
        node("g:p:t:1").accept(visitor)

        assert visitor.getvalue() == "g:p:t:1\n"


class TestCollectingDependencyNodeVisitor:

    def test_collects_in_preorder(self):
        collector = CollectingDependencyNodeVisitor()
        sample_tree().accept(collector)

        assert [str(n.artifact) for n in collector.nodes] == [
            "g:p:t:1", "g:a:t:1", "g:b:t:1", "g:c:t:1", "g:b:t:2",
        ]


class TestFilteringDependencyNodeVisitor:

    def test_only_accepted_nodes_reach_the_visitor(self):
        collector = CollectingDependencyNodeVisitor()
        sample_tree().accept(FilteringDependencyNodeVisitor(collector, StateDependencyNodeFilter.INCLUDED))

        assert [str(n.artifact) for n in collector.nodes] == [
            "g:p:t:1", "g:a:t:1", "g:b:t:1", "g:c:t:1",
        ]

    def test_rejected_nodes_are_still_descended(self):
        """Test that accepted grandchildren of a rejected node are still visited."""
        collector = CollectingDependencyNodeVisitor()
        artifact_filter = PatternIncludesArtifactFilter(["g:b"])
        sample_tree().accept(FilteringDependencyNodeVisitor(collector, ArtifactDependencyNodeFilter(artifact_filter)))

        assert [str(n.artifact) for n in collector.nodes] == ["g:b:t:1", "g:b:t:2"]


class TestBuildingDependencyNodeVisitor:

    def test_copies_tree(self):
        source = sample_tree()
        source.children[0].premanaged_version = "0.9"
        visitor = BuildingDependencyNodeVisitor()
        source.accept(visitor)

        result = visitor.dependency_tree
        assert result is not source
        assert result == source
        assert result.children[0].premanaged_version == "0.9"

    def test_builds_pruned_tree_through_filter(self):
        builder = BuildingDependencyNodeVisitor()
        sample_tree().accept(FilteringDependencyNodeVisitor(builder, StateDependencyNodeFilter.INCLUDED))

        assert str(builder.dependency_tree) == (
            "g:p:t:1\n"
            "  g:a:t:1\n"
            "    g:b:t:1\n"
            "  g:c:t:1\n"
        )

    def test_forwards_copies_to_next_visitor(self):
        collector = CollectingDependencyNodeVisitor()
        builder = BuildingDependencyNodeVisitor(collector)
        source = sample_tree()
        source.accept(builder)

        assert len(collector.nodes) == 5
        assert collector.nodes[0] is builder.dependency_tree
        assert collector.nodes[0] is not source


class TestStatisticsDependencyNodeVisitor:

    def test_counts(self):
        stats = StatisticsDependencyNodeVisitor()
        sample_tree().accept(stats)

        assert stats.total == 5
        assert stats.state_counts[NodeState.INCLUDED] == 4
        assert stats.state_counts[NodeState.OMITTED_FOR_CONFLICT] == 1
        assert stats.winners == {"g:a:t", "g:b:t", "g:c:t"}
        assert stats.max_depth == 2


class TestFirstMatchDependencyNodeVisitor:

    def test_stops_at_first_match(self):
        visitor = FirstMatchDependencyNodeVisitor(lambda n: n.artifact.artifact_id == "b")
        sample_tree().accept(visitor)

        assert visitor.match is not None
        assert visitor.match.artifact.version == "1"

    def test_no_match(self):
        visitor = FirstMatchDependencyNodeVisitor(lambda n: n.artifact.artifact_id == "z")
        sample_tree().accept(visitor)

        assert visitor.match is None


class TestNodeFilters:

    def test_state_filter(self):
        omitted = node("g:b:t:2", NodeState.OMITTED_FOR_CONFLICT, "g:b:t:1")

        assert StateDependencyNodeFilter.INCLUDED.accept(node("g:a:t:1"))
        assert not StateDependencyNodeFilter.INCLUDED.accept(omitted)
        assert StateDependencyNodeFilter(NodeState.OMITTED_FOR_CONFLICT).accept(omitted)

    def test_artifact_filter(self):
        f = ArtifactDependencyNodeFilter(PatternIncludesArtifactFilter(["g:a"]))

        assert f.accept(node("g:a:t:1"))
        assert not f.accept(node("g:b:t:1"))

    def test_ancestor_or_self(self):
        root = sample_tree()
        a = root.children[0]
        b = a.children[0]
        c = root.children[1]
        f = AncestorOrSelfDependencyNodeFilter([b])

        assert f.accept(b)
        assert f.accept(a)
        assert f.accept(root)
        assert not f.accept(c)

    def test_and(self):
        f = AndDependencyNodeFilter([
            StateDependencyNodeFilter.INCLUDED,
            ArtifactDependencyNodeFilter(PatternIncludesArtifactFilter(["g:b"])),
        ])

        assert f.accept(node("g:b:t:1"))
        assert not f.accept(node("g:b:t:2", NodeState.OMITTED_FOR_CONFLICT, "g:b:t:1"))
        assert not f.accept(node("g:a:t:1"))
