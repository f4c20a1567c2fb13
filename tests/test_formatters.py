"""Tests for output formatting."""

from deptree.formatters import OutputFormatter
from deptree.models import Artifact, DependencyNode, NodeState
from deptree.traversal import EXTENDED_TOKENS


def resolved_tree():
    root = DependencyNode(Artifact.parse("g:p:jar:1"))
    a = DependencyNode(Artifact.parse("g:a:jar:1:compile"))
    b = DependencyNode(Artifact.parse("g:b:jar:sources:2:runtime"))
    omitted = DependencyNode(Artifact.parse("g:b:jar:sources:1:compile"), NodeState.OMITTED_FOR_CONFLICT, b.artifact)
    root.add_child(a)
    root.add_child(b)
    a.add_child(omitted)
    return root


class TestOutputFormatter:

    def test_tree(self):
        assert OutputFormatter.format_as_tree(resolved_tree()) == (
            "g:p:jar:1\n"
            "+- g:a:jar:1:compile\n"
            "|  \\- (g:b:jar:sources:1:compile - omitted for conflict with 2)\n"
            "\\- g:b:jar:sources:2:runtime\n"
        )

    def test_tree_extended(self):
        output = OutputFormatter.format_as_tree(resolved_tree(), EXTENDED_TOKENS)

        assert output.splitlines()[1] == "├─ g:a:jar:1:compile"

    def test_maven_tree(self):
        lines = OutputFormatter.format_as_maven_tree(resolved_tree()).splitlines()

        assert lines[0] == "[INFO] g:p:jar:1"
        assert lines[3] == "[INFO] \\- g:b:jar:sources:2:runtime"
        assert all(line.startswith("[INFO] ") for line in lines)

    def test_list_skips_root_and_omitted(self):
        assert OutputFormatter.format_as_list(resolved_tree()) == (
            "g:a:jar:1:compile\n"
            "g:b:jar:sources:2:runtime\n"
        )

    def test_empty_list(self):
        assert OutputFormatter.format_as_list(DependencyNode(Artifact.parse("g:p:1"))) == ""

    def test_purls(self):
        assert OutputFormatter.format_as_purls(resolved_tree()) == (
            "pkg:maven/g/a@1\n"
            "pkg:maven/g/b@2?classifier=sources\n"
        )

    def test_statistics(self):
        output = OutputFormatter.format_statistics(resolved_tree())

        assert "Total Nodes: 4" in output
        assert "Included: 3" in output
        assert "Omitted for conflict: 1" in output
        assert "Resolved Artifacts: 2" in output
        assert "Max Depth: 2" in output
