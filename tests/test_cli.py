"""Tests for the command line interface."""

import json
import sys
from unittest.mock import patch

import pytest
from deptree.__main__ import main


@pytest.fixture
def metadata_file(tmp_path):
    path = tmp_path / "metadata.json"
    path.write_text(json.dumps({
        "g:a:jar:1": ["g:b:jar:1", "g:c:jar:1:test"],
        "g:b:jar:1": ["g:d:jar:2"],
        "g:e:jar:1": ["g:d:jar:1"],
    }))
    return str(path)


def run(capsys, *args):
    with patch.object(sys, 'argv', ['deptree', *args]):
        code = main()
    captured = capsys.readouterr()
    return code, captured.out, captured.err


class TestTreeCommand:

    def test_tree(self, capsys, metadata_file):
        code, out, _ = run(capsys, 'tree', 'g:p:jar:1', 'g:a:jar:1', 'g:e:jar:1', '--metadata', metadata_file)

        assert code == 0
        assert out == (
            "g:p:jar:1\n"
            "+- g:a:jar:1\n"
            "|  \\- g:b:jar:1\n"
            "|     \\- (g:d:jar:2 - omitted for conflict with 1)\n"
            "\\- g:e:jar:1\n"
            "   \\- g:d:jar:1\n"
        )

    def test_list_format_with_exclude(self, capsys, metadata_file):
        code, out, _ = run(capsys, 'tree', 'g:p:jar:1', 'g:a:jar:1',
                           '--metadata', metadata_file, '--exclude', 'g:b', '--format', 'list')

        assert code == 0
        assert out == "g:a:jar:1\n"

    def test_managed_version(self, capsys, metadata_file):
        code, out, _ = run(capsys, 'tree', 'g:p:jar:1', 'g:a:jar:1',
                           '--metadata', metadata_file, '--managed', 'g:b:jar:3', '--format', 'maven')

        assert code == 0
        assert "[INFO]    \\- g:b:jar:3 (version managed from 1)" in out

    def test_dependencies_from_file(self, capsys, tmp_path, metadata_file):
        deps = tmp_path / "deps.txt"
        deps.write_text("g:e:jar:1\n")

        code, out, _ = run(capsys, 'tree', 'g:p:jar:1', '--file', str(deps),
                           '--metadata', metadata_file, '--format', 'purl')

        assert code == 0
        assert out == "pkg:maven/g/e@1\npkg:maven/g/d@1\n"

    def test_output_file(self, capsys, tmp_path, metadata_file):
        output = tmp_path / "tree.txt"

        code, out, _ = run(capsys, 'tree', 'g:p:jar:1', 'g:e:jar:1', '--metadata', metadata_file, '-o', str(output))

        assert code == 0
        assert out == ""
        assert output.read_text().startswith("g:p:jar:1\n")

    def test_missing_metadata_file(self, capsys, tmp_path):
        code, _, err = run(capsys, 'tree', 'g:p:jar:1', 'g:a:jar:1', '--metadata', str(tmp_path / "missing.json"))

        assert code == 1
        assert err.startswith("Error: ")

    def test_invalid_root(self, capsys, metadata_file):
        code, _, err = run(capsys, 'tree', 'not-a-coordinate', '--metadata', metadata_file)

        assert code == 1
        assert "Invalid artifact coordinates" in err


class TestStatsCommand:

    def test_stats(self, capsys, metadata_file):
        code, out, _ = run(capsys, 'stats', 'g:p:jar:1', 'g:a:jar:1', 'g:e:jar:1', '--metadata', metadata_file)

        assert code == 0
        assert "Total Nodes: 6" in out
        assert "Omitted for conflict: 1" in out
        assert "Resolved Artifacts: 4" in out


class TestMatchCommand:

    def test_lenient_match(self, capsys):
        code, out, _ = run(capsys, 'match', '*:jar:*',
                           '--artifact', 'group:artifact:jar:1.0', '--artifact', 'group:artifact:ejb:1.0')

        assert code == 0
        assert out == "group:artifact:jar:1.0: included\ngroup:artifact:ejb:1.0: excluded\n"

    def test_strict_exclude(self, capsys):
        code, out, _ = run(capsys, 'match', 'group:artifact:jar:[1.0,2.0)', '--strict', '--exclude',
                           '--artifact', 'group:artifact:jar:1.5', '--artifact', 'group:artifact:jar:2.5')

        assert code == 0
        assert out == "group:artifact:jar:1.5: excluded\ngroup:artifact:jar:2.5: included\n"

    def test_bad_artifact(self, capsys):
        code, _, err = run(capsys, 'match', 'g:a', '--artifact', 'nope')

        assert code == 1
        assert err.startswith("Error: ")


def test_no_command(capsys):
    code, out, _ = run(capsys)

    assert code == 1
    assert "usage" in out
