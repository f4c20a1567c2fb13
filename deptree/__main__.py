"""Main CLI entry point for deptree."""

import argparse
import logging
import sys
from typing import List, Optional, Tuple

from . import __version__
from .api_client import DepsDevClient
from .config import Settings
from .filters import (
    AndArtifactFilter,
    ArtifactFilter,
    PatternExcludesArtifactFilter,
    PatternIncludesArtifactFilter,
    ScopeArtifactFilter,
    StatisticsReportingArtifactFilter,
    StrictPatternExcludesArtifactFilter,
    StrictPatternIncludesArtifactFilter,
)
from .formatters import OutputFormatter
from .graph_builder import DependencyTreeBuilder, ManagedVersions
from .metadata import DepsDevMetadataSource, MappingMetadataSource
from .models import Artifact, DependencyNode, SCOPES
from .parsers import FileParser
from .traversal import TREE_STYLES

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False, log_level: Optional[str] = None):
    """Configure logging based on verbosity flags."""
    if log_level:
        level = getattr(logging, log_level.upper(), logging.WARNING)
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s'
    )


def build_artifact_filters(args) -> List[ArtifactFilter]:
    """Create the filters selected on the command line, in the order they apply."""
    filters: List[ArtifactFilter] = []
    if args.include:
        if args.strict:
            filters.append(StrictPatternIncludesArtifactFilter(args.include))
        else:
            filters.append(PatternIncludesArtifactFilter(args.include, args.transitive))
    if args.exclude:
        if args.strict:
            filters.append(StrictPatternExcludesArtifactFilter(args.exclude))
        else:
            filters.append(PatternExcludesArtifactFilter(args.exclude, args.transitive))
    if args.scope:
        filters.append(ScopeArtifactFilter(args.scope))
    return filters


def _read_dependencies(args) -> List[Artifact]:
    dependencies = [Artifact.parse(coords) for coords in args.dependencies]
    if args.file:
        dependencies.extend(FileParser.parse_flat_file(args.file))
    return dependencies


def resolve_tree(args) -> Tuple[DependencyNode, List[ArtifactFilter]]:
    """Build the tree described by the shared tree/stats arguments."""
    root_artifact = Artifact.parse(args.root)
    dependencies = _read_dependencies(args)
    managed = ManagedVersions.from_artifacts(args.managed or [])
    filters = build_artifact_filters(args)

    artifact_filter: Optional[ArtifactFilter] = None
    if len(filters) == 1:
        artifact_filter = filters[0]
    elif filters:
        artifact_filter = AndArtifactFilter(filters, evaluate_all=args.report_unused)

    logger.info(f"Input: {root_artifact.id} with {len(dependencies)} direct dependencies, "
                f"{len(managed)} managed versions")

    if args.metadata:
        source = MappingMetadataSource.from_json(args.metadata)
        builder = DependencyTreeBuilder(source, include_optional=args.include_optional)
        root = builder.build(root_artifact, dependencies, managed, artifact_filter=artifact_filter)
    else:
        with DepsDevClient(Settings.from_env()) as client:
            source = DepsDevMetadataSource(client)
            builder = DependencyTreeBuilder(source, include_optional=args.include_optional)
            root = builder.build(root_artifact, dependencies, managed, artifact_filter=artifact_filter)

    if args.report_unused:
        for f in filters:
            if isinstance(f, StatisticsReportingArtifactFilter):
                f.report_missed_criteria(logger)
                f.report_filtered_artifacts(logger)

    return root, filters


def handle_tree(args):
    """Handle the 'tree' subcommand."""
    setup_logging(args.verbose, args.loglevel)

    try:
        root, _ = resolve_tree(args)
    except Exception as e:
        logger.error(f"Error building dependency tree: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    tokens = TREE_STYLES[args.tree_style]
    if args.output_format == 'maven':
        output = OutputFormatter.format_as_maven_tree(root, tokens)
    elif args.output_format == 'list':
        output = OutputFormatter.format_as_list(root)
    elif args.output_format == 'purl':
        output = OutputFormatter.format_as_purls(root)
    else:
        output = OutputFormatter.format_as_tree(root, tokens)

    try:
        if args.output == '-':
            print(output, end='')
        else:
            with open(args.output, 'w') as f:
                f.write(output)
            logger.info(f"Output written to: {args.output}")
    except OSError as e:
        logger.error(f"Error writing output: {e}")
        print(f"Error writing output: {e}", file=sys.stderr)
        return 1

    return 0


def handle_stats(args):
    """Handle the 'stats' subcommand."""
    setup_logging(args.verbose, args.loglevel)

    try:
        root, _ = resolve_tree(args)
    except Exception as e:
        logger.error(f"Error building dependency tree: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(OutputFormatter.format_statistics(root), end='')
    return 0


def handle_match(args):
    """Handle the 'match' subcommand: show which artifacts a pattern list selects."""
    setup_logging(args.verbose, args.loglevel)

    if args.strict:
        filter_class = StrictPatternExcludesArtifactFilter if args.exclude else StrictPatternIncludesArtifactFilter
        artifact_filter = filter_class(args.patterns)
    else:
        filter_class = PatternExcludesArtifactFilter if args.exclude else PatternIncludesArtifactFilter
        artifact_filter = filter_class(args.patterns)

    try:
        artifacts = [Artifact.parse(coords) for coords in args.artifacts]
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for artifact in artifacts:
        verdict = "included" if artifact_filter.include(artifact) else "excluded"
        print(f"{artifact}: {verdict}")

    if isinstance(artifact_filter, StatisticsReportingArtifactFilter):
        artifact_filter.report_missed_criteria(logger)
    return 0


def _add_logging_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose output')
    parser.add_argument('--loglevel', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='Set log level')


def _tree_input_parser() -> argparse.ArgumentParser:
    """Arguments shared by the commands that build a tree."""
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument('root', help='Root artifact (groupId:artifactId[:type]:version)')
    parser.add_argument('dependencies', nargs='*', metavar='DEPENDENCY',
                        help='Direct dependencies of the root, in declaration order')
    parser.add_argument('--file', help='File or URL with one direct dependency per line')
    parser.add_argument('--managed', action='append', metavar='COORD',
                        help='Managed dependency version/scope (repeatable)')
    parser.add_argument('--metadata', metavar='FILE',
                        help='JSON file of dependency metadata (default: query deps.dev)')
    parser.add_argument('--include', action='append', metavar='PATTERN',
                        help='Only include artifacts matching the pattern (repeatable)')
    parser.add_argument('--exclude', action='append', metavar='PATTERN',
                        help='Exclude artifacts matching the pattern (repeatable)')
    parser.add_argument('--strict', action='store_true',
                        help='Use strict groupId:artifactId:type:version pattern matching')
    parser.add_argument('--transitive', action='store_true',
                        help='Also match patterns against each artifact\'s dependency trail')
    parser.add_argument('--scope', choices=list(SCOPES),
                        help='Only include artifacts in the scope or the scopes it implies')
    parser.add_argument('--include-optional', action='store_true',
                        help='Follow optional dependencies of transitive artifacts')
    parser.add_argument('--report-unused', action='store_true',
                        help='Log filter patterns and scopes that never matched (every filter sees every artifact)')
    _add_logging_arguments(parser)
    return parser


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog='deptree',
        description='Resolve and filter Maven dependency trees'
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    subparsers = parser.add_subparsers(dest='command', help='Subcommands')
    tree_inputs = _tree_input_parser()

    # Tree command
    tree_parser = subparsers.add_parser('tree', parents=[tree_inputs], help='Resolve and print a dependency tree')
    tree_parser.add_argument('--format', dest='output_format', default='tree',
                             choices=['tree', 'maven', 'list', 'purl'],
                             help='Output format (tree, maven, list, purl). Default: tree')
    tree_parser.add_argument('--tree-style', default='standard', choices=list(TREE_STYLES),
                             help='Tree drawing characters (standard, extended, whitespace). Default: standard')
    tree_parser.add_argument('-o', '--output', default='-',
                             help='Output file (default: stdout)')
    tree_parser.set_defaults(func=handle_tree)

    # Stats command
    stats_parser = subparsers.add_parser('stats', parents=[tree_inputs], help='Show dependency tree statistics')
    stats_parser.set_defaults(func=handle_stats)

    # Match command
    match_parser = subparsers.add_parser('match', help='Show which artifacts a pattern list includes')
    match_parser.add_argument('patterns', nargs='+', metavar='PATTERN', help='Filter patterns')
    match_parser.add_argument('--artifact', dest='artifacts', action='append', required=True, metavar='COORD',
                              help='Artifact to test (repeatable)')
    match_parser.add_argument('--strict', action='store_true', help='Use strict pattern matching')
    match_parser.add_argument('--exclude', action='store_true', help='Treat the patterns as exclusions')
    _add_logging_arguments(match_parser)
    match_parser.set_defaults(func=handle_match)

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
