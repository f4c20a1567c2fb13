"""Input file parsers for dependency lists."""

import logging
import re
from typing import List, Optional
from urllib.parse import urlparse

import requests

from .models import Artifact

logger = logging.getLogger(__name__)

# "[INFO] +- ", "[INFO] |  \- ", "├─ " and friends in front of a coordinate
TREE_PREFIX_PATTERN = re.compile(r'^(\[INFO\])?[\s|\\+\-│├└─]*', re.IGNORECASE)


def _is_url(path: str) -> bool:
    """Check if a path is a URL."""
    return urlparse(path).scheme in ('http', 'https')


def _read_content(path: str) -> str:
    """
    Read content from either a file path or URL.

    Raises:
        FileNotFoundError: If file doesn't exist
        requests.RequestException: If URL fetch fails
    """
    if _is_url(path):
        logger.info(f"Fetching content from URL: {path}")
        response = requests.get(path, timeout=30)
        response.raise_for_status()
        return response.text

    logger.info(f"Reading content from file: {path}")
    with open(path, 'r') as f:
        return f.read()


class FileParser:
    """Parser for dependency list files."""

    @staticmethod
    def parse_flat_file(file_path: str) -> List[Artifact]:
        """
        Parse a file with one dependency per line.
        Supports both local files and URLs.

        Each line is a coordinate, optionally prefixed with "maven:", or a
        Maven package URL. Lines copied from a rendered tree are accepted too;
        omitted entries, shown in parentheses, are skipped:

            org.slf4j:slf4j-api:jar:2.0.9:compile
            maven:com.google.guava:guava:33.0.0-jre
            pkg:maven/junit/junit@4.13.2
            [INFO] +- commons-io:commons-io:jar:2.15.1:runtime
        """
        artifacts = []
        content = _read_content(file_path)

        for line_num, line in enumerate(content.splitlines(), 1):
            artifact = FileParser.parse_line(line)
            if artifact is None:
                if line.strip():
                    logger.debug(f"Line {line_num}: Skipping non-dependency line '{line.strip()}'")
                continue
            artifacts.append(artifact)

        logger.info(f"Parsed {len(artifacts)} dependencies from {file_path}")
        return artifacts

    @staticmethod
    def parse_line(line: str) -> Optional[Artifact]:
        """Parse one line of a dependency list; None for blank, comment and non-dependency lines."""
        line = line.strip()
        if not line or line.startswith('#'):
            return None
        if re.match(r'^\[WARNING\]', line, re.IGNORECASE):
            return None
        # Maven goal headers like "[INFO] --- dependency:tree ---"
        if re.match(r'^\[INFO\].*---.*---', line, re.IGNORECASE):
            return None

        line = TREE_PREFIX_PATTERN.sub('', line).strip()
        if not line or line.startswith('('):
            return None

        if line.startswith('pkg:'):
            return Artifact.from_purl(line)

        # drop trailing annotations such as "(version managed from 1.0)"
        line = line.split(' ', 1)[0]
        if line.lower().startswith('maven:'):
            line = line[len('maven:'):]

        if len(line.split(':')) < 3:
            return None
        return Artifact.parse(line)
