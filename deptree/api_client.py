"""Client for interacting with the deps.dev API."""

import logging
from typing import Optional, Dict, Any, List
from urllib.parse import quote

import requests

from .config import Settings
from .models import Artifact
from .ssl_config import create_session

logger = logging.getLogger(__name__)


class DepsDevClient:
    """Client for fetching Maven dependency information from the deps.dev API."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings.from_env()
        self.session = create_session(self.settings.ca_bundle)
        self.session.headers.update({
            "Accept": "application/json",
            "User-Agent": self.settings.user_agent
        })

    def _package_url(self, artifact: Artifact) -> str:
        # URL-encode the package name to handle the ':' separator
        encoded_name = quote(artifact.versionless_key, safe='')
        return f"{self.settings.depsdev_url}/maven/packages/{encoded_name}"

    def _get(self, url: str) -> Optional[Dict[str, Any]]:
        logger.debug(f"  URL: {url}")
        response = self.session.get(url, timeout=self.settings.http_timeout)
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.json()

    def get_dependency_graph(self, artifact: Artifact) -> Optional[Dict[str, Any]]:
        """
        Get the resolved dependency graph of an artifact.

        Args:
            artifact: The artifact to fetch dependencies for

        Returns:
            JSON response containing nodes and edges, or None if deps.dev does not know it

        Raises:
            requests.RequestException: on transport errors and non-404 HTTP failures
        """
        # deps.dev only knows released versions, never timestamped snapshots
        version = artifact.base_version
        url = f"{self._package_url(artifact)}/versions/{quote(version, safe='')}:dependencies"
        logger.debug(f"Fetching dependency graph for {artifact.id}")
        return self._get(url)

    def get_versions(self, artifact: Artifact) -> Optional[List[str]]:
        """Get all published versions of an artifact's package, or None if unknown."""
        logger.debug(f"Fetching versions of {artifact.versionless_key}")
        data = self._get(self._package_url(artifact))
        if data is None:
            return None
        return [
            entry.get("versionKey", {}).get("version")
            for entry in data.get("versions", [])
            if entry.get("versionKey", {}).get("version")
        ]

    def close(self):
        """Close the session and clean up resources."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
