"""Sources of dependency metadata: what an artifact declares and which versions exist."""

import json
import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, Optional, Union

import requests

from .models import Artifact

logger = logging.getLogger(__name__)


class MetadataResolutionError(Exception):
    """Raised when the metadata of an artifact cannot be retrieved."""

    def __init__(self, message: str, artifact: Optional[Artifact] = None):
        super().__init__(message)
        self.artifact = artifact


class MetadataSource:
    """
    Supplies the direct dependencies of an artifact.

    Implementations return fresh Artifact objects on every call; the builder
    sets scopes and trails on them.
    """

    def get_direct_dependencies(self, artifact: Artifact) -> List[Artifact]:
        raise NotImplementedError

    def retrieve_available_versions(self, artifact: Artifact) -> List[str]:
        raise MetadataResolutionError(
            f"{type(self).__name__} cannot list available versions", artifact
        )


def _to_artifact(value: Union[str, Artifact]) -> Artifact:
    if isinstance(value, Artifact):
        return value.copy()
    return Artifact.parse(value)


class MappingMetadataSource(MetadataSource):
    """
    In-memory metadata keyed by artifact id (group:artifact:type[:classifier]:version).

    Artifacts without an entry are leaves. Available versions are keyed by
    group:artifact.
    """

    def __init__(
        self,
        dependencies: Optional[Mapping[str, Iterable[Union[str, Artifact]]]] = None,
        versions: Optional[Mapping[str, Iterable[str]]] = None
    ):
        self.dependencies: Dict[str, List[Union[str, Artifact]]] = {}
        for key, deps in (dependencies or {}).items():
            self.add(key, deps)
        self.versions: Dict[str, List[str]] = {k: list(v) for k, v in (versions or {}).items()}

    def add(self, artifact: Union[str, Artifact], dependencies: Iterable[Union[str, Artifact]]) -> None:
        key = artifact.id if isinstance(artifact, Artifact) else Artifact.parse(artifact).id
        self.dependencies[key] = list(dependencies)

    @classmethod
    def from_json(cls, path: str) -> 'MappingMetadataSource':
        """
        Load metadata from a JSON file.

        The file maps artifact coordinates to lists of dependency coordinates;
        an optional "versions" table maps group:artifact to available versions:

            {"g:a:jar:1": ["g:b:jar:1:runtime"], "versions": {"g:b": ["1", "2"]}}
        """
        with open(path, 'r') as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object in {path}")

        versions = data.pop("versions", {})
        logger.info(f"Loaded metadata for {len(data)} artifacts from {path}")
        return cls(data, versions)

    def get_direct_dependencies(self, artifact: Artifact) -> List[Artifact]:
        try:
            return [_to_artifact(dep) for dep in self.dependencies.get(artifact.id, [])]
        except ValueError as e:
            raise MetadataResolutionError(f"Invalid dependency declared by {artifact}: {e}", artifact) from e

    def retrieve_available_versions(self, artifact: Artifact) -> List[str]:
        key = artifact.versionless_key
        if key not in self.versions:
            raise MetadataResolutionError(f"No versions known for {key}", artifact)
        return list(self.versions[key])


class DepsDevMetadataSource(MetadataSource):
    """
    Metadata from the deps.dev API.

    The direct dependencies of an artifact are the edges leaving the SELF node
    of its resolved dependency graph. Unknown packages are treated as leaves.
    """

    def __init__(self, client):
        self.client = client
        self._dependencies: Dict[str, List[Artifact]] = {}
        self._versions: Dict[str, List[str]] = {}

    def get_direct_dependencies(self, artifact: Artifact) -> List[Artifact]:
        if artifact.id not in self._dependencies:
            self._dependencies[artifact.id] = self._fetch_dependencies(artifact)
        return [dep.copy() for dep in self._dependencies[artifact.id]]

    def _fetch_dependencies(self, artifact: Artifact) -> List[Artifact]:
        try:
            graph = self.client.get_dependency_graph(artifact)
        except requests.RequestException as e:
            raise MetadataResolutionError(f"Error fetching dependencies for {artifact}: {e}", artifact) from e

        if graph is None:
            logger.warning(f"Unknown component {artifact.id}. Treating as leaf node.")
            return []
        return self._parse_dependency_graph(graph, artifact)

    @staticmethod
    def _parse_dependency_graph(graph: Dict, artifact: Artifact) -> List[Artifact]:
        nodes = graph.get("nodes", [])
        edges = graph.get("edges", [])

        self_index = next(
            (i for i, node in enumerate(nodes) if node.get("relation") == "SELF"), None
        )
        if self_index is None:
            return []

        adjacency: Dict[int, List[int]] = defaultdict(list)
        for edge in edges:
            from_node = edge.get("fromNode")
            to_node = edge.get("toNode")
            if from_node is not None and to_node is not None:
                adjacency[from_node].append(to_node)

        dependencies = []
        for index in adjacency.get(self_index, []):
            version_key = nodes[index].get("versionKey", {})
            name = version_key.get("name", "")
            if ":" not in name:
                logger.debug(f"Skipping non-Maven dependency {name} of {artifact.id}")
                continue
            group_id, artifact_id = name.split(":", 1)
            dependencies.append(Artifact(group_id, artifact_id, version_key.get("version")))

        logger.debug(f"{artifact.id} declares {len(dependencies)} dependencies")
        return dependencies

    def retrieve_available_versions(self, artifact: Artifact) -> List[str]:
        key = artifact.versionless_key
        if key not in self._versions:
            try:
                versions = self.client.get_versions(artifact)
            except requests.RequestException as e:
                raise MetadataResolutionError(f"Error fetching versions of {key}: {e}", artifact) from e
            if versions is None:
                raise MetadataResolutionError(f"Unknown component {key}", artifact)
            self._versions[key] = versions
        return list(self._versions[key])
