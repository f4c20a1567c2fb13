"""deptree: Maven-style dependency tree resolution and artifact filtering."""

__version__ = "1.0.0"

from .models import Artifact, DependencyNode, NodeState
from .graph_builder import (
    DependencyTreeBuilder,
    DependencyTreeBuilderError,
    InvalidDependencyError,
    ManagedVersions,
    ResolutionRecord,
)
from .metadata import MappingMetadataSource, MetadataResolutionError, MetadataSource

__all__ = [
    "__version__",
    "Artifact",
    "DependencyNode",
    "NodeState",
    "DependencyTreeBuilder",
    "DependencyTreeBuilderError",
    "InvalidDependencyError",
    "ManagedVersions",
    "ResolutionRecord",
    "MappingMetadataSource",
    "MetadataResolutionError",
    "MetadataSource",
]
