"""Runtime settings read from the environment."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from . import __version__

DEFAULT_DEPSDEV_URL = "https://api.deps.dev/v3/systems"
DEFAULT_HTTP_TIMEOUT = 30.0


@dataclass
class Settings:
    """
    Settings for the deps.dev client.

    Attributes:
        depsdev_url: Base URL of the deps.dev systems API
        http_timeout: Request timeout in seconds
        ca_bundle: CA bundle to verify against; when unset, known corporate bundles are probed
        user_agent: User-Agent header sent with every request
    """
    depsdev_url: str = DEFAULT_DEPSDEV_URL
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    ca_bundle: Optional[str] = None
    user_agent: str = f"deptree/{__version__}"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        env = os.environ if environ is None else environ

        timeout = env.get("DEPTREE_HTTP_TIMEOUT")
        try:
            http_timeout = float(timeout) if timeout else DEFAULT_HTTP_TIMEOUT
        except ValueError:
            raise ValueError(f"DEPTREE_HTTP_TIMEOUT must be a number of seconds, got '{timeout}'")

        return cls(
            depsdev_url=env.get("DEPTREE_DEPSDEV_URL") or DEFAULT_DEPSDEV_URL,
            http_timeout=http_timeout,
            ca_bundle=env.get("DEPTREE_CA_BUNDLE") or None,
            user_agent=env.get("DEPTREE_USER_AGENT") or f"deptree/{__version__}",
        )
