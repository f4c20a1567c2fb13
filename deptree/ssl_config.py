"""HTTPS sessions for deps.dev that trust a configured or corporate CA bundle.

Inspection proxies such as Netskope re-sign traffic with certificates that
OpenSSL 3.x rejects for missing key usage extensions. When a bundle applies,
the session verifies against it with the default (relaxed) verify flags.
"""

import os
import ssl
import logging
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.ssl_ import create_urllib3_context

logger = logging.getLogger(__name__)

# Probed when no bundle is configured
CORPORATE_CERT_PATHS = [
    "/Library/Application Support/Netskope/STAgent/data/netskope-cert-bundle.pem",  # Netskope macOS
    "/etc/netskope/cert-bundle.pem",  # Netskope Linux
]


def find_ca_bundle(explicit_path: Optional[str] = None) -> Optional[str]:
    """Return the CA bundle to use: the explicit one, else the first corporate bundle found."""
    if explicit_path:
        if not os.path.exists(explicit_path):
            raise FileNotFoundError(f"CA bundle not found: {explicit_path}")
        return explicit_path
    for path in CORPORATE_CERT_PATHS:
        if os.path.exists(path):
            return path
    return None


class CorporateSSLAdapter(HTTPAdapter):
    """HTTP adapter verifying against a custom CA bundle with relaxed key usage checks."""

    def __init__(self, cert_path: str, **kwargs):
        self.cert_path = cert_path
        super().__init__(**kwargs)

    def init_poolmanager(self, *args, **kwargs):
        ctx = create_urllib3_context()
        ctx.load_verify_locations(self.cert_path)
        ctx.verify_flags = ssl.VERIFY_DEFAULT
        logger.debug(f"Loaded CA bundle from {self.cert_path}")

        kwargs['ssl_context'] = ctx
        return super().init_poolmanager(*args, **kwargs)


def create_session(ca_bundle: Optional[str] = None) -> requests.Session:
    """Create a requests session, mounting the corporate adapter when a CA bundle applies."""
    session = requests.Session()

    cert_path = find_ca_bundle(ca_bundle)
    if cert_path:
        logger.info(f"Using CA bundle {cert_path} for HTTPS")
        session.mount('https://', CorporateSSLAdapter(cert_path=cert_path))

    return session
