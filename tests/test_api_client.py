"""Tests for the deps.dev client, settings and SSL session setup."""

from unittest.mock import Mock, patch

import pytest
import requests
from deptree.api_client import DepsDevClient
from deptree.config import Settings
from deptree.models import Artifact
from deptree.ssl_config import CorporateSSLAdapter, create_session, find_ca_bundle


def make_response(status_code=200, payload=None):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else {"nodes": [], "edges": []}
    if status_code >= 400 and status_code != 404:
        response.raise_for_status.side_effect = requests.HTTPError(f"HTTP {status_code}")
    return response


@patch('deptree.ssl_config.find_ca_bundle', return_value=None)
@patch('deptree.ssl_config.requests.Session')
class TestDepsDevClient:
    """Tests for DepsDevClient with a mocked HTTP session."""

    def test_dependency_graph_url(self, mock_session_class, _):
        mock_session = Mock()
        mock_session.get.return_value = make_response()
        mock_session_class.return_value = mock_session

        client = DepsDevClient(Settings(depsdev_url="https://deps.example/v3/systems", http_timeout=5))
        result = client.get_dependency_graph(Artifact.parse("org.example:lib:1.0"))

        url = mock_session.get.call_args[0][0]
        assert url == "https://deps.example/v3/systems/maven/packages/org.example%3Alib/versions/1.0:dependencies"
        assert mock_session.get.call_args[1]["timeout"] == 5
        assert result == {"nodes": [], "edges": []}

    def test_timestamped_snapshot_uses_base_version(self, mock_session_class, _):
        mock_session = Mock()
        mock_session.get.return_value = make_response()
        mock_session_class.return_value = mock_session

        client = DepsDevClient(Settings())
        client.get_dependency_graph(Artifact.parse("g:a:1.0-20240105.101010-3"))

        url = mock_session.get.call_args[0][0]
        assert "/versions/1.0-SNAPSHOT:dependencies" in url
        assert "20240105" not in url

    def test_not_found_returns_none(self, mock_session_class, _):
        mock_session = Mock()
        mock_session.get.return_value = make_response(404)
        mock_session_class.return_value = mock_session

        assert DepsDevClient(Settings()).get_dependency_graph(Artifact.parse("g:a:1")) is None

    def test_server_error_raises(self, mock_session_class, _):
        mock_session = Mock()
        mock_session.get.return_value = make_response(500)
        mock_session_class.return_value = mock_session

        with pytest.raises(requests.HTTPError):
            DepsDevClient(Settings()).get_dependency_graph(Artifact.parse("g:a:1"))

    def test_get_versions(self, mock_session_class, _):
        mock_session = Mock()
        mock_session.get.return_value = make_response(payload={
            "versions": [
                {"versionKey": {"system": "MAVEN", "name": "g:a", "version": "1.0"}},
                {"versionKey": {"system": "MAVEN", "name": "g:a", "version": "1.1"}},
            ]
        })
        mock_session_class.return_value = mock_session

        versions = DepsDevClient(Settings()).get_versions(Artifact.parse("g:a:1"))

        assert versions == ["1.0", "1.1"]
        assert mock_session.get.call_args[0][0].endswith("/maven/packages/g%3Aa")

    def test_user_agent_and_close(self, mock_session_class, _):
        mock_session = Mock()
        mock_session_class.return_value = mock_session

        with DepsDevClient(Settings(user_agent="tests/1.0")):
            pass

        headers = mock_session.headers.update.call_args[0][0]
        assert headers["User-Agent"] == "tests/1.0"
        mock_session.close.assert_called_once()


class TestSettings:

    def test_defaults(self):
        settings = Settings.from_env({})

        assert settings.depsdev_url == "https://api.deps.dev/v3/systems"
        assert settings.http_timeout == 30.0
        assert settings.ca_bundle is None
        assert settings.user_agent.startswith("deptree/")

    def test_from_environment(self):
        settings = Settings.from_env({
            "DEPTREE_DEPSDEV_URL": "http://localhost:8080",
            "DEPTREE_HTTP_TIMEOUT": "2.5",
            "DEPTREE_CA_BUNDLE": "/tmp/ca.pem",
            "DEPTREE_USER_AGENT": "custom",
        })

        assert settings.depsdev_url == "http://localhost:8080"
        assert settings.http_timeout == 2.5
        assert settings.ca_bundle == "/tmp/ca.pem"
        assert settings.user_agent == "custom"

    def test_invalid_timeout(self):
        with pytest.raises(ValueError):
            Settings.from_env({"DEPTREE_HTTP_TIMEOUT": "soon"})


class TestSSLConfig:

    def test_explicit_bundle(self, tmp_path):
        bundle = tmp_path / "ca.pem"
        bundle.write_text("")

        assert find_ca_bundle(str(bundle)) == str(bundle)

    def test_missing_explicit_bundle(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            find_ca_bundle(str(tmp_path / "missing.pem"))

    def test_probes_corporate_locations(self, tmp_path):
        bundle = tmp_path / "netskope.pem"
        bundle.write_text("")

        with patch('deptree.ssl_config.CORPORATE_CERT_PATHS', [str(tmp_path / "nope.pem"), str(bundle)]):
            assert find_ca_bundle() == str(bundle)

    def test_plain_session_without_bundle(self):
        with patch('deptree.ssl_config.find_ca_bundle', return_value=None):
            session = create_session()

        assert not isinstance(session.get_adapter("https://api.deps.dev"), CorporateSSLAdapter)
