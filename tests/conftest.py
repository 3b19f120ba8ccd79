"""Shared test fixtures for gitlab-mcp-registry."""

from __future__ import annotations

import os

import pytest
import respx

from gitlab_mcp_registry import manager as manager_module
from gitlab_mcp_registry.client import GitLabClient
from gitlab_mcp_registry.config import GitLabConfig
from gitlab_mcp_registry.manager import RegistryManager

TEST_URL = "https://gitlab.example.com"
TEST_TOKEN = "test-token"
API = f"{TEST_URL}/api/v4"
GRAPHQL = f"{TEST_URL}/api/graphql"

_ENV_PREFIXES = ("GITLAB_", "USE_")
_ENV_NAMES = ("HTTPS_PROXY", "HTTP_PROXY", "SSL_CERT_PATH", "SSL_KEY_PATH")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's GitLab settings out of every test."""
    for name in list(os.environ):
        if name.startswith(_ENV_PREFIXES) or name in _ENV_NAMES:
            monkeypatch.delenv(name, raising=False)
    manager_module.reset_instance()


@pytest.fixture
def config() -> GitLabConfig:
    return GitLabConfig(url=TEST_URL, token=TEST_TOKEN)


@pytest.fixture
def client(config: GitLabConfig) -> GitLabClient:
    return GitLabClient(config)


@pytest.fixture
def manager(config: GitLabConfig, client: GitLabClient) -> RegistryManager:
    return RegistryManager(config=config, client=client)


@pytest.fixture
def mock_api() -> respx.MockRouter:
    with respx.mock(base_url=API) as router:
        yield router


@pytest.fixture
def mock_graphql() -> respx.MockRouter:
    with respx.mock() as router:
        yield router
