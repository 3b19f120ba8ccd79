"""Tests for GitLab API client."""

from __future__ import annotations

import ssl

import httpx
import pytest
import respx

from gitlab_mcp_registry.client import GitLabClient, error_details, ssl_verify_option
from gitlab_mcp_registry.config import GitLabConfig
from gitlab_mcp_registry.exceptions import (
    GitLabApiError,
    GitLabAuthError,
    GitLabGraphQLError,
    GitLabNotFoundError,
    GitLabTimeoutError,
    NamespaceNotFoundError,
)
from gitlab_mcp_registry.manager import detect_instance_tier
from gitlab_mcp_registry.tiers import Tier

BASE = "https://gitlab.example.com/api/v4"
GRAPHQL = "https://gitlab.example.com/api/graphql"


def _make_client(**kwargs) -> GitLabClient:
    return GitLabClient(GitLabConfig(url="https://gitlab.example.com", token="test-token", **kwargs))


def test_client_requires_token():
    with pytest.raises(ValueError, match="token is required"):
        GitLabClient(GitLabConfig(url="https://gitlab.example.com", token=""))


class TestRequest:
    @pytest.mark.asyncio
    async def test_get_project(self):
        async with respx.mock(base_url=BASE) as router:
            route = router.get("/projects/123").mock(
                return_value=httpx.Response(200, json={"id": 123, "name": "test"})
            )
            client = _make_client()
            result = await client.get("projects/123")
            assert result["id"] == 123
            assert route.calls.last.request.headers["PRIVATE-TOKEN"] == "test-token"

    @pytest.mark.asyncio
    async def test_auth_error_401(self):
        async with respx.mock(base_url=BASE) as router:
            router.get("/projects/123").mock(return_value=httpx.Response(401, text="Unauthorized"))
            client = _make_client()
            with pytest.raises(GitLabAuthError) as exc_info:
                await client.get("projects/123")
            assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_not_found_error(self):
        async with respx.mock(base_url=BASE) as router:
            router.get("/projects/999").mock(
                return_value=httpx.Response(404, json={"message": "404 Project Not Found"})
            )
            client = _make_client()
            with pytest.raises(GitLabNotFoundError) as exc_info:
                await client.get("projects/999")
            assert "404 Project Not Found" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_server_error(self):
        async with respx.mock(base_url=BASE) as router:
            router.get("/projects/123").mock(
                return_value=httpx.Response(500, text="Internal Server Error")
            )
            client = _make_client()
            with pytest.raises(GitLabApiError) as exc_info:
                await client.get("projects/123")
            assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_html_response_error(self):
        async with respx.mock(base_url=BASE) as router:
            router.get("/projects/123").mock(
                return_value=httpx.Response(
                    200,
                    text="<html><body>Login</body></html>",
                    headers={"content-type": "text/html"},
                )
            )
            client = _make_client()
            with pytest.raises(GitLabApiError, match="Unexpected HTML"):
                await client.get("projects/123")

    @pytest.mark.asyncio
    async def test_no_content(self):
        async with respx.mock(base_url=BASE) as router:
            router.delete("/projects/1/hooks/2").mock(return_value=httpx.Response(204))
            client = _make_client()
            assert await client.delete("projects/1/hooks/2") is None

    @pytest.mark.asyncio
    async def test_timeout(self):
        async with respx.mock(base_url=BASE) as router:
            router.get("/projects/1").mock(side_effect=httpx.ReadTimeout("slow"))
            client = _make_client(timeout_ms=1500)
            with pytest.raises(GitLabTimeoutError, match="1500ms"):
                await client.get("projects/1")

    @pytest.mark.asyncio
    async def test_raw_text(self):
        async with respx.mock(base_url=BASE) as router:
            router.get("/projects/1/repository/files/README.md/raw").mock(
                return_value=httpx.Response(200, text="# Hello")
            )
            client = _make_client()
            text = await client.get("projects/1/repository/files/README.md/raw", raw=True)
            assert text == "# Hello"


class TestErrorDetails:
    def test_message_and_error(self):
        resp = httpx.Response(400, json={"message": "bad", "error": "worse"})
        assert error_details(resp) == "bad - worse"

    def test_field_errors(self):
        resp = httpx.Response(400, json={"message": {"name": ["has already been taken"]}})
        assert error_details(resp) == "name: has already been taken"

    def test_empty_body(self):
        assert error_details(httpx.Response(500)) == ""


class TestNamespaces:
    @pytest.mark.asyncio
    async def test_project_namespace(self):
        async with respx.mock(base_url=BASE) as router:
            router.get("/projects/my-group%2Fapp").mock(
                return_value=httpx.Response(200, json={"id": 1})
            )
            router.get("/projects/my-group%2Fapp/variables").mock(
                return_value=httpx.Response(200, json=[{"key": "A"}])
            )
            client = _make_client()
            result = await client.namespace_request("GET", "my-group/app", "/variables")
            assert result == [{"key": "A"}]

    @pytest.mark.asyncio
    async def test_group_namespace_takes_two_calls(self):
        async with respx.mock(base_url=BASE) as router:
            router.get("/projects/test-group").mock(return_value=httpx.Response(404))
            groups = router.get("/groups/test-group/milestones").mock(
                return_value=httpx.Response(200, json=[])
            )
            client = _make_client()
            assert await client.namespace_request("GET", "test-group", "/milestones") == []
            assert len(router.calls) == 2
            assert groups.call_count == 1

    @pytest.mark.asyncio
    async def test_unknown_namespace(self):
        async with respx.mock(base_url=BASE) as router:
            router.get("/projects/ghost").mock(return_value=httpx.Response(404))
            router.get("/groups/ghost/variables").mock(
                return_value=httpx.Response(404, json={"message": "404 Group Not Found"})
            )
            client = _make_client()
            with pytest.raises(NamespaceNotFoundError, match="ghost"):
                await client.namespace_request("GET", "ghost", "/variables")

    @pytest.mark.asyncio
    async def test_exists(self):
        async with respx.mock(base_url=BASE) as router:
            router.get("/groups/missing").mock(return_value=httpx.Response(404))
            client = _make_client()
            assert await client.exists("groups/missing") == (False, 404, None)


class TestGraphQL:
    @pytest.mark.asyncio
    async def test_data(self):
        async with respx.mock() as router:
            route = router.post(GRAPHQL).mock(
                return_value=httpx.Response(200, json={"data": {"project": {"id": "1"}}})
            )
            client = _make_client()
            data = await client.graphql("query { project { id } }", {"a": 1})
            assert data == {"project": {"id": "1"}}
            assert b'"variables":{"a":1}' in route.calls.last.request.content.replace(b" ", b"")

    @pytest.mark.asyncio
    async def test_errors(self):
        async with respx.mock() as router:
            router.post(GRAPHQL).mock(
                return_value=httpx.Response(200, json={"errors": [{"message": "boom"}]})
            )
            client = _make_client()
            with pytest.raises(GitLabGraphQLError, match="boom"):
                await client.graphql("query { x }")


class TestTierDetection:
    @pytest.mark.asyncio
    async def test_license_plan(self):
        async with respx.mock() as router:
            router.post(GRAPHQL).mock(
                return_value=httpx.Response(
                    200, json={"data": {"currentLicense": {"plan": "premium"}}}
                )
            )
            client = _make_client()
            assert await client.detect_tier() is Tier.PREMIUM

    @pytest.mark.asyncio
    async def test_legacy_plan_name(self):
        async with respx.mock() as router:
            router.post(GRAPHQL).mock(
                return_value=httpx.Response(200, json={"data": {"currentLicense": {"plan": "gold"}}})
            )
            client = _make_client()
            assert await client.detect_tier() is Tier.ULTIMATE

    @pytest.mark.asyncio
    async def test_community_edition_is_free(self):
        async with respx.mock() as router:
            router.post(GRAPHQL).mock(
                return_value=httpx.Response(200, json={"errors": [{"message": "forbidden"}]})
            )
            router.get(f"{BASE}/metadata").mock(
                return_value=httpx.Response(200, json={"version": "17.0.0", "enterprise": False})
            )
            client = _make_client()
            assert await client.detect_tier() is Tier.FREE

    @pytest.mark.asyncio
    async def test_enterprise_without_license_is_unknown(self):
        async with respx.mock() as router:
            router.post(GRAPHQL).mock(
                return_value=httpx.Response(200, json={"data": {"currentLicense": None}})
            )
            router.get(f"{BASE}/metadata").mock(
                return_value=httpx.Response(200, json={"version": "17.0.0", "enterprise": True})
            )
            client = _make_client()
            assert await client.detect_tier() is None

    @pytest.mark.asyncio
    async def test_failures_fall_back_to_unknown(self):
        async with respx.mock() as router:
            router.post(GRAPHQL).mock(side_effect=httpx.ConnectError("refused"))
            router.get(f"{BASE}/metadata").mock(return_value=httpx.Response(500))
            assert await detect_instance_tier(
                GitLabConfig(url="https://gitlab.example.com", token="test-token")
            ) is None


class TestTLS:
    def test_plain_flag_without_certificates(self):
        assert ssl_verify_option(GitLabConfig(ssl_verify=False)) is False
        assert ssl_verify_option(GitLabConfig()) is True

    def test_client_certificate_loaded(self, monkeypatch):
        loaded = []
        monkeypatch.setattr(
            ssl.SSLContext,
            "load_cert_chain",
            lambda self, certfile, keyfile=None, password=None: loaded.append((certfile, keyfile)),
        )
        config = GitLabConfig(ssl_cert_path="client.pem", ssl_key_path="client.key")
        context = ssl_verify_option(config)
        assert isinstance(context, ssl.SSLContext)
        assert loaded == [("client.pem", "client.key")]

    def test_unverified_client_certificate(self, monkeypatch):
        monkeypatch.setattr(ssl.SSLContext, "load_cert_chain", lambda self, *a, **kw: None)
        context = ssl_verify_option(GitLabConfig(ssl_verify=False, ssl_cert_path="client.pem"))
        assert context.verify_mode == ssl.CERT_NONE
        assert context.check_hostname is False
