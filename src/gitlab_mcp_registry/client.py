"""GitLab API client using httpx."""

from __future__ import annotations

import json
import logging
import ssl
from typing import Any

import httpx

from .config import GitLabConfig
from .exceptions import (
    GitLabApiError,
    GitLabAuthError,
    GitLabError,
    GitLabGraphQLError,
    GitLabNotFoundError,
    GitLabTimeoutError,
    NamespaceNotFoundError,
)
from .tiers import Tier, tier_from_plan
from .utils import encode_id

logger = logging.getLogger(__name__)

LICENSE_QUERY = "query { currentLicense { plan } }"


def error_details(resp: httpx.Response) -> str:
    """Extract the ``message``/``error`` fields of an error body, joined by `` - ``."""
    if not resp.content:
        return ""
    try:
        body = resp.json()
    except ValueError:
        return resp.text.strip()[:500]
    if not isinstance(body, dict):
        return json.dumps(body, ensure_ascii=False)

    parts: list[str] = []
    message = body.get("message")
    if isinstance(message, str):
        parts.append(message)
    elif isinstance(message, dict):
        for key, value in message.items():
            if isinstance(value, list):
                value = ", ".join(str(v) for v in value)
            parts.append(f"{key}: {value}")
    elif message is not None:
        parts.append(json.dumps(message, ensure_ascii=False))

    error = body.get("error")
    if isinstance(error, str):
        parts.append(error)
    elif error is not None:
        parts.append(json.dumps(error, ensure_ascii=False))
    return " - ".join(parts)


def ssl_verify_option(config: GitLabConfig) -> ssl.SSLContext | bool:
    """The ``verify`` argument for httpx: a plain flag, or a context carrying CA and client certs."""
    if not config.ca_cert_path and not config.ssl_cert_path:
        return config.ssl_verify
    if config.ssl_verify:
        context = ssl.create_default_context(cafile=config.ca_cert_path)
    else:
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    if config.ssl_cert_path:
        context.load_cert_chain(config.ssl_cert_path, keyfile=config.ssl_key_path)
    return context


class GitLabClient:
    """Async HTTP client for the GitLab REST API v4 and GraphQL endpoint."""

    def __init__(self, config: GitLabConfig | None = None) -> None:
        self.config = config or GitLabConfig.from_env()
        self.config.validate()
        kwargs: dict[str, Any] = {}
        if self.config.proxy:
            kwargs["proxy"] = self.config.proxy
        self._client = httpx.AsyncClient(
            base_url=self.config.api_url,
            headers={"PRIVATE-TOKEN": self.config.token, "Accept": "application/json"},
            timeout=self.config.timeout,
            verify=ssl_verify_option(self.config),
            **kwargs,
        )

    async def close(self) -> None:
        await self._client.aclose()

    # ── HTTP helpers ──────────────────────────────────────────────

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise GitLabTimeoutError(self.config.timeout_ms) from e

        if resp.is_success:
            return resp
        details = error_details(resp)
        logger.debug("GitLab %s %s -> %s %s", method, path, resp.status_code, details)
        if resp.status_code in (401, 403):
            raise GitLabAuthError(resp.status_code, details)
        if resp.status_code == 404:
            raise GitLabNotFoundError(details)
        raise GitLabApiError(resp.status_code, resp.reason_phrase or "", details)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_data: Any = None,
        params: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
        raw: bool = False,
    ) -> Any:
        """Make an API request and return parsed JSON (or raw text if raw=True)."""
        kwargs: dict[str, Any] = {"params": params}
        if json_data is not None:
            kwargs["json"] = json_data
        if files is not None:
            kwargs["files"] = files

        resp = await self._send(method, path, **kwargs)

        if resp.status_code == 204 or not resp.content:
            return None

        if raw:
            return resp.text

        content_type = resp.headers.get("content-type", "")
        if "text/html" in content_type:
            msg = "Unexpected HTML response, check URL and authentication"
            raise GitLabApiError(resp.status_code, msg, resp.text[:500])

        try:
            return resp.json()
        except json.JSONDecodeError as e:
            raise GitLabApiError(
                resp.status_code,
                f"JSON parse error: {e}",
                resp.text[:500],
            ) from e

    async def get(
        self, path: str, params: dict[str, Any] | None = None, *, raw: bool = False
    ) -> Any:
        return await self._request("GET", path, params=params, raw=raw)

    async def post(self, path: str, json_data: Any = None, **kwargs: Any) -> Any:
        return await self._request("POST", path, json_data=json_data, **kwargs)

    async def put(self, path: str, json_data: Any = None, **kwargs: Any) -> Any:
        return await self._request("PUT", path, json_data=json_data, **kwargs)

    async def patch(self, path: str, json_data: Any = None, **kwargs: Any) -> Any:
        return await self._request("PATCH", path, json_data=json_data, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self._request("DELETE", path, **kwargs)

    async def download(
        self, path: str, params: dict[str, Any] | None = None
    ) -> tuple[bytes, str]:
        """Fetch a binary resource. Returns the body and its content type."""
        resp = await self._send("GET", path, params=params)
        return resp.content, resp.headers.get("content-type", "application/octet-stream")

    async def exists(self, path: str) -> tuple[bool, int, Any]:
        """Check that ``path`` exists; 404 is reported instead of raised."""
        try:
            resp = await self._send("GET", path)
        except GitLabNotFoundError:
            return False, 404, None
        return True, resp.status_code, resp.json() if resp.content else None

    # ── GraphQL ───────────────────────────────────────────────────

    async def graphql(self, query: str, variables: dict[str, Any] | None = None) -> dict:
        payload = {"query": query, "variables": variables or {}}
        data = await self._request("POST", self.config.graphql_url, json_data=payload)
        if data is None:
            return {}
        if data.get("errors"):
            raise GitLabGraphQLError(data["errors"])
        return data.get("data") or {}

    # ── Instance ──────────────────────────────────────────────────

    async def detect_tier(self) -> Tier | None:
        """Best-effort tier detection. ``None`` when the instance does not say.

        The license plan is only visible to administrators; otherwise a
        Community Edition instance (``metadata.enterprise`` false) is Free.
        """
        try:
            data = await self.graphql(LICENSE_QUERY)
        except (GitLabError, httpx.HTTPError) as e:
            logger.debug("License query unavailable: %s", e)
        else:
            tier = tier_from_plan((data.get("currentLicense") or {}).get("plan"))
            if tier is not None:
                return tier

        try:
            metadata = await self.get("metadata")
        except (GitLabError, httpx.HTTPError) as e:
            logger.debug("Instance metadata unavailable: %s", e)
            return None
        if isinstance(metadata, dict) and metadata.get("enterprise") is False:
            return Tier.FREE
        return None

    # ── Namespaces ────────────────────────────────────────────────

    async def resolve_namespace(self, namespace: str) -> tuple[str, str]:
        """Decide whether ``namespace`` is a project or a group.

        A single ``GET projects/:id`` lookup is issued; on 404 the namespace is
        treated as a group and the caller's real request verifies it.
        Returns ``(entity_type, encoded_path)``.
        """
        enc = encode_id(namespace)
        try:
            await self._send("GET", f"projects/{enc}")
        except GitLabNotFoundError:
            logger.debug("Namespace %r is not a project, routing to groups", namespace)
            return "groups", enc
        return "projects", enc

    async def namespace_request(
        self, method: str, namespace: str, suffix: str = "", **kwargs: Any
    ) -> Any:
        """Resolve ``namespace`` and issue ``method`` against ``{entity}/{id}{suffix}``."""
        entity, enc = await self.resolve_namespace(namespace)
        try:
            return await self._request(method, f"{entity}/{enc}{suffix}", **kwargs)
        except GitLabNotFoundError as e:
            if entity == "groups" and "group not found" in e.body.lower():
                raise NamespaceNotFoundError(namespace) from e
            raise
