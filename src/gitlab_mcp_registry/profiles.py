"""Configuration profiles (user defined) and presets (built in).

A *profile* lives in ``~/.config/gitlab-mcp/profiles.yaml`` and carries a full
connection: host, authentication and access restrictions. A *preset* ships
with the package and only restricts or tunes an existing configuration; it
never contains a host or credentials.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Annotated, Literal, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

from .config import GitLabConfig, normalize_api_url
from .exceptions import ProfileError

logger = logging.getLogger(__name__)

USER_CONFIG_DIR = Path.home() / ".config" / "gitlab-mcp"
USER_PROFILES_PATH = USER_CONFIG_DIR / "profiles.yaml"
BUILTIN_PRESETS_DIR = Path(__file__).parent / "presets"


# ── Schemas ───────────────────────────────────────────────────


class PatAuth(BaseModel):
    type: Literal["pat"]
    token_env: str = Field(description="Environment variable holding the token")


class OAuthAuth(BaseModel):
    type: Literal["oauth"]
    client_id_env: str
    client_secret_env: str | None = None


class CookieAuth(BaseModel):
    type: Literal["cookie"]
    cookie_path: str


AuthConfig = Annotated[Union[PatAuth, OAuthAuth, CookieAuth], Field(discriminator="type")]


class FeatureFlags(BaseModel):
    model_config = {"extra": "forbid"}

    wiki: bool | None = None
    milestones: bool | None = None
    labels: bool | None = None
    files: bool | None = None
    variables: bool | None = None
    workitems: bool | None = None
    webhooks: bool | None = None
    snippets: bool | None = None
    integrations: bool | None = None
    releases: bool | None = None
    refs: bool | None = None


class Preset(BaseModel):
    """Settings layered on top of the environment. Unknown keys are rejected."""

    model_config = {"extra": "forbid"}

    description: str | None = None
    read_only: bool | None = None
    denied_tools_regex: str | None = None
    allowed_tools: list[str] | None = None
    denied_actions: list[str] | None = None
    features: FeatureFlags | None = None
    timeout_ms: int | None = Field(None, gt=0)

    def feature_overrides(self) -> dict[str, bool]:
        return self.features.model_dump(exclude_none=True) if self.features else {}


class Profile(Preset):
    model_config = {"extra": "ignore"}

    host: str
    api_url: str | None = None
    auth: AuthConfig
    tier: Literal["free", "premium", "ultimate"] | None = None
    allowed_projects: list[str] | None = None
    allowed_groups: list[str] | None = None
    default_project: str | None = None
    default_namespace: str | None = None
    skip_tls_verify: bool | None = None
    ssl_cert_path: str | None = None
    ssl_key_path: str | None = None
    ca_cert_path: str | None = None


class ProfilesConfig(BaseModel):
    profiles: dict[str, Profile] = {}
    default_profile: str | None = None


@dataclass
class ValidationResult:
    valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


@dataclass
class ProfileInfo:
    name: str
    read_only: bool
    is_preset: bool
    host: str | None = None
    auth_type: str | None = None
    description: str | None = None


# ── Loader ────────────────────────────────────────────────────


def _read_yaml(path: Path) -> object:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ProfileError(f"Invalid YAML in {path}: {e}") from e


class ProfileLoader:
    """Loads user profiles and built-in presets, caching what it has parsed."""

    def __init__(
        self,
        user_config_path: Path | str = USER_PROFILES_PATH,
        builtin_dir: Path | str = BUILTIN_PRESETS_DIR,
    ) -> None:
        self.user_config_path = Path(user_config_path)
        self.builtin_dir = Path(builtin_dir)
        self._config: ProfilesConfig | None = None
        self._presets: dict[str, Preset] = {}

    def _user_config(self) -> ProfilesConfig | None:
        if self._config is not None:
            return self._config
        if not self.user_config_path.is_file():
            logger.debug("User profiles config not found: %s", self.user_config_path)
            return None
        try:
            self._config = ProfilesConfig.model_validate(_read_yaml(self.user_config_path) or {})
        except ValidationError as e:
            raise ProfileError(f"Invalid profiles config: {e}") from e
        logger.debug("Loaded profiles %s", sorted(self._config.profiles))
        return self._config

    def _builtin_preset(self, name: str) -> Preset | None:
        if name in self._presets:
            return self._presets[name]
        path = self.builtin_dir / f"{name}.yaml"
        if not path.is_file():
            logger.debug("Built-in preset not found: %s", path)
            return None
        try:
            preset = Preset.model_validate(_read_yaml(path) or {})
        except ValidationError as e:
            raise ProfileError(f"Invalid built-in preset '{name}': {e}") from e
        self._presets[name] = preset
        return preset

    def load_profile(self, name: str) -> Profile:
        config = self._user_config()
        if config is None or name not in config.profiles:
            raise ProfileError(
                f"Profile '{name}' not found. Full profiles must be defined in "
                f"{self.user_config_path}; built-in presets are loaded with --preset."
            )
        return config.profiles[name]

    def load_preset(self, name: str) -> Preset:
        preset = self._builtin_preset(name)
        if preset is None:
            raise ProfileError(f"Preset '{name}' not found in built-in presets")
        return preset

    def default_profile_name(self) -> str | None:
        config = self._user_config()
        return config.default_profile if config else None

    def preset_names(self) -> list[str]:
        if not self.builtin_dir.is_dir():
            return []
        return sorted(p.stem for p in self.builtin_dir.glob("*.yaml"))

    def list_profiles(self) -> list[ProfileInfo]:
        """User profiles first, then presets, each sorted by name."""
        infos: list[ProfileInfo] = []
        config = self._user_config()
        if config:
            for name in sorted(config.profiles):
                profile = config.profiles[name]
                infos.append(
                    ProfileInfo(
                        name=name,
                        read_only=bool(profile.read_only),
                        is_preset=False,
                        host=profile.host,
                        auth_type=profile.auth.type,
                        description=profile.description,
                    )
                )
        for name in self.preset_names():
            try:
                preset = self.load_preset(name)
            except ProfileError:
                logger.warning("Skipping invalid built-in preset '%s'", name)
                continue
            infos.append(
                ProfileInfo(
                    name=name,
                    read_only=bool(preset.read_only),
                    is_preset=True,
                    description=preset.description,
                )
            )
        return infos

    # ── Validation ───────────────────────────────────────────

    @staticmethod
    def _check_common(preset: Preset, result: ValidationResult) -> None:
        if preset.denied_tools_regex:
            try:
                re.compile(preset.denied_tools_regex)
            except re.error:
                result.errors.append(
                    f"Invalid regex in denied_tools_regex: {preset.denied_tools_regex}"
                )
        for entry in preset.denied_actions or ():
            tool, sep, action = entry.partition(":")
            tool, action = tool.strip(), action.strip()
            if not sep or not tool or not action:
                result.errors.append(
                    f"Invalid denied_action format '{entry}', expected 'tool:action'"
                )
            elif entry != f"{tool}:{action}":
                result.warnings.append(
                    f"denied_action '{entry}' has extra whitespace, "
                    f"normalized to '{tool}:{action}'"
                )

    def validate_preset(self, preset: Preset) -> ValidationResult:
        result = ValidationResult()
        self._check_common(preset, result)
        result.valid = not result.errors
        return result

    def validate_profile(self, profile: Profile) -> ValidationResult:
        result = ValidationResult()
        auth = profile.auth
        if isinstance(auth, PatAuth):
            env_names = [auth.token_env]
        elif isinstance(auth, OAuthAuth):
            env_names = [auth.client_id_env, auth.client_secret_env]
        else:
            env_names = []
            if not os.path.exists(auth.cookie_path):
                result.errors.append(f"Cookie file not found: {auth.cookie_path}")
        for env_name in env_names:
            if env_name and not os.getenv(env_name):
                result.warnings.append(f"Environment variable '{env_name}' is not set")

        for label, path in (
            ("SSL certificate", profile.ssl_cert_path),
            ("SSL key", profile.ssl_key_path),
            ("CA certificate", profile.ca_cert_path),
        ):
            if path and not os.path.exists(path):
                result.errors.append(f"{label} not found: {path}")

        self._check_common(profile, result)
        result.valid = not result.errors
        return result


# ── Applying to a configuration ───────────────────────────────


def apply_preset(config: GitLabConfig, preset: Preset) -> GitLabConfig:
    """Copy of ``config`` with the preset's connection-level settings applied."""
    changes: dict[str, object] = {}
    if preset.read_only:
        changes["read_only"] = True
    if preset.timeout_ms:
        changes["timeout_ms"] = preset.timeout_ms
    return replace(config, **changes) if changes else config


def apply_profile(config: GitLabConfig, profile: Profile) -> GitLabConfig:
    """Copy of ``config`` pointed at the profile's instance and credentials."""
    config = apply_preset(config, profile)
    changes: dict[str, object] = {
        "url": normalize_api_url(profile.api_url or f"https://{profile.host}"),
    }
    if isinstance(profile.auth, PatAuth):
        token = os.getenv(profile.auth.token_env)
        if token:
            changes["token"] = token
        else:
            logger.warning("Environment variable '%s' is not set", profile.auth.token_env)
    if profile.tier:
        changes["tier"] = profile.tier
    if profile.skip_tls_verify:
        changes["ssl_verify"] = False
    for name in (
        "ca_cert_path",
        "ssl_cert_path",
        "ssl_key_path",
        "default_project",
        "default_namespace",
        "allowed_projects",
        "allowed_groups",
    ):
        value = getattr(profile, name)
        if value:
            changes[name] = value
    return replace(config, **changes)
