"""Tests for profiles and presets."""

from __future__ import annotations

import textwrap

import pytest

from gitlab_mcp_registry.config import GitLabConfig
from gitlab_mcp_registry.exceptions import ProfileError, ScopeViolationError
from gitlab_mcp_registry.manager import FilterContext, RegistryManager
from gitlab_mcp_registry.profiles import ProfileLoader, apply_preset, apply_profile
from gitlab_mcp_registry.tiers import Tier

PROFILES_YAML = textwrap.dedent(
    """\
    default_profile: work
    profiles:
      work:
        description: Company instance
        host: gitlab.corp.example
        auth:
          type: pat
          token_env: WORK_GITLAB_TOKEN
        tier: premium
        read_only: true
        denied_actions:
          - "manage_ref:delete_tag"
      broken:
        host: gitlab.other.example
        auth:
          type: cookie
          cookie_path: /nonexistent/cookies.txt
        denied_tools_regex: "[oops"
        denied_actions:
          - "missing-colon"
          - "manage_ref : delete_branch"
      scoped:
        host: gitlab.corp.example
        auth:
          type: pat
          token_env: WORK_GITLAB_TOKEN
        allowed_projects: ["team/app"]
        allowed_groups: ["platform"]
        default_project: team/app
        ssl_cert_path: /etc/gitlab/client.pem
        ssl_key_path: /etc/gitlab/client.key
    """
)


@pytest.fixture
def loader(tmp_path):
    path = tmp_path / "profiles.yaml"
    path.write_text(PROFILES_YAML)
    return ProfileLoader(user_config_path=path)


class TestPresets:
    @pytest.mark.parametrize("name", ["readonly", "developer", "minimal", "admin"])
    def test_builtin_presets_load_and_validate(self, name):
        loader = ProfileLoader()
        preset = loader.load_preset(name)
        assert loader.validate_preset(preset).valid

    def test_unknown_preset(self):
        with pytest.raises(ProfileError, match="Preset 'nope' not found"):
            ProfileLoader().load_preset("nope")

    def test_unknown_keys_rejected(self, tmp_path):
        (tmp_path / "bad.yaml").write_text("host: gitlab.example.com\n")
        with pytest.raises(ProfileError, match="Invalid built-in preset 'bad'"):
            ProfileLoader(user_config_path=tmp_path / "none.yaml", builtin_dir=tmp_path).load_preset(
                "bad"
            )

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / "bad.yaml").write_text("read_only: [unclosed\n")
        with pytest.raises(ProfileError, match="Invalid YAML"):
            ProfileLoader(builtin_dir=tmp_path).load_preset("bad")

    def test_minimal_preset_restricts_catalog(self):
        preset = ProfileLoader().load_preset("minimal")
        context = FilterContext.from_preset(preset, FilterContext())
        manager = RegistryManager(config=GitLabConfig(token="t"))
        names = {t.name for t in manager.get_all_tool_definitions_tierless(context)}
        assert names == {
            "browse_projects",
            "browse_namespaces",
            "browse_commits",
            "get_repository_tree",
            "get_file_contents",
        }

    def test_developer_preset_denies_actions(self):
        preset = ProfileLoader().load_preset("developer")
        context = FilterContext.from_preset(preset, FilterContext())
        assert context.is_action_denied("manage_ref", "delete_tag")
        assert context.features["webhooks"] is False

    def test_apply_preset(self):
        preset = ProfileLoader().load_preset("minimal")
        config = apply_preset(GitLabConfig(token="t"), preset)
        assert config.read_only is True
        assert config.timeout_ms == 10000


class TestProfiles:
    def test_load_profile(self, loader):
        profile = loader.load_profile("work")
        assert profile.host == "gitlab.corp.example"
        assert profile.auth.type == "pat"
        assert loader.default_profile_name() == "work"

    def test_missing_profile(self, loader):
        with pytest.raises(ProfileError, match="Profile 'home' not found"):
            loader.load_profile("home")

    def test_no_user_config(self, tmp_path):
        with pytest.raises(ProfileError):
            ProfileLoader(user_config_path=tmp_path / "missing.yaml").load_profile("work")

    def test_list_profiles(self, loader):
        infos = loader.list_profiles()
        names = [info.name for info in infos]
        assert names[:3] == ["broken", "scoped", "work"]
        assert {"readonly", "developer", "minimal", "admin"} <= set(names)
        work = next(info for info in infos if info.name == "work")
        assert work.read_only is True
        assert work.is_preset is False
        assert work.auth_type == "pat"

    def test_apply_profile(self, loader, monkeypatch):
        monkeypatch.setenv("WORK_GITLAB_TOKEN", "glpat-work")
        config = apply_profile(GitLabConfig(), loader.load_profile("work"))
        assert config.url == "https://gitlab.corp.example/api/v4"
        assert config.token == "glpat-work"
        assert config.tier == "premium"
        assert config.read_only is True

    def test_profile_context(self, loader):
        context = FilterContext.from_profile(loader.load_profile("work"), FilterContext())
        assert context.read_only is True
        assert context.tier is Tier.PREMIUM
        assert context.denied_for("manage_ref") == {"delete_tag"}

    def test_apply_profile_scope_and_certificates(self, loader):
        config = apply_profile(GitLabConfig(), loader.load_profile("scoped"))
        assert config.allowed_projects == ["team/app"]
        assert config.allowed_groups == ["platform"]
        assert config.default_project == "team/app"
        assert config.ssl_cert_path == "/etc/gitlab/client.pem"
        assert config.ssl_key_path == "/etc/gitlab/client.key"

    def test_profile_context_carries_scope(self, loader):
        context = FilterContext.from_profile(loader.load_profile("scoped"), FilterContext())
        assert context.allowed_projects == {"team/app"}
        assert context.scope.is_allowed("platform/infra/ci")
        assert not context.scope.is_allowed("999")

    async def test_scoped_profile_blocks_other_projects(self, loader, mock_api):
        profile = loader.load_profile("scoped")
        config = apply_profile(GitLabConfig(token="t"), profile)
        manager = RegistryManager(
            config=config, context=FilterContext.from_profile(profile, FilterContext())
        )
        with pytest.raises(ScopeViolationError):
            await manager.dispatch("browse_projects", {"action": "get", "project_id": "999"})
        assert len(mock_api.calls) == 0

    def test_validate_profile_warns_on_missing_token(self, loader, monkeypatch):
        monkeypatch.delenv("WORK_GITLAB_TOKEN", raising=False)
        result = loader.validate_profile(loader.load_profile("work"))
        assert result.valid
        assert result.warnings == ["Environment variable 'WORK_GITLAB_TOKEN' is not set"]

    def test_validate_profile_errors(self, loader):
        result = loader.validate_profile(loader.load_profile("broken"))
        assert not result.valid
        assert "Cookie file not found: /nonexistent/cookies.txt" in result.errors
        assert "Invalid regex in denied_tools_regex: [oops" in result.errors
        assert "Invalid denied_action format 'missing-colon', expected 'tool:action'" in result.errors
        assert any("normalized to 'manage_ref:delete_branch'" in w for w in result.warnings)
