"""MCP server exposing GitLab through per-entity tool registries."""

import asyncio
import logging
import os
import sys
from dataclasses import replace

import click
from dotenv import load_dotenv


@click.command()
@click.option(
    "--transport",
    type=click.Choice(["stdio", "sse", "streamable-http"]),
    default="stdio",
    help="MCP transport type",
)
@click.option("--port", default=8000, help="Port for HTTP transports")
@click.option("--host", default="127.0.0.1", help="Host for HTTP transports")
@click.option("--gitlab-url", envvar="GITLAB_API_URL", help="GitLab instance URL")
@click.option("--gitlab-token", envvar="GITLAB_TOKEN", help="GitLab personal access token")
@click.option("--read-only", is_flag=True, help="Expose read-only tools only")
@click.option("--profile", envvar="GITLAB_PROFILE", help="User profile from profiles.yaml")
@click.option("--preset", help="Built-in preset (readonly, developer, minimal, admin)")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging on stderr")
def main(
    transport: str,
    port: int,
    host: str,
    gitlab_url: str | None,
    gitlab_token: str | None,
    read_only: bool,
    profile: str | None,
    preset: str | None,
    verbose: bool,
) -> None:
    """Run the GitLab MCP server."""
    load_dotenv()
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if gitlab_url:
        os.environ["GITLAB_API_URL"] = gitlab_url
    if gitlab_token:
        os.environ["GITLAB_TOKEN"] = gitlab_token
    if read_only:
        os.environ["GITLAB_READ_ONLY_MODE"] = "true"

    from .config import GitLabConfig
    from .exceptions import ProfileError
    from .manager import FilterContext, RegistryManager, detect_instance_tier
    from .profiles import ProfileLoader, apply_preset, apply_profile
    from .servers.gitlab import build_server

    config = GitLabConfig.from_env()
    context = FilterContext.from_config(config)
    loader = ProfileLoader()
    try:
        if profile:
            loaded = loader.load_profile(profile)
            config = apply_profile(config, loaded)
            context = FilterContext.from_profile(loaded, context)
        if preset:
            loaded_preset = loader.load_preset(preset)
            config = apply_preset(config, loaded_preset)
            context = FilterContext.from_preset(loaded_preset, context)
    except ProfileError as e:
        raise click.ClickException(str(e)) from e

    try:
        config.validate()
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    if context.tier is None and config.detect_tier:
        context = replace(context, tier=asyncio.run(detect_instance_tier(config)))

    manager = RegistryManager(config=config, context=context)
    mcp = build_server(manager)

    run_kwargs: dict = {"transport": transport}
    if transport != "stdio":
        run_kwargs["host"] = host
        run_kwargs["port"] = port

    asyncio.run(mcp.run_async(show_banner=False, **run_kwargs))


if __name__ == "__main__":
    main()
