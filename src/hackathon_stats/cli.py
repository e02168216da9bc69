"""CLI entrypoint for hackathon-stats."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click

from . import __version__
from .config import HackathonsFile, load_config
from .exceptions import (
    AggregationRunError,
    ConfigError,
    HackathonStatsError,
    OrganizationResolutionError,
)
from .logging import setup_logging

DEFAULT_CONFIG = "hackathons.yaml"

_token_option = click.option(
    "--token",
    envvar="GITHUB_TOKEN",
    default=None,
    show_envvar=True,
    help="GitHub personal access token (overrides the configured token)",
)


def _load(ctx: click.Context) -> HackathonsFile:
    try:
        return load_config(ctx.obj["config"])
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


def _fail(exc: Exception) -> None:
    if isinstance(exc, OrganizationResolutionError):
        click.echo(f"Error: {exc}. Check the organization and repository list.", err=True)
    elif isinstance(exc, AggregationRunError):
        click.echo(
            f"Error: {exc}. Please check your configuration and try again.", err=True
        )
    else:
        click.echo(f"Error: {exc}", err=True)
    sys.exit(1)


@click.group()
@click.option(
    "--config",
    "config_path",
    default=DEFAULT_CONFIG,
    show_default=True,
    type=click.Path(dir_okay=False),
    help="Hackathons configuration file (YAML)",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
@click.version_option(version=__version__)
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool) -> None:
    """Hackathon leaderboards from GitHub pull requests, issues and reviews.

    \b
    Examples:
      hackathon-stats list
      hackathon-stats show blt-2024
      hackathon-stats show blt-2024 --format json --output report.json
      hackathon-stats snapshot --out-dir data/
    """
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config"] = config_path


@main.command("list")
@click.pass_context
def list_hackathons(ctx: click.Context) -> None:
    """List configured hackathons and their status."""
    from .renderer import render_hackathon_list

    config = _load(ctx)
    render_hackathon_list(config.hackathons, site_name=config.site.site_name)


@main.command()
@click.argument("slug")
@_token_option
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    show_default=True,
    help="Output format",
)
@click.option("--no-cache", is_flag=True, default=False, help="Disable HTTP response caching")
@click.option(
    "--output",
    "output_file",
    default=None,
    type=click.Path(),
    help="Save output to file instead of stdout",
)
@click.option("--api-url", default=None, help="GitHub Enterprise API base URL")
@click.pass_context
def show(
    ctx: click.Context,
    slug: str,
    token: str | None,
    output_format: str,
    no_cache: bool,
    output_file: str | None,
    api_url: str | None,
) -> None:
    """Collect and display statistics for one hackathon."""
    from .orchestrator import run

    config = _load(ctx)
    try:
        hackathon = config.get(slug)
        asyncio.run(
            run(
                hackathon,
                token=token,
                output_format=output_format.lower(),
                no_cache=no_cache,
                output_file=output_file,
                api_url=api_url,
            )
        )
    except HackathonStatsError as exc:
        _fail(exc)


@main.command()
@click.argument("slugs", nargs=-1)
@_token_option
@click.option(
    "--out-dir",
    default="data",
    show_default=True,
    type=click.Path(file_okay=False),
    help="Directory receiving one <slug>.json per hackathon",
)
@click.option("--api-url", default=None, help="GitHub Enterprise API base URL")
@click.pass_context
def snapshot(
    ctx: click.Context,
    slugs: tuple[str, ...],
    token: str | None,
    out_dir: str,
    api_url: str | None,
) -> None:
    """Write JSON snapshots for the given hackathons (all by default)."""
    from .orchestrator import collect_report
    from .snapshot import write_snapshot

    config = _load(ctx)
    try:
        hackathons = [config.get(s) for s in slugs] if slugs else config.hackathons
    except ConfigError as exc:
        _fail(exc)
        return

    failed = 0
    for hackathon in hackathons:
        try:
            report = asyncio.run(
                collect_report(hackathon, token=token, include_metadata=True, api_url=api_url)
            )
        except HackathonStatsError as exc:
            click.echo(f"Error: {hackathon.slug}: {exc}", err=True)
            failed += 1
            continue
        path = write_snapshot(report, Path(out_dir) / f"{hackathon.slug}.json")
        click.echo(f"Saved {hackathon.slug} to {path}")

    if failed:
        sys.exit(1)


@main.command("rate-limit")
@_token_option
@click.option("--api-url", default=None, help="GitHub Enterprise API base URL")
def rate_limit(token: str | None, api_url: str | None) -> None:
    """Show the current GitHub API rate limit."""
    from .github.client import GitHubClient

    async def fetch() -> dict:
        async with GitHubClient(token=token, no_cache=True, base_url=api_url) as client:
            return await client.get_rate_limit()

    try:
        data = asyncio.run(fetch())
    except HackathonStatsError as exc:
        _fail(exc)
        return
    core = data.get("resources", {}).get("core", data.get("rate", {}))
    click.echo(json.dumps(core, indent=2))


if __name__ == "__main__":  # pragma: no cover
    main()
