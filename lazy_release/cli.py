"""CLI entry point for lazy-release."""

from __future__ import annotations

import json
from pathlib import Path

import click

from lazy_release.config import ReleaseConfig, load_config
from lazy_release.exceptions import LazyReleaseError
from lazy_release.github import GitHub, parse_repository
from lazy_release.pipeline import run_github_release, run_release_pr
from lazy_release.shell import set_verbose
from lazy_release.strategies import strategy_types

repo_option = click.option(
    "--repo",
    envvar="GITHUB_REPOSITORY",
    required=True,
    help="GitHub repository as OWNER/REPO. [env: GITHUB_REPOSITORY]",
)
target_branch_option = click.option(
    "--target-branch",
    default=None,
    help="Branch to release from. Defaults to the repository's default branch.",
)
config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="pyproject.toml with a [tool.lazy-release] table.",
)
github_output_option = click.option(
    "--github-output",
    envvar="GITHUB_OUTPUT",
    type=click.Path(dir_okay=False),
    default=None,
    help="Append step outputs to this file. [env: GITHUB_OUTPUT]",
)


def _write_output(output_path: str | None, name: str, value: str) -> None:
    if not output_path:
        return
    with open(output_path, "a") as fh:
        fh.write(f"{name}={value}\n")


def _load(config_path: Path | None, **overrides: object) -> ReleaseConfig:
    try:
        return load_config(config_path, **overrides)
    except LazyReleaseError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(package_name="lazy-release")
@click.option("-v", "--verbose", is_flag=True, help="Show debug output.")
def cli(verbose: bool) -> None:
    """Release pull requests from merged pull requests and version tags."""
    set_verbose(verbose)


@cli.command("release-pr")
@repo_option
@target_branch_option
@click.option("--strategy", default=None, help="Release strategy, e.g. rust.")
@config_option
@github_output_option
def release_pr(
    repo: str,
    target_branch: str | None,
    strategy: str | None,
    config_path: Path | None,
    github_output: str | None,
) -> None:
    """Create or update the pending release pull request."""
    config = _load(config_path, target_branch=target_branch, strategy=strategy)
    try:
        github = GitHub(parse_repository(repo))
        pull_request = run_release_pr(github, config)
    except LazyReleaseError as e:
        raise click.ClickException(str(e)) from e

    if pull_request is None:
        click.echo("Nothing to release.")
        return
    click.echo(f"✓ Release pull request #{pull_request.number}")
    _write_output(github_output, "pr", str(pull_request.number))


@cli.command("github-release")
@repo_option
@target_branch_option
@config_option
@github_output_option
def github_release(
    repo: str,
    target_branch: str | None,
    config_path: Path | None,
    github_output: str | None,
) -> None:
    """Publish merged release pull requests as GitHub releases."""
    config = _load(config_path, target_branch=target_branch)
    try:
        github = GitHub(parse_repository(repo))
        releases = run_github_release(github, config)
    except LazyReleaseError as e:
        raise click.ClickException(str(e)) from e

    for release in releases:
        click.echo(f"✓ Released {release.tag}")
    _write_output(github_output, "releases_created", json.dumps(bool(releases)))
    _write_output(github_output, "tags", json.dumps([r.tag for r in releases]))


@cli.command()
def strategies() -> None:
    """List the available release strategies."""
    for key in strategy_types():
        click.echo(key)
