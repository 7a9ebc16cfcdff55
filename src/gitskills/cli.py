"""CLI entry point for gitskills."""

import asyncio
import logging
import os
from pathlib import Path

# Load .env file if it exists
from dotenv import load_dotenv
load_dotenv()

import httpx
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from gitskills.adapters import TopcoderSkillsAdapter
from gitskills.analyzers.llm import LLMError
from gitskills.analyzers.pipeline import SkillPipeline
from gitskills.auth import AuthenticationError, DeviceFlowAuthenticator
from gitskills.cache import ResultCache
from gitskills.config import ConfigurationError, Settings
from gitskills.report import export_report, render_report

app = typer.Typer(help="Recommend standardized skills from GitHub activity.")

console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def _load_settings(**overrides) -> Settings:
    try:
        return Settings.from_env(**overrides)
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


def _show_device_code(verification_uri: str, user_code: str) -> None:
    console.print()
    console.print(f"[bold]→ Go to:[/bold] [cyan]{verification_uri}[/cyan]")
    console.print(f"[bold]→ Code:[/bold] [green]{user_code}[/green]")
    console.print()


@app.command()
def recommend(
    refresh: bool = typer.Option(False, "--refresh", help="Ignore cached analysis and skills"),
    max_repos: int | None = typer.Option(None, "--max-repos", "-n", help="Repositories to analyze"),
    sample_size: int | None = typer.Option(None, "--sample-size", help="Evidence links in prompt"),
    min_score: int | None = typer.Option(None, "--min-score", help="Minimum recommendation score"),
    provider: str | None = typer.Option(None, "--provider", "-p", help="LLM provider"),
    export: bool = typer.Option(True, "--export/--no-export", help="Write a text report"),
    output_dir: Path = typer.Option(Path("."), "--output-dir", "-o", help="Report directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Analyze your GitHub activity and recommend verified skills."""
    _configure_logging(verbose)
    settings = _load_settings(
        max_repos_to_analyze=max_repos,
        evidence_sample_size=sample_size,
        min_score=min_score,
        llm_provider=provider,
    )
    asyncio.run(_recommend(settings, refresh, export, output_dir))


async def _recommend(settings: Settings, refresh: bool, export: bool, output_dir: Path) -> None:
    """Async implementation of recommend."""
    try:
        async with SkillPipeline(settings, on_device_prompt=_show_device_code) as pipeline:
            report = await pipeline.recommend(refresh=refresh)
    except (AuthenticationError, LLMError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except Exception as e:
        console.print(f"[red]Fatal error: {e}[/red]")
        raise typer.Exit(1)

    render_report(report, console)

    if export:
        try:
            path = export_report(report, output_dir)
            console.print(f"\n[green]Results exported to {path}[/green]")
        except OSError as e:
            console.print(f"[red]Failed to export results: {e}[/red]")


@app.command()
def discover(
    max_repos: int | None = typer.Option(None, "--max-repos", "-n", help="Mark the first N as analyzed"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """List repositories discovered for the authenticated user."""
    _configure_logging(verbose)
    settings = _load_settings(max_repos_to_analyze=max_repos)
    asyncio.run(_discover(settings))


async def _discover(settings: Settings) -> None:
    """Async implementation of discover."""
    try:
        async with SkillPipeline(settings, on_device_prompt=_show_device_code) as pipeline:
            github = await pipeline.authenticate()
            username = await github.get_authenticated_user()
            result = await pipeline.discover(username)
    except AuthenticationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    except httpx.HTTPError as e:
        console.print(f"[red]GitHub request failed: {e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Repositories for @{username}")
    table.add_column("#", style="dim", width=4)
    table.add_column("Repository", style="cyan")
    table.add_column("Analyzed", justify="center")
    for i, repo in enumerate(result.repositories, 1):
        analyzed = "yes" if i <= settings.max_repos_to_analyze else "-"
        table.add_row(str(i), repo, analyzed)
    console.print(table)

    counts = ", ".join(f"{k}: {v}" for k, v in result.source_counts.items())
    console.print(f"[dim]New per source: {counts}[/dim]")
    if result.incomplete:
        console.print("[yellow]Search results were capped; discovery may be incomplete.[/yellow]")


@app.command()
def skills(
    search: str | None = typer.Option(None, "--search", "-s", help="Filter by name"),
    refresh: bool = typer.Option(False, "--refresh", help="Re-fetch the catalog"),
    limit: int = typer.Option(50, "--limit", "-n", help="Rows to show"),
) -> None:
    """Show the standardized skill catalog."""
    _configure_logging(False)
    asyncio.run(_skills(_cache(), search, refresh, limit))


def _cache() -> ResultCache:
    return ResultCache(Path(os.environ.get("GITSKILLS_CACHE_DIR") or ".cache"))


async def _skills(cache: ResultCache, search: str | None, refresh: bool, limit: int) -> None:
    """Async implementation of skills."""
    catalog = None if refresh else cache.load_skills()
    if catalog is None:
        try:
            catalog = await TopcoderSkillsAdapter().list_skills()
        except httpx.HTTPError as e:
            console.print(f"[red]Could not fetch skill catalog: {e}[/red]")
            raise typer.Exit(1)
        cache.save_skills(catalog)

    matches = [s for s in catalog if not search or search.lower() in s.name.lower()]
    table = Table(title=f"Skills ({len(matches)} of {len(catalog)})")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    for skill in matches[:limit]:
        table.add_row(skill.id, skill.name)
    console.print(table)


@app.command()
def login() -> None:
    """Run the GitHub device flow and print a token for .env."""
    _configure_logging(False)
    client_id = os.environ.get("GITHUB_CLIENT_ID")
    try:
        token = asyncio.run(
            DeviceFlowAuthenticator(client_id, on_prompt=_show_device_code).authenticate()
        )
    except AuthenticationError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print("[green]Authentication successful![/green]")
    console.print(f"Add to .env: GITHUB_ACCESS_TOKEN={token}")


@app.command()
def clear_cache(
    username: str | None = typer.Argument(None, help="Only clear this user's analysis"),
) -> None:
    """Delete cached skills and analyses."""
    removed = _cache().clear(username)
    console.print(f"Removed {len(removed)} cached file(s)")


@app.command()
def version() -> None:
    """Show version information."""
    from gitskills import __version__

    console.print(f"gitskills v{__version__}")


if __name__ == "__main__":
    app()
