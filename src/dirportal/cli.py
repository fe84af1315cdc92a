"""CLI interface for dirportal.

Command-line tool for serving the portal API and querying the directory
and docs from a terminal.
"""

import asyncio
import json
import logging
import sys
from pathlib import Path

import click
import httpx

from dirportal.config import Config
from dirportal.core.cache import MemoryCacheStore
from dirportal.core.docs import DocsTreeCache
from dirportal.core.errors import PortalError
from dirportal.core.routing import DirectoryRouter
from dirportal.core.search import SearchIndex
from dirportal.github.client import GitHubDocsClient
from dirportal.store.client import DirectoryStoreClient

config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover dirportal.toml)",
)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool) -> None:
    """Directory and wiki portal."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@config_option
@click.option("--host", default=None, help="Host to bind to (overrides config)")
@click.option("--port", "-p", type=int, default=None, help="Port to bind to (overrides config)")
@click.option("--store-url", default=None, help="Backing store URL (overrides config)")
@click.option(
    "--strict-slugs/--no-strict-slugs",
    default=None,
    help="Reject duplicate sibling slugs (overrides config)",
)
def serve(
    config_path: Path | None,
    host: str | None,
    port: int | None,
    store_url: str | None,
    strict_slugs: bool | None,
) -> None:
    """Start the portal API server."""
    from dirportal.server import run_server

    config = Config.load(config_path).with_overrides(
        host=host,
        port=port,
        store_url=store_url,
        strict_slugs=strict_slugs,
    )

    click.echo(f"Starting server on {config.server.host}:{config.server.port}")
    if config.store is not None:
        click.echo(f"Store: {config.store.url}")
    else:
        click.echo("Store: not configured (directory endpoints disabled)")
    click.echo(f"Docs: {config.github.owner}/{config.github.repo}@{config.github.branch}")

    run_server(config)


@cli.command()
@config_option
@click.argument("department")
@click.argument("segments", nargs=-1)
def resolve(config_path: Path | None, department: str, segments: tuple[str, ...]) -> None:
    """Resolve a department path and print the route as JSON."""
    config = Config.load(config_path)
    if config.store is None:
        click.echo("Error: [store] section with url is required", err=True)
        sys.exit(1)

    try:
        result = asyncio.run(_resolve(config, department, list(segments)))
    except PortalError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if result is None:
        click.echo(f"Not found: /{department}/{'/'.join(segments)}", err=True)
        sys.exit(2)
    click.echo(json.dumps(result, indent=2))


@cli.command()
@config_option
@click.argument("query")
def search(config_path: Path | None, query: str) -> None:
    """Search the docs repository by name and content."""
    config = Config.load(config_path)
    try:
        results = asyncio.run(_search(config, query))
    except PortalError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not results:
        click.echo("No results")
        return
    for result in results:
        click.echo(f"[{result['match']}] {result['path']}")


async def _resolve(config: Config, department: str, segments: list[str]) -> dict | None:
    assert config.store is not None
    async with httpx.AsyncClient() as client:
        store = DirectoryStoreClient(
            client,
            config.store.url,
            config.store.api_key,
            MemoryCacheStore(),
            cache_ttl=config.store.cache_ttl,
        )
        snapshot = await store.fetch_snapshot()

    router = DirectoryRouter(snapshot, strict_slugs=config.directory.strict_slugs)
    result = router.route(department, segments)
    return result.to_dict() if result is not None else None


async def _search(config: Config, query: str) -> list[dict]:
    async with httpx.AsyncClient() as client:
        host = GitHubDocsClient(
            client,
            config.github.owner,
            config.github.repo,
            config.github.branch,
            token=config.github.token,
            api_url=config.github.api_url,
        )
        docs = DocsTreeCache(host, MemoryCacheStore())
        index = SearchIndex(docs, concurrency=config.docs.search_concurrency)
        results = await index.search(query)
    return [dict(result.to_dict()) for result in results]


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
