"""aiohttp server for dirportal.

Application factory, route registration and lifecycle of the shared cache
and HTTP clients.
"""

import logging

import httpx
from aiohttp import web

from dirportal.api.directory import create_directory_routes
from dirportal.api.docs import create_docs_routes
from dirportal.api.favorites import create_favorites_routes
from dirportal.app_keys import cache_key, config_key, docs_key, search_key, store_key
from dirportal.config import Config
from dirportal.core.cache import MemoryCacheStore
from dirportal.core.docs import DocsHost, DocsTreeCache
from dirportal.core.search import SearchIndex
from dirportal.github.client import GitHubDocsClient
from dirportal.store.client import DirectoryStoreClient

logger = logging.getLogger(__name__)

http_client_key = web.AppKey("http_client", httpx.AsyncClient)


def create_app(
    config: Config,
    *,
    cache: MemoryCacheStore | None = None,
    docs_host: DocsHost | None = None,
    store: DirectoryStoreClient | None = None,
) -> web.Application:
    """Create aiohttp application.

    Collaborators not passed in are built from the configuration and share
    one httpx client that is closed on cleanup.

    Args:
        config: Application configuration
        cache: Cache store (default: new MemoryCacheStore)
        docs_host: Remote docs host (default: GitHub client from config)
        store: Backing store client (default: from config.store, if set)

    Returns:
        Configured aiohttp application
    """
    app = web.Application()

    cache = cache if cache is not None else MemoryCacheStore()
    http_client: httpx.AsyncClient | None = None

    if docs_host is None or (store is None and config.store is not None):
        http_client = httpx.AsyncClient()
        app[http_client_key] = http_client

    if docs_host is None:
        assert http_client is not None
        docs_host = GitHubDocsClient(
            http_client,
            config.github.owner,
            config.github.repo,
            config.github.branch,
            token=config.github.token,
            api_url=config.github.api_url,
        )

    if store is None and config.store is not None:
        assert http_client is not None
        store = DirectoryStoreClient(
            http_client,
            config.store.url,
            config.store.api_key,
            cache,
            cache_ttl=config.store.cache_ttl,
        )

    docs = DocsTreeCache(
        docs_host,
        cache,
        tree_ttl=config.docs.tree_ttl,
        content_ttl=config.docs.content_ttl,
    )

    app[config_key] = config
    app[cache_key] = cache
    app[docs_key] = docs
    app[search_key] = SearchIndex(docs, concurrency=config.docs.search_concurrency)
    if store is not None:
        app[store_key] = store
    else:
        logger.warning("No [store] configured; directory and favorites endpoints disabled")

    app.router.add_routes(create_directory_routes())
    app.router.add_routes(create_docs_routes())
    app.router.add_routes(create_favorites_routes())

    app.on_cleanup.append(_close_resources)

    return app


async def _close_resources(app: web.Application) -> None:
    """Clear the shared cache and close the HTTP client on cleanup."""
    app[cache_key].clear()
    http_client = app.get(http_client_key)
    if http_client is not None:
        await http_client.aclose()


def run_server(config: Config) -> None:
    """Run the server.

    Args:
        config: Application configuration
    """
    app = create_app(config)
    web.run_app(app, host=config.server.host, port=config.server.port)
