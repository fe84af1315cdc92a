"""Docs API endpoints.

Serves the cached remote docs tree, individual file contents, and search.
"""

import logging

from aiohttp import web

from dirportal.api.errors import error_response
from dirportal.app_keys import docs_key, search_key
from dirportal.core.errors import PortalError

logger = logging.getLogger(__name__)

SHARED_CACHE_CONTROL = "public, s-maxage=60, stale-while-revalidate=300"


def create_docs_routes() -> list[web.RouteDef]:
    return [
        web.get("/api/docs/tree", get_tree),
        web.get("/api/docs/{path:.+}", get_file),
        web.get("/api/search", search),
    ]


async def get_tree(request: web.Request) -> web.Response:
    docs = request.app[docs_key]
    try:
        tree = await docs.get_tree()
    except PortalError as e:
        logger.error(f"Error fetching docs tree: {e}")
        return error_response(e, message="Failed to fetch documentation tree")

    return web.json_response(
        tree.to_dict(),
        headers={"Cache-Control": SHARED_CACHE_CONTROL},
    )


async def get_file(request: web.Request) -> web.Response:
    path = request.match_info["path"]
    docs = request.app[docs_key]
    try:
        doc = await docs.get_file_content(path)
    except PortalError as e:
        logger.error(f"Error fetching docs file {path}: {e}")
        return error_response(e, message="Failed to fetch file content", path=path)

    return web.json_response(
        doc.to_dict(),
        headers={"Cache-Control": SHARED_CACHE_CONTROL},
    )


async def search(request: web.Request) -> web.Response:
    query = request.query.get("q", "").strip()
    if not query:
        return web.json_response({"results": []})

    index = request.app[search_key]
    try:
        results = await index.search(query)
    except PortalError as e:
        logger.error(f"Search failed: {e}")
        return error_response(e, message="Search failed")

    return web.json_response(
        {"results": [result.to_dict() for result in results]},
        headers={"Cache-Control": "private, no-store"},
    )
