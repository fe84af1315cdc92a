"""Directory API endpoints.

Provides the raw directory snapshot, per-department children, department
routing and navigation trees.
"""

import logging

from aiohttp import web

from dirportal.api.errors import error_response
from dirportal.app_keys import config_key, store_key
from dirportal.core.entries import entry_sort_key
from dirportal.core.errors import PortalError
from dirportal.core.navigation import build_navigation
from dirportal.core.routing import DirectoryRouter
from dirportal.store.client import DirectoryStoreClient

logger = logging.getLogger(__name__)


def create_directory_routes() -> list[web.RouteDef]:
    return [
        web.get("/api/directory", get_directory),
        web.get("/api/directory/children", get_children),
        web.get("/api/route/{department}", get_route),
        web.get("/api/route/{department}/{path:.*}", get_route),
        web.get("/api/navigation/{department}", get_navigation),
    ]


def _get_store(request: web.Request) -> DirectoryStoreClient | None:
    return request.app.get(store_key)


def _store_missing() -> web.Response:
    return web.json_response({"error": "Directory store not configured"}, status=503)


async def _load_router(store: DirectoryStoreClient, request: web.Request) -> DirectoryRouter:
    snapshot = await store.fetch_snapshot()
    strict = request.app[config_key].directory.strict_slugs
    return DirectoryRouter(snapshot, strict_slugs=strict)


async def get_directory(request: web.Request) -> web.Response:
    store = _get_store(request)
    if store is None:
        return _store_missing()

    try:
        snapshot = await store.fetch_snapshot()
    except PortalError as e:
        logger.error(f"Directory fetch error: {e}")
        return error_response(e, message="Failed to fetch directory data")

    return web.json_response(snapshot.to_dict())


async def get_children(request: web.Request) -> web.Response:
    department_id = request.query.get("departmentId")
    if not department_id:
        return web.json_response({"error": "departmentId is required"}, status=400)

    store = _get_store(request)
    if store is None:
        return _store_missing()

    try:
        entries = await store.fetch_entries(department_id)
    except PortalError as e:
        logger.error(f"Children fetch error: {e}")
        return error_response(e, message="Failed to fetch directory children")

    ordered = sorted(entries, key=entry_sort_key)
    return web.json_response({"entries": [entry.to_dict() for entry in ordered]})


async def get_route(request: web.Request) -> web.Response:
    department = request.match_info["department"]
    path = request.match_info.get("path", "")
    segments = path.split("/") if path else []

    store = _get_store(request)
    if store is None:
        return _store_missing()

    try:
        router = await _load_router(store, request)
        result = router.route(department, segments, dict(request.query))
    except PortalError as e:
        logger.error(f"Routing error for /{department}/{path}: {e}")
        return error_response(e, message="Failed to resolve path", path=path)

    if result is None:
        return web.json_response(
            {"error": "Not found", "department": department, "path": path},
            status=404,
        )
    return web.json_response(result.to_dict())


async def get_navigation(request: web.Request) -> web.Response:
    department = request.match_info["department"]

    store = _get_store(request)
    if store is None:
        return _store_missing()

    try:
        router = await _load_router(store, request)
        department_id = router.resolve_department(department)
        if department_id is None:
            return web.json_response(
                {"error": "Department not found", "department": department},
                status=404,
            )
        items = build_navigation(
            router.store_for(department_id),
            router.department_slug(department_id),
        )
    except PortalError as e:
        logger.error(f"Navigation error for {department}: {e}")
        return error_response(e, message="Failed to build navigation")

    return web.json_response({"items": [item.to_dict() for item in items]})
