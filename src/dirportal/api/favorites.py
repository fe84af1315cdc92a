"""Favorites API endpoints."""

import logging

from aiohttp import web

from dirportal.api.errors import error_response
from dirportal.app_keys import store_key
from dirportal.core.errors import PortalError
from dirportal.core.favorites import FavoritesOverlay

logger = logging.getLogger(__name__)


def create_favorites_routes() -> list[web.RouteDef]:
    return [
        web.get("/api/favorites", get_favorites),
        web.post("/api/favorites/toggle", toggle_favorite),
    ]


async def get_favorites(request: web.Request) -> web.Response:
    user_id = request.query.get("userId")
    if not user_id:
        return web.json_response({"error": "userId is required"}, status=400)

    store = request.app.get(store_key)
    if store is None:
        return web.json_response({"error": "Directory store not configured"}, status=503)

    try:
        favorites = await store.fetch_favorites(user_id)
    except PortalError as e:
        logger.error(f"Favorites fetch error: {e}")
        return error_response(e, message="Failed to fetch favorites")

    return web.json_response({"favorites": [f.to_dict() for f in favorites]})


async def toggle_favorite(request: web.Request) -> web.Response:
    try:
        body = await request.json()
    except ValueError:
        return web.json_response({"error": "Invalid JSON body"}, status=400)
    if not isinstance(body, dict):
        return web.json_response({"error": "Invalid JSON body"}, status=400)

    user_id = body.get("userId")
    entry_id = body.get("entryId")
    department_id = body.get("departmentId")

    store = request.app.get(store_key)
    if store is None:
        return web.json_response({"error": "Directory store not configured"}, status=503)

    try:
        overlay = await FavoritesOverlay.load(user_id or "", store)
        is_favorite = await overlay.toggle_favorite(entry_id, department_id)
    except PortalError as e:
        logger.error(f"Favorite toggle error: {e}")
        return error_response(e, message="Failed to toggle favorite")

    return web.json_response(
        {
            "favorite": is_favorite,
            "favorites": [f.to_dict() for f in overlay.favorites],
        }
    )
