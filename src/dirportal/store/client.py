"""REST client for the backing relational store.

Talks PostgREST conventions (``/rest/v1/<table>``). GET responses are cached
in the shared cache store under a per-table tag; mutations invalidate the
tag of the table they touch.
"""

import asyncio
import logging
from typing import Any

import httpx

from dirportal.core.cache import CacheStore
from dirportal.core.errors import UpstreamError, ValidationError
from dirportal.core.models import (
    Department,
    DirectoryEntry,
    DirectorySnapshot,
    Favorite,
    Frame,
    NavigationPage,
)

logger = logging.getLogger(__name__)

DEPARTMENTS_TABLE = "rippling_departments"
DIRECTORY_TABLE = "sh_directory"
FRAMES_TABLE = "sh_frames"
CONFIG_TABLE = "sh_config"
FAVORITES_TABLE = "sh_favorites"

DIRECTORY_COLUMNS = "id,department_id,parent_id,frame_id,name,slug,sort_order,emoji"
NAVIGATION_PAGES_KEY = "navigation_pages"


def _table_tag(table: str) -> str:
    return f"store:{table}"


class DirectoryStoreClient:
    """Async HTTP client for directory, department, frame and favorite rows."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        api_key: str,
        cache: CacheStore,
        *,
        cache_ttl: float = 30.0,
    ):
        """Initialize store client.

        Args:
            client: httpx AsyncClient owned by the caller
            base_url: Store base URL (e.g., https://xyz.supabase.co)
            api_key: API key sent as ``apikey`` and bearer token
            cache: Shared cache store for GET responses
            cache_ttl: Seconds a GET response stays cached
        """
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.api_url = f"{self.base_url}/rest/v1"
        self.api_key = api_key
        self.cache = cache
        self.cache_ttl = cache_ttl

    @property
    def headers(self) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def fetch_departments(self) -> list[Department]:
        rows = await self._select(DEPARTMENTS_TABLE, {"select": "id,name", "order": "name.asc"})
        return [Department.from_dict(row) for row in rows]

    async def fetch_entries(self, department_id: str | None = None) -> list[DirectoryEntry]:
        """Fetch directory rows, optionally for one department.

        Rows come back ordered by sort_order ascending (nulls last), then name.
        """
        params = {
            "select": DIRECTORY_COLUMNS,
            "order": "sort_order.asc.nullslast,name.asc",
        }
        if department_id is not None:
            if not department_id:
                raise ValidationError("department_id is required")
            params["department_id"] = f"eq.{department_id}"
        rows = await self._select(DIRECTORY_TABLE, params)
        return [DirectoryEntry.from_dict(row) for row in rows]

    async def fetch_frames(self) -> list[Frame]:
        rows = await self._select(
            FRAMES_TABLE,
            {"select": "id,name,description,iframe_url,department_ids", "order": "name.asc"},
        )
        return [Frame.from_dict(row) for row in rows]

    async def fetch_navigation_pages(self) -> list[NavigationPage]:
        """Fetch department slug overrides from the config table."""
        rows = await self._select(
            CONFIG_TABLE,
            {"select": "value", "key": f"eq.{NAVIGATION_PAGES_KEY}"},
        )
        if not rows:
            return []
        value = rows[0].get("value") or []
        if not isinstance(value, list):
            raise UpstreamError(f"{NAVIGATION_PAGES_KEY} config value must be a list")
        pages = []
        for item in value:
            if not isinstance(item, dict) or not item.get("department_id"):
                logger.warning(f"Skipping navigation page without department: {item!r}")
                continue
            pages.append(NavigationPage.from_dict(item))
        return pages

    async def fetch_snapshot(self) -> DirectorySnapshot:
        """Fetch departments, entries, frames and navigation pages."""
        departments, entries, frames, navigation_pages = await asyncio.gather(
            self.fetch_departments(),
            self.fetch_entries(),
            self.fetch_frames(),
            self.fetch_navigation_pages(),
        )
        return DirectorySnapshot(
            departments=tuple(departments),
            entries=tuple(entries),
            frames=tuple(frames),
            navigation_pages=tuple(navigation_pages),
        )

    async def fetch_favorites(self, user_id: str) -> list[Favorite]:
        """Fetch a user's favorites, newest first.

        Raises:
            ValidationError: If user_id is empty
        """
        if not user_id:
            raise ValidationError("user_id is required")
        rows = await self._select(
            FAVORITES_TABLE,
            {"select": "*", "user_id": f"eq.{user_id}", "order": "created_at.desc"},
        )
        return [Favorite.from_dict(row) for row in rows]

    async def upsert_favorite(
        self,
        user_id: str,
        *,
        entry_id: str | None = None,
        department_id: str | None = None,
    ) -> Favorite:
        """Insert or merge a favorite and return the stored record.

        Raises:
            ValidationError: If user_id is empty or not exactly one target is given
        """
        if not user_id:
            raise ValidationError("user_id is required")
        if bool(entry_id) == bool(department_id):
            raise ValidationError("Exactly one of entry_id and department_id is required")

        payload = {
            "user_id": user_id,
            "entry_id": entry_id or None,
            "department_id": department_id or None,
        }
        logger.info(f"Upserting favorite for user {user_id}")
        logger.debug(f"Payload: {payload}")
        data = await self._request(
            "POST",
            FAVORITES_TABLE,
            json=payload,
            headers={"Prefer": "return=representation,resolution=merge-duplicates"},
        )
        rows = data if isinstance(data, list) else [data]
        if not rows or not isinstance(rows[0], dict):
            raise UpstreamError("Favorite upsert returned no record")
        return Favorite.from_dict(rows[0])

    async def delete_favorite(self, favorite_id: str) -> None:
        """Delete a favorite by id.

        Raises:
            ValidationError: If favorite_id is empty
        """
        if not favorite_id:
            raise ValidationError("favorite_id is required")
        logger.info(f"Deleting favorite {favorite_id}")
        await self._request("DELETE", FAVORITES_TABLE, params={"id": f"eq.{favorite_id}"})

    def invalidate(self, table: str | None = None) -> None:
        """Drop cached responses for one table, or for all known tables."""
        tables = [table] if table else [
            DEPARTMENTS_TABLE,
            DIRECTORY_TABLE,
            FRAMES_TABLE,
            CONFIG_TABLE,
            FAVORITES_TABLE,
        ]
        for name in tables:
            self.cache.invalidate(_table_tag(name))

    async def _select(self, table: str, params: dict[str, str]) -> list[dict[str, Any]]:
        key = f"store:{table}?{httpx.QueryParams(params)}"
        hit = self.cache.get(key)
        if hit is not None:
            return hit

        data = await self._request("GET", table, params=params)
        if not isinstance(data, list):
            raise UpstreamError(f"Unexpected response shape from {table}")
        self.cache.set(key, data, ttl=self.cache_ttl, tags=(_table_tag(table),))
        return data

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        try:
            response = await self.client.request(
                method,
                f"{self.api_url}/{table}",
                params=params,
                json=json,
                headers={**self.headers, **(headers or {})},
            )
        except httpx.HTTPError as e:
            raise UpstreamError(f"Store request to {table} failed: {e}") from e

        if response.status_code >= 400:
            logger.error(f"Store error response ({response.status_code}): {response.text}")
            raise UpstreamError(
                response.text or f"Store request failed: {response.status_code}",
                status=response.status_code,
            )

        if method != "GET":
            self.cache.invalidate(_table_tag(table))
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(
                f"Store returned a non-JSON response from {table}: {e}",
                status=response.status_code,
            ) from e
