"""Shared test fixtures."""

import json
from collections.abc import Callable

import httpx
import pytest
from aiohttp import web
from dirportal.config import (
    Config,
    DirectoryConfig,
    DocsConfig,
    GitHubConfig,
    ServerConfig,
)
from dirportal.core.cache import MemoryCacheStore
from dirportal.core.docs import DocFile, TreeItem
from dirportal.core.errors import NotFoundError, UpstreamError
from dirportal.core.models import (
    Department,
    DirectoryEntry,
    DirectorySnapshot,
    Favorite,
    Frame,
    NavigationPage,
)
from dirportal.core.types import DepartmentId, EntryId, FrameId, UserId
from dirportal.server import create_app
from dirportal.store import DirectoryStoreClient

EntryFactory = Callable[..., DirectoryEntry]


def make_entry(
    entry_id: str,
    slug: str,
    *,
    parent: str | None = None,
    frame: str | None = None,
    name: str | None = None,
    sort_order: int | None = None,
    department: str = "d-eng",
    emoji: str | None = None,
) -> DirectoryEntry:
    """Build a directory entry with terse defaults."""
    return DirectoryEntry(
        id=EntryId(entry_id),
        department_id=DepartmentId(department),
        parent_id=EntryId(parent) if parent else None,
        frame_id=FrameId(frame) if frame else None,
        name=name if name is not None else slug.replace("-", " ").title(),
        slug=slug,
        sort_order=sort_order,
        emoji=emoji,
    )


@pytest.fixture
def entry() -> EntryFactory:
    return make_entry


@pytest.fixture
def snapshot() -> DirectorySnapshot:
    """Two departments; engineering has a folder tree with one page."""
    return DirectorySnapshot(
        departments=(
            Department(id=DepartmentId("d-eng"), name="Engineering"),
            Department(id=DepartmentId("d-ops"), name="Systems Integration Squad"),
        ),
        entries=(
            make_entry("e-docs", "docs", sort_order=1),
            make_entry("e-tools", "tools", sort_order=2),
            make_entry("e-guides", "guides", parent="e-docs"),
            make_entry("e-setup", "setup", parent="e-guides", frame="f-1", name="Setup"),
            make_entry("e-dash", "dashboard", frame="f-2", department="d-ops"),
        ),
        frames=(
            Frame(id=FrameId("f-1"), name="Setup", iframe_url="setup.example.com/app"),
            Frame(id=FrameId("f-2"), name="Dash", iframe_url="https://dash.example.com"),
        ),
        navigation_pages=(
            NavigationPage(
                department_id=DepartmentId("d-ops"),
                slug="systems-integration-squad",
                title="SIS",
                icon="cube",
            ),
        ),
    )


@pytest.fixture
def test_config() -> Config:
    """Create a test configuration without a backing store."""
    return Config(
        server=ServerConfig(),
        store=None,
        github=GitHubConfig(owner="acme", repo="wiki", branch="main", token=None),
        docs=DocsConfig(),
        directory=DirectoryConfig(),
    )


class FakeDocsHost:
    """In-memory docs host recording every call."""

    def __init__(
        self,
        files: dict[str, str] | None = None,
        *,
        extra_items: list[TreeItem] | None = None,
        failing: set[str] | None = None,
    ) -> None:
        self.files = dict(files or {})
        self.extra_items = list(extra_items or [])
        self.failing = set(failing or ())
        self.tree_calls = 0
        self.file_calls: list[str] = []

    async def list_tree(self) -> list[TreeItem]:
        self.tree_calls += 1
        dirs: set[str] = set()
        for path in self.files:
            parts = path.split("/")[:-1]
            for depth in range(1, len(parts) + 1):
                dirs.add("/".join(parts[:depth]))
        items = [TreeItem(path=d, type="dir") for d in sorted(dirs)]
        items += [TreeItem(path=p, type="file", sha=f"sha-{p}") for p in self.files]
        return items + self.extra_items

    async def get_file(self, path: str) -> DocFile:
        self.file_calls.append(path)
        if path in self.failing:
            raise UpstreamError(f"boom: {path}", status=500)
        if path not in self.files:
            raise NotFoundError(f"Not found: {path}", path=path)
        return DocFile(path=path, content=self.files[path], sha=f"sha-{path}")


@pytest.fixture
def docs_host() -> FakeDocsHost:
    return FakeDocsHost(
        {
            "README.md": "Welcome to the wiki",
            "a.md": "Setup guide",
            "guides/setup.md": "# Setup\n\nInstall things.",
            "guides/deploy.md": "# Deploy\n\nShip it.",
        }
    )


class FakeFavoritesBackend:
    """In-memory favorites store with optional failure injection."""

    def __init__(self, favorites: list[Favorite] | None = None) -> None:
        self.rows: list[Favorite] = list(favorites or [])
        self.fail_next = False
        self.deleted: list[str] = []
        self._next_id = 100

    def _maybe_fail(self) -> None:
        if self.fail_next:
            self.fail_next = False
            raise UpstreamError("store unavailable", status=503)

    async def fetch_favorites(self, user_id: str) -> list[Favorite]:
        return [f for f in self.rows if f.user_id == user_id]

    async def upsert_favorite(
        self,
        user_id: str,
        *,
        entry_id: str | None = None,
        department_id: str | None = None,
    ) -> Favorite:
        self._maybe_fail()
        self._next_id += 1
        favorite = Favorite(
            id=f"fav-{self._next_id}",
            user_id=UserId(user_id),
            entry_id=EntryId(entry_id) if entry_id else None,
            department_id=DepartmentId(department_id) if department_id else None,
        )
        self.rows.insert(0, favorite)
        return favorite

    async def delete_favorite(self, favorite_id: str) -> None:
        self._maybe_fail()
        self.deleted.append(favorite_id)
        self.rows = [f for f in self.rows if f.id != favorite_id]


@pytest.fixture
def favorites_backend() -> FakeFavoritesBackend:
    return FakeFavoritesBackend()


class FakeRestStore:
    """PostgREST-style table server for httpx.MockTransport.

    Supports ``eq.`` filters on GET and DELETE and inserts on POST.
    """

    def __init__(self, tables: dict[str, list[dict]] | None = None) -> None:
        self.tables = {name: list(rows) for name, rows in (tables or {}).items()}
        self.requests: list[httpx.Request] = []
        self.fail_status: int | None = None
        self._next_id = 500

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport)

    def _filters(self, request: httpx.Request) -> dict[str, str]:
        return {
            key: value.removeprefix("eq.")
            for key, value in request.url.params.items()
            if value.startswith("eq.")
        }

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_status is not None:
            return httpx.Response(self.fail_status, text="store exploded")

        table = request.url.path.rsplit("/", 1)[-1]
        rows = self.tables.setdefault(table, [])
        filters = self._filters(request)

        def selected(row: dict) -> bool:
            return all(str(row.get(key)) == value for key, value in filters.items())

        if request.method == "GET":
            return httpx.Response(200, json=[row for row in rows if selected(row)])
        if request.method == "POST":
            self._next_id += 1
            row = {"id": f"fav-{self._next_id}", "created_at": None, **json.loads(request.content)}
            rows.insert(0, row)
            return httpx.Response(201, json=[row])
        if request.method == "DELETE":
            self.tables[table] = [row for row in rows if not selected(row)]
            return httpx.Response(204)
        return httpx.Response(405)


def store_tables(snapshot: DirectorySnapshot) -> dict[str, list[dict]]:
    """Render a snapshot as store table rows."""
    return {
        "rippling_departments": [d.to_dict() for d in snapshot.departments],
        "sh_directory": [e.to_dict() for e in snapshot.entries],
        "sh_frames": [f.to_dict() for f in snapshot.frames],
        "sh_config": [
            {
                "key": "navigation_pages",
                "value": [p.to_dict() for p in snapshot.navigation_pages],
            }
        ],
        "sh_favorites": [],
    }


@pytest.fixture
def rest_store(snapshot: DirectorySnapshot) -> FakeRestStore:
    return FakeRestStore(store_tables(snapshot))


@pytest.fixture
def portal_app(
    test_config: Config,
    docs_host: FakeDocsHost,
    rest_store: FakeRestStore,
) -> web.Application:
    """Create app backed by the fake docs host and fake REST store."""
    cache = MemoryCacheStore()
    store = DirectoryStoreClient(rest_store.client(), "https://db.example.com", "anon", cache)
    return create_app(test_config, cache=cache, docs_host=docs_host, store=store)
