"""Department-scoped routing over a directory snapshot.

Accepts a department identifier (URL slug or raw id) and already-split path
segments, and returns either a resolved route or None as a definitive
not-found signal.
"""

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from dirportal.core.entries import EntryStore
from dirportal.core.frames import build_frame_url
from dirportal.core.models import DirectoryEntry, DirectorySnapshot, Frame
from dirportal.core.resolver import (
    BreadcrumbItem,
    build_breadcrumbs,
    build_path_to_root,
    resolve_path,
)
from dirportal.core.slugs import (
    build_department_url,
    get_department_id_from_slug,
    get_department_slug,
)
from dirportal.core.types import DepartmentId, URLPath

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteResult:
    """Resolved department route.

    ``entry`` is None for the department root. ``frame`` and ``frame_url``
    are set only for page entries.
    """

    department_id: DepartmentId
    department_slug: str
    entry: DirectoryEntry | None
    remaining_path: list[str] = field(default_factory=list)
    children: list[DirectoryEntry] = field(default_factory=list)
    breadcrumbs: list[BreadcrumbItem] = field(default_factory=list)
    frame: Frame | None = None
    frame_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "department": {"id": self.department_id, "slug": self.department_slug},
            "entry": self.entry.to_dict() if self.entry else None,
            "remaining_path": list(self.remaining_path),
            "children": [child.to_dict() for child in self.children],
            "breadcrumbs": [crumb.to_dict() for crumb in self.breadcrumbs],
            "frame": self.frame.to_dict() if self.frame else None,
            "frame_url": self.frame_url,
        }


class DirectoryRouter:
    """Route department URLs against one directory snapshot.

    Builds one EntryStore per department on first use.
    """

    def __init__(self, snapshot: DirectorySnapshot, *, strict_slugs: bool = False) -> None:
        """Initialize router.

        Args:
            snapshot: Directory data to route against
            strict_slugs: Reject duplicate sibling slugs at indexing time
        """
        self._snapshot = snapshot
        self._strict_slugs = strict_slugs
        self._stores: dict[DepartmentId, EntryStore] = {}
        self._frames = {frame.id: frame for frame in snapshot.frames}
        self._departments = {d.id: d for d in snapshot.departments}

    @property
    def snapshot(self) -> DirectorySnapshot:
        return self._snapshot

    def store_for(self, department_id: DepartmentId) -> EntryStore:
        """Get the entry store for one department.

        Raises:
            StructuralError: If strict slugs are enabled and the department
                has duplicate sibling slugs
        """
        store = self._stores.get(department_id)
        if store is None:
            entries = (e for e in self._snapshot.entries if e.department_id == department_id)
            store = EntryStore.index(entries, strict_slugs=self._strict_slugs)
            self._stores[department_id] = store
        return store

    def resolve_department(self, identifier: str) -> DepartmentId | None:
        """Translate a URL slug or raw department id into a department id."""
        if not identifier:
            return None
        department_id = get_department_id_from_slug(
            identifier,
            self._snapshot.departments,
            self._snapshot.navigation_pages,
        )
        if department_id is not None:
            return department_id
        if identifier in self._departments:
            return DepartmentId(identifier)
        return None

    def department_slug(self, department_id: str) -> str:
        return get_department_slug(
            department_id,
            self._snapshot.departments,
            self._snapshot.navigation_pages,
        )

    def department_title(self, department_id: DepartmentId) -> str:
        page = next(
            (p for p in self._snapshot.navigation_pages if p.department_id == department_id),
            None,
        )
        if page is not None and page.title:
            return page.title
        department = self._departments.get(department_id)
        if department is not None and department.name:
            return department.name
        return department_id

    def route(
        self,
        identifier: str,
        segments: Sequence[str],
        query: Mapping[str, str] | None = None,
    ) -> RouteResult | None:
        """Resolve a department URL.

        Args:
            identifier: Department slug or id
            segments: Path segments below the department
            query: Query parameters forwarded to a page's frame URL

        Returns:
            RouteResult, or None when the department or path is unknown
        """
        department_id = self.resolve_department(identifier)
        if department_id is None:
            logger.debug(f"Unknown department '{identifier}'")
            return None

        store = self.store_for(department_id)
        slug = self.department_slug(department_id)
        raw = list(segments)
        # Empty segments are skipped while walking folders but kept verbatim in
        # the suffix a page leaves unconsumed.
        positions = [index for index, segment in enumerate(raw) if segment]
        segments = [raw[index] for index in positions]

        if not segments:
            return RouteResult(
                department_id=department_id,
                department_slug=slug,
                entry=None,
                children=store.get_roots(),
                breadcrumbs=build_breadcrumbs(
                    store.by_id, slug, self.department_title(department_id), None
                ),
            )

        resolution = resolve_path(store, segments)
        entry = resolution.entry
        if entry is None:
            logger.debug(
                f"No entry for /{slug}/{'/'.join(segments)}; "
                f"matched prefix {resolution.consumed}"
            )
            return None

        remaining_path = resolution.remaining_path
        if entry.is_page:
            remaining_path = raw[positions[len(resolution.consumed) - 1] + 1 :]

        frame = self._frames.get(entry.frame_id) if entry.frame_id else None
        frame_url = None
        if frame is not None:
            frame_url = build_frame_url(frame.iframe_url, remaining_path, query)

        return RouteResult(
            department_id=department_id,
            department_slug=slug,
            entry=entry,
            remaining_path=remaining_path,
            children=[] if entry.is_page else store.get_children(entry.id),
            breadcrumbs=build_breadcrumbs(
                store.by_id, slug, self.department_title(department_id), entry
            ),
            frame=frame,
            frame_url=frame_url,
        )

    def entry_url(self, entry: DirectoryEntry) -> URLPath:
        """Build the canonical URL of an entry."""
        store = self.store_for(entry.department_id)
        return build_department_url(
            entry.department_id,
            build_path_to_root(store.by_id, entry),
            self._snapshot.departments,
            self._snapshot.navigation_pages,
        )
