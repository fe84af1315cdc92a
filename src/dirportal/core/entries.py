"""Directory entry store.

Normalizes a flat, parent-referencing row set into lookup indices. Entries
are held in an arena (flat list) with id, parent and per-parent slug indices
layered on top, so lookups are O(1) and traversals never follow object
references that could form cycles.
"""

import logging
from collections.abc import Iterable, Mapping

from dirportal.core.errors import StructuralError
from dirportal.core.models import DirectoryEntry
from dirportal.core.types import DepartmentId, EntryId

logger = logging.getLogger(__name__)


def entry_sort_key(entry: DirectoryEntry) -> tuple[bool, float, str]:
    """Presentation order: sort_order ascending with nulls last, then name."""
    if entry.sort_order is None:
        return (True, 0.0, entry.name)
    return (False, float(entry.sort_order), entry.name)


class EntryStore:
    """Indexed directory entries.

    ``children_by_parent`` keeps entries whose parent id does not exist under
    that dangling key; orphans are never promoted to roots. The store is a
    permissive index, not a validator, except for duplicate sibling slugs in
    strict mode.

    A store holds one department's forest: roots of every indexed entry share
    the None key, so build one store per department (see
    :meth:`DirectoryRouter.store_for`).
    """

    __slots__ = ("_by_id", "_children", "_duplicates", "_entries", "_slug_index")

    def __init__(
        self,
        entries: list[DirectoryEntry],
        children: dict[EntryId | None, list[DirectoryEntry]],
        duplicates: list[tuple[DepartmentId, EntryId | None, str]],
    ) -> None:
        """Initialize store from prepared indices.

        Use :meth:`index` to build a store from raw entries.

        Args:
            entries: Arena of all entries
            children: Ordered children lists keyed by parent id
            duplicates: (department, parent, slug) triples seen more than once
        """
        self._entries = entries
        self._by_id = {entry.id: entry for entry in entries}
        self._children = children
        self._duplicates = duplicates
        self._slug_index: dict[EntryId | None, dict[str, DirectoryEntry]] = {}
        for parent_id, siblings in children.items():
            slugs: dict[str, DirectoryEntry] = {}
            for entry in siblings:
                # First in presentation order wins.
                slugs.setdefault(entry.slug, entry)
            self._slug_index[parent_id] = slugs

    @classmethod
    def index(
        cls,
        entries: Iterable[DirectoryEntry],
        *,
        strict_slugs: bool = False,
    ) -> "EntryStore":
        """Build a store from a flat entry list.

        Args:
            entries: Directory rows in any order
            strict_slugs: Raise instead of tolerating duplicate sibling slugs

        Returns:
            Indexed EntryStore

        Raises:
            StructuralError: If strict_slugs is set and two siblings share a slug
        """
        arena = list(entries)
        children: dict[EntryId | None, list[DirectoryEntry]] = {}
        for entry in arena:
            children.setdefault(entry.parent_id, []).append(entry)
        for siblings in children.values():
            siblings.sort(key=entry_sort_key)

        # Same key as the slug index.
        seen: set[tuple[EntryId | None, str]] = set()
        duplicates: list[tuple[DepartmentId, EntryId | None, str]] = []
        for entry in arena:
            key = (entry.parent_id, entry.slug)
            if key in seen:
                if strict_slugs:
                    raise StructuralError(
                        f"Duplicate slug '{entry.slug}' under parent {entry.parent_id!r} "
                        f"in department {entry.department_id}"
                    )
                logger.warning(
                    f"Duplicate slug '{entry.slug}' under parent {entry.parent_id!r}, "
                    "first entry in sort order wins"
                )
                duplicates.append((entry.department_id, entry.parent_id, entry.slug))
            seen.add(key)

        return cls(arena, children, duplicates)

    @property
    def by_id(self) -> Mapping[EntryId, DirectoryEntry]:
        """Entries keyed by id."""
        return self._by_id

    @property
    def children_by_parent(self) -> Mapping[EntryId | None, list[DirectoryEntry]]:
        """Ordered children lists keyed by parent id (None for roots)."""
        return self._children

    @property
    def duplicate_slugs(self) -> list[tuple[DepartmentId, EntryId | None, str]]:
        """Duplicate (department, parent, slug) keys tolerated at ingestion."""
        return list(self._duplicates)

    def get(self, entry_id: str | None) -> DirectoryEntry | None:
        """Get entry by id."""
        if entry_id is None:
            return None
        return self._by_id.get(EntryId(entry_id))

    def get_children(self, parent_id: str | None) -> list[DirectoryEntry]:
        """Get ordered children of a parent, empty when unknown."""
        return list(self._children.get(EntryId(parent_id) if parent_id else None, []))

    def find_child(self, parent_id: str | None, slug: str) -> DirectoryEntry | None:
        """Get the first child of a parent with the given slug."""
        slugs = self._slug_index.get(EntryId(parent_id) if parent_id else None)
        if slugs is None:
            return None
        return slugs.get(slug)

    def get_roots(self) -> list[DirectoryEntry]:
        """Get root-level entries."""
        return self.get_children(None)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._by_id
