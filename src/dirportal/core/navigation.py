"""Navigation tree builder.

Builds navigation trees from an EntryStore for UI presentation.
Navigation is a view layer over the directory hierarchy.
"""

from dataclasses import dataclass, field
from typing import NotRequired, TypedDict

from dirportal.core.entries import EntryStore
from dirportal.core.errors import StructuralError
from dirportal.core.models import DirectoryEntry
from dirportal.core.types import EntryId, URLPath


class NavItemDict(TypedDict):
    """Dictionary representation of a navigation item."""

    id: str
    title: str
    path: str
    emoji: str | None
    is_page: bool
    children: NotRequired[list["NavItemDict"]]


@dataclass
class NavItem:
    """Navigation item with children for UI tree."""

    id: EntryId
    title: str
    path: URLPath
    emoji: str | None = None
    is_page: bool = False
    children: list["NavItem"] = field(default_factory=list)

    def to_dict(self) -> NavItemDict:
        """Convert to dictionary for JSON serialization."""
        result: NavItemDict = {
            "id": self.id,
            "title": self.title,
            "path": self.path,
            "emoji": self.emoji,
            "is_page": self.is_page,
        }
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        return result


def build_navigation(store: EntryStore, department_slug: str) -> list[NavItem]:
    """Build navigation tree for one department's entries.

    Args:
        store: Entries of a single department
        department_slug: URL slug prefixing every item path

    Returns:
        List of NavItem trees in presentation order

    Raises:
        StructuralError: If a parent cycle is reachable from a root
    """
    return [
        _build_nav_item(store, entry, f"/{department_slug}", set())
        for entry in store.get_roots()
    ]


def _build_nav_item(
    store: EntryStore,
    entry: DirectoryEntry,
    parent_path: str,
    visited: set[EntryId],
) -> NavItem:
    """Recursively build NavItem from entry; pages never get children."""
    if entry.id in visited:
        raise StructuralError(f"Cycle detected at entry {entry.id}")
    visited.add(entry.id)

    path = f"{parent_path}/{entry.slug}"
    children = [] if entry.is_page else store.get_children(entry.id)
    return NavItem(
        id=entry.id,
        title=entry.name,
        path=URLPath(path),
        emoji=entry.emoji,
        is_page=entry.is_page,
        children=[_build_nav_item(store, child, path, visited) for child in children],
    )
