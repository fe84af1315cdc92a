"""Slug path resolution over the directory tree.

``resolve_path`` walks slug segments down from the roots; ``build_path_to_root``
is its inverse and walks parent ids back up. Both carry a visited set and
raise :class:`StructuralError` on a parent cycle instead of looping.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from dirportal.core.entries import EntryStore
from dirportal.core.errors import StructuralError
from dirportal.core.models import DirectoryEntry
from dirportal.core.types import EntryId

ChildrenByParent = Mapping[EntryId | None, Sequence[DirectoryEntry]]


@dataclass(frozen=True)
class Resolution:
    """Result of resolving a slug path.

    ``entry`` is None when a segment did not match. ``remaining_path`` holds
    the segments a page left unconsumed. ``consumed`` is the matched prefix,
    kept on failure for diagnostics.
    """

    entry: DirectoryEntry | None
    remaining_path: list[str] = field(default_factory=list)
    consumed: list[str] = field(default_factory=list)

    @property
    def found(self) -> bool:
        return self.entry is not None


@dataclass(frozen=True)
class BreadcrumbItem:
    """Breadcrumb navigation item."""

    title: str
    path: str

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        return {"title": self.title, "path": self.path}


def _find_child(
    tree: EntryStore | ChildrenByParent,
    parent_id: EntryId | None,
    slug: str,
) -> DirectoryEntry | None:
    if isinstance(tree, EntryStore):
        return tree.find_child(parent_id, slug)
    for child in tree.get(parent_id, ()):
        if child.slug == slug:
            return child
    return None


def resolve_path(
    tree: EntryStore | ChildrenByParent,
    segments: Sequence[str],
) -> Resolution:
    """Resolve slug segments to a directory entry.

    Walks from the roots, taking the first child whose slug matches each
    segment. A matched page stops the walk and returns every later segment
    verbatim as ``remaining_path``. Exhausting the segments on a folder
    returns that folder.

    Args:
        tree: EntryStore, or ordered children lists keyed by parent id
        segments: Slug segments, root first

    Returns:
        Resolution; ``entry`` is None when any segment fails to match

    Raises:
        StructuralError: If the walk revisits an entry
    """
    parent_id: EntryId | None = None
    current: DirectoryEntry | None = None
    visited: set[EntryId] = set()

    for index, segment in enumerate(segments):
        current = _find_child(tree, parent_id, segment)
        if current is None:
            return Resolution(entry=None, consumed=list(segments[:index]))
        if current.id in visited:
            raise StructuralError(f"Cycle detected at entry {current.id}")
        visited.add(current.id)

        if current.is_page:
            return Resolution(
                entry=current,
                remaining_path=list(segments[index + 1 :]),
                consumed=list(segments[: index + 1]),
            )
        parent_id = current.id

    return Resolution(entry=current, consumed=list(segments))


def iter_ancestors(
    by_id: Mapping[EntryId, DirectoryEntry],
    entry: DirectoryEntry,
) -> list[DirectoryEntry]:
    """Collect the entry and its ancestors, leaf first.

    Stops at a root or at a parent id missing from ``by_id``.

    Raises:
        StructuralError: If the parent chain loops
    """
    chain = [entry]
    visited = {entry.id}
    parent_id = entry.parent_id

    while parent_id is not None:
        parent = by_id.get(parent_id)
        if parent is None:
            break
        if parent.id in visited:
            raise StructuralError(f"Parent cycle detected at entry {parent.id}")
        visited.add(parent.id)
        chain.append(parent)
        parent_id = parent.parent_id

    return chain


def build_path_to_root(
    by_id: Mapping[EntryId, DirectoryEntry],
    entry: DirectoryEntry,
) -> list[str]:
    """Build the root-first slug path of an entry, including its own slug.

    A broken parent chain truncates the path silently at the last known
    ancestor.

    Args:
        by_id: Entries keyed by id
        entry: Entry to build the path for

    Returns:
        Slug segments, root first

    Raises:
        StructuralError: If the parent chain loops
    """
    chain = iter_ancestors(by_id, entry)
    chain.reverse()
    return [item.slug for item in chain]


def build_breadcrumbs(
    by_id: Mapping[EntryId, DirectoryEntry],
    department_slug: str,
    department_title: str,
    entry: DirectoryEntry | None,
) -> list[BreadcrumbItem]:
    """Build breadcrumbs from the department root down to an entry.

    The department crumb comes first, followed by each ancestor and the entry
    itself. Paths are canonical department URLs.

    Args:
        by_id: Entries keyed by id
        department_slug: URL slug of the entry's department
        department_title: Display title for the department crumb
        entry: Current entry, or None for the department root

    Returns:
        List of BreadcrumbItem, root first
    """
    base = f"/{department_slug}"
    breadcrumbs = [BreadcrumbItem(title=department_title, path=base)]
    if entry is None:
        return breadcrumbs

    chain = iter_ancestors(by_id, entry)
    chain.reverse()
    slugs: list[str] = []
    for item in chain:
        slugs.append(item.slug)
        breadcrumbs.append(BreadcrumbItem(title=item.name, path=f"{base}/{'/'.join(slugs)}"))
    return breadcrumbs
