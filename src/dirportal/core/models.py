"""Directory data model.

Rows arrive from the backing store as JSON objects. Each row type has a
TypedDict describing the wire shape and a frozen dataclass used by the core.
"""

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict

from dirportal.core.errors import ValidationError
from dirportal.core.types import DepartmentId, EntryId, FrameId, UserId


class DirectoryEntryDict(TypedDict):
    """Wire representation of a directory row."""

    id: str
    department_id: str
    parent_id: str | None
    frame_id: str | None
    name: str
    slug: str
    sort_order: int | float | None
    emoji: str | None


class DepartmentDict(TypedDict):
    """Wire representation of a department row."""

    id: str
    name: str | None


class NavigationPageDict(TypedDict):
    """Wire representation of a navigation page override."""

    department_id: str
    slug: str
    title: str
    icon: str


class FrameDict(TypedDict):
    """Wire representation of an embedded frame."""

    id: str
    name: str
    iframe_url: str
    department_ids: list[str]
    description: NotRequired[str | None]


class FavoriteDict(TypedDict):
    """Wire representation of a favorite row."""

    id: str
    user_id: str
    entry_id: str | None
    department_id: str | None
    created_at: NotRequired[str | None]


def _require(row: dict[str, Any], key: str, kind: str) -> Any:
    value = row.get(key)
    if value is None or value == "":
        raise ValidationError(f"{kind} row is missing required field '{key}'")
    return value


@dataclass(frozen=True)
class DirectoryEntry:
    """Node in a department directory tree.

    An entry with a ``frame_id`` is a page: it embeds a frame and owns any
    path segments below it. An entry without one is a folder.
    """

    id: EntryId
    department_id: DepartmentId
    parent_id: EntryId | None
    frame_id: FrameId | None
    name: str
    slug: str
    sort_order: int | float | None = None
    emoji: str | None = None

    @property
    def is_page(self) -> bool:
        return self.frame_id is not None

    @property
    def is_folder(self) -> bool:
        return self.frame_id is None

    @classmethod
    def from_dict(cls, row: dict[str, Any]) -> "DirectoryEntry":
        """Build an entry from a store row.

        Raises:
            ValidationError: If ``id``, ``department_id`` or ``slug`` is missing
        """
        parent_id = row.get("parent_id")
        frame_id = row.get("frame_id")
        return cls(
            id=EntryId(str(_require(row, "id", "directory"))),
            department_id=DepartmentId(str(_require(row, "department_id", "directory"))),
            parent_id=EntryId(str(parent_id)) if parent_id else None,
            frame_id=FrameId(str(frame_id)) if frame_id else None,
            name=row.get("name") or "",
            slug=str(_require(row, "slug", "directory")),
            sort_order=row.get("sort_order"),
            emoji=row.get("emoji"),
        )

    def to_dict(self) -> DirectoryEntryDict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "department_id": self.department_id,
            "parent_id": self.parent_id,
            "frame_id": self.frame_id,
            "name": self.name,
            "slug": self.slug,
            "sort_order": self.sort_order,
            "emoji": self.emoji,
        }


@dataclass(frozen=True)
class Department:
    """Department owned by the external identity store."""

    id: DepartmentId
    name: str | None

    @classmethod
    def from_dict(cls, row: dict[str, Any]) -> "Department":
        return cls(
            id=DepartmentId(str(_require(row, "id", "department"))),
            name=row.get("name"),
        )

    def to_dict(self) -> DepartmentDict:
        return {"id": self.id, "name": self.name}


@dataclass(frozen=True)
class NavigationPage:
    """Hand-chosen URL slug for a department."""

    department_id: DepartmentId
    slug: str
    title: str = ""
    icon: str = ""

    @classmethod
    def from_dict(cls, row: dict[str, Any]) -> "NavigationPage":
        return cls(
            department_id=DepartmentId(str(_require(row, "department_id", "navigation page"))),
            slug=str(_require(row, "slug", "navigation page")),
            title=row.get("title") or "",
            icon=row.get("icon") or "",
        )

    def to_dict(self) -> NavigationPageDict:
        return {
            "department_id": self.department_id,
            "slug": self.slug,
            "title": self.title,
            "icon": self.icon,
        }


@dataclass(frozen=True)
class Frame:
    """Embedded-content descriptor a page entry points to."""

    id: FrameId
    name: str
    iframe_url: str
    department_ids: tuple[DepartmentId, ...] = ()
    description: str | None = None

    @classmethod
    def from_dict(cls, row: dict[str, Any]) -> "Frame":
        return cls(
            id=FrameId(str(_require(row, "id", "frame"))),
            name=row.get("name") or "",
            iframe_url=row.get("iframe_url") or "",
            department_ids=tuple(DepartmentId(str(d)) for d in row.get("department_ids") or ()),
            description=row.get("description"),
        )

    def to_dict(self) -> FrameDict:
        return {
            "id": self.id,
            "name": self.name,
            "iframe_url": self.iframe_url,
            "department_ids": list(self.department_ids),
            "description": self.description,
        }


@dataclass(frozen=True)
class Favorite:
    """Favorited entry or department for one user.

    Exactly one of ``entry_id`` and ``department_id`` is set.
    """

    id: str
    user_id: UserId
    entry_id: EntryId | None = None
    department_id: DepartmentId | None = None
    created_at: str | None = None

    def matches(self, entry_id: str | None, department_id: str | None) -> bool:
        """Check whether this favorite targets the given identifier."""
        if entry_id:
            return self.entry_id == entry_id
        if department_id:
            return self.department_id == department_id
        return False

    @classmethod
    def from_dict(cls, row: dict[str, Any]) -> "Favorite":
        entry_id = row.get("entry_id")
        department_id = row.get("department_id")
        return cls(
            id=str(_require(row, "id", "favorite")),
            user_id=UserId(str(_require(row, "user_id", "favorite"))),
            entry_id=EntryId(str(entry_id)) if entry_id else None,
            department_id=DepartmentId(str(department_id)) if department_id else None,
            created_at=row.get("created_at"),
        )

    def to_dict(self) -> FavoriteDict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "entry_id": self.entry_id,
            "department_id": self.department_id,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class DirectorySnapshot:
    """Immutable view of all directory data read in one pass."""

    departments: tuple[Department, ...] = ()
    entries: tuple[DirectoryEntry, ...] = ()
    frames: tuple[Frame, ...] = ()
    navigation_pages: tuple[NavigationPage, ...] = ()

    def to_dict(self) -> dict[str, list[Any]]:
        """Convert to dictionary for JSON serialization."""
        return {
            "departments": [d.to_dict() for d in self.departments],
            "entries": [e.to_dict() for e in self.entries],
            "frames": [f.to_dict() for f in self.frames],
            "navigationPages": [p.to_dict() for p in self.navigation_pages],
        }
