"""Per-user favorites overlay with optimistic toggling.

A toggle is a command object with ``apply`` and ``rollback`` local-state
transitions around one backing-store call. ``apply`` runs synchronously when
the toggle is requested, so membership checks see the optimistic state before
the store confirms. A store call that fails or is cancelled runs ``rollback``
and re-raises.
"""

import itertools
import logging
from collections.abc import Awaitable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

from dirportal.core.errors import ValidationError
from dirportal.core.models import Favorite
from dirportal.core.types import DepartmentId, EntryId, UserId

logger = logging.getLogger(__name__)

PLACEHOLDER_PREFIX = "pending-"

_placeholder_ids = itertools.count(1)


class FavoritesBackend(Protocol):
    """Backing store operations for favorites."""

    async def fetch_favorites(self, user_id: str) -> list[Favorite]: ...

    async def upsert_favorite(
        self,
        user_id: str,
        *,
        entry_id: str | None = None,
        department_id: str | None = None,
    ) -> Favorite: ...

    async def delete_favorite(self, favorite_id: str) -> None: ...


def _check_target(entry_id: str | None, department_id: str | None) -> None:
    if bool(entry_id) == bool(department_id):
        raise ValidationError("Exactly one of entry_id and department_id is required")


@dataclass
class AddFavorite:
    """Insert a placeholder now, replace it with the confirmed record later."""

    placeholder: Favorite

    def apply(self, overlay: "FavoritesOverlay") -> None:
        overlay._favorites.insert(0, self.placeholder)

    def rollback(self, overlay: "FavoritesOverlay") -> None:
        overlay._remove_id(self.placeholder.id)

    async def commit(self, overlay: "FavoritesOverlay") -> None:
        confirmed = await overlay.backend.upsert_favorite(
            overlay.user_id,
            entry_id=self.placeholder.entry_id,
            department_id=self.placeholder.department_id,
        )
        index = overlay._index_of(self.placeholder.id)
        if index is None:
            # Toggled off locally while in flight; local state wins.
            logger.debug(f"Placeholder {self.placeholder.id} gone before confirmation")
            return
        overlay._favorites[index] = confirmed


@dataclass
class RemoveFavorite:
    """Drop the record now, delete it from the store afterwards."""

    favorite: Favorite
    _position: int = field(default=0, init=False)

    def apply(self, overlay: "FavoritesOverlay") -> None:
        self._position = overlay._index_of(self.favorite.id) or 0
        overlay._remove_id(self.favorite.id)

    def rollback(self, overlay: "FavoritesOverlay") -> None:
        if overlay._index_of(self.favorite.id) is None:
            overlay._favorites.insert(self._position, self.favorite)

    async def commit(self, overlay: "FavoritesOverlay") -> None:
        if self.favorite.id.startswith(PLACEHOLDER_PREFIX):
            return
        await overlay.backend.delete_favorite(self.favorite.id)


FavoriteCommand = AddFavorite | RemoveFavorite


class FavoritesOverlay:
    """Favorite-membership set for one user, layered over directory data.

    Concurrent toggles on the same identifier are not serialized; the last
    local write wins.
    """

    def __init__(
        self,
        user_id: str,
        backend: FavoritesBackend,
        favorites: Sequence[Favorite] = (),
    ) -> None:
        """Initialize overlay.

        Args:
            user_id: Owner of the favorites
            backend: Store used to confirm toggles
            favorites: Initially loaded favorites, newest first

        Raises:
            ValidationError: If user_id is empty
        """
        if not user_id:
            raise ValidationError("user_id is required")
        self.user_id = UserId(user_id)
        self.backend = backend
        self._favorites: list[Favorite] = list(favorites)

    @classmethod
    async def load(cls, user_id: str, backend: FavoritesBackend) -> "FavoritesOverlay":
        """Create an overlay populated from the backing store."""
        if not user_id:
            raise ValidationError("user_id is required")
        favorites = await backend.fetch_favorites(user_id)
        return cls(user_id, backend, favorites)

    @property
    def favorites(self) -> list[Favorite]:
        """Current local favorites, newest first."""
        return list(self._favorites)

    @property
    def favorite_entry_ids(self) -> list[EntryId]:
        return [f.entry_id for f in self._favorites if f.entry_id is not None]

    @property
    def favorite_department_ids(self) -> list[DepartmentId]:
        return [f.department_id for f in self._favorites if f.department_id is not None]

    def is_favorite(self, entry_id: str | None = None, department_id: str | None = None) -> bool:
        """Check membership of an entry or a department.

        ``entry_id`` takes precedence when both are given; neither gives False.
        """
        return self._find(entry_id, department_id) is not None

    def toggle_favorite(
        self,
        entry_id: str | None = None,
        department_id: str | None = None,
    ) -> Awaitable[bool]:
        """Toggle a favorite optimistically.

        The local change is applied before this method returns. The returned
        awaitable performs the store call, rolls the local change back if the
        call fails, and resolves to the new membership state.

        Args:
            entry_id: Entry to toggle
            department_id: Department to toggle

        Returns:
            Awaitable resolving to True if now a favorite

        Raises:
            ValidationError: Unless exactly one identifier is given
        """
        _check_target(entry_id, department_id)
        existing = self._find(entry_id, department_id)
        command: FavoriteCommand
        if existing is not None:
            command = RemoveFavorite(existing)
        else:
            command = AddFavorite(
                Favorite(
                    id=f"{PLACEHOLDER_PREFIX}{next(_placeholder_ids)}",
                    user_id=self.user_id,
                    entry_id=EntryId(entry_id) if entry_id else None,
                    department_id=DepartmentId(department_id) if department_id else None,
                )
            )
        command.apply(self)
        return self._commit(command, added=existing is None)

    async def _commit(self, command: FavoriteCommand, *, added: bool) -> bool:
        try:
            await command.commit(self)
        except BaseException as e:
            logger.warning(f"Favorite toggle failed for user {self.user_id}, rolling back: {e!r}")
            command.rollback(self)
            raise
        return added

    def _find(self, entry_id: str | None, department_id: str | None) -> Favorite | None:
        return next((f for f in self._favorites if f.matches(entry_id, department_id)), None)

    def _index_of(self, favorite_id: str) -> int | None:
        for index, favorite in enumerate(self._favorites):
            if favorite.id == favorite_id:
                return index
        return None

    def _remove_id(self, favorite_id: str) -> None:
        self._favorites = [f for f in self._favorites if f.id != favorite_id]
