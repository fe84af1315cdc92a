"""Tests for path resolution, path building and breadcrumbs."""

import pytest
from dirportal.core.entries import EntryStore
from dirportal.core.errors import StructuralError
from dirportal.core.resolver import (
    build_breadcrumbs,
    build_path_to_root,
    resolve_path,
)

from tests.conftest import make_entry


@pytest.fixture
def store() -> EntryStore:
    """eng/ (folder) -> docs (page F1), eng/ -> team/ -> handbook (page)."""
    return EntryStore.index(
        [
            make_entry("A", "eng", name="Engineering"),
            make_entry("B", "docs", parent="A", frame="F1", name="Docs"),
            make_entry("C", "team", parent="A", name="Team"),
            make_entry("D", "handbook", parent="C", frame="F2", name="Handbook"),
            make_entry("E", "empty", parent="C", name="Empty"),
        ]
    )


class TestResolvePath:
    """Tests for resolve_path()."""

    def test__folder_path__returns_folder(self, store: EntryStore) -> None:
        """Exhausting segments on a folder returns that folder."""
        result = resolve_path(store, ["eng", "team"])

        assert result.entry is store.by_id["C"]
        assert result.remaining_path == []

    def test__page_with_trailing_segments__returns_page_and_suffix(
        self, store: EntryStore
    ) -> None:
        """A page absorbs every later segment verbatim."""
        result = resolve_path(store, ["eng", "docs", "page2", "x"])

        assert result.entry is store.by_id["B"]
        assert result.remaining_path == ["page2", "x"]

    def test__page_suffix_matching_tree_slugs__still_absorbed(self, store: EntryStore) -> None:
        """Segments after a page are not resolved even if they match entries."""
        result = resolve_path(store, ["eng", "docs", "team", "handbook"])

        assert result.entry is store.by_id["B"]
        assert result.remaining_path == ["team", "handbook"]

    def test__unmatched_segment__returns_none_and_empty_remaining(
        self, store: EntryStore
    ) -> None:
        """A miss yields no entry and no remaining path."""
        result = resolve_path(store, ["eng", "missing"])

        assert result.entry is None
        assert result.remaining_path == []
        assert not result.found

    def test__unmatched_segment__keeps_consumed_prefix(self, store: EntryStore) -> None:
        """A miss reports how far the walk got."""
        result = resolve_path(store, ["eng", "team", "nope", "deeper"])

        assert result.consumed == ["eng", "team"]

    def test__unmatched_first_segment__returns_none(self, store: EntryStore) -> None:
        """A miss at the root yields no entry."""
        result = resolve_path(store, ["nope"])

        assert result.entry is None
        assert result.consumed == []

    def test__children_mapping__resolves_like_store(self, store: EntryStore) -> None:
        """A plain children-by-parent mapping resolves with a linear scan."""
        result = resolve_path(store.children_by_parent, ["eng", "docs", "x"])

        assert result.entry is store.by_id["B"]
        assert result.remaining_path == ["x"]

    def test__duplicate_slugs__first_in_order_wins(self) -> None:
        """With duplicate siblings the first in presentation order is used."""
        store = EntryStore.index(
            [make_entry("z", "dup", name="Zed"), make_entry("a", "dup", name="Alpha")]
        )

        assert resolve_path(store, ["dup"]).entry.id == "a"


class TestBuildPathToRoot:
    """Tests for build_path_to_root()."""

    def test__nested_entry__returns_root_first_slugs(self, store: EntryStore) -> None:
        """Build the full slug path including the entry itself."""
        path = build_path_to_root(store.by_id, store.by_id["D"])

        assert path == ["eng", "team", "handbook"]

    def test__root_entry__returns_own_slug(self, store: EntryStore) -> None:
        """A root's path is just its slug."""
        assert build_path_to_root(store.by_id, store.by_id["A"]) == ["eng"]

    def test__broken_chain__truncates_silently(self) -> None:
        """Stop at the last known ancestor when a parent id is missing."""
        store = EntryStore.index(
            [make_entry("m", "mid", parent="ghost"), make_entry("l", "leaf", parent="m")]
        )

        assert build_path_to_root(store.by_id, store.by_id["l"]) == ["mid", "leaf"]

    def test__parent_cycle__raises(self) -> None:
        """A cyclic parent chain is reported instead of looping."""
        store = EntryStore.index(
            [make_entry("x", "x", parent="y"), make_entry("y", "y", parent="x")]
        )

        with pytest.raises(StructuralError, match="cycle"):
            build_path_to_root(store.by_id, store.by_id["x"])

    def test__self_parent__raises(self) -> None:
        """An entry that is its own parent is a cycle."""
        store = EntryStore.index([make_entry("s", "self", parent="s")])

        with pytest.raises(StructuralError):
            build_path_to_root(store.by_id, store.by_id["s"])

    @pytest.mark.parametrize("entry_id", ["A", "B", "C", "D", "E"])
    def test__resolve_built_path__returns_same_entry(
        self, store: EntryStore, entry_id: str
    ) -> None:
        """Resolving an entry's built path gives back the entry."""
        entry = store.by_id[entry_id]

        result = resolve_path(store, build_path_to_root(store.by_id, entry))

        assert result.entry is entry
        assert result.remaining_path == []


class TestBuildBreadcrumbs:
    """Tests for build_breadcrumbs()."""

    def test__department_root__returns_department_crumb(self, store: EntryStore) -> None:
        """The department root has a single crumb."""
        crumbs = build_breadcrumbs(store.by_id, "engineering", "Engineering Dept", None)

        assert [c.to_dict() for c in crumbs] == [
            {"title": "Engineering Dept", "path": "/engineering"}
        ]

    def test__nested_entry__returns_every_ancestor(self, store: EntryStore) -> None:
        """Crumbs run from the department through each ancestor to the entry."""
        crumbs = build_breadcrumbs(store.by_id, "engineering", "Eng", store.by_id["D"])

        assert [(c.title, c.path) for c in crumbs] == [
            ("Eng", "/engineering"),
            ("Engineering", "/engineering/eng"),
            ("Team", "/engineering/eng/team"),
            ("Handbook", "/engineering/eng/team/handbook"),
        ]
