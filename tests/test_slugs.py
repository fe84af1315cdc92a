"""Tests for department slug translation."""

import pytest
from dirportal.core.models import Department, DirectorySnapshot, NavigationPage
from dirportal.core.slugs import (
    build_department_url,
    get_department_id_from_slug,
    get_department_slug,
    slugify,
)
from dirportal.core.types import DepartmentId


class TestSlugify:
    """Tests for slugify()."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Systems Integration Squad", "systems-integration-squad"),
            ("  Hello World!  ", "hello-world"),
            ("R&D / Ops", "r-d-ops"),
            ("--already-slugged--", "already-slugged"),
            ("Café Crème", "caf-cr-me"),
            ("!!!", ""),
        ],
    )
    def test__text__converts_to_slug(self, text: str, expected: str) -> None:
        """Lowercase, collapse non-alphanumerics, strip hyphens."""
        assert slugify(text) == expected

    @pytest.mark.parametrize("text", ["", None])
    def test__empty_input__returns_empty_string(self, text: str | None) -> None:
        """Empty or None input yields an empty slug."""
        assert slugify(text) == ""

    @pytest.mark.parametrize(
        "text",
        ["Systems Integration Squad", "  a--b  ", "Ünïcödé Naïve", "x_y.z", "\t\n", "123 Go!"],
    )
    def test__slugify_twice__is_idempotent(self, text: str) -> None:
        """Slugifying a slug does not change it."""
        once = slugify(text)

        assert slugify(once) == once


class TestGetDepartmentSlug:
    """Tests for get_department_slug()."""

    def test__unknown_department__returns_id(self, snapshot: DirectorySnapshot) -> None:
        """Fall back to the raw id when the department is unknown."""
        slug = get_department_slug("d-missing", snapshot.departments, snapshot.navigation_pages)

        assert slug == "d-missing"

    def test__no_override__returns_slugified_name(self, snapshot: DirectorySnapshot) -> None:
        """Use the slugified department name without a navigation page."""
        slug = get_department_slug("d-eng", snapshot.departments, snapshot.navigation_pages)

        assert slug == "engineering"

    def test__matching_override__returns_override_slug(
        self, snapshot: DirectorySnapshot
    ) -> None:
        """Use the navigation page slug when it matches the slugified name."""
        slug = get_department_slug("d-ops", snapshot.departments, snapshot.navigation_pages)

        assert slug == "systems-integration-squad"

    def test__nameless_department__returns_empty_slug(self) -> None:
        """A department without a name slugifies to an empty string."""
        departments = [Department(id=DepartmentId("d-x"), name=None)]

        assert get_department_slug("d-x", departments, []) == ""


class TestGetDepartmentIdFromSlug:
    """Tests for get_department_id_from_slug()."""

    def test__navigation_page_slug__returns_its_department(self) -> None:
        """Exact navigation page slug wins, even if it differs from the name."""
        departments = [Department(id=DepartmentId("d-1"), name="Systems Integration Squad")]
        pages = [NavigationPage(department_id=DepartmentId("d-1"), slug="sis")]

        assert get_department_id_from_slug("sis", departments, pages) == "d-1"

    def test__slugified_name__returns_department(self, snapshot: DirectorySnapshot) -> None:
        """Fall back to slugified department names."""
        result = get_department_id_from_slug(
            "engineering", snapshot.departments, snapshot.navigation_pages
        )

        assert result == "d-eng"

    def test__unknown_slug__returns_none(self, snapshot: DirectorySnapshot) -> None:
        """Return None when nothing matches."""
        result = get_department_id_from_slug(
            "marketing", snapshot.departments, snapshot.navigation_pages
        )

        assert result is None

    @pytest.mark.parametrize("department_id", ["d-eng", "d-ops"])
    def test__slug_round_trip__returns_original_id(
        self, snapshot: DirectorySnapshot, department_id: str
    ) -> None:
        """Slug of a department resolves back to the same department."""
        slug = get_department_slug(
            department_id, snapshot.departments, snapshot.navigation_pages
        )

        result = get_department_id_from_slug(
            slug, snapshot.departments, snapshot.navigation_pages
        )

        assert result == department_id


class TestBuildDepartmentUrl:
    """Tests for build_department_url()."""

    def test__no_segments__returns_department_root(self, snapshot: DirectorySnapshot) -> None:
        """Build a bare department URL."""
        url = build_department_url("d-eng", [], snapshot.departments, snapshot.navigation_pages)

        assert url == "/engineering"

    def test__segments__are_joined(self, snapshot: DirectorySnapshot) -> None:
        """Append entry segments after the department slug."""
        url = build_department_url(
            "d-eng", ["docs", "guides"], snapshot.departments, snapshot.navigation_pages
        )

        assert url == "/engineering/docs/guides"
