"""Department slug translation.

Departments are addressed in URLs by a slug: either a hand-chosen navigation
page slug or the slugified department name. Unknown departments fall back to
their raw id so a URL can always be built.
"""

import re
from collections.abc import Sequence

from dirportal.core.models import Department, NavigationPage
from dirportal.core.types import DepartmentId, URLPath

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text: str | None) -> str:
    """Convert text to a URL-friendly slug.

    Lowercases, trims, collapses runs of characters outside ``[a-z0-9]`` to a
    single hyphen and strips leading/trailing hyphens. Idempotent; empty or
    None input gives an empty string.

    Example:
        >>> slugify("Systems Integration Squad")
        'systems-integration-squad'
        >>> slugify("  Hello World!  ")
        'hello-world'
    """
    if not text:
        return ""
    return _NON_ALNUM.sub("-", text.lower().strip()).strip("-")


def get_department_slug(
    department_id: str,
    departments: Sequence[Department],
    navigation_pages: Sequence[NavigationPage],
) -> str:
    """Get the URL slug for a department.

    Args:
        department_id: Department to look up
        departments: Known departments
        navigation_pages: Slug overrides

    Returns:
        Navigation page slug matching the slugified name, else the slugified
        name, else the department id itself when the department is unknown
    """
    department = next((d for d in departments if d.id == department_id), None)
    if department is None:
        return department_id

    name_slug = slugify(department.name)
    page = next((p for p in navigation_pages if p.slug == name_slug), None)
    if page is not None:
        return page.slug
    return name_slug


def get_department_id_from_slug(
    slug: str,
    departments: Sequence[Department],
    navigation_pages: Sequence[NavigationPage],
) -> DepartmentId | None:
    """Get the department id addressed by a URL slug.

    Exact navigation page slugs take precedence over slugified names.

    Returns:
        Department id, or None if no department matches
    """
    page = next((p for p in navigation_pages if p.slug == slug), None)
    if page is not None:
        return page.department_id

    department = next((d for d in departments if slugify(d.name) == slug), None)
    if department is not None:
        return department.id
    return None


def build_department_url(
    department_id: str,
    path_segments: Sequence[str],
    departments: Sequence[Department],
    navigation_pages: Sequence[NavigationPage],
) -> URLPath:
    """Build a department URL from its slug and entry path segments.

    Example:
        ``build_department_url("abc123", ["tools", "subdomains"], ...)``
        gives ``"/sis/tools/subdomains"``.
    """
    slug = get_department_slug(department_id, departments, navigation_pages)
    path_part = f"/{'/'.join(path_segments)}" if path_segments else ""
    return URLPath(f"/{slug}{path_part}")
