"""Embedded frame URL construction."""

from collections.abc import Mapping, Sequence
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit


def build_frame_url(
    iframe_url: str,
    remaining_path: Sequence[str] = (),
    query: Mapping[str, str] | None = None,
) -> str:
    """Build the source URL for a page's embedded frame.

    A URL without an http(s) scheme gets ``https://``. Segments a page left
    unconsumed are appended to the URL path, and caller query parameters
    override the frame's own.

    Args:
        iframe_url: Frame URL as stored
        remaining_path: Path segments below the page entry
        query: Query parameters to merge in

    Returns:
        Frame source URL, or an empty string for an empty frame URL
    """
    if not iframe_url:
        return ""

    url = iframe_url
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"

    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.netloc:
        return url

    path = parts.path
    if remaining_path:
        suffix = "/".join(quote(segment, safe="") for segment in remaining_path)
        path = f"{path.rstrip('/')}/{suffix}"

    params = parse_qsl(parts.query, keep_blank_values=True)
    if query:
        params = _merge_query(params, query)

    return urlunsplit((parts.scheme, parts.netloc, path, urlencode(params), parts.fragment))


def _merge_query(
    params: list[tuple[str, str]],
    query: Mapping[str, str],
) -> list[tuple[str, str]]:
    """Set caller keys like ``URLSearchParams.set``.

    A caller key takes the place of its first stored occurrence and drops the
    rest; keys the caller does not set keep all their values.
    """
    pending = dict(query)
    merged: list[tuple[str, str]] = []
    for key, value in params:
        if key not in query:
            merged.append((key, value))
        elif key in pending:
            merged.append((key, pending.pop(key)))
    merged.extend(pending.items())
    return merged
