"""JSON error responses for the error taxonomy."""

from aiohttp import web

from dirportal.core.errors import (
    NotFoundError,
    PortalError,
    UpstreamError,
    ValidationError,
)


def error_response(error: PortalError, *, message: str, path: str | None = None) -> web.Response:
    """Map a core error to a JSON response.

    NotFound gives 404, ValidationError 400, UpstreamError 502 and
    StructuralError 500.
    """
    status = 500
    if isinstance(error, NotFoundError):
        status = 404
    elif isinstance(error, ValidationError):
        status = 400
    elif isinstance(error, UpstreamError):
        status = 502

    body: dict[str, str] = {"error": message, "details": str(error)}
    if path is not None:
        body["path"] = path
    return web.json_response(body, status=status)
