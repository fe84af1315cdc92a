"""Error taxonomy for the directory and docs core.

Resolution misses are not errors: resolvers return ``None`` results. The
exceptions below cover remote absence, rejected input, transport failures
and corrupt tree data.
"""


class PortalError(Exception):
    """Base class for all dirportal errors."""


class NotFoundError(PortalError):
    """Requested object does not exist in the remote source."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class ValidationError(PortalError, ValueError):
    """Required identifier missing or malformed; raised before any lookup."""


class UpstreamError(PortalError):
    """Remote store or docs host failed for a reason other than absence."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class StructuralError(PortalError):
    """Directory data is corrupt (parent cycle or ambiguous sibling slugs)."""
