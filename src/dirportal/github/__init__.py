"""GitHub docs host client."""

from .client import GitHubDocsClient

__all__ = ["GitHubDocsClient"]
