"""Backing store client."""

from .client import DirectoryStoreClient

__all__ = ["DirectoryStoreClient"]
