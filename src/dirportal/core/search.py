"""Two-phase search over the cached docs tree.

The name phase matches node names and paths; the content phase fetches each
markdown file through the content cache and tests substring containment.
Results are concatenated without de-duplication: a file matching both phases
appears once per phase, tagged with the phase that matched it.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Literal, TypedDict

from dirportal.core.docs import MARKDOWN_SUFFIX, DocsTreeCache, FileNode, NodeType

logger = logging.getLogger(__name__)

MatchKind = Literal["name", "content"]


class SearchResultDict(TypedDict):
    """Dictionary representation of a search result."""

    name: str
    path: str
    type: NodeType
    match: MatchKind


@dataclass(frozen=True)
class SearchResult:
    """Single search hit."""

    name: str
    path: str
    type: NodeType
    match: MatchKind

    def to_dict(self) -> SearchResultDict:
        return {"name": self.name, "path": self.path, "type": self.type, "match": self.match}


class SearchIndex:
    """Search the docs tree by name and by markdown content.

    Content fetches run with at most ``concurrency`` requests in flight;
    results keep tree enumeration order regardless of completion order.
    """

    def __init__(self, docs: DocsTreeCache, *, concurrency: int = 8) -> None:
        """Initialize search over a docs cache.

        Args:
            docs: Cache-backed docs tree
            concurrency: Maximum simultaneous content fetches
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self._docs = docs
        self._concurrency = concurrency

    async def search(self, query: str) -> list[SearchResult]:
        """Search names first, then contents.

        Args:
            query: Case-insensitive search text; blank queries match nothing

        Returns:
            Name-phase hits followed by content-phase hits, each in tree order

        Raises:
            UpstreamError: If the tree itself cannot be fetched
        """
        needle = query.strip().lower()
        if not needle:
            return []

        tree = await self._docs.get_tree()
        name_hits = self.search_names(tree, needle)
        content_hits = await self.search_contents(tree, needle)
        logger.info(
            f"Search '{needle}': {len(name_hits)} name hits, {len(content_hits)} content hits"
        )
        return name_hits + content_hits

    @staticmethod
    def search_names(tree: FileNode, needle: str) -> list[SearchResult]:
        """Match a lowercase needle against node names and paths."""
        return [
            SearchResult(name=node.name, path=node.path, type=node.type, match="name")
            for node in tree.walk()
            if needle in node.name.lower() or needle in node.path.lower()
        ]

    async def search_contents(self, tree: FileNode, needle: str) -> list[SearchResult]:
        """Match a lowercase needle against every markdown file's content.

        Files that cannot be fetched are logged and skipped.
        """
        files = [
            node
            for node in tree.walk()
            if node.type == "file" and node.path.endswith(MARKDOWN_SUFFIX)
        ]
        semaphore = asyncio.Semaphore(self._concurrency)

        async def matches(node: FileNode) -> bool:
            async with semaphore:
                try:
                    doc = await self._docs.get_file_content(node.path)
                except Exception as e:
                    logger.warning(f"Could not read file {node.path}: {e}")
                    return False
            return needle in doc.content.lower()

        flags = await asyncio.gather(*(matches(node) for node in files))
        return [
            SearchResult(name=node.name, path=node.path, type="file", match="content")
            for node, hit in zip(files, flags, strict=True)
            if hit
        ]
