"""Remote documentation tree cache.

Mirrors the file/directory structure of a remote docs repository. The tree is
rebuilt wholesale from a flat listing whenever its cache slot expires; file
contents are cached per path with their own TTL and may outlive the tree
snapshot that listed them.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Literal, NotRequired, Protocol, TypedDict

from dirportal.core.cache import CacheStore, cached

logger = logging.getLogger(__name__)

NodeType = Literal["file", "dir"]

TREE_KEY = "docs:tree"
TREE_TAG = "wiki-docs-tree"
CONTENT_TAG = "wiki-docs-content"
MARKDOWN_SUFFIX = ".md"


class FileNodeDict(TypedDict):
    """Dictionary representation of a file node."""

    name: str
    path: str
    type: NodeType
    sha: NotRequired[str]
    children: NotRequired[list["FileNodeDict"]]


class DocFileDict(TypedDict):
    """Dictionary representation of file content."""

    path: str
    content: str
    sha: str


@dataclass(frozen=True)
class TreeItem:
    """Flat listing item as reported by the docs host."""

    path: str
    type: NodeType
    sha: str | None = None


@dataclass
class FileNode:
    """File or directory in the docs tree."""

    name: str
    path: str
    type: NodeType
    children: list["FileNode"] | None = None
    sha: str | None = None

    @property
    def is_dir(self) -> bool:
        return self.type == "dir"

    def walk(self) -> Iterator["FileNode"]:
        """Yield descendants depth-first in tree order, excluding self."""
        for child in self.children or ():
            yield child
            yield from child.walk()

    def to_dict(self) -> FileNodeDict:
        """Convert to dictionary for JSON serialization."""
        result: FileNodeDict = {"name": self.name, "path": self.path, "type": self.type}
        if self.sha:
            result["sha"] = self.sha
        if self.children is not None:
            result["children"] = [child.to_dict() for child in self.children]
        return result


@dataclass(frozen=True)
class DocFile:
    """Decoded file content with its content hash."""

    path: str
    content: str
    sha: str = ""

    def to_dict(self) -> DocFileDict:
        return {"path": self.path, "content": self.content, "sha": self.sha}


class DocsHost(Protocol):
    """Remote host serving the docs repository."""

    async def list_tree(self) -> list[TreeItem]: ...

    async def get_file(self, path: str) -> DocFile: ...


def is_listed(item: TreeItem) -> bool:
    """Keep directories and markdown files."""
    return item.type == "dir" or item.path.endswith(MARKDOWN_SUFFIX)


def build_tree(items: Iterable[TreeItem]) -> FileNode:
    """Build a nested tree from a flat path listing.

    Items are attached in ascending path depth so parents exist before their
    children. Items whose parent directory is not listed are dropped.

    Args:
        items: Flat listing with slash-separated paths

    Returns:
        Root directory node (empty name and path)
    """
    root = FileNode(name="", path="", type="dir", children=[])
    lookup: dict[str, FileNode] = {"": root}

    for item in sorted(items, key=lambda i: i.path.count("/")):
        if not item.path:
            continue
        parent_path, _, name = item.path.rpartition("/")
        parent = lookup.get(parent_path)
        if parent is None or parent.children is None:
            logger.debug(f"Dropping {item.path}: parent directory not listed")
            continue

        node = FileNode(
            name=name,
            path=item.path,
            type=item.type,
            children=[] if item.type == "dir" else None,
            sha=item.sha,
        )
        parent.children.append(node)
        lookup[item.path] = node

    return root


@dataclass
class DocsTreeCache:
    """Cache-backed access to the remote docs tree and file contents.

    Args:
        host: Remote docs host
        cache: Shared cache store
        tree_ttl: Seconds a fetched tree stays fresh
        content_ttl: Seconds a fetched file stays fresh
    """

    host: DocsHost
    cache: CacheStore
    tree_ttl: float = 60.0
    content_ttl: float = 60.0

    async def get_tree(self) -> FileNode:
        """Get the docs tree, fetching it on a cold or expired cache.

        Raises:
            UpstreamError: If the host listing fails
        """
        return await cached(
            self.cache,
            TREE_KEY,
            self._fetch_tree,
            ttl=self.tree_ttl,
            tags=(TREE_TAG,),
        )

    async def get_file_content(self, path: str) -> DocFile:
        """Get one file's content, cached per path.

        Raises:
            NotFoundError: If the host reports the file absent
            UpstreamError: If the host fails for another reason
        """
        return await cached(
            self.cache,
            f"docs:file:{path}",
            lambda: self.host.get_file(path),
            ttl=self.content_ttl,
            tags=(CONTENT_TAG,),
        )

    async def all_markdown_files(self) -> list[FileNode]:
        """List every file in the cached tree, depth-first in tree order."""
        tree = await self.get_tree()
        return [node for node in tree.walk() if node.type == "file"]

    def invalidate(self) -> None:
        """Drop the cached tree."""
        self.cache.invalidate(TREE_TAG)

    def invalidate_content(self) -> None:
        """Drop all cached file contents."""
        self.cache.invalidate(CONTENT_TAG)

    async def _fetch_tree(self) -> FileNode:
        items = await self.host.list_tree()
        listed = [item for item in items if is_listed(item)]
        logger.info(f"Fetched docs tree: {len(listed)} of {len(items)} items listed")
        return build_tree(listed)
