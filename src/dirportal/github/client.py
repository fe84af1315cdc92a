"""GitHub API client for the remote docs repository.

This module provides async HTTP client for the git tree listing and the
contents API, translating HTTP failures into NotFoundError and UpstreamError.
"""

import base64
import logging
from typing import Any, Literal, NotRequired, TypedDict
from urllib.parse import quote

import httpx

from dirportal.core.docs import DocFile, TreeItem
from dirportal.core.errors import NotFoundError, UpstreamError

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"


# GitHub API Response TypedDicts


class GitTreeItemDict(TypedDict):
    """Item of a recursive git tree listing."""

    path: NotRequired[str]
    type: NotRequired[Literal["blob", "tree", "commit"]]
    sha: NotRequired[str]


class GitTreeResponseDict(TypedDict):
    """Git tree listing response."""

    sha: str
    tree: list[GitTreeItemDict]
    truncated: NotRequired[bool]


class ContentsResponseDict(TypedDict):
    """Contents API response for a single file."""

    type: str
    path: str
    sha: NotRequired[str]
    content: NotRequired[str]
    encoding: NotRequired[str]


class GitHubDocsClient:
    """Async HTTP client for a docs repository hosted on GitHub."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        owner: str,
        repo: str,
        branch: str = "main",
        *,
        token: str | None = None,
        api_url: str = GITHUB_API_URL,
    ):
        """Initialize GitHub client.

        Args:
            client: httpx AsyncClient owned by the caller
            owner: Repository owner
            repo: Repository name
            branch: Branch or ref to read
            token: Optional bearer token
            api_url: GitHub API base URL
        """
        self.client = client
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.token = token
        self.api_url = api_url.rstrip("/")

    @property
    def headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": GITHUB_API_VERSION,
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def list_tree(self) -> list[TreeItem]:
        """List every file and directory of the branch.

        Returns:
            Flat listing; submodules are skipped

        Raises:
            UpstreamError: If the listing cannot be fetched
        """
        path = f"/repos/{self.owner}/{self.repo}/git/trees/{quote(self.branch, safe='')}"
        logger.info(f"Listing tree of {self.owner}/{self.repo}@{self.branch}")
        data: GitTreeResponseDict = await self._get_json(path, params={"recursive": "1"})
        if data.get("truncated"):
            logger.warning(f"Tree listing of {self.owner}/{self.repo} was truncated by GitHub")

        items: list[TreeItem] = []
        for raw in data.get("tree", []):
            item_path = raw.get("path")
            item_type = raw.get("type")
            if not item_path or item_type not in ("blob", "tree"):
                continue
            items.append(
                TreeItem(
                    path=item_path,
                    type="dir" if item_type == "tree" else "file",
                    sha=raw.get("sha"),
                )
            )
        return items

    async def get_file(self, path: str) -> DocFile:
        """Get decoded content of one file.

        Args:
            path: Repository-relative file path

        Returns:
            DocFile with UTF-8 content and blob sha

        Raises:
            NotFoundError: If the path does not exist or is not a file
            UpstreamError: If the request fails otherwise
        """
        encoded = "/".join(quote(segment, safe="") for segment in path.split("/"))
        logger.info(f"Getting file {path}")
        data = await self._get_json(
            f"/repos/{self.owner}/{self.repo}/contents/{encoded}",
            params={"ref": self.branch},
            not_found_path=path,
        )
        if not isinstance(data, dict) or data.get("type") != "file" or not data.get("content"):
            raise NotFoundError(f"Not a file: {path}", path=path)

        try:
            content = base64.b64decode(data["content"]).decode("utf-8")
        except ValueError as e:
            raise UpstreamError(f"Undecodable content for {path}: {e}") from e
        return DocFile(path=path, content=content, sha=data.get("sha", ""))

    async def _get_json(
        self,
        path: str,
        *,
        params: dict[str, str] | None = None,
        not_found_path: str | None = None,
    ) -> Any:
        try:
            response = await self.client.get(
                f"{self.api_url}{path}", params=params, headers=self.headers
            )
        except httpx.HTTPError as e:
            raise UpstreamError(f"GitHub request failed: {e}") from e

        if response.status_code == 404 and not_found_path is not None:
            raise NotFoundError(f"Not found: {not_found_path}", path=not_found_path)
        if response.status_code >= 400:
            logger.error(f"GitHub API error ({response.status_code}): {response.text}")
            raise UpstreamError(
                f"GitHub API error ({response.status_code}): {_error_message(response)}",
                status=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"GitHub returned a non-JSON response for {path}: {e}") from e


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return str(data)
