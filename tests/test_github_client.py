"""Tests for the GitHub docs client."""

import base64

import httpx
import pytest
from dirportal.core.errors import NotFoundError, UpstreamError
from dirportal.github import GitHubDocsClient


def _client(handler, *, token: str | None = None) -> GitHubDocsClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GitHubDocsClient(http, "acme", "wiki", "main", token=token)


class TestListTree:
    """Tests for GitHubDocsClient.list_tree()."""

    @pytest.mark.asyncio
    async def test__recursive_listing__maps_blobs_and_trees(self) -> None:
        """Blobs become files, trees become dirs and submodules are skipped."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "sha": "root",
                    "tree": [
                        {"path": "guides", "type": "tree", "sha": "t1"},
                        {"path": "guides/setup.md", "type": "blob", "sha": "b1"},
                        {"path": "vendor/lib", "type": "commit", "sha": "c1"},
                    ],
                },
            )

        items = await _client(handler).list_tree()

        assert [(i.path, i.type, i.sha) for i in items] == [
            ("guides", "dir", "t1"),
            ("guides/setup.md", "file", "b1"),
        ]
        assert seen[0].url.path == "/repos/acme/wiki/git/trees/main"
        assert seen[0].url.params["recursive"] == "1"
        assert seen[0].headers["X-GitHub-Api-Version"] == "2022-11-28"
        assert "Authorization" not in seen[0].headers

    @pytest.mark.asyncio
    async def test__token__sent_as_bearer(self) -> None:
        """A configured token authorizes requests."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"sha": "root", "tree": []})

        await _client(handler, token="ghp_x").list_tree()

        assert seen[0].headers["Authorization"] == "Bearer ghp_x"

    @pytest.mark.asyncio
    async def test__rate_limited__raises_upstream(self) -> None:
        """Error statuses surface with the GitHub message."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"message": "API rate limit exceeded"})

        with pytest.raises(UpstreamError, match="rate limit") as exc_info:
            await _client(handler).list_tree()

        assert exc_info.value.status == 403

    @pytest.mark.asyncio
    async def test__transport_failure__raises_upstream(self) -> None:
        """Connection errors surface as UpstreamError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamError, match="GitHub request failed"):
            await _client(handler).list_tree()


class TestGetFile:
    """Tests for GitHubDocsClient.get_file()."""

    @pytest.mark.asyncio
    async def test__file__decodes_base64_content(self) -> None:
        """Return decoded UTF-8 content and the blob sha."""
        seen: list[httpx.Request] = []
        encoded = base64.b64encode("# Héllo\n".encode()).decode()

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "type": "file",
                    "path": "guides/my page.md",
                    "sha": "b1",
                    "content": encoded,
                    "encoding": "base64",
                },
            )

        doc = await _client(handler).get_file("guides/my page.md")

        assert doc.content == "# Héllo\n"
        assert doc.sha == "b1"
        assert seen[0].url.raw_path.startswith(b"/repos/acme/wiki/contents/guides/my%20page.md")
        assert seen[0].url.params["ref"] == "main"

    @pytest.mark.asyncio
    async def test__missing_file__raises_not_found(self) -> None:
        """A 404 maps to NotFoundError carrying the path."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"message": "Not Found"})

        with pytest.raises(NotFoundError) as exc_info:
            await _client(handler).get_file("nope.md")

        assert exc_info.value.path == "nope.md"

    @pytest.mark.asyncio
    async def test__directory_path__raises_not_found(self) -> None:
        """Directory listings are not files."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"type": "file", "path": "guides/a.md"}])

        with pytest.raises(NotFoundError, match="Not a file"):
            await _client(handler).get_file("guides")

    @pytest.mark.asyncio
    async def test__server_error__raises_upstream(self) -> None:
        """5xx responses are upstream failures, not absence."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="bad gateway")

        with pytest.raises(UpstreamError) as exc_info:
            await _client(handler).get_file("a.md")

        assert exc_info.value.status == 502

    @pytest.mark.asyncio
    async def test__non_json_body__raises_upstream(self) -> None:
        """A successful status with an HTML body is an upstream failure."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>proxy error</html>")

        with pytest.raises(UpstreamError, match="non-JSON"):
            await _client(handler).get_file("a.md")
