"""Configuration management for dirportal.

Supports TOML configuration format with auto-discovery.
"""

import os
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path

CONFIG_FILENAME = "dirportal.toml"


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class StoreConfig:
    """Backing store configuration."""

    url: str
    api_key: str
    cache_ttl: float = 30.0


@dataclass
class GitHubConfig:
    """Remote docs repository configuration."""

    owner: str = field(default_factory=lambda: os.environ.get("GITHUB_OWNER", "sis-thesqd"))
    repo: str = field(default_factory=lambda: os.environ.get("GITHUB_REPO", "squad-wiki"))
    branch: str = field(default_factory=lambda: os.environ.get("GITHUB_BRANCH", "main"))
    token: str | None = field(default_factory=lambda: os.environ.get("GITHUB_TOKEN"))
    api_url: str = "https://api.github.com"


@dataclass
class DocsConfig:
    """Docs cache and search configuration."""

    tree_ttl: float = 60.0
    content_ttl: float = 60.0
    search_concurrency: int = 8


@dataclass
class DirectoryConfig:
    """Directory tree configuration."""

    strict_slugs: bool = False


@dataclass
class Config:
    """Application configuration."""

    server: ServerConfig
    store: StoreConfig | None
    github: GitHubConfig
    docs: DocsConfig
    directory: DirectoryConfig
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Config":
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for dirportal.toml in current directory and parents.

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls._load_from_file(config_path)

        discovered_path = cls._discover_config()
        if discovered_path is None:
            return cls._default()

        return cls._load_from_file(discovered_path)

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Search for config file in current directory and parents."""
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _default(cls) -> "Config":
        """Create config with all defaults."""
        return cls(
            server=ServerConfig(),
            store=None,
            github=GitHubConfig(),
            docs=DocsConfig(),
            directory=DirectoryConfig(),
        )

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load configuration from a specific file.

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            data = tomllib.load(f)

        return cls(
            server=cls._parse_server(data.get("server")),
            store=cls._parse_store(data.get("store")),
            github=cls._parse_github(data.get("github")),
            docs=cls._parse_docs(data.get("docs")),
            directory=cls._parse_directory(data.get("directory")),
            config_path=path,
        )

    @classmethod
    def _parse_server(cls, data: object) -> ServerConfig:
        if data is None:
            return ServerConfig()

        if not isinstance(data, dict):
            raise ValueError("server section must be a dictionary")

        host = data.get("host", "127.0.0.1")
        if not isinstance(host, str):
            raise ValueError("server.host must be a string")

        port = data.get("port", 8080)
        if not isinstance(port, int) or isinstance(port, bool):
            raise ValueError("server.port must be an integer")

        return ServerConfig(host=host, port=port)

    @classmethod
    def _parse_store(cls, data: object) -> StoreConfig | None:
        """Parse store section; absent section or url disables store access."""
        if data is None:
            return None

        if not isinstance(data, dict):
            raise ValueError("store section must be a dictionary")

        url = data.get("url")
        if url is None:
            return None
        if not isinstance(url, str):
            raise ValueError("store.url must be a string")

        api_key = data.get("api_key", os.environ.get("STORE_API_KEY", ""))
        if not isinstance(api_key, str):
            raise ValueError("store.api_key must be a string")

        cache_ttl = _parse_seconds(data, "cache_ttl", 30.0, "store")

        return StoreConfig(url=url, api_key=api_key, cache_ttl=cache_ttl)

    @classmethod
    def _parse_github(cls, data: object) -> GitHubConfig:
        defaults = GitHubConfig()
        if data is None:
            return defaults

        if not isinstance(data, dict):
            raise ValueError("github section must be a dictionary")

        values: dict[str, str | None] = {}
        for key in ("owner", "repo", "branch", "api_url"):
            value = data.get(key, getattr(defaults, key))
            if not isinstance(value, str):
                raise ValueError(f"github.{key} must be a string")
            values[key] = value

        token = data.get("token", defaults.token)
        if token is not None and not isinstance(token, str):
            raise ValueError("github.token must be a string")

        return GitHubConfig(
            owner=values["owner"] or defaults.owner,
            repo=values["repo"] or defaults.repo,
            branch=values["branch"] or defaults.branch,
            token=token,
            api_url=values["api_url"] or defaults.api_url,
        )

    @classmethod
    def _parse_docs(cls, data: object) -> DocsConfig:
        if data is None:
            return DocsConfig()

        if not isinstance(data, dict):
            raise ValueError("docs section must be a dictionary")

        concurrency = data.get("search_concurrency", 8)
        if not isinstance(concurrency, int) or isinstance(concurrency, bool) or concurrency < 1:
            raise ValueError("docs.search_concurrency must be a positive integer")

        return DocsConfig(
            tree_ttl=_parse_seconds(data, "tree_ttl", 60.0, "docs"),
            content_ttl=_parse_seconds(data, "content_ttl", 60.0, "docs"),
            search_concurrency=concurrency,
        )

    @classmethod
    def _parse_directory(cls, data: object) -> DirectoryConfig:
        if data is None:
            return DirectoryConfig()

        if not isinstance(data, dict):
            raise ValueError("directory section must be a dictionary")

        strict_slugs = data.get("strict_slugs", False)
        if not isinstance(strict_slugs, bool):
            raise ValueError("directory.strict_slugs must be a boolean")

        return DirectoryConfig(strict_slugs=strict_slugs)

    def with_overrides(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        store_url: str | None = None,
        strict_slugs: bool | None = None,
    ) -> "Config":
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config. The original
        Config is not modified.

        Args:
            host: Override server.host
            port: Override server.port
            store_url: Override store.url (creates the section if absent)
            strict_slugs: Override directory.strict_slugs

        Returns:
            New Config instance with overrides applied
        """
        server = self.server
        if host is not None or port is not None:
            server = replace(
                self.server,
                host=host if host is not None else self.server.host,
                port=port if port is not None else self.server.port,
            )

        store = self.store
        if store_url is not None:
            if store is None:
                store = StoreConfig(url=store_url, api_key=os.environ.get("STORE_API_KEY", ""))
            else:
                store = replace(store, url=store_url)

        directory = self.directory
        if strict_slugs is not None:
            directory = replace(self.directory, strict_slugs=strict_slugs)

        return replace(self, server=server, store=store, directory=directory)


def _parse_seconds(data: dict[str, object], key: str, default: float, section: str) -> float:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int | float) or value < 0:
        raise ValueError(f"{section}.{key} must be a non-negative number")
    return float(value)
