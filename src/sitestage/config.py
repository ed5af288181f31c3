"""Configuration management for Sitestage.

Supports TOML configuration format with auto-discovery.
"""

import ipaddress
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path

CONFIG_FILENAME = "sitestage.toml"

LOOPBACK_NAMES = ("localhost",)


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class SiteConfig:
    """Site content configuration."""

    root_dir: Path = field(default_factory=lambda: Path("public"))
    index_document: str = "index.html"


@dataclass
class DatabaseConfig:
    """SQLite database locations."""

    meta_db: Path = field(default_factory=lambda: Path("meta_db.sqlite"))
    data_db: Path = field(default_factory=lambda: Path("data_db.sqlite"))
    contact_db: Path = field(default_factory=lambda: Path("contact_db.sqlite"))


@dataclass
class Config:
    """Application configuration."""

    server: ServerConfig
    site: SiteConfig
    database: DatabaseConfig
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Config":
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for sitestage.toml in current directory and parents.

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
            site=SiteConfig(),
            database=DatabaseConfig(),
        )

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load configuration from a specific file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            data = tomllib.load(f)

        if not isinstance(data, dict):
            raise ValueError("Configuration must be a dictionary")

        config_dir = path.parent

        return cls(
            server=cls._parse_server(data.get("server")),
            site=cls._parse_site(data.get("site"), config_dir),
            database=cls._parse_database(data.get("database"), config_dir),
            config_path=path,
        )

    @classmethod
    def _parse_server(cls, data: object) -> ServerConfig:
        """Parse server configuration section.

        The server only ever binds to a loopback address.
        """
        if data is None:
            return ServerConfig()

        if not isinstance(data, dict):
            raise ValueError("server section must be a dictionary")

        host = data.get("host", "127.0.0.1")
        if not isinstance(host, str):
            raise ValueError("server.host must be a string")
        if not is_loopback(host):
            raise ValueError("server.host must be a loopback address")

        port = data.get("port", 8080)
        if not isinstance(port, int) or isinstance(port, bool):
            raise ValueError("server.port must be an integer")

        return ServerConfig(host=host, port=port)

    @classmethod
    def _parse_site(cls, data: object, config_dir: Path) -> SiteConfig:
        """Parse site configuration section.

        Args:
            data: Raw site section data
            config_dir: Directory containing config file (for relative paths)

        Returns:
            SiteConfig instance
        """
        if data is None:
            return SiteConfig(root_dir=config_dir / "public")

        if not isinstance(data, dict):
            raise ValueError("site section must be a dictionary")

        root_dir = data.get("root_dir", "public")
        if not isinstance(root_dir, str):
            raise ValueError("site.root_dir must be a string")

        index_document = data.get("index_document", "index.html")
        if not isinstance(index_document, str):
            raise ValueError("site.index_document must be a string")
        if not index_document or "/" in index_document:
            raise ValueError("site.index_document must be a file name")

        return SiteConfig(root_dir=config_dir / root_dir, index_document=index_document)

    @classmethod
    def _parse_database(cls, data: object, config_dir: Path) -> DatabaseConfig:
        """Parse database configuration section.

        Args:
            data: Raw database section data
            config_dir: Directory containing config file (for relative paths)

        Returns:
            DatabaseConfig instance
        """
        defaults = DatabaseConfig()
        if data is None:
            data = {}

        if not isinstance(data, dict):
            raise ValueError("database section must be a dictionary")

        paths: dict[str, Path] = {}
        for key in ("meta_db", "data_db", "contact_db"):
            value = data.get(key, str(getattr(defaults, key)))
            if not isinstance(value, str):
                raise ValueError(f"database.{key} must be a string")
            paths[key] = config_dir / value

        return DatabaseConfig(**paths)

    def with_overrides(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        root_dir: Path | None = None,
        index_document: str | None = None,
    ) -> "Config":
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config. The original
        Config is not modified.

        Args:
            host: Override server.host
            port: Override server.port
            root_dir: Override site.root_dir
            index_document: Override site.index_document

        Returns:
            New Config instance with overrides applied

        Raises:
            ValueError: If host is not a loopback address or index_document
                is not a plain file name
        """
        if host is not None and not is_loopback(host):
            raise ValueError("server.host must be a loopback address")
        if index_document is not None and (not index_document or "/" in index_document):
            raise ValueError("site.index_document must be a file name")

        server = self.server
        if host is not None or port is not None:
            server = replace(
                self.server,
                host=host if host is not None else self.server.host,
                port=port if port is not None else self.server.port,
            )

        site = self.site
        if root_dir is not None or index_document is not None:
            site = replace(
                self.site,
                root_dir=root_dir if root_dir is not None else self.site.root_dir,
                index_document=(
                    index_document if index_document is not None else self.site.index_document
                ),
            )

        return replace(self, server=server, site=site)


def is_loopback(host: str) -> bool:
    """Check whether a host name or address refers to the local machine only."""
    if host in LOOPBACK_NAMES:
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False
