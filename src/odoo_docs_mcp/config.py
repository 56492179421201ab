"""Configuration module for odoo-docs-mcp.

Loads configuration from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path


def _int_from_env(name: str, default: str) -> int:
    value = os.getenv(name, default)
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(f"Invalid {name} value '{value}': {e}") from e


@dataclass
class Config:
    """Application configuration."""

    docs_root: Path
    cache_dir: Path
    docs_version: str
    update_interval: int  # Seconds before the index is considered stale
    refresh_check_interval: int  # Seconds between staleness checks, 0 disables
    port: int

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        default_root = str(Path.home() / "odoo-documentation" / "content")
        docs_root = Path(os.getenv("ODOO_DOCS_ROOT", default_root)).expanduser()

        default_cache = str(Path.home() / ".cache" / "odoo-docs-mcp")
        cache_dir = Path(os.getenv("ODOO_DOCS_CACHE_DIR", default_cache)).expanduser()

        docs_version = os.getenv("ODOO_DOCS_VERSION", "17.0")

        update_interval = _int_from_env("ODOO_DOCS_UPDATE_INTERVAL", "86400")
        if update_interval <= 0:
            raise ValueError(
                f"Update interval must be positive, got {update_interval}"
            )

        refresh_check_interval = _int_from_env("ODOO_DOCS_REFRESH_CHECK_INTERVAL", "3600")
        if refresh_check_interval < 0:
            raise ValueError(
                f"Refresh check interval must be >= 0, got {refresh_check_interval}"
            )

        port = _int_from_env("ODOO_DOCS_PORT", "8080")
        if not 1 <= port <= 65535:
            raise ValueError(f"Port must be between 1 and 65535, got {port}")

        return cls(
            docs_root=docs_root,
            cache_dir=cache_dir,
            docs_version=docs_version,
            update_interval=update_interval,
            refresh_check_interval=refresh_check_interval,
            port=port,
        )


# Global config instance (lazy loaded)
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None
