"""
Web application configuration for FASHIONSIM.

Loads settings from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from fashionsim import __version__


@dataclass
class WebConfig:
    """Configuration for the FASHIONSIM web application."""

    # Application settings
    app_name: str = "FASHIONSIM"
    app_version: str = __version__
    debug: bool = False

    # Database settings
    database_url: str = "sqlite:///./data/fashionsim.db"

    # Constants catalog override (JSON or YAML)
    constants_path: Optional[Path] = None

    # Server settings
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "WebConfig":
        """Create config from environment variables."""
        constants = os.getenv("FASHIONSIM_CONSTANTS", "")
        return cls(
            debug=os.getenv("FASHIONSIM_DEBUG", "").lower() in ("true", "1", "yes"),
            database_url=os.getenv("FASHIONSIM_DATABASE_URL", "sqlite:///./data/fashionsim.db"),
            constants_path=Path(constants) if constants else None,
            host=os.getenv("FASHIONSIM_HOST", "127.0.0.1"),
            port=int(os.getenv("FASHIONSIM_PORT", "8000")),
        )


def get_config() -> WebConfig:
    """Get the web configuration instance."""
    return WebConfig.from_env()


# Global config instance (lazy initialization)
_config: Optional[WebConfig] = None


def get_settings() -> WebConfig:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = get_config()
    return _config
