"""Configuration management for the Shouyutong sign lookup service.

This module provides centralized configuration management using Pydantic Settings.
All configuration is loaded from environment variables with the SHOUYUTONG_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (SHOUYUTONG_* prefix)
2. .env file in the project root
3. Default values defined in ShouyutongConfig

Example .env file:
    SHOUYUTONG_DATA_DIR=data
    SHOUYUTONG_OPENAI_API_KEY=sk-...
    SHOUYUTONG_TEXT_MODEL=gpt-4o-mini
    SHOUYUTONG_CURATOR_PASSWORD=change-me

Global Configuration Instance
------------------------------
A global `config` instance is created automatically at module import time.
This ensures a single source of truth for all configuration values across
the application.

Usage Example
-------------
    from shouyutong.core.config import config

    print(config.data_dir)
    print(config.text_model)

Directory Management
--------------------
The configuration creates ``data_dir`` on initialization.  The curated
library is persisted below it by :class:`~shouyutong.core.storage.FileStorage`.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ShouyutongConfig(BaseSettings):
    """Main configuration for the Shouyutong sign lookup service.

    Attributes
    ----------
    Storage:
        data_dir : Path
            Directory holding the persisted library
        library_key : str
            Storage key under which the library document is written

    Curator gate:
        curator_username : str
            Username accepted by the curator login
        curator_password : str
            Password accepted by the curator login

    Generation provider:
        openai_api_key : str | None
            API key for the OpenAI-compatible provider
        openai_base_url : str | None
            Optional base URL for OpenAI-compatible gateways
        text_model : str
            Chat model used for sign descriptions
        image_model : str
            Image model used for movement illustrations
        image_size : str
            Requested illustration size
        request_timeout : float
            Provider request timeout in seconds

    Server:
        server_host : str
            Bind address for uvicorn
        server_port : int
            Port for uvicorn (1024-65535)

    Examples
    --------
        >>> custom_config = ShouyutongConfig(
        ...     data_dir="/tmp/shouyutong",
        ...     text_model="gpt-4o",
        ... )
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SHOUYUTONG_",
        case_sensitive=False,
    )

    # Storage
    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding the persisted curated library",
    )
    library_key: str = Field(
        default="shouyutong_library",
        description="Storage key of the library document",
    )

    # Curator gate
    curator_username: str = Field(default="admin", description="Curator login name")
    curator_password: str = Field(default="123456", description="Curator login password")

    # Generation provider
    openai_api_key: str | None = Field(
        default=None,
        description="API key for the generation provider (falls back to OPENAI_API_KEY)",
    )
    openai_base_url: str | None = Field(
        default=None,
        description="Base URL for OpenAI-compatible gateways",
    )
    text_model: str = Field(
        default="gpt-4o-mini",
        description="Chat model used to describe signs",
    )
    image_model: str = Field(
        default="gpt-image-1",
        description="Image model used to illustrate sign movements",
    )
    image_size: str = Field(default="1024x1024", description="Illustration size")
    request_timeout: float = Field(
        default=60.0,
        description="Provider request timeout in seconds",
        gt=0,
    )

    # Server
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address (0.0.0.0 for local network)",
    )
    server_port: int = Field(
        default=8000,
        description="Server port",
        ge=1024,
        le=65535,
    )

    def __init__(self, **kwargs):
        """Initialize configuration and create the data directory.

        Args:
            **kwargs: Configuration overrides (typically from environment variables)
        """
        super().__init__(**kwargs)

        self.data_dir.mkdir(parents=True, exist_ok=True)


# Global configuration instance
config = ShouyutongConfig()
